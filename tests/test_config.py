"""Tests for kaleido.toml discovery and loading."""

from __future__ import annotations

import pytest

from kaleido.config import CONFIG_FILENAME, KaleidoConfig, find_config, load_config
from kaleido.parser import NestedErrorPolicy
from kaleido.precedence import DEFAULT_PRECEDENCE


def write_config(directory, text: str):
    path = directory / CONFIG_FILENAME
    path.write_text(text)
    return path


class TestFindConfig:
    def test_in_start_directory(self, tmp_path):
        path = write_config(tmp_path, "")
        assert find_config(tmp_path) == path.resolve()

    def test_walks_up(self, tmp_path):
        path = write_config(tmp_path, "")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config(nested) == path.resolve()

    def test_from_file_path(self, tmp_path):
        path = write_config(tmp_path, "")
        source = tmp_path / "prog.kal"
        source.write_text("1")
        assert find_config(source) == path.resolve()

    def test_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            find_config(tmp_path)


class TestLoadConfig:
    def test_defaults(self):
        config = KaleidoConfig()
        assert config.operators == dict(DEFAULT_PRECEDENCE)
        assert config.parser.nested_errors is NestedErrorPolicy.PROPAGATE
        assert config.codegen.module_name == "kaleido"
        assert config.repl.prompt == "ready> "
        assert config.repl.color is True

    def test_empty_file_gives_defaults(self, tmp_path):
        config = load_config(write_config(tmp_path, ""))
        assert config == KaleidoConfig()

    def test_full_file(self, tmp_path):
        config = load_config(write_config(tmp_path, """
[operators]
"<" = 10
"+" = 20
"%" = 50

[parser]
nested_errors = "lenient"

[codegen]
module_name = "demo"

[repl]
prompt = "kal> "
color = false
"""))
        assert config.operators == {"<": 10, "+": 20, "%": 50}
        assert config.precedence_table().precedence("%") == 50
        assert config.precedence_table().precedence("*") == -1
        assert config.parser.nested_errors is NestedErrorPolicy.LENIENT
        assert config.codegen.module_name == "demo"
        assert config.repl.prompt == "kal> "
        assert config.repl.color is False

    def test_partial_sections_keep_defaults(self, tmp_path):
        config = load_config(write_config(tmp_path, "[repl]\ncolor = false\n"))
        assert config.repl.prompt == "ready> "
        assert config.operators == dict(DEFAULT_PRECEDENCE)

    def test_invalid_policy(self, tmp_path):
        path = write_config(tmp_path, '[parser]\nnested_errors = "sloppy"\n')
        with pytest.raises(ValueError, match="propagate, lenient"):
            load_config(path)

    def test_invalid_operator(self, tmp_path):
        path = write_config(tmp_path, '[operators]\n"a" = 10\n')
        with pytest.raises(ValueError, match="cannot be used as a binary operator"):
            load_config(path)

    def test_invalid_precedence(self, tmp_path):
        path = write_config(tmp_path, '[operators]\n"+" = -5\n')
        with pytest.raises(ValueError, match="non-negative integer"):
            load_config(path)

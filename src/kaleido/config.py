"""TOML config loading for kaleido.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from kaleido.parser import NestedErrorPolicy
from kaleido.precedence import DEFAULT_PRECEDENCE, PrecedenceTable

CONFIG_FILENAME = "kaleido.toml"


@dataclass
class ParserConfig:
    nested_errors: NestedErrorPolicy = NestedErrorPolicy.PROPAGATE


@dataclass
class CodegenConfig:
    module_name: str = "kaleido"


@dataclass
class ReplConfig:
    prompt: str = "ready> "
    color: bool = True


@dataclass
class KaleidoConfig:
    operators: dict[str, int] = field(default_factory=lambda: dict(DEFAULT_PRECEDENCE))
    parser: ParserConfig = field(default_factory=ParserConfig)
    codegen: CodegenConfig = field(default_factory=CodegenConfig)
    repl: ReplConfig = field(default_factory=ReplConfig)

    def precedence_table(self) -> PrecedenceTable:
        return PrecedenceTable(self.operators)


def find_config(start_path: Path | None = None) -> Path:
    """Walk up directories to find kaleido.toml. Raises FileNotFoundError."""
    path = (start_path or Path.cwd()).resolve()
    if path.is_file():
        path = path.parent
    while True:
        candidate = path / CONFIG_FILENAME
        if candidate.exists():
            return candidate
        parent = path.parent
        if parent == path:
            raise FileNotFoundError(f"No {CONFIG_FILENAME} found in any parent directory")
        path = parent


def _nested_error_policy(value: str) -> NestedErrorPolicy:
    try:
        return NestedErrorPolicy(value)
    except ValueError:
        choices = ", ".join(p.value for p in NestedErrorPolicy)
        raise ValueError(
            f"invalid parser.nested_errors {value!r}; expected one of: {choices}"
        ) from None


def load_config(path: Path) -> KaleidoConfig:
    """Parse a kaleido.toml file into a KaleidoConfig. Raises ValueError."""
    with open(path, "rb") as f:
        data = tomllib.load(f)

    config = KaleidoConfig()

    if "operators" in data:
        config.operators = dict(data["operators"])
        # Validate now rather than when the first parser is built.
        PrecedenceTable(config.operators)

    if "parser" in data:
        prs = data["parser"]
        config.parser = ParserConfig(
            nested_errors=_nested_error_policy(prs.get("nested_errors", "propagate")),
        )

    if "codegen" in data:
        cg = data["codegen"]
        config.codegen = CodegenConfig(
            module_name=cg.get("module_name", "kaleido"),
        )

    if "repl" in data:
        rpl = data["repl"]
        config.repl = ReplConfig(
            prompt=rpl.get("prompt", "ready> "),
            color=rpl.get("color", True),
        )

    return config

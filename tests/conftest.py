"""Shared pytest fixtures for the Kaleidoscope test suite."""

from __future__ import annotations

import pytest
from click.testing import CliRunner


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def source_file(tmp_path):
    """Write Kaleidoscope source to a temp file and return its path."""

    def write(text: str, name: str = "prog.kal"):
        path = tmp_path / name
        path.write_text(text)
        return path

    return write

"""Pytest configuration and fixtures."""

import copy
import shutil
from pathlib import Path

import pytest

from xnr.config import DEFAULTS
from xnr.syntax.parser import JavaScriptParser


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep XNR_* variables from the developer's shell out of the tests."""
    for section, values in DEFAULTS.items():
        for key in values:
            monkeypatch.delenv(f"XNR_{section.upper()}_{key.upper()}", raising=False)


@pytest.fixture
def config():
    """Built-in configuration, unaffected by .xnr.json or the environment."""
    return copy.deepcopy(DEFAULTS)


@pytest.fixture
def project(tmp_path, monkeypatch):
    """Write files into a temporary project and make it the working directory.

    Usage:
        root = project({"index.ts": "import './a';", "a.ts": ""})
    """
    monkeypatch.chdir(tmp_path)

    def write(files: dict[str, str]) -> Path:
        for name, content in files.items():
            path = tmp_path / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return tmp_path

    return write


@pytest.fixture
def parse():
    """Parse plain JavaScript into a SyntaxTree."""

    def _parse(text: str, path: Path | None = None, language: str = "javascript"):
        return JavaScriptParser(language).parse(text, path)

    return _parse


@pytest.fixture
def node_available():
    """Skip when no node executable is installed."""
    if shutil.which("node") is None:
        pytest.skip("node is not installed")

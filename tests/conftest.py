"""Pytest configuration and fixtures for installcheck tests."""

import os
import sys
import tempfile
from pathlib import Path

import pytest

from installcheck.core.log import ConsoleSink, setup_logger


@pytest.fixture(autouse=True, scope="session")
def configure_logging():
    """Console-only debug logging; nothing is sent to logfire.dev."""
    setup_logger(
        log_root=Path(tempfile.gettempdir()) / "installcheck-tests",
        run_name="test",
        console=ConsoleSink(level="debug"),
    )


@pytest.fixture
def make_tool(tmp_path):
    """Factory writing a shell script that stands in for a CLI tool.

    Usage: make_tool("shorebird", "echo hello", mode=0o755)
    """
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir(exist_ok=True)

    def _make(name: str, body: str, mode: int = 0o755) -> Path:
        path = bin_dir / name
        path.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
        path.chmod(mode)
        return path

    return _make


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Run with tmp_path as cwd, no user config and a clean argv.

    Returns the directory where a project installcheck.yaml may be
    written.
    """
    user_dir = tmp_path / "user-config"
    user_dir.mkdir()
    monkeypatch.setattr(
        "installcheck.core.yaml_settings.user_config_dir",
        lambda *args, **kwargs: str(user_dir),
    )
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(sys, "argv", ["installcheck"])
    for name in list(os.environ):
        if name.upper().startswith("INSTALLCHECK_"):
            monkeypatch.delenv(name)
    return tmp_path

"""Shared fixtures for building desktop entries and fake executables."""

from pathlib import Path
from typing import Protocol

import pytest


class WriteEntryFn(Protocol):
    """Protocol for desktop entry creation function."""

    def __call__(self, name: str, body: str) -> Path:
        """Write a `.desktop` file and return its path."""


class MakeFileFn(Protocol):
    """Protocol for fake executable creation function."""

    def __call__(self, name: str, *, mode: int = 0o755, directory: Path | None = None) -> Path:
        """Create a file with the given mode and return its path."""


@pytest.fixture
def apps_dir(tmp_path: Path) -> Path:
    """Directory holding test desktop entries."""
    path = tmp_path / "applications"
    path.mkdir()
    return path


@pytest.fixture
def bin_dir(tmp_path: Path) -> Path:
    """Directory standing in for a search path entry."""
    path = tmp_path / "bin"
    path.mkdir()
    return path


@pytest.fixture
def write_entry(apps_dir: Path) -> WriteEntryFn:
    """Return a function that writes desktop entries into apps_dir."""

    def _write(name: str, body: str) -> Path:
        path = apps_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(body, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_file(bin_dir: Path) -> MakeFileFn:
    """Return a function that creates files with a given permission mode."""

    def _make(name: str, *, mode: int = 0o755, directory: Path | None = None) -> Path:
        path = (directory or bin_dir) / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("#!/bin/sh\nexit 0\n")
        path.chmod(mode)
        return path

    return _make

"""Shared test fixtures for pkgtools."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

MARKER = "tsconfig-build.json"


def write_entry_point(root: Path, name: str, sources: dict[str, str] | None = None) -> Path:
    """Create an entry-point directory with a build descriptor and sources."""
    entry = root / name
    entry.mkdir(parents=True, exist_ok=True)
    (entry / MARKER).write_text("{}\n")
    for rel_path, text in (sources or {}).items():
        path = entry / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)
    return entry


@pytest.fixture()
def package_root(tmp_path: Path) -> Path:
    """An empty package source directory."""
    root = tmp_path / "cdk"
    root.mkdir()
    return root


@pytest.fixture()
def make_entry_point(package_root: Path) -> Callable[..., Path]:
    """Factory: ``make_entry_point("a11y", {"index.ts": "..."})``."""

    def _make(name: str, sources: dict[str, str] | None = None) -> Path:
        return write_entry_point(package_root, name, sources)

    return _make

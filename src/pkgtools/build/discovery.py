"""Entry-point discovery: which subdirectories of a package are buildable."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

DEFAULT_MARKER = "tsconfig-build.json"


class PackageNotFoundError(FileNotFoundError):
    """The package root directory does not exist."""


@dataclass(frozen=True)
class BuildPackage:
    """A package whose secondary entry-points get ordered.

    ``name`` is the package name (``cdk``), ``root`` its source directory
    and ``scope`` the import prefix (``@angular``), so entry-points are
    imported as ``@angular/cdk/<entry-point>``.
    """

    name: str
    root: Path
    scope: str = ""

    @property
    def import_name(self) -> str:
        if self.scope:
            return f"{self.scope.rstrip('/')}/{self.name}"
        return self.name


def list_subdirectories(path: Path) -> list[str]:
    """Return names of the direct child directories of *path*, sorted.

    Raises :class:`PackageNotFoundError` if *path* is not a directory.
    """
    if not path.is_dir():
        msg = f"Package root not found: {path}"
        raise PackageNotFoundError(msg)
    return sorted(child.name for child in path.iterdir() if child.is_dir())


def has_build_descriptor(path: Path, marker: str = DEFAULT_MARKER) -> bool:
    """Whether *path* directly contains the *marker* file."""
    return (path / marker).is_file()


def discover_entry_points(
    package: BuildPackage,
    *,
    marker: str = DEFAULT_MARKER,
    exclude: Iterable[str] = (),
) -> list[str]:
    """List the entry-points of *package* in discovery (alphabetical) order.

    A subdirectory is an entry-point when it holds *marker* and is not
    listed in *exclude*.
    """
    excluded = set(exclude)
    entry_points: list[str] = []
    for name in list_subdirectories(package.root):
        if name in excluded:
            logger.debug("Skipping excluded directory %s", name)
            continue
        if not has_build_descriptor(package.root / name, marker):
            logger.debug("Skipping %s: no %s", name, marker)
            continue
        entry_points.append(name)
    return entry_points

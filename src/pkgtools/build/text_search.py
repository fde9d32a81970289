"""Text search backends: find import statements that reference a package.

Every backend answers the same question, "which lines under *directory*
import from *package*?", so the graph builder never needs to know whether
``grep``, ``findstr`` or a plain file scan produced the lines.
"""

from __future__ import annotations

import fnmatch
import logging
import re
import subprocess
import sys
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

BACKENDS: tuple[str, ...] = ("auto", "grep", "findstr", "scan")

# grep and findstr both exit with 1 when nothing matched.
_NO_MATCH_EXIT = 1

_ERE_SPECIAL = re.compile(r"([.^$*+?()\[\]{}|\\])")
_FINDSTR_SPECIAL = re.compile(r"([.^$*\[\]\\])")


class TextSearchError(RuntimeError):
    """The search tool is missing, timed out or failed."""


class TextSearch(Protocol):
    """Capability interface for import-line search."""

    def find_import_lines(self, directory: Path, package: str) -> list[str]:
        """Return lines importing from ``package/...`` under *directory*."""
        ...


def _split_lines(output: str) -> list[str]:
    return [line for line in output.split("\n") if line.strip()]


def ere_escape(text: str) -> str:
    """Backslash-escape POSIX ERE metacharacters in *text*."""
    return _ERE_SPECIAL.sub(r"\\\1", text)


def findstr_escape(text: str) -> str:
    """Backslash-escape the metacharacters ``findstr /r`` understands."""
    return _FINDSTR_SPECIAL.sub(r"\\\1", text)


class _SubprocessSearch:
    """Shared runner for backends that shell out to a search executable."""

    binary = ""

    def __init__(self, include: str = "*.ts", timeout: float | None = 60.0) -> None:
        self.include = include
        self.timeout = timeout

    def build_command(self, directory: Path, package: str) -> list[str]:
        raise NotImplementedError

    def find_import_lines(self, directory: Path, package: str) -> list[str]:
        cmd = self.build_command(directory, package)
        logger.debug("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(  # noqa: S603
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            msg = f"Search executable '{self.binary}' not found"
            raise TextSearchError(msg) from exc
        except subprocess.TimeoutExpired as exc:
            msg = f"'{self.binary}' timed out after {self.timeout}s searching {directory}"
            raise TextSearchError(msg) from exc

        if result.returncode == _NO_MATCH_EXIT and not result.stdout.strip():
            return []
        if result.returncode != 0:
            stderr = result.stderr.strip()
            msg = f"'{self.binary}' failed with exit code {result.returncode}: {stderr}"
            raise TextSearchError(msg)
        return _split_lines(result.stdout)


class GrepSearch(_SubprocessSearch):
    """Recursive ``grep -E`` restricted to files matching *include*."""

    binary = "grep"

    def build_command(self, directory: Path, package: str) -> list[str]:
        return [
            self.binary,
            "-Eroh",
            "--include",
            self.include,
            f"from[[:space:]]*['\"]{ere_escape(package)}/.+['\"]",
            str(directory),
        ]


class FindstrSearch(_SubprocessSearch):
    """Windows ``findstr`` search.

    ``findstr`` prefixes each hit with the file name when several files
    match; the import regex only looks at the ``from '...'`` part, so the
    prefix is harmless.
    """

    binary = "findstr"

    def build_command(self, directory: Path, package: str) -> list[str]:
        return [
            self.binary,
            "/r",
            "/s",
            f"from *['\"]{findstr_escape(package)}/.*['\"]",
            str(directory / self.include),
        ]


class ScanSearch:
    """Pure-Python search: walk *directory* and regex-match each line."""

    def __init__(self, include: str = "*.ts") -> None:
        self.include = include

    def find_import_lines(self, directory: Path, package: str) -> list[str]:
        pattern = re.compile(rf"from\s*['\"]{re.escape(package)}/.+['\"]")
        lines: list[str] = []
        for path in sorted(directory.rglob("*")):
            if not path.is_file() or not fnmatch.fnmatch(path.name, self.include):
                continue
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError):
                logger.debug("Skipping unreadable file %s", path)
                continue
            lines.extend(line for line in text.splitlines() if pattern.search(line))
        return lines


def create_search(
    backend: str = "auto",
    *,
    include: str = "*.ts",
    timeout: float | None = 60.0,
    platform: str | None = None,
) -> TextSearch:
    """Instantiate a search backend by name.

    ``auto`` picks ``findstr`` on Windows and ``grep`` everywhere else.
    """
    if backend == "auto":
        current = platform if platform is not None else sys.platform
        backend = "findstr" if current == "win32" else "grep"

    if backend == "grep":
        return GrepSearch(include=include, timeout=timeout)
    if backend == "findstr":
        return FindstrSearch(include=include, timeout=timeout)
    if backend == "scan":
        return ScanSearch(include=include)

    msg = f"Unknown search backend '{backend}', expected one of: {', '.join(BACKENDS)}"
    raise ValueError(msg)

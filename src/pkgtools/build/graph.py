"""Entry-point build graph and its depth-first linearization.

Builds a dependency graph between the secondary entry-points of a single
package by searching each entry-point's sources for imports of its
siblings, then flattens the graph into the order the entry-points must be
built in.  Two-pass approach:

1. Create one :class:`BuildNode` per discovered entry-point.
2. Resolve the extracted dependency names to sibling nodes, dropping
   anything that is not an entry-point of the same package.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pkgtools.build.discovery import DEFAULT_MARKER, discover_entry_points
from pkgtools.build.text_search import create_search

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from pkgtools.build.discovery import BuildPackage
    from pkgtools.build.text_search import TextSearch

logger = logging.getLogger(__name__)


class CycleDetectedError(ValueError):
    """Raised in strict mode when entry-points depend on each other in a loop."""

    def __init__(self, cycles: list[list[str]]) -> None:
        self.cycles = cycles
        paths = "; ".join(format_cycle(c) for c in cycles)
        super().__init__(f"Circular entry-point dependencies: {paths}")


@dataclass(eq=False)
class BuildNode:
    """A node in the build graph of a package's entry-points."""

    name: str
    deps: list[BuildNode] = field(default_factory=list)

    def __repr__(self) -> str:
        return f"BuildNode({self.name!r}, deps={[d.name for d in self.deps]!r})"


@dataclass
class BuildGraph:
    """Entry-point nodes in discovery order."""

    nodes: list[BuildNode] = field(default_factory=list)

    @property
    def names(self) -> list[str]:
        return [node.name for node in self.nodes]

    def dependencies(self) -> dict[str, list[str]]:
        """Adjacency list keyed by entry-point name."""
        return {node.name: [dep.name for dep in node.deps] for node in self.nodes}


@dataclass(frozen=True)
class BuildOrderResult:
    """Outcome of ordering one package."""

    package: str
    order: list[str]
    graph: BuildGraph
    cycles: list[list[str]]
    import_lines: int = 0


def format_cycle(path: Sequence[str]) -> str:
    """Render ``["a", "b"]`` as ``a → b → a``."""
    return " → ".join([*path, path[0]])


def import_pattern(import_name: str) -> re.Pattern[str]:
    """Regex capturing the entry-point token of ``from '<import_name>/<token>'``.

    E.g. extracts ``portal`` from ``from '@angular/cdk/portal';``.
    """
    return re.compile(rf"""from\s*['"]{re.escape(import_name)}/([^'"]+)['"]""")


def extract_dependency_names(
    lines: Iterable[str],
    import_name: str,
    known: Iterable[str],
    *,
    exclude_self: str | None = None,
) -> list[str]:
    """Pull sibling entry-point names out of matched import lines.

    Every import on a line counts, so bundled statements such as
    ``export {A} from '.../a'; import {B} from '.../b';`` yield both names.
    Keeps first-seen order and drops duplicates, self references, names
    not in *known* and lines the import regex does not match.
    """
    pattern = import_pattern(import_name)
    known_names = set(known)
    names: dict[str, None] = {}
    for line in lines:
        for match in pattern.finditer(line):
            name = match.group(1)
            if name == exclude_self or name not in known_names:
                continue
            names.setdefault(name, None)
    return list(names)


def build_graph(dependency_names: dict[str, list[str]]) -> BuildGraph:
    """Turn ``{entry_point: [dependency names]}`` into linked nodes.

    Key order is the discovery order.  Names with no matching node are
    dropped, as are repeated names.
    """
    nodes = [BuildNode(name) for name in dependency_names]
    lookup = {node.name: node for node in nodes}

    for node in nodes:
        seen: set[str] = set()
        for dep_name in dependency_names[node.name]:
            dep = lookup.get(dep_name)
            if dep is None or dep_name in seen:
                continue
            seen.add(dep_name)
            node.deps.append(dep)

    return BuildGraph(nodes=nodes)


def _visit(
    node: BuildNode,
    visited: set[str],
    path: list[str],
    order: list[str],
    cycles: list[list[str]],
) -> None:
    visited.add(node.name)
    path.append(node.name)
    for dep in node.deps:
        if dep.name in path:
            cycles.append(path[path.index(dep.name) :])
            continue
        if dep.name not in visited:
            _visit(dep, visited, path, order, cycles)
    path.pop()
    order.append(node.name)


def linearize(graph: BuildGraph) -> tuple[list[str], list[list[str]]]:
    """Depth-first build order over *graph*.

    Returns ``(order, cycles)``.  Every node appears once, after all of its
    dependencies except the one closing a cycle.  Nodes are marked visited
    on entry, so a cycle is cut where the traversal re-enters it.
    """
    visited: set[str] = set()
    order: list[str] = []
    cycles: list[list[str]] = []
    for node in graph.nodes:
        if node.name not in visited:
            _visit(node, visited, [], order, cycles)
    return order, cycles


def get_build_order(graph: BuildGraph) -> list[str]:
    """Like :func:`linearize` but returns only the order."""
    order, _cycles = linearize(graph)
    return order


def compute_build_order(
    package: BuildPackage,
    search: TextSearch | None = None,
    *,
    marker: str = DEFAULT_MARKER,
    exclude: Iterable[str] = (),
    strict: bool = False,
) -> BuildOrderResult:
    """Discover, graph and order the secondary entry-points of *package*.

    Raises :class:`CycleDetectedError` when *strict* and the graph has a
    cycle; otherwise cycles are logged as warnings and broken.
    """
    if search is None:
        search = create_search()

    entry_points = discover_entry_points(package, marker=marker, exclude=exclude)
    logger.debug("Entry-points of %s: %s", package.name, ", ".join(entry_points))

    dependency_names: dict[str, list[str]] = {}
    import_lines = 0
    for name in entry_points:
        lines = search.find_import_lines(package.root / name, package.import_name)
        import_lines += len(lines)
        dependency_names[name] = extract_dependency_names(
            lines, package.import_name, entry_points, exclude_self=name,
        )
        logger.debug("%s depends on: %s", name, dependency_names[name])

    if len(entry_points) > 1 and import_lines == 0:
        logger.warning(
            "No imports of '%s/...' found in %d entry-points of %s; check the package scope",
            package.import_name, len(entry_points), package.name,
        )

    graph = build_graph(dependency_names)
    order, cycles = linearize(graph)

    for cycle in cycles:
        logger.warning("Circular entry-point dependency: %s", format_cycle(cycle))
    if strict and cycles:
        raise CycleDetectedError(cycles)

    logger.info("Build order for %s: %s", package.name, ", ".join(order))
    return BuildOrderResult(
        package=package.name,
        order=order,
        graph=graph,
        cycles=cycles,
        import_lines=import_lines,
    )


def get_secondary_entry_points_for_package(
    package: BuildPackage,
    search: TextSearch | None = None,
    *,
    marker: str = DEFAULT_MARKER,
    exclude: Iterable[str] = (),
    strict: bool = False,
) -> list[str]:
    """Secondary entry-point names of *package* in the order to build them."""
    result = compute_build_order(
        package, search, marker=marker, exclude=exclude, strict=strict,
    )
    return result.order

"""Tests for pkgtools.build.graph — dependency graph + DFS build order."""

from __future__ import annotations

import logging
import shutil
from typing import TYPE_CHECKING

import pytest

from pkgtools.build.discovery import BuildPackage, PackageNotFoundError
from pkgtools.build.graph import (
    BuildGraph,
    CycleDetectedError,
    build_graph,
    compute_build_order,
    extract_dependency_names,
    format_cycle,
    get_build_order,
    get_secondary_entry_points_for_package,
    linearize,
)
from pkgtools.build.text_search import GrepSearch, ScanSearch, TextSearchError

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


class FakeSearch:
    """Returns canned import lines keyed by entry-point directory name."""

    def __init__(self, lines: dict[str, list[str]]) -> None:
        self.lines = lines
        self.calls: list[tuple[str, str]] = []

    def find_import_lines(self, directory: Path, package: str) -> list[str]:
        self.calls.append((directory.name, package))
        return self.lines.get(directory.name, [])


class FailingSearch:
    def find_import_lines(self, directory: Path, package: str) -> list[str]:
        msg = "Search executable 'grep' not found"
        raise TextSearchError(msg)


def _imports(*names: str, package: str = "@angular/cdk") -> list[str]:
    return [f"import {{X}} from '{package}/{name}';" for name in names]


def _assert_respects_edges(order: list[str], deps: dict[str, list[str]]) -> None:
    for node, node_deps in deps.items():
        for dep in node_deps:
            assert order.index(dep) < order.index(node), f"{dep} must precede {node}"


# ---------------------------------------------------------------------------
# extract_dependency_names
# ---------------------------------------------------------------------------


class TestExtractDependencyNames:
    def test_single_quotes(self) -> None:
        lines = ["import {Portal} from '@angular/cdk/portal';"]
        assert extract_dependency_names(lines, "@angular/cdk", ["portal"]) == ["portal"]

    def test_double_quotes(self) -> None:
        lines = ['import {Portal} from "@angular/cdk/portal";']
        assert extract_dependency_names(lines, "@angular/cdk", ["portal"]) == ["portal"]

    def test_grep_output_without_import_prefix(self) -> None:
        lines = ["from '@angular/cdk/bidi';"]
        assert extract_dependency_names(lines, "@angular/cdk", ["bidi"]) == ["bidi"]

    def test_findstr_filename_prefix(self) -> None:
        lines = [r"C:\src\cdk\a11y\index.ts:import {Dir} from '@angular/cdk/bidi';"]
        assert extract_dependency_names(lines, "@angular/cdk", ["bidi"]) == ["bidi"]

    def test_duplicates_collapse_in_first_seen_order(self) -> None:
        lines = _imports("keycodes", "bidi", "keycodes", "bidi")
        result = extract_dependency_names(lines, "@angular/cdk", ["bidi", "keycodes"])
        assert result == ["keycodes", "bidi"]

    def test_self_reference_dropped(self) -> None:
        lines = _imports("a11y", "bidi")
        result = extract_dependency_names(
            lines, "@angular/cdk", ["a11y", "bidi"], exclude_self="a11y",
        )
        assert result == ["bidi"]

    def test_unknown_entry_point_dropped(self) -> None:
        lines = _imports("z", "bidi")
        assert extract_dependency_names(lines, "@angular/cdk", ["bidi"]) == ["bidi"]

    def test_other_package_dropped(self) -> None:
        lines = _imports("bidi", package="@angular/material")
        assert extract_dependency_names(lines, "@angular/cdk", ["bidi"]) == []

    def test_deep_import_path_not_an_entry_point(self) -> None:
        lines = _imports("overlay/position")
        assert extract_dependency_names(lines, "@angular/cdk", ["overlay"]) == []

    def test_non_matching_lines_ignored(self) -> None:
        lines = ["", "const x = 1;", "// from somewhere"]
        assert extract_dependency_names(lines, "@angular/cdk", ["bidi"]) == []

    def test_unscoped_package(self) -> None:
        lines = ["import {a} from 'cdk/bidi';"]
        assert extract_dependency_names(lines, "cdk", ["bidi"]) == ["bidi"]

    def test_every_import_on_a_line_counts(self) -> None:
        lines = ["export {B} from '@angular/cdk/b'; import {C} from '@angular/cdk/c';"]
        assert extract_dependency_names(lines, "@angular/cdk", ["b", "c"]) == ["b", "c"]

    def test_grep_match_spanning_two_imports(self) -> None:
        lines = ["from '@angular/cdk/b'; import {C} from  \"@angular/cdk/c\""]
        assert extract_dependency_names(lines, "@angular/cdk", ["b", "c"]) == ["b", "c"]


# ---------------------------------------------------------------------------
# build_graph
# ---------------------------------------------------------------------------


class TestBuildGraph:
    def test_nodes_in_key_order(self) -> None:
        graph = build_graph({"b": [], "a": [], "c": []})
        assert graph.names == ["b", "a", "c"]

    def test_deps_resolve_to_sibling_nodes(self) -> None:
        graph = build_graph({"a": ["b"], "b": []})
        a, b = graph.nodes
        assert a.deps == [b]
        assert a.deps[0] is b

    def test_unresolved_names_dropped(self) -> None:
        graph = build_graph({"a": ["b", "ghost"], "b": []})
        assert graph.dependencies() == {"a": ["b"], "b": []}

    def test_duplicate_edges_collapse(self) -> None:
        graph = build_graph({"a": ["b", "b"], "b": []})
        assert graph.dependencies()["a"] == ["b"]

    def test_cycle_is_accepted(self) -> None:
        graph = build_graph({"a": ["b"], "b": ["a"]})
        assert graph.dependencies() == {"a": ["b"], "b": ["a"]}

    def test_empty(self) -> None:
        assert build_graph({}).nodes == []


# ---------------------------------------------------------------------------
# linearize
# ---------------------------------------------------------------------------


class TestLinearize:
    def test_chain(self) -> None:
        graph = build_graph({"a": ["b"], "b": ["c"], "c": []})
        order, cycles = linearize(graph)
        assert order == ["c", "b", "a"]
        assert cycles == []

    def test_independent_nodes_keep_discovery_order(self) -> None:
        graph = build_graph({"x": [], "y": []})
        assert get_build_order(graph) == ["x", "y"]

    def test_shared_dependency_appears_once(self) -> None:
        deps = {"a": ["c"], "b": ["c"], "c": []}
        order = get_build_order(build_graph(deps))
        assert order == ["c", "a", "b"]

    def test_diamond(self) -> None:
        deps = {"a": ["b", "c"], "b": ["d"], "c": ["d"], "d": []}
        order = get_build_order(build_graph(deps))
        assert order == ["d", "b", "c", "a"]
        _assert_respects_edges(order, deps)

    def test_dependency_listed_after_dependent(self) -> None:
        deps = {"a11y": ["keycodes"], "bidi": [], "keycodes": [], "overlay": ["bidi", "a11y"]}
        order = get_build_order(build_graph(deps))
        assert order == ["keycodes", "a11y", "bidi", "overlay"]
        _assert_respects_edges(order, deps)

    def test_two_node_cycle_no_error(self) -> None:
        graph = build_graph({"a": ["b"], "b": ["a"]})
        order, cycles = linearize(graph)
        assert sorted(order) == ["a", "b"]
        assert order == ["b", "a"]
        assert cycles == [["a", "b"]]

    def test_three_node_cycle(self) -> None:
        graph = build_graph({"a": ["b"], "b": ["c"], "c": ["a"], "d": ["a"]})
        order, cycles = linearize(graph)
        assert order == ["c", "b", "a", "d"]
        assert cycles == [["a", "b", "c"]]

    def test_cycle_reached_from_later_root(self) -> None:
        graph = build_graph({"root": ["x"], "x": ["y"], "y": ["x"]})
        order, cycles = linearize(graph)
        assert order == ["y", "x", "root"]
        assert cycles == [["x", "y"]]

    def test_non_cycle_edges_still_honored_with_cycle_present(self) -> None:
        deps = {"a": ["b", "c"], "b": ["a"], "c": ["d"], "d": []}
        order, cycles = linearize(build_graph(deps))
        assert order.index("d") < order.index("c") < order.index("a")
        assert order.index("b") < order.index("a")
        assert len(cycles) == 1

    def test_idempotent(self) -> None:
        graph = build_graph({"a": ["b"], "b": ["c"], "c": ["a"], "x": []})
        assert linearize(graph) == linearize(graph)

    def test_visited_state_not_kept_on_nodes(self) -> None:
        graph = build_graph({"a": ["b"], "b": []})
        get_build_order(graph)
        again = BuildGraph(nodes=[graph.nodes[1]])
        assert get_build_order(again) == ["b"]

    @pytest.mark.parametrize(
        "deps",
        [
            {},
            {"a": []},
            {"a": ["b"], "b": ["c"], "c": []},
            {"a": ["b", "c"], "b": ["c"], "c": [], "d": ["a"]},
            {"a": ["b"], "b": ["c"], "c": ["a"]},
            {"p": ["q", "r"], "q": ["r", "s"], "r": ["s"], "s": [], "t": ["p", "s"]},
        ],
    )
    def test_every_node_exactly_once(self, deps: dict[str, list[str]]) -> None:
        order = get_build_order(build_graph(deps))
        assert len(order) == len(deps)
        assert set(order) == set(deps)

    def test_long_chain(self) -> None:
        names = [f"ep{i:03d}" for i in range(200)]
        deps = {name: names[i + 1 : i + 2] for i, name in enumerate(names)}
        assert get_build_order(build_graph(deps)) == list(reversed(names))


class TestFormatCycle:
    def test_closes_loop(self) -> None:
        assert format_cycle(["a", "b"]) == "a → b → a"


# ---------------------------------------------------------------------------
# compute_build_order / get_secondary_entry_points_for_package
# ---------------------------------------------------------------------------


class TestComputeBuildOrder:
    def test_chain_scenario(
        self, package_root: Path, make_entry_point: Callable[..., Path],
    ) -> None:
        for name in ("a", "b", "c"):
            make_entry_point(name)
        search = FakeSearch({"a": _imports("b"), "b": _imports("c")})
        package = BuildPackage(name="cdk", root=package_root, scope="@angular")

        order = get_secondary_entry_points_for_package(package, search)

        assert order == ["c", "b", "a"]
        assert ("a", "@angular/cdk") in search.calls

    def test_cycle_scenario(
        self,
        package_root: Path,
        make_entry_point: Callable[..., Path],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        make_entry_point("a")
        make_entry_point("b")
        search = FakeSearch({"a": _imports("b"), "b": _imports("a")})
        package = BuildPackage(name="cdk", root=package_root, scope="@angular")

        with caplog.at_level(logging.WARNING, logger="pkgtools"):
            result = compute_build_order(package, search)

        assert sorted(result.order) == ["a", "b"]
        assert result.cycles == [["a", "b"]]
        assert "a → b → a" in caplog.text

    def test_strict_mode_raises_on_cycle(
        self, package_root: Path, make_entry_point: Callable[..., Path],
    ) -> None:
        make_entry_point("a")
        make_entry_point("b")
        search = FakeSearch({"a": _imports("b"), "b": _imports("a")})
        package = BuildPackage(name="cdk", root=package_root, scope="@angular")

        with pytest.raises(CycleDetectedError, match="a → b → a") as excinfo:
            compute_build_order(package, search, strict=True)
        assert excinfo.value.cycles == [["a", "b"]]

    def test_strict_mode_passes_acyclic(
        self, package_root: Path, make_entry_point: Callable[..., Path],
    ) -> None:
        make_entry_point("a")
        make_entry_point("b")
        search = FakeSearch({"a": _imports("b")})
        package = BuildPackage(name="cdk", root=package_root, scope="@angular")

        assert compute_build_order(package, search, strict=True).order == ["b", "a"]

    def test_independent_scenario(
        self, package_root: Path, make_entry_point: Callable[..., Path],
    ) -> None:
        make_entry_point("x")
        make_entry_point("y")
        package = BuildPackage(name="cdk", root=package_root, scope="@angular")

        assert get_secondary_entry_points_for_package(package, FakeSearch({})) == ["x", "y"]

    def test_foreign_import_scenario(
        self, package_root: Path, make_entry_point: Callable[..., Path],
    ) -> None:
        make_entry_point("a")
        make_entry_point("b")
        search = FakeSearch({"a": _imports("z")})
        package = BuildPackage(name="cdk", root=package_root, scope="@angular")

        result = compute_build_order(package, search)

        assert result.order == ["a", "b"]
        assert result.graph.dependencies() == {"a": [], "b": []}

    def test_directories_without_marker_excluded(
        self, package_root: Path, make_entry_point: Callable[..., Path],
    ) -> None:
        make_entry_point("a")
        (package_root / "schematics").mkdir()
        search = FakeSearch({"a": _imports("schematics")})
        package = BuildPackage(name="cdk", root=package_root, scope="@angular")

        assert get_secondary_entry_points_for_package(package, search) == ["a"]
        assert [call[0] for call in search.calls] == ["a"]

    def test_exclude(
        self, package_root: Path, make_entry_point: Callable[..., Path],
    ) -> None:
        make_entry_point("a")
        make_entry_point("testing")
        package = BuildPackage(name="cdk", root=package_root, scope="@angular")

        order = get_secondary_entry_points_for_package(
            package, FakeSearch({}), exclude=["testing"],
        )
        assert order == ["a"]

    def test_missing_root(self, tmp_path: Path) -> None:
        package = BuildPackage(name="cdk", root=tmp_path / "missing", scope="@angular")
        with pytest.raises(PackageNotFoundError):
            compute_build_order(package, FakeSearch({}))

    def test_search_failure_propagates(
        self, package_root: Path, make_entry_point: Callable[..., Path],
    ) -> None:
        make_entry_point("a")
        package = BuildPackage(name="cdk", root=package_root, scope="@angular")
        with pytest.raises(TextSearchError):
            compute_build_order(package, FailingSearch())

    def test_warns_when_no_imports_match_the_scope(
        self,
        package_root: Path,
        make_entry_point: Callable[..., Path],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        make_entry_point("a", {"a.ts": "import {B} from '@angular/cdk/b';\n"})
        make_entry_point("b")
        package = BuildPackage(name="cdk", root=package_root)

        with caplog.at_level(logging.WARNING, logger="pkgtools"):
            result = compute_build_order(package, ScanSearch())

        assert result.order == ["a", "b"]
        assert result.import_lines == 0
        assert "No imports of 'cdk/...' found" in caplog.text

    def test_no_scope_warning_when_imports_found(
        self,
        package_root: Path,
        make_entry_point: Callable[..., Path],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        make_entry_point("a", {"a.ts": "import {B} from '@angular/cdk/b';\n"})
        make_entry_point("b")
        package = BuildPackage(name="cdk", root=package_root, scope="@angular")

        with caplog.at_level(logging.WARNING, logger="pkgtools"):
            result = compute_build_order(package, ScanSearch())

        assert result.order == ["b", "a"]
        assert result.import_lines == 1
        assert "No imports" not in caplog.text

    def test_empty_package(self, package_root: Path) -> None:
        package = BuildPackage(name="cdk", root=package_root, scope="@angular")
        assert get_secondary_entry_points_for_package(package, FakeSearch({})) == []

    def test_with_scan_search_on_real_sources(
        self, package_root: Path, make_entry_point: Callable[..., Path],
    ) -> None:
        make_entry_point("a11y", {
            "index.ts": "export * from './public-api';\n",
            "focus/focus-trap.ts": (
                "import {Directionality} from '@angular/cdk/bidi';\n"
                "import {coerceBooleanProperty} from '@angular/cdk/coercion';\n"
                "import {Injectable} from '@angular/core';\n"
            ),
        })
        make_entry_point("bidi", {"dir.ts": "export class Dir {}\n"})
        make_entry_point("coercion", {"boolean.ts": "export function f() {}\n"})
        make_entry_point("overlay", {
            "overlay.ts": 'import {Portal} from "@angular/cdk/a11y";\n',
            "notes.md": "from '@angular/cdk/bidi'\n",
        })
        package = BuildPackage(name="cdk", root=package_root, scope="@angular")

        result = compute_build_order(package, ScanSearch())

        assert result.order == ["bidi", "coercion", "a11y", "overlay"]
        assert result.graph.dependencies() == {
            "a11y": ["bidi", "coercion"],
            "bidi": [],
            "coercion": [],
            "overlay": ["a11y"],
        }

    @pytest.mark.skipif(shutil.which("grep") is None, reason="grep not installed")
    def test_grep_and_scan_agree_on_real_sources(
        self, package_root: Path, make_entry_point: Callable[..., Path],
    ) -> None:
        make_entry_point("a", {"x.ts": "import {B} from '@angular/cdk/b';\n"})
        make_entry_point("b", {"y.ts": "import {C} from  '@angular/cdk/c';\n"})
        make_entry_point("c", {
            "z.ts": "export {A} from\t\"@angular/cdk/d\"; export {D} from '@angular/cdk/d';\n",
        })
        make_entry_point("d")
        package = BuildPackage(name="cdk", root=package_root, scope="@angular")

        grep_result = compute_build_order(package, GrepSearch())
        scan_result = compute_build_order(package, ScanSearch())

        assert grep_result.graph.dependencies() == {
            "a": ["b"],
            "b": ["c"],
            "c": ["d"],
            "d": [],
        }
        assert grep_result.graph.dependencies() == scan_result.graph.dependencies()
        assert grep_result.order == ["d", "c", "b", "a"]

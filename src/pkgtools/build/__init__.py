"""Build domain: entry-point discovery, import search, build ordering."""

from pkgtools.build.discovery import (
    DEFAULT_MARKER,
    BuildPackage,
    PackageNotFoundError,
    discover_entry_points,
    has_build_descriptor,
    list_subdirectories,
)
from pkgtools.build.graph import (
    BuildGraph,
    BuildNode,
    BuildOrderResult,
    CycleDetectedError,
    build_graph,
    compute_build_order,
    extract_dependency_names,
    format_cycle,
    get_build_order,
    get_secondary_entry_points_for_package,
    linearize,
)
from pkgtools.build.text_search import (
    BACKENDS,
    FindstrSearch,
    GrepSearch,
    ScanSearch,
    TextSearch,
    TextSearchError,
    create_search,
)

__all__ = [
    "BACKENDS",
    "DEFAULT_MARKER",
    "BuildGraph",
    "BuildNode",
    "BuildOrderResult",
    "BuildPackage",
    "CycleDetectedError",
    "FindstrSearch",
    "GrepSearch",
    "PackageNotFoundError",
    "ScanSearch",
    "TextSearch",
    "TextSearchError",
    "build_graph",
    "compute_build_order",
    "create_search",
    "discover_entry_points",
    "extract_dependency_names",
    "format_cycle",
    "get_build_order",
    "get_secondary_entry_points_for_package",
    "has_build_descriptor",
    "linearize",
    "list_subdirectories",
]

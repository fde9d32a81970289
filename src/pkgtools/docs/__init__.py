"""Docs domain: parsed API doc model and the categorizer."""

from pkgtools.docs.categorizer import (
    SELECTOR_BLACKLIST,
    categorize,
    decorate_class_doc,
    get_directive_export_as,
    get_directive_selectors,
    normalize_method_parameters,
)
from pkgtools.docs.models import (
    ClassDoc,
    Decorator,
    Doc,
    GenericDoc,
    MemberDoc,
    ParamDoc,
    load_docs,
)

__all__ = [
    "SELECTOR_BLACKLIST",
    "ClassDoc",
    "Decorator",
    "Doc",
    "GenericDoc",
    "MemberDoc",
    "ParamDoc",
    "categorize",
    "decorate_class_doc",
    "get_directive_export_as",
    "get_directive_selectors",
    "load_docs",
    "normalize_method_parameters",
]

"""Categorizer: add derived flags to class docs before rendering.

Per class doc:

- ``methods`` / ``properties``: own and inherited members, split by whether
  the member has a signature.
- ``is_deprecated`` on the class and every member.
- ``is_directive`` (``@Component`` / ``@Directive``) with its ``exportAs``
  name and public selectors, else ``is_service`` (``@Injectable``), else
  ``is_ng_module`` (``@NgModule``).
- Methods get normalized ``params`` and ``show_returns``; properties get
  their ``@Input`` / ``@Output`` flags and aliases.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from pkgtools.docs.models import ClassDoc, ParamDoc

if TYPE_CHECKING:
    from collections.abc import Iterable

    from pkgtools.docs.models import Doc, MemberDoc

logger = logging.getLogger(__name__)

# Selectors that are deprecated but cannot be marked as such in the source,
# so they are never emitted in the docs.
SELECTOR_BLACKLIST: frozenset[str] = frozenset({
    "[portal]",
    "[portalHost]",
    "textarea[md-autosize]",
    "[overlay-origin]",
    "[connected-overlay]",
})

# Selectors containing this substring are prefixed aliases and not documented.
SELECTOR_EXCLUDE = "mat"

# Decorator metadata may contain non-JSON expressions, so it is matched with
# regexes rather than parsed.
_SELECTOR_RE = re.compile(r"""selector\s*:\s*(?:"|')([^']*?)(?:"|')""")
_EXPORT_AS_RE = re.compile(r"""exportAs\s*:\s*(?:"|')(\w+)(?:"|')""")
_SELECTOR_SPLIT_RE = re.compile(r"\s*,\s*")


def _has_decorator(doc: ClassDoc | MemberDoc, name: str) -> bool:
    return any(d.name == name for d in doc.decorators)


def has_class_decorator(doc: ClassDoc | MemberDoc, name: str) -> bool:
    return doc.doc_type == "class" and _has_decorator(doc, name)


def has_member_decorator(doc: ClassDoc | MemberDoc, name: str) -> bool:
    return doc.doc_type == "member" and _has_decorator(doc, name)


def is_directive(doc: ClassDoc) -> bool:
    return has_class_decorator(doc, "Component") or has_class_decorator(doc, "Directive")


def is_service(doc: ClassDoc) -> bool:
    return has_class_decorator(doc, "Injectable")


def is_ng_module(doc: ClassDoc) -> bool:
    return has_class_decorator(doc, "NgModule")


def is_directive_input(doc: MemberDoc) -> bool:
    return has_member_decorator(doc, "Input")


def is_directive_output(doc: MemberDoc) -> bool:
    return has_member_decorator(doc, "Output")


def is_deprecated_doc(doc: ClassDoc | MemberDoc) -> bool:
    return "deprecated" in doc.tags


def _decorator_argument(doc: MemberDoc, name: str) -> str:
    for decorator in doc.decorators:
        if decorator.name == name:
            return decorator.arguments[0] if decorator.arguments else ""
    return ""


def get_directive_input_alias(doc: MemberDoc) -> str:
    return _decorator_argument(doc, "Input") if is_directive_input(doc) else ""


def get_directive_output_alias(doc: MemberDoc) -> str:
    return _decorator_argument(doc, "Output") if is_directive_output(doc) else ""


def _directive_metadata(doc: ClassDoc) -> str:
    for decorator in doc.decorators:
        if decorator.name in ("Component", "Directive"):
            return decorator.arguments[0] if decorator.arguments else ""
    return ""


def get_directive_selectors(
    doc: ClassDoc,
    blacklist: Iterable[str] = SELECTOR_BLACKLIST,
    exclude: str = SELECTOR_EXCLUDE,
) -> list[str] | None:
    """Public selectors of a directive, or ``None`` if it declares none."""
    match = _SELECTOR_RE.search(_directive_metadata(doc))
    if match is None or not match.group(1):
        return None

    blocked = set(blacklist)
    return [
        selector
        for selector in _SELECTOR_SPLIT_RE.split(match.group(1))
        if selector and not (exclude and exclude in selector) and selector not in blocked
    ]


def get_directive_export_as(doc: ClassDoc) -> str | None:
    match = _EXPORT_AS_RE.search(_directive_metadata(doc))
    return match.group(1) if match else None


def resolve_methods(doc: ClassDoc) -> list[MemberDoc]:
    """Methods of *doc*, followed by those of its ancestors."""
    methods = [m for m in doc.members if m.is_method]
    if doc.inherited_doc is not None:
        methods.extend(resolve_methods(doc.inherited_doc))
    return methods


def resolve_properties(doc: ClassDoc) -> list[MemberDoc]:
    """Properties of *doc*, followed by those of its ancestors."""
    properties = [m for m in doc.members if not m.is_method]
    if doc.inherited_doc is not None:
        properties.extend(resolve_properties(doc.inherited_doc))
    return properties


def normalize_method_parameters(method: MemberDoc) -> None:
    """Merge signature parameters into the ``@param`` entries.

    ``parameters`` are the raw ``"name?: type"`` strings from the source,
    ``params`` the JSDoc tags.  The result lives in ``params``: one entry
    per parameter, with ``type`` and ``is_optional`` filled in.
    """
    for parameter in method.parameters or []:
        name, _sep, type_ = parameter.partition(":")
        name = name.strip()

        is_optional = "?" in name
        if is_optional:
            name = name.replace("?", "")

        param = next((p for p in method.params if p.name == name), None)
        if param is None:
            param = ParamDoc(name=name)
            method.params.append(param)

        param.type = type_.strip()
        param.is_optional = is_optional


def decorate_public_doc(doc: ClassDoc | MemberDoc) -> None:
    doc.is_deprecated = is_deprecated_doc(doc)


def decorate_method_doc(doc: MemberDoc) -> None:
    normalize_method_parameters(doc)
    decorate_public_doc(doc)
    # ``void`` methods get no "Returns" section.
    doc.show_returns = bool(doc.return_type) and doc.return_type != "void"


def decorate_property_doc(doc: MemberDoc) -> None:
    decorate_public_doc(doc)
    doc.is_directive_input = is_directive_input(doc)
    doc.directive_input_alias = get_directive_input_alias(doc)
    doc.is_directive_output = is_directive_output(doc)
    doc.directive_output_alias = get_directive_output_alias(doc)


def decorate_class_doc(
    doc: ClassDoc,
    *,
    selector_blacklist: Iterable[str] = SELECTOR_BLACKLIST,
    selector_exclude: str = SELECTOR_EXCLUDE,
) -> None:
    doc.methods = resolve_methods(doc)
    doc.properties = resolve_properties(doc)

    for method in doc.methods:
        decorate_method_doc(method)
    for prop in doc.properties:
        decorate_property_doc(prop)

    decorate_public_doc(doc)

    if is_directive(doc):
        doc.is_directive = True
        doc.directive_export_as = get_directive_export_as(doc)
        doc.directive_selectors = get_directive_selectors(
            doc, selector_blacklist, selector_exclude,
        )
    elif is_service(doc):
        doc.is_service = True
    elif is_ng_module(doc):
        doc.is_ng_module = True


def categorize(
    docs: list[Doc],
    *,
    selector_blacklist: Iterable[str] = SELECTOR_BLACKLIST,
    selector_exclude: str = SELECTOR_EXCLUDE,
) -> list[Doc]:
    """Decorate every class doc in *docs* in place and return *docs*."""
    blacklist = frozenset(selector_blacklist)
    count = 0
    for doc in docs:
        if isinstance(doc, ClassDoc) and doc.doc_type == "class":
            decorate_class_doc(
                doc, selector_blacklist=blacklist, selector_exclude=selector_exclude,
            )
            count += 1
    logger.debug("Categorized %d class doc(s)", count)
    return docs

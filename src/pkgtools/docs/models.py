"""Parsed API doc objects consumed by the categorizer.

Docs arrive as plain dicts from the doc extractor (JSON).  Only the fields
the categorizer reads are modelled; anything else is carried in ``extra``
and written back unchanged by ``to_dict``.  ``to_dict`` re-emits every
input key, including ``members`` and a serialized ``inherited_doc``, and
adds the derived fields next to them.

Tags are kept in the shape they arrived in.  The models only read tag
names from them, see :func:`_tags`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# ``tags`` is not listed: the raw value rides in ``extra``.
_CLASS_FIELDS = frozenset({"name", "doc_type", "decorators", "members", "inherited_doc"})
_MEMBER_FIELDS = frozenset(
    {"name", "doc_type", "decorators", "parameters", "params", "return_type"}
)


@dataclass
class Decorator:
    name: str
    arguments: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Decorator:
        return cls(name=data.get("name", ""), arguments=list(data.get("arguments") or []))

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "arguments": list(self.arguments)}


@dataclass
class ParamDoc:
    """A ``@param`` JSDoc entry, merged with the signature's type."""

    name: str
    type: str = ""
    description: str = ""
    is_optional: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ParamDoc:
        return cls(
            name=data.get("name", ""),
            type=data.get("type", "") or "",
            description=data.get("description", "") or "",
            is_optional=bool(data.get("is_optional", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "description": self.description,
            "is_optional": self.is_optional,
        }


def _decorators(data: dict[str, Any]) -> list[Decorator]:
    return [Decorator.from_dict(d) for d in data.get("decorators") or []]


def _tags(data: dict[str, Any]) -> list[str]:
    """Tag names from any of the shapes doc extractors emit.

    Accepts ``["deprecated"]``, ``[{"tag_name": "deprecated"}]`` and a dgeni
    tag collection ``{"tags": [{"tagName": "deprecated"}]}``.
    """
    raw = data.get("tags") or []
    if isinstance(raw, dict):
        raw = raw.get("tags") or []
    tags: list[str] = []
    for tag in raw:
        if isinstance(tag, dict):
            tags.append(str(tag.get("tag_name", tag.get("tagName", ""))))
        else:
            tags.append(str(tag))
    return tags


@dataclass
class MemberDoc:
    """A method or property of a class.

    ``parameters`` holds the raw ``"name: type"`` strings of a method
    signature and is ``None`` for properties.
    """

    name: str
    doc_type: str = "member"
    decorators: list[Decorator] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    parameters: list[str] | None = None
    params: list[ParamDoc] = field(default_factory=list)
    return_type: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    # Derived by the categorizer.
    is_deprecated: bool = False
    show_returns: bool = False
    is_directive_input: bool = False
    directive_input_alias: str = ""
    is_directive_output: bool = False
    directive_output_alias: str = ""

    @property
    def is_method(self) -> bool:
        return self.parameters is not None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MemberDoc:
        parameters = data.get("parameters")
        return cls(
            name=data.get("name", ""),
            doc_type=data.get("doc_type", "member"),
            decorators=_decorators(data),
            tags=_tags(data),
            parameters=list(parameters) if parameters is not None else None,
            params=[ParamDoc.from_dict(p) for p in data.get("params") or []],
            return_type=data.get("return_type"),
            extra={k: v for k, v in data.items() if k not in _MEMBER_FIELDS},
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = dict(self.extra)
        result.setdefault("tags", list(self.tags))
        result.update({
            "name": self.name,
            "doc_type": self.doc_type,
            "decorators": [d.to_dict() for d in self.decorators],
            "parameters": list(self.parameters) if self.parameters is not None else None,
            "params": [p.to_dict() for p in self.params],
            "return_type": self.return_type,
            "is_deprecated": self.is_deprecated,
            "show_returns": self.show_returns,
            "is_directive_input": self.is_directive_input,
            "directive_input_alias": self.directive_input_alias,
            "is_directive_output": self.is_directive_output,
            "directive_output_alias": self.directive_output_alias,
        })
        return result


@dataclass
class ClassDoc:
    name: str
    doc_type: str = "class"
    decorators: list[Decorator] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    members: list[MemberDoc] = field(default_factory=list)
    inherited_doc: ClassDoc | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    # Derived by the categorizer.
    methods: list[MemberDoc] = field(default_factory=list)
    properties: list[MemberDoc] = field(default_factory=list)
    is_deprecated: bool = False
    is_directive: bool = False
    directive_export_as: str | None = None
    directive_selectors: list[str] | None = None
    is_service: bool = False
    is_ng_module: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClassDoc:
        inherited = data.get("inherited_doc")
        return cls(
            name=data.get("name", ""),
            doc_type=data.get("doc_type", "class"),
            decorators=_decorators(data),
            tags=_tags(data),
            members=[MemberDoc.from_dict(m) for m in data.get("members") or []],
            inherited_doc=cls.from_dict(inherited) if inherited else None,
            extra={k: v for k, v in data.items() if k not in _CLASS_FIELDS},
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = dict(self.extra)
        result.setdefault("tags", list(self.tags))
        result.update({
            "name": self.name,
            "doc_type": self.doc_type,
            "decorators": [d.to_dict() for d in self.decorators],
            "members": [m.to_dict() for m in self.members],
            "inherited_doc": (
                self.inherited_doc.to_dict() if self.inherited_doc is not None else None
            ),
            "methods": [m.to_dict() for m in self.methods],
            "properties": [p.to_dict() for p in self.properties],
            "is_deprecated": self.is_deprecated,
            "is_directive": self.is_directive,
            "directive_export_as": self.directive_export_as,
            "directive_selectors": self.directive_selectors,
            "is_service": self.is_service,
            "is_ng_module": self.is_ng_module,
        })
        return result


@dataclass
class GenericDoc:
    """Any non-class doc; passed through the categorizer untouched."""

    data: dict[str, Any]

    @property
    def doc_type(self) -> str:
        return str(self.data.get("doc_type", ""))

    def to_dict(self) -> dict[str, Any]:
        return dict(self.data)


Doc = ClassDoc | GenericDoc


def load_docs(data: list[dict[str, Any]]) -> list[Doc]:
    """Build doc objects from the extractor's list of dicts."""
    docs: list[Doc] = []
    for item in data:
        if item.get("doc_type") == "class":
            docs.append(ClassDoc.from_dict(item))
        else:
            docs.append(GenericDoc(item))
    return docs

"""Raw document symbol records as reported by a symbol provider."""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, List

from .text_document import Range


class SymbolKind(IntEnum):
    """Document symbol kinds, numbered as in the Language Server Protocol."""
    File = 1
    Module = 2
    Namespace = 3
    Package = 4
    Class = 5
    Method = 6
    Property = 7
    Field = 8
    Constructor = 9
    Enum = 10
    Interface = 11
    Function = 12
    Variable = 13
    Constant = 14
    String = 15
    Number = 16
    Boolean = 17
    Array = 18
    Object = 19
    Key = 20
    Null = 21
    EnumMember = 22
    Struct = 23
    Event = 24
    Operator = 25
    TypeParameter = 26


FUNCTION_KINDS = frozenset({SymbolKind.Function, SymbolKind.Method, SymbolKind.Constructor, SymbolKind.Operator})
CLASS_KINDS = frozenset({SymbolKind.Class, SymbolKind.Struct})
MEMBER_VARIABLE_KINDS = frozenset({SymbolKind.Field, SymbolKind.Property})
VARIABLE_KINDS = frozenset({SymbolKind.Variable, SymbolKind.Constant})


@dataclass
class SymbolInfo:
    """A document symbol (class, function, field, etc.) before any normalization"""
    name: str
    kind: SymbolKind
    range: Range
    selection_range: Range
    detail: str = ""
    children: List["SymbolInfo"] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "name": self.name,
            "detail": self.detail,
            "kind": int(self.kind),
            "range": self.range.to_dict(),
            "selectionRange": self.selection_range.to_dict(),
            "children": [child.to_dict() for child in self.children]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SymbolInfo":
        return cls(
            name=data["name"],
            kind=SymbolKind(data["kind"]),
            range=Range.from_dict(data["range"]),
            selection_range=Range.from_dict(data.get("selectionRange", data["range"])),
            detail=data.get("detail", "") or "",
            children=[cls.from_dict(child) for child in data.get("children", [])]
        )

"""Symbol tree built from raw document symbols."""

import re
import weakref
from typing import Callable, List, Optional

from .symbol_info import (CLASS_KINDS, FUNCTION_KINDS, MEMBER_VARIABLE_KINDS, VARIABLE_KINDS,
                          SymbolInfo, SymbolKind)
from .text_document import Location


_OPERATOR_NAME_RE = re.compile(
    r"\boperator\b\s*(\(\s*\)|\[\s*\]|(new|delete)\s*(\[\s*\])?|[^\s(]+|\s*[^(]+)")


def _strip_template_arguments(name: str) -> str:
    """Drop a trailing <...> group (nested groups are matched as a whole)"""
    depth = 0
    for i in range(len(name) - 1, -1, -1):
        if name[i] == ">":
            depth += 1
        elif name[i] == "<":
            depth -= 1
            if depth == 0:
                return name[:i].rstrip()
    return name


def strip_symbol_name(name: str) -> str:
    """
    Reduce a reported symbol name to its bare identifier.

    Some servers report "Foo::bar(int) const" or "Foo<T>" as the name;
    this returns "bar" and "Foo" respectively.
    """
    name = name.strip()
    operator_match = _OPERATOR_NAME_RE.search(name)
    if operator_match:
        return re.sub(r"\s+", " ", operator_match.group(0)).strip()

    paren_index = name.find("(")
    if paren_index != -1:
        name = name[:paren_index].rstrip()
    if name.endswith(">"):
        name = _strip_template_arguments(name)
    scope_index = name.rfind("::")
    if scope_index != -1:
        name = name[scope_index + 2:]
    return name.strip()


class SourceSymbol:
    """
    A node of a document's symbol tree.

    Children are sorted by the end of their range. The parent is held weakly:
    a tree is owned by whoever holds its top-level symbols (normally the
    SymbolCache), so keep the roots alive while working with a subtree.
    """

    def __init__(self, info: SymbolInfo, uri: str, parent: Optional["SourceSymbol"] = None):
        self.uri = uri
        self.name = strip_symbol_name(info.name)
        self.signature = info.name
        self.detail = info.detail
        self.kind = info.kind
        self.range = info.range
        self.selection_range = info.selection_range
        self._parent = weakref.ref(parent) if parent is not None else None

        if self.name and self.name + "(" in self.detail:
            self.signature = self.detail
            # Static member functions are reported as properties by some servers.
            if self.kind == SymbolKind.Property:
                self.kind = SymbolKind.Method
        elif self.kind == SymbolKind.Property and "(" in self.signature:
            self.kind = SymbolKind.Method

        self.children: List[SourceSymbol] = [
            SourceSymbol(child, uri, self)
            for child in sorted(info.children, key=lambda c: (c.range.end, c.range.start))
        ]

    def __repr__(self):
        return f"SourceSymbol({self.kind.name} {self.name!r} {self.range.start.line}:{self.range.start.character})"

    @property
    def parent(self) -> Optional["SourceSymbol"]:
        return self._parent() if self._parent is not None else None

    @property
    def location(self) -> Location:
        return Location(self.uri, self.range)

    def find_child(self, compare_fn: Callable[["SourceSymbol"], bool]) -> Optional["SourceSymbol"]:
        for child in self.children:
            if compare_fn(child):
                return child
        return None

    def scopes(self) -> List["SourceSymbol"]:
        """Ancestors of this symbol, starting with the top-most one"""
        scopes = []
        symbol = self.parent
        while symbol is not None:
            scopes.append(symbol)
            symbol = symbol.parent
        scopes.reverse()
        return scopes

    def is_function(self) -> bool:
        return self.kind in FUNCTION_KINDS

    def is_class(self) -> bool:
        return self.kind in CLASS_KINDS

    def is_namespace(self) -> bool:
        return self.kind == SymbolKind.Namespace

    def is_class_or_namespace(self) -> bool:
        return self.is_class() or self.is_namespace()

    def is_member_variable(self) -> bool:
        parent = self.parent
        return self.kind in MEMBER_VARIABLE_KINDS and parent is not None and parent.is_class()

    def is_variable(self) -> bool:
        return self.kind in VARIABLE_KINDS or self.kind in MEMBER_VARIABLE_KINDS

    def is_anonymous(self) -> bool:
        return not self.name or "anonymous" in self.name

    def matches(self, other: "SourceSymbol") -> bool:
        """True if other names the same entity (same name, same kind family and same named scopes)"""
        if self.name != other.name:
            return False
        if self.is_function() != other.is_function():
            return False
        if not self.is_function() and self.kind != other.kind:
            return False
        return [s.name for s in self.scopes() if not s.is_function()] == \
            [s.name for s in other.scopes() if not s.is_function()]

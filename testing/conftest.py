#!/usr/bin/env python3
"""
Shared fixtures: an in-memory symbol provider and helpers that build symbol
trees from snippets of C++ text.
"""

import re
from typing import Dict, List, Optional, Sequence, Set, Tuple

import pytest

from codegen_server.codegen_config import CodegenConfig
from codegen_server.source_document import SourceDocument
from codegen_server.symbol_info import SymbolInfo, SymbolKind
from codegen_server.symbol_provider import SymbolProvider
from codegen_server.text_document import Location, Position, TextDocument, path_for


HEADER_URI = "file:///project/include/widget.h"
SOURCE_URI = "file:///project/src/widget.cpp"


class SymbolFactory:
    """
    Builds SymbolInfos for a text by locating snippets in it.

    The range of a symbol is the nth occurrence of its snippet; the selection
    range is the first whole-word occurrence of the name inside the snippet.
    """

    def __init__(self, text: str):
        self.text = text
        self.document = TextDocument("untitled:factory", text)

    def offset_of(self, snippet: str, nth: int = 1) -> int:
        index = -1
        for _ in range(nth):
            index = self.text.find(snippet, index + 1)
            if index == -1:
                raise ValueError(f"Snippet not found: {snippet!r}")
        return index

    def position_of(self, snippet: str, nth: int = 1, delta: int = 0) -> Position:
        return self.document.position_at(self.offset_of(snippet, nth) + delta)

    def __call__(self, kind: SymbolKind, snippet: str, name: str, children: Sequence[SymbolInfo] = (),
                 detail: str = "", nth: int = 1) -> SymbolInfo:
        start = self.offset_of(snippet, nth)
        end = start + len(snippet)
        name_match = re.search(r"(?<!\w)" + re.escape(name) + r"(?!\w)", self.text[start:end])
        if name_match is None:
            raise ValueError(f"Name {name!r} not found in snippet {snippet!r}")
        name_start = start + name_match.start()
        return SymbolInfo(name=name, kind=kind,
                          range=self.document.range_at(start, end),
                          selection_range=self.document.range_at(name_start, name_start + len(name)),
                          detail=detail, children=list(children))


class FakeSymbolProvider(SymbolProvider):
    """SymbolProvider serving documents, symbols and links registered by a test"""

    def __init__(self):
        self.documents: Dict[str, TextDocument] = {}
        self.symbols: Dict[str, List[SymbolInfo]] = {}
        self.definitions: Dict[Tuple[str, Position], List[Location]] = {}
        self.declarations: Dict[Tuple[str, Position], List[Location]] = {}
        self.outside_workspace: Set[str] = set()
        self.symbol_requests = 0

    def add_document(self, uri: str, text: str, symbols: Sequence[SymbolInfo] = ()) -> TextDocument:
        self.documents[uri] = TextDocument(uri, text)
        self.symbols[uri] = list(symbols)
        return self.documents[uri]

    def link(self, declaration_uri: str, declaration: SymbolInfo, definition_uri: str, definition: SymbolInfo):
        """Make declaration and definition find each other, as a language server would"""
        declaration_location = Location(declaration_uri, declaration.range)
        definition_location = Location(definition_uri, definition.range)
        for uri, info in ((declaration_uri, declaration), (definition_uri, definition)):
            key = (uri, info.selection_range.start)
            self.definitions[key] = [definition_location]
            self.declarations[key] = [declaration_location]

    async def document_symbols(self, uri: str) -> List[SymbolInfo]:
        self.symbol_requests += 1
        return list(self.symbols.get(uri, []))

    async def find_definitions(self, uri: str, position) -> List[Location]:
        return list(self.definitions.get((uri, position), []))

    async def find_declarations(self, uri: str, position) -> List[Location]:
        return list(self.declarations.get((uri, position), []))

    async def open_document(self, uri: str) -> TextDocument:
        if uri not in self.documents:
            raise FileNotFoundError(path_for(uri))
        return self.documents[uri]

    def is_in_workspace(self, uri: str) -> bool:
        return uri not in self.outside_workspace


class FakeScanner:
    """Header/source matching from a fixed table of paths"""

    def __init__(self, pairs: Optional[Dict[str, str]] = None):
        self.pairs: Dict[str, str] = {}
        for path_a, path_b in (pairs or {}).items():
            self.pairs[path_a] = path_b
            self.pairs[path_b] = path_a

    def find_matching_file(self, file_path: str) -> Optional[str]:
        return self.pairs.get(file_path)


async def open_source_document(provider: SymbolProvider, uri: str,
                               config: Optional[CodegenConfig] = None) -> SourceDocument:
    return SourceDocument(await provider.open_document(uri), provider, None, config)


POINT_HEADER = """#pragma once

#include <string>
#include <vector>

class Point : public Base {
public:
    Point();

private:
    int m_x;
    static int s_count;
    std::string m_name;
    std::vector<int> &m_values;
    Node *m_next;
};
"""

# Inside the class body, after the last member
INSIDE_POINT = Position(14, 17)
# Below the class
BELOW_POINT = Position(16, 0)


def point_header_symbols() -> List[SymbolInfo]:
    s = SymbolFactory(POINT_HEADER)
    class_text = POINT_HEADER[POINT_HEADER.index("class Point"):POINT_HEADER.index("};") + 1]
    return [s(SymbolKind.Class, class_text, "Point", [
        s(SymbolKind.Constructor, "Point();", "Point"),
        s(SymbolKind.Field, "int m_x", "m_x"),
        s(SymbolKind.Field, "static int s_count", "s_count"),
        s(SymbolKind.Field, "std::string m_name", "m_name"),
        s(SymbolKind.Field, "std::vector<int> &m_values", "m_values"),
        s(SymbolKind.Field, "Node *m_next", "m_next"),
    ])]


async def open_point_header(provider: FakeSymbolProvider, config: Optional[CodegenConfig] = None) -> SourceDocument:
    provider.add_document(HEADER_URI, POINT_HEADER, point_header_symbols())
    return await open_source_document(provider, HEADER_URI, config)


async def symbol_named(document: SourceDocument, name: str):
    """The innermost symbol at the first occurrence of name"""
    symbol = await document.get_symbol(SymbolFactory(document.text).position_of(name))
    assert symbol is not None and symbol.name == name, name
    return symbol


@pytest.fixture
def provider():
    return FakeSymbolProvider()


@pytest.fixture
def config():
    return CodegenConfig.from_dict({})


@pytest.fixture
def scanner():
    return FakeScanner({path_for(HEADER_URI): path_for(SOURCE_URI)})

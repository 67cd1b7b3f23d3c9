#!/usr/bin/env python3
"""
Tests for documents: includes, header guards and positions for new code
"""

import pytest

from codegen_server.cache_manager import SymbolCache
from codegen_server.codegen_config import CodegenConfig
from codegen_server.source_document import SourceDocument
from codegen_server.symbol_info import SymbolKind
from codegen_server.text_document import Position

from conftest import HEADER_URI, SOURCE_URI, SymbolFactory, open_source_document


async def document_with(provider, uri, text, symbols=(), config=None):
    provider.add_document(uri, text, symbols)
    return await open_source_document(provider, uri, config)


async def test_included_files_and_new_include_position(provider):
    text = '// Copyright\n#include <vector>\n#  include "widget.h"\n\nint x;\n'
    document = await document_with(provider, SOURCE_URI, text)

    assert document.included_files() == ["vector", "widget.h"]
    assert document.find_position_for_new_include() == Position(2, 0)
    assert document.find_position_for_new_include(system=False) == Position(3, 0)


async def test_new_include_goes_after_the_largest_block_of_its_kind(provider):
    text = ('#include "widget.h"\n\n#include <map>\n#include <string>\n\n'
            '#include "a.h"\n#include "b.h"\n#include <vector>\n\nint x;\n')
    document = await document_with(provider, SOURCE_URI, text)

    assert document.find_position_for_new_include(system=True) == Position(4, 0)
    assert document.find_position_for_new_include(system=False) == Position(7, 0)


async def test_new_include_of_a_kind_without_includes(provider):
    document = await document_with(provider, SOURCE_URI, "#include <vector>\n// #include \"old.h\"\n\nint x;\n")
    assert document.find_position_for_new_include(system=False) == Position(1, 0)


async def test_new_include_goes_after_the_header_guard(provider):
    text = "#ifndef WIDGET_H\n#define WIDGET_H\n\nclass A;\n\n#endif\n"
    document = await document_with(provider, HEADER_URI, text)

    assert document.header_guard_define() == "WIDGET_H"
    assert document.has_header_guard()
    assert document.find_position_for_new_include() == Position(2, 0)


async def test_new_include_goes_before_the_first_line_of_code(provider):
    document = await document_with(provider, SOURCE_URI, "// Comment\n\nint a;\n")
    assert not document.has_header_guard()
    assert document.find_position_for_new_include() == Position(2, 0)


async def test_pragma_once_is_a_header_guard(provider):
    document = await document_with(provider, HEADER_URI, "/* header */\n#pragma once\nint a;\n")
    assert document.position_after_header_guard() == Position(2, 0)


async def test_commented_out_guard_is_ignored(provider):
    document = await document_with(provider, HEADER_URI, "// #pragma once\nint a;\n")
    assert not document.has_header_guard()


async def test_header_guard_define_format(provider):
    config = CodegenConfig.from_dict({"header_guard_define_format": "${FILENAME}_INCLUDED"})
    document = await document_with(provider, HEADER_URI, "", config=config)
    assert document.header_guard_define() == "WIDGET_INCLUDED"


async def test_position_after_header_comment(provider):
    comment_only = await document_with(provider, HEADER_URI, "// only\n")
    position = comment_only.position_after_header_comment()
    assert position.position == Position(0, 7) and position.after

    empty = await document_with(provider, SOURCE_URI, "")
    position = empty.position_after_header_comment()
    assert position.position == Position(0, 0) and not position.after


async def test_end_of_file_position(provider):
    document = await document_with(provider, SOURCE_URI, "int a;\n\n\n")
    position = document.end_of_file_position()
    assert position.position == Position(0, 6) and position.after


async def test_last_top_level_position(provider):
    text = "int a;\nint b;\n"
    s = SymbolFactory(text)
    document = await document_with(provider, SOURCE_URI, text, [
        s(SymbolKind.Variable, "int b", "b"),
        s(SymbolKind.Variable, "int a", "a"),
    ])
    position = await document.last_top_level_position()
    assert position.position == Position(1, 6)
    assert position.after


async def test_header_and_source_classification(provider):
    header = await document_with(provider, HEADER_URI, "")
    source = await document_with(provider, SOURCE_URI, "")
    assert header.is_header() and not header.is_source()
    assert source.is_source() and not source.is_header()


async def test_symbols_are_shared_through_the_cache(provider):
    text = "int a;\n"
    provider.add_document(SOURCE_URI, text, [SymbolFactory(text)(SymbolKind.Variable, "int a", "a")])
    cache = SymbolCache()
    first = SourceDocument(await provider.open_document(SOURCE_URI), provider, cache)
    second = SourceDocument(await provider.open_document(SOURCE_URI), provider, cache)

    assert [s.name for s in await first.symbols()] == ["a"]
    assert [s.name for s in await second.symbols()] == ["a"]
    assert provider.symbol_requests == 1

    second.invalidate()
    third = SourceDocument(await provider.open_document(SOURCE_URI), provider, cache)
    await third.symbols()
    assert provider.symbol_requests == 2


async def test_all_functions(provider):
    text = "namespace app {\nvoid f();\nint x;\nvoid g();\n}\n"
    s = SymbolFactory(text)
    document = await document_with(provider, HEADER_URI, text, [
        s(SymbolKind.Namespace, text.rstrip("\n"), "app", [
            s(SymbolKind.Function, "void f();", "f"),
            s(SymbolKind.Variable, "int x", "x"),
            s(SymbolKind.Function, "void g();", "g"),
        ]),
    ])
    assert [f.name for f in await document.all_functions()] == ["f", "g"]


@pytest.mark.parametrize("text,setting,expected", [
    ("namespace app {\nvoid f();\n}\n", "auto", False),
    ("namespace app {\n    void f();\n}\n", "auto", True),
    ("namespace app {\nvoid f();\n}\n", "always", True),
    ("namespace app {\n    void f();\n}\n", "never", False),
])
async def test_namespace_body_indentation(provider, text, setting, expected):
    s = SymbolFactory(text)
    config = CodegenConfig.from_dict({"namespace_body_indentation": setting})
    document = await document_with(provider, HEADER_URI, text, [
        s(SymbolKind.Namespace, text.rstrip("\n"), "app", [s(SymbolKind.Function, "void f();", "f")]),
    ], config)
    namespace = await document.get_symbol(Position(0, 11))

    assert document.should_indent_namespace_body(namespace) is expected


CLASS_HEADER = "class Widget {\npublic:\n    void a();\n    void b();\n    void c();\n};\n"
CLASS_SOURCE = '#include "widget.h"\n\nvoid Widget::a()\n{\n}\n\nvoid Widget::c()\n{\n}\n'


@pytest.fixture
async def widget_documents(provider):
    h = SymbolFactory(CLASS_HEADER)
    declarations = {name: h(SymbolKind.Method, f"void {name}();", name) for name in "abc"}
    provider.add_document(HEADER_URI, CLASS_HEADER, [
        h(SymbolKind.Class, CLASS_HEADER[:CLASS_HEADER.index("};") + 1], "Widget", list(declarations.values())),
    ])
    s = SymbolFactory(CLASS_SOURCE)
    definitions = {name: s(SymbolKind.Method, f"void Widget::{name}()\n{{\n}}", name) for name in "ac"}
    provider.add_document(SOURCE_URI, CLASS_SOURCE, list(definitions.values()))
    for name, definition in definitions.items():
        provider.link(HEADER_URI, declarations[name], SOURCE_URI, definition)
    return (await open_source_document(provider, HEADER_URI),
            await open_source_document(provider, SOURCE_URI))


async def test_definition_goes_after_the_previous_sibling_definition(widget_documents):
    header, source = widget_documents
    b = await header.get_symbol(Position(3, 10))
    assert b.name == "b"

    position = await header.find_smart_position_for_function(b, source)
    assert position.position == Position(4, 1)
    assert position.after


async def test_definition_goes_before_the_next_sibling_definition(widget_documents):
    header, source = widget_documents
    a = await header.get_symbol(Position(2, 10))
    assert a.name == "a"

    position = await header.find_smart_position_for_function(a, source)
    assert position.position == Position(6, 0)
    assert position.before


async def test_without_linked_siblings_the_end_of_the_target_is_used(provider, widget_documents):
    header, _ = widget_documents
    provider.definitions.clear()
    source = await open_source_document(provider, SOURCE_URI)
    b = await header.get_symbol(Position(3, 10))

    position = await header.find_smart_position_for_function(b, source)
    assert position.position == Position(8, 1)
    assert position.after


async def test_empty_target_uses_the_end_of_the_file(provider, widget_documents):
    header, _ = widget_documents
    empty = await document_with(provider, "file:///project/src/empty.cpp", "// nothing\n")
    b = await header.get_symbol(Position(3, 10))

    position = await header.find_smart_position_for_function(b, empty)
    assert position.position == Position(0, 10)


async def test_definition_goes_into_the_matching_namespace(provider):
    header_text = "namespace app {\nvoid f();\n}\n"
    h = SymbolFactory(header_text)
    header = await document_with(provider, HEADER_URI, header_text, [
        h(SymbolKind.Namespace, header_text.rstrip("\n"), "app", [h(SymbolKind.Function, "void f();", "f")]),
    ])
    source_text = '#include "widget.h"\n\nnamespace app {\n}\n'
    s = SymbolFactory(source_text)
    source = await document_with(provider, SOURCE_URI, source_text, [
        s(SymbolKind.Namespace, "namespace app {\n}", "app"),
    ])
    f = await header.get_symbol(Position(1, 5))

    position = await header.find_smart_position_for_function(f, source)
    assert position.position == Position(2, 15)
    assert position.empty_scope and position.in_namespace
    assert source.format_text_to_insert("void f()\n{\n}", position) == "\n    void f()\n    {\n    }"

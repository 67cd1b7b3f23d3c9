#!/usr/bin/env python3
"""
Tests for function signatures recovered from declarations and definitions
"""

import pytest

from codegen_server.function_signature import FunctionSignature, SignatureError
from codegen_server.symbol_info import SymbolKind

from conftest import HEADER_URI, SOURCE_URI, SymbolFactory, open_source_document


HEADER = """class Shape {
public:
    Shape(int a, int b);
    virtual double area() const noexcept;
    auto name() const & -> const std::string &;
    constexpr int sides(int count = 3) const;
    void reset() &&;
private:
    int m_sides;
};
"""

SOURCE = """double Shape::area() const
{
    return 0.0;
}

int Shape::sides(int n) const
{
    return n;
}
"""


@pytest.fixture
async def documents(provider):
    s = SymbolFactory(HEADER)
    provider.add_document(HEADER_URI, HEADER, [
        s(SymbolKind.Class, HEADER[:HEADER.index("};") + 1], "Shape", [
            s(SymbolKind.Constructor, "Shape(int a, int b);", "Shape"),
            s(SymbolKind.Method, "virtual double area() const noexcept;", "area"),
            s(SymbolKind.Method, "auto name() const & -> const std::string &;", "name"),
            s(SymbolKind.Method, "constexpr int sides(int count = 3) const;", "sides"),
            s(SymbolKind.Method, "void reset() &&;", "reset"),
            s(SymbolKind.Field, "int m_sides", "m_sides"),
        ]),
    ])
    s = SymbolFactory(SOURCE)
    provider.add_document(SOURCE_URI, SOURCE, [
        s(SymbolKind.Method, "double Shape::area() const\n{\n    return 0.0;\n}", "area"),
        s(SymbolKind.Method, "int Shape::sides(int n) const\n{\n    return n;\n}", "sides"),
    ])
    return (await open_source_document(provider, HEADER_URI),
            await open_source_document(provider, SOURCE_URI))


async def signature_of(document, snippet):
    symbol = await document.get_symbol(SymbolFactory(document.text).position_of(snippet))
    return FunctionSignature(symbol)


async def test_leading_return_type_and_qualifiers(documents):
    header, _ = documents
    area = await signature_of(header, "area")

    assert area.return_type == "double"
    assert header.get_text(area.return_type_range) == "double"
    assert len(area.parameters) == 0
    assert area.is_const and not area.is_volatile
    assert area.noexcept == "noexcept"
    assert not area.has_trailing_return_type
    assert not area.is_definition


async def test_trailing_return_type(documents):
    header, _ = documents
    name = await signature_of(header, "name()")

    assert name.return_type == "const std::string &"
    assert name.normalized_return_type == "const std::string&"
    assert name.has_trailing_return_type
    assert name.is_const
    assert name.ref_qualifier == "&"
    assert header.get_text(name.trailing_specifier_range) == " const & "


async def test_parameters_and_specifiers(documents):
    header, _ = documents
    sides = await signature_of(header, "sides")
    reset = await signature_of(header, "reset")

    assert sides.is_constexpr
    assert sides.return_type == "int"
    assert [p.name for p in sides.parameters] == ["count"]
    assert sides.parameters[0].default_value == "3"
    assert header.get_text(sides.parameters.range) == "int count = 3"
    assert reset.ref_qualifier == "&&"
    assert sides.to_dict()["parameters"] == ["int count = 3"]


async def test_constructor_has_no_return_type(documents):
    header, _ = documents
    constructor = await signature_of(header, "Shape(int")

    assert constructor.return_type == ""
    assert [p.name for p in constructor.parameters] == ["a", "b"]


async def test_non_function_symbols_are_rejected(documents):
    header, _ = documents
    m_sides = await header.get_symbol(SymbolFactory(HEADER).position_of("m_sides"))
    with pytest.raises(SignatureError):
        FunctionSignature(m_sides)


async def test_definition_compared_with_declaration(documents):
    header, source = documents
    declared_area = await signature_of(header, "area")
    defined_area = await signature_of(source, "area")
    declared_sides = await signature_of(header, "sides")
    defined_sides = await signature_of(source, "sides")

    assert defined_area.is_definition
    assert defined_area.return_type == "double"
    assert declared_area.differences(defined_area) == ["noexcept"]
    assert declared_sides.differences(defined_sides) == ["constexpr"]
    assert declared_area != defined_area
    assert declared_area == await signature_of(header, "area")

#!/usr/bin/env python3
"""
Tests for formatting generated text at a proposed position
"""

from codegen_server.proposed_position import ProposedPosition
from codegen_server.text_document import Position, Range, TextDocument


def test_after_a_member_leaves_a_blank_line():
    document = TextDocument("file:///a.h", "class A {\n    int x;\n};\n")
    member = Range(Position(1, 4), Position(1, 10))
    position = ProposedPosition(Position(1, 10), relative_to=member, after=True)
    assert position.format_text_to_insert("void f();", document) == "\n\n    void f();"


def test_next_to_a_member_has_no_blank_line():
    document = TextDocument("file:///a.h", "class A {\n    int x;\n};\n")
    member = Range(Position(1, 4), Position(1, 10))
    position = ProposedPosition(Position(1, 10), relative_to=member, after=True, next_to=True)
    assert position.format_text_to_insert("void f();", document) == "\n    void f();"


def test_before_a_crowded_line():
    document = TextDocument("file:///a.h", "int a;\nint b;\n")
    position = ProposedPosition(Position(1, 0), relative_to=Range(Position(1, 0), Position(1, 6)), before=True)
    assert position.format_text_to_insert("int c;", document) == "int c;\n"


def test_at_the_last_line_a_line_break_is_appended():
    document = TextDocument("file:///a.h", "int a;")
    position = ProposedPosition(Position(0, 6), after=True)
    assert position.format_text_to_insert("int b;", document) == "\n\nint b;\n"


def test_document_line_endings_are_used():
    document = TextDocument("file:///a.h", "int a;\r\nint b;\r\n")
    position = ProposedPosition(Position(0, 6), after=True, next_to=True)
    assert position.format_text_to_insert("void f()\n{\n}", document) == "\r\nvoid f()\r\n{\r\n}"


def test_empty_scope_indentation():
    in_class = ProposedPosition(Position(0, 9), empty_scope=True)
    in_namespace = ProposedPosition(Position(0, 15), empty_scope=True, in_namespace=True)

    assert in_class.indent(indent_namespace_body=False)
    assert in_namespace.indent(indent_namespace_body=True)
    assert not in_namespace.indent(indent_namespace_body=False)
    assert not ProposedPosition(Position(0, 0)).indent()


def test_access_specifiers_stay_at_class_indentation():
    document = TextDocument("file:///a.h", "class A {\n};\n")
    position = ProposedPosition(Position(0, 9), after=True, next_to=True, empty_scope=True)
    assert position.format_text_to_insert("public:\nint x;", document) == "\npublic:\n    int x;"


def test_to_dict():
    position = ProposedPosition(Position(3, 1), before=True)
    assert position.to_dict() == {
        "position": {"line": 3, "character": 1},
        "before": True,
        "after": False,
        "next_to": False,
        "empty_scope": False,
    }

#!/usr/bin/env python3
"""
Tests for the text masker and lexical helpers
"""

import pytest

from codegen_server import parsing
from codegen_server.text_document import Position, TextDocument


SAMPLES = [
    'int a; // comment\n/* block\n comment */ int b;',
    'const char* s = "a // not a comment"; char c = \'"\';',
    'auto r = R"tag(raw ) " text)tag"; f(a, (b), {c});',
    'std::map<int, std::vector<bool>> m; [[nodiscard]] int f(int x = (1 + 2));',
    'if (a <= b && c >= d) { g(x[1]); }\r\nreturn;',
]


@pytest.mark.parametrize("text", SAMPLES)
def test_masking_preserves_length_and_line_breaks(text):
    for masked in (
        parsing.mask_comments(text),
        parsing.mask_comments(text, keep_enclosing_chars=False),
        parsing.mask_quotes(text),
        parsing.mask_raw_string_literals(text),
        parsing.mask_attributes(text),
        parsing.mask_non_source_text(text),
        parsing.mask_parentheses(text),
        parsing.mask_braces(text, keep_enclosing_chars=False),
        parsing.mask_angle_brackets(text),
        parsing.mask_nested_groups(text),
    ):
        assert len(masked) == len(text)
        assert [i for i, ch in enumerate(masked) if ch in "\r\n"] == \
            [i for i, ch in enumerate(text) if ch in "\r\n"]


def test_mask_comments_keeps_delimiters():
    text = "int a; // hi\n/* b */ int c;"
    assert parsing.mask_comments(text) == "int a; //   \n/*   */ int c;"


def test_mask_comments_without_delimiters():
    assert parsing.mask_comments("int a; // hi") == "int a; //   "
    assert parsing.mask_comments("int a; // hi", keep_enclosing_chars=False) == "int a;      "


def test_comment_markers_inside_strings_are_not_comments():
    text = 's = "a//b"; t = "/*";'
    assert parsing.mask_comments(text) == text


def test_mask_quotes():
    assert parsing.mask_quotes('f("abc", \'x\')') == 'f("   ", \' \')'


def test_mask_raw_string_literals():
    text = 'R"x(a"b)x"'
    assert parsing.mask_raw_string_literals(text) == 'R"' + " " * 7 + '"'


def test_mask_parentheses_masks_outermost_groups():
    assert parsing.mask_parentheses("f(a, (b)) + g(c)") == "f(" + " " * 6 + ") + g( )"
    assert parsing.mask_parentheses("f(a)", keep_enclosing_chars=False) == "f   "


def test_unbalanced_delimiters_are_masked():
    assert parsing.mask_parentheses("a) (b") == "a   b"


def test_mask_nested_groups_leaves_top_level_commas():
    masked = parsing.mask_nested_groups("std::map<int, bool> m = {1, 2}, int x")
    assert masked == "std::map<" + " " * 9 + "> m = {" + " " * 4 + "}, int x"
    assert len(masked.split(",")) == 2


def test_comparison_operators_do_not_unbalance_angle_brackets():
    masked = parsing.mask_nested_groups("std::enable_if_t<(a <= b)> x, int y")
    assert masked.count(",") == 1


def test_normalize_whitespace():
    assert parsing.normalize_whitespace("const  std::string &  name") == "const std::string&name"


def test_normalize_source_text_removes_comments():
    assert parsing.normalize_source_text("int  /*c*/ foo ( int a ) // x") == "int foo(int a)"


def test_normalize_source_text_removes_attributes():
    assert parsing.normalize_source_text("[[maybe_unused]] int x") == "int x"


def test_get_end_of_statement():
    document = TextDocument("file:///a.h", "int a ;\nint b")
    assert parsing.get_end_of_statement(document, Position(0, 5)) == Position(0, 7)
    assert parsing.get_end_of_statement(document, Position(1, 3)) == Position(1, 3)


def test_get_indentation():
    assert parsing.get_indentation("    int x;") == "    "
    assert parsing.get_indentation("\tint x;") == "\t"
    assert parsing.get_indentation("int x;") == ""


def test_strip_default_values():
    assert parsing.strip_default_values('int a = 5, std::string b = "x,y", int c') == "int a, std::string b, int c"
    assert parsing.strip_default_values("int a = f(1, 2), int b") == "int a, int b"


@pytest.mark.parametrize("leading_text,expected", [
    ("static const std::string& ", "const std::string&"),
    ("virtual unsigned long ", "unsigned long"),
    ("inline std::vector<int> ", "std::vector<int>"),
    ("int ", "int"),
])
def test_get_leading_return_type(leading_text, expected):
    assert parsing.get_leading_return_type(leading_text).strip() == expected


@pytest.mark.parametrize("trailing_text,expected", [
    (" std::vector<int> override", "std::vector<int>"),
    (" const Foo& = 0", "const Foo&"),
    (" int", "int"),
])
def test_get_trailing_return_type(trailing_text, expected):
    assert parsing.get_trailing_return_type(trailing_text).strip() == expected


def test_matches_primitive_type():
    assert parsing.matches_primitive_type("unsigned int")
    assert parsing.matches_primitive_type("const double")
    assert not parsing.matches_primitive_type("std::vector<int>")
    assert not parsing.matches_primitive_type("Foo")


def test_mask_comparison_operators():
    assert parsing.mask_comparison_operators("int x = a <= b") == "int x = a    b"
    assert parsing.mask_comparison_operators("a == b != c >= d") == "a    b    c    d"
    assert parsing.mask_comparison_operators("a < b") == "a < b"


def test_unparenthesized_comparison_in_a_default_value():
    masked = parsing.mask_nested_groups("bool flag = N >= 2, std::array<int, (M > 1)> a")
    assert masked.count(",") == 1
    assert len(masked) == len("bool flag = N >= 2, std::array<int, (M > 1)> a")

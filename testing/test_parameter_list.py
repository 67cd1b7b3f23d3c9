#!/usr/bin/env python3
"""
Tests for parameter list parsing
"""

from codegen_server.parameter_list import parse_parameter_list
from codegen_server.text_document import Position, Range, TextDocument


def test_types_names_and_defaults():
    parameters = parse_parameter_list('int a, const std::string &name = "x", double *values')

    assert [p.name for p in parameters] == ["a", "name", "values"]
    assert [p.type for p in parameters] == ["int", "const std::string &", "double *"]
    assert [p.default_value for p in parameters] == ["", '"x"', ""]
    assert parameters[1].normalized_type == "const std::string&"
    assert parameters[1].declaration() == "const std::string &name"
    assert parameters.declarations() == "int a, const std::string &name, double *values"
    assert parameters.declarations(with_defaults=True) == 'int a, const std::string &name = "x", double *values'


def test_empty_list():
    parameters = parse_parameter_list("")
    assert len(parameters) == 0
    assert parameters.declarations() == ""


def test_unnamed_parameters():
    parameters = parse_parameter_list("int, char *, const int")
    assert [p.name for p in parameters] == ["", "", ""]
    assert [p.type for p in parameters] == ["int", "char *", "const int"]


def test_commas_inside_nested_groups_do_not_split():
    parameters = parse_parameter_list("std::pair<int, int> p = {1, 2}, int q")
    assert len(parameters) == 2
    assert parameters[0].type == "std::pair<int, int>"
    assert parameters[0].default_value == "{1, 2}"
    assert parameters[1].name == "q"


def test_array_parameter():
    parameter = parse_parameter_list("int values[4]")[0]
    assert parameter.name == "values"
    assert parameter.type == "int[4]"
    assert parameter.declaration() == "int values[4]"


def test_function_pointer_parameter():
    parameter = parse_parameter_list("void (*callback)(int)")[0]
    assert parameter.name == "callback"
    assert parameter.type == "void (*)(int)"
    assert parameter.with_name("handler") == "void (*handler)(int)"


def test_variadic_parameter():
    parameters = parse_parameter_list("const char *fmt, ...")
    assert [p.name for p in parameters] == ["fmt", "..."]
    assert parameters[1].is_variadic
    assert parameters.declarations() == "const char *fmt, ..."


def test_renaming_keeps_pointer_placement():
    assert parse_parameter_list("int* p")[0].with_name("q") == "int* q"
    assert parse_parameter_list("int *p")[0].with_name("q") == "int *q"
    assert parse_parameter_list("int *p")[0].with_name("") == "int *"


def test_ranges_relative_to_text():
    parameters = parse_parameter_list("int a, double b")
    assert parameters[1].range == Range(Position(0, 7), Position(0, 15))
    assert parameters.range == Range(Position(0, 0), Position(0, 15))


def test_ranges_relative_to_document():
    document = TextDocument("file:///project/a.cpp", "void f(int a);")
    parameters = parse_parameter_list("int a", 7, document)
    assert parameters[0].range == Range(Position(0, 7), Position(0, 12))


def test_comparisons_ignore_names_and_formatting():
    original = parse_parameter_list("int a, double b")
    renamed = parse_parameter_list("int  x, double y")
    reordered = parse_parameter_list("double b, int a")

    assert original.types_are_equal(renamed)
    assert not original.is_equal(renamed)
    assert original.is_equal(parse_parameter_list("int a,double b"))
    assert original.is_reordered(reordered)
    assert original.types_are_reordered(reordered)
    assert not original.is_reordered(renamed)


def test_default_value_with_a_comparison():
    parameters = parse_parameter_list("bool flag = N >= 2, int y")

    assert [p.name for p in parameters] == ["flag", "y"]
    assert [p.type for p in parameters] == ["bool", "int"]
    assert parameters[0].default_value == "N >= 2"
    assert parameters.declarations(with_defaults=True) == "bool flag = N >= 2, int y"

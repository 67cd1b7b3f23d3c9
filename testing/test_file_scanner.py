#!/usr/bin/env python3
"""
Tests for C/C++ file discovery and header/source matching
"""

import os

import pytest

from codegen_server.codegen_config import CodegenConfig
from codegen_server.file_scanner import FileScanner, compare_directory_paths


@pytest.mark.parametrize("a,b,expected", [
    ("/project/src", "/project/src", 0),
    ("/project/src", "/project/include", 1),
    ("/project/src/core", "/project/include/core", 1),
    ("/project/lib/src", "/project/include", 2),
])
def test_compare_directory_paths(a, b, expected):
    assert compare_directory_paths(a, b) == expected


def touch(root, relative_path):
    path = root / relative_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("")
    return str(path)


@pytest.fixture
def project(tmp_path):
    touch(tmp_path, "include/core/widget.h")
    touch(tmp_path, "src/core/widget.cpp")
    touch(tmp_path, "src/other/widget.cpp")
    touch(tmp_path, "tools/gadget.hpp")
    touch(tmp_path, "tools/gadget.cc")
    touch(tmp_path, "build/generated.cpp")
    touch(tmp_path, "README.md")
    return tmp_path


@pytest.fixture
def scanner(project):
    return FileScanner(project, CodegenConfig.from_dict({}))


def test_find_cpp_files_skips_excluded_directories(project, scanner):
    files = sorted(os.path.relpath(f, project) for f in scanner.find_cpp_files())
    assert files == sorted(os.path.join(*p.split("/")) for p in [
        "include/core/widget.h", "src/core/widget.cpp", "src/other/widget.cpp",
        "tools/gadget.cc", "tools/gadget.hpp",
    ])


def test_match_in_the_same_directory(project, scanner):
    header = str(project / "tools" / "gadget.hpp")
    assert scanner.find_matching_file(header) == str(project / "tools" / "gadget.cc")
    assert scanner.find_matching_file(str(project / "tools" / "gadget.cc")) == header


def test_match_in_the_closest_directory(project, scanner):
    header = str(project / "include" / "core" / "widget.h")
    assert scanner.find_matching_file(header) == str(project / "src" / "core" / "widget.cpp")
    assert scanner.find_matching_file(str(project / "src" / "core" / "widget.cpp")) == header


def test_files_without_a_match(project, scanner):
    assert scanner.find_matching_file(str(project / "README.md")) is None
    assert scanner.find_matching_file(str(project / "build" / "generated.cpp")) is None


def test_matches_are_cached_until_the_file_is_gone(project, scanner):
    header = str(project / "tools" / "gadget.hpp")
    source = scanner.find_matching_file(header)
    assert scanner.cache.get(source) == header

    os.remove(source)
    assert scanner.find_matching_file(header) is None
    assert len(scanner.cache) == 0


def test_is_project_file(project, scanner):
    assert scanner.is_project_file(str(project / "src" / "core" / "widget.cpp"))
    assert not scanner.is_project_file(str(project / "build" / "generated.cpp"))
    assert not scanner.is_project_file(str(project.parent / "elsewhere.cpp"))
    assert not scanner.is_project_file("")

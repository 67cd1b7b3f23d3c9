#!/usr/bin/env python3
"""
Tests for the symbol tree cache and the header/source pair cache
"""

from pathlib import Path

from codegen_server.cache_manager import HeaderSourceCache, SymbolCache, get_cache_dir
from codegen_server.symbol_info import SymbolKind

from conftest import SOURCE_URI, SymbolFactory


TEXT = "class A {\n    int x;\n};\n"


def symbol_infos():
    s = SymbolFactory(TEXT)
    return [s(SymbolKind.Class, "class A {\n    int x;\n}", "A", [s(SymbolKind.Field, "int x", "x")])]


def test_get_cache_dir_is_unique_per_project():
    first = get_cache_dir(Path("/work/app"))
    second = get_cache_dir(Path("/other/app"))

    assert first.parent.name == ".mcp_cache"
    assert first.name.startswith("app_")
    assert first != second


def test_trees_are_validated_against_the_text():
    cache = SymbolCache()
    assert cache.get(SOURCE_URI, TEXT) is None

    symbols = cache.put(SOURCE_URI, TEXT, symbol_infos())
    assert symbols[0].name == "A"
    assert symbols[0].children[0].parent is symbols[0]

    assert cache.get(SOURCE_URI, TEXT) is symbols
    assert cache.get(SOURCE_URI, TEXT + "int y;\n") is None
    assert cache.stats() == {"documents": 1, "hits": 1, "misses": 2}


def test_invalidate_and_clear():
    cache = SymbolCache()
    cache.put(SOURCE_URI, TEXT, symbol_infos())
    assert SOURCE_URI in cache

    cache.invalidate(SOURCE_URI)
    assert SOURCE_URI not in cache
    cache.invalidate(SOURCE_URI)

    cache.put(SOURCE_URI, TEXT, symbol_infos())
    cache.clear()
    assert len(cache) == 0


def test_trees_survive_a_restart_in_the_cache_directory(tmp_path):
    SymbolCache(tmp_path).put(SOURCE_URI, TEXT, symbol_infos())
    assert SymbolCache(tmp_path).get_file_cache_path(SOURCE_URI).exists()

    restarted = SymbolCache(tmp_path)
    symbols = restarted.get(SOURCE_URI, TEXT)
    assert [s.name for s in symbols] == ["A"]
    assert symbols[0].children[0].name == "x"
    assert SOURCE_URI in restarted

    assert SymbolCache(tmp_path).get(SOURCE_URI, "") is None


def test_invalidate_removes_the_cache_file(tmp_path):
    cache = SymbolCache(tmp_path)
    cache.put(SOURCE_URI, TEXT, symbol_infos())
    cache.invalidate(SOURCE_URI)

    assert not cache.get_file_cache_path(SOURCE_URI).exists()
    assert SymbolCache(tmp_path).get(SOURCE_URI, TEXT) is None


def test_corrupt_cache_file_is_a_miss(tmp_path):
    cache = SymbolCache(tmp_path)
    cache.get_file_cache_path(SOURCE_URI).write_text("{")
    assert cache.get(SOURCE_URI, TEXT) is None


def test_header_source_pairs(tmp_path):
    header = tmp_path / "widget.h"
    source = tmp_path / "widget.cpp"
    header.write_text("")
    source.write_text("")

    cache = HeaderSourceCache()
    cache.set(str(header), str(source))
    assert cache.get(str(header)) == str(source)
    assert cache.get(str(source)) == str(header)
    assert cache.get(str(tmp_path / "other.h")) is None

    source.unlink()
    assert cache.get(str(header)) is None
    assert len(cache) == 0

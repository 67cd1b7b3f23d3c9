#!/usr/bin/env python3
"""
libclang Symbol Provider

Reports document symbols, definitions and declarations for C/C++ files by
parsing them with libclang. Each file is parsed as its own translation unit;
symbols that live in another translation unit (a definition in the matching
source file, say) are found by USR.
"""

import asyncio
import bisect
import codecs
import glob
import os
import platform
import shutil
import subprocess
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, List, Optional

try:
    from clang.cindex import Config, Cursor, CursorKind, Index, TranslationUnit
except ImportError:
    print("Error: clang package not found. Install with: pip install libclang", file=sys.stderr)
    sys.exit(1)

from .cache_manager import HeaderSourceCache
from .codegen_config import CodegenConfig
from .file_scanner import FileScanner
from .symbol_info import SymbolInfo, SymbolKind
from .symbol_provider import SymbolProvider
from .text_document import Location, Position, Range, TextDocument, path_for, uri_for


def find_and_configure_libclang() -> bool:
    """Find and configure libclang library"""
    if Config.loaded:
        return True

    system = platform.system()
    script_dir = os.path.dirname(os.path.abspath(__file__))
    # Go up one directory to find lib folder (since we're in codegen_server subfolder)
    parent_dir = os.path.dirname(script_dir)

    # First, try bundled libraries (self-contained)
    if system == "Windows":
        bundled_paths = [
            os.path.join(parent_dir, "lib", "windows", "libclang.dll"),
            os.path.join(parent_dir, "lib", "windows", "clang.dll"),
        ]
    elif system == "Darwin":  # macOS
        bundled_paths = [
            os.path.join(parent_dir, "lib", "macos", "libclang.dylib"),
        ]
    else:  # Linux
        bundled_paths = [
            os.path.join(parent_dir, "lib", "linux", "libclang.so.1"),
            os.path.join(parent_dir, "lib", "linux", "libclang.so"),
        ]

    for path in bundled_paths:
        if os.path.exists(path):
            print(f"Using bundled libclang at: {path}", file=sys.stderr)
            Config.set_library_file(path)
            return True

    # Fallback to system-installed libraries
    if system == "Windows":
        system_paths = [
            r"C:\Program Files\LLVM\bin\libclang.dll",
            r"C:\Program Files (x86)\LLVM\bin\libclang.dll",
            r"C:\vcpkg\installed\x64-windows\bin\clang.dll",
        ]
        llvm_config = shutil.which("llvm-config")
        if llvm_config:
            try:
                result = subprocess.run([llvm_config, "--libdir"], capture_output=True, text=True)
                if result.returncode == 0:
                    system_paths.insert(0, os.path.join(result.stdout.strip(), "libclang.dll"))
            except (OSError, subprocess.SubprocessError) as e:
                print(f"llvm-config failed: {e}", file=sys.stderr)
    elif system == "Darwin":
        system_paths = [
            "/usr/local/lib/libclang.dylib",
            "/opt/homebrew/lib/libclang.dylib",
            "/Applications/Xcode.app/Contents/Developer/Toolchains/XcodeDefault.xctoolchain/usr/lib/libclang.dylib",
        ]
    else:
        system_paths = [
            "/usr/lib/llvm-*/lib/libclang.so.1",
            "/usr/lib/x86_64-linux-gnu/libclang-*.so.1",
            "/usr/lib/libclang.so.1",
            "/usr/lib/libclang.so",
        ]

    for path_pattern in system_paths:
        if "*" in path_pattern:
            matches = sorted(glob.glob(path_pattern))
            if not matches:
                continue
            path = matches[-1]  # Newest version
        else:
            path = path_pattern

        if os.path.exists(path):
            print(f"Found system libclang at: {path}", file=sys.stderr)
            Config.set_library_file(path)
            return True

    # The libclang wheel ships its own copy, which cindex finds by itself.
    print("No bundled or system libclang found, using the one from the libclang package", file=sys.stderr)
    return False


# Cursor kinds reported as document symbols. Function templates and variables are
# refined by the kind of their semantic parent in _symbol_kind().
SYMBOL_KINDS = {
    CursorKind.NAMESPACE: SymbolKind.Namespace,
    CursorKind.CLASS_DECL: SymbolKind.Class,
    CursorKind.CLASS_TEMPLATE: SymbolKind.Class,
    CursorKind.CLASS_TEMPLATE_PARTIAL_SPECIALIZATION: SymbolKind.Class,
    CursorKind.STRUCT_DECL: SymbolKind.Struct,
    CursorKind.UNION_DECL: SymbolKind.Class,
    CursorKind.ENUM_DECL: SymbolKind.Enum,
    CursorKind.ENUM_CONSTANT_DECL: SymbolKind.EnumMember,
    CursorKind.FUNCTION_DECL: SymbolKind.Function,
    CursorKind.FUNCTION_TEMPLATE: SymbolKind.Function,
    CursorKind.CXX_METHOD: SymbolKind.Method,
    CursorKind.CONSTRUCTOR: SymbolKind.Constructor,
    CursorKind.DESTRUCTOR: SymbolKind.Method,
    CursorKind.CONVERSION_FUNCTION: SymbolKind.Method,
    CursorKind.FIELD_DECL: SymbolKind.Field,
    CursorKind.VAR_DECL: SymbolKind.Variable,
    CursorKind.TYPEDEF_DECL: SymbolKind.Class,
    CursorKind.TYPE_ALIAS_DECL: SymbolKind.Class,
}

SCOPE_KINDS = frozenset({
    CursorKind.NAMESPACE, CursorKind.CLASS_DECL, CursorKind.CLASS_TEMPLATE,
    CursorKind.CLASS_TEMPLATE_PARTIAL_SPECIALIZATION, CursorKind.STRUCT_DECL,
    CursorKind.UNION_DECL, CursorKind.ENUM_DECL,
})

CLASS_CURSOR_KINDS = frozenset({
    CursorKind.CLASS_DECL, CursorKind.CLASS_TEMPLATE,
    CursorKind.CLASS_TEMPLATE_PARTIAL_SPECIALIZATION, CursorKind.STRUCT_DECL, CursorKind.UNION_DECL,
})


def character_offsets(data: bytes) -> List[int]:
    """Number of characters decoded from data[:i], for every byte offset i"""
    if data.isascii():
        return list(range(len(data) + 1))
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    offsets = [0]
    count = 0
    for i in range(len(data)):
        count += len(decoder.decode(data[i:i + 1]))
        offsets.append(count)
    return offsets


class ParsedFile:
    """A translation unit together with the text it was parsed from"""

    def __init__(self, path: str, tu: TranslationUnit, data: bytes, mtime: float):
        self.path = path
        self.tu = tu
        self.data = data
        self.mtime = mtime
        self.document = TextDocument(uri_for(path), data.decode("utf-8", errors="replace"))
        self.char_offsets = character_offsets(data)

    def position_at(self, byte_offset: int) -> Position:
        """libclang reports byte offsets; documents count characters"""
        byte_offset = max(0, min(byte_offset, len(self.data)))
        return self.document.position_at(self.char_offsets[byte_offset])

    def byte_offset_at(self, position: Position) -> int:
        return bisect.bisect_left(self.char_offsets, self.document.offset_at(position))

    def range_of(self, cursor: Cursor) -> Range:
        return Range(self.position_at(cursor.extent.start.offset), self.position_at(cursor.extent.end.offset))

    def in_file(self, cursor: Cursor) -> bool:
        location_file = cursor.location.file
        return location_file is not None and os.path.abspath(location_file.name) == self.path


class ClangSymbolProvider(SymbolProvider):
    """SymbolProvider that parses project files with libclang"""

    def __init__(self, project_root: str, config: Optional[CodegenConfig] = None,
                 scanner: Optional[FileScanner] = None, max_workers: int = 4):
        self.project_root = Path(project_root).resolve()
        self.config = config if config is not None else CodegenConfig(self.project_root)
        self.scanner = scanner if scanner is not None else FileScanner(self.project_root, self.config,
                                                                       HeaderSourceCache())
        self.index = Index.create()
        self.parsed_files: Dict[str, ParsedFile] = {}

        # libclang is not thread safe; parses and cursor walks are serialized.
        self.parse_lock = threading.Lock()
        self.executor = ThreadPoolExecutor(max_workers=max_workers)

        self.parse_count = 0
        print(f"ClangSymbolProvider initialized for project: {self.project_root}", file=sys.stderr)

    def _compile_args(self) -> List[str]:
        args = [
            '-std=c++17',
            '-I.',
            f'-I{self.project_root}',
            f'-I{self.project_root}/src',
            f'-I{self.project_root}/include',
            '-x', 'c++'
        ]
        return args

    def _parse(self, path: str) -> ParsedFile:
        """Parse path, reusing the translation unit while the file is unchanged"""
        path = os.path.abspath(path)
        mtime = os.path.getmtime(path)
        parsed = self.parsed_files.get(path)
        if parsed is not None and parsed.mtime == mtime:
            return parsed

        with open(path, "rb") as f:
            data = f.read()

        tu = self.index.parse(
            path,
            args=self._compile_args(),
            options=TranslationUnit.PARSE_INCOMPLETE |
                    TranslationUnit.PARSE_DETAILED_PROCESSING_RECORD
        )
        if not tu:
            raise RuntimeError(f"Failed to parse {path}")

        parsed = ParsedFile(path, tu, data, mtime)
        self.parsed_files[path] = parsed
        self.parse_count += 1
        return parsed

    async def _run(self, function, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, function, *args)

    # Document symbols

    @staticmethod
    def _symbol_kind(cursor: Cursor) -> Optional[SymbolKind]:
        kind = SYMBOL_KINDS.get(cursor.kind)
        if kind is None:
            return None
        parent = cursor.semantic_parent
        in_class = parent is not None and parent.kind in CLASS_CURSOR_KINDS
        if cursor.kind == CursorKind.FUNCTION_TEMPLATE and in_class:
            if parent.spelling == cursor.spelling:
                return SymbolKind.Constructor
            return SymbolKind.Method
        if cursor.kind == CursorKind.VAR_DECL and in_class:
            # Static data member
            return SymbolKind.Field
        return kind

    def _symbol_info(self, parsed: ParsedFile, cursor: Cursor) -> Optional[SymbolInfo]:
        kind = self._symbol_kind(cursor)
        if kind is None:
            return None

        name = cursor.spelling
        if not name or name.startswith("("):
            name = "(anonymous)"
        if kind in (SymbolKind.Function, SymbolKind.Method, SymbolKind.Constructor):
            detail = cursor.displayname
        else:
            detail = cursor.type.spelling if cursor.type is not None else ""

        name_start = parsed.position_at(cursor.location.offset)
        if name == "(anonymous)":
            selection_range = Range(name_start, name_start)
        else:
            selection_range = Range(name_start, parsed.position_at(cursor.location.offset
                                                                   + len(cursor.spelling.encode("utf-8"))))

        children = []
        if cursor.kind in SCOPE_KINDS:
            children = self._collect_symbols(parsed, cursor)

        return SymbolInfo(name=name, kind=kind, range=parsed.range_of(cursor),
                          selection_range=selection_range, detail=detail, children=children)

    def _collect_symbols(self, parsed: ParsedFile, parent: Cursor) -> List[SymbolInfo]:
        symbols = []
        for child in parent.get_children():
            if not parsed.in_file(child):
                continue
            info = self._symbol_info(parsed, child)
            if info is not None:
                symbols.append(info)
        return symbols

    def _document_symbols_sync(self, path: str) -> List[SymbolInfo]:
        with self.parse_lock:
            parsed = self._parse(path)
            return self._collect_symbols(parsed, parsed.tu.cursor)

    async def document_symbols(self, uri: str) -> List[SymbolInfo]:
        return await self._run(self._document_symbols_sync, path_for(uri))

    # Definitions and declarations

    def _cursor_at(self, parsed: ParsedFile, position: Position) -> Optional[Cursor]:
        location = parsed.tu.get_location(parsed.path, parsed.byte_offset_at(position))
        cursor = Cursor.from_location(parsed.tu, location)
        if cursor is None or cursor.kind.is_invalid():
            return None
        referenced = cursor.referenced
        return referenced if referenced is not None else cursor

    def _location_of(self, cursor: Cursor) -> Optional[Location]:
        if cursor.location.file is None:
            return None
        path = os.path.abspath(cursor.location.file.name)
        parsed = self.parsed_files.get(path)
        if parsed is None:
            parsed = self._parse(path)
        return Location(uri_for(path), parsed.range_of(cursor))

    def _find_by_usr(self, path: str, usr: str, definitions: bool) -> List[Location]:
        """Declarations (or definitions) with the given USR in another file"""
        parsed = self._parse(path)
        locations = []
        for top_level in parsed.tu.cursor.get_children():
            if not parsed.in_file(top_level):
                continue
            for cursor in top_level.walk_preorder():
                if cursor.kind not in SYMBOL_KINDS or cursor.get_usr() != usr:
                    continue
                if cursor.is_definition() == definitions and parsed.in_file(cursor):
                    locations.append(Location(uri_for(parsed.path), parsed.range_of(cursor)))
        return locations

    def _matching_path(self, path: str) -> Optional[str]:
        return self.scanner.find_matching_file(path)

    def _find_definitions_sync(self, path: str, position: Position) -> List[Location]:
        with self.parse_lock:
            parsed = self._parse(path)
            cursor = self._cursor_at(parsed, position)
            if cursor is None:
                return []

            definition = cursor.get_definition()
            if definition is not None:
                location = self._location_of(definition)
                return [location] if location is not None else []

            usr = cursor.get_usr()
            matching_path = self._matching_path(path)
            if not usr or matching_path is None:
                return []
            return self._find_by_usr(matching_path, usr, definitions=True)

    async def find_definitions(self, uri: str, position: Position) -> List[Location]:
        return await self._run(self._find_definitions_sync, path_for(uri), position)

    def _find_declarations_sync(self, path: str, position: Position) -> List[Location]:
        with self.parse_lock:
            parsed = self._parse(path)
            cursor = self._cursor_at(parsed, position)
            if cursor is None:
                return []

            locations = []
            canonical = cursor.canonical
            if canonical is not None and not canonical.is_definition():
                location = self._location_of(canonical)
                if location is not None:
                    locations.append(location)

            usr = cursor.get_usr()
            matching_path = self._matching_path(path)
            if usr and matching_path is not None:
                for location in self._find_by_usr(matching_path, usr, definitions=False):
                    if location not in locations:
                        locations.append(location)
            return locations

    async def find_declarations(self, uri: str, position: Position) -> List[Location]:
        return await self._run(self._find_declarations_sync, path_for(uri), position)

    # Documents

    async def open_document(self, uri: str) -> TextDocument:
        return await self._run(TextDocument.from_file, path_for(uri))

    def is_in_workspace(self, uri: str) -> bool:
        return self.scanner.is_project_file(path_for(uri))

    def get_stats(self) -> Dict[str, int]:
        return {
            "parsed_files": len(self.parsed_files),
            "parse_count": self.parse_count,
        }

    def shutdown(self):
        self.executor.shutdown(wait=False)

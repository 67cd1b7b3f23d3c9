"""
C/C++ files and documents, and the search for where new code should go.
"""

import re
from typing import Dict, List, Optional, Tuple, Union

from . import parsing
from .cache_manager import SymbolCache
from .codegen_config import CodegenConfig
from .csymbol import CSymbol
from .proposed_position import ProposedPosition
from .source_symbol import SourceSymbol
from .symbol_provider import SymbolProvider, make_location_list
from .text_document import Location, Position, Range, TextDocument, TextLine, path_for
from .utility import AccessLevel, file_extension, file_name_base

# Number of sibling functions on either side of a symbol that are checked for a linked symbol.
SIBLING_LOOKAHEAD = 6

_INCLUDE_RE = re.compile(r"\s*#\s*include\s*(<[^>]+>|\"[^\"]+\")")


class SourceFile:
    """A C/C++ file whose symbols are known to the symbol provider"""

    def __init__(self, uri: str, provider: SymbolProvider, cache: Optional[SymbolCache] = None,
                 config: Optional[CodegenConfig] = None):
        self.uri = uri
        self.provider = provider
        self.cache = cache
        self.config = config if config is not None else CodegenConfig.from_dict({})
        self._symbols: Optional[List[SourceSymbol]] = None

    def __repr__(self):
        return f"{type(self).__name__}({self.uri!r})"

    @property
    def file_path(self) -> str:
        return path_for(self.uri)

    @property
    def file_name(self) -> str:
        return self.file_path.replace("\\", "/").rsplit("/", 1)[-1]

    async def _current_text(self) -> str:
        document = await self.provider.open_document(self.uri)
        return document.text

    async def symbols(self) -> List[SourceSymbol]:
        """Top-level symbols of this file, sorted by range"""
        if self._symbols is not None:
            return self._symbols

        text = await self._current_text()
        symbols = self.cache.get(self.uri, text) if self.cache is not None else None
        if symbols is None:
            infos = sorted(await self.provider.document_symbols(self.uri), key=lambda s: (s.range.end, s.range.start))
            if self.cache is not None:
                symbols = self.cache.put(self.uri, text, infos)
            else:
                symbols = [SourceSymbol(info, self.uri) for info in infos]

        self._symbols = symbols
        return self._symbols

    def invalidate(self):
        """Drop the symbols so they are fetched again on next use"""
        self._symbols = None
        if self.cache is not None:
            self.cache.invalidate(self.uri)

    async def open_document(self) -> "SourceDocument":
        document = await self.provider.open_document(self.uri)
        source_doc = SourceDocument(document, self.provider, self.cache, self.config)
        source_doc._symbols = self._symbols
        return source_doc

    async def get_source_symbol(self, position: Position) -> Optional[SourceSymbol]:
        """Innermost symbol containing position"""

        def search_symbol_tree(source_symbols: List[SourceSymbol]) -> Optional[SourceSymbol]:
            for source_symbol in source_symbols:
                if not source_symbol.range.contains(position):
                    continue
                if not source_symbol.children or source_symbol.selection_range.contains(position):
                    return source_symbol
                child = search_symbol_tree(source_symbol.children)
                return child if child is not None else source_symbol
            return None

        return search_symbol_tree(await self.symbols())

    async def find_definitions(self, position: Position) -> List[Location]:
        return make_location_list(await self.provider.find_definitions(self.uri, position))

    async def find_declarations(self, position: Position) -> List[Location]:
        return make_location_list(await self.provider.find_declarations(self.uri, position))

    def is_header(self) -> bool:
        return self.config.is_header_extension(file_extension(self.file_path))

    def is_source(self) -> bool:
        return self.config.is_source_extension(file_extension(self.file_path))


class SourceDocument(SourceFile):
    """A SourceFile together with its text"""

    def __init__(self, document: TextDocument, provider: SymbolProvider, cache: Optional[SymbolCache] = None,
                 config: Optional[CodegenConfig] = None):
        super().__init__(document.uri, provider, cache, config)
        self.document = document

    # Pass through to the TextDocument

    @property
    def text(self) -> str:
        return self.document.text

    @property
    def eol(self) -> str:
        return self.document.eol

    @property
    def line_count(self) -> int:
        return self.document.line_count

    def offset_at(self, position: Position) -> int:
        return self.document.offset_at(position)

    def position_at(self, offset: int) -> Position:
        return self.document.position_at(offset)

    def line_at(self, line_or_position: Union[int, Position]) -> TextLine:
        return self.document.line_at(line_or_position)

    def get_text(self, range: Optional[Range] = None) -> str:
        return self.document.get_text(range)

    def range_at(self, start_offset: int, end_offset: int) -> Range:
        return self.document.range_at(start_offset, end_offset)

    def end_position(self) -> Position:
        return self.document.end_position()

    async def _current_text(self) -> str:
        return self.document.text

    async def open(self, uri: str) -> "SourceDocument":
        """Another document sharing this one's provider, cache and configuration"""
        if uri == self.uri:
            return self
        document = await self.provider.open_document(uri)
        return SourceDocument(document, self.provider, self.cache, self.config)

    async def get_symbol(self, position: Position) -> Optional[CSymbol]:
        source_symbol = await self.get_source_symbol(position)
        return CSymbol(source_symbol, self) if source_symbol is not None else None

    async def find_matching_symbols(self, target: Union[CSymbol, SourceSymbol]) -> List[CSymbol]:
        """Every symbol in this document that names the same entity as target (namespaces may be reopened)"""
        symbols = await self.symbols()

        if isinstance(target, SourceSymbol):
            def matches(symbol: SourceSymbol) -> bool:
                return symbol.matches(target)
        else:
            def matches(symbol: SourceSymbol) -> bool:
                return symbol.name == target.name and CSymbol(symbol, self).matches(target)

        found: List[CSymbol] = []

        def search(source_symbols: List[SourceSymbol]):
            for symbol in source_symbols:
                if matches(symbol):
                    found.append(CSymbol(symbol, self))
                search(symbol.children)

        search(symbols)
        return found

    async def find_matching_symbol(self, target: Union[CSymbol, SourceSymbol]) -> Optional[CSymbol]:
        """The first symbol in this document that names the same entity as target"""
        found = await self.find_matching_symbols(target)
        return found[0] if found else None

    async def all_functions(self) -> List[CSymbol]:
        """Every function in this document, depth first"""
        functions = []

        def collect(source_symbols: List[SourceSymbol]):
            for symbol in source_symbols:
                if symbol.is_function():
                    functions.append(CSymbol(symbol, self))
                collect(symbol.children)

        collect(await self.symbols())
        return functions

    # Includes

    def included_files(self) -> List[str]:
        masked = parsing.mask_comments(self.text)
        return [match.group(1) for match in re.finditer(r"^\s*#\s*include\s*[<\"]([^>\"]+)[>\"]", masked, re.MULTILINE)]

    def find_position_for_new_include(self, system: bool = True) -> Position:
        """
        Start of the line after the largest block of system (<...>) or project ("...")
        includes. Without includes of that kind the other kind's block is used, and
        without any includes the position after the header guard or header comment.
        """
        masked_lines = parsing.mask_comments(self.text).splitlines()
        # Kind of include ("<" or '"') -> (line count, line after the block)
        largest_blocks: Dict[str, Tuple[int, int]] = {}
        block_kind = None
        block_start = 0
        for i, line in enumerate(masked_lines + [""]):
            match = _INCLUDE_RE.match(line)
            kind = match.group(1)[0] if match else None
            if kind == block_kind:
                continue
            if block_kind is not None:
                largest = largest_blocks.get(block_kind)
                if largest is None or i - block_start >= largest[0]:
                    largest_blocks[block_kind] = (i - block_start, i)
            block_kind = kind
            block_start = i

        wanted, other = ("<", '"') if system else ('"', "<")
        block = largest_blocks.get(wanted, largest_blocks.get(other))
        if block is not None:
            return Position(block[1], 0)

        position = self.position_after_header_guard()
        if position is not None:
            return position
        return Position(self.position_after_header_comment().line, 0)

    # Header guards

    def header_guard_define(self) -> str:
        file_name = self.file_name
        define = self.config.get_header_guard_define_format()
        define = define.replace("${FILENAME_EXT}", file_name.replace(".", "_").upper())
        define = define.replace("${FILENAME}", file_name_base(file_name).upper())
        return re.sub(r"\W", "_", define)

    def position_after_header_guard(self) -> Optional[Position]:
        masked = parsing.mask_quotes(parsing.mask_raw_string_literals(parsing.mask_comments(self.text)))

        offset = None
        pragma_once = re.search(r"^\s*#\s*pragma\s+once\b", masked, re.MULTILINE)
        if pragma_once:
            offset = pragma_once.end()
        define = re.search(r"^\s*#\s*define\s+" + re.escape(self.header_guard_define()) + r"\b", masked, re.MULTILINE)
        if define:
            offset = define.end()

        if offset is None:
            return None
        return Position(self.position_at(offset).line + 1, 0)

    def has_header_guard(self) -> bool:
        return self.position_after_header_guard() is not None

    def position_after_header_comment(self) -> ProposedPosition:
        masked = parsing.mask_comments(self.text, False)
        match = re.search(r"\S", masked)
        if match:
            # Before the first non-comment text
            return ProposedPosition(self.position_at(match.start()), before=True)

        # No code at all: after the header comment
        trimmed_length = len(self.text.rstrip())
        return ProposedPosition(self.position_at(trimmed_length), after=trimmed_length != 0)

    # Positions

    def end_of_file_position(self) -> ProposedPosition:
        """After the last non-empty line"""
        for i in range(self.line_count - 1, -1, -1):
            line = self.line_at(i)
            if not line.is_empty_or_whitespace:
                return ProposedPosition(line.range.end, after=True)
        return ProposedPosition()

    async def last_top_level_position(self) -> ProposedPosition:
        """After the last top-level symbol, or after the last non-empty line if there are none"""
        symbols = await self.symbols()
        if not symbols:
            return self.end_of_file_position()
        last_symbol = CSymbol(symbols[-1], self)
        return ProposedPosition(last_symbol.range.end, relative_to=last_symbol.full_range(), after=True)

    async def find_position_for_new_symbol(self) -> ProposedPosition:
        return await self.last_top_level_position()

    def should_indent_namespace_body(self, namespace: Optional[CSymbol] = None) -> bool:
        setting = self.config.get_namespace_body_indentation()
        if setting != "auto":
            return setting == "always"
        if namespace is None or not namespace.children:
            return True
        first_child = CSymbol(namespace.children[0], self)
        return first_child.indentation() != namespace.indentation()

    async def namespace_fallback(self, anchor: CSymbol) -> Optional[ProposedPosition]:
        """Position at the end of the innermost namespace of anchor that this document also opens"""
        for scope in reversed(anchor.scopes()):
            if not scope.is_namespace():
                continue
            namespace = await self.find_matching_symbol(scope)
            if namespace is None:
                continue

            if not namespace.children:
                return ProposedPosition(namespace.body_start(), relative_to=namespace.full_range(), after=True,
                                        next_to=True, empty_scope=True, in_namespace=True)
            last_child = CSymbol(namespace.children[-1], self)
            return ProposedPosition(last_child.range.end, relative_to=last_child.full_range(), after=True)
        return None

    def find_position_for_new_member_function(self, parent_class: CSymbol, access: AccessLevel,
                                              relative_name: Optional[str] = None,
                                              member_variable: Optional[CSymbol] = None) -> ProposedPosition:
        """Position inside parent_class for a new member function with the given access"""
        position = parent_class.find_position_for_new_member_function(
            access, relative_name, member_variable, self.config.get_accessor_case_style())
        if position is None:
            return parent_class.position_for_new_child()
        return position

    async def find_smart_position_for_function(self, anchor: CSymbol, target_doc: Optional["SourceDocument"] = None,
                                               parent_class: Optional[CSymbol] = None,
                                               access: Optional[AccessLevel] = None,
                                               next_to_anchor: Optional[str] = None) -> ProposedPosition:
        """
        Position in target_doc for the counterpart (definition or declaration) of anchor,
        which lives in this document. Falls back through sibling functions, enclosing
        namespaces and finally the end of target_doc; never fails for lack of a place.

        next_to_anchor ("after" or "before") is for a new function that is declared
        next to anchor rather than being anchor's counterpart: anchor's own
        counterpart is then the nearest candidate on that side.
        """
        if target_doc is None:
            target_doc = self

        target_symbols = await target_doc.symbols()
        if not target_symbols:
            return target_doc.end_of_file_position()

        symbols = await self.symbols()
        if anchor.uri != self.uri or (anchor.symbol.parent is None and not symbols):
            return await target_doc.last_top_level_position()

        if access is not None and parent_class is not None:
            return parent_class.document.find_position_for_new_member_function(parent_class, access)

        position = await self._sibling_position(anchor, target_doc, symbols, next_to_anchor)
        if position is not None:
            return position

        position = await target_doc.namespace_fallback(anchor)
        if position is not None:
            return position

        return await target_doc.last_top_level_position()

    async def _sibling_position(self, anchor: CSymbol, target_doc: "SourceDocument", symbols: List[SourceSymbol],
                                next_to_anchor: Optional[str] = None) -> Optional[ProposedPosition]:
        parent = anchor.symbol.parent
        siblings = [s for s in (parent.children if parent is not None else symbols) if s.is_function()]
        index = next((i for i, s in enumerate(siblings) if s.selection_range == anchor.selection_range), None)
        if index is None:
            return None

        anchor_is_declaration = anchor.is_function_declaration() or next_to_anchor is not None
        anchor_scopes = set(anchor.all_scopes())

        async def linked_symbol(sibling: CSymbol) -> Optional[CSymbol]:
            if anchor_is_declaration:
                if not sibling.is_function_declaration():
                    return None
                location = await sibling.find_definition()
            else:
                if not sibling.is_function_definition():
                    return None
                location = await sibling.find_declaration()
            if location is None or path_for(location.uri) != target_doc.file_path:
                return None

            linked = await target_doc.get_symbol(location.range.start)
            if linked is None or not linked.is_function():
                return None
            linked_scopes = set(linked.all_scopes())
            if (anchor_scopes or linked_scopes) and not anchor_scopes & linked_scopes:
                return None
            if parent is not None and target_doc.uri == self.uri and parent.range.contains(linked.selection_range):
                return None
            return linked

        async def search(candidates: List[SourceSymbol]) -> Optional[CSymbol]:
            checked = 0
            for candidate in candidates:
                if checked >= SIBLING_LOOKAHEAD:
                    break
                sibling = CSymbol(candidate, self)
                checked += 1
                linked = await linked_symbol(sibling)
                if linked is not None:
                    return linked
            return None

        before = list(reversed(siblings[:index]))
        after = siblings[index + 1:]
        if next_to_anchor == "after":
            before.insert(0, siblings[index])
        elif next_to_anchor == "before":
            after.insert(0, siblings[index])

        linked = await search(before)
        if linked is not None:
            return ProposedPosition(linked.range.end, relative_to=linked.full_range(), after=True)

        linked = await search(after)
        if linked is not None:
            leading_comment_start = linked.leading_comment_start
            return ProposedPosition(leading_comment_start, relative_to=Range(leading_comment_start, linked.range.end),
                                    before=True)
        return None

    def format_text_to_insert(self, text: str, position: ProposedPosition,
                              namespace: Optional[CSymbol] = None) -> str:
        return position.format_text_to_insert(text, self.document, self.config.get_indentation(),
                                              self.should_indent_namespace_body(namespace))

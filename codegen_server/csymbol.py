"""
Document-aware view of a symbol.

A CSymbol binds a SourceSymbol to the text of the document it came from, so that
the qualifiers, template statements, bodies and comments surrounding the symbol
can be inspected. CSymbols are cheap and are created wherever they are needed.
"""

import re
from typing import TYPE_CHECKING, List, Optional

from . import parsing
from .proposed_position import ProposedPosition
from .source_symbol import SourceSymbol
from .symbol_info import SymbolKind
from .symbol_provider import find_linked_location
from .text_document import Location, Position, Range
from .utility import (AccessLevel, contains_exclusive, first_char_to_lower, first_char_to_upper,
                      make_pascal_case, make_snake_case)

if TYPE_CHECKING:
    from .source_document import SourceDocument


_ACCESS_SPECIFIER_RE = re.compile(r"\b[A-Za-z_]\w*\s*:(?!:)")
_SCOPE_NAME_RE = re.compile(r"[A-Za-z_]\w*(?=\s*::)")
_SCOPE_RESOLVED_IDENTIFIER_RE = re.compile(r"[A-Za-z_]\w*\b(?!\s*::)")
_BASE_CLASS_RE = re.compile(r"\b[A-Za-z_]\w*(\s*::\s*[A-Za-z_]\w*)*\b(\s*<\s*>)?")


class SubSymbol:
    """A named piece of a symbol's text that has no symbol of its own (an access specifier, a base class, ...)."""

    def __init__(self, document: "SourceDocument", range: Range, selection_range: Optional[Range] = None):
        self.document = document
        self.range = range
        self.selection_range = selection_range if selection_range is not None else range
        self.name = document.get_text(self.selection_range)

    def __repr__(self):
        return f"SubSymbol({self.name!r})"

    @property
    def uri(self) -> str:
        return self.document.uri

    def text(self) -> str:
        return self.document.get_text(self.range)

    async def find_definition(self) -> Optional[Location]:
        locations = await self.document.find_definitions(self.selection_range.start)
        return find_linked_location(self.document.provider, self.uri, self.range, locations)


class CSymbol:
    """A SourceSymbol together with the document it is located in."""

    def __init__(self, symbol: SourceSymbol, document: "SourceDocument"):
        self.symbol = symbol
        self.document = document
        self.range = Range(symbol.range.start, parsing.get_end_of_statement(document, symbol.range.end))

        self._parsable_text: Optional[str] = None
        self._template_snippet: Optional[str] = None
        self._true_start: Optional[Position] = None
        self._leading_comment_start: Optional[Position] = None
        self._access_specifiers: Optional[List[SubSymbol]] = None
        self._named_scopes: Optional[List[str]] = None

    def __repr__(self):
        return f"CSymbol({self.kind.name} {self.name!r} in {self.document.file_name})"

    # Pass-through to the underlying symbol

    @property
    def name(self) -> str:
        return self.symbol.name

    @property
    def kind(self) -> SymbolKind:
        return self.symbol.kind

    @property
    def detail(self) -> str:
        return self.symbol.detail

    @property
    def signature(self) -> str:
        return self.symbol.signature

    @property
    def selection_range(self) -> Range:
        return self.symbol.selection_range

    @property
    def uri(self) -> str:
        return self.document.uri

    @property
    def location(self) -> Location:
        return Location(self.uri, self.range)

    @property
    def children(self) -> List[SourceSymbol]:
        return self.symbol.children

    @property
    def parent(self) -> Optional["CSymbol"]:
        parent = self.symbol.parent
        return CSymbol(parent, self.document) if parent is not None else None

    def scopes(self) -> List["CSymbol"]:
        return [CSymbol(scope, self.document) for scope in self.symbol.scopes()]

    def is_function(self) -> bool:
        return self.symbol.is_function()

    def is_class_or_struct(self) -> bool:
        return self.symbol.is_class()

    def is_namespace(self) -> bool:
        return self.symbol.is_namespace()

    def is_member_variable(self) -> bool:
        return self.symbol.is_member_variable()

    def is_variable(self) -> bool:
        return self.symbol.is_variable()

    # Text accessors

    def text(self) -> str:
        return self.document.get_text(self.range)

    @property
    def parsable_text(self) -> str:
        """The symbol's text with comments masked and literals emptied"""
        if self._parsable_text is None:
            self._parsable_text = parsing.mask_non_source_text(self.text())
        return self._parsable_text

    @property
    def parsable_leading_text(self) -> str:
        end_index = self.document.offset_at(self.selection_range.start) - self.start_offset()
        return self.parsable_text[:end_index]

    @property
    def _parsable_template_snippet(self) -> str:
        if self._template_snippet is None:
            snippet = self.document.get_text(Range(self.true_start, self.range.start))
            self._template_snippet = parsing.mask_non_source_text(snippet) if snippet else ""
        return self._template_snippet

    @property
    def parsable_full_text(self) -> str:
        return self._parsable_template_snippet + self.parsable_text

    @property
    def parsable_full_leading_text(self) -> str:
        return self._parsable_template_snippet + self.parsable_leading_text

    def full_range(self) -> Range:
        """Range including a template statement that precedes the symbol"""
        return Range(self.true_start, self.range.end)

    def full_text(self) -> str:
        return self.document.get_text(self.full_range())

    def range_with_leading_comment(self) -> Range:
        return Range(self.leading_comment_start, self.range.end)

    def leading_text(self) -> str:
        return self.document.get_text(Range(self.range.start, self.selection_range.start))

    def full_leading_text(self) -> str:
        return self.document.get_text(Range(self.true_start, self.selection_range.start))

    def start_offset(self) -> int:
        return self.document.offset_at(self.range.start)

    def end_offset(self) -> int:
        return self.document.offset_at(self.range.end)

    def is_before(self, offset: int) -> bool:
        return self.end_offset() < offset

    def is_after(self, offset: int) -> bool:
        return self.start_offset() > offset

    def indentation(self) -> str:
        return parsing.get_indentation(self.document.line_at(self.true_start).text)

    def _remove_indentation(self, text: str) -> str:
        indentation = self.indentation()
        if not indentation:
            return text
        return re.sub("^" + re.escape(indentation), "", text, flags=re.MULTILINE)

    @property
    def true_start(self) -> Position:
        """Start of the symbol including a template statement (not included in reported ranges)"""
        if self._true_start is not None:
            return self._true_start

        before = self.document.get_text(Range(Position(0, 0), self.range.start))
        masked = parsing.mask_angle_brackets(parsing.mask_comments(before, False)).rstrip()
        self._true_start = self.range.start
        if masked.endswith(">"):
            match = re.search(r"\btemplate\s*<\s*>\s*$", masked)
            if match:
                self._true_start = self.document.position_at(match.start())
        return self._true_start

    def declaration_start(self) -> Position:
        if not self.parsable_leading_text.startswith("template"):
            return self.range.start

        masked = parsing.mask_angle_brackets(self.parsable_leading_text)
        match = re.match(r"(template(\s*<\s*>)?\s*)*", masked)
        if not match or not match.group(0):
            return self.range.start
        return self.document.position_at(self.start_offset() + len(match.group(0)))

    def declaration_end(self) -> Position:
        """End of the declaration part (before a body, initializer list or the final semicolon)"""
        masked = parsing.mask_parentheses(self.parsable_text)
        start_offset = self.start_offset()
        name_end_index = self.document.offset_at(self.selection_range.end) - start_offset
        body_match = re.search(r"\s*{|\s*;$", masked[name_end_index:])
        if not body_match:
            return self.range.end
        body_start_index = name_end_index + body_match.start()

        if self.is_constructor():
            initializer_match = re.search(r"\s*:(?!:)", masked[name_end_index:body_start_index])
            if initializer_match:
                return self.document.position_at(start_offset + name_end_index + initializer_match.start())

        return self.document.position_at(start_offset + body_start_index)

    def body_start(self) -> Position:
        """Position just inside the opening brace"""
        masked = parsing.mask_braces(parsing.mask_parentheses(self.parsable_text))
        index = masked.rfind("{")
        if index == -1:
            return self.range.end
        return self.document.position_at(self.start_offset() + index + 1)

    def body_end(self) -> Position:
        """Position of the closing brace"""
        index = self.parsable_text.rfind("}")
        if index == -1:
            return self.range.end
        return self.document.position_at(self.start_offset() + index)

    def scope_string_start(self) -> Position:
        """Start of the scope qualifiers written before the name ("A::B::" in "void A::B::f()")"""
        trimmed = parsing.mask_angle_brackets(self.parsable_leading_text.rstrip(), False)
        if not trimmed.endswith("::"):
            return self.selection_range.start

        start_index = None
        for match in _SCOPE_NAME_RE.finditer(trimmed):
            preceding = trimmed[:match.start()]
            if preceding and (preceding[-1].isalnum() or preceding[-1] == "_"):
                continue
            if preceding.rstrip().endswith("::"):
                continue
            start_index = match.start()
        if start_index is None:
            return self.selection_range.start
        return self.document.position_at(self.start_offset() + start_index)

    def has_leading_comment(self) -> bool:
        return self.leading_comment_start != self.true_start

    @property
    def leading_comment_start(self) -> Position:
        if self._leading_comment_start is not None:
            return self._leading_comment_start

        self._leading_comment_start = self.true_start
        before = self.document.get_text(Range(Position(0, 0), self.true_start))
        masked = re.sub(r"[ \t]*(?:\r?\n)?[ \t]*\Z", "", parsing.mask_comments(before))
        if masked.endswith("*/"):
            comment_start = masked.rfind("/*")
            if comment_start != -1:
                self._leading_comment_start = self.document.position_at(comment_start)
        elif masked.endswith("//"):
            first_line = self.true_start.line - 1
            while first_line > 0 and self.document.line_at(first_line - 1).text.lstrip().startswith("//"):
                first_line -= 1
            index = self.document.line_at(first_line).text.find("//")
            if index != -1:
                self._leading_comment_start = Position(first_line, index)
        return self._leading_comment_start

    def trailing_comment_end(self) -> Position:
        end = self.document.end_position()
        trailing_text = self.document.get_text(Range(self.range.end, end))

        if re.match(r"[ \t]*//", trailing_text):
            return self.document.line_at(self.range.end).range.end

        if re.match(r"[ \t]*/\*", trailing_text):
            comment_end = parsing.mask_comments(trailing_text).find("*/")
            if comment_end != -1:
                return self.document.position_at(self.end_offset() + comment_end + 2)

        return self.range.end

    # Access specifiers

    @property
    def access_specifiers(self) -> List[SubSymbol]:
        if self._access_specifiers is not None:
            return self._access_specifiers

        self._access_specifiers = []
        if not self.is_class_or_struct():
            return self._access_specifiers

        start_offset = self.start_offset()
        body_index = self.document.offset_at(self.body_start()) - start_offset
        text = parsing.masker(self.parsable_text[:body_index]) + self.parsable_text[body_index:]
        for child in self.children:
            # Mask children so that only the access specifiers are left to match.
            child_symbol = CSymbol(child, self.document)
            child_start = max(child_symbol.start_offset() - start_offset, 0)
            child_end = child_symbol.end_offset() - start_offset
            text = text[:child_start] + parsing.masker(text[child_start:child_end]) + text[child_end:]
        # Macro arguments could look like access specifiers.
        text = parsing.mask_parentheses(text)

        for match in _ACCESS_SPECIFIER_RE.finditer(text):
            range = self.document.range_at(start_offset + match.start(), start_offset + match.end())
            self._access_specifiers.append(SubSymbol(self.document, range))

        return self._access_specifiers

    def ranges_of_access(self, access: AccessLevel) -> List[Range]:
        """Ranges of the class body that have the given access level"""
        access_re = access.regexp()
        ranges: List[Range] = []
        start: Optional[Position] = None

        if (access == AccessLevel.private and self.kind == SymbolKind.Class) \
                or (access == AccessLevel.public and self.kind == SymbolKind.Struct):
            start = self.body_start()

        for access_specifier in self.access_specifiers:
            if access_re.match(access_specifier.text()):
                if start is None:
                    start = access_specifier.range.end
            elif start is not None:
                ranges.append(Range(start, access_specifier.range.start))
                start = None

        if start is not None:
            ranges.append(Range(start, self.body_end()))

        return ranges

    def position_has_access(self, position: Position, access: AccessLevel) -> bool:
        return any(range.contains(position) for range in self.ranges_of_access(access))

    def find_position_for_new_member_function(self, access: AccessLevel, relative_name: Optional[str] = None,
                                              member_variable: Optional["CSymbol"] = None,
                                              case_style: str = "auto") -> Optional[ProposedPosition]:
        """
        Position for a new member function in this class, in a block with the given access.
        relative_name names a member to place the new function next to; when it is
        the setter of member_variable the new function (a getter) goes before it.
        """
        if not self.is_class_or_struct():
            return None

        is_getter = member_variable is not None and relative_name == member_variable.setter_name(case_style)
        children = [CSymbol(child, self.document) for child in self.children]

        if relative_name is not None:
            for child in reversed(children):
                if child.name != relative_name:
                    continue
                if is_getter:
                    return ProposedPosition(child.leading_comment_start, relative_to=child.full_range(),
                                            before=True, next_to=True)
                return ProposedPosition(child.trailing_comment_end(), relative_to=child.full_range(),
                                        after=True, next_to=True)

        ranges = self.ranges_of_access(access)
        in_block = [child for child in children
                    if any(range.contains(child.range.end) for range in ranges)]
        anchor = next((child for child in reversed(in_block) if child.is_function()), None)
        if anchor is None and in_block:
            anchor = in_block[-1]
        if anchor is not None:
            return ProposedPosition(anchor.trailing_comment_end(), relative_to=anchor.full_range(), after=True)

        if ranges:
            # The access block exists but is empty.
            specifier = next((s for s in self.access_specifiers if s.range.end == ranges[-1].start), None)
            if specifier is not None:
                return ProposedPosition(specifier.range.end, relative_to=specifier.range,
                                        after=True, next_to=True, empty_scope=True)

        return self.position_for_new_child()

    def position_for_new_child(self) -> ProposedPosition:
        if self.children:
            last_child = CSymbol(self.children[-1], self.document)
            return ProposedPosition(last_child.trailing_comment_end(), relative_to=last_child.full_range(),
                                    after=True)
        return ProposedPosition(self.body_start(), relative_to=self.full_range(), after=True, next_to=True,
                                empty_scope=True, in_namespace=self.is_namespace())

    # Scopes

    @property
    def named_scopes(self) -> List[str]:
        """Scope qualifiers written before this symbol's name"""
        if self._named_scopes is not None:
            return self._named_scopes

        self._named_scopes = []
        start_index = self.document.offset_at(self.scope_string_start()) - self.start_offset()
        end_index = self.parsable_leading_text.rfind("::")
        if end_index < start_index:
            return self._named_scopes

        scope_string = self.parsable_leading_text[start_index:end_index]
        masked = parsing.mask_angle_brackets(scope_string)
        for match in re.finditer(r"[A-Za-z_]\w*(<\s*>)?", masked):
            self._named_scopes.append(parsing.normalize_whitespace(scope_string[match.start():match.end()]))
        return self._named_scopes

    def all_scopes(self) -> List[str]:
        all_scopes: List[str] = []
        for scope in self.scopes():
            all_scopes.extend(scope.named_scopes)
            all_scopes.append(parsing.normalize_whitespace(scope.templated_name()))
        all_scopes.extend(self.named_scopes)
        return all_scopes

    def matches(self, other: "CSymbol") -> bool:
        """True if other names the same entity, taking written scope qualifiers into account"""
        if self.name != other.name or self.is_function() != other.is_function():
            return False
        if not self.is_function() and self.kind != other.kind:
            return False
        return self.all_scopes() == other.all_scopes()

    def is_friend(self) -> bool:
        return re.search(r"\bfriend\b", self.parsable_leading_text) is not None

    async def scope_string(self, target: "SourceDocument", position: Position,
                           for_friend: Optional[bool] = None) -> str:
        """
        Qualifiers needed to name this symbol at position in target. Scopes that
        are already open around position in target are left out. for_friend
        overrides whether the name belongs to a friend declaration.
        """
        scopes = self.scopes()
        if self.is_class_or_struct() or self.is_namespace():
            scopes.append(self)
        if (self.is_friend() if for_friend is None else for_friend):
            # A friend is a member of the enclosing namespace, not of the class.
            scopes = [scope for scope in scopes if not scope.is_class_or_struct()]

        scope_string = ""
        for scope in scopes:
            target_scopes = await target.find_matching_symbols(scope)
            if any(contains_exclusive(target_scope.range, position) for target_scope in target_scopes):
                continue
            name_range = Range(scope.scope_string_start(), scope.selection_range.end)
            scope_string += scope.document.get_text(name_range) + scope.template_parameters() + "::"
        return scope_string

    def immediate_scope(self) -> Optional[SubSymbol]:
        """The last scope qualifier written before the name ("B" in "void A::B::f()")"""
        masked = parsing.mask_angle_brackets(self.parsable_leading_text)
        match = re.search(r"([A-Za-z_]\w*)(<\s*>)?(?=\s*::\s*$)", masked)
        if not match:
            return None
        start_offset = self.start_offset() + match.start()
        return SubSymbol(self.document,
                         self.document.range_at(start_offset, start_offset + len(match.group(0))),
                         self.document.range_at(start_offset, start_offset + len(match.group(1))))

    def enclosing_class_name(self) -> Optional[str]:
        parent = self.symbol.parent
        if parent is not None and parent.is_class():
            return parent.name
        immediate_scope = self.immediate_scope()
        return immediate_scope.name if immediate_scope is not None else None

    async def get_parent_class(self) -> Optional["CSymbol"]:
        """The class this member belongs to, following a written qualifier to the class's definition"""
        parent = self.parent
        if parent is not None and parent.is_class_or_struct():
            return parent

        immediate_scope = self.immediate_scope()
        if immediate_scope is None:
            return None
        definition = await immediate_scope.find_definition()
        if definition is None:
            return None
        if definition.uri == self.uri:
            scope_doc = self.document
        else:
            scope_doc = await self.document.open(definition.uri)
        scope_symbol = await scope_doc.get_symbol(definition.range.start)
        if scope_symbol is not None and scope_symbol.is_class_or_struct():
            return scope_symbol
        return None

    def base_classes(self) -> List[SubSymbol]:
        if not self.is_class_or_struct():
            return []

        start_offset = self.document.offset_at(self.selection_range.end)
        trailing_text = self.document.get_text(Range(self.selection_range.end, self.declaration_end()))
        trailing_text = parsing.mask_angle_brackets(parsing.mask_comments(trailing_text, False))
        trailing_text = re.sub(r"\b(public|protected|private|virtual|final)\b",
                               lambda m: parsing.masker(m.group(0)), trailing_text)

        base_classes = []
        for match in _BASE_CLASS_RE.finditer(trailing_text):
            match_start = start_offset + match.start()
            range = self.document.range_at(match_start, start_offset + match.end())
            selection_range = None
            selection_match = _SCOPE_RESOLVED_IDENTIFIER_RE.search(match.group(0))
            if selection_match:
                selection_range = self.document.range_at(match_start + selection_match.start(),
                                                         match_start + selection_match.end())
            base_classes.append(SubSymbol(self.document, range, selection_range))
        return base_classes

    def member_variables_that_require_initialization(self) -> List[SourceSymbol]:
        """Member variables that are const or references"""
        if not self.is_class_or_struct():
            return []
        result = []
        for child in self.children:
            if child.is_member_variable():
                member = CSymbol(child, self.document)
                if member.is_const() or member.is_reference():
                    result.append(child)
        return result

    def non_static_member_variables(self) -> List[SourceSymbol]:
        if not self.is_class_or_struct():
            return []
        return [child for child in self.children
                if child.is_member_variable() and not CSymbol(child, self.document).is_static()]

    def constructors(self) -> List[SourceSymbol]:
        if not self.is_class_or_struct():
            return []
        return [child for child in self.children
                if child.is_function() and CSymbol(child, self.document).is_constructor()]

    def find_getter_for(self, member_variable: "CSymbol", case_style: str = "auto") -> Optional[SourceSymbol]:
        """A member function of this class that already returns member_variable"""
        names = {member_variable.getter_name(case_style)}
        if member_variable.base_name() != member_variable.name:
            names.add(member_variable.base_name())
        return self.symbol.find_child(lambda child: child.is_function() and child.name in names)

    def find_setter_for(self, member_variable: "CSymbol", case_style: str = "auto") -> Optional[SourceSymbol]:
        name = member_variable.setter_name(case_style)
        return self.symbol.find_child(lambda child: child.is_function() and child.name == name)

    # Templates

    def template_statements(self, remove_default_args: bool = False) -> List[str]:
        if not self.is_template():
            return []

        statement = self.document.get_text(Range(self.true_start, self.declaration_start()))
        statement = self._remove_indentation(parsing.remove_comments(statement))
        masked = parsing.mask_angle_brackets(statement)

        statements = []
        for match in re.finditer(r"\btemplate(\s*<\s*>)?", masked):
            template_statement = statement[match.start():match.end()]
            if not template_statement.endswith(">"):
                statements.append(template_statement + "<>")
            elif remove_default_args:
                statements.append(re.sub(r"\s*=[^,>]+(?=[,>])", "", template_statement))
            else:
                statements.append(template_statement)
        return statements

    def all_template_statements(self, remove_default_args: bool = False, for_member: bool = False) -> List[str]:
        statements = []
        for scope in self.scopes():
            if scope.is_class_or_struct() and scope.is_unspecialized_template():
                statements.extend(scope.template_statements(remove_default_args))
        if not for_member or self.is_unspecialized_template():
            statements.extend(self.template_statements(remove_default_args))
        return statements

    def combined_template_statements(self, remove_default_args: bool = False, separator: Optional[str] = None,
                                     for_member: bool = False) -> str:
        if separator is None:
            separator = self.document.eol
        statements = self.all_template_statements(remove_default_args, for_member)
        return separator.join(statements) + separator if statements else ""

    def template_parameters(self) -> str:
        """Template arguments needed to name this template ("<T, Ts...>")"""
        if self.is_specialized_template():
            start_index = self.document.offset_at(self.selection_range.end) - self.start_offset()
            masked = parsing.mask_angle_brackets(self.parsable_text[start_index:])
            open_index = masked.find("<")
            close_index = masked.find(">")
            if open_index == -1 or close_index == -1:
                return ""
            begin = self.start_offset() + start_index
            return self.document.text[begin + open_index:begin + close_index + 1]

        statements = self.template_statements(True)
        if not statements:
            return ""
        statement = statements[-1]
        open_index = statement.find("<")
        if open_index == -1:
            return ""

        parameter_text = statement[open_index + 1:-1]
        masked = parsing.mask_nested_groups(parameter_text)
        parameters = []
        for match in re.finditer(r"[^,]+", masked):
            piece = parameter_text[match.start():match.end()].split("=")[0]
            name_match = re.search(r"(\.\.\.)?\s*\b([A-Za-z_]\w*)\s*$", piece)
            if name_match and re.search(r"[A-Za-z_]\w*\b\s*(\.\.\.)?\s*\b" + name_match.group(2) + r"\s*$", piece):
                parameters.append(name_match.group(2) + (name_match.group(1) or ""))
        return "<" + ", ".join(parameters) + ">"

    def templated_name(self) -> str:
        return self.name + self.template_parameters()

    # Predicates

    def _ends_with_body(self) -> bool:
        return self.parsable_text.rstrip().rstrip(";").rstrip().endswith("}")

    def is_function_declaration(self) -> bool:
        if not self.is_function() or self.is_deleted_or_defaulted() or self.is_pure_virtual():
            return False
        return "declaration" in self.detail.lower() or not self._ends_with_body()

    def is_function_definition(self) -> bool:
        return self.is_function() and "declaration" not in self.detail.lower() and self._ends_with_body()

    def is_constructor(self) -> bool:
        if self.kind == SymbolKind.Constructor:
            return True
        if self.kind in (SymbolKind.Method, SymbolKind.Function):
            return self.name == self.enclosing_class_name()
        return False

    def is_destructor(self) -> bool:
        if not self.name.startswith("~"):
            return False
        class_name = self.enclosing_class_name()
        return class_name is None or self.name == "~" + class_name

    def is_virtual(self) -> bool:
        return re.search(r"\b(virtual|override|final)\b", self.parsable_leading_text) is not None

    def is_pure_virtual(self) -> bool:
        return self.is_virtual() and re.search(r"\s*=\s*0\s*;?$", self.parsable_text.rstrip()) is not None

    def is_deleted_or_defaulted(self) -> bool:
        return re.search(r"\s*=\s*(delete|default)\s*;?$", self.parsable_text.rstrip()) is not None

    def is_constexpr(self) -> bool:
        return re.search(r"\bconstexpr\b", self.parsable_leading_text) is not None

    def is_consteval(self) -> bool:
        return re.search(r"\bconsteval\b", self.parsable_leading_text) is not None

    def is_inline(self) -> bool:
        return re.search(r"\binline\b", self.parsable_leading_text) is not None

    def is_pointer(self) -> bool:
        return "*" in parsing.mask_angle_brackets(self.parsable_leading_text)

    def is_reference(self) -> bool:
        return "&" in parsing.mask_angle_brackets(self.parsable_leading_text)

    def is_const(self) -> bool:
        return re.search(r"\bconst\b", parsing.mask_angle_brackets(self.parsable_leading_text)) is not None

    def is_static(self) -> bool:
        return re.search(r"\bstatic\b", self.parsable_leading_text) is not None

    def is_primitive(self) -> bool:
        """Built-in type check on the declared type; typedefs and aliases are not resolved"""
        if self.is_variable():
            return parsing.matches_primitive_type(self.parsable_leading_text)
        if self.is_typedef() or self.is_type_alias():
            return parsing.matches_primitive_type(self.parsable_text)
        return False

    def is_template(self) -> bool:
        return re.match(r"template\b", self.parsable_full_text) is not None

    def is_unspecialized_template(self) -> bool:
        return re.search(r"\btemplate\s*<\s*[^\s>]", self.parsable_full_leading_text) is not None

    def is_specialized_template(self) -> bool:
        return self.is_template() and not self.is_unspecialized_template()

    def has_unspecialized_template(self) -> bool:
        return any(scope.is_unspecialized_template() for scope in self.scopes()) \
            or self.is_unspecialized_template()

    def might_be_typedef_or_type_alias(self) -> bool:
        return not self.is_function() and not self.is_namespace() and not self.is_member_variable()

    def is_typedef(self) -> bool:
        return self.might_be_typedef_or_type_alias() and re.search(r"\btypedef\b", self.parsable_text) is not None

    def is_type_alias(self) -> bool:
        return (self.might_be_typedef_or_type_alias() and re.search(r"\busing\b", self.parsable_text) is not None
                and "=" in self.parsable_text)

    def requires_visible_definition(self) -> bool:
        """The definition must be visible to every translation unit that sees the declaration"""
        return self.is_inline() or self.is_constexpr() or self.is_consteval() or self.has_unspecialized_template()

    # Member variable naming

    def base_name(self) -> str:
        """The member's name without decorations such as m_, s_ and leading/trailing underscores"""
        base = self.name.strip("_")
        prefixed = re.match(r"^[ms]_(\w+)$", base)
        if prefixed:
            base = prefixed.group(1).strip("_")
        elif re.match(r"^[ms][A-Z]", base):
            base = first_char_to_lower(base[1:])
        return base or self.name

    def _accessor_name(self, prefix: str, case_style: str) -> str:
        base = self.base_name()
        if case_style == "auto":
            case_style = "snake" if "_" in base else "camel"
        if case_style == "snake":
            return prefix + "_" + make_snake_case(base)
        if case_style == "pascal":
            return first_char_to_upper(prefix) + make_pascal_case(base)
        return prefix + make_pascal_case(base)

    def getter_name(self, case_style: str = "auto") -> str:
        return self._accessor_name("get", case_style)

    def setter_name(self, case_style: str = "auto") -> str:
        return self._accessor_name("set", case_style)

    # Definitions and declarations

    async def find_definition(self) -> Optional[Location]:
        locations = await self.document.find_definitions(self.selection_range.start)
        return find_linked_location(self.document.provider, self.uri, self.range, locations)

    async def find_declaration(self) -> Optional[Location]:
        locations = await self.document.find_declarations(self.selection_range.start)
        return find_linked_location(self.document.provider, self.uri, self.range, locations)

    async def new_function_definition(self, target: "SourceDocument", position: Position) -> str:
        """This function declaration rewritten as the head of a definition (without a body) at position"""
        if not self.is_function_declaration():
            return ""
        return await self._format_declaration(target, position, check_for_inline=True)

    async def new_function_declaration_for_target(self, target: "SourceDocument", position: Position) -> str:
        """This function definition's head rewritten as a declaration at position"""
        declaration = await self._format_declaration(target, position)
        return declaration + ";" if declaration else ""

    def new_function_declaration(self) -> str:
        if not self.is_function_definition():
            return ""
        return self.document.get_text(Range(self.true_start, self.declaration_end())).rstrip() + ";"

    def _body_text(self) -> str:
        return self.document.get_text(Range(self.declaration_end(), self.range.end))

    async def definition_for_target(self, target: "SourceDocument", position: Position,
                                    declaration: Optional["CSymbol"] = None, check_for_inline: bool = False) -> str:
        """
        This function definition (head and body) rewritten for position in target.
        The scope qualifiers are those of declaration when one is given.
        """
        scope_string = None
        if declaration is not None:
            scope_string = await declaration.scope_string(target, position)

        comment = ""
        if self.document.config.get_always_move_comments():
            comment = self._remove_indentation(self.document.get_text(Range(self.leading_comment_start,
                                                                             self.true_start)))

        head = await self._format_declaration(target, position, scope_string, check_for_inline)
        return comment + head + self._remove_indentation(self._body_text())

    def combine_definition(self, definition: "CSymbol") -> str:
        """This declaration with the body of definition, indented to this declaration's line"""
        line = self.document.line_at(self.range.start)
        new_indentation = line.text[:line.first_non_whitespace_character_index]

        def reindent(text: str) -> str:
            return re.sub(r"\n(?!$)", "\n" + new_indentation, definition._remove_indentation(text), flags=re.MULTILINE)

        declaration = re.sub(r"\s*;$", "", self.full_text())
        body = reindent(definition._body_text())
        if not self.has_leading_comment() and definition.has_leading_comment():
            comment = definition.document.get_text(Range(definition.leading_comment_start, definition.true_start))
            return reindent(comment) + new_indentation + declaration + body
        return declaration + body

    async def _format_declaration(self, target: "SourceDocument", position: Position,
                                  scope_string: Optional[str] = None, check_for_inline: bool = False) -> str:
        if scope_string is None:
            scope_string = await self.scope_string(target, position)

        declaration_start = self.declaration_start()
        declaration_start_offset = self.document.offset_at(declaration_start)
        declaration = self.document.get_text(Range(declaration_start, self.declaration_end()))
        declaration = re.sub(r";$", "", declaration)
        masked = parsing.mask_parentheses(parsing.mask_non_source_text(declaration))

        name_end_index = self.document.offset_at(self.selection_range.end) - declaration_start_offset
        param_start_index = masked.find("(", name_end_index)
        param_end_index = masked.find(")", name_end_index)
        if param_start_index == -1 or param_end_index == -1:
            return ""

        parameters = parsing.strip_default_values(declaration[param_start_index + 1:param_end_index])
        param_start = self.document.position_at(declaration_start_offset + param_start_index)
        name_to_params = self.document.get_text(Range(self.selection_range.start, param_start))

        parent = self.symbol.parent
        outside_class = parent is None or not contains_exclusive(parent.range, position) \
            or self.document.uri != target.uri
        inline_specifier = "inline " if (check_for_inline and outside_class and target.is_header()
                                         and not self.is_inline() and not self.is_constexpr()
                                         and not self.has_unspecialized_template()) else ""

        # Keep the alignment of continuation lines in a multi-line declaration.
        scope_string_start = self.scope_string_start()
        leading_text = self.document.get_text(Range(declaration_start, scope_string_start))
        old_scope_string = self.document.get_text(Range(scope_string_start, self.selection_range.start))
        line = self.document.line_at(self.range.start)
        leading_indent = line.first_non_whitespace_character_index
        align_length = len(re.split(r"\r?\n", leading_text)[-1].lstrip())
        old_alignment = leading_indent + align_length + len(old_scope_string)

        leading_text = re.sub(r"\b(virtual|static|explicit|friend)\b\s*", "", leading_text)
        if not target.is_header() or not check_for_inline:
            leading_text = re.sub(r"\binline\b\s*", "", leading_text, count=1)
        leading_text = self._remove_indentation(leading_text)

        definition = name_to_params + "(" + parameters + ")" + declaration[param_end_index + 1:]
        new_align_length = len(re.split(r"\r?\n", leading_text)[-1])
        if old_alignment:
            definition = re.sub("^" + " " * old_alignment,
                                " " * (new_align_length + len(inline_specifier) + len(scope_string)),
                                definition, flags=re.MULTILINE)

        eol = target.eol
        definition = (self.combined_template_statements(True, eol) + inline_specifier
                      + leading_text + scope_string + definition)
        return re.sub(r"\s*\b(override|final)\b", "", definition)

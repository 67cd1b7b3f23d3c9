"""
Code actions of the C++ code generator.

Every action reads documents through the symbol provider and returns a
WorkspaceEdit describing the text to insert or replace. Nothing is written to
disk here; applying the edits is up to the caller.
"""

import asyncio
import re
import sys
from typing import Dict, List, Optional, Sequence, Tuple, Union

from . import parsing
from .accessor import Accessor, Getter, Setter
from .cache_manager import SymbolCache
from .codegen_config import CodegenConfig
from .csymbol import CSymbol, SubSymbol
from .file_scanner import FileScanner
from .function_signature import FunctionSignature
from .operators import (Operand, Operator, StreamOutputOperator, equality_operators,
                        relational_operators)
from .proposed_position import ProposedPosition
from .source_document import SourceDocument
from .symbol_provider import SymbolProvider
from .text_document import Position, Range, TextDocument, TextEdit, path_for, uri_for
from .utility import AccessLevel, file_extension

# Something generated inside a class: a getter, a setter or an operator.
MemberFunction = Union[Accessor, Operator]

OPERATOR_KINDS = ("equality", "relational", "stream_output")
MOVE_DESTINATIONS = ("matching_source_file", "class")


class CodeActionError(Exception):
    """A code action cannot be performed; the message is meant for the user"""


class WorkspaceEdit:
    """Text edits grouped by the uri of the document they apply to"""

    def __init__(self):
        self.changes: Dict[str, List[TextEdit]] = {}

    def insert(self, uri: str, position: Position, text: str):
        self.replace(uri, Range(position, position), text)

    def replace(self, uri: str, range: Range, text: str):
        self.changes.setdefault(uri, []).append(TextEdit(range, text))

    def delete(self, uri: str, range: Range):
        self.replace(uri, range, "")

    def edits(self, uri: str) -> List[TextEdit]:
        return self.changes.get(uri, [])

    @property
    def uris(self) -> List[str]:
        return list(self.changes)

    def __len__(self) -> int:
        return sum(len(edits) for edits in self.changes.values())

    def apply(self, document: TextDocument) -> TextDocument:
        """The document with this edit's changes for it applied"""
        return document.apply_edits(self.edits(document.uri))

    def to_dict(self):
        return {uri: [edit.to_dict() for edit in edits] for uri, edits in self.changes.items()}


def _remove_trailing_specifier(text: str, masked: str, specifier: str) -> Tuple[str, str]:
    match = re.search(r"(?<!\n)[ \t]*\b" + specifier + r"\b", masked)
    if not match:
        return text, masked
    return (text[:match.start()] + text[match.end():],
            masked[:match.start()] + masked[match.end():])


def _deletion_range(definition: CSymbol) -> Range:
    """A definition with its leading comment, plus an empty line on either side of it"""
    document = definition.document
    deletion_range = definition.range_with_leading_comment()
    previous_line = deletion_range.start.line - 1
    if previous_line >= 0 and document.line_at(previous_line).is_empty_or_whitespace:
        deletion_range = deletion_range.union(document.line_at(previous_line).range)
    next_line = deletion_range.end.line + 1
    if next_line < document.line_count and document.line_at(next_line).is_empty_or_whitespace:
        deletion_range = deletion_range.union(document.line_at(next_line).range)
    return deletion_range


class CodeActions:
    """Generates and moves function definitions and declarations; adds accessors, operators, guards and includes"""

    def __init__(self, provider: SymbolProvider, config: Optional[CodegenConfig] = None,
                 cache: Optional[SymbolCache] = None, scanner: Optional[FileScanner] = None):
        self.provider = provider
        self.config = config if config is not None else CodegenConfig.from_dict({})
        self.cache = cache
        self.scanner = scanner

    async def open_document(self, uri: str) -> SourceDocument:
        document = await self.provider.open_document(uri)
        return SourceDocument(document, self.provider, self.cache, self.config)

    async def matching_uri(self, uri: str) -> Optional[str]:
        """Uri of the matching header/source file, if there is one"""
        if self.scanner is None:
            return None
        loop = asyncio.get_running_loop()
        match = await loop.run_in_executor(None, self.scanner.find_matching_file, path_for(uri))
        return uri_for(match) if match is not None else None

    @property
    def _curly_separator_eol(self) -> bool:
        return self.config.get_curly_brace_format() == "new_line"

    # Definitions

    async def add_definition(self, uri: str, position: Position, in_current_file: bool = False,
                             initializers: Optional[Sequence[str]] = None) -> WorkspaceEdit:
        """
        Definition skeleton for the function declared at position, in the matching
        source file (or in this file when in_current_file is set). initializers
        names the base classes and member variables a constructor initializes;
        const and reference members are always added.
        """
        source_doc = await self.open_document(uri)
        if in_current_file:
            declaration = await source_doc.get_symbol(position)
            target_uri = uri
        else:
            if not source_doc.is_header():
                raise CodeActionError("This file is not a header file.")
            target_uri, declaration = await asyncio.gather(self.matching_uri(uri), source_doc.get_symbol(position))

        if declaration is None or not declaration.is_function_declaration():
            raise CodeActionError("No function declaration detected.")
        if target_uri is None:
            raise CodeActionError("No matching source file was found.")
        if not in_current_file:
            self._check_can_define_elsewhere(declaration)

        if await declaration.find_definition() is not None:
            raise CodeActionError("A definition for this function already exists.")

        target_doc = await source_doc.open(target_uri)
        edit = WorkspaceEdit()
        await self._add_definition_to_edit(declaration, source_doc, target_doc, edit, initializers)
        return edit

    @staticmethod
    def _check_can_define_elsewhere(declaration: CSymbol, allow_inline: bool = False):
        if declaration.is_inline() and not allow_inline:
            raise CodeActionError("Inline functions must be defined in the file that they are declared.")
        if declaration.is_constexpr():
            raise CodeActionError("Constexpr functions must be defined in the file that they are declared.")
        if declaration.is_consteval():
            raise CodeActionError("Consteval functions must be defined in the file that they are declared.")
        if declaration.has_unspecialized_template():
            raise CodeActionError("Unspecialized templates must be defined in the file that they are declared.")

    async def add_definitions(self, uri: str, position: Optional[Position] = None, in_current_file: bool = False,
                              names: Optional[Sequence[str]] = None) -> WorkspaceEdit:
        """
        Definitions for every undefined function declared in the file, or in the
        class at position when one is given. names restricts the functions to
        those with the given names.
        """
        source_doc = await self.open_document(uri)
        declarations = [function for function in await source_doc.all_functions()
                        if function.is_function_declaration()]

        if position is not None:
            scope = await source_doc.get_symbol(position)
            if scope is not None and not scope.is_class_or_struct():
                scope = scope.parent
            if scope is None or not scope.is_class_or_struct():
                raise CodeActionError("No class or struct detected.")
            declarations = [declaration for declaration in declarations if scope.range.contains(declaration.range)]
        if names is not None:
            declarations = [declaration for declaration in declarations if declaration.name in names]

        definitions = await asyncio.gather(*(declaration.find_definition() for declaration in declarations))
        undefined = [declaration for declaration, definition in zip(declarations, definitions) if definition is None]
        if not undefined:
            raise CodeActionError("No undefined functions found in this file.")

        if in_current_file or any(declaration.requires_visible_definition() for declaration in undefined):
            target_uri = uri
        else:
            target_uri = await self.matching_uri(uri)
            if target_uri is None:
                raise CodeActionError("No matching source file was found.")

        target_doc = await source_doc.open(target_uri)
        print(f"Adding {len(undefined)} definitions to {target_doc.file_name}", file=sys.stderr)

        edit = WorkspaceEdit()
        for declaration in undefined:
            await self._add_definition_to_edit(declaration, source_doc, target_doc, edit)
        return edit

    async def _add_definition_to_edit(self, declaration: CSymbol, source_doc: SourceDocument,
                                      target_doc: SourceDocument, edit: WorkspaceEdit,
                                      initializers: Optional[Sequence[str]] = None):
        position = await source_doc.find_smart_position_for_function(declaration, target_doc)
        skeleton = await self._function_skeleton(declaration, target_doc, position, initializers)
        edit.insert(target_doc.uri, position.position, skeleton)

    async def _function_skeleton(self, declaration: CSymbol, target_doc: SourceDocument,
                                 position: ProposedPosition, initializers: Optional[Sequence[str]]) -> str:
        eol = target_doc.eol
        indentation = self.config.get_indentation()
        definition = await declaration.new_function_definition(target_doc, position.position)
        initializer_list = self._initializer_list(self._resolve_initializers(declaration, initializers), eol)

        curly_brace_format = self.config.get_curly_brace_format()
        if curly_brace_format == "new_line" or (curly_brace_format == "new_line_ctor_dtor"
                                                 and (declaration.is_constructor() or declaration.is_destructor())):
            skeleton = definition + initializer_list + eol + "{" + eol + indentation + eol + "}"
        else:
            skeleton = definition + initializer_list + " {" + eol + indentation + eol + "}"

        return target_doc.format_text_to_insert(skeleton, position)

    @staticmethod
    def _resolve_initializers(declaration: CSymbol, names: Optional[Sequence[str]]) -> List[Operand]:
        parent_class = declaration.parent
        if not declaration.is_constructor() or parent_class is None or not parent_class.is_class_or_struct():
            return []
        names = list(names or [])

        if parent_class.name in names:
            if len(names) > 1:
                raise CodeActionError("A delegating constructor cannot be used with any other initializers.")
            return [parent_class]

        candidates: Dict[str, Operand] = {}
        for base_class in parent_class.base_classes():
            candidates[base_class.name] = base_class
            candidates[base_class.text()] = base_class
        for member in parent_class.non_static_member_variables():
            candidates[member.name] = CSymbol(member, parent_class.document)

        selected: List[Operand] = []
        for name in names:
            if name not in candidates:
                raise CodeActionError(f"'{name}' is not a base class or member variable of {parent_class.name}.")
            if candidates[name] not in selected:
                selected.append(candidates[name])

        for member in parent_class.member_variables_that_require_initialization():
            if not any(initializer.name == member.name for initializer in selected):
                selected.append(CSymbol(member, parent_class.document))

        selected.sort(key=lambda initializer: initializer.range.start)
        return selected

    def _initializer_list(self, initializers: List[Operand], eol: str) -> str:
        if not initializers:
            return ""
        indentation = self.config.get_indentation()
        body = "{}" if self.config.get_braced_initialization() else "()"
        separator = "," + eol + indentation + "  "
        return eol + indentation + ": " + separator.join(initializer.name + body for initializer in initializers)

    # Declarations

    @staticmethod
    def _access_level(access: str) -> AccessLevel:
        try:
            return AccessLevel(access)
        except ValueError:
            raise CodeActionError(f"Unknown access level '{access}'.")

    async def add_declaration(self, uri: str, position: Position, access: str = "public") -> WorkspaceEdit:
        """
        Declaration for the function defined at position: inside its class when it
        is a member function, otherwise in the matching header (or this file).
        """
        definition_doc = await self.open_document(uri)
        matching_uri, definition = await asyncio.gather(self.matching_uri(uri), definition_doc.get_symbol(position))
        if definition is None or not definition.is_function_definition():
            raise CodeActionError("No function definition detected.")

        parent_class = await definition.get_parent_class()
        if parent_class is not None and definition.parent is not None and definition.parent.is_class_or_struct():
            raise CodeActionError("A declaration for this function already exists.")

        if parent_class is not None:
            target_doc = parent_class.document
        elif matching_uri is not None and self.config.is_header_extension(file_extension(path_for(matching_uri))):
            target_doc = await definition_doc.open(matching_uri)
        else:
            target_doc = definition_doc

        existing_declaration = await definition.find_declaration()
        if existing_declaration is not None and path_for(existing_declaration.uri) == target_doc.file_path:
            existing_symbol = await target_doc.get_symbol(existing_declaration.range.start)
            if existing_symbol is not None and existing_symbol.matches(definition):
                raise CodeActionError("A declaration for this function already exists.")

        access_level = self._access_level(access) if parent_class is not None else None

        target_pos = await definition_doc.find_smart_position_for_function(
            definition, target_doc, parent_class, access_level)
        declaration = await definition.new_function_declaration_for_target(target_doc, target_pos.position)
        if access_level is not None and not parent_class.position_has_access(target_pos.position, access_level):
            declaration = access_level.specifier() + target_doc.eol + declaration

        edit = WorkspaceEdit()
        edit.insert(target_doc.uri, target_pos.position, target_doc.format_text_to_insert(declaration, target_pos))
        return edit

    # Getters and setters

    async def _member_variable_at(self, uri: str, position: Position) -> Tuple[SourceDocument, CSymbol]:
        class_doc = await self.open_document(uri)
        if not class_doc.is_header():
            raise CodeActionError("This file is not a header file.")
        symbol = await class_doc.get_symbol(position)
        if symbol is None or not symbol.is_member_variable():
            raise CodeActionError("No member variable detected.")
        return class_doc, symbol

    async def generate_getter_setter(self, uri: str, position: Position) -> WorkspaceEdit:
        class_doc, member = await self._member_variable_at(uri, position)
        parent_class = member.parent
        case_style = self.config.get_accessor_case_style()
        getter = parent_class.find_getter_for(member, case_style)
        setter = parent_class.find_setter_for(member, case_style)

        if member.is_const():
            if getter is not None:
                raise CodeActionError("Const variables cannot be assigned after initialization. "
                                      "There already exists a getter.")
            print("Const variables cannot be assigned after initialization. Only generating a getter.",
                  file=sys.stderr)
            return await self._generate_getter_for(member, class_doc)
        if getter is not None and setter is not None:
            raise CodeActionError("There already exists a getter and setter.")
        if getter is not None:
            print("There already exists a getter. Only generating a setter.", file=sys.stderr)
            return await self._generate_setter_for(member, class_doc)
        if setter is not None:
            print("There already exists a setter. Only generating a getter.", file=sys.stderr)
            return await self._generate_getter_for(member, class_doc)

        getter_position = class_doc.find_position_for_new_member_function(parent_class, AccessLevel.public)
        setter_position = ProposedPosition(getter_position.position, relative_to=getter_position.relative_to,
                                           after=True, next_to=True, empty_scope=getter_position.empty_scope,
                                           in_namespace=getter_position.in_namespace)

        edit = WorkspaceEdit()
        await self._add_member_function(Getter(member), getter_position, class_doc,
                                        self.config.get_getter_definition_location(), edit)
        await self._add_member_function(Setter(member), setter_position, class_doc,
                                        self.config.get_setter_definition_location(), edit,
                                        skip_access_check=True)
        return edit

    async def generate_getter(self, uri: str, position: Position) -> WorkspaceEdit:
        class_doc, member = await self._member_variable_at(uri, position)
        return await self._generate_getter_for(member, class_doc)

    async def generate_setter(self, uri: str, position: Position) -> WorkspaceEdit:
        class_doc, member = await self._member_variable_at(uri, position)
        return await self._generate_setter_for(member, class_doc)

    async def _generate_getter_for(self, member: CSymbol, class_doc: SourceDocument) -> WorkspaceEdit:
        parent_class = member.parent
        case_style = self.config.get_accessor_case_style()
        if parent_class.find_getter_for(member, case_style) is not None:
            raise CodeActionError("There already exists a getter.")

        # A getter goes next to an existing setter, and vice versa.
        position = class_doc.find_position_for_new_member_function(
            parent_class, AccessLevel.public, member.setter_name(case_style), member)
        edit = WorkspaceEdit()
        await self._add_member_function(Getter(member), position, class_doc,
                                        self.config.get_getter_definition_location(), edit)
        return edit

    async def _generate_setter_for(self, member: CSymbol, class_doc: SourceDocument) -> WorkspaceEdit:
        if member.is_const():
            raise CodeActionError("Const variables cannot be assigned after initialization.")
        parent_class = member.parent
        case_style = self.config.get_accessor_case_style()
        if parent_class.find_setter_for(member, case_style) is not None:
            raise CodeActionError("There already exists a setter.")

        position = class_doc.find_position_for_new_member_function(
            parent_class, AccessLevel.public, member.getter_name(case_style), member)
        edit = WorkspaceEdit()
        await self._add_member_function(Setter(member), position, class_doc,
                                        self.config.get_setter_definition_location(), edit)
        return edit

    # Operators

    async def _class_at(self, uri: str, position: Position) -> Tuple[SourceDocument, CSymbol]:
        class_doc = await self.open_document(uri)
        symbol = await class_doc.get_symbol(position)
        if symbol is not None and not symbol.is_class_or_struct():
            symbol = symbol.parent
        if symbol is None or not symbol.is_class_or_struct():
            raise CodeActionError("No class or struct detected.")
        return class_doc, symbol

    @staticmethod
    def _select_operands(parent_class: CSymbol, names: Optional[Sequence[str]]) -> List[Operand]:
        operands: List[Operand] = list(parent_class.base_classes())
        operands.extend(CSymbol(member, parent_class.document) for member in parent_class.non_static_member_variables())
        if names is None:
            return operands

        known = {operand.name for operand in operands}
        unknown = [name for name in names if name not in known]
        if unknown:
            raise CodeActionError(f"Not a base class or member variable of {parent_class.name}: {', '.join(unknown)}")
        return [operand for operand in operands if operand.name in names]

    async def generate_equality_operators(self, uri: str, position: Position,
                                          operand_names: Optional[Sequence[str]] = None,
                                          definition_location: str = "inline") -> WorkspaceEdit:
        class_doc, parent_class = await self._class_at(uri, position)
        operators = equality_operators(parent_class, self._select_operands(parent_class, operand_names))
        return await self._add_operators(operators, parent_class, class_doc, definition_location)

    async def generate_relational_operators(self, uri: str, position: Position,
                                            operand_names: Optional[Sequence[str]] = None,
                                            definition_location: str = "inline") -> WorkspaceEdit:
        class_doc, parent_class = await self._class_at(uri, position)
        operators = relational_operators(parent_class, self._select_operands(parent_class, operand_names))
        return await self._add_operators(operators, parent_class, class_doc, definition_location)

    async def generate_stream_output_operator(self, uri: str, position: Position,
                                              operand_names: Optional[Sequence[str]] = None,
                                              definition_location: str = "inline") -> WorkspaceEdit:
        class_doc, parent_class = await self._class_at(uri, position)
        operator = StreamOutputOperator(parent_class, self._select_operands(parent_class, operand_names))
        edit = await self._add_operators([operator], parent_class, class_doc, definition_location)

        if not any(file in ("ostream", "iostream") for file in class_doc.included_files()):
            edit.insert(class_doc.uri, class_doc.find_position_for_new_include(),
                        "#include <ostream>" + class_doc.eol)
        return edit

    async def generate_operators(self, kind: str, uri: str, position: Position,
                                 operand_names: Optional[Sequence[str]] = None,
                                 definition_location: str = "inline") -> WorkspaceEdit:
        if kind == "equality":
            return await self.generate_equality_operators(uri, position, operand_names, definition_location)
        elif kind == "relational":
            return await self.generate_relational_operators(uri, position, operand_names, definition_location)
        elif kind == "stream_output":
            return await self.generate_stream_output_operator(uri, position, operand_names, definition_location)
        raise CodeActionError(f"Unknown operator kind '{kind}'. Expected one of: {', '.join(OPERATOR_KINDS)}")

    async def _add_operators(self, operators: List[Operator], parent_class: CSymbol, class_doc: SourceDocument,
                             definition_location: str) -> WorkspaceEdit:
        if definition_location not in CodegenConfig.DEFINITION_LOCATIONS:
            raise CodeActionError(f"Unknown definition location '{definition_location}'.")

        first_position = class_doc.find_position_for_new_member_function(parent_class, AccessLevel.public)
        next_position = ProposedPosition(first_position.position, relative_to=first_position.relative_to,
                                         after=True, next_to=True, empty_scope=first_position.empty_scope,
                                         in_namespace=first_position.in_namespace)

        edit = WorkspaceEdit()
        for i, operator in enumerate(operators):
            position = first_position if i == 0 else next_position
            await self._add_member_function(operator, position, class_doc, definition_location, edit,
                                            skip_access_check=i > 0)
        return edit

    # Placement shared by accessors and operators

    async def _add_member_function(self, function: MemberFunction, declaration_pos: ProposedPosition,
                                   class_doc: SourceDocument, location: str, edit: WorkspaceEdit,
                                   skip_access_check: bool = False):
        parent_class = function.parent
        eol = class_doc.eol
        access_prefix = ""
        if not skip_access_check and not parent_class.position_has_access(declaration_pos.position, AccessLevel.public):
            access_prefix = AccessLevel.public.specifier() + eol

        if location == "inline":
            if "\n" in function.body:
                curly_separator = eol if self._curly_separator_eol else " "
                text = await function.definition(class_doc, declaration_pos.position, curly_separator)
            else:
                text = function.declaration + " { " + function.body + " }"
            edit.insert(class_doc.uri, declaration_pos.position,
                        class_doc.format_text_to_insert(access_prefix + text, declaration_pos))
            return

        target_doc = await self._definition_target(function, class_doc, location)
        curly_separator = target_doc.eol if self._curly_separator_eol else " "
        definition_pos = await self._definition_position(function, declaration_pos, class_doc, target_doc)
        definition = await function.definition(target_doc, definition_pos.position, curly_separator)

        edit.insert(class_doc.uri, declaration_pos.position,
                    class_doc.format_text_to_insert(access_prefix + function.declaration + ";", declaration_pos))
        edit.insert(target_doc.uri, definition_pos.position, target_doc.format_text_to_insert(definition, definition_pos))

    async def _definition_target(self, function: MemberFunction, class_doc: SourceDocument,
                                 location: str) -> SourceDocument:
        if location == "source_file" and class_doc.is_header() and not function.parent.has_unspecialized_template():
            matching_uri = await self.matching_uri(class_doc.uri)
            if matching_uri is not None:
                return await class_doc.open(matching_uri)
        return class_doc

    @staticmethod
    async def _definition_position(function: MemberFunction, declaration_pos: ProposedPosition,
                                   class_doc: SourceDocument, target_doc: SourceDocument) -> ProposedPosition:
        """Position for the out-of-class definition of a function to be declared at declaration_pos"""
        parent_class = function.parent
        anchor = None
        if declaration_pos.relative_to is not None:
            for child in parent_class.children:
                member = CSymbol(child, class_doc)
                if member.full_range() == declaration_pos.relative_to:
                    anchor = member
                    break

        if anchor is not None and anchor.is_function():
            next_to_anchor = "after" if declaration_pos.after else "before" if declaration_pos.before else None
            return await class_doc.find_smart_position_for_function(anchor, target_doc,
                                                                    next_to_anchor=next_to_anchor)

        if isinstance(function, Accessor):
            anchor = function.member_variable
        else:
            anchor = parent_class
        return await class_doc.find_smart_position_for_function(anchor, target_doc)

    # Signatures

    async def update_signature(self, uri: str, position: Position) -> WorkspaceEdit:
        """Bring the linked declaration/definition of the function at position in line with its signature"""
        source_doc = await self.open_document(uri)
        current_function = await source_doc.get_symbol(position)
        if current_function is None or not current_function.is_function():
            raise CodeActionError("No function detected.")

        is_declaration = current_function.is_function_declaration()
        linked_kind = "definition" if is_declaration else "declaration"
        if is_declaration:
            linked_location = await current_function.find_definition()
        else:
            linked_location = await current_function.find_declaration()
        if linked_location is None:
            raise CodeActionError(f"The linked {linked_kind} could not be found.")

        linked_doc = await source_doc.open(linked_location.uri)
        linked_function = await linked_doc.get_symbol(linked_location.range.start)
        if linked_function is None or linked_function.name != current_function.name \
                or not (linked_function.is_function_definition() if is_declaration
                        else linked_function.is_function_declaration()):
            raise CodeActionError(f"The linked {linked_kind} could not be found.")

        current_sig = FunctionSignature(current_function)
        linked_sig = FunctionSignature(linked_function)

        edit = WorkspaceEdit()
        self._update_return_type(current_sig, linked_sig, linked_doc, edit)
        self._update_parameters(current_sig, linked_sig, linked_doc, edit)
        self._update_specifiers(current_sig, linked_sig, linked_doc, edit)
        if not len(edit):
            print(f"Signature of {current_function.name} already matches its {linked_kind}", file=sys.stderr)
        return edit

    @staticmethod
    def _update_return_type(current_sig: FunctionSignature, linked_sig: FunctionSignature,
                            linked_doc: SourceDocument, edit: WorkspaceEdit):
        if current_sig.normalized_return_type == linked_sig.normalized_return_type:
            return
        end = linked_sig.return_type_range.end
        next_char = linked_doc.get_text(Range(end, end.translate(0, 1)))
        new_return_type = current_sig.return_type
        if re.search(r"\w$", new_return_type) and re.match(r"\w", next_char):
            new_return_type += " "
        edit.replace(linked_doc.uri, linked_sig.return_type_range, new_return_type)

    @staticmethod
    def _update_parameters(current_sig: FunctionSignature, linked_sig: FunctionSignature,
                           linked_doc: SourceDocument, edit: WorkspaceEdit):
        if current_sig.parameters.types_are_equal(linked_sig.parameters):
            return

        declarations = []
        for i, parameter in enumerate(current_sig.parameters):
            text = parameter.declaration()
            if not linked_sig.is_definition:
                # Default arguments stay with the declaration.
                default_value = parameter.default_value
                if not default_value and i < len(linked_sig.parameters) \
                        and linked_sig.parameters[i].normalized_type == parameter.normalized_type:
                    default_value = linked_sig.parameters[i].default_value
                if default_value:
                    text += " = " + default_value
            declarations.append(text)
        edit.replace(linked_doc.uri, linked_sig.parameters.range, ", ".join(declarations))

    @staticmethod
    def _update_specifiers(current_sig: FunctionSignature, linked_sig: FunctionSignature,
                           linked_doc: SourceDocument, edit: WorkspaceEdit):
        declaration = parsing.mask_comments(linked_doc.get_text(linked_sig.range))
        start_offset = linked_doc.offset_at(linked_sig.range.start)

        def remove_leading_specifier(pattern: str):
            match = re.search(pattern, declaration)
            if match:
                edit.delete(linked_doc.uri, linked_doc.range_at(start_offset + match.start(),
                                                                start_offset + match.end()))

        if current_sig.is_constexpr and not linked_sig.is_constexpr:
            edit.insert(linked_doc.uri, linked_sig.range.start, "constexpr ")
        elif not current_sig.is_constexpr and linked_sig.is_constexpr:
            remove_leading_specifier(r"\bconstexpr\b[ \t]*")

        if current_sig.is_consteval and not linked_sig.is_consteval:
            edit.insert(linked_doc.uri, linked_sig.range.start, "consteval ")
        elif not current_sig.is_consteval and linked_sig.is_consteval:
            remove_leading_specifier(r"\bconsteval\b[ \t]*")

        original = linked_doc.get_text(linked_sig.trailing_specifier_range)
        trailing = original
        masked = parsing.mask_comments(trailing)
        masked = parsing.mask_raw_string_literals(masked)
        masked = parsing.mask_quotes(masked)
        masked = parsing.mask_attributes(masked)
        masked = parsing.mask_parentheses(masked)

        for specifier, wanted, present in (("const", current_sig.is_const, linked_sig.is_const),
                                           ("volatile", current_sig.is_volatile, linked_sig.is_volatile)):
            if wanted and not present:
                text = f" {specifier} " if re.match(r"\w", trailing) else f" {specifier}"
                trailing = text + trailing
                masked = text + masked
            elif present and not wanted:
                trailing, masked = _remove_trailing_specifier(trailing, masked, specifier)

        if current_sig.ref_qualifier != linked_sig.ref_qualifier:
            if linked_sig.ref_qualifier:
                index = masked.find(linked_sig.ref_qualifier)
                if index != -1:
                    end = index + len(linked_sig.ref_qualifier)
                    trailing = trailing[:index] + current_sig.ref_qualifier + trailing[end:]
                    masked = masked[:index] + current_sig.ref_qualifier + masked[end:]
            else:
                match = re.match(r"[\s/*]*(const|volatile)([\s/*]*(const|volatile))?", masked)
                index = match.end() if match else 0
                trailing = trailing[:index] + " " + current_sig.ref_qualifier + trailing[index:]
                masked = masked[:index] + " " + current_sig.ref_qualifier + masked[index:]

        if current_sig.normalized_noexcept != linked_sig.normalized_noexcept:
            if not linked_sig.normalized_noexcept:
                # The whitespace before a trailing return type stays after noexcept.
                specifiers = trailing.rstrip()
                trailing = specifiers + " " + current_sig.noexcept + trailing[len(specifiers):]
            else:
                match = re.search(r"(?<!\n)([ \t]*)\bnoexcept\b(\s*\(\s*\))?", masked)
                if match:
                    if current_sig.noexcept:
                        trailing = (trailing[:match.start() + len(match.group(1))] + current_sig.noexcept
                                    + trailing[match.end():])
                    else:
                        trailing = trailing[:match.start()] + trailing[match.end():]

        if trailing != original:
            edit.replace(linked_doc.uri, linked_sig.trailing_specifier_range, trailing)

    # Moving definitions

    async def _linked_declaration(self, definition: CSymbol) -> Optional[CSymbol]:
        location = await definition.find_declaration()
        if location is None:
            return None
        declaration_doc = await definition.document.open(location.uri)
        declaration = await declaration_doc.get_symbol(location.range.start)
        if declaration is None or declaration.name != definition.name or not declaration.is_function_declaration():
            return None
        return declaration

    def _moved_range(self, definition: CSymbol) -> Range:
        if self.config.get_always_move_comments():
            return definition.range_with_leading_comment()
        return definition.full_range()

    async def move_definition_to_matching_source_file(self, uri: str, position: Position) -> WorkspaceEdit:
        """
        Move the function definition at position to the matching header/source file.
        A definition in a header that has no separate declaration leaves one behind.
        """
        definition_doc = await self.open_document(uri)
        matching_uri, definition = await asyncio.gather(self.matching_uri(uri), definition_doc.get_symbol(position))
        if definition is None or not definition.is_function_definition():
            raise CodeActionError("No function definition detected.")
        if matching_uri is None:
            raise CodeActionError("No matching source file was found.")
        self._check_can_define_elsewhere(definition, allow_inline=True)

        target_doc = await definition_doc.open(matching_uri)
        declaration = await self._linked_declaration(definition)
        if declaration is not None:
            target_pos = await declaration.document.find_smart_position_for_function(declaration, target_doc)
        else:
            target_pos = await definition_doc.find_smart_position_for_function(definition, target_doc)

        text = await definition.definition_for_target(target_doc, target_pos.position, declaration,
                                                      check_for_inline=True)
        edit = WorkspaceEdit()
        edit.insert(target_doc.uri, target_pos.position, target_doc.format_text_to_insert(text, target_pos))
        if declaration is None and definition_doc.is_header():
            edit.replace(uri, self._moved_range(definition), definition.new_function_declaration())
        else:
            edit.delete(uri, _deletion_range(definition))
        return edit

    async def move_definition_into_or_out_of_class(self, uri: str, position: Position,
                                                   access: str = "public") -> WorkspaceEdit:
        """
        Move a member function definition out of its class body (leaving a declaration),
        or move an out-of-class definition into its class: merged with the declaration
        when there is one, otherwise placed under the given access level.
        """
        definition_doc = await self.open_document(uri)
        definition = await definition_doc.get_symbol(position)
        if definition is None or not definition.is_function_definition():
            raise CodeActionError("No function definition detected.")

        edit = WorkspaceEdit()
        parent = definition.parent
        if parent is not None and parent.is_class_or_struct():
            target_pos = await definition_doc.find_smart_position_for_function(definition)
            text = await definition.definition_for_target(definition_doc, target_pos.position, check_for_inline=True)
            edit.insert(uri, target_pos.position, definition_doc.format_text_to_insert(text, target_pos))
            edit.replace(uri, self._moved_range(definition), definition.new_function_declaration())
            return edit

        declaration = await self._linked_declaration(definition)
        if declaration is not None and declaration.parent is not None and declaration.parent.is_class_or_struct():
            edit.replace(declaration.uri, declaration.full_range(), declaration.combine_definition(definition))
            edit.delete(uri, _deletion_range(definition))
            return edit

        parent_class = await definition.get_parent_class()
        if parent_class is None:
            raise CodeActionError("Function is not a class member function.")
        access_level = self._access_level(access)
        class_doc = parent_class.document

        target_pos = await definition_doc.find_smart_position_for_function(definition, class_doc, parent_class,
                                                                           access_level)
        text = await definition.definition_for_target(class_doc, target_pos.position)
        if not parent_class.position_has_access(target_pos.position, access_level):
            text = access_level.specifier() + class_doc.eol + text
        edit.insert(class_doc.uri, target_pos.position, class_doc.format_text_to_insert(text, target_pos))
        edit.delete(uri, _deletion_range(definition))
        return edit

    async def move_definition(self, destination: str, uri: str, position: Position,
                              access: str = "public") -> WorkspaceEdit:
        if destination == "matching_source_file":
            return await self.move_definition_to_matching_source_file(uri, position)
        elif destination == "class":
            return await self.move_definition_into_or_out_of_class(uri, position, access)
        raise CodeActionError(f"Unknown destination '{destination}'. "
                              f"Expected one of: {', '.join(MOVE_DESTINATIONS)}")

    # Header guards

    async def add_header_guard(self, uri: str) -> WorkspaceEdit:
        header_doc = await self.open_document(uri)
        if not header_doc.is_header():
            raise CodeActionError("This file is not a header file.")
        if header_doc.has_header_guard():
            raise CodeActionError("This file already has a header guard.")

        eol = header_doc.eol
        style = self.config.get_header_guard_style()
        header = ""
        footer = ""
        if style in ("pragma_once", "both"):
            header = "#pragma once" + eol
        if style in ("define", "both"):
            define = header_doc.header_guard_define()
            header += "#ifndef " + define + eol + "#define " + define + eol
            footer = "#endif // " + define + eol

        position = header_doc.position_after_header_comment()
        if position.after:
            header = eol + eol + header
        elif position.before:
            header += eol

        edit = WorkspaceEdit()
        edit.insert(uri, position.position, header)
        if footer:
            text = header_doc.text
            if not text.strip() or text.endswith(("\n", "\r")):
                footer = eol + footer
            else:
                footer = eol + eol + footer
            edit.insert(uri, header_doc.end_position(), footer)
        return edit

    # Includes

    async def add_include(self, uri: str, include: str) -> WorkspaceEdit:
        """
        Add an include directive next to the existing includes of its kind. include
        is a full directive ('#include <vector>') or just the file ('"widget.h"').
        """
        document = await self.open_document(uri)
        directive = include.strip()
        if not directive.startswith("#"):
            directive = "#include " + directive
        match = re.match(r"#\s*include\s*(<.+>|\".+\")$", directive)
        if not match:
            raise CodeActionError("This doesn't seem to be a valid include statement.")
        if match.group(1)[1:-1] in document.included_files():
            raise CodeActionError(f"{match.group(1)} is already included.")

        position = document.find_position_for_new_include(system=match.group(1).startswith("<"))
        edit = WorkspaceEdit()
        edit.insert(uri, position, directive + document.eol)
        return edit

"""
Structural model of a function's signature, recovered from the text of a
declaration or definition so the two can be compared.
"""

import re
from typing import List, Optional

from . import parsing
from .csymbol import CSymbol
from .parameter_list import ParameterList, parse_parameter_list
from .text_document import Range


class SignatureError(ValueError):
    """Raised when a signature is requested for something that is not a function"""


def _ref_qualifier(masked_trailing_specifiers: str) -> str:
    if "&&" in masked_trailing_specifiers:
        return "&&"
    if "&" in masked_trailing_specifiers:
        return "&"
    return ""


class FunctionSignature:
    """Return type, parameters and qualifiers of a function symbol"""

    def __init__(self, function_symbol: CSymbol):
        if not function_symbol.is_function():
            raise SignatureError(f"Cannot construct a signature from non-function symbol '{function_symbol.name}'")

        self.name = function_symbol.name
        self.is_definition = function_symbol.is_function_definition()
        self.uri = function_symbol.uri
        self._normalized_return_type: Optional[str] = None
        self._normalized_noexcept: Optional[str] = None

        document = function_symbol.document
        declaration_start = function_symbol.declaration_start()
        declaration_start_offset = document.offset_at(declaration_start)
        declaration_end = function_symbol.declaration_end()
        self.range = Range(declaration_start, declaration_end)

        declaration = document.get_text(self.range)
        masked = parsing.mask_parentheses(parsing.mask_non_source_text(declaration))

        name_start_index = document.offset_at(function_symbol.selection_range.start) - declaration_start_offset
        param_start_index = masked.find("(", name_start_index)
        param_end_index = masked.find(")", name_start_index)
        if param_start_index == -1 or param_end_index == -1:
            raise SignatureError(f"Cannot find the parameters of function '{function_symbol.name}'")

        self.parameters: ParameterList = parse_parameter_list(
            declaration[param_start_index + 1:param_end_index],
            declaration_start_offset + param_start_index + 1, document)

        self.is_constexpr = function_symbol.is_constexpr()
        self.is_consteval = function_symbol.is_consteval()

        trailing_start_offset = declaration_start_offset + param_end_index + 1
        trailing_text = declaration[param_end_index + 1:]
        masked_trailing_text = masked[param_end_index + 1:]
        self.trailing_specifier_range = Range(document.position_at(trailing_start_offset), declaration_end)

        noexcept_match = re.search(r"\bnoexcept\b(\s*\(\s*\))?", masked_trailing_text)
        self.noexcept = trailing_text[noexcept_match.start():noexcept_match.end()] if noexcept_match else ""

        if function_symbol.is_constructor() or function_symbol.is_destructor():
            self.return_type = ""
            self.return_type_range = function_symbol.selection_range
            self.is_const = False
            self.is_volatile = False
            self.ref_qualifier = ""
            return

        trailing_return_match = re.search(r"(->\s*)(.+)(?=\s*$)", masked_trailing_text, re.DOTALL)
        if trailing_return_match:
            masked_specifiers = masked_trailing_text[:trailing_return_match.start()]
            self.is_const = re.search(r"\bconst\b", masked_specifiers) is not None
            self.is_volatile = re.search(r"\bvolatile\b", masked_specifiers) is not None
            self.ref_qualifier = _ref_qualifier(masked_specifiers)

            specifier_end_offset = trailing_start_offset + trailing_return_match.start()
            self.trailing_specifier_range = Range(self.trailing_specifier_range.start,
                                                  document.position_at(specifier_end_offset))

            arrow_length = len(trailing_return_match.group(1))
            self.return_type = parsing.get_trailing_return_type(
                trailing_text[trailing_return_match.start() + arrow_length:])
            return_start_offset = specifier_end_offset + arrow_length
            self.return_type_range = document.range_at(return_start_offset,
                                                       return_start_offset + len(self.return_type))
        else:
            self.is_const = re.search(r"\bconst\b", masked_trailing_text) is not None
            self.is_volatile = re.search(r"\bvolatile\b", masked_trailing_text) is not None
            self.ref_qualifier = _ref_qualifier(masked_trailing_text)

            leading_text = declaration[:document.offset_at(function_symbol.scope_string_start()) - declaration_start_offset]
            leading_text = leading_text.rstrip()
            self.return_type = parsing.get_leading_return_type(leading_text).rstrip()
            return_start_offset = declaration_start_offset + len(leading_text) - len(self.return_type)
            self.return_type_range = document.range_at(return_start_offset,
                                                       return_start_offset + len(self.return_type))

    def __repr__(self):
        return f"FunctionSignature({self.name!r}, return_type={self.return_type!r}, parameters={self.parameters!r})"

    @property
    def normalized_return_type(self) -> str:
        if self._normalized_return_type is None:
            self._normalized_return_type = parsing.normalize_source_text(self.return_type)
        return self._normalized_return_type

    @property
    def normalized_noexcept(self) -> str:
        if self._normalized_noexcept is None:
            self._normalized_noexcept = parsing.normalize_source_text(self.noexcept)
        return self._normalized_noexcept

    @property
    def has_trailing_return_type(self) -> bool:
        return self.return_type_range.start > self.parameters.range.end

    def equals(self, other: "FunctionSignature") -> bool:
        """True if the signatures are the same apart from formatting and parameter names"""
        return not self.differences(other)

    def __eq__(self, other):
        if not isinstance(other, FunctionSignature):
            return NotImplemented
        return self.equals(other)

    __hash__ = None

    def differences(self, other: "FunctionSignature") -> List[str]:
        """Names of the aspects in which other differs from this signature"""
        differences = []
        if self.normalized_return_type != other.normalized_return_type:
            differences.append("return_type")
        if not self.parameters.types_are_equal(other.parameters):
            differences.append("parameters")
        if self.is_constexpr != other.is_constexpr:
            differences.append("constexpr")
        if self.is_consteval != other.is_consteval:
            differences.append("consteval")
        if self.is_const != other.is_const:
            differences.append("const")
        if self.is_volatile != other.is_volatile:
            differences.append("volatile")
        if self.ref_qualifier != other.ref_qualifier:
            differences.append("ref_qualifier")
        if self.normalized_noexcept != other.normalized_noexcept:
            differences.append("noexcept")
        return differences

    def to_dict(self):
        return {
            "name": self.name,
            "return_type": self.return_type,
            "parameters": [parameter.raw for parameter in self.parameters],
            "is_constexpr": self.is_constexpr,
            "is_consteval": self.is_consteval,
            "is_const": self.is_const,
            "is_volatile": self.is_volatile,
            "ref_qualifier": self.ref_qualifier,
            "noexcept": self.noexcept,
        }

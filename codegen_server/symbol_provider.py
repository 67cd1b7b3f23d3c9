"""
Interface to the component that knows about symbols (a language server, libclang, ...)
and the policy for picking one location out of several candidates.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Union

from .symbol_info import SymbolInfo
from .text_document import Location, LocationLink, Range, TextDocument, path_for
from .utility import file_name_base


LocationResult = Union[Location, LocationLink]


class SymbolProvider(ABC):
    """Source of document symbols, definitions and declarations"""

    @abstractmethod
    async def document_symbols(self, uri: str) -> List[SymbolInfo]:
        """Top-level symbols of the document, with nested children"""

    @abstractmethod
    async def find_definitions(self, uri: str, position) -> List[LocationResult]:
        """Definitions of the symbol at position"""

    @abstractmethod
    async def find_declarations(self, uri: str, position) -> List[LocationResult]:
        """Declarations of the symbol at position"""

    @abstractmethod
    async def open_document(self, uri: str) -> TextDocument:
        """Current text of the document"""

    def is_in_workspace(self, uri: str) -> bool:
        return True


def make_location_list(results: Optional[Sequence[LocationResult]]) -> List[Location]:
    """Normalize a mix of Locations and LocationLinks to Locations"""
    if not results:
        return []

    locations = []
    for result in results:
        if isinstance(result, LocationLink):
            locations.append(Location(result.target_uri, result.target_range))
        else:
            locations.append(result)
    return locations


def _is_own_location(location: Location, uri: str, symbol_range: Range) -> bool:
    return path_for(location.uri) == path_for(uri) and symbol_range.contains(location.range)


def find_most_likely_result(provider: SymbolProvider, uri: str, symbol_range: Range,
                             candidates: Optional[Sequence[LocationResult]]) -> Optional[Location]:
    """
    Pick the location most likely to be "the" definition/declaration of a symbol.

    A single candidate is returned as is. Otherwise, candidates outside of the
    workspace are dropped and one in a file with the same base name as the
    symbol's file is preferred; failing that, the candidate whose base name
    contains (or is contained in) the symbol's base name with the smallest
    difference in length. The file base name heuristic can be fooled by
    several files sharing a base name in different directories.
    """
    locations = make_location_list(candidates)
    if not locations:
        return None
    if len(locations) == 1:
        return locations[0]

    this_base = file_name_base(path_for(uri))
    best: Optional[Location] = None
    best_difference: Optional[int] = None
    for location in locations:
        if not provider.is_in_workspace(location.uri) or _is_own_location(location, uri, symbol_range):
            continue

        other_base = file_name_base(path_for(location.uri))
        if other_base == this_base:
            return location
        if other_base in this_base or this_base in other_base:
            difference = abs(len(other_base) - len(this_base))
            if best_difference is None or difference < best_difference:
                best, best_difference = location, difference

    return best


def find_linked_location(provider: SymbolProvider, uri: str, symbol_range: Range,
                         candidates: Optional[Sequence[LocationResult]]) -> Optional[Location]:
    """Like find_most_likely_result, but never returns the symbol's own location"""
    location = find_most_likely_result(provider, uri, symbol_range, candidates)
    if location is None or _is_own_location(location, uri, symbol_range):
        return None
    return location

"""Caches for symbol trees and header/source pairs."""

import hashlib
import json
import os
import sys
import time
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .source_symbol import SourceSymbol
from .symbol_info import SymbolInfo
from .text_document import path_for


def get_cache_dir(project_root: Path) -> Path:
    """Get the cache directory for a project"""
    # Use the server directory for cache, not the project being edited
    server_root = Path(__file__).parent.parent  # Go up from codegen_server/cache_manager.py to root
    cache_base = server_root / ".mcp_cache"

    # Use a hash of the project path to create a unique cache directory
    project_hash = hashlib.md5(str(project_root).encode()).hexdigest()[:8]
    return cache_base / f"{Path(project_root).name}_{project_hash}"


class SymbolCache:
    """
    Per-document cache of symbol trees.

    Entries are keyed by uri and validated against an md5 hash of the text they
    were built from, so a stale tree is never handed out for edited text. The
    cache owns the top-level symbols of every tree it holds. When a cache
    directory is given, the raw symbols are also saved to disk so that they
    survive a server restart.
    """

    def __init__(self, cache_dir: Optional[Path] = None):
        self.cache_dir = cache_dir
        self._trees: Dict[str, Tuple[str, List[SourceSymbol]]] = {}
        self.hits = 0
        self.misses = 0
        if self.cache_dir is not None:
            self.cache_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def get_text_hash(text: str) -> str:
        """Calculate hash of a document's text"""
        return hashlib.md5(text.encode("utf-8")).hexdigest()

    def get(self, uri: str, text: str) -> Optional[List[SourceSymbol]]:
        """Cached tree for the document, or None if missing or built from different text"""
        entry = self._trees.get(uri)
        text_hash = self.get_text_hash(text)
        if entry is not None and entry[0] == text_hash:
            self.hits += 1
            return entry[1]

        infos = self.load_file_cache(uri, text_hash)
        if infos is not None:
            self.hits += 1
            return self._store(uri, text_hash, infos)

        self.misses += 1
        return None

    def put(self, uri: str, text: str, infos: List[SymbolInfo]) -> List[SourceSymbol]:
        """Build and remember the tree for the document"""
        text_hash = self.get_text_hash(text)
        symbols = self._store(uri, text_hash, infos)
        if self.cache_dir is not None:
            self.save_file_cache(uri, text_hash, infos)
        return symbols

    def _store(self, uri: str, text_hash: str, infos: List[SymbolInfo]) -> List[SourceSymbol]:
        symbols = [SourceSymbol(info, uri) for info in infos]
        self._trees[uri] = (text_hash, symbols)
        return symbols

    def invalidate(self, uri: str):
        """Forget the tree of a document, e.g. after it was edited"""
        self._trees.pop(uri, None)
        if self.cache_dir is not None:
            cache_file = self.get_file_cache_path(uri)
            if cache_file.exists():
                cache_file.unlink()

    def clear(self):
        self._trees.clear()

    def __contains__(self, uri: str) -> bool:
        return uri in self._trees

    def __len__(self) -> int:
        return len(self._trees)

    def get_file_cache_path(self, uri: str) -> Path:
        """Get the cache file path for a given document"""
        cache_filename = hashlib.md5(uri.encode("utf-8")).hexdigest() + ".json"
        return self.cache_dir / cache_filename

    def save_file_cache(self, uri: str, text_hash: str, infos: List[SymbolInfo]) -> bool:
        """Save raw symbols for a single document"""
        cache_data = {
            "uri": uri,
            "text_hash": text_hash,
            "timestamp": time.time(),
            "symbols": [info.to_dict() for info in infos]
        }
        try:
            with open(self.get_file_cache_path(uri), "w") as f:
                json.dump(cache_data, f, indent=2)
            return True
        except OSError as e:
            print(f"Error saving symbol cache for {path_for(uri)}: {e}", file=sys.stderr)
            return False

    def load_file_cache(self, uri: str, text_hash: str) -> Optional[List[SymbolInfo]]:
        """Load cached raw symbols for a document if the hash matches"""
        if self.cache_dir is None:
            return None

        cache_file = self.get_file_cache_path(uri)
        if not cache_file.exists():
            return None

        try:
            with open(cache_file, "r") as f:
                cache_data = json.load(f)
        except (OSError, ValueError) as e:
            print(f"Error loading symbol cache for {path_for(uri)}: {e}", file=sys.stderr)
            return None

        if cache_data.get("text_hash") != text_hash:
            return None
        return [SymbolInfo.from_dict(s) for s in cache_data.get("symbols", [])]

    def stats(self) -> Dict[str, int]:
        return {"documents": len(self._trees), "hits": self.hits, "misses": self.misses}


class HeaderSourceCache:
    """Remembers which header and source files belong together (both directions)."""

    def __init__(self):
        self._pairs: Dict[str, str] = {}

    def get(self, file_path: str) -> Optional[str]:
        """The cached match for file_path, if it still exists on disk"""
        match = self._pairs.get(file_path)
        if match is None:
            return None
        if not os.path.exists(match):
            self.delete(file_path, match)
            return None
        return match

    def set(self, path_a: str, path_b: str):
        self._pairs[path_a] = path_b
        self._pairs[path_b] = path_a

    def delete(self, *file_paths: str):
        for file_path in file_paths:
            self._pairs.pop(file_path, None)

    def clear(self):
        self._pairs.clear()

    def __len__(self) -> int:
        return len(self._pairs)

"""File discovery and header/source matching for C/C++ projects."""

import glob
import os
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from .cache_manager import HeaderSourceCache
from .codegen_config import CodegenConfig
from .utility import file_extension, file_name_base


def compare_directory_paths(directory_a: str, directory_b: str) -> int:
    """
    Number of directory segments by which two paths differ, not counting the
    leading and trailing segments they share. 0 means the same directory.
    """
    a_segments = [segment for segment in Path(directory_a).parts if segment]
    b_segments = [segment for segment in Path(directory_b).parts if segment]
    min_segments = min(len(a_segments), len(b_segments))

    common_leading = 0
    for i in range(min_segments):
        if a_segments[i] != b_segments[i]:
            break
        common_leading += 1

    common_trailing = 0
    for i in range(1, min_segments - common_leading):
        if a_segments[-i] != b_segments[-i]:
            break
        common_trailing += 1

    return max(len(a_segments) - common_leading - common_trailing,
               len(b_segments) - common_leading - common_trailing)


class FileScanner:
    """Handles file discovery and header/source matching for C/C++ projects."""

    def __init__(self, project_root: Path, config: Optional[CodegenConfig] = None,
                 cache: Optional[HeaderSourceCache] = None):
        self.project_root = Path(project_root)
        self.config = config if config is not None else CodegenConfig(self.project_root)
        self.cache = cache if cache is not None else HeaderSourceCache()
        self.exclude_dirs = set(self.config.get_exclude_directories())

    @property
    def extensions(self) -> List[str]:
        return self.config.get_header_extensions() + self.config.get_source_extensions()

    def should_skip_directory(self, dir_path: str) -> bool:
        """Check if a directory should be skipped"""
        return os.path.basename(dir_path) in self.exclude_dirs

    def find_cpp_files(self) -> List[str]:
        """Find all C/C++ files in the project"""
        files = []
        extensions = {"." + ext for ext in self.extensions}

        for root, dirs, filenames in os.walk(self.project_root):
            # Filter directories in-place to prevent walking into them
            dirs[:] = [d for d in dirs if not self.should_skip_directory(os.path.join(root, d))]

            for filename in filenames:
                if os.path.splitext(filename)[1].lower() in extensions:
                    files.append(os.path.join(root, filename))

        return files

    def is_project_file(self, file_path: str) -> bool:
        """Check if a file is under the project root and not in an excluded directory"""
        if not file_path:
            return False
        try:
            rel_path = Path(os.path.abspath(file_path)).relative_to(os.path.abspath(self.project_root))
        except ValueError:
            return False
        return not any(part in self.exclude_dirs for part in rel_path.parts[:-1])

    def _glob(self, directory: str, names: Sequence[str], recursive: bool) -> List[str]:
        matches = []
        for name in names:
            pattern = os.path.join(glob.escape(directory), "**", name) if recursive \
                else os.path.join(glob.escape(directory), name)
            for match in sorted(glob.glob(pattern, recursive=recursive)):
                if os.path.isfile(match) and self.is_project_file(match):
                    matches.append(match)
        return matches

    def find_matching_file(self, file_path: str) -> Optional[str]:
        """
        Find the source file for a header (or the header for a source file): a
        file with the same base name and an extension of the other kind. The
        file's own directory is searched first, then its parent directory tree,
        then the whole project. Results are remembered in the cache.
        """
        file_path = os.path.abspath(file_path)
        cached = self.cache.get(file_path)
        if cached is not None:
            return cached

        extension = file_extension(file_path).lower()
        if self.config.is_header_extension(extension):
            other_extensions = self.config.get_source_extensions()
        elif self.config.is_source_extension(extension):
            other_extensions = self.config.get_header_extensions()
        else:
            return None

        base_name = file_name_base(file_path)
        names = [base_name + "." + ext for ext in other_extensions]
        directory = os.path.dirname(file_path)
        parent_directory = os.path.dirname(directory)

        match = next(iter(self._glob(directory, names, recursive=False)), None)
        if match is None:
            match = self._best_match(directory, self._glob(parent_directory, names, recursive=True))
        if match is None:
            match = self._best_match(directory, self._glob(str(self.project_root), names, recursive=True))

        if match is not None:
            print(f"Matched {os.path.basename(file_path)} with {match}", file=sys.stderr)
            self.cache.set(file_path, match)
        return match

    @staticmethod
    def _best_match(directory: str, candidates: List[str]) -> Optional[str]:
        best_match = None
        smallest_difference = None
        for candidate in candidates:
            difference = compare_directory_paths(os.path.dirname(candidate), directory)
            if smallest_difference is None or difference < smallest_difference:
                smallest_difference = difference
                best_match = candidate
        return best_match

"""Configuration loader for code generation settings."""

import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional


class CodegenConfig:
    """Loads and manages configuration for the code generators."""

    CONFIG_FILENAME = "cpp-codegen-config.json"

    CURLY_BRACE_FORMATS = ("new_line", "new_line_ctor_dtor", "same_line")
    NAMESPACE_INDENTATIONS = ("auto", "always", "never")
    DEFINITION_LOCATIONS = ("inline", "below_class", "source_file")
    ACCESSOR_CASE_STYLES = ("camel", "snake", "pascal", "auto")
    HEADER_GUARD_STYLES = ("pragma_once", "define", "both")

    DEFAULT_CONFIG = {
        "header_extensions": ["h", "hpp", "hh", "hxx", "h++"],
        "source_extensions": ["c", "cpp", "cc", "cxx", "c++"],
        "curly_brace_format": "new_line",
        "explicit_this_pointer": False,
        "friend_comparison_operators": False,
        "indentation": "    ",
        "namespace_body_indentation": "auto",
        "braced_initialization": False,
        "always_move_comments": True,
        "getter_definition_location": "inline",
        "setter_definition_location": "inline",
        "accessor_case_style": "auto",
        "header_guard_style": "define",
        "header_guard_define_format": "${FILENAME_EXT}",
        "exclude_directories": [
            ".git",
            ".svn",
            ".hg",
            "node_modules",
            "__pycache__",
            ".vs",
            ".vscode",
            ".idea",
            "CMakeFiles",
            "build"
        ]
    }

    def __init__(self, project_root: Optional[Path] = None, config_path: Optional[Path] = None):
        self.project_root = project_root
        if config_path is None:
            config_path = self._find_config_path()
        self.config_path = config_path
        self.config = self._load_config()

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "CodegenConfig":
        """Configuration with the given values merged over the defaults (no file involved)"""
        config = cls.__new__(cls)
        config.project_root = None
        config.config_path = None
        config.config = cls.DEFAULT_CONFIG.copy()
        config.config.update(values)
        return config

    def _find_config_path(self) -> Path:
        """A config file in the project root wins over the one next to the server"""
        if self.project_root is not None:
            project_config = Path(self.project_root) / self.CONFIG_FILENAME
            if project_config.exists():
                return project_config
        return Path(__file__).parent.parent / self.CONFIG_FILENAME

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from file or use defaults."""
        if self.config_path is not None and self.config_path.exists():
            try:
                with open(self.config_path, "r") as f:
                    user_config = json.load(f)
                # Merge with defaults
                config = self.DEFAULT_CONFIG.copy()
                config.update(user_config)
                print(f"Loaded codegen config from: {self.config_path}", file=sys.stderr)
                return config
            except (OSError, ValueError) as e:
                print(f"Error loading config from {self.config_path}: {e}", file=sys.stderr)
                print("Using default configuration", file=sys.stderr)

        return self.DEFAULT_CONFIG.copy()

    def _get_choice(self, key: str, choices) -> str:
        value = self.config.get(key, self.DEFAULT_CONFIG[key])
        if value not in choices:
            print(f"Invalid value {value!r} for {key}, using {self.DEFAULT_CONFIG[key]!r}", file=sys.stderr)
            return self.DEFAULT_CONFIG[key]
        return value

    def get_header_extensions(self) -> List[str]:
        return self.config.get("header_extensions", self.DEFAULT_CONFIG["header_extensions"])

    def get_source_extensions(self) -> List[str]:
        return self.config.get("source_extensions", self.DEFAULT_CONFIG["source_extensions"])

    def get_curly_brace_format(self) -> str:
        """Where the opening brace of generated functions goes"""
        return self._get_choice("curly_brace_format", self.CURLY_BRACE_FORMATS)

    def get_explicit_this_pointer(self) -> bool:
        return bool(self.config.get("explicit_this_pointer", self.DEFAULT_CONFIG["explicit_this_pointer"]))

    def get_friend_comparison_operators(self) -> bool:
        return bool(self.config.get("friend_comparison_operators",
                                    self.DEFAULT_CONFIG["friend_comparison_operators"]))

    def get_indentation(self) -> str:
        """One level of indentation; a number means that many spaces"""
        indentation = self.config.get("indentation", self.DEFAULT_CONFIG["indentation"])
        if isinstance(indentation, int):
            return " " * indentation
        return indentation

    def get_namespace_body_indentation(self) -> str:
        return self._get_choice("namespace_body_indentation", self.NAMESPACE_INDENTATIONS)

    def get_braced_initialization(self) -> bool:
        return bool(self.config.get("braced_initialization", self.DEFAULT_CONFIG["braced_initialization"]))

    def get_always_move_comments(self) -> bool:
        return bool(self.config.get("always_move_comments", self.DEFAULT_CONFIG["always_move_comments"]))

    def get_getter_definition_location(self) -> str:
        return self._get_choice("getter_definition_location", self.DEFINITION_LOCATIONS)

    def get_setter_definition_location(self) -> str:
        return self._get_choice("setter_definition_location", self.DEFINITION_LOCATIONS)

    def get_accessor_case_style(self) -> str:
        return self._get_choice("accessor_case_style", self.ACCESSOR_CASE_STYLES)

    def get_header_guard_style(self) -> str:
        return self._get_choice("header_guard_style", self.HEADER_GUARD_STYLES)

    def get_header_guard_define_format(self) -> str:
        return self.config.get("header_guard_define_format", self.DEFAULT_CONFIG["header_guard_define_format"])

    def get_exclude_directories(self) -> List[str]:
        """Get list of directories to exclude."""
        return self.config.get("exclude_directories", self.DEFAULT_CONFIG["exclude_directories"])

    def is_header_extension(self, extension: str) -> bool:
        return extension.lower() in self.get_header_extensions()

    def is_source_extension(self, extension: str) -> bool:
        return extension.lower() in self.get_source_extensions()

    def create_example_config(self) -> None:
        """Create an example configuration file."""
        example_config = {
            "curly_brace_format": "new_line_ctor_dtor",
            "explicit_this_pointer": False,
            "friend_comparison_operators": True,
            "indentation": 4,
            "namespace_body_indentation": "never",
            "getter_definition_location": "inline",
            "setter_definition_location": "source_file",
            "accessor_case_style": "snake",
            "header_guard_style": "pragma_once",
            "exclude_directories": [
                ".git",
                "build",
                "third_party"
            ],
            "_comment": "Place this cpp-codegen-config.json file in your project root to customize generated code"
        }

        with open(self.config_path, "w") as f:
            json.dump(example_config, f, indent=2)

        print(f"Created example config at: {self.config_path}", file=sys.stderr)

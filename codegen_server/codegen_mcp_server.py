#!/usr/bin/env python3
"""
C++ Code Generation MCP Server

Provides tools that generate C/C++ code: function definitions and
declarations, getters and setters, comparison and stream operators and header
guards. Tools answer with the text edits to make; they only write files when
asked to apply them.
"""

import asyncio
import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from mcp.server import Server
from mcp.types import (
    Tool,
    TextContent,
)

from codegen_server.cache_manager import HeaderSourceCache, SymbolCache, get_cache_dir
from codegen_server.clang_provider import ClangSymbolProvider, find_and_configure_libclang
from codegen_server.code_actions import (MOVE_DESTINATIONS, OPERATOR_KINDS, CodeActionError, CodeActions,
                                         WorkspaceEdit)
from codegen_server.codegen_config import CodegenConfig
from codegen_server.file_scanner import FileScanner
from codegen_server.text_document import Position, path_for, uri_for


find_and_configure_libclang()


class CodegenSession:
    """Everything the tools need for one project directory"""

    def __init__(self, project_root: str):
        self.project_root = Path(project_root).resolve()
        self.config = CodegenConfig(self.project_root)
        self.header_source_cache = HeaderSourceCache()
        self.scanner = FileScanner(self.project_root, self.config, self.header_source_cache)
        self.symbol_cache = SymbolCache(get_cache_dir(self.project_root))
        self.provider = ClangSymbolProvider(str(self.project_root), self.config, self.scanner)
        self.actions = CodeActions(self.provider, self.config, self.symbol_cache, self.scanner)

    def resolve_uri(self, file_path: str) -> str:
        """Uri for a path given absolute or relative to the project root"""
        path = Path(file_path)
        if not path.is_absolute():
            path = self.project_root / path
        if not path.exists():
            raise FileNotFoundError(f"File '{file_path}' does not exist")
        return uri_for(path)

    async def apply(self, edit: WorkspaceEdit) -> List[str]:
        """Write the edit to disk, returning the files that changed"""
        written = []
        for uri in edit.uris:
            document = await self.provider.open_document(uri)
            updated = edit.apply(document)
            with open(path_for(uri), "w", encoding="utf-8", newline="") as f:
                f.write(updated.text)
            self.symbol_cache.invalidate(uri)
            written.append(path_for(uri))
            print(f"Applied {len(edit.edits(uri))} edits to {path_for(uri)}", file=sys.stderr)
        return written


# Initialize session
PROJECT_ROOT = os.environ.get('CPP_PROJECT_ROOT', None)

# Session is None until a project directory is specified
session: Optional[CodegenSession] = None

if PROJECT_ROOT and os.path.isdir(PROJECT_ROOT):
    session = CodegenSession(PROJECT_ROOT)

# MCP Server
server = Server("cpp-codegen")


def _position_properties() -> Dict[str, Any]:
    return {
        "file_path": {
            "type": "string",
            "description": "Path of the file, absolute or relative to the project directory"
        },
        "line": {
            "type": "integer",
            "description": "Zero-based line of the symbol"
        },
        "character": {
            "type": "integer",
            "description": "Zero-based character offset within the line"
        },
    }


APPLY_PROPERTY = {
    "apply": {
        "type": "boolean",
        "description": "Write the edits to disk instead of only returning them. Default: false",
        "default": False
    }
}

OPERANDS_PROPERTY = {
    "operands": {
        "type": "array",
        "items": {"type": "string"},
        "description": "Optional: names of the base classes and member variables to use. Default: all of them"
    }
}

DEFINITION_LOCATION_PROPERTY = {
    "definition_location": {
        "type": "string",
        "enum": list(CodegenConfig.DEFINITION_LOCATIONS),
        "description": "Where the operator bodies go. Default: inline",
        "default": "inline"
    }
}


@server.list_tools()
async def list_tools() -> List[Tool]:
    return [
        Tool(
            name="set_project_directory",
            description="Set the project directory to work in (must be called before the other tools)",
            inputSchema={
                "type": "object",
                "properties": {
                    "project_path": {
                        "type": "string",
                        "description": "Absolute path to the C/C++ project directory"
                    }
                },
                "required": ["project_path"]
            }
        ),
        Tool(
            name="get_document_symbols",
            description="List the symbols (namespaces, classes, functions, variables) of a file as a tree",
            inputSchema={
                "type": "object",
                "properties": {
                    "file_path": _position_properties()["file_path"]
                },
                "required": ["file_path"]
            }
        ),
        Tool(
            name="add_definition",
            description="Generate a definition for the function declared at a position, in the matching source file",
            inputSchema={
                "type": "object",
                "properties": {
                    **_position_properties(),
                    "in_current_file": {
                        "type": "boolean",
                        "description": "Put the definition in the same file. Default: false",
                        "default": False
                    },
                    "initializers": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Optional: for constructors, the base classes and members to initialize"
                    },
                    **APPLY_PROPERTY
                },
                "required": ["file_path", "line", "character"]
            }
        ),
        Tool(
            name="add_definitions",
            description="Generate definitions for every undefined function declared in a file (or in the class at a position)",
            inputSchema={
                "type": "object",
                "properties": {
                    **_position_properties(),
                    "in_current_file": {
                        "type": "boolean",
                        "description": "Put the definitions in the same file. Default: false",
                        "default": False
                    },
                    "function_names": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Optional: only define functions with these names"
                    },
                    **APPLY_PROPERTY
                },
                "required": ["file_path"]
            }
        ),
        Tool(
            name="add_declaration",
            description="Generate a declaration for the function defined at a position, in its class or the matching header",
            inputSchema={
                "type": "object",
                "properties": {
                    **_position_properties(),
                    "access": {
                        "type": "string",
                        "enum": ["public", "protected", "private"],
                        "description": "Access level for member functions. Default: public",
                        "default": "public"
                    },
                    **APPLY_PROPERTY
                },
                "required": ["file_path", "line", "character"]
            }
        ),
        Tool(
            name="generate_getter_setter",
            description="Generate a getter and/or setter for the member variable at a position",
            inputSchema={
                "type": "object",
                "properties": {
                    **_position_properties(),
                    "accessors": {
                        "type": "string",
                        "enum": ["both", "getter", "setter"],
                        "description": "Which accessors to generate. Default: both",
                        "default": "both"
                    },
                    **APPLY_PROPERTY
                },
                "required": ["file_path", "line", "character"]
            }
        ),
        Tool(
            name="generate_operators",
            description="Generate equality, relational or stream output operators for the class at a position",
            inputSchema={
                "type": "object",
                "properties": {
                    **_position_properties(),
                    "kind": {
                        "type": "string",
                        "enum": list(OPERATOR_KINDS),
                        "description": "Which operators to generate"
                    },
                    **OPERANDS_PROPERTY,
                    **DEFINITION_LOCATION_PROPERTY,
                    **APPLY_PROPERTY
                },
                "required": ["file_path", "line", "character", "kind"]
            }
        ),
        Tool(
            name="update_signature",
            description="Update the linked declaration or definition of the function at a position to match its signature",
            inputSchema={
                "type": "object",
                "properties": {
                    **_position_properties(),
                    **APPLY_PROPERTY
                },
                "required": ["file_path", "line", "character"]
            }
        ),
        Tool(
            name="move_definition",
            description="Move the function definition at a position to the matching source file, or into/out of its class",
            inputSchema={
                "type": "object",
                "properties": {
                    **_position_properties(),
                    "destination": {
                        "type": "string",
                        "enum": list(MOVE_DESTINATIONS),
                        "description": "matching_source_file, or class to move the definition into or out of its class body"
                    },
                    "access": {
                        "type": "string",
                        "enum": ["public", "protected", "private"],
                        "description": "Access level when moving into a class without a declaration. Default: public",
                        "default": "public"
                    },
                    **APPLY_PROPERTY
                },
                "required": ["file_path", "line", "character", "destination"]
            }
        ),
        Tool(
            name="add_header_guard",
            description="Add a header guard (#pragma once and/or #ifndef/#define) to a header file",
            inputSchema={
                "type": "object",
                "properties": {
                    "file_path": _position_properties()["file_path"],
                    **APPLY_PROPERTY
                },
                "required": ["file_path"]
            }
        ),
        Tool(
            name="add_include",
            description="Add an include directive next to the existing system or project includes of a file",
            inputSchema={
                "type": "object",
                "properties": {
                    "file_path": _position_properties()["file_path"],
                    "include": {
                        "type": "string",
                        "description": "The directive ('#include <vector>') or just the file ('<vector>', '\"widget.h\"')"
                    },
                    **APPLY_PROPERTY
                },
                "required": ["file_path", "include"]
            }
        ),
        Tool(
            name="find_matching_file",
            description="Find the source file of a header, or the header of a source file",
            inputSchema={
                "type": "object",
                "properties": {
                    "file_path": _position_properties()["file_path"]
                },
                "required": ["file_path"]
            }
        ),
        Tool(
            name="get_server_status",
            description="Get server status and configuration",
            inputSchema={
                "type": "object",
                "properties": {}
            }
        ),
    ]


async def _edit_result(edit: WorkspaceEdit, apply: bool) -> List[TextContent]:
    result = {"changes": edit.to_dict()}
    if apply:
        result["written"] = await session.apply(edit)
    return [TextContent(type="text", text=json.dumps(result, indent=2))]


def _position(arguments: Dict[str, Any]) -> Position:
    return Position(int(arguments["line"]), int(arguments["character"]))


@server.call_tool()
async def call_tool(name: str, arguments: Dict[str, Any]) -> List[TextContent]:
    global session
    try:
        if name == "set_project_directory":
            project_path = arguments["project_path"]
            if not os.path.isdir(project_path):
                return [TextContent(type="text", text=f"Error: Directory '{project_path}' does not exist")]

            # Re-initialize session with new path
            if session is not None:
                session.provider.shutdown()
            session = CodegenSession(project_path)
            file_count = len(session.scanner.find_cpp_files())

            return [TextContent(type="text", text=f"Set project directory to: {project_path}\nFound {file_count} C/C++ files")]

        # Check if session is initialized for all other commands
        if session is None:
            return [TextContent(type="text", text="Error: Project directory not set. Please use 'set_project_directory' first with the path to your C++ project.")]

        apply = arguments.get("apply", False)

        if name == "get_document_symbols":
            uri = session.resolve_uri(arguments["file_path"])
            symbols = await session.provider.document_symbols(uri)
            return [TextContent(type="text", text=json.dumps([s.to_dict() for s in symbols], indent=2))]

        elif name == "add_definition":
            uri = session.resolve_uri(arguments["file_path"])
            edit = await session.actions.add_definition(uri, _position(arguments),
                                                        arguments.get("in_current_file", False),
                                                        arguments.get("initializers", None))
            return await _edit_result(edit, apply)

        elif name == "add_definitions":
            uri = session.resolve_uri(arguments["file_path"])
            position = _position(arguments) if "line" in arguments else None
            edit = await session.actions.add_definitions(uri, position,
                                                         arguments.get("in_current_file", False),
                                                         arguments.get("function_names", None))
            return await _edit_result(edit, apply)

        elif name == "add_declaration":
            uri = session.resolve_uri(arguments["file_path"])
            edit = await session.actions.add_declaration(uri, _position(arguments),
                                                         arguments.get("access", "public"))
            return await _edit_result(edit, apply)

        elif name == "generate_getter_setter":
            uri = session.resolve_uri(arguments["file_path"])
            accessors = arguments.get("accessors", "both")
            if accessors == "getter":
                edit = await session.actions.generate_getter(uri, _position(arguments))
            elif accessors == "setter":
                edit = await session.actions.generate_setter(uri, _position(arguments))
            else:
                edit = await session.actions.generate_getter_setter(uri, _position(arguments))
            return await _edit_result(edit, apply)

        elif name == "generate_operators":
            uri = session.resolve_uri(arguments["file_path"])
            edit = await session.actions.generate_operators(arguments["kind"], uri, _position(arguments),
                                                            arguments.get("operands", None),
                                                            arguments.get("definition_location", "inline"))
            return await _edit_result(edit, apply)

        elif name == "update_signature":
            uri = session.resolve_uri(arguments["file_path"])
            edit = await session.actions.update_signature(uri, _position(arguments))
            return await _edit_result(edit, apply)

        elif name == "move_definition":
            uri = session.resolve_uri(arguments["file_path"])
            edit = await session.actions.move_definition(arguments["destination"], uri, _position(arguments),
                                                         arguments.get("access", "public"))
            return await _edit_result(edit, apply)

        elif name == "add_header_guard":
            uri = session.resolve_uri(arguments["file_path"])
            edit = await session.actions.add_header_guard(uri)
            return await _edit_result(edit, apply)

        elif name == "add_include":
            uri = session.resolve_uri(arguments["file_path"])
            edit = await session.actions.add_include(uri, arguments["include"])
            return await _edit_result(edit, apply)

        elif name == "find_matching_file":
            uri = session.resolve_uri(arguments["file_path"])
            matching_uri = await session.actions.matching_uri(uri)
            if matching_uri is None:
                return [TextContent(type="text", text=f"No matching file found for '{arguments['file_path']}'")]
            return [TextContent(type="text", text=path_for(matching_uri))]

        elif name == "get_server_status":
            status = {
                "project_root": str(session.project_root),
                "config_path": str(session.config.config_path),
                "config": session.config.config,
                "symbol_cache": session.symbol_cache.stats(),
                "header_source_pairs": len(session.header_source_cache) // 2,
            }
            status.update(session.provider.get_stats())
            return [TextContent(type="text", text=json.dumps(status, indent=2))]

        else:
            return [TextContent(type="text", text=f"Unknown tool: {name}")]

    except CodeActionError as e:
        return [TextContent(type="text", text=f"Error: {str(e)}")]
    except Exception as e:
        print(f"Tool '{name}' failed: {e!r}", file=sys.stderr)
        return [TextContent(type="text", text=f"Error: {str(e)}")]


async def main():
    # Import here to avoid issues if mcp package not installed
    from mcp.server.stdio import stdio_server

    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()

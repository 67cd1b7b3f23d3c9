#!/usr/bin/env python3
"""
Tests for the MCP tool surface, with the session's language backend replaced
by the in-memory symbol provider
"""

import json

import pytest

from codegen_server import codegen_mcp_server
from codegen_server.code_actions import CodeActions
from codegen_server.codegen_config import CodegenConfig
from codegen_server.text_document import uri_for

from conftest import HEADER_URI


class StubSession:
    def __init__(self, provider, scanner):
        self.provider = provider
        self.actions = CodeActions(provider, CodegenConfig.from_dict({}), scanner=scanner)

    def resolve_uri(self, file_path):
        return uri_for(file_path)


@pytest.fixture
def no_session(monkeypatch):
    monkeypatch.setattr(codegen_mcp_server, "session", None)


@pytest.fixture
def stub_session(monkeypatch, provider, scanner):
    session = StubSession(provider, scanner)
    monkeypatch.setattr(codegen_mcp_server, "session", session)
    return session


async def call(name, **arguments):
    result = await codegen_mcp_server.call_tool(name, arguments)
    assert len(result) == 1
    return result[0].text


async def test_list_tools():
    tools = await codegen_mcp_server.list_tools()
    names = [tool.name for tool in tools]

    assert names == [
        "set_project_directory", "get_document_symbols", "add_definition", "add_definitions",
        "add_declaration", "generate_getter_setter", "generate_operators", "update_signature",
        "move_definition", "add_header_guard", "add_include", "find_matching_file", "get_server_status",
    ]
    operators = next(tool for tool in tools if tool.name == "generate_operators")
    assert "kind" in operators.inputSchema["properties"]


async def test_tools_need_a_project_directory(no_session):
    text = await call("add_header_guard", file_path="widget.h")
    assert text.startswith("Error: Project directory not set.")


async def test_set_project_directory_that_does_not_exist(no_session, tmp_path):
    missing = tmp_path / "missing"
    assert await call("set_project_directory", project_path=str(missing)) == \
        f"Error: Directory '{missing}' does not exist"


async def test_edits_are_returned_as_json(provider, stub_session):
    provider.add_document(HEADER_URI, "class A;\n")
    text = await call("add_header_guard", file_path="/project/include/widget.h")

    changes = json.loads(text)["changes"]
    assert list(changes) == [HEADER_URI]
    assert changes[HEADER_URI][0] == {
        "range": {"start": {"line": 0, "character": 0}, "end": {"line": 0, "character": 0}},
        "newText": "#ifndef WIDGET_H\n#define WIDGET_H\n\n",
    }


async def test_code_action_errors_become_error_text(provider, stub_session):
    provider.add_document(HEADER_URI, "#pragma once\n")
    assert await call("add_header_guard", file_path="/project/include/widget.h") == \
        "Error: This file already has a header guard."


async def test_unknown_operator_kind(provider, stub_session):
    text = await call("generate_operators", kind="spaceship", file_path="/project/include/widget.h",
                      line=0, character=0)
    assert text.startswith("Error: Unknown operator kind 'spaceship'.")


async def test_find_matching_file(stub_session):
    assert await call("find_matching_file", file_path="/project/include/widget.h") == "/project/src/widget.cpp"
    assert await call("find_matching_file", file_path="/project/include/other.h") == \
        "No matching file found for '/project/include/other.h'"


async def test_unknown_tool(stub_session):
    assert await call("rename_everything") == "Unknown tool: rename_everything"


async def test_missing_arguments_are_reported(stub_session):
    assert await call("update_signature", file_path="/project/src/widget.cpp") == "Error: 'line'"


async def test_add_include(provider, stub_session):
    provider.add_document(HEADER_URI, "#pragma once\n\n#include <string>\n\nclass A;\n")
    text = await call("add_include", file_path="/project/include/widget.h", include="<vector>")

    assert json.loads(text)["changes"][HEADER_URI] == [{
        "range": {"start": {"line": 3, "character": 0}, "end": {"line": 3, "character": 0}},
        "newText": "#include <vector>\n",
    }]


async def test_unknown_move_destination(provider, stub_session):
    text = await call("move_definition", destination="elsewhere", file_path="/project/include/widget.h",
                      line=0, character=0)
    assert text.startswith("Error: Unknown destination 'elsewhere'.")

#!/usr/bin/env python3
"""
Tests for the code generation configuration
"""

import json

from codegen_server.codegen_config import CodegenConfig


def test_defaults_without_a_config_file(tmp_path):
    config = CodegenConfig(tmp_path, config_path=tmp_path / "missing.json")

    assert config.get_curly_brace_format() == "new_line"
    assert config.get_indentation() == "    "
    assert config.get_header_guard_style() == "define"
    assert config.get_always_move_comments()
    assert config.is_header_extension("HPP")
    assert config.is_source_extension("cc")
    assert not config.is_source_extension("h")


def test_project_config_file_is_merged_over_defaults(tmp_path):
    (tmp_path / CodegenConfig.CONFIG_FILENAME).write_text(json.dumps({
        "curly_brace_format": "same_line",
        "indentation": 2,
        "exclude_directories": ["third_party"],
    }))
    config = CodegenConfig(tmp_path)

    assert config.config_path == tmp_path / CodegenConfig.CONFIG_FILENAME
    assert config.get_curly_brace_format() == "same_line"
    assert config.get_indentation() == "  "
    assert config.get_exclude_directories() == ["third_party"]
    assert config.get_accessor_case_style() == "auto"


def test_unreadable_config_file_falls_back_to_defaults(tmp_path):
    config_path = tmp_path / CodegenConfig.CONFIG_FILENAME
    config_path.write_text("{not json")

    config = CodegenConfig(tmp_path)
    assert config.config == CodegenConfig.DEFAULT_CONFIG


def test_invalid_choices_use_the_default(capsys):
    config = CodegenConfig.from_dict({"namespace_body_indentation": "sometimes", "getter_definition_location": 3})

    assert config.get_namespace_body_indentation() == "auto"
    assert config.get_getter_definition_location() == "inline"
    assert "Invalid value 'sometimes' for namespace_body_indentation" in capsys.readouterr().err


def test_from_dict_does_not_touch_the_defaults():
    config = CodegenConfig.from_dict({"explicit_this_pointer": True})

    assert config.get_explicit_this_pointer()
    assert config.config_path is None
    assert CodegenConfig.DEFAULT_CONFIG["explicit_this_pointer"] is False
    assert not CodegenConfig.from_dict({}).get_explicit_this_pointer()


def test_create_example_config(tmp_path):
    config_path = tmp_path / CodegenConfig.CONFIG_FILENAME
    CodegenConfig(tmp_path, config_path=config_path).create_example_config()

    reloaded = CodegenConfig(tmp_path)
    assert reloaded.config_path == config_path
    assert reloaded.get_setter_definition_location() == "source_file"
    assert reloaded.get_indentation() == "    "
    assert reloaded.get_header_guard_style() == "pragma_once"

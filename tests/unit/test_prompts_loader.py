"""Unit tests for prompts.yaml loading and validation."""

import pytest

from promptcraft.core import prompts_loader
from promptcraft.core.prompts_loader import (
    get_expansion_task,
    get_expansion_template,
    get_extraction_template,
    get_modification_template,
    get_prompt,
    get_surprise_contents,
    parse_prompts,
)
from promptcraft.utils.exceptions import ConfigurationError

VALID_YAML = """
expansion:
  system: "{task} {generator} {generator_guidance} {constraints} {density}"
  task_expand: "expand"
  task_surprise: "surprise"
  surprise_contents: "contents"
extraction:
  instruction: "{generator} {generator_guidance} {constraints} {density}"
modification:
  template: "{content} {instruction}"
"""


@pytest.mark.unit
class TestBundledPrompts:
    def test_templates_load(self):
        assert "{task}" in get_expansion_template()
        assert "{generator_guidance}" in get_extraction_template()
        assert "{instruction}" in get_modification_template()

    def test_tasks(self):
        assert "seed" in get_expansion_task(False)
        assert "from scratch" in get_expansion_task(True)
        assert get_surprise_contents() == "Generate 3 random masterpiece prompts."

    def test_get_prompt_missing_returns_none(self):
        assert get_prompt("nope") is None
        assert get_prompt("expansion", "nope") is None

    def test_loaded_once(self):
        get_expansion_template()
        assert prompts_loader._prompts_data is not None
        first = prompts_loader._prompts_data
        get_modification_template()
        assert prompts_loader._prompts_data is first


@pytest.mark.unit
class TestParsePrompts:
    def test_valid(self):
        data = parse_prompts(VALID_YAML)
        assert data["modification"]["template"] == "{content} {instruction}"

    def test_malformed_yaml(self):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_prompts("expansion: [unclosed")
        assert "Failed to parse" in str(exc_info.value)

    def test_empty(self):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_prompts("")
        assert "empty" in str(exc_info.value)

    def test_missing_section(self):
        raw = VALID_YAML.split("modification:")[0]
        with pytest.raises(ConfigurationError) as exc_info:
            parse_prompts(raw)
        assert "modification" in str(exc_info.value)

    def test_missing_placeholder(self):
        raw = VALID_YAML.replace("{content} {instruction}", "{content} only")
        with pytest.raises(ConfigurationError) as exc_info:
            parse_prompts(raw)
        assert "{instruction}" in str(exc_info.value)

    def test_non_mapping_document(self):
        with pytest.raises(ConfigurationError):
            parse_prompts("- just\n- a list\n")

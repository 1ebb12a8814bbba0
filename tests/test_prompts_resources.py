"""Tests for prompt templates, static resources and argument completion."""

import json

import pytest

from assistants_gateway.errors import INVALID_PARAMS, LEGACY_NOT_FOUND, McpError
from assistants_gateway.mcp import completion, resources
from assistants_gateway.mcp.prompts import DEFAULT_PROMPTS, PromptArgument, PromptRegistry, PromptTemplate


class TestPromptTemplate:
    def _template(self):
        return PromptTemplate(
            name="greet",
            title="Greet",
            description="Say hello",
            template="Hello {{name}}{{#if title}}, {{title}}{{/if}}. Mood: {{mood || 'calm'}}.",
            arguments=(
                PromptArgument(name="name", required=True),
                PromptArgument(name="title"),
                PromptArgument(name="mood"),
            ),
        )

    def test_render_with_all_arguments(self):
        text = self._template().render({"name": "Ada", "title": "Countess", "mood": "bright"})
        assert text == "Hello Ada, Countess. Mood: bright."

    def test_render_defaults_and_conditionals(self):
        assert self._template().render({"name": "Ada"}) == "Hello Ada. Mood: calm."

    def test_public_shape(self):
        public = self._template().to_public()
        assert public["name"] == "greet"
        assert public["arguments"][0] == {"name": "name", "description": "", "required": True}


class TestPromptRegistry:
    def test_defaults(self):
        registry = PromptRegistry()
        assert len(registry.get_prompt_names()) == len(DEFAULT_PROMPTS) == 10
        assert registry.has_prompt("review-code")
        stats = registry.get_stats()
        assert stats["totalPrompts"] == 10
        assert sum(stats["promptsByCategory"].values()) == 10

    def test_search_and_filters(self):
        registry = PromptRegistry()
        assert any(p["name"] == "review-code" for p in registry.search("review"))
        assert all(p["name"] for p in registry.get_prompts_by_tag("code"))
        assert registry.get_prompts_by_category("no-such-category") == []

    def test_get_prompt_renders_user_message(self):
        result = PromptRegistry().get_prompt(
            "create-coding-assistant", {"specialization": "Python web development"}
        )
        message = result["messages"][0]
        assert message["role"] == "user"
        assert message["content"]["type"] == "text"
        assert "Python web development" in message["content"]["text"]
        assert "{{" not in message["content"]["text"]

    def test_unknown_prompt(self):
        with pytest.raises(McpError) as exc_info:
            PromptRegistry().get_prompt("nope")
        assert exc_info.value.code == INVALID_PARAMS
        assert "review-code" in exc_info.value.data["availablePrompts"]

    def test_missing_and_unknown_arguments(self):
        with pytest.raises(McpError) as exc_info:
            PromptRegistry().get_prompt("explain-code", {"language": "python", "colour": "blue"})
        data = exc_info.value.data
        assert data["missingArguments"] == ["code"]
        assert data["unknownArguments"] == ["colour"]

    def test_arguments_must_be_object(self):
        with pytest.raises(McpError):
            PromptRegistry().get_prompt("explain-code", ["code"])


class TestResources:
    def test_list(self):
        listed = resources.list_resources()
        assert len(listed) == 9
        assert {r["mimeType"] for r in listed} == {"application/json", "text/markdown"}

    def test_read_template_is_json(self):
        content = resources.read_resource("assistant://templates/coding-assistant")["contents"][0]
        assert content["mimeType"] == "application/json"
        assert json.loads(content["text"])["model"]

    def test_read_unknown(self):
        with pytest.raises(McpError) as exc_info:
            resources.read_resource("docs://missing")
        assert exc_info.value.code == INVALID_PARAMS
        assert exc_info.value.data["originalCode"] == LEGACY_NOT_FOUND
        assert exc_info.value.data["resourceUri"] == "docs://missing"

    def test_by_category(self):
        assert len(resources.get_resources_by_category("templates")) == 3
        assert resources.get_resource("docs://best-practices")["mimeType"] == "text/markdown"


class TestCompletion:
    def _complete(self, ref, name, value=""):
        return completion.complete({"ref": ref, "argument": {"name": name, "value": value}})["completion"]

    def test_prompt_specific_values(self):
        result = self._complete({"type": "ref/prompt", "name": "create-data-analyst"}, "domain", "f")
        assert result["values"] == ["finance"]
        assert result["total"] == 1
        assert result["hasMore"] is False

    def test_case_insensitive_prefix(self):
        result = self._complete({"type": "ref/prompt", "name": "x"}, "data_format", "js")
        assert result["values"] == ["JSON"]

    def test_id_arguments(self):
        result = self._complete({"type": "ref/prompt", "name": "x"}, "thread_id", "")
        assert "thread_" in result["values"]
        typed = self._complete({"type": "ref/prompt", "name": "x"}, "thread_id", "thread_a")
        assert typed["values"] == ["thread_abc123"]

    def test_resource_uris(self):
        result = self._complete({"type": "ref/resource", "uri": "docs://"}, "uri", "docs://")
        assert "docs://best-practices" in result["values"]
        assert result["values"] == sorted(result["values"])

    def test_unknown_argument_is_empty(self):
        assert self._complete({"type": "ref/prompt", "name": "x"}, "mystery")["values"] == []

    def test_filter_caps_values(self):
        values = [f"v{i:03d}" for i in range(150)]
        result = completion.filter_values(values, "v")
        assert len(result["values"]) == 100
        assert result["total"] == 150
        assert result["hasMore"] is True

    def test_invalid_requests(self):
        with pytest.raises(McpError):
            completion.complete({"ref": {"type": "ref/prompt"}})
        with pytest.raises(McpError) as exc_info:
            completion.complete({"ref": {"type": "ref/tool"}, "argument": {"name": "a"}})
        assert exc_info.value.data["supportedTypes"] == ["ref/prompt", "ref/resource"]

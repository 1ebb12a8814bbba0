"""Tests for assistants_gateway.mcp.validation — parameter validators."""

import pytest

from assistants_gateway.errors import INVALID_PARAMS
from assistants_gateway.mcp.validation import (
    ParameterError,
    collect_pagination,
    example_id,
    pick,
    validate_id,
    validate_message_content,
    validate_message_role,
    validate_metadata,
    validate_model,
    validate_numeric_range,
    validate_pagination_params,
    validate_tool_outputs,
    validate_tool_resources,
    validate_tools,
)


class TestIds:
    @pytest.mark.parametrize(
        "kind,value",
        [
            ("assistant", "asst_abc123"),
            ("thread", "thread_XYZ789"),
            ("message", "msg_1"),
            ("run", "run_abc"),
            ("step", "step_abc"),
            ("file", "file-abc123"),
            ("tool_call", "call_abc123"),
        ],
    )
    def test_valid_ids(self, kind, value):
        validate_id(value, kind, "id")

    def test_missing_id_names_parameter(self):
        with pytest.raises(ParameterError) as exc_info:
            validate_id(None, "assistant", "assistant_id")
        error = exc_info.value
        assert error.code == INVALID_PARAMS
        assert "assistant_id" in error.message
        assert error.data["example"] == example_id("assistant")

    def test_wrong_prefix(self):
        with pytest.raises(ParameterError) as exc_info:
            validate_id("thread_abc", "assistant", "assistant_id")
        assert "asst_" in exc_info.value.message

    def test_rejects_non_string_and_punctuation(self):
        with pytest.raises(ParameterError):
            validate_id(123, "run", "run_id")
        with pytest.raises(ParameterError):
            validate_id("run_abc/../x", "run", "run_id")


class TestModelAndRanges:
    def test_models(self):
        validate_model("gpt-4o")
        validate_model("gpt-4o-2024-08-06")
        with pytest.raises(ParameterError):
            validate_model("llama-3")
        with pytest.raises(ParameterError):
            validate_model("")

    def test_numeric_range(self):
        validate_numeric_range(1.5, "temperature", 0, 2)
        validate_numeric_range(None, "temperature", 0, 2)
        with pytest.raises(ParameterError):
            validate_numeric_range(2.5, "temperature", 0, 2)
        with pytest.raises(ParameterError):
            validate_numeric_range(True, "temperature", 0, 2)
        with pytest.raises(ParameterError):
            validate_numeric_range(None, "temperature", 0, 2, required=True)


class TestStructures:
    def test_metadata_limits(self):
        validate_metadata({"a": "b"})
        with pytest.raises(ParameterError):
            validate_metadata("nope")
        with pytest.raises(ParameterError):
            validate_metadata({f"k{i}": "v" for i in range(17)})
        with pytest.raises(ParameterError):
            validate_metadata({"big": "x" * 20000})

    def test_tools(self):
        validate_tools([{"type": "code_interpreter"}, {"type": "function", "function": {"name": "f"}}])
        with pytest.raises(ParameterError) as exc_info:
            validate_tools([{"type": "browser"}])
        assert exc_info.value.param == "tools[0].type"
        with pytest.raises(ParameterError):
            validate_tools([{"type": "function", "function": {}}])

    def test_tool_resources_need_matching_tool(self):
        validate_tool_resources({"file_search": {"vector_store_ids": ["vs_1"]}}, [{"type": "file_search"}])
        with pytest.raises(ParameterError):
            validate_tool_resources({"file_search": {"vector_store_ids": ["vs_1"]}}, [])

    def test_tool_resources_without_tools_only_checks_shape(self):
        validate_tool_resources({"file_search": {"vector_store_ids": ["vs_1"]}}, None)
        with pytest.raises(ParameterError):
            validate_tool_resources("vs_1", None)

    def test_message_role_and_content(self):
        validate_message_role("user")
        with pytest.raises(ParameterError):
            validate_message_role("system")
        with pytest.raises(ParameterError):
            validate_message_content("   ")


class TestPagination:
    def test_valid(self):
        validate_pagination_params({"limit": 20, "order": "asc", "after": "asst_abc"})

    @pytest.mark.parametrize(
        "args",
        [
            {"limit": 0},
            {"limit": 101},
            {"limit": "10"},
            {"order": "sideways"},
            {"after": ""},
            {"after": "asst_a", "before": "asst_b"},
        ],
    )
    def test_invalid(self, args):
        with pytest.raises(ParameterError):
            validate_pagination_params(args)

    def test_collect_and_pick(self):
        args = {"limit": 5, "order": None, "after": "x", "other": 1}
        assert collect_pagination(args) == {"limit": 5, "after": "x"}
        assert pick(args, ("limit", "order", "missing")) == {"limit": 5}


class TestToolOutputs:
    def test_valid(self):
        validate_tool_outputs([{"tool_call_id": "call_abc", "output": "42"}])

    def test_missing_output(self):
        with pytest.raises(ParameterError) as exc_info:
            validate_tool_outputs([{"tool_call_id": "call_abc"}])
        assert exc_info.value.param == "tool_outputs[0].output"

    def test_empty_and_bad_call_id(self):
        with pytest.raises(ParameterError):
            validate_tool_outputs([])
        with pytest.raises(ParameterError):
            validate_tool_outputs([{"tool_call_id": "abc", "output": "1"}])

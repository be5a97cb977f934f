"""Tests for loki_mcp.models."""

import importlib
import warnings

from pydantic import PydanticDeprecatedSince20

from loki_mcp.models import LokiResult, ToolCallResult
from loki_mcp.models import models as models_module


def test_models_define_without_deprecation_warnings():
    with warnings.catch_warnings():
        warnings.simplefilter("error", PydanticDeprecatedSince20)
        importlib.reload(models_module)


def test_null_members_become_empty():
    result = LokiResult.model_validate(
        {
            "status": "success",
            "data": {"result": [{"stream": None, "values": None}, {"metric": {"job": "a"}}]},
        }
    )
    assert result.data.result[0].stream == {}
    assert result.data.result[0].values == []
    assert result.data.result[1].stream == {"job": "a"}

    empty = LokiResult.model_validate({"status": "success", "data": {"result": None}})
    assert empty.data.result == []


def test_tool_call_result_text():
    result = ToolCallResult.from_text("boom", is_error=True)
    assert result.isError is True
    assert result.text == "boom"

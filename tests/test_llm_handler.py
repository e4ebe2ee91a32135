"""
Tests for the LLM handler, using a fake async client instead of the network.
"""

import asyncio
import os
from types import SimpleNamespace
from typing import Any, Dict, List
from unittest.mock import patch

import pytest

from meeting_insights.core.llm_handler import (
    LLMHandler,
    LLMHandlerError,
    ReasoningModelError,
    build_request_params,
    extract_chat_result,
    is_parameter_mismatch_error,
    swap_parameter_style,
)

MESSAGES = [{"role": "system", "content": "sys"}, {"role": "user", "content": "user"}]


class FakeAPIError(Exception):
    """Mimics the attributes of an OpenAI APIStatusError."""

    def __init__(self, status_code: int, body: Dict[str, Any]):
        super().__init__(f"Error code: {status_code}")
        self.status_code = status_code
        self.body = body


def completion(text, total_tokens=42):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=text))],
        usage=SimpleNamespace(total_tokens=total_tokens),
    )


class FakeClient:
    """Async client stand-in with scripted chat completion outcomes."""

    def __init__(self, outcomes: List[Any]):
        self.outcomes = list(outcomes)
        self.calls: List[Dict[str, Any]] = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    async def _create(self, **params):
        self.calls.append(params)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def unsupported(param: str) -> FakeAPIError:
    return FakeAPIError(400, {"type": "invalid_request_error", "code": "unsupported_parameter", "param": param})


class TestRequestParameters:
    """Test parameter construction and swapping."""

    def test_reasoning_params(self):
        params = build_request_params("o3", MESSAGES, 5000, reasoning=True, reasoning_effort="high")
        assert params["max_completion_tokens"] == 5000
        assert params["reasoning_effort"] == "high"
        assert "temperature" not in params
        assert "max_tokens" not in params

    def test_standard_params(self):
        params = build_request_params("gpt-4o", MESSAGES, 5000, reasoning=False, reasoning_effort="high", temperature=0.3)
        assert params["max_tokens"] == 5000
        assert params["temperature"] == 0.3
        assert "reasoning_effort" not in params

    def test_swap_both_ways(self):
        reasoning = build_request_params("o3", MESSAGES, 100, reasoning=True, reasoning_effort="low")
        standard = swap_parameter_style(reasoning)
        assert "max_completion_tokens" not in standard and "reasoning_effort" not in standard
        assert standard["max_tokens"] == 100
        back = swap_parameter_style(standard)
        assert back["max_completion_tokens"] == 100
        assert "temperature" not in back

    def test_mismatch_detection(self):
        assert is_parameter_mismatch_error(unsupported("temperature"))
        assert is_parameter_mismatch_error(FakeAPIError(400, {"error": {"type": "invalid_request_error", "code": "unsupported_value", "param": "max_tokens"}}))
        assert not is_parameter_mismatch_error(FakeAPIError(500, {}))
        assert not is_parameter_mismatch_error(FakeAPIError(400, {"type": "invalid_request_error", "code": "context_length_exceeded"}))
        assert not is_parameter_mismatch_error(ValueError("boom"))

    def test_extract_chat_result(self):
        result = extract_chat_result(completion("  hello  ", 7), "o3")
        assert (result.text, result.total_tokens, result.model) == ("hello", 7, "o3")

    def test_extract_chat_result_handles_empty(self):
        empty = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=None))], usage=None)
        result = extract_chat_result(empty, "o3")
        assert result.text == ""
        assert result.total_tokens == 0


class TestLLMHandler:
    """Test request dispatch through the handler."""

    def test_insight_request_sends_reasoning_effort(self):
        client = FakeClient([completion("insight text")])
        env = {"IS_REASONING_MODEL": "true", "INSIGHT_MODEL": "o3-test", "REASONING_EFFORT": "medium", "INSIGHT_MAX_TOKENS": "1234"}
        with patch.dict(os.environ, env, clear=True):
            result = asyncio.run(LLMHandler(client=client).make_insight_request(MESSAGES))
        assert result.text == "insight text"
        assert client.calls[0]["model"] == "o3-test"
        assert client.calls[0]["reasoning_effort"] == "medium"
        assert client.calls[0]["max_completion_tokens"] == 1234
        assert client.calls[0]["messages"] == MESSAGES

    def test_summary_request_has_no_reasoning_effort(self):
        client = FakeClient([completion("summary text")])
        with patch.dict(os.environ, {"IS_REASONING_MODEL": "true"}, clear=True):
            asyncio.run(LLMHandler(client=client).make_summary_request(MESSAGES))
        assert "reasoning_effort" not in client.calls[0]
        assert client.calls[0]["max_completion_tokens"] == 5000

    def test_parameter_fallback_retries_once(self):
        client = FakeClient([unsupported("temperature"), completion("ok")])
        with patch.dict(os.environ, {"IS_REASONING_MODEL": "false"}, clear=True):
            result = asyncio.run(LLMHandler(client=client).make_summary_request(MESSAGES))
        assert result.text == "ok"
        assert "temperature" in client.calls[0]
        assert "temperature" not in client.calls[1]
        assert client.calls[1]["max_completion_tokens"] == 5000

    def test_failed_fallback_raises_reasoning_model_error(self):
        client = FakeClient([unsupported("temperature"), RuntimeError("still failing")])
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ReasoningModelError):
                asyncio.run(LLMHandler(client=client).make_summary_request(MESSAGES))

    def test_other_errors_are_wrapped(self):
        client = FakeClient([RuntimeError("network down")])
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(LLMHandlerError, match="network down"):
                asyncio.run(LLMHandler(client=client).make_insight_request(MESSAGES))
        assert len(client.calls) == 1

    def test_debug_logs_written(self, tmp_path):
        client = FakeClient([completion("logged")])
        with patch.dict(os.environ, {"MI_DEBUG": "1"}, clear=True):
            asyncio.run(LLMHandler(output_dir=str(tmp_path), client=client).make_summary_request(MESSAGES))
        logs = sorted(p.name for p in (tmp_path / ".debug").rglob("*.json"))
        assert any(name.startswith("summary_request_") for name in logs)
        assert any(name.startswith("summary_response_") for name in logs)

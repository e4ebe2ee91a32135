"""
Centralized LLM handler for all generation requests.

This module wraps the OpenAI chat completions API for the summary and
deeper-insight stages, with request-specific parameters and automatic
fallback when the configured model turns out to be a reasoning model (or
not). Content validation and retries live in generation.py; this layer only
raises for transport and API failures.
"""

import logging
from typing import Any, Dict, List, Optional

from .config import config, get_client
from .debug_log import get_debug_logger
from .timing import timer
from .types import ChatResult

logger = logging.getLogger(__name__)


class LLMHandlerError(Exception):
    """Base exception for LLM handler errors."""

    pass


class ReasoningModelError(LLMHandlerError):
    """Raised when a parameter-adjusted retry also fails."""

    pass


class GenerationTimeoutError(LLMHandlerError):
    """Raised when every generation attempt exceeded its deadline."""

    pass


def _error_details(exception: Exception) -> Dict[str, Any]:
    """type/code/param of an OpenAI API error, from attributes or the error body."""
    details = {key: getattr(exception, key, None) for key in ("type", "code", "param")}
    body = getattr(exception, "body", None)
    if isinstance(body, dict):
        error = body.get("error", body)
        if isinstance(error, dict):
            for key in details:
                details[key] = details[key] or error.get(key)
    return details


def is_parameter_mismatch_error(exception: Exception) -> bool:
    """
    Check if a 400 error complains about temperature/token parameters.

    Such errors mean IS_REASONING_MODEL does not match the model actually
    being called, so the request can be retried with the other parameter set.
    """
    if getattr(exception, "status_code", None) != 400:
        return False

    error_info = _error_details(exception)
    error_type = str(error_info.get("type") or "").lower()
    error_code = str(error_info.get("code") or "").lower()
    error_param = str(error_info.get("param") or "").lower()

    return (
        error_type == "invalid_request_error"
        and error_code in ("unsupported_value", "unsupported_parameter")
        and error_param in ("temperature", "max_tokens", "max_completion_tokens", "reasoning_effort")
    )


def build_request_params(
    model: str,
    messages: List[Dict[str, str]],
    max_output_tokens: int,
    reasoning: bool,
    reasoning_effort: Optional[str] = None,
    temperature: float = 1.0,
) -> Dict[str, Any]:
    """Chat completion parameters for a reasoning or a standard model."""
    params: Dict[str, Any] = {"model": model, "messages": messages}
    if reasoning:
        params["max_completion_tokens"] = max_output_tokens
        if reasoning_effort:
            params["reasoning_effort"] = reasoning_effort
    else:
        params["max_tokens"] = max_output_tokens
        params["temperature"] = temperature
    return params


def swap_parameter_style(params: Dict[str, Any]) -> Dict[str, Any]:
    """Convert reasoning-model parameters to standard ones and vice versa."""
    adjusted = dict(params)
    if "max_completion_tokens" in adjusted:
        adjusted["max_tokens"] = adjusted.pop("max_completion_tokens")
        adjusted.pop("reasoning_effort", None)
        adjusted["temperature"] = config.model_temperature
    else:
        adjusted.pop("temperature", None)
        if "max_tokens" in adjusted:
            adjusted["max_completion_tokens"] = adjusted.pop("max_tokens")
    return adjusted


async def create_with_parameter_fallback(client: Any, params: Dict[str, Any], request_type: str) -> Any:
    """
    Create a chat completion, retrying once with the other parameter style.

    Raises:
        ReasoningModelError: If the adjusted retry also fails
    """
    try:
        return await client.chat.completions.create(**params)
    except Exception as e:
        if not is_parameter_mismatch_error(e):
            raise
        adjusted = swap_parameter_style(params)
        logger.info(f"Model rejected parameters for {request_type}, retrying with {sorted(k for k in adjusted if k != 'messages')}")
        try:
            return await client.chat.completions.create(**adjusted)
        except Exception as retry_error:
            raise ReasoningModelError(f"LLM request failed even after adjusting parameters: {retry_error}") from e


def extract_chat_result(response: Any, model: str) -> ChatResult:
    """Text payload and total token usage of a chat completion response."""
    text = ""
    choices = getattr(response, "choices", None) or []
    if choices:
        message = getattr(choices[0], "message", None)
        text = (getattr(message, "content", None) or "").strip()
    usage = getattr(response, "usage", None)
    total_tokens = getattr(usage, "total_tokens", 0) or 0
    return ChatResult(text=text, model=model, total_tokens=total_tokens)


class LLMHandler:
    """
    Generation backend for the summary and deeper-insight stages.

    Each call performs exactly one backend request and may legitimately
    return an empty payload.
    """

    def __init__(self, output_dir: str = ".", client: Any = None):
        """
        Args:
            output_dir: Directory used for debug logs
            client: Async OpenAI-compatible client; the configured one if None
        """
        self.output_dir = output_dir
        self.client = client if client is not None else get_client()
        self.debug_logger = get_debug_logger(output_dir)

    async def complete(
        self,
        messages: List[Dict[str, str]],
        *,
        model: str,
        max_output_tokens: int,
        request_type: str,
        reasoning_effort: Optional[str] = None,
    ) -> ChatResult:
        """
        Send one chat completion request.

        Raises:
            LLMHandlerError: If the request fails
        """
        params = build_request_params(
            model,
            messages,
            max_output_tokens,
            reasoning=config.is_reasoning_model,
            reasoning_effort=reasoning_effort,
            temperature=config.model_temperature,
        )
        self.debug_logger.log_llm_request(request_type, messages, {k: v for k, v in params.items() if k != "messages"})

        try:
            response = await create_with_parameter_fallback(self.client, params, request_type)
        except LLMHandlerError:
            raise
        except Exception as e:
            raise LLMHandlerError(f"{request_type.capitalize()} LLM request failed: {e}") from e

        result = extract_chat_result(response, model)
        self.debug_logger.log_llm_response(request_type, result.text, result.total_tokens)
        return result

    @timer
    async def make_summary_request(self, messages: List[Dict[str, str]]) -> ChatResult:
        return await self.complete(
            messages,
            model=config.summary_model,
            max_output_tokens=config.summary_max_tokens,
            request_type="summary",
        )

    @timer
    async def make_insight_request(self, messages: List[Dict[str, str]]) -> ChatResult:
        """Deeper-insight request; the only stage that sends a reasoning effort hint."""
        return await self.complete(
            messages,
            model=config.insight_model,
            max_output_tokens=config.insight_max_tokens,
            request_type="insight",
            reasoning_effort=config.reasoning_effort,
        )

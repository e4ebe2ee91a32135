"""
Retry-validated generation.

The text-generation backend is non-deterministic and may return empty or
truncated payloads. generate_with_retry keeps calling it until the extracted
text passes is_valid_content or the attempts run out, in which case the last
result is returned as best-effort content instead of raising.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, TypeVar

from .debug_log import get_debug_logger
from .llm_handler import GenerationTimeoutError
from .progress import reporter
from .prompt import DATE_HEADER_MARKER
from .types import GenerationAttempt

logger = logging.getLogger(__name__)

T = TypeVar("T")

MIN_CONTENT_LENGTH = 50
DEFAULT_MAX_ATTEMPTS = 3


def is_valid_content(text: Optional[str]) -> bool:
    """
    Check that generated text has a usable body.

    A leading "## Meeting Date:" header line does not count towards the
    minimum length.
    """
    if not text or not text.strip():
        return False

    body = text.strip()
    first_line, _, rest = body.partition("\n")
    if first_line.strip().startswith(DATE_HEADER_MARKER):
        body = rest.strip()

    return len(body) >= MIN_CONTENT_LENGTH


async def generate_with_retry(
    operation: Callable[[], Awaitable[T]],
    extract_content: Callable[[T], str],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    *,
    retry_delay: float = 0.0,
    deadline: Optional[float] = None,
    label: str = "generation",
) -> T:
    """
    Call the backend until its content validates.

    Args:
        operation: Zero-argument coroutine factory performing one backend call
        extract_content: Pulls the text payload out of the backend result
        max_attempts: Total attempts, at least 1
        retry_delay: Seconds to wait between attempts
        deadline: Optional per-attempt timeout in seconds
        label: Stage name used in logs

    Returns:
        The first valid result, or the last result when every attempt was invalid

    Raises:
        GenerationTimeoutError: If every attempt timed out, leaving no result
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    debug_logger = get_debug_logger()
    attempts: List[GenerationAttempt] = []
    last_result: Optional[T] = None
    have_result = False

    for attempt_number in range(1, max_attempts + 1):
        reporter.sub_step(f"Generating {label}", attempt_number, max_attempts)
        try:
            if deadline:
                result = await asyncio.wait_for(operation(), timeout=deadline)
            else:
                result = await operation()
        except asyncio.TimeoutError:
            logger.warning(f"{label}: attempt {attempt_number}/{max_attempts} exceeded {deadline}s deadline")
            attempts.append(GenerationAttempt(attempt_number=attempt_number, timed_out=True))
            debug_logger.log_generation_attempt(label, attempt_number, "", valid=False, timed_out=True)
        else:
            content = extract_content(result) or ""
            valid = is_valid_content(content)
            attempts.append(GenerationAttempt(attempt_number=attempt_number, raw_result=result, extracted_content=content, valid=valid))
            debug_logger.log_generation_attempt(label, attempt_number, content, valid=valid)
            last_result = result
            have_result = True

            if valid:
                if attempt_number > 1:
                    logger.info(f"{label}: valid content on attempt {attempt_number}/{max_attempts}, issue self-corrected")
                return result

            logger.warning(f"{label}: attempt {attempt_number}/{max_attempts} returned empty or too-short content ({len(content.strip())} chars)")

        if attempt_number < max_attempts and retry_delay > 0:
            await asyncio.sleep(retry_delay)

    if not have_result:
        raise GenerationTimeoutError(f"{label}: all {max_attempts} attempts exceeded the {deadline}s deadline")

    lengths = ", ".join(str(len(a.extracted_content.strip())) for a in attempts if not a.timed_out)
    logger.warning(f"{label}: no valid content after {max_attempts} attempts (lengths: {lengths}); using last result")
    reporter.warn_sub_step(f"{label.capitalize()} may be incomplete after {max_attempts} attempts")
    return last_result  # type: ignore[return-value]

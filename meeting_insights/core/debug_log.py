"""
Debug logging for generation requests, responses and retry attempts.

When enabled, every backend request and response, and every validated
generation attempt, is written as a JSON file under
{output_dir}/.debug/session_<timestamp>/ for later inspection.
"""

import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional


class DebugLogger:
    """
    Writes per-session JSON debug records.

    Disabled loggers accept every call and write nothing.
    """

    def __init__(self, output_dir: str = ".", enabled: Optional[bool] = None):
        """
        Initialize debug logger.

        Args:
            output_dir: Directory whose .debug subfolder receives the logs
            enabled: Override debug enable flag, uses MI_DEBUG env var if None
        """
        self.output_dir = output_dir
        self.enabled = enabled if enabled is not None else is_debug_enabled()
        self.session_id = datetime.now().strftime("%Y%m%d_%H%M%S")

        if self.enabled:
            self._setup_log_directory()

    def _setup_log_directory(self) -> None:
        self.log_dir = Path(self.output_dir) / ".debug"
        self.session_dir = self.log_dir / f"session_{self.session_id}"
        self.session_dir.mkdir(parents=True, exist_ok=True)

    def is_enabled(self) -> bool:
        return self.enabled

    def _write(self, step: str, record: Dict[str, Any]) -> None:
        timestamp = datetime.now().isoformat()
        log_data = {"timestamp": timestamp, "session_id": self.session_id, "step": step}
        log_data.update(record)

        filename = f"{step}_{timestamp.replace(':', '-').replace('.', '_')}.json"
        with open(self.session_dir / filename, "w", encoding="utf-8") as f:
            json.dump(log_data, f, indent=2, ensure_ascii=False, default=str)

    def log_llm_request(self, request_type: str, messages: List[Dict[str, str]], params: Dict[str, Any]) -> None:
        """
        Log a backend request.

        Args:
            request_type: 'summary' or 'insight'
            messages: Role-tagged messages sent to the backend
            params: Generation parameters other than messages
        """
        if not self.enabled:
            return
        self._write(
            f"{request_type}_request",
            {
                "type": "request",
                "messages": messages,
                "params": params,
                "prompt_length": sum(len(m.get("content", "")) for m in messages),
            },
        )

    def log_llm_response(self, request_type: str, content: str, total_tokens: int) -> None:
        if not self.enabled:
            return
        self._write(
            f"{request_type}_response",
            {"type": "response", "response_content": content, "response_length": len(content), "total_tokens": total_tokens},
        )

    def log_generation_attempt(self, label: str, attempt_number: int, content: str, valid: bool, timed_out: bool = False) -> None:
        """
        Log one validated-generator attempt.

        Args:
            label: Stage label, e.g. 'summary'
            attempt_number: 1-based attempt counter
            content: Extracted text payload
            valid: Whether the content passed validation
            timed_out: Whether the attempt hit the configured deadline
        """
        if not self.enabled:
            return
        self._write(
            f"{label}_attempt_{attempt_number}",
            {
                "type": "generation_attempt",
                "attempt_number": attempt_number,
                "valid": valid,
                "timed_out": timed_out,
                "content_length": len(content),
                "content": content,
            },
        )


_debug_logger: Optional[DebugLogger] = None


def get_debug_logger(output_dir: Optional[str] = None) -> DebugLogger:
    """
    Get or create the process-wide debug logger.

    Without an output_dir the current logger is reused (or one rooted at the
    working directory is created).
    """
    global _debug_logger
    if output_dir is None:
        if _debug_logger is None:
            _debug_logger = DebugLogger(".")
        return _debug_logger
    if _debug_logger is None or _debug_logger.output_dir != output_dir:
        _debug_logger = DebugLogger(output_dir)
    return _debug_logger


def is_debug_enabled() -> bool:
    """True if MI_DEBUG=1 is set."""
    return os.getenv("MI_DEBUG", "0") == "1"

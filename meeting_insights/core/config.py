"""
Configuration management for Meeting Insights.

This module handles environment variables, API keys, model settings and
generation/reconciliation knobs. python-dotenv is used for explicit .env
loading; no implicit loading occurs at import time.
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from openai import AsyncOpenAI

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""

    pass


VALID_REASONING_EFFORTS = {"minimal", "low", "medium", "high"}
VALID_HISTORY_ORDERS = {"oldest", "newest"}
VALID_MATCH_STRATEGIES = {"overlap", "edit"}

ENV_FILE_VAR = "MI_ENV_FILE"
DEFAULT_ENV_FILENAME = ".env"


@lru_cache(maxsize=32)
def load_env(env_path: Optional[str] = None, override: bool = False) -> None:
    """Explicitly load environment variables from the given .env file path.

    Nothing is loaded when env_path is None.
    """
    if env_path:
        load_dotenv(dotenv_path=env_path, override=override)


def load_project_env(start_dir: Optional[str] = None, override: bool = False) -> Optional[str]:
    """
    Load the project environment file, if available.

    Load order (first match wins):
    1) Explicit env file path via MI_ENV_FILE
    2) <start_dir or CWD>/.env

    Returns the path loaded, or None if nothing was loaded.
    """
    explicit = os.getenv(ENV_FILE_VAR)
    if explicit and Path(explicit).is_file():
        load_env(explicit, override=override)
        return explicit

    candidate = (Path(start_dir) if start_dir else Path.cwd()) / DEFAULT_ENV_FILENAME
    if candidate.is_file():
        load_env(str(candidate), override=override)
        return str(candidate)

    return None


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes", "on")


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid {name} value: {raw}. Using {default} as default.")
        return default
    if value < minimum:
        logger.warning(f"Invalid {name} value: {value}. Using {default} as default.")
        return default
    return value


def _env_float(name: str, default: float, low: float, high: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Invalid {name} format. Using {default} as default.")
        return default
    if not (low <= value <= high):
        logger.warning(f"Invalid {name} value: {value}. Using {default} as default.")
        return default
    return value


def _env_choice(name: str, default: str, choices: set) -> str:
    value = os.getenv(name, default).lower()
    if value not in choices:
        logger.warning(f"Invalid {name} value: {value}. Using '{default}' as default.")
        return default
    return value


class Config:
    """Configuration settings for Meeting Insights."""

    @property
    def openai_api_key(self) -> str:
        """Get OpenAI API key from environment."""
        key = os.getenv("OPENAI_API_KEY")
        if not key:
            raise ConfigError("OPENAI_API_KEY not found in environment. Please set it in your environment or .env file.")
        return key

    @property
    def summary_model(self) -> str:
        """Model for the summary stage (default: o3)."""
        return os.getenv("SUMMARY_MODEL", "o3")

    @property
    def insight_model(self) -> str:
        """Model for the deeper-insight stage (default: o3)."""
        return os.getenv("INSIGHT_MODEL", "o3")

    @property
    def transcription_model(self) -> str:
        return os.getenv("TRANSCRIPTION_MODEL", "whisper-1")

    @property
    def is_reasoning_model(self) -> bool:
        """Check if the configured models are reasoning models (default: True)."""
        return _env_bool("IS_REASONING_MODEL", "true")

    @property
    def reasoning_effort(self) -> str:
        """Reasoning effort hint sent with the deeper-insight stage only."""
        return _env_choice("REASONING_EFFORT", "high", VALID_REASONING_EFFORTS)

    @property
    def model_temperature(self) -> float:
        return _env_float("MODEL_TEMPERATURE", 1.0, 0.0, 2.0)

    @property
    def summary_max_tokens(self) -> int:
        return _env_int("SUMMARY_MAX_TOKENS", 5000, minimum=1)

    @property
    def insight_max_tokens(self) -> int:
        return _env_int("INSIGHT_MAX_TOKENS", 10000, minimum=1)

    @property
    def openai_timeout(self) -> int:
        """Get OpenAI API timeout in seconds (default: 300)."""
        return _env_int("OPENAI_TIMEOUT", 300, minimum=1)

    @property
    def max_retries(self) -> int:
        """Transport-level retries performed by the OpenAI client (default: 2)."""
        return _env_int("MAX_RETRIES", 2)

    @property
    def generation_attempts(self) -> int:
        """Attempts made by the validated generator before giving up (default: 3)."""
        return _env_int("GENERATION_ATTEMPTS", 3, minimum=1)

    @property
    def retry_delay_seconds(self) -> float:
        """Delay between validated-generator attempts (default: 0, immediate retry)."""
        return _env_float("RETRY_DELAY_SECONDS", 0.0, 0.0, 3600.0)

    @property
    def generation_deadline_seconds(self) -> Optional[float]:
        """Optional per-attempt deadline wrapped around each backend call."""
        raw = os.getenv("GENERATION_DEADLINE_SECONDS")
        if not raw:
            return None
        value = _env_float("GENERATION_DEADLINE_SECONDS", 0.0, 0.0, 86400.0)
        return value or None

    @property
    def history_max_documents(self) -> int:
        return _env_int("HISTORY_MAX_DOCUMENTS", 6, minimum=1)

    @property
    def history_order(self) -> str:
        """Which end of the sorted history to keep: 'oldest' (observed behavior) or 'newest'."""
        return _env_choice("HISTORY_ORDER", "oldest", VALID_HISTORY_ORDERS)

    @property
    def match_threshold(self) -> float:
        return _env_float("MATCH_THRESHOLD", 0.70, 0.0, 1.0)

    @property
    def match_strategy(self) -> str:
        return _env_choice("MATCH_STRATEGY", "overlap", VALID_MATCH_STRATEGIES)

    @property
    def input_dir(self) -> Path:
        return Path(os.getenv("MI_INPUT_DIR", "./inputFiles"))

    @property
    def output_dir(self) -> Path:
        return Path(os.getenv("MI_OUTPUT_DIR", "./outputFiles"))

    @property
    def glossary_file(self) -> Optional[Path]:
        raw = os.getenv("MI_GLOSSARY_FILE")
        return Path(raw) if raw else None

    @property
    def debug(self) -> bool:
        return os.getenv("MI_DEBUG", "0") == "1"


# Global config instance
config = Config()


@lru_cache(maxsize=1)
def get_client() -> AsyncOpenAI:
    """
    Get configured async OpenAI client with timeout and retry settings.

    If OPENAI_API_KEY is missing, attempts to load the project env first.

    Raises:
        ConfigError: If API key is not configured after project env lookup
    """
    if not os.getenv("OPENAI_API_KEY"):
        loaded_path = load_project_env()
        if not os.getenv("OPENAI_API_KEY"):
            where = loaded_path or f"{ENV_FILE_VAR} or ./{DEFAULT_ENV_FILENAME}"
            raise ConfigError(f"OPENAI_API_KEY not found in environment. Looked for env file at {where}.")
    try:
        return AsyncOpenAI(
            api_key=config.openai_api_key,
            timeout=config.openai_timeout,
            max_retries=config.max_retries,
        )
    except Exception as e:
        raise ConfigError(f"Failed to create OpenAI client: {e}")


def validate_config() -> None:
    """
    Validate that all required configuration is present.

    Raises:
        ConfigError: If required configuration is missing
    """
    _ = get_client()

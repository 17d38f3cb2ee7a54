"""
Centralized configuration with environment variable overrides.

Portal identity, model settings, conversation limits and the Trinidad &
Tobago validation thresholds are all configurable here. Nothing is
hardcoded in agent or tool logic.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_REPOSITORY_PATH = Path(__file__).parent / "data" / "service_repository.json"

DEFAULT_DECLINE_PHRASES = "no,skip,not provided,not available,n/a,none"


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _csv(env_var: str, default: str) -> tuple[str, ...]:
    """Parse a comma-separated env var into a tuple of lower-cased phrases."""
    raw = os.getenv(env_var, default)
    return tuple(part.strip().lower() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class PortalConfig:
    """Portal identity and service repository location."""

    name: str = os.getenv("PORTAL_NAME", "Caribbean Government Service Portal")
    region: str = os.getenv("PORTAL_REGION", "Trinidad and Tobago")
    service_repository_path: str = os.getenv(
        "SERVICE_REPOSITORY_PATH", str(DEFAULT_REPOSITORY_PATH)
    )
    catalog_cache_seconds: int = _safe_int("CATALOG_CACHE_SECONDS", "300")


@dataclass(frozen=True)
class ModelConfig:
    """LLM and transcription model settings."""

    llm_model: str = os.getenv("LLM_MODEL", "gpt-4o-mini")
    llm_temperature: float = _safe_float("LLM_TEMPERATURE", "0.3")
    llm_max_tokens: int = _safe_int("LLM_MAX_TOKENS", "512")
    router_max_tokens: int = _safe_int("ROUTER_MAX_TOKENS", "256")
    stt_model: str = os.getenv("STT_MODEL", "whisper-1")
    stt_language: str = os.getenv("STT_LANGUAGE", "en")


@dataclass(frozen=True)
class ConversationConfig:
    """Limits and windows used while driving a conversation."""

    max_input_length: int = _safe_int("MAX_INPUT_LENGTH", "1000")
    history_window: int = _safe_int("HISTORY_WINDOW", "6")
    decline_scan_turns: int = _safe_int("DECLINE_SCAN_TURNS", "3")
    decline_phrases: tuple[str, ...] = _csv("DECLINE_PHRASES", DEFAULT_DECLINE_PHRASES)
    max_audio_bytes: int = _safe_int("MAX_AUDIO_BYTES", str(5 * 1024 * 1024))


@dataclass(frozen=True)
class ValidationConfig:
    """Jurisdiction rules and the validation collaborator endpoint."""

    driver_license_min_age: int = _safe_int("DRIVER_LICENSE_MIN_AGE", "17")
    business_permit_min_age: int = _safe_int("BUSINESS_PERMIT_MIN_AGE", "18")
    default_nationality: str = os.getenv("DEFAULT_NATIONALITY", "Trinidad and Tobago")
    validation_agent_url: str = os.getenv("VALIDATION_AGENT_URL", "")
    validation_timeout_sec: float = _safe_float("VALIDATION_TIMEOUT", "10.0")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    portal: PortalConfig = field(default_factory=PortalConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    conversation: ConversationConfig = field(default_factory=ConversationConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    agent_name: str = os.getenv("AGENT_NAME", "service-intake")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if not 0.0 <= config.model.llm_temperature <= 2.0:
        raise ValueError(
            f"LLM_TEMPERATURE must be between 0.0 and 2.0, got {config.model.llm_temperature}"
        )
    if config.model.llm_max_tokens < 1:
        raise ValueError(f"LLM_MAX_TOKENS must be >= 1, got {config.model.llm_max_tokens}")
    if config.model.router_max_tokens < 1:
        raise ValueError(
            f"ROUTER_MAX_TOKENS must be >= 1, got {config.model.router_max_tokens}"
        )
    if config.portal.catalog_cache_seconds < 0:
        raise ValueError(
            f"CATALOG_CACHE_SECONDS must be >= 0, got {config.portal.catalog_cache_seconds}"
        )
    if config.conversation.max_input_length < 1:
        raise ValueError(
            f"MAX_INPUT_LENGTH must be >= 1, got {config.conversation.max_input_length}"
        )
    if config.conversation.history_window < 1:
        raise ValueError(
            f"HISTORY_WINDOW must be >= 1, got {config.conversation.history_window}"
        )
    if config.conversation.decline_scan_turns < 1:
        raise ValueError(
            f"DECLINE_SCAN_TURNS must be >= 1, got {config.conversation.decline_scan_turns}"
        )
    if not config.conversation.decline_phrases:
        raise ValueError("DECLINE_PHRASES must contain at least one phrase")
    if config.conversation.max_audio_bytes < 1:
        raise ValueError(
            f"MAX_AUDIO_BYTES must be >= 1, got {config.conversation.max_audio_bytes}"
        )

    for age_name, age_value in [
        ("DRIVER_LICENSE_MIN_AGE", config.validation.driver_license_min_age),
        ("BUSINESS_PERMIT_MIN_AGE", config.validation.business_permit_min_age),
    ]:
        if not 0 <= age_value <= 120:
            raise ValueError(f"{age_name} must be between 0 and 120, got {age_value}")

    if config.validation.validation_timeout_sec <= 0:
        raise ValueError(
            "VALIDATION_TIMEOUT must be > 0, "
            f"got {config.validation.validation_timeout_sec}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.portal.name)
    return config


# Singleton instance
settings = load_config()

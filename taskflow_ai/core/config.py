"""
Configuration management for TaskFlow AI.

Handles environment variables, defaults, and configuration validation
for the model orchestration layer.
"""

import os
from typing import Optional, Dict, Any
from dataclasses import dataclass, field


# Value shipped in example .env files; treated the same as a missing key.
PLACEHOLDER_API_KEY = "your-openai-api-key-here"

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARN", "WARNING", "ERROR"]
VALID_LOG_FORMATS = ["text", "json"]


@dataclass
class Config:
    """Configuration class for TaskFlow AI with environment variable support."""

    # Environment detection
    ci_mode: bool = field(default=False)

    # Logging configuration
    log_level: str = field(default="INFO")
    log_format: str = field(default="text")

    # Provider configuration
    openai_api_key: Optional[str] = field(default=None)
    openai_base_url: Optional[str] = field(default=None)

    # Fallback chain, cheapest first
    primary_model: str = field(default="gpt-4o-mini")
    fallback_model: Optional[str] = field(default="gpt-3.5-turbo")
    model_timeout: float = field(default=30.0)
    temperature: float = field(default=0.1)
    check_model_catalog: bool = field(default=True)

    def __post_init__(self):
        """Post-initialization validation and setup."""
        # Apply environment overrides if present, while respecting explicit constructor args
        ci_env = os.getenv("CI", "").lower() == "true"
        if ci_env and self.ci_mode is False:
            self.ci_mode = True

        log_env = os.getenv("TASKFLOW_AI_LOG_LEVEL")
        if log_env:
            self.log_level = log_env
        if self.log_level.upper() not in VALID_LOG_LEVELS:
            self.log_level = "INFO"
        else:
            self.log_level = self.log_level.upper()

        format_env = os.getenv("TASKFLOW_AI_LOG_FORMAT")
        if format_env and format_env.lower() in VALID_LOG_FORMATS:
            self.log_format = format_env.lower()
        # JSON lines in CI unless explicitly set otherwise
        elif self.ci_mode and self.log_format == "text":
            self.log_format = "json"

        if self.openai_api_key is None:
            self.openai_api_key = os.getenv("OPENAI_API_KEY")
        if self.openai_base_url is None:
            self.openai_base_url = os.getenv("OPENAI_BASE_URL")

        primary_env = os.getenv("TASKFLOW_AI_PRIMARY_MODEL")
        if primary_env:
            self.primary_model = primary_env
        fallback_env = os.getenv("TASKFLOW_AI_FALLBACK_MODEL")
        if fallback_env is not None:
            self.fallback_model = fallback_env or None

        timeout_env = os.getenv("TASKFLOW_AI_MODEL_TIMEOUT")
        if timeout_env is not None:
            try:
                self.model_timeout = float(timeout_env)
            except ValueError:
                pass

        catalog_env = os.getenv("TASKFLOW_AI_CHECK_MODELS")
        if catalog_env is not None:
            self.check_model_catalog = catalog_env.lower() not in ("0", "false", "no")

    @property
    def is_provider_configured(self) -> bool:
        """Check if a usable provider credential is present."""
        key = (self.openai_api_key or "").strip()
        return bool(key) and key != PLACEHOLDER_API_KEY

    @property
    def is_ci_mode(self) -> bool:
        """Check if running in CI environment."""
        return self.ci_mode

    @property
    def debug_enabled(self) -> bool:
        """Check if debug logging is enabled."""
        return self.log_level == "DEBUG"

    @property
    def candidate_models(self) -> list:
        """Ordered model candidates for the fallback chain."""
        models = [self.primary_model]
        if self.fallback_model and self.fallback_model != self.primary_model:
            models.append(self.fallback_model)
        return models

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary for logging."""
        return {
            "ci_mode": self.ci_mode,
            "log_level": self.log_level,
            "log_format": self.log_format,
            "provider_configured": self.is_provider_configured,
            "openai_base_url": self.openai_base_url,
            "primary_model": self.primary_model,
            "fallback_model": self.fallback_model,
            "model_timeout": self.model_timeout,
            "temperature": self.temperature,
            "check_model_catalog": self.check_model_catalog,
        }

    @classmethod
    def from_env(cls) -> "Config":
        """Create configuration from environment variables."""
        ci = os.getenv("CI", "").lower() == "true"
        log_level = os.getenv("TASKFLOW_AI_LOG_LEVEL", "INFO").upper()
        log_format = os.getenv("TASKFLOW_AI_LOG_FORMAT", "json" if ci else "text")

        return cls(
            ci_mode=ci,
            log_level=log_level,
            log_format=log_format,
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            openai_base_url=os.getenv("OPENAI_BASE_URL"),
        )

    def validate(self) -> None:
        """Validate configuration and raise ValidationError if invalid."""
        from .exceptions import ValidationError

        errors = []

        if self.log_level not in VALID_LOG_LEVELS:
            errors.append(
                f"Invalid log level: {self.log_level}. Must be one of {VALID_LOG_LEVELS}"
            )

        if self.log_format not in VALID_LOG_FORMATS:
            errors.append(
                f"Invalid log format: {self.log_format}. Must be one of {VALID_LOG_FORMATS}"
            )

        if not self.primary_model:
            errors.append("A primary model is required")

        if self.model_timeout <= 0:
            errors.append(f"Model timeout must be positive, got {self.model_timeout}")

        if not 0.0 <= self.temperature <= 2.0:
            errors.append(f"Temperature must be between 0 and 2, got {self.temperature}")

        if errors:
            message = "Configuration validation failed: " + "; ".join(errors)
            raise ValidationError(
                message,
                validation_type="config",
                violations=errors,
            )

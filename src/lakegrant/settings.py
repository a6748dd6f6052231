"""
Retry and propagation settings.

Permission changes take a while to become visible across the service, so
every remote call runs under a time budget. Budgets come from, in order of
precedence: explicit construction, environment variables, or a YAML file.

Environment variables:
    LAKEGRANT_PROPAGATION_TIMEOUT   budget for grant and list (seconds)
    LAKEGRANT_REVOKE_TIMEOUT        budget for revoke (seconds)
    LAKEGRANT_RETRY_INITIAL_DELAY   first backoff delay (seconds)
    LAKEGRANT_RETRY_MAX_DELAY       backoff cap (seconds)

Example settings file (lakegrant.yml):
    propagation_timeout_seconds: 180
    revoke_timeout_seconds: 120
    initial_delay_seconds: 1
    max_delay_seconds: 15
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Union

import yaml
from pydantic import BaseModel, Field, model_validator
from typing_extensions import Self

logger = logging.getLogger(__name__)

# Permission changes can take up to two minutes to propagate
DEFAULT_PROPAGATION_TIMEOUT_SECONDS = 120.0
DEFAULT_REVOKE_TIMEOUT_SECONDS = 120.0


class RetrySettings(BaseModel):
    """Time budgets and backoff for remote permission calls."""

    propagation_timeout_seconds: float = Field(DEFAULT_PROPAGATION_TIMEOUT_SECONDS, gt=0)
    revoke_timeout_seconds: float = Field(DEFAULT_REVOKE_TIMEOUT_SECONDS, gt=0)
    initial_delay_seconds: float = Field(0.5, gt=0)
    max_delay_seconds: float = Field(10.0, gt=0)

    @model_validator(mode="after")
    def validate_delays(self) -> Self:
        if self.initial_delay_seconds > self.max_delay_seconds:
            raise ValueError(
                f"initial_delay_seconds ({self.initial_delay_seconds}) must not exceed "
                f"max_delay_seconds ({self.max_delay_seconds})"
            )
        return self

    @classmethod
    def from_env(cls) -> "RetrySettings":
        """Build settings from LAKEGRANT_* environment variables."""
        values = {}
        for env_var, field_name in (
            ("LAKEGRANT_PROPAGATION_TIMEOUT", "propagation_timeout_seconds"),
            ("LAKEGRANT_REVOKE_TIMEOUT", "revoke_timeout_seconds"),
            ("LAKEGRANT_RETRY_INITIAL_DELAY", "initial_delay_seconds"),
            ("LAKEGRANT_RETRY_MAX_DELAY", "max_delay_seconds"),
        ):
            value = os.getenv(env_var)
            if value:
                values[field_name] = value
        return cls.model_validate(values)


def load_settings(path: Union[str, Path]) -> RetrySettings:
    """
    Load retry settings from a YAML file.

    Args:
        path: Path to YAML file

    Returns:
        RetrySettings instance

    Raises:
        FileNotFoundError: If file doesn't exist
        yaml.YAMLError: If YAML parsing fails
        ValidationError: If settings validation fails
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")

    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    settings = RetrySettings.model_validate(data)
    logger.info(f"Loaded retry settings from {path}")
    return settings

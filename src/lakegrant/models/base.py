"""
Base classes for data lake permission models.

This module contains the foundational pydantic configuration shared by the
resource locators, requests and reconciled grants.
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict
from typing_extensions import Annotated

# Configure logging
logger = logging.getLogger(__name__)

# =============================================================================
# BASE CONFIGURATION
# =============================================================================

class BaseLakeModel(BaseModel):
    """
    Base model for all permission objects with common configuration.

    This provides standard Pydantic v2 configuration used across the
    resource, request and grant models.
    """

    model_config = ConfigDict(
        validate_assignment=False,  # Disabled for performance
        validate_default=True,  # Validate defaults once
        populate_by_name=True,  # Allow field population by name
        use_enum_values=False,  # Keep enums as enum objects
        str_strip_whitespace=True,  # Strip whitespace from strings
        extra="forbid",  # Unknown locator fields are a caller bug
        json_schema_extra={
            "title": "Data Lake Permissions Model",
            "description": "Base model for data lake permission objects"
        }
    )


def empty_to_none(value: object) -> object:
    """Treat empty strings as unset, the way the service omits them."""
    if isinstance(value, str) and value == "":
        return None
    return value


# Optional identifier where "" means unset
OptionalStr = Annotated[Optional[str], BeforeValidator(empty_to_none)]

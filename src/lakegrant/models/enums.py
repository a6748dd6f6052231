"""
Enum definitions for data lake permission models.

This module contains all enumeration types used throughout the permissions system.
"""

from enum import Enum
from typing import List


class Permission(str, Enum):
    """
    Permissions that can be granted on a data lake resource.

    IMPORTANT:
    - Grants are ADDITIVE - granting an already-held permission is a no-op
    - To remove permissions, you must explicitly REVOKE
    - SELECT on a whole table is stored by the service as a separate
      column-wildcard resource
    """
    ALL = "ALL"
    ALTER = "ALTER"
    ASSOCIATE = "ASSOCIATE"
    CREATE_DATABASE = "CREATE_DATABASE"
    CREATE_TABLE = "CREATE_TABLE"
    CREATE_TAG = "CREATE_TAG"
    DATA_LOCATION_ACCESS = "DATA_LOCATION_ACCESS"
    DELETE = "DELETE"
    DESCRIBE = "DESCRIBE"
    DROP = "DROP"
    INSERT = "INSERT"
    SELECT = "SELECT"


class ResourceType(str, Enum):
    """Identifies which kind of resource a permission is attached to."""
    CATALOG = "CATALOG"
    DATA_LOCATION = "DATA_LOCATION"
    DATABASE = "DATABASE"
    TABLE = "TABLE"
    TABLE_WITH_COLUMNS = "TABLE_WITH_COLUMNS"  # no service-side enum value for this type


def permission_values(permissions: List[Permission]) -> List[str]:
    """Convert a permission list to wire strings, preserving order."""
    return [p.value if isinstance(p, Permission) else str(p) for p in permissions]

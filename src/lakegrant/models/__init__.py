"""
Data lake permission models.

Module organization:
- enums: Permission and ResourceType
- base: BaseLakeModel configuration
- resources: wire-level resource locators (one of five variants)
- requests: declared request shape and locator conversion
- grants: service-reported entries and the reconciled grant
"""

from .base import BaseLakeModel
from .enums import Permission, ResourceType, permission_values
from .grants import PermissionGrant, PrincipalResourcePermissions
from .requests import (
    DatabaseSpec,
    DataLocationSpec,
    PermissionsRequest,
    TableSpec,
    TableWithColumnsSpec,
    flatten_resource,
)
from .resources import (
    CatalogResource,
    ColumnWildcard,
    DatabaseResource,
    DataLocationResource,
    Resource,
    TableResource,
    TableWithColumnsResource,
    describe_resource,
)

__all__ = [
    # Base
    "BaseLakeModel",
    # Enums
    "Permission",
    "ResourceType",
    "permission_values",
    # Resources
    "Resource",
    "CatalogResource",
    "ColumnWildcard",
    "DataLocationResource",
    "DatabaseResource",
    "TableResource",
    "TableWithColumnsResource",
    "describe_resource",
    # Requests
    "PermissionsRequest",
    "DataLocationSpec",
    "DatabaseSpec",
    "TableSpec",
    "TableWithColumnsSpec",
    "flatten_resource",
    # Grants
    "PrincipalResourcePermissions",
    "PermissionGrant",
]

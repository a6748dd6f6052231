"""
Lakegrant - Reconcile data lake permission grants.

This library grants, reads back and revokes fine-grained data catalog
permissions against a permissions service that only offers grant, revoke and
a paginated list.

Key Features:
- One resource locator type per resource shape (catalog, data location,
  database, table, table with columns)
- Read-back by listing and matching, tolerant of service-filled catalog ids
- Whole-table SELECT grants matched through their column-wildcard entry
- Bounded retries for the service's known propagation delays

Quick Start:
    from lakegrant import (
        DatabaseSpec, Permission, PermissionsExecutor, PermissionsRequest,
    )

    executor = PermissionsExecutor(client)
    request = PermissionsRequest(
        principal="arn:aws:iam::123456789012:role/analyst",
        database=DatabaseSpec(name="sales"),
        permissions=[Permission.SELECT, Permission.ALTER],
    )

    result = executor.create(request)
    print(result.grant.permissions)

    grant = executor.read(request)  # None once the grant is gone
    executor.delete(request)
"""

__version__ = "0.1.0"

# =============================================================================
# Models
# =============================================================================

from lakegrant.models import (
    CatalogResource,
    ColumnWildcard,
    DatabaseResource,
    DatabaseSpec,
    DataLocationResource,
    DataLocationSpec,
    Permission,
    PermissionGrant,
    PermissionsRequest,
    PrincipalResourcePermissions,
    Resource,
    ResourceType,
    TableResource,
    TableSpec,
    TableWithColumnsResource,
    TableWithColumnsSpec,
    flatten_resource,
)

# =============================================================================
# Matching, Client Contract and Settings
# =============================================================================

from lakegrant.matching import resources_match, select_permissions_resource
from lakegrant.client import (
    AccessDeniedError,
    ConcurrentModificationError,
    EntityNotFoundError,
    InvalidInputError,
    ListPermissionsPage,
    PermissionsClient,
    RemoteServiceError,
)
from lakegrant.settings import RetrySettings, load_settings

# =============================================================================
# Executors
# =============================================================================

from lakegrant.executors import (
    ExecutionPlan,
    ExecutionResult,
    LakeGrantError,
    OperationCancelledError,
    OperationType,
    PermissionsConsistencyError,
    PermissionsExecutor,
    PermissionsOperationError,
    RetryPolicy,
)

__all__ = [
    "__version__",
    # Models
    "Permission",
    "ResourceType",
    "Resource",
    "CatalogResource",
    "ColumnWildcard",
    "DataLocationResource",
    "DatabaseResource",
    "TableResource",
    "TableWithColumnsResource",
    "PermissionsRequest",
    "DataLocationSpec",
    "DatabaseSpec",
    "TableSpec",
    "TableWithColumnsSpec",
    "flatten_resource",
    "PrincipalResourcePermissions",
    "PermissionGrant",
    # Matching
    "resources_match",
    "select_permissions_resource",
    # Client contract
    "PermissionsClient",
    "ListPermissionsPage",
    "RemoteServiceError",
    "InvalidInputError",
    "ConcurrentModificationError",
    "AccessDeniedError",
    "EntityNotFoundError",
    # Settings
    "RetrySettings",
    "load_settings",
    # Executors
    "PermissionsExecutor",
    "ExecutionResult",
    "ExecutionPlan",
    "OperationType",
    "RetryPolicy",
    # Errors
    "LakeGrantError",
    "PermissionsOperationError",
    "PermissionsConsistencyError",
    "OperationCancelledError",
]

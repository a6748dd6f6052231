"""
Executor modules for applying data lake permissions via the permissions service.
"""

from .base import BaseExecutor, ExecutionPlan, ExecutionResult, OperationType
from .errors import (
    LakeGrantError,
    OperationCancelledError,
    PermissionsConsistencyError,
    PermissionsOperationError,
)
from .permissions_executor import PermissionsExecutor, grant_handle
from .retry import (
    GRANT_RETRY_RULES,
    LIST_RETRY_RULES,
    REVOKE_RETRY_RULES,
    RetryDecision,
    RetryPolicy,
    RetryRule,
    classify_error,
)

__all__ = [
    # Base classes
    "BaseExecutor",
    "ExecutionResult",
    "ExecutionPlan",
    "OperationType",
    # Permission executor
    "PermissionsExecutor",
    "grant_handle",
    # Retry policy
    "RetryPolicy",
    "RetryRule",
    "RetryDecision",
    "classify_error",
    "GRANT_RETRY_RULES",
    "LIST_RETRY_RULES",
    "REVOKE_RETRY_RULES",
    # Errors
    "LakeGrantError",
    "PermissionsOperationError",
    "PermissionsConsistencyError",
    "OperationCancelledError",
]

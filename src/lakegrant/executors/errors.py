"""
Errors raised by the permission executors.

Remote failures are wrapped with the request that was attempted. Consistency
and cancellation failures have their own types so callers can tell them
apart from failed remote calls.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lakegrant.executors.base import OperationType
    from lakegrant.models import PermissionsRequest


class LakeGrantError(Exception):
    """Base class for lakegrant errors."""


class PermissionsOperationError(LakeGrantError):
    """A remote call failed terminally or after its retry budget ran out."""

    def __init__(self, operation: "OperationType", request: "PermissionsRequest", cause: Exception):
        self.operation = operation
        self.request = request
        self.cause = cause
        super().__init__(
            f"error during {operation.value} of data lake permissions "
            f"(request: {request.model_dump_json(exclude_defaults=True)}): {cause}"
        )


class PermissionsConsistencyError(LakeGrantError):
    """
    The permissions were listed, but did not match the declared grant.

    Raised when zero or more than two entries match. Retrying does not help:
    the listing succeeded and is simply inconsistent with the declaration.
    """

    def __init__(self, request: "PermissionsRequest", matched: int, reason: str):
        self.request = request
        self.matched = matched
        self.reason = reason
        super().__init__(f"error reading data lake permissions for {request.principal}: {reason}")


class OperationCancelledError(LakeGrantError):
    """The operation was cancelled between attempts. Safe to rerun from scratch."""

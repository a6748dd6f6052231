"""
Contract of the remote permissions service.

The executors talk to the service through PermissionsClient, injected at
construction. Implementations translate their transport's failures into the
RemoteServiceError subclasses below; the retry rules key off these types and
their messages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from typing_extensions import Protocol

from lakegrant.models import Permission, PrincipalResourcePermissions, Resource


class RemoteServiceError(Exception):
    """Base class for errors reported by the permissions service."""

    error_code = "RemoteServiceError"

    def __init__(self, message: str = ""):
        self.message = message
        super().__init__(f"{self.error_code}: {message}" if message else self.error_code)


class InvalidInputError(RemoteServiceError):
    """The service rejected the request input."""

    error_code = "InvalidInputException"


class ConcurrentModificationError(RemoteServiceError):
    """Another modification of the same permissions was in flight."""

    error_code = "ConcurrentModificationException"


class AccessDeniedError(RemoteServiceError):
    """The caller is not allowed to perform the operation."""

    error_code = "AccessDeniedException"


class EntityNotFoundError(RemoteServiceError):
    """The principal or resource is unknown to the service."""

    error_code = "EntityNotFoundException"


@dataclass
class ListPermissionsPage:
    """
    One page of list results.

    ``next_token`` is None on the last page.
    """

    entries: List[Optional[PrincipalResourcePermissions]] = field(default_factory=list)
    next_token: Optional[str] = None


class PermissionsClient(Protocol):
    """The three operations the permissions service exposes."""

    def grant_permissions(
        self,
        principal: str,
        resource: Resource,
        permissions: List[Permission],
        permissions_with_grant_option: Optional[List[Permission]] = None,
        catalog_id: Optional[str] = None,
    ) -> None:
        """Grant permissions. Granting held permissions again is a no-op."""
        ...

    def revoke_permissions(
        self,
        principal: str,
        resource: Resource,
        permissions: List[Permission],
        permissions_with_grant_option: Optional[List[Permission]] = None,
        catalog_id: Optional[str] = None,
    ) -> None:
        """Revoke permissions."""
        ...

    def list_permissions(
        self,
        principal: str,
        resource: Optional[Resource] = None,
        catalog_id: Optional[str] = None,
        next_token: Optional[str] = None,
    ) -> ListPermissionsPage:
        """Fetch one page of permission entries, starting at next_token."""
        ...

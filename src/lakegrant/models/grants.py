"""
Grant models: permission entries reported by the service, and the grant
reconciled from them.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from .base import BaseLakeModel
from .enums import Permission
from .requests import PermissionsRequest, flatten_resource
from .resources import Resource


class PrincipalResourcePermissions(BaseLakeModel):
    """One permission entry as returned by the service's list operation."""

    principal: str
    resource: Resource
    permissions: List[Permission] = Field(default_factory=list)
    permissions_with_grant_option: List[Permission] = Field(default_factory=list)


class PermissionGrant(BaseLakeModel):
    """
    A grant as re-derived from the service.

    ``permissions`` and ``permissions_with_grant_option`` are the
    concatenation of every matched entry, in match order. ``resource`` is the
    resource the grant was declared on, as the service reports it.
    """

    principal: str
    resource: Resource
    permissions: List[Permission] = Field(default_factory=list)
    permissions_with_grant_option: List[Permission] = Field(default_factory=list)
    matched_resources: List[Resource] = Field(default_factory=list)

    @classmethod
    def from_entries(
        cls,
        entries: List[PrincipalResourcePermissions],
        resource: Optional[Resource] = None,
    ) -> "PermissionGrant":
        """
        Merge matched list entries into one grant.

        Args:
            entries: Matched entries, at least one
            resource: Resource to report for the grant (first entry's if None)

        Returns:
            PermissionGrant with permissions concatenated across entries
        """
        if not entries:
            raise ValueError("Cannot build a grant from zero permission entries")

        permissions: List[Permission] = []
        grantable: List[Permission] = []
        for entry in entries:
            permissions.extend(entry.permissions)
            grantable.extend(entry.permissions_with_grant_option)

        return cls(
            principal=entries[0].principal,
            resource=resource if resource is not None else entries[0].resource,
            permissions=permissions,
            permissions_with_grant_option=grantable,
            matched_resources=[entry.resource for entry in entries],
        )

    def to_request(self, catalog_id: Optional[str] = None) -> PermissionsRequest:
        """Rebuild a request-shaped view of this grant."""
        return PermissionsRequest(
            principal=self.principal,
            catalog_id=catalog_id,
            permissions=list(self.permissions),
            permissions_with_grant_option=list(self.permissions_with_grant_option),
            **flatten_resource(self.resource),
        )

    def has_permissions(self, permissions: List[Permission]) -> bool:
        """Check the grant holds exactly the given permission set."""
        return set(self.permissions) == set(permissions)

"""
Permissions executor for data lake grant reconciliation.

Grants, reads back and revokes the permissions of one principal on one
resource. The service has no get-by-id, so after granting the executor
re-derives the grant by listing the principal's permissions on the resource
and keeping the entries that match the declared locator.
"""

import json
import logging
import threading
import time
import zlib
from typing import Any, Dict, Iterator, List, Optional

from lakegrant.client import EntityNotFoundError, PermissionsClient
from lakegrant.matching import resources_match, select_permissions_resource, table_for_select_resource
from lakegrant.models import (
    PermissionGrant,
    PermissionsRequest,
    PrincipalResourcePermissions,
    Resource,
    TableWithColumnsResource,
    describe_resource,
    permission_values,
)
from lakegrant.settings import RetrySettings

from .base import BaseExecutor, ExecutionResult, OperationType
from .errors import OperationCancelledError, PermissionsConsistencyError, PermissionsOperationError
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

# Base entry plus the whole-table SELECT entry
MAX_MATCHING_ENTRIES = 2


def grant_handle(request: PermissionsRequest) -> str:
    """
    Compute a stable handle for a request.

    The handle is a CRC-32 of the normalized grant input. It is only an
    external reference; nothing is looked up by it.
    """
    canonical = json.dumps(
        {
            "principal": request.principal,
            "catalog_id": request.catalog_id,
            "resource": request.to_resource().model_dump(mode="json", exclude_none=True),
            "permissions": permission_values(request.permissions),
            "permissions_with_grant_option": permission_values(request.permissions_with_grant_option),
        },
        sort_keys=True,
    )
    return str(zlib.crc32(canonical.encode("utf-8")))


class PermissionsExecutor(BaseExecutor[PermissionsRequest]):
    """Executor for data lake permission grants."""

    def __init__(
        self,
        client: PermissionsClient,
        settings: Optional[RetrySettings] = None,
        dry_run: bool = False,
        cancel_event: Optional[threading.Event] = None,
        grant_policy: Optional[RetryPolicy] = None,
        list_policy: Optional[RetryPolicy] = None,
        revoke_policy: Optional[RetryPolicy] = None,
        operation_timeout_seconds: Optional[float] = None,
    ):
        """
        Initialize the permissions executor.

        Args:
            client: Permissions service client
            settings: Retry budgets (environment defaults if None)
            dry_run: If True, only log mutations without executing
            cancel_event: When set, in-flight retry loops abort between attempts
            grant_policy: Override the retry policy for grant
            list_policy: Override the retry policy for list
            revoke_policy: Override the retry policy for revoke
            operation_timeout_seconds: Deadline for each public call, covering
                every retry it makes (a create covers grant and read-back)
        """
        super().__init__(client, settings, dry_run)
        self.cancel_event = cancel_event
        self.grant_policy = grant_policy or RetryPolicy.for_grant(self.settings)
        self.list_policy = list_policy or RetryPolicy.for_list(self.settings)
        self.revoke_policy = revoke_policy or RetryPolicy.for_revoke(self.settings)
        self.operation_timeout_seconds = operation_timeout_seconds

    def get_resource_type(self) -> str:
        """Get the resource type."""
        return "PERMISSIONS"

    def create(self, request: PermissionsRequest) -> ExecutionResult:
        """
        Grant the declared permissions and read them back.

        Args:
            request: The permissions to grant

        Returns:
            ExecutionResult carrying the read-back grant and its handle

        Raises:
            PermissionsOperationError: If granting or listing fails
            PermissionsConsistencyError: If the grant cannot be read back
            OperationCancelledError: If cancelled while retrying
        """
        return self._grant(request, OperationType.CREATE)

    def update(self, request: PermissionsRequest) -> ExecutionResult:
        """
        Re-grant the declared permissions and read them back.

        Grants are additive, so this adds missing permissions; permissions
        held beyond the declaration are left in place.
        """
        return self._grant(request, OperationType.UPDATE)

    def read(self, request: PermissionsRequest) -> Optional[PermissionGrant]:
        """
        Re-derive the grant from the service's permission listing.

        Args:
            request: The declared permissions

        Returns:
            The reconciled grant, or None if the service reports the
            principal/resource as not found

        Raises:
            PermissionsConsistencyError: If zero or more than two entries match
            PermissionsOperationError: If listing fails
            OperationCancelledError: If cancelled or past the deadline while retrying
        """
        return self._read(request, self._deadline(self.list_policy))

    def _read(self, request: PermissionsRequest, deadline: Optional[float]) -> Optional[PermissionGrant]:
        entries = self._read_entries(request, deadline)
        if entries is None:
            return None

        if not entries:
            raise PermissionsConsistencyError(request, 0, "no permissions found")

        if len(entries) > MAX_MATCHING_ENTRIES:
            raise PermissionsConsistencyError(
                request, len(entries), "multiple permissions found for same resource"
            )

        return PermissionGrant.from_entries(entries, resource=self._reported_resource(request, entries))

    def delete(self, request: PermissionsRequest) -> ExecutionResult:
        """
        Revoke the declared permissions.

        A revoke the service answers with "not found" counts as done.

        Args:
            request: The permissions to revoke

        Returns:
            ExecutionResult indicating what was done

        Raises:
            PermissionsOperationError: If revoking fails
            OperationCancelledError: If cancelled while retrying
        """
        start_time = time.time()
        description = self._get_request_name(request)
        resource = request.to_resource()

        if self.dry_run:
            logger.info(f"[DRY RUN] Would revoke {description}")
            return self._record(ExecutionResult(
                success=True,
                operation=OperationType.DELETE,
                resource_type=self.get_resource_type(),
                resource_name=description,
                message="Would be revoked (dry run)",
            ))

        logger.info(f"Revoking {description}")
        try:
            self.revoke_policy.run(
                lambda: self.client.revoke_permissions(**self._mutation_args(request, resource)),
                description=f"revoke {description}",
                cancel_event=self.cancel_event,
                deadline=self._deadline(self.revoke_policy),
            )
        except EntityNotFoundError as e:
            logger.warning(f"Permissions already absent for {description}: {e}")
            return self._record(ExecutionResult(
                success=True,
                operation=OperationType.NO_OP,
                resource_type=self.get_resource_type(),
                resource_name=description,
                message="Not granted",
                duration_seconds=time.time() - start_time,
            ))
        except OperationCancelledError:
            raise
        except Exception as e:
            error = PermissionsOperationError(OperationType.DELETE, request, e)
            self._record_failure(OperationType.DELETE, description, error, start_time)
            raise error from e

        return self._record(ExecutionResult(
            success=True,
            operation=OperationType.DELETE,
            resource_type=self.get_resource_type(),
            resource_name=description,
            message="Revoked successfully",
            duration_seconds=time.time() - start_time,
        ))

    def exists(self, request: PermissionsRequest) -> bool:
        """
        Check if any permission entry matches the request.

        Unlike read(), an empty match is reported as False instead of a
        consistency error.
        """
        return bool(self._read_entries(request, self._deadline(self.list_policy)))

    def _grant(self, request: PermissionsRequest, operation: OperationType) -> ExecutionResult:
        """Grant under the grant retry policy, then read back."""
        start_time = time.time()
        description = self._get_request_name(request)
        resource = request.to_resource()

        if self.dry_run:
            logger.info(f"[DRY RUN] Would grant {description}")
            return self._record(ExecutionResult(
                success=True,
                operation=operation,
                resource_type=self.get_resource_type(),
                resource_name=description,
                message="Would be granted (dry run)",
            ))

        logger.info(f"Granting {description}")
        deadline = self._deadline(self.grant_policy)
        try:
            self.grant_policy.run(
                lambda: self.client.grant_permissions(**self._mutation_args(request, resource)),
                description=f"grant {description}",
                cancel_event=self.cancel_event,
                deadline=deadline,
            )
        except OperationCancelledError:
            raise
        except Exception as e:
            error = PermissionsOperationError(operation, request, e)
            self._record_failure(operation, description, error, start_time)
            raise error from e

        handle = grant_handle(request)

        try:
            grant = self._read(request, deadline)
        except (PermissionsConsistencyError, PermissionsOperationError) as e:
            self._record_failure(operation, description, e, start_time)
            raise

        if grant is None:
            error = PermissionsConsistencyError(request, 0, "permissions not found after grant")
            self._record_failure(operation, description, error, start_time)
            raise error

        return self._record(ExecutionResult(
            success=True,
            operation=operation,
            resource_type=self.get_resource_type(),
            resource_name=description,
            message="Granted successfully",
            duration_seconds=time.time() - start_time,
            grant=grant,
            handle=handle,
        ))

    def _read_entries(
        self,
        request: PermissionsRequest,
        deadline: Optional[float] = None,
    ) -> Optional[List[PrincipalResourcePermissions]]:
        """
        List and filter the entries matching the request.

        Returns:
            Matching entries, or None if the service reports not found
        """
        # Listing cannot filter by columns: list by table, filter afterwards
        list_resource = request.to_resource(squash_table_with_columns=True)
        match_resource = request.to_resource()
        select_resource = select_permissions_resource(request)
        description = self._get_request_name(request)

        logger.debug(f"Reading data lake permissions for {request.principal} on {describe_resource(list_resource)}")
        try:
            return self.list_policy.run(
                lambda: self._list_matching(request, list_resource, match_resource, select_resource),
                description=f"list {description}",
                cancel_event=self.cancel_event,
                deadline=deadline,
            )
        except EntityNotFoundError as e:
            logger.warning(f"Data lake permissions for {description} not found: {e}")
            return None
        except OperationCancelledError:
            raise
        except Exception as e:
            raise PermissionsOperationError(OperationType.READ, request, e) from e

    def _list_matching(
        self,
        request: PermissionsRequest,
        list_resource: Resource,
        match_resource: Resource,
        select_resource: Optional[TableWithColumnsResource],
    ) -> List[PrincipalResourcePermissions]:
        """One full pass over the listing, collecting matches."""
        matched: List[PrincipalResourcePermissions] = []

        for entry in self._iter_permissions(request, list_resource):
            if entry is None:
                continue

            if resources_match(match_resource, entry.resource):
                matched.append(entry)
                continue

            # Whole-table SELECT is stored as a separate {db}.{table}.* resource
            if select_resource is not None and resources_match(select_resource, entry.resource):
                matched.append(entry)

        logger.debug(f"Matched {len(matched)} permission entries for {request.principal}")
        return matched

    def _iter_permissions(
        self,
        request: PermissionsRequest,
        list_resource: Resource,
    ) -> Iterator[Optional[PrincipalResourcePermissions]]:
        """Page through the listing lazily until the last page."""
        next_token: Optional[str] = None
        while True:
            page = self.client.list_permissions(
                principal=request.principal,
                resource=list_resource,
                catalog_id=request.catalog_id,
                next_token=next_token,
            )
            yield from page.entries
            if page.next_token is None:
                return
            next_token = page.next_token

    def _reported_resource(
        self,
        request: PermissionsRequest,
        entries: List[PrincipalResourcePermissions],
    ) -> Resource:
        """Resource to report: the entry matching the declared locator, else the table behind a SELECT entry."""
        match_resource = request.to_resource()
        for entry in entries:
            if resources_match(match_resource, entry.resource):
                return entry.resource

        first = entries[0].resource
        if isinstance(first, TableWithColumnsResource):
            return table_for_select_resource(first)
        return first

    def _deadline(self, policy: RetryPolicy) -> Optional[float]:
        """Absolute deadline on the policy's clock for a call starting now."""
        if self.operation_timeout_seconds is None:
            return None
        return policy.clock() + self.operation_timeout_seconds

    def _mutation_args(self, request: PermissionsRequest, resource: Resource) -> Dict[str, Any]:
        """Keyword arguments for grant_permissions / revoke_permissions."""
        return {
            "principal": request.principal,
            "resource": resource,
            "permissions": list(request.permissions),
            "permissions_with_grant_option": list(request.permissions_with_grant_option) or None,
            "catalog_id": request.catalog_id,
        }

    def _record_failure(
        self,
        operation: OperationType,
        description: str,
        error: Exception,
        start_time: float,
    ) -> None:
        """Record a failed operation before the error propagates."""
        self._record(ExecutionResult(
            success=False,
            operation=operation,
            resource_type=self.get_resource_type(),
            resource_name=description,
            message=str(error),
            error=error,
            duration_seconds=time.time() - start_time,
        ))

    def _get_request_name(self, request: PermissionsRequest) -> str:
        """Human-readable description of a request."""
        permissions = ", ".join(permission_values(request.permissions))
        return f"{permissions} on {describe_resource(request.to_resource())} to {request.principal}"

    def _get_changes(self, request: PermissionsRequest) -> Dict[str, Any]:
        """
        Declared permissions missing from the read-back grant.

        Grants are additive, so permissions held beyond the declaration are
        not a change.
        """
        grant = self.read(request)
        held = set(grant.permissions) if grant else set()
        held_grantable = set(grant.permissions_with_grant_option) if grant else set()
        return {
            "permissions": sorted(permission_values([p for p in request.permissions if p not in held])),
            "permissions_with_grant_option": sorted(permission_values(
                [p for p in request.permissions_with_grant_option if p not in held_grantable]
            )),
        }

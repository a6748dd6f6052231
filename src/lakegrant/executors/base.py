"""
Base executor for data lake permission operations.

Holds the injected client and retry settings, the dry-run flag, and the log
of results every mutation appends to. Subclasses implement the grant
lifecycle; planning and the summary are derived from it here.
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Generic, List, Optional, Tuple, TypeVar

from lakegrant.client import PermissionsClient
from lakegrant.settings import RetrySettings

if TYPE_CHECKING:
    from lakegrant.models import PermissionGrant

logger = logging.getLogger(__name__)

T = TypeVar('T')  # Request type


class OperationType(str, Enum):
    """Types of operations that can be performed."""
    CREATE = "CREATE"
    READ = "READ"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    NO_OP = "NO_OP"


@dataclass
class ExecutionResult:
    """
    Outcome of one grant, update or revoke.

    ``grant`` and ``handle`` are set when a grant was read back after
    granting.
    """

    success: bool
    operation: OperationType
    resource_type: str
    resource_name: str
    message: str = ""
    error: Optional[Exception] = None
    duration_seconds: float = 0.0
    changes: Dict[str, Any] = field(default_factory=dict)
    grant: Optional["PermissionGrant"] = None
    handle: Optional[str] = None

    def __str__(self) -> str:
        outcome = "ok" if self.success else "FAILED"
        text = f"[{outcome}] {self.operation.value} {self.resource_name}"
        if self.message:
            text += f" ({self.message})"
        return text


@dataclass
class ExecutionPlan:
    """Planned operation per request, in request order."""

    operations: List[ExecutionResult] = field(default_factory=list)

    def counts(self) -> Dict[OperationType, int]:
        """Number of planned operations per type."""
        return dict(Counter(op.operation for op in self.operations))

    def __str__(self) -> str:
        if not self.operations:
            return "Nothing to plan"

        lines = []
        for op in self.operations:
            lines.append(f"{op.operation.value:<7} {op.resource_name}")
            for key, values in op.changes.items():
                if values:
                    lines.append(f"        + {key}: {', '.join(values)}")
        totals = ", ".join(f"{count} {operation.value}" for operation, count in self.counts().items())
        lines.append(f"Plan: {totals}")
        return "\n".join(lines)


class BaseExecutor(ABC, Generic[T]):
    """Base class for permission executors."""

    def __init__(
        self,
        client: PermissionsClient,
        settings: Optional[RetrySettings] = None,
        dry_run: bool = False,
    ):
        """
        Initialize the executor.

        Args:
            client: Permissions service client
            settings: Retry budgets (environment defaults if None)
            dry_run: If True, only log mutations without executing
        """
        self.client = client
        self.settings = settings or RetrySettings.from_env()
        self.dry_run = dry_run
        self.results: List[ExecutionResult] = []
        self._results_lock = threading.Lock()

    @abstractmethod
    def create(self, request: T) -> ExecutionResult:
        """Apply a request that is not held yet."""

    @abstractmethod
    def update(self, request: T) -> ExecutionResult:
        """Apply a request that is already (partly) held."""

    @abstractmethod
    def delete(self, request: T) -> ExecutionResult:
        """Remove what the request declares."""

    @abstractmethod
    def exists(self, request: T) -> bool:
        """Check whether anything matching the request is held."""

    @abstractmethod
    def get_resource_type(self) -> str:
        """Label used in results."""

    def create_or_update(self, request: T) -> ExecutionResult:
        """Update when the request is already held, create otherwise."""
        if self.exists(request):
            return self.update(request)
        return self.create(request)

    def plan(self, requests: List[T]) -> ExecutionPlan:
        """
        Work out what applying each request would do, without mutating.

        Args:
            requests: Requests to plan

        Returns:
            ExecutionPlan with one CREATE, UPDATE or NO_OP entry per request
        """
        plan = ExecutionPlan()
        for request in requests:
            operation, changes = self._plan_operation(request)
            plan.operations.append(ExecutionResult(
                success=True,
                operation=operation,
                resource_type=self.get_resource_type(),
                resource_name=self._get_request_name(request),
                message="Planned",
                changes=changes,
            ))
        return plan

    def _plan_operation(self, request: T) -> Tuple[OperationType, Dict[str, Any]]:
        if not self.exists(request):
            return OperationType.CREATE, {}
        changes = self._get_changes(request)
        if any(changes.values()):
            return OperationType.UPDATE, changes
        return OperationType.NO_OP, {}

    def _record(self, result: ExecutionResult) -> ExecutionResult:
        """Append a result to the log and return it."""
        with self._results_lock:
            self.results.append(result)
        if result.success:
            logger.info(str(result))
        else:
            logger.error(str(result))
        return result

    def _get_request_name(self, request: T) -> str:
        return str(request)

    def _get_changes(self, request: T) -> Dict[str, Any]:
        """What an update would add; empty values mean nothing is missing."""
        return {}

    def get_summary(self) -> str:
        """
        Summarize the results log.

        Returns:
            One line of totals, followed by each failed operation
        """
        with self._results_lock:
            results = list(self.results)
        if not results:
            return "No operations performed"

        failures = [r for r in results if not r.success]
        lines = [f"{len(results)} operations: {len(results) - len(failures)} succeeded, {len(failures)} failed"]
        lines.extend(f"  {r}" for r in failures)
        return "\n".join(lines)

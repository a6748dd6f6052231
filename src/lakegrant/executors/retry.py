"""
Retry policy for remote permission calls.

Permission changes propagate slowly through the service, and a few failures
are known to be transient. A RetryPolicy runs one remote call in a bounded
loop; a classifier decides after each attempt whether it succeeded, should be
retried, or failed terminally. The same loop serves grant, revoke and list.

When the time budget runs out, one last attempt is made without retrying and
its outcome is returned or raised as-is.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence, Type, TypeVar

from lakegrant.client import (
    AccessDeniedError,
    ConcurrentModificationError,
    InvalidInputError,
    RemoteServiceError,
)
from lakegrant.settings import RetrySettings

from .errors import OperationCancelledError

logger = logging.getLogger(__name__)

T = TypeVar('T')


class RetryDecision(str, Enum):
    """Outcome of classifying one attempt."""
    SUCCESS = "SUCCESS"
    RETRY = "RETRY"
    TERMINAL = "TERMINAL"


@dataclass(frozen=True)
class RetryRule:
    """
    A transient failure: an error type, optionally narrowed by a message fragment.

    An empty ``message_fragment`` matches every error of the type.
    """

    error_type: Type[RemoteServiceError]
    message_fragment: str = ""

    def matches(self, error: BaseException) -> bool:
        if not isinstance(error, self.error_type):
            return False
        return self.message_fragment in error.message


# Principal not yet visible (IAM propagation)
INVALID_PRINCIPAL = RetryRule(InvalidInputError, "Invalid principal")
# Grantee has not propagated any permissions yet
GRANTEE_HAS_NO_PERMISSIONS = RetryRule(InvalidInputError, "Grantee has no permissions")
# Storage location registration not yet visible
LOCATION_NOT_REGISTERED = RetryRule(InvalidInputError, "register the S3 path")
CONCURRENT_MODIFICATION = RetryRule(ConcurrentModificationError)
# Caller's own permissions not yet visible
PERMISSIONS_NOT_VISIBLE = RetryRule(AccessDeniedError, "is not authorized to access requested permissions")

GRANT_RETRY_RULES = (
    INVALID_PRINCIPAL,
    GRANTEE_HAS_NO_PERMISSIONS,
    LOCATION_NOT_REGISTERED,
    CONCURRENT_MODIFICATION,
    PERMISSIONS_NOT_VISIBLE,
)
LIST_RETRY_RULES = (INVALID_PRINCIPAL,)
REVOKE_RETRY_RULES = (LOCATION_NOT_REGISTERED, CONCURRENT_MODIFICATION)


Classifier = Callable[[Optional[BaseException]], RetryDecision]


def classify_error(rules: Sequence[RetryRule]) -> Classifier:
    """
    Build a classifier from a set of transient-failure rules.

    Args:
        rules: Rules describing retryable errors

    Returns:
        Function mapping an attempt's error (None on success) to a decision
    """
    def classify(error: Optional[BaseException]) -> RetryDecision:
        if error is None:
            return RetryDecision.SUCCESS
        if any(rule.matches(error) for rule in rules):
            return RetryDecision.RETRY
        return RetryDecision.TERMINAL

    return classify


class RetryPolicy:
    """
    Bounded retry loop around a single remote call.

    Usage:
        policy = RetryPolicy.for_grant(RetrySettings())
        policy.run(lambda: client.grant_permissions(...), description="grant")
    """

    def __init__(
        self,
        timeout_seconds: float,
        classifier: Classifier,
        initial_delay_seconds: float = 0.5,
        max_delay_seconds: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the policy.

        Args:
            timeout_seconds: Time budget for retrying
            classifier: Decides SUCCESS / RETRY / TERMINAL per attempt
            initial_delay_seconds: First backoff delay, doubled per attempt
            max_delay_seconds: Backoff cap
            clock: Monotonic clock, injectable for tests
            sleep: Sleep function used when no cancel event is given
        """
        self.timeout_seconds = timeout_seconds
        self.classifier = classifier
        self.initial_delay_seconds = initial_delay_seconds
        self.max_delay_seconds = max_delay_seconds
        self.clock = clock
        self.sleep = sleep

    @classmethod
    def from_settings(cls, settings: RetrySettings, timeout_seconds: float, rules: Sequence[RetryRule]) -> "RetryPolicy":
        return cls(
            timeout_seconds=timeout_seconds,
            classifier=classify_error(rules),
            initial_delay_seconds=settings.initial_delay_seconds,
            max_delay_seconds=settings.max_delay_seconds,
        )

    @classmethod
    def for_grant(cls, settings: RetrySettings) -> "RetryPolicy":
        return cls.from_settings(settings, settings.propagation_timeout_seconds, GRANT_RETRY_RULES)

    @classmethod
    def for_list(cls, settings: RetrySettings) -> "RetryPolicy":
        return cls.from_settings(settings, settings.propagation_timeout_seconds, LIST_RETRY_RULES)

    @classmethod
    def for_revoke(cls, settings: RetrySettings) -> "RetryPolicy":
        return cls.from_settings(settings, settings.revoke_timeout_seconds, REVOKE_RETRY_RULES)

    def run(
        self,
        operation: Callable[[], T],
        description: str = "operation",
        cancel_event: Optional[threading.Event] = None,
        deadline: Optional[float] = None,
    ) -> T:
        """
        Run an operation until it succeeds, fails terminally, or the budget runs out.

        Args:
            operation: Zero-argument remote call
            description: Name used in log messages
            cancel_event: Checked before every attempt and while waiting
            deadline: Absolute time on this policy's clock after which to abort

        Returns:
            Result of the successful attempt

        Raises:
            OperationCancelledError: If cancelled or past the deadline
            Exception: The terminal error, or the final attempt's error
        """
        start = self.clock()
        attempt = 0

        while True:
            self._check_cancelled(description, cancel_event, deadline)
            attempt += 1

            error: Optional[Exception] = None
            result: Optional[T] = None
            try:
                result = operation()
            except Exception as e:
                error = e

            decision = self.classifier(error)
            if decision == RetryDecision.SUCCESS:
                return result
            if decision == RetryDecision.TERMINAL:
                raise error

            delay = min(self.initial_delay_seconds * 2 ** (attempt - 1), self.max_delay_seconds)
            elapsed = self.clock() - start
            if elapsed + delay > self.timeout_seconds:
                logger.warning(
                    f"{description}: retry budget of {self.timeout_seconds:.0f}s exhausted "
                    f"after {attempt} attempts, making final attempt"
                )
                break

            logger.warning(
                f"{description}: attempt {attempt} failed: {error}. "
                f"Retrying in {delay:.1f} seconds..."
            )
            self._wait(delay, description, cancel_event, deadline)

        self._check_cancelled(description, cancel_event, deadline)
        return operation()

    def _check_cancelled(
        self,
        description: str,
        cancel_event: Optional[threading.Event],
        deadline: Optional[float],
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise OperationCancelledError(f"{description}: cancelled")
        if deadline is not None and self.clock() >= deadline:
            raise OperationCancelledError(f"{description}: deadline exceeded")

    def _wait(
        self,
        delay: float,
        description: str,
        cancel_event: Optional[threading.Event],
        deadline: Optional[float],
    ) -> None:
        if deadline is not None:
            delay = max(0.0, min(delay, deadline - self.clock()))

        if cancel_event is not None:
            if cancel_event.wait(delay):
                raise OperationCancelledError(f"{description}: cancelled")
        else:
            self.sleep(delay)

        self._check_cancelled(description, cancel_event, deadline)

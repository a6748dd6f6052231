"""
Shared pytest fixtures for lakegrant tests.

Provides the in-memory permissions service, a controllable clock for retry
budgets, and executors wired to both.
"""

import os
from typing import Generator, List

import pytest

from lakegrant.executors import (
    GRANT_RETRY_RULES,
    LIST_RETRY_RULES,
    REVOKE_RETRY_RULES,
    PermissionsExecutor,
    RetryPolicy,
    classify_error,
)
from lakegrant.settings import RetrySettings
from tests.fixtures import FakePermissionsClient

LAKEGRANT_ENV_VARS = (
    "LAKEGRANT_PROPAGATION_TIMEOUT",
    "LAKEGRANT_REVOKE_TIMEOUT",
    "LAKEGRANT_RETRY_INITIAL_DELAY",
    "LAKEGRANT_RETRY_MAX_DELAY",
)


class FakeClock:
    """Monotonic clock that only advances when slept on."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture(autouse=True)
def reset_environment() -> Generator[None, None, None]:
    """
    Autouse fixture that clears LAKEGRANT_* variables for the test duration.

    This prevents settings bleed between tests.
    """
    original = {name: os.environ.get(name) for name in LAKEGRANT_ENV_VARS}
    for name in LAKEGRANT_ENV_VARS:
        os.environ.pop(name, None)
    yield
    for name, value in original.items():
        if value is not None:
            os.environ[name] = value
        else:
            os.environ.pop(name, None)


@pytest.fixture
def fake_clock() -> FakeClock:
    """Clock shared by every retry policy of a test."""
    return FakeClock()


@pytest.fixture
def retry_settings() -> RetrySettings:
    """Short budgets: 30s for grant/list, 20s for revoke."""
    return RetrySettings(
        propagation_timeout_seconds=30,
        revoke_timeout_seconds=20,
        initial_delay_seconds=1,
        max_delay_seconds=4,
    )


@pytest.fixture
def fake_client() -> FakePermissionsClient:
    """In-memory permissions service with two entries per page."""
    return FakePermissionsClient()


def make_policy(clock: FakeClock, timeout: float, rules, settings: RetrySettings) -> RetryPolicy:
    return RetryPolicy(
        timeout_seconds=timeout,
        classifier=classify_error(rules),
        initial_delay_seconds=settings.initial_delay_seconds,
        max_delay_seconds=settings.max_delay_seconds,
        clock=clock,
        sleep=clock.sleep,
    )


@pytest.fixture
def executor(
    fake_client: FakePermissionsClient,
    fake_clock: FakeClock,
    retry_settings: RetrySettings,
) -> PermissionsExecutor:
    """PermissionsExecutor against the fake service, retrying on the fake clock."""
    return PermissionsExecutor(
        fake_client,
        settings=retry_settings,
        grant_policy=make_policy(fake_clock, retry_settings.propagation_timeout_seconds, GRANT_RETRY_RULES, retry_settings),
        list_policy=make_policy(fake_clock, retry_settings.propagation_timeout_seconds, LIST_RETRY_RULES, retry_settings),
        revoke_policy=make_policy(fake_clock, retry_settings.revoke_timeout_seconds, REVOKE_RETRY_RULES, retry_settings),
    )

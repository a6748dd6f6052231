"""Test fixtures for lakegrant."""

from .fake_client import FakePermissionsClient, RecordedCall
from .model_factories import (
    TEST_ACCOUNT_ID,
    TEST_PRINCIPAL,
    make_columns_request,
    make_database_request,
    make_database_resource,
    make_entry,
    make_location_request,
    make_request,
    make_select_resource,
    make_table_request,
    make_table_resource,
)

__all__ = [
    "FakePermissionsClient",
    "RecordedCall",
    "TEST_ACCOUNT_ID",
    "TEST_PRINCIPAL",
    "make_request",
    "make_database_request",
    "make_table_request",
    "make_columns_request",
    "make_location_request",
    "make_entry",
    "make_database_resource",
    "make_table_resource",
    "make_select_resource",
]

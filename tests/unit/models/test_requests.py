"""
Unit tests for PermissionsRequest.

Tests locator classification, normalization to wire resources, and the
conversion of service resources back into request fields.
"""

import pytest
from pydantic import ValidationError

from lakegrant.models import (
    CatalogResource,
    ColumnWildcard,
    DatabaseResource,
    DatabaseSpec,
    DataLocationResource,
    DataLocationSpec,
    Permission,
    PermissionsRequest,
    ResourceType,
    TableResource,
    TableSpec,
    TableWithColumnsResource,
    TableWithColumnsSpec,
    flatten_resource,
)
from tests.fixtures import (
    TEST_PRINCIPAL,
    make_columns_request,
    make_location_request,
    make_request,
    make_table_request,
)


class TestResourceType:
    """Tests for PermissionsRequest.resource_type()."""

    def test_catalog(self) -> None:
        """catalog_resource=True classifies as CATALOG."""
        request = make_request(catalog_resource=True)
        assert request.resource_type() == ResourceType.CATALOG

    def test_data_location(self) -> None:
        """data_location classifies as DATA_LOCATION."""
        assert make_location_request().resource_type() == ResourceType.DATA_LOCATION

    def test_database(self) -> None:
        """database classifies as DATABASE."""
        assert make_request().resource_type() == ResourceType.DATABASE

    def test_table(self) -> None:
        """table classifies as TABLE."""
        assert make_table_request().resource_type() == ResourceType.TABLE

    def test_table_with_columns(self) -> None:
        """table_with_columns classifies as TABLE_WITH_COLUMNS."""
        request = make_columns_request(column_names=["id"])
        assert request.resource_type() == ResourceType.TABLE_WITH_COLUMNS

    def test_no_locator_rejected(self) -> None:
        """A request without any locator block is a validation error."""
        with pytest.raises(ValidationError, match="A resource must be declared"):
            PermissionsRequest(principal=TEST_PRINCIPAL, permissions=[Permission.SELECT])

    def test_catalog_resource_false_is_no_locator(self) -> None:
        """catalog_resource=False does not count as a locator."""
        with pytest.raises(ValidationError, match="A resource must be declared"):
            PermissionsRequest(principal=TEST_PRINCIPAL, catalog_resource=False, permissions=[Permission.SELECT])

    def test_fallback_is_table_with_columns(self) -> None:
        """Classification falls through to TABLE_WITH_COLUMNS when no earlier block is set."""
        request = PermissionsRequest.model_construct(principal=TEST_PRINCIPAL, permissions=[Permission.SELECT])
        assert request.resource_type() == ResourceType.TABLE_WITH_COLUMNS

    def test_multiple_locators_rejected(self) -> None:
        """Declaring two locator blocks is a validation error."""
        with pytest.raises(ValidationError, match="Only one resource"):
            PermissionsRequest(
                principal=TEST_PRINCIPAL,
                database=DatabaseSpec(name="db1"),
                table=TableSpec(database_name="db1", name="t1"),
                permissions=[Permission.SELECT],
            )

    def test_permissions_required(self) -> None:
        """At least one permission must be declared."""
        with pytest.raises(ValidationError):
            PermissionsRequest(principal=TEST_PRINCIPAL, database=DatabaseSpec(name="db1"), permissions=[])

    def test_permissions_from_strings(self) -> None:
        """Permission strings are parsed into the enum, order preserved."""
        request = PermissionsRequest(
            principal=TEST_PRINCIPAL,
            database=DatabaseSpec(name="db1"),
            permissions=["ALTER", "SELECT"],
        )
        assert request.permissions == [Permission.ALTER, Permission.SELECT]


class TestToResource:
    """Tests for PermissionsRequest.to_resource()."""

    @pytest.mark.parametrize(
        "request_kwargs,expected_type",
        [
            ({"catalog_resource": True}, CatalogResource),
            ({"data_location": DataLocationSpec(arn="arn:aws:s3:::bucket")}, DataLocationResource),
            ({"database": DatabaseSpec(name="db1")}, DatabaseResource),
            ({"table": TableSpec(database_name="db1", name="t1")}, TableResource),
            (
                {"table_with_columns": TableWithColumnsSpec(database_name="db1", name="t1", column_names=["a"])},
                TableWithColumnsResource,
            ),
        ],
    )
    def test_exactly_one_variant(self, request_kwargs, expected_type) -> None:
        """Each locator block produces its own variant."""
        request = make_request(**request_kwargs)
        assert type(request.to_resource()) is expected_type

    def test_database_keeps_catalog_unset(self) -> None:
        """An unset catalog_id stays None rather than being zero-filled."""
        resource = make_request(database=DatabaseSpec(name="db1")).to_resource()
        assert resource == DatabaseResource(name="db1")
        assert resource.catalog_id is None

    def test_empty_catalog_id_is_unset(self) -> None:
        """An empty catalog_id string is treated as unset."""
        resource = make_request(database=DatabaseSpec(name="db1", catalog_id="")).to_resource()
        assert resource.catalog_id is None

    def test_data_location(self) -> None:
        """Data location carries its ARN and catalog id."""
        request = make_request(data_location=DataLocationSpec(arn="arn:aws:s3:::bucket", catalog_id="111"))
        assert request.to_resource() == DataLocationResource(resource_arn="arn:aws:s3:::bucket", catalog_id="111")

    def test_table_wildcard(self) -> None:
        """A wildcard table has no name."""
        resource = make_table_request(name=None, wildcard=True).to_resource()
        assert resource == TableResource(database_name="db1", table_wildcard=True)
        assert resource.name is None

    def test_columns(self) -> None:
        """Included columns are carried without a wildcard."""
        resource = make_columns_request(column_names=["id", "amount"]).to_resource()
        assert resource.column_names == ["id", "amount"]
        assert resource.column_wildcard is None

    def test_excluded_columns_imply_wildcard(self) -> None:
        """Excluded columns produce a column wildcard."""
        resource = make_columns_request(excluded_column_names=["ssn"]).to_resource()
        assert resource.column_names is None
        assert resource.column_wildcard == ColumnWildcard(excluded_column_names=["ssn"])

    def test_explicit_column_wildcard(self) -> None:
        """column_wildcard=True without exclusions gives an empty wildcard."""
        request = make_request(
            table_with_columns=TableWithColumnsSpec(database_name="db1", name="t1", column_wildcard=True)
        )
        assert request.to_resource().column_wildcard == ColumnWildcard()

    def test_squash_table_with_columns(self) -> None:
        """Squashing collapses table-with-columns to its table."""
        request = make_columns_request(column_names=["id"])
        assert request.to_resource(squash_table_with_columns=True) == TableResource(database_name="db1", name="t1")

    def test_squash_leaves_other_variants(self) -> None:
        """Squashing has no effect on other variants."""
        request = make_table_request()
        assert request.to_resource(squash_table_with_columns=True) == request.to_resource()

    def test_fallback_without_block_raises(self) -> None:
        """Normalizing an unvalidated request without any locator fails."""
        request = PermissionsRequest.model_construct(principal=TEST_PRINCIPAL, permissions=[Permission.SELECT])
        with pytest.raises(ValueError, match="No resource declared"):
            request.to_resource()


class TestTableWithColumnsSpec:
    """Tests for column validation."""

    def test_columns_and_exclusions_conflict(self) -> None:
        """column_names and excluded_column_names are mutually exclusive."""
        with pytest.raises(ValidationError, match="conflicts"):
            TableWithColumnsSpec(database_name="db1", name="t1", column_names=["a"], excluded_column_names=["b"])

    def test_empty_column_name_rejected(self) -> None:
        """Column names must be non-empty."""
        with pytest.raises(ValidationError, match="non-empty"):
            TableWithColumnsSpec(database_name="db1", name="t1", column_names=["a", ""])


class TestFlattenResource:
    """Tests for flatten_resource() round trips."""

    @pytest.mark.parametrize(
        "resource",
        [
            CatalogResource(),
            DataLocationResource(resource_arn="arn:aws:s3:::bucket", catalog_id="111"),
            DatabaseResource(name="db1"),
            DatabaseResource(name="db1", catalog_id="111"),
            TableResource(database_name="db1", name="t1", catalog_id="111"),
            TableResource(database_name="db1", table_wildcard=True),
            TableWithColumnsResource(database_name="db1", name="t1", column_names=["a", "b"]),
            TableWithColumnsResource(
                database_name="db1", name="t1", column_wildcard=ColumnWildcard(excluded_column_names=["ssn"])
            ),
            TableWithColumnsResource(database_name="db1", name="t1", column_wildcard=ColumnWildcard()),
        ],
    )
    def test_round_trip(self, resource) -> None:
        """Normalizing a flattened resource gives the resource back."""
        request = PermissionsRequest(
            principal=TEST_PRINCIPAL,
            permissions=[Permission.SELECT],
            **flatten_resource(resource),
        )
        assert request.to_resource() == resource

    def test_catalog_flag(self) -> None:
        """Catalog flattens to catalog_resource=True."""
        assert flatten_resource(CatalogResource()) == {"catalog_resource": True}

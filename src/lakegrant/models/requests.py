"""
Permission request models.

A PermissionsRequest is the declared, request-shaped form of a grant: one
principal, one locator block, and the permissions to hold on it. This module
also converts between the request shape and the wire-level Resource
locators in both directions.

Locator precedence (used when classifying a request):
    catalog_resource > data_location > database > table > table_with_columns

table_with_columns is the fallback when nothing else is set. Listing must
know which variant was declared, so the order is fixed.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pydantic import Field, model_validator
from typing_extensions import Self

from .base import BaseLakeModel, OptionalStr
from .enums import Permission, ResourceType
from .resources import (
    CatalogResource,
    ColumnWildcard,
    DatabaseResource,
    DataLocationResource,
    Resource,
    TableResource,
    TableWithColumnsResource,
)

logger = logging.getLogger(__name__)


class DataLocationSpec(BaseLakeModel):
    """Declared data location block."""

    arn: str = Field(..., min_length=1, description="ARN of the registered storage location")
    catalog_id: OptionalStr = None


class DatabaseSpec(BaseLakeModel):
    """Declared database block."""

    name: str = Field(..., min_length=1)
    catalog_id: OptionalStr = None


class TableSpec(BaseLakeModel):
    """Declared table block. ``wildcard`` means all tables in the database."""

    database_name: str = Field(..., min_length=1)
    name: OptionalStr = None
    wildcard: bool = False
    catalog_id: OptionalStr = None


class TableWithColumnsSpec(BaseLakeModel):
    """
    Declared table-with-columns block.

    Either list the included ``column_names``, or select every column with
    ``column_wildcard`` / ``excluded_column_names``. A non-empty
    ``excluded_column_names`` implies the wildcard.
    """

    database_name: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    column_names: List[str] = Field(default_factory=list)
    excluded_column_names: List[str] = Field(default_factory=list)
    column_wildcard: bool = False
    catalog_id: OptionalStr = None

    @model_validator(mode="after")
    def validate_columns(self) -> Self:
        """Included and excluded columns cannot both be given."""
        if self.column_names and (self.excluded_column_names or self.column_wildcard):
            raise ValueError(
                f"Table {self.database_name}.{self.name}: column_names conflicts with "
                f"excluded_column_names/column_wildcard"
            )
        if any(not c for c in self.column_names + self.excluded_column_names):
            raise ValueError(f"Table {self.database_name}.{self.name}: column names must be non-empty")
        return self


class PermissionsRequest(BaseLakeModel):
    """
    Declared grant of permissions for one principal on one resource.

    Example:
        ```python
        request = PermissionsRequest(
            principal="arn:aws:iam::123456789012:role/analyst",
            database=DatabaseSpec(name="sales"),
            permissions=[Permission.SELECT, Permission.ALTER],
        )
        ```
    """

    principal: str = Field(..., min_length=1, description="Data lake principal identifier")
    catalog_id: OptionalStr = Field(None, description="Catalog to grant in (service default when unset)")

    catalog_resource: bool = False
    data_location: Optional[DataLocationSpec] = None
    database: Optional[DatabaseSpec] = None
    table: Optional[TableSpec] = None
    table_with_columns: Optional[TableWithColumnsSpec] = None

    permissions: List[Permission] = Field(..., min_length=1)
    permissions_with_grant_option: List[Permission] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_single_locator(self) -> Self:
        """Exactly one locator block must be declared."""
        declared = [
            name for name, value in (
                ("catalog_resource", self.catalog_resource),
                ("data_location", self.data_location),
                ("database", self.database),
                ("table", self.table),
                ("table_with_columns", self.table_with_columns),
            ) if value
        ]
        if not declared:
            raise ValueError(
                "A resource must be declared: one of catalog_resource, data_location, "
                "database, table or table_with_columns"
            )
        if len(declared) > 1:
            raise ValueError(f"Only one resource may be declared, got: {', '.join(declared)}")
        return self

    def resource_type(self) -> ResourceType:
        """
        Classify which resource variant this request declares.

        Falls back to TABLE_WITH_COLUMNS when no other block is set.
        """
        if self.catalog_resource:
            return ResourceType.CATALOG
        if self.data_location is not None:
            return ResourceType.DATA_LOCATION
        if self.database is not None:
            return ResourceType.DATABASE
        if self.table is not None:
            return ResourceType.TABLE
        return ResourceType.TABLE_WITH_COLUMNS

    def to_resource(self, squash_table_with_columns: bool = False) -> Resource:
        """
        Build the wire-level resource locator for this request.

        Args:
            squash_table_with_columns: Collapse a table-with-columns locator to
                its plain table. Listing cannot filter by columns, so callers
                list by table and filter the entries afterwards.

        Returns:
            Exactly one populated Resource variant

        Raises:
            ValueError: If the request falls back to table-with-columns but
                declares no table_with_columns block
        """
        resource_type = self.resource_type()

        if resource_type == ResourceType.CATALOG:
            return CatalogResource()
        if resource_type == ResourceType.DATA_LOCATION:
            return DataLocationResource(
                catalog_id=self.data_location.catalog_id,
                resource_arn=self.data_location.arn,
            )
        if resource_type == ResourceType.DATABASE:
            return DatabaseResource(catalog_id=self.database.catalog_id, name=self.database.name)
        if resource_type == ResourceType.TABLE:
            return TableResource(
                catalog_id=self.table.catalog_id,
                database_name=self.table.database_name,
                name=self.table.name,
                table_wildcard=self.table.wildcard,
            )

        spec = self.table_with_columns
        if spec is None:
            raise ValueError(f"No resource declared for principal {self.principal}")

        if squash_table_with_columns:
            return TableResource(catalog_id=spec.catalog_id, database_name=spec.database_name, name=spec.name)

        column_wildcard = None
        if spec.excluded_column_names or spec.column_wildcard:
            column_wildcard = ColumnWildcard(excluded_column_names=list(spec.excluded_column_names))

        return TableWithColumnsResource(
            catalog_id=spec.catalog_id,
            database_name=spec.database_name,
            name=spec.name,
            column_names=list(spec.column_names) or None,
            column_wildcard=column_wildcard,
        )


def flatten_resource(resource: Resource) -> Dict[str, Any]:
    """
    Convert a wire-level resource back into request-shaped keyword arguments.

    The result can be splatted into PermissionsRequest together with the
    principal and permissions. Fields the resource does not carry are left
    out rather than zero-filled.
    """
    if isinstance(resource, CatalogResource):
        return {"catalog_resource": True}

    if isinstance(resource, DataLocationResource):
        return {"data_location": DataLocationSpec(arn=resource.resource_arn, catalog_id=resource.catalog_id)}

    if isinstance(resource, DatabaseResource):
        return {"database": DatabaseSpec(name=resource.name, catalog_id=resource.catalog_id)}

    if isinstance(resource, TableResource):
        return {
            "table": TableSpec(
                database_name=resource.database_name,
                name=resource.name,
                wildcard=resource.table_wildcard,
                catalog_id=resource.catalog_id,
            )
        }

    if isinstance(resource, TableWithColumnsResource):
        wildcard = resource.column_wildcard
        return {
            "table_with_columns": TableWithColumnsSpec(
                database_name=resource.database_name,
                name=resource.name,
                column_names=list(resource.column_names or []),
                excluded_column_names=list(wildcard.excluded_column_names) if wildcard else [],
                column_wildcard=wildcard is not None,
                catalog_id=resource.catalog_id,
            )
        }

    raise TypeError(f"Unknown resource type: {type(resource).__name__}")

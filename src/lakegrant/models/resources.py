"""
Resource locator models.

A resource locator says *what* a permission is attached to. Exactly one of
five shapes is possible, modelled as a discriminated union on
``resource_type``:

- CatalogResource: the whole catalog
- DataLocationResource: a registered storage path
- DatabaseResource: a database
- TableResource: one table, or every table in a database (``table_wildcard``)
- TableWithColumnsResource: a table restricted to, or excluding, columns

``catalog_id`` is optional everywhere. When omitted, the service fills in the
caller's account catalog, so locators read back from the service usually
carry it even though the declared locator did not.
"""

from __future__ import annotations

from typing import List, Literal, Optional, Union

from pydantic import Field
from typing_extensions import Annotated

from .base import BaseLakeModel, OptionalStr


class ColumnWildcard(BaseLakeModel):
    """All columns of a table, minus ``excluded_column_names``."""

    excluded_column_names: List[str] = Field(default_factory=list, description="Columns left out of the wildcard")


class CatalogResource(BaseLakeModel):
    """The whole data catalog."""

    resource_type: Literal["CATALOG"] = "CATALOG"


class DataLocationResource(BaseLakeModel):
    """A registered storage location, identified by ARN."""

    resource_type: Literal["DATA_LOCATION"] = "DATA_LOCATION"
    catalog_id: OptionalStr = Field(None, description="Catalog owning the location registration")
    resource_arn: str = Field(..., min_length=1, description="ARN of the registered location")


class DatabaseResource(BaseLakeModel):
    """A database in the catalog."""

    resource_type: Literal["DATABASE"] = "DATABASE"
    catalog_id: OptionalStr = None
    name: str = Field(..., min_length=1)


class TableResource(BaseLakeModel):
    """
    A table, or all tables of a database.

    When ``table_wildcard`` is set, ``name`` is not used.
    """

    resource_type: Literal["TABLE"] = "TABLE"
    catalog_id: OptionalStr = None
    database_name: str = Field(..., min_length=1)
    name: OptionalStr = None
    table_wildcard: bool = False


class TableWithColumnsResource(BaseLakeModel):
    """
    A table restricted to a column subset.

    ``column_names`` lists included columns. ``column_wildcard`` selects all
    columns except its exclusions. The two are mutually exclusive.
    """

    resource_type: Literal["TABLE_WITH_COLUMNS"] = "TABLE_WITH_COLUMNS"
    catalog_id: OptionalStr = None
    database_name: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    column_names: Optional[List[str]] = None
    column_wildcard: Optional[ColumnWildcard] = None


Resource = Annotated[
    Union[
        CatalogResource,
        DataLocationResource,
        DatabaseResource,
        TableResource,
        TableWithColumnsResource,
    ],
    Field(discriminator="resource_type"),
]


def describe_resource(resource: Resource) -> str:
    """Human-readable description of a resource for logs and results."""
    if isinstance(resource, CatalogResource):
        return "CATALOG"
    if isinstance(resource, DataLocationResource):
        return f"DATA_LOCATION {resource.resource_arn}"
    if isinstance(resource, DatabaseResource):
        return f"DATABASE {resource.name}"
    if isinstance(resource, TableResource):
        table = "*" if resource.table_wildcard else resource.name
        return f"TABLE {resource.database_name}.{table}"
    if isinstance(resource, TableWithColumnsResource):
        if resource.column_wildcard is not None:
            excluded = resource.column_wildcard.excluded_column_names
            columns = f"* except {excluded}" if excluded else "*"
        else:
            columns = str(resource.column_names or [])
        return f"TABLE_WITH_COLUMNS {resource.database_name}.{resource.name} {columns}"
    raise TypeError(f"Unknown resource type: {type(resource).__name__}")

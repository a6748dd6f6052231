"""
Resource matching for permission read-back.

The service offers no get-by-id, so a grant is re-derived by listing and
keeping the entries whose resource denotes the declared one. Two quirks
shape the comparison:

- catalog_id is filled in by the service when omitted, so an unset
  catalog_id matches any reported value.
- SELECT on a whole table is stored as a separate table-with-columns entry
  with an empty column wildcard. select_permissions_resource() builds that
  auxiliary locator for table requests.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from lakegrant.models import (
    CatalogResource,
    ColumnWildcard,
    DatabaseResource,
    DataLocationResource,
    PermissionsRequest,
    Resource,
    TableResource,
    TableWithColumnsResource,
)

logger = logging.getLogger(__name__)


def _fill_catalog_id(resource: Resource, other: Resource) -> Resource:
    """Copy other's catalog_id into a scratch copy of resource when unset."""
    if getattr(resource, "catalog_id", None) is None and getattr(other, "catalog_id", None) is not None:
        return resource.model_copy(update={"catalog_id": other.catalog_id})
    return resource


def _same_columns(left: Optional[List[str]], right: Optional[List[str]]) -> bool:
    return list(left or []) == list(right or [])


def _same_wildcard(left: Optional[ColumnWildcard], right: Optional[ColumnWildcard]) -> bool:
    if left is None or right is None:
        return left is None and right is None
    return _same_columns(left.excluded_column_names, right.excluded_column_names)


def resources_match(declared: Resource, reported: Resource) -> bool:
    """
    Decide whether two resource locators denote the same resource.

    Locators of different variants never match. Within a variant, an unset
    catalog_id on either side takes the other side's value before the fields
    are compared. Neither argument is modified.

    Args:
        declared: Locator built from the request
        reported: Locator reported by the service

    Returns:
        True if both locators denote the same resource
    """
    if type(declared) is not type(reported):
        return False

    left = _fill_catalog_id(declared, reported)
    right = _fill_catalog_id(reported, declared)

    if isinstance(left, CatalogResource):
        return True

    if isinstance(left, DataLocationResource):
        return left.catalog_id == right.catalog_id and left.resource_arn == right.resource_arn

    if isinstance(left, DatabaseResource):
        return left.catalog_id == right.catalog_id and left.name == right.name

    if isinstance(left, TableResource):
        return (
            left.catalog_id == right.catalog_id
            and left.database_name == right.database_name
            and left.name == right.name
            and left.table_wildcard == right.table_wildcard
        )

    if isinstance(left, TableWithColumnsResource):
        return (
            left.catalog_id == right.catalog_id
            and left.database_name == right.database_name
            and left.name == right.name
            and _same_columns(left.column_names, right.column_names)
            and _same_wildcard(left.column_wildcard, right.column_wildcard)
        )

    raise TypeError(f"Unknown resource type: {type(declared).__name__}")


def select_permissions_resource(request: PermissionsRequest) -> Optional[TableWithColumnsResource]:
    """
    Build the auxiliary locator the service uses for whole-table SELECT.

    Granting SELECT on a table is stored as a table-with-columns entry for
    ``{db}.{table}.*``. Only used to match entries during read; never sent on
    grant or revoke.

    Returns:
        The column-wildcard locator, or None when the request has no table
        block with both database_name and name
    """
    table = request.table
    if table is None or not table.database_name or not table.name:
        return None

    return TableWithColumnsResource(
        database_name=table.database_name,
        name=table.name,
        column_wildcard=ColumnWildcard(),
    )


def table_for_select_resource(resource: TableWithColumnsResource) -> TableResource:
    """Map a whole-table SELECT entry back to the table it was granted on."""
    return TableResource(
        catalog_id=resource.catalog_id,
        database_name=resource.database_name,
        name=resource.name,
    )

"""Name-based selection rules for API Gateway resources.

These functions only talk to an :class:`~apigw_tools.port.ApiGatewayPort`, so
they are testable without AWS.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol, TypeVar

from apigw_tools.errors import AmbiguousError, IncompleteResultError, NotFoundError
from apigw_tools.port import DEFAULT_PAGE_LIMIT, ApiGatewayPort

LOG = logging.getLogger(__name__)


class _Named(Protocol):
    @property
    def name(self) -> str | None: ...


T = TypeVar("T", bound=_Named)


def find_unique_by_name(items: Sequence[T], name: str, label: str) -> T:
    """Select exactly one item from *items* for *name*.

    An exact ``name`` match always wins. With no exact match, a single-item
    collection is accepted as-is (the server-side query already narrowed it
    down). Anything else is an error: several exact matches or several
    inexact candidates raise :class:`AmbiguousError`, an empty collection
    raises :class:`NotFoundError`.
    """
    exact = [item for item in items if item.name == name]
    if len(exact) == 1:
        return exact[0]
    if len(exact) > 1:
        raise AmbiguousError(f"Ambiguous {label}: multiple results match name '{name}'.")

    if len(items) == 1:
        return items[0]
    if not items:
        raise NotFoundError(f"Unable to find {label} '{name}'.")

    raise AmbiguousError(f"Ambiguous {label}: multiple results match query for '{name}'.")


def resolve_rest_api_id_by_name(port: ApiGatewayPort, api_name: str) -> str:
    """Return the id of the REST API called *api_name*."""
    apis = port.list_rest_apis(limit=DEFAULT_PAGE_LIMIT)
    api = find_unique_by_name(apis, api_name, "REST API")
    if not api.id:
        raise IncompleteResultError(f"Unable to resolve REST API id for '{api_name}'.")
    LOG.debug("Resolved REST API %r to id %s", api_name, api.id)
    return api.id


def get_api_key_value_by_name(port: ApiGatewayPort, key_name: str) -> str:
    """Return the value of the API key called *key_name*."""
    keys = port.list_api_keys(
        name_query=key_name,
        include_values=True,
        limit=DEFAULT_PAGE_LIMIT,
    )
    key = find_unique_by_name(keys, key_name, "API key")
    if not key.value:
        raise IncompleteResultError(f"API key '{key_name}' is missing a value (include_values?).")
    return key.value


def get_api_key_values_by_names(port: ApiGatewayPort, key_names: Sequence[str]) -> list[str]:
    """Return key values in the same order as *key_names*.

    Lookups run one at a time; the first failing name aborts the batch.
    """
    values: list[str] = []
    for key_name in key_names:
        values.append(get_api_key_value_by_name(port, key_name))
    return values

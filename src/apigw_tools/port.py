# Copyright (c) 2026 Ramin Firoozye
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Abstract port for the API Gateway operations used by this package.

The resolution services depend only on :class:`ApiGatewayPort`, so they can be
exercised against any in-memory implementation. :class:`~apigw_tools.tools.AwsApiGatewayTools`
implements it on top of boto3.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

DEFAULT_PAGE_LIMIT: int = 500


@dataclass(frozen=True)
class RestApiSummary:
    """Minimal REST API descriptor (subset of the API Gateway fields)."""

    id: str | None = None
    name: str | None = None

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> RestApiSummary:
        return cls(id=item.get("id"), name=item.get("name"))


@dataclass(frozen=True)
class ApiKeySummary:
    """Minimal API key descriptor. ``value`` is only set when values were requested."""

    id: str | None = None
    name: str | None = None
    value: str | None = None

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> ApiKeySummary:
        return cls(id=item.get("id"), name=item.get("name"), value=item.get("value"))


class ApiGatewayPort(ABC):
    """Capability set consumed by the resolution services.

    Listing methods must return the complete collection for a query; any
    pagination is absorbed by the implementation.
    """

    @abstractmethod
    def list_rest_apis(self, limit: int = DEFAULT_PAGE_LIMIT) -> list[RestApiSummary]:
        """Return every REST API visible to the caller."""

    @abstractmethod
    def list_api_keys(
        self,
        name_query: str,
        include_values: bool,
        limit: int = DEFAULT_PAGE_LIMIT,
    ) -> list[ApiKeySummary]:
        """Return every API key matching *name_query* (server-side filter)."""

    @abstractmethod
    def flush_stage_cache(self, rest_api_id: str, stage_name: str) -> None:
        """Flush the cache of stage *stage_name* on REST API *rest_api_id*."""

# Copyright (c) 2026 Ramin Firoozye
# SPDX-License-Identifier: AGPL-3.0-or-later

"""AwsApiGatewayTools -- boto3-backed wrapper for API Gateway (REST APIs).

Requires ``boto3``. Most callers use the convenience methods; ``tools.client``
is the escape hatch for operations not wrapped here.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from apigw_tools.port import DEFAULT_PAGE_LIMIT, ApiGatewayPort, ApiKeySummary, RestApiSummary
from apigw_tools.services import get_api_key_values_by_names, resolve_rest_api_id_by_name
from apigw_tools.util import assert_logger, require
from apigw_tools.xray import DAEMON_ADDRESS_ENV, XrayMode, XrayState, capture_client, should_enable_xray

LOG = logging.getLogger(__name__)

# Upper bound on pages fetched per listing; stops a malformed cursor chain.
MAX_PAGES: int = 200

_MISSING_BOTO3 = (
    "boto3 is required for apigw-tools. "
    "Install it with: pip install apigw-tools"
)


def _get_client(
    profile: str | None = None,
    region: str | None = None,
    client_config: Mapping[str, Any] | None = None,
    endpoint_url: str | None = None,
) -> Any:
    try:
        import boto3  # type: ignore[import-untyped]
        from botocore.config import Config  # type: ignore[import-untyped]
    except ModuleNotFoundError:
        raise RuntimeError(_MISSING_BOTO3) from None

    session_kwargs: dict[str, str] = {}
    if profile:
        session_kwargs["profile_name"] = profile
    if region:
        session_kwargs["region_name"] = region
    session = boto3.Session(**session_kwargs)

    client_kwargs: dict[str, Any] = {}
    if client_config:
        client_kwargs["config"] = Config(**client_config)
    if endpoint_url:
        client_kwargs["endpoint_url"] = endpoint_url
    return session.client("apigateway", **client_kwargs)


@dataclass(frozen=True)
class FlushStageCacheByNameResult:
    """Outcome of :meth:`AwsApiGatewayTools.flush_stage_cache_by_name`."""

    api_id: str


class AwsApiGatewayTools(ApiGatewayPort):
    """Tools-style API Gateway wrapper implementing :class:`ApiGatewayPort`.

    Parameters
    ----------
    profile, region : str, optional
        Passed to ``boto3.Session``. Unset values fall back to the usual AWS
        environment/config resolution.
    client_config : mapping, optional
        Keyword arguments for ``botocore.config.Config`` (retries, timeouts,
        user agent, ...).
    endpoint_url : str, optional
        Custom API Gateway endpoint (e.g. LocalStack).
    logger : logging.Logger-like, optional
        Must implement ``debug``, ``info``, ``warning`` and ``error``.
        Defaults to this module's logger.
    xray : XrayMode or str, default "auto"
        X-Ray capture mode; see :mod:`apigw_tools.xray`.
    client : object, optional
        Pre-built API Gateway client. When given, no boto3 session is created.
    environ : mapping, optional
        Environment consulted for ``AWS_XRAY_DAEMON_ADDRESS`` (default ``os.environ``).

    Raises
    ------
    LoggerContractError
        If *logger* does not implement the four logging methods.
    XrayUnavailableError
        If capture is enabled but ``aws-xray-sdk`` is missing, or ``xray="on"``
        and no daemon address is configured.
    """

    def __init__(
        self,
        *,
        profile: str | None = None,
        region: str | None = None,
        client_config: Mapping[str, Any] | None = None,
        endpoint_url: str | None = None,
        logger: Any = None,
        xray: XrayMode | str = XrayMode.AUTO,
        client: Any = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.logger = assert_logger(logger if logger is not None else LOG)
        self.profile = profile
        self.region = region

        mode = XrayMode.parse(xray)
        daemon_address = (os.environ if environ is None else environ).get(DAEMON_ADDRESS_ENV) or None
        enabled = should_enable_xray(mode, daemon_address)

        base = client if client is not None else _get_client(profile, region, client_config, endpoint_url)
        self.client: Any = capture_client(base, daemon_address) if enabled and daemon_address else base
        self.xray = XrayState(
            mode=mode,
            enabled=enabled,
            daemon_address=daemon_address if enabled else None,
        )

    def _paginate(self, operation: str, **params: Any) -> list[dict[str, Any]]:
        """Call *operation* repeatedly, following ``position`` until exhausted."""
        method = getattr(self.client, operation)
        items: list[dict[str, Any]] = []
        position: str | None = None
        for _ in range(MAX_PAGES):
            kwargs = dict(params)
            if position:
                kwargs["position"] = position
            resp = method(**kwargs)
            items.extend(resp.get("items") or [])
            position = resp.get("position")
            if not position:
                break
        else:
            self.logger.warning("%s: stopped after %d pages", operation, MAX_PAGES)
        return items

    def list_rest_apis(self, limit: int = DEFAULT_PAGE_LIMIT) -> list[RestApiSummary]:
        """List every REST API (paginated)."""
        return [RestApiSummary.from_item(item) for item in self._paginate("get_rest_apis", limit=limit)]

    def list_api_keys(
        self,
        name_query: str,
        include_values: bool,
        limit: int = DEFAULT_PAGE_LIMIT,
    ) -> list[ApiKeySummary]:
        """List API keys whose name matches *name_query* (paginated)."""
        require(name_query, "name_query")
        items = self._paginate(
            "get_api_keys",
            nameQuery=name_query,
            includeValues=include_values,
            limit=limit,
        )
        return [ApiKeySummary.from_item(item) for item in items]

    def flush_stage_cache(self, rest_api_id: str, stage_name: str) -> None:
        """Flush the stage cache for a known REST API id."""
        require(rest_api_id, "rest_api_id")
        require(stage_name, "stage_name")
        self.logger.debug("Flushing stage cache (rest_api_id=%s, stage_name=%s)", rest_api_id, stage_name)
        self.client.flush_stage_cache(restApiId=rest_api_id, stageName=stage_name)

    def flush_stage_cache_by_name(self, api_name: str, stage_name: str) -> FlushStageCacheByNameResult:
        """Resolve the REST API id for *api_name*, then flush *stage_name*.

        Returns the resolved id. No flush is attempted if resolution fails.
        """
        require(api_name, "api_name")
        require(stage_name, "stage_name")
        api_id = resolve_rest_api_id_by_name(self, api_name)
        self.flush_stage_cache(api_id, stage_name)
        return FlushStageCacheByNameResult(api_id=api_id)

    def get_api_key_values_by_names(self, key_names: Sequence[str]) -> list[str]:
        """Return API key values in *key_names* order; any missing or ambiguous name fails the call."""
        require(list(key_names), "key_names")
        return get_api_key_values_by_names(self, key_names)

# Copyright (c) 2026 Ramin Firoozye
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Optional AWS X-Ray capture for the API Gateway client.

Requires ``aws-xray-sdk`` (install with ``pip install apigw-tools[xray]``).
Capture is decided once, when :class:`~apigw_tools.tools.AwsApiGatewayTools`
is constructed:

- ``auto`` (default): enabled only when ``AWS_XRAY_DAEMON_ADDRESS`` is set.
- ``on``: always enabled; fails when the daemon address is missing.
- ``off``: never enabled.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from apigw_tools.errors import XrayUnavailableError

LOG = logging.getLogger(__name__)

DAEMON_ADDRESS_ENV = "AWS_XRAY_DAEMON_ADDRESS"

_MISSING_XRAY_SDK = (
    "aws-xray-sdk is required for X-Ray capture. "
    "Install it with: pip install apigw-tools[xray]"
)

# Client helpers that do not issue API calls by themselves.
_UNTRACED = frozenset({"can_paginate", "close", "get_paginator", "get_waiter"})


class XrayMode(str, Enum):
    AUTO = "auto"
    ON = "on"
    OFF = "off"

    @classmethod
    def parse(cls, value: XrayMode | str) -> XrayMode:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(m.value for m in cls)
            raise ValueError(f"Invalid xray mode {value!r}. Expected one of: {choices}") from None


@dataclass(frozen=True)
class XrayState:
    """Materialized capture state: mode, whether it is on, and the daemon it reports to."""

    mode: XrayMode
    enabled: bool
    daemon_address: str | None = None


def should_enable_xray(mode: XrayMode | str, daemon_address: str | None) -> bool:
    """Decide whether capture is on for *mode* given the configured daemon address."""
    mode = XrayMode.parse(mode)
    if mode is XrayMode.OFF:
        return False
    if mode is XrayMode.ON:
        if not daemon_address:
            raise XrayUnavailableError(
                f"X-Ray capture is on but {DAEMON_ADDRESS_ENV} is not set."
            )
        return True
    return bool(daemon_address)


def _get_recorder(daemon_address: str) -> Any:
    try:
        from aws_xray_sdk.core import xray_recorder  # type: ignore[import-untyped]
    except ModuleNotFoundError:
        raise XrayUnavailableError(_MISSING_XRAY_SDK) from None

    xray_recorder.configure(
        daemon_address=daemon_address,
        context_missing="LOG_ERROR",
    )
    return xray_recorder


class XrayCapturedClient:
    """Proxy that runs every client operation inside an X-Ray subsegment.

    Attributes that are not operations (``meta``, ``exceptions``, paginator
    helpers) are passed through untouched.
    """

    def __init__(self, client: Any, recorder: Any, service: str = "APIGateway") -> None:
        self._client = client
        self._recorder = recorder
        self._service = service

    @property
    def wrapped(self) -> Any:
        """The uncaptured client."""
        return self._client

    def __getattr__(self, name: str) -> Any:
        attr = getattr(self._client, name)
        if name.startswith("_") or name in _UNTRACED or not callable(attr):
            return attr

        @functools.wraps(attr)
        def traced(*args: Any, **kwargs: Any) -> Any:
            with self._recorder.in_subsegment(f"{self._service}.{name}") as subsegment:
                if subsegment is not None:
                    subsegment.put_annotation("operation", name)
                    subsegment.namespace = "aws"
                return attr(*args, **kwargs)

        return traced


def capture_client(client: Any, daemon_address: str, recorder: Any = None) -> XrayCapturedClient:
    """Wrap *client* so its calls are reported to the X-Ray daemon at *daemon_address*."""
    if recorder is None:
        recorder = _get_recorder(daemon_address)
    LOG.debug("X-Ray capture enabled (daemon %s)", daemon_address)
    return XrayCapturedClient(client, recorder)

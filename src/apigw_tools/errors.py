"""Exception types raised by apigw-tools.

Errors surfaced by boto3/botocore are never wrapped; they propagate to the
caller unmodified.
"""

from __future__ import annotations


class ApiGatewayToolsError(Exception):
    """Base class for errors raised by this package."""


class ValidationError(ApiGatewayToolsError, ValueError):
    """A required input was missing or empty. Raised before any backend call."""


class NotFoundError(ApiGatewayToolsError, LookupError):
    """Name resolution found no candidates."""


class AmbiguousError(ApiGatewayToolsError, LookupError):
    """Name resolution found several candidates it could not choose between."""


class IncompleteResultError(ApiGatewayToolsError):
    """A match was made but is unusable (API without id, key without value)."""


class LoggerContractError(ApiGatewayToolsError, TypeError):
    """An injected logger does not implement debug/info/warning/error."""


class XrayUnavailableError(ApiGatewayToolsError, RuntimeError):
    """X-Ray capture was requested but cannot be enabled."""


class SelectorError(ApiGatewayToolsError, ValueError):
    """A dotenv ``scope:privacy`` selector could not be parsed."""


class PluginConfigError(ApiGatewayToolsError, ValueError):
    """Plugin configuration failed validation.

    ``errors`` holds one message per offending field.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("Invalid api-gateway plugin config: " + "; ".join(self.errors))

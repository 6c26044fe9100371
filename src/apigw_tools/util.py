"""Shared utilities."""

from __future__ import annotations

from typing import Any, TypeVar

from apigw_tools.errors import LoggerContractError, ValidationError

_LOGGER_METHODS = ("debug", "info", "warning", "error")

L = TypeVar("L")


def assert_logger(logger: L) -> L:
    """Return *logger* unchanged if it implements debug/info/warning/error.

    Any object with those four callables is accepted (a :class:`logging.Logger`,
    a ``LoggerAdapter``, or a test double).
    """
    missing = [name for name in _LOGGER_METHODS if not callable(getattr(logger, name, None))]
    if missing:
        raise LoggerContractError(
            f"logger must implement {', '.join(_LOGGER_METHODS)}; missing: {', '.join(missing)}"
        )
    return logger


def require(value: Any, field: str) -> None:
    """Raise :class:`ValidationError` when *value* is empty or ``None``."""
    if not value:
        raise ValidationError(f"{field} is required")

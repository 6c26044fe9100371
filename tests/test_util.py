"""Tests for apigw_tools.util."""

from __future__ import annotations

import logging

import pytest

from apigw_tools.errors import LoggerContractError, ValidationError
from apigw_tools.util import assert_logger, require


def test_assert_logger_accepts_stdlib_logger():
    logger = logging.getLogger("test")
    assert assert_logger(logger) is logger


def test_assert_logger_accepts_adapter():
    adapter = logging.LoggerAdapter(logging.getLogger("test"), {})
    assert assert_logger(adapter) is adapter


def test_assert_logger_rejects_partial_logger():
    class Partial:
        def debug(self, *args):
            pass

        def info(self, *args):
            pass

    with pytest.raises(LoggerContractError, match="missing: warning, error"):
        assert_logger(Partial())


def test_assert_logger_rejects_non_callable_attribute():
    class Weird:
        debug = info = error = staticmethod(lambda *a: None)
        warning = "not callable"

    with pytest.raises(LoggerContractError):
        assert_logger(Weird())


@pytest.mark.parametrize("value", ["", None, []])
def test_require_rejects_empty(value):
    with pytest.raises(ValidationError, match="stage_name is required"):
        require(value, "stage_name")


def test_require_accepts_value():
    require("dev", "stage_name")
    require(["a"], "key_names")

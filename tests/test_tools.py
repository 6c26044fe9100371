"""Tests for the AwsApiGatewayTools facade (boto3 client replaced by a fake)."""

from __future__ import annotations

import logging

import pytest
from botocore.exceptions import ClientError

from apigw_tools import tools as tools_module
from apigw_tools.errors import (
    LoggerContractError,
    NotFoundError,
    ValidationError,
    XrayUnavailableError,
)
from apigw_tools.tools import AwsApiGatewayTools, FlushStageCacheByNameResult
from apigw_tools.xray import XrayCapturedClient, XrayMode


def _tools(fake_client, **kwargs) -> AwsApiGatewayTools:
    return AwsApiGatewayTools(client=fake_client, xray="off", **kwargs)


def test_flush_stage_cache_by_id(fake_client):
    tools = _tools(fake_client)
    assert tools.flush_stage_cache("abc", "dev") is None
    assert fake_client.calls == [("flush_stage_cache", {"restApiId": "abc", "stageName": "dev"})]


def test_flush_stage_cache_by_name_resolves_then_flushes(fake_client):
    fake_client.rest_apis = [{"id": "xyz", "name": "my-api"}]
    tools = _tools(fake_client)

    result = tools.flush_stage_cache_by_name("my-api", "dev")

    assert result == FlushStageCacheByNameResult(api_id="xyz")
    assert fake_client.operations() == ["get_rest_apis", "flush_stage_cache"]
    assert fake_client.calls[1][1] == {"restApiId": "xyz", "stageName": "dev"}


def test_flush_stage_cache_by_name_never_flushes_when_resolution_fails(fake_client):
    fake_client.rest_apis = [{"id": "1", "name": "a"}, {"id": "2", "name": "b"}]
    tools = _tools(fake_client)
    with pytest.raises(LookupError):
        tools.flush_stage_cache_by_name("missing", "dev")
    assert "flush_stage_cache" not in fake_client.operations()


def test_get_api_key_values_by_names_preserves_order(fake_client):
    fake_client.api_keys = [{"id": "1", "name": "A", "value": "va"}, {"id": "2", "name": "B", "value": "vb"}]
    tools = _tools(fake_client)

    assert tools.get_api_key_values_by_names(["A", "B"]) == ["va", "vb"]
    assert ", ".join(tools.get_api_key_values_by_names(["A", "B"])) == "va, vb"
    assert tools.get_api_key_values_by_names(["B", "A"]) == ["vb", "va"]

    first_call = fake_client.calls[0]
    assert first_call == ("get_api_keys", {"nameQuery": "A", "includeValues": True, "limit": 500})


def test_missing_key_aborts_after_earlier_lookups(fake_client):
    fake_client.api_keys = [{"name": "A", "value": "va"}]
    tools = _tools(fake_client)
    with pytest.raises(NotFoundError, match="API key 'B'"):
        tools.get_api_key_values_by_names(["A", "B", "A"])
    assert fake_client.operations() == ["get_api_keys", "get_api_keys"]


def test_list_rest_apis_follows_pagination(fake_client):
    fake_client.rest_apis = [{"id": str(i), "name": f"api-{i}"} for i in range(7)]
    fake_client.page_size = 3
    tools = _tools(fake_client)

    apis = tools.list_rest_apis()

    assert [a.id for a in apis] == [str(i) for i in range(7)]
    assert fake_client.operations() == ["get_rest_apis"] * 3
    assert "position" not in fake_client.calls[0][1]
    assert fake_client.calls[1][1]["position"] == "3"


def test_list_api_keys_without_values(fake_client):
    fake_client.api_keys = [{"id": "1", "name": "A", "value": "va"}]
    keys = _tools(fake_client).list_api_keys("A", include_values=False)
    assert keys[0].name == "A"
    assert keys[0].value is None


def test_pagination_is_capped(fake_client, monkeypatch):
    class EndlessClient:
        calls = 0

        def get_rest_apis(self, **kwargs):
            EndlessClient.calls += 1
            return {"items": [{"id": "x", "name": "x"}], "position": "again"}

    monkeypatch.setattr(tools_module, "MAX_PAGES", 5)
    tools = AwsApiGatewayTools(client=EndlessClient(), xray="off")
    assert len(tools.list_rest_apis()) == 5
    assert EndlessClient.calls == 5


@pytest.mark.parametrize(
    "call, message",
    [
        (lambda t: t.flush_stage_cache("", "dev"), "rest_api_id is required"),
        (lambda t: t.flush_stage_cache("abc", ""), "stage_name is required"),
        (lambda t: t.flush_stage_cache_by_name("", "dev"), "api_name is required"),
        (lambda t: t.flush_stage_cache_by_name("api", ""), "stage_name is required"),
        (lambda t: t.get_api_key_values_by_names([]), "key_names is required"),
        (lambda t: t.list_api_keys("", include_values=True), "name_query is required"),
    ],
)
def test_validation_happens_before_backend_calls(fake_client, call, message):
    tools = _tools(fake_client)
    with pytest.raises(ValidationError, match=message):
        call(tools)
    assert fake_client.calls == []


def test_backend_errors_propagate_unmodified(fake_client):
    error = ClientError(
        {"Error": {"Code": "NotFoundException", "Message": "Invalid stage identifier specified"}},
        "FlushStageCache",
    )
    fake_client.flush_error = error
    with pytest.raises(ClientError) as excinfo:
        _tools(fake_client).flush_stage_cache("abc", "nope")
    assert excinfo.value is error


def test_client_is_escape_hatch(fake_client):
    tools = _tools(fake_client)
    assert tools.client is fake_client


def test_default_client_comes_from_session_factory(fake_client):
    tools = AwsApiGatewayTools(region="us-east-1", xray="off")
    assert tools.client is fake_client
    assert tools.region == "us-east-1"


def test_default_logger_is_module_logger(fake_client):
    assert _tools(fake_client).logger is logging.getLogger("apigw_tools.tools")


def test_invalid_logger_fails_construction(fake_client):
    with pytest.raises(LoggerContractError):
        _tools(fake_client, logger=object())


def test_flush_logs_through_injected_logger(fake_client):
    messages = []

    class Recorder:
        def debug(self, msg, *args):
            messages.append(msg % args)

        info = warning = error = debug

    _tools(fake_client, logger=Recorder()).flush_stage_cache("abc", "dev")
    assert any("rest_api_id=abc" in m for m in messages)


def test_xray_off_leaves_client_alone(fake_client):
    tools = AwsApiGatewayTools(client=fake_client, xray="off", environ={"AWS_XRAY_DAEMON_ADDRESS": "127.0.0.1:2000"})
    assert tools.client is fake_client
    assert tools.xray.enabled is False
    assert tools.xray.mode is XrayMode.OFF
    assert tools.xray.daemon_address is None


def test_xray_auto_without_daemon_is_disabled(fake_client):
    tools = AwsApiGatewayTools(client=fake_client, environ={})
    assert tools.xray.mode is XrayMode.AUTO
    assert tools.xray.enabled is False
    assert tools.client is fake_client


def test_xray_on_without_daemon_fails(fake_client):
    with pytest.raises(XrayUnavailableError, match="AWS_XRAY_DAEMON_ADDRESS"):
        AwsApiGatewayTools(client=fake_client, xray="on", environ={})


def test_xray_auto_with_daemon_captures_client(fake_client, monkeypatch):
    recorders = []

    def fake_capture(client, daemon_address, recorder=None):
        recorders.append(daemon_address)
        return XrayCapturedClient(client, recorder=None)

    monkeypatch.setattr(tools_module, "capture_client", fake_capture)
    tools = AwsApiGatewayTools(client=fake_client, environ={"AWS_XRAY_DAEMON_ADDRESS": "127.0.0.1:2000"})

    assert isinstance(tools.client, XrayCapturedClient)
    assert tools.client.wrapped is fake_client
    assert tools.xray.enabled is True
    assert tools.xray.daemon_address == "127.0.0.1:2000"
    assert recorders == ["127.0.0.1:2000"]


def test_invalid_xray_mode(fake_client):
    with pytest.raises(ValueError, match="Invalid xray mode"):
        AwsApiGatewayTools(client=fake_client, xray="sometimes")

from __future__ import annotations

import base64
from collections.abc import Callable  # noqa: TC003
from dataclasses import replace

import httpx
import pytest

from assetsync.adapters.http_resilience import ResilienceConfig, ResilientClient, RetryPolicy
from assetsync.adapters.huntress import (
    HuntressAgentSource,
    authorization_header,
    extract_collection,
    parse_agent_snapshot,
)
from assetsync.config.huntress import HuntressConfig, huntress_resilience
from assetsync.domain.errors import EnrichmentSourceError, MalformedAgentPayloadError

AGENT = {
    "id": 4242,
    "hostname": "laptop-100",
    "device_name": "LAPTOP-100",
    "os": {"name": "Windows", "version": "11", "architecture": "x64"},
    "ip_addresses": ["10.0.0.5"],
    "mac_addresses": "aa:bb:cc:dd:ee:ff",
    "is_online": True,
    "serial_number": "SN-100",
}

INCIDENT = {
    "id": 900,
    "agent_id": 4242,
    "type": "malware",
    "severity": "high",
    "title": "Suspicious process",
    "evidence": {"process": "evil.exe"},
    "assigned_to": {"id": 12, "name": "SOC Analyst"},
    "detected_at": "2024-05-01T12:00:00Z",
}

REMEDIATION = {
    "id": 700,
    "agent_id": 4242,
    "incident_id": 900,
    "action_type": "isolate",
    "requested_by": {"id": 3},
    "requested_at": "2024-05-01T12:05:00Z",
}


def _make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[ResilienceConfig], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        return ResilientClient(resilience, transport=httpx.MockTransport(async_handler))

    return factory


def _source(
    handler: Callable[[httpx.Request], httpx.Response],
    api_key: str | None = "secret-token",
) -> HuntressAgentSource:
    config = HuntressConfig(
        api_key=api_key,
        resilience=replace(
            huntress_resilience(base_url="https://huntress.test"),
            retry=RetryPolicy(total=2, backoff_factor=0.0),
        ),
    )
    return HuntressAgentSource(config=config, client_factory=_make_client_factory(handler))


def _routes(
    requests: list[httpx.Request],
    *,
    agents: list[dict[str, object]] | None = None,
) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        match request.url.path:
            case "/v1/agents":
                return httpx.Response(200, json={"agents": [AGENT] if agents is None else agents})
            case "/v1/incidents":
                return httpx.Response(200, json={"incidents": [INCIDENT]})
            case "/v1/remediations":
                return httpx.Response(200, json={"data": [REMEDIATION]})
        return httpx.Response(404)

    return handler


def test_authorization_header() -> None:
    expected = base64.b64encode(b"key:secret").decode("ascii")

    assert authorization_header("key:secret") == f"Basic {expected}"
    assert authorization_header("token") == "Bearer token"


def test_extract_collection_falls_back_to_data() -> None:
    assert extract_collection({"agents": [{"id": 1}, "junk"]}, "agents") == [{"id": 1}]
    assert extract_collection({"data": [{"id": 2}]}, "agents") == [{"id": 2}]
    assert extract_collection([{"id": 3}], "agents") == [{"id": 3}]
    assert extract_collection({"agents": None}, "agents") == []


def test_parse_agent_snapshot() -> None:
    snapshot = parse_agent_snapshot(AGENT, [INCIDENT], [REMEDIATION])

    assert snapshot.agent.agent_id == 4242
    assert snapshot.agent.os_architecture == "x64"
    assert snapshot.agent.mac_addresses == ("aa:bb:cc:dd:ee:ff",)
    assert snapshot.incidents[0].assigned_to == "SOC Analyst"
    assert snapshot.incidents[0].evidence == {"process": "evil.exe"}
    assert snapshot.remediations[0].requested_by == 3
    assert snapshot.remediations[0].remediation_type is None


def test_agent_without_id_is_malformed() -> None:
    with pytest.raises(MalformedAgentPayloadError):
        parse_agent_snapshot({"hostname": "ghost", "id": " "})


def test_find_agent_fetches_agent_incidents_and_remediations() -> None:
    requests: list[httpx.Request] = []
    source = _source(_routes(requests))

    snapshot = source.find_agent("SN-100", incident_limit=2, remediation_limit=1)

    assert snapshot is not None
    assert snapshot.agent.hostname == "laptop-100"
    assert [incident.incident_id for incident in snapshot.incidents] == [900]
    assert [remediation.remediation_id for remediation in snapshot.remediations] == [700]

    agents_request, incidents_request, remediations_request = requests
    assert agents_request.url.params["serial_number"] == "SN-100"
    assert agents_request.url.params["per_page"] == "1"
    assert agents_request.headers["Authorization"] == "Bearer secret-token"
    assert incidents_request.url.params["agent_id"] == "4242"
    assert incidents_request.url.params["per_page"] == "2"
    assert incidents_request.url.params["sort"] == "-detected_at"
    assert remediations_request.url.params["sort"] == "-requested_at"


def test_find_agent_returns_none_when_serial_unknown() -> None:
    requests: list[httpx.Request] = []
    source = _source(_routes(requests, agents=[]))

    assert source.find_agent("SN-404", incident_limit=3, remediation_limit=3) is None
    assert len(requests) == 1


def test_find_agent_skips_collections_with_zero_limit() -> None:
    requests: list[httpx.Request] = []
    source = _source(_routes(requests))

    snapshot = source.find_agent("SN-100", incident_limit=0, remediation_limit=0)

    assert snapshot is not None
    assert snapshot.incidents == ()
    assert [request.url.path for request in requests] == ["/v1/agents"]


def test_agent_without_id_from_api_is_malformed() -> None:
    requests: list[httpx.Request] = []
    source = _source(_routes(requests, agents=[{"hostname": "ghost"}]))

    with pytest.raises(MalformedAgentPayloadError):
        source.find_agent("SN-100", incident_limit=3, remediation_limit=3)


def test_http_error_is_a_source_error() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, json={"error": "forbidden"})

    with pytest.raises(EnrichmentSourceError) as excinfo:
        _source(handler).find_agent("SN-100", incident_limit=3, remediation_limit=3)

    assert not isinstance(excinfo.value, MalformedAgentPayloadError)


def test_transport_error_is_a_source_error_after_retries() -> None:
    attempts: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(EnrichmentSourceError):
        _source(handler).find_agent("SN-100", incident_limit=3, remediation_limit=3)

    assert len(attempts) > 1


def test_unavailable_status_is_retried() -> None:
    requests: list[httpx.Request] = []
    routes = _routes(requests)

    def handler(request: httpx.Request) -> httpx.Response:
        if not requests:
            requests.append(request)
            return httpx.Response(503, headers={"Retry-After": "0"})
        return routes(request)

    snapshot = _source(handler).find_agent("SN-100", incident_limit=0, remediation_limit=0)

    assert snapshot is not None
    assert [request.url.path for request in requests] == ["/v1/agents", "/v1/agents"]


def test_rate_limited_response_is_retried_after_the_advertised_wait() -> None:
    requests: list[httpx.Request] = []
    routes = _routes(requests)
    throttled: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/v1/incidents" and not throttled:
            throttled.append(request)
            return httpx.Response(429, headers={"Retry-After": "0"})
        return routes(request)

    snapshot = _source(handler).find_agent("SN-100", incident_limit=1, remediation_limit=0)

    assert snapshot is not None
    assert [incident.incident_id for incident in snapshot.incidents] == [900]
    assert len(throttled) == 1


def test_retry_policy_builds_transport_retry() -> None:
    retry = RetryPolicy(total=2, backoff_factor=0.0).build()

    assert retry.total == 2
    assert retry.backoff_factor == 0.0
    assert retry.respect_retry_after_header is True
    assert 429 in retry.status_forcelist
    assert "GET" in retry.allowed_methods


def test_invalid_json_is_malformed() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>maintenance</html>")

    with pytest.raises(MalformedAgentPayloadError):
        _source(handler).find_agent("SN-100", incident_limit=3, remediation_limit=3)


def test_unconfigured_source_refuses_to_query() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    source = _source(handler, api_key=None)

    assert not source.is_configured
    with pytest.raises(EnrichmentSourceError):
        source.find_agent("SN-100", incident_limit=3, remediation_limit=3)

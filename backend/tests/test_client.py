from __future__ import annotations

from typing import Any, List

import pytest
import requests

from pve_gateway.capability import CapabilityGate, ElevationPolicy
from pve_gateway.errors import NotFoundError, UpstreamError
from pve_gateway.proxmox.client import ProxmoxClient
from pve_gateway.vms.guest_service import execute_guest_command


class StubResponse:
    def __init__(self, status_code: int = 200, body: Any = None, reason: str = "OK", raw: str | None = None):
        self.status_code = status_code
        self.reason = reason
        self._body = body
        self._raw = raw

    def json(self):
        if self._raw is not None:
            raise ValueError("Expecting value")
        return self._body


class StubSession:
    """Minimal requests.Session stand-in recording calls."""

    def __init__(self, response=None, error: Exception | None = None):
        self.headers: dict = {}
        self.verify = True
        self.calls: List[dict] = []
        self.response = response or StubResponse(body={"data": []})
        self.error = error

    def request(self, method, url, json=None, timeout=None):
        self.calls.append({"method": method, "url": url, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def _client(settings, **kwargs):
    session = StubSession(**kwargs)
    return ProxmoxClient(settings, session=session), session


def test_session_carries_token_and_tls_settings(settings):
    client, session = _client(settings)
    assert session.headers["Authorization"] == "PVEAPIToken=root@pam!gateway=secret"
    assert session.verify is False
    assert client.base_url == "https://pve.test:8006/api2/json"


def test_returns_data_field(settings):
    client, session = _client(settings, response=StubResponse(body={"data": [{"node": "pve1"}]}))

    assert client.get_nodes() == [{"node": "pve1"}]
    assert session.calls[0]["method"] == "GET"
    assert session.calls[0]["url"] == "https://pve.test:8006/api2/json/nodes"
    assert session.calls[0]["timeout"] == settings.timeout


def test_paths_for_guest_operations(settings):
    client, session = _client(settings, response=StubResponse(body={"data": {"pid": 1}}))

    client.get_guest_status("pve 1", "100", "lxc")
    client.execute_guest_command("pve1", "100", "uptime")

    assert session.calls[0]["url"].endswith("/nodes/pve%201/lxc/100/status/current")
    assert session.calls[1]["method"] == "POST"
    assert session.calls[1]["url"].endswith("/nodes/pve1/qemu/100/agent/exec")
    assert session.calls[1]["json"] == {"command": "uptime"}


def test_cluster_resources_type_filter(settings):
    client, session = _client(settings)
    client.get_cluster_resources("vm")
    assert session.calls[0]["url"].endswith("/cluster/resources?type=vm")


def test_upstream_message_preserved(settings):
    response = StubResponse(status_code=403, body={"data": None, "message": "Permission check failed (/nodes, Sys.Audit)"})
    client, _ = _client(settings, response=response)

    with pytest.raises(UpstreamError) as excinfo:
        client.get_nodes()
    assert excinfo.value.status == 403
    assert excinfo.value.message == "Permission check failed (/nodes, Sys.Audit)"
    assert not isinstance(excinfo.value, NotFoundError)


def test_parameter_errors_are_joined(settings):
    response = StubResponse(status_code=400, body={"data": None, "errors": {"vmid": "invalid format"}}, reason="Parameter verification failed.")
    client, _ = _client(settings, response=response)

    with pytest.raises(UpstreamError) as excinfo:
        client.get_guest_status("pve1", "x")
    assert excinfo.value.message == "vmid: invalid format"


def test_falls_back_to_status_line(settings):
    response = StubResponse(status_code=500, body={"data": None}, reason="Internal Server Error")
    client, _ = _client(settings, response=response)

    with pytest.raises(UpstreamError) as excinfo:
        client.get_storage()
    assert excinfo.value.message == "500 Internal Server Error"


@pytest.mark.parametrize(
    "status, reason",
    [
        (404, "Not Found"),
        (500, "Configuration file 'nodes/pve1/qemu-server/1.conf' does not exist"),
        (595, "no such node 'ghost'"),
        (500, "storage 'backup' does not exist"),
        (500, "unable to find configuration file for VM 999 on node 'pve1'"),
    ],
)
def test_not_found_detection(settings, status, reason):
    client, _ = _client(settings, response=StubResponse(status_code=status, body={"data": None}, reason=reason))

    with pytest.raises(NotFoundError) as excinfo:
        client.get_node_status("ghost")
    assert excinfo.value.status == status


def test_transport_fault_is_wrapped(settings):
    client, session = _client(settings, error=requests.ConnectionError("Connection refused"))

    with pytest.raises(UpstreamError) as excinfo:
        client.get_nodes()
    assert excinfo.value.status is None
    assert "Connection refused" in excinfo.value.message
    assert isinstance(excinfo.value.__cause__, requests.ConnectionError)
    assert len(session.calls) == 1


def test_malformed_body_is_wrapped(settings):
    client, _ = _client(settings, response=StubResponse(status_code=200, raw="<html>"))

    with pytest.raises(UpstreamError) as excinfo:
        client.get_nodes()
    assert excinfo.value.message.startswith("Proxmox API request failed")


def test_per_kind_guest_listing_paths(settings):
    client, session = _client(settings)

    client.get_node_qemu("pve1")
    client.get_node_lxc("pve2")

    assert session.calls[0]["url"] == "https://pve.test:8006/api2/json/nodes/pve1/qemu"
    assert session.calls[1]["url"] == "https://pve.test:8006/api2/json/nodes/pve2/lxc"
    assert [c["method"] for c in session.calls] == ["GET", "GET"]


@pytest.mark.parametrize(
    "reason",
    [
        'Agent error: Failed to execute child process "nope" (No such file or directory)',
        "QEMU guest agent is not running",
        "file not found in backup archive",
    ],
)
def test_unrelated_missing_things_are_not_not_found(settings, reason):
    client, _ = _client(settings, response=StubResponse(status_code=500, body={"data": None}, reason=reason))

    with pytest.raises(UpstreamError) as excinfo:
        client.execute_guest_command("pve1", "100", "nope")
    assert not isinstance(excinfo.value, NotFoundError)
    assert excinfo.value.status == 500


def test_failed_guest_command_maps_to_bad_gateway(settings):
    reason = 'Agent error: Failed to execute child process "nope" (No such file or directory)'
    client, _ = _client(settings, response=StubResponse(status_code=500, body={"data": None}, reason=reason))
    gate = CapabilityGate(ElevationPolicy.ELEVATED)

    with pytest.raises(UpstreamError) as excinfo:
        execute_guest_command(client, gate, "pve1", "100", "nope")
    assert type(excinfo.value) is UpstreamError
    assert excinfo.value.message == f"Command execution failed: 500 {reason}"

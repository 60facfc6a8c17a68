from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from pve_gateway.capability import CapabilityGate, ElevationPolicy
from pve_gateway.dependencies import get_capability_gate, get_proxmox_client
from pve_gateway.errors import UpstreamError
from pve_gateway.main import app
from pve_gateway.settings import Settings, get_settings


class FakeProxmoxClient:
    """In-memory stand-in for ProxmoxClient that records every call."""

    def __init__(self):
        self.calls: List[Tuple[str, tuple]] = []
        self.nodes: List[Dict[str, Any]] = []
        self.node_status: Dict[str, Dict[str, Any]] = {}
        self.guests: Dict[Tuple[str, str], List[Dict[str, Any]]] = {}
        self.guest_status: Dict[Tuple[str, str, str], Dict[str, Any]] = {}
        self.storage: List[Dict[str, Any]] = []
        self.cluster_status: List[Dict[str, Any]] = []
        self.cluster_resources: List[Dict[str, Any]] = []
        self.command_result: Any = {"pid": 4242}
        self.failures: Dict[Tuple[str, ...], UpstreamError] = {}

    def _call(self, name: str, *args):
        self.calls.append((name, args))
        err = self.failures.get((name, *[str(a) for a in args]))
        if err is not None:
            raise err

    def fail(self, name: str, *args, error: Optional[UpstreamError] = None) -> None:
        self.failures[(name, *[str(a) for a in args])] = error or UpstreamError(500, f"{name} failed")

    def calls_to(self, name: str) -> List[tuple]:
        return [args for call, args in self.calls if call == name]

    def get_nodes(self):
        self._call("get_nodes")
        return list(self.nodes)

    def get_node_status(self, node):
        self._call("get_node_status", node)
        return self.node_status.get(node, {})

    def get_guests(self, node, kind):
        self._call("get_guests", node, kind)
        return list(self.guests.get((node, kind), []))

    def get_guest_status(self, node, vmid, kind="qemu"):
        self._call("get_guest_status", node, vmid, kind)
        return self.guest_status.get((node, kind, str(vmid)), {})

    def execute_guest_command(self, node, vmid, command, kind="qemu"):
        self._call("execute_guest_command", node, vmid, command, kind)
        return self.command_result

    def get_storage(self):
        self._call("get_storage")
        return list(self.storage)

    def get_cluster_status(self):
        self._call("get_cluster_status")
        return list(self.cluster_status)

    def get_cluster_resources(self, resource_type=None):
        self._call("get_cluster_resources", resource_type)
        return list(self.cluster_resources)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        proxmox_host="pve.test",
        proxmox_user="root@pam",
        proxmox_token_name="gateway",
        proxmox_token_value="secret",
        max_workers=2,
    )


@pytest.fixture
def fake_client() -> FakeProxmoxClient:
    return FakeProxmoxClient()


@pytest.fixture
def gate_policy() -> ElevationPolicy:
    return ElevationPolicy.RESTRICTED


@pytest.fixture
def client(settings, fake_client, gate_policy):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_proxmox_client] = lambda: fake_client
    app.dependency_overrides[get_capability_gate] = lambda: CapabilityGate(gate_policy)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()

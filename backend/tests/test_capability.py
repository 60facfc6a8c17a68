from __future__ import annotations

import pytest

from pve_gateway.capability import CapabilityGate, ElevationPolicy, PrivilegedOperation
from pve_gateway.errors import NotFoundError, PermissionDenied, UpstreamError, ValidationError
from pve_gateway.vms.guest_service import execute_guest_command, get_guest_detail

RESTRICTED = CapabilityGate(ElevationPolicy.RESTRICTED)
ELEVATED = CapabilityGate(ElevationPolicy.ELEVATED)


def test_policy_from_flag(settings):
    assert CapabilityGate.from_settings(settings).policy is ElevationPolicy.RESTRICTED
    assert ElevationPolicy.from_flag(True) is ElevationPolicy.ELEVATED


def test_restricted_gate_denies():
    with pytest.raises(PermissionDenied) as excinfo:
        RESTRICTED.check(PrivilegedOperation.GUEST_COMMAND)
    assert "PROXMOX_ALLOW_ELEVATED" in excinfo.value.message


def test_elevated_gate_allows():
    ELEVATED.check(PrivilegedOperation.GUEST_COMMAND)
    assert ELEVATED.is_elevated


def test_restricted_command_never_reaches_upstream(fake_client):
    with pytest.raises(PermissionDenied):
        execute_guest_command(fake_client, RESTRICTED, "pve1", "100", "uptime")
    assert fake_client.calls == []


@pytest.mark.parametrize("command", ["", "   ", None])
def test_empty_command_fails_validation_before_client(fake_client, command):
    with pytest.raises(ValidationError) as excinfo:
        execute_guest_command(fake_client, ELEVATED, "pve1", "100", command)
    assert excinfo.value.message == "Missing required field: command"
    assert fake_client.calls == []


@pytest.mark.parametrize("vmid, kind", [("abc", "qemu"), ("100", "vmware")])
def test_malformed_target_fails_validation(fake_client, vmid, kind):
    with pytest.raises(ValidationError):
        execute_guest_command(fake_client, ELEVATED, "pve1", vmid, "uptime", kind)
    assert fake_client.calls == []


def test_elevated_command_executes_once(fake_client):
    fake_client.command_result = {"message": "up 3 days"}

    result = execute_guest_command(fake_client, ELEVATED, "pve1", 100, "uptime", "lxc")

    assert fake_client.calls_to("execute_guest_command") == [("pve1", "100", "uptime", "lxc")]
    assert result.status == "SUCCESS"
    assert result.vmid == "100"
    assert result.type == "lxc"
    assert result.output == "up 3 days"


@pytest.mark.parametrize(
    "upstream, expected",
    [(None, "Command executed"), ({"pid": 7}, '{"pid": 7}'), ("done", "done")],
)
def test_command_output_rendering(fake_client, upstream, expected):
    fake_client.command_result = upstream
    result = execute_guest_command(fake_client, ELEVATED, "pve1", "100", "uptime")
    assert result.output == expected


def test_command_upstream_failure_is_prefixed(fake_client):
    fake_client.fail("execute_guest_command", "pve1", "100", "uptime", "qemu", error=UpstreamError(500, "QEMU guest agent is not running"))

    with pytest.raises(UpstreamError) as excinfo:
        execute_guest_command(fake_client, ELEVATED, "pve1", "100", "uptime")
    assert excinfo.value.message == "Command execution failed: QEMU guest agent is not running"
    assert excinfo.value.status == 500


def test_guest_detail_defaults_to_qemu(fake_client):
    fake_client.guest_status[("pve1", "qemu", "100")] = {"name": "web", "status": "running", "uptime": 60}

    detail = get_guest_detail(fake_client, "pve1", "100")

    assert fake_client.calls_to("get_guest_status") == [("pve1", "100", "qemu")]
    assert detail.vmid == "100"
    assert detail.uptime == "1m"
    assert detail.disk_read == "N/A"


def test_guest_detail_not_found_propagates(fake_client):
    fake_client.fail("get_guest_status", "pve1", "999", "qemu", error=NotFoundError(500, "Configuration file 'nodes/pve1/qemu-server/999.conf' does not exist"))

    with pytest.raises(NotFoundError):
        get_guest_detail(fake_client, "pve1", "999")


def test_guest_detail_fills_null_vmid(fake_client):
    fake_client.guest_status[("pve1", "lxc", "101")] = {"vmid": None, "name": "ct", "status": "stopped"}

    detail = get_guest_detail(fake_client, "pve1", "101", "lxc")

    assert detail.vmid == "101"
    assert detail.type == "lxc"

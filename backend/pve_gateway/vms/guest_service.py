from __future__ import annotations

import json
import logging
from typing import Any, Optional

from pve_gateway.capability import CapabilityGate, PrivilegedOperation
from pve_gateway.errors import UpstreamError, ValidationError
from pve_gateway.formatting import format_guest_detail
from pve_gateway.proxmox.client import GUEST_KINDS, ProxmoxClient
from pve_gateway.proxmox.schema import GuestRecord
from pve_gateway.vms.guest_models import CommandResult, GuestDetail

logger = logging.getLogger(__name__)

DEFAULT_KIND = "qemu"
DEFAULT_OUTPUT = "Command executed"


def normalize_kind(kind: Optional[str]) -> str:
    norm = (kind or DEFAULT_KIND).strip().lower()
    if norm not in GUEST_KINDS:
        raise ValidationError(f"Invalid guest type '{kind}'. Use one of: qemu, lxc")
    return norm


def normalize_vmid(vmid: Any) -> str:
    value = str(vmid if vmid is not None else "").strip()
    if not value.isdigit():
        raise ValidationError(f"Invalid vmid '{vmid}': must be a positive integer")
    return value


def get_guest_detail(client: ProxmoxClient, node: str, vmid: Any, kind: Optional[str] = None) -> GuestDetail:
    kind = normalize_kind(kind)
    vmid = normalize_vmid(vmid)
    raw = client.get_guest_status(node, vmid, kind)
    if isinstance(raw, dict):
        # status/current omits vmid for some guest kinds
        raw = {**raw, "vmid": raw.get("vmid") or vmid}
    record = GuestRecord.model_validate(raw)
    return format_guest_detail(record, node, kind)


def _command_output(result: Any) -> str:
    if isinstance(result, dict) and result.get("message"):
        return str(result["message"])
    if result in (None, "", {}, []):
        return DEFAULT_OUTPUT
    if isinstance(result, str):
        return result
    return json.dumps(result, sort_keys=True)


def execute_guest_command(
    client: ProxmoxClient,
    gate: CapabilityGate,
    node: str,
    vmid: Any,
    command: Optional[str],
    kind: Optional[str] = None,
) -> CommandResult:
    """Run ``command`` through the guest agent of ``node``/``vmid``.

    Input is validated first, then the capability gate is consulted; the
    upstream client is only called when both pass.
    """
    if command is None or not str(command).strip():
        raise ValidationError("Missing required field: command")
    kind = normalize_kind(kind)
    vmid = normalize_vmid(vmid)

    gate.check(PrivilegedOperation.GUEST_COMMAND)

    logger.info("Executing guest command on %s/%s/%s", node, kind, vmid)
    try:
        result = client.execute_guest_command(node, vmid, command, kind)
    except UpstreamError as exc:
        raise type(exc)(exc.status, f"Command execution failed: {exc.message}") from exc

    return CommandResult(
        command=command,
        node=node,
        vmid=vmid,
        type=kind,
        output=_command_output(result),
    )

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Path, Query

from pve_gateway.capability import CapabilityGate
from pve_gateway.dependencies import get_capability_gate, get_proxmox_client
from pve_gateway.proxmox.client import ProxmoxClient
from pve_gateway.schemas import ApiResponse
from pve_gateway.settings import Settings, get_settings
from pve_gateway.vms.aggregator import collect_guests
from pve_gateway.vms.guest_models import CommandRequest, CommandResult, GuestDetail, GuestSummary
from pve_gateway.vms.guest_service import execute_guest_command, get_guest_detail

router = APIRouter(prefix="/vms", tags=["vms"])
logger = logging.getLogger(__name__)


@router.get("", response_model=ApiResponse[List[GuestSummary]])
def guests_list(
    node: Optional[str] = Query(None, description="Only query this node"),
    type: Optional[str] = Query(None, description="Guest type: qemu, lxc or all"),
    client: ProxmoxClient = Depends(get_proxmox_client),
    settings: Settings = Depends(get_settings),
):
    """All VMs and containers across the cluster, sorted by vmid.

    Nodes that fail to answer are skipped; the listing still succeeds.
    """
    listing = collect_guests(client, node=node, kind=type, max_workers=settings.max_workers)
    if listing.partial:
        logger.info(
            "GET /vms returned %s guests; %s node/type fetches failed",
            len(listing.guests),
            len(listing.failures),
        )
    return ApiResponse(data=listing.guests)


@router.get("/{node}/{vmid}", response_model=ApiResponse[GuestDetail])
def guest_detail(
    node: str = Path(..., description="Node hosting the guest"),
    vmid: str = Path(..., description="Guest id"),
    type: str = Query("qemu", description="Guest type: qemu or lxc"),
    client: ProxmoxClient = Depends(get_proxmox_client),
):
    return ApiResponse(data=get_guest_detail(client, node, vmid, type))


@router.post("/{node}/{vmid}/command", response_model=ApiResponse[CommandResult])
def guest_command(
    node: str = Path(..., description="Node hosting the guest"),
    vmid: str = Path(..., description="Guest id"),
    payload: Optional[CommandRequest] = Body(None),
    client: ProxmoxClient = Depends(get_proxmox_client),
    gate: CapabilityGate = Depends(get_capability_gate),
):
    """Execute a command through the guest agent. Requires PROXMOX_ALLOW_ELEVATED=true."""
    payload = payload or CommandRequest()
    result = execute_guest_command(client, gate, node, vmid, payload.command, payload.type)
    return ApiResponse(data=result)

from __future__ import annotations

from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query

from pve_gateway.cluster.cluster_models import ClusterHealth
from pve_gateway.cluster.cluster_service import get_cluster_health, get_cluster_resources
from pve_gateway.dependencies import get_proxmox_client
from pve_gateway.proxmox.client import ProxmoxClient
from pve_gateway.schemas import ApiResponse

router = APIRouter(prefix="/cluster", tags=["cluster"])


@router.get("/health", response_model=ApiResponse[ClusterHealth])
def cluster_health(client: ProxmoxClient = Depends(get_proxmox_client)):
    """Online/total nodes and quorum votes."""
    return ApiResponse(data=get_cluster_health(client))


@router.get("/resources", response_model=ApiResponse[List[Any]])
def cluster_resources(
    type: Optional[str] = Query(None, description="Upstream filter: vm, storage, node or sdn"),
    client: ProxmoxClient = Depends(get_proxmox_client),
):
    """Raw /cluster/resources summary, returned as-is."""
    return ApiResponse(data=get_cluster_resources(client, type))

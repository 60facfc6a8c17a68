from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query

from pve_gateway.dependencies import get_proxmox_client
from pve_gateway.proxmox.client import ProxmoxClient
from pve_gateway.schemas import ApiResponse
from pve_gateway.storage.storage_models import StoragePool
from pve_gateway.storage.storage_service import get_storage, list_storage

router = APIRouter(prefix="/storage", tags=["storage"])


@router.get("", response_model=ApiResponse[List[StoragePool]])
def storage_list(
    node: Optional[str] = Query(None, description="Only pools available on this node"),
    client: ProxmoxClient = Depends(get_proxmox_client),
):
    """Storage pools and usage; disabled or content-less pools are hidden."""
    return ApiResponse(data=list_storage(client, node=node))


@router.get("/{storage}", response_model=ApiResponse[StoragePool])
def storage_detail(
    storage: str = Path(..., description="Storage id"),
    client: ProxmoxClient = Depends(get_proxmox_client),
):
    return ApiResponse(data=get_storage(client, storage))

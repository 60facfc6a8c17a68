import logging
from typing import List

from fastapi import APIRouter, Depends, Path

from pve_gateway.dependencies import get_proxmox_client
from pve_gateway.nodes.node_models import NodeDetail, NodeSummary
from pve_gateway.nodes.node_service import get_node_detail, list_nodes
from pve_gateway.proxmox.client import ProxmoxClient
from pve_gateway.schemas import ApiResponse

router = APIRouter(prefix="/nodes", tags=["nodes"])
logger = logging.getLogger(__name__)


@router.get("", response_model=ApiResponse[List[NodeSummary]])
def nodes_list(client: ProxmoxClient = Depends(get_proxmox_client)):
    """List all cluster nodes with basic usage figures."""
    return ApiResponse(data=list_nodes(client))


@router.get("/{node}", response_model=ApiResponse[NodeDetail])
def node_detail(
    node: str = Path(..., description="Node name as known to the cluster"),
    client: ProxmoxClient = Depends(get_proxmox_client),
):
    """Detailed status of one node (cpu count, disk, load averages, kernel)."""
    logger.debug("GET /nodes/%s", node)
    return ApiResponse(data=get_node_detail(client, node))

from __future__ import annotations

from typing import Any, List, Optional

from pve_gateway.cluster.cluster_models import ClusterHealth
from pve_gateway.errors import ValidationError
from pve_gateway.formatting import format_cluster_health
from pve_gateway.proxmox.client import ProxmoxClient
from pve_gateway.proxmox.schema import ClusterStatusEntry, parse_records

RESOURCE_TYPES = {"vm", "storage", "node", "sdn"}


def get_cluster_health(client: ProxmoxClient) -> ClusterHealth:
    entries = parse_records(ClusterStatusEntry, client.get_cluster_status(), source="cluster/status")
    return format_cluster_health(entries)


def get_cluster_resources(client: ProxmoxClient, resource_type: Optional[str] = None) -> List[Any]:
    """Raw /cluster/resources passthrough, optionally filtered upstream by type."""
    if resource_type and resource_type not in RESOURCE_TYPES:
        raise ValidationError(
            f"Invalid resource type '{resource_type}'. Use one of: {', '.join(sorted(RESOURCE_TYPES))}"
        )
    return client.get_cluster_resources(resource_type)

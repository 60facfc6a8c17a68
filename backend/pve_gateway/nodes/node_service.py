from __future__ import annotations

from typing import List

from pve_gateway.formatting import format_node, format_node_detail
from pve_gateway.proxmox.client import ProxmoxClient
from pve_gateway.proxmox.schema import NodeRecord, NodeStatusRecord, parse_records
from pve_gateway.nodes.node_models import NodeDetail, NodeSummary


def list_nodes(client: ProxmoxClient) -> List[NodeSummary]:
    """Cluster nodes in upstream order."""
    records = parse_records(NodeRecord, client.get_nodes(), source="nodes")
    return [format_node(r) for r in records]


def get_node_detail(client: ProxmoxClient, node: str) -> NodeDetail:
    record = NodeStatusRecord.model_validate(client.get_node_status(node) or {})
    return format_node_detail(node, record)

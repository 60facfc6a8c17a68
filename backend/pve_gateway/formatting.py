"""Pure transforms from raw Proxmox records to the gateway's output schema."""

from __future__ import annotations

from typing import Iterable, List, Optional

from pve_gateway.cluster.cluster_models import ClusterHealth, NodeHealth, QuorumInfo
from pve_gateway.nodes.node_models import NodeDetail, NodeSummary
from pve_gateway.proxmox.schema import (
    ClusterStatusEntry,
    GuestRecord,
    NodeRecord,
    NodeStatusRecord,
    StorageRecord,
)
from pve_gateway.storage.storage_models import StoragePool
from pve_gateway.vms.guest_models import GuestDetail, GuestSummary

NOT_AVAILABLE = "N/A"
UNKNOWN = "unknown"

_BYTE_UNITS = ("B", "KB", "MB", "GB", "TB")
_STEP = 1024


# ─────────────────────────────────────────────
# Scalar formatters
# ─────────────────────────────────────────────
def format_bytes(value: float) -> str:
    """Render a byte count with the largest 1024-based unit, two decimals.

    >>> format_bytes(1536)
    '1.50 KB'
    """
    if not value or value <= 0:
        return f"0 {_BYTE_UNITS[0]}"
    scaled = float(value)
    unit = 0
    while scaled >= _STEP and unit < len(_BYTE_UNITS) - 1:
        scaled /= _STEP
        unit += 1
    return f"{scaled:.2f} {_BYTE_UNITS[unit]}"


def format_uptime(seconds: int) -> str:
    """Compact d/h/m string; seconds are dropped and zero units omitted."""
    seconds = max(int(seconds or 0), 0)
    days, rest = divmod(seconds, 86400)
    hours, rest = divmod(rest, 3600)
    minutes = rest // 60

    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    return " ".join(parts) or "0m"


def format_cpu(fraction: Optional[float]) -> str:
    if fraction is None:
        return NOT_AVAILABLE
    return f"{fraction * 100:.1f}%"


def format_usage(used: Optional[int], total: Optional[int]) -> str:
    return f"{format_bytes(used or 0)} / {format_bytes(total or 0)}"


def usage_percent(used: Optional[int], total: Optional[int]) -> Optional[float]:
    """used/total*100 rounded to one decimal; None when total is unknown or zero."""
    if not total:
        return None
    return round((used or 0) / total * 100, 1)


# ─────────────────────────────────────────────
# Nodes
# ─────────────────────────────────────────────
def format_node(record: NodeRecord) -> NodeSummary:
    return NodeSummary(
        node=record.node,
        status=record.status or UNKNOWN,
        uptime=format_uptime(record.uptime) if record.uptime is not None else UNKNOWN,
        cpu=format_cpu(record.cpu),
        memory=format_usage(record.mem, record.maxmem) if record.maxmem else NOT_AVAILABLE,
    )


def format_node_detail(node: str, record: NodeStatusRecord) -> NodeDetail:
    memory = record.memory
    rootfs = record.rootfs
    return NodeDetail(
        node=record.nodename or node,
        # /nodes/{node}/status only answers for reachable nodes
        status=record.status or "online",
        uptime=format_uptime(record.uptime) if record.uptime is not None else UNKNOWN,
        cpus=record.cpuinfo.cpus if record.cpuinfo else 0,
        cpu=format_cpu(record.cpu),
        memory=format_usage(memory.used if memory else 0, memory.total if memory else 0),
        disk=format_usage(rootfs.used if rootfs else 0, rootfs.total if rootfs else 0),
        load=list(record.loadavg or [0.0, 0.0, 0.0]),
        kernel_release=record.kernel or UNKNOWN,
        pve_version=record.pveversion or UNKNOWN,
    )


# ─────────────────────────────────────────────
# Guests (qemu VMs and lxc containers share one shape)
# ─────────────────────────────────────────────
def _optional_bytes(value: Optional[int]) -> str:
    return format_bytes(value) if value is not None else NOT_AVAILABLE


def format_guest(record: GuestRecord, node: str, kind: str) -> GuestSummary:
    return GuestSummary(
        vmid=record.vmid,
        name=record.name,
        type=kind,
        node=node,
        status=record.status or UNKNOWN,
        uptime=format_uptime(record.uptime) if record.uptime is not None else NOT_AVAILABLE,
        cpu=format_cpu(record.cpu),
        memory=format_usage(record.mem, record.maxmem) if record.maxmem else NOT_AVAILABLE,
    )


def format_guest_detail(record: GuestRecord, node: str, kind: str) -> GuestDetail:
    summary = format_guest(record, node, kind)
    return GuestDetail(
        **summary.model_dump(),
        disk_read=_optional_bytes(record.diskread),
        disk_write=_optional_bytes(record.diskwrite),
        network_in=_optional_bytes(record.netin),
        network_out=_optional_bytes(record.netout),
    )


# ─────────────────────────────────────────────
# Storage
# ─────────────────────────────────────────────
def is_storage_visible(record: StorageRecord) -> bool:
    """Disabled pools and pools without content types are never surfaced."""
    return not record.disable and bool(record.content)


def format_storage(record: StorageRecord) -> Optional[StoragePool]:
    if not is_storage_visible(record):
        return None

    used = record.used or 0
    total = record.total or 0
    pct = usage_percent(used, total)
    usage = f"{format_usage(used, total)} ({pct}%)" if pct is not None else f"{format_usage(used, total)} ({NOT_AVAILABLE})"

    if record.enabled is None:
        status = "enabled"
    else:
        status = "enabled" if record.enabled else "disabled"

    return StoragePool(
        storage=record.storage,
        nodes=", ".join(record.nodes) if record.nodes else "all",
        type=record.type,
        content=list(record.content),
        usage=usage,
        usage_percent=pct,
        status=status,
        available=total > 0,
    )


def storage_on_node(record: StorageRecord, node: Optional[str]) -> bool:
    if not node or not record.nodes:
        return True
    return node in record.nodes


def format_storage_list(records: Iterable[StorageRecord], node: Optional[str] = None) -> List[StoragePool]:
    pools: List[StoragePool] = []
    for record in records:
        if not storage_on_node(record, node):
            continue
        pool = format_storage(record)
        if pool is not None:
            pools.append(pool)
    return pools


# ─────────────────────────────────────────────
# Cluster
# ─────────────────────────────────────────────
def format_cluster_health(entries: Iterable[ClusterStatusEntry]) -> ClusterHealth:
    entries = list(entries)
    nodes = [e for e in entries if e.type == "node"]
    quorum = next((e for e in entries if e.type == "quorum"), None)

    online = sum(1 for n in nodes if n.online)
    return ClusterHealth(
        status="healthy" if online == len(nodes) else "degraded",
        nodes_online=online,
        nodes_total=len(nodes),
        node_details=[
            NodeHealth(node=n.node_name, status="online" if n.online else "offline", id=n.id)
            for n in nodes
        ],
        quorum=QuorumInfo(votes=quorum.votes or 0, quorum_votes=quorum.quorum_votes or 0) if quorum else None,
    )

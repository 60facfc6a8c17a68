from __future__ import annotations

from typing import List, Optional

from pve_gateway.errors import NotFoundError
from pve_gateway.formatting import format_storage, format_storage_list
from pve_gateway.proxmox.client import ProxmoxClient
from pve_gateway.proxmox.schema import StorageRecord, parse_records
from pve_gateway.storage.storage_models import StoragePool


def list_storage(client: ProxmoxClient, node: Optional[str] = None) -> List[StoragePool]:
    records = parse_records(StorageRecord, client.get_storage(), source="storage")
    return format_storage_list(records, node=node)


def get_storage(client: ProxmoxClient, storage: str) -> StoragePool:
    """Single pool by name; disabled or content-less pools count as absent."""
    records = parse_records(StorageRecord, client.get_storage(), source="storage")
    for record in records:
        if record.storage == storage:
            pool = format_storage(record)
            if pool is not None:
                return pool
            break
    raise NotFoundError(404, f"Storage '{storage}' not found")

from __future__ import annotations

from typing import List, Optional

from pve_gateway.schemas import CamelModel


class StoragePool(CamelModel):
    storage: str
    nodes: str
    type: Optional[str] = None
    content: List[str]
    usage: str
    usage_percent: Optional[float] = None
    status: str
    available: bool

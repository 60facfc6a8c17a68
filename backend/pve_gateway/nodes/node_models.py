from __future__ import annotations

from typing import List

from pve_gateway.schemas import CamelModel


class NodeSummary(CamelModel):
    node: str
    status: str
    uptime: str
    cpu: str
    memory: str


class NodeDetail(CamelModel):
    node: str
    status: str
    uptime: str
    cpus: int
    cpu: str
    memory: str
    disk: str
    load: List[float]
    kernel_release: str
    pve_version: str

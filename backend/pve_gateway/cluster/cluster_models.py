from __future__ import annotations

from typing import List, Optional

from pve_gateway.schemas import CamelModel


class NodeHealth(CamelModel):
    node: Optional[str] = None
    status: str
    id: Optional[str] = None


class QuorumInfo(CamelModel):
    votes: int = 0
    quorum_votes: int = 0


class ClusterHealth(CamelModel):
    status: str
    nodes_online: int
    nodes_total: int
    node_details: List[NodeHealth]
    quorum: Optional[QuorumInfo] = None

from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field

from pve_gateway.schemas import CamelModel

GuestKind = Literal["qemu", "lxc"]


class GuestSummary(CamelModel):
    vmid: str
    name: Optional[str] = None
    type: GuestKind
    node: str
    status: str
    uptime: str
    cpu: str
    memory: str


class GuestDetail(GuestSummary):
    disk_read: str
    disk_write: str
    network_in: str
    network_out: str


class CommandRequest(CamelModel):
    command: Optional[str] = Field(default=None, description="Command passed to the guest agent")
    type: str = Field(default="qemu", description="Guest kind: qemu or lxc")


class CommandResult(CamelModel):
    status: str = "SUCCESS"
    command: str
    node: str
    vmid: str
    type: GuestKind
    output: str

# Raw Proxmox records as returned by /api2/json. Every field is optional:
# the API omits counters for stopped guests, offline nodes and config-only storage.
from __future__ import annotations

import logging
from typing import Any, List, Optional, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _non_negative(v):
    if v in (None, ""):
        return None
    try:
        value = float(v)
    except (TypeError, ValueError):
        return None
    if value < 0:
        return 0
    return int(value)


def _split_list(v) -> List[str]:
    if v is None:
        return []
    if isinstance(v, str):
        return [item.strip() for item in v.split(",") if item.strip()]
    if isinstance(v, (list, tuple, set)):
        return [str(item).strip() for item in v if str(item).strip()]
    return []


def _clamp_fraction(v):
    if v in (None, ""):
        return None
    try:
        value = float(v)
    except (TypeError, ValueError):
        return None
    return min(max(value, 0.0), 1.0)


def _as_flag(v):
    if v is None or v == "":
        return None
    if isinstance(v, str):
        return v.strip().lower() in {"1", "true", "yes", "on"}
    return bool(v)


class NodeRecord(BaseModel):
    """Entry of GET /nodes."""

    node: str
    status: Optional[str] = None
    uptime: Optional[int] = None
    cpu: Optional[float] = None
    maxcpu: Optional[int] = None
    mem: Optional[int] = None
    maxmem: Optional[int] = None
    disk: Optional[int] = None
    maxdisk: Optional[int] = None

    @field_validator("uptime", "mem", "maxmem", "disk", "maxdisk", mode="before")
    @classmethod
    def _bytes(cls, v):
        return _non_negative(v)

    @field_validator("cpu", mode="before")
    @classmethod
    def _cpu(cls, v):
        return _clamp_fraction(v)

    model_config = {"extra": "ignore"}


class MemoryInfo(BaseModel):
    used: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)

    @field_validator("used", "total", mode="before")
    @classmethod
    def _bytes(cls, v):
        return _non_negative(v) or 0

    model_config = {"extra": "ignore"}


class CpuInfo(BaseModel):
    cpus: int = 0
    model: Optional[str] = None
    sockets: Optional[int] = None
    cores: Optional[int] = None

    model_config = {"extra": "ignore", "protected_namespaces": ()}


class NodeStatusRecord(BaseModel):
    """GET /nodes/{node}/status."""

    nodename: Optional[str] = None
    status: Optional[str] = None
    uptime: Optional[int] = None
    cpu: Optional[float] = None
    cpuinfo: Optional[CpuInfo] = None
    memory: Optional[MemoryInfo] = None
    rootfs: Optional[MemoryInfo] = None
    loadavg: List[float] = Field(default_factory=lambda: [0.0, 0.0, 0.0])
    kernel: Optional[str] = None
    pveversion: Optional[str] = None

    @field_validator("uptime", mode="before")
    @classmethod
    def _uptime(cls, v):
        return _non_negative(v)

    @field_validator("cpu", mode="before")
    @classmethod
    def _cpu(cls, v):
        return _clamp_fraction(v)

    @field_validator("loadavg", mode="before")
    @classmethod
    def _loadavg(cls, v):
        # Proxmox sends load averages as strings ("0.12")
        if not isinstance(v, (list, tuple)):
            return [0.0, 0.0, 0.0]
        parsed = []
        for item in v:
            try:
                parsed.append(float(item))
            except (TypeError, ValueError):
                parsed.append(0.0)
        return parsed

    @field_validator("kernel", mode="before")
    @classmethod
    def _kernel(cls, v):
        # newer releases report current-kernel as an object instead of kernel
        if isinstance(v, dict):
            return v.get("release")
        return v

    model_config = {"extra": "ignore"}


class GuestRecord(BaseModel):
    """Entry of GET /nodes/{node}/{qemu|lxc} or a guest's status/current."""

    vmid: str
    name: Optional[str] = None
    status: Optional[str] = None
    uptime: Optional[int] = None
    cpu: Optional[float] = None
    mem: Optional[int] = None
    maxmem: Optional[int] = None
    diskread: Optional[int] = None
    diskwrite: Optional[int] = None
    netin: Optional[int] = None
    netout: Optional[int] = None

    @field_validator("vmid", mode="before")
    @classmethod
    def _vmid_str(cls, v):
        if v is None:
            raise ValueError("vmid is required")
        if isinstance(v, float) and v.is_integer():
            v = int(v)
        value = str(v).strip()
        if not value.isdigit():
            raise ValueError(f"vmid must be numeric (got {v!r})")
        return value

    @field_validator("uptime", "mem", "maxmem", "diskread", "diskwrite", "netin", "netout", mode="before")
    @classmethod
    def _bytes(cls, v):
        return _non_negative(v)

    @field_validator("cpu", mode="before")
    @classmethod
    def _cpu(cls, v):
        return _clamp_fraction(v)

    model_config = {"extra": "ignore"}


class StorageRecord(BaseModel):
    """Entry of GET /storage (optionally enriched with usage counters)."""

    storage: str
    type: Optional[str] = None
    content: List[str] = Field(default_factory=list)
    nodes: List[str] = Field(default_factory=list)
    used: Optional[int] = None
    total: Optional[int] = None
    disable: Optional[bool] = None
    enabled: Optional[bool] = None

    @field_validator("content", "nodes", mode="before")
    @classmethod
    def _lists(cls, v):
        return _split_list(v)

    @field_validator("used", "total", mode="before")
    @classmethod
    def _bytes(cls, v):
        return _non_negative(v)

    @field_validator("disable", "enabled", mode="before")
    @classmethod
    def _flags(cls, v):
        return _as_flag(v)

    model_config = {"extra": "ignore"}


class ClusterStatusEntry(BaseModel):
    """Entry of GET /cluster/status; ``type`` is node, cluster or quorum."""

    type: str
    id: Optional[str] = None
    name: Optional[str] = None
    node: Optional[str] = None
    online: Optional[bool] = None
    votes: Optional[int] = None
    quorum_votes: Optional[int] = None

    @field_validator("online", mode="before")
    @classmethod
    def _flags(cls, v):
        return _as_flag(v)

    model_config = {"extra": "ignore"}

    @property
    def node_name(self) -> Optional[str]:
        return self.node or self.name


def parse_records(model: Type[M], items: Any, *, source: str = "") -> List[M]:
    """Validate a list of raw dicts, dropping entries that do not fit ``model``."""
    if not isinstance(items, list):
        return []

    validated: List[M] = []
    dropped = 0
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            dropped += 1
            continue
        try:
            validated.append(model.model_validate(item))
        except ValidationError as ve:
            dropped += 1
            logger.warning("Dropped %s #%s from %s: %s", model.__name__, idx, source or "upstream", ve.errors())

    if dropped:
        logger.info("%s: %s valid %s records, %s dropped", source or "upstream", len(validated), model.__name__, dropped)
    return validated

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from pve_gateway.capability import CapabilityGate
from pve_gateway.proxmox.client import ProxmoxClient
from pve_gateway.settings import Settings, get_settings


@lru_cache(maxsize=4)
def _client_for(settings: Settings) -> ProxmoxClient:
    return ProxmoxClient(settings)


def get_proxmox_client(settings: Settings = Depends(get_settings)) -> ProxmoxClient:
    """Shared upstream client; one instance per (immutable) settings value."""
    return _client_for(settings)


def get_capability_gate(settings: Settings = Depends(get_settings)) -> CapabilityGate:
    return CapabilityGate.from_settings(settings)

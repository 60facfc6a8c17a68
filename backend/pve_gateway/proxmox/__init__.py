"""Proxmox VE API access: HTTP client and raw record schemas."""

from .client import GUEST_KINDS, ProxmoxClient

__all__ = ["GUEST_KINDS", "ProxmoxClient"]

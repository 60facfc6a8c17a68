"""Normalized REST gateway over a Proxmox VE cluster."""

__version__ = "0.1.0"

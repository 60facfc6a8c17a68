from __future__ import annotations

from typing import Optional


class GatewayError(Exception):
    """Base class for failures surfaced by the gateway core."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UpstreamError(GatewayError):
    """The Proxmox API answered with a non-success status or could not be reached."""

    def __init__(self, status: Optional[int], message: str):
        self.status = status
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status={self.status!r}, message={self.message!r})"


class NotFoundError(UpstreamError):
    """The upstream target (node, guest, storage) does not exist."""


class PermissionDenied(GatewayError):
    """A privileged operation was attempted while elevation is disabled."""


class ValidationError(GatewayError):
    """A required request input is missing or malformed."""

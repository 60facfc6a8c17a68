from __future__ import annotations

import enum
import logging

from pve_gateway.errors import PermissionDenied
from pve_gateway.settings import Settings

logger = logging.getLogger(__name__)


class ElevationPolicy(str, enum.Enum):
    RESTRICTED = "restricted"
    ELEVATED = "elevated"

    @classmethod
    def from_flag(cls, allow_elevated: bool) -> "ElevationPolicy":
        return cls.ELEVATED if allow_elevated else cls.RESTRICTED


class PrivilegedOperation(str, enum.Enum):
    GUEST_COMMAND = "guest.command"


class CapabilityGate:
    """Single process-wide switch for privileged operations.

    The policy is fixed at construction; there is no per-user or per-guest ACL.
    """

    __slots__ = ("_policy",)

    def __init__(self, policy: ElevationPolicy):
        self._policy = ElevationPolicy(policy)

    @classmethod
    def from_settings(cls, settings: Settings) -> "CapabilityGate":
        return cls(ElevationPolicy.from_flag(settings.allow_elevated))

    @property
    def policy(self) -> ElevationPolicy:
        return self._policy

    @property
    def is_elevated(self) -> bool:
        return self._policy is ElevationPolicy.ELEVATED

    def check(self, operation: PrivilegedOperation) -> None:
        """Raise PermissionDenied unless the gate is elevated."""
        if self.is_elevated:
            return
        logger.warning("Denied privileged operation %s (elevation disabled)", operation.value)
        raise PermissionDenied(
            "Elevated operations are disabled. Set PROXMOX_ALLOW_ELEVATED=true to enable."
        )

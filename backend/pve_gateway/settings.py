from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping, Optional

REQUIRED_VARS = (
    "PROXMOX_HOST",
    "PROXMOX_USER",
    "PROXMOX_TOKEN_NAME",
    "PROXMOX_TOKEN_VALUE",
)


class ConfigError(RuntimeError):
    """Raised when required configuration is missing or invalid."""


def _env_bool(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = (env.get(key) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer (got {raw!r})") from None


@dataclass(frozen=True)
class Settings:
    # Proxmox connection
    # host/port       : upstream API endpoint (https://host:port/api2/json)
    # user/token_*    : API token identity, sent as PVEAPIToken=user!name=value
    # verify_ssl      : certificate verification for the upstream connection
    proxmox_host: str
    proxmox_user: str
    proxmox_token_name: str
    proxmox_token_value: str
    proxmox_port: int = 8006
    verify_ssl: bool = False
    timeout: int = 15

    # Gateway behaviour
    allow_elevated: bool = False
    max_workers: int = 4
    log_level: str = "INFO"

    @property
    def base_url(self) -> str:
        return f"https://{self.proxmox_host}:{self.proxmox_port}/api2/json"

    @property
    def auth_header(self) -> str:
        return f"PVEAPIToken={self.proxmox_user}!{self.proxmox_token_name}={self.proxmox_token_value}"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables.

        Raises ConfigError naming every missing required variable.
        """
        env = os.environ if env is None else env

        missing = [key for key in REQUIRED_VARS if not (env.get(key) or "").strip()]
        if missing:
            raise ConfigError(f"Missing required environment variable(s): {', '.join(missing)}")

        max_workers = _env_int(env, "PROXMOX_MAX_WORKERS", 4)
        if max_workers < 1:
            raise ConfigError("PROXMOX_MAX_WORKERS must be >= 1")

        return cls(
            proxmox_host=env["PROXMOX_HOST"].strip(),
            proxmox_user=env["PROXMOX_USER"].strip(),
            proxmox_token_name=env["PROXMOX_TOKEN_NAME"].strip(),
            proxmox_token_value=env["PROXMOX_TOKEN_VALUE"].strip(),
            proxmox_port=_env_int(env, "PROXMOX_PORT", 8006),
            verify_ssl=_env_bool(env.get("PROXMOX_VERIFY_SSL")),
            timeout=_env_int(env, "PROXMOX_TIMEOUT", 15),
            allow_elevated=_env_bool(env.get("PROXMOX_ALLOW_ELEVATED")),
            max_workers=max_workers,
            log_level=(env.get("LOG_LEVEL") or "INFO").strip().upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, read once from the environment."""
    return Settings.from_env()

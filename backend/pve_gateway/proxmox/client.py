from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests
import urllib3

from pve_gateway.errors import NotFoundError, UpstreamError
from pve_gateway.settings import Settings

logger = logging.getLogger(__name__)

GUEST_KINDS = ("qemu", "lxc")

NODES_PATH = "/nodes"
NODE_STATUS_PATH = "/nodes/{node}/status"
NODE_GUESTS_PATH = "/nodes/{node}/{kind}"
GUEST_STATUS_PATH = "/nodes/{node}/{kind}/{vmid}/status/current"
GUEST_AGENT_EXEC_PATH = "/nodes/{node}/{kind}/{vmid}/agent/exec"
STORAGE_PATH = "/storage"
CLUSTER_STATUS_PATH = "/cluster/status"
CLUSTER_RESOURCES_PATH = "/cluster/resources"

# Upstream phrasings for a missing node, guest or storage; other "no such" errors
# (guest agent, filesystem) stay plain upstream failures.
_NOT_FOUND_RE = re.compile(
    r"configuration file '[^']*' does not exist"
    r"|unable to find configuration file for (?:vm|ct)"
    r"|no such (?:cluster )?node"
    r"|storage '[^']*' does not exist",
    re.IGNORECASE,
)


def _seg(value: Any) -> str:
    return quote(str(value), safe="")


def _extract_message(resp: requests.Response) -> str:
    """Best upstream-provided message for a failed response.

    Proxmox puts the reason in the status line and, for parameter errors,
    an ``errors`` mapping in the body.
    """
    try:
        body = resp.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
        errors = body.get("errors")
        if isinstance(errors, dict) and errors:
            return "; ".join(f"{field}: {str(reason).strip()}" for field, reason in errors.items())
        data = body.get("data")
        if isinstance(data, str) and data.strip():
            return data.strip()

    reason = (resp.reason or "").strip()
    return f"{resp.status_code} {reason}".strip()


class ProxmoxClient:
    """Token-authenticated client for the Proxmox VE JSON API.

    Holds no per-call state; one instance is shared across requests.
    Every method issues exactly one HTTP call and never retries.
    """

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.base_url = settings.base_url
        self.timeout = settings.timeout
        self.session = session or requests.Session()
        self.session.verify = settings.verify_ssl
        self.session.headers.update(
            {
                "Authorization": settings.auth_header,
                "Accept": "application/json",
            }
        )
        if not settings.verify_ssl:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("Proxmox %s %s", method, path)
        try:
            resp = self.session.request(method, url, json=body, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("Error connecting to Proxmox %s %s: %s", method, path, exc)
            raise UpstreamError(None, f"Proxmox API request failed: {exc}") from exc

        if resp.status_code >= 400:
            message = _extract_message(resp)
            logger.warning("Proxmox %s %s failed (%s): %s", method, path, resp.status_code, message)
            if resp.status_code == 404 or _NOT_FOUND_RE.search(message):
                raise NotFoundError(resp.status_code, message)
            raise UpstreamError(resp.status_code, message)

        try:
            payload = resp.json()
        except ValueError as exc:
            raise UpstreamError(resp.status_code, f"Proxmox API request failed: invalid JSON body ({exc})") from exc

        if isinstance(payload, dict) and "data" in payload:
            return payload["data"]
        return payload

    def get(self, path: str) -> Any:
        return self.request("GET", path)

    def post(self, path: str, body: Optional[Dict[str, Any]] = None) -> Any:
        return self.request("POST", path, body)

    # ─── nodes ───

    def get_nodes(self) -> List[Dict[str, Any]]:
        return self.get(NODES_PATH) or []

    def get_node_status(self, node: str) -> Dict[str, Any]:
        return self.get(NODE_STATUS_PATH.format(node=_seg(node))) or {}

    # ─── guests ───

    def get_guests(self, node: str, kind: str) -> List[Dict[str, Any]]:
        if kind not in GUEST_KINDS:
            raise ValueError(f"Unknown guest kind {kind!r}")
        return self.get(NODE_GUESTS_PATH.format(node=_seg(node), kind=kind)) or []

    def get_node_qemu(self, node: str) -> List[Dict[str, Any]]:
        return self.get_guests(node, "qemu")

    def get_node_lxc(self, node: str) -> List[Dict[str, Any]]:
        return self.get_guests(node, "lxc")

    def get_guest_status(self, node: str, vmid: str, kind: str = "qemu") -> Dict[str, Any]:
        path = GUEST_STATUS_PATH.format(node=_seg(node), kind=kind, vmid=_seg(vmid))
        return self.get(path) or {}

    def execute_guest_command(self, node: str, vmid: str, command: str, kind: str = "qemu") -> Any:
        path = GUEST_AGENT_EXEC_PATH.format(node=_seg(node), kind=kind, vmid=_seg(vmid))
        return self.post(path, {"command": command})

    # ─── storage / cluster ───

    def get_storage(self) -> List[Dict[str, Any]]:
        return self.get(STORAGE_PATH) or []

    def get_cluster_status(self) -> List[Dict[str, Any]]:
        return self.get(CLUSTER_STATUS_PATH) or []

    def get_cluster_resources(self, resource_type: Optional[str] = None) -> List[Dict[str, Any]]:
        path = CLUSTER_RESOURCES_PATH
        if resource_type:
            path = f"{path}?type={_seg(resource_type)}"
        return self.get(path) or []

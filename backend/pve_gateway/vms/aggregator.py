"""Cluster-wide guest listing: fan out per (node, kind), merge, sort."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from pve_gateway.errors import UpstreamError, ValidationError
from pve_gateway.formatting import format_guest
from pve_gateway.proxmox.client import GUEST_KINDS, ProxmoxClient
from pve_gateway.proxmox.schema import GuestRecord, NodeRecord, parse_records
from pve_gateway.vms.guest_models import GuestSummary

logger = logging.getLogger(__name__)


@dataclass
class FetchOutcome:
    """Result of one (node, kind) fetch: guests on success, error otherwise."""

    node: str
    kind: str
    guests: List[GuestSummary] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class GuestListing:
    guests: List[GuestSummary]
    failures: List[FetchOutcome] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.failures)


def resolve_kinds(kind: Optional[str]) -> Tuple[str, ...]:
    """Map a caller kind filter (qemu, lxc, all or empty) to the kinds to query."""
    if kind is None:
        return GUEST_KINDS
    norm = kind.strip().lower()
    if norm in ("", "all"):
        return GUEST_KINDS
    if norm not in GUEST_KINDS:
        raise ValidationError(f"Invalid guest type '{kind}'. Use one of: qemu, lxc, all")
    return (norm,)


def guest_sort_key(guest: GuestSummary) -> Tuple[int, str, str]:
    return int(guest.vmid), guest.node, guest.type


def _fetch(client: ProxmoxClient, node: str, kind: str) -> FetchOutcome:
    try:
        raw = client.get_guests(node, kind)
    except UpstreamError as exc:
        return FetchOutcome(node=node, kind=kind, error=exc.message)
    records = parse_records(GuestRecord, raw, source=f"{node}/{kind}")
    return FetchOutcome(node=node, kind=kind, guests=[format_guest(r, node, kind) for r in records])


def _enumerate_nodes(client: ProxmoxClient) -> List[str]:
    # failure here aborts the whole listing
    records = parse_records(NodeRecord, client.get_nodes(), source="nodes")
    return [r.node for r in records]


def collect_guests(
    client: ProxmoxClient,
    *,
    node: Optional[str] = None,
    kind: Optional[str] = None,
    max_workers: int = 4,
) -> GuestListing:
    """List guests across the cluster, or on a single node when ``node`` is given.

    Per-(node, kind) failures are recorded in ``failures`` and logged; they
    never fail the listing. Output is sorted by numeric vmid, then node, then kind.
    """
    kinds = resolve_kinds(kind)
    nodes: Sequence[str] = [node] if node else _enumerate_nodes(client)
    targets = [(n, k) for n in nodes for k in kinds]
    if not targets:
        return GuestListing(guests=[])

    outcomes: List[FetchOutcome] = []
    ex = ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(targets))))
    try:
        fut_map = {ex.submit(_fetch, client, n, k): (n, k) for n, k in targets}
        for fut in as_completed(fut_map):
            n, k = fut_map[fut]
            try:
                outcomes.append(fut.result())
            except Exception as exc:
                logger.exception("Unexpected error listing %s guests on node '%s'", k, n)
                outcomes.append(FetchOutcome(node=n, kind=k, error=str(exc)))
    except BaseException:
        # interrupted: drop queued fetches and whatever was collected so far
        ex.shutdown(wait=False, cancel_futures=True)
        raise
    else:
        ex.shutdown(wait=True)

    guests: List[GuestSummary] = []
    failures: List[FetchOutcome] = []
    for outcome in outcomes:
        if outcome.ok:
            guests.extend(outcome.guests)
        else:
            logger.warning("Could not fetch %s guests from node '%s': %s", outcome.kind, outcome.node, outcome.error)
            failures.append(outcome)

    guests.sort(key=guest_sort_key)
    failures.sort(key=lambda o: (o.node, o.kind))
    return GuestListing(guests=guests, failures=failures)

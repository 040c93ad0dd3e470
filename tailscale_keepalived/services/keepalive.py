import socket
from dataclasses import dataclass
from functools import partial
from typing import Callable, Optional, Union

from loguru import logger

from ..filters import FilterConfig, Verdict, classify
from ..prober import PAYLOAD, TARGET_PORT, send_probes
from ..protocols.status import StatusParseError, parse_status
from ..subsystems.tailscale import STATUS_TIMEOUT, TAILSCALE_CMD, TailscaleError, get_status
from . import Service

KEEPALIVE_INTERVAL = 25


@dataclass(frozen=True)
class CycleCounts:
    """Result of a cycle that made it through every peer"""

    sent: int = 0
    skipped_offline: int = 0
    skipped_tags: int = 0


@dataclass(frozen=True)
class CycleFailed:
    """Result of a cycle aborted before any peer was probed"""

    reason: str


CycleResult = Union[CycleCounts, CycleFailed]


def run_cycle(
    udp_socket: socket.socket,
    config: FilterConfig,
    status_source: Callable[[], bytes] = get_status,
    port: int = TARGET_PORT,
    payload: bytes = PAYLOAD,
) -> CycleResult:
    """Fetch the peer roster once and probe every peer that passes the filters."""

    try:
        raw = status_source()
    except TailscaleError as e:
        return CycleFailed(str(e))

    try:
        roster = parse_status(raw)
    except StatusParseError as e:
        return CycleFailed(str(e))

    sent = 0
    skipped_offline = 0
    skipped_tags = 0
    for key, peer in roster.items():
        verdict = classify(peer, config)
        logger.debug(f"peer {key} {verdict.name.lower()}")
        if verdict == Verdict.OFFLINE:
            skipped_offline += 1
        elif verdict == Verdict.TAG_FILTERED:
            skipped_tags += 1
        else:
            sent += send_probes(udp_socket, peer.tailscale_ips, port, payload)

    return CycleCounts(sent, skipped_offline, skipped_tags)


class KeepaliveService(Service):
    """Probes the tailnet peers every ``interval`` seconds."""

    def __init__(
        self,
        udp_socket: socket.socket,
        config: FilterConfig,
        interval: float = KEEPALIVE_INTERVAL,
        port: int = TARGET_PORT,
        payload: bytes = PAYLOAD,
        command: str = TAILSCALE_CMD,
        timeout: float = STATUS_TIMEOUT,
        count: int = -1,
        status_source: Optional[Callable[[], bytes]] = None,
    ):
        super().__init__(interval)

        self._socket = udp_socket
        self.config = config
        self.port = port
        self.payload = payload
        self.count = count
        if status_source is None:
            status_source = partial(get_status, command, timeout)
        self._status_source = status_source

        self.cycles = 0
        self.last_result: Optional[CycleResult] = None

        if count == 0:
            self.stop()

    def on_loop(self):
        result = run_cycle(self._socket, self.config, self._status_source, self.port, self.payload)

        if isinstance(result, CycleCounts):
            logger.info(
                f"Keepalive cycle: Sent {result.sent} pkts | Skipped: {result.skipped_offline} "
                f"offline, {result.skipped_tags} tag-filtered"
            )
        else:
            logger.error(f"cycle failed: {result.reason}")

        self.last_result = result
        self.cycles += 1

        if 0 <= self.count <= self.cycles:
            self.stop()

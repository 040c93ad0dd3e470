"""Sends the keepalive probes."""

import socket
from ipaddress import IPv4Address, ip_address
from typing import Iterable, List

from loguru import logger

TARGET_PORT = 41641
PAYLOAD = b"z"


def open_socket() -> socket.socket:
    """Open the outbound UDP socket, bound to an ephemeral port on all interfaces."""

    udp_socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        udp_socket.bind(("0.0.0.0", 0))
        udp_socket.setblocking(False)
    except OSError:
        udp_socket.close()
        raise
    return udp_socket


def ipv4_targets(addresses: Iterable[str]) -> List[IPv4Address]:
    """Get the IPv4 addresses out of a list of address strings, dropping everything else."""

    targets = []
    for address in addresses:
        try:
            ip = ip_address(address)
        except ValueError:
            continue
        if isinstance(ip, IPv4Address):
            targets.append(ip)
    return targets


def send_probes(
    udp_socket: socket.socket,
    addresses: Iterable[str],
    port: int = TARGET_PORT,
    payload: bytes = PAYLOAD,
) -> int:
    """
    Send one probe to every IPv4 address.

    Send failures are logged and skipped.

    Returns
    -------
    int
        The number of probes sent.
    """

    sent = 0
    for ip in ipv4_targets(addresses):
        try:
            udp_socket.sendto(payload, (str(ip), port))
        except OSError as e:
            logger.error(f"failed to send to {ip}:{port}: {e}")
            continue
        logger.debug(f"probe sent to {ip}:{port}")
        sent += 1
    return sent

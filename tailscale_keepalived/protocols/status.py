"""
Anything dealing with decoding the JSON output of ``tailscale status --json``.

Only the fields needed to probe peers are decoded, everything else in the document is ignored.
"""

import json
from dataclasses import dataclass
from typing import Dict, List, Optional


class StatusParseError(Exception):
    """Error with the tailscale status document"""


@dataclass(frozen=True)
class PeerRecord:
    """One peer from the ``Peer`` object of the status document."""

    tailscale_ips: List[str]
    online: Optional[bool] = None
    """``None`` when the field was omitted, which is treated as offline."""
    tags: Optional[List[str]] = None

    @property
    def is_online(self) -> bool:
        return self.online is True

    @property
    def tag_set(self) -> frozenset:
        return frozenset(self.tags or ())


Roster = Dict[str, PeerRecord]


def _str_list(value, key: str, field: str) -> List[str]:
    if not isinstance(value, list) or not all(isinstance(i, str) for i in value):
        raise StatusParseError(f"peer {key}: {field} must be a list of strings")
    return list(value)


def _parse_peer(key: str, raw: dict) -> PeerRecord:
    if not isinstance(raw, dict):
        raise StatusParseError(f"peer {key} is not an object")

    if "TailscaleIPs" not in raw or raw["TailscaleIPs"] is None:
        raise StatusParseError(f"peer {key} has no TailscaleIPs")
    ips = _str_list(raw["TailscaleIPs"], key, "TailscaleIPs")

    online = raw.get("Online")
    if online is not None and not isinstance(online, bool):
        raise StatusParseError(f"peer {key}: Online must be a boolean")

    tags = raw.get("Tags")
    if tags is not None:
        tags = _str_list(tags, key, "Tags")

    return PeerRecord(ips, online, tags)


def parse_status(raw: bytes) -> Roster:
    """
    Decode the raw stdout of ``tailscale status --json`` into a roster.

    Parameters
    ----------
    raw: bytes
        The status document.

    Raises
    ------
    StatusParseError
        The document is not UTF-8, not JSON, or does not have the expected shape.

    Returns
    -------
    Roster
        Peer records keyed by peer identifier. Empty when the document has no ``Peer`` object.
    """

    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise StatusParseError(f"status is not valid utf-8: {e}") from e

    try:
        doc = json.loads(text)
    except json.JSONDecodeError as e:
        raise StatusParseError(f"status is not valid json: {e}") from e

    if not isinstance(doc, dict):
        raise StatusParseError("status is not a json object")

    peers = doc.get("Peer")
    if peers is None:
        return {}
    if not isinstance(peers, dict):
        raise StatusParseError("Peer is not an object")

    return {key: _parse_peer(key, value) for key, value in peers.items()}

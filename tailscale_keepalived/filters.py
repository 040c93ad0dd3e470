"""Peer selection by online status and tags."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Iterable

from .protocols.status import PeerRecord


@unique
class Verdict(Enum):
    """Outcome of filtering one peer"""

    INCLUDE = 0
    OFFLINE = 1
    TAG_FILTERED = 2


@dataclass(frozen=True)
class FilterConfig:
    """
    Tag filters fixed at startup.

    ``None`` means the filter was not given. An empty ``with_tags`` matches no peer, an empty
    ``without_tags`` excludes no peer.
    """

    with_tags: frozenset[str] | None = None
    without_tags: frozenset[str] | None = None

    @classmethod
    def from_lists(
        cls, with_tags: Iterable[str] | None = None, without_tags: Iterable[str] | None = None
    ) -> FilterConfig:
        return cls(
            None if with_tags is None else frozenset(with_tags),
            None if without_tags is None else frozenset(without_tags),
        )


def classify(peer: PeerRecord, config: FilterConfig) -> Verdict:
    """Decide if a peer gets probed, and if not, why."""

    if not peer.is_online:
        return Verdict.OFFLINE

    tags = peer.tag_set

    if config.with_tags is not None and tags.isdisjoint(config.with_tags):
        return Verdict.TAG_FILTERED

    # only checked for peers that passed with_tags
    if config.without_tags is not None and not tags.isdisjoint(config.without_tags):
        return Verdict.TAG_FILTERED

    return Verdict.INCLUDE


def include(peer: PeerRecord, config: FilterConfig) -> bool:
    return classify(peer, config) is Verdict.INCLUDE

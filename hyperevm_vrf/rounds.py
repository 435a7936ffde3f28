"""
Round arithmetic for drand-style beacons.

A beacon publishes round 1 at `genesis_time` and round N at
`genesis_time + (N - 1) * period`. A VRF request carries a `deadline` and a
contract-enforced `min_round`; the round used for fulfillment is the first
round whose period fully covers the deadline, never earlier than `min_round`.

All functions are pure and operate on Python ints, so arbitrarily large
timestamps and round numbers are safe.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .drand.client import BeaconInfo

__all__ = [
    "RoundTarget",
    "round_from_deadline",
    "latest_round_at",
    "round_publish_time",
    "compute_round_target",
]


@dataclass(frozen=True)
class RoundTarget:
    """Where a request stands relative to the beacon at time `now`."""

    target_round: int
    latest_round: int
    not_before: int
    seconds_left: int

    @property
    def published(self) -> bool:
        return self.latest_round >= self.target_round


def _check_period(info: "BeaconInfo") -> int:
    period = int(info.period)
    if period <= 0:
        raise ValueError(f"beacon period must be > 0, got {period}")
    return period


def round_from_deadline(deadline: int, info: "BeaconInfo") -> int:
    """
    Deadline-implied round: ceil((deadline - genesis) / period), floored at 1.

    A deadline exactly on a period boundary maps to that boundary's round.
    """
    period = _check_period(info)
    genesis = int(info.genesis_time)
    deadline = int(deadline)
    if deadline <= genesis:
        return 1
    delta = deadline - genesis
    if delta % period == 0:
        return delta // period
    return delta // period + 1


def latest_round_at(now: int, info: "BeaconInfo") -> int:
    """
    Latest round published at `now` (1-indexed, round 1 at genesis).

    Before genesis nothing is published and the result is 0.
    """
    period = _check_period(info)
    return max(0, (int(now) - int(info.genesis_time)) // period + 1)


def round_publish_time(round_number: int, info: "BeaconInfo") -> int:
    """Unix time at which `round_number` is published."""
    period = _check_period(info)
    return int(info.genesis_time) + (int(round_number) - 1) * period


def compute_round_target(
    deadline: int,
    min_round: int,
    info: "BeaconInfo",
    now: int,
) -> RoundTarget:
    """
    Map a request's deadline and minimum round to the round to fulfill with.

    `min_round` always wins over an earlier deadline-implied round.
    """
    target = max(round_from_deadline(deadline, info), int(min_round))
    not_before = round_publish_time(target, info)
    return RoundTarget(
        target_round=target,
        latest_round=latest_round_at(now, info),
        not_before=not_before,
        seconds_left=max(0, not_before - int(now)),
    )

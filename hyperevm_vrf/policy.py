"""
Anti-grinding policy.

A fulfiller could wait for many beacon rounds to pass and then choose whether
to fulfill based on how the (already public) randomness looks, while still
citing the old, valid target round. The policy bounds how far behind the
latest published round a target round may be:

    round_difference = latest_round - target_round

- strict         : allowed iff round_difference == 0
- window (K)     : allowed iff 0 <= round_difference <= K
- None (no policy): always allowed

A negative difference (the target round is not yet visible) is always a
violation under both modes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from .errors import ConfigurationError, PolicyViolationError

__all__ = [
    "PolicyMode",
    "Policy",
    "DEFAULT_POLICY",
    "evaluate_policy",
    "check_policy",
]

PolicyMode = Literal["strict", "window"]

_MODES = ("strict", "window")


@dataclass(frozen=True)
class Policy:
    mode: PolicyMode = "window"
    window: int = 1

    def __post_init__(self) -> None:
        if self.mode not in _MODES:
            raise ConfigurationError(
                f"policy mode must be one of {_MODES}", field="policy.mode", value=self.mode
            )
        if isinstance(self.window, bool) or not isinstance(self.window, int):
            raise ConfigurationError(
                "policy window must be an integer", field="policy.window", value=self.window
            )
        if self.window < 0:
            raise ConfigurationError(
                "policy window must be >= 0", field="policy.window", value=self.window
            )
        if self.mode == "strict" and self.window != 0:
            # strict is window=0 by definition
            object.__setattr__(self, "window", 0)

    @classmethod
    def strict(cls) -> "Policy":
        return cls(mode="strict", window=0)

    @classmethod
    def windowed(cls, window: int) -> "Policy":
        return cls(mode="window", window=window)

    @property
    def effective_window(self) -> int:
        return 0 if self.mode == "strict" else self.window

    def allows(self, target_round: int, latest_round: int) -> bool:
        diff = int(latest_round) - int(target_round)
        return 0 <= diff <= self.effective_window


DEFAULT_POLICY = Policy(mode="window", window=1)


def evaluate_policy(
    policy: Optional[Policy],
    target_round: int,
    latest_round: int,
    *,
    request_id: int = 0,
) -> Optional[PolicyViolationError]:
    """Return the violation for (target_round, latest_round), or None if allowed."""
    if policy is None:
        return None
    if policy.allows(target_round, latest_round):
        return None
    return PolicyViolationError(
        request_id=int(request_id),
        policy_mode=policy.mode,
        policy_window=policy.effective_window,
        current_round=int(latest_round),
        target_round=int(target_round),
        round_difference=int(latest_round) - int(target_round),
    )


def check_policy(
    policy: Optional[Policy],
    target_round: int,
    latest_round: int,
    *,
    request_id: int = 0,
) -> None:
    """Raise PolicyViolationError unless the policy permits the round pair."""
    violation = evaluate_policy(policy, target_round, latest_round, request_id=request_id)
    if violation is not None:
        raise violation

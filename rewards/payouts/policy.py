"""
Seconds -> tokens conversion policies.

Two rounding rules have been used for payouts; both are kept behind an explicit,
versioned policy so a run always states which one produced its ledger:

threshold-v1   whole hours, plus one token when the leftover is >= 40 minutes
multiplier-v2  seconds scaled by 0.7, then rounded half-up to whole hours

Either way the result is capped at max_tokens per run.
"""
import math
from enum import Enum

from pydantic import BaseModel

from rewards.core.config import Settings

SECONDS_PER_HOUR = 3600


class RoundingPolicy(str, Enum):
    THRESHOLD = "threshold-v1"
    MULTIPLIER = "multiplier-v2"


class PayoutPolicy(BaseModel):
    rounding: RoundingPolicy = RoundingPolicy.THRESHOLD
    max_tokens: int = 10
    threshold_minutes: int = 40
    cutoff_mult: float = 0.7
    protected_markers: tuple[str, ...] = ("Thunder", "MANUAL")

    model_config = {"frozen": True}

    @classmethod
    def from_settings(cls, settings: Settings, rounding: str | None = None) -> "PayoutPolicy":
        return cls(
            rounding=RoundingPolicy(rounding or settings.payout_policy),
            max_tokens=settings.payout_max_tokens,
            threshold_minutes=settings.payout_threshold_minutes,
            cutoff_mult=settings.payout_cutoff_mult,
            protected_markers=settings.protected_markers,
        )


def whole_hours(seconds: float, policy: PayoutPolicy) -> int:
    """Rounded hours before the cap."""
    seconds = max(seconds or 0, 0)
    if policy.rounding is RoundingPolicy.MULTIPLIER:
        return math.floor(seconds * policy.cutoff_mult / SECONDS_PER_HOUR + 0.5)
    hours = int(seconds // SECONDS_PER_HOUR)
    leftover = seconds - hours * SECONDS_PER_HOUR
    if leftover >= policy.threshold_minutes * 60:
        hours += 1
    return hours


def tokens_from_seconds(seconds: float, policy: PayoutPolicy) -> int:
    return min(whole_hours(seconds, policy), policy.max_tokens)

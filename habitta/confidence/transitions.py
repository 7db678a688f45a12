"""Explicit confidence transitions.

Confidence only moves through the closed set of triggers below, each with a
fixed delta, so every change is auditable to a named cause. Decay is computed
from stored timestamps against a caller-supplied ``now``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class ConfidenceTrigger(str, Enum):
    USER_PROVIDED_DATA = "user_provided_data"
    USER_PHOTO_ANALYSIS = "user_photo_analysis"
    USER_MANUAL_CONFIRMATION = "user_manual_confirmation"
    PERMIT_VERIFICATION = "permit_verification"
    QUARTERLY_STABLE_CONFIRMATION = "quarterly_stable_confirmation"
    EXTERNAL_DATA_MATCH = "external_data_match"
    TIME_DECAY = "time_decay"
    DATA_GAP_PERSISTS = "data_gap_persists"
    CONTRADICTORY_SIGNAL = "contradictory_signal"
    NO_CONFIRMATION_DECAY = "no_confirmation_decay"


TRIGGER_DELTAS: dict[ConfidenceTrigger, float] = {
    ConfidenceTrigger.USER_PROVIDED_DATA: 0.10,
    ConfidenceTrigger.USER_PHOTO_ANALYSIS: 0.15,
    ConfidenceTrigger.USER_MANUAL_CONFIRMATION: 0.20,
    ConfidenceTrigger.PERMIT_VERIFICATION: 0.25,
    ConfidenceTrigger.QUARTERLY_STABLE_CONFIRMATION: 0.01,
    ConfidenceTrigger.EXTERNAL_DATA_MATCH: 0.10,
    ConfidenceTrigger.TIME_DECAY: -0.01,
    ConfidenceTrigger.DATA_GAP_PERSISTS: -0.05,
    ConfidenceTrigger.CONTRADICTORY_SIGNAL: -0.10,
    ConfidenceTrigger.NO_CONFIRMATION_DECAY: -0.02,
}

NO_CONFIRMATION_DAYS = 90
DATA_GAP_DAYS = 30


@dataclass(frozen=True, slots=True)
class ConfidenceChange:
    trigger: ConfidenceTrigger
    direction: str  # increase | decrease | unchanged
    delta: float
    previous: float
    current: float
    timestamp: datetime
    system_key: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "reason": self.trigger.value,
            "direction": self.direction,
            "delta": self.delta,
            "previous": self.previous,
            "current": self.current,
            "timestamp": self.timestamp.isoformat(),
            "system_key": self.system_key,
        }


@dataclass(frozen=True, slots=True)
class DecayCheck:
    should_decay: bool
    trigger: ConfidenceTrigger | None = None
    delta: float = 0.0


def get_confidence_delta(trigger: ConfidenceTrigger) -> float:
    return TRIGGER_DELTAS[trigger]


def apply_confidence_change(
    current: float,
    trigger: ConfidenceTrigger,
    now: datetime,
    system_key: str | None = None,
) -> tuple[float, ConfidenceChange]:
    """Apply a trigger's fixed delta, clamping the result to [0, 1].

    Returns:
        (new score, change record); the record's delta is the applied delta
    """
    delta = TRIGGER_DELTAS[trigger]
    new_score = round(max(0.0, min(1.0, current + delta)), 4)
    if delta > 0:
        direction = "increase"
    elif delta < 0:
        direction = "decrease"
    else:
        direction = "unchanged"
    change = ConfidenceChange(
        trigger=trigger,
        direction=direction,
        delta=delta,
        previous=current,
        current=new_score,
        timestamp=now,
        system_key=system_key,
    )
    return new_score, change


def _days_between(start: datetime, end: datetime) -> int:
    return (end - start).days


def should_decay_confidence(last_confirmation: datetime | None, now: datetime) -> DecayCheck:
    """No confirmation for 90+ days decays confidence."""
    if last_confirmation is None:
        return DecayCheck(should_decay=False)
    if _days_between(last_confirmation, now) >= NO_CONFIRMATION_DAYS:
        trigger = ConfidenceTrigger.NO_CONFIRMATION_DECAY
        return DecayCheck(should_decay=True, trigger=trigger, delta=TRIGGER_DELTAS[trigger])
    return DecayCheck(should_decay=False)


def should_decay_for_data_gap(data_gap_start: datetime | None, now: datetime) -> DecayCheck:
    """A data gap persisting 30+ days decays confidence."""
    if data_gap_start is None:
        return DecayCheck(should_decay=False)
    if _days_between(data_gap_start, now) >= DATA_GAP_DAYS:
        trigger = ConfidenceTrigger.DATA_GAP_PERSISTS
        return DecayCheck(should_decay=True, trigger=trigger, delta=TRIGGER_DELTAS[trigger])
    return DecayCheck(should_decay=False)


@dataclass
class ConfidenceLedger:
    """A confidence score plus the audit trail of every change applied to it."""

    score: float
    system_key: str | None = None
    history: list[ConfidenceChange] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not 0.0 <= self.score <= 1.0:
            raise ValueError(f"Confidence must be within [0, 1], got {self.score}")

    def apply(self, trigger: ConfidenceTrigger, now: datetime) -> ConfidenceChange:
        self.score, change = apply_confidence_change(self.score, trigger, now, self.system_key)
        self.history.append(change)
        return change

    def apply_decay(
        self,
        last_confirmation: datetime | None,
        data_gap_start: datetime | None,
        now: datetime,
    ) -> list[ConfidenceChange]:
        """Apply whichever decay triggers are due at ``now``."""
        changes = []
        for check in (
            should_decay_confidence(last_confirmation, now),
            should_decay_for_data_gap(data_gap_start, now),
        ):
            if check.should_decay and check.trigger is not None:
                changes.append(self.apply(check.trigger, now))
        return changes

"""Trip reliability scoring and rider-facing leg labels.

Everything here is pure: identical candidates always produce the same score,
and missing or malformed fields count as zero/absent instead of failing.
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, List

from app.services.transit_dto import TripLeg, TripPlan
from app.services.transit_mapping import map_trip_leg, map_trip_plan

BASE_SCORE = 90
MAX_VARIABILITY_PENALTY = 45
VARIABILITY_WEIGHT = 120
REAL_TIME_PENALTY = 20
MAX_ALERT_PENALTY = 40
ALERT_WEIGHTS = {"high": 18, "medium": 10, "low": 4}

HIGH_VARIABILITY_THRESHOLD = 0.15
LOW_REAL_TIME_THRESHOLD = 0.4
# Reported variability when the spread is too large to represent
MAX_VARIABILITY = 1e6

HIGH_SEVERITY_TERMS = (
    "delay",
    "late",
    "suspend",
    "suspension",
    "closure",
    "closed",
    "cancel",
    "cancelled",
    "canceled",
    "detour",
    "disruption",
    "outage",
    "shuttle",
    "signal",
    "major",
    "significant",
)
MEDIUM_SEVERITY_TERMS = (
    "slow",
    "reduced",
    "minor",
    "expect",
    "possible",
    "maintenance",
    "track work",
)

REASON_VARIABILITY = "ETAs vary across options"
REASON_REAL_TIME = "Limited real-time coverage"
REASON_HIGH_ALERTS = "Service alerts indicate delays or disruptions"
REASON_MEDIUM_ALERTS = "Service alerts indicate minor slowdowns"
REASON_LOW_ALERTS = "Service alerts posted"
REASON_STABLE = "Stable schedule and consistent ETAs"

FIXED_LEG_LABELS = {
    "walk": "Walk",
    "personal_bike": "Bike",
    "shared_mobility": "Shared",
    "microtransit": "Microtransit",
}

_NUMERIC = re.compile(r"\d+")


class ReliabilityLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


@dataclass(frozen=True)
class ReliabilityScore:
    """Quality signal for a set of candidate trip plans."""

    score: int
    level: ReliabilityLevel
    variability: float
    real_time_rate: float
    alert_count: int
    reasons: List[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["level"] = self.level.value
        return payload


def clamp_score(score: float) -> int:
    """Round half up and clamp to [0, 100]."""
    return max(0, min(100, math.floor(score + 0.5)))


def level_for(score: int) -> ReliabilityLevel:
    if score >= 80:
        return ReliabilityLevel.HIGH
    if score >= 60:
        return ReliabilityLevel.MEDIUM
    return ReliabilityLevel.LOW


def classify_alert(text: str | None) -> str:
    """Return ``high``, ``medium`` or ``low`` by case-insensitive keyword match."""
    if not text:
        return "low"
    lower = text.lower()
    if any(term in lower for term in HIGH_SEVERITY_TERMS):
        return "high"
    if any(term in lower for term in MEDIUM_SEVERITY_TERMS):
        return "medium"
    return "low"


def duration_variability(durations: Iterable[float]) -> float:
    """Coefficient of variation (population stddev / mean), 0 when undefined.

    Deviations are taken relative to the mean so huge durations cannot
    overflow; a spread beyond float range saturates at ``MAX_VARIABILITY``.
    """
    values = list(durations)
    if not values:
        return 0.0
    try:
        mean = sum(value / len(values) for value in values)
        if not mean or not math.isfinite(mean):
            return 0.0
        relative_variance = sum(
            (value / mean - 1) ** 2 for value in values
        ) / len(values)
    except OverflowError:
        return MAX_VARIABILITY
    variability = math.sqrt(relative_variance)
    return variability if math.isfinite(variability) else MAX_VARIABILITY


def _as_plan(candidate: TripPlan | Mapping[str, Any] | Any) -> TripPlan:
    return candidate if isinstance(candidate, TripPlan) else map_trip_plan(candidate)


def compute_reliability(
    candidates: Iterable[TripPlan | Mapping[str, Any]],
) -> ReliabilityScore:
    """Score candidate plans on ETA spread, live-data coverage and alerts."""
    plans = [_as_plan(candidate) for candidate in candidates]

    variability = duration_variability(
        plan.duration for plan in plans if plan.duration is not None
    )

    schedule_items = 0
    real_time_items = 0
    severities = {"high": 0, "medium": 0, "low": 0}
    for plan in plans:
        for leg in plan.legs:
            if leg.leg_mode != "transit":
                continue
            for departure in leg.departures:
                schedule_items += 1
                if departure.is_real_time:
                    real_time_items += 1
            for route in leg.routes:
                for alert in route.alerts:
                    severities[classify_alert(alert.text)] += 1

    real_time_rate = real_time_items / schedule_items if schedule_items else 0.0

    score = float(BASE_SCORE)
    score -= min(MAX_VARIABILITY_PENALTY, variability * VARIABILITY_WEIGHT)
    score -= (1 - real_time_rate) * REAL_TIME_PENALTY
    score -= min(
        MAX_ALERT_PENALTY,
        sum(count * ALERT_WEIGHTS[severity] for severity, count in severities.items()),
    )
    final_score = clamp_score(score)

    reasons: list[str] = []
    if variability > HIGH_VARIABILITY_THRESHOLD:
        reasons.append(REASON_VARIABILITY)
    if real_time_rate < LOW_REAL_TIME_THRESHOLD:
        reasons.append(REASON_REAL_TIME)
    if severities["high"]:
        reasons.append(REASON_HIGH_ALERTS)
    elif severities["medium"]:
        reasons.append(REASON_MEDIUM_ALERTS)
    elif severities["low"]:
        reasons.append(REASON_LOW_ALERTS)
    if not reasons:
        reasons.append(REASON_STABLE)

    return ReliabilityScore(
        score=final_score,
        level=level_for(final_score),
        variability=variability,
        real_time_rate=real_time_rate,
        alert_count=sum(severities.values()),
        reasons=reasons,
    )


def summarize_leg(leg: TripLeg | Mapping[str, Any] | None) -> str:
    """Rider-facing label for a leg, e.g. ``Walk``, ``King Street``, ``Line 7``."""
    if leg is None:
        return "Leg"
    if not isinstance(leg, TripLeg):
        leg = map_trip_leg(leg)

    if leg.leg_mode in FIXED_LEG_LABELS:
        return FIXED_LEG_LABELS[leg.leg_mode]
    if leg.leg_mode != "transit":
        return "Transit"

    route = leg.routes[0] if leg.routes else None
    if route is None:
        return "Transit"
    mode_name = route.route_mode_name or "Transit"
    if route.route_long_name:
        return route.route_long_name

    short_name = route.route_short_name or route.real_time_route_id
    if not short_name:
        return mode_name
    if mode_name == "Transit":
        if _NUMERIC.fullmatch(short_name):
            return f"Line {short_name}"
        return f"Route {short_name}"
    return f"{mode_name} {short_name}"


__all__ = [
    "ReliabilityLevel",
    "ReliabilityScore",
    "classify_alert",
    "clamp_score",
    "compute_reliability",
    "duration_variability",
    "level_for",
    "summarize_leg",
]

"""
Pairwise and thematic correlation passes.

Detects:
- Temporal correlations (events close in time sharing keywords)
- Spatial correlations (geolocated events close on the ground)
- Thematic correlations (keywords connecting 3+ events)
- Cascades (an earlier event followed 6-48h later by a related one)

Every pass is a pure function over the snapshot it is given and returns its
results sorted by score, highest first.
"""

import math
from collections.abc import Sequence

from worldmon.analysis.config import DEFAULT_CONFIG, CorrelationConfig
from worldmon.analysis.geo import haversine_km
from worldmon.analysis.types import (
    CascadeCorrelation,
    Event,
    Significance,
    SpatialCorrelation,
    TemporalCorrelation,
    ThematicCorrelation,
)
from worldmon.utils import log_pass

SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def clamp_score(value: float) -> int:
    """Round to the nearest integer and clamp to [0, 100]."""
    return max(0, min(100, round_half_up(value)))


def hours_between(earlier: Event, later: Event) -> float:
    return (later.timestamp - earlier.timestamp).total_seconds() / SECONDS_PER_HOUR


def shared_keywords(a: Event, b: Event) -> list[str]:
    other = set(b.keywords)
    return [k for k in a.keywords if k in other]


def _temporal_significance(score: int, config: CorrelationConfig) -> Significance:
    if score > config.temporal_high_score:
        return "high"
    elif score > config.temporal_medium_score:
        return "medium"
    return "low"


def _spatial_significance(distance: float, config: CorrelationConfig) -> Significance:
    if distance < config.spatial_high_km:
        return "high"
    elif distance < config.spatial_medium_km:
        return "medium"
    return "low"


def _thematic_significance(count: int, config: CorrelationConfig) -> Significance:
    if count >= config.theme_high_events:
        return "high"
    elif count >= config.theme_min_events:
        return "medium"
    # Unreachable while theme_min_events is the emission threshold.
    return "low"


@log_pass
def find_temporal_correlations(
    events: Sequence[Event], config: CorrelationConfig = DEFAULT_CONFIG
) -> list[TemporalCorrelation]:
    """Pair events within the correlation window that share keywords."""
    window = config.correlation_window_hours
    results: list[TemporalCorrelation] = []

    for i, e1 in enumerate(events):
        for e2 in events[i + 1 :]:
            time_diff = abs(hours_between(e1, e2))
            if time_diff > window:
                continue

            shared = shared_keywords(e1, e2)
            if len(shared) < config.min_shared_keywords:
                continue

            score = clamp_score(
                (1 - time_diff / window) * 100 + len(shared) * config.keyword_bonus
            )
            results.append(
                TemporalCorrelation(
                    id=f"temp_{e1.id}_{e2.id}",
                    score=score,
                    events=[e1.id, e2.id],
                    description=(
                        f"{e1.title} and {e2.title} occurred within "
                        f"{round_half_up(time_diff)} hours, sharing: {', '.join(shared)}"
                    ),
                    significance=_temporal_significance(score, config),
                    hours_apart=time_diff,
                    shared_keywords=shared,
                )
            )

    results.sort(key=lambda r: r.score, reverse=True)
    return results


@log_pass
def find_spatial_correlations(
    events: Sequence[Event], config: CorrelationConfig = DEFAULT_CONFIG
) -> list[SpatialCorrelation]:
    """Pair geolocated events within the spatial threshold."""
    threshold = config.spatial_threshold_km
    located = [e for e in events if e.has_coordinates]
    results: list[SpatialCorrelation] = []

    for i, e1 in enumerate(located):
        for e2 in located[i + 1 :]:
            distance = haversine_km(e1.latitude, e1.longitude, e2.latitude, e2.longitude)
            if distance > threshold:
                continue

            results.append(
                SpatialCorrelation(
                    id=f"spat_{e1.id}_{e2.id}",
                    score=clamp_score((1 - distance / threshold) * 100),
                    events=[e1.id, e2.id],
                    description=(
                        f"{e1.title} and {e2.title} occurred within "
                        f"{round_half_up(distance)}km of each other"
                    ),
                    significance=_spatial_significance(distance, config),
                    distance_km=distance,
                )
            )

    results.sort(key=lambda r: r.score, reverse=True)
    return results


@log_pass
def find_thematic_correlations(
    events: Sequence[Event], config: CorrelationConfig = DEFAULT_CONFIG
) -> list[ThematicCorrelation]:
    """Emit one result per keyword referenced by enough distinct events."""
    # {keyword: {event_id: event}}
    keyword_events: dict[str, dict[str, Event]] = {}
    for event in events:
        for keyword in event.keywords:
            keyword_events.setdefault(keyword, {}).setdefault(event.id, event)

    results: list[ThematicCorrelation] = []
    for keyword, by_id in keyword_events.items():
        count = len(by_id)
        if count < config.theme_min_events:
            continue

        times = [e.timestamp for e in by_id.values()]
        span_days = (max(times) - min(times)).total_seconds() / SECONDS_PER_DAY

        results.append(
            ThematicCorrelation(
                id=f"theme_{keyword}",
                score=clamp_score(count * config.theme_event_weight),
                events=list(by_id),
                description=(
                    f'{count} events share "{keyword}" theme over '
                    f"{round_half_up(span_days)} days"
                ),
                significance=_thematic_significance(count, config),
                keyword=keyword,
                span_days=span_days,
            )
        )

    results.sort(key=lambda r: r.score, reverse=True)
    return results


@log_pass
def detect_cascades(
    events: Sequence[Event], config: CorrelationConfig = DEFAULT_CONFIG
) -> list[CascadeCorrelation]:
    """Find ordered pairs where the later event follows within the cascade gap."""
    ordered = sorted(events, key=lambda e: e.timestamp)
    max_gap = config.cascade_max_hours
    results: list[CascadeCorrelation] = []

    for i, e1 in enumerate(ordered):
        for e2 in ordered[i + 1 :]:
            hours_later = hours_between(e1, e2)
            if hours_later >= max_gap:
                break
            if hours_later <= config.cascade_min_hours:
                continue

            same_region = e1.region == e2.region
            shared = shared_keywords(e1, e2)
            if not same_region and len(shared) < config.min_shared_keywords:
                continue

            bonus = (
                config.cascade_region_bonus
                if same_region
                else len(shared) * config.keyword_bonus
            )
            results.append(
                CascadeCorrelation(
                    id=f"cascade_{e1.id}_{e2.id}",
                    score=clamp_score((1 - hours_later / max_gap) * 100 + bonus),
                    events=[e1.id, e2.id],
                    description=(
                        f"Possible cascade: {e1.title} → {e2.title} "
                        f"({round_half_up(hours_later)}h later)"
                        f"{' [same region]' if same_region else ''}"
                    ),
                    # No "low" tier: every emitted pair is inside the gap.
                    significance=(
                        "high" if hours_later < config.cascade_high_hours else "medium"
                    ),
                    hours_later=hours_later,
                    same_region=same_region,
                    shared_keywords=shared,
                )
            )

    results.sort(key=lambda r: r.score, reverse=True)
    return results

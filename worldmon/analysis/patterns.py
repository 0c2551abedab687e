"""
Recurring-interval patterns and geographic clusters.
"""

from collections.abc import Sequence
from datetime import datetime

from worldmon.analysis.config import DEFAULT_CONFIG, CorrelationConfig
from worldmon.analysis.correlation import (
    SECONDS_PER_HOUR,
    clamp_score,
    round_half_up,
)
from worldmon.analysis.geo import haversine_km
from worldmon.analysis.types import DateRange, Event, GeographicCluster, TemporalPattern
from worldmon.utils import log_pass


def pattern_signature(event: Event) -> str:
    """Grouping key: region plus the first two keywords, in order."""
    return f"{event.region}:{','.join(event.keywords[:2])}"


def _is_consistent(intervals: list[float], mean: float, tolerance: float) -> bool:
    return all(abs(interval - mean) / mean <= tolerance for interval in intervals)


@log_pass
def find_temporal_patterns(
    events: Sequence[Event], config: CorrelationConfig = DEFAULT_CONFIG
) -> list[TemporalPattern]:
    """Detect groups of similar events recurring at a steady interval."""
    groups: dict[str, list[datetime]] = {}
    for event in sorted(events, key=lambda e: e.timestamp):
        groups.setdefault(pattern_signature(event), []).append(event.timestamp)

    patterns: list[TemporalPattern] = []
    for signature, hits in groups.items():
        if len(hits) < config.pattern_min_events:
            continue

        intervals = [
            (later - earlier).total_seconds() / SECONDS_PER_HOUR
            for earlier, later in zip(hits, hits[1:])
        ]
        mean_interval = sum(intervals) / len(intervals)

        # Simultaneous events have no recurrence interval.
        if mean_interval <= 0:
            continue
        if not _is_consistent(intervals, mean_interval, config.pattern_tolerance):
            continue
        if mean_interval >= config.pattern_max_interval_hours:
            continue

        patterns.append(
            TemporalPattern(
                signature=signature,
                pattern=f"recurring every {round_half_up(mean_interval)} hours",
                frequency=mean_interval,
                confidence=clamp_score(len(hits) * config.pattern_event_weight),
                recent_hits=hits[-config.pattern_recent_hits :],
            )
        )

    patterns.sort(key=lambda p: p.confidence, reverse=True)
    return patterns


@log_pass
def find_geographic_clusters(
    events: Sequence[Event], config: CorrelationConfig = DEFAULT_CONFIG
) -> list[GeographicCluster]:
    """
    Greedy single-pass clustering around seed events.

    Each unused geolocated event seeds a cluster centred on its own
    coordinates and absorbs every other geolocated event within the cluster
    radius. Absorbed events are marked used; seeds are not, so a later seed
    may absorb an event that is already part of an earlier cluster.
    """
    located = [e for e in events if e.has_coordinates]
    used: set[str] = set()
    clusters: list[GeographicCluster] = []

    for seed in located:
        if seed.id in used:
            continue

        radius = config.cluster_min_radius_km
        categories = [seed.category]
        start = end = seed.timestamp
        members = [seed.id]

        for other in located:
            if other.id == seed.id:
                continue

            distance = haversine_km(
                seed.latitude, seed.longitude, other.latitude, other.longitude
            )
            if distance > config.cluster_radius_km:
                continue

            members.append(other.id)
            radius = max(radius, distance)
            if other.category not in categories:
                categories.append(other.category)
            start = min(start, other.timestamp)
            end = max(end, other.timestamp)
            used.add(other.id)

        if len(members) >= config.cluster_min_events:
            clusters.append(
                GeographicCluster(
                    center_lat=seed.latitude,
                    center_lon=seed.longitude,
                    radius_km=radius,
                    event_count=len(members),
                    categories=categories,
                    date_range=DateRange(start=start, end=end),
                    events=members,
                )
            )

    clusters.sort(key=lambda c: c.event_count, reverse=True)
    return clusters

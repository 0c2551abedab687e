"""
Analysis configuration - correlation windows, distance thresholds and tolerances.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class CorrelationConfig:
    """Thresholds shared by all correlation passes."""

    # Temporal
    correlation_window_hours: float = 72.0
    min_shared_keywords: int = 2
    keyword_bonus: int = 10
    temporal_high_score: int = 70
    temporal_medium_score: int = 50

    # Spatial
    spatial_threshold_km: float = 500.0
    spatial_high_km: float = 100.0
    spatial_medium_km: float = 250.0

    # Thematic
    theme_min_events: int = 3
    theme_high_events: int = 5
    theme_event_weight: int = 15

    # Cascade
    cascade_min_hours: float = 6.0
    cascade_max_hours: float = 48.0
    cascade_high_hours: float = 12.0
    cascade_region_bonus: int = 20

    # Patterns
    pattern_min_events: int = 3
    pattern_tolerance: float = 0.2
    pattern_max_interval_hours: float = 168.0
    pattern_event_weight: int = 20
    pattern_recent_hits: int = 5

    # Clusters
    cluster_radius_km: float = 100.0
    cluster_min_radius_km: float = 50.0
    cluster_min_events: int = 2

    # Signals
    max_signals: int = 5


DEFAULT_CONFIG = CorrelationConfig()

EARTH_RADIUS_KM = 6371.0

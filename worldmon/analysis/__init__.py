"""
Correlation analysis engine for discovering relationships between events.
"""

from worldmon.analysis.types import (
    AnyCorrelation,
    CascadeCorrelation,
    CorrelationBundle,
    CorrelationResult,
    CorrelationSummary,
    DateRange,
    Event,
    GeographicCluster,
    SpatialCorrelation,
    TemporalCorrelation,
    TemporalPattern,
    ThematicCorrelation,
    ThreatSignal,
)
from worldmon.analysis.config import DEFAULT_CONFIG, CorrelationConfig
from worldmon.analysis.correlation import (
    detect_cascades,
    find_spatial_correlations,
    find_temporal_correlations,
    find_thematic_correlations,
)
from worldmon.analysis.patterns import find_geographic_clusters, find_temporal_patterns
from worldmon.analysis.engine import CorrelationEngine, run_correlation_engine, select_events
from worldmon.analysis.signals import correlations_to_signals

__all__ = [
    # Types
    "AnyCorrelation",
    "CascadeCorrelation",
    "CorrelationBundle",
    "CorrelationResult",
    "CorrelationSummary",
    "DateRange",
    "Event",
    "GeographicCluster",
    "SpatialCorrelation",
    "TemporalCorrelation",
    "TemporalPattern",
    "ThematicCorrelation",
    "ThreatSignal",
    # Config
    "CorrelationConfig",
    "DEFAULT_CONFIG",
    # Passes
    "find_temporal_correlations",
    "find_spatial_correlations",
    "find_thematic_correlations",
    "detect_cascades",
    "find_temporal_patterns",
    "find_geographic_clusters",
    # Engine
    "CorrelationEngine",
    "run_correlation_engine",
    "select_events",
    "correlations_to_signals",
]

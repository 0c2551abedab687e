"""
Correlation engine - runs every analysis pass over one event snapshot.
"""

import asyncio
from collections.abc import Iterable
from datetime import datetime

from loguru import logger

from worldmon.analysis.config import DEFAULT_CONFIG, CorrelationConfig
from worldmon.analysis.correlation import (
    detect_cascades,
    find_spatial_correlations,
    find_temporal_correlations,
    find_thematic_correlations,
)
from worldmon.analysis.patterns import find_geographic_clusters, find_temporal_patterns
from worldmon.analysis.types import CorrelationBundle, CorrelationSummary, Event

# bundle field -> pass
PASSES = {
    "temporal": find_temporal_correlations,
    "spatial": find_spatial_correlations,
    "thematic": find_thematic_correlations,
    "cascades": detect_cascades,
    "patterns": find_temporal_patterns,
    "clusters": find_geographic_clusters,
}


def select_events(
    events: Iterable[Event],
    since: datetime | None = None,
    until: datetime | None = None,
    regions: Iterable[str] | None = None,
) -> list[Event]:
    """
    Bound a snapshot before analysis.

    Keeps events with since <= timestamp <= until and, when given, a region
    in ``regions`` (case-insensitive). Input order is preserved.
    """
    wanted = {r.lower() for r in regions} if regions is not None else None
    selected = []
    for event in events:
        if since is not None and event.timestamp < since:
            continue
        if until is not None and event.timestamp > until:
            continue
        if wanted is not None and event.region.lower() not in wanted:
            continue
        selected.append(event)
    return selected


class CorrelationEngine:
    """
    Runs the temporal, spatial, thematic, cascade, pattern and cluster
    passes over the same snapshot and bundles their results.

    The passes never read each other's output and results are not
    de-duplicated across passes: a pair of events may show up as both a
    temporal and a spatial correlation.
    """

    def __init__(self, config: CorrelationConfig | None = None):
        self.config = config or DEFAULT_CONFIG

    def analyze(self, events: Iterable[Event]) -> CorrelationBundle:
        """Run all passes sequentially."""
        snapshot = tuple(events)
        results = {name: run(snapshot, self.config) for name, run in PASSES.items()}
        bundle = CorrelationBundle(**results)
        self._log_bundle(snapshot, bundle)
        return bundle

    async def analyze_concurrently(self, events: Iterable[Event]) -> CorrelationBundle:
        """Run all passes on worker threads; same result as analyze()."""
        snapshot = tuple(events)
        outputs = await asyncio.gather(
            *(
                asyncio.to_thread(run, snapshot, self.config)
                for run in PASSES.values()
            )
        )
        bundle = CorrelationBundle(**dict(zip(PASSES, outputs)))
        self._log_bundle(snapshot, bundle)
        return bundle

    def get_summary(self, bundle: CorrelationBundle | None) -> CorrelationSummary:
        if bundle is None:
            return CorrelationSummary(total_results=0, status="NO DATA")
        return bundle.summary()

    @staticmethod
    def _log_bundle(snapshot: tuple[Event, ...], bundle: CorrelationBundle) -> None:
        logger.info(
            f"Correlation: {len(snapshot)} events -> "
            f"{len(bundle.temporal)} temporal, "
            f"{len(bundle.spatial)} spatial, "
            f"{len(bundle.thematic)} thematic, "
            f"{len(bundle.cascades)} cascades, "
            f"{len(bundle.patterns)} patterns, "
            f"{len(bundle.clusters)} clusters"
        )


def run_correlation_engine(
    events: Iterable[Event], config: CorrelationConfig | None = None
) -> CorrelationBundle:
    """Convenience wrapper around CorrelationEngine.analyze()."""
    return CorrelationEngine(config).analyze(events)

"""
Correlation reports over a fixed lookback period.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum

from loguru import logger
from pydantic import BaseModel, Field

from worldmon.analysis import (
    CorrelationBundle,
    CorrelationEngine,
    CorrelationSummary,
    Event,
    GeographicCluster,
    TemporalPattern,
    ThreatSignal,
    correlations_to_signals,
    select_events,
)
from worldmon.services.errors import ReportPeriodError


class ReportPeriod(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"


PERIOD_HOURS: dict[ReportPeriod, int] = {
    ReportPeriod.DAILY: 24,
    ReportPeriod.WEEKLY: 168,
}


class CorrelationHighlight(BaseModel):
    type: str
    score: int
    significance: str
    description: str


class CorrelationReport(BaseModel):
    """Generated report output."""

    period: ReportPeriod
    title: str
    start: datetime
    end: datetime
    event_count: int
    summary: CorrelationSummary
    highlights: list[CorrelationHighlight] = Field(default_factory=list)
    clusters: list[GeographicCluster] = Field(default_factory=list)
    patterns: list[TemporalPattern] = Field(default_factory=list)
    signals: list[ThreatSignal] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ReportBuilder:
    """Runs the engine over a report window and condenses the output."""

    def __init__(self, engine: CorrelationEngine | None = None, max_highlights: int = 10):
        self.engine = engine or CorrelationEngine()
        self.max_highlights = max_highlights

    @staticmethod
    def parse_period(period: str) -> ReportPeriod:
        try:
            return ReportPeriod(period.lower())
        except ValueError as e:
            raise ReportPeriodError(period) from e

    async def build(
        self,
        period: str,
        events: list[Event],
        now: datetime | None = None,
    ) -> CorrelationReport:
        report_period = self.parse_period(period)
        end = now or datetime.now(timezone.utc)
        start = end - timedelta(hours=PERIOD_HOURS[report_period])

        window = select_events(events, since=start, until=end)
        bundle = await self.engine.analyze_concurrently(window)
        report = self._from_bundle(report_period, start, end, len(window), bundle)

        logger.info(
            f"Built {report_period.value} report: {len(window)} events, "
            f"{len(report.highlights)} highlights, {len(report.signals)} signals"
        )
        return report

    def _from_bundle(
        self,
        period: ReportPeriod,
        start: datetime,
        end: datetime,
        event_count: int,
        bundle: CorrelationBundle,
    ) -> CorrelationReport:
        highlights = [
            CorrelationHighlight(
                type=result.type,
                score=result.score,
                significance=result.significance,
                description=result.description,
            )
            for result in bundle.correlations()[: self.max_highlights]
        ]
        return CorrelationReport(
            period=period,
            title=f"{period.value.title()} Correlation Report",
            start=start,
            end=end,
            event_count=event_count,
            summary=bundle.summary(),
            highlights=highlights,
            clusters=bundle.clusters,
            patterns=bundle.patterns,
            signals=correlations_to_signals(bundle, self.engine.config),
        )

"""Endpoint data providers backed by a CorrelationMonitor."""

from typing import Any

from worldmon.api.server import APIHandlers
from worldmon.services.monitor import CorrelationMonitor
from worldmon.services.reports import CorrelationReport, ReportBuilder


def monitor_handlers(
    monitor: CorrelationMonitor, reports: ReportBuilder | None = None
) -> APIHandlers:
    """Wire the API endpoints to a monitor's snapshot and latest run."""
    reports = reports or ReportBuilder(monitor.engine)

    async def get_stories() -> list[Any]:
        # newest first
        return sorted(await monitor.events(), key=lambda e: e.timestamp, reverse=True)

    async def get_signals() -> list[Any]:
        return monitor.latest_signals

    async def get_report(period: str) -> CorrelationReport:
        return await reports.build(period, await monitor.events())

    async def get_health() -> dict[str, Any]:
        return monitor.get_health()

    async def get_correlations() -> dict[str, Any] | None:
        bundle = monitor.latest_bundle
        if bundle is None:
            return None
        return {
            "summary": bundle.summary(),
            "results": bundle,
            "generated_at": monitor.last_run_at,
        }

    return APIHandlers(
        get_stories=get_stories,
        get_signals=get_signals,
        get_report=get_report,
        get_health=get_health,
        get_correlations=get_correlations,
    )

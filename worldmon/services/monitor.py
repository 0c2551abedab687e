"""
CorrelationMonitor - runs the engine on demand and keeps the latest output
for the HTTP layer and webhook subscribers.
"""

import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from loguru import logger

from worldmon.analysis import (
    CorrelationBundle,
    CorrelationEngine,
    Event,
    ThreatSignal,
    correlations_to_signals,
    select_events,
)
from worldmon.services.webhooks import WebhookService

CORRELATION_COMPLETED = "correlation.completed"
SIGNALS_CREATED = "signals.created"


class CorrelationMonitor:
    """
    Wraps the correlation engine for periodic use.

    Every run reloads the snapshot from ``events_provider`` on a worker
    thread and recomputes from scratch. The loaded snapshot and the latest
    output are kept for readers between runs.
    """

    def __init__(
        self,
        events_provider: Callable[[], list[Event]],
        engine: CorrelationEngine | None = None,
        webhooks: WebhookService | None = None,
        lookback_hours: int | None = None,
        max_events: int | None = None,
    ):
        self._events_provider = events_provider
        self.engine = engine or CorrelationEngine()
        self.webhooks = webhooks
        self.lookback_hours = lookback_hours
        self.max_events = max_events

        self._events: list[Event] | None = None
        self._latest_bundle: CorrelationBundle | None = None
        self._latest_signals: list[ThreatSignal] = []
        self._last_run_at: datetime | None = None
        self._run_count = 0

    @property
    def latest_bundle(self) -> CorrelationBundle | None:
        return self._latest_bundle

    @property
    def latest_signals(self) -> list[ThreatSignal]:
        return list(self._latest_signals)

    @property
    def last_run_at(self) -> datetime | None:
        return self._last_run_at

    async def load_events(self) -> list[Event]:
        """Reload the snapshot off the event loop and cache it."""
        events = await asyncio.to_thread(self._events_provider)
        self._events = list(events)
        return list(self._events)

    async def events(self) -> list[Event]:
        """Cached snapshot, loaded on first use."""
        if self._events is None:
            return await self.load_events()
        return list(self._events)

    def select(self, events: list[Event], now: datetime) -> list[Event]:
        if not self.lookback_hours:
            return events
        return select_events(events, since=now - timedelta(hours=self.lookback_hours))

    async def run_once(self, now: datetime | None = None) -> CorrelationBundle:
        """Run every pass over the current snapshot and publish the results."""
        now = now or datetime.now(timezone.utc)
        events = await self.load_events()
        window = self.select(events, now)

        if events and not window:
            logger.warning(
                f"All {len(events)} snapshot events are older than the "
                f"{self.lookback_hours}h lookback; nothing to correlate"
            )

        if self.max_events and len(window) > self.max_events:
            logger.warning(
                f"Correlating {len(window)} events (limit {self.max_events}); "
                f"pairwise passes are quadratic, consider a shorter lookback"
            )

        bundle = await self.engine.analyze_concurrently(window)
        signals = correlations_to_signals(bundle, self.engine.config)

        self._latest_bundle = bundle
        self._latest_signals = signals
        self._last_run_at = now
        self._run_count += 1

        logger.info(
            f"Correlation run #{self._run_count}: {bundle.total_results} results, "
            f"{len(signals)} signals"
        )
        await self._publish(bundle, signals)
        return bundle

    async def _publish(
        self, bundle: CorrelationBundle, signals: list[ThreatSignal]
    ) -> None:
        if self.webhooks is None:
            return

        await self.webhooks.trigger(CORRELATION_COMPLETED, bundle.summary().to_dict())
        if signals:
            await self.webhooks.trigger(
                SIGNALS_CREATED, [s.model_dump(mode="json") for s in signals]
            )

    def get_health(self) -> dict[str, Any]:
        return {
            "status": "ok",
            "runs": self._run_count,
            "last_run_at": self._last_run_at.isoformat() if self._last_run_at else None,
            "latest_results": self._latest_bundle.total_results
            if self._latest_bundle
            else 0,
            "latest_signals": len(self._latest_signals),
        }

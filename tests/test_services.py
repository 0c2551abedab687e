"""
Tests for the rate limiter, webhooks, exports, reports, snapshots, monitor
and scheduler.
"""

import asyncio
import csv
import io
import json
import time
from datetime import timedelta

import httpx
import pytest

from worldmon.analysis import ThreatSignal, find_geographic_clusters
from worldmon.analysis.engine import PASSES
from worldmon.api import monitor_handlers
from worldmon.services import (
    CorrelationMonitor,
    CorrelationScheduler,
    DataExportService,
    RateLimiter,
    ReportBuilder,
    ReportPeriodError,
    SnapshotLoadError,
    WebhookConfig,
    WebhookService,
    load_snapshot,
    verify_signature,
)
from worldmon.services.monitor import CORRELATION_COMPLETED, SIGNALS_CREATED
from worldmon.services.webhooks import SIGNATURE_HEADER


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class RecordingTransport:
    """httpx mock transport that records requests and fails chosen hosts."""

    def __init__(self, failing_hosts=(), unreachable_hosts=()):
        self.requests: list[httpx.Request] = []
        self.failing_hosts = set(failing_hosts)
        self.unreachable_hosts = set(unreachable_hosts)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host in self.unreachable_hosts:
            raise httpx.ConnectError("connection refused", request=request)
        if request.url.host in self.failing_hosts:
            return httpx.Response(500)
        return httpx.Response(200, json={"ok": True})


@pytest.fixture
def transport():
    return RecordingTransport(
        failing_hosts={"broken.example"}, unreachable_hosts={"down.example"}
    )


@pytest.fixture
async def webhooks(transport):
    service = WebhookService(
        client=httpx.AsyncClient(transport=httpx.MockTransport(transport))
    )
    yield service
    await service.close()


@pytest.fixture
def snapshot(make_event):
    return [
        make_event("e1", 0, lat=10.0, lon=10.0, region="R", keywords=("a", "b")),
        make_event("e2", 2, lat=10.1, lon=10.0, region="R", keywords=("a", "b")),
        make_event("e3", 9, lat=10.0, lon=10.1, region="R", keywords=("a", "b")),
        make_event("old", -500, region="R", keywords=("a", "b")),
    ]


class TestRateLimiter:
    def test_allows_up_to_limit(self):
        limiter = RateLimiter(limit=2, clock=FakeClock())

        assert limiter.hit("1.2.3.4").allowed
        assert limiter.hit("1.2.3.4").allowed
        assert not limiter.hit("1.2.3.4").allowed

    def test_clients_are_independent(self):
        limiter = RateLimiter(limit=1, clock=FakeClock())

        assert limiter.hit("a").allowed
        assert limiter.hit("b").allowed
        assert not limiter.hit("a").allowed

    def test_window_resets(self):
        clock = FakeClock()
        limiter = RateLimiter(limit=1, window_seconds=60, clock=clock)

        limiter.hit("a")
        assert not limiter.hit("a").allowed
        clock.now += 61
        decision = limiter.hit("a")
        assert decision.allowed
        assert decision.remaining == 0

    def test_prune_drops_expired_windows(self):
        clock = FakeClock()
        limiter = RateLimiter(limit=5, clock=clock)
        limiter.hit("a")
        limiter.hit("b")

        clock.now += 120
        assert limiter.prune() == 2
        assert limiter.tracked_clients == 0

    def test_expired_clients_evicted_by_traffic(self):
        clock = FakeClock()
        limiter = RateLimiter(limit=5, window_seconds=60, clock=clock)

        for i in range(1000):
            clock.now += 61
            limiter.hit(f"10.0.{i // 256}.{i % 256}")

        assert limiter.tracked_clients == 1

    def test_active_clients_survive_sweep(self):
        clock = FakeClock()
        limiter = RateLimiter(limit=5, window_seconds=60, clock=clock)
        limiter.hit("idle")
        clock.now += 40
        limiter.hit("active")
        clock.now += 30
        limiter.hit("active")

        assert limiter.tracked_clients == 1
        assert limiter.hit("active").remaining == 2


class TestWebhookService:
    async def test_register_rejects_invalid_url(self, webhooks):
        assert not webhooks.register_webhook("bad", WebhookConfig(url="not a url"))
        assert not webhooks.register_webhook("ftp", WebhookConfig(url="ftp://x.example"))
        assert webhooks.list_webhooks() == []

    async def test_register_list_remove(self, webhooks):
        config = WebhookConfig(url="https://hooks.example/in", events=["signals.created"])
        assert webhooks.register_webhook("w1", config)
        assert webhooks.list_webhooks() == [{"id": "w1", "events": ["signals.created"]}]

        assert webhooks.remove_webhook("w1")
        assert not webhooks.remove_webhook("w1")

    async def test_trigger_signs_payload(self, webhooks, transport):
        webhooks.register_webhook(
            "w1",
            WebhookConfig(url="https://hooks.example/in", events=["ping"], secret="s3cret"),
        )
        outcome = await webhooks.trigger("ping", {"value": 1})

        assert outcome == {"w1": True}
        request = transport.requests[0]
        body = request.content
        assert verify_signature("s3cret", body, request.headers[SIGNATURE_HEADER])
        assert not verify_signature("other", body, request.headers[SIGNATURE_HEADER])
        payload = json.loads(body)
        assert payload["event"] == "ping"
        assert payload["data"] == {"value": 1}
        assert "timestamp" in payload

    async def test_only_subscribers_receive(self, webhooks, transport):
        webhooks.register_webhook(
            "w1", WebhookConfig(url="https://hooks.example/a", events=["ping"])
        )
        webhooks.register_webhook(
            "w2", WebhookConfig(url="https://hooks.example/b", events=["other"])
        )
        outcome = await webhooks.trigger("ping", {})

        assert outcome == {"w1": True}
        assert [r.url.path for r in transport.requests] == ["/a"]

    async def test_failures_are_isolated(self, webhooks, transport):
        for webhook_id, host in [
            ("broken", "broken.example"),
            ("down", "down.example"),
            ("ok", "hooks.example"),
        ]:
            webhooks.register_webhook(
                webhook_id, WebhookConfig(url=f"https://{host}/in", events=["ping"])
            )

        outcome = await webhooks.trigger("ping", {})

        assert outcome == {"broken": False, "down": False, "ok": True}
        assert len(transport.requests) == 3

    async def test_no_subscribers(self, webhooks, transport):
        assert await webhooks.trigger("ping", {}) == {}
        assert transport.requests == []


class TestDataExport:
    def test_stories_json(self, snapshot):
        exported = json.loads(DataExportService.export_stories(snapshot))

        assert exported["count"] == 4
        assert exported["stories"][0]["id"] == "e1"
        assert "exportDate" in exported

    def test_stories_csv_always_quotes_title_and_source(self, make_event):
        story = make_event("e1", title="Plain", source="wire")
        exported = DataExportService.export_stories_csv([story])

        assert exported.splitlines() == [
            "id,title,region,category,date,source",
            'e1,"Plain",X,military,2026-01-01T00:00:00Z,"wire"',
        ]

    def test_stories_csv_escapes_quotes(self, make_event):
        story = make_event("e1", title='Talks "stall", again', source="A, B")
        exported = DataExportService.export_stories_csv([story])

        rows = list(csv.reader(io.StringIO(exported)))
        assert rows[1][1] == 'Talks "stall", again'
        assert rows[1][5] == "A, B"
        assert exported.splitlines()[1].startswith('e1,"Talks ""stall"", again",')

    def test_csv_accepts_dicts(self):
        exported = DataExportService.export_stories_csv(
            [{"id": "s1", "title": "T", "date": "2026-01-01"}]
        )
        assert exported.splitlines()[1] == 's1,"T",,,2026-01-01,""'

    def test_signals_json(self):
        signal = ThreatSignal(
            type="correlation_spatial",
            title="SPATIAL Correlation Detected",
            description="d",
            severity="medium",
            score=90,
            events=["a", "b"],
        )
        exported = json.loads(DataExportService.export_signals([signal]))

        assert exported["count"] == 1
        assert exported["signals"][0]["type"] == "correlation_spatial"

    async def test_report_markdown(self, snapshot, t0):
        report = await ReportBuilder().build(
            "daily", snapshot, now=t0 + timedelta(hours=12)
        )
        markdown = DataExportService.export_report(report)

        assert markdown.startswith("# Daily Correlation Report")
        assert "## Summary" in markdown
        assert "## Top Correlations" in markdown
        assert "## Geographic Clusters" in markdown


class TestReports:
    async def test_daily_window(self, snapshot, t0):
        report = await ReportBuilder().build(
            "daily", snapshot, now=t0 + timedelta(hours=12)
        )

        assert report.period.value == "daily"
        assert report.event_count == 3
        assert report.end - report.start == timedelta(hours=24)
        assert report.highlights
        assert len(report.signals) <= 5

    async def test_weekly_is_case_insensitive(self, snapshot, t0):
        report = await ReportBuilder().build("WEEKLY", snapshot, now=t0)
        assert report.title == "Weekly Correlation Report"

    async def test_unknown_period(self, snapshot):
        with pytest.raises(ReportPeriodError):
            await ReportBuilder().build("monthly", snapshot)

    async def test_event_loop_keeps_running_during_build(
        self, snapshot, t0, monkeypatch
    ):
        def slow_clusters(events, config):
            time.sleep(0.3)
            return find_geographic_clusters(events, config)

        monkeypatch.setitem(PASSES, "clusters", slow_clusters)
        monitor = CorrelationMonitor(lambda: snapshot)
        handlers = monitor_handlers(monitor)
        ticks = 0

        async def ticker():
            nonlocal ticks
            while True:
                await asyncio.sleep(0.01)
                ticks += 1

        task = asyncio.create_task(ticker())
        try:
            report = await handlers.get_report("weekly")
        finally:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

        assert report.period.value == "weekly"
        assert ticks >= 5


class TestSnapshot:
    def test_load_list_and_object(self, tmp_path):
        event = {
            "id": "e1",
            "title": "t",
            "date": "2026-01-01T00:00:00Z",
            "region": "R",
            "category": "c",
            "keywords": ["a"],
        }
        as_list = tmp_path / "list.json"
        as_list.write_text(json.dumps([event]))
        as_object = tmp_path / "object.json"
        as_object.write_text(json.dumps({"events": [event]}))

        assert [e.id for e in load_snapshot(as_list)] == ["e1"]
        assert [e.id for e in load_snapshot(as_object)] == ["e1"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(SnapshotLoadError):
            load_snapshot(tmp_path / "missing.json")

    def test_invalid_coordinates(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(
            json.dumps(
                [
                    {
                        "id": "e1",
                        "title": "t",
                        "date": "2026-01-01T00:00:00Z",
                        "lat": 120,
                        "lon": 0,
                        "region": "R",
                        "category": "c",
                    }
                ]
            )
        )
        with pytest.raises(SnapshotLoadError):
            load_snapshot(path)


class TestCorrelationMonitor:
    async def test_run_once_keeps_latest(self, snapshot, t0):
        monitor = CorrelationMonitor(lambda: snapshot, lookback_hours=24)
        bundle = await monitor.run_once(now=t0 + timedelta(hours=12))

        assert monitor.latest_bundle is bundle
        assert monitor.last_run_at == t0 + timedelta(hours=12)
        assert all("old" not in r.events for r in bundle.temporal)
        assert monitor.latest_signals
        assert monitor.get_health()["runs"] == 1

    async def test_publishes_webhooks(self, snapshot, t0, webhooks, transport):
        webhooks.register_webhook(
            "all",
            WebhookConfig(
                url="https://hooks.example/in",
                events=[CORRELATION_COMPLETED, SIGNALS_CREATED],
            ),
        )
        monitor = CorrelationMonitor(lambda: snapshot, webhooks=webhooks)
        await monitor.run_once(now=t0)

        events = [json.loads(r.content)["event"] for r in transport.requests]
        assert events == [CORRELATION_COMPLETED, SIGNALS_CREATED]

    def test_health_before_first_run(self, snapshot):
        health = CorrelationMonitor(lambda: snapshot).get_health()

        assert health["runs"] == 0
        assert health["last_run_at"] is None

    async def test_snapshot_is_cached_between_runs(self, snapshot, t0):
        loads = 0

        def provider():
            nonlocal loads
            loads += 1
            return snapshot

        monitor = CorrelationMonitor(provider)
        await monitor.events()
        await monitor.events()
        assert loads == 1

        await monitor.run_once(now=t0)
        assert loads == 2
        assert [e.id for e in await monitor.events()] == ["e1", "e2", "e3", "old"]
        assert loads == 2

    async def test_stale_snapshot_and_disabled_lookback(self, snapshot, t0):
        later = t0 + timedelta(days=30)

        stale = await CorrelationMonitor(lambda: snapshot, lookback_hours=168).run_once(
            now=later
        )
        assert stale.total_results == 0

        unbounded = await CorrelationMonitor(lambda: snapshot, lookback_hours=0).run_once(
            now=later
        )
        assert unbounded.temporal


class TestCorrelationScheduler:
    async def test_start_and_stop(self):
        monitor = CorrelationMonitor(lambda: [])
        scheduler = CorrelationScheduler(monitor, interval_minutes=5)

        scheduler.start()
        try:
            assert scheduler.is_running()
            assert scheduler.scheduler.get_job(CorrelationScheduler.JOB_ID) is not None
        finally:
            scheduler.stop()
        assert not scheduler.is_running()

    async def test_job_runs_monitor(self):
        monitor = CorrelationMonitor(lambda: [])
        await CorrelationScheduler(monitor, interval_minutes=5).correlation_job()

        assert monitor.get_health()["runs"] == 1

    async def test_job_survives_provider_errors(self):
        def broken_provider():
            raise RuntimeError("snapshot unavailable")

        monitor = CorrelationMonitor(broken_provider)
        await CorrelationScheduler(monitor, interval_minutes=5).correlation_job()

        assert monitor.get_health()["runs"] == 0

"""
Service layer around the correlation engine.

Provides:
- RateLimiter: Per-client request limiting for the HTTP API
- WebhookService: Signed webhook delivery to subscribers
- DataExportService: JSON/CSV/Markdown exports
- ReportBuilder: Daily/weekly correlation reports
- CorrelationMonitor: Latest-run holder for the API and webhooks
- CorrelationScheduler: Periodic correlation runs
"""

from worldmon.services.errors import (
    ServiceError,
    ReportPeriodError,
    SnapshotLoadError,
    WebhookDeliveryError,
)
from worldmon.services.rate_limiter import RateDecision, RateLimiter
from worldmon.services.webhooks import (
    WebhookConfig,
    WebhookService,
    generate_signature,
    verify_signature,
)
from worldmon.services.reports import CorrelationReport, ReportBuilder, ReportPeriod
from worldmon.services.export import DataExportService
from worldmon.services.snapshot import load_snapshot, parse_events
from worldmon.services.monitor import CorrelationMonitor
from worldmon.services.scheduler import CorrelationScheduler

__all__ = [
    # Errors
    "ServiceError",
    "ReportPeriodError",
    "SnapshotLoadError",
    "WebhookDeliveryError",
    # Rate limiting
    "RateDecision",
    "RateLimiter",
    # Webhooks
    "WebhookConfig",
    "WebhookService",
    "generate_signature",
    "verify_signature",
    # Reports / export
    "CorrelationReport",
    "ReportBuilder",
    "ReportPeriod",
    "DataExportService",
    # Snapshot
    "load_snapshot",
    "parse_events",
    # Monitor
    "CorrelationMonitor",
    "CorrelationScheduler",
]

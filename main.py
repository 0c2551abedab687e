"""
World Monitor entry point.
Loads the event snapshot, runs the correlation scheduler and serves the API.
"""

import asyncio

import uvicorn
from loguru import logger

from worldmon.analysis import CorrelationEngine
from worldmon.api import create_app, monitor_handlers
from worldmon.services import (
    CorrelationMonitor,
    CorrelationScheduler,
    WebhookConfig,
    WebhookService,
    load_snapshot,
)
from worldmon.services.monitor import CORRELATION_COMPLETED, SIGNALS_CREATED
from worldmon.settings import load_settings
from worldmon.utils import configure_logging


async def main() -> None:
    """Main function"""
    settings = load_settings()
    configure_logging(settings.log_level)
    logger.info("Starting World Monitor...")

    webhooks = WebhookService(timeout=settings.webhook_timeout)
    if settings.webhook_url:
        webhooks.register_webhook(
            "default",
            WebhookConfig(
                url=settings.webhook_url,
                events=[SIGNALS_CREATED, CORRELATION_COMPLETED],
                secret=settings.webhook_secret,
            ),
        )

    monitor = CorrelationMonitor(
        events_provider=lambda: load_snapshot(settings.snapshot_path),
        engine=CorrelationEngine(),
        webhooks=webhooks,
        lookback_hours=settings.correlation_lookback_hours,
        max_events=settings.correlation_max_events,
    )
    scheduler = CorrelationScheduler(monitor, settings.correlation_interval_minutes)

    app = create_app(settings, monitor_handlers(monitor))
    server = uvicorn.Server(
        uvicorn.Config(app, host=settings.api_host, port=settings.api_port)
    )

    try:
        logger.info("Performing initial correlation run...")
        await scheduler.correlation_job()

        scheduler.start()

        logger.info(f"API listening on {settings.api_host}:{settings.api_port}")
        await server.serve()

    except KeyboardInterrupt:
        logger.info("Received interrupt signal, shutting down...")
    finally:
        if scheduler.is_running():
            scheduler.stop()
        await webhooks.close()
        logger.info("World Monitor stopped")


if __name__ == "__main__":
    asyncio.run(main())

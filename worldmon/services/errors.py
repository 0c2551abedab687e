"""
Service layer exceptions.
"""


class ServiceError(Exception):
    """Base exception for service layer errors."""

    def __init__(self, message: str, service_id: str | None = None):
        self.service_id = service_id
        super().__init__(message)


class SnapshotLoadError(ServiceError):
    """Event snapshot could not be read or parsed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(
            f"Failed to load event snapshot '{path}': {reason}", service_id="snapshot"
        )


class WebhookDeliveryError(ServiceError):
    """A webhook POST failed."""

    def __init__(self, webhook_id: str, url: str, reason: str):
        self.webhook_id = webhook_id
        self.url = url
        super().__init__(
            f"Webhook '{webhook_id}' delivery to {url} failed: {reason}",
            service_id=webhook_id,
        )


class ReportPeriodError(ServiceError):
    """Unsupported report period."""

    def __init__(self, period: str):
        self.period = period
        super().__init__(f"Unknown report period '{period}'", service_id="reports")

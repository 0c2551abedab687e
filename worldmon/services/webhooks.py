"""
WebhookService - delivers named events to subscribed URLs.

Payloads are signed with HMAC-SHA256 over the exact request body; the hex
digest travels in the ``X-Webhook-Signature`` header. Delivery is
fire-and-log: a failing subscriber never blocks or fails the others.
"""

import asyncio
import hashlib
import hmac
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import httpx
from loguru import logger

from worldmon.services.errors import WebhookDeliveryError

SIGNATURE_HEADER = "X-Webhook-Signature"


@dataclass
class WebhookConfig:
    """A registered subscriber."""

    url: str
    events: list[str] = field(default_factory=list)
    secret: str = ""


def generate_signature(secret: str, body: bytes) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def verify_signature(secret: str, body: bytes, signature: str) -> bool:
    """Check a received body against its ``X-Webhook-Signature`` value."""
    return hmac.compare_digest(generate_signature(secret, body), signature)


def _is_valid_url(url: str) -> bool:
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError):
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.host)


class WebhookService:
    """Registry of webhook subscribers plus delivery."""

    def __init__(
        self,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self._webhooks: dict[str, WebhookConfig] = {}
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def register_webhook(self, webhook_id: str, config: WebhookConfig) -> bool:
        """Register (or replace) a subscriber. Returns False for a bad URL."""
        if not _is_valid_url(config.url):
            logger.warning(f"Rejected webhook '{webhook_id}': invalid URL {config.url!r}")
            return False
        self._webhooks[webhook_id] = config
        logger.debug(f"Registered webhook '{webhook_id}' for {config.events}")
        return True

    def remove_webhook(self, webhook_id: str) -> bool:
        return self._webhooks.pop(webhook_id, None) is not None

    def list_webhooks(self) -> list[dict[str, Any]]:
        return [
            {"id": webhook_id, "events": list(config.events)}
            for webhook_id, config in self._webhooks.items()
        ]

    async def trigger(self, event: str, data: Any) -> dict[str, bool]:
        """
        Deliver ``event`` to every subscriber of it.

        Returns:
            {webhook_id: delivered} for each matching subscriber
        """
        targets = [
            (webhook_id, config)
            for webhook_id, config in self._webhooks.items()
            if event in config.events
        ]
        if not targets:
            return {}

        body = json.dumps(
            {
                "event": event,
                "data": data,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
            default=str,
        ).encode()

        outcomes = await asyncio.gather(
            *(self._deliver(webhook_id, config, body) for webhook_id, config in targets)
        )
        return {webhook_id: ok for (webhook_id, _), ok in zip(targets, outcomes)}

    async def _deliver(self, webhook_id: str, config: WebhookConfig, body: bytes) -> bool:
        try:
            await self._send(webhook_id, config, body)
            return True
        except WebhookDeliveryError as e:
            logger.error(str(e))
            return False

    async def _send(self, webhook_id: str, config: WebhookConfig, body: bytes) -> None:
        headers = {
            "Content-Type": "application/json",
            SIGNATURE_HEADER: generate_signature(config.secret, body),
        }
        try:
            response = await self._client.post(config.url, content=body, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise WebhookDeliveryError(
                webhook_id, config.url, f"HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise WebhookDeliveryError(webhook_id, config.url, str(e) or type(e).__name__) from e

        logger.debug(f"Webhook '{webhook_id}' delivered to {config.url}")

    async def close(self) -> None:
        """Close HTTP client."""
        await self._client.aclose()

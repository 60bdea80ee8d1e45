from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from abex_transport.models.schemas import LeadPayload

logger = logging.getLogger("abex_transport.forwarder")

GENERIC_FAILURE_MESSAGE = "Failed to submit quote request."


@dataclass(frozen=True)
class UpstreamReply:
    status_code: int
    body: Any

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def error_message(self) -> str:
        if isinstance(self.body, dict) and self.body.get("error"):
            return self.body["error"]
        if isinstance(self.body, str) and self.body:
            return self.body
        return GENERIC_FAILURE_MESSAGE


class QuoteForwarder:
    """Posts a lead to the CRM webhook, once, and reports what came back."""

    def __init__(self, webhook_url: str, client: httpx.AsyncClient) -> None:
        self.webhook_url = webhook_url
        self._client = client

    @classmethod
    def from_settings(cls, settings, transport: httpx.AsyncBaseTransport | None = None) -> QuoteForwarder:
        client = httpx.AsyncClient(
            timeout=settings.quote_webhook_timeout_seconds,
            follow_redirects=True,
            transport=transport,
        )
        return cls(settings.quote_webhook_url, client)

    async def forward(self, lead: LeadPayload) -> UpstreamReply:
        response = await self._client.post(self.webhook_url, json=lead.to_wire())
        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type:
            body = response.json()
        else:
            body = response.text

        reply = UpstreamReply(status_code=response.status_code, body=body)
        if reply.ok:
            logger.info("quote_forwarded status=%s vehicles=%s", response.status_code, len(lead.vehicles))
        else:
            logger.error("quote_webhook_error status=%s body=%s", response.status_code, body)
        return reply

    async def aclose(self) -> None:
        await self._client.aclose()

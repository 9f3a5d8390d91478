"""
Mail Relay Client
=================

Outbound e-mail through an HTTP mail relay, with:
- Circuit breaker to prevent cascade failures
- Exponential backoff retry
- Timeout handling

Without a configured relay URL the client runs in development mode: the
message is logged and a synthetic message id is returned.
"""

import asyncio
import time
from typing import Any, Dict, Optional
from uuid import uuid4

import httpx

from zordon_hub.config import Settings, settings as default_settings
from zordon_hub.core import MailDeliveryException
from zordon_hub.notifications.application.services import IMailer
from zordon_hub.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class CircuitState:
    """Circuit breaker states."""
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """
    Circuit breaker for the relay.

    States:
    - CLOSED: Normal operation, requests pass through
    - OPEN: After N failures, reject all requests for M seconds
    - HALF_OPEN: After timeout, allow one test request
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure_time: Optional[float] = None

    @property
    def state(self) -> str:
        if self._state == CircuitState.OPEN and self._last_failure_time is not None:
            if time.monotonic() - self._last_failure_time >= self.recovery_timeout:
                self._state = CircuitState.HALF_OPEN
        return self._state

    def allow_request(self) -> bool:
        return self.state in (CircuitState.CLOSED, CircuitState.HALF_OPEN)

    def record_success(self) -> None:
        self._failure_count = 0
        self._state = CircuitState.CLOSED

    def record_failure(self) -> None:
        self._failure_count += 1
        self._last_failure_time = time.monotonic()

        if self._failure_count >= self.failure_threshold:
            self._state = CircuitState.OPEN
            logger.warning(
                "Circuit breaker opened",
                extra={
                    "failure_count": self._failure_count,
                    "recovery_timeout": self.recovery_timeout
                }
            )


class HTTPMailClient(IMailer):
    """Posts ``{from, to, subject, text, html}`` JSON to the relay."""

    def __init__(
        self,
        config: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        max_retries: int = 3,
        backoff_base: float = 1.0
    ):
        self._settings = config or default_settings
        self._http_client = http_client
        self._max_retries = max_retries
        self._backoff_base = backoff_base
        self._circuit_breaker = CircuitBreaker(failure_threshold=5, recovery_timeout=60)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._settings.mail_timeout_seconds)
        return self._http_client

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._settings.mail_api_key:
            headers["Authorization"] = f"Bearer {self._settings.mail_api_key}"
        return headers

    async def send_mail(
        self,
        to: str,
        subject: str,
        text: str,
        html: Optional[str] = None
    ) -> Dict[str, Any]:
        if not self._settings.mail_api_url:
            message_id = f"dev-{uuid4()}"
            logger.info(
                "Mail relay not configured, message logged only",
                extra={"to": to, "subject": subject, "message_id": message_id}
            )
            return {"message_id": message_id}

        if not self._circuit_breaker.allow_request():
            raise MailDeliveryException("circuit open, relay temporarily disabled", {"to": to})

        payload = {
            "from": self._settings.mail_from,
            "to": to,
            "subject": subject,
            "text": text,
            "html": html or text,
        }

        last_error = "unknown error"
        for attempt in range(self._max_retries):
            try:
                client = await self._get_client()
                response = await client.post(
                    self._settings.mail_api_url,
                    json=payload,
                    headers=self._headers()
                )
                if response.status_code < 300:
                    self._circuit_breaker.record_success()
                    body = response.json() if response.content else {}
                    message_id = body.get("message_id") or body.get("messageId") or body.get("id") or str(uuid4())
                    logger.info("Mail sent", extra={"to": to, "message_id": message_id})
                    return {"message_id": message_id}

                last_error = f"relay returned {response.status_code}"
                logger.warning(
                    "Mail relay returned error status",
                    extra={"status_code": response.status_code, "attempt": attempt + 1}
                )
            except (httpx.HTTPError, ValueError) as e:
                last_error = str(e)
                logger.error(
                    "Mail relay request failed",
                    extra={"error": last_error, "attempt": attempt + 1, "to": to}
                )

            if attempt < self._max_retries - 1:
                await asyncio.sleep(self._backoff_base * (2 ** attempt))

        self._circuit_breaker.record_failure()
        raise MailDeliveryException(last_error, {"to": to})

    async def close(self) -> None:
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

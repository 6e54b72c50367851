"""Webhook delivery over HTTP."""

import asyncio
import json
import time

import httpx

from buildnotifier.core.config import get_settings
from buildnotifier.core.exceptions import (
    DeliveryTimeoutError,
    DeliveryTransportError,
    PayloadEncodingError,
)
from buildnotifier.core.logging import get_logger
from buildnotifier.models.delivery import DeliveryOutcome
from buildnotifier.observability.metrics import DELIVERY_LATENCY

logger = get_logger(__name__)


def encode_payload(message: str) -> bytes:
    """Encode a rendered message as a JSON string scalar.

    The destination receives ``"<message>"``, not a JSON object.
    """
    try:
        return json.dumps(message).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise PayloadEncodingError(f"Failed to encode payload: {e}") from e


class WebhookClient:
    """Single-attempt webhook sender."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout: float | None = None,
        user_agent: str | None = None,
    ):
        """Initialize HTTP client.

        Args:
            client: Shared httpx client; one is created (and owned) when omitted
            timeout: Request timeout in seconds, defaults to settings
            user_agent: User-Agent header, defaults to settings
        """
        settings = get_settings()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout or settings.http_timeout)
        self._headers = {
            "Content-Type": "application/json",
            "User-Agent": user_agent or settings.user_agent,
        }

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._headers)

    async def deliver(
        self,
        url: str,
        message: str,
        *,
        timeout: float | None = None,
        build_id: str | None = None,
    ) -> DeliveryOutcome:
        """POST a rendered message to the destination.

        Any response that arrives is returned, including non-2xx ones, which
        are only logged as warnings.

        Args:
            url: Destination URL
            message: Rendered message
            timeout: Deadline for the whole request in seconds
            build_id: Build identifier for logs and errors

        Returns:
            Delivery outcome

        Raises:
            PayloadEncodingError: If the message cannot be JSON encoded
            DeliveryTimeoutError: If the request times out
            DeliveryTransportError: If no response is received
        """
        payload = encode_payload(message)
        start = time.monotonic()

        try:
            response = await asyncio.wait_for(
                self._client.post(url, content=payload, headers=self._headers),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.error("HTTP request timed out", url=url, build_id=build_id)
            raise DeliveryTimeoutError(
                f"Timed out sending HTTP request to {url}",
                build_id=build_id,
            ) from e
        except httpx.HTTPError as e:
            logger.error("HTTP request failed", url=url, build_id=build_id, error=str(e))
            raise DeliveryTransportError(
                f"Failed to make HTTP request to {url}: {e}",
                build_id=build_id,
            ) from e

        elapsed = time.monotonic() - start
        DELIVERY_LATENCY.observe(elapsed)

        outcome = DeliveryOutcome(
            url=url,
            status_code=response.status_code,
            reason_phrase=response.reason_phrase,
            elapsed_ms=int(elapsed * 1000),
        )

        if not outcome.ok:
            logger.warning(
                "Got a non-OK response",
                url=url,
                status_code=outcome.status_code,
                reason=outcome.reason_phrase,
                build_id=build_id,
            )
        else:
            logger.debug(
                "Sent HTTP request successfully",
                url=url,
                status_code=outcome.status_code,
                build_id=build_id,
            )

        return outcome

    async def close(self) -> None:
        """Close HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

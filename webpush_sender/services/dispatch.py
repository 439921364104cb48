"""
Dispatcher — sends one push request over HTTPS.

Opens a single connection to the subscription endpoint and POSTs the
composed headers and body to it. Exactly one request per call: no
retries and no redirect following. Transport failures (DNS, TLS,
refused connections, timeouts) are raised as httpx exceptions.
"""

import logging
from typing import Optional
from urllib.parse import urlsplit

import httpx

from webpush_sender.models.options import DeliveryOptions

logger = logging.getLogger(__name__)


def build_timeout(delivery_options: DeliveryOptions) -> httpx.Timeout:
    """
    Translate the configured timeouts into an httpx.Timeout.

    httpx performs the TLS handshake inside the connect phase, so
    open_timeout and ssl_timeout together bound connect. read_timeout
    bounds each read. Anything not configured stays unbounded.
    """
    connect: Optional[float] = None
    if delivery_options.open_timeout is not None or delivery_options.ssl_timeout is not None:
        connect = (delivery_options.open_timeout or 0) + (delivery_options.ssl_timeout or 0)

    return httpx.Timeout(None, connect=connect, read=delivery_options.read_timeout)


async def dispatch(
    endpoint: str,
    headers: dict[str, str],
    body: bytes,
    delivery_options: DeliveryOptions,
) -> httpx.Response:
    """
    POST a push message and return the raw response.

    Args:
        endpoint: Subscription endpoint (path and query are sent as given).
        headers: Composed request headers.
        body: Ciphertext, or b"" for an empty push.
        delivery_options: Source of the transport timeouts.

    Returns:
        httpx.Response: The push service's response, whatever its status.

    Raises:
        httpx.RequestError: On any transport-level failure.
    """
    async with httpx.AsyncClient(timeout=build_timeout(delivery_options)) as client:
        response = await client.post(endpoint, content=body, headers=headers)

    logger.debug(
        "Push service responded: status=%d, host=%s",
        response.status_code,
        urlsplit(endpoint).hostname,
    )
    return response


def dispatch_sync(
    endpoint: str,
    headers: dict[str, str],
    body: bytes,
    delivery_options: DeliveryOptions,
) -> httpx.Response:
    """Blocking variant of dispatch() for callers without an event loop."""
    with httpx.Client(timeout=build_timeout(delivery_options)) as client:
        response = client.post(endpoint, content=body, headers=headers)

    logger.debug(
        "Push service responded: status=%d, host=%s",
        response.status_code,
        urlsplit(endpoint).hostname,
    )
    return response

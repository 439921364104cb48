"""
Dispatcher Tests

Tests that:
1. Configured timeouts map onto httpx.Timeout (unset ones stay unbounded)
2. dispatch() POSTs the body and headers to the exact endpoint URL
3. dispatch_sync() does the same with the blocking client
4. Transport errors propagate unclassified

Run with: pytest tests/test_dispatch.py -v
"""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from webpush_sender.models.options import DeliveryOptions
from webpush_sender.services.dispatch import build_timeout, dispatch, dispatch_sync

ENDPOINT = "https://push.example.com/wpush/v2/abc?token=1"
HEADERS = {"Content-Type": "application/octet-stream", "Ttl": "60", "Urgency": "high"}


def _mock_async_client(response) -> AsyncMock:
    mock_client = AsyncMock()
    mock_client.post.return_value = response
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    return mock_client


def _mock_sync_client(response) -> MagicMock:
    mock_client = MagicMock()
    mock_client.post.return_value = response
    mock_client.__enter__.return_value = mock_client
    mock_client.__exit__.return_value = False
    return mock_client


# ===================================================================
# Test Class: build_timeout
# ===================================================================

class TestBuildTimeout:
    """Tests for timeout translation."""

    def test_no_timeouts_means_unbounded(self):
        timeout = build_timeout(DeliveryOptions())
        assert timeout.connect is None
        assert timeout.read is None
        assert timeout.write is None
        assert timeout.pool is None

    def test_open_timeout_bounds_connect(self):
        timeout = build_timeout(DeliveryOptions(open_timeout=3))
        assert timeout.connect == 3
        assert timeout.read is None

    def test_ssl_timeout_bounds_connect(self):
        timeout = build_timeout(DeliveryOptions(ssl_timeout=2))
        assert timeout.connect == 2

    def test_open_and_ssl_timeouts_add_up(self):
        timeout = build_timeout(DeliveryOptions(open_timeout=3, ssl_timeout=2))
        assert timeout.connect == 5

    def test_read_timeout(self):
        timeout = build_timeout(DeliveryOptions(read_timeout=7.5))
        assert timeout.read == 7.5
        assert timeout.connect is None


# ===================================================================
# Test Class: dispatch (async)
# ===================================================================

class TestDispatch:
    """Tests for the async HTTP dispatch."""

    @pytest.mark.asyncio
    async def test_posts_body_and_headers_to_endpoint(self):
        mock_response = MagicMock(status_code=201)
        mock_client = _mock_async_client(mock_response)

        with patch("webpush_sender.services.dispatch.httpx.AsyncClient", return_value=mock_client):
            response = await dispatch(ENDPOINT, HEADERS, b"cipher", DeliveryOptions())

        assert response is mock_response
        mock_client.post.assert_called_once_with(ENDPOINT, content=b"cipher", headers=HEADERS)

    @pytest.mark.asyncio
    async def test_empty_body(self):
        mock_client = _mock_async_client(MagicMock(status_code=201))

        with patch("webpush_sender.services.dispatch.httpx.AsyncClient", return_value=mock_client):
            await dispatch(ENDPOINT, HEADERS, b"", DeliveryOptions())

        assert mock_client.post.call_args.kwargs["content"] == b""

    @pytest.mark.asyncio
    async def test_client_gets_configured_timeout(self):
        mock_client = _mock_async_client(MagicMock(status_code=201))
        mock_constructor = MagicMock(return_value=mock_client)
        options = DeliveryOptions(open_timeout=1, read_timeout=4)

        with patch("webpush_sender.services.dispatch.httpx.AsyncClient", mock_constructor):
            await dispatch(ENDPOINT, HEADERS, b"", options)

        mock_constructor.assert_called_once_with(timeout=build_timeout(options))

    @pytest.mark.asyncio
    async def test_single_request_per_call(self):
        mock_client = _mock_async_client(MagicMock(status_code=503))

        with patch("webpush_sender.services.dispatch.httpx.AsyncClient", return_value=mock_client):
            await dispatch(ENDPOINT, HEADERS, b"", DeliveryOptions())

        assert mock_client.post.call_count == 1

    @pytest.mark.asyncio
    async def test_transport_errors_propagate(self):
        mock_client = _mock_async_client(None)
        mock_client.post.side_effect = httpx.ConnectError("connection refused")

        with patch("webpush_sender.services.dispatch.httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(httpx.ConnectError):
                await dispatch(ENDPOINT, HEADERS, b"", DeliveryOptions())

    @pytest.mark.asyncio
    async def test_against_mock_transport(self):
        """End to end through a real AsyncClient with a stubbed transport."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["body"] = request.content
            seen["ttl"] = request.headers["ttl"]
            return httpx.Response(201)

        real_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        with patch("webpush_sender.services.dispatch.httpx.AsyncClient", return_value=real_client):
            response = await dispatch(ENDPOINT, HEADERS, b"cipher", DeliveryOptions())

        assert response.status_code == 201
        assert seen == {
            "method": "POST",
            "url": ENDPOINT,
            "body": b"cipher",
            "ttl": "60",
        }


# ===================================================================
# Test Class: dispatch_sync
# ===================================================================

class TestDispatchSync:
    """Tests for the blocking HTTP dispatch."""

    def test_posts_body_and_headers_to_endpoint(self):
        mock_response = MagicMock(status_code=201)
        mock_client = _mock_sync_client(mock_response)

        with patch("webpush_sender.services.dispatch.httpx.Client", return_value=mock_client):
            response = dispatch_sync(ENDPOINT, HEADERS, b"cipher", DeliveryOptions())

        assert response is mock_response
        mock_client.post.assert_called_once_with(ENDPOINT, content=b"cipher", headers=HEADERS)

    def test_transport_errors_propagate(self):
        mock_client = _mock_sync_client(None)
        mock_client.post.side_effect = httpx.ReadTimeout("timed out")

        with patch("webpush_sender.services.dispatch.httpx.Client", return_value=mock_client):
            with pytest.raises(httpx.ReadTimeout):
                dispatch_sync(ENDPOINT, HEADERS, b"", DeliveryOptions(read_timeout=1))

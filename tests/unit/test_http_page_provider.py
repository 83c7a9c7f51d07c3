"""Unit tests for HttpPageProvider using httpx's mock transport."""

from __future__ import annotations

import httpx
import pytest

from src.providers.page.http_page_provider import HttpPageProvider
from src.utils.errors import FetchError


def _provider(handler) -> HttpPageProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpPageProvider(http_client=client)


class TestHttpPageProvider:
    @pytest.mark.asyncio
    async def test_returns_body(self) -> None:
        provider = _provider(lambda request: httpx.Response(200, text="<html>ok</html>"))
        assert await provider.fetch("https://example.com/") == "<html>ok</html>"

    @pytest.mark.asyncio
    async def test_non_2xx_raises_fetch_error(self) -> None:
        provider = _provider(lambda request: httpx.Response(404, text="missing"))
        with pytest.raises(FetchError, match="HTTP 404"):
            await provider.fetch("https://example.com/gone")

    @pytest.mark.asyncio
    async def test_timeout_raises_fetch_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        provider = _provider(handler)
        with pytest.raises(FetchError, match="Timeout"):
            await provider.fetch("https://example.com/slow")

    @pytest.mark.asyncio
    async def test_transport_error_raises_fetch_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        provider = _provider(handler)
        with pytest.raises(FetchError) as exc_info:
            await provider.fetch("https://example.com/")
        assert exc_info.value.provider_name == "http_page"

    @pytest.mark.asyncio
    async def test_injected_client_left_open(self) -> None:
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        provider = HttpPageProvider(http_client=client)
        await provider.aclose()
        assert client.is_closed is False
        await client.aclose()

"""
Tests for FeedClient fetch / decode / download.
"""

from decimal import Decimal

import httpx
import pytest

from agrolandsync.errors import DecodeError, DownloadError, ProtocolError, TransportError
from agrolandsync.harvester.feed import FeedClient

FEED_XML = b"""<?xml version="1.0" encoding="utf-8"?>
<products>
  <product>
    <id>1001</id>
    <name>Nawoz azotowy</name>
    <qty>15</qty>
    <ean>5901234123457</ean>
    <price_after_discount_net>100,50</price_after_discount_net>
    <vat>23</vat>
    <weight>25.0</weight>
    <unit>szt</unit>
    <brand><name>Agro</name></brand>
    <desc>Do wszystkich upraw</desc>
    <attributes>
      <attribute>25 kg</attribute>
      <attribute></attribute>
    </attributes>
    <photos>
      <photo id="77"><url>https://img.example/77.jpg</url></photo>
      <photo id="78" url="https://img.example/78.jpg"/>
    </photos>
  </product>
  <product>
    <id>1002</id>
    <name>Sekator</name>
    <ean></ean>
    <price_after_discount_net>12</price_after_discount_net>
  </product>
</products>
"""


def make_client(handler) -> FeedClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return FeedClient("https://api.agroland.example/", "KEY123", http)


class TestFeedUrl:
    """Test feed URL construction."""

    def test_url_built_from_base_and_key(self):
        """Test URL is base + fixed path + API key."""
        client = make_client(lambda request: httpx.Response(200))
        assert client.url == "https://api.agroland.example/1/3/utf8/KEY123"

    def test_base_without_trailing_slash(self):
        """Test base URL without a trailing slash."""
        http = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        client = FeedClient("https://api.agroland.example", "K", http)
        assert client.url == "https://api.agroland.example/1/3/utf8/K"


class TestFetch:
    """Test FeedClient.fetch over a mocked transport."""

    @pytest.mark.asyncio
    async def test_fetch_decodes_products_in_order(self):
        """Test products are decoded in document order."""
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, content=FEED_XML)

        products = await make_client(handler).fetch()

        assert len(requests) == 1
        assert requests[0].url.path == "/1/3/utf8/KEY123"
        assert requests[0].url.params["stream"] == "true"

        assert [p.id for p in products] == ["1001", "1002"]
        first = products[0]
        assert first.name == "Nawoz azotowy"
        assert first.qty == Decimal("15")
        assert first.ean == "5901234123457"
        assert first.price_after_discount_net == Decimal("100.50")
        assert first.vat == "23"
        assert first.brand == "Agro"
        assert first.attributes == ["25 kg", ""]
        assert [(p.id, p.url) for p in first.photos] == [
            ("77", "https://img.example/77.jpg"),
            ("78", "https://img.example/78.jpg"),
        ]

    @pytest.mark.asyncio
    async def test_missing_fields_are_none(self):
        """Test absent fields decode as None."""
        products = await make_client(lambda r: httpx.Response(200, content=FEED_XML)).fetch()

        second = products[1]
        assert second.ean is None
        assert second.vat is None
        assert second.photos == []
        assert second.attributes == []

    @pytest.mark.asyncio
    async def test_non_success_status_raises_protocol_error(self):
        """Test non-2xx status raises ProtocolError."""
        client = make_client(lambda r: httpx.Response(503))

        with pytest.raises(ProtocolError) as exc_info:
            await client.fetch()
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_connection_failure_raises_transport_error(self):
        """Test connection failure raises TransportError."""
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportError):
            await make_client(handler).fetch()

    @pytest.mark.asyncio
    async def test_timeout_raises_transport_error(self):
        """Test timeout raises TransportError."""
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(TransportError):
            await make_client(handler).fetch()

    @pytest.mark.asyncio
    async def test_malformed_xml_raises_decode_error(self):
        """Test malformed XML raises DecodeError."""
        client = make_client(lambda r: httpx.Response(200, content=b"<products><product>"))

        with pytest.raises(DecodeError):
            await client.fetch()

    @pytest.mark.asyncio
    async def test_unexpected_root_raises_decode_error(self):
        """Test unknown root element raises DecodeError."""
        client = make_client(lambda r: httpx.Response(200, content=b"<error>bad key</error>"))

        with pytest.raises(DecodeError):
            await client.fetch()


class TestDecode:
    """Test XML decoding edge cases."""

    def test_invalid_record_is_skipped(self):
        """Test an invalid record is skipped and counted."""
        client = make_client(lambda r: httpx.Response(200))
        body = (
            b"<products>"
            b"<product><ean>1</ean><qty>lots</qty></product>"
            b"<product><ean>2</ean><qty>3</qty></product>"
            b"</products>"
        )

        products = client.decode(body)

        assert [p.ean for p in products] == ["2"]
        assert client.last_skipped == 1

    def test_empty_product_list(self):
        """Test an empty product list decodes to []."""
        client = make_client(lambda r: httpx.Response(200))

        assert client.decode(b"<products/>") == []

    def test_namespaced_document(self):
        """Test namespaces are ignored."""
        client = make_client(lambda r: httpx.Response(200))
        body = b'<p:products xmlns:p="urn:x"><p:product><p:ean>9</p:ean></p:product></p:products>'

        products = client.decode(body)

        assert products[0].ean == "9"

    def test_brand_as_text_and_alias_fields(self):
        """Test plain-text brand and alias field names."""
        client = make_client(lambda r: httpx.Response(200))
        body = (
            b"<products><product>"
            b"<barcode>42</barcode><brand>Husqvarna</brand>"
            b"<description>Opis</description><price>9.99</price>"
            b"</product></products>"
        )

        product = client.decode(body)[0]

        assert product.ean == "42"
        assert product.brand == "Husqvarna"
        assert product.desc == "Opis"
        assert product.price_after_discount_net == Decimal("9.99")


class TestDownload:
    """Test image download."""

    @pytest.mark.asyncio
    async def test_download_returns_bytes(self):
        """Test download returns the response body."""
        client = make_client(lambda r: httpx.Response(200, content=b"\x89PNG"))

        assert await client.download("https://img.example/1.png") == b"\x89PNG"

    @pytest.mark.asyncio
    async def test_download_404_raises_download_error(self):
        """Test 404 raises DownloadError."""
        client = make_client(lambda r: httpx.Response(404))

        with pytest.raises(DownloadError) as exc_info:
            await client.download("https://img.example/missing.png")
        assert exc_info.value.url == "https://img.example/missing.png"

    @pytest.mark.asyncio
    async def test_download_connection_error(self):
        """Test connection failure raises DownloadError."""
        def handler(request):
            raise httpx.ConnectError("boom", request=request)

        with pytest.raises(DownloadError):
            await make_client(handler).download("https://img.example/1.png")

"""
Agroland feed client.

Fetches the full product export in one request and decodes the XML body into
FeedProduct records. Also downloads product photos over the same HTTP client.

No retries here: a failed fetch is retried by the next scheduler tick.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional

import httpx
from pydantic import ValidationError

from ..errors import DecodeError, DownloadError, ProtocolError, TransportError
from .models import FeedPhoto, FeedProduct

logger = logging.getLogger(__name__)

FEED_PATH = "1/3/utf8/{api_key}"

# Alternative element names accepted for each FeedProduct field.
FIELD_ALIASES: Dict[str, tuple] = {
    "id": ("id", "product_id"),
    "name": ("name",),
    "qty": ("qty", "quantity", "stock"),
    "ean": ("ean", "barcode"),
    "price_after_discount_net": (
        "price_after_discount_net",
        "priceafterdiscountnet",
        "price_net",
        "price",
    ),
    "vat": ("vat",),
    "weight": ("weight",),
    "unit": ("unit",),
    "desc": ("desc", "description"),
}


def _local(tag: str) -> str:
    """Tag name without namespace, lower-cased."""
    return tag.rsplit("}", 1)[-1].lower()


def _child(element: ET.Element, *names: str) -> Optional[ET.Element]:
    for child in element:
        if _local(child.tag) in names:
            return child
    return None


def _value(element: ET.Element, *names: str) -> Optional[str]:
    """Field value from a child element's text or from an attribute."""
    child = _child(element, *names)
    if child is not None:
        return child.text
    for key, value in element.attrib.items():
        if _local(key) in names:
            return value
    return None


def _parse_brand(element: ET.Element) -> Optional[str]:
    brand = _child(element, "brand", "producer", "manufacturer")
    if brand is None:
        return _value(element, "brand")
    name = _value(brand, "name")
    if name is not None:
        return name
    return brand.text


def _parse_photos(element: ET.Element) -> List[FeedPhoto]:
    container = _child(element, "photos", "images")
    if container is None:
        return []
    photos = []
    for photo in container:
        url = _value(photo, "url", "src") or photo.text
        photos.append(FeedPhoto(id=_value(photo, "id"), url=url))
    return photos


def _parse_attributes(element: ET.Element) -> List[str]:
    container = _child(element, "attributes", "params")
    if container is None:
        return []
    return [child.text or "" for child in container]


def parse_product(element: ET.Element) -> FeedProduct:
    """Build a FeedProduct from one <product> element."""
    data = {field: _value(element, *names) for field, names in FIELD_ALIASES.items()}
    data["brand"] = _parse_brand(element)
    data["attributes"] = _parse_attributes(element)
    data["photos"] = _parse_photos(element)
    return FeedProduct(**data)


def _product_elements(root: ET.Element) -> List[ET.Element]:
    if _local(root.tag) == "product":
        return [root]
    products = [child for child in root if _local(child.tag) == "product"]
    if products:
        return products
    wrapper = _child(root, "products", "productlist")
    if wrapper is not None:
        return [child for child in wrapper if _local(child.tag) == "product"]
    if _local(root.tag) in ("products", "productlist"):
        return []
    raise DecodeError(f"Unexpected feed document root <{_local(root.tag)}>")


class FeedClient:
    """HTTP client for the Agroland product feed."""

    def __init__(self, base_url: str, api_key: str, client: httpx.AsyncClient):
        self.base_url = base_url
        self.api_key = api_key
        self._client = client
        self.last_skipped = 0

    @property
    def url(self) -> str:
        return f"{self.base_url.rstrip('/')}/{FEED_PATH.format(api_key=self.api_key)}"

    def _redacted_url(self) -> str:
        if not self.api_key:
            return self.url
        return self.url.replace(self.api_key, "***")

    async def fetch(self) -> List[FeedProduct]:
        """Fetch and decode the full catalog.

        Raises:
            TransportError: connection or timeout failure.
            ProtocolError: non-success status code.
            DecodeError: body is not a product document.
        """
        logger.info(f"Sending request to {self._redacted_url()}")
        try:
            response = await self._client.get(self.url, params={"stream": "true"})
        except httpx.HTTPError as e:
            raise TransportError(f"Feed request failed: {e}") from e

        if not response.is_success:
            raise ProtocolError(
                f"API error while fetching products: {response.status_code}",
                status_code=response.status_code,
            )

        products = self.decode(response.content)
        logger.info(f"Got response with {len(products)} products")
        return products

    def decode(self, body: bytes) -> List[FeedProduct]:
        """Parse a feed XML body. Records failing validation are skipped."""
        try:
            root = ET.fromstring(body)
        except ET.ParseError as e:
            raise DecodeError(f"Malformed feed XML: {e}") from e

        products = []
        self.last_skipped = 0
        for index, element in enumerate(_product_elements(root)):
            try:
                products.append(parse_product(element))
            except ValidationError as e:
                self.last_skipped += 1
                logger.warning(f"Skipping malformed feed record #{index}: {e}")
        return products

    async def download(self, url: str) -> bytes:
        """Download one product image as raw bytes."""
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise DownloadError(f"Failed to download {url}: {e}", url=url) from e
        return response.content


__all__ = ["FeedClient", "parse_product"]

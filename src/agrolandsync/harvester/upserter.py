"""
Per-product upsert: core record, description, images.

The three sub-steps are independent. A failure in one is logged with the
product's EAN and name and recorded on the ItemResult; the others still run.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Protocol

from ..errors import DownloadError
from .html import DESCRIPTION_MAX_LENGTH, build_description
from .models import FeedPhoto, FeedProduct, ItemResult
from .pricing import DEFAULT_VAT, derive_pricing
from .store import ProductStore

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_NAME = "image"


class ImageDownloader(Protocol):
    async def download(self, url: str) -> bytes: ...


class ProductUpserter:
    """Writes one FeedProduct into the product store."""

    def __init__(
        self,
        store: ProductStore,
        downloader: ImageDownloader,
        margin: int,
        source_tag: str = "AGROLAND",
        description_max_length: int = DESCRIPTION_MAX_LENGTH,
        default_vat: int = DEFAULT_VAT,
        identity_fallback: bool = False,
    ):
        self.store = store
        self.downloader = downloader
        self.margin = margin
        self.source_tag = source_tag
        self.description_max_length = description_max_length
        self.default_vat = default_vat
        self.identity_fallback = identity_fallback

    async def upsert(self, product: FeedProduct) -> ItemResult:
        """Run core, description and image upserts for one product."""
        identity = product.identity(self.identity_fallback)
        result = ItemResult(identity=identity, name=product.name)

        if identity is None:
            logger.warning(
                f"Skipping product without EAN: Supplier id = {product.id}, Name = {product.name}"
            )
            result.skipped = True
            return result

        await self._upsert_core(product, identity, result)
        await self._upsert_description(product, identity, result)
        await self._upsert_images(product, identity, result)
        return result

    async def _upsert_core(
        self, product: FeedProduct, identity: str, result: ItemResult
    ) -> None:
        try:
            pricing = derive_pricing(
                product.price_after_discount_net,
                product.vat,
                self.margin,
                default_vat=self.default_vat,
            )
            vat_label = product.vat or str(self.default_vat)
            result.outcome = await self.store.upsert_product(
                identity=identity,
                name=product.name,
                qty=product.qty if product.qty is not None else Decimal(0),
                ean=product.ean,
                purchase_net=pricing.purchase_net,
                purchase_gross=pricing.purchase_gross,
                sale_net=pricing.sale_net,
                sale_gross=pricing.sale_gross,
                vat_purchase=vat_label,
                vat_sale=vat_label,
                barcode=product.ean,
                weight=product.weight,
                brand=product.brand,
                supplier_id=product.id,
                source_tag=self.source_tag,
                unit=product.unit,
            )
            logger.info(
                f"Updated/inserted product: Product EAN = {product.ean}, Name = {product.name}"
            )
        except Exception:
            result.errors.append("core")
            logger.exception(
                f"Failed to update/insert product: Product EAN = {product.ean}, Name = {product.name}"
            )

    async def _upsert_description(
        self, product: FeedProduct, identity: str, result: ItemResult
    ) -> None:
        try:
            html = build_description(product, self.description_max_length)
            await self.store.update_product_description(identity, html)
            result.description_written = True
            logger.info(
                f"Updated/inserted product description: Product EAN = {product.ean}, Name = {product.name}"
            )
        except Exception:
            result.errors.append("description")
            logger.exception(
                f"Failed to update/insert product description: Product EAN = {product.ean}, Name = {product.name}"
            )

    async def _upsert_images(
        self, product: FeedProduct, identity: str, result: ItemResult
    ) -> None:
        for photo in product.photos:
            if not photo.url:
                continue
            if await self._upsert_image(product, identity, photo):
                result.images_written += 1
            else:
                result.images_failed += 1

        if result.images_failed:
            result.errors.append("images")

    async def _upsert_image(
        self, product: FeedProduct, identity: str, photo: FeedPhoto
    ) -> bool:
        try:
            data = await self.downloader.download(photo.url)
            await self.store.upsert_product_image(
                identity, image_filename(photo), data
            )
        except DownloadError:
            logger.exception(
                f"Failed to download product image {photo.url}: Product EAN = {product.ean}, Name = {product.name}"
            )
            return False
        except Exception:
            logger.exception(
                f"Failed to update/insert product image {photo.url}: Product EAN = {product.ean}, Name = {product.name}"
            )
            return False

        logger.info(
            f"Updated/inserted product image: Product EAN = {product.ean}, Name = {product.name}"
        )
        return True


def image_filename(photo: FeedPhoto) -> str:
    """Stored filename for a photo: its feed id, or a generic name."""
    return photo.id or DEFAULT_IMAGE_NAME


__all__ = ["ProductUpserter", "ImageDownloader", "image_filename"]

"""
Product store adapter.

Thin wrapper over the three PostgreSQL stored functions owned by the
destination database. One autocommit connection per run, so a failed
statement never poisons the writes that follow it.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Awaitable, Callable, Optional

import psycopg

from ..errors import PersistenceError
from .models import UpsertOutcome

logger = logging.getLogger(__name__)

UPSERT_PRODUCT_SQL = """
    SELECT upsert_product(
        %(identity)s, %(name)s, %(qty)s, %(ean)s,
        %(purchase_net)s, %(purchase_gross)s, %(sale_net)s, %(sale_gross)s,
        %(vat_purchase)s, %(vat_sale)s, %(barcode)s, %(weight)s,
        %(brand)s, %(supplier_id)s, %(source_tag)s, %(unit)s
    )
"""

UPDATE_DESCRIPTION_SQL = "SELECT update_product_description(%s, %s)"

UPSERT_IMAGE_SQL = "SELECT upsert_product_image(%s, %s, %s)"


class ProductStore:
    """Async access to the product store stored functions.

    Usage:
        async with store:
            outcome = await store.upsert_product(...)
    """

    def __init__(
        self,
        database_url: str,
        connect: Optional[Callable[..., Awaitable[Any]]] = None,
    ):
        self.database_url = database_url
        self._connect = connect or psycopg.AsyncConnection.connect
        self._conn = None

    async def __aenter__(self) -> "ProductStore":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def open(self) -> None:
        """Open the connection for this run."""
        if self._conn is not None:
            return
        if not self.database_url:
            raise PersistenceError("DATABASE_URL not configured")
        try:
            self._conn = await self._connect(self.database_url, autocommit=True)
        except psycopg.Error as e:
            raise PersistenceError(f"Cannot connect to product store: {e}") from e

    async def close(self) -> None:
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        try:
            await conn.close()
        except psycopg.Error as e:
            raise PersistenceError(f"Cannot close product store connection: {e}") from e

    async def _execute(self, query: str, params) -> Optional[tuple]:
        if self._conn is None:
            raise PersistenceError("Product store is not open")
        try:
            cur = await self._conn.execute(query, params)
            return await cur.fetchone()
        except psycopg.Error as e:
            raise PersistenceError(str(e)) from e

    async def upsert_product(
        self,
        *,
        identity: str,
        name: Optional[str],
        qty: Decimal,
        ean: Optional[str],
        purchase_net: Decimal,
        purchase_gross: Decimal,
        sale_net: Decimal,
        sale_gross: Decimal,
        vat_purchase: str,
        vat_sale: str,
        barcode: Optional[str],
        weight: Optional[Decimal],
        brand: Optional[str],
        supplier_id: Optional[str],
        source_tag: str,
        unit: Optional[str],
    ) -> UpsertOutcome:
        """Insert or update the core product record."""
        row = await self._execute(
            UPSERT_PRODUCT_SQL,
            {
                "identity": identity,
                "name": name,
                "qty": qty,
                "ean": ean,
                "purchase_net": purchase_net,
                "purchase_gross": purchase_gross,
                "sale_net": sale_net,
                "sale_gross": sale_gross,
                "vat_purchase": vat_purchase,
                "vat_sale": vat_sale,
                "barcode": barcode,
                "weight": weight,
                "brand": brand,
                "supplier_id": supplier_id,
                "source_tag": source_tag,
                "unit": unit,
            },
        )
        return UpsertOutcome.from_code(row[0] if row else None)

    async def update_product_description(self, identity: str, html: str) -> None:
        await self._execute(UPDATE_DESCRIPTION_SQL, (identity, html))

    async def upsert_product_image(self, identity: str, filename: str, data: bytes) -> None:
        await self._execute(UPSERT_IMAGE_SQL, (identity, filename, data))


__all__ = ["ProductStore"]

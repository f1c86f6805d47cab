"""
Data models for the sync pipeline.

FeedProduct / FeedPhoto mirror one <product> record of the supplier feed.
Run bookkeeping (RunState, RunSummary, ItemResult) lives in process memory only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value):
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


class FeedPhoto(BaseModel):
    """Photo reference attached to a feed product."""

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    url: Optional[str] = None

    @field_validator("id", "url", mode="before")
    @classmethod
    def strip_blank(cls, value):
        return _blank_to_none(value)


class FeedProduct(BaseModel):
    """One product record from the supplier feed."""

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    name: Optional[str] = None
    qty: Optional[Decimal] = None
    ean: Optional[str] = None
    price_after_discount_net: Optional[Decimal] = None
    vat: Optional[str] = None
    weight: Optional[Decimal] = None
    unit: Optional[str] = None
    brand: Optional[str] = None
    desc: Optional[str] = None
    attributes: List[str] = Field(default_factory=list)
    photos: List[FeedPhoto] = Field(default_factory=list)

    @field_validator("id", "name", "ean", "vat", "unit", "brand", mode="before")
    @classmethod
    def strip_blank(cls, value):
        return _blank_to_none(value)

    @field_validator("qty", "price_after_discount_net", "weight", mode="before")
    @classmethod
    def parse_decimal(cls, value):
        """Accept feed numbers like "12,50" or "" alongside plain numerics."""
        if value is None or isinstance(value, (int, float, Decimal)):
            return value
        text = str(value).strip().replace(",", ".")
        if not text:
            return None
        try:
            return Decimal(text)
        except InvalidOperation:
            raise ValueError(f"not a number: {value!r}")

    def identity(self, fallback_to_supplier_id: bool = False) -> Optional[str]:
        """Reconciliation key: EAN, optionally falling back to supplier id."""
        if self.ean:
            return self.ean
        if fallback_to_supplier_id:
            return self.id
        return None


@dataclass(frozen=True)
class DerivedPricing:
    """Purchase / sale prices derived from the feed net price."""

    purchase_net: Decimal
    purchase_gross: Decimal
    sale_net: Decimal
    sale_gross: Decimal
    vat_rate: Decimal


class UpsertOutcome(str, Enum):
    """Signal returned by the core upsert stored function."""

    INSERTED = "inserted"
    UPDATED = "updated"
    OTHER = "other"

    @classmethod
    def from_code(cls, code) -> "UpsertOutcome":
        if code == 1:
            return cls.INSERTED
        if code == 2:
            return cls.UPDATED
        return cls.OTHER


@dataclass
class ItemResult:
    """Outcome of the three upsert sub-steps for one product."""

    identity: Optional[str]
    name: Optional[str]
    outcome: Optional[UpsertOutcome] = None
    description_written: bool = False
    images_written: int = 0
    images_failed: int = 0
    skipped: bool = False
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class RunSummary:
    """Counters for one orchestrator run."""

    started_at: datetime
    finished_at: Optional[datetime] = None
    total: int = 0
    inserted: int = 0
    updated: int = 0
    failed_items: int = 0
    skipped: int = 0
    failed: bool = False
    error: Optional[str] = None
    items: List[ItemResult] = field(default_factory=list)

    def record(self, item: ItemResult) -> None:
        self.items.append(item)
        if item.skipped:
            self.skipped += 1
        elif item.outcome is UpsertOutcome.INSERTED:
            self.inserted += 1
        elif item.outcome is UpsertOutcome.UPDATED:
            self.updated += 1
        if item.errors:
            self.failed_items += 1


@dataclass
class RunState:
    """Cross-run state owned by the orchestrator. Not persisted."""

    last_full_sync_date: Optional[date] = None
    last_run_at: Optional[datetime] = None
    last_summary: Optional[RunSummary] = None


__all__ = [
    "FeedPhoto",
    "FeedProduct",
    "DerivedPricing",
    "UpsertOutcome",
    "ItemResult",
    "RunSummary",
    "RunState",
]

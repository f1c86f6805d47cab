"""Purchase / sale price derivation from the supplier net price."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

from .models import DerivedPricing

DEFAULT_VAT = 23
PRICE_QUANT = Decimal("0.0001")

Number = Union[int, float, str, Decimal]


def parse_vat_rate(vat: Optional[Number], default: Number = DEFAULT_VAT) -> Decimal:
    """Normalize a feed VAT value ("23", "23%", "8,0", 23) to a Decimal.

    Missing or non-numeric values (e.g. "zw") fall back to ``default``.
    """
    if vat is None:
        return Decimal(default)
    if isinstance(vat, Decimal):
        return vat
    text = str(vat).strip().rstrip("%").strip().replace(",", ".")
    if not text:
        return Decimal(default)
    try:
        return Decimal(text)
    except InvalidOperation:
        return Decimal(default)


def _quantize(value: Decimal) -> Decimal:
    return value.quantize(PRICE_QUANT, rounding=ROUND_HALF_UP)


def derive_pricing(
    net_price: Optional[Number],
    vat_rate: Optional[Number],
    margin_percent: int,
    default_vat: Number = DEFAULT_VAT,
) -> DerivedPricing:
    """Derive purchase and sale prices.

    Args:
        net_price: Supplier net price after discount (None counts as 0).
        vat_rate: VAT rate in percent, as found in the feed.
        margin_percent: Process-wide margin in percent.
        default_vat: Rate used when ``vat_rate`` is absent or unparseable.

    Returns:
        DerivedPricing with all amounts at 4 fractional digits.
    """
    net = Decimal(str(net_price)) if net_price is not None else Decimal(0)
    rate = parse_vat_rate(vat_rate, default_vat)

    gross_factor = 1 + rate / 100
    margin_factor = 1 + Decimal(margin_percent) / 100

    purchase_gross = net * gross_factor
    return DerivedPricing(
        purchase_net=_quantize(net),
        purchase_gross=_quantize(purchase_gross),
        sale_net=_quantize(net * margin_factor),
        sale_gross=_quantize(purchase_gross * margin_factor),
        vat_rate=rate,
    )


__all__ = ["DEFAULT_VAT", "parse_vat_rate", "derive_pricing"]

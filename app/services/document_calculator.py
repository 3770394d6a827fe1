"""
Document Calculator

Derives every monetary field of an invoice or quotation from its line items
and rate inputs. Pure and deterministic: no I/O, no mutation of inputs.

    subtotal        = Σ item.amount
    <tax>_amount    = subtotal * <tax rate> / 100        (igst, cgst, sgst)
    discount_rate   = max(requested rate, volume tier)
    discount_amount = subtotal * discount_rate / 100
    total           = subtotal + taxes - discount_amount

Volume tiers (strictly greater than the threshold):
    subtotal > 5000 → at least 10%
    subtotal > 1000 → at least 5%
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Any, Iterable, Tuple, Union

from app.core.exceptions import ValidationError


Number = Union[Decimal, int, float, str]

TWO_PLACES = Decimal("0.01")
HUNDRED = Decimal("100")
ZERO = Decimal("0.00")

# (threshold, minimum discount rate), highest band first
DISCOUNT_TIERS: Tuple[Tuple[Decimal, Decimal], ...] = (
    (Decimal("5000"), Decimal("10")),
    (Decimal("1000"), Decimal("5")),
)


@dataclass(frozen=True)
class DocumentTotals:
    """Derived monetary fields of a document."""
    subtotal: Decimal
    igst_amount: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal
    discount_rate: Decimal
    discount_amount: Decimal
    total: Decimal

    @property
    def tax_amount(self) -> Decimal:
        return self.igst_amount + self.cgst_amount + self.sgst_amount

    def as_dict(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "igst_amount": self.igst_amount,
            "cgst_amount": self.cgst_amount,
            "sgst_amount": self.sgst_amount,
            "discount_rate": self.discount_rate,
            "discount_amount": self.discount_amount,
            "total": self.total,
        }


def to_decimal(value: Number, field: str = "value") -> Decimal:
    """Convert user input to Decimal via str() so floats keep their printed value."""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(field, "must be a valid number")


def round_money(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def _percentage_of(base: Decimal, rate: Decimal) -> Decimal:
    return round_money(base * rate / HUNDRED)


def _check_rate(value: Number, field: str) -> Decimal:
    rate = to_decimal(value, field)
    if rate < 0 or rate > HUNDRED:
        raise ValidationError(field, "must be between 0 and 100")
    return rate


def compute_line_amount(quantity: Number, unit_price: Number) -> Decimal:
    """Line amount is always quantity * unit_price, rounded to paise."""
    return round_money(to_decimal(quantity, "quantity") * to_decimal(unit_price, "unit_price"))


def tier_discount_rate(subtotal: Decimal) -> Decimal:
    """Minimum discount rate granted for the subtotal's volume band."""
    for threshold, rate in DISCOUNT_TIERS:
        if subtotal > threshold:
            return rate
    return Decimal("0")


def effective_discount_rate(subtotal: Decimal, requested_rate: Decimal) -> Decimal:
    """Upgrade, never downgrade, the requested discount rate."""
    return max(requested_rate, tier_discount_rate(subtotal))


def _item_amount(item: Any) -> Decimal:
    if isinstance(item, dict):
        amount = item.get("amount")
    else:
        amount = getattr(item, "amount", None)
    if amount is None:
        raise ValidationError("items", "every line item needs an amount")
    return to_decimal(amount, "amount")


def compute_totals(
    items: Iterable[Any],
    igst: Number = 0,
    cgst: Number = 0,
    sgst: Number = 0,
    discount_rate: Number = 0,
) -> DocumentTotals:
    """
    Price a document.

    Args:
        items: Line items (objects or dicts) whose ``amount`` is already
            consistent with quantity * unit_price. An empty list prices to 0.
        igst, cgst, sgst: Tax rates in percent (0-100).
        discount_rate: Requested discount rate in percent (0-100).

    Returns:
        DocumentTotals with the effective discount rate.

    Raises:
        ValidationError: If a rate is outside 0-100 or not numeric.
    """
    igst_rate = _check_rate(igst, "igst")
    cgst_rate = _check_rate(cgst, "cgst")
    sgst_rate = _check_rate(sgst, "sgst")
    requested = _check_rate(discount_rate, "discount_rate")

    subtotal = round_money(sum((_item_amount(item) for item in items), ZERO))

    igst_amount = _percentage_of(subtotal, igst_rate)
    cgst_amount = _percentage_of(subtotal, cgst_rate)
    sgst_amount = _percentage_of(subtotal, sgst_rate)

    rate = effective_discount_rate(subtotal, requested)
    discount_amount = _percentage_of(subtotal, rate)

    total = subtotal + igst_amount + cgst_amount + sgst_amount - discount_amount

    return DocumentTotals(
        subtotal=subtotal,
        igst_amount=igst_amount,
        cgst_amount=cgst_amount,
        sgst_amount=sgst_amount,
        discount_rate=rate,
        discount_amount=discount_amount,
        total=total,
    )


def apply_totals(document: Any, totals: DocumentTotals) -> None:
    """Copy computed totals onto a document model."""
    for name, value in totals.as_dict().items():
        setattr(document, name, value)

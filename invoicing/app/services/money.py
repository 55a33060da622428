"""Invoice total computation using Decimal math.

All amounts are quantized to cents with ROUND_HALF_UP. The subtotal is the
exact sum of ``quantity * unit_price`` rounded once, and the total is
``subtotal + tax_amount`` so the two stored figures always add up.
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, List, Mapping

from invoicing.app.core.errors import InvoiceValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total: Decimal
    line_totals: List[Decimal] = field(default_factory=list)


def to_decimal(value: Any, field_name: str = "value") -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or value is None:
        raise InvoiceValidationError(f"Invalid {field_name}")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise InvoiceValidationError(f"Invalid {field_name}") from exc


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _item_value(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def validate_tax_rate(tax_rate: Any) -> Decimal:
    rate = to_decimal(tax_rate if tax_rate is not None else 0, "tax rate")
    if rate < 0 or rate > HUNDRED:
        raise InvoiceValidationError("Tax rate must be between 0 and 100")
    return rate


def calculate_line_total(quantity: Any, unit_price: Any) -> Decimal:
    qty = to_decimal(quantity, "quantity")
    price = to_decimal(unit_price, "unit price")
    if qty <= 0:
        raise InvoiceValidationError("Quantity must be greater than zero")
    if price < 0:
        raise InvoiceValidationError("Unit price cannot be negative")
    return quantize_money(qty * price)


def calculate_totals(items: Iterable[Any], tax_rate: Any = 0) -> InvoiceTotals:
    """Compute subtotal, tax and total for ``items`` (mappings or objects
    exposing ``quantity`` and ``unit_price``)."""
    rate = validate_tax_rate(tax_rate)
    items = list(items)
    if not items:
        raise InvoiceValidationError("An invoice needs at least one item")

    exact_subtotal = Decimal("0")
    line_totals: List[Decimal] = []
    for item in items:
        quantity = _item_value(item, "quantity")
        unit_price = _item_value(item, "unit_price")
        line_totals.append(calculate_line_total(quantity, unit_price))
        exact_subtotal += to_decimal(quantity, "quantity") * to_decimal(unit_price, "unit price")

    subtotal = quantize_money(exact_subtotal)
    tax_amount = quantize_money(subtotal * rate / HUNDRED)
    return InvoiceTotals(
        subtotal=subtotal,
        tax_rate=rate,
        tax_amount=tax_amount,
        total=subtotal + tax_amount,
        line_totals=line_totals,
    )

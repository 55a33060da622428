"""Display formatting shared by the PDF renderer and outgoing emails."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, List

from invoicing.app.services.money import to_decimal


def fmt_money(amount: Any, symbol: str = "$") -> str:
    value = to_decimal(amount if amount is not None else 0, "amount")
    return f"{symbol}{value:,.2f}"


def fmt_qty(qty: Any) -> str:
    """Render 2.00 as '2' and 1.50 as '1.5'."""
    value = to_decimal(qty if qty is not None else 0, "quantity")
    if value == value.to_integral_value():
        return str(value.quantize(Decimal("1")))
    return format(value.normalize(), "f")


def fmt_date(value: date | datetime | None) -> str:
    if value is None:
        return ""
    return value.strftime("%b %d, %Y")


def to_latin1(text: Any) -> str:
    """Core PDF fonts only cover latin-1; anything else becomes '?'."""
    if text is None:
        return ""
    return str(text).encode("latin-1", "replace").decode("latin-1")


def split_lines(text: str | None) -> List[str]:
    if not text:
        return []
    return [line for line in text.split("\n") if line.strip() != ""]


def wrap_text(text: str, max_width: float, line_width: Callable[[str], float]) -> List[str]:
    """Greedy word wrap; words wider than ``max_width`` are split by character."""

    def wrap_paragraph(paragraph: str) -> List[str]:
        words = paragraph.split()
        if not words:
            return [paragraph]

        lines: List[str] = []
        current = ""
        for word in words:
            candidate = word if not current else f"{current} {word}"
            if line_width(candidate) <= max_width:
                current = candidate
                continue

            if current:
                lines.append(current)
                current = ""

            chunk = ""
            for char in word:
                if chunk and line_width(chunk + char) > max_width:
                    lines.append(chunk)
                    chunk = char
                else:
                    chunk += char
            current = chunk

        if current:
            lines.append(current)
        return lines

    result: List[str] = []
    for paragraph in (text or "").split("\n"):
        result.extend(wrap_paragraph(paragraph))
    return result or [text]

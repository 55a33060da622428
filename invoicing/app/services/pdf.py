"""Invoice PDF rendering with fpdf2.

The layout is a fixed template measured in points on a US Letter page:
title, issuer and client blocks, dates, a four column item table, totals,
optional notes and a footer line on every page. Page breaks inside the
item table are left to fpdf2.
"""

import logging
from typing import List

from fpdf import FPDF

from invoicing.app.core.settings import get_settings
from invoicing.app.models.invoice import Invoice
from invoicing.app.services.formatting import (
    fmt_date,
    fmt_money,
    fmt_qty,
    split_lines,
    to_latin1,
    wrap_text,
)
from invoicing.app.services.money import to_decimal

logger = logging.getLogger(__name__)

PAGE_FORMAT = "Letter"
MARGIN = 50
FONT = "Helvetica"
FONT_SIZE_TITLE = 24
FONT_SIZE_NUMBER = 12
FONT_SIZE_NORMAL = 10
FONT_SIZE_FOOTER = 8
LINE_H = 14
ROW_H = 20

TABLE_X = MARGIN
TABLE_HEADERS = ("Description", "Qty", "Unit Price", "Total")
COLUMN_WIDTHS = (250, 60, 90, 90)
TABLE_WIDTH = sum(COLUMN_WIDTHS)

TOTALS_LABEL_X = 350
TOTALS_LABEL_W = 100
TOTALS_VALUE_X = 450
TOTALS_VALUE_W = 90

FOOTER_TEXT = "Thank you for your business!"
FOOTER_OFFSET = 50


class InvoiceDocument(FPDF):
    def __init__(self):
        super().__init__(orientation="P", unit="pt", format=PAGE_FORMAT)
        self.set_margins(MARGIN, MARGIN, MARGIN)
        self.set_auto_page_break(auto=True, margin=FOOTER_OFFSET + LINE_H)

    def footer(self):
        self.set_y(-FOOTER_OFFSET)
        self.set_font(FONT, "", FONT_SIZE_FOOTER)
        self.cell(0, LINE_H, FOOTER_TEXT, align="C")

    def line_of_text(self, text: str, style: str = "", align: str = "L") -> None:
        self.set_font(FONT, style, FONT_SIZE_NORMAL)
        self.cell(0, LINE_H, to_latin1(text), align=align, new_x="LMARGIN", new_y="NEXT")


def _party_lines(name: str | None, email: str | None, address: str | None, phone: str | None) -> List[str]:
    lines = [name or ""]
    if email:
        lines.append(email)
    lines.extend(split_lines(address))
    if phone:
        lines.append(phone)
    return lines


def _issuer_lines(invoice: Invoice) -> List[str]:
    owner = invoice.owner
    lines = [owner.company_name or owner.name or ""]
    lines.extend(split_lines(owner.address))
    lines.append(owner.email)
    if owner.phone:
        lines.append(owner.phone)
    return lines


def _draw_header(pdf: InvoiceDocument, invoice: Invoice) -> None:
    pdf.set_font(FONT, "B", FONT_SIZE_TITLE)
    pdf.cell(0, 30, "INVOICE", align="R", new_x="LMARGIN", new_y="NEXT")
    pdf.set_font(FONT, "", FONT_SIZE_NUMBER)
    pdf.cell(0, 16, to_latin1(invoice.invoice_number), align="R", new_x="LMARGIN", new_y="NEXT")


def _draw_parties(pdf: InvoiceDocument, invoice: Invoice) -> None:
    pdf.ln(LINE_H * 2)
    pdf.line_of_text("From:", style="B")
    for line in _issuer_lines(invoice):
        pdf.line_of_text(line)

    client = invoice.client
    pdf.ln(LINE_H)
    pdf.line_of_text("Bill To:", style="B")
    for line in _party_lines(client.name, client.email, client.address, client.phone):
        pdf.line_of_text(line)


def _draw_dates(pdf: InvoiceDocument, invoice: Invoice) -> None:
    pdf.ln(LINE_H)
    pdf.line_of_text(f"Issue Date: {fmt_date(invoice.issue_date)}")
    pdf.line_of_text(f"Due Date: {fmt_date(invoice.due_date)}")


def _draw_table_header(pdf: InvoiceDocument) -> None:
    pdf.set_font(FONT, "B", FONT_SIZE_NORMAL)
    x = TABLE_X
    top = pdf.get_y()
    for index, (header, width) in enumerate(zip(TABLE_HEADERS, COLUMN_WIDTHS)):
        pdf.set_xy(x, top)
        pdf.cell(width, LINE_H, header, align="L" if index == 0 else "R")
        x += width
    rule_y = top + LINE_H + 1
    pdf.line(TABLE_X, rule_y, TABLE_X + TABLE_WIDTH, rule_y)
    pdf.set_xy(TABLE_X, rule_y + 10)


def _draw_items(pdf: InvoiceDocument, invoice: Invoice, symbol: str) -> None:
    pdf.set_font(FONT, "", FONT_SIZE_NORMAL)
    description_w = COLUMN_WIDTHS[0]
    for item in invoice.items:
        lines = wrap_text(to_latin1(item.description), description_w - 4, pdf.get_string_width)
        row_h = max(ROW_H, LINE_H * len(lines) + (ROW_H - LINE_H))
        if pdf.will_page_break(row_h):
            pdf.add_page()
        top = pdf.get_y()

        for offset, line in enumerate(lines):
            pdf.set_xy(TABLE_X, top + offset * LINE_H)
            pdf.cell(description_w, LINE_H, line)

        values = (
            fmt_qty(item.quantity),
            fmt_money(item.unit_price, symbol),
            fmt_money(item.total, symbol),
        )
        x = TABLE_X + description_w
        for value, width in zip(values, COLUMN_WIDTHS[1:]):
            pdf.set_xy(x, top)
            pdf.cell(width, LINE_H, to_latin1(value), align="R")
            x += width
        pdf.set_xy(TABLE_X, top + row_h)


def _totals_row(pdf: InvoiceDocument, label: str, value: str) -> None:
    top = pdf.get_y()
    pdf.set_xy(TOTALS_LABEL_X, top)
    pdf.cell(TOTALS_LABEL_W, LINE_H, label, align="R")
    pdf.set_xy(TOTALS_VALUE_X, top)
    pdf.cell(TOTALS_VALUE_W, LINE_H, to_latin1(value), align="R")
    pdf.set_xy(TABLE_X, top + ROW_H)


def _draw_totals(pdf: InvoiceDocument, invoice: Invoice, symbol: str) -> None:
    if pdf.will_page_break(ROW_H * 4):
        pdf.add_page()
    pdf.ln(ROW_H / 2)
    rule_y = pdf.get_y()
    pdf.line(TOTALS_LABEL_X, rule_y, TABLE_X + TABLE_WIDTH, rule_y)
    pdf.set_y(rule_y + 10)

    pdf.set_font(FONT, "", FONT_SIZE_NORMAL)
    _totals_row(pdf, "Subtotal:", fmt_money(invoice.subtotal, symbol))
    tax_rate = to_decimal(invoice.tax_rate or 0, "tax rate")
    if tax_rate > 0:
        _totals_row(pdf, f"Tax ({fmt_qty(tax_rate)}%):", fmt_money(invoice.tax_amount, symbol))
    pdf.set_font(FONT, "B", FONT_SIZE_NORMAL)
    _totals_row(pdf, "Total:", fmt_money(invoice.total, symbol))


def _draw_notes(pdf: InvoiceDocument, invoice: Invoice) -> None:
    if not invoice.notes:
        return
    pdf.ln(LINE_H * 2)
    pdf.line_of_text("Notes:", style="B")
    pdf.set_font(FONT, "", FONT_SIZE_NORMAL)
    pdf.multi_cell(0, LINE_H, to_latin1(invoice.notes))


def render_invoice_pdf(invoice: Invoice, currency_symbol: str | None = None) -> bytes:
    """Render a fully loaded invoice (owner, client, items) to PDF bytes."""
    symbol = currency_symbol if currency_symbol is not None else get_settings().currency_symbol
    pdf = InvoiceDocument()
    pdf.set_title(to_latin1(invoice.invoice_number))
    pdf.add_page()

    _draw_header(pdf, invoice)
    _draw_parties(pdf, invoice)
    _draw_dates(pdf, invoice)
    pdf.ln(LINE_H * 2)
    _draw_table_header(pdf)
    _draw_items(pdf, invoice, symbol)
    _draw_totals(pdf, invoice, symbol)
    _draw_notes(pdf, invoice)

    data = bytes(pdf.output())
    logger.info("Rendered PDF for invoice %s (%d bytes, %d pages)", invoice.invoice_number, len(data), pdf.page_no())
    return data

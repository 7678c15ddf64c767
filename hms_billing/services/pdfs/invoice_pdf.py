# hms_billing/services/pdfs/invoice_pdf.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from io import BytesIO
from typing import List, Optional, Tuple
from zoneinfo import ZoneInfo

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from hms_billing.core.config import settings
from hms_billing.core.errors import MissingPatient
from hms_billing.schemas.billing import Bill
from hms_billing.schemas.patient import Patient
from hms_billing.services.billing_math import fmt_money
from hms_billing.services.billing_rules import compute_balance

logger = logging.getLogger(__name__)

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep",
           "Oct", "Nov", "Dec")

# ----------------------------
# Page geometry (mm, measured from the top-left corner)
# ----------------------------
PAGE_W_MM = A4[0] / mm
PAGE_H_MM = A4[1] / mm
LEFT_X = 20.0
BOTTOM_LIMIT = PAGE_H_MM - 20.0

TABLE_HEADER_Y = 130.0
FIRST_ROW_Y = 145.0
ROW_STEP = 15.0

# continuation pages repeat the column header near the top
CONT_HEADER_Y = 20.0
CONT_FIRST_ROW_Y = 35.0

# summary lines, relative to the position after the last row
SUMMARY_OFFSETS = (10.0, 25.0, 40.0)

BODY_FONT = "Helvetica"
BOLD_FONT = "Helvetica-Bold"
BODY_SIZE = 12.0


@dataclass(frozen=True)
class Column:
    key: str
    label: str
    x: float
    width: float


COLUMNS: List[Column] = [
    Column("description", "Description", 20.0, 78.0),
    Column("quantity", "Qty", 100.0, 28.0),
    Column("unit_price", "Unit Price", 130.0, 28.0),
    Column("total_price", "Total", 160.0, 30.0),
]


@dataclass(frozen=True)
class TextOp:
    x: float
    y: float
    text: str
    font: str = BODY_FONT
    size: float = BODY_SIZE


@dataclass
class InvoiceLayout:
    page_width: float = PAGE_W_MM
    page_height: float = PAGE_H_MM
    pages: List[List[TextOp]] = field(default_factory=lambda: [[]])

    def emit(self, op: TextOp) -> None:
        self.pages[-1].append(op)

    def new_page(self) -> None:
        self.pages.append([])

    def texts(self) -> List[str]:
        return [op.text for page in self.pages for op in page]


@dataclass(frozen=True)
class InvoiceDocument:
    name: str
    content: bytes
    layout: InvoiceLayout
    media_type: str = "application/pdf"

    @property
    def filename(self) -> str:
        return f"{self.name}.pdf"


# ----------------------------
# helpers (safe formatting)
# ----------------------------
def invoice_name(bill: Bill) -> str:
    return f"invoice-{bill.id}"


def _local_dt(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(ZoneInfo(settings.TIMEZONE)).replace(tzinfo=None)


def fmt_invoice_date(dt: datetime) -> str:
    """`MMM dd, yyyy`, independent of the process locale."""
    d = _local_dt(dt)
    return f"{_MONTHS[d.month - 1]} {d.day:02d}, {d.year:04d}"


def _clip(text: str, width_mm: float, font: str = BODY_FONT,
          size: float = BODY_SIZE) -> str:
    lines = simpleSplit(text or "", font, size, width_mm * mm)
    if not lines:
        return ""
    if len(lines) == 1:
        return lines[0]
    first = lines[0].rstrip()
    return (first[:max(0, len(first) - 3)] + "...") if len(first) > 6 else (first + "...")


def _row_cells(item) -> List[Tuple[Column, str]]:
    values = {
        "description": item.description,
        "quantity": str(item.quantity),
        "unit_price": fmt_money(item.unit_price),
        # stored value, never recomputed from qty * unit price
        "total_price": fmt_money(item.total_price),
    }
    return [(c, _clip(values[c.key], c.width)) for c in COLUMNS]


def _emit_table_header(layout: InvoiceLayout, y: float) -> None:
    for c in COLUMNS:
        layout.emit(TextOp(c.x, y, c.label, BOLD_FONT))


# ----------------------------
# Layout
# ----------------------------
def layout_invoice(bill: Bill, patient: Patient, *,
                   system_name: Optional[str] = None) -> InvoiceLayout:
    layout = InvoiceLayout()
    emit = layout.emit

    # header block
    emit(TextOp(LEFT_X, 20.0, system_name or settings.PROJECT_NAME, BOLD_FONT, 20.0))
    emit(TextOp(LEFT_X, 35.0, "Invoice", BOLD_FONT, 16.0))
    emit(TextOp(LEFT_X, 50.0, f"Invoice #: {bill.id}"))
    emit(TextOp(LEFT_X, 60.0, f"Date: {fmt_invoice_date(bill.created_at)}"))

    # bill-to block
    emit(TextOp(LEFT_X, 80.0, "Bill To:", BOLD_FONT))
    emit(TextOp(LEFT_X, 90.0, patient.full_name))
    emit(TextOp(LEFT_X, 100.0, patient.email))
    emit(TextOp(LEFT_X, 110.0, patient.phone))

    # items table
    _emit_table_header(layout, TABLE_HEADER_Y)
    y = FIRST_ROW_Y
    for item in bill.items:
        if y > BOTTOM_LIMIT:
            layout.new_page()
            _emit_table_header(layout, CONT_HEADER_Y)
            y = CONT_FIRST_ROW_Y
        for col, text in _row_cells(item):
            emit(TextOp(col.x, y, text))
        y += ROW_STEP

    # summary
    summary = [
        f"Total Amount: {fmt_money(bill.total_amount)}",
        f"Paid Amount: {fmt_money(bill.paid_amount)}",
        # negative balance (overpayment) is printed as-is
        f"Balance: {fmt_money(compute_balance(bill))}",
    ]
    if y + SUMMARY_OFFSETS[-1] > BOTTOM_LIMIT:
        layout.new_page()
        y = CONT_HEADER_Y - SUMMARY_OFFSETS[0]
    for off, text in zip(SUMMARY_OFFSETS, summary):
        emit(TextOp(LEFT_X, y + off, text, BOLD_FONT))

    return layout


# ----------------------------
# PDF output
# ----------------------------
def render_layout_pdf(layout: InvoiceLayout, *, title: str = "") -> bytes:
    buf = BytesIO()
    pagesize = (layout.page_width * mm, layout.page_height * mm)
    # invariant: no timestamps or random ids, so output is byte-stable
    c = canvas.Canvas(buf, pagesize=pagesize, invariant=1)
    c.setTitle(title)
    c.setAuthor(settings.PROJECT_NAME)

    H = pagesize[1]
    for page in layout.pages:
        for op in page:
            c.setFont(op.font, op.size)
            c.drawString(op.x * mm, H - op.y * mm, op.text)
        c.showPage()

    c.save()
    return buf.getvalue()


def build_invoice(bill: Bill, patient: Optional[Patient], *,
                  system_name: Optional[str] = None) -> InvoiceDocument:
    if patient is None or patient.id != bill.patient_id:
        raise MissingPatient(bill.id, bill.patient_id)

    layout = layout_invoice(bill, patient, system_name=system_name)
    name = invoice_name(bill)
    content = render_layout_pdf(layout, title=f"Invoice {bill.id}")
    logger.info("invoice rendered name=%s pages=%d items=%d", name,
                len(layout.pages), len(bill.items))
    return InvoiceDocument(name=name, content=content, layout=layout)

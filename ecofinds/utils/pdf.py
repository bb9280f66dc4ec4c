# ecofinds/utils/pdf.py
import io
from datetime import datetime
from typing import List

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from ecofinds.models.order import Order
from ecofinds.models.users import User

FONT_REGULAR_NAME = "Helvetica"
FONT_BOLD_NAME = "Helvetica-Bold"

# Column x positions (mm) of the purchases table
COLUMNS = [
    ("Order", 15),
    ("Date", 45),
    ("Item", 70),
    ("Qty", 140),
    ("Total", 155),
    ("Status", 175),
]


def generate_purchase_report_pdf(orders: List[Order], buyer: User) -> bytes:
    """
    Renders the purchase history as a printable A4 report:
    - header with buyer name and generation date
    - one row per purchased item
    - grand total of non-cancelled orders
    """
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4

    def draw_text(x, y, text, font=FONT_REGULAR_NAME, size=9, align="left"):
        c.setFont(font, size)
        text_str = str(text) if text is not None else ""
        if align == "right":
            c.drawRightString(x, y, text_str)
        else:
            c.drawString(x, y, text_str)

    def draw_header(y):
        for label, x in COLUMNS:
            draw_text(x * mm, y, label, font=FONT_BOLD_NAME)
        c.line(15 * mm, y - 2 * mm, width - 15 * mm, y - 2 * mm)
        return y - 7 * mm

    y = height - 20 * mm
    draw_text(15 * mm, y, "EcoFinds - Purchase history", font=FONT_BOLD_NAME, size=16)
    y -= 8 * mm
    draw_text(15 * mm, y, f"Buyer: {buyer.first_name} {buyer.last_name} <{buyer.email}>", size=10)
    draw_text(width - 15 * mm, y, f"Generated: {datetime.now():%Y-%m-%d %H:%M}", size=10, align="right")
    y -= 12 * mm
    y = draw_header(y)

    grand_total = 0.0
    for order in orders:
        if order.status != "cancelled":
            grand_total += order.total_amount
        for item in order.items:
            # New page when the row would hit the bottom margin
            if y < 25 * mm:
                c.showPage()
                y = draw_header(height - 20 * mm)
            ordered = order.created_at.strftime("%Y-%m-%d") if order.created_at else ""
            draw_text(15 * mm, y, order.order_number)
            draw_text(45 * mm, y, ordered)
            draw_text(70 * mm, y, item.title[:40])
            draw_text(140 * mm, y, item.quantity)
            draw_text(170 * mm, y, f"{item.unit_price * item.quantity:.2f}", align="right")
            draw_text(175 * mm, y, order.status)
            y -= 6 * mm

    if not orders:
        draw_text(15 * mm, y, "No purchases found.")
        y -= 6 * mm

    y -= 4 * mm
    c.line(15 * mm, y + 3 * mm, width - 15 * mm, y + 3 * mm)
    draw_text(15 * mm, y - 3 * mm, f"Orders: {len(orders)}", font=FONT_BOLD_NAME, size=10)
    draw_text(width - 15 * mm, y - 3 * mm, f"Total spent: {grand_total:.2f}", font=FONT_BOLD_NAME, size=10, align="right")

    c.showPage()
    c.save()
    return buffer.getvalue()

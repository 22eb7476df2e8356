import io

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from app.config import settings
from app.models.order import Order

LEFT = 50
LINE = 16


def _money(amount: float) -> str:
    return f"{settings.STORE_CURRENCY} {amount:,.2f}"


def generate_invoice_pdf(order: Order) -> bytes:
    """Render a one page invoice for ``order``; returns the PDF bytes."""
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    _, height = A4
    y = height - 60

    c.setFont("Helvetica-Bold", 16)
    c.drawString(LEFT, y, settings.STORE_NAME)
    y -= LINE * 2

    c.setFont("Helvetica", 11)
    c.drawString(LEFT, y, f"Invoice for Order {order.order_number}")
    y -= LINE
    c.drawString(LEFT, y, f"Date: {order.created_at:%Y-%m-%d %H:%M}")
    y -= LINE
    c.drawString(LEFT, y, f"Status: {order.status}")
    y -= LINE
    c.drawString(LEFT, y, f"Payment method: {order.payment_method}")
    y -= LINE * 2

    address = order.shipping_address or {}
    c.setFont("Helvetica-Bold", 11)
    c.drawString(LEFT, y, "Ship to")
    y -= LINE
    c.setFont("Helvetica", 11)
    for part in (
        address.get("full_name"),
        address.get("phone"),
        address.get("address_line1"),
        address.get("address_line2"),
        address.get("city"),
        address.get("postal_code"),
    ):
        if part:
            c.drawString(LEFT, y, str(part))
            y -= LINE
    y -= LINE

    c.setFont("Helvetica-Bold", 11)
    c.drawString(LEFT, y, "Item")
    c.drawString(300, y, "Size")
    c.drawString(350, y, "Qty")
    c.drawString(400, y, "Price")
    c.drawString(480, y, "Total")
    y -= LINE
    c.setFont("Helvetica", 10)

    for item in order.items:
        if y < 100:
            c.showPage()
            c.setFont("Helvetica", 10)
            y = height - 60
        c.drawString(LEFT, y, item.product_name[:45])
        c.drawString(300, y, item.size)
        c.drawString(350, y, str(item.quantity))
        c.drawString(400, y, f"{item.price:,.2f}")
        c.drawString(480, y, f"{item.line_total:,.2f}")
        y -= LINE

    y -= LINE
    c.setFont("Helvetica", 11)
    c.drawString(350, y, f"Subtotal: {_money(order.subtotal)}")
    y -= LINE
    c.drawString(350, y, f"Shipping: {_money(order.shipping_cost)}")
    y -= LINE
    c.setFont("Helvetica-Bold", 11)
    c.drawString(350, y, f"Total: {_money(order.total)}")

    c.save()
    return buffer.getvalue()

# app/utils/pdf_generators/invoice_pdf.py
import os

from reportlab.lib.pagesizes import A4
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle
from reportlab.lib import colors
from reportlab.lib.styles import getSampleStyleSheet

from app.core.config import PDF_OUTPUT_DIR
from app.models.enums.document_kind import DocumentKind
from app.models.enums.discount_type import DiscountType


def _money(currency: str, amount) -> str:
    return f"{currency} {amount:,.2f}"


def _address_line(address) -> str:
    if not address:
        return "N/A"
    if isinstance(address, dict):
        return ", ".join(str(v) for v in address.values() if v) or "N/A"
    return str(address)


def generate_invoice_pdf(invoice, company) -> str:
    """
    Render an invoice or quote, with its items and payment summary, to a PDF
    file and return the path.
    """
    customer = invoice.customer
    currency = company.currency
    title = "INVOICE" if invoice.kind == DocumentKind.invoice else "QUOTE"

    os.makedirs(PDF_OUTPUT_DIR, exist_ok=True)
    file_path = os.path.join(PDF_OUTPUT_DIR, f"{company.id}_{invoice.invoice_number}.pdf")

    styles = getSampleStyleSheet()
    story = []

    # -----------------------------
    # HEADER
    # -----------------------------
    story.append(Paragraph(f"<b>{company.name}</b>", styles["Heading2"]))
    if company.email:
        story.append(Paragraph(company.email, styles["Normal"]))
    story.append(Spacer(1, 8))
    story.append(Paragraph(f"<b>{title} #{invoice.invoice_number}</b>", styles["Title"]))
    story.append(Paragraph(f"Status: {invoice.status.value.upper()}", styles["Normal"]))
    story.append(Paragraph(f"Issue date: {invoice.issue_date.strftime('%d-%m-%Y')}", styles["Normal"]))
    story.append(Paragraph(f"Due date: {invoice.due_date.strftime('%d-%m-%Y')}", styles["Normal"]))
    story.append(Spacer(1, 15))

    # -----------------------------
    # CUSTOMER INFO
    # -----------------------------
    story.append(Paragraph("<b>Bill To:</b>", styles["Heading3"]))
    story.append(Paragraph(f"Name: {customer.name}", styles["Normal"]))
    story.append(Paragraph(f"Email: {customer.email or 'N/A'}", styles["Normal"]))
    story.append(Paragraph(f"Phone: {customer.phone or 'N/A'}", styles["Normal"]))
    story.append(Paragraph(f"Address: {_address_line(customer.address)}", styles["Normal"]))
    story.append(Spacer(1, 15))

    # -----------------------------
    # ITEMS
    # -----------------------------
    data = [["Item", "Qty", "Unit Price", "Total"]]
    for item in invoice.items:
        name = item.product.name if item.product else f"Product #{item.product_id}"
        if item.description:
            name = f"{name} - {item.description}"
        data.append([
            name,
            str(item.quantity),
            _money(currency, item.unit_price),
            _money(currency, item.line_total),
        ])

    table = Table(data, colWidths=[200, 50, 100, 100])
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.black),
        ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("FONTSIZE", (0, 0), (-1, -1), 10),
    ]))
    story.append(table)
    story.append(Spacer(1, 20))

    # -----------------------------
    # TOTALS
    # -----------------------------
    story.append(Paragraph("<b>Summary:</b>", styles["Heading3"]))
    story.append(Paragraph(f"Subtotal: {_money(currency, invoice.subtotal)}", styles["Normal"]))
    if invoice.discount_type != DiscountType.none and invoice.discount_amount:
        label = (
            f"Discount ({invoice.discount_value}%)"
            if invoice.discount_type == DiscountType.percentage
            else "Discount"
        )
        story.append(Paragraph(f"{label}: -{_money(currency, invoice.discount_amount)}", styles["Normal"]))
    if invoice.gst_enabled:
        story.append(Paragraph(f"GST ({invoice.gst_rate}%): {_money(currency, invoice.gst_amount)}", styles["Normal"]))
    story.append(Paragraph(f"<b>Total: {_money(currency, invoice.total)}</b>", styles["Normal"]))

    if invoice.kind == DocumentKind.invoice:
        story.append(Paragraph(f"Paid: {_money(currency, invoice.paid_amount)}", styles["Normal"]))
        story.append(Paragraph(f"<b>Balance Due: {_money(currency, invoice.balance_due)}</b>", styles["Heading2"]))
    story.append(Spacer(1, 20))

    # -----------------------------
    # FOOTER
    # -----------------------------
    if invoice.notes:
        story.append(Paragraph(f"Notes: {invoice.notes}", styles["Normal"]))
    if invoice.terms_and_conditions:
        story.append(Paragraph(f"Terms: {invoice.terms_and_conditions}", styles["Normal"]))
    story.append(Paragraph("Thank you for your business!", styles["Italic"]))

    doc = SimpleDocTemplate(file_path, pagesize=A4)
    doc.build(story)

    return file_path

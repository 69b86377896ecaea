# app/utils/pdf_generators/pos_receipt_pdf.py
import os

from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle
from reportlab.lib import colors
from reportlab.lib.styles import getSampleStyleSheet

from app.core.config import PDF_OUTPUT_DIR
from app.models.enums.pos_payment_method import POSPaymentMethod

# 80mm thermal roll
RECEIPT_WIDTH = 80 * mm
RECEIPT_HEIGHT = 200 * mm


def generate_pos_receipt_pdf(sale, company) -> str:
    currency = company.currency

    os.makedirs(PDF_OUTPUT_DIR, exist_ok=True)
    file_path = os.path.join(PDF_OUTPUT_DIR, f"{company.id}_{sale.sale_number}.pdf")

    styles = getSampleStyleSheet()
    small = styles["Normal"].clone("Small", fontSize=8, leading=10)
    story = []

    story.append(Paragraph(f"<b>{company.name}</b>", styles["Heading3"]))
    story.append(Paragraph(f"Receipt {sale.sale_number}", small))
    story.append(Paragraph(sale.date.strftime("%d-%m-%Y %H:%M"), small))
    if sale.cashier:
        story.append(Paragraph(f"Cashier: {sale.cashier.username}", small))
    story.append(Spacer(1, 6))

    data = [["Item", "Qty", "Total"]]
    for item in sale.items:
        data.append([item.product_name, str(item.quantity), f"{item.line_total:,.2f}"])
        if item.refunded_quantity:
            data.append([f"  refunded x{item.refunded_quantity}", "", ""])

    table = Table(data, colWidths=[36 * mm, 10 * mm, 20 * mm])
    table.setStyle(TableStyle([
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
        ("LINEBELOW", (0, 0), (-1, 0), 0.5, colors.black),
    ]))
    story.append(table)
    story.append(Spacer(1, 6))

    story.append(Paragraph(f"Subtotal: {currency} {sale.subtotal:,.2f}", small))
    if sale.discount_amount:
        story.append(Paragraph(f"Discount: -{currency} {sale.discount_amount:,.2f}", small))
    story.append(Paragraph(f"Tax: {currency} {sale.tax_amount:,.2f}", small))
    story.append(Paragraph(f"<b>Total: {currency} {sale.total:,.2f}</b>", small))
    story.append(Paragraph(f"Paid by: {sale.payment_method.value.replace('_', ' ').title()}", small))
    if sale.payment_method == POSPaymentMethod.cash and sale.amount_tendered is not None:
        story.append(Paragraph(f"Tendered: {currency} {sale.amount_tendered:,.2f}", small))
        story.append(Paragraph(f"Change: {currency} {sale.change_given or 0:,.2f}", small))
    story.append(Paragraph(f"Status: {sale.status.value.replace('_', ' ').upper()}", small))
    story.append(Spacer(1, 6))
    story.append(Paragraph("Thank you for shopping with us!", small))

    doc = SimpleDocTemplate(
        file_path,
        pagesize=(RECEIPT_WIDTH, RECEIPT_HEIGHT),
        leftMargin=4 * mm,
        rightMargin=4 * mm,
        topMargin=4 * mm,
        bottomMargin=4 * mm,
    )
    doc.build(story)

    return file_path

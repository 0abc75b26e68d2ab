"""
A4 PDF receipts for billed and completed orders.
"""
from io import BytesIO

from django.conf import settings
from django.utils import timezone
from django.utils.html import escape
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import cm, mm
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

from . import lifecycle

RECEIPT_STATUSES = (lifecycle.BILLED, lifecycle.COMPLETED)


class ReceiptUnavailable(lifecycle.LifecycleError):
    code = 'receipt_unavailable'


def _money(amount):
    return f"{settings.SMARTSERVE['CURRENCY_SYMBOL']} {amount:.2f}"


def _stamp(value):
    return timezone.localtime(value).strftime('%d-%m-%Y %H:%M') if value else '-'


def build_receipt(order):
    """Render the receipt for ``order`` and return the PDF bytes."""
    if order.status not in RECEIPT_STATUSES:
        raise ReceiptUnavailable(f'Order #{order.id} has not been billed yet.')

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=10 * mm,
        rightMargin=10 * mm,
        topMargin=10 * mm,
        bottomMargin=10 * mm,
        title=f'Receipt #{order.id}',
    )
    styles = getSampleStyleSheet()
    header_style = ParagraphStyle(
        'ReceiptHeader',
        parent=styles['Heading1'],
        fontSize=18,
        textColor=colors.HexColor('#333333'),
        spaceAfter=6,
        alignment=1,
    )
    subtitle_style = ParagraphStyle(
        'ReceiptSubtitle',
        parent=styles['Normal'],
        fontSize=10,
        textColor=colors.HexColor('#666666'),
        spaceAfter=3,
        alignment=1,
    )
    footer_style = ParagraphStyle(
        'ReceiptFooter',
        parent=subtitle_style,
        fontSize=9,
    )
    normal = styles['Normal']

    story = [
        Paragraph(escape(settings.SMARTSERVE['RESTAURANT_NAME']), header_style),
        Paragraph('Receipt', subtitle_style),
        Spacer(1, 8 * mm),
    ]

    info_rows = [
        ('Order Number:', f'#{order.id}'),
        ('Table Number:', f'#{order.table.table_number}'),
        ('Customer:', escape(order.customer_name)),
        ('Billed:', _stamp(order.billed_at)),
        ('Status:', order.get_status_display().upper()),
    ]
    info_table = Table(
        [[Paragraph(f'<b>{label}</b>', normal), Paragraph(value, normal)] for label, value in info_rows],
        colWidths=[4.5 * cm, 6 * cm],
    )
    info_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (0, -1), colors.HexColor('#f0f0f0')),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#cccccc')),
    ]))
    story += [info_table, Spacer(1, 6 * mm)]

    items_data = [[Paragraph(f'<b>{h}</b>', normal) for h in ('Item', 'Qty', 'Price', 'Total')]]
    for item in order.items.all():
        items_data.append([
            Paragraph(escape(item.name), normal),
            Paragraph(str(item.quantity), normal),
            Paragraph(_money(item.price), normal),
            Paragraph(_money(item.get_total_price()), normal),
        ])
    items_table = Table(items_data, colWidths=[8 * cm, 2 * cm, 3 * cm, 3 * cm])
    items_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#333333')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#cccccc')),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#f9f9f9')]),
    ]))
    story += [items_table, Spacer(1, 6 * mm)]

    summary_table = Table(
        [[Paragraph('<b>Total Amount:</b>', normal), Paragraph(f'<b>{_money(order.total_amount)}</b>', normal)]],
        colWidths=[13 * cm, 3 * cm],
    )
    summary_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
        ('LINEABOVE', (0, 0), (-1, 0), 2, colors.HexColor('#000000')),
        ('BACKGROUND', (0, 0), (-1, -1), colors.HexColor('#f0f0f0')),
    ]))
    story += [summary_table, Spacer(1, 8 * mm)]

    story.append(Paragraph('Thank you for your visit!', footer_style))
    if order.status == lifecycle.COMPLETED:
        story.append(Paragraph(f'Paid on: {_stamp(order.completed_at)}', footer_style))

    doc.build(story)
    return buffer.getvalue()

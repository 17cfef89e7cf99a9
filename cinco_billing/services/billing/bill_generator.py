"""
Receipt generation for a billing draft.
Renders the receipt to PDF with reportlab and rasterises it to PNG with pdfplumber.
"""

import base64
import io
import logging
import platform
import re
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

import pdfplumber
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer, Image

from cinco_billing.config import settings
from cinco_billing.core.exceptions import ExportError
from cinco_billing.models.billing import BillingData, BillSummary
from cinco_billing.services.billing.calculator import calculate_bill, format_money

logger = logging.getLogger(__name__)

PNG_RESOLUTION = 150
PHOTO_SIZE = 40 * mm
UNSAFE_FILENAME_CHARS = re.compile(r"[\\/\"\x00-\x1f]")

_font_name: Optional[str] = None


def _format_reading(value: float) -> str:
    """Prints whole readings without a trailing .0."""
    return f"{value:g}"


def receipt_lines(data: BillingData, summary: BillSummary, currency: Optional[str] = None) -> List[Tuple[str, str]]:
    """
    Builds the rows shown on the receipt, in display order.

    Parking appears only when enabled, the other fee only when its amount is
    positive. Blank site/unit/tenant display as 'N/A'.

    Args:
        data: Billing draft
        summary: Amounts calculated from the draft
        currency: Currency prefix (defaults to the configured symbol)

    Returns:
        List of (label, value) pairs; the last one is the total
    """
    def money(value: float) -> str:
        return format_money(value, currency)

    lines = [
        ("Site:", data.site_name or "N/A"),
        ("Unit:", data.unit or "N/A"),
        ("Tenant:", data.tenant_name or "N/A"),
        ("Period:", f"{data.billing_month} {data.billing_year}"),
        ("Base Rent:", money(data.base_rent)),
        ("Electricity:", money(summary.electricity_total)),
        ("", f"{_format_reading(data.electricity_previous)} → {_format_reading(data.electricity_current)} kWh"),
        ("Water:", money(summary.water_total)),
        ("", f"{_format_reading(data.water_previous)} → {_format_reading(data.water_current)} m³"),
    ]
    if data.parking_enabled:
        lines.append(("Parking Fee:", money(summary.parking_total)))
    if data.other_fee_amount > 0:
        lines.append((f"{data.other_fee_description or 'Other Fee'}:", money(data.other_fee_amount)))
    if data.damage_description:
        lines.append(("Damage:", data.damage_description))
    lines.append(("TOTAL:", money(summary.grand_total)))
    return lines


def _filename_part(value: str) -> str:
    return UNSAFE_FILENAME_CHARS.sub("", value)


def export_filename(data: BillingData, extension: str) -> str:
    """
    cinco-apartments-bill-{site}-{unit}-{month}-{year}.{ext}
    Path separators, quotes and control characters are removed from the parts.
    """
    prefix = settings.company_name.lower().replace(" ", "-")
    parts = [data.site_name, data.unit, data.billing_month, data.billing_year]
    return f"{prefix}-bill-" + "-".join(_filename_part(p) for p in parts) + f".{extension}"


def _register_font() -> str:
    """
    Registers a TTF font with the peso sign when one is available.
    Falls back to Helvetica.
    """
    global _font_name
    if _font_name is not None:
        return _font_name

    from reportlab.pdfbase.ttfonts import TTFont

    if platform.system() == 'Windows':
        font_paths = ['C:/Windows/Fonts/arial.ttf', 'C:/Windows/Fonts/Arial.ttf']
    else:
        font_paths = [
            '/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf',
            '/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf',
            '/usr/share/fonts/truetype/msttcorefonts/arial.ttf',
        ]

    _font_name = 'Helvetica'
    for font_path in font_paths:
        if not Path(font_path).exists():
            continue
        try:
            pdfmetrics.registerFont(TTFont('ReceiptFont', font_path))
        except Exception as e:
            logger.debug("Failed to register font from %s: %s", font_path, e)
            continue
        _font_name = 'ReceiptFont'
        logger.info("Registered receipt font from %s", font_path)
        break
    else:
        logger.warning("No TTF font found, using Helvetica (peso sign printed as PHP)")
    return _font_name


def _photo_flowable(data_uri: str) -> Optional[Image]:
    """Decodes a base64 data URI into an image flowable; unreadable photos are skipped."""
    try:
        payload = data_uri.split(",", 1)[1] if data_uri.startswith("data:") else data_uri
        raw = base64.b64decode(payload, validate=True)
        ImageReader(io.BytesIO(raw)).getSize()
    except Exception as e:
        logger.warning("Skipping unreadable meter photo: %s", e)
        return None
    return Image(io.BytesIO(raw), width=PHOTO_SIZE, height=PHOTO_SIZE, kind='proportional')


def generate_receipt_pdf(data: BillingData) -> bytes:
    """
    Renders the receipt for a draft to a one-page A4 PDF.

    Args:
        data: Billing draft

    Returns:
        PDF document bytes

    Raises:
        ExportError: when rendering fails
    """
    summary = calculate_bill(data)
    try:
        font = _register_font()
        currency = settings.currency_symbol if font != 'Helvetica' else "PHP "
        buffer = io.BytesIO()
        generated_text = f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}"

        def add_header(canvas, doc):
            canvas.saveState()
            canvas.setFont(font, 8)
            text_width = canvas.stringWidth(generated_text, font, 8)
            canvas.drawString(A4[0] - 15*mm - text_width, A4[1] - 12*mm, generated_text)
            canvas.restoreState()

        doc = SimpleDocTemplate(buffer, pagesize=A4,
                                leftMargin=20*mm, rightMargin=20*mm,
                                topMargin=20*mm, bottomMargin=15*mm,
                                title=export_filename(data, "pdf"))

        styles = getSampleStyleSheet()
        title_style = ParagraphStyle(
            'ReceiptTitle',
            parent=styles['Heading1'],
            fontName=font,
            fontSize=18,
            alignment=TA_CENTER,
            spaceAfter=1*mm,
        )
        subtitle_style = ParagraphStyle(
            'ReceiptSubtitle',
            parent=styles['Normal'],
            fontName=font,
            fontSize=10,
            textColor=colors.HexColor('#4b5563'),
            alignment=TA_CENTER,
            spaceAfter=5*mm,
        )

        story = [
            Paragraph(settings.company_name, title_style),
            Paragraph("Billing Statement", subtitle_style),
        ]

        lines = receipt_lines(data, summary, currency=currency)
        if font == 'Helvetica':
            # no arrow glyph in the standard Type1 fonts
            lines = [(label, value.replace("→", "->")) for label, value in lines]
        table = Table([list(row) for row in lines], colWidths=[70*mm, 90*mm])
        style = [
            ('FONTNAME', (0, 0), (-1, -1), font),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('ALIGN', (1, 0), (1, -1), 'RIGHT'),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
            ('TOPPADDING', (0, 0), (-1, -1), 4),
            ('LINEBELOW', (0, 3), (-1, 3), 0.5, colors.grey),
            ('LINEABOVE', (0, -1), (-1, -1), 1, colors.black),
            ('FONTSIZE', (0, -1), (-1, -1), 13),
            ('BACKGROUND', (0, -1), (-1, -1), colors.lightgrey),
        ]
        for row, (label, _) in enumerate(lines):
            # reading ranges under electricity/water
            if not label:
                style.append(('FONTSIZE', (0, row), (-1, row), 8))
                style.append(('TEXTCOLOR', (0, row), (-1, row), colors.HexColor('#6b7280')))
        table.setStyle(TableStyle(style))
        story.append(table)

        photos = [p for p in (data.electricity_photo, data.water_photo) if p]
        flowables = [f for f in (_photo_flowable(p) for p in photos) if f is not None]
        if flowables:
            story.append(Spacer(1, 5*mm))
            story.append(Paragraph("Meter Readings:", styles['Heading4']))
            story.append(Table([flowables]))

        doc.build(story, onFirstPage=add_header, onLaterPages=add_header)
        return buffer.getvalue()
    except Exception as e:
        logger.error("Receipt PDF generation failed: %s", e)
        raise ExportError(f"Failed to generate PDF: {e}") from e


def generate_receipt_png(data: BillingData, resolution: int = PNG_RESOLUTION) -> bytes:
    """
    Renders the receipt to PNG by rasterising the first PDF page.

    Raises:
        ExportError: when rendering fails
    """
    pdf_bytes = generate_receipt_pdf(data)
    try:
        with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
            page_image = pdf.pages[0].to_image(resolution=resolution)
            output = io.BytesIO()
            page_image.save(output, format="PNG")
        return output.getvalue()
    except Exception as e:
        logger.error("Receipt PNG generation failed: %s", e)
        raise ExportError(f"Failed to generate image: {e}") from e

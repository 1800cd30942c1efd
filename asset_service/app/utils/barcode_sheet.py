import logging
import zipfile
from dataclasses import dataclass
from datetime import datetime
from io import BytesIO
from typing import List, Optional, Sequence

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

logger = logging.getLogger(__name__)

# 4x4 grid, 16 codes per page
QR_PER_ROW = 4
QR_PER_PAGE = 16
PAGE_MARGIN = 40
HEADER_HEIGHT = 150
QR_SIZE = 120


@dataclass(frozen=True)
class SheetCell:
    image_path: Optional[str]
    label: str


@dataclass(frozen=True)
class ZipEntry:
    arcname: str
    image_path: Optional[str]
    manifest_line: str


def build_barcode_sheet_pdf(title: str, header_lines: Sequence[str], cells: List[SheetCell]) -> bytes:
    buffer = BytesIO()
    page_width, page_height = A4
    pdf = canvas.Canvas(buffer, pagesize=A4)
    pdf.setTitle(title)

    cell_width = (page_width - 2 * PAGE_MARGIN) / QR_PER_ROW
    cell_height = (page_height - HEADER_HEIGHT) / QR_PER_ROW

    def draw_header():
        y = page_height - PAGE_MARGIN
        pdf.setFont("Helvetica-Bold", 18)
        pdf.drawCentredString(page_width / 2, y, title)
        pdf.setFont("Helvetica", 10)
        for line in header_lines:
            y -= 16
            pdf.drawCentredString(page_width / 2, y, line)
        pdf.setFont("Helvetica", 8)
        pdf.drawCentredString(
            page_width / 2, y - 16, f"Generated: {datetime.now():%Y-%m-%d %H:%M}")

    def draw_error(x, y, label):
        pdf.setFillColor(colors.red)
        pdf.setFont("Helvetica", 6)
        pdf.drawString(x, y + QR_SIZE / 2, f"QR Error: {label}")
        pdf.setFillColor(colors.black)

    draw_header()

    for index, cell in enumerate(cells):
        if index > 0 and index % QR_PER_PAGE == 0:
            pdf.showPage()

        position = index % QR_PER_PAGE
        row, col = divmod(position, QR_PER_ROW)
        x = PAGE_MARGIN + col * cell_width + (cell_width - QR_SIZE) / 2
        # reportlab origin is bottom-left
        y = page_height - HEADER_HEIGHT - row * cell_height - QR_SIZE

        if not cell.image_path:
            draw_error(x, y, cell.label)
            continue
        try:
            pdf.drawImage(cell.image_path, x, y, width=QR_SIZE, height=QR_SIZE,
                          preserveAspectRatio=True, anchor="c")
        except Exception as e:
            logger.error("Barcode sheet could not draw %s for %s: %s", cell.image_path, cell.label, e)
            draw_error(x, y, cell.label)

    pdf.save()
    return buffer.getvalue()


def build_barcode_zip(header_lines: Sequence[str], entries: List[ZipEntry]) -> bytes:
    """PNG per entry plus a README.txt manifest; entries that cannot be
    added are listed as FAILED instead."""
    buffer = BytesIO()
    manifest = list(header_lines)
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for entry in entries:
            line = entry.manifest_line
            if entry.image_path:
                try:
                    archive.write(entry.image_path, arcname=entry.arcname)
                except OSError as e:
                    logger.error("Barcode archive could not add %s: %s", entry.image_path, e)
                    line += " - FAILED"
            else:
                line += " - FAILED"
            manifest.append(line)
        archive.writestr("README.txt", "\n".join(manifest))
    return buffer.getvalue()

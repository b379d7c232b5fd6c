"""
------------------------------------------------------------------------------
Project:        PageFlux
File:           pageflux/sheets.py
Version:        1.0.0
Description:    Renders tabular sheets to PDF pages using ReportLab.
                Header row repeated on every page, light grid lines and an
                'n / total' page footer.
------------------------------------------------------------------------------
"""

import functools
import io
import xml.sax.saxutils as saxutils
from typing import Any, List, Optional, Sequence

from reportlab.lib import colors
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from pageflux.logger import get_logger
from pageflux.models.document import SheetData
from pageflux.models.options import SheetLayout
from pageflux.models.types import PAGE_SIZES_MM, ColorMode, Orientation
from pageflux.utils.color import RGB, convert_color, to_unit_rgb

logger = get_logger("sheets")

MARGIN = 10 * mm

TITLE_RGB: RGB = (100, 100, 100)
GRID_RGB: RGB = (200, 200, 200)
HEADER_RGB: RGB = (230, 230, 230)
FOOTER_RGB: RGB = (150, 150, 150)
TEXT_RGB: RGB = (0, 0, 0)


class _NumberedCanvas(canvas.Canvas):
    """Canvas that defers footers until the total page count is known."""

    def __init__(self, *args, footer_color=colors.grey, **kwargs):
        super().__init__(*args, **kwargs)
        self._footer_color = footer_color
        self._saved_page_states = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(total)
            super().showPage()
        super().save()

    def _draw_footer(self, total: int) -> None:
        width, _ = self._pagesize
        self.saveState()
        self.setFont("Helvetica", 8)
        self.setFillColor(self._footer_color)
        self.drawCentredString(width / 2.0, MARGIN / 2.0, f"{self._pageNumber} / {total}")
        self.restoreState()


class SheetRenderer:
    """Turns one or more sheets into a single PDF, one sheet per page run."""

    def __init__(self, layout: Optional[SheetLayout] = None, color_mode: ColorMode = ColorMode.COLOR):
        self.layout = layout or SheetLayout()
        self.color_mode = color_mode
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _color(self, rgb: RGB) -> colors.Color:
        return colors.Color(*to_unit_rgb(convert_color(rgb, self.color_mode)))

    def _setup_custom_styles(self):
        size = self.layout.font_size
        self.styles.add(ParagraphStyle(
            name="SheetTitle",
            parent=self.styles["Normal"],
            fontName="Helvetica-Bold",
            fontSize=12,
            leading=14,
            spaceAfter=3 * mm,
            textColor=self._color(TITLE_RGB),
        ))
        self.styles.add(ParagraphStyle(
            name="SheetCell",
            parent=self.styles["Normal"],
            fontSize=size,
            leading=size * 1.2,
            textColor=self._color(TEXT_RGB),
        ))
        self.styles.add(ParagraphStyle(
            name="SheetHeader",
            parent=self.styles["SheetCell"],
            fontName="Helvetica-Bold",
        ))

    @property
    def pagesize(self):
        w, h = PAGE_SIZES_MM[self.layout.page_size]
        if self.layout.orientation is Orientation.LANDSCAPE:
            return (h * mm, w * mm)
        return (w * mm, h * mm)

    def render(self, sheets: Sequence[SheetData], show_titles: Optional[bool] = None) -> bytes:
        """
        Renders sheets to PDF bytes. Each sheet starts on a new page.

        Args:
            sheets: The tables to render, first row of each being its header.
            show_titles: Print sheet titles; defaults to True when more than
                         one sheet is rendered.
        """
        if show_titles is None:
            show_titles = len(sheets) > 1

        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=self.pagesize,
            rightMargin=MARGIN,
            leftMargin=MARGIN,
            topMargin=MARGIN,
            bottomMargin=MARGIN,
        )

        story: List[Any] = []
        for i, sheet in enumerate(sheets):
            if i > 0:
                story.append(PageBreak())
            if show_titles and sheet.title:
                story.append(Paragraph(saxutils.escape(sheet.title), self.styles["SheetTitle"]))
            if sheet.is_empty:
                logger.debug(f"Sheet '{sheet.title}' is empty")
                # Still occupies a page of its own
                story.append(Spacer(1, 1))
                continue
            story.append(self._build_table(sheet.rows, doc.width))

        if not story:
            story.append(Spacer(1, 1))

        doc.build(story, canvasmaker=functools.partial(_NumberedCanvas, footer_color=self._color(FOOTER_RGB)))
        logger.info(f"Rendered {len(sheets)} sheet(s)")
        return buffer.getvalue()

    def _build_table(self, rows: List[List[Any]], available_width: float) -> Table:
        n_cols = max(len(r) for r in rows)
        data = []
        for r_idx, row in enumerate(rows):
            style = self.styles["SheetHeader"] if r_idx == 0 else self.styles["SheetCell"]
            cells = [self._format_cell(v) for v in row] + [""] * (n_cols - len(row))
            data.append([Paragraph(c, style) for c in cells])

        col_widths = [available_width / n_cols] * n_cols
        table = Table(data, hAlign="LEFT", colWidths=col_widths, repeatRows=1)
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), self._color(HEADER_RGB)),
            ("GRID", (0, 0), (-1, -1), 0.1, self._color(GRID_RGB)),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("TOPPADDING", (0, 0), (-1, -1), 2),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 2),
        ]))
        return table

    @staticmethod
    def _format_cell(value: Any) -> str:
        if value is None:
            return ""
        return saxutils.escape(str(value)).replace("\n", "<br/>")

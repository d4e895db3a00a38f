"""
Report exporters.

Two PDF strategies share the pivoted ReportTable: the image strategy draws
the table with Pillow and places the picture on one page, the table
strategy lays the table out natively with reportlab. The Excel exporter
writes the same rows with openpyxl.
"""
import io
import logging
from xml.sax.saxutils import escape

import openpyxl
from openpyxl.styles import Alignment, Font, PatternFill
from PIL import Image, ImageDraw, ImageFont
from reportlab.lib import colors
from reportlab.lib.pagesizes import landscape, letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from django.http import HttpResponse

from .reports import CAUTION, MUTED, NEGATIVE, NEUTRAL, POSITIVE, ScoreCell, StatusCell

logger = logging.getLogger(__name__)

HEADER_COLOR = "366092"

# background, text
TONE_COLORS = {
    POSITIVE: ('#dcfce7', '#166534'),
    NEGATIVE: ('#fee2e2', '#991b1b'),
    CAUTION: ('#fef9c3', '#854d0e'),
    NEUTRAL: ('#dbeafe', '#1e40af'),
    MUTED: ('#f3f4f6', '#1f2937'),
}
LOW_SCORE_COLOR = '#fee2e2'

NAME_COLUMN_WIDTH = 1.8 * inch
COMMENT_COLUMN_WIDTH = 2.6 * inch


def report_filename(report_type, classroom_name=None, month=None, ext='pdf'):
    """'{Type}_Report_{Classroom}_{Month}.{ext}' with spaces replaced by underscores."""
    parts = [
        f"{report_type.capitalize()}_Report",
        classroom_name or 'All',
        month or 'All',
    ]
    return f"{'_'.join(parts)}.{ext}".replace(' ', '_')


def _attachment(content, content_type, filename):
    response = HttpResponse(content, content_type=content_type)
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


def _cell_colors(cell):
    if isinstance(cell, StatusCell):
        return TONE_COLORS[cell.display[1]]
    if isinstance(cell, ScoreCell) and cell.low:
        return LOW_SCORE_COLOR, '#000000'
    return None


class ExcelExporter:
    """Excel export of a report table"""

    def __init__(self, title="Report"):
        self.wb = openpyxl.Workbook()
        self.ws = self.wb.active
        self.ws.title = title[:31]

    def write_table(self, table):
        for col_num, header in enumerate(table.header_row(), 1):
            cell = self.ws.cell(row=1, column=col_num, value=header)
            cell.font = Font(bold=True, color="FFFFFF")
            cell.fill = PatternFill(start_color=HEADER_COLOR, end_color=HEADER_COLOR, fill_type="solid")
            cell.alignment = Alignment(horizontal='center', vertical='center', wrap_text=True)

        for row_num, row in enumerate(table.rows, 2):
            self.ws.cell(row=row_num, column=1, value=row.student_name)
            for col_num, report_cell in enumerate(row.cells_in(table.columns), 2):
                value = report_cell.score if isinstance(report_cell, ScoreCell) else report_cell.text
                cell = self.ws.cell(row=row_num, column=col_num, value=value)
                cell.alignment = Alignment(horizontal='center', vertical='center', wrap_text=True)
                fill = _cell_colors(report_cell)
                if fill:
                    color = fill[0].lstrip('#')
                    cell.fill = PatternFill(start_color=color, end_color=color, fill_type="solid")
        return self

    def auto_adjust_columns(self):
        for column in self.ws.columns:
            max_length = max(len(str(cell.value)) if cell.value is not None else 0 for cell in column)
            self.ws.column_dimensions[column[0].column_letter].width = min(max_length + 2, 50)

    def get_response(self, filename):
        self.auto_adjust_columns()
        buffer = io.BytesIO()
        self.wb.save(buffer)
        return _attachment(
            buffer.getvalue(),
            'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
            filename,
        )


class PDFExporter:
    """Native reportlab table layout"""

    def __init__(self, title="Report", subtitle=''):
        self.buffer = io.BytesIO()
        self.title = title
        self.subtitle = subtitle
        self.styles = getSampleStyleSheet()
        self.cell_style = ParagraphStyle('ReportCell', parent=self.styles['Normal'], fontSize=8, leading=10)
        self.story = []

    def _column_widths(self, table, available):
        widths = [NAME_COLUMN_WIDTH]
        flexible = [key for key in table.columns if key != 'comment']
        fixed = NAME_COLUMN_WIDTH + (COMMENT_COLUMN_WIDTH if 'comment' in table.columns else 0)
        share = max((available - fixed) / max(len(flexible), 1), 0.35 * inch)
        for key in table.columns:
            widths.append(COMMENT_COLUMN_WIDTH if key == 'comment' else share)
        return widths

    def write_table(self, table):
        pagesize = landscape(letter) if len(table.columns) > 8 else letter
        self.doc = SimpleDocTemplate(
            self.buffer,
            pagesize=pagesize,
            topMargin=0.5 * inch,
            bottomMargin=0.5 * inch,
            leftMargin=0.5 * inch,
            rightMargin=0.5 * inch,
        )
        self.story.append(Paragraph(f"<b>{escape(self.title)}</b>", self.styles['Title']))
        if self.subtitle:
            self.story.append(Paragraph(escape(self.subtitle), self.styles['Normal']))
        self.story.append(Spacer(1, 12))

        data = [[Paragraph(f"<b>{escape(header)}</b>", self.cell_style) for header in table.header_row()]]
        style = [
            ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor(f"#{HEADER_COLOR}")),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ]
        for row_index, row in enumerate(table.rows, 1):
            line = [Paragraph(escape(row.student_name), self.cell_style)]
            for col_index, cell in enumerate(row.cells_in(table.columns), 1):
                line.append(Paragraph(escape(cell.text), self.cell_style))
                fill = _cell_colors(cell)
                if fill:
                    style.append(('BACKGROUND', (col_index, row_index), (col_index, row_index), colors.HexColor(fill[0])))
            data.append(line)

        available = pagesize[0] - inch
        pdf_table = Table(data, colWidths=self._column_widths(table, available), repeatRows=1)
        pdf_table.setStyle(TableStyle(style))
        self.story.append(pdf_table)
        return self

    def render(self):
        self.doc.build(self.story)
        return self.buffer.getvalue()

    def get_response(self, filename):
        return _attachment(self.render(), 'application/pdf', filename)


class ImagePDFExporter:
    """Draws the table as a picture and places it on a single PDF page"""

    padding = 8
    row_height = 24
    min_column_width = 40

    def __init__(self, title="Report"):
        self.title = title
        self.font = ImageFont.load_default()

    def _text_width(self, draw, text):
        left, _, right, _ = draw.textbbox((0, 0), text, font=self.font)
        return int(right - left) + 1

    def render_image(self, table):
        lines = table.text_rows()
        probe = ImageDraw.Draw(Image.new('RGB', (1, 1)))
        widths = []
        for col in range(len(lines[0])):
            longest = max(self._text_width(probe, str(line[col])) for line in lines)
            widths.append(max(longest + 2 * self.padding, self.min_column_width))

        title_height = self.row_height + self.padding
        width = sum(widths) + 2 * self.padding
        height = title_height + self.row_height * len(lines) + 2 * self.padding
        image = Image.new('RGB', (width, height), 'white')
        draw = ImageDraw.Draw(image)
        draw.text((self.padding, self.padding), self.title, fill='black', font=self.font)

        top = self.padding + title_height
        for row_index, line in enumerate(lines):
            x = self.padding
            cells = None if row_index == 0 else table.rows[row_index - 1].cells_in(table.columns)
            for col_index, text in enumerate(line):
                box = [x, top, x + widths[col_index], top + self.row_height]
                background, foreground = f"#{HEADER_COLOR}", 'white'
                if row_index:
                    background, foreground = 'white', 'black'
                    if col_index and _cell_colors(cells[col_index - 1]):
                        background, foreground = _cell_colors(cells[col_index - 1])
                draw.rectangle(box, fill=background, outline='#9ca3af')
                draw.text((x + self.padding, top + self.padding // 2 + 2), str(text), fill=foreground, font=self.font)
                x += widths[col_index]
            top += self.row_height
        return image

    def render(self, table):
        image = self.render_image(table)
        img_width, img_height = image.size
        pagesize = landscape(letter) if img_width > img_height else letter
        margin = 0.5 * inch
        scale = min((pagesize[0] - 2 * margin) / img_width, (pagesize[1] - 2 * margin) / img_height)
        draw_width, draw_height = img_width * scale, img_height * scale

        buffer = io.BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=pagesize)
        pdf.setTitle(self.title)
        pdf.drawImage(
            ImageReader(image),
            (pagesize[0] - draw_width) / 2,
            pagesize[1] - margin - draw_height,
            width=draw_width,
            height=draw_height,
        )
        pdf.showPage()
        pdf.save()
        return buffer.getvalue()

    def get_response(self, table, filename):
        return _attachment(self.render(table), 'application/pdf', filename)


def export_report(table, title, classroom_name=None, month=None, fmt='pdf', strategy='table'):
    """Build the download response for a pivoted report."""
    if fmt == 'xlsx':
        filename = report_filename(table.report_type, classroom_name, month, 'xlsx')
        response = ExcelExporter(title).write_table(table).get_response(filename)
    elif strategy == 'image':
        filename = report_filename(table.report_type, classroom_name, month)
        response = ImagePDFExporter(title).get_response(table, filename)
    else:
        filename = report_filename(table.report_type, classroom_name, month)
        subtitle = f"Classroom: {classroom_name or 'All'} | Month: {month or 'All'}"
        response = PDFExporter(title, subtitle).write_table(table).get_response(filename)
    logger.info("Exported %s (%s rows)", filename, len(table.rows))
    return response

"""
Helpers de PDF (recibos e relatórios) e formatação no padrão brasileiro.
"""

from datetime import date, datetime
from decimal import Decimal

from django.utils import timezone
from reportlab.pdfgen import canvas


def format_currency(value) -> str:
    """Formata valor como moeda brasileira: R$ 1.234,56."""
    if value is None:
        return "R$ 0,00"
    return f"R$ {Decimal(value):,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")


def format_date(date_obj) -> str:
    if date_obj is None:
        return "-"
    return date_obj.strftime("%d/%m/%Y")


def truncate_text(text: str, max_length: int) -> str:
    if text is None:
        return ""
    if len(text) > max_length:
        return text[:max_length - 3] + "..."
    return text


class PDFReportBase:
    """Cabeçalho, tabelas e quebra de página comuns aos PDFs do sistema."""

    def __init__(self, title: str, brand_name: str = "Van Escolar"):
        self.title = title
        self.brand_name = brand_name
        self.margin = 40
        self.page_count = 1

    def draw_header(self, pdf: canvas.Canvas, width: float, height: float,
                    subtitle: str = "", date_range: str = ""):
        pdf.setFont("Helvetica-Bold", 14)
        pdf.drawCentredString(width / 2, height - 40, self.brand_name)

        pdf.setFont("Helvetica-Bold", 12)
        pdf.drawCentredString(width / 2, height - 60, self.title)

        if subtitle:
            pdf.setFont("Helvetica", 10)
            pdf.drawCentredString(width / 2, height - 80, subtitle)

        if date_range:
            pdf.setFont("Helvetica", 9)
            pdf.drawString(self.margin, height - 110, f"Período: {date_range}")

        pdf.setFont("Helvetica", 8)
        gerado_em = timezone.localtime().strftime('%d/%m/%Y às %H:%M')
        pdf.drawString(self.margin, height - 125, f"Gerado em: {gerado_em}")

        return height - 150

    def draw_section_title(self, pdf: canvas.Canvas, y: float, title: str, width: float):
        """Título de bloco do relatório mensal, sublinhado na largura útil."""
        y -= 6
        pdf.setFont("Helvetica-Bold", 11)
        pdf.drawString(self.margin, y, title)
        pdf.setLineWidth(0.5)
        pdf.line(self.margin, y - 4, width - self.margin, y - 4)
        return y - 22

    def draw_label_value(self, pdf: canvas.Canvas, y: float, label: str, value: str,
                         x_value: float = 200):
        """Linha 'Rótulo: valor' do recibo e dos indicadores."""
        pdf.setFont("Helvetica-Bold", 10)
        pdf.drawString(self.margin, y, f"{label}:")
        pdf.setFont("Helvetica", 10)
        pdf.drawString(x_value, y, value if value not in (None, "") else "-")
        return y - 18

    def draw_table_header(self, pdf: canvas.Canvas, y: float, columns: list, width: float):
        """columns: lista de dicts com 'label' e 'x'."""
        pdf.setFont("Helvetica-Bold", 9)
        for col in columns:
            pdf.drawString(col['x'], y, col['label'])

        y -= 5
        pdf.line(self.margin, y, width - self.margin, y)
        return y - 15

    def check_page_break(self, pdf: canvas.Canvas, y: float, width: float,
                         height: float, columns: list = None) -> float:
        if y < 60:
            self.draw_footer(pdf, width)
            pdf.showPage()
            self.page_count += 1
            y = height - 50
            if columns:
                y = self.draw_table_header(pdf, y, columns, width)
        return y

    def draw_row(self, pdf: canvas.Canvas, y: float, row_data: dict,
                 columns: list, font_size: int = 9):
        """columns: 'key' no row_data, 'x' e opcionalmente 'max_length'."""
        pdf.setFont("Helvetica", font_size)

        for col in columns:
            value = row_data.get(col['key'], "")
            if isinstance(value, Decimal):
                value = format_currency(value)
            elif isinstance(value, (date, datetime)):
                value = format_date(value)
            elif value is None:
                value = "-"
            else:
                value = str(value)

            if col.get('max_length'):
                value = truncate_text(value, col['max_length'])
            pdf.drawString(col['x'], y, value)

        return y - 15

    def draw_total_row(self, pdf: canvas.Canvas, y: float, label: str,
                       value, x_label: float, x_value: float):
        pdf.setFont("Helvetica-Bold", 10)
        pdf.drawString(x_label, y, label)
        pdf.drawString(x_value, y, format_currency(value))
        return y - 20

    def draw_footer(self, pdf: canvas.Canvas, width: float):
        pdf.setFont("Helvetica", 7)
        pdf.drawRightString(width - 40, 20, f"Página {self.page_count}")

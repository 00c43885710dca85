"""
PDF Generation Utilities
Daily sheet, monthly and annual closure reports rendered with reportlab.
All generators return the document as bytes.
"""

from datetime import datetime
from io import BytesIO
from typing import List, Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph, SimpleDocTemplate, Table, TableStyle

from ravito.core.activity_utils import format_currency, get_month_name
from ravito.core.serialization_helpers import format_date_fr, format_datetime_fr
from ravito.schemas.activity import AnnualData, DailySummary, MonthlyData, SheetRow
from ravito.services.closure_calculations import effective_cash_difference

PRIMARY = colors.HexColor("#F97316")
LIGHT_ROW = colors.HexColor("#FFF7ED")
MARGIN = 15 * mm

EXPENSE_CATEGORY_LABELS = {
    "food": "Alimentation",
    "transport": "Transport",
    "utilities": "Services publics",
    "other": "Autre",
}


class NumberedCanvas(canvas.Canvas):
    """Canvas that defers page output so the footer can show 'Page x/y'."""

    def __init__(self, *args, **kwargs):
        canvas.Canvas.__init__(self, *args, **kwargs)
        self._saved_page_states = []
        self.generated_at = datetime.now()

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        page_count = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(page_count)
            canvas.Canvas.showPage(self)
        canvas.Canvas.save(self)

    def _draw_footer(self, page_count):
        width, _ = self._pagesize
        self.setFont("Helvetica", 8)
        self.setFillColor(colors.grey)
        self.drawString(MARGIN, 10 * mm, f"Généré par RAVITO - {self.generated_at.strftime('%d/%m/%Y %H:%M')}")
        self.drawRightString(width - MARGIN, 10 * mm, f"Page {self._pageNumber}/{page_count}")


def _styles():
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(name="Brand", parent=styles["Title"], textColor=PRIMARY, alignment=0))
    styles.add(ParagraphStyle(name="Section", parent=styles["Heading2"], textColor=PRIMARY, spaceBefore=8))
    styles.add(ParagraphStyle(name="Meta", parent=styles["Normal"], fontSize=10, leading=14))
    return styles


def _table(rows: List[list], col_widths: Optional[List[float]] = None, bold_last: bool = False) -> Table:
    table = Table(rows, colWidths=col_widths, repeatRows=1)
    style = [
        ("BACKGROUND", (0, 0), (-1, 0), PRIMARY),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.lightgrey),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, LIGHT_ROW]),
    ]
    if bold_last:
        style.append(("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"))
    table.setStyle(TableStyle(style))
    return table


def _build(story) -> bytes:
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=MARGIN,
        rightMargin=MARGIN,
        topMargin=MARGIN,
        bottomMargin=20 * mm,
        title="RAVITO",
    )
    doc.build(story, canvasmaker=NumberedCanvas)
    return buffer.getvalue()


def _signed(amount: float) -> str:
    text = format_currency(amount)
    return f"+{text}" if amount > 0 else text


def _expenses_table(expenses_by_category) -> Table:
    rows = [["Catégorie", "Montant"]]
    for e in expenses_by_category:
        rows.append([EXPENSE_CATEGORY_LABELS.get(e.category, e.category), format_currency(e.total)])
    return _table(rows, [100 * mm, 60 * mm])


def _top_products_table(top_products) -> Table:
    rows = [["#", "Produit", "Quantité", "CA"]]
    for i, p in enumerate(top_products, 1):
        rows.append([str(i), p.name, str(p.qty_sold), format_currency(p.revenue)])
    return _table(rows, [10 * mm, 90 * mm, 30 * mm, 40 * mm])


def generate_daily_pdf(summary: DailySummary, establishment_name: str) -> bytes:
    """
    Daily closure report

    Args:
        summary: Summary of a closed sheet
        establishment_name: Name printed in the header

    Returns:
        bytes: PDF document
    """
    styles = _styles()
    sheet = summary.sheet
    calc = summary.calculations
    story = [
        Paragraph("RAVITO", styles["Brand"]),
        Paragraph(f"Établissement : {establishment_name}", styles["Meta"]),
        Paragraph(f"Date : {format_date_fr(sheet.sheet_date)}", styles["Meta"]),
    ]
    if sheet.closed_at:
        story.append(Paragraph(f"Clôturé le : {format_datetime_fr(sheet.closed_at)}", styles["Meta"]))

    # Sales
    story.append(Paragraph("VENTES DU JOUR", styles["Section"]))
    rows = [["Produit", "P. Vente", "Stock Init.", "Entrées", "Stock Final", "Ventes", "CA"]]
    for line in summary.stock_lines:
        c = line.calculations
        rows.append([
            line.product_name,
            format_currency(line.selling_price, with_symbol=False) if line.selling_price is not None else "-",
            str(line.initial_stock),
            str(c.total_supply),
            str(line.final_stock) if line.final_stock is not None else "-",
            str(c.sales_qty) if c.sales_qty is not None else "-",
            format_currency(c.revenue) if c.revenue is not None else "-",
        ])
    rows.append(["TOTAL", "", "", "", "", "", format_currency(calc.total_revenue)])
    story.append(_table(rows, [50 * mm, 20 * mm, 20 * mm, 18 * mm, 20 * mm, 17 * mm, 35 * mm], bold_last=True))

    # Expenses
    story.append(Paragraph("DÉPENSES", styles["Section"]))
    if summary.expenses:
        rows = [["Description", "Catégorie", "Montant"]]
        for e in summary.expenses:
            rows.append([e.label, EXPENSE_CATEGORY_LABELS.get(e.category, e.category), format_currency(e.amount)])
        rows.append(["TOTAL", "", format_currency(calc.total_expenses)])
        story.append(_table(rows, [90 * mm, 45 * mm, 45 * mm], bold_last=True))
    else:
        story.append(Paragraph("Aucune dépense", styles["Meta"]))

    # Cash
    story.append(Paragraph("CAISSE", styles["Section"]))
    cash_rows = [
        ["Fond de caisse", format_currency(sheet.opening_cash)],
        ["+ CA Théorique", format_currency(calc.total_revenue)],
        ["- Dépenses", format_currency(calc.total_expenses)],
        ["= Caisse attendue", format_currency(calc.expected_cash)],
    ]
    if sheet.closing_cash is not None:
        cash_rows.append(["Caisse comptée", format_currency(sheet.closing_cash)])
        cash_rows.append(["ÉCART", _signed(calc.cash_difference)])
    cash = Table(cash_rows, colWidths=[60 * mm, 50 * mm])
    cash_style = [
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("ALIGN", (1, 0), (1, -1), "RIGHT"),
        ("LINEABOVE", (0, 3), (-1, 3), 0.5, colors.black),
    ]
    if sheet.closing_cash is not None:
        color = colors.red if calc.cash_difference < 0 else colors.green
        cash_style += [("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"), ("TEXTCOLOR", (1, -1), (1, -1), color)]
    cash.setStyle(TableStyle(cash_style))
    story.append(cash)

    # Packaging
    story.append(Paragraph("EMBALLAGES", styles["Section"]))
    rows = [["Type", "Début", "Reçus", "Rendus", "Fin", "Écart"]]
    for p in summary.packaging:
        c = p.calculations
        rows.append([
            p.crate_type,
            str(c.total_start),
            str(p.qty_received),
            str(p.qty_returned),
            str(c.total_end) if c.total_end is not None else "-",
            str(c.difference) if c.difference is not None else "-",
        ])
    story.append(_table(rows, [40 * mm, 28 * mm, 28 * mm, 28 * mm, 28 * mm, 28 * mm]))

    if sheet.notes:
        story.append(Paragraph("NOTES", styles["Section"]))
        story.append(Paragraph(sheet.notes, styles["Meta"]))

    return _build(story)


def daily_detail_rows(sheets: List[SheetRow]) -> List[list]:
    """One row per closed day, oldest first, with the same cash difference as the KPIs."""
    rows = [["Date", "CA", "Dépenses", "Écart"]]
    for s in sorted(sheets, key=lambda s: s.sheet_date):
        rows.append([format_date_fr(s.sheet_date), format_currency(s.theoretical_revenue),
                     format_currency(s.expenses_total), _signed(effective_cash_difference(s))])
    return rows


def generate_monthly_pdf(data: MonthlyData, establishment_name: str) -> bytes:
    styles = _styles()
    k = data.kpis
    story = [
        Paragraph("RAVITO", styles["Brand"]),
        Paragraph(f"Établissement : {establishment_name}", styles["Meta"]),
        Paragraph(f"Clôture mensuelle : {data.month_name} {data.year}", styles["Meta"]),
        Paragraph("INDICATEURS", styles["Section"]),
        _table([
            ["Indicateur", "Valeur"],
            ["Jours travaillés", f"{k.days_worked} ({k.completion_rate:.1f} %)"],
            ["Jours non clôturés", str(k.days_incomplete)],
            ["CA total", format_currency(k.total_revenue)],
            ["CA moyen / jour", format_currency(k.avg_daily_revenue)],
            ["Dépenses totales", format_currency(k.total_expenses)],
            ["Écart de caisse cumulé", _signed(k.total_cash_difference)],
            ["Jours en excédent / en déficit", f"{k.positive_days} / {k.negative_days}"],
        ], [90 * mm, 70 * mm]),
        Paragraph("DÉTAIL JOURNALIER", styles["Section"]),
    ]
    story.append(_table(daily_detail_rows(data.daily_sheets), [40 * mm, 45 * mm, 45 * mm, 45 * mm]))

    if data.expenses_by_category:
        story += [Paragraph("DÉPENSES PAR CATÉGORIE", styles["Section"]), _expenses_table(data.expenses_by_category)]
    if data.top_products:
        story += [Paragraph("TOP PRODUITS", styles["Section"]), _top_products_table(data.top_products)]
    return _build(story)


def generate_annual_pdf(data: AnnualData, establishment_name: str) -> bytes:
    styles = _styles()
    k = data.kpis
    best = f"{k.best_month.month_name} ({format_currency(k.best_month.revenue)})" if k.best_month else "-"
    worst = f"{k.worst_month.month_name} ({format_currency(k.worst_month.revenue)})" if k.worst_month else "-"
    story = [
        Paragraph("RAVITO", styles["Brand"]),
        Paragraph(f"Établissement : {establishment_name}", styles["Meta"]),
        Paragraph(f"Bilan annuel {data.year}", styles["Meta"]),
        Paragraph("INDICATEURS", styles["Section"]),
        _table([
            ["Indicateur", "Valeur"],
            ["CA total", format_currency(k.total_revenue)],
            ["CA moyen / mois", format_currency(k.avg_monthly_revenue)],
            ["Meilleur mois", best],
            ["Mois le plus faible", worst],
            ["Dépenses totales", f"{format_currency(k.total_expenses)} ({k.expenses_ratio:.1f} % du CA)"],
            ["Marge brute", f"{format_currency(k.gross_margin)} ({k.margin_rate:.1f} %)"],
            ["Écart de caisse cumulé", _signed(k.total_cash_difference)],
            ["Mois en excédent / en déficit", f"{k.positive_months} / {k.negative_months}"],
            ["Jours travaillés", f"{k.total_days_worked} ({k.completion_rate:.1f} %)"],
        ], [90 * mm, 80 * mm]),
        Paragraph("DÉTAIL MENSUEL", styles["Section"]),
    ]
    rows = [["Mois", "CA", "Dépenses", "Marge", "Écart", "Jours"]]
    for m in data.monthly_data:
        rows.append([get_month_name(m.month), format_currency(m.revenue), format_currency(m.expenses),
                     format_currency(m.margin), _signed(m.cash_difference), str(m.days_worked)])
    rows.append(["TOTAL", format_currency(k.total_revenue), format_currency(k.total_expenses),
                 format_currency(k.gross_margin), _signed(k.total_cash_difference), str(k.total_days_worked)])
    story.append(_table(rows, [28 * mm, 32 * mm, 32 * mm, 32 * mm, 32 * mm, 16 * mm], bold_last=True))

    if data.expenses_by_category:
        story += [Paragraph("DÉPENSES PAR CATÉGORIE", styles["Section"]), _expenses_table(data.expenses_by_category)]
    if data.top_products:
        story += [Paragraph("TOP PRODUITS", styles["Section"]), _top_products_table(data.top_products)]
    return _build(story)

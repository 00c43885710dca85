"""
Monthly closure data: same shape of queries as the annual view, bounded to
one calendar month.
"""
import logging

from sqlalchemy.orm import Session

from ravito.core.activity_utils import days_in_month, get_month_name, month_bounds, previous_month
from ravito.models.daily_sheet import DailyExpense
from ravito.schemas.activity import ExpenseRow, MonthlyData, MonthlyKPIs, SheetRow
from ravito.services import closure_calculations as calc
from ravito.services.annual_service import top_products_for_sheets
from ravito.services.daily_sheet_service import list_closed_sheets

logger = logging.getLogger(__name__)


def _month_rows(db: Session, organization_id: int, year: int, month: int):
    start, end = month_bounds(year, month)
    return [SheetRow.model_validate(s) for s in list_closed_sheets(db, organization_id, start, end)]


def fetch_monthly_kpis(db: Session, organization_id: int, year: int, month: int) -> MonthlyKPIs:
    return calc.compute_monthly_kpis(_month_rows(db, organization_id, year, month), days_in_month(year, month))


def get_monthly_data(db: Session, organization_id: int, year: int, month: int) -> MonthlyData:
    if not 1 <= month <= 12:
        raise ValueError(f"Mois invalide: {month}")

    sheets = _month_rows(db, organization_id, year, month)
    kpis = calc.compute_monthly_kpis(sheets, days_in_month(year, month))
    prev_year, prev_month = previous_month(year, month)
    previous = fetch_monthly_kpis(db, organization_id, prev_year, prev_month)

    sheet_ids = [s.id for s in sheets]
    expenses_by_category = []
    top_products = []
    if sheet_ids:
        expenses = db.query(DailyExpense).filter(DailyExpense.daily_sheet_id.in_(sheet_ids)).all()
        expenses_by_category = calc.aggregate_expenses_by_category(ExpenseRow.model_validate(e) for e in expenses)
        top_products = top_products_for_sheets(
            db, organization_id, sheet_ids, calc.MONTHLY_TOP_PRODUCTS, "qty_sold"
        )

    logger.info("monthly data org=%s %s-%02d days=%s", organization_id, year, month, kpis.days_worked)
    return MonthlyData(
        year=year,
        month=month,
        month_name=get_month_name(month),
        kpis=kpis,
        previous_month_kpis=previous,
        expenses_by_category=expenses_by_category,
        top_products=top_products,
        daily_revenue=calc.daily_revenue_series(sheets),
        daily_sheets=sorted(sheets, key=lambda s: s.sheet_date, reverse=True),
    )

"""
Annual closure data.

Each fetch queries the closed sheets of the year and hands the rows to the
pure rollups in closure_calculations. Database errors are not caught here:
the whole aggregation fails and the route answers with a generic error.
"""
import logging
from typing import List

from sqlalchemy.orm import Session

from ravito.core.activity_utils import year_bounds
from ravito.models.daily_sheet import DailyExpense, DailyStockLine
from ravito.models.product import Product
from ravito.schemas.activity import (
    AnnualData,
    AnnualKPIs,
    ExpenseByCategory,
    ExpenseRow,
    MonthlyAnnualData,
    SheetRow,
    StockLineRow,
    TopProduct,
)
from ravito.services import closure_calculations as calc
from ravito.services.daily_sheet_service import get_selling_prices, list_closed_sheets

logger = logging.getLogger(__name__)


def _closed_sheet_rows(db: Session, organization_id: int, year: int) -> List[SheetRow]:
    start, end = year_bounds(year)
    return [SheetRow.model_validate(s) for s in list_closed_sheets(db, organization_id, start, end)]


def fetch_annual_kpis(db: Session, organization_id: int, year: int) -> AnnualKPIs:
    return calc.compute_annual_kpis(_closed_sheet_rows(db, organization_id, year), year)


def fetch_monthly_data(db: Session, organization_id: int, year: int) -> List[MonthlyAnnualData]:
    return calc.compute_monthly_annual_data(_closed_sheet_rows(db, organization_id, year))


def fetch_expenses_by_category(db: Session, organization_id: int, year: int) -> List[ExpenseByCategory]:
    sheet_ids = [s.id for s in _closed_sheet_rows(db, organization_id, year)]
    if not sheet_ids:
        return []
    expenses = db.query(DailyExpense).filter(DailyExpense.daily_sheet_id.in_(sheet_ids)).all()
    return calc.aggregate_expenses_by_category(ExpenseRow.model_validate(e) for e in expenses)


def fetch_top_products(db: Session, organization_id: int, year: int) -> List[TopProduct]:
    sheet_ids = [s.id for s in _closed_sheet_rows(db, organization_id, year)]
    if not sheet_ids:
        return []
    return top_products_for_sheets(db, organization_id, sheet_ids, calc.ANNUAL_TOP_PRODUCTS, "revenue")


def top_products_for_sheets(
    db: Session,
    organization_id: int,
    sheet_ids: List[int],
    limit: int,
    order_by: str,
) -> List[TopProduct]:
    rows = (
        db.query(DailyStockLine, Product.name)
        .join(Product, Product.id == DailyStockLine.product_id)
        .filter(
            DailyStockLine.daily_sheet_id.in_(sheet_ids),
            DailyStockLine.final_stock.isnot(None),
        )
        .order_by(DailyStockLine.id)
        .all()
    )
    names = {line.product_id: name for line, name in rows}
    lines = [StockLineRow.model_validate(line) for line, _ in rows]
    prices = get_selling_prices(db, organization_id)
    return calc.aggregate_top_products(lines, prices, names, limit, order_by)


def get_annual_data(db: Session, organization_id: int, year: int) -> AnnualData:
    """
    Everything the annual view needs, computed in one pass of queries.

    The previous year's KPIs are attached only when that year has data.
    """
    kpis = fetch_annual_kpis(db, organization_id, year)
    previous = fetch_annual_kpis(db, organization_id, year - 1)
    data = AnnualData(
        year=year,
        kpis=kpis,
        monthly_data=fetch_monthly_data(db, organization_id, year),
        expenses_by_category=fetch_expenses_by_category(db, organization_id, year),
        top_products=fetch_top_products(db, organization_id, year),
        previous_year_kpis=previous if previous.months_with_data > 0 else None,
    )
    logger.info("annual data org=%s year=%s months=%s", organization_id, year, kpis.months_with_data)
    return data

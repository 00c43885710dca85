"""
Pure computations for the daily closure and the monthly/annual rollups.

Every function here works on already-fetched rows (see ravito.schemas.activity)
and never touches the database, so the services can be thin query
orchestrators and the arithmetic can be tested in isolation.
"""
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional, Sequence, Set

from ravito.core.activity_utils import days_in_year, get_month_name
from ravito.schemas.activity import (
    AnnualKPIs,
    ClosingRequirements,
    DailyCalculations,
    DailyRevenuePoint,
    ExpenseByCategory,
    ExpenseRow,
    MonthlyAnnualData,
    MonthlyKPIs,
    MonthRevenue,
    PackagingAlert,
    PackagingCalculations,
    PackagingRow,
    SheetRow,
    StockAlert,
    StockCalculations,
    StockLineRow,
    TopProduct,
)

# Top-products list sizes
ANNUAL_TOP_PRODUCTS = 15
MONTHLY_TOP_PRODUCTS = 10


# ---------------------------------------------------------------------------
# Daily sheet
# ---------------------------------------------------------------------------

def calculate_stock_line(line: StockLineRow, selling_price: Optional[float]) -> StockCalculations:
    total_supply = line.ravito_supply + line.external_supply
    if line.final_stock is None:
        return StockCalculations(total_supply=total_supply)

    sales_qty = line.initial_stock + total_supply - line.final_stock
    revenue = sales_qty * selling_price if selling_price is not None else None
    return StockCalculations(total_supply=total_supply, sales_qty=sales_qty, revenue=revenue)


def calculate_packaging(row: PackagingRow) -> PackagingCalculations:
    total_start = row.qty_full_start + row.qty_empty_start
    total_end = None
    difference = None
    if row.qty_full_end is not None and row.qty_empty_end is not None:
        total_end = row.qty_full_end + row.qty_empty_end
        difference = total_end - total_start

    return PackagingCalculations(
        total_start=total_start,
        total_end=total_end,
        difference=difference,
        theoretical_full_end=row.qty_full_start + row.qty_received - row.qty_returned,
        theoretical_empty_end=row.qty_empty_start,
        has_discrepancy=difference not in (None, 0),
    )


def line_prices(lines: Iterable[StockLineRow], prices: Dict[int, float]) -> Dict[int, float]:
    """Current selling prices, overridden by the prices frozen on closed lines."""
    merged = dict(prices)
    for line in lines:
        if line.closed_price is not None:
            merged[line.product_id] = line.closed_price
    return merged


def compute_theoretical_revenue(lines: Iterable[StockLineRow], prices: Dict[int, float]) -> float:
    """
    Sum of sales_qty x selling price.

    Lines without a final stock, without a positive sales quantity or without
    a known selling price contribute nothing.
    """
    total = 0.0
    for line in lines:
        if line.final_stock is None:
            continue
        price = prices.get(line.product_id)
        if price is None:
            continue
        sales_qty = line.initial_stock + line.ravito_supply + line.external_supply - line.final_stock
        if sales_qty > 0:
            total += sales_qty * price
    return total


def expected_cash(sheet: SheetRow, total_revenue: float, total_expenses: float) -> float:
    return sheet.opening_cash + total_revenue - total_expenses


def effective_cash_difference(sheet: SheetRow, expected: Optional[float] = None) -> float:
    """
    Stored cash difference, recomputed for legacy rows that lack it.

    ``expected`` defaults to opening + theoretical revenue - expenses as stored
    on the sheet.
    """
    if sheet.cash_difference is not None:
        return sheet.cash_difference
    if sheet.closing_cash is None:
        return 0.0
    if expected is None:
        expected = expected_cash(sheet, sheet.theoretical_revenue, sheet.expenses_total)
    return sheet.closing_cash - expected


def compute_daily_calculations(
    sheet: SheetRow,
    lines: Sequence[StockLineRow],
    packaging: Sequence[PackagingRow],
    expenses: Sequence[ExpenseRow],
    prices: Dict[int, float],
    min_stocks: Dict[int, int],
    names: Optional[Dict[int, str]] = None,
    frozen: bool = False,
) -> DailyCalculations:
    """
    Cash expectation plus the non-blocking stock and crate alerts.

    A ``frozen`` sheet keeps the revenue and expenses stored when it was closed.
    """
    names = names or {}
    if frozen:
        total_revenue = sheet.theoretical_revenue
        total_expenses = sheet.expenses_total
    else:
        total_revenue = compute_theoretical_revenue(lines, prices)
        total_expenses = sum(e.amount for e in expenses)
    expected = expected_cash(sheet, total_revenue, total_expenses)

    stock_alerts = []
    for line in lines:
        min_stock = min_stocks.get(line.product_id, 0)
        if line.final_stock is not None and min_stock > 0 and line.final_stock < min_stock:
            stock_alerts.append(StockAlert(
                product_id=line.product_id,
                product_name=names.get(line.product_id, f"Produit #{line.product_id}"),
                current_stock=line.final_stock,
                min_stock=min_stock,
            ))

    packaging_alerts = []
    for row in packaging:
        calc = calculate_packaging(row)
        if calc.has_discrepancy:
            packaging_alerts.append(PackagingAlert(
                crate_type=row.crate_type,
                difference=calc.difference,
                message=f"{row.crate_type}: Écart de {abs(calc.difference)} casier(s)",
            ))

    return DailyCalculations(
        total_revenue=total_revenue,
        total_expenses=total_expenses,
        expected_cash=expected,
        cash_difference=effective_cash_difference(sheet, expected),
        stock_alerts=stock_alerts,
        packaging_alerts=packaging_alerts,
    )


def closing_requirements(
    lines: Sequence[StockLineRow],
    packaging: Sequence[PackagingRow],
    consignable_codes: Set[str],
) -> ClosingRequirements:
    missing_final_stocks = sum(1 for line in lines if line.final_stock is None)
    missing_packaging = sum(
        1 for row in packaging
        if row.crate_type in consignable_codes and (row.qty_full_end is None or row.qty_empty_end is None)
    )

    messages = []
    if missing_final_stocks:
        messages.append(f"{missing_final_stocks} stock(s) final(finaux) manquant(s)")
    if missing_packaging:
        messages.append(f"{missing_packaging} comptage(s) de casiers manquant(s)")

    return ClosingRequirements(
        missing_final_stocks=missing_final_stocks,
        missing_packaging=missing_packaging,
        can_close=not messages,
        missing_messages=messages,
    )


# ---------------------------------------------------------------------------
# Monthly
# ---------------------------------------------------------------------------

def compute_monthly_kpis(sheets: Sequence[SheetRow], total_days: int) -> MonthlyKPIs:
    days_worked = len(sheets)
    total_revenue = sum(s.theoretical_revenue for s in sheets)
    total_expenses = sum(s.expenses_total for s in sheets)
    differences = [effective_cash_difference(s) for s in sheets]
    total_cash_difference = sum(differences)

    return MonthlyKPIs(
        days_worked=days_worked,
        total_revenue=total_revenue,
        avg_daily_revenue=total_revenue / days_worked if days_worked else 0,
        total_expenses=total_expenses,
        total_cash_difference=total_cash_difference,
        avg_cash_difference=total_cash_difference / days_worked if days_worked else 0,
        negative_days=sum(1 for d in differences if d < 0),
        positive_days=sum(1 for d in differences if d > 0),
        days_incomplete=total_days - days_worked,
        completion_rate=days_worked / total_days * 100 if total_days else 0,
    )


def daily_revenue_series(sheets: Iterable[SheetRow]) -> List[DailyRevenuePoint]:
    ordered = sorted(sheets, key=lambda s: s.sheet_date)
    return [DailyRevenuePoint(date=s.sheet_date, revenue=s.theoretical_revenue) for s in ordered]


# ---------------------------------------------------------------------------
# Annual
# ---------------------------------------------------------------------------

def _revenue_by_month(sheets: Iterable[SheetRow]) -> "OrderedDict[int, float]":
    # Keeps the order in which months first appear in the rows
    revenues: "OrderedDict[int, float]" = OrderedDict()
    for sheet in sheets:
        month = sheet.sheet_date.month
        revenues[month] = revenues.get(month, 0.0) + sheet.theoretical_revenue
    return revenues


def compute_annual_kpis(sheets: Sequence[SheetRow], year: int) -> AnnualKPIs:
    """
    Year totals and averages over the months that have at least one closed day.

    Best and worst months come from a stable descending sort of the monthly
    revenues: on ties the best month is the first to appear and the worst
    month the last one.
    """
    revenues = _revenue_by_month(sheets)
    months_with_data = len(revenues)

    total_revenue = sum(s.theoretical_revenue for s in sheets)
    total_expenses = sum(s.expenses_total for s in sheets)
    total_cash_difference = sum(effective_cash_difference(s) for s in sheets)

    cash_by_month: Dict[int, float] = {}
    for sheet in sheets:
        month = sheet.sheet_date.month
        cash_by_month[month] = cash_by_month.get(month, 0.0) + effective_cash_difference(sheet)
    negative_months = sum(1 for month in revenues if cash_by_month[month] < 0)

    best_month = worst_month = None
    if revenues:
        ranked = sorted(revenues.items(), key=lambda item: -item[1])
        best, worst = ranked[0], ranked[-1]
        best_month = MonthRevenue(month=best[0], month_name=get_month_name(best[0]), revenue=best[1])
        worst_month = MonthRevenue(month=worst[0], month_name=get_month_name(worst[0]), revenue=worst[1])

    gross_margin = total_revenue - total_expenses
    total_days_worked = len(sheets)

    return AnnualKPIs(
        total_revenue=total_revenue,
        avg_monthly_revenue=total_revenue / months_with_data if months_with_data else 0,
        best_month=best_month,
        worst_month=worst_month,
        total_expenses=total_expenses,
        avg_monthly_expenses=total_expenses / months_with_data if months_with_data else 0,
        expenses_ratio=total_expenses / total_revenue * 100 if total_revenue > 0 else 0,
        total_cash_difference=total_cash_difference,
        avg_monthly_cash_difference=total_cash_difference / months_with_data if months_with_data else 0,
        negative_months=negative_months,
        positive_months=months_with_data - negative_months,
        gross_margin=gross_margin,
        margin_rate=gross_margin / total_revenue * 100 if total_revenue > 0 else 0,
        total_days_worked=total_days_worked,
        completion_rate=total_days_worked / days_in_year(year) * 100,
        months_with_data=months_with_data,
    )


def compute_monthly_annual_data(sheets: Iterable[SheetRow]) -> List[MonthlyAnnualData]:
    """Always twelve rows, January first; empty months are zeros."""
    rows = {month: MonthlyAnnualData(month=month, month_name=get_month_name(month)) for month in range(1, 13)}
    for sheet in sheets:
        row = rows[sheet.sheet_date.month]
        row.revenue += sheet.theoretical_revenue
        row.expenses += sheet.expenses_total
        row.cash_difference += effective_cash_difference(sheet)
        row.days_worked += 1
    for row in rows.values():
        row.margin = row.revenue - row.expenses
    return [rows[month] for month in range(1, 13)]


# ---------------------------------------------------------------------------
# Shared breakdowns
# ---------------------------------------------------------------------------

def aggregate_expenses_by_category(expenses: Iterable[ExpenseRow]) -> List[ExpenseByCategory]:
    totals: Dict[str, float] = {}
    for expense in expenses:
        totals[expense.category] = totals.get(expense.category, 0.0) + expense.amount
    result = [ExpenseByCategory(category=category, total=total) for category, total in totals.items()]
    return sorted(result, key=lambda e: -e.total)


def aggregate_top_products(
    lines: Iterable[StockLineRow],
    prices: Dict[int, float],
    names: Dict[int, str],
    limit: int,
    order_by: str = "revenue",
) -> List[TopProduct]:
    """
    Quantities sold and revenue per product over counted stock lines.

    ``order_by`` is ``"revenue"`` (annual view) or ``"qty_sold"`` (monthly view).
    Unknown selling prices count as 0.
    """
    if order_by not in ("revenue", "qty_sold"):
        raise ValueError(f"Critère de tri invalide: {order_by}")

    products: "OrderedDict[int, TopProduct]" = OrderedDict()
    for line in lines:
        if line.final_stock is None:
            continue
        qty_sold = line.initial_stock + line.ravito_supply + line.external_supply - line.final_stock
        revenue = qty_sold * prices.get(line.product_id, 0)
        current = products.get(line.product_id)
        if current is None:
            products[line.product_id] = TopProduct(
                product_id=line.product_id,
                name=names.get(line.product_id, "Inconnu"),
                qty_sold=qty_sold,
                revenue=revenue,
            )
        else:
            current.qty_sold += qty_sold
            current.revenue += revenue

    ranked = sorted(products.values(), key=lambda p: -getattr(p, order_by))
    return ranked[:limit]

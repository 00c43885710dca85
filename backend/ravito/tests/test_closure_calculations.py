from datetime import date

import pytest

from ravito.schemas.activity import ExpenseRow, PackagingRow, SheetRow, StockLineRow
from ravito.services import closure_calculations as calc


def sheet(day, revenue=0, expenses=0, difference=None, opening=0, closing=None, id=1):
    return SheetRow(
        id=id,
        sheet_date=day,
        status='closed',
        opening_cash=opening,
        closing_cash=closing,
        theoretical_revenue=revenue,
        expenses_total=expenses,
        cash_difference=difference,
    )


def line(product_id, initial=0, ravito=0, external=0, final=None, id=1):
    return StockLineRow(
        id=id,
        product_id=product_id,
        initial_stock=initial,
        ravito_supply=ravito,
        external_supply=external,
        final_stock=final,
    )


def crate(code, full_start=0, empty_start=0, received=0, returned=0, full_end=None, empty_end=None):
    return PackagingRow(
        id=1,
        crate_type=code,
        qty_full_start=full_start,
        qty_empty_start=empty_start,
        qty_received=received,
        qty_returned=returned,
        qty_full_end=full_end,
        qty_empty_end=empty_end,
    )


# Daily sheet

def test_stock_line_without_final_stock():
    result = calc.calculate_stock_line(line(1, initial=10, ravito=5, external=2), 1000)
    assert result.total_supply == 7
    assert result.sales_qty is None
    assert result.revenue is None


def test_stock_line_sales_and_revenue():
    result = calc.calculate_stock_line(line(1, initial=10, ravito=5, external=2, final=4), 1500)
    assert result.sales_qty == 13
    assert result.revenue == 19500
    assert calc.calculate_stock_line(line(1, initial=10, final=4), None).revenue is None


def test_packaging_difference_only_when_both_counts_present():
    partial = calc.calculate_packaging(crate('B33', full_start=10, empty_start=5, full_end=8))
    assert partial.total_start == 15
    assert partial.total_end is None
    assert partial.difference is None
    assert not partial.has_discrepancy

    counted = calc.calculate_packaging(crate('B33', 10, 5, received=4, returned=1, full_end=8, empty_end=5))
    assert counted.total_end == 13
    assert counted.difference == -2
    assert counted.has_discrepancy
    assert counted.theoretical_full_end == 13
    assert counted.theoretical_empty_end == 5


def test_theoretical_revenue_skips_uncounted_unpriced_and_negative_lines():
    lines = [
        line(1, initial=10, final=6),  # 4 sold
        line(2, initial=10),  # not counted
        line(3, initial=5, final=5),  # nothing sold
        line(4, initial=2, final=3),  # negative sales
        line(5, initial=8, final=0),  # no price
    ]
    prices = {1: 1000, 2: 500, 3: 700, 4: 900}
    assert calc.compute_theoretical_revenue(lines, prices) == 4000


def test_daily_calculations_and_alerts():
    row = sheet(date(2025, 3, 3), opening=20000)
    lines = [line(1, initial=24, ravito=24, final=10), line(2, initial=12, final=12)]
    packaging = [crate('B33', 10, 2, full_end=9, empty_end=2), crate('B65', 3, 3, full_end=3, empty_end=3)]
    expenses = [
        ExpenseRow(id=1, label='Glace', amount=2500, category='food'),
        ExpenseRow(id=2, label='Taxi', amount=1500, category='transport'),
    ]
    result = calc.compute_daily_calculations(
        row, lines, packaging, expenses, {1: 1000, 2: 1200}, {1: 12, 2: 0}, {1: 'Flag 33cl'}
    )
    assert result.total_revenue == 38000
    assert result.total_expenses == 4000
    assert result.expected_cash == 54000
    assert result.cash_difference == 0
    assert [a.product_name for a in result.stock_alerts] == ['Flag 33cl']
    assert len(result.packaging_alerts) == 1
    assert result.packaging_alerts[0].message == 'B33: Écart de 1 casier(s)'


def test_frozen_sheet_keeps_stored_totals():
    row = sheet(date(2025, 3, 3), revenue=45000, expenses=5000, opening=20000, closing=59000, difference=-1000)
    lines = [line(1, initial=10, final=7)]
    expenses = [ExpenseRow(id=1, label='Glace', amount=9999, category='food')]
    result = calc.compute_daily_calculations(row, lines, [], expenses, {1: 30000}, {}, frozen=True)
    assert result.total_revenue == 45000
    assert result.total_expenses == 5000
    assert result.expected_cash == 60000
    assert result.cash_difference == -1000


def test_line_prices_prefer_closed_prices():
    closed = StockLineRow(id=1, product_id=1, final_stock=0, closed_price=15000)
    prices = calc.line_prices([closed, line(2)], {1: 30000, 2: 500})
    assert prices == {1: 15000, 2: 500}


def test_effective_cash_difference():
    assert calc.effective_cash_difference(sheet(date(2025, 1, 2), difference=-500)) == -500
    legacy = sheet(date(2025, 1, 2), revenue=10000, expenses=1000, opening=5000, closing=13500)
    assert calc.effective_cash_difference(legacy) == -500
    assert calc.effective_cash_difference(sheet(date(2025, 1, 2))) == 0


def test_closing_requirements():
    lines = [line(1, final=3), line(2), line(3)]
    packaging = [crate('B33', full_end=1, empty_end=1), crate('B65', full_end=2), crate('CARTON24')]
    result = calc.closing_requirements(lines, packaging, {'B33', 'B65'})
    assert result.missing_final_stocks == 2
    assert result.missing_packaging == 1
    assert not result.can_close
    assert result.missing_messages == [
        '2 stock(s) final(finaux) manquant(s)',
        '1 comptage(s) de casiers manquant(s)',
    ]

    complete = calc.closing_requirements([line(1, final=3)], [crate('CARTON24')], {'B33'})
    assert complete.can_close
    assert complete.missing_messages == []


# Monthly

def test_monthly_kpis():
    sheets = [
        sheet(date(2025, 2, 1), revenue=50000, expenses=5000, difference=1000),
        sheet(date(2025, 2, 2), revenue=30000, expenses=3000, difference=-2000),
        sheet(date(2025, 2, 3), revenue=10000, expenses=1000, difference=0),
    ]
    kpis = calc.compute_monthly_kpis(sheets, 28)
    assert kpis.days_worked == 3
    assert kpis.total_revenue == 90000
    assert kpis.avg_daily_revenue == 30000
    assert kpis.total_expenses == 9000
    assert kpis.total_cash_difference == -1000
    assert kpis.positive_days == 1
    assert kpis.negative_days == 1
    assert kpis.days_incomplete == 25
    assert kpis.completion_rate == pytest.approx(3 / 28 * 100)


def test_monthly_kpis_empty_month():
    kpis = calc.compute_monthly_kpis([], 31)
    assert kpis.days_worked == 0
    assert kpis.avg_daily_revenue == 0
    assert kpis.completion_rate == 0


def test_daily_revenue_series_is_ascending():
    series = calc.daily_revenue_series([
        sheet(date(2025, 2, 3), revenue=3),
        sheet(date(2025, 2, 1), revenue=1),
    ])
    assert [p.date.day for p in series] == [1, 3]


# Annual

def test_annual_march_april_example():
    sheets = [
        sheet(date(2025, 3, 1), revenue=50000),
        sheet(date(2025, 3, 2), revenue=30000),
        sheet(date(2025, 4, 1), revenue=20000),
    ]
    kpis = calc.compute_annual_kpis(sheets, 2025)
    assert kpis.total_revenue == 100000
    assert kpis.best_month.month == 3
    assert kpis.best_month.month_name == 'mars'
    assert kpis.best_month.revenue == 80000
    assert kpis.worst_month.month == 4
    assert kpis.worst_month.revenue == 20000
    assert kpis.avg_monthly_revenue == 50000
    assert kpis.months_with_data == 2


def test_annual_zero_sheets():
    kpis = calc.compute_annual_kpis([], 2025)
    assert kpis.months_with_data == 0
    assert kpis.best_month is None
    assert kpis.worst_month is None
    assert kpis.avg_monthly_revenue == 0
    assert kpis.avg_monthly_expenses == 0
    assert kpis.avg_monthly_cash_difference == 0
    assert kpis.margin_rate == 0
    assert kpis.expenses_ratio == 0


def test_annual_completion_rate_uses_leap_years():
    sheets = [sheet(date(2024, 1, d), revenue=1) for d in range(1, 4)]
    assert calc.compute_annual_kpis(sheets, 2024).completion_rate == pytest.approx(3 / 366 * 100)
    sheets = [sheet(date(2023, 1, d), revenue=1) for d in range(1, 4)]
    assert calc.compute_annual_kpis(sheets, 2023).completion_rate == pytest.approx(3 / 365 * 100)


def test_annual_ties_keep_first_appearance():
    sheets = [
        sheet(date(2025, 5, 1), revenue=1000),
        sheet(date(2025, 2, 1), revenue=1000),
        sheet(date(2025, 9, 1), revenue=1000),
    ]
    kpis = calc.compute_annual_kpis(sheets, 2025)
    assert kpis.best_month.month == 5
    assert kpis.worst_month.month == 9


def test_annual_margin_and_month_signs():
    sheets = [
        sheet(date(2025, 1, 1), revenue=100000, expenses=20000, difference=-3000),
        sheet(date(2025, 1, 2), revenue=50000, expenses=10000, difference=1000),
        sheet(date(2025, 2, 1), revenue=50000, expenses=10000, difference=500),
    ]
    kpis = calc.compute_annual_kpis(sheets, 2025)
    assert kpis.gross_margin == 160000
    assert kpis.margin_rate == pytest.approx(80)
    assert kpis.expenses_ratio == pytest.approx(20)
    assert kpis.negative_months == 1
    assert kpis.positive_months == 1
    assert kpis.total_cash_difference == -1500


def test_monthly_annual_data_has_twelve_rows():
    rows = calc.compute_monthly_annual_data([
        sheet(date(2025, 3, 1), revenue=50000, expenses=5000, difference=-100),
        sheet(date(2025, 3, 2), revenue=30000, expenses=5000),
    ])
    assert [r.month for r in rows] == list(range(1, 13))
    march = rows[2]
    assert march.revenue == 80000
    assert march.margin == 70000
    assert march.cash_difference == -100
    assert march.days_worked == 2
    assert rows[0].revenue == 0
    assert rows[0].days_worked == 0


def test_expenses_by_category_sorted_descending():
    result = calc.aggregate_expenses_by_category([
        ExpenseRow(id=1, label='a', amount=500, category='food'),
        ExpenseRow(id=2, label='b', amount=3000, category='transport'),
        ExpenseRow(id=3, label='c', amount=1000, category='food'),
    ])
    assert [(e.category, e.total) for e in result] == [('transport', 3000), ('food', 1500)]


def test_top_products():
    lines = [
        line(1, initial=10, ravito=0, final=5),  # 5 sold
        line(1, initial=5, external=5, final=6),  # 4 sold
        line(2, initial=20, final=0),  # 20 sold
        line(3, initial=3),  # not counted
        line(4, initial=4, final=0),  # no price
    ]
    prices = {1: 2000, 2: 500}
    names = {1: 'Flag 65cl', 2: 'Coca 30cl', 4: 'Awoyo'}

    by_revenue = calc.aggregate_top_products(lines, prices, names, limit=15)
    assert [(p.product_id, p.qty_sold, p.revenue) for p in by_revenue] == [
        (1, 9, 18000),
        (2, 20, 10000),
        (4, 4, 0),
    ]

    by_qty = calc.aggregate_top_products(lines, prices, names, limit=2, order_by='qty_sold')
    assert [p.name for p in by_qty] == ['Coca 30cl', 'Flag 65cl']

    with pytest.raises(ValueError):
        calc.aggregate_top_products(lines, prices, names, limit=5, order_by='name')

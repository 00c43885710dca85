# schemas/activity.py
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field


# Rows read from the database (daily sheet and children)

class SheetRow(BaseModel):
    id: int
    sheet_date: date
    status: str = "open"
    opening_cash: float = 0
    closing_cash: Optional[float] = None
    theoretical_revenue: float = 0
    expenses_total: float = 0
    cash_difference: Optional[float] = None
    credit_sales: float = 0
    credit_payments: float = 0
    credit_balance_eod: Optional[float] = None
    notes: Optional[str] = None
    closed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StockLineRow(BaseModel):
    id: int
    product_id: int
    initial_stock: int = 0
    ravito_supply: int = 0
    external_supply: int = 0
    final_stock: Optional[int] = None
    closed_price: Optional[float] = None

    class Config:
        from_attributes = True


class PackagingRow(BaseModel):
    id: int
    crate_type: str
    qty_full_start: int = 0
    qty_empty_start: int = 0
    qty_received: int = 0
    qty_returned: int = 0
    qty_consignes_paid: int = 0
    qty_full_end: Optional[int] = None
    qty_empty_end: Optional[int] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class ExpenseRow(BaseModel):
    id: int
    label: str
    amount: float
    category: str

    class Config:
        from_attributes = True


# Per-row computations

class StockCalculations(BaseModel):
    total_supply: int
    sales_qty: Optional[int] = None  # None until the final stock is counted
    revenue: Optional[float] = None


class PackagingCalculations(BaseModel):
    total_start: int
    total_end: Optional[int] = None
    difference: Optional[int] = None
    theoretical_full_end: int
    theoretical_empty_end: int
    has_discrepancy: bool = False


class StockLineView(StockLineRow):
    product_name: str
    selling_price: Optional[float] = None
    min_stock_alert: int = 0
    calculations: StockCalculations


class PackagingView(PackagingRow):
    crate_label: Optional[str] = None
    is_consignable: bool = True
    calculations: PackagingCalculations


# Alerts and closing checks

class StockAlert(BaseModel):
    product_id: int
    product_name: str
    current_stock: int
    min_stock: int


class PackagingAlert(BaseModel):
    crate_type: str
    difference: int
    message: str


class DailyCalculations(BaseModel):
    total_revenue: float
    total_expenses: float
    expected_cash: float
    cash_difference: float
    stock_alerts: List[StockAlert] = Field(default_factory=list)
    packaging_alerts: List[PackagingAlert] = Field(default_factory=list)


class ClosingRequirements(BaseModel):
    missing_final_stocks: int = 0
    missing_packaging: int = 0
    can_close: bool = True
    missing_messages: List[str] = Field(default_factory=list)


class DailySummary(BaseModel):
    sheet: SheetRow
    stock_lines: List[StockLineView]
    packaging: List[PackagingView]
    expenses: List[ExpenseRow]
    calculations: DailyCalculations
    requirements: ClosingRequirements


# Monthly and annual rollups

class ExpenseByCategory(BaseModel):
    category: str
    total: float


class TopProduct(BaseModel):
    product_id: int
    name: str
    qty_sold: int
    revenue: float


class DailyRevenuePoint(BaseModel):
    date: date
    revenue: float


class MonthlyKPIs(BaseModel):
    days_worked: int = 0
    total_revenue: float = 0
    avg_daily_revenue: float = 0
    total_expenses: float = 0
    total_cash_difference: float = 0
    avg_cash_difference: float = 0
    negative_days: int = 0
    positive_days: int = 0
    days_incomplete: int = 0
    completion_rate: float = 0


class MonthlyData(BaseModel):
    year: int
    month: int
    month_name: str
    kpis: MonthlyKPIs
    previous_month_kpis: Optional[MonthlyKPIs] = None
    expenses_by_category: List[ExpenseByCategory]
    top_products: List[TopProduct]
    daily_revenue: List[DailyRevenuePoint]
    daily_sheets: List[SheetRow]


class MonthRevenue(BaseModel):
    month: int
    month_name: str
    revenue: float


class AnnualKPIs(BaseModel):
    total_revenue: float = 0
    avg_monthly_revenue: float = 0
    best_month: Optional[MonthRevenue] = None
    worst_month: Optional[MonthRevenue] = None
    total_expenses: float = 0
    avg_monthly_expenses: float = 0
    expenses_ratio: float = 0
    total_cash_difference: float = 0
    avg_monthly_cash_difference: float = 0
    negative_months: int = 0
    positive_months: int = 0
    gross_margin: float = 0
    margin_rate: float = 0
    total_days_worked: int = 0
    completion_rate: float = 0
    months_with_data: int = 0


class MonthlyAnnualData(BaseModel):
    month: int
    month_name: str
    revenue: float = 0
    expenses: float = 0
    margin: float = 0
    cash_difference: float = 0
    days_worked: int = 0


class AnnualData(BaseModel):
    year: int
    kpis: AnnualKPIs
    monthly_data: List[MonthlyAnnualData]
    expenses_by_category: List[ExpenseByCategory]
    top_products: List[TopProduct]
    previous_year_kpis: Optional[AnnualKPIs] = None

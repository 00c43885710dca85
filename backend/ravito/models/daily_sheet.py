from datetime import datetime
from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, UniqueConstraint, Date, DateTime, Text
from sqlalchemy.orm import relationship

from ravito.models.organization import Base


class DailySheet(Base):
    """One business day of an establishment: stocks, crates, expenses and cash."""
    __tablename__ = "daily_sheets"
    __table_args__ = (
        UniqueConstraint("organization_id", "sheet_date", name="uq_daily_sheets_org_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    sheet_date = Column(Date, nullable=False, index=True)
    status = Column(String(10), nullable=False, default="open")  # open | closed

    opening_cash = Column(Numeric(14, 2), nullable=False, default=0)
    closing_cash = Column(Numeric(14, 2), nullable=True)
    theoretical_revenue = Column(Numeric(14, 2), nullable=False, default=0)
    cash_difference = Column(Numeric(14, 2), nullable=True)
    expenses_total = Column(Numeric(14, 2), nullable=False, default=0)

    credit_sales = Column(Numeric(14, 2), nullable=False, default=0)
    credit_payments = Column(Numeric(14, 2), nullable=False, default=0)
    credit_balance_eod = Column(Numeric(14, 2), nullable=True)

    notes = Column(Text, nullable=True)
    closed_at = Column(DateTime, nullable=True)
    closed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    stock_lines = relationship("DailyStockLine", back_populates="sheet", cascade="all, delete-orphan")
    packaging = relationship("DailyPackaging", back_populates="sheet", cascade="all, delete-orphan")
    expenses = relationship("DailyExpense", back_populates="sheet", cascade="all, delete-orphan")

    @property
    def is_closed(self) -> bool:
        return self.status == "closed"


class DailyStockLine(Base):
    __tablename__ = "daily_stock_lines"
    __table_args__ = (
        UniqueConstraint("daily_sheet_id", "product_id", name="uq_daily_stock_lines_sheet_product"),
    )

    id = Column(Integer, primary_key=True, index=True)
    daily_sheet_id = Column(Integer, ForeignKey("daily_sheets.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    initial_stock = Column(Integer, nullable=False, default=0)
    ravito_supply = Column(Integer, nullable=False, default=0)  # delivered marketplace orders
    external_supply = Column(Integer, nullable=False, default=0)  # purchases outside the marketplace
    final_stock = Column(Integer, nullable=True)  # counted at night
    closed_price = Column(Numeric(12, 2), nullable=True)  # selling price frozen at closing
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    sheet = relationship("DailySheet", back_populates="stock_lines")
    product = relationship("Product")


class DailyPackaging(Base):
    __tablename__ = "daily_packaging"
    __table_args__ = (
        UniqueConstraint("daily_sheet_id", "crate_type", name="uq_daily_packaging_sheet_crate"),
    )

    id = Column(Integer, primary_key=True, index=True)
    daily_sheet_id = Column(Integer, ForeignKey("daily_sheets.id", ondelete="CASCADE"), nullable=False, index=True)
    crate_type = Column(String(20), nullable=False)
    qty_full_start = Column(Integer, nullable=False, default=0)
    qty_empty_start = Column(Integer, nullable=False, default=0)
    qty_received = Column(Integer, nullable=False, default=0)
    qty_returned = Column(Integer, nullable=False, default=0)
    qty_consignes_paid = Column(Integer, nullable=False, default=0)
    qty_full_end = Column(Integer, nullable=True)
    qty_empty_end = Column(Integer, nullable=True)
    notes = Column(String(500), nullable=True)  # casse, vol, perte...

    sheet = relationship("DailySheet", back_populates="packaging")


class DailyExpense(Base):
    __tablename__ = "daily_expenses"

    id = Column(Integer, primary_key=True, index=True)
    daily_sheet_id = Column(Integer, ForeignKey("daily_sheets.id", ondelete="CASCADE"), nullable=False, index=True)
    label = Column(String(255), nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    category = Column(String(20), nullable=False, default="other")  # food | transport | utilities | other
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    sheet = relationship("DailySheet", back_populates="expenses")

from datetime import datetime
from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, Date, Text
from sqlalchemy.orm import relationship

from ravito.models.organization import Base


class CreditCustomer(Base):
    """Regular patron allowed to consume on credit."""
    __tablename__ = "credit_customers"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)
    address = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)

    credit_limit = Column(Numeric(14, 2), nullable=False, default=0)  # 0 = illimité
    current_balance = Column(Numeric(14, 2), nullable=False, default=0)
    total_credited = Column(Numeric(14, 2), nullable=False, default=0)
    total_paid = Column(Numeric(14, 2), nullable=False, default=0)

    status = Column(String(20), nullable=False, default="active")  # active | frozen | disabled
    freeze_reason = Column(String(500), nullable=True)
    frozen_at = Column(DateTime, nullable=True)
    last_payment_date = Column(Date, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    transactions = relationship("CreditTransaction", back_populates="customer")


class CreditTransaction(Base):
    __tablename__ = "credit_transactions"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("credit_customers.id", ondelete="CASCADE"), nullable=False, index=True)
    daily_sheet_id = Column(Integer, ForeignKey("daily_sheets.id", ondelete="SET NULL"), nullable=True, index=True)
    transaction_type = Column(String(20), nullable=False)  # consumption | payment
    amount = Column(Numeric(14, 2), nullable=False)  # always positive
    payment_method = Column(String(20), nullable=True)  # cash | mobile_money | transfer
    notes = Column(Text, nullable=True)
    transaction_date = Column(Date, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    customer = relationship("CreditCustomer", back_populates="transactions")
    items = relationship("CreditTransactionItem", back_populates="transaction", cascade="all, delete-orphan")


class CreditTransactionItem(Base):
    __tablename__ = "credit_transaction_items"

    id = Column(Integer, primary_key=True, index=True)
    transaction_id = Column(Integer, ForeignKey("credit_transactions.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    product_name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    subtotal = Column(Numeric(14, 2), nullable=False)

    transaction = relationship("CreditTransaction", back_populates="items")

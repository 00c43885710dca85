from datetime import datetime
from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, UniqueConstraint, Boolean, DateTime, Text
from sqlalchemy.orm import relationship

from ravito.models.organization import Base


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint("organization_id", "order_number", name="uq_orders_org_number"),
    )

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(20), nullable=False, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    supplier_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    zone_id = Column(Integer, ForeignKey("zones.id"), nullable=True, index=True)

    status = Column(String(30), nullable=False, default="pending", index=True)
    delivery_address = Column(String(500), nullable=False)
    payment_method = Column(String(30), nullable=False, default="cash")

    subtotal = Column(Numeric(14, 2), nullable=False, default=0)
    consigne_total = Column(Numeric(14, 2), nullable=False, default=0)
    total_amount = Column(Numeric(14, 2), nullable=False, default=0)
    client_commission = Column(Numeric(14, 2), nullable=False, default=0)
    supplier_commission = Column(Numeric(14, 2), nullable=False, default=0)
    net_supplier_amount = Column(Numeric(14, 2), nullable=False, default=0)

    paid_at = Column(DateTime, nullable=True)
    delivered_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    offers = relationship("SupplierOffer", back_populates="order", cascade="all, delete-orphan")
    client = relationship("User", foreign_keys=[client_id])
    supplier = relationship("User", foreign_keys=[supplier_id])
    zone = relationship("Zone")


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    with_consigne = Column(Boolean, nullable=False, default=False)
    crate_price = Column(Numeric(12, 2), nullable=False)
    consign_price = Column(Numeric(12, 2), nullable=False, default=0)
    subtotal = Column(Numeric(14, 2), nullable=False)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")


class SupplierOffer(Base):
    __tablename__ = "supplier_offers"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    supplier_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="pending")  # pending | accepted | rejected
    total_amount = Column(Numeric(14, 2), nullable=False)
    delivery_time_minutes = Column(Integer, nullable=True)
    message = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    order = relationship("Order", back_populates="offers")
    supplier = relationship("User")


class Rating(Base):
    __tablename__ = "ratings"
    __table_args__ = (
        UniqueConstraint("order_id", "rater_id", name="uq_ratings_order_rater"),
    )

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    rater_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    rated_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    score = Column(Integer, nullable=False)  # 1..5
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

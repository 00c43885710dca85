from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, UniqueConstraint, Boolean, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime

from ravito.models.organization import Base


class Product(Base):
    """Global beverage catalog, managed by admins."""
    __tablename__ = "products"
    __table_args__ = (
        UniqueConstraint("reference", name="uq_products_reference"),
    )

    id = Column(Integer, primary_key=True, index=True)
    reference = Column(String(100), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    category = Column(String(50), nullable=False, index=True)  # biere, soda, vin, eau, spiritueux
    brand = Column(String(100), nullable=True)
    crate_type = Column(String(20), nullable=False)  # CrateType.code
    unit = Column(String(50), nullable=False, default="casier")
    volume = Column(String(50), nullable=True)
    crate_price = Column(Numeric(12, 2), nullable=False, default=0)
    consign_price = Column(Numeric(12, 2), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class EstablishmentProduct(Base):
    """Selling price and stock alert of a catalog product inside one establishment."""
    __tablename__ = "establishment_products"
    __table_args__ = (
        UniqueConstraint("organization_id", "product_id", name="uq_establishment_products_org_product"),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    selling_price = Column(Numeric(12, 2), nullable=False, default=0)
    min_stock_alert = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    product = relationship("Product")

from datetime import datetime
from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint, Boolean, DateTime, Text
from sqlalchemy.orm import relationship

from ravito.models.organization import Base


class Zone(Base):
    __tablename__ = "zones"
    __table_args__ = (UniqueConstraint("name", name="uq_zones_name"),)

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class SupplierZone(Base):
    """Delivery zone a supplier has been approved for."""
    __tablename__ = "supplier_zones"
    __table_args__ = (
        UniqueConstraint("supplier_id", "zone_id", name="uq_supplier_zones_supplier_zone"),
    )

    id = Column(Integer, primary_key=True, index=True)
    supplier_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    zone_id = Column(Integer, ForeignKey("zones.id", ondelete="CASCADE"), nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    approved_at = Column(DateTime, nullable=True)

    zone = relationship("Zone")
    supplier = relationship("User")


class ZoneRegistrationRequest(Base):
    __tablename__ = "zone_registration_requests"

    id = Column(Integer, primary_key=True, index=True)
    supplier_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    zone_id = Column(Integer, ForeignKey("zones.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="pending")  # pending | approved | rejected
    message = Column(Text, nullable=True)
    admin_response = Column(Text, nullable=True)
    reviewed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    zone = relationship("Zone")
    supplier = relationship("User", foreign_keys=[supplier_id])

from sqlalchemy import Column, Integer, String, UniqueConstraint, ForeignKey
from ravito.models.organization import Base


class OrderCounter(Base):
    """Per-organization sequence used to number client orders."""
    __tablename__ = "order_counters"
    __table_args__ = (
        UniqueConstraint("organization_id", "kind", name="uq_order_counters_org_kind"),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    kind = Column(String(20), nullable=False, default="order")
    next_seq = Column(Integer, nullable=False, default=1)

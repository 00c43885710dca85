from sqlalchemy import Column, Integer, String, Boolean, Numeric, UniqueConstraint

from ravito.models.organization import Base


class CrateType(Base):
    __tablename__ = "crate_types"
    __table_args__ = (UniqueConstraint("code", name="uq_crate_types_code"),)

    id = Column(Integer, primary_key=True, index=True)
    # B33, B65, B100, B50V, B100V ...
    code = Column(String(20), nullable=False, index=True)
    label = Column(String(255), nullable=False)
    is_consignable = Column(Boolean, nullable=False, default=True)
    deposit_amount = Column(Numeric(12, 2), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

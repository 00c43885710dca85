"""
Sales representatives (commerciaux) offered at registration and managed by admins.
"""
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from ravito.core.validation import validate_phone_ci
from ravito.models.sales_representative import SalesRepresentative
from ravito.models.zone import Zone


def list_active_representatives(db: Session) -> List[SalesRepresentative]:
    return (
        db.query(SalesRepresentative)
        .options(joinedload(SalesRepresentative.zone))
        .filter(SalesRepresentative.is_active == True)  # noqa: E712
        .order_by(SalesRepresentative.name.asc())
        .all()
    )


def get_representative(db: Session, rep_id: int) -> SalesRepresentative:
    rep = db.query(SalesRepresentative).filter(SalesRepresentative.id == rep_id).first()
    if not rep:
        raise LookupError("Commercial introuvable")
    return rep


def _check(db: Session, phone: Optional[str], zone_id: Optional[int]) -> None:
    if phone:
        result = validate_phone_ci(phone)
        if not result.is_valid:
            raise ValueError(result.error)
    if zone_id is not None and not db.query(Zone).filter(Zone.id == zone_id).first():
        raise LookupError("Zone introuvable")


def create_representative(
    db: Session,
    name: str,
    phone: Optional[str] = None,
    email: Optional[str] = None,
    zone_id: Optional[int] = None,
) -> SalesRepresentative:
    if not name or not name.strip():
        raise ValueError("Le nom du commercial est requis")
    _check(db, phone, zone_id)
    rep = SalesRepresentative(name=name.strip(), phone=phone, email=email, zone_id=zone_id, is_active=True)
    db.add(rep)
    db.commit()
    db.refresh(rep)
    return rep


def update_representative(db: Session, rep_id: int, **changes) -> SalesRepresentative:
    rep = get_representative(db, rep_id)
    _check(db, changes.get("phone"), changes.get("zone_id"))
    for field in ("name", "phone", "email", "zone_id", "is_active"):
        value = changes.get(field)
        if value is not None:
            setattr(rep, field, value)
    db.commit()
    db.refresh(rep)
    return rep

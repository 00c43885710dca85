"""
Audit trail of status changes for orders and daily sheets.
"""
from typing import List, Optional

from sqlalchemy.orm import Session

from ravito.core.roles import Role
from ravito.models.order import Order
from ravito.models.status_history import StatusHistory
from ravito.models.user import User

ENTITY_TYPES = ("order", "daily_sheet")


def create_status_history(
    db: Session,
    organization_id: int,
    entity_type: str,
    entity_id: int,
    old_status: Optional[str],
    new_status: str,
    user_id: int,
    user_email: str,
    notes: Optional[str] = None,
) -> StatusHistory:
    """Add an entry to the session. The caller commits with the status change."""
    if entity_type not in ENTITY_TYPES:
        raise ValueError(f"Type d'entité invalide: {entity_type}")
    entry = StatusHistory(
        organization_id=organization_id,
        entity_type=entity_type,
        entity_id=entity_id,
        old_status=old_status,
        new_status=new_status,
        user_id=user_id,
        user_email=user_email,
        notes=notes,
    )
    db.add(entry)
    return entry


def list_status_history(db: Session, user: User, entity_type: str, entity_id: int) -> List[StatusHistory]:
    """
    Newest first. Admins see everything; a daily sheet's history is limited to
    its organization and an order's to its client and assigned supplier.
    """
    if entity_type not in ENTITY_TYPES:
        raise ValueError(f"Type d'entité invalide: {entity_type}")

    query = db.query(StatusHistory).filter(
        StatusHistory.entity_type == entity_type,
        StatusHistory.entity_id == entity_id,
    )
    if user.role != Role.admin.value:
        if entity_type == "daily_sheet":
            query = query.filter(StatusHistory.organization_id == user.organization_id)
        else:
            order = db.query(Order).filter(Order.id == entity_id).first()
            if not order or user.id not in (order.client_id, order.supplier_id):
                raise LookupError("Commande introuvable")
    return query.order_by(StatusHistory.created_at.desc(), StatusHistory.id.desc()).all()

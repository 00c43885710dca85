"""
Order numbering.
Each organization owns its own counter so numbers stay dense per client.
"""
from sqlalchemy.orm import Session

from ravito.models.order_counter import OrderCounter


ORDER_PREFIXES = {
    "order": "CMD",
}


def next_sequence(db: Session, organization_id: int, kind: str = "order") -> int:
    """
    Reserve the next sequence value for an organization.

    The counter row is locked with FOR UPDATE (a no-op on SQLite) and is
    created on first use. Nothing is committed here: the caller commits
    together with the order that receives the number.
    """
    counter = (
        db.query(OrderCounter)
        .filter(OrderCounter.organization_id == organization_id, OrderCounter.kind == kind)
        .with_for_update()
        .first()
    )
    if counter is None:
        counter = OrderCounter(organization_id=organization_id, kind=kind, next_seq=1)
        db.add(counter)
        db.flush()

    value = counter.next_seq
    counter.next_seq = value + 1
    return value


def generate_order_number(db: Session, organization_id: int, kind: str = "order") -> str:
    """Return the next number formatted as ``CMD-000001``."""
    prefix = ORDER_PREFIXES.get(kind)
    if prefix is None:
        raise ValueError(f"Type de numérotation inconnu: {kind}")
    return f"{prefix}-{next_sequence(db, organization_id, kind):06d}"

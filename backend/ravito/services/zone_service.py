"""
Delivery zones and supplier registration into them.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from ravito.core.roles import ApprovalStatus, Role
from ravito.models.order import Order
from ravito.models.user import User
from ravito.models.zone import SupplierZone, Zone, ZoneRegistrationRequest

logger = logging.getLogger(__name__)

REQUEST_STATUS_LABELS = {
    "pending": "En attente",
    "approved": "Approuvée",
    "rejected": "Refusée",
}


def get_zone(db: Session, zone_id: int) -> Zone:
    zone = db.query(Zone).filter(Zone.id == zone_id).first()
    if not zone:
        raise LookupError("Zone introuvable")
    return zone


def list_zones(db: Session, active_only: bool = False) -> List[Zone]:
    query = db.query(Zone)
    if active_only:
        query = query.filter(Zone.is_active == True)  # noqa: E712
    return query.order_by(Zone.name.asc()).all()


def create_zone(db: Session, name: str, description: Optional[str] = None) -> Zone:
    name = (name or "").strip()
    if not name:
        raise ValueError("Le nom de la zone est requis")
    if db.query(Zone).filter(Zone.name == name).first():
        raise ValueError("Une zone porte déjà ce nom")
    zone = Zone(name=name, description=description, is_active=True)
    db.add(zone)
    db.commit()
    db.refresh(zone)
    return zone


def update_zone(
    db: Session,
    zone_id: int,
    name: Optional[str] = None,
    description: Optional[str] = None,
    is_active: Optional[bool] = None,
) -> Zone:
    zone = get_zone(db, zone_id)
    if name is not None:
        name = name.strip()
        if not name:
            raise ValueError("Le nom de la zone est requis")
        clash = db.query(Zone).filter(Zone.name == name, Zone.id != zone.id).first()
        if clash:
            raise ValueError("Une zone porte déjà ce nom")
        zone.name = name
    if description is not None:
        zone.description = description
    if is_active is not None:
        zone.is_active = is_active
    db.commit()
    db.refresh(zone)
    return zone


def delete_zone(db: Session, zone_id: int, confirm: bool = False) -> None:
    """Irreversible: requires ``confirm``. Zones referenced by orders are deactivated instead."""
    if not confirm:
        raise ValueError("Confirmation requise pour supprimer une zone")
    zone = get_zone(db, zone_id)
    if db.query(Order).filter(Order.zone_id == zone.id).first():
        zone.is_active = False
        logger.info("zone %s has orders, deactivated instead of deleted", zone.id)
    else:
        db.query(SupplierZone).filter(SupplierZone.zone_id == zone.id).delete()
        db.query(ZoneRegistrationRequest).filter(ZoneRegistrationRequest.zone_id == zone.id).delete()
        db.delete(zone)
    db.commit()


# ---------------------------------------------------------------------------
# Registration requests
# ---------------------------------------------------------------------------

def create_registration_request(db: Session, supplier: User, zone_id: int, message: Optional[str] = None) -> ZoneRegistrationRequest:
    if supplier.role != Role.supplier.value:
        raise PermissionError("Seuls les fournisseurs peuvent demander une zone")
    if supplier.approval_status != ApprovalStatus.approved.value:
        raise PermissionError("Compte en attente d'approbation")
    zone = get_zone(db, zone_id)
    if not zone.is_active:
        raise ValueError("Cette zone n'est pas active")

    pending = db.query(ZoneRegistrationRequest).filter(
        ZoneRegistrationRequest.supplier_id == supplier.id,
        ZoneRegistrationRequest.zone_id == zone.id,
        ZoneRegistrationRequest.status == "pending",
    ).first()
    if pending:
        raise ValueError("Une demande est déjà en cours pour cette zone")
    already = db.query(SupplierZone).filter(
        SupplierZone.supplier_id == supplier.id,
        SupplierZone.zone_id == zone.id,
        SupplierZone.is_active == True,  # noqa: E712
    ).first()
    if already:
        raise ValueError("Vous êtes déjà inscrit dans cette zone")

    request = ZoneRegistrationRequest(supplier_id=supplier.id, zone_id=zone.id, status="pending", message=message)
    db.add(request)
    db.commit()
    db.refresh(request)
    return request


def list_registration_requests(
    db: Session,
    status: Optional[str] = None,
    supplier_id: Optional[int] = None,
) -> List[ZoneRegistrationRequest]:
    query = db.query(ZoneRegistrationRequest)
    if status:
        query = query.filter(ZoneRegistrationRequest.status == status)
    if supplier_id is not None:
        query = query.filter(ZoneRegistrationRequest.supplier_id == supplier_id)
    return query.order_by(ZoneRegistrationRequest.created_at.desc(), ZoneRegistrationRequest.id.desc()).all()


def _pending_request(db: Session, request_id: int) -> ZoneRegistrationRequest:
    request = db.query(ZoneRegistrationRequest).filter(ZoneRegistrationRequest.id == request_id).first()
    if not request:
        raise LookupError("Demande introuvable")
    if request.status != "pending":
        raise ValueError("Cette demande a déjà été traitée")
    return request


def approve_request(db: Session, admin: User, request_id: int, response: Optional[str] = None) -> ZoneRegistrationRequest:
    request = _pending_request(db, request_id)
    now = datetime.utcnow()

    link = db.query(SupplierZone).filter(
        SupplierZone.supplier_id == request.supplier_id,
        SupplierZone.zone_id == request.zone_id,
    ).first()
    if link:
        link.is_active = True
        link.approved_at = now
    else:
        db.add(SupplierZone(supplier_id=request.supplier_id, zone_id=request.zone_id, is_active=True, approved_at=now))

    request.status = "approved"
    request.admin_response = response
    request.reviewed_by = admin.id
    request.reviewed_at = now
    db.commit()
    db.refresh(request)
    logger.info("zone request %s approved supplier=%s zone=%s", request.id, request.supplier_id, request.zone_id)
    return request


def reject_request(db: Session, admin: User, request_id: int, response: Optional[str] = None) -> ZoneRegistrationRequest:
    request = _pending_request(db, request_id)
    request.status = "rejected"
    request.admin_response = response
    request.reviewed_by = admin.id
    request.reviewed_at = datetime.utcnow()
    db.commit()
    db.refresh(request)
    return request


def list_supplier_zones(db: Session, supplier_id: int) -> List[SupplierZone]:
    return db.query(SupplierZone).filter(
        SupplierZone.supplier_id == supplier_id,
        SupplierZone.is_active == True,  # noqa: E712
    ).all()

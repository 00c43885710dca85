from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ravito.core.database import get_db
from ravito.core.deps import get_current_user, require_admin, require_role
from ravito.core.errors import service_errors
from ravito.core.roles import Role
from ravito.models.user import User
from ravito.services import zone_service

router = APIRouter()


class ZoneCreate(BaseModel):
    name: str
    description: Optional[str] = None


class ZoneUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None


class ZoneOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True


class RegistrationRequestCreate(BaseModel):
    zone_id: int
    message: Optional[str] = None


class ReviewRequest(BaseModel):
    response: Optional[str] = None


class RegistrationRequestOut(BaseModel):
    id: int
    supplier_id: int
    zone_id: int
    status: str
    message: Optional[str] = None
    admin_response: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class SupplierZoneOut(BaseModel):
    zone_id: int
    approved_at: Optional[datetime] = None
    zone: ZoneOut

    class Config:
        from_attributes = True


@router.get("", response_model=List[ZoneOut])
def list_zones(
    active_only: bool = Query(True),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return zone_service.list_zones(db, active_only=active_only)


@router.post("", response_model=ZoneOut, status_code=201)
def create_zone(data: ZoneCreate, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    with service_errors():
        return zone_service.create_zone(db, data.name, data.description)


@router.put("/{zone_id}", response_model=ZoneOut)
def update_zone(zone_id: int, data: ZoneUpdate, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    with service_errors():
        return zone_service.update_zone(db, zone_id, **data.model_dump(exclude_unset=True))


@router.delete("/{zone_id}")
def delete_zone(
    zone_id: int,
    confirm: bool = Query(False),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    with service_errors():
        zone_service.delete_zone(db, zone_id, confirm=confirm)
    return {"message": "Zone supprimée"}


# Supplier registration into zones

@router.get("/mine", response_model=List[SupplierZoneOut])
def my_zones(db: Session = Depends(get_db), supplier: User = Depends(require_role(Role.supplier))):
    return zone_service.list_supplier_zones(db, supplier.id)


@router.post("/requests", response_model=RegistrationRequestOut, status_code=201)
def request_zone(
    data: RegistrationRequestCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    with service_errors():
        return zone_service.create_registration_request(db, user, data.zone_id, data.message)


@router.get("/requests", response_model=List[RegistrationRequestOut])
def list_requests(
    status: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Admins see every request, suppliers only their own"""
    if user.role == Role.admin.value:
        return zone_service.list_registration_requests(db, status=status)
    if user.role != Role.supplier.value:
        raise HTTPException(status_code=403, detail="Insufficient role")
    return zone_service.list_registration_requests(db, status=status, supplier_id=user.id)


@router.post("/requests/{request_id}/approve", response_model=RegistrationRequestOut)
def approve_request(
    request_id: int,
    data: ReviewRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    with service_errors():
        return zone_service.approve_request(db, admin, request_id, data.response)


@router.post("/requests/{request_id}/reject", response_model=RegistrationRequestOut)
def reject_request(
    request_id: int,
    data: ReviewRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    with service_errors():
        return zone_service.reject_request(db, admin, request_id, data.response)

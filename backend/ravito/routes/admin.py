from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, EmailStr
from sqlalchemy.orm import Session

from ravito.core.database import get_db
from ravito.core.deps import require_admin
from ravito.core.errors import service_errors
from ravito.models.user import User
from ravito.services import sales_representative_service, user_service

router = APIRouter()


class UserOut(BaseModel):
    id: int
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: str
    approval_status: str
    rejection_reason: Optional[str] = None
    organization_id: Optional[int] = None
    sales_representative_id: Optional[int] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RejectRequest(BaseModel):
    reason: str


class RepresentativeCreate(BaseModel):
    name: str
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    zone_id: Optional[int] = None


class RepresentativeUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    zone_id: Optional[int] = None
    is_active: Optional[bool] = None


class RepresentativeOut(BaseModel):
    id: int
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    zone_id: Optional[int] = None
    is_active: bool

    class Config:
        from_attributes = True


@router.get("/users", response_model=List[UserOut])
def list_users(
    role: Optional[str] = Query(None),
    approval_status: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Users filtered by role and approval status, newest first"""
    return user_service.list_users(db, role=role, approval_status=approval_status)


@router.post("/users/{user_id}/approve", response_model=UserOut)
def approve_user(user_id: int, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    with service_errors():
        return user_service.approve_user(db, admin, user_id)


@router.post("/users/{user_id}/reject", response_model=UserOut)
def reject_user(user_id: int, data: RejectRequest, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    with service_errors():
        return user_service.reject_user(db, admin, user_id, data.reason)


@router.get("/sales-representatives", response_model=List[RepresentativeOut])
def list_representatives(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return sales_representative_service.list_active_representatives(db)


@router.post("/sales-representatives", response_model=RepresentativeOut, status_code=201)
def create_representative(data: RepresentativeCreate, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    with service_errors():
        return sales_representative_service.create_representative(db, **data.model_dump())


@router.put("/sales-representatives/{rep_id}", response_model=RepresentativeOut)
def update_representative(
    rep_id: int,
    data: RepresentativeUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    with service_errors():
        return sales_representative_service.update_representative(db, rep_id, **data.model_dump(exclude_unset=True))

from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ravito.core.database import get_db
from ravito.core.deps import require_approved
from ravito.core.errors import service_errors
from ravito.models.user import User
from ravito.services import credit_service

router = APIRouter()


class CustomerCreate(BaseModel):
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    credit_limit: float = 0


class CustomerUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    credit_limit: Optional[float] = None


class CustomerOut(BaseModel):
    id: int
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    credit_limit: float
    current_balance: float
    total_credited: float
    total_paid: float
    status: str
    freeze_reason: Optional[str] = None
    frozen_at: Optional[datetime] = None
    last_payment_date: Optional[date] = None

    class Config:
        from_attributes = True


class FreezeRequest(BaseModel):
    option: str  # freeze_full | reduce_limit | disable
    reason: str
    new_limit: Optional[float] = None


class UnfreezeRequest(BaseModel):
    new_limit: Optional[float] = None


class ConsumptionItem(BaseModel):
    product_id: Optional[int] = None
    product_name: str
    quantity: int
    unit_price: float


class ConsumptionCreate(BaseModel):
    items: List[ConsumptionItem]
    transaction_date: Optional[date] = None
    notes: Optional[str] = None


class PaymentCreate(BaseModel):
    amount: float
    payment_method: str  # cash | mobile_money | transfer
    transaction_date: Optional[date] = None
    notes: Optional[str] = None


class TransactionItemOut(BaseModel):
    product_id: Optional[int] = None
    product_name: str
    quantity: int
    unit_price: float
    subtotal: float

    class Config:
        from_attributes = True


class TransactionOut(BaseModel):
    id: int
    customer_id: int
    daily_sheet_id: Optional[int] = None
    transaction_type: str
    amount: float
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    transaction_date: date
    items: List[TransactionItemOut] = []

    class Config:
        from_attributes = True


class CreditStatistics(BaseModel):
    total_credit: float
    customers_with_balance: int


@router.get("/customers", response_model=List[CustomerOut])
def list_customers(
    include_disabled: bool = Query(False),
    db: Session = Depends(get_db),
    user: User = Depends(require_approved),
):
    return credit_service.list_customers(db, user.organization_id, include_disabled=include_disabled)


@router.post("/customers", response_model=CustomerOut, status_code=201)
def add_customer(data: CustomerCreate, db: Session = Depends(get_db), user: User = Depends(require_approved)):
    with service_errors():
        return credit_service.add_customer(db, user.organization_id, **data.model_dump())


@router.get("/statistics", response_model=CreditStatistics)
def statistics(db: Session = Depends(get_db), user: User = Depends(require_approved)):
    return credit_service.credit_statistics(db, user.organization_id)


@router.get("/customers/{customer_id}", response_model=CustomerOut)
def get_customer(customer_id: int, db: Session = Depends(get_db), user: User = Depends(require_approved)):
    with service_errors():
        return credit_service.get_customer(db, user.organization_id, customer_id)


@router.put("/customers/{customer_id}", response_model=CustomerOut)
def update_customer(
    customer_id: int,
    data: CustomerUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_approved),
):
    with service_errors():
        return credit_service.update_customer(db, user.organization_id, customer_id, **data.model_dump(exclude_unset=True))


@router.post("/customers/{customer_id}/freeze", response_model=CustomerOut)
def freeze_customer(
    customer_id: int,
    data: FreezeRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_approved),
):
    with service_errors():
        return credit_service.freeze_customer(
            db, user.organization_id, customer_id, data.option, data.reason, data.new_limit
        )


@router.post("/customers/{customer_id}/unfreeze", response_model=CustomerOut)
def unfreeze_customer(
    customer_id: int,
    data: UnfreezeRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_approved),
):
    with service_errors():
        return credit_service.unfreeze_customer(db, user.organization_id, customer_id, data.new_limit)


@router.post("/customers/{customer_id}/consumptions", response_model=TransactionOut, status_code=201)
def add_consumption(
    customer_id: int,
    data: ConsumptionCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_approved),
):
    with service_errors():
        return credit_service.add_consumption(
            db,
            user.organization_id,
            user,
            customer_id,
            [item.model_dump() for item in data.items],
            transaction_date=data.transaction_date,
            notes=data.notes,
        )


@router.post("/customers/{customer_id}/payments", response_model=TransactionOut, status_code=201)
def add_payment(
    customer_id: int,
    data: PaymentCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_approved),
):
    with service_errors():
        return credit_service.add_payment(
            db,
            user.organization_id,
            user,
            customer_id,
            data.amount,
            data.payment_method,
            notes=data.notes,
            transaction_date=data.transaction_date,
        )


@router.get("/customers/{customer_id}/transactions", response_model=List[TransactionOut])
def list_transactions(
    customer_id: int,
    limit: Optional[int] = Query(None, ge=1, le=500),
    db: Session = Depends(get_db),
    user: User = Depends(require_approved),
):
    with service_errors():
        return credit_service.list_transactions(db, user.organization_id, customer_id, limit=limit)

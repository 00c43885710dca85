from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ravito.core.cart import CartTotals
from ravito.core.config import settings
from ravito.core.database import get_db
from ravito.core.deps import get_current_user, require_approved, require_role
from ravito.core.errors import service_errors
from ravito.core.order_status import get_status_label
from ravito.core.roles import Role
from ravito.models.user import User
from ravito.services import order_service
from ravito.utils.export import export_transactions_csv

router = APIRouter()


class CartLine(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)
    with_consigne: bool = False


class CartPreviewRequest(BaseModel):
    items: List[CartLine]


class CheckoutRequest(BaseModel):
    items: List[CartLine]
    delivery_address: str
    payment_method: str
    zone_id: int


class OrderItemOut(BaseModel):
    id: int
    product_id: int
    quantity: int
    with_consigne: bool
    crate_price: float
    consign_price: float
    subtotal: float

    class Config:
        from_attributes = True


class OrderOut(BaseModel):
    id: int
    order_number: str
    client_id: int
    supplier_id: Optional[int] = None
    zone_id: Optional[int] = None
    status: str
    status_label: str = ""
    delivery_address: str
    payment_method: str
    subtotal: float
    consigne_total: float
    total_amount: float
    client_commission: float
    supplier_commission: float
    net_supplier_amount: float
    paid_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    created_at: datetime
    items: List[OrderItemOut] = []

    class Config:
        from_attributes = True


class OfferCreate(BaseModel):
    total_amount: Optional[float] = None
    delivery_time_minutes: Optional[int] = Field(None, gt=0)
    message: Optional[str] = None


class OfferOut(BaseModel):
    id: int
    order_id: int
    supplier_id: int
    status: str
    total_amount: float
    delivery_time_minutes: Optional[int] = None
    message: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class StatusUpdate(BaseModel):
    status: str
    notes: Optional[str] = None


class RatingCreate(BaseModel):
    score: int
    comment: Optional[str] = None


class RatingOut(BaseModel):
    id: int
    order_id: int
    rater_id: int
    rated_id: int
    score: int
    comment: Optional[str] = None

    class Config:
        from_attributes = True


def _out(order) -> OrderOut:
    out = OrderOut.model_validate(order)
    out.status_label = get_status_label(order.status)
    return out


@router.post("/cart/preview", response_model=CartTotals)
def preview_cart(data: CartPreviewRequest, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    """Cart totals including the client commission, before checkout"""
    with service_errors():
        store = order_service.build_cart(db, [line.model_dump() for line in data.items])
    return store.totals_with_commission(settings.client_commission_pct)


@router.post("", response_model=OrderOut, status_code=201)
def checkout(data: CheckoutRequest, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    with service_errors():
        order = order_service.place_order(
            db,
            user,
            [line.model_dump() for line in data.items],
            data.delivery_address,
            data.payment_method,
            data.zone_id,
        )
    return _out(order)


@router.get("", response_model=List[OrderOut])
def list_orders(
    status: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(require_approved),
):
    return [_out(o) for o in order_service.list_orders_for_user(db, user, status=status)]


@router.get("/feed", response_model=List[OrderOut])
def supplier_feed(db: Session = Depends(get_db), supplier: User = Depends(require_role(Role.supplier))):
    """Orders open to offers in the supplier's zones"""
    with service_errors():
        return [_out(o) for o in order_service.list_supplier_feed(db, supplier)]


@router.get("/transactions/csv")
def export_transactions(db: Session = Depends(get_db), user: User = Depends(require_approved)):
    csv_data = export_transactions_csv(order_service.list_transactions(db, user))
    headers = {
        "Content-Disposition": f"attachment; filename=transactions_{datetime.now().strftime('%Y%m%d')}.csv",
    }
    return Response(content=csv_data.encode("utf-8"), media_type="text/csv; charset=utf-8", headers=headers)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(order_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    with service_errors():
        return _out(order_service.get_order_for_user(db, order_id, user))


@router.get("/{order_id}/offers", response_model=List[OfferOut])
def list_offers(order_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    with service_errors():
        order = order_service.get_order_for_user(db, order_id, user)
    if user.role == Role.supplier.value and user.id != order.supplier_id:
        return [o for o in order.offers if o.supplier_id == user.id]
    return order.offers


@router.post("/{order_id}/offers", response_model=OfferOut, status_code=201)
def create_offer(
    order_id: int,
    data: OfferCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    with service_errors():
        return order_service.create_offer(db, user, order_id, **data.model_dump())


@router.post("/{order_id}/offers/{offer_id}/accept", response_model=OrderOut)
def accept_offer(order_id: int, offer_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    with service_errors():
        return _out(order_service.accept_offer(db, user, order_id, offer_id))


@router.post("/{order_id}/offers/{offer_id}/reject", response_model=OrderOut)
def reject_offer(order_id: int, offer_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    with service_errors():
        return _out(order_service.reject_offer(db, user, order_id, offer_id))


@router.post("/{order_id}/pay", response_model=OrderOut)
def pay_order(order_id: int, db: Session = Depends(get_db), user: User = Depends(require_approved)):
    with service_errors():
        return _out(order_service.pay_order(db, user, order_id))


@router.post("/{order_id}/status", response_model=OrderOut)
def update_status(
    order_id: int,
    data: StatusUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_approved),
):
    with service_errors():
        return _out(order_service.update_status(db, user, order_id, data.status, data.notes))


@router.post("/{order_id}/rating", response_model=RatingOut, status_code=201)
def rate_order(
    order_id: int,
    data: RatingCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_approved),
):
    with service_errors():
        return order_service.rate_order(db, user, order_id, data.score, data.comment)

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ravito.core.database import get_db
from ravito.core.deps import get_current_user, require_admin, require_approved
from ravito.core.errors import service_errors
from ravito.models.user import User
from ravito.services import catalog_service

router = APIRouter()


class ProductBase(BaseModel):
    reference: str
    name: str
    category: str
    brand: Optional[str] = None
    crate_type: str
    unit: str = "casier"
    volume: Optional[str] = None
    crate_price: float
    consign_price: float = 0
    is_active: bool = True


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    reference: Optional[str] = None
    name: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    crate_type: Optional[str] = None
    unit: Optional[str] = None
    volume: Optional[str] = None
    crate_price: Optional[float] = None
    consign_price: Optional[float] = None
    is_active: Optional[bool] = None


class ProductOut(ProductBase):
    id: int

    class Config:
        from_attributes = True


class CrateTypeIn(BaseModel):
    code: str
    label: Optional[str] = None
    is_consignable: bool = True
    deposit_amount: float = 0


class CrateTypeOut(BaseModel):
    id: int
    code: str
    label: str
    is_consignable: bool
    deposit_amount: float
    is_active: bool

    class Config:
        from_attributes = True


class EstablishmentProductIn(BaseModel):
    product_id: int
    selling_price: float
    min_stock_alert: int = 0
    is_active: bool = True


class EstablishmentProductOut(BaseModel):
    id: int
    product_id: int
    selling_price: float
    min_stock_alert: int
    is_active: bool
    product: ProductOut

    class Config:
        from_attributes = True


@router.get("/", response_model=List[ProductOut])
def list_products(
    q: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    active: Optional[bool] = Query(True),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return catalog_service.list_products(db, q=q, category=category, active=active)


@router.post("/", response_model=ProductOut, status_code=201)
def create_product(data: ProductCreate, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    with service_errors():
        return catalog_service.create_product(db, **data.model_dump())


@router.get("/crate-types", response_model=List[CrateTypeOut])
def list_crate_types(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return catalog_service.list_crate_types(db)


@router.put("/crate-types", response_model=CrateTypeOut)
def upsert_crate_type(data: CrateTypeIn, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    with service_errors():
        return catalog_service.upsert_crate_type(db, **data.model_dump())


@router.get("/establishment", response_model=List[EstablishmentProductOut])
def list_establishment_products(db: Session = Depends(get_db), user: User = Depends(require_approved)):
    return catalog_service.list_establishment_products(db, user.organization_id)


@router.put("/establishment", response_model=EstablishmentProductOut)
def upsert_establishment_product(
    data: EstablishmentProductIn,
    db: Session = Depends(get_db),
    user: User = Depends(require_approved),
):
    """Set the establishment's selling price and stock alert for a catalog product"""
    with service_errors():
        return catalog_service.upsert_establishment_product(db, user.organization_id, **data.model_dump())


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    with service_errors():
        return catalog_service.get_product(db, product_id)


@router.put("/{product_id}", response_model=ProductOut)
def update_product(product_id: int, data: ProductUpdate, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    with service_errors():
        return catalog_service.update_product(db, product_id, **data.model_dump(exclude_unset=True))

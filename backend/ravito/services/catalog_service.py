"""
Product catalog, crate types and per-establishment selling prices.
"""
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from ravito.models.crate_type import CrateType
from ravito.models.product import EstablishmentProduct, Product

PRODUCT_CATEGORIES = ("biere", "soda", "vin", "eau", "spiritueux")

CRATE_TYPE_LABELS = {
    "B33": "Casier 33cl/30cl (24 bout.)",
    "B65": "Casier 65cl/50cl (12 bout.)",
    "B100": "Casier Bock 100cl",
    "B50V": "Casier Vin 50cl",
    "B100V": "Casier Vin 100cl",
    "CARTON24": "Carton 24 (jetable)",
}


def list_crate_types(db: Session) -> List[CrateType]:
    return db.query(CrateType).order_by(CrateType.code).all()


def upsert_crate_type(
    db: Session,
    code: str,
    label: Optional[str] = None,
    is_consignable: bool = True,
    deposit_amount: float = 0,
) -> CrateType:
    code = (code or "").strip().upper()
    if not code:
        raise ValueError("Le code du casier est requis")
    crate = db.query(CrateType).filter(CrateType.code == code).first()
    if crate is None:
        crate = CrateType(code=code)
        db.add(crate)
    crate.label = label or CRATE_TYPE_LABELS.get(code, code)
    crate.is_consignable = is_consignable
    crate.deposit_amount = Decimal(str(deposit_amount))
    db.commit()
    db.refresh(crate)
    return crate


def list_products(db: Session, q: Optional[str] = None, category: Optional[str] = None, active: Optional[bool] = True) -> List[Product]:
    query = db.query(Product)
    if q and q.strip():
        query = query.filter(Product.name.ilike(f"%{q.strip()}%"))
    if category:
        query = query.filter(Product.category == category)
    if active is not None:
        query = query.filter(Product.is_active == active)
    return query.order_by(Product.name.asc()).all()


def get_product(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise LookupError("Produit introuvable")
    return product


def _check_product(db: Session, data: dict, product_id: Optional[int] = None) -> None:
    if "category" in data and data["category"] not in PRODUCT_CATEGORIES:
        raise ValueError(f"Catégorie invalide: {data['category']}")
    if "crate_type" in data and not db.query(CrateType).filter(CrateType.code == data["crate_type"]).first():
        raise ValueError(f"Type de casier inconnu: {data['crate_type']}")
    for field in ("crate_price", "consign_price"):
        if data.get(field) is not None and data[field] < 0:
            raise ValueError("Les prix ne peuvent pas être négatifs")
    if "reference" in data:
        clash = db.query(Product).filter(Product.reference == data["reference"])
        if product_id is not None:
            clash = clash.filter(Product.id != product_id)
        if clash.first():
            raise ValueError("Cette référence existe déjà")


def create_product(db: Session, **data) -> Product:
    _check_product(db, data)
    product = Product(**data)
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


def update_product(db: Session, product_id: int, **data) -> Product:
    product = get_product(db, product_id)
    changes = {k: v for k, v in data.items() if v is not None}
    _check_product(db, changes, product_id)
    for field, value in changes.items():
        setattr(product, field, value)
    db.commit()
    db.refresh(product)
    return product


def list_establishment_products(db: Session, organization_id: int) -> List[EstablishmentProduct]:
    return (
        db.query(EstablishmentProduct)
        .options(joinedload(EstablishmentProduct.product))
        .filter(EstablishmentProduct.organization_id == organization_id)
        .all()
    )


def upsert_establishment_product(
    db: Session,
    organization_id: int,
    product_id: int,
    selling_price: float,
    min_stock_alert: int = 0,
    is_active: bool = True,
) -> EstablishmentProduct:
    """Create or update the selling price of a catalog product for one establishment."""
    get_product(db, product_id)
    if selling_price < 0:
        raise ValueError("Le prix de vente ne peut pas être négatif")
    if min_stock_alert < 0:
        raise ValueError("Le seuil d'alerte ne peut pas être négatif")

    row = db.query(EstablishmentProduct).filter(
        EstablishmentProduct.organization_id == organization_id,
        EstablishmentProduct.product_id == product_id,
    ).first()
    if row is None:
        row = EstablishmentProduct(organization_id=organization_id, product_id=product_id)
        db.add(row)
    row.selling_price = Decimal(str(selling_price))
    row.min_stock_alert = min_stock_alert
    row.is_active = is_active
    db.commit()
    db.refresh(row)
    return row

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENV", "test")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from ravito.core.database import SessionLocal, drop_db, init_db
from ravito.core.roles import ApprovalStatus
from ravito.core.security import create_token_pair, hash_password
from ravito.main import app
from ravito.models.organization import Organization
from ravito.models.product import EstablishmentProduct, Product
from ravito.models.user import User
from ravito.models.zone import SupplierZone, Zone
from ravito.services.seed import seed_reference_data


@pytest.fixture(autouse=True)
def database():
    init_db()
    yield
    drop_db()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def catalog(db):
    seed_reference_data(db)
    return {p.reference: p for p in db.query(Product).all()}


@pytest.fixture
def make_user(db):
    counter = {'n': 0}

    def _make(role='client', approved=True, org_name=None):
        counter['n'] += 1
        n = counter['n']
        org = Organization(name=org_name or f'{role.title()} {n}', slug=f'{role}-{n}', org_type=role)
        db.add(org)
        db.flush()
        user = User(
            email=f'{role}{n}@test.ci',
            hashed_password=hash_password('Secret123'),
            full_name=f'Test {role.title()}',
            phone='07 00 00 00 0%d' % (n % 10),
            role=role,
            organization_id=org.id,
            approval_status=ApprovalStatus.approved.value if approved else ApprovalStatus.pending.value,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


def auth(user):
    access, _ = create_token_pair(user.id)
    return {'Authorization': f'Bearer {access}'}


def stock_products(db, organization_id, prices):
    """Register catalog products in an establishment: {product: selling_price}"""
    for product, price in prices.items():
        db.add(EstablishmentProduct(
            organization_id=organization_id,
            product_id=product.id,
            selling_price=price,
            min_stock_alert=0,
        ))
    db.commit()


def approve_in_zone(db, supplier, zone_name='Cocody'):
    zone = db.query(Zone).filter(Zone.name == zone_name).first()
    db.add(SupplierZone(supplier_id=supplier.id, zone_id=zone.id, is_active=True))
    db.commit()
    return zone

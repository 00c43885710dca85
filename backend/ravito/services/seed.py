import logging

from sqlalchemy.orm import Session

from ravito.core.config import settings
from ravito.core.roles import ApprovalStatus, Role
from ravito.core.security import hash_password
from ravito.models.crate_type import CrateType
from ravito.models.organization import Organization
from ravito.models.product import Product
from ravito.models.user import User
from ravito.models.zone import Zone
from ravito.services.catalog_service import CRATE_TYPE_LABELS

logger = logging.getLogger(__name__)

# code -> (consignable, deposit)
CRATE_TYPES = {
    "B33": (True, 3000),
    "B65": (True, 3000),
    "B100": (True, 3000),
    "B50V": (True, 3000),
    "B100V": (True, 3000),
    "CARTON24": (False, 0),
}

ZONES = ["Abobo", "Adjamé", "Cocody", "Koumassi", "Marcory", "Plateau", "Port-Bouët", "Treichville", "Yopougon"]

# reference, name, category, brand, crate type, volume, crate price, consign price
PRODUCTS = [
    ("FLAG-33", "Flag Spéciale 33cl", "biere", "Solibra", "B33", "33cl", 12000, 3000),
    ("FLAG-65", "Flag Spéciale 65cl", "biere", "Solibra", "B65", "65cl", 9600, 3000),
    ("CASTEL-65", "Castel Beer 65cl", "biere", "Solibra", "B65", "65cl", 9000, 3000),
    ("BEAUFORT-33", "Beaufort Lager 33cl", "biere", "Solibra", "B33", "33cl", 13200, 3000),
    ("IVOIRE-65", "Ivoire Black 65cl", "biere", "Brassivoire", "B65", "65cl", 9000, 3000),
    ("COCA-30", "Coca-Cola 30cl", "soda", "Solibra", "B33", "30cl", 7200, 3000),
    ("AWOYO-150", "Eau Awoyo 1,5L", "eau", "Solibra", "CARTON24", "150cl", 3000, 0),
    ("VALPIERE-100", "Valpière Rouge 100cl", "vin", "Valpière", "B100V", "100cl", 18000, 3000),
]

ADMIN_EMAIL = settings.ravito_admin_email
ADMIN_PASSWORD = settings.ravito_admin_password


def seed_reference_data(db: Session) -> None:
    """Crate types, zones and the beverage catalog. Idempotent."""
    for code, (consignable, deposit) in CRATE_TYPES.items():
        if not db.query(CrateType).filter(CrateType.code == code).first():
            db.add(CrateType(
                code=code,
                label=CRATE_TYPE_LABELS.get(code, code),
                is_consignable=consignable,
                deposit_amount=deposit,
                is_active=True,
            ))
    for name in ZONES:
        if not db.query(Zone).filter(Zone.name == name).first():
            db.add(Zone(name=name, is_active=True))
    for reference, name, category, brand, crate_type, volume, crate_price, consign_price in PRODUCTS:
        if not db.query(Product).filter(Product.reference == reference).first():
            db.add(Product(
                reference=reference,
                name=name,
                category=category,
                brand=brand,
                crate_type=crate_type,
                unit="casier",
                volume=volume,
                crate_price=crate_price,
                consign_price=consign_price,
                is_active=True,
            ))
    db.commit()


def ensure_admin(db: Session, email: str = ADMIN_EMAIL, password: str = ADMIN_PASSWORD) -> User:
    admin = db.query(User).filter(User.email == email).first()
    if admin:
        return admin
    organization = db.query(Organization).filter(Organization.slug == "ravito").first()
    if not organization:
        organization = Organization(name="RAVITO", slug="ravito", org_type="admin", is_active=True)
        db.add(organization)
        db.flush()
    admin = User(
        email=email,
        hashed_password=hash_password(password),
        full_name="Administrateur RAVITO",
        role=Role.admin.value,
        organization_id=organization.id,
        approval_status=ApprovalStatus.approved.value,
        is_active=True,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info("admin account created: %s", email)
    return admin


def seed_demo(db: Session) -> None:
    seed_reference_data(db)
    ensure_admin(db)

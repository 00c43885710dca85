"""
Registration and admin approval of client and supplier accounts.
"""
import logging
import re
import unicodedata
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ravito.core.roles import ApprovalStatus, Role, SELF_REGISTER_ROLES
from ravito.core.security import hash_password
from ravito.core.validation import (
    format_phone_ci,
    validate_email,
    validate_full_name,
    validate_password,
    validate_phone_ci,
)
from ravito.models.organization import Organization
from ravito.models.sales_representative import SalesRepresentative
from ravito.models.user import User

logger = logging.getLogger(__name__)


class RegistrationError(ValueError):
    """Field-keyed validation errors, returned as-is to the form."""

    def __init__(self, errors: Dict[str, str]):
        super().__init__("; ".join(f"{k}: {v}" for k, v in errors.items()))
        self.errors = errors


def slugify(value: str) -> str:
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^a-z0-9]+", "-", normalized.lower()).strip("-") or "etablissement"


def _unique_slug(db: Session, name: str) -> str:
    base = slugify(name)
    slug, n = base, 1
    while db.query(Organization).filter(Organization.slug == slug).first():
        n += 1
        slug = f"{base}-{n}"
    return slug


def register_user(
    db: Session,
    email: str,
    password: str,
    full_name: str,
    phone: str,
    role: str,
    organization_name: str,
    address: Optional[str] = None,
    sales_representative_id: Optional[int] = None,
) -> User:
    """
    Create an organization and its owner in the pending state.

    Raises:
        RegistrationError: invalid fields, keyed by field name
        ValueError: email already registered
    """
    errors: Dict[str, str] = {}
    if role not in {r.value for r in SELF_REGISTER_ROLES}:
        errors["role"] = "Inscription réservée aux clients et fournisseurs"
    email_check = validate_email(email)
    if not email_check.is_valid:
        errors["email"] = email_check.error
    strength = validate_password(password)
    if not strength.is_valid:
        errors["password"] = ", ".join(strength.errors) or "Mot de passe trop faible"
    name_check = validate_full_name(full_name)
    if not name_check.is_valid:
        errors["full_name"] = name_check.error
    phone_check = validate_phone_ci(phone)
    if not phone_check.is_valid:
        errors["phone"] = phone_check.error
    if not organization_name or not organization_name.strip():
        errors["organization_name"] = "Le nom de l'établissement est requis"
    if sales_representative_id is not None:
        rep = db.query(SalesRepresentative).filter(
            SalesRepresentative.id == sales_representative_id,
            SalesRepresentative.is_active == True,  # noqa: E712
        ).first()
        if not rep:
            errors["sales_representative_id"] = "Commercial introuvable"
    if errors:
        raise RegistrationError(errors)

    email = email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        raise ValueError("Cet email est déjà utilisé")

    organization = Organization(
        name=organization_name.strip(),
        slug=_unique_slug(db, organization_name),
        org_type=role,
        address=address,
        is_active=True,
    )
    db.add(organization)
    db.flush()

    user = User(
        email=email,
        hashed_password=hash_password(password),
        full_name=" ".join(full_name.split()),
        phone=format_phone_ci(phone),
        role=role,
        organization_id=organization.id,
        sales_representative_id=sales_representative_id,
        approval_status=ApprovalStatus.pending.value,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("user registered id=%s role=%s org=%s", user.id, role, organization.id)
    return user


def list_users(db: Session, role: Optional[str] = None, approval_status: Optional[str] = None) -> List[User]:
    query = db.query(User)
    if role:
        query = query.filter(User.role == role)
    if approval_status:
        query = query.filter(User.approval_status == approval_status)
    return query.order_by(User.created_at.desc(), User.id.desc()).all()


def _get_reviewable(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise LookupError("Utilisateur introuvable")
    if user.role == Role.admin.value:
        raise ValueError("Les administrateurs ne passent pas par l'approbation")
    return user


def approve_user(db: Session, admin: User, user_id: int) -> User:
    user = _get_reviewable(db, user_id)
    user.approval_status = ApprovalStatus.approved.value
    user.rejection_reason = None
    user.approved_at = datetime.utcnow()
    user.approved_by = admin.id
    db.commit()
    db.refresh(user)
    logger.info("user %s approved by %s", user.id, admin.id)
    return user


def reject_user(db: Session, admin: User, user_id: int, reason: str) -> User:
    if not reason or not reason.strip():
        raise ValueError("Le motif du refus est requis")
    user = _get_reviewable(db, user_id)
    user.approval_status = ApprovalStatus.rejected.value
    user.rejection_reason = reason.strip()
    user.approved_at = None
    user.approved_by = admin.id
    db.commit()
    db.refresh(user)
    logger.info("user %s rejected by %s", user.id, admin.id)
    return user

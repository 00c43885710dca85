from typing import Optional

from sqlalchemy.orm import Session

from ravito.models.organization import Organization
from ravito.models.user import User

DEFAULT_ORGANIZATION_NAME = "Établissement"


def get_organization_name(db: Session, user: Optional[User]) -> str:
    """Organization name, else the user's full name, else a generic label."""
    if user is None:
        return DEFAULT_ORGANIZATION_NAME
    organization = db.query(Organization).filter(Organization.id == user.organization_id).first()
    if organization and organization.name:
        return organization.name
    return user.full_name or DEFAULT_ORGANIZATION_NAME

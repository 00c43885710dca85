from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from ravito.core.database import get_db
from ravito.core.roles import ADMIN_ROLES, ApprovalStatus, Role
from ravito.core.security import ACCESS_TOKEN, decode_token
from ravito.models.organization import Organization
from ravito.models.user import User


def active_user(db: Session, user_id: Optional[int]) -> User:
    user = db.get(User, user_id) if user_id is not None else None
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Utilisateur introuvable")
    return user


def get_current_user(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(None),
) -> User:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme != "Bearer" or not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Non authentifié")
    user_id = decode_token(token, ACCESS_TOKEN)
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Jeton invalide")
    return active_user(db, user_id)


def get_organization(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> Organization:
    organization = db.query(Organization).filter(Organization.id == user.organization_id).first()
    if not organization:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Organization not found")
    return organization


def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role not in {r.value for r in ADMIN_ROLES}:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")
    return user


def require_approved(user: User = Depends(get_current_user)) -> User:
    if user.role != Role.admin.value and user.approval_status != ApprovalStatus.approved.value:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Compte en attente d'approbation")
    return user


def require_role(*roles: Role):
    allowed = {r.value for r in roles}

    def _dependency(user: User = Depends(require_approved)) -> User:
        if user.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")
        return user

    return _dependency

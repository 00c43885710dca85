from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ravito.core.database import get_db
from ravito.core.deps import active_user, get_current_user
from ravito.core.security import REFRESH_TOKEN, create_token_pair, decode_token, verify_password
from ravito.models.user import User
from ravito.services.organization_service import get_organization_name
from ravito.services.sales_representative_service import list_active_representatives
from ravito.services.user_service import RegistrationError, register_user


router = APIRouter()


class RegisterRequest(BaseModel):
    email: str
    password: str
    full_name: str
    phone: str
    role: str = "client"
    organization_name: str
    address: Optional[str] = None
    sales_representative_id: Optional[int] = None


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class MeResponse(BaseModel):
    id: int
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: str
    approval_status: str
    rejection_reason: Optional[str] = None
    organization_id: Optional[int] = None
    organization_name: str


class RepresentativeOption(BaseModel):
    id: int
    name: str
    zone_id: Optional[int] = None

    class Config:
        from_attributes = True


@router.post("/register", response_model=TokenResponse, status_code=201)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    """Self-registration of a client or supplier; the account starts pending."""
    try:
        user = register_user(db, **data.model_dump())
    except RegistrationError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.errors)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    access, refresh = create_token_pair(user.id)
    return TokenResponse(access_token=access, refresh_token=refresh)


@router.get("/sales-representatives", response_model=List[RepresentativeOption])
def registration_representatives(db: Session = Depends(get_db)):
    return list_active_representatives(db)


@router.post("/login", response_model=TokenResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == data.email.strip().lower()).first()
    if not user or not verify_password(data.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Identifiants invalides")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Compte désactivé")
    access, refresh = create_token_pair(user.id)
    return TokenResponse(access_token=access, refresh_token=refresh)


@router.post("/refresh", response_model=TokenResponse)
def refresh_token_endpoint(data: RefreshRequest, db: Session = Depends(get_db)):
    user_id = decode_token(data.refresh_token, REFRESH_TOKEN)
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Jeton de rafraîchissement invalide")
    user = active_user(db, user_id)

    access, refresh = create_token_pair(user.id)
    return TokenResponse(access_token=access, refresh_token=refresh)


@router.get("/me", response_model=MeResponse)
def me(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return MeResponse(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        phone=user.phone,
        role=user.role,
        approval_status=user.approval_status,
        rejection_reason=user.rejection_reason,
        organization_id=user.organization_id,
        organization_name=get_organization_name(db, user),
    )

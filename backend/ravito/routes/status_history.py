from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ravito.core.database import get_db
from ravito.core.deps import get_current_user
from ravito.core.errors import service_errors
from ravito.models.user import User
from ravito.services.status_history_service import list_status_history

router = APIRouter()


class StatusHistoryOut(BaseModel):
    id: int
    entity_type: str
    entity_id: int
    old_status: Optional[str] = None
    new_status: str
    user_email: str
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


@router.get("/{entity_type}/{entity_id}", response_model=List[StatusHistoryOut])
def get_status_history(
    entity_type: str,
    entity_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Status changes of an order or a daily sheet, newest first"""
    with service_errors():
        return list_status_history(db, user, entity_type, entity_id)

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ravito.core.database import get_db
from ravito.core.deps import require_approved
from ravito.core.errors import service_errors
from ravito.models.user import User
from ravito.schemas.activity import DailySummary, SheetRow
from ravito.services import daily_sheet_service
from ravito.services.organization_service import get_organization_name
from ravito.utils.pdf_utils import generate_daily_pdf

router = APIRouter()


class OpeningCashUpdate(BaseModel):
    opening_cash: float


class StockLineUpdate(BaseModel):
    external_supply: Optional[int] = None
    final_stock: Optional[int] = None


class PackagingUpdate(BaseModel):
    qty_full_start: Optional[int] = None
    qty_empty_start: Optional[int] = None
    qty_consignes_paid: Optional[int] = None
    qty_full_end: Optional[int] = None
    qty_empty_end: Optional[int] = None
    notes: Optional[str] = None


class ExpenseCreate(BaseModel):
    label: str
    amount: float
    category: str = "other"


class CloseRequest(BaseModel):
    closing_cash: float
    notes: Optional[str] = None
    confirm: bool = False


def _sheet(db: Session, user: User, sheet_id: int):
    with service_errors():
        return daily_sheet_service.get_sheet(db, user.organization_id, sheet_id)


def _summary(db: Session, sheet) -> DailySummary:
    db.refresh(sheet)
    return daily_sheet_service.get_daily_summary(db, sheet)


@router.get("/sheets", response_model=DailySummary)
def get_sheet_for_date(
    sheet_date: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
    user: User = Depends(require_approved),
):
    """Sheet of a business day, created with yesterday's carryover when missing"""
    if user.organization_id is None:
        raise HTTPException(status_code=400, detail="Aucun établissement associé")
    sheet, _ = daily_sheet_service.get_or_create_daily_sheet(db, user.organization_id, sheet_date)
    return daily_sheet_service.get_daily_summary(db, sheet)


@router.get("/sheets/closed", response_model=List[SheetRow])
def list_closed_sheets(
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: Session = Depends(get_db),
    user: User = Depends(require_approved),
):
    """Closed sheets in [start_date, end_date)"""
    if end_date <= start_date:
        raise HTTPException(status_code=400, detail="La date de fin doit être postérieure à la date de début")
    return daily_sheet_service.list_closed_sheets(db, user.organization_id, start_date, end_date)


@router.get("/sheets/{sheet_id}", response_model=DailySummary)
def get_sheet(sheet_id: int, db: Session = Depends(get_db), user: User = Depends(require_approved)):
    return daily_sheet_service.get_daily_summary(db, _sheet(db, user, sheet_id))


@router.put("/sheets/{sheet_id}/opening-cash", response_model=DailySummary)
def update_opening_cash(
    sheet_id: int,
    data: OpeningCashUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_approved),
):
    sheet = _sheet(db, user, sheet_id)
    with service_errors():
        daily_sheet_service.update_opening_cash(db, sheet, data.opening_cash)
    return _summary(db, sheet)


@router.put("/sheets/{sheet_id}/stock-lines/{line_id}", response_model=DailySummary)
def update_stock_line(
    sheet_id: int,
    line_id: int,
    data: StockLineUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_approved),
):
    sheet = _sheet(db, user, sheet_id)
    with service_errors():
        daily_sheet_service.update_stock_line(db, sheet, line_id, **data.model_dump())
    return _summary(db, sheet)


@router.put("/sheets/{sheet_id}/packaging/{packaging_id}", response_model=DailySummary)
def update_packaging(
    sheet_id: int,
    packaging_id: int,
    data: PackagingUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_approved),
):
    sheet = _sheet(db, user, sheet_id)
    with service_errors():
        daily_sheet_service.update_packaging(db, sheet, packaging_id, **data.model_dump())
    return _summary(db, sheet)


@router.post("/sheets/{sheet_id}/expenses", response_model=DailySummary, status_code=201)
def add_expense(
    sheet_id: int,
    data: ExpenseCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_approved),
):
    sheet = _sheet(db, user, sheet_id)
    with service_errors():
        daily_sheet_service.add_expense(db, sheet, data.label, data.amount, data.category)
    return _summary(db, sheet)


@router.delete("/sheets/{sheet_id}/expenses/{expense_id}", response_model=DailySummary)
def delete_expense(
    sheet_id: int,
    expense_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_approved),
):
    sheet = _sheet(db, user, sheet_id)
    with service_errors():
        daily_sheet_service.delete_expense(db, sheet, expense_id)
    return _summary(db, sheet)


@router.post("/sheets/{sheet_id}/sync-deliveries", response_model=DailySummary)
def sync_deliveries(sheet_id: int, db: Session = Depends(get_db), user: User = Depends(require_approved)):
    """Pull the quantities of RAVITO orders delivered that day into the stock lines"""
    sheet = _sheet(db, user, sheet_id)
    with service_errors():
        daily_sheet_service.sync_ravito_deliveries(db, sheet)
    return _summary(db, sheet)


@router.post("/sheets/{sheet_id}/close", response_model=DailySummary)
def close_sheet(
    sheet_id: int,
    data: CloseRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_approved),
):
    sheet = _sheet(db, user, sheet_id)
    with service_errors():
        daily_sheet_service.close_daily_sheet(
            db, sheet, data.closing_cash, user, notes=data.notes, confirm=data.confirm
        )
    return _summary(db, sheet)


@router.get("/sheets/{sheet_id}/pdf")
def export_sheet_pdf(sheet_id: int, db: Session = Depends(get_db), user: User = Depends(require_approved)):
    sheet = _sheet(db, user, sheet_id)
    if not sheet.is_closed:
        raise HTTPException(status_code=400, detail="Seule une journée clôturée peut être exportée")
    summary = daily_sheet_service.get_daily_summary(db, sheet)
    content = generate_daily_pdf(summary, get_organization_name(db, user))
    filename = f"ravito_journee_{sheet.sheet_date.isoformat()}.pdf"
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )

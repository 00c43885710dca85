import logging
from io import BytesIO

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response, StreamingResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ravito.core.database import get_db
from ravito.core.deps import require_approved
from ravito.core.errors import service_errors
from ravito.models.user import User
from ravito.schemas.activity import AnnualData, MonthlyData
from ravito.services.annual_service import get_annual_data
from ravito.services.monthly_service import get_monthly_data
from ravito.services.organization_service import get_organization_name
from ravito.utils.export import export_annual_excel
from ravito.utils.pdf_utils import generate_annual_pdf, generate_monthly_pdf

logger = logging.getLogger(__name__)

router = APIRouter()

REPORT_ERROR = "Erreur lors du chargement des données"


def _monthly(db: Session, user: User, year: int, month: int) -> MonthlyData:
    try:
        with service_errors():
            return get_monthly_data(db, user.organization_id, year, month)
    except SQLAlchemyError:
        logger.exception("monthly report failed org=%s %s-%s", user.organization_id, year, month)
        raise HTTPException(status_code=500, detail=REPORT_ERROR)


def _annual(db: Session, user: User, year: int) -> AnnualData:
    try:
        return get_annual_data(db, user.organization_id, year)
    except SQLAlchemyError:
        logger.exception("annual report failed org=%s year=%s", user.organization_id, year)
        raise HTTPException(status_code=500, detail=REPORT_ERROR)


@router.get("/monthly", response_model=MonthlyData)
def monthly_report(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    db: Session = Depends(get_db),
    user: User = Depends(require_approved),
):
    """Monthly closure: KPIs against the previous month, expenses, top products and daily revenue"""
    return _monthly(db, user, year, month)


@router.get("/monthly/pdf")
def monthly_report_pdf(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    db: Session = Depends(get_db),
    user: User = Depends(require_approved),
):
    data = _monthly(db, user, year, month)
    content = generate_monthly_pdf(data, get_organization_name(db, user))
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename=ravito_cloture_{year}_{month:02d}.pdf"},
    )


@router.get("/annual", response_model=AnnualData)
def annual_report(
    year: int = Query(..., ge=2000, le=2100),
    db: Session = Depends(get_db),
    user: User = Depends(require_approved),
):
    """Annual closure built from the closed daily sheets of the year"""
    return _annual(db, user, year)


@router.get("/annual/pdf")
def annual_report_pdf(
    year: int = Query(..., ge=2000, le=2100),
    db: Session = Depends(get_db),
    user: User = Depends(require_approved),
):
    data = _annual(db, user, year)
    content = generate_annual_pdf(data, get_organization_name(db, user))
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename=ravito_bilan_{year}.pdf"},
    )


@router.get("/annual/excel")
def annual_report_excel(
    year: int = Query(..., ge=2000, le=2100),
    db: Session = Depends(get_db),
    user: User = Depends(require_approved),
):
    data = _annual(db, user, year)
    output = BytesIO(export_annual_excel(data, year))
    return StreamingResponse(
        output,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename=ravito_bilan_{year}.xlsx"},
    )

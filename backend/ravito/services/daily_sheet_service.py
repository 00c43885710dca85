"""
Daily activity sheet service.

A sheet is created per establishment and per business day, carrying over the
previous day's counts. It moves from open to closed exactly once: closing
freezes the recomputed revenue and the cash difference, and every mutation is
refused afterwards.
"""
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional, Set, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from ravito.core.order_status import RECEIVED_STATUSES
from ravito.models.crate_type import CrateType
from ravito.models.credit import CreditCustomer
from ravito.models.daily_sheet import DailyExpense, DailyPackaging, DailySheet, DailyStockLine
from ravito.models.order import Order, OrderItem
from ravito.models.product import EstablishmentProduct, Product
from ravito.models.user import User
from ravito.schemas.activity import (
    DailySummary,
    ExpenseRow,
    PackagingRow,
    PackagingView,
    SheetRow,
    StockLineRow,
    StockLineView,
)
from ravito.services import closure_calculations as calc
from ravito.services.status_history_service import create_status_history

logger = logging.getLogger(__name__)

EXPENSE_CATEGORIES = {
    "food": "Alimentation / Nourriture",
    "transport": "Transport",
    "utilities": "Services publics (électricité, eau, etc.)",
    "other": "Autre",
}

SHEET_CLOSED_MESSAGE = "La journée est clôturée: aucune modification possible"


def _money(value: float) -> Decimal:
    return Decimal(str(round(float(value), 2)))


def _ensure_open(sheet: DailySheet) -> None:
    if sheet.is_closed:
        raise ValueError(SHEET_CLOSED_MESSAGE)


def _ensure_non_negative(**values: Optional[float]) -> None:
    for name, value in values.items():
        if value is not None and value < 0:
            raise ValueError(f"La valeur '{name}' ne peut pas être négative")


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def get_sheet(db: Session, organization_id: int, sheet_id: int) -> DailySheet:
    sheet = db.query(DailySheet).filter(
        DailySheet.id == sheet_id,
        DailySheet.organization_id == organization_id,
    ).first()
    if not sheet:
        raise LookupError("Fiche journalière introuvable")
    return sheet


def get_establishment_catalog(db: Session, organization_id: int) -> Dict[int, EstablishmentProduct]:
    rows = db.query(EstablishmentProduct).filter(EstablishmentProduct.organization_id == organization_id).all()
    return {row.product_id: row for row in rows}


def get_selling_prices(db: Session, organization_id: int) -> Dict[int, float]:
    return {pid: float(ep.selling_price) for pid, ep in get_establishment_catalog(db, organization_id).items()}


def get_consignable_codes(db: Session) -> Set[str]:
    return {code for (code,) in db.query(CrateType.code).filter(CrateType.is_consignable == True).all()}  # noqa: E712


# ---------------------------------------------------------------------------
# Creation with carryover
# ---------------------------------------------------------------------------

def _carryover_initial_stock(previous: Optional[DailyStockLine]) -> int:
    if previous is None:
        return 0
    if previous.final_stock is not None:
        return previous.final_stock
    # Day left uncounted: assume nothing was sold
    return previous.initial_stock + previous.ravito_supply + previous.external_supply


def get_or_create_daily_sheet(db: Session, organization_id: int, sheet_date: date) -> Tuple[DailySheet, bool]:
    """
    Return the sheet of ``sheet_date``, creating it when missing.

    A new sheet carries over from the most recent earlier sheet:
    opening cash from its closing cash, initial stocks from its final stocks,
    and crate start counts from its end counts.

    Args:
        db: Database session
        organization_id: Establishment owning the sheet
        sheet_date: Business day

    Returns:
        (sheet, created)
    """
    sheet = db.query(DailySheet).filter(
        DailySheet.organization_id == organization_id,
        DailySheet.sheet_date == sheet_date,
    ).first()
    if sheet:
        return sheet, False

    previous = db.query(DailySheet).filter(
        DailySheet.organization_id == organization_id,
        DailySheet.sheet_date < sheet_date,
    ).order_by(DailySheet.sheet_date.desc()).first()

    sheet = DailySheet(
        organization_id=organization_id,
        sheet_date=sheet_date,
        status="open",
        opening_cash=previous.closing_cash if previous is not None and previous.closing_cash is not None else 0,
        theoretical_revenue=0,
        expenses_total=0,
        credit_sales=0,
        credit_payments=0,
    )
    db.add(sheet)
    db.flush()

    previous_lines = {line.product_id: line for line in previous.stock_lines} if previous else {}
    previous_packaging = {row.crate_type: row for row in previous.packaging} if previous else {}

    active_products = db.query(EstablishmentProduct).filter(
        EstablishmentProduct.organization_id == organization_id,
        EstablishmentProduct.is_active == True,  # noqa: E712
    ).all()
    for ep in active_products:
        db.add(DailyStockLine(
            daily_sheet_id=sheet.id,
            product_id=ep.product_id,
            initial_stock=_carryover_initial_stock(previous_lines.get(ep.product_id)),
            ravito_supply=0,
            external_supply=0,
        ))

    for crate in db.query(CrateType).filter(CrateType.is_active == True).order_by(CrateType.code).all():  # noqa: E712
        prev = previous_packaging.get(crate.code)
        full_start = empty_start = 0
        if prev is not None:
            full_start = prev.qty_full_end if prev.qty_full_end is not None else prev.qty_full_start
            empty_start = prev.qty_empty_end if prev.qty_empty_end is not None else prev.qty_empty_start
        db.add(DailyPackaging(
            daily_sheet_id=sheet.id,
            crate_type=crate.code,
            qty_full_start=full_start,
            qty_empty_start=empty_start,
        ))

    db.commit()
    db.refresh(sheet)
    logger.info("daily sheet created org=%s date=%s carryover_from=%s",
                organization_id, sheet_date, previous.sheet_date if previous else None)
    return sheet, True


# ---------------------------------------------------------------------------
# Mutations while open
# ---------------------------------------------------------------------------

def update_stock_line(
    db: Session,
    sheet: DailySheet,
    line_id: int,
    external_supply: Optional[int] = None,
    final_stock: Optional[int] = None,
) -> DailyStockLine:
    _ensure_open(sheet)
    _ensure_non_negative(external_supply=external_supply, final_stock=final_stock)

    line = db.query(DailyStockLine).filter(
        DailyStockLine.id == line_id,
        DailyStockLine.daily_sheet_id == sheet.id,
    ).first()
    if not line:
        raise LookupError("Ligne de stock introuvable")

    if external_supply is not None:
        line.external_supply = external_supply
    if final_stock is not None:
        line.final_stock = final_stock
    db.commit()
    db.refresh(line)
    return line


def update_packaging(
    db: Session,
    sheet: DailySheet,
    packaging_id: int,
    qty_full_start: Optional[int] = None,
    qty_empty_start: Optional[int] = None,
    qty_consignes_paid: Optional[int] = None,
    qty_full_end: Optional[int] = None,
    qty_empty_end: Optional[int] = None,
    notes: Optional[str] = None,
) -> DailyPackaging:
    _ensure_open(sheet)
    _ensure_non_negative(
        qty_full_start=qty_full_start,
        qty_empty_start=qty_empty_start,
        qty_consignes_paid=qty_consignes_paid,
        qty_full_end=qty_full_end,
        qty_empty_end=qty_empty_end,
    )

    row = db.query(DailyPackaging).filter(
        DailyPackaging.id == packaging_id,
        DailyPackaging.daily_sheet_id == sheet.id,
    ).first()
    if not row:
        raise LookupError("Ligne d'emballage introuvable")

    updates = {
        "qty_full_start": qty_full_start,
        "qty_empty_start": qty_empty_start,
        "qty_consignes_paid": qty_consignes_paid,
        "qty_full_end": qty_full_end,
        "qty_empty_end": qty_empty_end,
        "notes": notes,
    }
    for field, value in updates.items():
        if value is not None:
            setattr(row, field, value)
    db.commit()
    db.refresh(row)
    return row


def _refresh_expenses_total(db: Session, sheet: DailySheet) -> None:
    db.flush()
    total = db.query(func.coalesce(func.sum(DailyExpense.amount), 0)).filter(
        DailyExpense.daily_sheet_id == sheet.id
    ).scalar()
    sheet.expenses_total = total


def add_expense(db: Session, sheet: DailySheet, label: str, amount: float, category: str) -> DailyExpense:
    _ensure_open(sheet)
    if not label or not label.strip():
        raise ValueError("Le libellé de la dépense est requis")
    if amount is None or amount <= 0:
        raise ValueError("Le montant doit être supérieur à 0")
    if category not in EXPENSE_CATEGORIES:
        raise ValueError(f"Catégorie de dépense invalide: {category}")

    expense = DailyExpense(daily_sheet_id=sheet.id, label=label.strip(), amount=_money(amount), category=category)
    db.add(expense)
    _refresh_expenses_total(db, sheet)
    db.commit()
    db.refresh(expense)
    return expense


def delete_expense(db: Session, sheet: DailySheet, expense_id: int) -> None:
    _ensure_open(sheet)
    expense = db.query(DailyExpense).filter(
        DailyExpense.id == expense_id,
        DailyExpense.daily_sheet_id == sheet.id,
    ).first()
    if not expense:
        raise LookupError("Dépense introuvable")
    db.delete(expense)
    _refresh_expenses_total(db, sheet)
    db.commit()


def update_opening_cash(db: Session, sheet: DailySheet, opening_cash: float) -> DailySheet:
    _ensure_open(sheet)
    _ensure_non_negative(opening_cash=opening_cash)
    sheet.opening_cash = _money(opening_cash)
    db.commit()
    db.refresh(sheet)
    return sheet


def sync_ravito_deliveries(db: Session, sheet: DailySheet) -> Dict[int, int]:
    """
    Set ``ravito_supply`` from the organization's orders received that day.

    Crates received are mirrored on the packaging rows of the same consignable
    crate type.

    Returns:
        product_id -> delivered quantity
    """
    _ensure_open(sheet)

    start = datetime.combine(sheet.sheet_date, datetime.min.time())
    end = datetime.combine(sheet.sheet_date, datetime.max.time())
    rows = (
        db.query(OrderItem.product_id, Product.crate_type, func.sum(OrderItem.quantity))
        .join(Order, Order.id == OrderItem.order_id)
        .join(Product, Product.id == OrderItem.product_id)
        .filter(
            Order.organization_id == sheet.organization_id,
            Order.status.in_([s.value for s in RECEIVED_STATUSES]),
            Order.delivered_at >= start,
            Order.delivered_at <= end,
        )
        .group_by(OrderItem.product_id, Product.crate_type)
        .all()
    )

    delivered: Dict[int, int] = {}
    crates: Dict[str, int] = {}
    for product_id, crate_type, quantity in rows:
        delivered[product_id] = delivered.get(product_id, 0) + int(quantity or 0)
        crates[crate_type] = crates.get(crate_type, 0) + int(quantity or 0)

    lines = {line.product_id: line for line in sheet.stock_lines}
    for line in lines.values():
        line.ravito_supply = delivered.get(line.product_id, 0)
    for product_id, quantity in delivered.items():
        if product_id not in lines:
            db.add(DailyStockLine(
                daily_sheet_id=sheet.id,
                product_id=product_id,
                initial_stock=0,
                ravito_supply=quantity,
                external_supply=0,
            ))
    consignable = get_consignable_codes(db)
    for row in sheet.packaging:
        if row.crate_type in consignable:
            row.qty_received = crates.get(row.crate_type, 0)

    db.commit()
    db.refresh(sheet)
    logger.info("ravito deliveries synced sheet=%s products=%s", sheet.id, len(delivered))
    return delivered


# ---------------------------------------------------------------------------
# Summary and closing
# ---------------------------------------------------------------------------

def _load_rows(db: Session, sheet: DailySheet):
    lines = sorted(sheet.stock_lines, key=lambda l: (l.product.name if l.product else "", l.id))
    packaging = sorted(sheet.packaging, key=lambda p: p.crate_type)
    expenses = sorted(sheet.expenses, key=lambda e: e.created_at or datetime.min, reverse=True)
    return lines, packaging, expenses


def get_daily_summary(db: Session, sheet: DailySheet) -> DailySummary:
    """Sheet, enriched rows, cash calculations and what is still missing to close."""
    catalog = get_establishment_catalog(db, sheet.organization_id)
    crates = {c.code: c for c in db.query(CrateType).all()}
    consignable = {code for code, crate in crates.items() if crate.is_consignable}

    lines, packaging, expenses = _load_rows(db, sheet)
    line_rows = [StockLineRow.model_validate(line) for line in lines]
    packaging_rows = [PackagingRow.model_validate(row) for row in packaging]
    expense_rows = [ExpenseRow.model_validate(e) for e in expenses]

    prices = calc.line_prices(line_rows, {pid: float(ep.selling_price) for pid, ep in catalog.items()})
    min_stocks = {pid: ep.min_stock_alert for pid, ep in catalog.items()}
    names = {line.product_id: line.product.name for line in lines if line.product}

    line_views = []
    for line, row in zip(lines, line_rows):
        ep = catalog.get(row.product_id)
        price = prices.get(row.product_id)
        line_views.append(StockLineView(
            **row.model_dump(),
            product_name=names.get(row.product_id, ""),
            selling_price=price,
            min_stock_alert=ep.min_stock_alert if ep else 0,
            calculations=calc.calculate_stock_line(row, price),
        ))

    packaging_views = []
    for row in packaging_rows:
        crate = crates.get(row.crate_type)
        packaging_views.append(PackagingView(
            **row.model_dump(),
            crate_label=crate.label if crate else None,
            is_consignable=crate.is_consignable if crate else False,
            calculations=calc.calculate_packaging(row),
        ))

    sheet_row = SheetRow.model_validate(sheet)
    return DailySummary(
        sheet=sheet_row,
        stock_lines=line_views,
        packaging=packaging_views,
        expenses=expense_rows,
        calculations=calc.compute_daily_calculations(
            sheet_row, line_rows, packaging_rows, expense_rows, prices, min_stocks, names,
            frozen=sheet.is_closed,
        ),
        requirements=calc.closing_requirements(line_rows, packaging_rows, consignable),
    )


def close_daily_sheet(
    db: Session,
    sheet: DailySheet,
    closing_cash: float,
    user: User,
    notes: Optional[str] = None,
    confirm: bool = False,
) -> DailySheet:
    """
    Close the sheet. Irreversible.

    The theoretical revenue is recomputed from the stock lines and the cash
    difference stored as closing - (opening + revenue - expenses).

    Args:
        db: Database session
        sheet: Open sheet to close
        closing_cash: Cash counted in the evening
        user: Operator closing the day
        notes: Optional closing notes
        confirm: Must be True, closing cannot be undone

    Returns:
        The closed sheet

    Raises:
        ValueError: Sheet already closed, missing confirmation, negative cash
            or incomplete counts (the message lists what is missing)
    """
    if sheet.is_closed:
        raise ValueError("La journée est déjà clôturée")
    if not confirm:
        raise ValueError("Confirmation requise: la clôture est irréversible")
    if closing_cash is None or closing_cash < 0:
        raise ValueError("Le montant de la caisse ne peut pas être négatif")

    lines, packaging, _ = _load_rows(db, sheet)
    line_rows = [StockLineRow.model_validate(line) for line in lines]
    packaging_rows = [PackagingRow.model_validate(row) for row in packaging]

    requirements = calc.closing_requirements(line_rows, packaging_rows, get_consignable_codes(db))
    if not requirements.can_close:
        raise ValueError("Données incomplètes: " + ", ".join(requirements.missing_messages))

    prices = get_selling_prices(db, sheet.organization_id)
    revenue = calc.compute_theoretical_revenue(line_rows, prices)
    expenses_total = float(sheet.expenses_total or 0)
    opening = float(sheet.opening_cash or 0)
    difference = float(closing_cash) - (opening + revenue - expenses_total)

    credit_balance = db.query(func.coalesce(func.sum(CreditCustomer.current_balance), 0)).filter(
        CreditCustomer.organization_id == sheet.organization_id
    ).scalar()

    sheet.status = "closed"
    sheet.closing_cash = _money(closing_cash)
    sheet.theoretical_revenue = _money(revenue)
    sheet.cash_difference = _money(difference)
    sheet.credit_balance_eod = credit_balance
    sheet.notes = notes or None
    sheet.closed_at = datetime.utcnow()
    sheet.closed_by = user.id
    for line in lines:
        price = prices.get(line.product_id)
        line.closed_price = _money(price) if price is not None else None

    create_status_history(
        db=db,
        organization_id=sheet.organization_id,
        entity_type="daily_sheet",
        entity_id=sheet.id,
        old_status="open",
        new_status="closed",
        user_id=user.id,
        user_email=user.email,
        notes=f"Écart de caisse: {round(difference)}",
    )
    db.commit()
    db.refresh(sheet)
    logger.info("daily sheet closed id=%s revenue=%s difference=%s", sheet.id, revenue, difference)
    return sheet


def list_closed_sheets(db: Session, organization_id: int, start: date, end: date) -> List[DailySheet]:
    """Closed sheets in [start, end), oldest first."""
    return db.query(DailySheet).filter(
        DailySheet.organization_id == organization_id,
        DailySheet.status == "closed",
        DailySheet.sheet_date >= start,
        DailySheet.sheet_date < end,
    ).order_by(DailySheet.sheet_date.asc()).all()

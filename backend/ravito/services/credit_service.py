"""
Customer credit ("ardoise") for establishments.

Consumptions and payments are booked on the daily sheet of their date, so a
closed day cannot receive new credit movements.
"""
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ravito.core.validation import validate_phone_ci
from ravito.models.credit import CreditCustomer, CreditTransaction, CreditTransactionItem
from ravito.models.user import User
from ravito.services.daily_sheet_service import SHEET_CLOSED_MESSAGE, get_or_create_daily_sheet

logger = logging.getLogger(__name__)

PAYMENT_METHOD_LABELS = {
    "cash": "Espèces",
    "mobile_money": "Mobile Money",
    "transfer": "Virement",
}

FREEZE_OPTIONS = ("freeze_full", "reduce_limit", "disable")


def _money(value) -> Decimal:
    return Decimal(str(round(float(value), 2)))


def _check_phone(phone: Optional[str]) -> None:
    if phone:
        result = validate_phone_ci(phone)
        if not result.is_valid:
            raise ValueError(result.error)


def get_customer(db: Session, organization_id: int, customer_id: int) -> CreditCustomer:
    customer = db.query(CreditCustomer).filter(
        CreditCustomer.id == customer_id,
        CreditCustomer.organization_id == organization_id,
    ).first()
    if not customer:
        raise LookupError("Client introuvable")
    return customer


def list_customers(db: Session, organization_id: int, include_disabled: bool = False) -> List[CreditCustomer]:
    query = db.query(CreditCustomer).filter(CreditCustomer.organization_id == organization_id)
    if not include_disabled:
        query = query.filter(CreditCustomer.status != "disabled")
    return query.order_by(CreditCustomer.name.asc()).all()


def add_customer(
    db: Session,
    organization_id: int,
    name: str,
    phone: Optional[str] = None,
    address: Optional[str] = None,
    notes: Optional[str] = None,
    credit_limit: float = 0,
) -> CreditCustomer:
    if not name or not name.strip():
        raise ValueError("Le nom du client est requis")
    if credit_limit < 0:
        raise ValueError("Le plafond ne peut pas être négatif")
    _check_phone(phone)

    customer = CreditCustomer(
        organization_id=organization_id,
        name=name.strip(),
        phone=phone,
        address=address,
        notes=notes,
        credit_limit=_money(credit_limit),
        current_balance=0,
        total_credited=0,
        total_paid=0,
        status="active",
    )
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


def update_customer(db: Session, organization_id: int, customer_id: int, **changes) -> CreditCustomer:
    customer = get_customer(db, organization_id, customer_id)
    _check_phone(changes.get("phone"))
    if changes.get("credit_limit") is not None and changes["credit_limit"] < 0:
        raise ValueError("Le plafond ne peut pas être négatif")
    for field in ("name", "phone", "address", "notes"):
        if changes.get(field) is not None:
            setattr(customer, field, changes[field])
    if changes.get("credit_limit") is not None:
        customer.credit_limit = _money(changes["credit_limit"])
    db.commit()
    db.refresh(customer)
    return customer


def freeze_customer(
    db: Session,
    organization_id: int,
    customer_id: int,
    option: str,
    reason: str,
    new_limit: Optional[float] = None,
) -> CreditCustomer:
    """
    freeze_full caps the limit at the current balance, reduce_limit sets a new
    limit, disable hides the customer. The first two mark the customer frozen.

    A limit of 0 means unlimited, so a freeze never writes one: with nothing
    owed, freeze_full keeps the current limit.
    """
    if option not in FREEZE_OPTIONS:
        raise ValueError(f"Option de gel invalide: {option}")
    if not reason or not reason.strip():
        raise ValueError("Le motif est requis")
    if option == "reduce_limit" and (new_limit is None or new_limit <= 0):
        raise ValueError("Le nouveau plafond doit être supérieur à 0")
    customer = get_customer(db, organization_id, customer_id)

    customer.frozen_at = datetime.utcnow()
    customer.freeze_reason = reason.strip()
    if option == "freeze_full":
        if float(customer.current_balance or 0) > 0:
            customer.credit_limit = customer.current_balance
        customer.status = "frozen"
    elif option == "reduce_limit":
        customer.credit_limit = _money(new_limit)
        customer.status = "frozen"
    else:
        customer.status = "disabled"
    db.commit()
    db.refresh(customer)
    return customer


def unfreeze_customer(db: Session, organization_id: int, customer_id: int, new_limit: Optional[float] = None) -> CreditCustomer:
    customer = get_customer(db, organization_id, customer_id)
    if new_limit is not None and new_limit < 0:
        raise ValueError("Le plafond ne peut pas être négatif")
    customer.status = "active"
    customer.frozen_at = None
    customer.freeze_reason = None
    if new_limit is not None:
        customer.credit_limit = _money(new_limit)
    db.commit()
    db.refresh(customer)
    return customer


def _open_sheet(db: Session, organization_id: int, day: date):
    sheet, _ = get_or_create_daily_sheet(db, organization_id, day)
    if sheet.is_closed:
        raise ValueError(SHEET_CLOSED_MESSAGE)
    return sheet


def add_consumption(
    db: Session,
    organization_id: int,
    user: User,
    customer_id: int,
    items: List[Dict[str, Any]],
    transaction_date: Optional[date] = None,
    notes: Optional[str] = None,
) -> CreditTransaction:
    """
    Book a consumption on credit from item lines
    ``{product_id, product_name, quantity, unit_price}``.

    Raises:
        ValueError: no items, frozen or disabled customer, limit exceeded,
            or the day's sheet is closed
    """
    customer = get_customer(db, organization_id, customer_id)
    if customer.status != "active":
        raise ValueError("Le crédit de ce client est gelé")
    if not items:
        raise ValueError("Au moins un article est requis")

    lines = []
    total = 0.0
    for item in items:
        quantity = int(item.get("quantity", 0))
        unit_price = float(item.get("unit_price", 0))
        if quantity <= 0 or unit_price < 0:
            raise ValueError("Quantité ou prix invalide")
        subtotal = quantity * unit_price
        total += subtotal
        lines.append((item, quantity, unit_price, subtotal))
    if total <= 0:
        raise ValueError("Le montant doit être supérieur à 0")

    limit = float(customer.credit_limit or 0)
    balance = float(customer.current_balance or 0)
    if limit > 0 and balance + total > limit:
        raise ValueError(f"Plafond de crédit dépassé ({round(balance + total)} > {round(limit)})")

    day = transaction_date or date.today()
    sheet = _open_sheet(db, organization_id, day)

    transaction = CreditTransaction(
        organization_id=organization_id,
        customer_id=customer.id,
        daily_sheet_id=sheet.id,
        transaction_type="consumption",
        amount=_money(total),
        notes=notes,
        transaction_date=day,
        created_by=user.id,
    )
    db.add(transaction)
    db.flush()
    for item, quantity, unit_price, subtotal in lines:
        db.add(CreditTransactionItem(
            transaction_id=transaction.id,
            product_id=item.get("product_id"),
            product_name=item.get("product_name") or "Article",
            quantity=quantity,
            unit_price=_money(unit_price),
            subtotal=_money(subtotal),
        ))

    customer.current_balance = _money(balance + total)
    customer.total_credited = _money(float(customer.total_credited or 0) + total)
    sheet.credit_sales = _money(float(sheet.credit_sales or 0) + total)
    db.commit()
    db.refresh(transaction)
    logger.info("credit consumption customer=%s amount=%s sheet=%s", customer.id, total, sheet.id)
    return transaction


def add_payment(
    db: Session,
    organization_id: int,
    user: User,
    customer_id: int,
    amount: float,
    payment_method: str,
    notes: Optional[str] = None,
    transaction_date: Optional[date] = None,
) -> CreditTransaction:
    customer = get_customer(db, organization_id, customer_id)
    if payment_method not in PAYMENT_METHOD_LABELS:
        raise ValueError(f"Mode de règlement invalide: {payment_method}")
    if amount is None or amount <= 0:
        raise ValueError("Le montant doit être supérieur à 0")
    balance = float(customer.current_balance or 0)
    if amount > balance:
        raise ValueError("Le montant dépasse le solde dû")

    day = transaction_date or date.today()
    sheet = _open_sheet(db, organization_id, day)

    transaction = CreditTransaction(
        organization_id=organization_id,
        customer_id=customer.id,
        daily_sheet_id=sheet.id,
        transaction_type="payment",
        amount=_money(amount),
        payment_method=payment_method,
        notes=notes,
        transaction_date=day,
        created_by=user.id,
    )
    db.add(transaction)
    customer.current_balance = _money(balance - amount)
    customer.total_paid = _money(float(customer.total_paid or 0) + amount)
    customer.last_payment_date = day
    sheet.credit_payments = _money(float(sheet.credit_payments or 0) + amount)
    db.commit()
    db.refresh(transaction)
    logger.info("credit payment customer=%s amount=%s method=%s", customer.id, amount, payment_method)
    return transaction


def list_transactions(db: Session, organization_id: int, customer_id: int, limit: Optional[int] = None) -> List[CreditTransaction]:
    get_customer(db, organization_id, customer_id)
    query = db.query(CreditTransaction).filter(
        CreditTransaction.organization_id == organization_id,
        CreditTransaction.customer_id == customer_id,
    ).order_by(CreditTransaction.transaction_date.desc(), CreditTransaction.created_at.desc(), CreditTransaction.id.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def credit_statistics(db: Session, organization_id: int) -> Dict[str, float]:
    customers = db.query(CreditCustomer).filter(
        CreditCustomer.organization_id == organization_id,
        CreditCustomer.status != "disabled",
    ).all()
    return {
        "total_credit": sum(float(c.current_balance or 0) for c in customers),
        "customers_with_balance": sum(1 for c in customers if float(c.current_balance or 0) > 0),
    }

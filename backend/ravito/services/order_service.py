"""
Marketplace orders: checkout, supplier offers, payment, delivery and rating.

Every status change goes through ravito.core.order_status.transition and is
written to the status history in the same transaction.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, TypedDict

from sqlalchemy.orm import Session

from ravito.core.cart import AddItem, CartProduct, CartStore
from ravito.core.config import settings
from ravito.core.order_number_service import generate_order_number
from ravito.core.order_status import (
    MANUAL_TARGETS,
    OPEN_FOR_OFFERS,
    RECEIVED_STATUSES,
    OrderStatus,
    get_status_label,
    transition,
)
from ravito.core.roles import ApprovalStatus, Role
from ravito.models.order import Order, OrderItem, Rating, SupplierOffer
from ravito.models.organization import Organization
from ravito.models.product import Product
from ravito.models.user import User
from ravito.models.zone import SupplierZone, Zone
from ravito.services.status_history_service import create_status_history

logger = logging.getLogger(__name__)

PAYMENT_METHODS = ("orange", "mtn", "moov", "wave", "card")


class TransactionRow(TypedDict):
    """One line of the transactions export."""
    date: datetime
    order_number: str
    counterparty: str
    amount_ht: float
    commission: float
    total: float
    status: str
    status_label: str


def _money(value: float) -> Decimal:
    return Decimal(str(round(float(value), 2)))


def _ensure_approved(user: User, role: Role) -> None:
    if user.role != role.value:
        raise PermissionError("Rôle non autorisé pour cette action")
    if user.approval_status != ApprovalStatus.approved.value:
        raise PermissionError("Compte en attente d'approbation")


def _change_status(db: Session, order: Order, target: OrderStatus, user: User, notes: Optional[str] = None) -> None:
    old_status = order.status
    new_status = transition(old_status, target, user.role)
    order.status = new_status.value
    if new_status in RECEIVED_STATUSES and order.delivered_at is None:
        order.delivered_at = datetime.utcnow()
    create_status_history(
        db=db,
        organization_id=order.organization_id,
        entity_type="order",
        entity_id=order.id,
        old_status=old_status,
        new_status=new_status.value,
        user_id=user.id,
        user_email=user.email,
        notes=notes,
    )


def get_order(db: Session, order_id: int) -> Order:
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise LookupError("Commande introuvable")
    return order


def get_order_for_user(db: Session, order_id: int, user: User) -> Order:
    """Order visible to its client, its assigned supplier, a supplier of its zone, or an admin."""
    order = get_order(db, order_id)
    if user.role == Role.admin.value or user.id in (order.client_id, order.supplier_id):
        return order
    if user.role == Role.supplier.value and OrderStatus(order.status) in OPEN_FOR_OFFERS:
        if order.zone_id in supplier_zone_ids(db, user.id):
            return order
    raise LookupError("Commande introuvable")


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------

def build_cart(db: Session, lines: List[Dict[str, Any]]) -> CartStore:
    """
    Fill a cart store from request lines ``{product_id, quantity, with_consigne}``.

    Raises:
        ValueError: unknown or inactive product, or a non-positive quantity
    """
    store = CartStore()
    for line in lines:
        product = db.query(Product).filter(
            Product.id == line["product_id"],
            Product.is_active == True,  # noqa: E712
        ).first()
        if not product:
            raise ValueError(f"Produit invalide: {line['product_id']}")
        quantity = int(line.get("quantity", 0))
        if quantity <= 0:
            raise ValueError(f"Quantité invalide pour {product.name}")
        store.dispatch(AddItem(
            product=CartProduct.model_validate(product),
            quantity=quantity,
            with_consigne=bool(line.get("with_consigne", False)),
        ))
    return store


def place_order(
    db: Session,
    client: User,
    lines: List[Dict[str, Any]],
    delivery_address: str,
    payment_method: str,
    zone_id: int,
) -> Order:
    """
    Create a pending order from the client's cart.

    Args:
        db: Database session
        client: Approved client placing the order
        lines: Cart lines
        delivery_address: Where to deliver
        payment_method: orange | mtn | moov | wave | card
        zone_id: Delivery zone, used to route the order to suppliers

    Returns:
        The new order, numbered CMD-000001 onwards per organization

    Raises:
        PermissionError: client not approved
        ValueError: empty cart, bad product, payment method or zone
    """
    _ensure_approved(client, Role.client)
    if payment_method not in PAYMENT_METHODS:
        raise ValueError(f"Moyen de paiement invalide: {payment_method}")
    if not delivery_address or not delivery_address.strip():
        raise ValueError("L'adresse de livraison est requise")
    zone = db.query(Zone).filter(Zone.id == zone_id, Zone.is_active == True).first()  # noqa: E712
    if not zone:
        raise ValueError("Zone de livraison invalide")

    store = build_cart(db, lines)
    if store.is_empty():
        raise ValueError("Le panier est vide")
    totals = store.totals_with_commission(settings.client_commission_pct)

    order = Order(
        order_number=generate_order_number(db, client.organization_id),
        organization_id=client.organization_id,
        client_id=client.id,
        zone_id=zone.id,
        status=OrderStatus.pending.value,
        delivery_address=delivery_address.strip(),
        payment_method=payment_method,
        subtotal=_money(totals.subtotal),
        consigne_total=_money(totals.consigne_total),
        client_commission=_money(totals.client_commission),
        total_amount=_money(totals.total),
    )
    db.add(order)
    db.flush()

    for item in store.items:
        line_total = item.product.crate_price * item.quantity
        if item.with_consigne:
            line_total += item.product.consign_price * item.quantity
        db.add(OrderItem(
            order_id=order.id,
            product_id=item.product.id,
            quantity=item.quantity,
            with_consigne=item.with_consigne,
            crate_price=_money(item.product.crate_price),
            consign_price=_money(item.product.consign_price),
            subtotal=_money(line_total),
        ))

    create_status_history(
        db=db,
        organization_id=order.organization_id,
        entity_type="order",
        entity_id=order.id,
        old_status=None,
        new_status=order.status,
        user_id=client.id,
        user_email=client.email,
    )
    db.commit()
    db.refresh(order)
    logger.info("order placed %s org=%s total=%s", order.order_number, order.organization_id, totals.total)
    return order


# ---------------------------------------------------------------------------
# Offers
# ---------------------------------------------------------------------------

def supplier_zone_ids(db: Session, supplier_id: int) -> List[int]:
    rows = db.query(SupplierZone.zone_id).filter(
        SupplierZone.supplier_id == supplier_id,
        SupplierZone.is_active == True,  # noqa: E712
    ).all()
    return [zone_id for (zone_id,) in rows]


def list_supplier_feed(db: Session, supplier: User) -> List[Order]:
    """Orders still open to offers in the supplier's approved zones, newest first."""
    _ensure_approved(supplier, Role.supplier)
    zone_ids = supplier_zone_ids(db, supplier.id)
    if not zone_ids:
        return []
    return db.query(Order).filter(
        Order.status.in_([s.value for s in OPEN_FOR_OFFERS]),
        Order.zone_id.in_(zone_ids),
    ).order_by(Order.created_at.desc(), Order.id.desc()).all()


def create_offer(
    db: Session,
    supplier: User,
    order_id: int,
    total_amount: Optional[float] = None,
    delivery_time_minutes: Optional[int] = None,
    message: Optional[str] = None,
) -> SupplierOffer:
    _ensure_approved(supplier, Role.supplier)
    order = get_order(db, order_id)
    if OrderStatus(order.status) not in OPEN_FOR_OFFERS:
        raise ValueError("Cette commande n'accepte plus d'offres")
    if order.zone_id not in supplier_zone_ids(db, supplier.id):
        raise PermissionError("Vous n'êtes pas approuvé dans la zone de cette commande")

    existing = db.query(SupplierOffer).filter(
        SupplierOffer.order_id == order.id,
        SupplierOffer.supplier_id == supplier.id,
        SupplierOffer.status == "pending",
    ).first()
    if existing:
        raise ValueError("Vous avez déjà une offre en attente pour cette commande")

    if total_amount is None:
        total_amount = float(order.subtotal) + float(order.consigne_total)
    if total_amount <= 0:
        raise ValueError("Le montant de l'offre doit être supérieur à 0")

    offer = SupplierOffer(
        order_id=order.id,
        supplier_id=supplier.id,
        status="pending",
        total_amount=_money(total_amount),
        delivery_time_minutes=delivery_time_minutes,
        message=message,
    )
    db.add(offer)
    if order.status == OrderStatus.pending.value:
        _change_status(db, order, OrderStatus.offers_received, supplier, notes="Première offre reçue")
    db.commit()
    db.refresh(offer)
    logger.info("offer created order=%s supplier=%s amount=%s", order.order_number, supplier.id, total_amount)
    return offer


def _get_offer(db: Session, order: Order, offer_id: int) -> SupplierOffer:
    offer = db.query(SupplierOffer).filter(
        SupplierOffer.id == offer_id,
        SupplierOffer.order_id == order.id,
    ).first()
    if not offer:
        raise LookupError("Offre introuvable")
    return offer


def _ensure_order_client(order: Order, client: User) -> None:
    if order.client_id != client.id:
        raise PermissionError("Cette commande ne vous appartient pas")


def accept_offer(db: Session, client: User, order_id: int, offer_id: int) -> Order:
    """
    Accept one offer: the others are rejected, the supplier is assigned and
    the order waits for payment.
    """
    _ensure_approved(client, Role.client)
    order = get_order(db, order_id)
    _ensure_order_client(order, client)
    offer = _get_offer(db, order, offer_id)
    if offer.status != "pending":
        raise ValueError("Cette offre n'est plus disponible")

    _change_status(db, order, OrderStatus.awaiting_payment, client, notes=f"Offre #{offer.id} acceptée")

    for other in order.offers:
        if other.id != offer.id and other.status == "pending":
            other.status = "rejected"
    offer.status = "accepted"

    base = float(offer.total_amount)
    client_commission = round(base * settings.client_commission_pct / 100)
    supplier_commission = round(base * settings.supplier_commission_pct / 100)
    order.supplier_id = offer.supplier_id
    order.client_commission = _money(client_commission)
    order.total_amount = _money(base + client_commission)
    order.supplier_commission = _money(supplier_commission)
    order.net_supplier_amount = _money(base - supplier_commission)

    db.commit()
    db.refresh(order)
    logger.info("offer accepted order=%s supplier=%s", order.order_number, order.supplier_id)
    return order


def reject_offer(db: Session, client: User, order_id: int, offer_id: int) -> Order:
    _ensure_approved(client, Role.client)
    order = get_order(db, order_id)
    _ensure_order_client(order, client)
    offer = _get_offer(db, order, offer_id)
    if offer.status != "pending":
        raise ValueError("Cette offre n'est plus disponible")

    offer.status = "rejected"
    db.flush()
    still_pending = any(o.status == "pending" for o in order.offers)
    if not still_pending and order.status == OrderStatus.offers_received.value:
        _change_status(db, order, OrderStatus.pending, client, notes="Toutes les offres ont été refusées")
    db.commit()
    db.refresh(order)
    return order


# ---------------------------------------------------------------------------
# Payment, delivery and rating
# ---------------------------------------------------------------------------

def pay_order(db: Session, user: User, order_id: int) -> Order:
    """Record the payment. No payment processor is called."""
    order = get_order(db, order_id)
    if user.role != Role.admin.value:
        _ensure_order_client(order, user)
    _change_status(db, order, OrderStatus.paid, user, notes=f"Paiement {order.payment_method}")
    order.paid_at = datetime.utcnow()
    db.commit()
    db.refresh(order)
    return order


def update_status(db: Session, user: User, order_id: int, target: str, notes: Optional[str] = None) -> Order:
    order = get_order(db, order_id)
    if user.role == Role.client.value:
        _ensure_order_client(order, user)
    elif user.role == Role.supplier.value and order.supplier_id != user.id:
        raise PermissionError("Cette commande ne vous est pas attribuée")
    new_status = OrderStatus(target)
    if new_status not in MANUAL_TARGETS:
        raise ValueError(f"Le statut \"{get_status_label(new_status)}\" passe par l'offre ou le paiement")
    _change_status(db, order, new_status, user, notes=notes)
    db.commit()
    db.refresh(order)
    return order


def rate_order(db: Session, user: User, order_id: int, score: int, comment: Optional[str] = None) -> Rating:
    """
    Rate the other party of a received order.

    A client rating an order awaiting its rating completes the delivery.
    """
    if not 1 <= score <= 5:
        raise ValueError("La note doit être comprise entre 1 et 5")
    order = get_order(db, order_id)
    if user.id == order.client_id:
        rated_id = order.supplier_id
    elif user.id == order.supplier_id:
        rated_id = order.client_id
    else:
        raise PermissionError("Vous ne participez pas à cette commande")
    if OrderStatus(order.status) not in RECEIVED_STATUSES or rated_id is None:
        raise ValueError("La commande doit être livrée pour être évaluée")
    if db.query(Rating).filter(Rating.order_id == order.id, Rating.rater_id == user.id).first():
        raise ValueError("Vous avez déjà évalué cette commande")

    rating = Rating(order_id=order.id, rater_id=user.id, rated_id=rated_id, score=score, comment=comment)
    db.add(rating)
    if user.id == order.client_id and order.status == OrderStatus.awaiting_rating.value:
        _change_status(db, order, OrderStatus.delivered, user, notes="Évaluation client reçue")
    db.commit()
    db.refresh(rating)
    return rating


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------

def list_orders_for_user(db: Session, user: User, status: Optional[str] = None) -> List[Order]:
    query = db.query(Order)
    if user.role == Role.client.value:
        query = query.filter(Order.client_id == user.id)
    elif user.role == Role.supplier.value:
        query = query.filter(Order.supplier_id == user.id)
    if status:
        query = query.filter(Order.status == status)
    return query.order_by(Order.created_at.desc(), Order.id.desc()).all()


def _organization_name(db: Session, user_id: Optional[int], cache: Dict[int, str]) -> str:
    if user_id is None:
        return ""
    if user_id not in cache:
        row = (
            db.query(Organization.name)
            .join(User, User.organization_id == Organization.id)
            .filter(User.id == user_id)
            .first()
        )
        cache[user_id] = row[0] if row else ""
    return cache[user_id]


def list_transactions(db: Session, user: User) -> List[TransactionRow]:
    """
    Orders seen from the user's side, for the CSV export.

    Clients see what they paid (commission = client commission), suppliers
    what they receive (commission = supplier commission), admins both
    commissions.
    """
    names: Dict[int, str] = {}
    rows: List[TransactionRow] = []
    for order in list_orders_for_user(db, user):
        base = float(order.subtotal) + float(order.consigne_total)
        if order.supplier_id is not None:
            base = float(order.total_amount) - float(order.client_commission)
        if user.role == Role.client.value:
            counterparty = _organization_name(db, order.supplier_id, names)
            commission = float(order.client_commission)
            total = float(order.total_amount)
        elif user.role == Role.supplier.value:
            counterparty = _organization_name(db, order.client_id, names)
            commission = float(order.supplier_commission)
            total = float(order.net_supplier_amount)
        else:
            counterparty = _organization_name(db, order.client_id, names)
            commission = float(order.client_commission) + float(order.supplier_commission)
            total = float(order.total_amount)
        rows.append(TransactionRow(
            date=order.created_at,
            order_number=order.order_number,
            counterparty=counterparty,
            amount_ht=base,
            commission=commission,
            total=total,
            status=order.status,
            status_label=get_status_label(order.status),
        ))
    return rows

"""
Machine à états des commandes.

Toutes les transitions autorisées et les rôles qui peuvent les déclencher
sont déclarés dans TRANSITIONS; aucune autre vérification de statut ne doit
être faite ailleurs.
"""
from enum import Enum
from typing import Dict, FrozenSet, Set, Tuple

from ravito.core.roles import Role


class OrderStatus(str, Enum):
    pending = "pending"
    offers_received = "offers-received"
    awaiting_payment = "awaiting-payment"
    paid = "paid"
    preparing = "preparing"
    delivering = "delivering"
    awaiting_rating = "awaiting-rating"
    delivered = "delivered"
    cancelled = "cancelled"


class InvalidTransition(ValueError):
    pass


STATUS_LABELS: Dict[OrderStatus, str] = {
    OrderStatus.pending: "En attente",
    OrderStatus.offers_received: "Offres reçues",
    OrderStatus.awaiting_payment: "En attente de paiement",
    OrderStatus.paid: "Payée",
    OrderStatus.preparing: "En préparation",
    OrderStatus.delivering: "En livraison",
    OrderStatus.awaiting_rating: "En attente d'évaluation",
    OrderStatus.delivered: "Livrée",
    OrderStatus.cancelled: "Annulée",
}

_CLIENT = frozenset({Role.client})
_SUPPLIER = frozenset({Role.supplier})
_CLIENT_OR_ADMIN = frozenset({Role.client, Role.admin})
_SUPPLIER_OR_ADMIN = frozenset({Role.supplier, Role.admin})

TRANSITIONS: Dict[Tuple[OrderStatus, OrderStatus], FrozenSet[Role]] = {
    (OrderStatus.pending, OrderStatus.offers_received): _SUPPLIER,
    (OrderStatus.offers_received, OrderStatus.awaiting_payment): _CLIENT,
    (OrderStatus.offers_received, OrderStatus.pending): _CLIENT,
    (OrderStatus.awaiting_payment, OrderStatus.paid): _CLIENT_OR_ADMIN,
    (OrderStatus.paid, OrderStatus.preparing): _SUPPLIER,
    (OrderStatus.preparing, OrderStatus.delivering): _SUPPLIER,
    (OrderStatus.delivering, OrderStatus.awaiting_rating): _SUPPLIER,
    (OrderStatus.delivering, OrderStatus.delivered): _SUPPLIER_OR_ADMIN,
    (OrderStatus.awaiting_rating, OrderStatus.delivered): _CLIENT_OR_ADMIN,
    (OrderStatus.pending, OrderStatus.cancelled): _CLIENT_OR_ADMIN,
    (OrderStatus.offers_received, OrderStatus.cancelled): _CLIENT_OR_ADMIN,
    (OrderStatus.awaiting_payment, OrderStatus.cancelled): _CLIENT_OR_ADMIN,
    (OrderStatus.paid, OrderStatus.cancelled): _CLIENT_OR_ADMIN,
}

TERMINAL_STATUSES = {OrderStatus.delivered, OrderStatus.cancelled}
# Orders counted as received by the client for stock purposes
RECEIVED_STATUSES = {OrderStatus.awaiting_rating, OrderStatus.delivered}
# Orders still open to supplier offers
OPEN_FOR_OFFERS = {OrderStatus.pending, OrderStatus.offers_received}

# Targets reachable through the generic status update. Offers and payment have
# their own operations.
MANUAL_TARGETS = {
    OrderStatus.preparing,
    OrderStatus.delivering,
    OrderStatus.awaiting_rating,
    OrderStatus.delivered,
    OrderStatus.cancelled,
}


def get_status_label(status) -> str:
    try:
        return STATUS_LABELS[OrderStatus(status)]
    except ValueError:
        return str(status)


def allowed_targets(current) -> Set[OrderStatus]:
    current = OrderStatus(current)
    return {target for (source, target) in TRANSITIONS if source == current}


def can_transition(current, target, role) -> bool:
    try:
        key = (OrderStatus(current), OrderStatus(target))
        role = Role(role)
    except ValueError:
        return False
    return role in TRANSITIONS.get(key, frozenset())


def transition(current, target, role) -> OrderStatus:
    """Retourne le nouveau statut ou lève InvalidTransition"""
    try:
        source, destination = OrderStatus(current), OrderStatus(target)
    except ValueError:
        raise InvalidTransition(f"Statut inconnu: {current} -> {target}")

    roles = TRANSITIONS.get((source, destination))
    if roles is None:
        raise InvalidTransition(
            f"Transition impossible: {get_status_label(source)} -> {get_status_label(destination)}"
        )
    if Role(role) not in roles:
        raise InvalidTransition(
            f"Le rôle {Role(role).value} ne peut pas passer la commande en '{get_status_label(destination)}'"
        )
    return destination

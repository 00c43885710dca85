from .organization import Organization
from .user import User
from .sales_representative import SalesRepresentative
from .zone import Zone, SupplierZone, ZoneRegistrationRequest
from .crate_type import CrateType
from .product import Product, EstablishmentProduct
from .daily_sheet import DailySheet, DailyStockLine, DailyPackaging, DailyExpense
from .order import Order, OrderItem, SupplierOffer, Rating
from .order_counter import OrderCounter
from .status_history import StatusHistory
from .credit import CreditCustomer, CreditTransaction, CreditTransactionItem

__all__ = [
    "Organization",
    "User",
    "SalesRepresentative",
    "Zone",
    "SupplierZone",
    "ZoneRegistrationRequest",
    "CrateType",
    "Product",
    "EstablishmentProduct",
    "DailySheet",
    "DailyStockLine",
    "DailyPackaging",
    "DailyExpense",
    "Order",
    "OrderItem",
    "SupplierOffer",
    "Rating",
    "OrderCounter",
    "StatusHistory",
    "CreditCustomer",
    "CreditTransaction",
    "CreditTransactionItem",
]

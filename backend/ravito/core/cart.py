"""
Panier client: état explicite modifié uniquement par des actions typées.

Le store est construit par requête (checkout) à partir des lignes envoyées
par le frontend; il n'y a pas d'état global partagé entre sessions.
"""
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class CartProduct(BaseModel):
    id: int
    name: str
    crate_price: float
    consign_price: float = 0

    class Config:
        from_attributes = True


class CartItem(BaseModel):
    product: CartProduct
    quantity: int
    with_consigne: bool = False


class AddItem(BaseModel):
    type: Literal["add"] = "add"
    product: CartProduct
    quantity: int = Field(gt=0)
    with_consigne: bool = False


class RemoveItem(BaseModel):
    type: Literal["remove"] = "remove"
    product_id: int


class UpdateItem(BaseModel):
    type: Literal["update"] = "update"
    product_id: int
    quantity: int = Field(ge=0)
    with_consigne: Optional[bool] = None


class Clear(BaseModel):
    type: Literal["clear"] = "clear"


CartAction = Annotated[Union[AddItem, RemoveItem, UpdateItem, Clear], Field(discriminator="type")]


class CartTotals(BaseModel):
    subtotal: float
    consigne_total: float
    client_commission: float = 0
    total: float


class CartStore:
    def __init__(self) -> None:
        self._items: Dict[int, CartItem] = {}

    @property
    def items(self) -> List[CartItem]:
        return list(self._items.values())

    def is_empty(self) -> bool:
        return not self._items

    def dispatch(self, action) -> List[CartItem]:
        if isinstance(action, AddItem):
            existing = self._items.get(action.product.id)
            if existing:
                existing.quantity += action.quantity
                existing.with_consigne = action.with_consigne
            else:
                self._items[action.product.id] = CartItem(
                    product=action.product,
                    quantity=action.quantity,
                    with_consigne=action.with_consigne,
                )
        elif isinstance(action, RemoveItem):
            self._items.pop(action.product_id, None)
        elif isinstance(action, UpdateItem):
            item = self._items.get(action.product_id)
            if item is not None:
                if action.quantity == 0:
                    self._items.pop(action.product_id)
                else:
                    item.quantity = action.quantity
                    if action.with_consigne is not None:
                        item.with_consigne = action.with_consigne
        elif isinstance(action, Clear):
            self._items.clear()
        else:
            raise TypeError(f"Unknown cart action: {action!r}")
        return self.items

    def totals(self) -> CartTotals:
        subtotal = sum(item.product.crate_price * item.quantity for item in self._items.values())
        consigne_total = sum(
            item.product.consign_price * item.quantity
            for item in self._items.values()
            if item.with_consigne
        )
        return CartTotals(subtotal=subtotal, consigne_total=consigne_total, total=subtotal + consigne_total)

    def totals_with_commission(self, client_commission_pct: float) -> CartTotals:
        base = self.totals()
        commission = round(base.total * client_commission_pct / 100)
        return CartTotals(
            subtotal=base.subtotal,
            consigne_total=base.consigne_total,
            client_commission=commission,
            total=base.total + commission,
        )

import pytest
from pydantic import TypeAdapter, ValidationError

from ravito.core.cart import AddItem, CartAction, CartProduct, CartStore, Clear, RemoveItem, UpdateItem

FLAG = CartProduct(id=1, name='Flag 33cl', crate_price=12000, consign_price=3000)
COCA = CartProduct(id=2, name='Coca-Cola 30cl', crate_price=9000, consign_price=0)


def test_add_merges_quantities_and_keeps_latest_consigne_flag():
    store = CartStore()
    store.dispatch(AddItem(product=FLAG, quantity=2))
    items = store.dispatch(AddItem(product=FLAG, quantity=3, with_consigne=True))
    assert len(items) == 1
    assert items[0].quantity == 5
    assert items[0].with_consigne


def test_totals_with_and_without_consigne():
    store = CartStore()
    store.dispatch(AddItem(product=FLAG, quantity=2, with_consigne=True))
    store.dispatch(AddItem(product=COCA, quantity=1))
    totals = store.totals()
    assert totals.subtotal == 33000
    assert totals.consigne_total == 6000
    assert totals.total == 39000

    store.dispatch(UpdateItem(product_id=FLAG.id, quantity=2, with_consigne=False))
    assert store.totals().consigne_total == 0


def test_update_to_zero_and_remove():
    store = CartStore()
    store.dispatch(AddItem(product=FLAG, quantity=2))
    store.dispatch(AddItem(product=COCA, quantity=1))
    store.dispatch(UpdateItem(product_id=FLAG.id, quantity=0))
    assert [i.product.id for i in store.items] == [COCA.id]
    store.dispatch(RemoveItem(product_id=COCA.id))
    assert store.is_empty()
    # unknown ids are ignored
    store.dispatch(RemoveItem(product_id=99))
    store.dispatch(UpdateItem(product_id=99, quantity=4))
    assert store.is_empty()


def test_clear():
    store = CartStore()
    store.dispatch(AddItem(product=FLAG, quantity=1))
    assert store.dispatch(Clear()) == []


def test_client_commission_added_to_total():
    store = CartStore()
    store.dispatch(AddItem(product=FLAG, quantity=2, with_consigne=True))
    totals = store.totals_with_commission(8)
    assert totals.client_commission == 2400
    assert totals.total == 32400


def test_actions_are_validated():
    adapter = TypeAdapter(CartAction)
    action = adapter.validate_python({'type': 'remove', 'product_id': 3})
    assert isinstance(action, RemoveItem)
    with pytest.raises(ValidationError):
        adapter.validate_python({'type': 'add', 'product': FLAG.model_dump(), 'quantity': 0})
    with pytest.raises(TypeError):
        CartStore().dispatch('add')

from conftest import approve_in_zone, auth

from ravito.models.status_history import StatusHistory
from ravito.models.zone import Zone


def checkout(client, user, product, zone, quantity=2, with_consigne=True, payment_method='orange'):
    return client.post('/orders', json={
        'items': [{'product_id': product.id, 'quantity': quantity, 'with_consigne': with_consigne}],
        'delivery_address': 'Cocody Angré, 8e tranche',
        'payment_method': payment_method,
        'zone_id': zone.id,
    }, headers=auth(user))


def test_cart_preview_includes_client_commission(client, make_user, catalog):
    user = make_user()
    r = client.post('/orders/cart/preview', json={'items': [
        {'product_id': catalog['FLAG-33'].id, 'quantity': 1, 'with_consigne': True},
        {'product_id': catalog['FLAG-33'].id, 'quantity': 1, 'with_consigne': True},
        {'product_id': catalog['AWOYO-150'].id, 'quantity': 1},
    ]}, headers=auth(user))
    assert r.status_code == 200
    assert r.json() == {'subtotal': 27000, 'consigne_total': 6000, 'client_commission': 2640, 'total': 35640}

    r = client.post('/orders/cart/preview', json={'items': [{'product_id': 999, 'quantity': 1}]}, headers=auth(user))
    assert r.status_code == 400


def test_checkout_validation(client, db, make_user, catalog):
    zone = db.query(Zone).filter(Zone.name == 'Cocody').first()
    pending = make_user(approved=False)
    assert checkout(client, pending, catalog['FLAG-33'], zone).status_code == 403

    user = make_user()
    assert checkout(client, user, catalog['FLAG-33'], zone, payment_method='cash').status_code == 400
    r = client.post('/orders', json={
        'items': [],
        'delivery_address': 'Plateau',
        'payment_method': 'wave',
        'zone_id': zone.id,
    }, headers=auth(user))
    assert r.status_code == 400
    assert r.json()['detail'] == 'Le panier est vide'


def test_order_lifecycle(client, db, make_user, catalog):
    buyer = make_user(org_name='Maquis Chez Awa')
    supplier = make_user(role='supplier', org_name='Dépôt Koffi')
    outsider = make_user(role='supplier')
    zone = approve_in_zone(db, supplier)
    approve_in_zone(db, outsider, 'Yopougon')
    flag = catalog['FLAG-33']

    r = checkout(client, buyer, flag, zone)
    assert r.status_code == 201
    order = r.json()
    assert order['order_number'] == 'CMD-000001'
    assert order['status'] == 'pending'
    assert order['status_label'] == 'En attente'
    assert order['total_amount'] == 32400
    order_id = order['id']

    assert [o['id'] for o in client.get('/orders/feed', headers=auth(supplier)).json()] == [order_id]
    assert client.get('/orders/feed', headers=auth(outsider)).json() == []
    assert client.get(f'/orders/{order_id}', headers=auth(outsider)).status_code == 404
    r = client.post(f'/orders/{order_id}/offers', json={'total_amount': 29000}, headers=auth(outsider))
    assert r.status_code == 403

    r = client.post(
        f'/orders/{order_id}/offers',
        json={'total_amount': 30000, 'delivery_time_minutes': 45},
        headers=auth(supplier),
    )
    assert r.status_code == 201
    offer_id = r.json()['id']
    assert client.get(f'/orders/{order_id}', headers=auth(buyer)).json()['status'] == 'offers-received'
    r = client.post(f'/orders/{order_id}/offers', json={'total_amount': 28000}, headers=auth(supplier))
    assert r.status_code == 400

    r = client.post(f'/orders/{order_id}/offers/{offer_id}/accept', headers=auth(supplier))
    assert r.status_code == 403
    r = client.post(f'/orders/{order_id}/offers/{offer_id}/accept', headers=auth(buyer))
    assert r.status_code == 200
    accepted = r.json()
    assert accepted['status'] == 'awaiting-payment'
    assert accepted['supplier_id'] == supplier.id
    assert accepted['client_commission'] == 2400
    assert accepted['total_amount'] == 32400
    assert accepted['supplier_commission'] == 600
    assert accepted['net_supplier_amount'] == 29400

    r = client.post(f'/orders/{order_id}/pay', headers=auth(buyer))
    assert r.json()['status'] == 'paid'
    assert r.json()['paid_at'] is not None

    r = client.post(f'/orders/{order_id}/status', json={'status': 'preparing'}, headers=auth(buyer))
    assert r.status_code == 400
    for status in ('preparing', 'delivering', 'awaiting-rating'):
        r = client.post(f'/orders/{order_id}/status', json={'status': status}, headers=auth(supplier))
        assert r.status_code == 200
        assert r.json()['status'] == status
    assert r.json()['delivered_at'] is not None

    r = client.post(f'/orders/{order_id}/rating', json={'score': 6}, headers=auth(buyer))
    assert r.status_code == 400
    r = client.post(f'/orders/{order_id}/rating', json={'score': 5, 'comment': 'Rapide'}, headers=auth(buyer))
    assert r.status_code == 201
    assert r.json()['rated_id'] == supplier.id
    assert client.get(f'/orders/{order_id}', headers=auth(buyer)).json()['status'] == 'delivered'
    r = client.post(f'/orders/{order_id}/rating', json={'score': 4}, headers=auth(buyer))
    assert r.status_code == 400

    db.expire_all()
    history = db.query(StatusHistory).filter(
        StatusHistory.entity_type == 'order',
        StatusHistory.entity_id == order_id,
    ).order_by(StatusHistory.id).all()
    assert [h.new_status for h in history] == [
        'pending', 'offers-received', 'awaiting-payment', 'paid',
        'preparing', 'delivering', 'awaiting-rating', 'delivered',
    ]
    r = client.get(f'/status-history/order/{order_id}', headers=auth(supplier))
    assert r.json()[0]['new_status'] == 'delivered'
    assert len(r.json()) == 8
    assert client.get(f'/status-history/order/{order_id}', headers=auth(outsider)).status_code == 404
    assert client.get(f'/status-history/sale/{order_id}', headers=auth(buyer)).status_code == 400

    r = client.get('/orders/transactions/csv', headers=auth(buyer))
    assert r.status_code == 200
    assert r.headers['content-type'].startswith('text/csv')
    lines = r.content.decode('utf-8-sig').split('\n')
    assert lines[1].endswith(';CMD-000001;Dépôt Koffi;30000;2400;32400;Livrée')

    lines = client.get('/orders/transactions/csv', headers=auth(supplier)).content.decode('utf-8-sig').split('\n')
    assert lines[1].endswith(';CMD-000001;Maquis Chez Awa;30000;600;29400;Livrée')


def test_rejecting_every_offer_reopens_the_order(client, db, make_user, catalog):
    buyer = make_user()
    first = make_user(role='supplier')
    second = make_user(role='supplier')
    zone = approve_in_zone(db, first)
    approve_in_zone(db, second)
    order_id = checkout(client, buyer, catalog['CASTEL-65'], zone, with_consigne=False).json()['id']

    offer_a = client.post(f'/orders/{order_id}/offers', json={}, headers=auth(first)).json()
    offer_b = client.post(f'/orders/{order_id}/offers', json={'total_amount': 17000}, headers=auth(second)).json()
    assert offer_a['total_amount'] == 18000

    assert len(client.get(f'/orders/{order_id}/offers', headers=auth(buyer)).json()) == 2
    own = client.get(f'/orders/{order_id}/offers', headers=auth(second)).json()
    assert [o['id'] for o in own] == [offer_b['id']]

    r = client.post(f'/orders/{order_id}/offers/{offer_a["id"]}/reject', headers=auth(buyer))
    assert r.json()['status'] == 'offers-received'
    r = client.post(f'/orders/{order_id}/offers/{offer_b["id"]}/reject', headers=auth(buyer))
    assert r.json()['status'] == 'pending'
    r = client.post(f'/orders/{order_id}/offers/{offer_b["id"]}/accept', headers=auth(buyer))
    assert r.status_code == 400


def test_cancellation(client, db, make_user, catalog):
    buyer = make_user()
    supplier = make_user(role='supplier')
    zone = approve_in_zone(db, supplier)
    order_id = checkout(client, buyer, catalog['FLAG-65'], zone).json()['id']

    r = client.post(f'/orders/{order_id}/status', json={'status': 'cancelled', 'notes': 'Erreur'}, headers=auth(buyer))
    assert r.json()['status'] == 'cancelled'
    r = client.post(f'/orders/{order_id}/offers', json={}, headers=auth(supplier))
    assert r.status_code == 400
    assert client.get('/orders/feed', headers=auth(supplier)).json() == []


def test_received_orders_feed_the_daily_sheet(client, db, make_user, catalog):
    buyer = make_user()
    supplier = make_user(role='supplier')
    zone = approve_in_zone(db, supplier)
    flag = catalog['FLAG-33']
    order_id = checkout(client, buyer, flag, zone, quantity=3).json()['id']
    offer_id = client.post(f'/orders/{order_id}/offers', json={}, headers=auth(supplier)).json()['id']
    client.post(f'/orders/{order_id}/offers/{offer_id}/accept', headers=auth(buyer))
    client.post(f'/orders/{order_id}/pay', headers=auth(buyer))
    for status in ('preparing', 'delivering', 'awaiting-rating'):
        r = client.post(f'/orders/{order_id}/status', json={'status': status}, headers=auth(supplier))
    delivered_on = r.json()['delivered_at'][:10]

    sheet = client.get('/activity/sheets', params={'date': delivered_on}, headers=auth(buyer)).json()
    r = client.post(f'/activity/sheets/{sheet["sheet"]["id"]}/sync-deliveries', headers=auth(buyer))
    assert r.status_code == 200
    summary = r.json()
    line = next(l for l in summary['stock_lines'] if l['product_id'] == flag.id)
    assert line['ravito_supply'] == 3
    crate = next(p for p in summary['packaging'] if p['crate_type'] == 'B33')
    assert crate['qty_received'] == 3


def test_status_endpoint_leaves_offers_and_payment_to_their_routes(client, db, make_user, catalog):
    buyer = make_user()
    supplier = make_user(role='supplier')
    zone = approve_in_zone(db, supplier)
    order_id = checkout(client, buyer, catalog['FLAG-33'], zone).json()['id']
    offer_id = client.post(f'/orders/{order_id}/offers', json={}, headers=auth(supplier)).json()['id']

    for target in ('awaiting-payment', 'pending', 'paid'):
        r = client.post(f'/orders/{order_id}/status', json={'status': target}, headers=auth(buyer))
        assert r.status_code == 400
    r = client.post(f'/orders/{order_id}/status', json={'status': 'shipped'}, headers=auth(buyer))
    assert r.status_code == 400

    order = client.get(f'/orders/{order_id}', headers=auth(buyer)).json()
    assert order['status'] == 'offers-received'
    assert order['supplier_id'] is None

    client.post(f'/orders/{order_id}/offers/{offer_id}/accept', headers=auth(buyer))
    r = client.post(f'/orders/{order_id}/status', json={'status': 'paid'}, headers=auth(buyer))
    assert r.status_code == 400
    r = client.post(f'/orders/{order_id}/pay', headers=auth(buyer))
    assert r.json()['status'] == 'paid'
    assert r.json()['paid_at'] is not None


def test_sync_fills_only_consignable_crates(client, db, make_user, catalog):
    buyer = make_user()
    supplier = make_user(role='supplier')
    zone = approve_in_zone(db, supplier)
    r = client.post('/orders', json={
        'items': [
            {'product_id': catalog['FLAG-33'].id, 'quantity': 2, 'with_consigne': True},
            {'product_id': catalog['AWOYO-150'].id, 'quantity': 4},
        ],
        'delivery_address': 'Marcory Zone 4',
        'payment_method': 'wave',
        'zone_id': zone.id,
    }, headers=auth(buyer))
    order_id = r.json()['id']
    offer_id = client.post(f'/orders/{order_id}/offers', json={}, headers=auth(supplier)).json()['id']
    client.post(f'/orders/{order_id}/offers/{offer_id}/accept', headers=auth(buyer))
    client.post(f'/orders/{order_id}/pay', headers=auth(buyer))
    for status in ('preparing', 'delivering', 'awaiting-rating'):
        r = client.post(f'/orders/{order_id}/status', json={'status': status}, headers=auth(supplier))
    delivered_on = r.json()['delivered_at'][:10]

    sheet = client.get('/activity/sheets', params={'date': delivered_on}, headers=auth(buyer)).json()
    summary = client.post(f'/activity/sheets/{sheet["sheet"]["id"]}/sync-deliveries', headers=auth(buyer)).json()
    supply = {l['product_id']: l['ravito_supply'] for l in summary['stock_lines']}
    assert supply[catalog['AWOYO-150'].id] == 4
    received = {p['crate_type']: p['qty_received'] for p in summary['packaging']}
    assert received['B33'] == 2
    assert received['CARTON24'] == 0

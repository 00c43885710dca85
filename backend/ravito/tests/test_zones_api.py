from conftest import approve_in_zone, auth

from ravito.models.order import Order
from ravito.models.zone import Zone


def zone_id(db, name):
    return db.query(Zone).filter(Zone.name == name).first().id


def test_zone_crud(client, db, make_user, catalog):
    admin = make_user(role='admin')
    headers = auth(admin)

    r = client.get('/zones', headers=auth(make_user()))
    assert len(r.json()) == 9
    assert r.json()[0]['name'] == 'Abobo'

    r = client.post('/zones', json={'name': ' Bingerville '}, headers=headers)
    assert r.status_code == 201
    created = r.json()
    assert created['name'] == 'Bingerville'
    assert client.post('/zones', json={'name': 'Bingerville'}, headers=headers).status_code == 400
    assert client.post('/zones', json={'name': 'Anyama'}, headers=auth(make_user())).status_code == 403

    r = client.put(f'/zones/{created["id"]}', json={'is_active': False}, headers=headers)
    assert r.json()['is_active'] is False
    names = [z['name'] for z in client.get('/zones', headers=headers).json()]
    assert 'Bingerville' not in names
    names = [z['name'] for z in client.get('/zones', params={'active_only': False}, headers=headers).json()]
    assert 'Bingerville' in names

    r = client.delete(f'/zones/{created["id"]}', headers=headers)
    assert r.status_code == 400
    r = client.delete(f'/zones/{created["id"]}', params={'confirm': True}, headers=headers)
    assert r.json() == {'message': 'Zone supprimée'}
    assert client.put(f'/zones/{created["id"]}', json={'name': 'X'}, headers=headers).status_code == 404


def test_zone_with_orders_is_deactivated(client, db, make_user, catalog):
    admin = make_user(role='admin')
    buyer = make_user()
    plateau = zone_id(db, 'Plateau')
    db.add(Order(
        order_number='CMD-000001',
        organization_id=buyer.organization_id,
        client_id=buyer.id,
        zone_id=plateau,
        status='pending',
        delivery_address='Plateau',
        payment_method='wave',
        subtotal=0,
        consigne_total=0,
        client_commission=0,
        total_amount=0,
    ))
    db.commit()

    r = client.delete(f'/zones/{plateau}', params={'confirm': True}, headers=auth(admin))
    assert r.status_code == 200
    db.expire_all()
    assert db.query(Zone).filter(Zone.id == plateau).first().is_active is False


def test_supplier_zone_requests(client, db, make_user, catalog):
    admin = make_user(role='admin')
    supplier = make_user(role='supplier')
    cocody = zone_id(db, 'Cocody')

    r = client.post('/zones/requests', json={'zone_id': cocody}, headers=auth(make_user()))
    assert r.status_code == 403
    r = client.post('/zones/requests', json={'zone_id': cocody}, headers=auth(make_user(role='supplier', approved=False)))
    assert r.status_code == 403

    r = client.post('/zones/requests', json={'zone_id': cocody, 'message': 'Dépôt à Angré'}, headers=auth(supplier))
    assert r.status_code == 201
    request_id = r.json()['id']
    r = client.post('/zones/requests', json={'zone_id': cocody}, headers=auth(supplier))
    assert r.status_code == 400
    assert r.json()['detail'] == 'Une demande est déjà en cours pour cette zone'

    assert [q['id'] for q in client.get('/zones/requests', headers=auth(supplier)).json()] == [request_id]
    assert client.get('/zones/requests', headers=auth(make_user())).status_code == 403
    r = client.get('/zones/requests', params={'status': 'pending'}, headers=auth(admin))
    assert [q['id'] for q in r.json()] == [request_id]

    r = client.post(f'/zones/requests/{request_id}/approve', json={'response': 'Bienvenue'}, headers=auth(supplier))
    assert r.status_code == 403
    r = client.post(f'/zones/requests/{request_id}/approve', json={'response': 'Bienvenue'}, headers=auth(admin))
    assert r.status_code == 200
    assert r.json()['status'] == 'approved'
    assert r.json()['admin_response'] == 'Bienvenue'
    r = client.post(f'/zones/requests/{request_id}/reject', json={}, headers=auth(admin))
    assert r.status_code == 400

    mine = client.get('/zones/mine', headers=auth(supplier)).json()
    assert [z['zone']['name'] for z in mine] == ['Cocody']

    r = client.post('/zones/requests', json={'zone_id': cocody}, headers=auth(supplier))
    assert r.json()['detail'] == 'Vous êtes déjà inscrit dans cette zone'


def test_rejected_request_leaves_zones_unchanged(client, db, make_user, catalog):
    admin = make_user(role='admin')
    supplier = make_user(role='supplier')
    approve_in_zone(db, supplier, 'Marcory')
    request_id = client.post(
        '/zones/requests', json={'zone_id': zone_id(db, 'Yopougon')}, headers=auth(supplier)
    ).json()['id']

    r = client.post(f'/zones/requests/{request_id}/reject', json={'response': 'Zone saturée'}, headers=auth(admin))
    assert r.json()['status'] == 'rejected'
    assert [z['zone']['name'] for z in client.get('/zones/mine', headers=auth(supplier)).json()] == ['Marcory']
    assert client.post('/zones/requests/999/approve', json={}, headers=auth(admin)).status_code == 404

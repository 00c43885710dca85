from conftest import auth

REGISTRATION = {
    'email': 'Awa@Maquis.ci',
    'password': 'Secret123',
    'full_name': 'Awa Koné',
    'phone': '0701020304',
    'role': 'client',
    'organization_name': 'Maquis Chez Awa',
}


def test_register_login_and_me(client):
    r = client.post('/auth/register', json=REGISTRATION)
    assert r.status_code == 201
    assert 'access_token' in r.json()

    r = client.post('/auth/login', json={'email': 'awa@maquis.ci', 'password': 'Secret123'})
    assert r.status_code == 200
    access = r.json()['access_token']

    r = client.get('/auth/me', headers={'Authorization': f'Bearer {access}'})
    assert r.status_code == 200
    me = r.json()
    assert me['email'] == 'awa@maquis.ci'
    assert me['phone'] == '07 01 02 03 04'
    assert me['approval_status'] == 'pending'
    assert me['organization_name'] == 'Maquis Chez Awa'


def test_register_returns_field_errors(client):
    r = client.post('/auth/register', json={
        **REGISTRATION,
        'email': 'awa@maquis',
        'phone': '0801020304',
        'full_name': 'Awa',
        'role': 'admin',
    })
    assert r.status_code == 422
    errors = r.json()['detail']
    assert errors['email'] == "Format d'email invalide"
    assert errors['phone'] == 'Le numéro doit commencer par 07, 05 ou 01'
    assert errors['full_name'] == 'Veuillez entrer votre prénom et nom'
    assert 'role' in errors


def test_register_duplicate_email(client):
    assert client.post('/auth/register', json=REGISTRATION).status_code == 201
    r = client.post('/auth/register', json={**REGISTRATION, 'email': 'awa@maquis.ci'})
    assert r.status_code == 400
    assert r.json()['detail'] == 'Cet email est déjà utilisé'


def test_login_and_refresh(client, make_user):
    user = make_user()
    r = client.post('/auth/login', json={'email': user.email, 'password': 'wrong'})
    assert r.status_code == 401
    assert r.json()['detail'] == 'Identifiants invalides'

    r = client.post('/auth/login', json={'email': user.email.upper(), 'password': 'Secret123'})
    assert r.status_code == 200
    refresh = r.json()['refresh_token']

    r = client.post('/auth/refresh', json={'refresh_token': refresh})
    assert r.status_code == 200
    r = client.post('/auth/refresh', json={'refresh_token': r.json()['access_token']})
    assert r.status_code == 401


def test_pending_user_cannot_use_business_endpoints(client, make_user):
    user = make_user(approved=False)
    r = client.get('/activity/sheets', params={'date': '2025-03-01'}, headers=auth(user))
    assert r.status_code == 403
    assert r.json()['detail'] == "Compte en attente d'approbation"


def test_admin_approves_and_rejects(client, db, make_user):
    admin = make_user(role='admin')
    pending = make_user(approved=False)
    other = make_user(role='supplier', approved=False)

    r = client.get('/admin/users', params={'approval_status': 'pending'}, headers=auth(admin))
    assert {u['id'] for u in r.json()} == {pending.id, other.id}

    assert client.get('/admin/users', headers=auth(pending)).status_code == 403

    r = client.post(f'/admin/users/{pending.id}/approve', headers=auth(admin))
    assert r.status_code == 200
    assert r.json()['approval_status'] == 'approved'

    r = client.post(f'/admin/users/{other.id}/reject', json={'reason': '  '}, headers=auth(admin))
    assert r.status_code == 400
    r = client.post(f'/admin/users/{other.id}/reject', json={'reason': 'RCCM manquant'}, headers=auth(admin))
    assert r.json()['rejection_reason'] == 'RCCM manquant'

    assert client.post('/admin/users/999/approve', headers=auth(admin)).status_code == 404


def test_list_products_and_establishment_prices(client, make_user, catalog):
    user = make_user()
    headers = auth(user)

    r = client.get('/products/', headers=headers)
    assert r.status_code == 200
    assert len(r.json()) == len(catalog)

    r = client.get('/products/', params={'q': 'flag'}, headers=headers)
    assert {p['reference'] for p in r.json()} == {'FLAG-33', 'FLAG-65'}

    r = client.get('/products/crate-types', headers=headers)
    codes = {c['code']: c for c in r.json()}
    assert not codes['CARTON24']['is_consignable']

    flag = catalog['FLAG-33']
    r = client.put('/products/establishment', json={'product_id': flag.id, 'selling_price': 600 * 24}, headers=headers)
    assert r.status_code == 200
    r = client.put('/products/establishment', json={'product_id': flag.id, 'selling_price': 15000, 'min_stock_alert': 2}, headers=headers)
    r = client.get('/products/establishment', headers=headers)
    assert [(p['product_id'], p['selling_price'], p['min_stock_alert']) for p in r.json()] == [(flag.id, 15000, 2)]

    r = client.put('/products/establishment', json={'product_id': 999, 'selling_price': 1}, headers=headers)
    assert r.status_code == 404


def test_only_admin_creates_products(client, make_user, catalog):
    payload = {
        'reference': 'SPRITE-30',
        'name': 'Sprite 30cl',
        'category': 'soda',
        'crate_type': 'B33',
        'crate_price': 7200,
        'consign_price': 3000,
    }
    assert client.post('/products/', json=payload, headers=auth(make_user())).status_code == 403

    admin = make_user(role='admin')
    r = client.post('/products/', json=payload, headers=auth(admin))
    assert r.status_code == 201
    r = client.post('/products/', json=payload, headers=auth(admin))
    assert r.status_code == 400
    r = client.post('/products/', json={**payload, 'reference': 'X', 'category': 'lait'}, headers=auth(admin))
    assert r.status_code == 400


def test_sales_representatives(client, make_user):
    admin = make_user(role='admin')
    r = client.post('/admin/sales-representatives', json={'name': 'Yao Serge', 'phone': '0505050505'}, headers=auth(admin))
    assert r.status_code == 201
    yao = r.json()
    client.post('/admin/sales-representatives', json={'name': 'Adjoua Kouassi'}, headers=auth(admin))

    r = client.post('/admin/sales-representatives', json={'name': 'X', 'phone': '0905050505'}, headers=auth(admin))
    assert r.status_code == 400
    assert client.get('/admin/sales-representatives', headers=auth(make_user())).status_code == 403

    assert [o['name'] for o in client.get('/auth/sales-representatives').json()] == ['Adjoua Kouassi', 'Yao Serge']

    r = client.put(f'/admin/sales-representatives/{yao["id"]}', json={'is_active': False}, headers=auth(admin))
    assert r.status_code == 200
    assert r.json()['is_active'] is False
    assert [o['name'] for o in client.get('/auth/sales-representatives').json()] == ['Adjoua Kouassi']
    assert client.put('/admin/sales-representatives/999', json={'name': 'Z'}, headers=auth(admin)).status_code == 404

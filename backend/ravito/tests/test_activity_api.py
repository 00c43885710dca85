from conftest import auth, stock_products
from sqlalchemy.exc import SQLAlchemyError

from ravito.routes.reports import REPORT_ERROR
from ravito.services import annual_service, monthly_service

DAY = '2025-03-03'


def open_day(client, headers, day=DAY):
    r = client.get('/activity/sheets', params={'date': day}, headers=headers)
    assert r.status_code == 200
    return r.json()


def count_everything(client, headers, summary, finals):
    """Fill final stocks ({product_id: qty}) and zero crate counts"""
    sheet_id = summary['sheet']['id']
    for line in summary['stock_lines']:
        r = client.put(
            f'/activity/sheets/{sheet_id}/stock-lines/{line["id"]}',
            json={'final_stock': finals.get(line['product_id'], line['initial_stock'])},
            headers=headers,
        )
        assert r.status_code == 200
    for row in summary['packaging']:
        r = client.put(
            f'/activity/sheets/{sheet_id}/packaging/{row["id"]}',
            json={'qty_full_end': row['qty_full_start'], 'qty_empty_end': row['qty_empty_start']},
            headers=headers,
        )
        assert r.status_code == 200
    return r.json()


def test_get_or_create_sheet(client, db, make_user, catalog):
    user = make_user()
    stock_products(db, user.organization_id, {catalog['FLAG-33']: 15000, catalog['COCA-30']: 9000})
    summary = open_day(client, auth(user))

    assert summary['sheet']['status'] == 'open'
    assert [l['product_name'] for l in summary['stock_lines']] == ['Coca-Cola 30cl', 'Flag Spéciale 33cl']
    assert len(summary['packaging']) == 6
    requirements = summary['requirements']
    assert not requirements['can_close']
    assert requirements['missing_messages'] == [
        '2 stock(s) final(finaux) manquant(s)',
        '5 comptage(s) de casiers manquant(s)',
    ]

    again = open_day(client, auth(user))
    assert again['sheet']['id'] == summary['sheet']['id']


def test_full_day_and_carryover(client, db, make_user, catalog):
    user = make_user()
    headers = auth(user)
    flag = catalog['FLAG-33']
    stock_products(db, user.organization_id, {flag: 15000, catalog['COCA-30']: 9000})
    summary = open_day(client, headers)
    sheet_id = summary['sheet']['id']
    flag_line = next(l for l in summary['stock_lines'] if l['product_id'] == flag.id)

    r = client.put(f'/activity/sheets/{sheet_id}/opening-cash', json={'opening_cash': 20000}, headers=headers)
    assert r.json()['sheet']['opening_cash'] == 20000
    r = client.put(
        f'/activity/sheets/{sheet_id}/stock-lines/{flag_line["id"]}',
        json={'external_supply': 5},
        headers=headers,
    )
    assert r.status_code == 200
    r = client.post(
        f'/activity/sheets/{sheet_id}/expenses',
        json={'label': 'Glace', 'amount': 5000, 'category': 'food'},
        headers=headers,
    )
    assert r.status_code == 201
    assert r.json()['calculations']['total_expenses'] == 5000

    r = client.post(
        f'/activity/sheets/{sheet_id}/close',
        json={'closing_cash': 59000, 'confirm': True},
        headers=headers,
    )
    assert r.status_code == 400
    assert r.json()['detail'].startswith('Données incomplètes: ')

    summary = count_everything(client, headers, summary, {flag.id: 2})
    assert summary['requirements']['can_close']
    assert summary['calculations']['total_revenue'] == 45000
    assert summary['calculations']['expected_cash'] == 60000

    r = client.post(f'/activity/sheets/{sheet_id}/close', json={'closing_cash': 59000}, headers=headers)
    assert r.status_code == 400
    assert 'Confirmation requise' in r.json()['detail']

    r = client.post(
        f'/activity/sheets/{sheet_id}/close',
        json={'closing_cash': 59000, 'notes': 'RAS', 'confirm': True},
        headers=headers,
    )
    assert r.status_code == 200
    closed = r.json()['sheet']
    assert closed['status'] == 'closed'
    assert closed['theoretical_revenue'] == 45000
    assert closed['cash_difference'] == -1000
    assert closed['closed_at'] is not None

    r = client.post(
        f'/activity/sheets/{sheet_id}/close',
        json={'closing_cash': 59000, 'confirm': True},
        headers=headers,
    )
    assert r.status_code == 400
    assert r.json()['detail'] == 'La journée est déjà clôturée'
    r = client.put(f'/activity/sheets/{sheet_id}/opening-cash', json={'opening_cash': 1}, headers=headers)
    assert r.status_code == 400
    r = client.post(
        f'/activity/sheets/{sheet_id}/expenses',
        json={'label': 'Taxi', 'amount': 1000, 'category': 'transport'},
        headers=headers,
    )
    assert r.status_code == 400

    tomorrow = open_day(client, headers, '2025-03-04')
    assert tomorrow['sheet']['opening_cash'] == 59000
    flag_line = next(l for l in tomorrow['stock_lines'] if l['product_id'] == flag.id)
    assert flag_line['initial_stock'] == 2


def test_expense_validation_and_delete(client, db, make_user, catalog):
    user = make_user()
    headers = auth(user)
    summary = open_day(client, headers)
    sheet_id = summary['sheet']['id']

    r = client.post(f'/activity/sheets/{sheet_id}/expenses', json={'label': 'x', 'amount': 0}, headers=headers)
    assert r.status_code == 400
    r = client.post(
        f'/activity/sheets/{sheet_id}/expenses',
        json={'label': 'x', 'amount': 10, 'category': 'loyer'},
        headers=headers,
    )
    assert r.status_code == 400

    r = client.post(f'/activity/sheets/{sheet_id}/expenses', json={'label': 'Sachets', 'amount': 700}, headers=headers)
    expense_id = r.json()['expenses'][0]['id']
    r = client.delete(f'/activity/sheets/{sheet_id}/expenses/{expense_id}', headers=headers)
    assert r.status_code == 200
    assert r.json()['expenses'] == []
    assert r.json()['sheet']['expenses_total'] == 0
    assert client.delete(f'/activity/sheets/{sheet_id}/expenses/{expense_id}', headers=headers).status_code == 404


def test_sheets_are_scoped_to_the_organization(client, make_user, catalog):
    owner = make_user()
    stranger = make_user()
    sheet_id = open_day(client, auth(owner))['sheet']['id']
    assert client.get(f'/activity/sheets/{sheet_id}', headers=auth(stranger)).status_code == 404
    assert client.get(f'/activity/sheets/{sheet_id}', headers=auth(owner)).status_code == 200


def close_day(client, headers, day, closing_cash):
    summary = open_day(client, headers, day)
    count_everything(client, headers, summary, {})
    r = client.post(
        f'/activity/sheets/{summary["sheet"]["id"]}/close',
        json={'closing_cash': closing_cash, 'confirm': True},
        headers=headers,
    )
    assert r.status_code == 200
    return r.json()


def test_pdf_only_for_closed_sheets(client, make_user, catalog):
    user = make_user(org_name='Maquis Chez Awa')
    headers = auth(user)
    sheet_id = open_day(client, headers)['sheet']['id']
    r = client.get(f'/activity/sheets/{sheet_id}/pdf', headers=headers)
    assert r.status_code == 400
    assert r.json()['detail'] == 'Seule une journée clôturée peut être exportée'

    close_day(client, headers, DAY, 0)
    r = client.get(f'/activity/sheets/{sheet_id}/pdf', headers=headers)
    assert r.status_code == 200
    assert r.headers['content-type'] == 'application/pdf'
    assert r.content.startswith(b'%PDF')


def test_closed_sheets_range(client, make_user, catalog):
    user = make_user()
    headers = auth(user)
    close_day(client, headers, '2025-03-01', 0)
    close_day(client, headers, '2025-03-31', 0)
    open_day(client, headers, '2025-04-01')

    r = client.get('/activity/sheets/closed', params={'start_date': '2025-03-01', 'end_date': '2025-04-01'}, headers=headers)
    assert [s['sheet_date'] for s in r.json()] == ['2025-03-01', '2025-03-31']

    r = client.get('/activity/sheets/closed', params={'start_date': '2025-03-01', 'end_date': '2025-03-01'}, headers=headers)
    assert r.status_code == 400


def test_monthly_and_annual_reports(client, make_user, catalog):
    user = make_user()
    headers = auth(user)
    close_day(client, headers, '2025-02-10', 500)
    close_day(client, headers, '2025-03-01', 500)

    r = client.get('/reports/monthly', params={'year': 2025, 'month': 3}, headers=headers)
    assert r.status_code == 200
    monthly = r.json()
    assert monthly['month_name'] == 'mars'
    assert monthly['kpis']['days_worked'] == 1
    assert monthly['kpis']['days_incomplete'] == 30
    assert monthly['previous_month_kpis']['days_worked'] == 1
    assert monthly['previous_month_kpis']['positive_days'] == 1

    r = client.get('/reports/monthly', params={'year': 2025, 'month': 13}, headers=headers)
    assert r.status_code == 422

    r = client.get('/reports/annual', params={'year': 2025}, headers=headers)
    annual = r.json()
    assert annual['kpis']['total_days_worked'] == 2
    assert annual['kpis']['months_with_data'] == 2
    assert annual['kpis']['total_cash_difference'] == 500
    assert len(annual['monthly_data']) == 12

    r = client.get('/reports/annual/excel', params={'year': 2025}, headers=headers)
    assert r.status_code == 200
    assert r.content[:2] == b'PK'
    assert 'ravito_bilan_2025.xlsx' in r.headers['content-disposition']

    assert client.get('/reports/annual/pdf', params={'year': 2025}, headers=headers).content.startswith(b'%PDF')
    r = client.get('/reports/monthly/pdf', params={'year': 2025, 'month': 3}, headers=headers)
    assert r.content.startswith(b'%PDF')


def test_closed_day_keeps_its_figures_after_a_price_change(client, db, make_user, catalog):
    user = make_user()
    headers = auth(user)
    flag = catalog['FLAG-33']
    stock_products(db, user.organization_id, {flag: 15000})
    summary = open_day(client, headers)
    sheet_id = summary['sheet']['id']
    flag_line = summary['stock_lines'][0]
    client.put(
        f'/activity/sheets/{sheet_id}/stock-lines/{flag_line["id"]}',
        json={'external_supply': 3},
        headers=headers,
    )
    count_everything(client, headers, summary, {flag.id: 0})
    r = client.post(
        f'/activity/sheets/{sheet_id}/close',
        json={'closing_cash': 44000, 'confirm': True},
        headers=headers,
    )
    assert r.json()['calculations']['total_revenue'] == 45000
    assert r.json()['calculations']['cash_difference'] == -1000

    r = client.put('/products/establishment', json={'product_id': flag.id, 'selling_price': 30000}, headers=headers)
    assert r.status_code == 200

    after = client.get(f'/activity/sheets/{sheet_id}', headers=headers).json()
    calculations = after['calculations']
    assert calculations['total_revenue'] == 45000
    assert calculations['expected_cash'] == 45000
    assert calculations['cash_difference'] == -1000
    assert after['sheet']['closing_cash'] - calculations['expected_cash'] == calculations['cash_difference']
    assert after['stock_lines'][0]['selling_price'] == 15000
    assert after['stock_lines'][0]['calculations']['revenue'] == 45000

    tomorrow = open_day(client, headers, '2025-03-04')
    assert tomorrow['stock_lines'][0]['selling_price'] == 30000


def test_report_database_errors_answer_500(client, make_user, catalog, monkeypatch):
    user = make_user()
    headers = auth(user)
    close_day(client, headers, '2025-03-01', 0)

    def broken(*args, **kwargs):
        raise SQLAlchemyError('connection lost')

    monkeypatch.setattr(annual_service, 'list_closed_sheets', broken)
    r = client.get('/reports/annual', params={'year': 2025}, headers=headers)
    assert r.status_code == 500
    assert r.json() == {'detail': REPORT_ERROR}

    # the previous month fails after the current one was read
    real = monthly_service.list_closed_sheets
    calls = {'n': 0}

    def fails_second_time(*args, **kwargs):
        calls['n'] += 1
        if calls['n'] > 1:
            raise SQLAlchemyError('connection lost')
        return real(*args, **kwargs)

    monkeypatch.setattr(monthly_service, 'list_closed_sheets', fails_second_time)
    r = client.get('/reports/monthly', params={'year': 2025, 'month': 3}, headers=headers)
    assert r.status_code == 500
    assert r.json() == {'detail': REPORT_ERROR}
    assert client.get('/reports/monthly/pdf', params={'year': 2025, 'month': 3}, headers=headers).status_code == 500

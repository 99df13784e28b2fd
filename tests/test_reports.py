from datetime import timedelta

from extensions import db
from models import Inspection, utcnow
from reports import dashboard_metrics


def complete(client, headers, inspection_id):
    response = client.put(f'/api/inspections/{inspection_id}', json={'status': 'COMPLETED'}, headers=headers())
    assert response.status_code == 200
    return response.get_json()


def test_dashboard_metrics(client, headers, hotel, inspection, record, checklist_item_ids):
    record(inspection['id'], checklist_item_ids[0], 'PASS')
    record(inspection['id'], checklist_item_ids[1], 'FAIL')
    complete(client, headers, inspection['id'])
    client.post('/api/inspections', json={'hotelId': hotel['id']}, headers=headers())

    metrics = client.get('/api/reports/dashboard', headers=headers()).get_json()
    assert metrics['totalHotels'] == 1
    assert metrics['totalInspections'] == 2
    assert metrics['completedInspections'] == 1
    assert metrics['recentInspections'] == 2
    assert metrics['avgRating'] == 3.0
    assert metrics['followUpInspections'] == 1
    assert metrics['inspectionsByStatus'] == {
        'IN_PROGRESS': 1, 'COMPLETED': 1, 'APPROVED': 0, 'REJECTED': 0,
    }


def test_dashboard_metrics_empty(app):
    with app.app_context():
        metrics = dashboard_metrics()
    assert metrics['totalInspections'] == 0
    assert metrics['avgRating'] == 0


def test_recent_window_is_thirty_days(app, inspection):
    with app.app_context():
        row = db.session.get(Inspection, inspection['id'])
        row.inspection_date = utcnow() - timedelta(days=45)
        db.session.commit()
        assert dashboard_metrics()['recentInspections'] == 0


def test_category_breakdown(client, headers, inspection, record, checklist_item_ids):
    # First three items are the Amenities category
    record(inspection['id'], checklist_item_ids[0], 'PASS')
    record(inspection['id'], checklist_item_ids[1], 'FAIL')
    record(inspection['id'], checklist_item_ids[2], 'NOT_APPLICABLE')
    record(inspection['id'], checklist_item_ids[3], 'PASS')

    rows = client.get('/api/reports/categories', headers=headers()).get_json()
    by_category = {row['category']: row for row in rows}
    assert by_category['Amenities']['counts']['PASS'] == 1
    assert by_category['Amenities']['counts']['FAIL'] == 1
    assert by_category['Amenities']['total'] == 3
    assert by_category['Amenities']['passRate'] == 0.5
    assert by_category['Cleanliness']['passRate'] == 1.0


def test_hotel_rating_summary(client, headers, hotel, inspection, record, checklist_item_ids):
    record(inspection['id'], checklist_item_ids[0], 'NEEDS_IMPROVEMENT')
    complete(client, headers, inspection['id'])
    client.post('/api/hotels', json={
        'name': 'Alpine Rest', 'address': '1 Bergstrasse', 'city': 'Zurich', 'country': 'Switzerland',
    }, headers=headers())

    rows = client.get('/api/reports/hotels', headers=headers()).get_json()
    by_name = {row['hotel']['name']: row for row in rows}
    assert by_name['Test Hotel']['inspectionCount'] == 1
    assert by_name['Test Hotel']['avgRating'] == 3.0
    assert by_name['Test Hotel']['followUpCount'] == 1
    assert by_name['Alpine Rest']['inspectionCount'] == 0
    assert by_name['Alpine Rest']['avgRating'] is None


def test_results_summary_groups_by_category(client, headers, inspection, record, checklist_item_ids):
    record(inspection['id'], checklist_item_ids[3], 'PASS')
    record(inspection['id'], checklist_item_ids[0], 'NEEDS_IMPROVEMENT')

    summary = client.get(f"/api/inspections/{inspection['id']}/results", headers=headers()).get_json()['summary']
    assert summary['categories'] == ['Amenities', 'Cleanliness']
    assert summary['needsImprovementCount'] == 1
    assert len(summary['resultsByCategory']['Cleanliness']) == 1


def test_pages_render(client, headers, hotel, inspection, record, checklist_item_ids):
    record(inspection['id'], checklist_item_ids[0], 'PASS', photoUrls=['https://blob.example/p.jpg'])
    complete(client, headers, inspection['id'])

    for path in ('/', '/hotels', f"/hotels/{hotel['id']}", '/inspections',
                 f"/inspections/{inspection['id']}/results", '/reports'):
        response = client.get(path, headers=headers())
        assert response.status_code == 200, path
        assert b'Test Hotel' in response.data, path


def test_signed_out_page_visit_gets_html_401(client):
    response = client.get('/')
    assert response.status_code == 401
    assert response.mimetype == 'text/html'
    assert b'Please sign in to continue.' in response.data


def test_signed_out_page_visit_redirects_to_login_url(app, client):
    app.config['LOGIN_URL'] = 'https://id.lodgeiq.example/sign-in'
    response = client.get('/hotels')
    assert response.status_code == 302
    assert response.location.startswith('https://id.lodgeiq.example/sign-in?next=')
    assert 'hotels' in response.location

    # API clients keep the JSON 401
    response = client.get('/api/hotels')
    assert response.status_code == 401
    assert response.get_json() == {'error': 'Authentication required'}


def test_missing_hotel_page_is_html(client, headers):
    response = client.get('/hotels/missing', headers=headers())
    assert response.status_code == 404
    assert response.mimetype == 'text/html'
    assert b'Hotel not found' in response.data


def test_forbidden_results_page_is_html(client, headers, inspection):
    response = client.get(f"/inspections/{inspection['id']}/results", headers=headers('other_inspector'))
    assert response.status_code == 403
    assert response.mimetype == 'text/html'
    assert b'You do not have permission to view this inspection' in response.data

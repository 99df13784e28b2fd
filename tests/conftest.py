import pytest

from app import create_app
from auth import issue_token
from config import TestingConfig
from extensions import db
from init_data import create_checklist_items, create_users
from models import ChecklistItem, User

ACCOUNTS = {
    'inspector': 'john.doe@lodgeiq.com',
    'other_inspector': 'jane.smith@lodgeiq.com',
    'manager': 'manager@lodgeiq.com',
    'admin': 'admin@lodgeiq.com',
}

HOTEL_PAYLOAD = {
    'name': 'Test Hotel',
    'address': '1 Rue de Rivoli',
    'city': 'Paris',
    'country': 'France',
    'phone': '+33 1 00 00 00 00',
    'email': 'front@testhotel.fr',
    'website': 'https://testhotel.fr',
    'description': 'Boutique hotel near the Louvre',
    'latitude': 48.8606,
    'longitude': 2.3376,
}


@pytest.fixture
def app(tmp_path):
    app = create_app(TestingConfig, UPLOAD_FOLDER=str(tmp_path / 'uploads'))
    with app.app_context():
        create_users()
        create_checklist_items()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def user_ids(app):
    with app.app_context():
        return {key: User.query.filter_by(email=email).one().id for key, email in ACCOUNTS.items()}


@pytest.fixture
def headers(app):
    """headers('manager') -> Authorization header for that seeded account"""
    with app.app_context():
        tokens = {key: issue_token(User.query.filter_by(email=email).one()) for key, email in ACCOUNTS.items()}

    def _headers(who='inspector'):
        return {'Authorization': f'Bearer {tokens[who]}'}
    return _headers


@pytest.fixture
def checklist_item_ids(app):
    with app.app_context():
        items = ChecklistItem.query.order_by(ChecklistItem.category, ChecklistItem.order).all()
        return [item.id for item in items]


@pytest.fixture
def hotel(client, headers):
    response = client.post('/api/hotels', json=HOTEL_PAYLOAD, headers=headers())
    assert response.status_code == 201
    return response.get_json()


@pytest.fixture
def inspection(client, headers, hotel):
    response = client.post('/api/inspections', json={'hotelId': hotel['id']}, headers=headers())
    assert response.status_code == 201
    return response.get_json()


@pytest.fixture
def record(client, headers):
    """record(inspection_id, item_id, result, who='inspector', **extra) -> response"""
    def _record(inspection_id, checklist_item_id, result, who='inspector', **extra):
        body = {'inspectionId': inspection_id, 'checklistItemId': checklist_item_id, 'result': result}
        body.update(extra)
        return client.post('/api/inspection-results', json=body, headers=headers(who))
    return _record

"""
Initialize database with sample data for the inspection tracker
"""
import logging

from extensions import db
from inspection_service import complete_inspection
from models import (ChecklistItem, Hotel, Inspection, InspectionResult,
                    InspectionStatus, ResultStatus, User, UserRole)

logger = logging.getLogger(__name__)

USERS = [
    {'email': 'john.doe@lodgeiq.com', 'name': 'John Doe', 'role': UserRole.INSPECTOR},
    {'email': 'jane.smith@lodgeiq.com', 'name': 'Jane Smith', 'role': UserRole.INSPECTOR},
    {'email': 'manager@lodgeiq.com', 'name': 'Sarah Manager', 'role': UserRole.MANAGER},
    {'email': 'admin@lodgeiq.com', 'name': 'LodgeIQ Admin', 'role': UserRole.ADMIN},
]

HOTELS = [
    {
        'name': 'Grand Palace Hotel',
        'address': '123 Royal Street',
        'city': 'Paris',
        'country': 'France',
        'phone': '+33 1 23 45 67 89',
        'email': 'info@grandpalace.fr',
        'website': 'https://grandpalace.fr',
        'description': 'Luxury 5-star hotel in the heart of Paris',
        'latitude': 48.8566,
        'longitude': 2.3522,
    },
    {
        'name': 'Sunset Beach Resort',
        'address': '456 Ocean Drive',
        'city': 'Miami',
        'country': 'USA',
        'phone': '+1 305 123 4567',
        'email': 'reservations@sunsetbeach.com',
        'website': 'https://sunsetbeach.com',
        'description': 'Beachfront resort with stunning ocean views',
        'latitude': 25.7617,
        'longitude': -80.1918,
    },
    {
        'name': 'Mountain View Lodge',
        'address': '789 Alpine Road',
        'city': 'Zurich',
        'country': 'Switzerland',
        'phone': '+41 44 123 45 67',
        'email': 'info@mountainview.ch',
        'description': 'Cozy lodge with spectacular mountain views',
        'latitude': 47.3769,
        'longitude': 8.5417,
    },
]

# (category, item name, description, weight) in display order per category
CHECKLIST = [
    ('Room Quality', 'Bed Comfort', 'Check mattress quality, pillows, and bedding', 1.5),
    ('Room Quality', 'Room Size', 'Adequate space for guests and luggage', 1.0),
    ('Room Quality', 'Air Conditioning/Heating', 'Temperature control functionality', 1.5),
    ('Cleanliness', 'Bathroom Cleanliness', 'Check toilet, shower, sink, and floors', 2.0),
    ('Cleanliness', 'Room Cleanliness', 'Overall room hygiene and tidiness', 1.5),
    ('Cleanliness', 'Linen Quality', 'Clean, fresh sheets and towels', 1.5),
    ('Safety', 'Fire Safety Equipment', 'Check smoke detectors, fire extinguishers, exits', 2.0),
    ('Safety', 'Door Locks', 'Secure locks and peephole functionality', 1.5),
    ('Safety', 'Emergency Information', 'Visible emergency exits and contact info', 1.0),
    ('Amenities', 'WiFi Quality', 'Internet speed and reliability', 1.5),
    ('Amenities', 'TV and Entertainment', 'TV functionality and channel selection', 0.5),
    ('Amenities', 'Bathroom Amenities', 'Toiletries, hair dryer, etc.', 1.0),
    ('Staff & Service', 'Check-in Process', 'Efficiency and friendliness at reception', 1.5),
    ('Staff & Service', 'Staff Responsiveness', 'Staff availability and helpfulness', 1.5),
    ('Staff & Service', 'Language Skills', 'Staff ability to communicate in required languages', 1.0),
]


def create_users():
    created = 0
    for data in USERS:
        if User.query.filter_by(email=data['email']).first() is None:
            db.session.add(User(**data))
            created += 1
    db.session.commit()
    logger.info("Seeded %d users", created)
    return created


def create_checklist_items():
    """Checklist is static reference data, seeded only into an empty table"""
    if ChecklistItem.query.count() > 0:
        return 0

    positions = {}
    for category, item_name, description, weight in CHECKLIST:
        positions[category] = positions.get(category, 0) + 1
        db.session.add(ChecklistItem(
            category=category,
            item_name=item_name,
            description=description,
            weight=weight,
            order=positions[category],
        ))
    db.session.commit()
    logger.info("Seeded %d checklist items across %d categories", len(CHECKLIST), len(positions))
    return len(CHECKLIST)


def create_hotels():
    created = []
    for data in HOTELS:
        if Hotel.query.filter_by(name=data['name']).first() is None:
            hotel = Hotel(**data)
            db.session.add(hotel)
            created.append(hotel)
    db.session.commit()
    logger.info("Seeded %d hotels", len(created))
    return created


# (item name, result, notes) recorded on the seeded sample inspection
SAMPLE_RESULTS = [
    ('Bed Comfort', ResultStatus.PASS, ''),
    ('Air Conditioning/Heating', ResultStatus.FAIL, 'Unit in room 305 not cooling'),
    ('Bathroom Cleanliness', ResultStatus.PASS, ''),
    ('Fire Safety Equipment', ResultStatus.PASS, ''),
    ('WiFi Quality', ResultStatus.NEEDS_IMPROVEMENT, 'Weak signal on the 3rd floor'),
    ('TV and Entertainment', ResultStatus.NOT_APPLICABLE, ''),
]


def create_sample_inspection():
    if Inspection.query.count() > 0:
        return None

    hotel = Hotel.query.filter_by(name='Grand Palace Hotel').first()
    inspector = User.query.filter_by(email='john.doe@lodgeiq.com').first()
    if hotel is None or inspector is None:
        return None

    inspection = Inspection(
        hotel_id=hotel.id,
        inspector_id=inspector.id,
        status=InspectionStatus.IN_PROGRESS,
        notes='Excellent property with minor issues in room 305',
    )
    db.session.add(inspection)
    db.session.flush()

    items = {item.item_name: item for item in ChecklistItem.query.all()}
    for item_name, result, notes in SAMPLE_RESULTS:
        if item_name in items:
            db.session.add(InspectionResult(
                inspection_id=inspection.id,
                checklist_item_id=items[item_name].id,
                result=result,
                notes=notes,
                photo_urls=[],
            ))
    db.session.commit()

    complete_inspection(
        inspection.id,
        inspector,
        follow_up_notes='Replace air conditioning unit in room 305',
    )
    logger.info("Seeded sample inspection for %s", hotel.name)
    return inspection


def create_initial_data():
    """Create initial data for the application"""
    try:
        create_users()
        create_checklist_items()
        create_hotels()
        create_sample_inspection()
    except Exception:
        db.session.rollback()
        logger.exception("Database initialization error")
        raise

import logging
from numbers import Number

from flask import Blueprint, jsonify, request, send_from_directory
from flask_login import login_required

import inspection_service
import photo_storage
import reports
from auth import current_actor, get_default_inspector
from errors import NotFoundError, ValidationError, json_errors
from extensions import db
from models import ChecklistItem, Hotel, Inspection, utcnow
from policy import Action, policy

logger = logging.getLogger(__name__)

# Create API blueprint
api_bp = Blueprint('api', __name__, url_prefix='/api')

HOTEL_REQUIRED_FIELDS = ('name', 'address', 'city', 'country')
HOTEL_OPTIONAL_FIELDS = ('phone', 'email', 'website', 'description')
HOTEL_COORDINATES = (('latitude', 90), ('longitude', 180))


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def _hotel_fields(data, partial=False):
    """Validate a hotel payload and map it onto model attributes"""
    fields = {}

    missing = [f for f in HOTEL_REQUIRED_FIELDS if not partial and not data.get(f)]
    if missing:
        raise ValidationError('Missing required fields: name, address, city, country')

    for field in HOTEL_REQUIRED_FIELDS:
        if field in data:
            value = data[field]
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f'{field} must be a non-empty string')
            fields[field] = value.strip()

    for field in HOTEL_OPTIONAL_FIELDS:
        if field in data or not partial:
            value = data.get(field)
            if value is not None and not isinstance(value, str):
                raise ValidationError(f'{field} must be a string')
            fields[field] = value or None

    for field, limit in HOTEL_COORDINATES:
        if field in data or not partial:
            value = data.get(field)
            if value is not None:
                if isinstance(value, bool) or not isinstance(value, Number) or not -limit <= value <= limit:
                    raise ValidationError(f'{field} must be a number between -{limit} and {limit}')
                value = float(value)
            fields[field] = value

    return fields


def _get_hotel_or_404(hotel_id):
    hotel = db.session.get(Hotel, hotel_id)
    if hotel is None:
        raise NotFoundError('Hotel not found')
    return hotel


@api_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint"""
    return jsonify({
        'status': 'healthy',
        'message': 'LodgeIQ inspection API is running',
        'timestamp': utcnow().isoformat(),
    }), 200


# Hotels

@api_bp.route('/hotels', methods=['GET'])
@login_required
@json_errors('Failed to fetch hotels')
def list_hotels():
    """All hotels, newest first, with their inspection counts"""
    return jsonify(reports.hotels_with_counts()), 200


@api_bp.route('/hotels', methods=['POST'])
@login_required
@json_errors('Failed to create hotel')
def create_hotel():
    policy.enforce(current_actor(), Action.MANAGE_HOTELS)
    hotel = Hotel(**_hotel_fields(_json_body()))
    db.session.add(hotel)
    db.session.commit()
    logger.info("Hotel %s created: %s (%s, %s)", hotel.id, hotel.name, hotel.city, hotel.country)
    return jsonify(hotel.to_dict()), 201


@api_bp.route('/hotels/<hotel_id>', methods=['GET'])
@login_required
@json_errors('Failed to fetch hotel')
def get_hotel(hotel_id):
    """Hotel with its last 10 inspections"""
    hotel = _get_hotel_or_404(hotel_id)
    inspections = hotel.inspections.order_by(Inspection.inspection_date.desc()).limit(10).all()
    data = hotel.to_dict()
    data['inspections'] = [i.to_dict(include_inspector=True) for i in inspections]
    return jsonify(data), 200


@api_bp.route('/hotels/<hotel_id>', methods=['PUT'])
@login_required
@json_errors('Failed to update hotel')
def update_hotel(hotel_id):
    policy.enforce(current_actor(), Action.MANAGE_HOTELS)
    hotel = _get_hotel_or_404(hotel_id)
    for key, value in _hotel_fields(_json_body(), partial=True).items():
        setattr(hotel, key, value)
    db.session.commit()
    return jsonify(hotel.to_dict()), 200


@api_bp.route('/hotels/<hotel_id>', methods=['DELETE'])
@login_required
@json_errors('Failed to delete hotel')
def delete_hotel(hotel_id):
    """Delete a hotel along with its inspections and their results"""
    policy.enforce(current_actor(), Action.MANAGE_HOTELS)
    hotel = _get_hotel_or_404(hotel_id)
    db.session.delete(hotel)
    db.session.commit()
    logger.info("Hotel %s deleted", hotel_id)
    return jsonify({'message': 'Hotel deleted successfully'}), 200


# Inspections

@api_bp.route('/inspections', methods=['GET'])
@login_required
@json_errors('Failed to fetch inspections')
def list_inspections():
    inspections = inspection_service.list_inspections(
        current_actor(),
        status=request.args.get('status'),
        hotel_id=request.args.get('hotelId'),
    )
    return jsonify([
        i.to_dict(include_hotel=True, include_inspector=True) for i in inspections
    ]), 200


@api_bp.route('/inspections', methods=['POST'])
@login_required
@json_errors('Failed to create inspection')
def create_inspection():
    data = _json_body()
    if not data.get('hotelId'):
        raise ValidationError('Missing required fields: hotelId')

    inspection = inspection_service.start_inspection(data['hotelId'], current_actor(), notes=data.get('notes'))
    return jsonify(inspection.to_dict(include_hotel=True, include_inspector=True)), 201


@api_bp.route('/inspections/<inspection_id>', methods=['GET'])
@login_required
@json_errors('Failed to fetch inspection')
def get_inspection(inspection_id):
    """Inspection with hotel, inspector and results in checklist order"""
    inspection = inspection_service.get_visible_inspection(inspection_id, current_actor())
    return jsonify(inspection.to_dict(include_hotel=True, include_inspector=True, include_results=True)), 200


@api_bp.route('/inspections/<inspection_id>', methods=['PUT'])
@login_required
@json_errors('Failed to update inspection')
def update_inspection(inspection_id):
    inspection = inspection_service.update_inspection(inspection_id, current_actor(), _json_body())
    return jsonify(inspection.to_dict(include_hotel=True, include_inspector=True)), 200


@api_bp.route('/inspections/<inspection_id>/results', methods=['GET'])
@login_required
@json_errors('Failed to fetch inspection results')
def get_inspection_results(inspection_id):
    inspection = inspection_service.get_visible_inspection(inspection_id, current_actor())
    data = inspection.to_dict(include_hotel=True, include_inspector=True, include_results=True)
    data['summary'] = reports.inspection_summary(inspection)
    return jsonify(data), 200


@api_bp.route('/inspection-results', methods=['POST'])
@login_required
@json_errors('Failed to save inspection result')
def save_inspection_result():
    """Create or update the result for one checklist item"""
    data = _json_body()
    if not data.get('inspectionId') or not data.get('checklistItemId') or not data.get('result'):
        raise ValidationError('Missing required fields: inspectionId, checklistItemId, result')

    result = inspection_service.record_result(
        data['inspectionId'],
        data['checklistItemId'],
        data['result'],
        current_actor(),
        rating=data.get('rating'),
        notes=data.get('notes'),
        photo_urls=data.get('photoUrls'),
    )
    return jsonify(result.to_dict(include_checklist_item=True)), 201


# Photos

@api_bp.route('/upload-photo', methods=['POST'])
@login_required
@json_errors('Failed to upload photo')
def upload_photo():
    """Store a single photo for an open inspection and return its public URL"""
    actor = current_actor()
    policy.enforce(actor, Action.UPLOAD_PHOTO)
    url = photo_storage.store_photo(
        request.files.get('file'),
        request.form.get('inspectionId'),
        request.form.get('checklistItemId'),
        actor,
    )
    return jsonify({'url': url}), 201


@api_bp.route('/uploads/<path:key>', methods=['GET'])
def serve_upload(key):
    storage = photo_storage.get_storage()
    if not isinstance(storage, photo_storage.LocalPhotoStorage):
        raise NotFoundError('Photo not found')
    return send_from_directory(storage.base_path, key)


# Reference data and users

@api_bp.route('/checklist-items', methods=['GET'])
@login_required
@json_errors('Failed to fetch checklist items')
def list_checklist_items():
    """Active checklist items ordered by category, then order"""
    items = ChecklistItem.query.filter_by(is_active=True).order_by(
        ChecklistItem.category.asc(), ChecklistItem.order.asc()
    ).all()
    return jsonify([item.to_dict() for item in items]), 200


@api_bp.route('/users/me', methods=['GET'])
@login_required
def get_current_user():
    return jsonify(current_actor().to_dict()), 200


@api_bp.route('/users/default-inspector', methods=['GET'])
@json_errors('Failed to fetch default inspector')
def default_inspector():
    """Inspector used while authentication is disabled"""
    inspector = get_default_inspector()
    if inspector is None:
        raise NotFoundError('Default inspector not found. Please run: flask seed')
    return jsonify(inspector.to_dict()), 200


# Reports

@api_bp.route('/reports/dashboard', methods=['GET'])
@login_required
@json_errors('Failed to fetch dashboard metrics')
def dashboard_report():
    return jsonify(reports.dashboard_metrics()), 200


@api_bp.route('/reports/categories', methods=['GET'])
@login_required
@json_errors('Failed to fetch category report')
def category_report():
    return jsonify(reports.category_breakdown()), 200


@api_bp.route('/reports/hotels', methods=['GET'])
@login_required
@json_errors('Failed to fetch hotel report')
def hotel_report():
    return jsonify(reports.hotel_rating_summary()), 200

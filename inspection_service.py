"""
Inspection lifecycle.

IN_PROGRESS -> COMPLETED -> APPROVED | REJECTED

Results are upserted one checklist item at a time while the inspection is
open; completing it derives the overall rating and follow-up flag from the
stored results.
"""
import logging
from numbers import Number

from sqlalchemy.exc import IntegrityError

from errors import NotFoundError, ValidationError
from extensions import db
from models import (ChecklistItem, Hotel, Inspection, InspectionResult,
                    InspectionStatus, ResultStatus, utcnow)
from policy import Action, policy

logger = logging.getLogger(__name__)

# PENDING and NOT_APPLICABLE don't count towards the overall rating
RESULT_SCORES = {
    ResultStatus.PASS: 5,
    ResultStatus.NEEDS_IMPROVEMENT: 3,
    ResultStatus.FAIL: 1,
}

ALLOWED_TRANSITIONS = {
    InspectionStatus.IN_PROGRESS: {InspectionStatus.COMPLETED},
    InspectionStatus.COMPLETED: {InspectionStatus.APPROVED, InspectionStatus.REJECTED},
    InspectionStatus.APPROVED: set(),
    InspectionStatus.REJECTED: set(),
}

REVIEW_STATUSES = (InspectionStatus.APPROVED, InspectionStatus.REJECTED)

# Set only by complete_inspection; ignored on the completing PUT, refused on any other
DERIVED_FIELDS = ('overallRating', 'followUpRequired')


def get_inspection_or_404(inspection_id):
    inspection = db.session.get(Inspection, inspection_id) if inspection_id else None
    if inspection is None:
        raise NotFoundError('Inspection not found')
    return inspection


def get_visible_inspection(inspection_id, actor):
    inspection = get_inspection_or_404(inspection_id)
    policy.enforce(actor, Action.VIEW_INSPECTION, inspection)
    return inspection


def list_inspections(actor, status=None, hotel_id=None):
    """Inspections the actor may see, newest first"""
    query = Inspection.query
    if not policy.allows(actor, Action.VIEW_ALL_INSPECTIONS):
        query = query.filter(Inspection.inspector_id == actor.id)
    if status:
        if status not in InspectionStatus.ALL:
            raise ValidationError('Invalid status value')
        query = query.filter(Inspection.status == status)
    if hotel_id:
        query = query.filter(Inspection.hotel_id == hotel_id)
    return query.order_by(Inspection.inspection_date.desc()).all()


def validate_rating(value, field='rating'):
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, Number):
        raise ValidationError(f'{field} must be a number between 0 and 5')
    if not 0 <= value <= 5:
        raise ValidationError(f'{field} must be a number between 0 and 5')
    return float(value)


def _validate_photo_urls(photo_urls):
    if photo_urls is None:
        return []
    if not isinstance(photo_urls, list) or not all(isinstance(u, str) for u in photo_urls):
        raise ValidationError('photoUrls must be a list of URLs')
    return list(photo_urls)


def start_inspection(hotel_id, actor, notes=None):
    policy.enforce(actor, Action.CREATE_INSPECTION)

    hotel = db.session.get(Hotel, hotel_id) if hotel_id else None
    if hotel is None:
        raise NotFoundError('Hotel not found')

    inspection = Inspection(
        hotel_id=hotel.id,
        inspector_id=actor.id,
        status=InspectionStatus.IN_PROGRESS,
        notes=notes or '',
        inspection_date=utcnow(),
    )
    db.session.add(inspection)
    db.session.commit()

    logger.info("Inspection %s started for hotel %s by %s", inspection.id, hotel.id, actor.email)
    return inspection


def ensure_open(inspection):
    if inspection.status != InspectionStatus.IN_PROGRESS:
        raise ValidationError(f'Cannot record results on a {inspection.status} inspection')


def authorize_photo_upload(inspection_id, checklist_item_id, actor):
    """Photos go only to open inspections the actor may modify"""
    inspection = get_inspection_or_404(inspection_id)
    policy.enforce(actor, Action.MODIFY_INSPECTION, inspection)
    ensure_open(inspection)
    if db.session.get(ChecklistItem, checklist_item_id) is None:
        raise NotFoundError('Checklist item not found')
    return inspection


def record_result(inspection_id, checklist_item_id, result, actor, rating=None, notes=None, photo_urls=None):
    """Create or overwrite the result for one checklist item of an inspection"""
    if result not in ResultStatus.ALL:
        raise ValidationError('Invalid result value')

    inspection = get_inspection_or_404(inspection_id)
    policy.enforce(actor, Action.MODIFY_INSPECTION, inspection)
    ensure_open(inspection)

    if db.session.get(ChecklistItem, checklist_item_id) is None:
        raise NotFoundError('Checklist item not found')

    values = {
        'result': result,
        'rating': validate_rating(rating),
        'notes': notes or '',
        'photo_urls': _validate_photo_urls(photo_urls),
    }

    row = InspectionResult.query.filter_by(
        inspection_id=inspection_id,
        checklist_item_id=checklist_item_id,
    ).first()

    if row is None:
        row = InspectionResult(inspection_id=inspection_id, checklist_item_id=checklist_item_id, **values)
        db.session.add(row)
        try:
            db.session.commit()
        except IntegrityError:
            # A concurrent save inserted the row first; last write wins
            db.session.rollback()
            row = InspectionResult.query.filter_by(
                inspection_id=inspection_id,
                checklist_item_id=checklist_item_id,
            ).one()
            _apply(row, values)
            db.session.commit()
    else:
        _apply(row, values)
        db.session.commit()

    logger.info("Recorded %s for item %s on inspection %s", result, checklist_item_id, inspection_id)
    return row


def _apply(row, values):
    for key, value in values.items():
        setattr(row, key, value)


def calculate_overall_rating(results):
    """Mean of PASS=5 / NEEDS_IMPROVEMENT=3 / FAIL=1 over scored results, or None"""
    scores = [RESULT_SCORES[r.result] for r in results if r.result in RESULT_SCORES]
    if not scores:
        return None
    return round(sum(scores) / len(scores), 2)


def requires_follow_up(results):
    return any(r.result in ResultStatus.FOLLOW_UP for r in results)


def check_transition(current, target):
    if target not in ALLOWED_TRANSITIONS.get(current, set()):
        raise ValidationError(f'Cannot change inspection status from {current} to {target}')


def complete_inspection(inspection_id, actor, notes=None, follow_up_notes=None):
    inspection = get_inspection_or_404(inspection_id)
    policy.enforce(actor, Action.MODIFY_INSPECTION, inspection)
    check_transition(inspection.status, InspectionStatus.COMPLETED)

    results = list(inspection.results)
    inspection.status = InspectionStatus.COMPLETED
    inspection.completed_at = utcnow()
    inspection.overall_rating = calculate_overall_rating(results)
    inspection.follow_up_required = requires_follow_up(results)
    if notes is not None:
        inspection.notes = notes
    if follow_up_notes is not None:
        inspection.follow_up_notes = follow_up_notes
    db.session.commit()

    logger.info(
        "Inspection %s completed: rating=%s follow_up=%s",
        inspection.id, inspection.overall_rating, inspection.follow_up_required,
    )
    return inspection


def update_inspection(inspection_id, actor, payload):
    """Apply a PUT /inspections/<id> payload"""
    inspection = get_inspection_or_404(inspection_id)

    status = payload.get('status')
    if status is not None and status not in InspectionStatus.ALL:
        raise ValidationError('Invalid status value')
    if status == inspection.status:
        status = None

    if status == InspectionStatus.COMPLETED:
        return complete_inspection(
            inspection_id,
            actor,
            notes=payload.get('notes'),
            follow_up_notes=payload.get('followUpNotes'),
        )

    edits = {key for key in ('notes', 'followUpNotes') + DERIVED_FIELDS if key in payload}
    if status in REVIEW_STATUSES:
        policy.enforce(actor, Action.REVIEW_INSPECTION, inspection)
        # Reviewers may leave follow-up notes with their decision
        if edits - {'followUpNotes'}:
            policy.enforce(actor, Action.MODIFY_INSPECTION, inspection)
    else:
        policy.enforce(actor, Action.MODIFY_INSPECTION, inspection)

    if edits & set(DERIVED_FIELDS):
        raise ValidationError('overallRating and followUpRequired are calculated from the inspection results')

    if status is not None:
        check_transition(inspection.status, status)

    if 'notes' in payload:
        inspection.notes = payload['notes'] or ''
    if 'followUpNotes' in payload:
        inspection.follow_up_notes = payload['followUpNotes']

    if status is not None:
        logger.info("Inspection %s moved %s -> %s by %s", inspection.id, inspection.status, status, actor.email)
        inspection.status = status
    db.session.commit()
    return inspection

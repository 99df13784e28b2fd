from flask import Blueprint, render_template
from flask_login import login_required

import inspection_service
import reports
from auth import current_actor
from errors import NotFoundError
from extensions import db
from models import Hotel, Inspection, InspectionStatus

pages_bp = Blueprint('pages', __name__)


@pages_bp.route('/')
@login_required
def dashboard():
    return render_template(
        'dashboard.html',
        metrics=reports.dashboard_metrics(),
        hotels=reports.hotels_with_counts(),
    )


@pages_bp.route('/hotels')
@login_required
def hotels():
    return render_template('hotels.html', hotels=reports.hotels_with_counts())


@pages_bp.route('/hotels/<hotel_id>')
@login_required
def hotel_detail(hotel_id):
    hotel = db.session.get(Hotel, hotel_id)
    if hotel is None:
        raise NotFoundError('Hotel not found')
    inspections = hotel.inspections.order_by(Inspection.inspection_date.desc()).all()
    return render_template('hotel_detail.html', hotel=hotel, inspections=inspections)


@pages_bp.route('/inspections')
@login_required
def inspections():
    items = inspection_service.list_inspections(current_actor())
    completed_count = len([i for i in items if i.status in InspectionStatus.FINISHED])
    in_progress_count = len([i for i in items if i.status == InspectionStatus.IN_PROGRESS])
    return render_template(
        'inspections.html',
        inspections=items,
        completed_count=completed_count,
        in_progress_count=in_progress_count,
    )


@pages_bp.route('/inspections/<inspection_id>/results')
@login_required
def inspection_results(inspection_id):
    inspection = inspection_service.get_visible_inspection(inspection_id, current_actor())
    return render_template(
        'inspection_results.html',
        inspection=inspection,
        summary=reports.inspection_summary(inspection),
    )


@pages_bp.route('/reports')
@login_required
def reports_page():
    return render_template(
        'reports.html',
        metrics=reports.dashboard_metrics(),
        categories=reports.category_breakdown(),
        hotels=reports.hotel_rating_summary(),
    )

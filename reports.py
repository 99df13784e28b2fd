"""
Read-side aggregation for the dashboard, reports and results pages.
"""
from collections import OrderedDict
from datetime import timedelta

from extensions import db
from models import (ChecklistItem, Hotel, Inspection, InspectionResult,
                    InspectionStatus, ResultStatus, utcnow)

RECENT_DAYS = 30


def dashboard_metrics(now=None):
    """Headline numbers for the dashboard and reports pages"""
    now = now or utcnow()
    since = now - timedelta(days=RECENT_DAYS)

    total_hotels = Hotel.query.count()
    total_inspections = Inspection.query.count()
    completed_inspections = Inspection.query.filter(
        Inspection.status.in_(InspectionStatus.FINISHED)
    ).count()
    recent_inspections = Inspection.query.filter(Inspection.inspection_date >= since).count()
    follow_ups = Inspection.query.filter(Inspection.follow_up_required.is_(True)).count()

    avg_rating = db.session.query(db.func.avg(Inspection.overall_rating)).filter(
        Inspection.overall_rating.isnot(None)
    ).scalar()

    by_status = {status: 0 for status in InspectionStatus.ALL}
    rows = db.session.query(Inspection.status, db.func.count(Inspection.id)).group_by(Inspection.status).all()
    for status, count in rows:
        by_status[status] = count

    return {
        'totalHotels': total_hotels,
        'totalInspections': total_inspections,
        'completedInspections': completed_inspections,
        'recentInspections': recent_inspections,
        'avgRating': round(float(avg_rating), 2) if avg_rating is not None else 0,
        'followUpInspections': follow_ups,
        'inspectionsByStatus': by_status,
    }


def count_results(results):
    counts = {status: 0 for status in ResultStatus.ALL}
    for r in results:
        counts[r.result] = counts.get(r.result, 0) + 1
    return counts


def inspection_summary(inspection):
    """Counts per result value plus results grouped by checklist category"""
    results = inspection.ordered_results()
    counts = count_results(results)

    grouped = OrderedDict()
    for r in results:
        grouped.setdefault(r.checklist_item.category, []).append(r.to_dict(include_checklist_item=True))

    return {
        'totalItems': len(results),
        'passCount': counts[ResultStatus.PASS],
        'failCount': counts[ResultStatus.FAIL],
        'needsImprovementCount': counts[ResultStatus.NEEDS_IMPROVEMENT],
        'notApplicableCount': counts[ResultStatus.NOT_APPLICABLE],
        'pendingCount': counts[ResultStatus.PENDING],
        'categories': list(grouped.keys()),
        'resultsByCategory': grouped,
    }


def category_breakdown():
    """Result counts per checklist category across every inspection"""
    rows = db.session.query(
        ChecklistItem.category,
        InspectionResult.result,
        db.func.count(InspectionResult.id),
    ).join(
        InspectionResult, InspectionResult.checklist_item_id == ChecklistItem.id
    ).group_by(
        ChecklistItem.category, InspectionResult.result
    ).order_by(ChecklistItem.category).all()

    breakdown = OrderedDict()
    for category, result, count in rows:
        entry = breakdown.setdefault(category, {status: 0 for status in ResultStatus.ALL})
        entry[result] = count

    report = []
    for category, counts in breakdown.items():
        scored = counts[ResultStatus.PASS] + counts[ResultStatus.FAIL] + counts[ResultStatus.NEEDS_IMPROVEMENT]
        report.append({
            'category': category,
            'counts': counts,
            'total': sum(counts.values()),
            'passRate': round(counts[ResultStatus.PASS] / scored, 3) if scored else None,
        })
    return report


def hotel_rating_summary():
    """Per-hotel inspection count, average rating, latest visit and open follow-ups"""
    rows = db.session.query(
        Hotel,
        db.func.count(Inspection.id),
        db.func.avg(Inspection.overall_rating),
        db.func.max(Inspection.inspection_date),
        db.func.sum(db.case((Inspection.follow_up_required.is_(True), 1), else_=0)),
    ).outerjoin(
        Inspection, Inspection.hotel_id == Hotel.id
    ).group_by(Hotel.id).order_by(Hotel.name).all()

    return [
        {
            'hotel': hotel.to_dict(),
            'inspectionCount': count,
            'avgRating': round(float(avg), 2) if avg is not None else None,
            'lastInspectionDate': last.isoformat() if last else None,
            'followUpCount': int(follow_ups or 0),
        }
        for hotel, count, avg, last, follow_ups in rows
    ]


def hotels_with_counts():
    rows = db.session.query(Hotel, db.func.count(Inspection.id)).outerjoin(
        Inspection, Inspection.hotel_id == Hotel.id
    ).group_by(Hotel.id).order_by(Hotel.created_at.desc()).all()
    return [hotel.to_dict(inspection_count=count) for hotel, count in rows]

import uuid
from datetime import datetime, timezone

from flask_login import UserMixin

from extensions import db


def utcnow():
    """Naive UTC timestamp, the format every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_id():
    return uuid.uuid4().hex


def _iso(value):
    return value.isoformat() if value else None


class UserRole:
    INSPECTOR = 'INSPECTOR'
    MANAGER = 'MANAGER'
    ADMIN = 'ADMIN'

    ALL = (INSPECTOR, MANAGER, ADMIN)


class InspectionStatus:
    IN_PROGRESS = 'IN_PROGRESS'
    COMPLETED = 'COMPLETED'
    APPROVED = 'APPROVED'
    REJECTED = 'REJECTED'

    ALL = (IN_PROGRESS, COMPLETED, APPROVED, REJECTED)
    FINISHED = (COMPLETED, APPROVED)


class ResultStatus:
    PENDING = 'PENDING'
    PASS = 'PASS'
    FAIL = 'FAIL'
    NEEDS_IMPROVEMENT = 'NEEDS_IMPROVEMENT'
    NOT_APPLICABLE = 'NOT_APPLICABLE'

    ALL = (PENDING, PASS, FAIL, NEEDS_IMPROVEMENT, NOT_APPLICABLE)
    FOLLOW_UP = (FAIL, NEEDS_IMPROVEMENT)


class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.String(32), primary_key=True, default=generate_id)
    email = db.Column(db.String(255), unique=True, nullable=False)
    name = db.Column(db.String(255))
    image = db.Column(db.String(500))
    role = db.Column(db.String(20), nullable=False, default=UserRole.INSPECTOR)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    inspections = db.relationship('Inspection', back_populates='inspector', lazy='dynamic')

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN

    def to_dict(self):
        """Convert user to dictionary for API responses"""
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'image': self.image,
            'role': self.role,
            'createdAt': _iso(self.created_at),
        }

    def to_summary(self):
        return {'id': self.id, 'name': self.name, 'email': self.email}

    def __repr__(self):
        return f'<User {self.email}>'


class Hotel(db.Model):
    __tablename__ = 'hotels'

    id = db.Column(db.String(32), primary_key=True, default=generate_id)
    name = db.Column(db.String(255), nullable=False)
    address = db.Column(db.String(500), nullable=False)
    city = db.Column(db.String(120), nullable=False)
    country = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(50))
    email = db.Column(db.String(255))
    website = db.Column(db.String(500))
    description = db.Column(db.Text)
    latitude = db.Column(db.Float)
    longitude = db.Column(db.Float)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    # Relationships
    inspections = db.relationship(
        'Inspection',
        back_populates='hotel',
        lazy='dynamic',
        cascade='all, delete-orphan',
        passive_deletes=True,
    )

    def to_dict(self, inspection_count=None):
        """Convert hotel to dictionary for API responses"""
        data = {
            'id': self.id,
            'name': self.name,
            'address': self.address,
            'city': self.city,
            'country': self.country,
            'phone': self.phone,
            'email': self.email,
            'website': self.website,
            'description': self.description,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
        }
        if inspection_count is not None:
            data['inspectionCount'] = inspection_count
        return data

    def __repr__(self):
        return f'<Hotel {self.name}>'


class ChecklistItem(db.Model):
    """Static inspection criterion, seeded once"""
    __tablename__ = 'checklist_items'

    id = db.Column(db.String(32), primary_key=True, default=generate_id)
    category = db.Column(db.String(120), nullable=False)
    item_name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    weight = db.Column(db.Float, nullable=False, default=1.0)
    order = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    results = db.relationship('InspectionResult', back_populates='checklist_item', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'category': self.category,
            'itemName': self.item_name,
            'description': self.description,
            'weight': self.weight,
            'order': self.order,
            'isActive': self.is_active,
        }

    def __repr__(self):
        return f'<ChecklistItem {self.category}/{self.item_name}>'


class Inspection(db.Model):
    __tablename__ = 'inspections'

    id = db.Column(db.String(32), primary_key=True, default=generate_id)
    hotel_id = db.Column(db.String(32), db.ForeignKey('hotels.id', ondelete='CASCADE'), nullable=False, index=True)
    inspector_id = db.Column(db.String(32), db.ForeignKey('users.id'), nullable=False, index=True)
    status = db.Column(db.String(20), nullable=False, default=InspectionStatus.IN_PROGRESS)
    inspection_date = db.Column(db.DateTime, nullable=False, default=utcnow)
    notes = db.Column(db.Text, default='')
    overall_rating = db.Column(db.Float)
    follow_up_required = db.Column(db.Boolean, nullable=False, default=False)
    follow_up_notes = db.Column(db.Text)
    completed_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    hotel = db.relationship('Hotel', back_populates='inspections')
    inspector = db.relationship('User', back_populates='inspections')
    results = db.relationship(
        'InspectionResult',
        back_populates='inspection',
        cascade='all, delete-orphan',
        passive_deletes=True,
    )

    def ordered_results(self):
        """Results sorted the way the checklist is displayed: category, then order"""
        return sorted(
            self.results,
            key=lambda r: (r.checklist_item.category, r.checklist_item.order),
        )

    def to_dict(self, include_hotel=False, include_inspector=False, include_results=False):
        """Convert inspection to dictionary for API responses"""
        data = {
            'id': self.id,
            'hotelId': self.hotel_id,
            'inspectorId': self.inspector_id,
            'status': self.status,
            'inspectionDate': _iso(self.inspection_date),
            'notes': self.notes,
            'overallRating': self.overall_rating,
            'followUpRequired': self.follow_up_required,
            'followUpNotes': self.follow_up_notes,
            'completedAt': _iso(self.completed_at),
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
        }
        if include_hotel:
            data['hotel'] = self.hotel.to_dict() if self.hotel else None
        if include_inspector:
            data['inspector'] = self.inspector.to_summary() if self.inspector else None
        if include_results:
            data['inspectionResults'] = [
                r.to_dict(include_checklist_item=True) for r in self.ordered_results()
            ]
        return data

    def __repr__(self):
        return f'<Inspection {self.id} {self.status}>'


class InspectionResult(db.Model):
    __tablename__ = 'inspection_results'

    id = db.Column(db.String(32), primary_key=True, default=generate_id)
    inspection_id = db.Column(db.String(32), db.ForeignKey('inspections.id', ondelete='CASCADE'), nullable=False)
    checklist_item_id = db.Column(db.String(32), db.ForeignKey('checklist_items.id'), nullable=False)
    result = db.Column(db.String(30), nullable=False, default=ResultStatus.PENDING)
    rating = db.Column(db.Float)
    notes = db.Column(db.Text, default='')
    photo_urls = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    inspection = db.relationship('Inspection', back_populates='results')
    checklist_item = db.relationship('ChecklistItem', back_populates='results')

    # One result per checklist item per inspection
    __table_args__ = (
        db.UniqueConstraint('inspection_id', 'checklist_item_id', name='_inspection_checklist_item_uc'),
    )

    def to_dict(self, include_checklist_item=False):
        data = {
            'id': self.id,
            'inspectionId': self.inspection_id,
            'checklistItemId': self.checklist_item_id,
            'result': self.result,
            'rating': self.rating,
            'notes': self.notes,
            'photoUrls': list(self.photo_urls or []),
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
        }
        if include_checklist_item:
            data['checklistItem'] = self.checklist_item.to_dict() if self.checklist_item else None
        return data

    def __repr__(self):
        return f'<InspectionResult {self.inspection_id}/{self.checklist_item_id} {self.result}>'

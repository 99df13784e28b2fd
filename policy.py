"""
Role-based authorization.

Role Hierarchy:
- ADMIN: Full access to everything
- MANAGER: View all inspections, approve or reject completed ones
- INSPECTOR: Start inspections, record results on their own inspections

Every check goes through Policy.evaluate(actor, action, resource) so the
rules live in one table instead of being scattered across routes.
"""
import logging
from collections import namedtuple

from errors import AuthenticationError, PermissionDenied
from models import UserRole

logger = logging.getLogger(__name__)


class Action:
    CREATE_INSPECTION = 'create_inspection'
    MODIFY_INSPECTION = 'modify_inspection'
    REVIEW_INSPECTION = 'review_inspection'
    VIEW_INSPECTION = 'view_inspection'
    VIEW_ALL_INSPECTIONS = 'view_all_inspections'
    MANAGE_HOTELS = 'manage_hotels'
    UPLOAD_PHOTO = 'upload_photo'


Decision = namedtuple('Decision', ['allowed', 'reason'])

ALLOW = Decision(True, None)


def deny(reason):
    return Decision(False, reason)


def _owns(actor, inspection):
    return inspection is not None and inspection.inspector_id == actor.id


def _can_modify(actor, inspection):
    if actor.role == UserRole.ADMIN:
        return ALLOW
    if actor.role == UserRole.INSPECTOR and _owns(actor, inspection):
        return ALLOW
    return deny('You do not have permission to modify this inspection')


def _can_view(actor, inspection):
    if actor.role in (UserRole.MANAGER, UserRole.ADMIN) or _owns(actor, inspection):
        return ALLOW
    return deny('You do not have permission to view this inspection')


def _roles(*roles, reason):
    def rule(actor, resource):
        return ALLOW if actor.role in roles else deny(reason)
    return rule


class Policy:
    """Evaluates (actor, action, resource) against the rule table"""

    rules = {
        Action.CREATE_INSPECTION: _roles(
            UserRole.INSPECTOR, UserRole.ADMIN,
            reason='Only inspectors and admins can create inspections'),
        Action.MODIFY_INSPECTION: _can_modify,
        Action.REVIEW_INSPECTION: _roles(
            UserRole.MANAGER, UserRole.ADMIN,
            reason='Only managers and admins can approve or reject inspections'),
        Action.VIEW_INSPECTION: _can_view,
        Action.VIEW_ALL_INSPECTIONS: _roles(
            UserRole.MANAGER, UserRole.ADMIN,
            reason='Only managers and admins can view all inspections'),
        Action.MANAGE_HOTELS: _roles(*UserRole.ALL, reason='Staff access required'),
        Action.UPLOAD_PHOTO: _roles(*UserRole.ALL, reason='Staff access required'),
    }

    def evaluate(self, actor, action, resource=None):
        if actor is None or not getattr(actor, 'is_authenticated', False):
            return deny('Authentication required')
        rule = self.rules.get(action)
        if rule is None:
            return deny(f'Unknown action: {action}')
        return rule(actor, resource)

    def allows(self, actor, action, resource=None):
        return self.evaluate(actor, action, resource).allowed

    def enforce(self, actor, action, resource=None):
        """Raise AuthenticationError/PermissionDenied unless the action is allowed"""
        if actor is None or not getattr(actor, 'is_authenticated', False):
            raise AuthenticationError()
        decision = self.evaluate(actor, action, resource)
        if not decision.allowed:
            logger.warning("Denied %s for user %s (%s): %s", action, actor.id, actor.role, decision.reason)
            raise PermissionDenied(decision.reason)
        return decision


policy = Policy()

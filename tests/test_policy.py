from types import SimpleNamespace

import pytest

from errors import AuthenticationError, PermissionDenied
from policy import Action, Policy


def actor(role, user_id='u1'):
    return SimpleNamespace(id=user_id, role=role, is_authenticated=True)


def inspection_owned_by(user_id):
    return SimpleNamespace(inspector_id=user_id)


@pytest.fixture
def policy():
    return Policy()


@pytest.mark.parametrize('role, allowed', [
    ('INSPECTOR', True),
    ('MANAGER', False),
    ('ADMIN', True),
])
def test_create_inspection(policy, role, allowed):
    assert policy.allows(actor(role), Action.CREATE_INSPECTION) is allowed


@pytest.mark.parametrize('role, owner, allowed', [
    ('INSPECTOR', 'u1', True),
    ('INSPECTOR', 'u2', False),
    ('MANAGER', 'u1', False),
    ('ADMIN', 'u2', True),
])
def test_modify_inspection(policy, role, owner, allowed):
    decision = policy.evaluate(actor(role), Action.MODIFY_INSPECTION, inspection_owned_by(owner))
    assert decision.allowed is allowed
    if not allowed:
        assert decision.reason


@pytest.mark.parametrize('role, allowed', [
    ('INSPECTOR', False),
    ('MANAGER', True),
    ('ADMIN', True),
])
def test_view_all_and_review(policy, role, allowed):
    assert policy.allows(actor(role), Action.VIEW_ALL_INSPECTIONS) is allowed
    assert policy.allows(actor(role), Action.REVIEW_INSPECTION) is allowed


def test_inspector_views_only_own(policy):
    assert policy.allows(actor('INSPECTOR'), Action.VIEW_INSPECTION, inspection_owned_by('u1'))
    assert not policy.allows(actor('INSPECTOR'), Action.VIEW_INSPECTION, inspection_owned_by('u2'))


def test_anonymous_is_denied(policy):
    anonymous = SimpleNamespace(id=None, role=None, is_authenticated=False)
    assert not policy.allows(anonymous, Action.MANAGE_HOTELS)
    assert not policy.allows(None, Action.MANAGE_HOTELS)


def test_unknown_action_is_denied(policy):
    assert not policy.allows(actor('ADMIN'), 'launch_rockets')


def test_enforce_raises(policy):
    with pytest.raises(AuthenticationError):
        policy.enforce(None, Action.CREATE_INSPECTION)
    with pytest.raises(PermissionDenied):
        policy.enforce(actor('MANAGER'), Action.CREATE_INSPECTION)
    assert policy.enforce(actor('ADMIN'), Action.CREATE_INSPECTION).allowed

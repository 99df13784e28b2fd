"""
Authentication helpers.

Identity comes from the external provider, which signs HS256 bearer tokens
with the shared JWT_SECRET_KEY. Browser sessions go through Flask-Login's
session cookie. With AUTH_DISABLED set, anonymous requests act as the
default inspector so the app can be exercised without the provider.
Signed-out page visits are sent to LOGIN_URL when one is configured.
"""
import logging
from datetime import timedelta
from urllib.parse import urlencode

import jwt
from flask import current_app, redirect, request
from flask_login import current_user

from errors import error_response, html_error, wants_html
from extensions import db, login_manager
from models import User, utcnow

logger = logging.getLogger(__name__)


def issue_token(user, expires_in=None):
    """Sign a bearer token for user (used by the issue-token CLI and tests)"""
    if expires_in is None:
        expires_in = timedelta(days=current_app.config['JWT_EXPIRES_DAYS'])
    payload = {
        'user_id': user.id,
        'email': user.email,
        'role': user.role,
        'exp': utcnow() + expires_in,
    }
    return jwt.encode(
        payload,
        current_app.config['JWT_SECRET_KEY'],
        algorithm=current_app.config['JWT_ALGORITHM'],
    )


def decode_token(token):
    """Return the token's user id, or None when the token is expired or invalid"""
    try:
        data = jwt.decode(
            token,
            current_app.config['JWT_SECRET_KEY'],
            algorithms=[current_app.config['JWT_ALGORITHM']],
        )
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired token")
        return None
    except jwt.InvalidTokenError as e:
        logger.info("Rejected invalid token: %s", e)
        return None
    return data.get('user_id')


def get_default_inspector():
    """The seeded inspector used while authentication is disabled"""
    email = current_app.config['DEFAULT_INSPECTOR_EMAIL']
    return User.query.filter_by(email=email).first()


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, user_id)


@login_manager.request_loader
def load_user_from_request(req):
    header = req.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        user_id = decode_token(header[7:].strip())
        return db.session.get(User, user_id) if user_id else None

    if current_app.config.get('AUTH_DISABLED'):
        return get_default_inspector()
    return None


@login_manager.unauthorized_handler
def unauthorized():
    logger.info("Unauthenticated request to %s", request.path)
    if not wants_html():
        return error_response('Authentication required', 401)

    login_url = current_app.config.get('LOGIN_URL')
    if login_url:
        return redirect(f"{login_url}?{urlencode({'next': request.url})}")
    return html_error('Please sign in to continue.', 401)


def current_actor():
    """The authenticated user, or None"""
    if current_user and current_user.is_authenticated:
        return current_user._get_current_object()
    return None

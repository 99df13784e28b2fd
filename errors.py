"""
Error taxonomy for the JSON API.

Services raise ApiError subclasses; route handlers are wrapped with
json_errors so every failure reaches the client as {"error": "..."}.
The server-rendered pages get the same errors as an HTML page.
"""
import logging
from functools import wraps

from flask import jsonify, render_template, request
from werkzeug.http import HTTP_STATUS_CODES

from extensions import db

logger = logging.getLogger(__name__)


class ApiError(Exception):
    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ApiError):
    status_code = 400


class AuthenticationError(ApiError):
    status_code = 401

    def __init__(self, message='Authentication required'):
        super().__init__(message)


class PermissionDenied(ApiError):
    status_code = 403


class NotFoundError(ApiError):
    status_code = 404


def error_response(message, status_code):
    return jsonify({'error': message}), status_code


def wants_html():
    """Server-rendered pages get HTML errors; everything else gets JSON"""
    return request.blueprint == 'pages'


def html_error(message, status_code):
    return render_template(
        'error.html',
        code=status_code,
        title=HTTP_STATUS_CODES.get(status_code, 'Error'),
        message=message,
    ), status_code


def json_errors(failure_message):
    """Decorator mapping ApiError to its status and anything else to a logged 500"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except ApiError as e:
                db.session.rollback()
                if e.status_code >= 500:
                    logger.error("%s: %s", f.__name__, e.message)
                return error_response(e.message, e.status_code)
            except Exception:
                db.session.rollback()
                logger.exception("%s failed", f.__name__)
                return error_response(failure_message, 500)
        return decorated_function
    return decorator

import logging
import os

import click
import pytz
from flask import Flask
from flask_cors import CORS
from sqlalchemy import event
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

import photo_storage
from config import Config
from errors import ApiError, error_response, html_error, wants_html
from extensions import db, login_manager, migrate

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_app(config_object=Config, **overrides):
    """Build the application; the database client and photo storage are bound here"""
    app = Flask(__name__, template_folder='templates')
    app.config.from_object(config_object)
    app.config.update(overrides)

    # Set up logging
    logging.basicConfig(level=app.config['LOG_LEVEL'])

    app.wsgi_app = ProxyFix(app.wsgi_app, x_proto=1, x_host=1)  # needed for url_for to generate with https

    # Enable CORS for the API clients
    CORS(app, resources={r"/api/*": {"origins": app.config['CORS_ORIGINS']}}, supports_credentials=True)

    # Initialize the extensions
    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)
    photo_storage.init_app(app)

    import auth  # noqa: F401  registers the Flask-Login loaders
    from api_routes import api_bp
    from routes import pages_bp

    app.register_blueprint(api_bp)
    app.register_blueprint(pages_bp)

    register_error_handlers(app)
    register_template_filters(app)
    register_commands(app)

    with app.app_context():
        if db.engine.dialect.name == 'sqlite':
            event.listen(db.engine, 'connect', _enable_sqlite_foreign_keys)

        if app.config['AUTO_CREATE_TABLES']:
            import models  # noqa: F401
            db.create_all()

        if app.config['SEED_ON_STARTUP']:
            from init_data import create_initial_data
            create_initial_data()

        logger.info("Database configured: %s", db.engine.url.render_as_string(hide_password=True))

    return app


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(e):
        if wants_html():
            return html_error(e.message, e.status_code)
        return error_response(e.message, e.status_code)

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        if e.code == 413:
            return error_response('File too large', 413)
        if wants_html():
            return html_error(e.description, e.code)
        return error_response(e.name, e.code)


def register_template_filters(app):
    @app.template_filter('to_local_time')
    def to_local_time(dt):
        if not dt:
            return dt
        utc = pytz.utc
        local_tz = pytz.timezone(app.config['DISPLAY_TIMEZONE'])
        if dt.tzinfo is None:
            dt = utc.localize(dt)
        return dt.astimezone(local_tz)

    @app.template_filter('format_datetime')
    def format_datetime(dt, fmt='%d %b %Y %H:%M'):
        return dt.strftime(fmt) if dt else ''


def register_commands(app):
    @app.cli.command('seed')
    def seed_command():
        """Create tables and load the sample users, hotels and checklist."""
        from init_data import create_initial_data
        db.create_all()
        create_initial_data()
        click.echo('Database seeded.')

    @app.cli.command('issue-token')
    @click.argument('email')
    def issue_token_command(email):
        """Print a bearer token for the user with EMAIL."""
        from auth import issue_token
        from models import User

        user = User.query.filter_by(email=email).first()
        if user is None:
            raise click.ClickException(f'No user with email {email}')
        click.echo(issue_token(user))


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    create_app().run(host="0.0.0.0", port=port, debug=False)

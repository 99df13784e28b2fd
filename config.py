import os
import tempfile


def _env_flag(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _database_url():
    database_url = os.environ.get("DATABASE_URL", "sqlite:///lodgeiq.db")

    # Fix for Heroku/Render postgres:// URLs (should be postgresql://)
    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)
    return database_url


class Config:
    SECRET_KEY = os.environ.get("SESSION_SECRET", "lodgeiq_dev_secret_key")

    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_recycle": 300,
        "pool_pre_ping": True,
    } if SQLALCHEMY_DATABASE_URI.startswith("postgresql") else {}

    AUTO_CREATE_TABLES = _env_flag("AUTO_CREATE_TABLES", True)
    SEED_ON_STARTUP = _env_flag("SEED_ON_STARTUP", False)

    # Tokens are minted by the identity provider with the shared secret
    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "lodgeiq-jwt-dev-secret")
    JWT_ALGORITHM = "HS256"
    JWT_EXPIRES_DAYS = int(os.environ.get("JWT_EXPIRES_DAYS", 7))

    # Development mode: anonymous requests act as the default inspector
    AUTH_DISABLED = _env_flag("AUTH_DISABLED", False)
    DEFAULT_INSPECTOR_EMAIL = os.environ.get("DEFAULT_INSPECTOR_EMAIL", "john.doe@lodgeiq.com")
    # Identity provider sign-in page; signed-out page visits are redirected there
    LOGIN_URL = os.environ.get("LOGIN_URL")

    PHOTO_STORAGE_BACKEND = os.environ.get("PHOTO_STORAGE_BACKEND", "local")
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", os.path.join(os.getcwd(), "uploads"))
    S3_BUCKET = os.environ.get("S3_BUCKET")
    S3_REGION = os.environ.get("S3_REGION")
    S3_PUBLIC_BASE_URL = os.environ.get("S3_PUBLIC_BASE_URL")
    AWS_ACCESS_KEY_ID = os.environ.get("AWS_ACCESS_KEY_ID")
    AWS_SECRET_ACCESS_KEY = os.environ.get("AWS_SECRET_ACCESS_KEY")
    MAX_PHOTO_BYTES = int(os.environ.get("MAX_PHOTO_BYTES", int(4.5 * 1024 * 1024)))
    ALLOWED_PHOTO_TYPES = ("image/jpeg", "image/png", "image/webp")

    # Leave headroom over MAX_PHOTO_BYTES so oversized photos get a JSON 400, not a 413
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024

    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get("CORS_ORIGINS", "http://localhost:*,http://127.0.0.1:*").split(",")
        if origin.strip()
    ]

    DISPLAY_TIMEZONE = os.environ.get("DISPLAY_TIMEZONE", "Europe/Paris")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "testing-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    AUTO_CREATE_TABLES = True
    SEED_ON_STARTUP = False
    JWT_SECRET_KEY = "testing-jwt-secret"
    AUTH_DISABLED = False
    LOGIN_URL = None
    PHOTO_STORAGE_BACKEND = "local"
    UPLOAD_FOLDER = os.path.join(tempfile.gettempdir(), "lodgeiq-test-uploads")
    LOG_LEVEL = "DEBUG"

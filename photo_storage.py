"""
Photo storage for inspection results.

Photos are validated, stored under
inspections/<inspection_id>/<checklist_item_id>/<timestamp>-<name>-<suffix><ext>
and the public URL is handed back to the client, which appends it to the
result's photo list. Nothing links the stored blob to the result row.
"""
import logging
import os
import secrets
import time

from flask import current_app, url_for
from werkzeug.utils import secure_filename

from errors import ValidationError
from inspection_service import authorize_photo_upload

logger = logging.getLogger(__name__)


def file_size(file_storage):
    stream = file_storage.stream
    position = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(position)
    return size


def validate_photo(file_storage, allowed_types, max_bytes):
    if file_storage is None or not file_storage.filename:
        raise ValidationError('No file provided')

    if file_storage.mimetype not in allowed_types:
        raise ValidationError('Invalid file type. Only JPEG, PNG, and WebP are supported.')

    if file_size(file_storage) > max_bytes:
        raise ValidationError(f'File too large. Maximum size is {max_bytes / (1024 * 1024):g}MB.')


def build_photo_key(inspection_id, checklist_item_id, filename, now=None):
    """Storage key with a millisecond timestamp and a random suffix to avoid collisions"""
    timestamp = int((now if now is not None else time.time()) * 1000)
    safe_name = secure_filename(filename) or 'photo'
    stem, ext = os.path.splitext(safe_name)
    return '/'.join([
        'inspections',
        secure_filename(inspection_id) or 'unknown',
        secure_filename(checklist_item_id) or 'unknown',
        f'{timestamp}-{stem}-{secrets.token_hex(8)}{ext.lower()}',
    ])


class PhotoStorage:
    """Blob backend interface"""

    def save(self, key, file_storage, content_type):
        raise NotImplementedError


class LocalPhotoStorage(PhotoStorage):
    """Stores photos on disk; served back through the uploads endpoint"""

    def __init__(self, base_path):
        self.base_path = os.path.abspath(base_path)
        os.makedirs(self.base_path, exist_ok=True)
        logger.info("Local photo storage initialized: %s", self.base_path)

    def path_for(self, key):
        return os.path.join(self.base_path, *key.split('/'))

    def save(self, key, file_storage, content_type):
        path = self.path_for(key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        file_storage.stream.seek(0)
        file_storage.save(path)
        return url_for('api.serve_upload', key=key, _external=True)


class S3PhotoStorage(PhotoStorage):
    """Stores photos in an S3 bucket with public-read access"""

    def __init__(self, bucket, region=None, access_key=None, secret_key=None, public_base_url=None, client=None):
        if not bucket:
            raise ValueError('S3_BUCKET must be set for the s3 photo storage backend')
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip('/') if public_base_url else None
        if client is None:
            import boto3
            client = boto3.client(
                's3',
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=region,
            )
        self.client = client

    def save(self, key, file_storage, content_type):
        file_storage.stream.seek(0)
        self.client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=file_storage.stream.read(),
            ContentType=content_type,
            ACL='public-read',
        )
        if self.public_base_url:
            return f'{self.public_base_url}/{key}'
        return f'https://{self.bucket}.s3.amazonaws.com/{key}'


def create_storage(config):
    backend = config.get('PHOTO_STORAGE_BACKEND', 'local')
    if backend == 'local':
        return LocalPhotoStorage(config['UPLOAD_FOLDER'])
    if backend == 's3':
        return S3PhotoStorage(
            bucket=config.get('S3_BUCKET'),
            region=config.get('S3_REGION'),
            access_key=config.get('AWS_ACCESS_KEY_ID'),
            secret_key=config.get('AWS_SECRET_ACCESS_KEY'),
            public_base_url=config.get('S3_PUBLIC_BASE_URL'),
        )
    raise ValueError(f'Unknown photo storage backend: {backend}')


def init_app(app):
    app.extensions['photo_storage'] = create_storage(app.config)


def get_storage():
    return current_app.extensions['photo_storage']


def store_photo(file_storage, inspection_id, checklist_item_id, actor):
    """Validate and store one uploaded photo, returning its public URL"""
    if file_storage is None or not file_storage.filename:
        raise ValidationError('No file provided')
    if not inspection_id or not checklist_item_id:
        raise ValidationError('Missing inspectionId or checklistItemId')

    authorize_photo_upload(inspection_id, checklist_item_id, actor)

    config = current_app.config
    validate_photo(file_storage, config['ALLOWED_PHOTO_TYPES'], config['MAX_PHOTO_BYTES'])

    key = build_photo_key(inspection_id, checklist_item_id, file_storage.filename)
    url = get_storage().save(key, file_storage, file_storage.mimetype)
    logger.info("Stored photo %s for inspection %s", key, inspection_id)
    return url

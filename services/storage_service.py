"""
Image storage for the post editor.

Images uploaded from the editor (featured images and inline images) are
validated and stored under a random name, and the public URL is returned for
use in the post. Two backends are supported, selected by ``STORAGE_BACKEND``:

- ``s3``: objects in ``STORAGE_BUCKET`` uploaded with boto3, served from
  ``STORAGE_PUBLIC_URL`` or the bucket's default S3 URL
- ``local``: files in ``UPLOAD_FOLDER`` served by the application at
  ``/uploads/<name>``
"""

import logging
import os
import uuid
from typing import Any, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from flask import current_app, url_for
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from core.exceptions import StorageError, ValidationError
from extensions import metrics

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = 'png'


class StorageService:
    """Service for validating and storing uploaded images."""

    @staticmethod
    def validate_image(file: Optional[FileStorage]) -> int:
        """
        Check that ``file`` is an image within the size limit.

        Returns:
            int: Size of the upload in bytes

        Raises:
            ValidationError: If the file is missing, not an image or too large
        """
        if file is None or not file.filename:
            raise ValidationError("No file uploaded")

        if not (file.mimetype or '').startswith('image/'):
            raise ValidationError("Please upload an image file")

        file.stream.seek(0, os.SEEK_END)
        size = file.stream.tell()
        file.stream.seek(0)

        max_size = current_app.config.get('MAX_IMAGE_SIZE', 5 * 1024 * 1024)
        if size > max_size:
            raise ValidationError(f"Image size should be less than {max_size // (1024 * 1024)}MB")
        return size

    @staticmethod
    def generate_filename(original_filename: str) -> str:
        """Random object name keeping the original extension."""
        secure_name = secure_filename(original_filename or '')
        if '.' in secure_name:
            ext = secure_name.rsplit('.', 1)[1].lower()
        else:
            ext = DEFAULT_EXTENSION
        return f"{uuid.uuid4().hex}.{ext}"

    @staticmethod
    def upload_image(file: Optional[FileStorage]) -> str:
        """
        Validate and store an uploaded image.

        Returns:
            str: Public URL of the stored image

        Raises:
            ValidationError: If the upload is rejected
            StorageError: If the backend could not store the file
        """
        size = StorageService.validate_image(file)
        filename = StorageService.generate_filename(file.filename)
        backend = (current_app.config.get('STORAGE_BACKEND') or 'local').lower()

        if backend == 's3':
            url = StorageService._store_s3(file, filename)
        elif backend == 'local':
            url = StorageService._store_local(file, filename)
        else:
            raise StorageError(f"Unknown storage backend: {backend}")

        metrics.increment('storage.image_uploaded', labels={'backend': backend})
        current_app.logger.info("Stored image %s (%s bytes) in %s storage", filename, size, backend)
        return url

    @staticmethod
    def _s3_client() -> Any:
        config = current_app.config
        session = boto3.Session(
            aws_access_key_id=config.get('AWS_ACCESS_KEY_ID'),
            aws_secret_access_key=config.get('AWS_SECRET_ACCESS_KEY'),
            region_name=config.get('AWS_REGION')
        )
        return session.client('s3')

    @staticmethod
    def _store_s3(file: FileStorage, filename: str) -> str:
        config = current_app.config
        bucket = config['STORAGE_BUCKET']
        try:
            StorageService._s3_client().upload_fileobj(
                file.stream,
                bucket,
                filename,
                ExtraArgs={'ContentType': file.mimetype, 'CacheControl': 'max-age=3600'}
            )
        except (BotoCoreError, ClientError) as e:
            current_app.logger.error("Failed to upload %s to bucket %s: %s", filename, bucket, str(e))
            metrics.increment('storage.upload_failed', labels={'backend': 's3'})
            raise StorageError("Failed to upload image") from e

        public_url = config.get('STORAGE_PUBLIC_URL')
        if public_url:
            return f"{public_url.rstrip('/')}/{filename}"
        return f"https://{bucket}.s3.{config.get('AWS_REGION')}.amazonaws.com/{filename}"

    @staticmethod
    def _store_local(file: FileStorage, filename: str) -> str:
        folder = current_app.config['UPLOAD_FOLDER']
        try:
            os.makedirs(folder, exist_ok=True)
            file.save(os.path.join(folder, filename))
        except OSError as e:
            current_app.logger.error("Failed to save %s to %s: %s", filename, folder, str(e))
            metrics.increment('storage.upload_failed', labels={'backend': 'local'})
            raise StorageError("Failed to upload image") from e

        return url_for('main.uploaded_file', filename=filename, _external=False)

import os
import uuid
import logging
import traceback
from dataclasses import dataclass
from typing import Optional

import boto3

from .config import Settings

logger = logging.getLogger(__name__)

LOCAL_MEDIA_ROUTE = "/uploads"


@dataclass
class StoredFile:
    key: str
    url: str


class StorageError(Exception):
    pass


class R2Storage:
    """Handles file storage using Cloudflare R2, saving locally when R2 is not configured"""

    def __init__(self, settings: Settings, client=None):
        """Initialize the R2 client with settings from config"""
        self.client = client
        self.bucket = settings.R2_BUCKET_NAME
        self.public_url = settings.R2_PUBLIC_URL.rstrip("/")
        self.base_url = settings.BASE_URL.rstrip("/")
        self.upload_directory = settings.UPLOAD_DIRECTORY

        if self.client is not None:
            return

        # Enable R2 client initialization if all required settings are present
        if all([settings.R2_ENDPOINT, settings.R2_ACCESS_KEY_ID, settings.R2_SECRET_ACCESS_KEY]):
            try:
                logger.info(f"Creating S3 client for R2 storage (bucket: {self.bucket})")
                self.client = boto3.client(
                    's3',
                    endpoint_url=settings.R2_ENDPOINT,
                    aws_access_key_id=settings.R2_ACCESS_KEY_ID,
                    aws_secret_access_key=settings.R2_SECRET_ACCESS_KEY
                )
                logger.info("R2Storage S3 client initialized successfully")
            except Exception as e:
                logger.error(f"Failed to create S3 client: {str(e)}")
                logger.error(traceback.format_exc())
                logger.warning("R2 storage will not be available due to initialization failure")
        else:
            missing = []
            if not settings.R2_ENDPOINT:
                missing.append("R2_ENDPOINT")
            if not settings.R2_ACCESS_KEY_ID:
                missing.append("R2_ACCESS_KEY_ID")
            if not settings.R2_SECRET_ACCESS_KEY:
                missing.append("R2_SECRET_ACCESS_KEY")
            logger.warning(f"R2 storage not configured (missing: {', '.join(missing)}) - using local directory '{self.upload_directory}'")

    @staticmethod
    def unique_filename(original_name: Optional[str]) -> str:
        file_extension = os.path.splitext(original_name or "")[1].lower()
        return f"{uuid.uuid4().hex}{file_extension}"

    def save(self, content: bytes, filename: str, content_type: Optional[str] = None, prefix: str = "media") -> StoredFile:
        """Store bytes under prefix/filename and return the key and public URL"""
        key = f"{prefix}/{filename}"

        if not self.client:
            local_path = os.path.join(self.upload_directory, prefix, filename)
            try:
                os.makedirs(os.path.dirname(local_path), exist_ok=True)
                with open(local_path, "wb") as out_file:
                    out_file.write(content)
            except OSError as e:
                logger.error(f"[UPLOAD] Failed to save file locally: {str(e)}")
                raise StorageError(f"Failed to save file locally: {e}") from e
            logger.info(f"[UPLOAD] Saved file locally at {local_path}")
            return StoredFile(key=key, url=f"{self.base_url}{LOCAL_MEDIA_ROUTE}/{key}")

        logger.info(f"[UPLOAD] Uploading '{filename}' to R2 bucket '{self.bucket}' with key '{key}'")
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=content,
                ContentType=content_type or 'application/octet-stream'
            )
        except Exception as e:
            logger.error(f"[UPLOAD] Failed to upload to R2: {str(e)}")
            logger.error(traceback.format_exc())
            raise StorageError(f"Failed to upload media: {e}") from e

        # Prefer the public bucket URL, falling back to the API media route
        if self.public_url:
            return StoredFile(key=key, url=f"{self.public_url}/{key}")
        return StoredFile(key=key, url=f"{self.base_url}{LOCAL_MEDIA_ROUTE}/{key}")

    def delete(self, key: str) -> bool:
        """Delete a stored object by key"""
        if not key:
            logger.error("No key provided for file deletion")
            return False

        if not self.client:
            local_path = os.path.join(self.upload_directory, key)
            try:
                os.remove(local_path)
                logger.info(f"Deleted local file {local_path}")
                return True
            except FileNotFoundError:
                logger.warning(f"Local file {local_path} already gone")
                return False
            except OSError as e:
                logger.error(f"Failed to delete local file {local_path}: {e}")
                return False

        try:
            logger.info(f"Deleting file with key '{key}' from bucket '{self.bucket}'")
            self.client.delete_object(Bucket=self.bucket, Key=key)
            return True
        except Exception as e:
            logger.error(f"Failed to delete from R2: {str(e)}")
            logger.error(traceback.format_exc())
            return False

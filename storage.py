"""
storage.py — Blob storage for uploaded file bytes.

Two backends share one contract: local disk (default) and MinIO/S3 when
USE_MINIO=true. Blobs are addressed by the key returned from put(); the
key is stored on the FileRecord as blob_path and never shown publicly.
"""

import os
import logging
from typing import BinaryIO, Iterator, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from botocore.config import Config

import config
from errors import NotFound, StorageError

logger = logging.getLogger(__name__)

_MISSING_CODES = ("NoSuchKey", "404", "NotFound")


def iter_chunks(stream: BinaryIO, chunk_size: int = config.DOWNLOAD_CHUNK_SIZE) -> Iterator[bytes]:
    """Yield a binary stream in fixed-size pieces, closing it when done."""
    try:
        while True:
            chunk = stream.read(chunk_size)
            if not chunk:
                break
            yield chunk
    finally:
        stream.close()


class StorageBackend:
    name = "abstract"

    def put(self, data: bytes, suggested_name: str, content_type: str = "application/octet-stream") -> str:
        raise NotImplementedError

    def open(self, blob_path: str) -> BinaryIO:
        raise NotImplementedError

    def exists(self, blob_path: str) -> bool:
        raise NotImplementedError

    def delete(self, blob_path: str) -> bool:
        raise NotImplementedError

    def get_health(self) -> dict:
        return {"status": "healthy", "backend": self.name}


# ─── LOCAL DISK ─────────────────────────────────────────────

class LocalDiskStorage(StorageBackend):
    name = "LocalDisk"

    def __init__(self, root: str = config.UPLOAD_DIR):
        self.root = os.path.abspath(root)
        os.makedirs(self.root, exist_ok=True)

    def _path(self, blob_path: str) -> Optional[str]:
        path = os.path.abspath(os.path.join(self.root, blob_path))
        if os.path.dirname(path) != self.root:
            return None
        return path

    def put(self, data: bytes, suggested_name: str, content_type: str = "application/octet-stream") -> str:
        path = self._path(suggested_name)
        if path is None:
            raise StorageError(f"Refusing to store blob outside upload dir: {suggested_name!r}")
        try:
            # "x" refuses to overwrite an existing blob
            with open(path, "xb") as f:
                f.write(data)
        except OSError as e:
            logger.error(f"LocalDisk PUT failed for {suggested_name}: {e}")
            raise StorageError("Failed to store file bytes") from e
        return suggested_name

    def open(self, blob_path: str) -> BinaryIO:
        path = self._path(blob_path)
        if path is None:
            raise NotFound("File not found on server")
        try:
            return open(path, "rb")
        except FileNotFoundError as e:
            raise NotFound("File not found on server") from e
        except OSError as e:
            logger.error(f"LocalDisk GET failed for {blob_path}: {e}")
            raise StorageError("Failed to read file bytes") from e

    def exists(self, blob_path: str) -> bool:
        path = self._path(blob_path)
        return path is not None and os.path.isfile(path)

    def delete(self, blob_path: str) -> bool:
        path = self._path(blob_path)
        if path is None or not os.path.exists(path):
            logger.warning(f"LocalDisk DELETE: blob already gone: {blob_path}")
            return False
        try:
            os.remove(path)
        except FileNotFoundError:
            logger.warning(f"LocalDisk DELETE: blob vanished during delete: {blob_path}")
            return False
        except OSError as e:
            logger.error(f"LocalDisk DELETE failed for {blob_path}: {e}")
            raise StorageError("Failed to delete file bytes") from e
        return True

    def get_health(self) -> dict:
        writable = os.access(self.root, os.W_OK)
        return {"status": "healthy" if writable else "degraded", "backend": self.name}


# ─── MINIO / S3 ─────────────────────────────────────────────

def _get_s3_client():
    return boto3.client(
        "s3",
        endpoint_url=config.MINIO_ENDPOINT,
        aws_access_key_id=config.MINIO_ACCESS_KEY,
        aws_secret_access_key=config.MINIO_SECRET_KEY,
        config=Config(
            signature_version="s3v4",
            connect_timeout=5,
            read_timeout=30,
            retries={"max_attempts": 3, "mode": "standard"},
        ),
        region_name="us-east-1",
    )


def _error_code(e: ClientError) -> str:
    return str(e.response.get("Error", {}).get("Code", ""))


class MinioStorage(StorageBackend):
    name = "MinIO"

    def __init__(self, s3_client=None, bucket: str = config.MINIO_BUCKET):
        self._s3 = s3_client or _get_s3_client()
        self.bucket = bucket
        self._ensure_bucket()

    def _ensure_bucket(self):
        try:
            self._s3.head_bucket(Bucket=self.bucket)
        except ClientError as e:
            if _error_code(e) in _MISSING_CODES:
                self._s3.create_bucket(Bucket=self.bucket)
                logger.info(f"Created MinIO bucket: {self.bucket}")
            else:
                raise

    def put(self, data: bytes, suggested_name: str, content_type: str = "application/octet-stream") -> str:
        try:
            self._s3.put_object(
                Bucket=self.bucket,
                Key=suggested_name,
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"MinIO PUT failed for {suggested_name}: {e}")
            raise StorageError("Failed to store file bytes") from e
        return suggested_name

    def open(self, blob_path: str) -> BinaryIO:
        try:
            response = self._s3.get_object(Bucket=self.bucket, Key=blob_path)
        except ClientError as e:
            if _error_code(e) in _MISSING_CODES:
                raise NotFound("File not found on server") from e
            logger.error(f"MinIO GET failed for {blob_path}: {e}")
            raise StorageError("Failed to read file bytes") from e
        except BotoCoreError as e:
            logger.error(f"MinIO GET error for {blob_path}: {e}")
            raise StorageError("Failed to read file bytes") from e
        return response["Body"]

    def exists(self, blob_path: str) -> bool:
        try:
            self._s3.head_object(Bucket=self.bucket, Key=blob_path)
            return True
        except ClientError as e:
            if _error_code(e) in _MISSING_CODES:
                return False
            logger.error(f"MinIO HEAD failed for {blob_path}: {e}")
            raise StorageError("Failed to check file bytes") from e
        except BotoCoreError as e:
            logger.error(f"MinIO HEAD error for {blob_path}: {e}")
            raise StorageError("Failed to check file bytes") from e

    def delete(self, blob_path: str) -> bool:
        if not self.exists(blob_path):
            logger.warning(f"MinIO DELETE: blob already gone: {blob_path}")
            return False
        try:
            self._s3.delete_object(Bucket=self.bucket, Key=blob_path)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"MinIO DELETE failed for {blob_path}: {e}")
            raise StorageError("Failed to delete file bytes") from e
        return True

    def get_health(self) -> dict:
        try:
            self._s3.head_bucket(Bucket=self.bucket)
            return {"status": "healthy", "backend": self.name, "endpoint": config.MINIO_ENDPOINT}
        except (ClientError, BotoCoreError) as e:
            return {"status": "degraded", "backend": self.name, "error": str(e)}


_storage: Optional[StorageBackend] = None


def get_storage() -> StorageBackend:
    """Process-wide backend, built on first use from config."""
    global _storage
    if _storage is None:
        if config.USE_MINIO:
            _storage = MinioStorage()
            logger.info(f"✅ MinIO storage: {config.MINIO_ENDPOINT} / bucket={config.MINIO_BUCKET}")
        else:
            _storage = LocalDiskStorage()
            logger.info(f"✅ Local disk storage: {_storage.root}")
    return _storage

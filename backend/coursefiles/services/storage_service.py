"""
Object store for uploaded files.

Talks S3 through boto3, so it works against AWS and S3-compatible servers
such as MinIO (set ``S3_ENDPOINT_URL``). The boto3 client is blocking; every
call runs in the threadpool so request handlers stay async.
"""
from datetime import timedelta
from typing import Any, BinaryIO, Optional
from urllib.parse import quote
import logging
import uuid

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError
from fastapi.concurrency import run_in_threadpool

from coursefiles.core.config import Settings
from coursefiles.core.errors import StorageFailureError
from coursefiles.services.filename import split_extension

logger = logging.getLogger(__name__)

MISSING_OBJECT_CODES = {"404", "NoSuchKey", "NotFound"}
MISSING_BUCKET_CODES = {"404", "NoSuchBucket", "NotFound"}


class SigningUnavailableError(Exception):
    """The store client has no credentials to sign URLs with."""


def build_storage_path(university_id: int, course_id: int, module_id: int, filename: str) -> str:
    """Tenant-scoped object key; only the extension of ``filename`` is kept."""
    _, extension = split_extension(filename)
    unique_name = f"{uuid.uuid4()}{extension}"
    return f"universities/{university_id}/courses/{course_id}/modules/{module_id}/{unique_name}"


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


class S3ObjectStore:
    def __init__(self, settings: Settings, client: Optional[Any] = None):
        self.bucket = settings.S3_BUCKET
        self.endpoint_url = settings.S3_ENDPOINT_URL
        self.region = settings.S3_REGION
        self._bucket_checked = False
        
        if client is None:
            client = boto3.client(
                "s3",
                endpoint_url=settings.S3_ENDPOINT_URL,
                region_name=settings.S3_REGION,
                aws_access_key_id=settings.S3_ACCESS_KEY_ID,
                aws_secret_access_key=settings.S3_SECRET_ACCESS_KEY,
                config=Config(
                    signature_version="s3v4",
                    connect_timeout=10,
                    read_timeout=settings.STORAGE_TIMEOUT_SECONDS,
                    retries={"max_attempts": 3, "mode": "standard"},
                    s3={"addressing_style": "path" if settings.S3_ENDPOINT_URL else "auto"},
                ),
            )
        self.client = client
        logger.info(f"Object store configured: endpoint={self.endpoint_url or 'aws'} bucket={self.bucket}")
    
    def object_url(self, path: str) -> str:
        key = quote(path)
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"
    
    async def ensure_bucket(self) -> None:
        if self._bucket_checked:
            return
        try:
            await run_in_threadpool(self.client.head_bucket, Bucket=self.bucket)
        except ClientError as e:
            if _error_code(e) not in MISSING_BUCKET_CODES:
                logger.error(f"Failed to check bucket {self.bucket}: {e}")
                raise StorageFailureError("Failed to upload file") from e
            await self._create_bucket()
        except BotoCoreError as e:
            logger.error(f"Failed to check bucket {self.bucket}: {e}")
            raise StorageFailureError("Failed to upload file") from e
        self._bucket_checked = True
    
    async def _create_bucket(self) -> None:
        kwargs: dict[str, Any] = {"Bucket": self.bucket}
        if self.region and self.region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
        try:
            await run_in_threadpool(self.client.create_bucket, **kwargs)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to create bucket {self.bucket}: {e}")
            raise StorageFailureError("Failed to upload file") from e
        logger.info(f"Created bucket: {self.bucket}")
    
    async def put(
        self,
        path: str,
        stream: BinaryIO,
        content_type: str = "application/octet-stream",
    ) -> str:
        await self.ensure_bucket()
        try:
            await run_in_threadpool(
                self.client.upload_fileobj,
                stream,
                self.bucket,
                path,
                ExtraArgs={"ContentType": content_type or "application/octet-stream"},
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to upload object {path}: {e}")
            raise StorageFailureError("Failed to upload file") from e
        return self.object_url(path)
    
    async def delete(self, path: str) -> bool:
        """Remove an object; False when it was already absent."""
        try:
            await run_in_threadpool(self.client.head_object, Bucket=self.bucket, Key=path)
        except ClientError as e:
            if _error_code(e) in MISSING_OBJECT_CODES:
                logger.warning(f"Object not found for deletion: {path}")
                return False
            logger.error(f"Failed to check object {path}: {e}")
            raise StorageFailureError("Failed to delete file") from e
        except BotoCoreError as e:
            logger.error(f"Failed to check object {path}: {e}")
            raise StorageFailureError("Failed to delete file") from e
        
        try:
            await run_in_threadpool(self.client.delete_object, Bucket=self.bucket, Key=path)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to delete object {path}: {e}")
            raise StorageFailureError("Failed to delete file") from e
        return True
    
    async def signed_read_url(self, path: str, ttl: timedelta = timedelta(hours=1)) -> str:
        try:
            return await run_in_threadpool(
                self.client.generate_presigned_url,
                "get_object",
                Params={"Bucket": self.bucket, "Key": path},
                ExpiresIn=int(ttl.total_seconds()),
            )
        except NoCredentialsError as e:
            raise SigningUnavailableError("Object store client has no signing credentials") from e
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to generate download URL for {path}: {e}")
            raise StorageFailureError("Failed to generate download URL") from e
    
    async def get(self, path: str) -> Optional[bytes]:
        try:
            response = await run_in_threadpool(self.client.get_object, Bucket=self.bucket, Key=path)
            return await run_in_threadpool(response["Body"].read)
        except ClientError as e:
            if _error_code(e) in MISSING_OBJECT_CODES:
                logger.warning(f"Object not found: {path}")
                return None
            logger.error(f"Failed to get object {path}: {e}")
            raise StorageFailureError("Failed to read file") from e
        except BotoCoreError as e:
            logger.error(f"Failed to get object {path}: {e}")
            raise StorageFailureError("Failed to read file") from e

"""
S3-backed storage for rendered images.

Keys are laid out as <base_directory>/<name> in a single bucket; credentials,
region and bucket come from a StorageConfig built once at startup.
"""

import posixpath
from typing import Optional

import boto3
from botocore.client import BaseClient
from botocore.exceptions import BotoCoreError, ClientError

from imagestore.storage import ImageStorage, ObjectExistsError, StorageBackendError
from webshot.core import StorageConfig, setup_logger

logger = setup_logger("webshot.storage")

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}
_PRECONDITION_CODES = {"412", "PreconditionFailed", "ConditionalRequestConflict"}


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


class S3ImageStorage(ImageStorage):
    """Wrapper around boto3 for storing and signing rendered images."""

    def __init__(self, config: StorageConfig, client: Optional[BaseClient] = None):
        if not config.bucket:
            raise ValueError("S3 bucket is not configured (AWS_S3_BUCKET)")
        self._config = config
        self._client: BaseClient = client or boto3.client(
            "s3",
            region_name=config.region,
            endpoint_url=config.endpoint_url,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
        )

    @property
    def bucket(self) -> str:
        return self._config.bucket

    def key_for(self, name: str) -> str:
        if not self._config.base_directory:
            return posixpath.normpath(name)
        return posixpath.normpath(posixpath.join(self._config.base_directory, name))

    def exists(self, name: str) -> bool:
        key = self.key_for(name)
        try:
            self._client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return False
            logger.error(f"[S3] head_object failed for {key}: {e}")
            raise StorageBackendError(f"Unable to check {key}") from e
        except BotoCoreError as e:
            logger.error(f"[S3] head_object failed for {key}: {e}")
            raise StorageBackendError(f"Unable to check {key}") from e
        return True

    def put(self, name, body, *, content_type, cache_control=None, expires=None):
        key = self.key_for(name)
        params = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": body,
            "ContentType": content_type,
        }
        if cache_control:
            params["CacheControl"] = cache_control
        if expires:
            params["Expires"] = expires
        if self._config.conditional_put:
            # Create-if-absent; S3 answers 412 when the key already exists
            params["IfNoneMatch"] = "*"

        try:
            self._client.put_object(**params)
        except ClientError as e:
            if self._config.conditional_put and _error_code(e) in _PRECONDITION_CODES:
                raise ObjectExistsError(f"{key} already exists") from e
            logger.error(f"[S3] put_object failed for {key}: {e}")
            raise StorageBackendError(f"Unable to upload {key}") from e
        except BotoCoreError as e:
            logger.error(f"[S3] put_object failed for {key}: {e}")
            raise StorageBackendError(f"Unable to upload {key}") from e

        logger.info(f"[S3] Uploaded s3://{self.bucket}/{key} ({len(body)} bytes)")

    def signed_read_url(self, name: str) -> str:
        key = self.key_for(name)
        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=self._config.signed_url_ttl,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"[S3] Unable to sign {key}: {e}")
            raise StorageBackendError(f"Unable to sign {key}") from e

import logging
import threading
import time
from functools import lru_cache
from urllib.parse import quote

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from sitegen.agent.artifacts import UploadResult
from sitegen.core.config import settings

logger = logging.getLogger(__name__)

HTML_CONTENT_TYPE = "text/html; charset=utf-8"
_DELETE_BATCH_SIZE = 1000


class StorageError(RuntimeError):
    """Raised when an object storage read/write fails."""


def _client_error_message(exc: Exception) -> str:
    if isinstance(exc, ClientError):
        error = exc.response.get("Error") or {}
        return error.get("Message") or error.get("Code") or str(exc)
    return str(exc)


def _is_precondition_failure(exc: Exception) -> bool:
    if not isinstance(exc, ClientError):
        return False
    code = str((exc.response.get("Error") or {}).get("Code") or "")
    status = (exc.response.get("ResponseMetadata") or {}).get("HTTPStatusCode")
    return code in {"PreconditionFailed", "ConditionalRequestConflict"} or status in {409, 412}


def build_s3_client():
    return boto3.client(
        "s3",
        endpoint_url=settings.STORAGE_ENDPOINT_URL or None,
        region_name=settings.STORAGE_REGION,
        aws_access_key_id=settings.STORAGE_ACCESS_KEY_ID or None,
        aws_secret_access_key=settings.STORAGE_SECRET_ACCESS_KEY or None,
    )


class SiteStorage:
    """
    Object storage for generated websites.

    Site uploads go to ``{slug}/{timestamp_ms}/index.html`` in the websites bucket and
    are conditional creates, so an existing object is never replaced. The admin helpers
    take an explicit bucket and overwrite by default.
    """

    def __init__(self, client=None, *, bucket: str | None = None):
        self._client = client
        self.bucket = bucket or settings.STORAGE_BUCKET
        self._last_timestamp_ms = 0
        self._timestamp_lock = threading.Lock()

    @property
    def client(self):
        if self._client is None:
            self._client = build_s3_client()
        return self._client

    def _next_timestamp_ms(self) -> int:
        # Strictly increasing, so back-to-back uploads never share a path.
        with self._timestamp_lock:
            now = int(time.time() * 1000)
            if now <= self._last_timestamp_ms:
                now = self._last_timestamp_ms + 1
            self._last_timestamp_ms = now
            return now

    def public_url(self, path: str, bucket: str | None = None) -> str:
        return f"{settings.public_storage_base_url(bucket or self.bucket)}/{quote(path)}"

    def bucket_exists(self, bucket: str | None = None) -> bool:
        bucket_name = bucket or self.bucket
        try:
            self.client.head_bucket(Bucket=bucket_name)
        except (BotoCoreError, ClientError) as exc:
            logger.warning("Bucket %s is not accessible: %s", bucket_name, _client_error_message(exc))
            return False
        return True

    def _put(self, *, bucket: str, path: str, html: str, overwrite: bool) -> None:
        extra = {} if overwrite else {"IfNoneMatch": "*"}
        try:
            self.client.put_object(
                Bucket=bucket,
                Key=path,
                Body=html.encode("utf-8"),
                ContentType=HTML_CONTENT_TYPE,
                CacheControl=settings.STORAGE_CACHE_CONTROL,
                **extra,
            )
        except (BotoCoreError, ClientError) as exc:
            if not overwrite and _is_precondition_failure(exc):
                raise StorageError(f"Object already exists at {bucket}/{path}") from exc
            raise StorageError(_client_error_message(exc)) from exc

    def upload_website(self, business_slug: str, html: str, run_id: str) -> UploadResult:
        storage_path = f"{business_slug}/{self._next_timestamp_ms()}/index.html"
        size_bytes = len(html.encode("utf-8"))
        logger.info("[%s] Uploading to %s/%s (%s bytes)", run_id, self.bucket, storage_path, size_bytes)

        self._put(bucket=self.bucket, path=storage_path, html=html, overwrite=False)

        public_url = self.public_url(storage_path)
        logger.info("[%s] Upload successful: %s", run_id, public_url)
        return UploadResult(storage_path=storage_path, public_url=public_url, size_bytes=size_bytes)

    def put_html(self, bucket: str, path: str, html: str, *, overwrite: bool = True) -> str:
        self._put(bucket=bucket, path=path, html=html, overwrite=overwrite)
        return self.public_url(path, bucket=bucket)

    def list_files(self, bucket: str, prefix: str) -> list[str]:
        normalized = prefix.rstrip("/") + "/"
        paths: list[str] = []
        try:
            paginator = self.client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=bucket, Prefix=normalized):
                paths.extend(item["Key"] for item in page.get("Contents") or [])
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(_client_error_message(exc)) from exc
        return paths

    def delete_files(self, bucket: str, paths: list[str]) -> int:
        deleted = 0
        for start in range(0, len(paths), _DELETE_BATCH_SIZE):
            batch = paths[start:start + _DELETE_BATCH_SIZE]
            try:
                response = self.client.delete_objects(
                    Bucket=bucket,
                    Delete={"Objects": [{"Key": path} for path in batch], "Quiet": True},
                )
            except (BotoCoreError, ClientError) as exc:
                raise StorageError(_client_error_message(exc)) from exc
            errors = response.get("Errors") or []
            if errors:
                first = errors[0]
                raise StorageError(
                    f"Failed to delete {len(errors)} object(s) from {bucket}: "
                    f"{first.get('Key')}: {first.get('Message')}"
                )
            deleted += len(batch)
        return deleted


@lru_cache
def get_site_storage() -> SiteStorage:
    return SiteStorage()

"""S3 upload sink for export artifacts."""

from __future__ import annotations

from typing import Any, Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from src.core.config import settings
from src.core.logger import get_logger
from src.domain.errors import UploadError
from src.domain.models import ExportArtifact
from src.utils.concurrency import run_blocking

logger = get_logger("s3_sink")


def _client_kwargs() -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {
        "region_name": settings.aws_region,
        "config": Config(
            connect_timeout=settings.s3_timeout_seconds,
            read_timeout=settings.s3_timeout_seconds,
            retries={"max_attempts": 1},
        ),
    }
    # Fall back to the default credential chain (env, profile, IAM role).
    if settings.aws_access_key_id and settings.aws_secret_access_key:
        kwargs["aws_access_key_id"] = settings.aws_access_key_id
        kwargs["aws_secret_access_key"] = settings.aws_secret_access_key
    if settings.s3_endpoint_url:
        kwargs["endpoint_url"] = settings.s3_endpoint_url
    return kwargs


class S3UploadSink:
    def __init__(self, client: Any = None, bucket: Optional[str] = None):
        self.bucket = bucket or settings.s3_bucket_name
        self.client = client or boto3.client("s3", **_client_kwargs())

    def s3_uri(self, object_path: str) -> str:
        return f"s3://{self.bucket}/{object_path}"

    def _put(self, artifact: ExportArtifact) -> Dict[str, Any]:
        return self.client.put_object(
            Bucket=self.bucket,
            Key=artifact.key,
            Body=artifact.body.encode("utf-8"),
            ContentType=artifact.content_type,
            Metadata=dict(artifact.metadata),
        )

    async def upload(self, artifact: ExportArtifact) -> Dict[str, Any]:
        """Write one artifact; raises UploadError on any transport/auth failure."""
        try:
            response = await run_blocking(self._put, artifact)
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "s3_upload_failed",
                extra={"s3_path": self.s3_uri(artifact.key), "error": str(e)},
            )
            raise UploadError(artifact.key, str(e)) from e
        logger.info(
            "s3_upload_succeeded",
            extra={
                "s3_path": self.s3_uri(artifact.key),
                "data_type": artifact.metadata.get("dataType"),
                "record_count": artifact.metadata.get("recordCount"),
                "size_bytes": len(artifact.body),
            },
        )
        return response

    async def check_connection(self) -> bool:
        """List buckets and report whether the target bucket is visible."""
        try:
            result = await run_blocking(self.client.list_buckets)
        except (ClientError, BotoCoreError) as e:
            logger.error(
                "s3_connection_check_failed",
                extra={"error": str(e), "error_type": type(e).__name__},
            )
            return False
        names = [b.get("Name") for b in result.get("Buckets", [])]
        if self.bucket in names:
            logger.info("s3_bucket_accessible", extra={"bucket": self.bucket})
        else:
            logger.warning(
                "s3_bucket_not_found",
                extra={"bucket": self.bucket, "visible_buckets": names},
            )
        return True

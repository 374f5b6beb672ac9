"""Amazon S3 storage implementation."""

from __future__ import annotations

import logging
from typing import IO

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from werkzeug.utils import secure_filename

from errors import GatewayError

from .abstract_storage import AbstractStorage

logger = logging.getLogger(__name__)


class S3Storage(AbstractStorage):
    """Upload media to an S3 bucket and hand back public object URLs."""

    def __init__(
        self,
        bucket: str,
        region: str,
        *,
        public_url: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        client=None,
    ):
        self.bucket = bucket
        self.region = region
        self.public_url = (
            public_url or f"https://{bucket}.s3.{region}.amazonaws.com"
        ).rstrip("/")
        self.client = client or boto3.client(
            "s3",
            region_name=region,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
        )

    def upload(self, file_obj: IO[bytes], filename: str, folder: str) -> str:
        safe_name = secure_filename(filename)
        if not safe_name:
            raise ValueError("Filename must contain at least one valid character.")

        key = f"{folder}/{safe_name}"
        extra_args = {}
        content_type = getattr(file_obj, "mimetype", None)
        if content_type:
            extra_args["ContentType"] = content_type
        stream = getattr(file_obj, "stream", file_obj)

        try:
            self.client.upload_fileobj(stream, self.bucket, key, ExtraArgs=extra_args)
        except (BotoCoreError, ClientError) as exc:
            logger.error("S3 upload of %s failed: %s", key, exc)
            raise GatewayError("Media upload failed.") from exc

        logger.info("Uploaded media object s3://%s/%s", self.bucket, key)
        return f"{self.public_url}/{key}"

    def delete(self, url: str) -> None:
        prefix = f"{self.public_url}/"
        if not url.startswith(prefix):
            return
        key = url[len(prefix):]
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as exc:
            logger.error("S3 delete of %s failed: %s", key, exc)
            raise GatewayError("Media delete failed.") from exc

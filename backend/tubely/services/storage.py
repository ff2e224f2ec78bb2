import logging
import os
from typing import Final

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from tubely.core.config import Settings, get_settings
from tubely.core.errors import StorageError

logger = logging.getLogger(__name__)


class StorageService:
    """S3 object storage for processed videos."""

    scheme: Final[str] = "s3"

    def __init__(self, settings: Settings | None = None, client=None) -> None:
        self.settings = settings or get_settings()
        self.bucket = self.settings.s3_bucket
        self.region = self.settings.s3_region
        if client is None:
            session = boto3.session.Session()
            client = session.client(
                "s3",
                endpoint_url=str(self.settings.s3_endpoint) if self.settings.s3_endpoint else None,
                aws_access_key_id=self.settings.s3_access_key,
                aws_secret_access_key=self.settings.s3_secret_key,
                region_name=self.region,
                config=Config(signature_version="s3v4"),
            )
        self.client = client

    def object_url(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def upload_file(self, path: str | os.PathLike[str], key: str, content_type: str) -> str:
        """Put the file at ``path`` under ``key`` and return its public URL.

        An existing object with the same key is overwritten.
        """
        try:
            with open(path, "rb") as body:
                self.client.put_object(
                    Bucket=self.bucket,
                    Key=key,
                    Body=body,
                    ContentType=content_type,
                )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(detail=str(exc)) from exc
        except OSError as exc:
            raise StorageError("Could not open processed video file", detail=str(exc)) from exc

        logger.info("Uploaded s3://%s/%s (%s)", self.bucket, key, content_type)
        return self.object_url(key)

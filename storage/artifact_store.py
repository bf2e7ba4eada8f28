"""Writers for the resolved schedule artifact."""
import logging
import os
import tempfile

import boto3
from botocore.exceptions import ClientError

from festivals.models import Schedule
from festivals.schedule import serialize_schedule

logger = logging.getLogger(__name__)


class LocalArtifactStore:
    """Writes the artifact to a file on disk."""

    def __init__(self, output_path: str):
        """
        Initialize the store.

        Args:
            output_path: Destination path of the generated JSON file
        """
        self.output_path = output_path

    def write(self, schedule: Schedule) -> str:
        """
        Write the schedule atomically.

        The content goes to a temporary file in the destination directory
        which then replaces the target, so readers never see a partial file
        and a failed write leaves the previous artifact untouched.

        Args:
            schedule: Validated schedule

        Returns:
            The serialized JSON that was written
        """
        content = serialize_schedule(schedule)
        directory = os.path.dirname(os.path.abspath(self.output_path))
        os.makedirs(directory, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(
            dir=directory, prefix='.festivals-', suffix='.json.tmp'
        )
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as tmp:
                tmp.write(content)
            os.replace(tmp_path, self.output_path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

        logger.info(
            f"Wrote {len(schedule.resolved_events)} resolved events to {self.output_path}"
        )
        return content


class S3ArtifactPublisher:
    """Uploads the artifact to S3 for the site to fetch."""

    CONTENT_TYPE = 'application/json; charset=utf-8'
    CACHE_CONTROL = 'no-cache'

    def __init__(self, bucket: str, key: str):
        """
        Initialize S3 client.

        Args:
            bucket: Destination bucket name
            key: Object key of the artifact
        """
        self.bucket = bucket
        self.key = key
        self.s3 = boto3.client('s3')
        logger.info(f"Initialized S3ArtifactPublisher for s3://{bucket}/{key}")

    def publish(self, content: str) -> None:
        """
        Upload serialized artifact content.

        Args:
            content: JSON text produced by LocalArtifactStore.write

        Raises:
            ClientError: If the upload fails
        """
        try:
            self.s3.put_object(
                Bucket=self.bucket,
                Key=self.key,
                Body=content.encode('utf-8'),
                ContentType=self.CONTENT_TYPE,
                CacheControl=self.CACHE_CONTROL
            )
        except ClientError as e:
            logger.error(f"Error uploading artifact to s3://{self.bucket}/{self.key}: {e}")
            raise

        logger.info(f"Published artifact to s3://{self.bucket}/{self.key}")

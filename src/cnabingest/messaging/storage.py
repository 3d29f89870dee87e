"""Object storage for uploaded CNAB files."""

import io
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, BinaryIO, Optional

from botocore.exceptions import BotoCoreError, ClientError

from cnabingest.domain.errors import InvalidObjectKeyError, TransientInfrastructureError

logger = logging.getLogger(__name__)


class ObjectStorage(ABC):
    """Key/value blob store."""

    @abstractmethod
    def put(self, key: str, data: bytes) -> None:
        """Store data under key, replacing any existing object."""
        pass

    @abstractmethod
    def open(self, key: str, max_bytes: Optional[int] = None) -> BinaryIO:
        """Open an object for reading.

        Args:
            key: Object key
            max_bytes: Upper bound on bytes the caller will read; remote
                implementations transfer no more than this

        Raises:
            TransientInfrastructureError: If the object cannot be fetched
        """
        pass


class S3ObjectStorage(ObjectStorage):
    """Amazon S3 bucket."""

    def __init__(self, client: Any, bucket: str):
        self.client = client
        self.bucket = bucket

    def put(self, key: str, data: bytes) -> None:
        try:
            self.client.put_object(
                Bucket=self.bucket, Key=key, Body=data, ContentType="text/plain"
            )
        except (BotoCoreError, ClientError) as e:
            raise TransientInfrastructureError(f"Failed to upload s3://{self.bucket}/{key}: {e}") from e
        logger.debug("Uploaded s3://%s/%s (%d bytes)", self.bucket, key, len(data))

    def open(self, key: str, max_bytes: Optional[int] = None) -> BinaryIO:
        try:
            body = self.client.get_object(Bucket=self.bucket, Key=key)["Body"]
            try:
                data = body.read(max_bytes) if max_bytes is not None else body.read()
            finally:
                body.close()
        except (BotoCoreError, ClientError) as e:
            raise TransientInfrastructureError(f"Failed to download s3://{self.bucket}/{key}: {e}") from e
        return io.BytesIO(data)


class LocalDirectoryStorage(ObjectStorage):
    """Objects kept as files under a root directory.

    Used for local runs and tests; keys map to relative paths.
    """

    def __init__(self, root: str | Path):
        self.root = Path(root).expanduser().resolve()

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if not path.is_relative_to(self.root):
            raise InvalidObjectKeyError(f"Object key '{key}' escapes the storage directory")
        return path

    def put(self, key: str, data: bytes) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    def open(self, key: str, max_bytes: Optional[int] = None) -> BinaryIO:
        try:
            return self._path(key).open("rb")
        except OSError as e:
            raise TransientInfrastructureError(f"Failed to open object '{key}': {e}") from e

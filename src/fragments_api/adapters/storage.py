"""
Storage backends for fragment metadata and payloads.

Every backend implements the ``BaseStorage`` contract so the fragment service
never needs to know where data physically lives. The backend is chosen once
at startup by ``get_storage_backend``.
"""

import logging
from typing import TYPE_CHECKING, List, Optional
from urllib.parse import quote

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from fragments_api.config.settings import Settings
from fragments_api.database.memory_db import MemoryDB
from fragments_api.exceptions import BackendUnavailableError, NotFoundError
from fragments_api.model.fragment import Fragment
from fragments_api.s3.delete_objects import delete_s3_object
from fragments_api.s3.read_objects import fetch_s3_object, is_missing_object_error
from fragments_api.s3.write_objects import upload_s3_object

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client

logger = logging.getLogger(__name__)


class BaseStorage:
    """Base class for fragment storage (to be extended by specific implementations)"""

    name = "base"

    async def write_metadata(self, fragment: Fragment) -> None:
        raise NotImplementedError

    async def read_metadata(self, owner_id: str, fragment_id: str) -> Optional[Fragment]:
        raise NotImplementedError

    async def write_data(self, owner_id: str, fragment_id: str, data: bytes) -> None:
        raise NotImplementedError

    async def read_data(self, owner_id: str, fragment_id: str) -> bytes:
        raise NotImplementedError

    async def list_metadata(self, owner_id: str) -> List[Fragment]:
        raise NotImplementedError

    async def delete_all(self, owner_id: str, fragment_id: str) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        """Release backend resources."""
        pass


class _MemoryMetadataMixin:
    """Metadata persistence shared by every backend until a structured store exists"""

    metadata: MemoryDB

    async def write_metadata(self, fragment: Fragment) -> None:
        """Store a copy of the fragment record."""
        logger.debug(f"Writing fragment metadata for owner_id={fragment.owner_id}, id={fragment.id}")
        await self.metadata.put(fragment.owner_id, fragment.id, fragment.model_copy(deep=True))

    async def read_metadata(self, owner_id: str, fragment_id: str) -> Optional[Fragment]:
        fragment = await self.metadata.get(owner_id, fragment_id)
        if fragment is None:
            logger.warning(f"Fragment metadata not found for owner_id={owner_id}, id={fragment_id}")
            return None
        return fragment.model_copy(deep=True)

    async def list_metadata(self, owner_id: str) -> List[Fragment]:
        fragments = await self.metadata.query(owner_id)
        return [fragment.model_copy(deep=True) for fragment in fragments]

    async def _require_metadata(self, owner_id: str, fragment_id: str) -> Fragment:
        fragment = await self.metadata.get(owner_id, fragment_id)
        if fragment is None:
            raise NotFoundError(owner_id, fragment_id, what="fragment metadata")
        return fragment


class MemoryStorage(_MemoryMetadataMixin, BaseStorage):
    """Keeps metadata and payloads in two independent in-process stores"""

    name = "memory"

    def __init__(self, metadata_db: Optional[MemoryDB] = None, data_db: Optional[MemoryDB] = None):
        self.metadata = metadata_db or MemoryDB("metadata")
        self.data = data_db or MemoryDB("data")
        logger.info("MemoryStorage initialized")

    async def write_data(self, owner_id: str, fragment_id: str, data: bytes) -> None:
        await self._require_metadata(owner_id, fragment_id)
        logger.debug(f"Writing fragment data for owner_id={owner_id}, id={fragment_id} ({len(data)} bytes)")
        await self.data.put(owner_id, fragment_id, bytes(data))

    async def read_data(self, owner_id: str, fragment_id: str) -> bytes:
        data = await self.data.get(owner_id, fragment_id)
        if data is None:
            logger.warning(f"Fragment data not found for owner_id={owner_id}, id={fragment_id}")
            raise NotFoundError(owner_id, fragment_id, what="fragment data")
        return data

    async def delete_all(self, owner_id: str, fragment_id: str) -> None:
        await self._require_metadata(owner_id, fragment_id)
        # Payload before metadata: a payload never outlives its metadata
        if (owner_id, fragment_id) in self.data:
            await self.data.delete(owner_id, fragment_id)
        await self.metadata.delete(owner_id, fragment_id)
        logger.info(f"Fragment deleted for owner_id={owner_id}, id={fragment_id}")

    async def close(self) -> None:
        self.metadata.clear()
        self.data.clear()


class S3Storage(_MemoryMetadataMixin, BaseStorage):
    """Keeps payloads in an S3 bucket and metadata in an in-process store"""

    name = "s3"

    def __init__(
        self,
        bucket_name: str,
        s3_client: Optional["S3Client"] = None,
        metadata_db: Optional[MemoryDB] = None,
    ):
        if not bucket_name:
            raise ValueError("S3 bucket name is not set")
        self.bucket_name = bucket_name
        self.s3_client = s3_client or boto3.client("s3")
        self.metadata = metadata_db or MemoryDB("metadata")
        logger.info(f"S3Storage initialized with bucket: {self.bucket_name}")

    @staticmethod
    def object_key(owner_id: str, fragment_id: str) -> str:
        # Distinct (owner, id) pairs never share a key, even when either part contains "/"
        return f"{quote(owner_id, safe='')}/{quote(fragment_id, safe='')}"

    async def write_data(self, owner_id: str, fragment_id: str, data: bytes) -> None:
        fragment = await self._require_metadata(owner_id, fragment_id)
        key = self.object_key(owner_id, fragment_id)
        try:
            upload_s3_object(
                bucket_name=self.bucket_name,
                object_key=key,
                file_content=bytes(data),
                content_type=fragment.type,
                s3_client=self.s3_client,
            )
            logger.debug(f"Uploaded fragment data to s3://{self.bucket_name}/{key}")
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error uploading fragment data to S3 (bucket={self.bucket_name}, key={key}): {str(e)}")
            raise BackendUnavailableError("write_data", owner_id, fragment_id, str(e)) from e

    async def read_data(self, owner_id: str, fragment_id: str) -> bytes:
        key = self.object_key(owner_id, fragment_id)
        try:
            return fetch_s3_object(self.bucket_name, key, s3_client=self.s3_client)
        except ClientError as e:
            if is_missing_object_error(e):
                logger.warning(f"Fragment data not found in S3 (bucket={self.bucket_name}, key={key})")
                raise NotFoundError(owner_id, fragment_id, what="fragment data") from e
            logger.error(f"Error reading fragment data from S3 (bucket={self.bucket_name}, key={key}): {str(e)}")
            raise BackendUnavailableError("read_data", owner_id, fragment_id, str(e)) from e
        except BotoCoreError as e:
            logger.error(f"Error reading fragment data from S3 (bucket={self.bucket_name}, key={key}): {str(e)}")
            raise BackendUnavailableError("read_data", owner_id, fragment_id, str(e)) from e

    async def delete_all(self, owner_id: str, fragment_id: str) -> None:
        await self._require_metadata(owner_id, fragment_id)
        key = self.object_key(owner_id, fragment_id)
        try:
            delete_s3_object(self.bucket_name, key, s3_client=self.s3_client)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Error deleting fragment data from S3 (bucket={self.bucket_name}, key={key}): {str(e)}")
            raise BackendUnavailableError("delete_all", owner_id, fragment_id, str(e)) from e
        await self.metadata.delete(owner_id, fragment_id)
        logger.info(f"Fragment deleted for owner_id={owner_id}, id={fragment_id}")


def create_s3_client(settings: Settings) -> "S3Client":
    """Create an S3 client from settings."""
    client_kwargs = {"region_name": settings.aws_region}
    if settings.aws_access_key_id:
        client_kwargs["aws_access_key_id"] = settings.aws_access_key_id
    if settings.aws_secret_access_key:
        client_kwargs["aws_secret_access_key"] = settings.aws_secret_access_key
    if settings.aws_endpoint_url:
        client_kwargs["endpoint_url"] = settings.aws_endpoint_url

    logger.info(f"Creating S3 client (region={settings.aws_region}, endpoint={settings.aws_endpoint_url})")
    return boto3.client("s3", **client_kwargs)


def get_storage_backend(settings: Settings, s3_client: Optional["S3Client"] = None) -> BaseStorage:
    """Factory to initialize the correct storage backend based on settings"""
    backend = settings.storage_backend
    logger.info(f"Creating storage backend: {backend}")

    if backend == "memory":
        return MemoryStorage()
    if backend == "s3":
        return S3Storage(
            bucket_name=settings.s3_bucket_name,
            s3_client=s3_client or create_s3_client(settings),
        )
    raise ValueError(f"Invalid storage_backend: {backend}. Choose from ['memory', 's3']")

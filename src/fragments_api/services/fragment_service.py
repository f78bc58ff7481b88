"""
Fragment service for the Fragments API.

Owns the fragment lifecycle end to end: validation, identity, the two-phase
metadata/payload writes, reads, listing, deletion and content negotiation.
"""

import logging
from typing import List, Optional, Union

from fragments_api.adapters.storage import BaseStorage
from fragments_api.exceptions import FragmentsError, NotFoundError, TypeMismatchError
from fragments_api.model.conversion import ConversionResult, convert
from fragments_api.model.fragment import Fragment
from fragments_api.model.types import mime_type_of

logger = logging.getLogger(__name__)


class FragmentService:
    """Service for managing fragments on top of a storage backend"""

    def __init__(self, storage: BaseStorage):
        self.storage = storage
        logger.info(f"FragmentService initialized with {storage.name} backend")

    async def __aenter__(self) -> "FragmentService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Tear down the backend owned by this service."""
        await self.storage.close()
        logger.info("FragmentService closed")

    async def create(self, owner_id: str, type: str) -> Fragment:
        """
        Create a fragment and persist its metadata.

        Args:
            owner_id: Owner of the new fragment
            type: Content-Type of the fragment's payload

        Returns:
            The new fragment, with size 0 and no payload yet

        Raises:
            UnsupportedTypeError: If the type is not in the registry
        """
        fragment = Fragment(owner_id=owner_id, type=type)
        logger.info(f"Creating fragment id={fragment.id} for owner_id={owner_id}, type={type}")
        await self.save(fragment)
        return fragment

    async def save(self, fragment: Fragment) -> None:
        """Persist the fragment's metadata, refreshing its updated time."""
        fragment.touch()
        try:
            await self.storage.write_metadata(fragment)
        except FragmentsError as e:
            logger.error(f"Error saving fragment id={fragment.id} for owner_id={fragment.owner_id}: {str(e)}")
            raise

    async def set_payload(self, fragment: Fragment, data: Optional[bytes]) -> None:
        """Replace the fragment's payload: metadata (new size) first, then the bytes."""
        if data is None:
            logger.error(f"Data cannot be None for fragment id={fragment.id}")
            raise ValueError("Data cannot be None")

        data = bytes(data)
        logger.info(f"Setting data for fragment id={fragment.id} for owner_id={fragment.owner_id} ({len(data)} bytes)")
        fragment.size = len(data)
        await self.save(fragment)
        try:
            await self.storage.write_data(fragment.owner_id, fragment.id, data)
        except FragmentsError as e:
            logger.error(f"Error setting data for fragment id={fragment.id} for owner_id={fragment.owner_id}: {str(e)}")
            raise

    async def fetch_by_id(self, owner_id: str, fragment_id: str) -> Optional[Fragment]:
        """Get a fragment's metadata, or None if the owner has no such fragment."""
        logger.info(f"Fetching fragment by id={fragment_id} for owner_id={owner_id}")
        try:
            return await self.storage.read_metadata(owner_id, fragment_id)
        except FragmentsError as e:
            logger.error(f"Error fetching fragment id={fragment_id} for owner_id={owner_id}: {str(e)}")
            raise

    async def fetch_payload(self, fragment: Fragment) -> bytes:
        """Get the fragment's payload, raising NotFoundError if none is stored."""
        logger.info(f"Fetching data for fragment id={fragment.id} for owner_id={fragment.owner_id}")
        try:
            return await self.storage.read_data(fragment.owner_id, fragment.id)
        except NotFoundError:
            raise
        except FragmentsError as e:
            logger.error(f"Error retrieving data for fragment id={fragment.id}: {str(e)}")
            raise

    async def list_by_owner(self, owner_id: str, expand: bool = False) -> Union[List[str], List[Fragment]]:
        """
        List an owner's fragments.

        Args:
            owner_id: Owner whose fragments to list
            expand: Return full fragment records instead of ids

        Returns:
            List of ids, or of Fragment records when expand is True
        """
        logger.info(f"Listing fragments for owner_id={owner_id}, expand={expand}")
        try:
            fragments = await self.storage.list_metadata(owner_id)
        except FragmentsError as e:
            logger.error(f"Error listing fragments for owner_id={owner_id}: {str(e)}")
            raise
        if expand:
            return fragments
        return [fragment.id for fragment in fragments]

    async def delete(self, owner_id: str, fragment_id: str) -> None:
        """Delete a fragment's metadata and payload."""
        logger.info(f"Deleting fragment id={fragment_id} for owner_id={owner_id}")
        try:
            await self.storage.delete_all(owner_id, fragment_id)
        except NotFoundError:
            logger.warning(f"Nothing to delete for owner_id={owner_id}, id={fragment_id}")
            raise
        except FragmentsError as e:
            logger.error(f"Error deleting fragment id={fragment_id} for owner_id={owner_id}: {str(e)}")
            raise

    async def replace_payload(self, owner_id: str, fragment_id: str, data: bytes, type: str) -> Fragment:
        """
        Replace an existing fragment's payload with data of the same mime type.

        Raises:
            NotFoundError: If the fragment does not exist
            TypeMismatchError: If type's mime type differs from the fragment's
        """
        fragment = await self.fetch_by_id(owner_id, fragment_id)
        if fragment is None:
            raise NotFoundError(owner_id, fragment_id)

        new_mime_type = mime_type_of(type)
        if new_mime_type != fragment.mime_type:
            logger.warning(f"Type mismatch updating fragment id={fragment_id}: {fragment.mime_type} != {new_mime_type}")
            raise TypeMismatchError(fragment.mime_type, new_mime_type)

        await self.set_payload(fragment, data)
        return fragment

    async def convert(self, fragment: Fragment, target: str) -> ConversionResult:
        """Read the fragment's payload and convert it to target (extension or type)."""
        data = await self.fetch_payload(fragment)
        return convert(fragment, data, target)

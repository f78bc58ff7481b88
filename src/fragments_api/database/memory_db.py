"""
In-process two-level key-value store.

Used as the substrate for both fragment metadata and fragment payloads when
running with the local backend. Values are opaque; the store has no
knowledge of fragments.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from fragments_api.exceptions import InvalidKeyError, NotFoundError

logger = logging.getLogger(__name__)


def _validate_key(key: Any) -> bool:
    return isinstance(key, str) and key != ""


class MemoryDB:
    """Associative store keyed by (primary_key, secondary_key)"""

    def __init__(self, name: str = "memory"):
        self.name = name
        self._db: Dict[str, Dict[str, Any]] = {}
        logger.info(f"MemoryDB '{self.name}' initialized")

    def _check_keys(self, primary_key: Any, secondary_key: Any) -> None:
        if not (_validate_key(primary_key) and _validate_key(secondary_key)):
            logger.error(f"Invalid keys: primary_key={primary_key!r}, secondary_key={secondary_key!r}")
            raise InvalidKeyError(primary_key, secondary_key)

    async def put(self, primary_key: str, secondary_key: str, value: Any) -> None:
        """Insert or overwrite the value stored at the given keys."""
        self._check_keys(primary_key, secondary_key)
        self._db.setdefault(primary_key, {})[secondary_key] = value
        logger.debug(f"[{self.name}] stored value for primary_key={primary_key}, secondary_key={secondary_key}")

    async def get(self, primary_key: str, secondary_key: str) -> Optional[Any]:
        """
        Get the value stored at the given keys.

        Args:
            primary_key: Owner-level key
            secondary_key: Item-level key

        Returns:
            The stored value, or None when nothing is stored
        """
        self._check_keys(primary_key, secondary_key)
        value = self._db.get(primary_key, {}).get(secondary_key)
        if value is None:
            logger.debug(f"[{self.name}] no value for primary_key={primary_key}, secondary_key={secondary_key}")
        return value

    async def query(self, primary_key: str) -> List[Any]:
        """Return every value under primary_key in insertion order ([] if none)."""
        if not _validate_key(primary_key):
            logger.error(f"Invalid primary_key: {primary_key!r}")
            raise InvalidKeyError(primary_key)
        values = list(self._db.get(primary_key, {}).values())
        logger.debug(f"[{self.name}] query for primary_key={primary_key} returned {len(values)} values")
        return values

    async def delete(self, primary_key: str, secondary_key: str) -> None:
        """Remove the value at the given keys, raising NotFoundError if absent."""
        self._check_keys(primary_key, secondary_key)
        bucket = self._db.get(primary_key)
        if bucket is None or secondary_key not in bucket:
            logger.warning(f"[{self.name}] no value to delete for primary_key={primary_key}, secondary_key={secondary_key}")
            raise NotFoundError(primary_key, secondary_key, what=f"{self.name} entry")

        del bucket[secondary_key]
        if not bucket:
            del self._db[primary_key]
        logger.debug(f"[{self.name}] deleted value for primary_key={primary_key}, secondary_key={secondary_key}")

    def __contains__(self, key: Tuple[str, str]) -> bool:
        primary_key, secondary_key = key
        return secondary_key in self._db.get(primary_key, {})

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._db.values())

    def clear(self) -> None:
        """Drop every stored value."""
        self._db.clear()
        logger.debug(f"[{self.name}] cleared")

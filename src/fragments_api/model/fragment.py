"""Fragment metadata record."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator

from fragments_api.exceptions import UnsupportedTypeError
from fragments_api.model.types import formats_for, is_supported_type, parse_content_type

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Fragment(BaseModel):
    """
    Metadata for a stored content blob.

    ``id``, ``owner_id`` and ``type`` are fixed at construction. ``size``
    always mirrors the length of the payload currently stored for the
    fragment and is re-validated whenever it is assigned.
    """

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        min_length=1,
        frozen=True,
        description="Unique fragment identifier.",
        json_schema_extra={"example": "30a84843-0cd4-4975-95ba-b96112aea189"},
    )
    owner_id: str = Field(
        alias="ownerId",
        min_length=1,
        frozen=True,
        description="Opaque identifier of the owning principal.",
    )
    type: str = Field(
        frozen=True,
        description="Content-Type of the payload, parameters included.",
        json_schema_extra={"example": "text/plain; charset=utf-8"},
    )
    size: StrictInt = Field(default=0, ge=0, description="Payload size in bytes.")
    created: datetime = Field(default_factory=utc_now)
    updated: datetime = Field(default_factory=utc_now)

    model_config = ConfigDict(
        populate_by_name=True,
        validate_assignment=True,
    )

    def __init__(self, **data: Any):
        content_type = data.get("type")
        if isinstance(content_type, str) and not is_supported_type(content_type):
            logger.error(f"Unsupported type: {content_type}")
            raise UnsupportedTypeError(content_type)
        if "created" not in data:
            data["created"] = utc_now()
        data.setdefault("updated", data["created"])
        super().__init__(**data)
        logger.debug(f"Fragment created with id={self.id}, owner_id={self.owner_id}, type={self.type}, size={self.size}")

    @field_validator("type")
    @classmethod
    def check_supported_type(cls, v: str) -> str:
        # Covers model_validate(), which does not go through __init__
        if not is_supported_type(v):
            raise ValueError(f"Unsupported type: {v}")
        return v

    @field_validator("created", "updated")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        # Timestamps without an offset are taken as UTC
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @property
    def mime_type(self) -> str:
        """The type without parameters: "text/html; charset=utf-8" -> "text/html"."""
        return parse_content_type(self.type)[0]

    @property
    def is_text(self) -> bool:
        return self.mime_type.startswith("text/")

    @property
    def formats(self) -> List[str]:
        """Mime types this fragment can be converted into."""
        return formats_for(self.mime_type)

    def touch(self) -> None:
        """Refresh the updated timestamp."""
        self.updated = max(utc_now(), self.created)

    def to_record(self) -> Dict[str, Any]:
        """JSON-ready representation using the public field names."""
        return self.model_dump(mode="json", by_alias=True)

import re
from datetime import datetime

import pydantic
import pytest

from fragments_api.exceptions import UnsupportedTypeError
from fragments_api.model.fragment import Fragment
from tests.consts import TEST_OWNER_ID

UUID_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$")


def test_owner_id_and_type_are_required():
    with pytest.raises(pydantic.ValidationError):
        Fragment()


def test_owner_id_is_required():
    with pytest.raises(pydantic.ValidationError):
        Fragment(type="text/plain", size=1)


def test_type_is_required():
    with pytest.raises(pydantic.ValidationError):
        Fragment(owner_id=TEST_OWNER_ID, size=1)


def test_type_can_be_a_simple_media_type():
    fragment = Fragment(owner_id=TEST_OWNER_ID, type="text/plain")
    assert fragment.type == "text/plain"


def test_type_can_include_a_charset():
    fragment = Fragment(owner_id=TEST_OWNER_ID, type="text/plain; charset=utf-8")
    assert fragment.type == "text/plain; charset=utf-8"
    assert fragment.mime_type == "text/plain"


def test_owner_id_accepts_camel_case_alias():
    fragment = Fragment(ownerId=TEST_OWNER_ID, type="text/plain")
    assert fragment.owner_id == TEST_OWNER_ID


def test_size_defaults_to_zero():
    fragment = Fragment(owner_id=TEST_OWNER_ID, type="text/plain")
    assert fragment.size == 0


def test_size_can_be_zero():
    Fragment(owner_id=TEST_OWNER_ID, type="text/plain", size=0)


@pytest.mark.parametrize("size", ["1", 1.5, True, None])
def test_size_must_be_an_integer(size):
    with pytest.raises(ValueError):
        Fragment(owner_id=TEST_OWNER_ID, type="text/plain", size=size)


def test_size_cannot_be_negative():
    with pytest.raises(ValueError):
        Fragment(owner_id=TEST_OWNER_ID, type="text/plain", size=-1)


def test_size_is_validated_on_assignment():
    fragment = Fragment(owner_id=TEST_OWNER_ID, type="text/plain")
    with pytest.raises(pydantic.ValidationError):
        fragment.size = -1


def test_invalid_types_raise_unsupported_type():
    with pytest.raises(UnsupportedTypeError):
        Fragment(owner_id=TEST_OWNER_ID, type="application/msword", size=1)


def test_model_validate_rejects_unsupported_type():
    with pytest.raises(ValueError):
        Fragment.model_validate({"ownerId": TEST_OWNER_ID, "type": "application/octet-stream"})


def test_fragments_get_a_uuid_id():
    fragment = Fragment(owner_id=TEST_OWNER_ID, type="text/plain")
    assert UUID_PATTERN.match(fragment.id)


def test_fragments_use_id_passed_in():
    fragment = Fragment(id="id", owner_id=TEST_OWNER_ID, type="text/plain")
    assert fragment.id == "id"


def test_identity_fields_are_immutable():
    fragment = Fragment(owner_id=TEST_OWNER_ID, type="text/plain")
    with pytest.raises(pydantic.ValidationError):
        fragment.id = "other"
    with pytest.raises(pydantic.ValidationError):
        fragment.owner_id = "other"
    with pytest.raises(pydantic.ValidationError):
        fragment.type = "text/html"


def test_fragments_get_created_and_updated_timestamps():
    fragment = Fragment(owner_id=TEST_OWNER_ID, type="text/plain")
    assert isinstance(fragment.created, datetime)
    assert fragment.created.tzinfo is not None
    assert fragment.updated == fragment.created


def test_touch_moves_updated_forward():
    fragment = Fragment(owner_id=TEST_OWNER_ID, type="text/plain")
    before = fragment.updated
    fragment.touch()
    assert fragment.updated >= before
    assert fragment.updated >= fragment.created


def test_is_text():
    assert Fragment(owner_id=TEST_OWNER_ID, type="text/markdown").is_text is True
    assert Fragment(owner_id=TEST_OWNER_ID, type="application/json").is_text is False


def test_formats():
    fragment = Fragment(owner_id=TEST_OWNER_ID, type="text/markdown; charset=utf-8")
    assert fragment.formats == ["text/plain", "text/markdown", "text/html"]


def test_to_record_uses_public_names():
    fragment = Fragment(owner_id=TEST_OWNER_ID, type="text/plain", size=3)
    record = fragment.to_record()
    assert record["ownerId"] == TEST_OWNER_ID
    assert record["size"] == 3
    assert isinstance(record["created"], str)


def test_naive_timestamps_are_treated_as_utc():
    fragment = Fragment(owner_id=TEST_OWNER_ID, type="text/plain", created="2024-01-01T00:00:00")
    assert fragment.created.tzinfo is not None
    assert fragment.created.utcoffset().total_seconds() == 0
    assert fragment.updated == fragment.created

    fragment.touch()
    assert fragment.updated > fragment.created

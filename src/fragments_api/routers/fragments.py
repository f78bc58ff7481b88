import logging

from fastapi import (
    APIRouter,
    Depends,
    Header,
    HTTPException,
    Path,
    Query,
    Request,
    Response,
    status
)

from fragments_api.config.settings import Settings
from fragments_api.dependencies import get_fragment_service, get_owner_id
from fragments_api.exceptions import NotFoundError, UnsupportedTypeError
from fragments_api.model.fragment import Fragment
from fragments_api.model.types import is_supported_type
from fragments_api.schemas import (
    DeleteFragmentResponse,
    FragmentResponse,
    ListFragmentsResponse,
)
from fragments_api.services.fragment_service import FragmentService

logger = logging.getLogger(__name__)

router = APIRouter()


async def read_fragment_body(request: Request, content_type: str | None) -> bytes:
    """Read a raw request body, enforcing the supported-type and size limits."""
    if not content_type or not is_supported_type(content_type):
        raise UnsupportedTypeError(content_type)

    settings: Settings = request.app.state.settings
    declared_length = request.headers.get("content-length")
    if declared_length and declared_length.isdigit() and int(declared_length) > settings.max_fragment_size_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"Fragment exceeds {settings.max_fragment_size_bytes} bytes"
        )

    body = await request.body()
    if len(body) > settings.max_fragment_size_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"Fragment exceeds {settings.max_fragment_size_bytes} bytes"
        )
    return body


async def get_owned_fragment(
    service: FragmentService, owner_id: str, fragment_id: str
) -> Fragment:
    fragment = await service.fetch_by_id(owner_id, fragment_id)
    if fragment is None:
        raise NotFoundError(owner_id, fragment_id)
    return fragment


@router.post("/fragments", response_model=FragmentResponse, status_code=status.HTTP_201_CREATED)
async def create_fragment(
    request: Request,
    response: Response,
    content_type: str | None = Header(None),
    owner_id: str = Depends(get_owner_id),
    service: FragmentService = Depends(get_fragment_service),
) -> FragmentResponse:
    """
    Create a fragment from the raw request body.

    The request's Content-Type becomes the fragment's type.
    """
    data = await read_fragment_body(request, content_type)

    fragment = await service.create(owner_id, content_type)
    await service.set_payload(fragment, data)

    settings: Settings = request.app.state.settings
    base_url = (settings.api_url or str(request.base_url)).rstrip("/")
    response.headers["Location"] = f"{base_url}/v1/fragments/{fragment.id}"
    logger.info(f"Fragment created for owner_id={owner_id}, id={fragment.id}, size={fragment.size}")
    return FragmentResponse(fragment=fragment)


@router.get("/fragments", response_model=ListFragmentsResponse)
async def list_fragments(
    expand: bool = Query(False, description="Return full fragment metadata instead of ids"),
    owner_id: str = Depends(get_owner_id),
    service: FragmentService = Depends(get_fragment_service),
) -> ListFragmentsResponse:
    """List the caller's fragments."""
    fragments = await service.list_by_owner(owner_id, expand=expand)
    return ListFragmentsResponse(fragments=fragments)


@router.get("/fragments/{fragment_id}/info", response_model=FragmentResponse)
async def get_fragment_info(
    fragment_id: str = Path(..., description="The fragment's id"),
    owner_id: str = Depends(get_owner_id),
    service: FragmentService = Depends(get_fragment_service),
) -> FragmentResponse:
    """Get a fragment's metadata."""
    fragment = await get_owned_fragment(service, owner_id, fragment_id)
    return FragmentResponse(fragment=fragment)


@router.get("/fragments/{fragment_ref}")
async def get_fragment(
    fragment_ref: str = Path(..., description="The fragment's id, optionally with an extension: <id>.html"),
    owner_id: str = Depends(get_owner_id),
    service: FragmentService = Depends(get_fragment_service),
) -> Response:
    """
    Get a fragment's payload.

    With an extension the payload is converted to that type first; 415 is
    returned when the fragment cannot be served in that representation.
    """
    fragment_id, dot, ext = fragment_ref.partition(".")
    fragment = await get_owned_fragment(service, owner_id, fragment_id)

    if not dot:
        data = await service.fetch_payload(fragment)
        return Response(content=data, media_type=fragment.type)

    result = await service.convert(fragment, ext)
    if not result.converted:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Fragment of type {fragment.mime_type} can not be converted to .{ext}"
        )
    return Response(content=result.data, media_type=result.type)


@router.put("/fragments/{fragment_id}", response_model=FragmentResponse)
async def update_fragment(
    request: Request,
    fragment_id: str = Path(..., description="The fragment's id"),
    content_type: str | None = Header(None),
    owner_id: str = Depends(get_owner_id),
    service: FragmentService = Depends(get_fragment_service),
) -> FragmentResponse:
    """Replace a fragment's payload; the Content-Type must keep the same mime type."""
    data = await read_fragment_body(request, content_type)
    fragment = await service.replace_payload(owner_id, fragment_id, data, content_type)
    return FragmentResponse(fragment=fragment)


@router.delete("/fragments/{fragment_id}", response_model=DeleteFragmentResponse)
async def delete_fragment(
    fragment_id: str = Path(..., description="The fragment's id"),
    owner_id: str = Depends(get_owner_id),
    service: FragmentService = Depends(get_fragment_service),
) -> DeleteFragmentResponse:
    """Delete a fragment's metadata and payload."""
    await service.delete(owner_id, fragment_id)
    return DeleteFragmentResponse()

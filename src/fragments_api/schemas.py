####################################
# --- Request/response schemas --- #
####################################

from typing import List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from fragments_api.model.fragment import Fragment


class FragmentResponse(BaseModel):
    """Response model for `POST /v1/fragments`, `PUT` and `GET /v1/fragments/:id/info`."""
    status: Literal["ok"] = "ok"
    fragment: Fragment

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "ok",
                "fragment": {
                    "id": "30a84843-0cd4-4975-95ba-b96112aea189",
                    "ownerId": "11d4c22e42c8f61feaba154683dea407b101cfd90987dda9e342843263ca420a",
                    "created": "2024-01-01T00:00:00Z",
                    "updated": "2024-01-01T00:00:00Z",
                    "type": "text/plain",
                    "size": 256,
                },
            }
        }
    )


class ListFragmentsResponse(BaseModel):
    """Response model for `GET /v1/fragments`."""
    status: Literal["ok"] = "ok"
    fragments: Union[List[Fragment], List[str]] = Field(
        description="Fragment ids, or full records when `expand=1`."
    )


class DeleteFragmentResponse(BaseModel):
    """Response model for `DELETE /v1/fragments/:id`."""
    status: Literal["ok"] = "ok"


class ErrorDetail(BaseModel):
    code: int
    message: str


class ErrorResponse(BaseModel):
    """Body returned for every error status."""
    status: Literal["error"] = "error"
    error: ErrorDetail


def error_body(code: int, message: str) -> dict:
    return ErrorResponse(error=ErrorDetail(code=code, message=message)).model_dump()

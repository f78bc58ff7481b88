import logging
from contextlib import asynccontextmanager
from textwrap import dedent
from typing import Optional

import pydantic
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException as StarletteHTTPException

from fragments_api import __version__
from fragments_api.adapters.storage import BaseStorage, get_storage_backend
from fragments_api.config.settings import Settings
from fragments_api.errors import (
    handle_backend_unavailable,
    handle_broad_exceptions,
    handle_http_exceptions,
    handle_invalid_key,
    handle_not_found,
    handle_pydantic_validation_errors,
    handle_type_mismatch,
    handle_unsupported_type,
)
from fragments_api.exceptions import (
    BackendUnavailableError,
    InvalidKeyError,
    NotFoundError,
    TypeMismatchError,
    UnsupportedTypeError,
)
from fragments_api.logging_config import configure_logging
from fragments_api.routers.fragments import router as fragments_router
from fragments_api.routers.health import router as health_router
from fragments_api.services.fragment_service import FragmentService

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, storage: Optional[BaseStorage] = None) -> FastAPI:
    """
    Create a FastAPI application.

    The storage backend is chosen once here, from settings unless one is
    passed in, and is owned by the app's FragmentService until shutdown.
    """
    settings = settings or Settings()
    configure_logging(settings.log_level)

    service = FragmentService(storage or get_storage_backend(settings))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await service.close()

    app = FastAPI(
        title="Fragments API",
        summary="Store and convert text and image fragments",
        version=__version__,
        description=dedent(
            """\
        | Helpful Links | Notes |
        | --- | --- |
        | [FastAPI Documentation](https://fastapi.tiangolo.com/) | |
        """
        ),
        docs_url="/",  # its easier to find the docs when they live on the base url
        generate_unique_id_function=custom_generate_unique_id,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Location"],
    )
    app.state.settings = settings
    app.state.fragment_service = service

    app.include_router(fragments_router, prefix="/v1", tags=["fragments"])
    app.include_router(health_router, tags=["health"])

    app.add_exception_handler(StarletteHTTPException, handle_http_exceptions)
    app.add_exception_handler(RequestValidationError, handle_pydantic_validation_errors)
    app.add_exception_handler(pydantic.ValidationError, handle_pydantic_validation_errors)
    app.add_exception_handler(NotFoundError, handle_not_found)
    app.add_exception_handler(UnsupportedTypeError, handle_unsupported_type)
    app.add_exception_handler(TypeMismatchError, handle_type_mismatch)
    app.add_exception_handler(InvalidKeyError, handle_invalid_key)
    app.add_exception_handler(BackendUnavailableError, handle_backend_unavailable)
    app.middleware("http")(handle_broad_exceptions)

    logger.info(f"Fragments API created with {service.storage.name} backend")
    return app


def custom_generate_unique_id(route: APIRoute):
    """
    Generate prettier `operationId`s in the OpenAPI schema.

    These become the function names in generated client SDKs.
    """
    return f"{route.tags[0]}-{route.name}"


if __name__ == "__main__":
    import uvicorn

    app = create_app()
    uvicorn.run(app, host="0.0.0.0", port=8080)

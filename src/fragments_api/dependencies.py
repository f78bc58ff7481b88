"""Request dependencies: the authenticated owner and the fragment service."""

import hashlib
import logging
import secrets

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from fragments_api.config.settings import Settings
from fragments_api.services.fragment_service import FragmentService

logger = logging.getLogger(__name__)

security = HTTPBasic()


def hash_owner(email: str) -> str:
    """Owners are identified by the SHA-256 hex digest of their email."""
    return hashlib.sha256(email.encode("utf-8")).hexdigest()


def get_owner_id(request: Request, credentials: HTTPBasicCredentials = Depends(security)) -> str:
    """Verify HTTP Basic credentials and return the caller's owner id."""
    settings: Settings = request.app.state.settings
    expected = settings.basic_auth_users.get(credentials.username)
    if expected is None or not secrets.compare_digest(
        expected.encode("utf-8"), credentials.password.encode("utf-8")
    ):
        logger.warning("Rejected credentials for a basic auth request")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Basic"},
        )
    return hash_owner(credentials.username)


def get_fragment_service(request: Request) -> FragmentService:
    return request.app.state.fragment_service

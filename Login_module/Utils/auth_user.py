import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel

from config import settings
from Login_module.Utils import Security

logger = logging.getLogger(__name__)

security_scheme = HTTPBearer(auto_error=False)  # Missing token handled below


class CurrentUser(BaseModel):
    """Identity carried in the access token. Users are managed outside this service."""
    id: int
    email: Optional[str] = None
    name: Optional[str] = None
    role: str = "viewer"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


DEV_USER = CurrentUser(id=1, email="dev@localhost", name="Dev User", role="viewer")


def _user_from_payload(payload: dict) -> CurrentUser:
    user_id = payload.get("sub") or payload.get("id")
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token does not contain user info"
        )
    try:
        return CurrentUser(
            id=int(user_id),
            email=payload.get("email"),
            name=payload.get("name") or payload.get("email"),
            role=payload.get("role") or "viewer",
        )
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user ID format in token"
        )


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
) -> CurrentUser:
    """
    Validates the bearer JWT and returns the current user.
    With DEV_AUTH_BYPASS enabled outside production, requests without a token
    get a limited 'viewer' user instead of a 401.
    """
    token = credentials.credentials.strip() if credentials and credentials.credentials else None

    if not token:
        if settings.DEV_AUTH_BYPASS and not settings.is_production:
            logger.warning("DEV_AUTH_BYPASS enabled: allowing request without token (viewer user injected)")
            return DEV_USER
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required"
        )

    payload = Security.decode_access_token(token)
    return _user_from_payload(payload)


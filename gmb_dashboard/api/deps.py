"""GMB Dashboard: Route Dependencies."""

from typing import AsyncIterator, Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from gmb_dashboard.config import settings
from gmb_dashboard.connectors.gmb.client import GMBClient
from gmb_dashboard.core.security import decode_access_token
from gmb_dashboard.database import get_session
from gmb_dashboard.models.context_models import Principal
from gmb_dashboard.repositories.scoped import ScopedRepository

bearer = HTTPBearer(auto_error=False)


def get_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
) -> Principal:
    """Caller recovered from the bearer token."""
    if credentials is None:
        if settings.allow_anonymous_access:
            return Principal(name="Anonymous", role="Admin")
        raise HTTPException(status_code=401, detail="Missing bearer token")

    claims = decode_access_token(credentials.credentials)
    if claims is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return Principal.from_claims(claims)


def get_repository(
    session: Session = Depends(get_session),
    principal: Principal = Depends(get_principal),
) -> ScopedRepository:
    return ScopedRepository(session, principal.scope)


def require_global(principal: Principal = Depends(get_principal)) -> Principal:
    if not principal.scope.is_global:
        raise HTTPException(status_code=403, detail="Admin access required")
    return principal


async def get_gmb_client() -> AsyncIterator[GMBClient]:
    client = GMBClient()
    try:
        yield client
    finally:
        await client.close()

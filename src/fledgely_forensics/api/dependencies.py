"""Shared FastAPI dependencies for the watermark routes."""

from __future__ import annotations

import hmac

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from fledgely_forensics.config import settings

# auto_error=False so a missing header yields our own 401 instead of a 403
_bearer_scheme = HTTPBearer(auto_error=False)


async def require_service_key(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> None:
    """Validate the ``Authorization: Bearer <FORENSICS_API_KEY>`` header.

    Only the calling service layer holds this key; guardian authorisation
    happens upstream before it asks for a watermarked copy.

    Raises HTTPException(503) when no key is configured and
    HTTPException(401) when the header is missing or wrong.
    """
    if not settings.FORENSICS_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Forensics API key not configured",
        )

    if credentials is None or not hmac.compare_digest(
        credentials.credentials.encode(), settings.FORENSICS_API_KEY.encode()
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

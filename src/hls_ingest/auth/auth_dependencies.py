"""HTTP Basic authentication dependency for the upload endpoint."""

from __future__ import annotations

import hmac
import logging

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from ..config import BasicAuthCredentials

security = HTTPBasic(auto_error=False, realm="Restricted")
logger = logging.getLogger(__name__)

CHALLENGE = {"WWW-Authenticate": 'Basic realm="Restricted"'}


def get_expected_credentials(request: Request) -> BasicAuthCredentials:
    try:
        return request.app.state.credentials  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover
        raise RuntimeError("Basic auth credentials are not configured") from exc


def credentials_match(
    provided: HTTPBasicCredentials, expected: BasicAuthCredentials
) -> bool:
    """Compare both fields in constant time, without short-circuiting."""
    user_ok = hmac.compare_digest(
        provided.username.encode("utf-8"), expected.username.encode("utf-8")
    )
    password_ok = hmac.compare_digest(
        provided.password.encode("utf-8"), expected.password.encode("utf-8")
    )
    return user_ok and password_ok


def require_uploader(
    credentials: HTTPBasicCredentials | None = Depends(security),
    expected: BasicAuthCredentials = Depends(get_expected_credentials),
) -> str:
    if credentials is None or not credentials_match(credentials, expected):
        logger.warning(
            "auth.basic.rejected",
            extra={"has_credentials": credentials is not None},
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers=CHALLENGE,
        )
    return credentials.username


__all__ = ["credentials_match", "get_expected_credentials", "require_uploader"]

"""
Bearer token helpers and route guards.

Tokens are compact JSON Web Tokens signed with HMAC‑SHA256 and
base64url encoded.  They embed the user's claims and an expiration
timestamp (``exp``).  A token is only accepted while the session it
was issued for is still open in the application's
``SessionRegistry``; logging out closes the session and the token
stops working even before it expires.
"""

import base64
import hashlib
import hmac
import json
import time
from typing import Callable, Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import settings
from .session import SessionRegistry
from ..schemas.user import UserRead, UserRole


def _b64_url_encode(data: bytes) -> str:
    """Base64‑url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64‑url encoded string, adding padding if necessary."""
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _sign(message: bytes, secret: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).digest()


def create_access_token(data: Dict[str, str], expires_delta: Optional[int] = None) -> str:
    """Create a signed JWT token with the given payload.

    Parameters
    ----------
    data : dict
        Claims to embed in the token (e.g. {"sub": "user@example.com"}).
    expires_delta : Optional[int]
        Lifetime of the token in seconds.  Defaults to
        ``settings.access_token_expire_minutes * 60``.

    Returns
    -------
    str
        A token of the form ``header.payload.signature``.
    """
    to_encode = data.copy()
    exp_seconds = expires_delta or settings.access_token_expire_minutes * 60
    to_encode["exp"] = int(time.time()) + exp_seconds
    header = {"alg": "HS256", "typ": "JWT"}
    header_b64 = _b64_url_encode(json.dumps(header, separators=(",", ":")).encode("utf-8"))
    payload_b64 = _b64_url_encode(json.dumps(to_encode, separators=(",", ":")).encode("utf-8"))
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    signature_b64 = _b64_url_encode(_sign(signing_input, settings.secret_key))
    return f"{header_b64}.{payload_b64}.{signature_b64}"


def decode_access_token(token: str) -> Optional[Dict[str, str]]:
    """Verify and decode a JWT token.

    Returns the payload when the signature matches and the token has
    not expired, otherwise ``None``.
    """
    parts = token.split(".")
    if len(parts) != 3:
        return None
    header_b64, payload_b64, signature_b64 = parts
    signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
    expected_sig = _sign(signing_input, settings.secret_key)
    try:
        actual_sig = _b64_url_decode(signature_b64)
    except ValueError:
        return None
    if not hmac.compare_digest(expected_sig, actual_sig):
        return None
    try:
        data = json.loads(_b64_url_decode(payload_b64).decode("utf-8"))
    except ValueError:
        return None
    if not isinstance(data, dict) or data.get("exp") is None or int(data["exp"]) < int(time.time()):
        return None
    return data


def token_is_valid(token: str) -> bool:
    return decode_access_token(token) is not None


security = HTTPBearer(auto_error=False)


def get_session_registry(request: Request) -> SessionRegistry:
    """The registry owned by the running application."""
    return request.app.state.sessions


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)) -> str:
    if credentials is None:
        raise _unauthorized("Not authenticated")
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_current_token),
    registry: SessionRegistry = Depends(get_session_registry),
) -> UserRead:
    """Dependency that resolves the authenticated user.

    Raises 401 when the token is missing, forged, expired or belongs
    to a session that has been logged out.
    """
    if decode_access_token(token) is None:
        raise _unauthorized("Invalid or expired token")
    session = registry.resolve(token)
    if session is None or session.user is None:
        raise _unauthorized("Session has ended")
    return session.user


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    registry: SessionRegistry = Depends(get_session_registry),
) -> Optional[UserRead]:
    """Like ``get_current_user`` but returns ``None`` for anonymous callers."""
    if credentials is None:
        return None
    return get_current_user(credentials.credentials, registry)


def require_roles(*roles: UserRole) -> Callable[..., UserRead]:
    """Dependency factory allowing only users with one of ``roles``.

    Use in endpoints via ``Depends(require_roles(UserRole.ADMIN))``.
    """

    def _role_dependency(current_user: UserRead = Depends(get_current_user)) -> UserRead:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return current_user

    return _role_dependency

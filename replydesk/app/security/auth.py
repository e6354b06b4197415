import os
from dataclasses import dataclass
from typing import Optional
from fastapi import Depends, HTTPException, Security, Header
from fastapi.security import APIKeyHeader

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


@dataclass(frozen=True)
class UserContext:
    """Identity of the caller, passed explicitly into every service call."""
    user_id: int


def get_api_key(api_key: str = Security(api_key_header)):
    """Validate API key from header if REPLYDESK_API_KEY env var is set.
    If no expected key configured, allows open access (dev mode)."""
    expected = os.getenv("REPLYDESK_API_KEY")
    if os.getenv('ALLOW_UNAUTH_LOCAL') == '1':
        return None
    if not expected:
        return None  # open mode
    if not api_key or api_key != expected:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return api_key


def get_current_user(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    _key: Optional[str] = Depends(get_api_key),
) -> UserContext:
    # Session auth lives in front of this service; it forwards the user id.
    raw = x_user_id or os.getenv("DEFAULT_USER_ID", "1")
    try:
        user_id = int(raw)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid user id")
    if user_id <= 0:
        raise HTTPException(status_code=401, detail="Invalid user id")
    return UserContext(user_id=user_id)

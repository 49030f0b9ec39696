import secrets
from typing import Optional

from fastapi import Header, HTTPException

from brandwire.config import get_settings


async def require_admin(x_admin_token: Optional[str] = Header(None)):
    """Guard admin routes when an admin token is configured."""
    expected = get_settings().admin_token
    if not expected:
        return
    if not x_admin_token or not secrets.compare_digest(x_admin_token, expected):
        raise HTTPException(status_code=403, detail="Admin access required")

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

import httpx


GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"

logger = logging.getLogger(__name__)


class AuthorizationDenied(Exception):
    pass


def _userinfo_url() -> str:
    return os.getenv("GOOGLE_USERINFO_URL", GOOGLE_USERINFO_URL)


def _timeout() -> float:
    return float(os.getenv("CALENDAR_HTTP_TIMEOUT", "15"))


def allowed_emails() -> List[str]:
    raw = os.getenv("ALLOWED_EMAILS", "")
    return [email.strip().lower() for email in raw.split(",") if email.strip()]


def is_allowed(email: Optional[str]) -> bool:
    if not email:
        return False
    return email.strip().lower() in allowed_emails()


async def fetch_userinfo(
    access_token: str, transport: Optional[httpx.AsyncBaseTransport] = None
) -> Dict[str, Any]:
    async with httpx.AsyncClient(timeout=_timeout(), transport=transport) as client:
        response = await client.get(
            _userinfo_url(),
            headers={"Authorization": f"Bearer {access_token}"},
        )
    response.raise_for_status()
    body = response.json()
    if not isinstance(body, dict):
        raise ValueError(f"userinfo returned {type(body).__name__}, expected an object")
    return body


async def authorize(access_token: str) -> str:
    """Return the token owner's email if it is on the allow-list."""
    try:
        userinfo = await fetch_userinfo(access_token)
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Userinfo lookup failed: %s", exc)
        raise AuthorizationDenied("userinfo_unavailable") from exc
    email = userinfo.get("email")
    if not is_allowed(email):
        logger.warning("Access denied for %s", email or "<unknown>")
        raise AuthorizationDenied("email_not_allowed")
    return email

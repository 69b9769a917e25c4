"""
HMAC signatures and the `auth` cookie.

The cookie value is URL-encoded compact JSON:

    {"username": "...", "timestamp": <epoch ms>, "signature": "<hex>"}

The signature is HMAC-SHA256 over the username only, keyed with the
administrator password. Every consumer of the cookie recomputes it the
same way, so the format must not change without them.
"""

import hashlib
import hmac
import json
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from urllib.parse import quote, unquote


AUTH_COOKIE_NAME = "auth"
AUTH_COOKIE_TTL = timedelta(days=7)


@dataclass(frozen=True)
class AuthCookiePayload:
    username: str
    timestamp: int
    signature: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @property
    def expires_at(self) -> datetime:
        """When the cookie issued with this payload expires."""
        issued = datetime.fromtimestamp(self.timestamp / 1000, tz=timezone.utc)
        return issued + AUTH_COOKIE_TTL



def generate_signature(message: str, secret: str) -> str:
    """Hex-encoded HMAC-SHA256 of `message` keyed with `secret`."""
    return hmac.new(
        secret.encode("utf-8"),
        message.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def verify_signature(message: str, signature: str, secret: str) -> bool:
    expected = generate_signature(message, secret)
    return hmac.compare_digest(expected, signature)


def build_auth_cookie(
    username: str,
    secret: str,
    now: Optional[float] = None,
) -> AuthCookiePayload:
    """
    Assemble the signed payload for `username`.

    Args:
        username: Account the cookie authenticates
        secret: Signing key (the administrator password)
        now: Unix time in seconds, defaults to the current time
    """
    now = time.time() if now is None else now
    return AuthCookiePayload(
        username=username,
        timestamp=int(now * 1000),
        signature=generate_signature(username, secret),
    )


def encode_auth_cookie(payload: AuthCookiePayload) -> str:
    raw = json.dumps(payload.to_dict(), separators=(",", ":"), ensure_ascii=False)
    # Percent-encode everything outside the unreserved set so the value
    # never needs quoting in a Set-Cookie header.
    return quote(raw, safe="")


def decode_auth_cookie(value: Optional[str]) -> Optional[AuthCookiePayload]:
    """Parse a cookie value; None when it is absent or malformed."""
    if not value:
        return None
    try:
        data = json.loads(unquote(value))
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None

    username = data.get("username")
    timestamp = data.get("timestamp")
    signature = data.get("signature")
    if not isinstance(username, str) or not isinstance(signature, str):
        return None
    if not isinstance(timestamp, int) or isinstance(timestamp, bool):
        return None
    return AuthCookiePayload(username=username, timestamp=timestamp, signature=signature)


def verify_auth_cookie(value: Optional[str], secret: str) -> Optional[AuthCookiePayload]:
    """Decode a cookie value and check its signature against `secret`."""
    payload = decode_auth_cookie(value)
    if payload is None:
        return None
    if not verify_signature(payload.username, payload.signature, secret):
        return None
    return payload


def auth_cookie_kwargs(value: str, expires: Optional[datetime] = None) -> dict:
    """Keyword arguments for `Response.set_cookie`."""
    if expires is None:
        expires = datetime.now(timezone.utc) + AUTH_COOKIE_TTL
    return {
        "key": AUTH_COOKIE_NAME,
        "value": value,
        "expires": expires,
        "path": "/",
        "samesite": "lax",
        # Read by client-side code in the installed web app
        "httponly": False,
        "secure": False,
    }

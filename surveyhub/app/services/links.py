"""Share tokens for public survey links, and signed owner access tokens.

Share tokens are opaque random strings stored on the survey. Owner tokens use
HMAC-SHA256 and carry their lifetime (exp) inside the payload.
"""
# app/services/links.py
import time, hmac, hashlib, base64, json, secrets
from typing import Optional
from surveyhub.app.core.config import settings


def _b64u_encode(b: bytes) -> str:
    return base64.urlsafe_b64encode(b).rstrip(b"=").decode()

def _b64u_decode(s: str) -> bytes:
    pad = "=" * (-len(s) % 4)
    return base64.urlsafe_b64decode(s + pad)

def generate_share_token(nbytes: Optional[int] = None) -> str:
    """Mint a random url-safe share token (16 bytes -> 22 characters)."""
    return secrets.token_urlsafe(nbytes or settings.SHARE_TOKEN_BYTES)

def share_url(token: str) -> str:
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/s/{token}"

def sign_token(claims: dict, ttl_sec: int) -> str:
    """Seal owner claims into a dashboard access token.

    Args:
        claims: Who the token speaks for, e.g. `{"role": "owner", "sub": user_id}`.
        ttl_sec: Seconds until the token stops opening the dashboard; stored as `exp`.

    Returns:
        str: `<claims>.<signature>`, both halves unpadded url-safe base64.
    """
    data = claims | {"exp": int(time.time()) + int(ttl_sec)}
    raw = json.dumps(data, separators=(",", ":"), ensure_ascii=False).encode()
    sig = hmac.new(settings.SECRET_KEY.encode(), raw, hashlib.sha256).digest()
    return f"{_b64u_encode(raw)}.{_b64u_encode(sig)}"

def verify_token(token: str) -> Optional[dict]:
    """Open an owner access token taken from the `t` query parameter.

    Returns the claims when the signature matches SECRET_KEY and `exp` has not
    passed. Malformed, tampered and expired tokens all give None, so callers
    answer 401 without learning which check failed.
    """
    try:
        raw_b64, sig_b64 = token.split(".", 1)
        raw = _b64u_decode(raw_b64)
        sig = _b64u_decode(sig_b64)
    except (ValueError, TypeError):
        return None

    expected = hmac.new(settings.SECRET_KEY.encode(), raw, hashlib.sha256).digest()
    if not hmac.compare_digest(sig, expected):
        return None

    try:
        data = json.loads(raw.decode())
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    if not isinstance(data, dict) or data.get("exp", 0) < int(time.time()):
        return None
    return data

def owner_token(user_id: str) -> str:
    return sign_token({"role": "owner", "sub": user_id}, ttl_sec=settings.OWNER_LINK_TTL)

"""
Anti-forgery tokens for admin form submissions.

A token binds an action name and the acting user to an expiry timestamp, signed
with HMAC-SHA256 over the configured secret. Format: ``<expires>.<hexdigest>``.
"""
import hashlib
import hmac
import time

VISIBILITY_ACTION = "hidden_profiles_visibility"


def _sign(secret: str, action: str, user_id: int, expires: int) -> str:
    message = f"{action}:{user_id}:{expires}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def create_token(
    secret: str,
    action: str,
    user_id: int,
    ttl_seconds: int,
    now: float | None = None,
) -> str:
    """Create a token for ``action`` performed by ``user_id``."""
    issued = int(time.time() if now is None else now)
    expires = issued + ttl_seconds
    return f"{expires}.{_sign(secret, action, user_id, expires)}"


def verify_token(
    secret: str,
    token: str | None,
    action: str,
    user_id: int,
    now: float | None = None,
) -> bool:
    """Return True when the token is well-formed, unexpired and signed for this action/user."""
    if not token:
        return False
    expires_str, sep, digest = token.partition(".")
    if not sep or not expires_str.isdigit():
        return False
    expires = int(expires_str)
    current = time.time() if now is None else now
    if current >= expires:
        return False
    expected = _sign(secret, action, user_id, expires)
    return hmac.compare_digest(expected, digest)

"""JWT payload helpers.

Tokens are decoded without signature verification; the API verifies them.
These helpers only read claims for display and routing decisions.
"""

from typing import Any

import jwt


_USER_ID_CLAIMS = ("sub", "user_id", "id")


def decode_jwt(token: str) -> dict[str, Any] | None:
    """Decode a JWT payload without verification.

    Args:
        token: Compact-serialized JWT.

    Returns:
        Payload claims, or None if the token is malformed.
    """
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return None

    return claims if isinstance(claims, dict) else None


def user_id_from_token(token: str | None) -> str | None:
    """Extract the user id from the ``sub``, ``user_id``, or ``id`` claim."""
    if not token:
        return None

    claims = decode_jwt(token)
    if claims is None:
        return None

    for claim in _USER_ID_CLAIMS:
        value = claims.get(claim)
        if value:
            return str(value)
    return None

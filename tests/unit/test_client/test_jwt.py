"""Unit tests for JWT payload helpers."""

import base64
import json
import time
from typing import Any

import jwt

from tenant_api.features.client.jwt import decode_jwt, user_id_from_token


def make_token(claims: dict[str, Any], key: str = "server-side-secret") -> str:
    """Build an HS256 compact JWT with the given payload."""
    return jwt.encode(claims, key, algorithm="HS256")


def raw_token(payload: Any) -> str:
    """Build a compact JWT around an arbitrary JSON payload."""

    def segment(value: Any) -> str:
        raw = json.dumps(value).encode()
        return base64.urlsafe_b64encode(raw).decode().rstrip("=")

    return f"{segment({'alg': 'HS256', 'typ': 'JWT'})}.{segment(payload)}.c2ln"


class TestDecodeJwt:
    """Tests for decode_jwt."""

    def test_decodes_claims(self) -> None:
        """Test that the payload segment is decoded."""
        token = make_token({"sub": "user-1", "tenant": "t1"})

        assert decode_jwt(token) == {"sub": "user-1", "tenant": "t1"}

    def test_signature_not_verified(self) -> None:
        """Test that tokens signed with an unknown key still decode."""
        token = make_token({"sub": "user-1"}, key="someone-elses-key")

        assert decode_jwt(token) == {"sub": "user-1"}

    def test_expired_token_still_decodes(self) -> None:
        """Test that expiry is left to the API to enforce."""
        token = make_token({"sub": "user-1", "exp": int(time.time()) - 60})

        claims = decode_jwt(token)

        assert claims is not None
        assert claims["sub"] == "user-1"

    def test_wrong_segment_count(self) -> None:
        """Test that non-JWT strings are rejected."""
        assert decode_jwt("not-a-token") is None
        assert decode_jwt("a.b") is None

    def test_invalid_payload(self) -> None:
        """Test that undecodable payloads are rejected."""
        assert decode_jwt("header.!!!.signature") is None

    def test_non_object_payload(self) -> None:
        """Test that a JSON array payload is rejected."""
        assert decode_jwt(raw_token([1, 2, 3])) is None


class TestUserIdFromToken:
    """Tests for user_id_from_token."""

    def test_sub_claim(self) -> None:
        """Test the preferred sub claim."""
        assert user_id_from_token(make_token({"sub": "user-1", "id": 9})) == "user-1"

    def test_fallback_claims(self) -> None:
        """Test user_id and id fallbacks."""
        assert user_id_from_token(make_token({"user_id": "user-2"})) == "user-2"
        assert user_id_from_token(make_token({"id": 42})) == "42"

    def test_missing_claims(self) -> None:
        """Test a token without any user claim."""
        assert user_id_from_token(make_token({"role": "admin"})) is None

    def test_no_token(self) -> None:
        """Test that a missing token yields None."""
        assert user_id_from_token(None) is None
        assert user_id_from_token("garbage") is None

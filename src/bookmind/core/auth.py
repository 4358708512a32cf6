"""Login gate based on a third-party ID token.

The token payload is decoded without verifying its signature. This is a UI
gate that keeps casual users out, not a security boundary.
"""

import base64
import binascii
import json
import logging

from pydantic import BaseModel, ValidationError

log = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Login was refused."""


class IdentityClaims(BaseModel):
    """The parts of the ID token payload we care about."""

    email: str
    name: str = ""


def decode_id_token(token: str) -> IdentityClaims:
    """Decode the payload segment of a JWT-style ID token."""
    segments = token.strip().split(".")
    if len(segments) < 2 or not segments[1]:
        raise AuthenticationError("Failed to verify Google account.")

    payload = segments[1]
    padded = payload + "=" * (-len(payload) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded)
        claims = IdentityClaims.model_validate(json.loads(raw.decode("utf-8")))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
        log.warning(f"Failed to decode ID token: {e}")
        raise AuthenticationError("Failed to verify Google account.")

    return claims


def normalize_allow_list(emails: list[str] | tuple[str, ...]) -> frozenset[str]:
    return frozenset(e.strip().lower() for e in emails if e.strip())


def authorize(token: str, allowed_emails: frozenset[str]) -> IdentityClaims:
    """Decode the token and check its email against the allow-list."""
    claims = decode_id_token(token)
    if claims.email.strip().lower() not in allowed_emails:
        log.info(f"Refused login for {claims.email}")
        raise AuthenticationError(
            f"Access Denied: The account {claims.email} is not authorized."
        )
    return claims

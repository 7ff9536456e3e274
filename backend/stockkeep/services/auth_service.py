# Overview: Service-layer operations for credentials; PIN hashing and bearer tokens.

"""
PIN Authentication

WHY: Every stock mutation is attributed to a user, so logins must be
cheap for staff at a counter (short numeric PIN) while the stored digest
stays expensive to brute force (bcrypt).

SECURITY NOTES:
- PINs are 4-8 digits, hashed with bcrypt (cost from PIN_HASH_ROUNDS)
- The raw PIN never reaches storage
- Bearer tokens are signed, timestamped user ids (itsdangerous); nothing
  is stored server-side, so deactivating a user invalidates their token at
  the next request (resolve_token re-reads the user)
"""

from __future__ import annotations

import re
from typing import Optional

import bcrypt
from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..validation import ValidationError

PIN_PATTERN = re.compile(r"^\d{4,8}$")
TOKEN_SALT = "stockkeep-auth-token"


class PinValidationError(ValidationError):
    """Raised when a PIN is not 4-8 digits."""
    pass


def validate_pin(pin) -> str:
    if not isinstance(pin, str) or not PIN_PATTERN.match(pin):
        raise PinValidationError("PIN must be 4-8 digits")
    return pin


def hash_pin(pin: str, rounds: int = 12) -> str:
    """
    Hash a PIN with bcrypt. The PIN is validated first.

    WHY rounds is a parameter: tests drop the cost factor to keep the suite
    fast; production uses PIN_HASH_ROUNDS (default 12).
    """
    validate_pin(pin)
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(pin.encode("utf-8"), salt).decode("utf-8")


def verify_pin(pin: str, pin_hash: str) -> bool:
    """
    Timing-safe check. Malformed digests and non-string input verify as
    False instead of raising.
    """
    if not isinstance(pin, str) or not pin_hash:
        return False
    try:
        return bcrypt.checkpw(pin.encode("utf-8"), pin_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=TOKEN_SALT)


def issue_token(user_id: str) -> str:
    return _serializer().dumps({"uid": user_id})


def resolve_token(token: str) -> Optional[str]:
    """Return the user id inside a valid token, or None if bad or expired."""
    max_age = current_app.config.get("TOKEN_MAX_AGE_SECONDS", 12 * 60 * 60)
    try:
        payload = _serializer().loads(token, max_age=max_age)
    except (SignatureExpired, BadSignature):
        return None
    if not isinstance(payload, dict):
        return None
    return payload.get("uid")

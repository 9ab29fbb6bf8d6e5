"""
Utility helpers shared by the OTP matchers.
"""

import base64
import binascii
import re
import secrets

# ── Constants ─────────────────────────────────────────────────────────────────

DIGITS = 6
MODULUS = 10**DIGITS
PERIOD = 30                  # TOTP time-step length in seconds
SECRET_BYTES = 20            # 160-bit secret, RFC 4226 recommendation
INT64_MAX = 2**63 - 1
INT64_MIN = -(2**63)
MAX_WINDOW_SIZE = 100
DEFAULT_WINDOW_SIZE = 3


class DecodeError(ValueError):
    """Raised when a secret is not valid base-32 key material."""


# ── Base32 ────────────────────────────────────────────────────────────────────

def normalize_secret(secret: str) -> str:
    """
    Normalise a base32 secret: strip spaces and dashes, uppercase, add padding.

    Args:
        secret: Raw secret string as stored or typed by a user.

    Returns:
        Uppercase base32 string with correct padding.

    Raises:
        DecodeError: If the string contains invalid base32 characters.
    """
    if not isinstance(secret, str):
        raise DecodeError("Secret must be a string.")
    secret = re.sub(r"[\s-]", "", secret).upper()
    if not re.fullmatch(r"[A-Z2-7]+=*", secret):
        raise DecodeError("Secret contains invalid base32 characters.")
    secret = secret.rstrip("=")
    return secret + "=" * (-len(secret) % 8)


def decode_secret(secret: str) -> bytes:
    """
    Decode a base32-encoded secret string to raw key bytes.

    Raises:
        DecodeError: On invalid base32 input or an empty key.
    """
    normalized = normalize_secret(secret)
    try:
        key = base64.b32decode(normalized)
    except binascii.Error as exc:
        raise DecodeError(f"Invalid base32 secret: {exc}") from exc
    if not key:
        raise DecodeError("Secret decodes to an empty key.")
    return key


def encode_secret(raw: bytes) -> str:
    """Encode raw bytes as a base32 string (no padding)."""
    return base64.b32encode(raw).decode("ascii").rstrip("=")


def generate_secret(num_bytes: int = SECRET_BYTES) -> str:
    """Return a fresh random secret, base32-encoded without padding."""
    if num_bytes < 1:
        raise ValueError("Secret must be at least one byte long.")
    return encode_secret(secrets.token_bytes(num_bytes))


# ── Display ───────────────────────────────────────────────────────────────────

def format_code(code: int) -> str:
    """
    Render a numeric code with its leading zeros.

    Example::

        >>> format_code(7081)
        "007081"
    """
    return str(code).zfill(DIGITS)


# ── Validation ────────────────────────────────────────────────────────────────

def validate_window_size(window_size: int) -> None:
    if isinstance(window_size, bool) or not isinstance(window_size, int):
        raise ValueError("Window size must be an integer.")
    if window_size < 0 or window_size > MAX_WINDOW_SIZE:
        raise ValueError(f"Window size must be between 0 and {MAX_WINDOW_SIZE}.")


def validate_counter(counter: int) -> None:
    if isinstance(counter, bool) or not isinstance(counter, int):
        raise ValueError("HOTP counter must be an integer.")
    if counter < INT64_MIN or counter > INT64_MAX:
        raise ValueError("HOTP counter must fit in a signed 64-bit integer.")

"""
HOTP (HMAC-based One-Time Password) code generation and matching, RFC 4226.
"""

import hashlib
import hmac
import logging
import struct

from core.state import VerificationState
from core.utils import INT64_MAX, MODULUS, DecodeError, decode_secret

logger = logging.getLogger(__name__)

_UINT64_MASK = 0xFFFFFFFFFFFFFFFF


def hotp_value(key: bytes, value: int) -> int:
    """
    Core HOTP computation (RFC 4226 §5).

    Args:
        key:   Raw decoded secret bytes.
        value: Counter or time-step, encoded as a signed 64-bit integer.

    Returns:
        Integer code in ``0..999999`` (not zero-padded).
    """
    # Two's-complement wrap into 8 bytes, same as an int64 on the wire.
    msg = struct.pack(">Q", value & _UINT64_MASK)
    digest = hmac.new(key, msg, hashlib.sha1).digest()

    # Dynamic truncation
    offset = digest[-1] & 0x0F
    code = (
        (digest[offset] & 0x7F) << 24
        | (digest[offset + 1] & 0xFF) << 16
        | (digest[offset + 2] & 0xFF) << 8
        | (digest[offset + 3] & 0xFF)
    )
    return code % MODULUS


def compute_code(secret_b32: str, value: int) -> int:
    """
    Compute the 6-digit code for ``value`` under a base32 secret.

    Args:
        secret_b32: Base32-encoded shared secret.
        value:      64-bit counter / time-step.

    Returns:
        Integer code in ``0..999999``.

    Raises:
        DecodeError: If ``secret_b32`` is not valid base32.
    """
    return hotp_value(decode_secret(secret_b32), value)


def codes_equal(expected: int, code: int) -> bool:
    """Compare two codes in constant time."""
    return hmac.compare_digest(str(expected).encode(), str(code).encode())


def check_hotp(state: VerificationState, code: int) -> bool:
    """
    Match ``code`` against the counter window and advance the counter.

    Scans ``hotp_counter .. hotp_counter + window_size - 1``. On a match the
    counter moves just past the matched value; otherwise it advances by one.
    The counter saturates at ``2**63 - 1``, after which nothing matches.

    Args:
        state: Verification state, mutated in place.
        code:  Submitted code as an integer.

    Returns:
        True if the code matched.
    """
    counter = state.hotp_counter
    try:
        key = decode_secret(state.secret)
    except DecodeError:
        logger.warning("HOTP secret could not be decoded; rejecting attempt.")
        key = None

    if key is not None:
        for i in range(state.window_size):
            value = counter + i
            if value >= INT64_MAX:
                break
            if codes_equal(hotp_value(key, value), code):
                state.hotp_counter = value + 1
                if i:
                    logger.debug("HOTP counter resynchronised by %d step(s).", i)
                return True

    if counter >= INT64_MAX:
        logger.warning("HOTP counter is exhausted; attempt rejected.")
        state.hotp_counter = INT64_MAX
    else:
        state.hotp_counter = counter + 1
    return False

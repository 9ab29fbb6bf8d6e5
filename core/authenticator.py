"""
Password dispatch: route a submitted password to the scratch, HOTP or TOTP
matcher and report whether it authenticated.

Usage::

    state = VerificationState.from_json(stored)
    state, ok = authenticate(state, "123456")
    store(state.to_json())   # persist before the next attempt

Concurrent attempts against the same credential must be serialised by the
caller; nothing here locks.
"""

import copy
import logging
import re
from typing import Optional, Tuple

from core.hotp import check_hotp
from core.scratch import check_scratch
from core.state import OTPMode, VerificationState
from core.totp import check_totp, current_time_step

logger = logging.getLogger(__name__)

_CODE_RE = re.compile(r"[0-9]{6}")
_SCRATCH_RE = re.compile(r"[1-9][0-9]{7}")


class InvalidCode(ValueError):
    """Raised when a password is not a 6-digit code or an 8-digit scratch code."""


def classify_password(password: str) -> Tuple[int, bool]:
    """
    Parse ``password`` and tell whether it is a scratch code.

    Returns:
        ``(code, is_scratch)``.

    Raises:
        InvalidCode: For any other length or non-digit content.
    """
    if not isinstance(password, str):
        raise InvalidCode("Password must be a string.")

    if _CODE_RE.fullmatch(password):
        scratch = False
    elif _SCRATCH_RE.fullmatch(password):
        scratch = True
    else:
        raise InvalidCode("Password must be 6 digits, or 8 digits not starting with 0.")

    try:
        code = int(password, 10)
    except ValueError as exc:
        raise InvalidCode("Password is not numeric.") from exc
    return code, scratch


def authenticate_in_place(
    state: VerificationState,
    password: str,
    timestamp: Optional[float] = None,
) -> bool:
    """
    Like :func:`authenticate`, but mutates ``state`` directly.

    Raises:
        InvalidCode: If ``password`` is malformed. ``state`` is left untouched.
    """
    code, scratch = classify_password(password)

    if scratch:
        logger.debug("Checking scratch code.")
        return check_scratch(state, code)

    if state.mode is OTPMode.HOTP:
        logger.debug("Checking HOTP code at counter %d.", state.hotp_counter)
        return check_hotp(state, code)

    step = current_time_step(state.utc, timestamp)
    logger.debug("Checking TOTP code around time-step %d.", step)
    return check_totp(state, step, code)


def authenticate(
    state: VerificationState,
    password: str,
    timestamp: Optional[float] = None,
) -> Tuple[VerificationState, bool]:
    """
    Verify ``password`` against ``state``.

    The input state is not modified; the returned copy carries the advanced
    HOTP counter, the updated replay-prevention list or the reduced scratch
    codes, and must be persisted by the caller.

    Args:
        state:     Current verification state.
        password:  Submitted password text.
        timestamp: Override Unix timestamp for the TOTP path.

    Returns:
        ``(new_state, matched)``.

    Raises:
        InvalidCode: If ``password`` is malformed.
    """
    new_state = copy.deepcopy(state)
    matched = authenticate_in_place(new_state, password, timestamp)
    return new_state, matched

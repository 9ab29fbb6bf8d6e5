"""
TOTP (Time-based One-Time Password) matching following RFC 6238.

Codes are bound to 30-second time-steps and verified against a window of
steps around the current one, with optional replay prevention.
"""

import bisect
import logging
import time
from typing import Optional

from core.hotp import codes_equal, hotp_value
from core.state import VerificationState
from core.utils import PERIOD, DecodeError, decode_secret

logger = logging.getLogger(__name__)


def current_time_step(utc: bool = True, timestamp: Optional[float] = None) -> int:
    """
    Return the time-step ``floor(seconds / 30)`` for now or ``timestamp``.

    Args:
        utc:       Kept for the persisted ``utc`` flag. POSIX seconds are
                   zone-independent, so both settings give the same step.
        timestamp: Override Unix timestamp (uses time.time() if None).
    """
    t = timestamp if timestamp is not None else time.time()
    return int(t // PERIOD)


def check_totp(state: VerificationState, current_step: int, code: int) -> bool:
    """
    Match ``code`` against the time-steps around ``current_step``.

    The window spans ``current_step - window_size // 2`` to
    ``current_step + window_size // 2`` inclusive. The first matching step is
    recorded in ``state.prevented_timestamps`` (unless prevention is disabled)
    and entries older than the window are pruned. A step already recorded
    is rejected as a replay.

    Args:
        state:        Verification state, mutated in place on success.
        current_step: Time-step to centre the window on.
        code:         Submitted code as an integer.

    Returns:
        True if the code matched a step that had not been used before.
    """
    try:
        key = decode_secret(state.secret)
    except DecodeError:
        logger.warning("TOTP secret could not be decoded; rejecting attempt.")
        return False

    half = state.window_size // 2
    min_step = current_step - half
    max_step = current_step + half

    for step in range(min_step, max_step + 1):
        if not codes_equal(hotp_value(key, step), code):
            continue

        prevented = state.prevented_timestamps
        if prevented is None:
            return True
        if step in prevented:
            logger.warning("Rejected replayed TOTP code for time-step %d.", step)
            return False

        prevented.append(step)
        prevented.sort()
        # Everything before the window's lower edge can no longer match.
        del prevented[: bisect.bisect_left(prevented, min_step)]
        return True

    return False

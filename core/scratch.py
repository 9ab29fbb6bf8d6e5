"""
Single-use scratch (backup) codes.
"""

import secrets
from typing import List

from core.state import VerificationState

SCRATCH_CODE_LENGTH = 8
_SCRATCH_MIN = 10 ** (SCRATCH_CODE_LENGTH - 1)   # leading digit must be 1-9
_SCRATCH_SPAN = 9 * _SCRATCH_MIN


def generate_scratch_codes(count: int = 5) -> List[int]:
    """Return ``count`` random 8-digit scratch codes with a non-zero lead digit."""
    if count < 0:
        raise ValueError("Scratch code count must be non-negative.")
    return [_SCRATCH_MIN + secrets.randbelow(_SCRATCH_SPAN) for _ in range(count)]


def check_scratch(state: VerificationState, code: int) -> bool:
    """
    Consume ``code`` if it is one of the state's scratch codes.

    The matched entry is overwritten with the last one and the list is
    truncated, so order is not preserved. Duplicate entries are consumed one
    at a time.
    """
    codes = state.scratch_codes
    for i, value in enumerate(codes):
        if value == code:
            codes[i] = codes[-1]
            codes.pop()
            return True
    return False

"""
Per-credential verification state.

The engine keeps no storage of its own: callers load a
:class:`VerificationState` before each attempt and persist the state returned
by :func:`core.authenticator.authenticate` before the next one.

Serialised schema
-----------------
    secret                text     required, base32
    window_size           integer  0..100
    hotp_counter          integer  optional, signed 64-bit, default 0 (> 0 selects HOTP)
    prevented_timestamps  [int]    optional; absent or null disables replay prevention
    scratch_codes         [int]    optional
    utc                   boolean  optional, default false
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from core.utils import (
    DEFAULT_WINDOW_SIZE,
    decode_secret,
    generate_secret,
    validate_counter,
    validate_window_size,
)

# Key used by older serialisations for the replay-prevention list.
_LEGACY_PREVENTED_KEY = "disallow_reuse"


class OTPMode(str, Enum):
    """Which algorithm a state is verified with."""

    HOTP = "hotp"
    TOTP = "totp"


@dataclass
class VerificationState:
    """Mutable verification state for a single credential."""

    secret: str
    window_size: int = DEFAULT_WINDOW_SIZE
    hotp_counter: int = 0
    prevented_timestamps: Optional[List[int]] = field(default_factory=list)
    scratch_codes: List[int] = field(default_factory=list)
    utc: bool = False

    @property
    def mode(self) -> OTPMode:
        # A zero counter cannot be told apart from "never used HOTP".
        return OTPMode.HOTP if self.hotp_counter > 0 else OTPMode.TOTP

    @property
    def replay_prevention(self) -> bool:
        return self.prevented_timestamps is not None

    # ── Construction ──────────────────────────────────────────────────────

    @classmethod
    def create(
        cls,
        window_size: int = DEFAULT_WINDOW_SIZE,
        hotp_counter: int = 0,
        scratch_count: int = 0,
        utc: bool = False,
    ) -> "VerificationState":
        """
        Bootstrap a new credential with a random secret.

        Args:
            window_size:   Drift tolerance (see :attr:`window_size`).
            hotp_counter:  Initial counter; pass 1 or more for an HOTP credential.
            scratch_count: Number of single-use backup codes to generate.
            utc:           Persisted time-zone flag; time-steps are always Unix-based.
        """
        # Imported here: core.scratch depends on this module.
        from core.scratch import generate_scratch_codes

        state = cls(
            secret=generate_secret(),
            window_size=window_size,
            hotp_counter=hotp_counter,
            scratch_codes=generate_scratch_codes(scratch_count),
            utc=utc,
        )
        state.validate()
        return state

    def validate(self) -> None:
        """
        Check the state against the persisted schema.

        Raises:
            ValueError: If any field is out of range. A bad secret raises
                :class:`core.utils.DecodeError`, itself a ``ValueError``.
        """
        if not self.secret:
            raise ValueError("Secret is required.")
        decode_secret(self.secret)
        validate_window_size(self.window_size)
        validate_counter(self.hotp_counter)
        if self.prevented_timestamps is not None:
            _validate_int_list(self.prevented_timestamps, "prevented_timestamps")
        _validate_int_list(self.scratch_codes, "scratch_codes")
        if not isinstance(self.utc, bool):
            raise ValueError("'utc' must be a boolean.")

    # ── Serialisation ─────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        return {
            "secret": self.secret,
            "window_size": self.window_size,
            "hotp_counter": self.hotp_counter,
            "prevented_timestamps": (
                list(self.prevented_timestamps)
                if self.prevented_timestamps is not None
                else None
            ),
            "scratch_codes": list(self.scratch_codes),
            "utc": self.utc,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "VerificationState":
        """
        Build and validate a state from its serialised form.

        A missing or ``null`` ``prevented_timestamps`` key leaves replay
        prevention disabled; a list, even an empty one, enables it. The older
        ``disallow_reuse`` key is accepted in its place.
        """
        if "secret" not in data:
            raise ValueError("Missing 'secret' in verification state.")

        if "prevented_timestamps" in data:
            prevented = data["prevented_timestamps"]
        else:
            prevented = data.get(_LEGACY_PREVENTED_KEY)

        state = cls(
            secret=data["secret"],
            window_size=data.get("window_size", DEFAULT_WINDOW_SIZE),
            hotp_counter=data.get("hotp_counter") or 0,
            prevented_timestamps=list(prevented) if prevented is not None else None,
            scratch_codes=list(data.get("scratch_codes") or []),
            utc=data.get("utc", False),
        )
        state.validate()
        return state

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, json_str: str) -> "VerificationState":
        return cls.from_dict(json.loads(json_str))


def _validate_int_list(values: List[int], name: str) -> None:
    if not isinstance(values, list):
        raise ValueError(f"'{name}' must be a list of integers.")
    for value in values:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"'{name}' must contain only integers.")

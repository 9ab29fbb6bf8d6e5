"""Tests for core.state and core.utils."""

import json

import pytest

from core.authenticator import classify_password
from core.state import OTPMode, VerificationState
from core.utils import (
    DecodeError,
    decode_secret,
    encode_secret,
    format_code,
    generate_secret,
    normalize_secret,
)

SECRET = "JBSWY3DPEHPK3PXP"


# ── Mode ──────────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("counter,mode", [(0, OTPMode.TOTP), (1, OTPMode.HOTP), (42, OTPMode.HOTP)])
def test_mode_derived_from_counter(counter: int, mode: OTPMode) -> None:
    assert VerificationState(secret=SECRET, hotp_counter=counter).mode is mode


def test_defaults_enable_replay_prevention() -> None:
    state = VerificationState(secret=SECRET)
    assert state.replay_prevention
    assert state.prevented_timestamps == []
    assert state.scratch_codes == []
    assert state.utc is False


# ── Schema ────────────────────────────────────────────────────────────────────

def test_from_dict_minimal() -> None:
    state = VerificationState.from_dict({"secret": SECRET, "window_size": 3})
    assert state.hotp_counter == 0
    assert state.prevented_timestamps is None
    assert not state.replay_prevention


def test_from_dict_empty_prevented_enables_replay_prevention() -> None:
    state = VerificationState.from_dict(
        {"secret": SECRET, "window_size": 3, "prevented_timestamps": []}
    )
    assert state.prevented_timestamps == []
    assert state.replay_prevention


@pytest.mark.parametrize("counter", [-1, -5, -(2**63)])
def test_from_dict_negative_counter_selects_totp(counter: int) -> None:
    state = VerificationState.from_dict({"secret": SECRET, "hotp_counter": counter})
    assert state.hotp_counter == counter
    assert state.mode is OTPMode.TOTP


def test_from_dict_null_prevented_disables_replay_prevention() -> None:
    state = VerificationState.from_dict(
        {"secret": SECRET, "window_size": 3, "prevented_timestamps": None}
    )
    assert not state.replay_prevention


def test_from_dict_accepts_disallow_reuse_key() -> None:
    state = VerificationState.from_dict(
        {"secret": SECRET, "window_size": 3, "disallow_reuse": [5, 6]}
    )
    assert state.prevented_timestamps == [5, 6]


def test_from_dict_null_counter_means_zero() -> None:
    state = VerificationState.from_dict({"secret": SECRET, "hotp_counter": None})
    assert state.hotp_counter == 0


def test_json_roundtrip() -> None:
    state = VerificationState(
        secret=SECRET,
        window_size=5,
        hotp_counter=9,
        prevented_timestamps=[1, 2],
        scratch_codes=[12345678],
        utc=True,
    )
    data = json.loads(state.to_json())
    assert data["prevented_timestamps"] == [1, 2]
    assert VerificationState.from_json(state.to_json()) == state


def test_to_dict_copies_lists() -> None:
    state = VerificationState(secret=SECRET, scratch_codes=[12345678])
    state.to_dict()["scratch_codes"].append(1)
    assert state.scratch_codes == [12345678]


@pytest.mark.parametrize(
    "data,match",
    [
        ({"window_size": 3}, "secret"),
        ({"secret": ""}, "required"),
        ({"secret": "ABC123"}, "base32"),
        ({"secret": SECRET, "window_size": 101}, "Window"),
        ({"secret": SECRET, "window_size": -1}, "Window"),
        ({"secret": SECRET, "window_size": "3"}, "Window"),
        ({"secret": SECRET, "hotp_counter": -(2**63) - 1}, "counter"),
        ({"secret": SECRET, "hotp_counter": 2**63}, "counter"),
        ({"secret": SECRET, "scratch_codes": ["12345678"]}, "scratch_codes"),
        ({"secret": SECRET, "prevented_timestamps": [1.5]}, "prevented_timestamps"),
        ({"secret": SECRET, "utc": "yes"}, "utc"),
    ],
)
def test_from_dict_rejects_invalid(data: dict, match: str) -> None:
    with pytest.raises(ValueError, match=match):
        VerificationState.from_dict(data)


def test_window_size_bounds_inclusive() -> None:
    VerificationState(secret=SECRET, window_size=0).validate()
    VerificationState(secret=SECRET, window_size=100).validate()


# ── Bootstrap ─────────────────────────────────────────────────────────────────

def test_create_generates_usable_state() -> None:
    state = VerificationState.create(window_size=5, scratch_count=5, utc=True)
    assert len(decode_secret(state.secret)) == 20
    assert state.window_size == 5
    assert state.mode is OTPMode.TOTP
    assert len(state.scratch_codes) == 5
    for code in state.scratch_codes:
        assert classify_password(str(code)) == (code, True)


def test_create_hotp_credential() -> None:
    state = VerificationState.create(hotp_counter=1)
    assert state.mode is OTPMode.HOTP


def test_generate_secret_unique() -> None:
    assert generate_secret() != generate_secret()
    assert "=" not in generate_secret(16)


# ── Secret helpers ────────────────────────────────────────────────────────────

def test_normalize_secret_strips_spaces_and_dashes() -> None:
    assert normalize_secret("jbsw y3dp-ehpk 3pxp") == SECRET


def test_normalize_secret_adds_padding() -> None:
    assert normalize_secret("JBSWY3DPEE") == "JBSWY3DPEE======"


def test_decode_secret_roundtrip() -> None:
    raw = b"\x00\x01\x02\x03\x04\x05\x06\x07\x08\x09"
    assert decode_secret(encode_secret(raw)) == raw


@pytest.mark.parametrize("secret", ["!!!NOTBASE32!!!", "ABC123", "", "=", "A"])
def test_decode_secret_invalid_raises(secret: str) -> None:
    with pytest.raises(DecodeError):
        decode_secret(secret)


def test_decode_error_is_value_error() -> None:
    assert issubclass(DecodeError, ValueError)


def test_format_code_zero_pads() -> None:
    assert format_code(7081) == "007081"
    assert format_code(123456) == "123456"

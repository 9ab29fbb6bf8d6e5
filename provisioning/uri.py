"""
Build otpauth:// provisioning URIs as defined by the Google Authenticator Key
URI Format.

Reference: https://github.com/google/google-authenticator/wiki/Key-Uri-Format
"""

import urllib.parse

from core.state import OTPMode, VerificationState


def build_uri(state: VerificationState, account_label: str, issuer: str = "") -> str:
    """
    Build the provisioning URI for ``state``.

    The issuer, when given, is written both as the label prefix and as the
    ``issuer`` parameter; authenticator apps disagree on which one they read.

    Args:
        state:         Verification state; ``hotp_counter > 0`` selects HOTP.
        account_label: Account name shown in the authenticator app.
        issuer:        Optional service name.

    Returns:
        ``otpauth://{totp|hotp}/[ISSUER:]LABEL?secret=...[&issuer=...][&counter=N]``
    """
    mode = state.mode

    label = urllib.parse.quote(account_label, safe="")
    if issuer:
        label = f"{urllib.parse.quote(issuer, safe='')}:{label}"

    params = {"secret": state.secret}
    if issuer:
        params["issuer"] = issuer
    if mode is OTPMode.HOTP:
        params["counter"] = str(state.hotp_counter)

    query = urllib.parse.urlencode(params, quote_via=urllib.parse.quote)
    return f"otpauth://{mode.value}/{label}?{query}"


def provision_uri(state: VerificationState, account_label: str) -> str:
    """Build the provisioning URI without an issuer."""
    return build_uri(state, account_label)

"""Flow outcomes that drive mode transitions"""
from enum import Enum


class Outcome(Enum):
    """Result of a user action or gateway call"""
    AUTHENTICATED = "authenticated"
    UNVERIFIED = "unverified"
    REGISTERED = "registered"
    DUPLICATE_UNVERIFIED = "duplicate_unverified"
    VERIFIED = "verified"
    CODE_RESENT = "code_resent"
    RESET_REQUESTED = "reset_requested"
    PASSWORD_RESET = "password_reset"
    SIGNED_OUT = "signed_out"
    FAILED = "failed"


__all__ = [
    'Outcome'
]

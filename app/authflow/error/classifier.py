"""Failure classification

Maps raw identity authority failures onto the closed set of FailureKind
conditions. The authority mixes structured codes with free-text messages
depending on call type, so a recognized code wins and the message is
matched only when the code is missing or unrecognized.
"""

import logging
from typing import Optional

from .types import UNEXPECTED_ERROR_MESSAGE, AuthFailure, FailureKind

logger = logging.getLogger(__name__)

# Provider codes
FAILURE_CODES = {
    "UserNotConfirmedException": FailureKind.UNVERIFIED_ACCOUNT,
    "UsernameExistsException": FailureKind.DUPLICATE_ACCOUNT,
    "AliasExistsException": FailureKind.DUPLICATE_ACCOUNT,
    "NotAuthorizedException": FailureKind.INVALID_CREDENTIALS,
    "UserNotFoundException": FailureKind.INVALID_CREDENTIALS,
    "CodeMismatchException": FailureKind.INVALID_OR_EXPIRED_CODE,
    "ExpiredCodeException": FailureKind.INVALID_OR_EXPIRED_CODE,
}

# Lowercase message fragments, checked in order
FAILURE_MESSAGES = (
    ("not confirmed", FailureKind.UNVERIFIED_ACCOUNT),
    ("already exists", FailureKind.DUPLICATE_ACCOUNT),
    ("incorrect username or password", FailureKind.INVALID_CREDENTIALS),
    ("invalid verification code", FailureKind.INVALID_OR_EXPIRED_CODE),
    ("expired", FailureKind.INVALID_OR_EXPIRED_CODE),
)


def classify_failure(failure: Optional[AuthFailure]) -> FailureKind:
    """Classify a raw failure descriptor

    Args:
        failure: Failure reported by the gateway

    Returns:
        FailureKind: Recognized condition, UNKNOWN if nothing matches
    """
    if failure is None:
        return FailureKind.UNKNOWN

    if failure.code:
        # Some endpoints prefix the code with a namespace ("...#Code")
        code = failure.code.rsplit("#", 1)[-1]
        kind = FAILURE_CODES.get(code)
        if kind is not None:
            return kind
        logger.debug(f"Unrecognized failure code: {code}")

    message = (failure.message or "").lower()
    for fragment, kind in FAILURE_MESSAGES:
        if fragment in message:
            return kind

    return FailureKind.UNKNOWN


def failure_message(failure: Optional[AuthFailure], fallback: str = UNEXPECTED_ERROR_MESSAGE) -> str:
    """Get the user-facing message for a failure

    The provider message is surfaced verbatim; the fallback is used only
    when the provider sent none.
    """
    if failure is not None and failure.message:
        return failure.message
    return fallback

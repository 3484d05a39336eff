"""Credential validators

Pure checks on user-supplied identifiers and passwords. They run before
every submit, never touch the network and never mutate shared state.
"""
import re
from typing import Dict, Mapping

from authflow.config.constants import (CODE, CONFIRM_PASSWORD, EMAIL,
                                       EMAIL_INVALID, IDENTIFIER,
                                       IDENTIFIER_INVALID,
                                       IDENTIFIER_REQUIRED,
                                       MIN_PASSWORD_LENGTH,
                                       MIN_USERNAME_LENGTH, NEW_PASSWORD,
                                       PASSWORD, PASSWORD_MISMATCH,
                                       PASSWORD_POLICY, PASSWORD_REQUIRED,
                                       PASSWORD_SYMBOLS, RESET_CODE_REQUIRED,
                                       VERIFICATION_CODE_REQUIRED, FlowMode,
                                       IdentifierKind)
from authflow.error.types import ValidationResult

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@.]+(\.[^\s@.]+)+$")
USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")
PASSWORD_PATTERN = re.compile(
    r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[{symbols}])[A-Za-z\d{symbols}]{{{length},}}$".format(
        symbols=re.escape(PASSWORD_SYMBOLS),
        length=MIN_PASSWORD_LENGTH
    )
)


def validate_email(value: str) -> bool:
    """Check email shape: local@domain.tld"""
    return isinstance(value, str) and bool(EMAIL_PATTERN.match(value))


def validate_username(value: str) -> bool:
    """Check username: at least 3 letters, digits or underscores"""
    return (
        isinstance(value, str)
        and len(value) >= MIN_USERNAME_LENGTH
        and bool(USERNAME_PATTERN.match(value))
    )


def validate_identifier(value: str, kind: IdentifierKind = IdentifierKind.USERNAME) -> bool:
    """Check identifier shape for the configured identifier model"""
    if kind is IdentifierKind.EMAIL:
        return validate_email(value)
    return validate_username(value)


def validate_password(value: str) -> bool:
    """Check password policy

    At least 8 characters with a lowercase letter, an uppercase letter,
    a digit and one of PASSWORD_SYMBOLS. No other characters allowed.
    """
    return isinstance(value, str) and bool(PASSWORD_PATTERN.match(value))


def _present(fields: Mapping[str, str], name: str) -> bool:
    return bool((fields.get(name) or "").strip())


def validate_form(
    mode: FlowMode,
    fields: Mapping[str, str],
    kind: IdentifierKind = IdentifierKind.USERNAME
) -> Dict[str, str]:
    """Apply the rule set for a flow mode

    Args:
        mode: Active flow mode
        fields: Draft field values keyed by field name
        kind: Identifier model

    Returns:
        Dict[str, str]: Field name to message for each failing field,
        empty when the form is valid
    """
    errors: Dict[str, str] = {}
    identifier = (fields.get(IDENTIFIER) or "").strip()

    match mode:
        case FlowMode.LOGIN:
            if not identifier:
                errors[IDENTIFIER] = IDENTIFIER_REQUIRED[kind]
            if not fields.get(PASSWORD):
                errors[PASSWORD] = PASSWORD_REQUIRED

        case FlowMode.SIGNUP:
            if not validate_identifier(identifier, kind):
                errors[IDENTIFIER] = IDENTIFIER_INVALID[kind]
            # With email identifiers the identifier is the email
            if kind is IdentifierKind.USERNAME and not validate_email((fields.get(EMAIL) or "").strip()):
                errors[EMAIL] = EMAIL_INVALID
            if not validate_password(fields.get(PASSWORD) or ""):
                errors[PASSWORD] = PASSWORD_POLICY
            if fields.get(PASSWORD) != fields.get(CONFIRM_PASSWORD):
                errors[CONFIRM_PASSWORD] = PASSWORD_MISMATCH

        case FlowMode.VERIFY:
            if not _present(fields, CODE):
                errors[CODE] = VERIFICATION_CODE_REQUIRED

        case FlowMode.RESET_REQUEST:
            if not identifier:
                errors[IDENTIFIER] = IDENTIFIER_REQUIRED[kind]
            elif not validate_identifier(identifier, kind):
                errors[IDENTIFIER] = IDENTIFIER_INVALID[kind]

        case FlowMode.RESET_CONFIRM:
            if not _present(fields, CODE):
                errors[CODE] = RESET_CODE_REQUIRED
            if not validate_password(fields.get(NEW_PASSWORD) or ""):
                errors[NEW_PASSWORD] = PASSWORD_POLICY

    return errors


def check_form(
    mode: FlowMode,
    fields: Mapping[str, str],
    kind: IdentifierKind = IdentifierKind.USERNAME
) -> ValidationResult:
    """validate_form wrapped in a ValidationResult"""
    return ValidationResult.from_errors(validate_form(mode, fields, kind))

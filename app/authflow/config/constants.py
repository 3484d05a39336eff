"""Constants and configuration exports

Flow modes, identifier models, form field names and the user-facing
messages shown by the flow controller.
"""
from enum import Enum


class FlowMode(Enum):
    """Active step of the account lifecycle"""
    LOGIN = "login"
    SIGNUP = "signup"
    VERIFY = "verify"
    RESET_REQUEST = "resetRequest"
    RESET_CONFIRM = "resetConfirm"


class IdentifierKind(Enum):
    """Which value identifies an account at the authority"""
    USERNAME = "username"
    EMAIL = "email"


# Draft fields
IDENTIFIER = "identifier"
EMAIL = "email"
PASSWORD = "password"
CONFIRM_PASSWORD = "confirm_password"
NEW_PASSWORD = "new_password"
CODE = "code"

DRAFT_FIELDS = (IDENTIFIER, EMAIL, PASSWORD, CONFIRM_PASSWORD, NEW_PASSWORD, CODE)

# Cleared on every mode transition
SECRET_FIELDS = (PASSWORD, CONFIRM_PASSWORD, NEW_PASSWORD, CODE)

# Field that receives focus when a mode is entered
PRIMARY_FIELDS = {
    FlowMode.LOGIN: IDENTIFIER,
    FlowMode.SIGNUP: IDENTIFIER,
    FlowMode.VERIFY: CODE,
    FlowMode.RESET_REQUEST: IDENTIFIER,
    FlowMode.RESET_CONFIRM: CODE,
}

# Accepted password punctuation
PASSWORD_SYMBOLS = "@$!%*?&"

MIN_PASSWORD_LENGTH = 8
MIN_USERNAME_LENGTH = 3

# Validation messages
IDENTIFIER_REQUIRED = {
    IdentifierKind.USERNAME: "Username is required",
    IdentifierKind.EMAIL: "Email is required",
}
IDENTIFIER_INVALID = {
    IdentifierKind.USERNAME: "Username must be at least 3 characters and contain only letters, numbers, and underscores",
    IdentifierKind.EMAIL: "Please enter a valid email address",
}
PASSWORD_REQUIRED = "Password is required"
EMAIL_INVALID = "Please enter a valid email address"
PASSWORD_POLICY = "Password must be at least 8 characters with uppercase, lowercase, number, and special character"
PASSWORD_MISMATCH = "Passwords do not match"
VERIFICATION_CODE_REQUIRED = "Verification code is required"
RESET_CODE_REQUIRED = "Reset code is required"

# Flow messages
LOGIN_SUCCESS = "Login successful!"
LOGIN_FAILED = "Login failed. Please try again."
VERIFY_REQUIRED = "Please verify your account. A new verification code will be sent."
ACCOUNT_EXISTS_UNVERIFIED = "An account with these details already exists but is not verified. A new verification code has been sent."
SIGNUP_SUCCESS = "Account created successfully! Please check your email for verification code."
SIGNUP_FAILED = "Signup failed. Please try again."
VERIFY_SUCCESS = "Account verified successfully! You can now log in."
VERIFY_FAILED = "Verification failed. Please try again."
CODE_RESENT = "A new verification code has been sent to your email."
RESEND_FAILED = "Failed to resend code. Please try again."
RESEND_NEEDS_IDENTIFIER = {
    IdentifierKind.USERNAME: "Username is required to resend code",
    IdentifierKind.EMAIL: "Email is required to resend code",
}
VERIFY_NEEDS_IDENTIFIER = {
    IdentifierKind.USERNAME: "Username is required to verify your account",
    IdentifierKind.EMAIL: "Email is required to verify your account",
}
RESET_CODE_SENT = "Reset code sent to your email."
RESET_REQUEST_FAILED = "Failed to send reset code. Please try again."
RESET_SUCCESS = "Password reset successfully! You can now log in."
RESET_FAILED = "Password reset failed. Please try again."
SESSION_EXPIRED = "Session expired. Please log in again."
SIGNED_OUT = "You have been signed out."

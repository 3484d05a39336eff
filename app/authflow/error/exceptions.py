"""Core exceptions with clear error boundaries

This module defines the base exceptions used throughout authflow.
Each exception maps to a specific error type with clear boundaries.

Authority and transport failures never leave the gateway as exceptions,
they are converted to AuthFailure values. These exceptions cover the
layers below and around that boundary.
"""

from typing import Dict, Optional


class AuthFlowException(Exception):
    """Base exception with error details"""
    def __init__(self, message: str, details: Optional[Dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationException(AuthFlowException):
    """Field validation errors"""
    def __init__(
        self,
        message: str,
        field: str,
        mode: str,
        errors: Optional[Dict[str, str]] = None
    ):
        details = {
            "field": field,
            "mode": mode,
            "errors": errors or {}
        }
        super().__init__(message, details)


class FlowException(AuthFlowException):
    """Flow business logic errors"""
    def __init__(
        self,
        message: str,
        mode: str,
        action: str,
        data: Optional[Dict] = None
    ):
        details = {
            "mode": mode,
            "action": action,
            "data": data or {}
        }
        super().__init__(message, details)


class SystemException(AuthFlowException):
    """System technical errors"""
    def __init__(
        self,
        message: str,
        code: str,
        service: str,
        action: str
    ):
        details = {
            "code": code,
            "service": service,
            "action": action
        }
        super().__init__(message, details)


# Specific flow exceptions
class InvalidTransitionException(FlowException):
    """No transition defined for a mode/outcome pair"""
    pass


# Specific system exceptions
class ConfigurationException(SystemException):
    """System configuration errors"""
    pass


class GatewayException(SystemException):
    """Identity authority request errors"""
    pass

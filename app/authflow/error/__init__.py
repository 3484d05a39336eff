"""Error handling

This package provides:
- Exception hierarchy
- Result and failure types
- Failure classification
- Central error handler
"""

from .classifier import classify_failure, failure_message
from .exceptions import (AuthFlowException, ConfigurationException,
                         FlowException, GatewayException,
                         InvalidTransitionException, SystemException,
                         ValidationException)
from .handler import ErrorHandler
from .types import (UNEXPECTED_ERROR_MESSAGE, AuthFailure, AuthResult,
                    FailureKind, ValidationResult)

__all__ = [
    'AuthFailure',
    'AuthFlowException',
    'AuthResult',
    'ConfigurationException',
    'ErrorHandler',
    'FailureKind',
    'FlowException',
    'GatewayException',
    'InvalidTransitionException',
    'SystemException',
    'UNEXPECTED_ERROR_MESSAGE',
    'ValidationException',
    'ValidationResult',
    'classify_failure',
    'failure_message',
]

"""Centralized error handling with clear boundaries

All logged error reports go through the ErrorHandler class.

Error Types:
- validation: Field validation errors (never reach the network)
- flow: Flow business logic errors
- rejection: Recognized authority rejections (wrong password, bad code)
- gateway: Identity authority and unexpected gateway errors

Each error type has a specific structure and boundary.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .types import ERROR_LOG_LEVELS, UNEXPECTED_ERROR_MESSAGE

logger = logging.getLogger(__name__)


class ErrorHandler:
    """Central error handling with clear boundaries"""

    @classmethod
    def _create_error_response(
        cls,
        error_type: str,
        message: str,
        details: Dict,
        context: Optional[Dict] = None
    ) -> Dict:
        """Create standardized error response with context

        Args:
            error_type: Type of error (validation, flow, gateway)
            message: User-facing message
            details: Error details
            context: Optional execution context

        Returns:
            Dict with standardized error structure
        """
        error = {
            "type": error_type,
            "message": message,
            "details": details,
            "context": context or {},
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

        level = logging.getLevelName(ERROR_LOG_LEVELS.get(error_type, "ERROR"))
        logger.log(
            level,
            f"Error handled: {error_type}",
            extra={
                "error": error,
                "details": details,
                "context": context
            }
        )

        return {"error": error}

    @classmethod
    def handle_validation_error(cls, mode: str, errors: Dict[str, str]) -> Dict:
        """Handle form validation failure

        Only field names are recorded, never the submitted values.
        """
        return cls._create_error_response(
            error_type="validation",
            message="Form validation failed",
            details={
                "mode": mode,
                "fields": sorted(errors)
            }
        )

    @classmethod
    def handle_flow_error(
        cls,
        mode: str,
        action: str,
        message: str,
        data: Optional[Dict] = None
    ) -> Dict:
        """Handle flow business logic error"""
        return cls._create_error_response(
            error_type="flow",
            message=message,
            details={
                "mode": mode,
                "action": action,
                "data": data or {}
            }
        )

    @classmethod
    def handle_authority_rejection(cls, operation: str, message: str, code: Optional[str] = None) -> Dict:
        """Handle an expected rejection from the identity authority"""
        return cls._create_error_response(
            error_type="rejection",
            message=message,
            details={
                "operation": operation,
                "code": code
            }
        )

    @classmethod
    def handle_gateway_error(
        cls,
        operation: str,
        message: str = UNEXPECTED_ERROR_MESSAGE,
        code: Optional[str] = None,
        error: Optional[Exception] = None
    ) -> Dict:
        """Handle gateway failure or unexpected gateway exception

        Args:
            operation: Gateway operation name
            message: User-facing message
            code: Provider error code if known
            error: Optional exception raised by the gateway

        Returns:
            Dict with standardized error structure
        """
        details: Dict[str, Any] = {
            "operation": operation,
            "code": code
        }
        if error is not None:
            details["exception"] = f"{type(error).__name__}: {error}"
            logger.exception(f"Gateway operation {operation} raised", exc_info=error)

        return cls._create_error_response(
            error_type="gateway",
            message=message,
            details=details
        )

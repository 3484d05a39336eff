"""Base API functionality using pure functions

The identity authority speaks a JSON-over-HTTPS protocol: every operation
is a POST to the same endpoint, selected by the X-Amz-Target header.
Requests here are single attempt; retrying is left to the user.
"""
import base64
import hashlib
import hmac
import logging
from typing import Any, Dict, Optional

import requests
from requests.exceptions import RequestException

from authflow.config.timing import API_TIMEOUT
from authflow.error.exceptions import GatewayException
from authflow.error.types import AuthFailure

logger = logging.getLogger(__name__)

# Constants
TARGET_PREFIX = "AWSCognitoIdentityProviderService."
CONTENT_TYPE = "application/x-amz-json-1.1"
ERROR_TYPE_HEADER = "x-amzn-ErrorType"

# Payload keys that must never be logged
SENSITIVE_KEYS = {"Password", "PASSWORD", "ConfirmationCode", "AccessToken", "SecretHash", "SECRET_HASH"}


def get_headers(operation: str) -> Dict[str, str]:
    """Get request headers for an authority operation"""
    return {
        "Content-Type": CONTENT_TYPE,
        "X-Amz-Target": f"{TARGET_PREFIX}{operation}",
    }


def get_secret_hash(identifier: str, client_id: str, client_secret: str) -> str:
    """Compute the SECRET_HASH required by app clients with a secret"""
    digest = hmac.new(
        client_secret.encode("utf-8"),
        (identifier + client_id).encode("utf-8"),
        hashlib.sha256
    ).digest()
    return base64.b64encode(digest).decode("utf-8")


def mask_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of payload with secrets masked, for logging"""
    masked = {}
    for key, value in payload.items():
        if key in SENSITIVE_KEYS:
            masked[key] = "***"
        elif isinstance(value, dict):
            masked[key] = mask_payload(value)
        else:
            masked[key] = value
    return masked


def make_api_request(
    url: str,
    operation: str,
    payload: Dict[str, Any],
    timeout: float = API_TIMEOUT
) -> requests.Response:
    """Make a single API request to the identity authority

    Args:
        url: Authority endpoint
        operation: Operation name (e.g. "InitiateAuth")
        payload: JSON body

    Returns:
        requests.Response: Raw response, whatever its status

    Raises:
        GatewayException: If the request could not be completed
    """
    headers = get_headers(operation)

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"Making API request: {operation} -> {url}")
        logger.debug(f"Payload: {mask_payload(payload)}")

    try:
        response = requests.request(
            "POST",
            url,
            headers=headers,
            json=payload,
            timeout=timeout
        )
    except RequestException as e:
        logger.error(f"Request failed: {str(e)}")
        raise GatewayException(
            message=f"Request failed: {str(e)}",
            code="REQUEST_FAILED",
            service="identity_gateway",
            action=operation
        ) from e

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"API Response Status: {response.status_code}")

    return response


def process_api_response(response: requests.Response, operation: str = "") -> Dict[str, Any]:
    """Parse response body as a JSON object

    Raises:
        GatewayException: If the body is not JSON
    """
    if not response.content:
        return {}

    try:
        data = response.json()
    except ValueError as e:
        logger.error(f"Failed to parse response JSON: {e}")
        raise GatewayException(
            message="Invalid JSON response",
            code="PARSE_ERROR",
            service="identity_gateway",
            action=operation or "process_response"
        ) from e

    if not isinstance(data, dict):
        logger.warning("Response data is not a dictionary")
        data = {"data": data}
    return data


def parse_error_response(response: requests.Response, data: Optional[Dict[str, Any]] = None) -> AuthFailure:
    """Extract provider error code and message from an error response

    The code comes from the body's __type, or the x-amzn-ErrorType header,
    with any namespace prefix or ":" suffix removed.
    """
    data = data or {}
    code = data.get("__type") or response.headers.get(ERROR_TYPE_HEADER) or None
    if code:
        code = code.rsplit("#", 1)[-1].split(":", 1)[0] or None
    message = data.get("message") or data.get("Message") or None
    return AuthFailure(code=code, message=message)

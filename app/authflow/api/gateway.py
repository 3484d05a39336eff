"""Identity gateway for a Cognito-style user pool

Runs blocking requests calls in a worker thread so the flow controller can
await them on its event loop. Authority errors and transport failures come
back as failed AuthResults.
"""
import asyncio
import logging
from typing import Any, Dict, Optional

from authflow.config.settings import AuthorityConfig
from authflow.error.exceptions import GatewayException
from authflow.error.types import UNEXPECTED_ERROR_MESSAGE, AuthResult

from .base import (get_secret_hash, make_api_request, parse_error_response,
                   process_api_response)
from .interface import IdentityGateway
from .session import SessionHandle

logger = logging.getLogger(__name__)


class CognitoGateway(IdentityGateway):
    """Identity gateway speaking the user pool JSON protocol"""

    def __init__(self, authority: AuthorityConfig):
        """Initialize with injected connection parameters

        Args:
            authority: Identity authority configuration
        """
        self.authority = authority

    def _client_payload(self, identifier: Optional[str] = None, **fields: Any) -> Dict[str, Any]:
        """Base payload with client id and, if configured, secret hash"""
        payload: Dict[str, Any] = {"ClientId": self.authority.client_id}
        if identifier is not None:
            payload["Username"] = identifier
            if self.authority.client_secret:
                payload["SecretHash"] = get_secret_hash(
                    identifier,
                    self.authority.client_id,
                    self.authority.client_secret
                )
        payload.update(fields)
        return payload

    def _call(self, operation: str, payload: Dict[str, Any]) -> AuthResult[Dict[str, Any]]:
        """Make one blocking call and convert the outcome"""
        try:
            response = make_api_request(
                self.authority.url,
                operation,
                payload,
                timeout=self.authority.timeout
            )
            data = process_api_response(response, operation)
        except GatewayException as e:
            logger.error(f"{operation} failed: {e.message}")
            return AuthResult.failed(message=UNEXPECTED_ERROR_MESSAGE)

        if response.status_code != 200:
            failure = parse_error_response(response, data)
            logger.info(f"{operation} rejected: {failure.code}")
            return AuthResult(ok=False, failure=failure)

        return AuthResult.success(data)

    async def _request(self, operation: str, payload: Dict[str, Any]) -> AuthResult[Dict[str, Any]]:
        return await asyncio.to_thread(self._call, operation, payload)

    @staticmethod
    def _ack(result: AuthResult) -> AuthResult[None]:
        return AuthResult.success() if result.ok else result

    async def authenticate(self, identifier: str, password: str) -> AuthResult[SessionHandle]:
        """Authenticate using the USER_PASSWORD_AUTH flow"""
        logger.info("Attempting to authenticate")
        auth_parameters = {"USERNAME": identifier, "PASSWORD": password}
        if self.authority.client_secret:
            auth_parameters["SECRET_HASH"] = get_secret_hash(
                identifier,
                self.authority.client_id,
                self.authority.client_secret
            )

        result = await self._request("InitiateAuth", {
            "ClientId": self.authority.client_id,
            "AuthFlow": "USER_PASSWORD_AUTH",
            "AuthParameters": auth_parameters,
        })
        if not result.ok:
            return result

        data = result.value or {}
        authentication = data.get("AuthenticationResult")
        if not authentication:
            challenge = data.get("ChallengeName")
            if challenge:
                logger.warning(f"Authentication requires challenge: {challenge}")
                return AuthResult.failed(
                    code="ChallengeRequired",
                    message=f"Additional sign-in step required: {challenge}"
                )
            logger.error("Authentication response missing required fields")
            return AuthResult.failed(message=UNEXPECTED_ERROR_MESSAGE)

        try:
            session = SessionHandle.from_authentication_result(authentication)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Invalid authentication result: {str(e)}")
            return AuthResult.failed(message=UNEXPECTED_ERROR_MESSAGE)

        logger.info("Authentication successful")
        return AuthResult.success(session)

    async def register(self, identifier: str, password: str, email: str) -> AuthResult[None]:
        logger.info("Attempting to register")
        result = await self._request("SignUp", self._client_payload(
            identifier,
            Password=password,
            UserAttributes=[{"Name": "email", "Value": email.strip().lower()}],
        ))
        return self._ack(result)

    async def confirm_registration(self, identifier: str, code: str) -> AuthResult[None]:
        logger.info("Attempting to confirm registration")
        result = await self._request("ConfirmSignUp", self._client_payload(
            identifier,
            ConfirmationCode=code,
            ForceAliasCreation=True,
        ))
        return self._ack(result)

    async def resend_confirmation_code(self, identifier: str) -> AuthResult[None]:
        logger.info("Requesting new confirmation code")
        result = await self._request("ResendConfirmationCode", self._client_payload(identifier))
        return self._ack(result)

    async def request_password_reset(self, identifier: str) -> AuthResult[None]:
        logger.info("Requesting password reset code")
        result = await self._request("ForgotPassword", self._client_payload(identifier))
        return self._ack(result)

    async def confirm_password_reset(self, identifier: str, code: str, new_password: str) -> AuthResult[None]:
        logger.info("Attempting to confirm password reset")
        result = await self._request("ConfirmForgotPassword", self._client_payload(
            identifier,
            ConfirmationCode=code,
            Password=new_password,
        ))
        return self._ack(result)

    async def sign_out(self, session: SessionHandle) -> AuthResult[None]:
        logger.info("Signing out")
        result = await self._request("GlobalSignOut", {"AccessToken": session.access_token})
        return self._ack(result)

"""Identity gateway interface

This module defines the operations the flow controller may invoke on the
external identity authority. Every operation is asynchronous, single
attempt, and resolves to an AuthResult instead of raising for authority
or transport failures.
"""

from abc import ABC, abstractmethod

from authflow.error.types import AuthResult

from .session import SessionHandle


class IdentityGateway(ABC):
    """Interface defining identity authority operations"""

    @abstractmethod
    async def authenticate(self, identifier: str, password: str) -> AuthResult[SessionHandle]:
        """Authenticate with identifier and password

        Returns:
            AuthResult: SessionHandle on success
        """
        pass

    @abstractmethod
    async def register(self, identifier: str, password: str, email: str) -> AuthResult[None]:
        """Register a new account pending verification"""
        pass

    @abstractmethod
    async def confirm_registration(self, identifier: str, code: str) -> AuthResult[None]:
        """Confirm registration with the emailed code"""
        pass

    @abstractmethod
    async def resend_confirmation_code(self, identifier: str) -> AuthResult[None]:
        """Send a new registration code"""
        pass

    @abstractmethod
    async def request_password_reset(self, identifier: str) -> AuthResult[None]:
        """Trigger out-of-band delivery of a reset code"""
        pass

    @abstractmethod
    async def confirm_password_reset(self, identifier: str, code: str, new_password: str) -> AuthResult[None]:
        """Set a new password using the reset code"""
        pass

    @abstractmethod
    async def sign_out(self, session: SessionHandle) -> AuthResult[None]:
        """Invalidate all tokens issued for the session's user"""
        pass

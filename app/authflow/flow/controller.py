"""Flow controller for the account lifecycle.

This module sequences every user action through:
1. Validation of the active form (no network call on failure)
2. A single identity gateway call with the form marked in flight
3. Classification of any failure
4. A transition from the headquarters table plus status messages

Gateway calls are awaited on the caller's event loop. There is no
cancellation: each completion is checked against the flow position it was
issued from and dropped if the user has moved on.
"""

import inspect
import logging
from typing import Any, Awaitable, Callable, Optional

from authflow.api.interface import IdentityGateway
from authflow.api.session import SessionHandle
from authflow.config import constants as msg
from authflow.config.constants import DRAFT_FIELDS, FlowMode, IdentifierKind
from authflow.config.settings import FlowConfig
from authflow.error.classifier import classify_failure, failure_message
from authflow.error.exceptions import ValidationException
from authflow.error.handler import ErrorHandler
from authflow.error.types import (UNEXPECTED_ERROR_MESSAGE, AuthResult,
                                  FailureKind)
from authflow.state.manager import FlowState
from authflow.state.types import FlowSnapshot
from authflow.utils.validators import check_form

from .constants import Outcome
from .headquarters import get_next_mode

logger = logging.getLogger(__name__)

OnAuthenticated = Callable[[SessionHandle], Any]


class FlowController:
    """Drives login, signup, verification and password reset"""

    def __init__(
        self,
        gateway: IdentityGateway,
        on_authenticated: OnAuthenticated,
        config: Optional[FlowConfig] = None
    ):
        """Initialize with injected gateway and host callback

        Args:
            gateway: Identity authority access
            on_authenticated: Called with the session once per successful
                login; may be a coroutine function
            config: Flow options
        """
        self.gateway = gateway
        self.on_authenticated = on_authenticated
        self.config = config or FlowConfig()
        self.state = FlowState()

    @property
    def mode(self) -> FlowMode:
        return self.state.mode

    @property
    def identifier_kind(self) -> IdentifierKind:
        return self.config.identifier_kind

    def snapshot(self) -> FlowSnapshot:
        """Current mode, visible fields and status"""
        return self.state.snapshot()

    def update_field(self, name: str, value: str) -> None:
        """Record a keystroke-level edit of a draft field

        Raises:
            ValidationException: If name is not a draft field
        """
        if name not in DRAFT_FIELDS:
            raise ValidationException(
                message=f"Unknown field: {name}",
                field=name,
                mode=self.mode.value
            )
        self.state.update_field(name, value)

    def switch_mode(self, target: FlowMode) -> None:
        """Navigate to another form

        Clears all transient status and secret fields and discards the
        identifier. Outstanding calls keep running; their results are
        dropped on arrival.
        """
        target = FlowMode(target)
        logger.info(f"Flow navigation: {self.mode.value} -> {target.value}")
        self.state.enter_mode(target, keep_identifier=False)

    async def submit(self) -> bool:
        """Submit the active form

        Returns:
            bool: Whether a gateway call was issued
        """
        mode = self.mode
        if self.state.is_in_flight(mode):
            logger.info(f"Ignoring submit: {mode.value} request in flight")
            return False

        validation = check_form(mode, self.state.draft.as_dict(), self.identifier_kind)
        self.state.set_field_errors(validation.errors)
        if not validation.valid:
            ErrorHandler.handle_validation_error(mode.value, validation.errors)
            return False

        match mode:
            case FlowMode.LOGIN:
                await self._login()
            case FlowMode.SIGNUP:
                await self._signup()
            case FlowMode.VERIFY:
                return await self._verify()
            case FlowMode.RESET_REQUEST:
                await self._request_reset()
            case FlowMode.RESET_CONFIRM:
                return await self._confirm_reset()
        return True

    async def resend_code(self) -> bool:
        """Ask for a new verification code from the verify form

        Returns:
            bool: Whether a gateway call was issued
        """
        if self.mode is not FlowMode.VERIFY:
            ErrorHandler.handle_flow_error(
                mode=self.mode.value,
                action="resend_code",
                message="Codes can only be resent while verifying"
            )
            return False

        if self.state.is_in_flight(FlowMode.VERIFY):
            logger.info("Ignoring resend: verify request in flight")
            return False

        identifier = self._pending_identifier(FlowMode.VERIFY)
        if not identifier:
            self.state.set_error(msg.RESEND_NEEDS_IDENTIFIER[self.identifier_kind])
            return False

        result = await self._call(
            FlowMode.VERIFY,
            "resend_confirmation_code",
            self.gateway.resend_confirmation_code(identifier)
        )
        if result is None:
            return True

        if result.ok:
            self._transition(Outcome.CODE_RESENT)
            self.state.set_success(msg.CODE_RESENT)
        else:
            self._fail(failure_message(result.failure, msg.RESEND_FAILED))
        return True

    async def restore_session(self, session: Optional[SessionHandle]) -> bool:
        """Hand a previously issued session to the host if still valid

        Returns:
            bool: Whether the host callback was invoked
        """
        if session is None:
            return False
        if not session.is_valid():
            logger.info("Stored session expired")
            self.state.set_error(msg.SESSION_EXPIRED)
            return False
        return await self._hand_off(session, success_message=None)

    async def sign_out(self, session: SessionHandle) -> bool:
        """Sign the session's user out everywhere and return to login

        The flow returns to login whatever the authority answers.

        Returns:
            bool: Whether the authority accepted the sign-out
        """
        try:
            result = await self.gateway.sign_out(session)
        except Exception as e:
            ErrorHandler.handle_gateway_error("sign_out", error=e)
            result = AuthResult.failed(message=UNEXPECTED_ERROR_MESSAGE)

        transition = get_next_mode(self.mode, Outcome.SIGNED_OUT)
        logger.info(f"Flow transition: {self.mode.value} -> {transition.to.value} (signed_out)")
        self.state.clear_pending()
        self.state.enter_mode(transition.to, keep_identifier=transition.keep_identifier)
        if result.ok:
            self.state.set_success(msg.SIGNED_OUT)
        else:
            self.state.set_error(failure_message(result.failure))
        return result.ok

    # Form handlers

    async def _login(self) -> None:
        identifier = self.state.draft.identifier.strip()
        password = self.state.draft.password

        result = await self._call(
            FlowMode.LOGIN,
            "authenticate",
            self.gateway.authenticate(identifier, password)
        )
        if result is None:
            return

        if result.ok:
            self.state.draft.clear((msg.PASSWORD,))
            self._transition(Outcome.AUTHENTICATED)
            await self._hand_off(result.value)
            return

        kind = classify_failure(result.failure)
        if kind is FailureKind.UNVERIFIED_ACCOUNT:
            self._transition(Outcome.UNVERIFIED)
            self.state.capture_pending(FlowMode.VERIFY, identifier, password)
            self.state.set_error(msg.VERIFY_REQUIRED)
            await self._resend_silently(identifier)
            return

        self._fail(failure_message(result.failure, msg.LOGIN_FAILED))

    async def _signup(self) -> None:
        draft = self.state.draft
        identifier = draft.identifier.strip()
        password = draft.password
        if self.identifier_kind is IdentifierKind.EMAIL:
            email = identifier
        else:
            email = draft.email.strip()

        result = await self._call(
            FlowMode.SIGNUP,
            "register",
            self.gateway.register(identifier, password, email)
        )
        if result is None:
            return

        if result.ok:
            self._transition(Outcome.REGISTERED)
            self.state.capture_pending(FlowMode.VERIFY, identifier, password)
            self.state.set_success(msg.SIGNUP_SUCCESS)
            return

        if classify_failure(result.failure) is FailureKind.DUPLICATE_ACCOUNT:
            # A resend only succeeds for accounts that are still unverified
            resend = await self._call(
                FlowMode.SIGNUP,
                "resend_confirmation_code",
                self.gateway.resend_confirmation_code(identifier),
                clear_messages=False
            )
            if resend is None:
                return
            if resend.ok:
                self._transition(Outcome.DUPLICATE_UNVERIFIED)
                self.state.capture_pending(FlowMode.VERIFY, identifier, password)
                self.state.set_error(msg.ACCOUNT_EXISTS_UNVERIFIED)
                return

        self._fail(failure_message(result.failure, msg.SIGNUP_FAILED))

    async def _verify(self) -> bool:
        identifier = self._pending_identifier(FlowMode.VERIFY)
        if not identifier:
            self.state.set_error(msg.VERIFY_NEEDS_IDENTIFIER[self.identifier_kind])
            return False

        pending = self.state.pending_for(FlowMode.VERIFY)
        result = await self._call(
            FlowMode.VERIFY,
            "confirm_registration",
            self.gateway.confirm_registration(identifier, self.state.draft.code.strip())
        )
        if result is None:
            return True

        if not result.ok:
            self._fail(failure_message(result.failure, msg.VERIFY_FAILED))
            return True

        password = pending.password if pending else None
        self.state.clear_pending()
        self._transition(Outcome.VERIFIED)
        self.state.set_success(msg.VERIFY_SUCCESS)

        if self.config.auto_login_after_verify and password:
            await self._auto_login(identifier, password)
        return True

    async def _request_reset(self) -> None:
        identifier = self.state.draft.identifier.strip()

        result = await self._call(
            FlowMode.RESET_REQUEST,
            "request_password_reset",
            self.gateway.request_password_reset(identifier)
        )
        if result is None:
            return

        if result.ok:
            self._transition(Outcome.RESET_REQUESTED)
            self.state.capture_pending(FlowMode.RESET_CONFIRM, identifier)
            self.state.set_success(msg.RESET_CODE_SENT)
        else:
            self._fail(failure_message(result.failure, msg.RESET_REQUEST_FAILED))

    async def _confirm_reset(self) -> bool:
        identifier = self._pending_identifier(FlowMode.RESET_CONFIRM)
        if not identifier:
            self.state.set_error(msg.IDENTIFIER_REQUIRED[self.identifier_kind])
            return False

        draft = self.state.draft
        result = await self._call(
            FlowMode.RESET_CONFIRM,
            "confirm_password_reset",
            self.gateway.confirm_password_reset(identifier, draft.code.strip(), draft.new_password)
        )
        if result is None:
            return True

        if result.ok:
            self.state.clear_pending()
            self._transition(Outcome.PASSWORD_RESET)
            self.state.set_success(msg.RESET_SUCCESS)
        else:
            self._fail(failure_message(result.failure, msg.RESET_FAILED))
        return True

    # Helpers

    async def _resend_silently(self, identifier: str) -> None:
        """Resend after discovering an unverified account

        The guidance message stays in place unless the resend fails.
        """
        result = await self._call(
            FlowMode.VERIFY,
            "resend_confirmation_code",
            self.gateway.resend_confirmation_code(identifier),
            clear_messages=False
        )
        if result is not None and not result.ok:
            self._fail(failure_message(result.failure, msg.RESEND_FAILED))

    async def _auto_login(self, identifier: str, password: str) -> None:
        result = await self._call(
            FlowMode.LOGIN,
            "authenticate",
            self.gateway.authenticate(identifier, password),
            clear_messages=False
        )
        if result is None:
            return
        if result.ok:
            self._transition(Outcome.AUTHENTICATED)
            await self._hand_off(result.value)
        else:
            self._fail(failure_message(result.failure, msg.LOGIN_FAILED))

    async def _hand_off(self, session: SessionHandle, success_message: Optional[str] = msg.LOGIN_SUCCESS) -> bool:
        """Invoke the host callback with a valid session"""
        if session is None or not session.is_valid():
            logger.error("Authority returned an unusable session")
            self._fail(msg.SESSION_EXPIRED)
            return False

        if success_message:
            self.state.set_success(success_message)
        logger.info("Handing session to host")

        outcome = self.on_authenticated(session)
        if inspect.isawaitable(outcome):
            await outcome
        return True

    async def _call(
        self,
        form: FlowMode,
        operation: str,
        call: Awaitable[AuthResult],
        clear_messages: bool = True
    ) -> Optional[AuthResult]:
        """Await one gateway call with the form marked in flight

        Returns:
            Optional[AuthResult]: The result, or None if the flow moved on
            while the call was outstanding
        """
        ticket = self.state.ticket()
        self.state.begin(form)
        if clear_messages:
            self.state.clear_messages()

        reported = False
        try:
            result = await call
        except Exception as e:
            ErrorHandler.handle_gateway_error(operation, error=e)
            result = AuthResult.failed(message=UNEXPECTED_ERROR_MESSAGE)
            reported = True
        finally:
            self.state.finish(form)

        if not self.state.is_current(ticket):
            logger.info(f"Dropping stale {operation} result issued from {ticket.mode.value}")
            return None

        if not result.ok and not reported:
            failure = result.failure
            if classify_failure(failure) is FailureKind.UNKNOWN:
                ErrorHandler.handle_gateway_error(
                    operation,
                    message=failure_message(failure),
                    code=failure.code if failure else None
                )
            else:
                ErrorHandler.handle_authority_rejection(
                    operation,
                    message=failure_message(failure),
                    code=failure.code
                )
        return result

    def _pending_identifier(self, mode: FlowMode) -> str:
        """Identifier from the pending context, else from the draft"""
        pending = self.state.pending_for(mode)
        if pending is not None:
            return pending.identifier
        return self.state.draft.identifier.strip()

    def _transition(self, outcome: Outcome) -> FlowMode:
        current = self.mode
        transition = get_next_mode(current, outcome)
        if transition.to is not current:
            logger.info(f"Flow transition: {current.value} -> {transition.to.value} ({outcome.value})")
            self.state.enter_mode(transition.to, keep_identifier=transition.keep_identifier)
        return transition.to

    def _fail(self, message: str) -> None:
        self._transition(Outcome.FAILED)
        self.state.set_error(message)

import asyncio
import logging
import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

from authflow.api.interface import IdentityGateway
from authflow.api.session import SessionHandle
from authflow.config import constants as msg
from authflow.config.constants import FlowMode, IdentifierKind
from authflow.config.settings import FlowConfig
from authflow.error.exceptions import ValidationException
from authflow.error.types import UNEXPECTED_ERROR_MESSAGE, AuthResult
from authflow.flow.controller import FlowController


def make_session(lifetime: timedelta = timedelta(hours=1)) -> SessionHandle:
    return SessionHandle(access_token="access", expires_at=datetime.now(timezone.utc) + lifetime)


class FlowControllerTestCase(unittest.IsolatedAsyncioTestCase):
    config = FlowConfig()

    def setUp(self):
        self.gateway = AsyncMock(spec=IdentityGateway)
        self.gateway.authenticate.return_value = AuthResult.success(make_session())
        self.gateway.register.return_value = AuthResult.success()
        self.gateway.confirm_registration.return_value = AuthResult.success()
        self.gateway.resend_confirmation_code.return_value = AuthResult.success()
        self.gateway.request_password_reset.return_value = AuthResult.success()
        self.gateway.confirm_password_reset.return_value = AuthResult.success()
        self.gateway.sign_out.return_value = AuthResult.success()
        self.on_authenticated = MagicMock()
        self.controller = FlowController(self.gateway, self.on_authenticated, self.config)

    def fill(self, **fields):
        for name, value in fields.items():
            self.controller.update_field(name, value)

    @property
    def status(self):
        return self.controller.state.status

    async def signup_ann(self):
        self.controller.switch_mode(FlowMode.SIGNUP)
        self.fill(
            identifier="ann_01",
            email="ann@example.com",
            password="Strong1!",
            confirm_password="Strong1!"
        )
        return await self.controller.submit()


class TestLogin(FlowControllerTestCase):
    async def test_empty_password_makes_no_call(self):
        self.fill(identifier="ann_01")
        self.assertFalse(await self.controller.submit())

        self.assertEqual(self.status.field_errors, {"password": "Password is required"})
        self.gateway.authenticate.assert_not_called()
        self.assertIs(self.controller.mode, FlowMode.LOGIN)

    async def test_success_hands_session_to_host_once(self):
        session = make_session()
        self.gateway.authenticate.return_value = AuthResult.success(session)
        self.fill(identifier=" ann_01 ", password="Strong1!")

        self.assertTrue(await self.controller.submit())

        self.gateway.authenticate.assert_awaited_once_with("ann_01", "Strong1!")
        self.on_authenticated.assert_called_once_with(session)
        self.assertEqual(self.status.success, "Login successful!")
        self.assertEqual(self.controller.state.draft.password, "")
        self.assertFalse(self.controller.snapshot().loading)

    async def test_async_callback_awaited(self):
        callback = AsyncMock()
        controller = FlowController(self.gateway, callback)
        controller.update_field("identifier", "ann_01")
        controller.update_field("password", "Strong1!")

        await controller.submit()
        callback.assert_awaited_once()

    async def test_invalid_credentials_shown_verbatim(self):
        self.gateway.authenticate.return_value = AuthResult.failed(
            "NotAuthorizedException", "Incorrect username or password."
        )
        self.fill(identifier="ann_01", password="Wrong1!x")

        self.assertTrue(await self.controller.submit())

        self.assertIs(self.controller.mode, FlowMode.LOGIN)
        self.assertEqual(self.status.error, "Incorrect username or password.")
        self.on_authenticated.assert_not_called()

    async def test_rejection_logged_below_error(self):
        self.gateway.authenticate.return_value = AuthResult.failed(
            "NotAuthorizedException", "Incorrect username or password."
        )
        self.fill(identifier="ann_01", password="Wrong1!x")

        with self.assertLogs("authflow.error.handler", level="INFO") as logs:
            await self.controller.submit()

        self.assertEqual([r.getMessage() for r in logs.records], ["Error handled: rejection"])
        self.assertEqual(logs.records[0].levelno, logging.INFO)

    async def test_unknown_failure_logged_as_error(self):
        self.gateway.authenticate.return_value = AuthResult.failed(message=UNEXPECTED_ERROR_MESSAGE)
        self.fill(identifier="ann_01", password="Strong1!")

        with self.assertLogs("authflow.error.handler", level="ERROR") as logs:
            await self.controller.submit()

        self.assertEqual([r.getMessage() for r in logs.records], ["Error handled: gateway"])

    async def test_failure_without_message_uses_fallback(self):
        self.gateway.authenticate.return_value = AuthResult.failed("InternalErrorException")
        self.fill(identifier="ann_01", password="Strong1!")
        await self.controller.submit()
        self.assertEqual(self.status.error, msg.LOGIN_FAILED)

    async def test_unverified_account_moves_to_verify(self):
        self.gateway.authenticate.return_value = AuthResult.failed(
            "UserNotConfirmedException", "User is not confirmed."
        )
        self.fill(identifier="ann_01", password="Strong1!")

        await self.controller.submit()

        self.assertIs(self.controller.mode, FlowMode.VERIFY)
        self.gateway.resend_confirmation_code.assert_awaited_once_with("ann_01")
        self.assertEqual(self.status.error, msg.VERIFY_REQUIRED)
        self.assertEqual(self.controller.state.pending.identifier, "ann_01")
        self.assertEqual(self.controller.state.draft.identifier, "ann_01")
        self.assertEqual(self.controller.state.focus, "code")

    async def test_unverified_account_resend_failure(self):
        self.gateway.authenticate.return_value = AuthResult.failed(message="User is not confirmed.")
        self.gateway.resend_confirmation_code.return_value = AuthResult.failed(
            "LimitExceededException", "Attempt limit exceeded, please try after some time."
        )
        self.fill(identifier="ann_01", password="Strong1!")

        await self.controller.submit()

        self.assertIs(self.controller.mode, FlowMode.VERIFY)
        self.assertEqual(self.status.error, "Attempt limit exceeded, please try after some time.")

    async def test_gateway_exception_becomes_generic_message(self):
        self.gateway.authenticate.side_effect = RuntimeError("boom")
        self.fill(identifier="ann_01", password="Strong1!")

        with self.assertLogs("authflow.error.handler", level="INFO") as logs:
            await self.controller.submit()

        handled = [r.getMessage() for r in logs.records if r.getMessage().startswith("Error handled")]
        self.assertEqual(handled, ["Error handled: gateway"])
        self.assertEqual(self.status.error, UNEXPECTED_ERROR_MESSAGE)
        self.assertFalse(self.controller.state.loading)
        self.on_authenticated.assert_not_called()

    async def test_unusable_session(self):
        self.gateway.authenticate.return_value = AuthResult.success(make_session(timedelta(seconds=-5)))
        self.fill(identifier="ann_01", password="Strong1!")

        await self.controller.submit()

        self.assertEqual(self.status.error, msg.SESSION_EXPIRED)
        self.on_authenticated.assert_not_called()


class TestSignup(FlowControllerTestCase):
    async def test_weak_password_rejected_without_call(self):
        self.controller.switch_mode(FlowMode.SIGNUP)
        self.fill(identifier="ann_01", email="ann@example.com", password="Weak1", confirm_password="Weak1")

        self.assertFalse(await self.controller.submit())

        self.assertEqual(self.status.field_errors, {"password": msg.PASSWORD_POLICY})
        self.gateway.register.assert_not_called()

    async def test_success_moves_to_verify(self):
        self.assertTrue(await self.signup_ann())

        self.gateway.register.assert_awaited_once_with("ann_01", "Strong1!", "ann@example.com")
        self.assertIs(self.controller.mode, FlowMode.VERIFY)
        self.assertEqual(self.controller.snapshot().pending_identifier, "ann_01")
        self.assertEqual(self.status.success, msg.SIGNUP_SUCCESS)
        draft = self.controller.state.draft
        self.assertEqual((draft.password, draft.confirm_password), ("", ""))

    async def test_duplicate_unverified_account(self):
        self.gateway.register.return_value = AuthResult.failed("UsernameExistsException", "User already exists")

        await self.signup_ann()

        self.gateway.resend_confirmation_code.assert_awaited_once_with("ann_01")
        self.assertIs(self.controller.mode, FlowMode.VERIFY)
        self.assertEqual(self.status.error, msg.ACCOUNT_EXISTS_UNVERIFIED)
        self.assertEqual(self.controller.state.pending.identifier, "ann_01")

    async def test_duplicate_verified_account(self):
        self.gateway.register.return_value = AuthResult.failed("UsernameExistsException", "User already exists")
        self.gateway.resend_confirmation_code.return_value = AuthResult.failed(
            "InvalidParameterException", "User is already confirmed."
        )

        await self.signup_ann()

        self.assertIs(self.controller.mode, FlowMode.SIGNUP)
        self.assertEqual(self.status.error, "User already exists")
        self.assertIsNone(self.controller.state.pending)

    async def test_email_identifier(self):
        controller = FlowController(
            self.gateway,
            self.on_authenticated,
            FlowConfig(identifier_kind=IdentifierKind.EMAIL)
        )
        controller.switch_mode(FlowMode.SIGNUP)
        for name, value in {
            "identifier": "ann@example.com",
            "password": "Strong1!",
            "confirm_password": "Strong1!",
        }.items():
            controller.update_field(name, value)

        self.assertTrue(await controller.submit())
        self.gateway.register.assert_awaited_once_with("ann@example.com", "Strong1!", "ann@example.com")


class TestVerify(FlowControllerTestCase):
    async def test_confirm_returns_to_login(self):
        await self.signup_ann()
        self.fill(code=" 123456 ")

        self.assertTrue(await self.controller.submit())

        self.gateway.confirm_registration.assert_awaited_once_with("ann_01", "123456")
        self.assertIs(self.controller.mode, FlowMode.LOGIN)
        self.assertIsNone(self.controller.state.pending)
        self.assertEqual(self.controller.state.draft.password, "")
        self.assertEqual(self.controller.state.draft.identifier, "ann_01")
        self.assertEqual(self.status.success, msg.VERIFY_SUCCESS)
        self.gateway.authenticate.assert_not_called()

    async def test_wrong_code_stays(self):
        self.gateway.confirm_registration.return_value = AuthResult.failed(
            "CodeMismatchException", "Invalid verification code provided, please try again."
        )
        await self.signup_ann()
        self.fill(code="000000")

        await self.controller.submit()

        self.assertIs(self.controller.mode, FlowMode.VERIFY)
        self.assertEqual(self.status.error, "Invalid verification code provided, please try again.")
        self.assertEqual(self.controller.state.pending.identifier, "ann_01")

    async def test_verify_without_identifier(self):
        self.controller.switch_mode(FlowMode.VERIFY)
        self.fill(code="123456")

        self.assertFalse(await self.controller.submit())

        self.assertEqual(self.status.error, msg.VERIFY_NEEDS_IDENTIFIER[IdentifierKind.USERNAME])
        self.gateway.confirm_registration.assert_not_called()

    async def test_pending_survives_navigation(self):
        await self.signup_ann()
        self.controller.switch_mode(FlowMode.LOGIN)
        self.controller.switch_mode(FlowMode.VERIFY)
        self.fill(code="123456")

        await self.controller.submit()
        self.gateway.confirm_registration.assert_awaited_once_with("ann_01", "123456")

    async def test_resend_code(self):
        await self.signup_ann()

        self.assertTrue(await self.controller.resend_code())

        self.gateway.resend_confirmation_code.assert_awaited_once_with("ann_01")
        self.assertIs(self.controller.mode, FlowMode.VERIFY)
        self.assertEqual(self.status.success, msg.CODE_RESENT)

    async def test_resend_outside_verify(self):
        self.assertFalse(await self.controller.resend_code())
        self.gateway.resend_confirmation_code.assert_not_called()

    async def test_resend_without_identifier(self):
        self.controller.switch_mode(FlowMode.VERIFY)
        self.assertFalse(await self.controller.resend_code())
        self.assertEqual(self.status.error, msg.RESEND_NEEDS_IDENTIFIER[IdentifierKind.USERNAME])


class TestAutoLogin(FlowControllerTestCase):
    config = FlowConfig(auto_login_after_verify=True)

    async def test_verify_logs_in(self):
        await self.signup_ann()
        self.fill(code="123456")

        await self.controller.submit()

        self.gateway.authenticate.assert_awaited_once_with("ann_01", "Strong1!")
        self.on_authenticated.assert_called_once()
        self.assertIs(self.controller.mode, FlowMode.LOGIN)
        self.assertEqual(self.status.success, msg.LOGIN_SUCCESS)

    async def test_no_password_known(self):
        self.controller.switch_mode(FlowMode.VERIFY)
        self.fill(identifier="ann_01", code="123456")

        await self.controller.submit()

        self.gateway.authenticate.assert_not_called()
        self.assertEqual(self.status.success, msg.VERIFY_SUCCESS)


class TestPasswordReset(FlowControllerTestCase):
    async def test_request_and_confirm(self):
        self.controller.switch_mode(FlowMode.RESET_REQUEST)
        self.fill(identifier="ann_01")

        await self.controller.submit()

        self.gateway.request_password_reset.assert_awaited_once_with("ann_01")
        self.assertIs(self.controller.mode, FlowMode.RESET_CONFIRM)
        self.assertEqual(self.status.success, msg.RESET_CODE_SENT)

        self.fill(code="654321", new_password="Newer1!x")
        await self.controller.submit()

        self.gateway.confirm_password_reset.assert_awaited_once_with("ann_01", "654321", "Newer1!x")
        self.assertIs(self.controller.mode, FlowMode.LOGIN)
        self.assertEqual(self.status.success, msg.RESET_SUCCESS)
        self.assertIsNone(self.controller.state.pending)
        self.assertEqual(self.controller.state.draft.new_password, "")

    async def test_confirm_failure_stays(self):
        self.gateway.confirm_password_reset.return_value = AuthResult.failed(
            "ExpiredCodeException", "Invalid code provided, please request a code again."
        )
        self.controller.switch_mode(FlowMode.RESET_REQUEST)
        self.fill(identifier="ann_01")
        await self.controller.submit()
        self.fill(code="654321", new_password="Newer1!x")

        self.assertTrue(await self.controller.submit())

        self.assertIs(self.controller.mode, FlowMode.RESET_CONFIRM)
        self.assertEqual(self.status.error, "Invalid code provided, please request a code again.")
        self.assertEqual(self.controller.state.pending.identifier, "ann_01")

    async def test_invalid_identifier(self):
        self.controller.switch_mode(FlowMode.RESET_REQUEST)
        self.fill(identifier="a!")
        self.assertFalse(await self.controller.submit())
        self.assertIn("identifier", self.status.field_errors)

    async def test_unknown_user(self):
        self.gateway.request_password_reset.return_value = AuthResult.failed(
            "UserNotFoundException", "Username/client id combination not found."
        )
        self.controller.switch_mode(FlowMode.RESET_REQUEST)
        self.fill(identifier="ann_01")

        await self.controller.submit()

        self.assertIs(self.controller.mode, FlowMode.RESET_REQUEST)
        self.assertEqual(self.status.error, "Username/client id combination not found.")


class TestNavigationAndSessions(FlowControllerTestCase):
    async def test_switch_mode_clears_messages(self):
        self.gateway.authenticate.return_value = AuthResult.failed(
            "NotAuthorizedException", "Incorrect username or password."
        )
        self.fill(identifier="ann_01", password="Wrong1!x")
        await self.controller.submit()

        self.controller.switch_mode("signup")

        snapshot = self.controller.snapshot()
        self.assertIs(snapshot.mode, FlowMode.SIGNUP)
        self.assertIsNone(snapshot.error)
        self.assertIsNone(snapshot.success)
        self.assertEqual(snapshot.field_errors, {})
        self.assertEqual(snapshot.identifier, "")

    async def test_unknown_field(self):
        with self.assertRaises(ValidationException):
            self.controller.update_field("nickname", "x")

    async def test_restore_session(self):
        session = make_session()
        self.assertTrue(await self.controller.restore_session(session))
        self.on_authenticated.assert_called_once_with(session)
        self.assertIsNone(self.status.success)

    async def test_restore_expired_session(self):
        self.assertFalse(await self.controller.restore_session(make_session(timedelta(minutes=-1))))
        self.assertFalse(await self.controller.restore_session(None))
        self.on_authenticated.assert_not_called()
        self.assertEqual(self.status.error, msg.SESSION_EXPIRED)

    async def test_sign_out(self):
        await self.signup_ann()

        self.assertTrue(await self.controller.sign_out(make_session()))

        self.gateway.sign_out.assert_awaited_once()
        self.assertIs(self.controller.mode, FlowMode.LOGIN)
        self.assertIsNone(self.controller.state.pending)
        self.assertEqual(self.controller.state.draft.identifier, "")
        self.assertEqual(self.status.success, msg.SIGNED_OUT)

    async def test_sign_out_rejected(self):
        self.gateway.sign_out.return_value = AuthResult.failed(
            "NotAuthorizedException", "Access Token has been revoked"
        )
        self.assertFalse(await self.controller.sign_out(make_session()))
        self.assertIs(self.controller.mode, FlowMode.LOGIN)
        self.assertEqual(self.status.error, "Access Token has been revoked")


class TestConcurrency(FlowControllerTestCase):
    def block(self, method, result):
        release = asyncio.Event()

        async def blocked(*args):
            await release.wait()
            return result

        method.side_effect = blocked
        return release

    async def test_stale_result_dropped(self):
        release = self.block(self.gateway.authenticate, AuthResult.success(make_session()))
        self.fill(identifier="ann_01", password="Strong1!")

        task = asyncio.create_task(self.controller.submit())
        await asyncio.sleep(0)
        self.assertTrue(self.controller.snapshot().loading)

        self.controller.switch_mode(FlowMode.SIGNUP)
        self.assertFalse(self.controller.snapshot().loading)
        release.set()
        await task

        self.on_authenticated.assert_not_called()
        self.assertIs(self.controller.mode, FlowMode.SIGNUP)
        self.assertIsNone(self.status.success)
        self.assertIsNone(self.status.error)
        self.assertFalse(self.controller.state.is_in_flight(FlowMode.LOGIN))

    async def test_stale_failure_dropped_after_round_trip(self):
        release = self.block(
            self.gateway.authenticate,
            AuthResult.failed("NotAuthorizedException", "Incorrect username or password.")
        )
        self.fill(identifier="ann_01", password="Wrong1!x")

        task = asyncio.create_task(self.controller.submit())
        await asyncio.sleep(0)
        self.controller.switch_mode(FlowMode.SIGNUP)
        self.controller.switch_mode(FlowMode.LOGIN)
        release.set()
        await task

        self.assertIsNone(self.status.error)

    async def test_resubmit_while_in_flight_ignored(self):
        release = self.block(self.gateway.authenticate, AuthResult.success(make_session()))
        self.fill(identifier="ann_01", password="Strong1!")

        task = asyncio.create_task(self.controller.submit())
        await asyncio.sleep(0)
        self.assertFalse(await self.controller.submit())
        release.set()
        self.assertTrue(await task)

        self.assertEqual(self.gateway.authenticate.call_count, 1)
        self.on_authenticated.assert_called_once()

    async def test_other_form_not_blocked(self):
        release = self.block(self.gateway.authenticate, AuthResult.success(make_session()))
        self.fill(identifier="ann_01", password="Strong1!")

        task = asyncio.create_task(self.controller.submit())
        await asyncio.sleep(0)
        self.assertTrue(await self.signup_ann())
        release.set()
        await task

        self.assertIs(self.controller.mode, FlowMode.VERIFY)
        self.on_authenticated.assert_not_called()

    async def test_resend_blocked_while_verifying(self):
        await self.signup_ann()
        release = self.block(self.gateway.confirm_registration, AuthResult.success())
        self.fill(code="123456")

        task = asyncio.create_task(self.controller.submit())
        await asyncio.sleep(0)
        self.assertFalse(await self.controller.resend_code())
        release.set()
        await task

        self.gateway.resend_confirmation_code.assert_not_called()


if __name__ == '__main__':
    unittest.main()

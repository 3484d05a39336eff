"""Mock identity authority server.

Speaks the same JSON-over-HTTP protocol as the user pool endpoint used by
CognitoGateway, backed by an in-memory account store. Verification and
reset codes are written to the log instead of being emailed.

Point the gateway at it with AUTH_ENDPOINT=http://localhost:8002/
"""
import json
import logging
import secrets
import socketserver
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from http.server import BaseHTTPRequestHandler
from typing import Any, Callable, Dict, Optional, Tuple

import jwt

from authflow.api.base import CONTENT_TYPE, TARGET_PREFIX
from authflow.utils.validators import validate_password

# Configure logging - show important messages only
logging.basicConfig(
    level=logging.INFO,
    format='%(levelname)s: %(message)s'
)
logger = logging.getLogger(__name__)

TOKEN_SECRET = "mock-authority-signing-secret-0123456789"
TOKEN_LIFETIME = 3600


class MockAuthorityError(Exception):
    """Error returned to the client as {"__type", "message"}"""
    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(message)


@dataclass
class MockAccount:
    username: str
    password: str = field(repr=False)
    email: str
    confirmed: bool = False
    confirmation_code: Optional[str] = field(default=None, repr=False)
    reset_code: Optional[str] = field(default=None, repr=False)


class MockAuthority:
    """In-memory account store implementing the authority operations"""

    def __init__(self, client_id: Optional[str] = None):
        self.client_id = client_id
        self.accounts: Dict[str, MockAccount] = {}
        self.access_tokens: Dict[str, str] = {}
        self._lock = threading.Lock()
        self._operations: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
            "SignUp": self.sign_up,
            "ConfirmSignUp": self.confirm_sign_up,
            "ResendConfirmationCode": self.resend_confirmation_code,
            "InitiateAuth": self.initiate_auth,
            "ForgotPassword": self.forgot_password,
            "ConfirmForgotPassword": self.confirm_forgot_password,
            "GlobalSignOut": self.global_sign_out,
        }

    def handle(self, operation: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Dispatch an operation

        Raises:
            MockAuthorityError: For any rejected request
        """
        handler = self._operations.get(operation)
        if handler is None:
            raise MockAuthorityError("UnknownOperationException", f"Unknown operation: {operation}")
        if operation != "GlobalSignOut":
            self._check_client(payload)
        with self._lock:
            return handler(payload)

    def _check_client(self, payload: Dict[str, Any]) -> None:
        if self.client_id and payload.get("ClientId") != self.client_id:
            raise MockAuthorityError("ResourceNotFoundException", "User pool client does not exist.")

    def _account(self, username: Optional[str]) -> MockAccount:
        account = self.accounts.get(username or "")
        if account is None:
            raise MockAuthorityError("UserNotFoundException", "Username/client id combination not found.")
        return account

    @staticmethod
    def _new_code() -> str:
        return f"{secrets.randbelow(1000000):06d}"

    def _deliver(self, account: MockAccount, purpose: str, code: str) -> Dict[str, Any]:
        logger.info(f"{purpose} code for {account.username} <{account.email}>: {code}")
        return {
            "CodeDeliveryDetails": {
                "Destination": account.email,
                "DeliveryMedium": "EMAIL",
                "AttributeName": "email",
            }
        }

    def sign_up(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        username = payload.get("Username", "")
        if username in self.accounts:
            raise MockAuthorityError("UsernameExistsException", "User already exists")
        if not validate_password(payload.get("Password", "")):
            raise MockAuthorityError("InvalidPasswordException", "Password did not conform with policy")

        attributes = {a.get("Name"): a.get("Value") for a in payload.get("UserAttributes", [])}
        account = MockAccount(
            username=username,
            password=payload["Password"],
            email=attributes.get("email", ""),
            confirmation_code=self._new_code(),
        )
        self.accounts[username] = account
        response = self._deliver(account, "Verification", account.confirmation_code)
        response.update({"UserConfirmed": False, "UserSub": str(uuid.uuid4())})
        return response

    def confirm_sign_up(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        account = self._account(payload.get("Username"))
        if account.confirmed:
            raise MockAuthorityError("NotAuthorizedException", "User cannot be confirmed. Current status is CONFIRMED")
        if payload.get("ConfirmationCode") != account.confirmation_code:
            raise MockAuthorityError("CodeMismatchException", "Invalid verification code provided, please try again.")
        account.confirmed = True
        account.confirmation_code = None
        return {}

    def resend_confirmation_code(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        account = self._account(payload.get("Username"))
        if account.confirmed:
            raise MockAuthorityError("InvalidParameterException", "User is already confirmed.")
        account.confirmation_code = self._new_code()
        return self._deliver(account, "Verification", account.confirmation_code)

    def initiate_auth(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if payload.get("AuthFlow") != "USER_PASSWORD_AUTH":
            raise MockAuthorityError("InvalidParameterException", "Unsupported auth flow")
        parameters = payload.get("AuthParameters", {})
        account = self.accounts.get(parameters.get("USERNAME", ""))
        if account is None or account.password != parameters.get("PASSWORD"):
            raise MockAuthorityError("NotAuthorizedException", "Incorrect username or password.")
        if not account.confirmed:
            raise MockAuthorityError("UserNotConfirmedException", "User is not confirmed.")

        expires = datetime.now(timezone.utc) + timedelta(seconds=TOKEN_LIFETIME)
        claims = {"sub": account.username, "cognito:username": account.username, "exp": expires}
        access_token = jwt.encode({**claims, "token_use": "access"}, TOKEN_SECRET, algorithm="HS256")
        self.access_tokens[access_token] = account.username
        return {
            "AuthenticationResult": {
                "AccessToken": access_token,
                "IdToken": jwt.encode({**claims, "token_use": "id", "email": account.email}, TOKEN_SECRET, algorithm="HS256"),
                "RefreshToken": secrets.token_urlsafe(32),
                "ExpiresIn": TOKEN_LIFETIME,
                "TokenType": "Bearer",
            },
            "ChallengeParameters": {},
        }

    def forgot_password(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        account = self._account(payload.get("Username"))
        account.reset_code = self._new_code()
        return self._deliver(account, "Password reset", account.reset_code)

    def confirm_forgot_password(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        account = self._account(payload.get("Username"))
        if not account.reset_code or payload.get("ConfirmationCode") != account.reset_code:
            raise MockAuthorityError("CodeMismatchException", "Invalid verification code provided, please try again.")
        if not validate_password(payload.get("Password", "")):
            raise MockAuthorityError("InvalidPasswordException", "Password did not conform with policy")
        account.password = payload["Password"]
        account.reset_code = None
        return {}

    def global_sign_out(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        username = self.access_tokens.get(payload.get("AccessToken", ""))
        if username is None:
            raise MockAuthorityError("NotAuthorizedException", "Access Token has been revoked")
        for token, owner in list(self.access_tokens.items()):
            if owner == username:
                del self.access_tokens[token]
        return {}


class MockAuthorityHandler(BaseHTTPRequestHandler):
    """Handler translating HTTP requests into MockAuthority operations"""

    authority: MockAuthority = None

    def _send_json(self, status: int, content: Dict[str, Any]) -> None:
        body = json.dumps(content).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", CONTENT_TYPE)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _read_request(self) -> Tuple[str, Dict[str, Any]]:
        target = self.headers.get("X-Amz-Target", "")
        if not target.startswith(TARGET_PREFIX):
            raise MockAuthorityError("UnknownOperationException", f"Unknown target: {target}")
        length = int(self.headers.get("Content-Length", 0))
        try:
            payload = json.loads(self.rfile.read(length) or b"{}")
        except ValueError:
            raise MockAuthorityError("SerializationException", "Malformed request body")
        return target[len(TARGET_PREFIX):], payload

    def log_message(self, format, *args):
        """Silence per-request logging"""
        logger.debug(format, *args)

    def do_POST(self):
        """Handle authority operations."""
        try:
            operation, payload = self._read_request()
            logger.info("Operation: %s", operation)
            self._send_json(200, self.authority.handle(operation, payload))
        except MockAuthorityError as e:
            logger.info("Rejected: %s", e.code)
            self._send_json(400, {"__type": e.code, "message": e.message})


class ThreadingServer(socketserver.ThreadingMixIn, socketserver.TCPServer):
    allow_reuse_address = True
    daemon_threads = True


def create_server(port: int = 8002, authority: Optional[MockAuthority] = None) -> ThreadingServer:
    """Create a server bound to localhost; port 0 picks a free port."""
    handler = type("BoundHandler", (MockAuthorityHandler,), {"authority": authority or MockAuthority()})
    return ThreadingServer(("127.0.0.1", port), handler)


def run_server(port=8002):
    """Run the mock server."""
    server = create_server(port)
    logger.info("Mock identity authority up at: http://localhost:%d/", port)

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    finally:
        server.server_close()


if __name__ == "__main__":
    run_server()

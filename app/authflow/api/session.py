"""Session handle returned by a successful authentication

The handle is opaque to the flow controller, which only checks validity
before handing it to the host application.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from authflow.config.timing import SESSION_EXPIRY_LEEWAY

logger = logging.getLogger(__name__)


def read_token_claims(token: Optional[str]) -> Dict[str, Any]:
    """Read JWT claims without verifying the signature

    The signature belongs to the identity authority; the claims are only
    used to learn the expiry and the username.
    """
    if not token:
        return {}
    try:
        return jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as e:
        logger.warning(f"Unreadable token: {str(e)}")
        return {}


@dataclass(frozen=True)
class SessionHandle:
    """Tokens issued by the identity authority"""
    access_token: str
    expires_at: datetime
    id_token: Optional[str] = None
    refresh_token: Optional[str] = field(default=None, repr=False)
    token_type: str = "Bearer"

    @classmethod
    def from_authentication_result(
        cls,
        result: Dict[str, Any],
        now: Optional[datetime] = None
    ) -> 'SessionHandle':
        """Build handle from an AuthenticationResult payload

        Expiry comes from the id token's exp claim, falling back to
        ExpiresIn seconds from now.
        """
        now = now or datetime.now(timezone.utc)
        claims = read_token_claims(result.get("IdToken"))
        if "exp" in claims:
            expires_at = datetime.fromtimestamp(int(claims["exp"]), tz=timezone.utc)
        else:
            expires_at = now + timedelta(seconds=int(result.get("ExpiresIn", 0)))

        return cls(
            access_token=result["AccessToken"],
            expires_at=expires_at,
            id_token=result.get("IdToken"),
            refresh_token=result.get("RefreshToken"),
            token_type=result.get("TokenType", "Bearer"),
        )

    @property
    def username(self) -> Optional[str]:
        """Username claim from the id token, if present"""
        claims = read_token_claims(self.id_token)
        return claims.get("cognito:username") or claims.get("username")

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        """Whether the tokens are still usable"""
        if not self.access_token:
            return False
        now = now or datetime.now(timezone.utc)
        return now + timedelta(seconds=SESSION_EXPIRY_LEEWAY) < self.expires_at

"""Identity authority and flow configuration

Values are read through python-decouple from the environment or from a
.env / settings.ini file. Nothing here is a process-wide singleton: callers
build the config objects and inject them into the gateway and controller.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from decouple import Choices, UndefinedValueError, config

from authflow.error.exceptions import ConfigurationException

from .constants import IdentifierKind
from .timing import API_TIMEOUT

logger = logging.getLogger(__name__)

ENDPOINT_TEMPLATE = "https://cognito-idp.{region}.amazonaws.com/"


@dataclass(frozen=True)
class AuthorityConfig:
    """Connection parameters for the identity authority"""
    client_id: str
    region: str = ""
    client_secret: Optional[str] = None
    endpoint: Optional[str] = None
    timeout: float = API_TIMEOUT

    @property
    def url(self) -> str:
        """Endpoint URL, derived from the region unless overridden"""
        if self.endpoint:
            return self.endpoint if self.endpoint.endswith("/") else self.endpoint + "/"
        return ENDPOINT_TEMPLATE.format(region=self.region)


@dataclass(frozen=True)
class FlowConfig:
    """Flow controller options"""
    identifier_kind: IdentifierKind = IdentifierKind.USERNAME
    auto_login_after_verify: bool = False


def load_authority_config() -> AuthorityConfig:
    """Build AuthorityConfig from environment

    Raises:
        ConfigurationException: If required values are missing
    """
    try:
        client_id = config("AUTH_CLIENT_ID")
    except UndefinedValueError as e:
        raise ConfigurationException(
            message="AUTH_CLIENT_ID is not configured",
            code="MISSING_CLIENT_ID",
            service="config",
            action="load_authority_config"
        ) from e

    region = config("AUTH_REGION", default="")
    endpoint = config("AUTH_ENDPOINT", default="") or None
    if not region and not endpoint:
        raise ConfigurationException(
            message="AUTH_REGION or AUTH_ENDPOINT must be configured",
            code="MISSING_ENDPOINT",
            service="config",
            action="load_authority_config"
        )

    authority = AuthorityConfig(
        client_id=client_id,
        region=region,
        client_secret=config("AUTH_CLIENT_SECRET", default="") or None,
        endpoint=endpoint,
        timeout=config("AUTH_API_TIMEOUT", default=API_TIMEOUT, cast=float),
    )
    logger.info(f"Identity authority endpoint: {authority.url}")
    return authority


def load_flow_config() -> FlowConfig:
    """Build FlowConfig from environment"""
    try:
        kind = config(
            "AUTH_IDENTIFIER_KIND",
            default=IdentifierKind.USERNAME.value,
            cast=Choices([k.value for k in IdentifierKind])
        )
    except ValueError as e:
        raise ConfigurationException(
            message=str(e),
            code="INVALID_IDENTIFIER_KIND",
            service="config",
            action="load_flow_config"
        ) from e

    return FlowConfig(
        identifier_kind=IdentifierKind(kind),
        auto_login_after_verify=config("AUTO_LOGIN_AFTER_VERIFY", default=False, cast=bool),
    )

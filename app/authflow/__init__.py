"""Client-side account lifecycle controller for a remote identity authority"""

from .api import CognitoGateway, IdentityGateway, SessionHandle
from .config import (AuthorityConfig, FlowConfig, FlowMode, IdentifierKind,
                     configure_logging, load_authority_config,
                     load_flow_config)
from .error import AuthFailure, AuthResult, FailureKind, classify_failure
from .flow import FlowController

__version__ = "0.1.0"

__all__ = [
    'AuthFailure',
    'AuthResult',
    'AuthorityConfig',
    'CognitoGateway',
    'FailureKind',
    'FlowConfig',
    'FlowController',
    'FlowMode',
    'IdentifierKind',
    'IdentityGateway',
    'SessionHandle',
    'classify_failure',
    'configure_logging',
    'load_authority_config',
    'load_flow_config',
]

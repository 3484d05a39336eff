"""Identity authority access

This package provides:
- IdentityGateway interface
- CognitoGateway implementation
- SessionHandle
"""

from .gateway import CognitoGateway
from .interface import IdentityGateway
from .session import SessionHandle

__all__ = [
    'CognitoGateway',
    'IdentityGateway',
    'SessionHandle',
]

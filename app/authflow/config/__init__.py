from .constants import FlowMode, IdentifierKind
from .logging import configure_logging
from .settings import (AuthorityConfig, FlowConfig, load_authority_config,
                       load_flow_config)

__all__ = [
    'AuthorityConfig',
    'FlowConfig',
    'FlowMode',
    'IdentifierKind',
    'configure_logging',
    'load_authority_config',
    'load_flow_config',
]

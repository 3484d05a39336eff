from .manager import FlowState
from .types import (CredentialDraft, FlowSnapshot, PendingContext, Ticket,
                    TransientStatus)

__all__ = [
    'CredentialDraft',
    'FlowSnapshot',
    'FlowState',
    'PendingContext',
    'Ticket',
    'TransientStatus',
]

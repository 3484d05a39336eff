"""Account lifecycle flow

This package provides:
- Outcome constants
- Headquarters transition table
- FlowController state machine
"""

from .constants import Outcome
from .controller import FlowController
from .headquarters import Transition, get_next_mode

__all__ = [
    'FlowController',
    'Outcome',
    'Transition',
    'get_next_mode',
]

"""Flow Headquarters

This module defines the branching logic that determines the next mode of
the account lifecycle once an action or gateway call completes. Performing
the calls and applying status messages is left to the controller.

User navigation between modes is not an outcome: it always discards the
identifier and is handled by FlowController.switch_mode.
"""
import logging
from dataclasses import dataclass

from authflow.config.constants import FlowMode
from authflow.error.exceptions import InvalidTransitionException

from .constants import Outcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    """Next mode and whether the typed identifier is carried into it"""
    to: FlowMode
    keep_identifier: bool = True


def get_next_mode(mode: FlowMode, outcome: Outcome) -> Transition:
    """Determine next mode based on current mode and outcome

    Args:
        mode: Active flow mode
        outcome: What just happened

    Returns:
        Transition: Next mode (may equal mode)

    Raises:
        InvalidTransitionException: If outcome cannot happen in mode
    """
    match (mode, outcome):

        # Any form can fail and stay put
        case (_, Outcome.FAILED):
            return Transition(mode)  # Show error on same form

        # Sign out always lands on login
        case (_, Outcome.SIGNED_OUT):
            return Transition(FlowMode.LOGIN, keep_identifier=False)

        # Login
        case (FlowMode.LOGIN, Outcome.AUTHENTICATED):
            return Transition(FlowMode.LOGIN)  # Session handed to host
        case (FlowMode.LOGIN, Outcome.UNVERIFIED):
            return Transition(FlowMode.VERIFY)  # Resend code and verify

        # Signup
        case (FlowMode.SIGNUP, Outcome.REGISTERED):
            return Transition(FlowMode.VERIFY)  # Enter emailed code
        case (FlowMode.SIGNUP, Outcome.DUPLICATE_UNVERIFIED):
            return Transition(FlowMode.VERIFY)  # Existing unverified account

        # Verify
        case (FlowMode.VERIFY, Outcome.VERIFIED):
            return Transition(FlowMode.LOGIN)  # Account usable, log in
        case (FlowMode.VERIFY, Outcome.CODE_RESENT):
            return Transition(FlowMode.VERIFY)

        # Password reset
        case (FlowMode.RESET_REQUEST, Outcome.RESET_REQUESTED):
            return Transition(FlowMode.RESET_CONFIRM)  # Enter code and new password
        case (FlowMode.RESET_CONFIRM, Outcome.PASSWORD_RESET):
            return Transition(FlowMode.LOGIN)  # Log in with new password

    logger.error(f"No transition for {mode.value}.{outcome.value}")
    raise InvalidTransitionException(
        message=f"No transition for {outcome.value} in {mode.value}",
        mode=mode.value,
        action=outcome.value
    )

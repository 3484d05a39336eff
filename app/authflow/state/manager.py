"""In-memory flow state

FlowState owns the active mode, the credential draft, the pending
verification/reset context, the transient status and the per-form
in-flight markers. All mutation goes through its methods so the status
invariants hold:
- error and success messages are mutually exclusive
- entering a mode clears all transient status and every secret field
"""

import logging
from typing import Dict, Optional, Set

from authflow.config.constants import (IDENTIFIER, PRIMARY_FIELDS,
                                       SECRET_FIELDS, FlowMode)

from .types import (CredentialDraft, FlowSnapshot, PendingContext, Ticket,
                    TransientStatus)

logger = logging.getLogger(__name__)


class FlowState:
    """Mutable state behind a FlowController"""

    def __init__(self, mode: FlowMode = FlowMode.LOGIN):
        self.mode = mode
        self.draft = CredentialDraft()
        self.pending: Optional[PendingContext] = None
        self.status = TransientStatus()
        self.focus = PRIMARY_FIELDS[mode]
        self.epoch = 0
        self._in_flight: Set[FlowMode] = set()

    # Fields

    def update_field(self, name: str, value: str) -> None:
        """Set a draft field, clearing its error and the top-level error"""
        self.draft.set(name, value)
        self.status.field_errors.pop(name, None)
        self.status.error = None

    def set_field_errors(self, errors: Dict[str, str]) -> None:
        self.status.field_errors = dict(errors)

    # Messages

    def set_error(self, message: str) -> None:
        self.status.error = message
        self.status.success = None

    def set_success(self, message: str) -> None:
        self.status.success = message
        self.status.error = None

    def clear_messages(self) -> None:
        self.status.error = None
        self.status.success = None

    def clear_status(self) -> None:
        self.status = TransientStatus()

    # Modes

    def enter_mode(self, mode: FlowMode, keep_identifier: bool = False) -> None:
        """Make mode active

        Clears transient status and secret fields; the identifier survives
        only when keep_identifier is set.
        """
        self.mode = mode
        self.clear_status()
        self.draft.clear(SECRET_FIELDS)
        if not keep_identifier:
            self.draft.clear((IDENTIFIER,))
        self.focus = PRIMARY_FIELDS[mode]
        self.epoch += 1

    # Pending context

    def capture_pending(self, serves: FlowMode, identifier: str, password: Optional[str] = None) -> None:
        self.pending = PendingContext(identifier=identifier, serves=serves, password=password)

    def pending_for(self, mode: FlowMode) -> Optional[PendingContext]:
        """Pending context if it serves mode"""
        if self.pending is not None and self.pending.serves is mode:
            return self.pending
        return None

    def clear_pending(self) -> None:
        self.pending = None

    # In-flight calls

    def begin(self, form: FlowMode) -> None:
        self._in_flight.add(form)

    def finish(self, form: FlowMode) -> None:
        self._in_flight.discard(form)

    def is_in_flight(self, form: FlowMode) -> bool:
        return form in self._in_flight

    @property
    def loading(self) -> bool:
        """Whether the active form has a call outstanding"""
        return self.mode in self._in_flight

    def ticket(self) -> Ticket:
        return Ticket(epoch=self.epoch, mode=self.mode)

    def is_current(self, ticket: Ticket) -> bool:
        """Whether the flow is still where it was when ticket was issued"""
        return ticket.epoch == self.epoch and ticket.mode is self.mode

    def snapshot(self) -> FlowSnapshot:
        return FlowSnapshot(
            mode=self.mode,
            identifier=self.draft.identifier,
            email=self.draft.email,
            field_errors=dict(self.status.field_errors),
            error=self.status.error,
            success=self.status.success,
            loading=self.loading,
            focus=self.focus,
            pending_identifier=self.pending.identifier if self.pending else None,
        )

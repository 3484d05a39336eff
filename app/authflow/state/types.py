"""Flow state types"""
from dataclasses import dataclass, field, fields
from typing import Dict, Iterable, Optional

from authflow.config.constants import DRAFT_FIELDS, FlowMode


@dataclass
class CredentialDraft:
    """Field values the user is currently editing"""
    identifier: str = ""
    email: str = ""
    password: str = field(default="", repr=False)
    confirm_password: str = field(default="", repr=False)
    new_password: str = field(default="", repr=False)
    code: str = field(default="", repr=False)

    def get(self, name: str) -> str:
        return getattr(self, name)

    def set(self, name: str, value: str) -> None:
        if name not in DRAFT_FIELDS:
            raise KeyError(name)
        setattr(self, name, value or "")

    def clear(self, names: Iterable[str]) -> None:
        for name in names:
            self.set(name, "")

    def as_dict(self) -> Dict[str, str]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class PendingContext:
    """Account captured mid-flow so a later step can re-identify it

    Attributes:
        identifier: Account identifier
        serves: Mode whose completion consumes this context
        password: Password typed when the requirement was discovered
    """
    identifier: str
    serves: FlowMode
    password: Optional[str] = field(default=None, repr=False)


@dataclass
class TransientStatus:
    """Messages shown alongside the active form

    At most one error and one success message; setting one clears the other.
    """
    field_errors: Dict[str, str] = field(default_factory=dict)
    error: Optional[str] = None
    success: Optional[str] = None


@dataclass(frozen=True)
class FlowSnapshot:
    """Read-only view of the flow for renderers. Carries no secrets."""
    mode: FlowMode
    identifier: str
    email: str
    field_errors: Dict[str, str]
    error: Optional[str]
    success: Optional[str]
    loading: bool
    focus: str
    pending_identifier: Optional[str]


@dataclass(frozen=True)
class Ticket:
    """Identifies the flow position at which a call was issued"""
    epoch: int
    mode: FlowMode

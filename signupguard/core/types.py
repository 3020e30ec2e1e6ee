"""
SignupGuard Core Types — Shared enums, dataclasses, and exceptions.

This module centralizes all type definitions used across the SignupGuard
codebase. All layers (Core, Page, Agent) import types from here.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple


# =============================================================================
# EXCEPTIONS
# =============================================================================

class SignupGuardError(Exception):
    """Base exception for all SignupGuard errors."""
    pass


class SecurityError(SignupGuardError):
    """Raised when an operation would violate a hard compliance invariant."""
    pass


class DetectionFailure(SignupGuardError):
    """No usable signup form could be found on the page (non-fatal)."""
    pass


class PermissionDenied(SignupGuardError):
    """The human denied a permission request (non-fatal, skip-and-continue)."""
    pass


class FieldWriteError(SignupGuardError):
    """Writing one field failed. Logged and skipped; never aborts a session."""

    def __init__(self, field_name: str, message: str = ""):
        self.field_name = field_name
        super().__init__(message or f"Could not write field {field_name!r}")


class SubmissionTimeout(SignupGuardError):
    """No human submission was observed before the deadline (fatal to the attempt)."""
    pass


class CollaboratorError(SignupGuardError):
    """An external store write failed. Caught, logged, ignored."""
    pass


class InvalidTransition(SignupGuardError):
    """Raised when the session state machine is asked for an illegal move."""

    def __init__(self, current: 'SessionState', target: 'SessionState'):
        self.current = current
        self.target = target
        super().__init__(f"Illegal session transition {current.value} -> {target.value}")


# =============================================================================
# ENUMS — Risk classification
# =============================================================================

class ToSTier(Enum):
    """Ordinal automation-permission classification of a site.

    Lower value = more permissive.
    """
    SAFE = 0            # localhost, *.local, private ranges — full automation
    GENERIC = 1         # Generic sites — auto-promotes with confidence
    HUMAN_GUIDED = 2    # Social/e-commerce — always human-guided
    NEVER = 3           # Financial/government — never automates

    @classmethod
    def from_value(cls, level: int) -> 'ToSTier':
        """Map an integer to a tier. Out-of-range values fail closed to NEVER."""
        try:
            return cls(int(level))
        except (TypeError, ValueError):
            return cls.NEVER


class AutomationMode(Enum):
    """Maximum automation mode a policy allows."""
    NONE = "none"
    HUMAN_GUIDED = "human-guided"
    ASSISTED_AUTO = "assisted-auto"
    FULL_AUTO = "full-auto"


class RiskLevel(Enum):
    """Risk of automating against a site."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EXTREME = "extreme"


class ComplianceLevel(Enum):
    """Severity of a compliance log entry."""
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class SessionState(Enum):
    """Signup session lifecycle states."""
    IDLE = "IDLE"
    DETECTING = "DETECTING"
    AWAITING_PERMISSION = "AWAITING_PERMISSION"
    FILLING = "FILLING"
    AWAITING_HUMAN_SUBMIT = "AWAITING_HUMAN_SUBMIT"
    RECORDING = "RECORDING"
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.COMPLETE, SessionState.FAILED)


class FieldType(Enum):
    """Normalized form field types."""
    TEXT = "text"
    EMAIL = "email"
    PASSWORD = "password"
    TEL = "tel"
    URL = "url"
    NUMBER = "number"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    TEXTAREA = "textarea"
    DATE = "date"
    FILE = "file"

    @classmethod
    def normalize(cls, raw: Optional[str]) -> 'FieldType':
        """Map a raw HTML type attribute to a FieldType. Unknown types become TEXT."""
        mapping = {
            'select-one': cls.SELECT,
            'select-multiple': cls.SELECT,
            'select': cls.SELECT,
        }
        value = (raw or 'text').strip().lower()
        if value in mapping:
            return mapping[value]
        try:
            return cls(value)
        except ValueError:
            return cls.TEXT


class AttributeKey(Enum):
    """Closed set of user attributes the autofill engine understands."""
    FIRST_NAME = "firstName"
    LAST_NAME = "lastName"
    EMAIL = "email"
    PHONE = "phone"
    COMPANY = "company"
    WEBSITE = "website"
    ADDRESS = "address"
    CITY = "city"
    STATE = "state"
    ZIP_CODE = "zipCode"
    COUNTRY = "country"
    TAX_ID = "taxId"
    # Accepted so callers can pass a full profile, but never written.
    PASSWORD = "password"


class PIIType(Enum):
    """Kinds of personal data redacted from persisted audit details."""
    EMAIL = "email"
    PHONE = "phone"
    SSN = "ssn"
    CREDIT_CARD = "credit_card"
    API_KEY = "api_key"
    PASSWORD = "password"


UserAttributes = Mapping[AttributeKey, Optional[str]]


def normalize_attributes(raw: Mapping[Any, Optional[str]]) -> Dict[AttributeKey, Optional[str]]:
    """Coerce a caller mapping into the closed AttributeKey set.

    Keys may be AttributeKey members or their string values
    ("firstName"). Unknown keys raise ValueError.
    """
    result: Dict[AttributeKey, Optional[str]] = {}
    for key, value in (raw or {}).items():
        if isinstance(key, AttributeKey):
            attr = key
        else:
            try:
                attr = AttributeKey(str(key))
            except ValueError:
                raise ValueError(f"Unknown user attribute: {key!r}") from None
        result[attr] = value
    return result


# =============================================================================
# DATACLASSES — Registry and policy
# =============================================================================

@dataclass(frozen=True)
class Network:
    """Static registry record for a known site. Never mutated at runtime."""
    id: str
    name: str
    domain_patterns: Tuple[str, ...]
    tos_level: int
    api_available: bool
    path_patterns: Tuple[str, ...] = ()
    signup_url: str = ""
    dashboard_url: str = ""
    notes: str = ""

    @property
    def tier(self) -> ToSTier:
        return ToSTier.from_value(self.tos_level)

    @classmethod
    def from_dict(cls, data: Dict) -> 'Network':
        return cls(
            id=data['id'],
            name=data.get('name', data['id']),
            domain_patterns=tuple(data.get('domain_patterns', ())),
            tos_level=int(data.get('tos_level', 1)),
            api_available=bool(data.get('api_available', False)),
            path_patterns=tuple(data.get('path_patterns', ())),
            signup_url=data.get('signup_url', ''),
            dashboard_url=data.get('dashboard_url', ''),
            notes=data.get('notes', ''),
        )


@dataclass(frozen=True)
class AutomationPolicy:
    """Derived automation policy. Computed, never stored."""
    permitted: bool
    max_mode: AutomationMode
    risk_level: RiskLevel
    recommended_approach: str = ""

    def to_dict(self) -> Dict:
        return {
            'permitted': self.permitted,
            'max_mode': self.max_mode.value,
            'risk_level': self.risk_level.value,
        }


# =============================================================================
# DATACLASSES — Forms
# =============================================================================

@dataclass(frozen=True)
class FormField:
    """A single candidate field on a signup form.

    `sensitive` is set by the FormInspector and is authoritative.
    """
    name: str
    type: FieldType
    label: Optional[str]
    required: bool
    sensitive: bool
    placeholder: Optional[str] = None
    autocomplete: Optional[str] = None
    handle: Any = field(default=None, compare=False, repr=False)

    def signature(self) -> Tuple[str, str, bool, bool]:
        """Structural identity used for idempotence checks."""
        return (self.name, self.type.value, self.required, self.sensitive)


@dataclass(frozen=True)
class SignupForm:
    """A detected signup form. Created per detection call, never persisted."""
    fields: Tuple[FormField, ...]
    form_handle: Any = field(compare=False, repr=False)
    submit_target: Any = field(default=None, compare=False, repr=False)
    network_id: Optional[str] = None
    detected_at: float = field(default_factory=time.time)

    @property
    def required_fields(self) -> List[FormField]:
        return [f for f in self.fields if f.required]

    @property
    def sensitive_fields(self) -> List[FormField]:
        return [f for f in self.fields if f.sensitive]


@dataclass
class PIIFinding:
    """One PII match within a string."""
    pii_type: PIIType
    value: str
    start: int
    end: int
    confidence: float


@dataclass(frozen=True)
class FillResult:
    """Outcome of a prefill pass."""
    filled: int
    skipped: int
    filled_fields: Tuple[str, ...] = ()


# =============================================================================
# DATACLASSES — Session and audit
# =============================================================================

@dataclass(frozen=True)
class PermissionRequest:
    """An immutable record of one human permission decision."""
    action: str
    description: str
    risks: Tuple[str, ...]
    approved: bool
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict:
        return {
            'action': self.action,
            'description': self.description,
            'risks': list(self.risks),
            'approved': self.approved,
            'timestamp': self.timestamp,
        }


@dataclass
class GuidanceStep:
    """One line of visual guidance shown to the human."""
    kind: str           # highlight | checklist | instruction | permission | warning
    message: str
    field_name: Optional[str] = None
    completed: bool = False


@dataclass
class Session:
    """Mutable state of one signup attempt."""
    network_id: str
    started_at: float = field(default_factory=time.time)
    steps: List[GuidanceStep] = field(default_factory=list)
    fields_completed: Set[str] = field(default_factory=set)
    human_submitted: bool = False
    completed_at: Optional[float] = None
    permissions: List[PermissionRequest] = field(default_factory=list)
    state: SessionState = SessionState.IDLE

    def mark_human_submitted(self) -> None:
        """Flip human_submitted False -> True. A second flip is an invariant breach."""
        if self.human_submitted:
            raise SecurityError("human_submitted may only be set once per session")
        self.human_submitted = True

    @property
    def duration_seconds(self) -> float:
        end = self.completed_at if self.completed_at is not None else time.time()
        return max(0.0, end - self.started_at)

    @property
    def approvals_granted(self) -> int:
        return sum(1 for p in self.permissions if p.approved)

    @property
    def approvals_denied(self) -> int:
        return sum(1 for p in self.permissions if not p.approved)


@dataclass(frozen=True)
class ComplianceLogEntry:
    """One append-only audit record."""
    action: str
    level: ComplianceLevel
    network_id: Optional[str] = None
    human_approved: Optional[bool] = None
    timestamp: float = field(default_factory=time.time)
    details: Optional[Dict[str, Any]] = None
    sequence: int = 0
    chain_hash: str = ""

    def to_dict(self) -> Dict:
        return {
            'action': self.action,
            'level': self.level.value,
            'network_id': self.network_id,
            'human_approved': self.human_approved,
            'timestamp': self.timestamp,
            'details': self.details or {},
            'sequence': self.sequence,
            'chain_hash': self.chain_hash,
        }

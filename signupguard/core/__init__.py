"""
SignupGuard Core — Classification and Compliance Infrastructure

Submodules:
- version   : Version constants (single source of truth)
- types     : Shared enums, dataclasses, exceptions
- config    : AssistantConfig
- patterns  : Keyword tables and regex denylists
- access/   : Network registry and ToS risk classifier
- audit/    : Compliance recorder and session report
- analysis/ : PII redaction for persisted details
- crypto/   : ECDSA signing of critical entries
- store/    : Optional JSON persistence collaborator

Quick imports:
    from signupguard.core import RiskClassifier, ComplianceRecorder
    from signupguard.core import ToSTier, AutomationMode, SessionState
    from signupguard.core.version import __version__
"""

from signupguard.core.version import (
    __version__,
    LOG_SCHEMA_VERSION,
    STORE_SCHEMA_VERSION,
)

from signupguard.core.types import (
    # Exceptions
    SignupGuardError,
    SecurityError,
    DetectionFailure,
    PermissionDenied,
    FieldWriteError,
    SubmissionTimeout,
    CollaboratorError,
    InvalidTransition,
    # Enums
    ToSTier,
    AutomationMode,
    RiskLevel,
    ComplianceLevel,
    SessionState,
    FieldType,
    AttributeKey,
    PIIType,
    # Dataclasses
    Network,
    AutomationPolicy,
    FormField,
    SignupForm,
    FillResult,
    PermissionRequest,
    GuidanceStep,
    Session,
    ComplianceLogEntry,
    normalize_attributes,
)

from signupguard.core.config import AssistantConfig
from signupguard.core.access.risk_classifier import RiskClassifier
from signupguard.core.audit.recorder import ComplianceRecorder

__all__ = [
    '__version__',
    'LOG_SCHEMA_VERSION',
    'STORE_SCHEMA_VERSION',
    'SignupGuardError',
    'SecurityError',
    'DetectionFailure',
    'PermissionDenied',
    'FieldWriteError',
    'SubmissionTimeout',
    'CollaboratorError',
    'InvalidTransition',
    'ToSTier',
    'AutomationMode',
    'RiskLevel',
    'ComplianceLevel',
    'SessionState',
    'FieldType',
    'AttributeKey',
    'PIIType',
    'Network',
    'AutomationPolicy',
    'FormField',
    'SignupForm',
    'FillResult',
    'PermissionRequest',
    'GuidanceStep',
    'Session',
    'ComplianceLogEntry',
    'normalize_attributes',
    'AssistantConfig',
    'RiskClassifier',
    'ComplianceRecorder',
]

"""
Audit Layer — Compliance trail and reporting.

Classes:
- ComplianceRecorder: Chain-hashed, PII-redacted, optionally signed entries
- generate_session_report: Markdown summary of a signup session
"""

from signupguard.core.audit.recorder import ComplianceRecorder, GENESIS_HASH
from signupguard.core.audit.report import generate_session_report, format_duration

__all__ = [
    'ComplianceRecorder',
    'GENESIS_HASH',
    'generate_session_report',
    'format_duration',
]

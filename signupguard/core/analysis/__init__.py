"""
Analysis Layer — PII detection and redaction.
"""

from signupguard.core.analysis.pii_protector import PIIProtector

__all__ = ['PIIProtector']

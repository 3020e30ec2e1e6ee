#!/usr/bin/env python3
"""
SignupGuard Core Analysis — PII Protector
===========================================
PII detection and redaction for persisted audit details:
- Email addresses, phone numbers, SSNs, credit card numbers
- API keys and password assignments
- Confidence-scored findings

Audit entries only ever carry field names, never values, but detail
dictionaries are still scrubbed before they reach disk.

Import from: signupguard.core.analysis.pii_protector
"""

import re
from typing import Any, List, Set, Tuple

from signupguard.core.types import PIIType, PIIFinding


class PIIProtector:
    """PII detection and redaction."""

    PATTERNS = {
        PIIType.EMAIL: (r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b', 0.95),
        PIIType.SSN: (r'\b\d{3}-\d{2}-\d{4}\b', 0.95),
        PIIType.CREDIT_CARD: (r'\b(?:\d{4}[-\s]?){3}\d{4}\b', 0.9),
        PIIType.PHONE: (r'(?<![\w-])(?:\+1[-.\s]?)?\(?\d{3}\)?[-.\s]\d{3}[-.\s]\d{4}\b', 0.8),
        PIIType.API_KEY: (r'(?i)(?:api[_-]?key|apikey|token)\s*[=:]\s*["\']?([A-Za-z0-9_-]{16,})["\']?', 0.9),
        PIIType.PASSWORD: (r'(?i)(?:password|passwd|pwd)\s*[=:]\s*["\']?([^\s"\']{4,})["\']?', 0.85),
    }

    def __init__(self):
        self.compiled = {t: (re.compile(p), c) for t, (p, c) in self.PATTERNS.items()}

    def detect_pii(self, text: str) -> List[PIIFinding]:
        findings = []
        for pii_type, (pattern, confidence) in self.compiled.items():
            for match in pattern.finditer(text):
                findings.append(PIIFinding(
                    pii_type=pii_type, value=match.group()[:50],
                    start=match.start(), end=match.end(), confidence=confidence
                ))
        return findings

    def redact_pii(self, text: str, types: Set[PIIType] = None) -> Tuple[str, List[PIIFinding]]:
        if types is None:
            types = set(PIIType)

        findings = [f for f in self.detect_pii(text) if f.pii_type in types]
        # Replace right to left; drop matches overlapping an already-redacted span.
        findings.sort(key=lambda f: (f.start, f.end), reverse=True)
        last_start = len(text) + 1
        for f in findings:
            if f.end > last_start:
                continue
            placeholder = f"[REDACTED_{f.pii_type.value.upper()}]"
            text = text[:f.start] + placeholder + text[f.end:]
            last_start = f.start

        return text, findings

    def redact_for_logging(self, value: Any) -> Any:
        """Redact strings anywhere inside a JSON-like value."""
        if isinstance(value, str):
            text, _ = self.redact_pii(value)
            return text
        if isinstance(value, dict):
            return {k: self.redact_for_logging(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [self.redact_for_logging(v) for v in value]
        return value

    def contains_pii(self, text: str) -> bool:
        return bool(self.detect_pii(text))


__all__ = [
    'PIIProtector',
    'PIIType',
    'PIIFinding',
]

#!/usr/bin/env python3
"""
SignupGuard Agent — Autofill Engine
=====================================
Pre-fills non-sensitive signup fields from the user's saved attributes,
but only after the person approves through the PermissionGate.

Matching, per field:
1. Exact hit: the field name equals an attribute key (case-insensitive)
2. Synonym table: first AttributeKey whose synonym patterns match the
   lowercased field name (camelCase split into words) or label

Sensitive fields are never written, whatever the attributes contain.

Import from: signupguard.agent.autofill
"""

import re
import logging
from typing import Callable, Dict, List, Mapping, Optional

from signupguard.core.types import (
    AttributeKey, FieldWriteError, FillResult, FormField, SignupForm,
    normalize_attributes,
)
from signupguard.core.patterns import FIELD_SYNONYMS
from signupguard.core.constants import FILL_HIGHLIGHT_MS, FILLED_HIGHLIGHT_STYLE

logger = logging.getLogger("signupguard.agent.autofill")

__all__ = ['AutofillEngine', 'match_attribute', 'PREFILL_ACTION', 'PREFILL_RISKS']

PREFILL_ACTION = "Pre-fill Form Fields"
PREFILL_RISKS = (
    "Form fields will be filled with your personal information",
    "You should review all fields before submitting",
    "Passwords must be entered manually",
)

_EXACT_KEYS: Dict[str, AttributeKey] = {k.value.lower(): k for k in AttributeKey}
_SYNONYM_RES = [(key, [re.compile(p) for p in patterns]) for key, patterns in FIELD_SYNONYMS]
_CAMEL_RE = re.compile(r'([a-z0-9])([A-Z])')


def match_attribute(field: FormField) -> Optional[AttributeKey]:
    """Return the attribute a field should receive, or None."""
    exact = _EXACT_KEYS.get((field.name or '').lower())
    if exact is not None:
        return exact

    name = _CAMEL_RE.sub(r'\1 \2', field.name or '')
    haystack = f"{name} {field.label or ''}".lower()
    for key, synonyms in _SYNONYM_RES:
        if any(p.search(haystack) for p in synonyms):
            return key
    return None


class AutofillEngine:
    """Permission-gated field writer."""

    def __init__(self, gate, recorder=None, overlay=None,
                 highlight_ms: int = FILL_HIGHLIGHT_MS):
        self.gate = gate
        self.recorder = recorder
        self.overlay = overlay
        self.highlight_ms = highlight_ms
        self.session = None

    def _network_id(self, form: SignupForm) -> Optional[str]:
        if self.session is not None:
            return self.session.network_id
        return form.network_id

    def _cancelled(self, session) -> bool:
        """True once the gate was cancelled or the bound session replaced."""
        return self.gate.cancelled or self.session is not session

    def prefill(self, form: SignupForm, user_attributes: Mapping,
                on_decision: Optional[Callable[[bool], None]] = None) -> FillResult:
        """Ask for permission, then write every matched non-sensitive field.

        Unknown attribute keys raise ValueError before the person is asked.
        Writing stops as soon as the gate is cancelled (session end).
        """
        attributes = normalize_attributes(user_attributes)
        total = len(form.fields)
        network_id = self._network_id(form)
        session = self.session

        approved = self.gate.request_permission(
            PREFILL_ACTION,
            f"Fill {total} form field(s) with your saved information. "
            f"Sensitive fields are left for you to enter.",
            PREFILL_RISKS,
        )
        if on_decision is not None:
            on_decision(approved)

        if not approved:
            if self.recorder is not None:
                self.recorder.warning('prefill_denied', network_id=network_id,
                                      human_approved=False, details={'field_count': total})
            return FillResult(filled=0, skipped=total)

        if self._cancelled(session):
            return self._stop(network_id, total, [])

        if self.recorder is not None:
            self.recorder.info('prefill_form', network_id=network_id, human_approved=True,
                               details={'field_count': total,
                                        'sensitive_count': len(form.sensitive_fields)})

        filled: List[str] = []
        for field in form.fields:
            if field.sensitive:
                continue
            key = match_attribute(field)
            if key is None or key is AttributeKey.PASSWORD:
                continue
            value = attributes.get(key)
            if not value:
                continue
            if self._cancelled(session):
                return self._stop(network_id, total, filled)
            try:
                self._write(field, value)
            except FieldWriteError as e:
                logger.warning("Skipping field %s: %s", e.field_name, e)
                if self.recorder is not None:
                    self.recorder.warning('field_write_failed', network_id=network_id,
                                          details={'field': e.field_name, 'error': str(e)[:200]})
                continue
            filled.append(field.name)
            if session is not None:
                session.fields_completed.add(field.name)

        if self._cancelled(session):
            return self._stop(network_id, total, filled)

        logger.info("Prefill complete: %d filled, %d skipped", len(filled), total - len(filled))
        return FillResult(filled=len(filled), skipped=total - len(filled),
                          filled_fields=tuple(filled))

    def _stop(self, network_id: Optional[str], total: int, filled: List[str]) -> FillResult:
        # highlights started by this fill must not outlive the session
        if self.overlay is not None:
            self.overlay.cancel_highlights()
        logger.info("Prefill cancelled after %d field(s)", len(filled))
        if self.recorder is not None:
            self.recorder.warning('prefill_cancelled', network_id=network_id,
                                  details={'field_count': total, 'filled': len(filled)})
        return FillResult(filled=len(filled), skipped=total - len(filled),
                          filled_fields=tuple(filled))

    def _write(self, field: FormField, value: str) -> None:
        handle = field.handle
        if handle is None:
            raise FieldWriteError(field.name, f"Field {field.name!r} has no element handle")
        try:
            handle.set_value(value)
            handle.dispatch_event('input')
            handle.dispatch_event('change')
        except Exception as e:
            raise FieldWriteError(field.name, f"{type(e).__name__}: {e}") from e

        if self.overlay is not None:
            try:
                self.overlay.highlight(handle, FILLED_HIGHLIGHT_STYLE, self.highlight_ms)
            except Exception as e:
                logger.debug("Highlight failed for %s: %s", field.name, e)

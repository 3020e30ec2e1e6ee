#!/usr/bin/env python3
"""
SignupGuard Agent — Form Inspector
====================================
Finds the signup form on a page and describes its fields.

Every heuristic is an ordered list of small rule functions, evaluated
first-match-wins against the PageDriver query interface:

    FORM_RULES       which form is the signup form
    LABEL_RULES      label[for] -> enclosing label -> aria-label -> placeholder
    SENSITIVE_RULES  password type or a denylisted name/label
    SUBMIT_RULES     submit-typed control -> keyword button -> first button

Sensitivity set here is authoritative: nothing downstream may clear it.

Import from: signupguard.agent.form_inspector
"""

import re
import json
import hashlib
import logging
from typing import Callable, List, Optional, Sequence

from signupguard.core.types import DetectionFailure, FieldType, FormField, SignupForm
from signupguard.core.patterns import (
    SIGNUP_TEXT_KEYWORDS, SIGNUP_ACTION_KEYWORDS, FIELD_TAGS,
    NON_FIELD_INPUT_TYPES, SENSITIVE_FIELD_PATTERNS, SENSITIVE_FIELD_TYPES,
    SUBMIT_BUTTON_KEYWORDS,
)

logger = logging.getLogger("signupguard.agent.form_inspector")

__all__ = [
    'FormInspector', 'workflow_hash',
    'FORM_RULES', 'LABEL_RULES', 'SENSITIVE_RULES', 'SUBMIT_RULES',
]

_SENSITIVE_RE = [re.compile(p) for p in SENSITIVE_FIELD_PATTERNS]


def _attr(el, name: str) -> str:
    return (el.get_attribute(name) or '').strip()


def _control_text(el) -> str:
    """Visible text of a button-like control, lowercased."""
    if el.tag == 'input':
        return _attr(el, 'value').lower()
    return (el.text() or '').strip().lower()


# =============================================================================
# FORM SELECTION RULES
# =============================================================================

def form_has_signup_text(page, form) -> bool:
    text = (form.visible_text() or '').lower()
    buttons = ' '.join(_control_text(b) for b in page.query_all('input[type=submit]', form))
    haystack = f"{text} {buttons}"
    return any(k in haystack for k in SIGNUP_TEXT_KEYWORDS)


def form_action_is_signup(page, form) -> bool:
    action = _attr(form, 'action').lower()
    return any(k in action for k in SIGNUP_ACTION_KEYWORDS)


FORM_RULES: List[Callable] = [form_has_signup_text, form_action_is_signup]


# =============================================================================
# LABEL RULES
# =============================================================================

def _clean_label(text: str) -> Optional[str]:
    text = ' '.join((text or '').split()).strip(' *:')
    return text or None


def label_for_id(page, form, el) -> Optional[str]:
    el_id = _attr(el, 'id')
    if not el_id:
        return None
    # ids may contain selector metacharacters such as "user[email]"
    for label in page.query_all('label[for]'):
        if label.get_attribute('for') == el_id:
            return _clean_label(label.text())
    return None


def label_enclosing(page, form, el) -> Optional[str]:
    label = el.closest('label')
    return _clean_label(label.text()) if label is not None else None


def label_aria(page, form, el) -> Optional[str]:
    return _clean_label(_attr(el, 'aria-label'))


def label_placeholder(page, form, el) -> Optional[str]:
    return _clean_label(_attr(el, 'placeholder'))


LABEL_RULES: List[Callable] = [label_for_id, label_enclosing, label_aria, label_placeholder]


# =============================================================================
# SENSITIVITY RULES
# =============================================================================

def sensitive_by_type(name: str, label: Optional[str], field_type: FieldType) -> bool:
    return field_type.value in SENSITIVE_FIELD_TYPES


def sensitive_by_name(name: str, label: Optional[str], field_type: FieldType) -> bool:
    return any(p.search(name or '') for p in _SENSITIVE_RE)


def sensitive_by_label(name: str, label: Optional[str], field_type: FieldType) -> bool:
    return bool(label) and any(p.search(label) for p in _SENSITIVE_RE)


SENSITIVE_RULES: List[Callable] = [sensitive_by_type, sensitive_by_name, sensitive_by_label]


# =============================================================================
# SUBMIT TARGET RULES
# =============================================================================

def submit_typed_control(page, form):
    controls = page.query_all('button[type=submit], input[type=submit], input[type=image]', form)
    return controls[0] if controls else None


def submit_keyword_button(page, form):
    for button in page.query_all('button, input[type=button]', form):
        text = _control_text(button)
        if any(k in text for k in SUBMIT_BUTTON_KEYWORDS):
            return button
    return None


def submit_first_button(page, form):
    buttons = page.query_all('button', form)
    return buttons[0] if buttons else None


SUBMIT_RULES: List[Callable] = [submit_typed_control, submit_keyword_button, submit_first_button]


# =============================================================================
# HASHING
# =============================================================================

def workflow_hash(fields: Sequence[FormField]) -> str:
    """SHA-256 over the (name, type, required) layout of a form."""
    layout = [{'name': f.name, 'type': f.type.value, 'required': f.required} for f in fields]
    return hashlib.sha256(json.dumps(layout, sort_keys=True).encode()).hexdigest()


# =============================================================================
# INSPECTOR
# =============================================================================

class FormInspector:
    """Detect the signup form on a page.

    Usage:
        inspector = FormInspector(recorder)
        form = inspector.detect_signup_form(page, network_id="shareasale")
    """

    def __init__(self, recorder=None):
        self.recorder = recorder

    def detect_signup_form(self, page, network_id: Optional[str] = None) -> Optional[SignupForm]:
        """Return the page's signup form, or None if there is no form.

        Page errors are logged as detect_form_failed and surface as None.
        """
        try:
            form = self._inspect(page, network_id)
        except DetectionFailure as e:
            logger.info("No signup form: %s", e)
            form = None
        except Exception as e:
            logger.warning("Form detection failed: %s", e)
            if self.recorder is not None:
                self.recorder.warning('detect_form_failed', network_id=network_id,
                                      details={'error': type(e).__name__, 'message': str(e)[:200]})
            return None

        if self.recorder is not None:
            if form is None:
                details = {'found': False}
            else:
                details = {
                    'found': True,
                    'field_count': len(form.fields),
                    'required_count': len(form.required_fields),
                    'sensitive_count': len(form.sensitive_fields),
                    'has_submit_target': form.submit_target is not None,
                    'workflow_hash': workflow_hash(form.fields),
                }
            self.recorder.info('detect_form', network_id=network_id, details=details)
        return form

    def _inspect(self, page, network_id: Optional[str]) -> SignupForm:
        forms = page.query_all('form')
        if not forms:
            raise DetectionFailure("Page has no form elements")

        chosen = self.select_form(page, forms)
        fields = tuple(self.enumerate_fields(page, chosen))
        return SignupForm(
            fields=fields,
            form_handle=chosen,
            submit_target=self.resolve_submit_target(page, chosen),
            network_id=network_id,
        )

    @staticmethod
    def select_form(page, forms):
        for form in forms:
            if any(rule(page, form) for rule in FORM_RULES):
                return form
        return forms[0]

    def enumerate_fields(self, page, form) -> List[FormField]:
        fields = []
        selector = ', '.join(FIELD_TAGS)
        for index, el in enumerate(page.query_all(selector, form)):
            if el.tag == 'input' and _attr(el, 'type').lower() in NON_FIELD_INPUT_TYPES:
                continue
            if not el.is_visible():
                continue
            fields.append(self.describe_field(page, form, el, index))
        return fields

    @staticmethod
    def field_type(el) -> FieldType:
        if el.tag == 'select':
            return FieldType.SELECT
        if el.tag == 'textarea':
            return FieldType.TEXTAREA
        return FieldType.normalize(_attr(el, 'type'))

    @staticmethod
    def resolve_label(page, form, el) -> Optional[str]:
        for rule in LABEL_RULES:
            label = rule(page, form, el)
            if label:
                return label
        return None

    @staticmethod
    def is_sensitive(name: str, label: Optional[str], field_type: FieldType) -> bool:
        return any(rule(name, label, field_type) for rule in SENSITIVE_RULES)

    def describe_field(self, page, form, el, index: int) -> FormField:
        name = _attr(el, 'name') or _attr(el, 'id') or f"field_{index}"
        field_type = self.field_type(el)
        label = self.resolve_label(page, form, el)
        required = el.get_attribute('required') is not None or \
            _attr(el, 'aria-required').lower() == 'true'
        return FormField(
            name=name,
            type=field_type,
            label=label,
            required=required,
            sensitive=self.is_sensitive(name, label, field_type),
            placeholder=_attr(el, 'placeholder') or None,
            autocomplete=_attr(el, 'autocomplete') or None,
            handle=el,
        )

    @staticmethod
    def resolve_submit_target(page, form):
        for rule in SUBMIT_RULES:
            target = rule(page, form)
            if target is not None:
                return target
        return None

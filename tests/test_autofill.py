#!/usr/bin/env python3
"""
Tests for AutofillEngine: attribute matching, permission gating,
sensitive-field protection and write failures.

Run: python -m pytest tests/test_autofill.py -v
"""

import sys
import time
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from signupguard.core.types import AttributeKey, ComplianceLevel, FieldType, FormField, Session
from signupguard.core.constants import FILLED_HIGHLIGHT_STYLE
from signupguard.page.static import StaticPage
from signupguard.page.overlay import OverlayManager
from signupguard.agent.form_inspector import FormInspector
from signupguard.agent.permission_gate import PermissionGate
from signupguard.agent.autofill import AutofillEngine, match_attribute, PREFILL_ACTION
from conftest import ScriptedPresenter


PARTNER_ATTRIBUTES = {
    "firstName": "Jane",
    "lastName": "Doe",
    "email": "jane@example.com",
    "company": "Doe Media",
    "website": "https://janedoe.example",
    "country": "US",
    "password": "hunter22",
}


def _engine(recorder, overlay, answers=(True,)):
    presenter = ScriptedPresenter(list(answers))
    gate = PermissionGate(presenter, recorder)
    return AutofillEngine(gate, recorder, overlay, highlight_ms=20), presenter


def _field(name, label=None, sensitive=False):
    return FormField(name=name, type=FieldType.TEXT, label=label, required=False,
                     sensitive=sensitive)


class TestMatchAttribute:

    @pytest.mark.parametrize("name,label,expected", [
        ("firstName", None, AttributeKey.FIRST_NAME),
        ("EMAIL", None, AttributeKey.EMAIL),
        ("fname", "Given name", AttributeKey.FIRST_NAME),
        ("surname", None, AttributeKey.LAST_NAME),
        ("field_3", "Family name", AttributeKey.LAST_NAME),
        ("contact_email", None, AttributeKey.EMAIL),
        ("business", "Company", AttributeKey.COMPANY),
        ("zip", None, AttributeKey.ZIP_CODE),
        ("vat_number", None, AttributeKey.TAX_ID),
        ("zipCode", None, AttributeKey.ZIP_CODE),
        ("billing_city", None, AttributeKey.CITY),
        ("websiteUrl", None, AttributeKey.WEBSITE),
        ("field_9", "State / Province", AttributeKey.STATE),
    ])
    def test_matches(self, name, label, expected):
        assert match_attribute(_field(name, label)) == expected

    @pytest.mark.parametrize("name,label", [
        ("ethnicity", None),
        ("publicity_ok", "Allow publicity"),
        ("protein_intake", None),
        ("reinvest", "Reinvest earnings"),
        ("mission_statement", "Mission statement"),
        ("private_notes", None),
    ])
    def test_short_synonyms_need_word_boundaries(self, name, label):
        assert match_attribute(_field(name, label)) is None

    def test_no_match(self):
        assert match_attribute(_field("about", "Tell us about you")) is None


class TestPrefill:

    def test_jane_scenario(self, recorder, page, overlay):
        form = FormInspector(recorder).detect_signup_form(page)
        engine, presenter = _engine(recorder, overlay)

        result = engine.prefill(form, {"firstName": "Jane"})

        assert result.filled == 1
        assert result.skipped == 3
        assert result.filled_fields == ('firstName',)
        assert page.query('#firstName').value == "Jane"
        assert page.query('#password').value == ""
        assert presenter.calls[0][0] == PREFILL_ACTION
        assert recorder.count('prefill_form') == 1

    def test_denial_writes_nothing(self, recorder, page, overlay):
        form = FormInspector(recorder).detect_signup_form(page)
        engine, _ = _engine(recorder, overlay, answers=(False,))

        result = engine.prefill(form, {"firstName": "Jane", "email": "jane@example.com"})

        assert result.filled == 0
        assert result.skipped == 4
        assert all(f.handle.value == "" for f in form.fields)
        assert overlay.pending_highlights == 0
        denied = recorder.entries_for('prefill_denied')
        assert len(denied) == 1
        assert denied[0].level == ComplianceLevel.WARNING
        assert recorder.count('prefill_form') == 0

    def test_partner_form_synonyms(self, recorder, partner_page):
        overlay = OverlayManager(partner_page)
        form = FormInspector(recorder).detect_signup_form(partner_page)
        engine, _ = _engine(recorder, overlay)

        result = engine.prefill(form, PARTNER_ATTRIBUTES)

        assert set(result.filled_fields) == {
            'fname', 'surname', 'contact_email', 'business', 'site', 'country_code'}
        assert result.filled == 6
        assert result.skipped == len(form.fields) - 6
        assert partner_page.query('select[name=country_code]').value == "US"
        assert partner_page.query('input[name=api_key]').value == ""
        assert partner_page.query('input[name=promo]').value == ""
        overlay.cancel_highlights()

    def test_sensitive_field_never_written(self, recorder):
        page = StaticPage("""
            <form action="/signup"><p>Sign up</p>
              <input name="email" type="email">
              <input name="password" type="password">
              <input name="taxId" aria-label="SSN">
            </form>""")
        form = FormInspector(recorder).detect_signup_form(page)
        engine, _ = _engine(recorder, OverlayManager(page))

        result = engine.prefill(form, {"email": "a@b.test", "password": "pw", "taxId": "123-45-6789"})

        assert result.filled_fields == ('email',)
        assert page.query('input[name=password]').value == ""
        assert page.query('input[name=taxId]').value == ""

    def test_empty_value_skipped(self, recorder, page, overlay):
        form = FormInspector(recorder).detect_signup_form(page)
        engine, _ = _engine(recorder, overlay)
        result = engine.prefill(form, {"firstName": "", "lastName": None})
        assert result.filled == 0

    def test_unknown_attribute_rejected_before_asking(self, recorder, page, overlay):
        form = FormInspector(recorder).detect_signup_form(page)
        engine, presenter = _engine(recorder, overlay)
        with pytest.raises(ValueError):
            engine.prefill(form, {"favouriteColour": "blue"})
        assert presenter.calls == []

    def test_write_failure_logged_and_skipped(self, recorder):
        page = StaticPage("""
            <form action="/signup"><p>Create account</p>
              <input name="firstName" disabled>
              <input name="lastName">
            </form>""")
        overlay = OverlayManager(page)
        form = FormInspector(recorder).detect_signup_form(page)
        engine, _ = _engine(recorder, overlay)

        result = engine.prefill(form, {"firstName": "Jane", "lastName": "Doe"})

        assert result.filled_fields == ('lastName',)
        failed = recorder.entries_for('field_write_failed')
        assert len(failed) == 1
        assert failed[0].details['field'] == 'firstName'
        overlay.cancel_highlights()

    def test_input_and_change_events(self, recorder, page, overlay):
        form = FormInspector(recorder).detect_signup_form(page)
        seen = []
        target = page.query('#firstName')
        page.subscribe(target, 'input', lambda e: seen.append((e.type, e.trusted)))
        page.subscribe(target, 'change', lambda e: seen.append((e.type, e.trusted)))
        engine, _ = _engine(recorder, overlay)

        engine.prefill(form, {"firstName": "Jane"})
        assert seen == [('input', False), ('change', False)]
        overlay.cancel_highlights()

    def test_highlight_is_restored(self, recorder, page, overlay):
        form = FormInspector(recorder).detect_signup_form(page)
        engine, _ = _engine(recorder, overlay)
        engine.highlight_ms = 300
        target = page.query('#firstName')

        engine.prefill(form, {"firstName": "Jane"})
        assert target.style.get('border') == FILLED_HIGHLIGHT_STYLE['border']

        deadline = time.monotonic() + 2
        while overlay.pending_highlights and time.monotonic() < deadline:
            time.sleep(0.01)
        assert 'border' not in target.style
        assert overlay.pending_highlights == 0

    def test_session_tracks_completed_fields(self, recorder, page, overlay):
        form = FormInspector(recorder).detect_signup_form(page)
        engine, _ = _engine(recorder, overlay)
        engine.session = Session(network_id="partnerstack")
        engine.gate.session = engine.session

        engine.prefill(form, {"firstName": "Jane", "email": "jane@example.com"})

        assert engine.session.fields_completed == {'firstName', 'email'}
        assert len(engine.session.permissions) == 1
        assert recorder.entries_for('prefill_form')[0].network_id == "partnerstack"
        overlay.cancel_highlights()

    def test_on_decision_callback(self, recorder, page, overlay):
        form = FormInspector(recorder).detect_signup_form(page)
        engine, _ = _engine(recorder, overlay, answers=(False,))
        decisions = []
        engine.prefill(form, {"firstName": "Jane"}, on_decision=decisions.append)
        assert decisions == [False]


class TestCancellation:

    def test_cancel_after_approval_writes_nothing(self, recorder, page, overlay):
        form = FormInspector(recorder).detect_signup_form(page)
        engine, _ = _engine(recorder, overlay)
        engine.session = Session(network_id="partnerstack")

        result = engine.prefill(form, {"firstName": "Jane", "email": "j@x.io"},
                                on_decision=lambda approved: engine.gate.cancel())

        assert result.filled == 0
        assert result.skipped == 4
        assert [f.handle.value for f in form.fields] == ["", "", "", ""]
        assert engine.session.fields_completed == set()
        assert overlay.pending_highlights == 0
        assert recorder.count('prefill_cancelled') == 1
        assert recorder.count('prefill_form') == 0

    def test_session_replaced_mid_fill_stops_writing(self, recorder, page, overlay):
        form = FormInspector(recorder).detect_signup_form(page)
        engine, _ = _engine(recorder, overlay)
        engine.highlight_ms = 60000
        engine.session = Session(network_id="partnerstack")

        def _end_on_first_input(event):
            engine.session = None

        page.subscribe(page.query('#firstName'), 'input', _end_on_first_input)

        result = engine.prefill(form, {"firstName": "Jane", "email": "j@x.io"})

        assert result.filled_fields == ('firstName',)
        assert page.query('#email').value == ""
        assert overlay.pending_highlights == 0
        assert 'border' not in page.query('#firstName').style

#!/usr/bin/env python3
"""
Tests for the static page driver, the overlay manager and the guidance
panel.

Run: python -m pytest tests/test_static_page.py -v
"""

import sys
import time
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from signupguard.core.types import Session
from signupguard.core.constants import GUIDANCE_PANEL_ID, GUIDANCE_SLOT, MODAL_SLOT
from signupguard.page.driver import Subscription
from signupguard.page.static import StaticPage
from signupguard.page.overlay import OverlayManager
from signupguard.agent.form_inspector import FormInspector
from signupguard.agent.guidance import GuidancePanel


HTML = """
<div id="outer" class="box wide">
  <form id="f" action="/join">
    <input name="a" type="text" value="one">
    <input name="b" type="hidden">
    <div style="display:none"><input name="c"></div>
    <input name="d" hidden>
    <select name="s"><option value="x">X</option><option value="y" selected>Y</option></select>
    <textarea name="t">hello</textarea>
    <button id="go">Go</button>
  </form>
</div>
"""


@pytest.fixture
def static():
    return StaticPage(HTML, url="https://example.org/join")


class TestSelectors:

    def test_selector_lists(self, static):
        found = static.query_all('input[type=hidden], #go')
        assert [e.get_attribute('name') or e.get_attribute('id') for e in found] == ['b', 'go']

    def test_combinators(self, static):
        assert [e.get_attribute('name') for e in static.query_all('form > input')] == ['a', 'b', 'd']
        assert static.query('div input[name=c]') is not None

    def test_queries(self, static):
        assert static.query('#outer').tag == 'div'
        assert static.query('.wide').get_attribute('id') == 'outer'
        assert static.query('div.box.wide') is not None
        assert static.query('div.narrow') is None
        assert [e.get_attribute('name') for e in static.query_all('input[name]')] == ['a', 'b', 'c', 'd']
        assert static.query('input[name="a"]').value == 'one'

    def test_scoped_query(self, static):
        form = static.query('form')
        assert len(static.query_all('input', form)) == 4
        assert static.query('#outer', form) is None


class TestElements:

    def test_visibility(self, static):
        visible = {e.get_attribute('name'): e.is_visible() for e in static.query_all('input')}
        assert visible == {'a': True, 'b': False, 'c': False, 'd': False}

    def test_values(self, static):
        assert static.query('select').value == 'y'
        assert static.query('textarea').value == 'hello'
        field = static.query('input[name=a]')
        field.set_value('two')
        assert field.value == 'two'

    def test_readonly_rejects_write(self):
        page = StaticPage("<input name='x' readonly>")
        with pytest.raises(PermissionError):
            page.query('input').set_value('nope')

    def test_style_set_and_remove(self, static):
        el = static.query('#go')
        el.set_style({'border': '1px solid red'})
        assert el.style == {'border': '1px solid red'}
        el.set_style({'border': ''})
        assert el.style == {}

    def test_visible_text_skips_hidden_descendants(self):
        page = StaticPage("<form><p>Newsletter</p><p hidden>Sign up</p>"
                          "<div style='display:none'>Register</div></form>")
        form = page.query('form')
        assert form.text() == 'Newsletter Sign up Register'
        assert form.visible_text() == 'Newsletter'

    def test_class_attribute_reads_as_string(self, static):
        assert static.query('#outer').get_attribute('class') == 'box wide'

    def test_closest(self, static):
        assert static.query('#go').closest('form').get_attribute('id') == 'f'
        assert static.query('#outer').closest('form') is None


class TestEvents:

    def test_bubbling_and_trust(self, static):
        seen = []
        static.subscribe(static.query('#outer'), 'click', lambda e: seen.append(e.trusted))
        static.human_click(static.query('#go'))
        static.query('#go').click()
        assert seen == [True, False]

    def test_button_click_submits_form(self, static):
        submits = []
        form = static.query('form')
        static.subscribe(form, 'submit', lambda e: submits.append(e.trusted))
        static.human_click(static.query('#go'))
        assert submits == [True]
        assert static.submit_calls == []

    def test_programmatic_calls_logged(self, static):
        static.query('#go').click()
        static.query('form').submit()
        assert len(static.click_log) == 1
        assert len(static.submit_calls) == 1

    def test_subscription_dispose(self, static):
        seen = []
        form = static.query('form')
        with static.subscribe(form, 'submit', seen.append) as sub:
            static.human_submit(form)
        assert sub.disposed
        static.human_submit(form)
        assert len(seen) == 1
        assert static.listener_count() == 0
        sub.dispose()

    def test_dispose_idempotent(self):
        calls = []
        sub = Subscription(lambda: calls.append(1))
        sub.dispose()
        sub.dispose()
        assert calls == [1]


class TestOverlay:

    def test_mount_replaces_previous_occupant(self, static):
        overlay = OverlayManager(static)
        first = static.create_element('div', {'id': 'first'})
        second = static.create_element('div', {'id': 'second'})
        sub = static.subscribe(first, 'click', lambda e: None)

        overlay.mount(MODAL_SLOT, first, [sub])
        overlay.mount(MODAL_SLOT, second)

        assert static.query('#first') is None
        assert static.query('#second') is not None
        assert sub.disposed
        assert overlay.get(MODAL_SLOT) is second

    def test_clear_only_matching_occupant(self, static):
        overlay = OverlayManager(static)
        el = static.create_element('div', {'id': 'x'})
        other = static.create_element('div', {'id': 'y'})
        overlay.mount(MODAL_SLOT, el)
        assert overlay.clear(MODAL_SLOT, other) is False
        assert overlay.clear(MODAL_SLOT, el) is True
        assert not static.is_attached(el)

    def test_highlight_restores_previous_style(self, static):
        overlay = OverlayManager(static)
        el = static.query('#go')
        el.set_style({'border': '1px solid black'})
        overlay.highlight(el, {'border': '2px solid green', 'color': 'green'}, 20)

        deadline = time.monotonic() + 2
        while overlay.pending_highlights and time.monotonic() < deadline:
            time.sleep(0.01)
        assert el.style == {'border': '1px solid black'}

    def test_clear_all(self, static):
        overlay = OverlayManager(static)
        overlay.mount(MODAL_SLOT, static.create_element('div', {'id': 'm'}))
        overlay.mount(GUIDANCE_SLOT, static.create_element('div', {'id': 'g'}))
        el = static.query('#go')
        overlay.highlight(el, {'border': '2px solid green'}, 60000)

        overlay.clear_all()

        assert overlay.slots == []
        assert overlay.pending_highlights == 0
        assert static.query('#m') is None and static.query('#g') is None
        assert 'border' not in el.style


class TestGuidancePanel:

    def test_panel_and_checklist(self, recorder, partner_page):
        overlay = OverlayManager(partner_page)
        panel = GuidancePanel(partner_page, overlay)
        panel.session = Session(network_id="teachable")
        form = FormInspector(recorder).detect_signup_form(partner_page)

        panel.show("Detecting signup form...")
        panel.show_field_checklist(form)

        root = partner_page.query(f"#{GUIDANCE_PANEL_ID}")
        assert "Detecting signup form..." in root.text()
        items = [li.text() for li in partner_page.query_all('li', root)]
        assert items == ['Given name', 'Email address']

        panel.mark_completed('fname')
        done = [s for s in panel.session.steps if s.completed]
        assert [s.field_name for s in done] == ['fname']

        panel.clear()
        assert partner_page.query(f"#{GUIDANCE_PANEL_ID}") is None

    def test_sensitive_required_field_marked_manual(self, recorder, page):
        panel = GuidancePanel(page, OverlayManager(page))
        form = FormInspector(recorder).detect_signup_form(page)
        panel.show_field_checklist(form)
        root = page.query(f"#{GUIDANCE_PANEL_ID}")
        items = [li.text() for li in page.query_all('li', root)]
        assert 'Password (manual)' in items

    def test_headless_panel(self):
        step = GuidancePanel().show("hello", kind='warning')
        assert step.kind == 'warning' and step.message == "hello"

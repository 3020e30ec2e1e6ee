"""
Shared pytest fixtures for the SignupGuard test suite.

Provides a temp-dir AssistantConfig, a real ComplianceRecorder, static
pages built from HTML, a scripted permission presenter, and helpers that
play the human from background timer threads.
"""

import sys
import time
import threading
from pathlib import Path
from typing import List

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# Import after path fix
from signupguard.core.config import AssistantConfig
from signupguard.core.audit.recorder import ComplianceRecorder
from signupguard.core.store.json_store import JsonComplianceStore
from signupguard.page.static import StaticPage
from signupguard.page.overlay import OverlayManager


# ---------------------------------------------------------------------------
# Sample pages
# ---------------------------------------------------------------------------

JANE_HTML = """
<html><body>
  <form id="signup" action="/signup">
    <h2>Create account</h2>
    <label for="firstName">First name</label>
    <input id="firstName" name="firstName" type="text" required>
    <label for="lastName">Last name</label>
    <input id="lastName" name="lastName" type="text">
    <label for="email">Email</label>
    <input id="email" name="email" type="email" required>
    <label for="password">Password</label>
    <input id="password" name="password" type="password" required>
    <button type="submit">Sign up</button>
  </form>
</body></html>
"""

PARTNER_HTML = """
<html><body>
  <form id="newsletter" action="/subscribe">
    <input name="newsletter_email" type="email" placeholder="Your email">
    <button>Subscribe</button>
  </form>
  <form id="partner" action="/partners/register" method="post">
    <p>Register as a partner</p>
    <input type="hidden" name="csrf" value="abc">
    <label>Given name <input name="fname" type="text" required></label>
    <input name="surname" aria-label="Family name" type="text">
    <input name="contact_email" type="email" placeholder="Email address" required>
    <input name="business" type="text" placeholder="Company">
    <input name="site" type="url" placeholder="Website">
    <select name="country_code" aria-label="Country">
      <option value="">Choose</option>
      <option value="US">United States</option>
    </select>
    <input name="api_key" type="text" placeholder="API key">
    <input name="promo" type="text" style="display: none">
    <textarea name="about" aria-label="Tell us about you"></textarea>
    <input type="submit" value="Register">
  </form>
</body></html>
"""


# ---------------------------------------------------------------------------
# Config / recorder fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_base(tmp_path):
    """Create a temporary SignupGuard base directory."""
    (tmp_path / "logs").mkdir()
    (tmp_path / "data").mkdir()
    (tmp_path / "keys").mkdir()
    return tmp_path


@pytest.fixture
def config(tmp_base):
    """An AssistantConfig pointing at the temp directory, with short timers."""
    return AssistantConfig(base_dir=tmp_base, highlight_ms=20, submit_timeout_ms=2000)


@pytest.fixture
def recorder(config):
    """A real in-memory ComplianceRecorder."""
    return ComplianceRecorder(config)


@pytest.fixture
def store(config):
    return JsonComplianceStore(config.store_file)


# ---------------------------------------------------------------------------
# Page fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def page():
    return StaticPage(JANE_HTML, url="https://dash.partnerstack.com/signup")


@pytest.fixture
def partner_page():
    return StaticPage(PARTNER_HTML, url="https://teachable.com/partners/register")


@pytest.fixture
def overlay(page):
    return OverlayManager(page)


# ---------------------------------------------------------------------------
# Human simulation
# ---------------------------------------------------------------------------

class ScriptedPresenter:
    """Permission presenter that answers from a script instead of a dialog."""

    def __init__(self, answers=None, default=True, delay=0.0):
        self.answers = list(answers or [])
        self.default = default
        self.delay = delay
        self.calls: List[tuple] = []

    def present(self, action, description, risks, cancel_event):
        self.calls.append((action, description, tuple(risks)))
        if self.delay and cancel_event.wait(self.delay):
            return False
        if cancel_event.is_set():
            return False
        return self.answers.pop(0) if self.answers else self.default


class Human:
    """Plays the person from timer threads; cancels leftovers on teardown."""

    def __init__(self, page):
        self.page = page
        self._timers: List[threading.Timer] = []

    def later(self, delay, fn, *args):
        timer = threading.Timer(delay, fn, args=args)
        timer.daemon = True
        self._timers.append(timer)
        timer.start()
        return timer

    def submit_later(self, delay, form_handle):
        return self.later(delay, self.page.human_submit, form_handle)

    def click_when_present(self, element_id, timeout=3.0, times=1):
        """Click the element with element_id each time it appears."""

        def _run():
            deadline = time.monotonic() + timeout
            clicked = 0
            last = None
            while clicked < times and time.monotonic() < deadline:
                found = self.page.query(f"#{element_id}")
                if found is not None and found is not last:
                    self.page.human_click(found)
                    last = found
                    clicked += 1
                time.sleep(0.01)

        thread = threading.Thread(target=_run, daemon=True)
        thread.start()
        return thread

    def cancel_all(self):
        for timer in self._timers:
            timer.cancel()


@pytest.fixture
def human(page):
    h = Human(page)
    yield h
    h.cancel_all()


@pytest.fixture
def presenter():
    return ScriptedPresenter()

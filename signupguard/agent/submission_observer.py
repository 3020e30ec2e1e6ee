#!/usr/bin/env python3
"""
SignupGuard Agent — Submission Observer
=========================================
Waits for the PERSON to submit the signup form.

This module only listens. It never clicks the submit target and never
calls the form's submit operation, on any path. A passive listener is
registered on the form's native submit event through a disposable
subscription; the wait resolves on the first trusted submit, on
timeout, or on cancel(), and the subscription and banner are removed on
every exit path.

Import from: signupguard.agent.submission_observer
"""

import logging
import threading
from typing import Optional

from signupguard.core.types import SecurityError, SignupForm
from signupguard.core.constants import (
    DEFAULT_SUBMIT_TIMEOUT_MS, MODAL_SLOT, SUBMIT_BANNER_ID,
)

logger = logging.getLogger("signupguard.agent.submission_observer")

__all__ = ['SubmissionObserver', 'SUBMIT_BANNER_TEXT']

SUBMIT_BANNER_TEXT = "Please review all fields and click Submit when ready"

_SUBMITTED = 'submitted'
_TIMEOUT = 'timeout'
_CANCELLED = 'cancelled'


class SubmissionObserver:
    """Observe human form submission.

    Usage:
        observer = SubmissionObserver(page, recorder, overlay)
        if observer.wait_for_human_submission(form, timeout_ms=300000, session=session):
            ...
    """

    def __init__(self, page, recorder=None, overlay=None):
        self.page = page
        self.recorder = recorder
        self.overlay = overlay
        self.session = None
        self._lock = threading.Lock()
        self._active: Optional[dict] = None
        self._cancelled = False

    @property
    def waiting(self) -> bool:
        with self._lock:
            return self._active is not None

    def cancel(self) -> None:
        """Resolve the outstanding wait, and any later one, as False with no audit entries."""
        with self._lock:
            self._cancelled = True
            active = self._active
            if active is None or active['outcome'] is not None:
                return
            active['outcome'] = _CANCELLED
        active['wake'].set()

    def reset(self) -> None:
        with self._lock:
            self._cancelled = False

    def _show_banner(self):
        if self.overlay is None:
            return None
        banner = self.page.create_element(
            'div', {'id': SUBMIT_BANNER_ID, 'role': 'status'}, SUBMIT_BANNER_TEXT)
        self.overlay.mount(MODAL_SLOT, banner)
        return banner

    def wait_for_human_submission(self, form: SignupForm,
                                  timeout_ms: int = DEFAULT_SUBMIT_TIMEOUT_MS,
                                  session=None) -> bool:
        """Block until a human submits the form or timeout_ms elapses."""
        session = session if session is not None else self.session
        network_id = session.network_id if session is not None else form.network_id

        active = {'outcome': None, 'wake': threading.Event()}
        with self._lock:
            if self._active is not None:
                raise SecurityError("A submission wait is already outstanding")
            if self._cancelled:
                return False
            self._active = active

        def _on_submit(event):
            if not event.trusted:
                logger.warning("Ignoring untrusted submit event")
                return
            with self._lock:
                if active['outcome'] is not None:
                    return
                active['outcome'] = _SUBMITTED
            active['wake'].set()

        if self.recorder is not None:
            self.recorder.info('wait_human_submit', network_id=network_id,
                               details={'timeout_ms': timeout_ms,
                                        'message': 'Waiting for human submission - not automating'})

        banner = None
        try:
            with self.page.subscribe(form.form_handle, 'submit', _on_submit):
                banner = self._show_banner()
                active['wake'].wait(max(timeout_ms, 0) / 1000.0)
                with self._lock:
                    if active['outcome'] is None:
                        active['outcome'] = _TIMEOUT
                    outcome = active['outcome']
        finally:
            if banner is not None:
                self.overlay.clear(MODAL_SLOT, banner)
            with self._lock:
                self._active = None

        if outcome == _SUBMITTED:
            if session is not None:
                session.mark_human_submitted()
            if self.recorder is not None:
                self.recorder.critical('human_submitted', network_id=network_id,
                                       human_approved=True,
                                       details={'trigger': 'human',
                                                'message': 'Form submitted by human (not automated)'})
            logger.info("Human submitted the form")
            return True

        if outcome == _TIMEOUT:
            logger.info("Timed out waiting for human submission after %d ms", timeout_ms)
            if self.recorder is not None:
                self.recorder.warning('submission_timeout', network_id=network_id,
                                      details={'timeout_ms': timeout_ms})
        return False

#!/usr/bin/env python3
"""
SignupGuard Agent — Session Manager
=====================================
Drives one human-in-the-loop signup attempt through its state machine:

    IDLE -> DETECTING -> AWAITING_PERMISSION -> FILLING
         -> AWAITING_HUMAN_SUBMIT -> RECORDING -> COMPLETE
    (any in-progress state) -> FAILED
    COMPLETE / FAILED -> IDLE            (end_session)

A denied prefill skips FILLING and goes straight to AWAITING_HUMAN_SUBMIT
with zero filled fields. Every transition is written to the compliance
log. end_session() may be called from any thread: it cancels the
outstanding permission or submission wait, removes every overlay the
assistant injected and stops pending highlight timers.

Import from: signupguard.agent.session_manager
"""

import time
import logging
import threading
from datetime import datetime
from typing import Mapping, Optional

from signupguard.core.types import (
    AutomationMode, CollaboratorError, FillResult, InvalidTransition,
    PermissionDenied, SecurityError, Session, SessionState, SignupForm,
    SignupGuardError, SubmissionTimeout, normalize_attributes,
)
from signupguard.core.config import AssistantConfig
from signupguard.core.access.network_registry import load_registry
from signupguard.core.access.risk_classifier import RiskClassifier, parse_host_and_path
from signupguard.core.audit.recorder import ComplianceRecorder
from signupguard.core.audit.report import generate_session_report
from signupguard.core.crypto.signer import EntrySigner
from signupguard.page.overlay import OverlayManager
from signupguard.agent.form_inspector import FormInspector
from signupguard.agent.permission_gate import PermissionGate, DomDialogPresenter
from signupguard.agent.autofill import AutofillEngine
from signupguard.agent.submission_observer import SubmissionObserver, SUBMIT_BANNER_TEXT
from signupguard.agent.guidance import GuidancePanel

logger = logging.getLogger("signupguard.agent.session")

__all__ = ['SessionManager', 'complete_signup_workflow', 'OBSERVE_ACTION']

OBSERVE_ACTION = "Observe Form Submission"
OBSERVE_RISKS = (
    "The assistant will watch this form for your submission",
    "The assistant never clicks Submit for you",
)

_S = SessionState
_TRANSITIONS = {
    _S.IDLE: {_S.DETECTING},
    _S.DETECTING: {_S.AWAITING_PERMISSION, _S.FAILED},
    _S.AWAITING_PERMISSION: {_S.FILLING, _S.AWAITING_HUMAN_SUBMIT, _S.FAILED},
    _S.FILLING: {_S.AWAITING_HUMAN_SUBMIT, _S.FAILED},
    _S.AWAITING_HUMAN_SUBMIT: {_S.RECORDING, _S.FAILED},
    _S.RECORDING: {_S.COMPLETE, _S.FAILED},
    _S.COMPLETE: {_S.IDLE},
    _S.FAILED: {_S.IDLE},
}


class SessionManager:
    """Owns the components of one page and runs signup sessions on it.

    Usage:
        manager = SessionManager(page, config)
        ok = manager.run_workflow(attributes={"firstName": "Jane"})
        print(manager.report())
    """

    def __init__(self, page, config: Optional[AssistantConfig] = None,
                 classifier: Optional[RiskClassifier] = None,
                 recorder: Optional[ComplianceRecorder] = None,
                 store=None, presenter=None, signer=None):
        self.config = config or AssistantConfig()
        self.page = page
        self.store = store

        if recorder is None:
            if signer is None and self.config.sign_critical_entries:
                signer = EntrySigner(self.config.signing_key_file)
            recorder = ComplianceRecorder(self.config, store=store, signer=signer)
        self.recorder = recorder
        self.classifier = classifier or RiskClassifier(load_registry(self.config.registry_file))

        self.overlay = OverlayManager(page)
        self.inspector = FormInspector(recorder)
        self.gate = PermissionGate(presenter or DomDialogPresenter(page, self.overlay), recorder)
        self.autofill = AutofillEngine(self.gate, recorder, self.overlay, self.config.highlight_ms)
        self.observer = SubmissionObserver(page, recorder, self.overlay)
        self.guidance = GuidancePanel(page, self.overlay)

        self.session: Optional[Session] = None
        self.last_session: Optional[Session] = None
        self.form: Optional[SignupForm] = None
        self._lock = threading.RLock()

    # =========================================================================
    # STATE MACHINE
    # =========================================================================

    @property
    def state(self) -> SessionState:
        session = self.session
        return session.state if session is not None else SessionState.IDLE

    def _bind(self, session: Optional[Session]) -> None:
        for component in (self.gate, self.autofill, self.observer, self.guidance):
            component.session = session

    def _require_session(self) -> Session:
        session = self.session
        if session is None:
            raise SignupGuardError("No active signup session; call start_session() first")
        return session

    def _transition(self, session: Session, target: SessionState, reason: str = None) -> bool:
        """Move session to target. Returns False if the session was ended meanwhile."""
        with self._lock:
            if self.session is not session:
                return False
            current = session.state
            if target not in _TRANSITIONS[current]:
                raise InvalidTransition(current, target)
            session.state = target

        details = {'from': current.value, 'to': target.value}
        if reason:
            details['reason'] = reason
        if target is SessionState.FAILED:
            self.recorder.warning('state_transition', network_id=session.network_id, details=details)
        else:
            self.recorder.info('state_transition', network_id=session.network_id, details=details)
        return True

    def _fail(self, session: Session, reason: str) -> None:
        with self._lock:
            if session.state.is_terminal or session.state is SessionState.IDLE:
                return
            self._transition(session, SessionState.FAILED, reason)

    # =========================================================================
    # SESSION LIFECYCLE
    # =========================================================================

    def start_session(self, network_id: str) -> Session:
        with self._lock:
            previous = self.session
            if previous is not None:
                if not previous.state.is_terminal and previous.state is not SessionState.IDLE:
                    raise SecurityError(
                        f"Session for {previous.network_id} is still in progress "
                        f"({previous.state.value})")
                self.end_session()

            session = Session(network_id=network_id)
            self.session = session
            self.form = None
            self.gate.reset()
            self.observer.reset()
            self._bind(session)

        self.recorder.info('session_start', network_id=network_id,
                           details={'network_id': network_id})
        logger.info("Signup session started for %s", network_id)
        return session

    def end_session(self, reason: str = "ended") -> None:
        """End the current session. Safe to call from any thread, and more than once."""
        self.gate.cancel()
        self.observer.cancel()

        with self._lock:
            session = self.session
            if session is not None:
                if not session.state.is_terminal and session.state is not SessionState.IDLE:
                    self._transition(session, SessionState.FAILED, reason)
                if session.state.is_terminal:
                    self._transition(session, SessionState.IDLE)
                self.recorder.info('session_end', network_id=session.network_id,
                                   details={'network_id': session.network_id,
                                            'duration_seconds': round(session.duration_seconds, 3),
                                            'reason': reason})
                self.last_session = session
                self.session = None
                self.form = None
                self._bind(None)

        self.overlay.clear_all()
        if session is not None:
            logger.info("Signup session for %s ended (%s)", session.network_id, reason)

    # =========================================================================
    # WORKFLOW STEPS
    # =========================================================================

    def detect_form(self) -> Optional[SignupForm]:
        """Detect the signup form. None (and FAILED) if there is none."""
        session = self._require_session()
        if not self._transition(session, SessionState.DETECTING):
            return None

        try:
            self.guidance.show('Detecting signup form...')
            form = self.inspector.detect_signup_form(self.page, session.network_id)
            if form is None:
                self.guidance.show('Could not detect a signup form', kind='warning')
                self._fail(session, 'no_form')
                return None
            self.guidance.show(f'Found form with {len(form.fields)} fields')
            self.guidance.show_field_checklist(form)
        except Exception as e:
            logger.warning("Detection step failed: %s", e)
            self.recorder.warning('detect_form_failed', network_id=session.network_id,
                                  details={'error': type(e).__name__})
            self._fail(session, 'detection_error')
            return None

        with self._lock:
            if self.session is session:
                self.form = form
        return form

    def prefill(self, attributes: Mapping) -> Optional[FillResult]:
        """Ask permission and pre-fill. None if the fill step itself failed."""
        session = self._require_session()
        form = self.form
        if form is None:
            raise SignupGuardError("No detected form; call detect_form() first")
        attributes = normalize_attributes(attributes)
        if not self._transition(session, SessionState.AWAITING_PERMISSION):
            return None

        def _on_decision(approved: bool) -> None:
            if approved:
                self._transition(session, SessionState.FILLING)

        try:
            result = self.autofill.prefill(form, attributes, on_decision=_on_decision)
        except Exception as e:
            logger.warning("Prefill step failed: %s", e)
            self.recorder.warning('prefill_failed', network_id=session.network_id,
                                  details={'error': type(e).__name__})
            self._fail(session, 'prefill_error')
            return None

        if self.session is not session:
            return None

        for name in result.filled_fields:
            self.guidance.mark_completed(name)
        self.guidance.show(f'Pre-filled {result.filled} field(s); {result.skipped} left for you')
        return result

    def wait_for_human_submission(self, timeout_ms: Optional[int] = None) -> bool:
        """Ask to observe, then wait for the person to submit the form."""
        session = self._require_session()
        form = self.form
        if form is None:
            raise SignupGuardError("No detected form; call detect_form() first")
        if timeout_ms is None:
            timeout_ms = self.config.submit_timeout_ms
        if not self._transition(session, SessionState.AWAITING_HUMAN_SUBMIT):
            return False

        try:
            self.gate.require_permission(
                OBSERVE_ACTION,
                'The assistant will watch this form and record the moment you submit it. '
                'It never submits for you.',
                OBSERVE_RISKS,
            )
            if self.session is not session:
                return False
            self.guidance.show(SUBMIT_BANNER_TEXT)
            self._await_submission(session, form, timeout_ms)
        except PermissionDenied:
            self._fail(session, 'observation_denied')
            return False
        except SubmissionTimeout as e:
            logger.info("%s", e)
            self._fail(session, 'no_submission')
            return False
        return True

    def _await_submission(self, session: Session, form: SignupForm, timeout_ms: int) -> None:
        if not self.observer.wait_for_human_submission(form, timeout_ms, session):
            raise SubmissionTimeout(f"No human submission within {timeout_ms} ms")

    def record_signup_complete(self, network_id: Optional[str] = None):
        """Record the completed signup and forward the status to the store."""
        session = self._require_session()
        network_id = network_id or session.network_id
        if not session.human_submitted:
            raise SecurityError("Cannot record a signup without an observed human submission")
        if not self._transition(session, SessionState.RECORDING):
            return None

        session.completed_at = time.time()
        entry = self.recorder.info('signup_complete', network_id=network_id, human_approved=True,
                                   details={
                                       'human_submitted': session.human_submitted,
                                       'started_at': session.started_at,
                                       'completed_at': session.completed_at,
                                       'duration_seconds': round(session.duration_seconds, 3),
                                       'fields_completed': sorted(session.fields_completed),
                                       'permissions': [
                                           {'action': p.action, 'approved': p.approved,
                                            'timestamp': p.timestamp}
                                           for p in session.permissions
                                       ],
                                   })
        self._update_store(network_id)
        self._transition(session, SessionState.COMPLETE)
        self.guidance.show('Signup process complete!')
        return entry

    def _update_store(self, network_id: str) -> None:
        if self.store is None:
            return
        try:
            self._forward_status(network_id)
        except CollaboratorError as e:
            logger.warning("Network status update failed for %s: %s", network_id, e)
            self.recorder.warning('store_update_failed', network_id=network_id,
                                  details={'error': str(e)[:200]})

    def _forward_status(self, network_id: str) -> None:
        status = {'status': 'completed', 'date': datetime.now().isoformat()}
        try:
            ok = self.store.update_network_status(network_id, status)
        except Exception as e:
            raise CollaboratorError(f"{type(e).__name__}: {e}") from e
        if ok is False:
            raise CollaboratorError("Store rejected the status update")

    # =========================================================================
    # END-TO-END
    # =========================================================================

    def run_workflow(self, url: Optional[str] = None, attributes: Optional[Mapping] = None,
                     timeout_ms: Optional[int] = None) -> bool:
        """Classify, detect, prefill, wait for the human, and record.

        Returns True only when the person submitted the form. The session
        is ended before returning.
        """
        attributes = normalize_attributes(attributes or {})
        url = url or self.page.current_url()
        tier, policy = self.classifier.policy_for_url(url)
        network = self.classifier.detect(url)
        host, _ = parse_host_and_path(url)
        network_id = network.id if network is not None else (host or 'unknown')

        policy_details = {'host': host, 'tier': tier}
        policy_details.update(policy.to_dict())
        if policy.max_mode is AutomationMode.NONE:
            self.recorder.warning('policy_blocked', network_id=network_id, details=policy_details)
            logger.warning("Refusing to assist on %s: %s", host, policy.recommended_approach)
            return False

        session = self.start_session(network_id)
        try:
            self.recorder.info('policy_evaluated', network_id=network_id, details=policy_details)
            self.guidance.show(policy.recommended_approach)

            if self.detect_form() is None:
                return False
            if self.prefill(attributes) is None:
                return False
            if not self.wait_for_human_submission(timeout_ms):
                if self.session is session:
                    self.guidance.show('Signup timeout or cancelled', kind='warning')
                return False
            return self.record_signup_complete(network_id) is not None
        except SignupGuardError as e:
            logger.warning("Signup workflow failed: %s", e)
            self.recorder.warning('workflow_error', network_id=network_id,
                                  details={'error': type(e).__name__, 'message': str(e)[:200]})
            self._fail(session, 'workflow_error')
            return False
        finally:
            if self.session is session:
                self.end_session('workflow_finished')

    # =========================================================================
    # REPORTING
    # =========================================================================

    def report(self) -> str:
        return generate_session_report(self.session or self.last_session,
                                       self.recorder.session_id)


def complete_signup_workflow(page, attributes: Mapping, url: Optional[str] = None,
                             config: Optional[AssistantConfig] = None, store=None,
                             presenter=None, classifier: Optional[RiskClassifier] = None,
                             timeout_ms: Optional[int] = None) -> bool:
    """One-call entry point for a full human-in-the-loop signup."""
    manager = SessionManager(page, config=config, classifier=classifier,
                             store=store, presenter=presenter)
    return manager.run_workflow(url, attributes, timeout_ms)

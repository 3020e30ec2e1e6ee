#!/usr/bin/env python3
"""
Permission Gate — Human decision point for every automated step.

Presents a modal dialog and blocks until the person approves or denies.
There is no default-approve timeout. Each call produces exactly one
compliance entry and, when a session is bound, one PermissionRequest.

Presenters are duck-typed: any object with
    present(action, description, risks, cancel_event) -> bool
can replace the default DomDialogPresenter.

Import from: signupguard.agent.permission_gate
"""

import logging
import threading
from typing import Optional, Sequence

from signupguard.core.types import PermissionDenied, PermissionRequest, SecurityError
from signupguard.core.constants import PERMISSION_DIALOG_ID, MODAL_SLOT

logger = logging.getLogger("signupguard.agent.permission_gate")

__all__ = ['PermissionGate', 'DomDialogPresenter', 'APPROVE_BUTTON_ID', 'DENY_BUTTON_ID']

APPROVE_BUTTON_ID = f"{PERMISSION_DIALOG_ID}-approve"
DENY_BUTTON_ID = f"{PERMISSION_DIALOG_ID}-deny"


class DomDialogPresenter:
    """Render the permission dialog into the page and wait for a human click.

    Only trusted (human) clicks resolve the dialog. The dialog lives in the
    shared modal slot, so any previous modal is removed before it appears.
    """

    def __init__(self, page, overlay, poll_interval: float = 0.05):
        self.page = page
        self.overlay = overlay
        self.poll_interval = poll_interval

    def build_dialog(self, action: str, description: str, risks: Sequence[str]):
        page = self.page
        dialog = page.create_element('div', {'id': PERMISSION_DIALOG_ID, 'role': 'dialog',
                                             'aria-modal': 'true'})
        page.append(page.create_element('h3', {}, f"Permission required: {action}"), dialog)
        page.append(page.create_element('p', {}, description), dialog)
        if risks:
            risk_list = page.create_element('ul', {'class': 'signup-permission-risks'})
            for risk in risks:
                page.append(page.create_element('li', {}, risk), risk_list)
            page.append(risk_list, dialog)
        approve = page.create_element('button', {'id': APPROVE_BUTTON_ID, 'type': 'button'}, 'Approve')
        deny = page.create_element('button', {'id': DENY_BUTTON_ID, 'type': 'button'}, 'Deny')
        page.append(approve, dialog)
        page.append(deny, dialog)
        return dialog, approve, deny

    def present(self, action: str, description: str, risks: Sequence[str],
                cancel_event: threading.Event) -> bool:
        dialog, approve, deny = self.build_dialog(action, description, risks)
        decided = threading.Event()
        outcome = {}

        def _on_click(approved):
            def handler(event):
                if not event.trusted or decided.is_set():
                    return
                outcome.setdefault('approved', approved)
                decided.set()
            return handler

        subscriptions = [
            self.page.subscribe(approve, 'click', _on_click(True)),
            self.page.subscribe(deny, 'click', _on_click(False)),
        ]
        self.overlay.mount(MODAL_SLOT, dialog, subscriptions)
        try:
            while not decided.wait(self.poll_interval):
                if cancel_event.is_set():
                    return False
            return outcome.get('approved', False)
        finally:
            self.overlay.clear(MODAL_SLOT, dialog)


class PermissionGate:
    """Serialize human permission decisions and audit each one.

    Usage:
        gate = PermissionGate(DomDialogPresenter(page, overlay), recorder)
        if gate.request_permission("Pre-fill Form Fields", "...", risks):
            ...
    """

    def __init__(self, presenter, recorder=None):
        self.presenter = presenter
        self.recorder = recorder
        self.session = None
        self._lock = threading.Lock()
        self._cancel = threading.Event()

    @property
    def pending(self) -> bool:
        return self._lock.locked()

    def cancel(self) -> None:
        """Resolve any outstanding request as a denial."""
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def reset(self) -> None:
        self._cancel.clear()

    def request_permission(self, action: str, description: str,
                           risks: Sequence[str] = ()) -> bool:
        """Ask the human. Returns True only on an explicit approval."""
        if not self._lock.acquire(blocking=False):
            raise SecurityError("A permission request is already outstanding")
        try:
            risks = tuple(risks or ())
            if self._cancel.is_set():
                approved = False
            else:
                try:
                    approved = bool(self.presenter.present(action, description, risks, self._cancel))
                    # an approval that races a cancel counts as a denial
                    approved = approved and not self._cancel.is_set()
                except Exception as e:
                    logger.warning("Permission dialog failed for %s: %s", action, e)
                    approved = False
            self._record(action, description, risks, approved)
            return approved
        finally:
            self._lock.release()

    def require_permission(self, action: str, description: str,
                           risks: Sequence[str] = ()) -> None:
        """Like request_permission, but a denial raises PermissionDenied."""
        if not self.request_permission(action, description, risks):
            raise PermissionDenied(f"Permission denied: {action}")

    def _record(self, action: str, description: str, risks, approved: bool) -> None:
        session = self.session
        if session is not None:
            session.permissions.append(PermissionRequest(
                action=action, description=description, risks=risks, approved=approved))
        if self.recorder is not None:
            network_id = session.network_id if session is not None else None
            details = {'action': action, 'description': description}
            if approved:
                self.recorder.info('permission_granted', network_id=network_id,
                                   human_approved=True, details=details)
            else:
                self.recorder.warning('permission_denied', network_id=network_id,
                                      human_approved=False, details=details)
        logger.info("Permission %s: %s", 'granted' if approved else 'denied', action)

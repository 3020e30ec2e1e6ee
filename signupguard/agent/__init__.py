"""
SignupGuard Agent — Human-in-the-loop signup workflow.

- form_inspector     : Finds the signup form and classifies its fields
- permission_gate    : Modal human decision point, one audit entry per call
- autofill           : Permission-gated prefill of non-sensitive fields
- submission_observer: Passive wait for the person's own submission
- guidance           : Informational side panel and field checklist
- session_manager    : State machine driving one signup attempt
"""

from signupguard.agent.form_inspector import FormInspector, workflow_hash
from signupguard.agent.permission_gate import PermissionGate, DomDialogPresenter
from signupguard.agent.autofill import AutofillEngine, match_attribute
from signupguard.agent.submission_observer import SubmissionObserver
from signupguard.agent.guidance import GuidancePanel
from signupguard.agent.session_manager import SessionManager, complete_signup_workflow

__all__ = [
    'FormInspector',
    'workflow_hash',
    'PermissionGate',
    'DomDialogPresenter',
    'AutofillEngine',
    'match_attribute',
    'SubmissionObserver',
    'GuidancePanel',
    'SessionManager',
    'complete_signup_workflow',
]

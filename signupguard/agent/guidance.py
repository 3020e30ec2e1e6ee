"""
SignupGuard Agent — Guidance Panel
====================================
Informational side panel that tells the person what is happening and
which fields they still have to complete by hand. Purely visual: nothing
here reads or writes form fields.

Import from: signupguard.agent.guidance
"""

import logging
from typing import Optional

from signupguard.core.types import GuidanceStep, SignupForm
from signupguard.core.constants import GUIDANCE_PANEL_ID, GUIDANCE_SLOT

logger = logging.getLogger("signupguard.agent.guidance")

__all__ = ['GuidancePanel']


class GuidancePanel:

    def __init__(self, page=None, overlay=None):
        self.page = page
        self.overlay = overlay
        self.session = None

    def _panel(self):
        if self.page is None or self.overlay is None:
            return None
        panel = self.overlay.get(GUIDANCE_SLOT)
        if panel is None:
            panel = self.page.create_element('div', {'id': GUIDANCE_PANEL_ID, 'role': 'complementary'})
            self.page.append(self.page.create_element('h4', {}, 'Signup Assistant'), panel)
            self.overlay.mount(GUIDANCE_SLOT, panel)
        return panel

    def _add_step(self, step: GuidanceStep) -> GuidanceStep:
        if self.session is not None:
            self.session.steps.append(step)
        return step

    def show(self, message: str, kind: str = 'instruction') -> GuidanceStep:
        """Append one guidance line to the panel."""
        logger.info("Guidance: %s", message)
        panel = self._panel()
        if panel is not None:
            self.page.append(self.page.create_element('p', {'class': f'guidance-{kind}'}, message), panel)
        return self._add_step(GuidanceStep(kind=kind, message=message))

    def show_field_checklist(self, form: SignupForm) -> None:
        """List required fields; sensitive ones are marked for manual entry."""
        panel = self._panel()
        checklist = None
        if panel is not None:
            checklist = self.page.create_element('ul', {'class': 'guidance-checklist'})
            self.page.append(checklist, panel)

        for field in form.required_fields:
            label = field.label or field.name
            text = f"{label} (manual)" if field.sensitive else label
            if checklist is not None:
                self.page.append(self.page.create_element(
                    'li', {'data-field': field.name}, text), checklist)
            self._add_step(GuidanceStep(kind='checklist', message=text, field_name=field.name))

    def mark_completed(self, field_name: str) -> None:
        if self.session is None:
            return
        for step in self.session.steps:
            if step.field_name == field_name:
                step.completed = True

    def clear(self) -> None:
        if self.overlay is not None:
            self.overlay.clear(GUIDANCE_SLOT)

"""
SignupGuard — Human-in-the-Loop Signup Form Assistant

A layered assistant that helps a person fill out third-party signup forms
while respecting each site's terms-of-service automation policy:

- core/  : Risk classification, configuration, compliance audit trail
- page/  : Page capability interface, overlay ownership, static pages
- agent/ : Form inspection, permission gate, autofill, submission
           observation, session state machine

The final submission is always made by the person, never by the assistant.

Version: 1.0.0
"""

__version__ = "1.0.0"

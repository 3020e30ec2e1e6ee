"""
SignupGuard Page — The assistant's view of a live page.

- driver : PageDriver / ElementHandle interface, Subscription, PageEvent
- overlay: Ownership of injected elements and highlight timers
- static : In-memory page parsed from HTML
"""

from signupguard.page.driver import PageDriver, ElementHandle, PageEvent, Subscription
from signupguard.page.overlay import OverlayManager
from signupguard.page.static import StaticPage, StaticElement

__all__ = [
    'PageDriver',
    'ElementHandle',
    'PageEvent',
    'Subscription',
    'OverlayManager',
    'StaticPage',
    'StaticElement',
]

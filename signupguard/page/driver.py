"""
SignupGuard Page Layer — Page Capability Interface
====================================================
The narrow interface the assistant uses to look at and annotate a live
page. A browser bridge implements PageDriver/ElementHandle; the
assistant never drives navigation, never clicks submit targets and
never calls a form's submit operation.

Implementations are duck-typed: subclass these for the NotImplementedError
defaults, or provide the same methods on any object.

Import from: signupguard.page.driver
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger("signupguard.page.driver")

__all__ = ['PageEvent', 'Subscription', 'ElementHandle', 'PageDriver']


@dataclass
class PageEvent:
    """A DOM event delivered to a subscriber."""
    type: str
    target: Any
    trusted: bool = True    # False when dispatched by the assistant itself


class Subscription:
    """A disposable event listener registration.

    dispose() is idempotent and safe from any thread. Use as a context
    manager to guarantee disposal on every exit path.
    """

    def __init__(self, unsubscribe: Callable[[], None]):
        self._unsubscribe = unsubscribe
        self._lock = threading.Lock()
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
        try:
            self._unsubscribe()
        except Exception as e:
            logger.warning("Listener removal failed: %s", e)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.dispose()
        return False


class ElementHandle:
    """Opaque reference to one page element."""

    @property
    def tag(self) -> str:
        raise NotImplementedError

    @property
    def children(self) -> List['ElementHandle']:
        raise NotImplementedError

    def get_attribute(self, name: str) -> Optional[str]:
        raise NotImplementedError

    def set_attribute(self, name: str, value: str) -> None:
        raise NotImplementedError

    def text(self) -> str:
        raise NotImplementedError

    def visible_text(self) -> str:
        """Rendered text, without hidden descendants (innerText)."""
        return self.text()

    def is_visible(self) -> bool:
        raise NotImplementedError

    def closest(self, tag: str) -> Optional['ElementHandle']:
        raise NotImplementedError

    @property
    def value(self) -> str:
        raise NotImplementedError

    def set_value(self, value: str) -> None:
        raise NotImplementedError

    def dispatch_event(self, event_type: str) -> None:
        raise NotImplementedError

    @property
    def style(self) -> Dict[str, str]:
        raise NotImplementedError

    def set_style(self, style: Dict[str, str]) -> None:
        raise NotImplementedError

    def click(self) -> None:
        raise NotImplementedError

    def submit(self) -> None:
        raise NotImplementedError


class PageDriver:
    """Page-level operations."""

    def current_url(self) -> str:
        raise NotImplementedError

    def query_all(self, selector: str, root: Optional[ElementHandle] = None) -> List[ElementHandle]:
        raise NotImplementedError

    def query(self, selector: str, root: Optional[ElementHandle] = None) -> Optional[ElementHandle]:
        found = self.query_all(selector, root)
        return found[0] if found else None

    def create_element(self, tag: str, attrs: Optional[Dict[str, str]] = None,
                       text: str = "") -> ElementHandle:
        raise NotImplementedError

    def append(self, element: ElementHandle, parent: Optional[ElementHandle] = None) -> None:
        raise NotImplementedError

    def remove(self, element: ElementHandle) -> None:
        raise NotImplementedError

    def subscribe(self, element: ElementHandle, event_type: str,
                  callback: Callable[[PageEvent], None]) -> Subscription:
        raise NotImplementedError

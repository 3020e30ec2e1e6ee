"""
SignupGuard Page Layer — Overlay Manager
==========================================
Explicit ownership of every element the assistant injects into a page.

Elements are mounted into named slots. Mounting into an occupied slot
removes the previous occupant first, so the permission dialog and the
submit banner (both in the "modal" slot) can never stack. Event
subscriptions bound to a mounted element are disposed with it.

Field highlights are restored by tracked timers; cancel_highlights()
restores every pending highlight immediately.

Import from: signupguard.page.overlay
"""

import logging
import threading
from typing import Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger("signupguard.page.overlay")

__all__ = ['OverlayManager']


class OverlayManager:
    """Tracks injected elements, their subscriptions, and highlight timers."""

    def __init__(self, page):
        self.page = page
        self._lock = threading.Lock()
        self._slots: Dict[str, Tuple[object, List[object]]] = {}
        self._highlights: Dict[int, Tuple[threading.Timer, object, Dict[str, str]]] = {}

    # -------------------------------------------------------------------------
    # Slots
    # -------------------------------------------------------------------------

    def mount(self, slot: str, element, subscriptions: Iterable = (), parent=None) -> None:
        """Mount element into slot, clearing any previous occupant first."""
        self.clear(slot)
        self.page.append(element, parent)
        with self._lock:
            self._slots[slot] = (element, list(subscriptions))

    def attach(self, slot: str, subscription) -> None:
        """Bind another subscription to the current occupant of slot."""
        with self._lock:
            if slot not in self._slots:
                raise KeyError(f"Overlay slot {slot!r} is empty")
            self._slots[slot][1].append(subscription)

    def get(self, slot: str):
        with self._lock:
            owned = self._slots.get(slot)
        return owned[0] if owned else None

    def clear(self, slot: str, element=None) -> bool:
        """Remove the occupant of slot. With element, only if it is still the occupant."""
        with self._lock:
            owned = self._slots.get(slot)
            if owned is None or (element is not None and owned[0] is not element):
                return False
            del self._slots[slot]
        occupant, subscriptions = owned
        for sub in subscriptions:
            sub.dispose()
        try:
            self.page.remove(occupant)
        except Exception as e:
            logger.warning("Could not remove overlay %s: %s", slot, e)
        return True

    @property
    def slots(self) -> List[str]:
        with self._lock:
            return list(self._slots)

    # -------------------------------------------------------------------------
    # Highlights
    # -------------------------------------------------------------------------

    def highlight(self, element, style: Dict[str, str], duration_ms: int) -> threading.Timer:
        """Apply style to element and restore the previous values after duration_ms."""
        previous = element.style
        saved = {key: previous.get(key, '') for key in style}
        element.set_style(style)

        key = id(element)
        timer = threading.Timer(duration_ms / 1000.0, self._restore, args=(key,))
        timer.daemon = True
        with self._lock:
            pending = self._highlights.pop(key, None)
            if pending is not None:
                pending[0].cancel()
                saved = pending[2]
            self._highlights[key] = (timer, element, saved)
        timer.start()
        return timer

    def _restore(self, key: int) -> None:
        with self._lock:
            pending = self._highlights.pop(key, None)
        if pending is None:
            return
        _, element, saved = pending
        try:
            element.set_style(saved)
        except Exception as e:
            logger.warning("Could not restore highlight: %s", e)

    @property
    def pending_highlights(self) -> int:
        with self._lock:
            return len(self._highlights)

    def cancel_highlights(self) -> None:
        with self._lock:
            keys = list(self._highlights)
            for key in keys:
                self._highlights[key][0].cancel()
        for key in keys:
            self._restore(key)

    # -------------------------------------------------------------------------
    # Teardown
    # -------------------------------------------------------------------------

    def clear_all(self) -> None:
        for slot in self.slots:
            self.clear(slot)
        self.cancel_highlights()

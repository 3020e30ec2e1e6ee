"""
SignupGuard Page Layer — Static In-Memory Page
================================================
A PageDriver over an HTML document parsed with BeautifulSoup. Used for
offline dry runs of a saved signup page and as the page capability in
the test suite.

Queries go through BeautifulSoup's CSS selector support (soupsieve), so
any selector it accepts works here. Elements are wrapped once per tag,
so handles compare by identity the way live DOM references do.

Human actions are simulated with human_click() / human_submit(), which
deliver trusted events. Programmatic ElementHandle.click() and
ElementHandle.submit() calls are recorded in click_log / submit_calls
so callers can prove the assistant never made them.

Import from: signupguard.page.static
"""

import logging
import threading
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from signupguard.page.driver import ElementHandle, PageDriver, PageEvent, Subscription

logger = logging.getLogger("signupguard.page.static")

__all__ = ['StaticElement', 'StaticPage']


def _parse_style(text: Optional[str]) -> Dict[str, str]:
    style = {}
    for decl in (text or '').split(';'):
        if ':' in decl:
            key, val = decl.split(':', 1)
            style[key.strip().lower()] = val.strip()
    return style


def _format_style(style: Dict[str, str]) -> str:
    return '; '.join(f"{k}: {v}" for k, v in style.items())


class StaticElement(ElementHandle):
    """Handle for one BeautifulSoup tag in a StaticPage."""

    def __init__(self, page: 'StaticPage', node: Tag):
        self._page = page
        self.node = node
        self._value: Optional[str] = None   # live value, separate from the value attribute

    def __repr__(self):
        ident = self.get_attribute('id') or self.get_attribute('name') or ''
        return f"<StaticElement {self.tag}{'#' + ident if ident else ''}>"

    # -------------------------------------------------------------------------
    # Structure
    # -------------------------------------------------------------------------

    @property
    def tag(self) -> str:
        return self.node.name

    @property
    def parent(self) -> Optional['StaticElement']:
        parent = self.node.parent
        if parent is None or isinstance(parent, BeautifulSoup):
            return None
        return self._page.wrap(parent)

    @property
    def children(self) -> List['StaticElement']:
        return [self._page.wrap(c) for c in self.node.children if isinstance(c, Tag)]

    def closest(self, tag: str) -> Optional['StaticElement']:
        tag = tag.lower()
        if self.tag == tag:
            return self
        found = self.node.find_parent(tag)
        return self._page.wrap(found) if found is not None else None

    # -------------------------------------------------------------------------
    # Attributes and text
    # -------------------------------------------------------------------------

    def get_attribute(self, name: str) -> Optional[str]:
        value = self.node.get(name.lower())
        if isinstance(value, list):
            return ' '.join(value)
        return value

    def set_attribute(self, name: str, value: str) -> None:
        self.node[name.lower()] = value

    def text(self) -> str:
        return ' '.join(self.node.get_text(' ').split())

    def visible_text(self) -> str:
        """Text of this element, leaving out hidden descendants."""
        if not self.is_visible():
            return ''
        parts = []
        for child in self.node.children:
            if isinstance(child, Tag):
                parts.append(self._page.wrap(child).visible_text())
            else:
                parts.append(str(child))
        return ' '.join(' '.join(parts).split())

    def _hidden_here(self) -> bool:
        if self.node.has_attr('hidden'):
            return True
        if self.tag == 'input' and (self.get_attribute('type') or '').lower() == 'hidden':
            return True
        style = _parse_style(self.get_attribute('style'))
        return style.get('display') == 'none' or style.get('visibility') == 'hidden'

    def is_visible(self) -> bool:
        node = self
        while node is not None:
            if node._hidden_here():
                return False
            node = node.parent
        return True

    @property
    def style(self) -> Dict[str, str]:
        return _parse_style(self.get_attribute('style'))

    def set_style(self, style: Dict[str, str]) -> None:
        current = self.style
        for key, val in style.items():
            if val in (None, ''):
                current.pop(key, None)
            else:
                current[key] = val
        if current:
            self.node['style'] = _format_style(current)
        elif self.node.has_attr('style'):
            del self.node['style']

    # -------------------------------------------------------------------------
    # Values
    # -------------------------------------------------------------------------

    @property
    def value(self) -> str:
        if self._value is not None:
            return self._value
        if self.tag == 'textarea':
            return self.node.get_text()
        if self.tag == 'select':
            options = self.node.find_all('option')
            chosen = next((o for o in options if o.has_attr('selected')), options[0] if options else None)
            if chosen is None:
                return ''
            return chosen.get('value', chosen.get_text(strip=True))
        return self.node.get('value', '')

    def set_value(self, value: str) -> None:
        if self.node.has_attr('disabled') or self.node.has_attr('readonly'):
            raise PermissionError(f"{self!r} is not editable")
        self._value = value

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def dispatch_event(self, event_type: str) -> None:
        self._page.dispatch(self, event_type, trusted=False)

    def click(self) -> None:
        self._page.click_log.append(self)
        self._page._activate(self, trusted=False)

    def submit(self) -> None:
        self._page.submit_calls.append(self)


class StaticPage(PageDriver):
    """In-memory page built from an HTML string.

    Usage:
        page = StaticPage(html, url="https://dash.partnerstack.com/signup")
        form = page.query("form")
        page.human_submit(form)
    """

    def __init__(self, html: str = "", url: str = "about:blank"):
        self.url = url
        self.soup = BeautifulSoup(html or "", "html.parser")
        self.click_log: List[StaticElement] = []
        self.submit_calls: List[StaticElement] = []
        self._listeners: Dict[Tuple[int, str], List[Callable]] = defaultdict(list)
        self._lock = threading.Lock()
        self._wrap_lock = threading.Lock()
        self._handles: Dict[int, StaticElement] = {}
        self.raise_on_query: Optional[Exception] = None

    def wrap(self, node: Tag) -> StaticElement:
        """Return the one handle for a tag, creating it on first use."""
        with self._wrap_lock:
            handle = self._handles.get(id(node))
            if handle is None:
                handle = StaticElement(self, node)
                self._handles[id(node)] = handle
            return handle

    def current_url(self) -> str:
        return self.url

    # -------------------------------------------------------------------------
    # Query
    # -------------------------------------------------------------------------

    def query_all(self, selector: str, root: Optional[StaticElement] = None) -> List[StaticElement]:
        if self.raise_on_query is not None:
            raise self.raise_on_query
        scope = root.node if root is not None else self.soup
        return [self.wrap(node) for node in scope.select(selector)]

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def create_element(self, tag: str, attrs: Optional[Dict[str, str]] = None,
                       text: str = "") -> StaticElement:
        node = self.soup.new_tag(tag, attrs=dict(attrs or {}))
        if text:
            node.string = text
        return self.wrap(node)

    def append(self, element: StaticElement, parent: Optional[StaticElement] = None) -> None:
        if parent is not None:
            target = parent.node
        else:
            target = self.soup.body or self.soup
        target.append(element.node)

    def remove(self, element: StaticElement) -> None:
        if element.node.parent is not None:
            element.node.extract()

    def is_attached(self, element: StaticElement) -> bool:
        return any(p is self.soup for p in element.node.parents)

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def subscribe(self, element: StaticElement, event_type: str,
                  callback: Callable[[PageEvent], None]) -> Subscription:
        key = (id(element), event_type)
        with self._lock:
            self._listeners[key].append(callback)

        def _unsubscribe():
            with self._lock:
                handlers = self._listeners.get(key, [])
                if callback in handlers:
                    handlers.remove(callback)
                if not handlers:
                    self._listeners.pop(key, None)

        return Subscription(_unsubscribe)

    def listener_count(self, element: Optional[StaticElement] = None) -> int:
        with self._lock:
            if element is None:
                return sum(len(v) for v in self._listeners.values())
            return sum(len(v) for (eid, _), v in self._listeners.items() if eid == id(element))

    def dispatch(self, target: StaticElement, event_type: str, trusted: bool = True) -> None:
        """Deliver an event to target and its ancestors (bubbling)."""
        event = PageEvent(type=event_type, target=target, trusted=trusted)
        node = target
        while node is not None:
            with self._lock:
                handlers = list(self._listeners.get((id(node), event_type), ()))
            for handler in handlers:
                handler(event)
            node = node.parent

    def _activate(self, element: StaticElement, trusted: bool) -> None:
        self.dispatch(element, 'click', trusted=trusted)
        kind = (element.get_attribute('type') or '').lower()
        is_submit = (element.tag == 'button' and kind in ('', 'submit')) or \
                    (element.tag == 'input' and kind in ('submit', 'image'))
        form = element.closest('form')
        if is_submit and form is not None:
            self.dispatch(form, 'submit', trusted=trusted)

    # -------------------------------------------------------------------------
    # Human simulation
    # -------------------------------------------------------------------------

    def human_click(self, element: StaticElement) -> None:
        """Simulate the person clicking an element."""
        self._activate(element, trusted=True)

    def human_submit(self, form: StaticElement) -> None:
        """Simulate the person submitting a form (Enter key or button)."""
        self.dispatch(form, 'submit', trusted=True)

    def human_type(self, element: StaticElement, value: str) -> None:
        element._value = value
        self.dispatch(element, 'input', trusted=True)
        self.dispatch(element, 'change', trusted=True)

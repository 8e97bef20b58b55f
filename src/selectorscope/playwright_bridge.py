from __future__ import annotations

from collections import deque
from dataclasses import dataclass
import heapq
import itertools
import logging
import time
from typing import TYPE_CHECKING, Any, Callable, Mapping

from playwright.sync_api import Error as PlaywrightError

from .dom import DomDocument, DomElement
from .models import BoundingBox, KeyEvent, PointerEvent
from .overlay import ClipboardCallback, ClipboardUnavailable

if TYPE_CHECKING:
    from playwright.sync_api import Page

logger = logging.getLogger("selectorscope.playwright")

BINDING_NAME = "__selectorscopeEvent"

PAGE_SCRIPT = r"""
(() => {
  if (window.__selectorscopeInstalled || window.top !== window) {
    return;
  }
  window.__selectorscopeInstalled = true;

  const documentKey = `${Date.now().toString(36)}${Math.random().toString(36).slice(2, 8)}`;
  const tokens = new WeakMap();
  const elements = new Map();
  let nextToken = 1;
  let overlay = null;

  function emit(payload) {
    if (typeof window.__selectorscopeEvent === 'function') {
      window.__selectorscopeEvent(payload);
    }
  }

  function tokenFor(el) {
    if (!el || el.nodeType !== Node.ELEMENT_NODE || el === overlay) {
      return null;
    }
    let token = tokens.get(el);
    if (!token) {
      token = `${documentKey}:${nextToken++}`;
      tokens.set(el, token);
      elements.set(token, new WeakRef(el));
    }
    return token;
  }

  function lookup(token) {
    const ref = elements.get(token);
    const el = ref ? ref.deref() : null;
    if (!el) {
      elements.delete(token);
      return null;
    }
    return el;
  }

  function keyName(event) {
    if (event.code && event.code.startsWith('Key')) {
      return event.code.slice(3).toLowerCase();
    }
    return (event.key || '').toLowerCase();
  }

  function snapshot(token) {
    const el = lookup(token);
    if (!el || !el.isConnected) {
      return null;
    }
    const chain = [];
    let current = el;
    while (current && current.nodeType === Node.ELEMENT_NODE) {
      let nth = 1;
      let sibling = current;
      while ((sibling = sibling.previousElementSibling)) {
        if (sibling.tagName === current.tagName) {
          nth += 1;
        }
      }
      const attributes = {};
      for (const attr of current.attributes) {
        attributes[attr.name] = attr.value;
      }
      chain.push({ tag: current.tagName.toLowerCase(), attributes, nth });
      current = current.parentElement;
    }

    const labels = {};
    const labelledBy = (el.getAttribute('aria-labelledby') || '').trim();
    for (const id of labelledBy.split(/\s+/).filter(Boolean)) {
      const label = document.getElementById(id);
      if (label) {
        labels[id] = label.textContent || '';
      }
    }
    return { chain, text: el.textContent || '', labels };
  }

  function mountOverlay(background, color) {
    if (overlay && overlay.isConnected) {
      return;
    }
    overlay = document.createElement('div');
    overlay.id = '__selectorscope_overlay';
    overlay.style.position = 'fixed';
    overlay.style.background = background;
    overlay.style.color = color;
    overlay.style.padding = '5px';
    overlay.style.fontSize = '12px';
    overlay.style.fontFamily = 'monospace';
    overlay.style.borderRadius = '5px';
    overlay.style.pointerEvents = 'none';
    overlay.style.zIndex = '2147483647';
    overlay.style.display = 'none';
    (document.body || document.documentElement).appendChild(overlay);
  }

  function unmountOverlay() {
    if (overlay && overlay.parentNode) {
      overlay.parentNode.removeChild(overlay);
    }
    overlay = null;
  }

  function render(text, box) {
    if (!overlay) {
      return;
    }
    overlay.textContent = text;
    overlay.style.display = text ? 'block' : 'none';
    if (box) {
      overlay.style.top = `${box.top}px`;
      overlay.style.left = `${box.left}px`;
    }
  }

  function copy(requestId, text) {
    if (!navigator.clipboard || typeof navigator.clipboard.writeText !== 'function') {
      return false;
    }
    navigator.clipboard.writeText(text).then(
      () => emit({ type: 'clipboard', requestId, ok: true }),
      (err) => emit({ type: 'clipboard', requestId, ok: false, error: String((err && err.message) || err) }),
    );
    return true;
  }

  window.__selectorscope = {
    snapshot,
    mountOverlay,
    unmountOverlay,
    render,
    copy,
    attached: (token) => {
      const el = lookup(token);
      return !!(el && el.isConnected);
    },
    getStyle: (token, prop) => {
      const el = lookup(token);
      return el ? el.style.getPropertyValue(prop) : '';
    },
    setStyle: (token, prop, value) => {
      const el = lookup(token);
      if (!el) return;
      if (value) {
        el.style.setProperty(prop, value);
      } else {
        el.style.removeProperty(prop);
      }
    },
    rect: (token) => {
      const el = lookup(token);
      if (!el || !el.isConnected) return null;
      const rect = el.getBoundingClientRect();
      return { top: rect.top, left: rect.left, width: rect.width, height: rect.height };
    },
  };

  document.addEventListener('mouseover', (event) => {
    emit({ type: 'mouseover', target: tokenFor(event.target), related: tokenFor(event.relatedTarget) });
  }, true);
  document.addEventListener('mouseout', (event) => {
    emit({ type: 'mouseout', target: tokenFor(event.target), related: tokenFor(event.relatedTarget) });
  }, true);
  document.addEventListener('keydown', (event) => {
    emit({
      type: 'keydown',
      key: keyName(event),
      ctrl: event.ctrlKey,
      shift: event.shiftKey,
      alt: event.altKey,
      meta: event.metaKey,
    });
  }, true);
  document.addEventListener('click', (event) => {
    emit({ type: 'click', target: tokenFor(event.target) });
  }, true);
  document.addEventListener('change', (event) => {
    emit({ type: 'change', target: tokenFor(event.target) });
  }, true);

  emit({ type: 'ready' });
})();
"""


@dataclass(frozen=True, slots=True)
class ElementRef:
    """In-page element token; stays valid only for the document that issued it."""

    token: str


def build_snapshot_element(payload: Mapping[str, Any] | None) -> DomElement | None:
    """Rebuild the hovered element from a page snapshot.

    Only the ancestor chain is materialized. Earlier same-tag siblings become
    empty stand-ins so positional indexes survive, and aria-labelledby targets
    are registered on the document by id.
    """
    if not isinstance(payload, Mapping):
        return None
    chain = [item for item in payload.get("chain") or [] if isinstance(item, Mapping)]
    if not chain:
        return None

    document = DomDocument()
    parent: DomElement | DomDocument = document
    for item in reversed(chain):
        tag = str(item.get("tag") or "").strip().lower() or "div"
        try:
            nth = max(1, int(item.get("nth") or 1))
        except (TypeError, ValueError):
            nth = 1
        for _ in range(nth - 1):
            parent.append_child(DomElement(tag))
        raw_attributes = item.get("attributes")
        attributes = (
            {str(key).lower(): str(value) for key, value in raw_attributes.items() if value is not None}
            if isinstance(raw_attributes, Mapping)
            else {}
        )
        node = DomElement(tag, attributes)
        parent.append_child(node)
        parent = node

    target = parent
    text = payload.get("text")
    if text:
        target.append_child(str(text))

    labels = payload.get("labels")
    if isinstance(labels, Mapping):
        for label_id, label_text in labels.items():
            document.register_detached(DomElement("span", {"id": str(label_id)}, [str(label_text or "")]))
    return target


def decode_event(payload: Mapping[str, Any]) -> tuple[str, Any] | None:
    event_type = str(payload.get("type") or "")
    if event_type in {"mouseover", "mouseout"}:
        target = _ref(payload.get("target"))
        if target is None:
            return None
        return event_type, PointerEvent(target=target, related_target=_ref(payload.get("related")))
    if event_type in {"click", "change"}:
        target = _ref(payload.get("target"))
        return (event_type, PointerEvent(target=target)) if target is not None else None
    if event_type == "keydown":
        return event_type, KeyEvent(
            key=str(payload.get("key") or ""),
            ctrl=bool(payload.get("ctrl")),
            shift=bool(payload.get("shift")),
            alt=bool(payload.get("alt")),
            meta=bool(payload.get("meta")),
        )
    return None


def _ref(raw: Any) -> ElementRef | None:
    if raw is None or raw == "":
        return None
    return ElementRef(str(raw))


class PlaywrightSurface:
    """Host surface over a Playwright page.

    Page events arrive through one exposed binding and are queued; ``pump``
    drains them on the calling thread together with due timers, so all
    controller work stays single-threaded.
    """

    def __init__(self, page: Page, clock: Callable[[], float] = time.monotonic) -> None:
        self.page = page
        self._clock = clock
        self._events: deque[Mapping[str, Any]] = deque()
        self._timers: list[tuple[float, int, Callable[[], None]]] = []
        self._sequence = itertools.count()
        self._listeners: dict[str, list[Callable[[Any], None]]] = {}
        self._globals: dict[str, Any] = {}
        self._clipboard_callbacks: dict[int, ClipboardCallback] = {}
        self._request_ids = itertools.count(1)
        self._ready_callbacks: list[Callable[[], None]] = []
        self._overlay_colors: tuple[str, str] | None = None
        self._attached = False

    def attach(self) -> None:
        if self._attached:
            return
        self.page.expose_binding(BINDING_NAME, self._on_binding)
        self.page.add_init_script(PAGE_SCRIPT)
        self._evaluate(PAGE_SCRIPT)
        self._attached = True

    def on_document_ready(self, callback: Callable[[], None]) -> None:
        self._ready_callbacks.append(callback)

    def pump(self) -> int:
        handled = 0
        while self._events:
            payload = self._events.popleft()
            self._handle_payload(payload)
            handled += 1
        now = self._clock()
        while self._timers and self._timers[0][0] <= now:
            _, _, callback = heapq.heappop(self._timers)
            callback()
            handled += 1
        return handled

    def snapshot(self, ref: ElementRef) -> DomElement | None:
        return build_snapshot_element(self._call("snapshot", ref.token))

    def is_attached(self, ref: ElementRef) -> bool:
        return bool(self._call("attached", ref.token))

    def is_overlay(self, ref: ElementRef) -> bool:
        # the page script never issues a token for its own overlay node
        return False

    def get_style(self, ref: ElementRef, prop: str) -> str:
        return str(self._call("getStyle", ref.token, prop) or "")

    def set_style(self, ref: ElementRef, prop: str, value: str) -> None:
        self._call("setStyle", ref.token, prop, value)

    def bounding_box(self, ref: ElementRef) -> BoundingBox | None:
        raw = self._call("rect", ref.token)
        if not isinstance(raw, Mapping):
            return None
        try:
            return BoundingBox(
                top=float(raw.get("top", 0)),
                left=float(raw.get("left", 0)),
                width=float(raw.get("width", 0)),
                height=float(raw.get("height", 0)),
            )
        except (TypeError, ValueError):
            return None

    def mount_overlay(self, background: str, color: str) -> None:
        self._overlay_colors = (background, color)
        self._call("mountOverlay", background, color)

    def unmount_overlay(self) -> None:
        self._overlay_colors = None
        self._call("unmountOverlay")

    def render_overlay(self, text: str, box: BoundingBox | None) -> None:
        payload = {"top": box.top, "left": box.left} if box else None
        self._call("render", text, payload)

    def write_clipboard(self, text: str, callback: ClipboardCallback) -> None:
        request_id = next(self._request_ids)
        self._clipboard_callbacks[request_id] = callback
        if not self._call("copy", request_id, text):
            self._clipboard_callbacks.pop(request_id, None)
            raise ClipboardUnavailable("navigator.clipboard is not available on this page.")

    def schedule(self, delay: float, callback: Callable[[], None]) -> None:
        heapq.heappush(self._timers, (self._clock() + max(0.0, delay), next(self._sequence), callback))

    def add_event_listener(self, event_type: str, handler: Callable[[Any], None]) -> None:
        handlers = self._listeners.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)

    def remove_event_listener(self, event_type: str, handler: Callable[[Any], None]) -> None:
        handlers = self._listeners.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def get_global(self, name: str) -> Any:
        return self._globals.get(name)

    def set_global(self, name: str, value: Any) -> None:
        if value is None:
            self._globals.pop(name, None)
        else:
            self._globals[name] = value

    def _on_binding(self, source: Any, payload: Any) -> None:
        frame = source.get("frame") if isinstance(source, Mapping) else None
        if frame is not None and frame != self.page.main_frame:
            return
        if isinstance(payload, Mapping):
            self._events.append(payload)

    def _handle_payload(self, payload: Mapping[str, Any]) -> None:
        event_type = str(payload.get("type") or "")
        if event_type == "ready":
            self._on_ready()
            return
        if event_type == "clipboard":
            self._resolve_clipboard(payload)
            return
        decoded = decode_event(payload)
        if decoded is None:
            return
        name, event = decoded
        for handler in list(self._listeners.get(name, [])):
            handler(event)

    def _on_ready(self) -> None:
        logger.info("Page document ready: %s", self.page.url)
        # pending timers and clipboard writes belong to the previous document
        self._timers.clear()
        self._clipboard_callbacks.clear()
        for callback in list(self._ready_callbacks):
            callback()
        if self._overlay_colors is not None:
            self._call("mountOverlay", *self._overlay_colors)

    def _resolve_clipboard(self, payload: Mapping[str, Any]) -> None:
        try:
            request_id = int(payload.get("requestId"))
        except (TypeError, ValueError):
            return
        callback = self._clipboard_callbacks.pop(request_id, None)
        if callback is None:
            return
        error = payload.get("error")
        callback(bool(payload.get("ok")), str(error) if error else None)

    def _call(self, method: str, *args: Any) -> Any:
        return self._evaluate(
            "([method, args]) => window.__selectorscope ? window.__selectorscope[method](...args) : null",
            [method, list(args)],
        )

    def _evaluate(self, expression: str, arg: Any = None) -> Any:
        try:
            return self.page.evaluate(expression, arg)
        except PlaywrightError as exc:
            logger.warning("Page evaluation failed: %s", exc)
            return None

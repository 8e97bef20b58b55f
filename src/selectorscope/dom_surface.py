from __future__ import annotations

from dataclasses import dataclass
import heapq
import itertools
from typing import Any, Callable

from .dom import DomDocument, DomElement
from .models import BoundingBox, KeyCombo, KeyEvent, PointerEvent
from .overlay import ClipboardCallback, ClipboardUnavailable

OVERLAY_ID = "__selectorscope_overlay"
ClipboardWriter = Callable[[str], None]


@dataclass(slots=True)
class OverlayView:
    text: str = ""
    top: float | None = None
    left: float | None = None


class DomSurface:
    """Host surface over an in-memory document.

    Time is a manual clock: ``advance`` runs every callback that came due,
    clipboard completions included, so tests can interleave hovers with a
    pending clipboard write.
    """

    def __init__(self, document: DomDocument, clipboard: ClipboardWriter | None = None) -> None:
        self.document = document
        self.clipboard = clipboard
        self.clipboard_log: list[str] = []
        self.now = 0.0
        self.overlay: DomElement | None = None
        self.view = OverlayView()
        self._listeners: dict[str, list[Callable[[Any], None]]] = {}
        self._timers: list[tuple[float, int, Callable[[], None]]] = []
        self._sequence = itertools.count()

    def snapshot(self, ref: DomElement) -> DomElement | None:
        return ref if self.is_attached(ref) else None

    def is_attached(self, ref: DomElement) -> bool:
        return isinstance(ref, DomElement) and ref.owner_document is self.document

    def is_overlay(self, ref: DomElement) -> bool:
        return self.overlay is not None and ref is self.overlay

    def get_style(self, ref: DomElement, prop: str) -> str:
        return ref.style.get(prop, "")

    def set_style(self, ref: DomElement, prop: str, value: str) -> None:
        if value:
            ref.style[prop] = value
        else:
            ref.style.pop(prop, None)

    def bounding_box(self, ref: DomElement) -> BoundingBox | None:
        if not self.is_attached(ref):
            return None
        return ref.rect or BoundingBox(top=0.0, left=0.0)

    def mount_overlay(self, background: str, color: str) -> None:
        if self.overlay is not None:
            return
        overlay = DomElement("div", {"id": OVERLAY_ID})
        overlay.style.update(
            {
                "position": "fixed",
                "background": background,
                "color": color,
                "pointer-events": "none",
                "z-index": "2147483647",
            }
        )
        self.document.ensure_body().append_child(overlay)
        self.overlay = overlay

    def unmount_overlay(self) -> None:
        if self.overlay is None:
            return
        self.overlay.detach()
        self.overlay = None
        self.view = OverlayView()

    def render_overlay(self, text: str, box: BoundingBox | None) -> None:
        if self.overlay is None:
            return
        self.overlay.set_text(text)
        self.view.text = text
        if box is None:
            self.view.top = self.view.left = None
            return
        self.view.top = box.top
        self.view.left = box.left
        self.overlay.style["top"] = f"{box.top}px"
        self.overlay.style["left"] = f"{box.left}px"

    def write_clipboard(self, text: str, callback: ClipboardCallback) -> None:
        if self.clipboard is None:
            raise ClipboardUnavailable("No clipboard in this document.")
        writer = self.clipboard

        def complete() -> None:
            try:
                writer(text)
            except PermissionError as exc:
                callback(False, str(exc) or "permission denied")
                return
            self.clipboard_log.append(text)
            callback(True, None)

        self.schedule(0.0, complete)

    def schedule(self, delay: float, callback: Callable[[], None]) -> None:
        heapq.heappush(self._timers, (self.now + max(0.0, delay), next(self._sequence), callback))

    def advance(self, seconds: float = 0.0) -> None:
        deadline = self.now + max(0.0, seconds)
        while self._timers and self._timers[0][0] <= deadline:
            due, _, callback = heapq.heappop(self._timers)
            self.now = max(self.now, due)
            callback()
        self.now = deadline

    def add_event_listener(self, event_type: str, handler: Callable[[Any], None]) -> None:
        handlers = self._listeners.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)

    def remove_event_listener(self, event_type: str, handler: Callable[[Any], None]) -> None:
        handlers = self._listeners.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def listener_count(self, event_type: str | None = None) -> int:
        if event_type is not None:
            return len(self._listeners.get(event_type, []))
        return sum(len(handlers) for handlers in self._listeners.values())

    def get_global(self, name: str) -> Any:
        return self.document.globals.get(name)

    def set_global(self, name: str, value: Any) -> None:
        if value is None:
            self.document.globals.pop(name, None)
        else:
            self.document.globals[name] = value

    def dispatch(self, event_type: str, event: Any) -> None:
        for handler in list(self._listeners.get(event_type, [])):
            handler(event)

    def hover(self, element: DomElement | None, previous: DomElement | None = None) -> None:
        """Fire the mouseout/mouseover pair a pointer move from ``previous`` to ``element`` produces."""
        if previous is not None:
            self.dispatch("mouseout", PointerEvent(target=previous, related_target=element))
        if element is not None:
            self.dispatch("mouseover", PointerEvent(target=element, related_target=previous))

    def press(self, combo: str) -> None:
        parsed = KeyCombo.parse(combo)
        self.dispatch(
            "keydown",
            KeyEvent(key=parsed.key, ctrl=parsed.ctrl, shift=parsed.shift, alt=parsed.alt, meta=parsed.meta),
        )

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import Any, Callable, Hashable, Protocol

from .dom import DomElement
from .models import BoundingBox, KeyCombo, KeyEvent, PointerEvent
from .selector_engine import SelectorInferenceEngine

logger = logging.getLogger("selectorscope.overlay")

OUTLINE = "outline"
ClipboardCallback = Callable[[bool, "str | None"], None]


class ClipboardUnavailable(RuntimeError):
    """Raised by a surface whose host offers no clipboard capability."""


class HostSurface(Protocol):
    """DOM side of the overlay: every mutation the controller performs goes through here."""

    def snapshot(self, ref: Hashable) -> DomElement | None: ...

    def is_attached(self, ref: Hashable) -> bool: ...

    def is_overlay(self, ref: Hashable) -> bool: ...

    def get_style(self, ref: Hashable, prop: str) -> str: ...

    def set_style(self, ref: Hashable, prop: str, value: str) -> None: ...

    def bounding_box(self, ref: Hashable) -> BoundingBox | None: ...

    def mount_overlay(self, background: str, color: str) -> None: ...

    def unmount_overlay(self) -> None: ...

    def render_overlay(self, text: str, box: BoundingBox | None) -> None: ...

    def write_clipboard(self, text: str, callback: ClipboardCallback) -> None: ...

    def schedule(self, delay: float, callback: Callable[[], None]) -> None: ...

    def add_event_listener(self, event_type: str, handler: Callable[[Any], None]) -> None: ...

    def remove_event_listener(self, event_type: str, handler: Callable[[Any], None]) -> None: ...

    def get_global(self, name: str) -> Any: ...

    def set_global(self, name: str, value: Any) -> None: ...


class OverlayPhase(str, Enum):
    IDLE = "idle"
    HIGHLIGHTING = "highlighting"


@dataclass(slots=True)
class OverlayState:
    """Hover state of one page; starts Idle and is highlighted by the first pointer-enter."""

    phase: OverlayPhase = OverlayPhase.IDLE
    element: Hashable | None = None
    saved_outline: str = ""
    text: str = ""
    message_generation: int = 0

    def highlight(self, element: Hashable, saved_outline: str, text: str) -> None:
        self.phase = OverlayPhase.HIGHLIGHTING
        self.element = element
        self.saved_outline = saved_outline
        self.text = text
        self.message_generation += 1

    def clear(self) -> None:
        self.phase = OverlayPhase.IDLE
        self.element = None
        self.saved_outline = ""
        self.text = ""
        self.message_generation += 1


@dataclass(frozen=True, slots=True)
class HoverPlan:
    phase: OverlayPhase
    restore: Hashable | None = None
    highlight: Hashable | None = None


def plan_pointer_enter(state: OverlayState, target: Hashable | None) -> HoverPlan | None:
    if target is None:
        return None
    restore = state.element if state.phase is OverlayPhase.HIGHLIGHTING else None
    return HoverPlan(phase=OverlayPhase.HIGHLIGHTING, restore=restore, highlight=target)


def plan_pointer_leave(state: OverlayState, target: Hashable | None, related: Hashable | None) -> HoverPlan | None:
    if state.phase is OverlayPhase.IDLE:
        return None
    if related is not None:
        # the pointer-enter on ``related`` performs the swap
        return None
    if target is not None and target != state.element:
        return None
    return HoverPlan(phase=OverlayPhase.IDLE, restore=state.element)


@dataclass(slots=True)
class HoverOverlayController:
    surface: HostSurface
    engine: SelectorInferenceEngine = field(default_factory=SelectorInferenceEngine)
    outline_style: str = "2px solid #FF671D"
    shortcut: KeyCombo = field(default_factory=lambda: KeyCombo.parse("Control+Alt+C"))
    message_duration: float = 1.5
    copied_message: str = "Copied!"
    state: OverlayState = field(default_factory=OverlayState)

    def on_pointer_enter(self, event: PointerEvent) -> None:
        target = event.target
        if target is None or self.surface.is_overlay(target):
            return
        snapshot = self.surface.snapshot(target)
        if snapshot is None:
            logger.debug("Ignoring hover on detached element.")
            return

        plan = plan_pointer_enter(self.state, target)
        if plan is None:
            return
        if plan.restore is not None:
            self._restore_outline(plan.restore, self.state.saved_outline)

        selector = self.engine.compute(snapshot)
        saved_outline = self.surface.get_style(target, OUTLINE)
        self.state.highlight(target, saved_outline, selector.text)
        self.surface.set_style(target, OUTLINE, self.outline_style)
        self.surface.render_overlay(self.state.text, self.surface.bounding_box(target))
        logger.debug("Highlighting %s", selector.text)

    def on_pointer_leave(self, event: PointerEvent) -> None:
        plan = plan_pointer_leave(self.state, event.target, event.related_target)
        if plan is None:
            return
        saved_outline = self.state.saved_outline
        self.state.clear()
        if plan.restore is not None:
            self._restore_outline(plan.restore, saved_outline)
        self.surface.render_overlay("", None)

    def on_key_down(self, event: KeyEvent) -> None:
        if self.state.phase is not OverlayPhase.HIGHLIGHTING:
            return
        if not self.shortcut.matches(event):
            return
        self.copy_selector()

    def copy_selector(self) -> None:
        if self.state.phase is not OverlayPhase.HIGHLIGHTING:
            return
        element = self.state.element
        text = self.state.text
        try:
            self.surface.write_clipboard(
                text,
                lambda ok, error: self._on_clipboard_result(element, ok, error),
            )
        except ClipboardUnavailable:
            logger.info("Clipboard unavailable; selector not copied.")
            self._flash_message("Clipboard unavailable")

    def release(self) -> None:
        """Undo the current highlight without rendering; used on teardown."""
        if self.state.phase is OverlayPhase.HIGHLIGHTING and self.state.element is not None:
            self._restore_outline(self.state.element, self.state.saved_outline)
        self.state.clear()

    def _on_clipboard_result(self, element: Hashable | None, ok: bool, error: str | None) -> None:
        if self.state.element is None or self.state.element != element:
            logger.debug("Discarding clipboard result for a stale highlight.")
            return
        if ok:
            logger.info("Copied selector %s", self.state.text)
            self._flash_message(self.copied_message)
            return
        logger.info("Clipboard write refused: %s", error)
        self._flash_message(f"Copy failed: {error}" if error else "Copy failed")

    def _flash_message(self, message: str) -> None:
        element = self.state.element
        if element is None:
            return
        self.state.message_generation += 1
        generation = self.state.message_generation
        self.surface.render_overlay(message, self.surface.bounding_box(element))
        self.surface.schedule(self.message_duration, lambda: self._end_message(element, generation))

    def _end_message(self, element: Hashable, generation: int) -> None:
        if self.state.element != element or self.state.message_generation != generation:
            return
        self.surface.render_overlay(self.state.text, self.surface.bounding_box(element))

    def _restore_outline(self, element: Hashable, saved_outline: str) -> None:
        if not self.surface.is_attached(element):
            return
        self.surface.set_style(element, OUTLINE, saved_outline)

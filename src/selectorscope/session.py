from __future__ import annotations

import logging
from typing import Any, Callable

from .config import InspectorConfig
from .interaction import InteractionHighlighter
from .models import KeyEvent, PointerEvent
from .overlay import HostSurface, HoverOverlayController, OverlayState

logger = logging.getLogger("selectorscope.session")

SESSION_GLOBAL = "__selectorscopeSession"


class InspectorSession:
    """Everything one injected page owns: overlay node, listeners, hover state."""

    def __init__(self, surface: HostSurface, config: InspectorConfig | None = None) -> None:
        self.surface = surface
        self.config = config or InspectorConfig()
        self.controller = HoverOverlayController(
            surface=surface,
            engine=self.config.build_engine(),
            outline_style=self.config.outline_style,
            shortcut=self.config.shortcut(),
            message_duration=self.config.message_duration,
            copied_message=self.config.copied_message,
        )
        self.highlighter: InteractionHighlighter | None = None
        if self.config.highlight_interactions:
            self.highlighter = InteractionHighlighter(
                surface=surface,
                style=self.config.interaction_style,
                duration=self.config.interaction_duration,
            )
        self._listeners: list[tuple[str, Callable[[Any], None]]] = []
        self.installed = False

    @property
    def state(self) -> OverlayState:
        return self.controller.state

    def install(self) -> None:
        if self.installed:
            return
        self.surface.mount_overlay(self.config.overlay_background, self.config.overlay_color)
        self._listen("mouseover", self._on_mouse_over)
        self._listen("mouseout", self._on_mouse_out)
        self._listen("keydown", self._on_key_down)
        if self.highlighter is not None:
            self._listen("click", self.highlighter.on_interaction)
            self._listen("change", self.highlighter.on_interaction)
        self.installed = True
        logger.info("Selector overlay installed (%d listeners).", len(self._listeners))

    def reset(self) -> None:
        """Forget per-document state after the host replaced the document."""
        self.controller.state.clear()
        if self.highlighter is not None:
            self.highlighter.clear()

    def teardown(self) -> None:
        if not self.installed:
            return
        self.controller.release()
        if self.highlighter is not None:
            self.highlighter.clear()
        for event_type, handler in self._listeners:
            self.surface.remove_event_listener(event_type, handler)
        self._listeners.clear()
        self.surface.unmount_overlay()
        self.surface.set_global(SESSION_GLOBAL, None)
        self.installed = False
        logger.info("Selector overlay removed.")

    def _listen(self, event_type: str, handler: Callable[[Any], None]) -> None:
        self.surface.add_event_listener(event_type, handler)
        self._listeners.append((event_type, handler))

    def _on_mouse_over(self, event: PointerEvent) -> None:
        self.controller.on_pointer_enter(event)

    def _on_mouse_out(self, event: PointerEvent) -> None:
        self.controller.on_pointer_leave(event)

    def _on_key_down(self, event: KeyEvent) -> None:
        self.controller.on_key_down(event)


def inject(surface: HostSurface, config: InspectorConfig | None = None) -> InspectorSession:
    existing = surface.get_global(SESSION_GLOBAL)
    if isinstance(existing, InspectorSession):
        logger.debug("Overlay already injected; reusing session.")
        return existing

    session = InspectorSession(surface, config)
    surface.set_global(SESSION_GLOBAL, session)
    session.install()
    return session

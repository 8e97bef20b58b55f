from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Hashable

from .models import PointerEvent
from .overlay import HostSurface

logger = logging.getLogger("selectorscope.interaction")

FLASH_PROPERTY = "box-shadow"


@dataclass(slots=True)
class _Flash:
    saved: str
    generation: int


@dataclass(slots=True)
class InteractionHighlighter:
    """Briefly marks elements the user clicked or changed."""

    surface: HostSurface
    style: str = "0 0 0 4px #00FF00"
    duration: float = 2.0
    _active: dict[Hashable, _Flash] = field(default_factory=dict)
    _generation: int = 0

    def on_interaction(self, event: PointerEvent) -> None:
        target = event.target
        if target is None or self.surface.is_overlay(target) or not self.surface.is_attached(target):
            return

        self._generation += 1
        current = self._active.get(target)
        saved = current.saved if current else self.surface.get_style(target, FLASH_PROPERTY)
        self._active[target] = _Flash(saved=saved, generation=self._generation)
        self.surface.set_style(target, FLASH_PROPERTY, self.style)

        generation = self._generation
        self.surface.schedule(self.duration, lambda: self._expire(target, generation))

    def clear(self) -> None:
        for target, flash in list(self._active.items()):
            if self.surface.is_attached(target):
                self.surface.set_style(target, FLASH_PROPERTY, flash.saved)
        self._active.clear()

    @property
    def active_count(self) -> int:
        return len(self._active)

    def _expire(self, target: Hashable, generation: int) -> None:
        flash = self._active.get(target)
        if flash is None or flash.generation != generation:
            return
        del self._active[target]
        if self.surface.is_attached(target):
            self.surface.set_style(target, FLASH_PROPERTY, flash.saved)
        else:
            logger.debug("Flashed element left the document before its highlight expired.")

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

SelectorKind = Literal["test-id", "identifier", "role-name", "text-content", "structural-path"]


@dataclass(frozen=True, slots=True)
class Selector:
    kind: SelectorKind
    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True, slots=True)
class BoundingBox:
    top: float
    left: float
    width: float = 0.0
    height: float = 0.0


@dataclass(frozen=True, slots=True)
class PointerEvent:
    target: Any
    related_target: Any = None


@dataclass(frozen=True, slots=True)
class KeyEvent:
    key: str
    ctrl: bool = False
    shift: bool = False
    alt: bool = False
    meta: bool = False


@dataclass(frozen=True, slots=True)
class KeyCombo:
    key: str
    ctrl: bool = False
    shift: bool = False
    alt: bool = False
    meta: bool = False

    @classmethod
    def parse(cls, raw: str) -> KeyCombo:
        """Parse shortcuts written the Playwright way, e.g. ``Control+Alt+C``."""
        parts = [part.strip() for part in str(raw or "").split("+") if part.strip()]
        if not parts:
            raise ValueError("Shortcut is empty.")
        modifiers = {part.lower() for part in parts[:-1]}
        unknown = modifiers - {"control", "ctrl", "shift", "alt", "meta", "cmd"}
        if unknown:
            raise ValueError(f"Unknown modifier(s): {', '.join(sorted(unknown))}")
        return cls(
            key=parts[-1].lower(),
            ctrl=bool(modifiers & {"control", "ctrl"}),
            shift="shift" in modifiers,
            alt="alt" in modifiers,
            meta=bool(modifiers & {"meta", "cmd"}),
        )

    def matches(self, event: KeyEvent) -> bool:
        return (
            event.key.lower() == self.key
            and event.ctrl == self.ctrl
            and event.shift == self.shift
            and event.alt == self.alt
            and event.meta == self.meta
        )

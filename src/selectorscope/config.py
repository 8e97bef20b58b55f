from __future__ import annotations

from dataclasses import asdict, dataclass, fields
import json
from pathlib import Path
import tempfile
from typing import Any

from .models import KeyCombo
from .selector_engine import DEFAULT_TEST_ID_ATTRIBUTE, SelectorInferenceEngine
from .structural_path import DEFAULT_MAX_DEPTH, clamp_depth

CONFIG_DIR = Path.home() / ".selectorscope"
CONFIG_PATH = CONFIG_DIR / "config.json"
DEFAULT_COPY_SHORTCUT = "Control+Alt+C"


@dataclass(slots=True)
class InspectorConfig:
    test_id_attribute: str = DEFAULT_TEST_ID_ATTRIBUTE
    max_path_depth: int = DEFAULT_MAX_DEPTH
    outline_style: str = "2px solid #FF671D"
    overlay_background: str = "rgba(0, 0, 0, 0.8)"
    overlay_color: str = "#fff"
    copy_shortcut: str = DEFAULT_COPY_SHORTCUT
    message_duration: float = 1.5
    copied_message: str = "Copied!"
    highlight_interactions: bool = False
    interaction_style: str = "0 0 0 4px #00FF00"
    interaction_duration: float = 2.0
    poll_interval_ms: int = 50

    def __post_init__(self) -> None:
        self.max_path_depth = clamp_depth(self.max_path_depth)

    def build_engine(self) -> SelectorInferenceEngine:
        return SelectorInferenceEngine(
            test_id_attribute=self.test_id_attribute,
            max_path_depth=self.max_path_depth,
        )

    def shortcut(self) -> KeyCombo:
        try:
            return KeyCombo.parse(self.copy_shortcut)
        except ValueError:
            return KeyCombo.parse(DEFAULT_COPY_SHORTCUT)


def _coerce(raw: Any, default: Any) -> Any:
    if raw is None:
        return default
    try:
        if isinstance(default, bool):
            if isinstance(raw, str):
                return raw.strip().lower() in {"1", "true", "yes", "on"}
            return bool(raw)
        if isinstance(default, int):
            return max(1, int(raw))
        if isinstance(default, float):
            return max(0.0, float(raw))
    except (TypeError, ValueError):
        return default
    return str(raw).strip() or default


def load_config(config_path: Path | None = None) -> InspectorConfig:
    path = config_path or CONFIG_PATH
    defaults = InspectorConfig()
    if not path.exists() or not path.is_file():
        return defaults

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, TypeError):
        return defaults

    if not isinstance(payload, dict):
        return defaults

    values = {
        item.name: _coerce(payload.get(item.name), getattr(defaults, item.name))
        for item in fields(InspectorConfig)
    }
    return InspectorConfig(**values)


def save_config(config: InspectorConfig, config_path: Path | None = None) -> tuple[bool, str | None]:
    path = config_path or CONFIG_PATH

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        return False, f"Could not create config folder: {exc}"

    payload = json.dumps(asdict(config), ensure_ascii=True, indent=2, sort_keys=True)
    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            handle.write(payload)
            handle.flush()
            temp_path = Path(handle.name)

        temp_path.replace(path)
    except OSError as exc:
        if temp_path and temp_path.exists():
            temp_path.unlink(missing_ok=True)
        return False, f"Could not write config: {exc}"

    return True, None

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator

from .accessible_name import resolve_accessible_name
from .dom import DomDocument, DomElement
from .models import Selector
from .roles import classify_role
from .structural_path import DEFAULT_MAX_DEPTH, generate_path

logger = logging.getLogger("selectorscope.engine")

DEFAULT_TEST_ID_ATTRIBUTE = "data-testid"


def escape_selector_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


@dataclass(frozen=True, slots=True)
class SelectorInferenceEngine:
    test_id_attribute: str = DEFAULT_TEST_ID_ATTRIBUTE
    max_path_depth: int = DEFAULT_MAX_DEPTH

    def compute(self, element: DomElement) -> Selector:
        selector = self._compute(element)
        logger.debug("Selector for <%s>: %s (%s)", element.tag, selector.text, selector.kind)
        return selector

    def _compute(self, element: DomElement) -> Selector:
        test_id = element.get_attribute(self.test_id_attribute)
        if test_id is not None:
            return Selector("test-id", f'[{self.test_id_attribute}="{escape_selector_value(test_id)}"]')

        if element.id:
            return Selector("identifier", f"#{element.id}")

        role = classify_role(element)
        if role:
            name = resolve_accessible_name(element)
            if name:
                return Selector("role-name", f'role={role}[name="{escape_selector_value(name)}"]')
            return Selector("role-name", f"role={role}")

        text = element.text_content.strip()
        if text:
            return Selector("text-content", f'text="{escape_selector_value(text)}"')

        return Selector("structural-path", generate_path(element, self.max_path_depth))


_DEFAULT_ENGINE = SelectorInferenceEngine()

INTERACTIVE_ROLES = frozenset({"button", "link", "checkbox", "textbox", "radio"})


def compute_selector(element: DomElement) -> Selector:
    return _DEFAULT_ENGINE.compute(element)


def infer_document(
    document: DomDocument,
    engine: SelectorInferenceEngine | None = None,
    *,
    interactive_only: bool = False,
) -> Iterator[tuple[DomElement, Selector]]:
    engine = engine or _DEFAULT_ENGINE
    for element in document.iter_elements():
        if interactive_only and classify_role(element) not in INTERACTIVE_ROLES:
            continue
        yield element, engine.compute(element)

from __future__ import annotations

from .dom import DomElement


def resolve_accessible_name(element: DomElement) -> str:
    aria_label = element.get_attribute("aria-label")
    if aria_label:
        return aria_label

    labelled_by = element.get_attribute("aria-labelledby")
    if labelled_by is not None and labelled_by.strip():
        return _resolve_labelled_by(element, labelled_by)

    return element.text_content.strip()


def _resolve_labelled_by(element: DomElement, raw_ids: str) -> str:
    # Unresolvable references yield an empty name; no fallback to own text.
    document = element.owner_document
    if document is None:
        return ""

    chunks: list[str] = []
    for label_id in raw_ids.split():
        label = document.get_element_by_id(label_id)
        if label is None:
            continue
        text = label.text_content.strip()
        if text:
            chunks.append(text)
    return " ".join(chunks)

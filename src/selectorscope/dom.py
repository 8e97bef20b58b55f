from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Union

from bs4 import BeautifulSoup
from bs4.element import Comment, Declaration, Doctype, NavigableString, ProcessingInstruction, Tag

from .models import BoundingBox

_SKIPPED_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)


@dataclass(eq=False, slots=True)
class DomElement:
    """Element node of the in-memory document tree.

    Children are either elements or raw text. ``parent`` is a ``DomElement``,
    the owning ``DomDocument`` for the root element, or ``None`` when detached.
    """

    tag: str
    attributes: dict[str, str] = field(default_factory=dict)
    children: list[Union[DomElement, str]] = field(default_factory=list, repr=False)
    parent: DomElement | DomDocument | None = field(default=None, repr=False)
    style: dict[str, str] = field(default_factory=dict, repr=False)
    rect: BoundingBox | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        self.tag = self.tag.lower()
        for child in self.children:
            if isinstance(child, DomElement):
                child.parent = self

    def get_attribute(self, name: str) -> str | None:
        return self.attributes.get(name.lower())

    def has_attribute(self, name: str) -> bool:
        return name.lower() in self.attributes

    @property
    def id(self) -> str:
        return self.attributes.get("id", "")

    @property
    def text_content(self) -> str:
        pieces: list[str] = []
        stack: list[DomElement | str] = list(reversed(self.children))
        while stack:
            node = stack.pop()
            if isinstance(node, DomElement):
                stack.extend(reversed(node.children))
            else:
                pieces.append(node)
        return "".join(pieces)

    @property
    def element_children(self) -> list[DomElement]:
        return [child for child in self.children if isinstance(child, DomElement)]

    @property
    def owner_document(self) -> DomDocument | None:
        node: DomElement | DomDocument | None = self
        while isinstance(node, DomElement):
            node = node.parent
        return node

    @property
    def is_connected(self) -> bool:
        return self.owner_document is not None

    def previous_element_siblings(self) -> Iterator[DomElement]:
        if self.parent is None:
            return
        siblings = self.parent.element_children
        for sibling in siblings:
            if sibling is self:
                return
            yield sibling

    def append_child(self, child: DomElement | str) -> DomElement | str:
        if isinstance(child, DomElement):
            child.detach()
            child.parent = self
        self.children.append(child)
        return child

    def detach(self) -> None:
        if self.parent is None:
            return
        self.parent.children = [child for child in self.parent.children if child is not self]
        self.parent = None

    def set_text(self, text: str) -> None:
        for child in self.element_children:
            child.parent = None
        self.children = [text] if text else []

    def iter_descendants(self) -> Iterator[DomElement]:
        yield from _walk(self.element_children)


@dataclass(eq=False, slots=True)
class DomDocument:
    """Document node: owns the top-level elements and the page-global namespace."""

    children: list[DomElement] = field(default_factory=list, repr=False)
    globals: dict[str, object] = field(default_factory=dict, repr=False)
    detached_ids: dict[str, DomElement] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        for child in self.children:
            child.parent = self

    @property
    def element_children(self) -> list[DomElement]:
        return list(self.children)

    @property
    def document_element(self) -> DomElement | None:
        return self.children[0] if self.children else None

    @property
    def body(self) -> DomElement | None:
        for element in self.iter_elements():
            if element.tag == "body":
                return element
        return None

    def ensure_body(self) -> DomElement:
        body = self.body
        if body is not None:
            return body
        body = DomElement("body")
        root = self.document_element
        if root is None:
            self.append_child(body)
        else:
            root.append_child(body)
        return body

    def append_child(self, child: DomElement) -> DomElement:
        child.detach()
        child.parent = self
        self.children.append(child)
        return child

    def iter_elements(self) -> Iterator[DomElement]:
        yield from _walk(self.children)

    def get_element_by_id(self, element_id: str) -> DomElement | None:
        if not element_id:
            return None
        if element_id in self.detached_ids:
            return self.detached_ids[element_id]
        for element in self.iter_elements():
            if element.id == element_id:
                return element
        return None

    def register_detached(self, element: DomElement) -> None:
        """Make an element outside the tree resolvable by id (snapshot label targets)."""
        if element.id:
            self.detached_ids[element.id] = element


def _walk(elements: list[DomElement]) -> Iterator[DomElement]:
    """Pre-order walk in document order, without recursion."""
    stack = list(reversed(elements))
    while stack:
        element = stack.pop()
        yield element
        stack.extend(reversed(element.element_children))


def parse_html(markup: str) -> DomDocument:
    soup = BeautifulSoup(markup, "html.parser")
    document = DomDocument()
    pending: list[tuple[Tag, DomElement]] = []
    for node in soup.contents:
        if isinstance(node, Tag):
            element = document.append_child(_convert_tag(node))
            pending.append((node, element))

    # explicit stack: markup nesting depth is unbounded
    while pending:
        tag, element = pending.pop()
        for child in tag.children:
            if isinstance(child, Tag):
                converted = _convert_tag(child)
                element.append_child(converted)
                pending.append((child, converted))
            elif isinstance(child, NavigableString) and not isinstance(child, _SKIPPED_STRINGS):
                element.append_child(str(child))
    return document


def _convert_tag(tag: Tag) -> DomElement:
    attributes: dict[str, str] = {}
    for name, value in tag.attrs.items():
        # bs4 hands multi-valued attributes (class, rel, ...) back as lists
        if isinstance(value, list):
            value = " ".join(value)
        attributes[str(name).lower()] = str(value)
    return DomElement(tag.name, attributes)

from __future__ import annotations

from dataclasses import dataclass

from .dom import DomElement

PRESENT = object()
ABSENT = object()


@dataclass(frozen=True, slots=True)
class RolePattern:
    """Tag name plus attribute predicates.

    Each predicate is ``(name, expected)`` where ``expected`` is a literal value
    (compared case-insensitively), ``PRESENT`` or ``ABSENT``.
    """

    tag: str
    predicates: tuple[tuple[str, object], ...] = ()

    def matches(self, element: DomElement) -> bool:
        if element.tag != self.tag:
            return False
        for name, expected in self.predicates:
            actual = element.get_attribute(name)
            if expected is PRESENT:
                if actual is None:
                    return False
            elif expected is ABSENT:
                if actual is not None:
                    return False
            elif actual is None or actual.strip().lower() != str(expected).lower():
                return False
        return True


def _input(input_type: str) -> RolePattern:
    return RolePattern("input", (("type", input_type),))


ROLE_TABLE: tuple[tuple[str, tuple[RolePattern, ...]], ...] = (
    ("button", (RolePattern("button"), _input("button"), _input("submit"), _input("reset"))),
    ("link", (RolePattern("a", (("href", PRESENT),)),)),
    ("checkbox", (_input("checkbox"),)),
    ("heading", tuple(RolePattern(f"h{level}") for level in range(1, 7))),
    ("dialog", (RolePattern("dialog"),)),
    ("img", (RolePattern("img", (("alt", PRESENT),)),)),
    (
        "textbox",
        (
            _input("text"),
            _input("email"),
            _input("password"),
            RolePattern("input", (("type", ABSENT),)),
            RolePattern("textarea"),
        ),
    ),
    ("radio", (_input("radio"),)),
)


def classify_role(element: DomElement) -> str | None:
    explicit = element.get_attribute("role")
    if explicit is not None and explicit.strip():
        return explicit

    for role, patterns in ROLE_TABLE:
        if any(pattern.matches(element) for pattern in patterns):
            return role
    return None

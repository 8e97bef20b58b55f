from __future__ import annotations

from .dom import DomElement

DEFAULT_MAX_DEPTH = 64
MAX_DEPTH_LIMIT = 1024


def clamp_depth(max_depth: int) -> int:
    return min(MAX_DEPTH_LIMIT, max(1, int(max_depth)))


def generate_path(element: DomElement, max_depth: int = DEFAULT_MAX_DEPTH) -> str:
    """Build an XPath-style ``/tag[k]`` chain from the document root to ``element``.

    An element with an id short-circuits to ``//*[@id="..."]``. Trees deeper
    than ``max_depth`` (at most ``MAX_DEPTH_LIMIT``) are cut at the deepest
    ancestor reached, which is then anchored with ``//`` instead of the
    document root.
    """
    budget = clamp_depth(max_depth)
    steps: list[str] = []
    node = element
    while True:
        if node.id:
            prefix = f'//*[@id="{_escape(node.id)}"]'
            break
        steps.append(f"{node.tag}[{same_tag_index(node)}]")
        parent = node.parent
        if not isinstance(parent, DomElement):
            prefix = ""
            break
        if len(steps) >= budget:
            prefix = "/"
            break
        node = parent
    if not steps:
        return prefix
    return prefix + "/" + "/".join(reversed(steps))


def same_tag_index(element: DomElement) -> int:
    return 1 + sum(1 for sibling in element.previous_element_siblings() if sibling.tag == element.tag)


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')

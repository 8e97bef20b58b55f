from selectorscope.dom import DomDocument, DomElement, parse_html
from selectorscope.dom_surface import DomSurface
from selectorscope.models import BoundingBox, KeyEvent, PointerEvent
from selectorscope.overlay import (
    HoverOverlayController,
    OverlayPhase,
    OverlayState,
    plan_pointer_enter,
    plan_pointer_leave,
)

HIGHLIGHT = "2px solid #FF671D"


def _page(clipboard=None) -> tuple[DomDocument, DomSurface, HoverOverlayController]:
    document = parse_html(
        "<html><body>"
        '<button id="save">Save</button>'
        '<a href="/help">Help</a>'
        "<span>Total: 5</span>"
        "</body></html>"
    )
    surface = DomSurface(document, clipboard=clipboard)
    surface.mount_overlay("black", "white")
    controller = HoverOverlayController(surface=surface, outline_style=HIGHLIGHT)
    return document, surface, controller


def _by_tag(document: DomDocument, tag: str) -> DomElement:
    return next(element for element in document.iter_elements() if element.tag == tag)


def test_pointer_enter_highlights_and_renders_selector() -> None:
    document, surface, controller = _page()
    button = _by_tag(document, "button")
    button.rect = BoundingBox(top=40, left=12, width=80, height=20)

    controller.on_pointer_enter(PointerEvent(target=button))

    assert controller.state.phase is OverlayPhase.HIGHLIGHTING
    assert controller.state.element is button
    assert button.style["outline"] == HIGHLIGHT
    assert surface.view.text == "#save"
    assert (surface.view.top, surface.view.left) == (40, 12)
    assert surface.overlay.text_content == "#save"


def test_rapid_hover_leaves_only_last_element_outlined() -> None:
    document, _surface, controller = _page()
    button = _by_tag(document, "button")
    link = _by_tag(document, "a")
    span = _by_tag(document, "span")
    link.style["outline"] = "1px dotted red"

    for target in (button, link, span, link, button, link):
        controller.on_pointer_enter(PointerEvent(target=target))

    assert "outline" not in button.style
    assert "outline" not in span.style
    assert link.style["outline"] == HIGHLIGHT
    assert controller.state.element is link
    assert controller.state.saved_outline == "1px dotted red"
    assert controller.state.text == 'role=link[name="Help"]'


def test_pointer_leave_restores_original_outline_and_clears_overlay() -> None:
    document, surface, controller = _page()
    link = _by_tag(document, "a")
    link.style["outline"] = "1px dotted red"

    controller.on_pointer_enter(PointerEvent(target=link))
    controller.on_pointer_leave(PointerEvent(target=link))

    assert link.style["outline"] == "1px dotted red"
    assert controller.state.phase is OverlayPhase.IDLE
    assert controller.state.element is None
    assert surface.view.text == ""


def test_pointer_leave_towards_new_target_defers_to_enter() -> None:
    document, surface, controller = _page()
    button = _by_tag(document, "button")
    span = _by_tag(document, "span")

    surface.add_event_listener("mouseover", controller.on_pointer_enter)
    surface.add_event_listener("mouseout", controller.on_pointer_leave)
    surface.hover(button)
    surface.hover(span, previous=button)

    assert controller.state.element is span
    assert "outline" not in button.style
    assert surface.view.text == 'text="Total: 5"'


def test_detached_target_is_ignored() -> None:
    document, surface, controller = _page()
    button = _by_tag(document, "button")
    controller.on_pointer_enter(PointerEvent(target=button))

    orphan = DomElement("div")
    controller.on_pointer_enter(PointerEvent(target=orphan))

    assert controller.state.element is button
    assert "outline" not in orphan.style
    assert surface.view.text == "#save"


def test_overlay_node_is_never_highlighted() -> None:
    _document, surface, controller = _page()
    controller.on_pointer_enter(PointerEvent(target=surface.overlay))
    assert controller.state.phase is OverlayPhase.IDLE


def test_removed_previous_element_is_not_touched() -> None:
    document, _surface, controller = _page()
    button = _by_tag(document, "button")
    span = _by_tag(document, "span")
    controller.on_pointer_enter(PointerEvent(target=button))
    button.detach()

    controller.on_pointer_enter(PointerEvent(target=span))

    assert button.style["outline"] == HIGHLIGHT
    assert controller.state.element is span


def test_copy_shortcut_writes_clipboard_and_restores_text() -> None:
    copied: list[str] = []
    document, surface, controller = _page(clipboard=copied.append)
    button = _by_tag(document, "button")
    controller.on_pointer_enter(PointerEvent(target=button))

    controller.on_key_down(KeyEvent(key="c", ctrl=True, alt=True))
    assert surface.view.text == "#save"

    surface.advance(0)
    assert copied == ["#save"]
    assert surface.view.text == "Copied!"

    surface.advance(controller.message_duration)
    assert surface.view.text == "#save"


def test_other_keys_do_not_copy() -> None:
    copied: list[str] = []
    document, surface, controller = _page(clipboard=copied.append)
    controller.on_pointer_enter(PointerEvent(target=_by_tag(document, "button")))

    controller.on_key_down(KeyEvent(key="c", ctrl=True))
    controller.on_key_down(KeyEvent(key="x", ctrl=True, alt=True))
    surface.advance(5)

    assert copied == []


def test_copy_while_idle_does_nothing() -> None:
    copied: list[str] = []
    _document, surface, controller = _page(clipboard=copied.append)
    controller.on_key_down(KeyEvent(key="c", ctrl=True, alt=True))
    surface.advance(5)
    assert copied == []


def test_denied_clipboard_reports_transient_failure() -> None:
    def deny(_text: str) -> None:
        raise PermissionError("Write permission denied.")

    document, surface, controller = _page(clipboard=deny)
    controller.on_pointer_enter(PointerEvent(target=_by_tag(document, "span")))
    controller.copy_selector()
    surface.advance(0)

    assert surface.view.text == "Copy failed: Write permission denied."
    surface.advance(controller.message_duration)
    assert surface.view.text == 'text="Total: 5"'


def test_missing_clipboard_degrades_to_message() -> None:
    document, surface, controller = _page(clipboard=None)
    controller.on_pointer_enter(PointerEvent(target=_by_tag(document, "span")))
    controller.copy_selector()

    assert surface.view.text == "Clipboard unavailable"
    surface.advance(controller.message_duration)
    assert surface.view.text == 'text="Total: 5"'


def test_stale_clipboard_completion_is_discarded() -> None:
    copied: list[str] = []
    document, surface, controller = _page(clipboard=copied.append)
    controller.on_pointer_enter(PointerEvent(target=_by_tag(document, "button")))
    controller.copy_selector()

    controller.on_pointer_enter(PointerEvent(target=_by_tag(document, "span")))
    surface.advance(0)

    assert copied == ["#save"]
    assert surface.view.text == 'text="Total: 5"'


def test_message_restore_does_not_overwrite_newer_hover() -> None:
    copied: list[str] = []
    document, surface, controller = _page(clipboard=copied.append)
    controller.on_pointer_enter(PointerEvent(target=_by_tag(document, "button")))
    controller.copy_selector()
    surface.advance(0)
    assert surface.view.text == "Copied!"

    controller.on_pointer_enter(PointerEvent(target=_by_tag(document, "a")))
    surface.advance(controller.message_duration)

    assert surface.view.text == 'role=link[name="Help"]'


def test_plan_functions_are_pure() -> None:
    state = OverlayState()
    target = object()
    assert plan_pointer_enter(state, None) is None
    plan = plan_pointer_enter(state, target)
    assert plan is not None
    assert plan.restore is None
    assert plan.highlight is target
    assert state.phase is OverlayPhase.IDLE

    state.highlight(target, "", "#x")
    other = object()
    assert plan_pointer_enter(state, other).restore is target
    assert plan_pointer_leave(state, target, other) is None
    assert plan_pointer_leave(state, other, None) is None
    leave = plan_pointer_leave(state, target, None)
    assert leave is not None
    assert leave.phase is OverlayPhase.IDLE
    assert leave.restore is target


def test_state_starts_idle_until_first_hover() -> None:
    document, surface, controller = _page()
    assert controller.state.phase is OverlayPhase.IDLE
    assert controller.state.element is None
    assert controller.state.text == ""

    controller.on_pointer_enter(PointerEvent(target=_by_tag(document, "span")))

    assert controller.state.phase is OverlayPhase.HIGHLIGHTING
    assert surface.view.text == 'text="Total: 5"'

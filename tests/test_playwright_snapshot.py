from selectorscope.models import KeyEvent, PointerEvent
from selectorscope.playwright_bridge import ElementRef, build_snapshot_element, decode_event
from selectorscope.selector_engine import compute_selector


def _payload(**overrides):
    payload = {
        "chain": [
            {"tag": "td", "attributes": {}, "nth": 3},
            {"tag": "tr", "attributes": {}, "nth": 2},
            {"tag": "tbody", "attributes": {}, "nth": 1},
            {"tag": "table", "attributes": {"class": "grid"}, "nth": 1},
            {"tag": "body", "attributes": {}, "nth": 1},
            {"tag": "html", "attributes": {}, "nth": 1},
        ],
        "text": "",
        "labels": {},
    }
    payload.update(overrides)
    return payload


def test_snapshot_rebuilds_positional_path() -> None:
    element = build_snapshot_element(_payload())
    assert element is not None
    selector = compute_selector(element)
    assert selector.kind == "structural-path"
    assert selector.text == "/html[1]/body[1]/table[1]/tbody[1]/tr[2]/td[3]"


def test_snapshot_keeps_target_text_and_attributes() -> None:
    payload = _payload(text="  42 items ")
    payload["chain"][0] = {"tag": "td", "attributes": {"Data-TestId": "count"}, "nth": 1}
    element = build_snapshot_element(payload)
    assert element.get_attribute("data-testid") == "count"
    assert element.text_content.strip() == "42 items"
    assert compute_selector(element).text == '[data-testid="count"]'


def test_snapshot_resolves_labelledby_targets() -> None:
    payload = _payload(
        chain=[
            {"tag": "input", "attributes": {"type": "text", "aria-labelledby": "lbl"}, "nth": 1},
            {"tag": "body", "attributes": {}, "nth": 1},
            {"tag": "html", "attributes": {}, "nth": 1},
        ],
        labels={"lbl": " Search "},
    )
    element = build_snapshot_element(payload)
    assert compute_selector(element).text == 'role=textbox[name="Search"]'


def test_snapshot_rejects_empty_payloads() -> None:
    assert build_snapshot_element(None) is None
    assert build_snapshot_element({"chain": []}) is None
    assert build_snapshot_element({"chain": ["junk"]}) is None


def test_decode_pointer_and_key_events() -> None:
    kind, event = decode_event({"type": "mouseover", "target": "k:1", "related": "k:2"})
    assert kind == "mouseover"
    assert event == PointerEvent(target=ElementRef("k:1"), related_target=ElementRef("k:2"))

    kind, event = decode_event({"type": "mouseout", "target": "k:1", "related": None})
    assert event.related_target is None

    kind, event = decode_event({"type": "keydown", "key": "c", "ctrl": True, "alt": True})
    assert event == KeyEvent(key="c", ctrl=True, alt=True)


def test_decode_ignores_unknown_or_targetless_events() -> None:
    assert decode_event({"type": "mouseover", "target": None}) is None
    assert decode_event({"type": "click"}) is None
    assert decode_event({"type": "scroll"}) is None

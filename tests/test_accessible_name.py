from selectorscope.accessible_name import resolve_accessible_name
from selectorscope.dom import parse_html


def test_aria_label_beats_text_content() -> None:
    document = parse_html('<button aria-label="X">Close dialog</button>')
    assert resolve_accessible_name(document.document_element) == "X"


def test_aria_labelledby_resolves_referenced_text() -> None:
    document = parse_html(
        '<div><span id="title">  Billing address </span><input id="addr" aria-labelledby="title"></div>'
    )
    field = document.get_element_by_id("addr")
    assert resolve_accessible_name(field) == "Billing address"


def test_aria_labelledby_joins_multiple_references() -> None:
    document = parse_html(
        '<div><b id="a">First</b><b id="b">Second</b><div id="t" aria-labelledby="a missing b">x</div></div>'
    )
    assert resolve_accessible_name(document.get_element_by_id("t")) == "First Second"


def test_unresolved_aria_labelledby_yields_empty_name_without_text_fallback() -> None:
    document = parse_html('<div><button id="go" aria-labelledby="nowhere">Go</button></div>')
    assert resolve_accessible_name(document.get_element_by_id("go")) == ""


def test_text_content_is_trimmed_fallback() -> None:
    document = parse_html("<p>\n   Hello <em>world</em>  \n</p>")
    assert resolve_accessible_name(document.document_element) == "Hello world"


def test_empty_aria_label_falls_through_to_text() -> None:
    document = parse_html('<button aria-label="">Send</button>')
    assert resolve_accessible_name(document.document_element) == "Send"

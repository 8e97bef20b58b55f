from selectorscope.runtime_checks import is_closed_target_error, is_missing_browser_error, normalize_url


def test_missing_browser_error_detection() -> None:
    assert is_missing_browser_error(RuntimeError("Executable doesn't exist at /ms-playwright/chromium"))
    assert not is_missing_browser_error(RuntimeError("net::ERR_NAME_NOT_RESOLVED"))


def test_closed_target_error_detection() -> None:
    assert is_closed_target_error(RuntimeError("Target page, context or browser has been closed"))
    assert not is_closed_target_error(RuntimeError("Timeout 30000ms exceeded"))


def test_normalize_url_adds_scheme_only_when_missing() -> None:
    assert normalize_url("  example.com ") == "https://example.com"
    assert normalize_url("http://localhost:8000") == "http://localhost:8000"
    assert normalize_url("file:///tmp/page.html") == "file:///tmp/page.html"
    assert normalize_url("") == ""

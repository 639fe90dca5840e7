from __future__ import annotations

import pytest

from clipcss.capturer import capture_text, fix_body_children_style
from clipcss.config import CaptureConfig
from clipcss.models import StyleDocument

WRAPPED = "body > .wrapper >"


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("body > .target", 1),
        (" body > .target", 1),
        ("}body>.target", 1),
        ("} body>.target", 1),
        ("\nbody>.target", 1),
        ("header,body > .target", 1),
        ("a{color:red;}body > .target", 1),
        ("x{};body > .target", 1),
        ("body > .target{}\nbody>.target{}", 2),
        ("BODY > .target", 1),
        (".body > .target", 0),
        ("tbody > tr", 0),
    ],
)
def test_fix_body_children_style(text: str, expected: int) -> None:
    assert fix_body_children_style(text, "wrapper").count(WRAPPED) == expected


def test_fix_body_children_style_is_idempotent() -> None:
    once = fix_body_children_style("body > .target", "wrapper")
    assert fix_body_children_style(once, "wrapper") == once


def test_capture_text_applies_fix_when_requested(make_fetcher, storage_info) -> None:  # type: ignore[no-untyped-def]
    result = capture_text(
        StyleDocument(text="body > p { margin: 0; }", base_url="https://a.org/", doc_url="https://a.org/"),
        storage_info=storage_info,
        clip_id="001",
        config=CaptureConfig(wrapper_class="wrapper"),
        fetcher=make_fetcher(),
        need_fix_style=True,
    )
    assert result.css_text == "body > .wrapper > p { margin: 0; }"


def test_embedded_sheets_are_fixed_once(make_fetcher, storage_info) -> None:  # type: ignore[no-untyped-def]
    fetcher = make_fetcher({"https://a.org/a.css": "body > p {}"})
    result = capture_text(
        StyleDocument(text="@import 'a.css';", base_url="https://a.org/", doc_url="https://a.org/"),
        storage_info=storage_info,
        clip_id="001",
        config=CaptureConfig(embed_css=True, wrapper_class="wrapper"),
        fetcher=fetcher,
        need_fix_style=True,
    )
    assert result.css_text == "body > .wrapper > p {}"

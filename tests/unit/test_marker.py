from __future__ import annotations

import pytest

from clipcss.marker import Marker, MarkerError


def test_marker_replaces_tokens_in_allocation_order() -> None:
    marker = Marker()
    marker.record("https://a.org/x.png")
    first = marker.next()
    marker.record("https://a.org/y.png")
    second = marker.next()
    assert first != second

    seen: list[tuple[str, int]] = []

    def resolver(url: str, index: int) -> str:
        seen.append((url, index))
        return url.rsplit("/", 1)[-1]

    out = marker.replace_back(f"a {first} b {second}", resolver)
    assert out == "a x.png b y.png"
    assert seen == [("https://a.org/x.png", 0), ("https://a.org/y.png", 1)]


def test_marker_token_does_not_look_like_css() -> None:
    marker = Marker()
    marker.record("https://a.org/x.png")
    token = marker.next()
    assert token.startswith("[[") and token.endswith("]]")
    assert "url(" not in token


def test_marker_rejects_unconsumed_tokens() -> None:
    marker = Marker()
    marker.record("https://a.org/x.png")
    marker.next()
    with pytest.raises(MarkerError):
        marker.replace_back("no tokens here", lambda url, index: url)


def test_marker_rejects_duplicate_consumption() -> None:
    marker = Marker()
    marker.record("https://a.org/x.png")
    token = marker.next()
    with pytest.raises(MarkerError):
        marker.replace_back(f"{token}{token}", lambda url, index: url)


def test_marker_next_requires_recorded_value() -> None:
    marker = Marker()
    with pytest.raises(MarkerError):
        marker.next()
    marker.record("https://a.org/x.png")
    marker.next()
    with pytest.raises(MarkerError):
        marker.next()


def test_marker_ignores_foreign_and_literal_tokens() -> None:
    other = Marker()
    other.record("https://a.org/other.png")
    foreign = other.next()

    marker = Marker()
    marker.record("https://a.org/x.png")
    own = marker.next()
    text = f'content: "[[clipcss-marker-3]]"; {foreign} {own}'
    out = marker.replace_back(text, lambda url, index: "x.png")
    assert out == f'content: "[[clipcss-marker-3]]"; {foreign} x.png'

from __future__ import annotations

from collections.abc import Callable

import pytest

from clipcss.fetch import FetchError
from clipcss.models import FetchResult, StorageInfo
from clipcss.urls import cache_key


class FakeFetcher:
    """In-memory stand-in for the HTTP fetcher, with the same cache semantics."""

    def __init__(self, texts: dict[str, str] | None = None, default: str | None = None) -> None:
        self.texts = texts or {}
        self.default = default
        self.calls: list[str] = []
        self.headers: list[dict[str, str]] = []
        self._seen: set[str] = set()

    def fetch(
        self,
        url: str,
        *,
        headers: dict[str, str],
        timeout: float,
        max_tries: int,
    ) -> FetchResult:
        self.calls.append(url)
        self.headers.append(headers)
        key = cache_key(url)
        text = self.texts.get(key, self.default)
        if text is None:
            raise FetchError(url, "http_404")
        from_cache = key in self._seen
        self._seen.add(key)
        return FetchResult(text=text, from_cache=from_cache)


@pytest.fixture
def make_fetcher() -> Callable[..., FakeFetcher]:
    return FakeFetcher


@pytest.fixture
def storage_info() -> StorageInfo:
    return StorageInfo(
        asset_folder="category-a/clippings/assets",
        asset_relative_path="assets",
    )

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from clipcss.models import FetchResult, HeaderParams
from clipcss.urls import cache_key, decode_data_url, is_data_url, origin_of

logger = logging.getLogger("clipcss.fetch")


class FetchError(RuntimeError):
    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"fetch {url} failed: {reason}")
        self.url = url
        self.reason = reason


class TextFetcher(Protocol):
    def fetch(
        self,
        url: str,
        *,
        headers: dict[str, str],
        timeout: float,
        max_tries: int,
    ) -> FetchResult: ...


class HttpTextFetcher:
    """Fetches stylesheet text over HTTP and remembers what it already served.

    One instance is meant to live for a whole capture: a second request for the
    same URL (fragment ignored) is answered from memory with ``from_cache=True``.
    """

    def __init__(self, *, client: httpx.Client | None = None) -> None:
        self._owns_client = client is None
        self._client = client or httpx.Client(follow_redirects=True)
        self._cache: dict[str, str] = {}

    def __enter__(self) -> HttpTextFetcher:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def fetch(
        self,
        url: str,
        *,
        headers: dict[str, str],
        timeout: float,
        max_tries: int,
    ) -> FetchResult:
        key = cache_key(url)
        cached = self._cache.get(key)
        if cached is not None:
            return FetchResult(text=cached, from_cache=True)

        if is_data_url(url):
            try:
                _, payload = decode_data_url(url)
            except ValueError as exc:
                raise FetchError(url, f"error:{type(exc).__name__}") from exc
            text = payload.decode("utf-8", errors="replace")
            self._cache[key] = text
            return FetchResult(text=text)

        reason = "error:no_attempt"
        for attempt in range(1, max(1, max_tries) + 1):
            try:
                response = self._client.get(url, headers=headers, timeout=timeout)
            except httpx.HTTPError as exc:
                reason = f"error:{type(exc).__name__}"
                logger.debug("attempt %d for %s failed: %s", attempt, url, exc)
                continue
            if response.status_code >= 500:
                reason = f"http_{response.status_code}"
                logger.debug("attempt %d for %s failed: %s", attempt, url, reason)
                continue
            if response.status_code >= 400:
                raise FetchError(url, f"http_{response.status_code}")
            text = response.text
            self._cache[key] = text
            return FetchResult(text=text)
        raise FetchError(url, reason)


def build_request_headers(url: str, header_params: HeaderParams | None) -> dict[str, str]:
    headers: dict[str, str] = {}
    if header_params is None:
        return headers
    if header_params.user_agent:
        headers["User-Agent"] = header_params.user_agent
    referrer = _referrer_for(url, header_params)
    if referrer:
        headers["Referer"] = referrer
    origin = header_params.origin or (
        origin_of(header_params.ref_url) if header_params.ref_url else None
    )
    if origin and origin != origin_of(url) and header_params.referrer_policy != "no-referrer":
        headers["Origin"] = origin
    return headers


def _referrer_for(url: str, header_params: HeaderParams) -> str | None:
    ref_url = header_params.ref_url
    if not ref_url:
        return None
    full = cache_key(ref_url)
    ref_origin = origin_of(ref_url)
    origin = f"{ref_origin}/" if ref_origin else None
    same_origin = ref_origin is not None and ref_origin == origin_of(url)
    downgrade = ref_url.lower().startswith("https:") and not url.lower().startswith("https:")

    policy = (header_params.referrer_policy or "").strip().lower()
    if policy == "no-referrer":
        return None
    if policy == "unsafe-url":
        return full
    if policy == "origin":
        return origin
    if policy == "same-origin":
        return full if same_origin else None
    if policy == "origin-when-cross-origin":
        return full if same_origin else origin
    if policy == "strict-origin":
        return None if downgrade else origin
    if policy == "no-referrer-when-downgrade":
        return None if downgrade else full
    # strict-origin-when-cross-origin, the browser default
    if same_origin:
        return full
    return None if downgrade else origin

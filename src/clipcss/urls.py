from __future__ import annotations

import base64
from dataclasses import dataclass
from urllib.parse import unquote, unquote_to_bytes, urldefrag, urljoin, urlsplit


@dataclass(slots=True)
class CompletedUrl:
    is_valid: bool
    url: str
    message: str = ""


def complete_url(path: str, base: str | None) -> CompletedUrl:
    """Resolve ``path`` against ``base`` the way a browser resolves ``url()``."""
    raw = path.strip()
    try:
        resolved = urljoin(base or "", raw)
        parts = urlsplit(resolved)
        # Accessing port validates it; urlsplit alone is lenient.
        parts.port  # noqa: B018
    except ValueError as exc:
        return CompletedUrl(is_valid=False, url=raw, message=f"Invalid URL: {exc}")
    if not parts.scheme:
        return CompletedUrl(
            is_valid=False,
            url=raw,
            message=f"Invalid URL: cannot resolve {raw!r} against {base!r}",
        )
    return CompletedUrl(is_valid=True, url=resolved)


def is_data_url(url: str) -> bool:
    return url.strip().lower().startswith("data:")


def is_http_url(url: str) -> bool:
    return urlsplit(url.strip()).scheme.lower() in {"http", "https"}


def cache_key(url: str) -> str:
    no_frag, _ = urldefrag(url)
    return no_frag


def origin_of(url: str) -> str | None:
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return None
    return f"{parts.scheme.lower()}://{parts.netloc.lower()}"


def decode_data_url(url: str) -> tuple[str | None, bytes]:
    """Return the media type and payload of a ``data:`` URL."""
    header, sep, payload = url.strip()[len("data:") :].partition(",")
    if not sep:
        raise ValueError("data URL without payload separator")
    params = header.split(";")
    media = params[0].strip() or None
    if any(p.strip().lower() == "base64" for p in params[1:]):
        return media, base64.b64decode(unquote(payload), validate=False)
    return media, unquote_to_bytes(payload)

from __future__ import annotations

import hashlib
import mimetypes
import re
from pathlib import PurePosixPath
from urllib.parse import unquote, urlsplit

from clipcss.models import StorageInfo
from clipcss.urls import is_data_url

_EXT_RE = re.compile(r"^[a-zA-Z0-9]{1,8}$")

# mimetypes picks odd first choices for a few common asset types.
_PREFERRED_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/svg+xml": "svg",
    "image/x-icon": "ico",
    "image/vnd.microsoft.icon": "ico",
    "font/woff": "woff",
    "font/woff2": "woff2",
    "application/font-woff": "woff",
    "application/font-woff2": "woff2",
    "font/ttf": "ttf",
    "font/otf": "otf",
    "application/vnd.ms-fontobject": "eot",
    "text/css": "css",
}


def _extension_from_mime(mime_type: str | None) -> str | None:
    if not mime_type:
        return None
    ctype = mime_type.split(";", 1)[0].strip().lower()
    if not ctype:
        return None
    if ctype in _PREFERRED_EXTENSIONS:
        return _PREFERRED_EXTENSIONS[ctype]
    guessed = mimetypes.guess_extension(ctype)
    if guessed:
        return guessed.lstrip(".")
    return None


def _data_url_mime(url: str) -> str | None:
    header = url.split(",", 1)[0]
    media = header[len("data:") :].split(";", 1)[0]
    return media or None


def _extension_from_path(url: str) -> str | None:
    suffix = PurePosixPath(unquote(urlsplit(url).path)).suffix.lstrip(".")
    if suffix and _EXT_RE.match(suffix):
        return suffix.lower()
    return None


def file_extension(url: str, mime_hint: str | None = None) -> str | None:
    if is_data_url(url):
        return _extension_from_mime(_data_url_mime(url)) or _extension_from_mime(mime_hint)
    return _extension_from_path(url) or _extension_from_mime(mime_hint)


class AssetNamer:
    """Default naming/storage service.

    Asset names are content-addressed by URL so that the same reference always
    maps to the same file, regardless of which stylesheet found it.
    """

    def name_for(
        self,
        url: str,
        extension: str | None = None,
        prefix: str | None = None,
        mime_hint: str | None = None,
    ) -> str:
        digest = hashlib.md5(url.encode("utf-8"), usedforsecurity=False).hexdigest()
        ext = extension or file_extension(url, mime_hint)
        name = f"{digest}.{ext}" if ext else digest
        return f"{prefix}-{name}" if prefix else name

    def filename_for(self, storage_info: StorageInfo, asset_name: str) -> str:
        return _join(storage_info.asset_folder, asset_name)

    def path_for(self, storage_info: StorageInfo, asset_name: str) -> str:
        return _join(storage_info.asset_relative_path, asset_name)


def _join(folder: str, name: str) -> str:
    folder = folder.strip().rstrip("/")
    if not folder or folder == ".":
        return name
    return f"{folder}/{name}"

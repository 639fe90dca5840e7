from __future__ import annotations

from dataclasses import dataclass, field

FONT_FILE_TASK = "fontFileTask"
IMAGE_FILE_TASK = "imageFileTask"
STYLE_FILE_TASK = "styleFileTask"

ProcessedUrls = tuple[str, ...]


@dataclass(slots=True)
class StyleDocument:
    text: str
    base_url: str
    doc_url: str
    css_url: str | None = None  # where the captured text will live; defaults to base_url

    @property
    def destination(self) -> str:
        return self.css_url or self.base_url


@dataclass(slots=True)
class AssetReference:
    raw: str
    url: str | None
    kind: str  # font|image|import
    status: str  # resolved|invalid|ignored


@dataclass(slots=True)
class StorageInfo:
    asset_folder: str
    asset_relative_path: str


@dataclass(slots=True)
class HeaderParams:
    ref_url: str | None = None
    origin: str | None = None
    user_agent: str | None = None
    referrer_policy: str = "strict-origin-when-cross-origin"


@dataclass(slots=True)
class Task:
    kind: str
    filename: str
    clip_id: str
    url: str | None = None
    text: str | None = None
    mime_type: str | None = None

    @classmethod
    def url_task(cls, filename: str, url: str, clip_id: str, kind: str) -> Task:
        return cls(kind=kind, filename=filename, clip_id=clip_id, url=url)

    @classmethod
    def style_task(cls, filename: str, text: str, clip_id: str) -> Task:
        return cls(
            kind=STYLE_FILE_TASK,
            filename=filename,
            clip_id=clip_id,
            text=text,
            mime_type="text/css",
        )

    @property
    def is_text(self) -> bool:
        return self.text is not None


@dataclass(slots=True)
class CaptureResult:
    css_text: str = ""
    tasks: list[Task] = field(default_factory=list)
    failed: bool = False  # the stylesheet could not be resolved or fetched


@dataclass(slots=True)
class FetchResult:
    text: str
    from_cache: bool = False

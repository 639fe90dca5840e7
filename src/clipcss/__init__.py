from __future__ import annotations

from clipcss.capturer import capture_link, capture_text
from clipcss.config import CaptureConfig
from clipcss.models import CaptureResult, HeaderParams, StorageInfo, StyleDocument, Task

__all__ = [
    "CaptureConfig",
    "CaptureResult",
    "HeaderParams",
    "StorageInfo",
    "StyleDocument",
    "Task",
    "capture_link",
    "capture_text",
]

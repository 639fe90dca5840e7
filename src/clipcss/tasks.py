from __future__ import annotations

from clipcss.marker import Marker
from clipcss.models import StorageInfo, Task
from clipcss.naming import AssetNamer


def generate_tasks(
    text: str,
    marker: Marker,
    *,
    kind: str,
    css_url: str,
    doc_url: str,
    clip_id: str,
    storage_info: StorageInfo,
    namer: AssetNamer,
    mime_type_dict: dict[str, str] | None = None,
    extension: str | None = None,
) -> tuple[str, list[Task]]:
    """Turn every URL collected by ``marker`` into a url task and put its path in the text.

    Text living in the page refers to assets through the page's relative asset
    path; a stylesheet saved on its own sits next to its assets and uses the
    bare name.
    """
    hints = mime_type_dict or {}
    tasks: list[Task] = []

    def _resolve(url: str, _index: int) -> str:
        asset_name = namer.name_for(url, extension, clip_id, hints.get(url))
        filename = namer.filename_for(storage_info, asset_name)
        tasks.append(Task.url_task(filename, url, clip_id, kind))
        if css_url == doc_url:
            return namer.path_for(storage_info, asset_name)
        return asset_name

    return marker.replace_back(text, _resolve), tasks

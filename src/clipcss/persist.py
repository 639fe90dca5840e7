from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

import httpx

from clipcss.models import Task
from clipcss.urls import decode_data_url, is_data_url

logger = logging.getLogger("clipcss.persist")


@dataclass(slots=True)
class FailedTask:
    filename: str
    reason: str


@dataclass(slots=True)
class _WriteOutcome:
    filename: str
    reason: str | None
    data: bytes | None = None


def execute_tasks(
    tasks: list[Task],
    output_root: Path,
    *,
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 20.0,
    max_workers: int = 6,
) -> list[FailedTask]:
    failed: list[FailedTask] = []
    pending: dict[str, Task] = {}

    for task in tasks:
        if task.filename in pending:
            continue
        target = _target_path(output_root, task.filename)
        if target is None:
            failed.append(FailedTask(filename=task.filename, reason="unsafe_path"))
            continue
        if task.is_text:
            _write(target, (task.text or "").encode("utf-8"))
            continue
        pending[task.filename] = task

    if not pending:
        return failed

    with httpx.Client(follow_redirects=True, timeout=timeout_seconds, headers=headers or {}) as client:
        items = list(pending.values())
        if len(items) <= 1:
            outcomes = [_download_one(client, items[0])]
        else:
            worker_count = max(1, min(max_workers, len(items)))
            outcomes = []
            with ThreadPoolExecutor(max_workers=worker_count) as executor:
                futures = [executor.submit(_download_one, client, task) for task in items]
                for future in as_completed(futures):
                    outcomes.append(future.result())

    for outcome in sorted(outcomes, key=lambda item: item.filename):
        if outcome.reason is not None or outcome.data is None:
            logger.warning("could not save %s: %s", outcome.filename, outcome.reason)
            failed.append(FailedTask(filename=outcome.filename, reason=outcome.reason or "empty"))
            continue
        target = _target_path(output_root, outcome.filename)
        if target is not None:
            _write(target, outcome.data)

    return failed


def _target_path(output_root: Path, filename: str) -> Path | None:
    rel = PurePosixPath(filename)
    if rel.is_absolute() or ".." in rel.parts:
        return None
    return output_root.joinpath(*rel.parts)


def _write(target: Path, data: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)


def _download_one(client: httpx.Client, task: Task) -> _WriteOutcome:
    url = task.url or ""
    if is_data_url(url):
        try:
            _, data = decode_data_url(url)
        except ValueError as exc:
            return _WriteOutcome(filename=task.filename, reason=f"error:{type(exc).__name__}")
        return _WriteOutcome(filename=task.filename, reason=None, data=data)
    try:
        response = client.get(url)
    except Exception as exc:  # noqa: BLE001 - one broken asset must not stop the rest
        return _WriteOutcome(filename=task.filename, reason=f"error:{type(exc).__name__}")
    if response.status_code >= 400:
        return _WriteOutcome(filename=task.filename, reason=f"http_{response.status_code}")
    return _WriteOutcome(filename=task.filename, reason=None, data=response.content)

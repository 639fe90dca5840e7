from __future__ import annotations

import logging
from pathlib import Path

import typer

from clipcss.capturer import capture_link, capture_text
from clipcss.config import DEFAULT_WRAPPER_CLASS, CaptureConfig
from clipcss.env import float_setting, load_settings_files, setting
from clipcss.fetch import HttpTextFetcher
from clipcss.models import CaptureResult, HeaderParams, StorageInfo, StyleDocument
from clipcss.persist import execute_tasks
from clipcss.scan import scan_css_references
from clipcss.urls import is_http_url, origin_of

app = typer.Typer(
    add_completion=False,
    help="Capture a stylesheet and the fonts, images and imports it references.",
    pretty_exceptions_show_locals=False,
)

DEFAULT_USER_AGENT = "clipcss/0.1"
ASSET_FOLDER = "assets"
INDEX_CSS = "index.css"


def _repo_root() -> Path:
    return Path(__file__).resolve().parents[2]


def _bool_from_on_off(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered not in {"on", "off"}:
        raise typer.BadParameter(f"expected `on` or `off`, got `{value}`.")
    return lowered == "on"


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, level_name.strip().upper(), None)
    if not isinstance(level, int):
        raise typer.BadParameter(f"unknown log level `{level_name}`.")
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


@app.command()
def capture(
    source: str = typer.Argument(..., help="Stylesheet URL or local CSS file"),
    doc_url: str = typer.Option(None, "--doc-url", help="URL of the page the CSS belongs to"),
    base_url: str = typer.Option(
        None, "--base-url", help="Base URL for relative references in a local file"
    ),
    output: Path = typer.Option(Path("clip"), "--output", "-o"),
    clip_id: str = typer.Option("clip", "--clip-id"),
    embed_css: bool = typer.Option(
        True, "--embed-css/--link-css", help="Inline imported sheets or save them as files"
    ),
    save_web_font: str = typer.Option(None, "--save-web-font"),
    save_css_image: str = typer.Option(None, "--save-css-image"),
    fix_style: str = typer.Option("off", "--fix-style"),
    wrapper_class: str = typer.Option(DEFAULT_WRAPPER_CLASS, "--wrapper-class"),
    timeout: float = typer.Option(None, "--timeout"),
    max_tries: int = typer.Option(3, "--max-tries"),
    user_agent: str = typer.Option(None, "--user-agent"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print tasks without saving"),
    log_level: str = typer.Option("warning", "--log-level"),
) -> None:
    load_settings_files(Path.cwd(), _repo_root())
    _configure_logging(log_level)

    is_remote = is_http_url(source)
    local_path = None if is_remote else Path(source)
    if local_path is not None and not local_path.is_file():
        raise typer.BadParameter(f"`{source}` is neither an http(s) URL nor a readable file.")
    resolved_doc_url = doc_url or (source if is_remote else base_url)
    if not resolved_doc_url:
        raise typer.BadParameter("`--doc-url` or `--base-url` is required for local files.")

    cfg = CaptureConfig(
        save_web_font=_bool_from_on_off(save_web_font or setting("save_web_font", "on")),
        save_css_image=_bool_from_on_off(
            save_css_image or setting("save_css_image", "on")
        ),
        embed_css=embed_css,
        request_timeout=timeout or float_setting("timeout", 40.0),
        request_max_tries=max_tries,
        wrapper_class=wrapper_class,
        log_level=log_level,
    )
    header_params = HeaderParams(
        ref_url=resolved_doc_url,
        origin=origin_of(resolved_doc_url),
        user_agent=user_agent or setting("user_agent", DEFAULT_USER_AGENT),
    )
    storage_info = StorageInfo(asset_folder=ASSET_FOLDER, asset_relative_path=ASSET_FOLDER)
    need_fix_style = _bool_from_on_off(fix_style)

    with HttpTextFetcher() as fetcher:
        if local_path is not None:
            result = capture_text(
                StyleDocument(
                    text=local_path.read_text(encoding="utf-8"),
                    base_url=base_url or resolved_doc_url,
                    doc_url=resolved_doc_url,
                    css_url=resolved_doc_url,
                ),
                storage_info=storage_info,
                clip_id=clip_id,
                config=cfg,
                fetcher=fetcher,
                header_params=header_params,
                need_fix_style=need_fix_style,
            )
        else:
            result = capture_link(
                source,
                base_url=resolved_doc_url,
                doc_url=resolved_doc_url,
                storage_info=storage_info,
                clip_id=clip_id,
                config=cfg,
                fetcher=fetcher,
                header_params=header_params,
                need_fix_style=need_fix_style,
            )

    _report(
        result,
        output,
        dry_run=dry_run,
        header_params=header_params,
        timeout=cfg.request_timeout,
    )


def _report(
    result: CaptureResult,
    output: Path,
    *,
    dry_run: bool,
    header_params: HeaderParams,
    timeout: float,
) -> None:
    for task in result.tasks:
        source = task.url if task.url is not None else f"<{len(task.text or '')} chars>"
        typer.echo(f"{task.kind}\t{task.filename}\t{source}")
    typer.echo(f"Tasks: {len(result.tasks)}")
    if dry_run:
        if result.css_text:
            typer.echo(result.css_text)
        return

    output.mkdir(parents=True, exist_ok=True)
    if result.css_text:
        (output / INDEX_CSS).write_text(result.css_text, encoding="utf-8")
        typer.echo(f"Stylesheet: {output / INDEX_CSS}")
    headers = {"User-Agent": header_params.user_agent or DEFAULT_USER_AGENT}
    if header_params.ref_url:
        headers["Referer"] = header_params.ref_url
    failed = execute_tasks(
        result.tasks,
        output,
        headers=headers,
        timeout_seconds=timeout,
    )
    for item in failed:
        typer.echo(f"Failed: {item.filename} ({item.reason})")
    typer.echo(f"Output: {output}")


@app.command()
def inspect(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Local CSS file"),
    base_url: str = typer.Option(..., "--base-url", help="Base URL for relative references"),
) -> None:
    """List the url references a capture would consider."""
    refs = scan_css_references(path.read_text(encoding="utf-8"), base_url)
    for ref in refs:
        typer.echo(f"{ref.kind}\t{ref.status}\t{ref.url or ref.raw}")
    typer.echo(f"References: {len(refs)}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()

from __future__ import annotations

import logging
import re

from clipcss.config import CaptureConfig
from clipcss.fetch import FetchError, TextFetcher, build_request_headers
from clipcss.models import (
    FONT_FILE_TASK,
    IMAGE_FILE_TASK,
    STYLE_FILE_TASK,
    CaptureResult,
    HeaderParams,
    ProcessedUrls,
    StorageInfo,
    StyleDocument,
    Task,
)
from clipcss.naming import AssetNamer
from clipcss.rules import asset_rules, import_rules, mark_assets
from clipcss.tasks import generate_tasks
from clipcss.urls import cache_key, complete_url

logger = logging.getLogger("clipcss.capturer")

# Strings are matched first so that "/*" inside a quoted value survives.
_COMMENT_RE = re.compile(r"(\"(?:\\.|[^\"\\])*\"|'(?:\\.|[^'\\])*')|/\*.*?\*/", re.DOTALL)

_FONT_FACE_RE = re.compile(r"@font-face\s?\{[^\}]+\}", re.MULTILINE)
_IMAGE_DECLARATION_RES = [
    re.compile(rf"{prop}:([^:;]*url\([^\)]+\)[^:;]*)+;", re.IGNORECASE | re.MULTILINE)
    for prop in ("background", "background-image", "border-image")
]
_IMPORT_RE = re.compile(r"@import[^;]+;", re.IGNORECASE | re.MULTILINE)


def strip_css_comments(text: str) -> str:
    return _COMMENT_RE.sub(lambda m: m.group(1) or "", text)


def fix_body_children_style(css_text: str, wrapper_class: str) -> str:
    """Re-root ``body >`` selectors under the wrapper element the page is placed in.

    Selectors that already point into the wrapper are left alone, so embedded
    sheets fixed during their own capture are not fixed twice.
    """
    wrapper = re.escape(wrapper_class)
    pattern = re.compile(
        rf"(^|[\{{\}}\s,;])(body\s*>\s?)(?!\s*\.{wrapper}\s*>)",
        re.IGNORECASE | re.MULTILINE,
    )
    replacement = f"body > .{wrapper_class} > "
    return pattern.sub(lambda m: f"{m.group(1)}{replacement}", css_text)


def capture_link(
    link: str,
    *,
    base_url: str,
    doc_url: str,
    storage_info: StorageInfo,
    clip_id: str,
    config: CaptureConfig,
    fetcher: TextFetcher,
    namer: AssetNamer | None = None,
    mime_type_dict: dict[str, str] | None = None,
    header_params: HeaderParams | None = None,
    processed: ProcessedUrls = (),
    need_fix_style: bool = False,
) -> CaptureResult:
    """Capture the stylesheet ``link`` points to.

    Broken links and failed fetches yield an empty result flagged as
    ``failed``; they never abort the surrounding capture.

    When the fetcher reports the text as already served, the sheet has been
    captured earlier in this session: linked sheets already own a file task,
    embedded sheets are resolved again so their text can be inlined, and
    that second round of tasks is dropped.
    """
    namer = namer or AssetNamer()
    completed = complete_url(link, base_url)
    if not completed.is_valid:
        logger.warning("skip stylesheet %r: %s", link, completed.message)
        return CaptureResult(failed=True)
    url = completed.url

    try:
        fetched = fetcher.fetch(
            url,
            headers=build_request_headers(url, header_params),
            timeout=config.request_timeout,
            max_tries=config.request_max_tries,
        )
    except FetchError as exc:
        logger.warning("fetch stylesheet %s failed: %s", url, exc.reason)
        return CaptureResult(failed=True)

    if fetched.from_cache and not config.embed_css:
        return CaptureResult()

    # TODO: cached embedded sheets only need their text; skip building the
    # tasks that get discarded below.
    result = capture_text(
        StyleDocument(
            text=fetched.text,
            base_url=url,
            doc_url=doc_url,
            css_url=doc_url if config.embed_css else url,
        ),
        storage_info=storage_info,
        clip_id=clip_id,
        config=config,
        fetcher=fetcher,
        namer=namer,
        mime_type_dict=mime_type_dict,
        header_params=header_params,
        processed=processed + (cache_key(url),),
        need_fix_style=need_fix_style,
    )

    if config.embed_css:
        if fetched.from_cache:
            return CaptureResult(css_text=result.css_text)
        return result

    asset_name = namer.name_for(cache_key(url), "css", clip_id)
    filename = namer.filename_for(storage_info, asset_name)
    tasks = [*result.tasks, Task.style_task(filename, result.css_text, clip_id)]
    return CaptureResult(css_text="", tasks=tasks)


def capture_text(
    document: StyleDocument,
    *,
    storage_info: StorageInfo,
    clip_id: str,
    config: CaptureConfig,
    fetcher: TextFetcher,
    namer: AssetNamer | None = None,
    mime_type_dict: dict[str, str] | None = None,
    header_params: HeaderParams | None = None,
    processed: ProcessedUrls = (),
    need_fix_style: bool = False,
) -> CaptureResult:
    """Resolve every font, image and ``@import`` reference in ``document``.

    Passes run in a fixed order (fonts, images, imports, selector fix-up) and
    each one rewrites the output of the previous one. A pass replaces the URLs
    it finds with marker tokens and swaps the tokens for local paths once all
    of its URLs are known.
    """
    namer = namer or AssetNamer()
    base_url = document.base_url
    doc_url = document.doc_url
    css_url = document.destination
    tasks: list[Task] = []

    def _asset_pass(text: str, pattern: re.Pattern[str], save_asset: bool, kind: str) -> str:
        text, marker = mark_assets(
            text,
            pattern=pattern,
            rules=asset_rules(base_url),
            save_asset=save_asset,
        )
        text, found = generate_tasks(
            text,
            marker,
            kind=kind,
            css_url=css_url,
            doc_url=doc_url,
            clip_id=clip_id,
            storage_info=storage_info,
            namer=namer,
            mime_type_dict=mime_type_dict,
        )
        tasks.extend(found)
        return text

    def _link(link: str, link_processed: ProcessedUrls) -> CaptureResult:
        return capture_link(
            link,
            base_url=base_url,
            doc_url=doc_url,
            storage_info=storage_info,
            clip_id=clip_id,
            config=config,
            fetcher=fetcher,
            namer=namer,
            mime_type_dict=mime_type_dict,
            header_params=header_params,
            processed=link_processed,
            need_fix_style=need_fix_style,
        )

    text = strip_css_comments(document.text)
    text = _asset_pass(text, _FONT_FACE_RE, config.save_web_font, FONT_FILE_TASK)
    for pattern in _IMAGE_DECLARATION_RES:
        text = _asset_pass(text, pattern, config.save_css_image, IMAGE_FILE_TASK)

    text, marker = mark_assets(
        text,
        pattern=_IMPORT_RE,
        rules=import_rules(base_url, embed_css=config.embed_css),
        save_asset=True,
    )

    if config.embed_css:
        imported: list[str] = []
        for url in marker.values:
            if cache_key(url) in processed:
                logger.debug("circular import of %s skipped", url)
                imported.append("")
                continue
            nested = _link(url, processed)
            imported.append(nested.css_text)
            tasks.extend(nested.tasks)
        text = marker.replace_back(text, lambda _url, index: imported[index])
    else:
        text, style_tasks = generate_tasks(
            text,
            marker,
            kind=STYLE_FILE_TASK,
            extension="css",
            css_url=css_url,
            doc_url=doc_url,
            clip_id=clip_id,
            storage_info=storage_info,
            namer=namer,
            mime_type_dict=mime_type_dict,
        )
        # The statements now point at local files; fetching each target
        # produces its own text task along with the assets it references.
        # A target that cannot be fetched still gets an empty file.
        visited: set[str] = set()
        for style_task in style_tasks:
            if style_task.url is None:
                continue
            key = cache_key(style_task.url)
            if key in processed or key in visited:
                continue
            visited.add(key)
            nested = _link(style_task.url, processed)
            tasks.extend(nested.tasks)
            if nested.failed:
                tasks.append(Task.style_task(style_task.filename, "", clip_id))

    if need_fix_style:
        text = fix_body_children_style(text, config.wrapper_class)

    return CaptureResult(css_text=text, tasks=tasks)

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any

import tinycss2

from clipcss.models import AssetReference
from clipcss.urls import complete_url, is_data_url, is_http_url

TokenSeq = Sequence[Any]

IMAGE_PROPERTIES = {"background", "background-image", "border-image"}


def _url_values(tokens: TokenSeq) -> Iterator[str]:
    for token in tokens:
        ttype = token.type
        if ttype == "url":
            yield token.value
            continue
        if ttype == "function":
            if token.lower_name == "url":
                raw = tinycss2.serialize(token.arguments).strip().strip("\"'")
                yield raw
            else:
                yield from _url_values(token.arguments)
            continue
        if ttype in {"() block", "[] block", "{} block"}:
            yield from _url_values(token.content)


def _import_target(prelude: TokenSeq) -> str | None:
    for token in prelude:
        if token.type == "whitespace":
            continue
        if token.type == "string":
            return token.value
        if token.type == "url":
            return token.value
        if token.type == "function" and token.lower_name == "url":
            return tinycss2.serialize(token.arguments).strip().strip("\"'")
        return None
    return None


def classify(raw: str, base_url: str, kind: str) -> AssetReference:
    completed = complete_url(raw, base_url)
    if not raw.strip() or not completed.is_valid:
        return AssetReference(raw=raw, url=None, kind=kind, status="invalid")
    if is_data_url(completed.url) or is_http_url(completed.url):
        return AssetReference(raw=raw, url=completed.url, kind=kind, status="resolved")
    return AssetReference(raw=raw, url=completed.url, kind=kind, status="ignored")


def _declaration_refs(content: TokenSeq, base_url: str, kind: str | None) -> Iterator[AssetReference]:
    declarations = tinycss2.parse_declaration_list(
        content, skip_whitespace=True, skip_comments=True
    )
    for decl in declarations:
        if decl.type != "declaration":
            continue
        decl_kind = kind
        if decl_kind is None:
            if decl.lower_name not in IMAGE_PROPERTIES:
                continue
            decl_kind = "image"
        for raw in _url_values(decl.value):
            yield classify(raw, base_url, decl_kind)


def _rule_refs(nodes: TokenSeq, base_url: str) -> Iterator[AssetReference]:
    for node in nodes:
        if node.type == "at-rule":
            keyword = node.lower_at_keyword
            if keyword == "import":
                target = _import_target(node.prelude or [])
                if target is not None:
                    yield classify(target, base_url, "import")
            elif keyword == "font-face" and node.content is not None:
                yield from _declaration_refs(node.content, base_url, "font")
            elif node.content is not None:
                nested = tinycss2.parse_rule_list(
                    node.content, skip_whitespace=True, skip_comments=True
                )
                yield from _rule_refs(nested, base_url)
            continue
        if node.type == "qualified-rule":
            yield from _declaration_refs(node.content, base_url, None)


def scan_css_references(css_text: str, base_url: str) -> list[AssetReference]:
    """List the font, image and import references a capture would consider."""
    nodes = tinycss2.parse_stylesheet(css_text, skip_whitespace=True, skip_comments=True)
    return list(_rule_refs(nodes, base_url))

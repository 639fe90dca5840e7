from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from clipcss.marker import Marker
from clipcss.urls import cache_key, complete_url, is_data_url, is_http_url

MatchHandler = Callable[[re.Match[str]], str]

KIND_ASSET = "asset"
KIND_IMPORT = "import"

_FLAGS = re.IGNORECASE | re.MULTILINE

# Splits ``url(foo.png)`` / ``@import url(foo.css);`` on the parentheses.
_PAREN_SEPARATOR = re.compile(r"\(|\)")


@dataclass(frozen=True, slots=True)
class Rule:
    pattern: re.Pattern[str]
    separator: str | re.Pattern[str]
    base_url: str
    kind: str
    embed_css: bool = False

    def inner_path(self, matched: str) -> str:
        if isinstance(self.separator, re.Pattern):
            pieces = self.separator.split(matched)
        else:
            pieces = matched.split(self.separator)
        return pieces[1].strip() if len(pieces) > 1 else ""


def asset_rules(base_url: str) -> list[Rule]:
    """``url()`` in its double-quoted, single-quoted and unquoted forms."""
    return [
        Rule(re.compile(r'url\("[^\)]+"\)', _FLAGS), '"', base_url, KIND_ASSET),
        Rule(re.compile(r"url\('[^\)]+'\)", _FLAGS), "'", base_url, KIND_ASSET),
        Rule(re.compile(r"url\([^\)'\"]+\)", _FLAGS), _PAREN_SEPARATOR, base_url, KIND_ASSET),
    ]


def import_rules(base_url: str, *, embed_css: bool) -> list[Rule]:
    """The five ``@import`` syntaxes, each with an optional trailing media list."""
    specs: list[tuple[str, str | re.Pattern[str]]] = [
        (r'@import\s+url\("[^\)]+"\)\s*([^;]*);$', '"'),
        (r"@import\s+url\('[^\)]+'\)\s*([^;]*);$", "'"),
        (r"@import\s+url\([^\)'\"]+\)\s*([^;]*);$", _PAREN_SEPARATOR),
        (r"@import\s*'[^;']+'\s*([^;]*);$", "'"),
        (r'@import\s*"[^;"]+"\s*([^;]*);$', '"'),
    ]
    return [
        Rule(re.compile(pattern, _FLAGS), separator, base_url, KIND_IMPORT, embed_css=embed_css)
        for pattern, separator in specs
    ]


def replacement(rule: Rule, marker: Marker, save_asset: bool) -> MatchHandler:
    if rule.kind == KIND_IMPORT:
        return _import_replacement(rule, marker)
    return _asset_replacement(rule, marker, save_asset)


def _asset_replacement(rule: Rule, marker: Marker, save_asset: bool) -> MatchHandler:
    def _handler(match: re.Match[str]) -> str:
        path = rule.inner_path(match.group(0))
        completed = complete_url(path, rule.base_url)
        if not completed.is_valid:
            return 'url("")'
        if not (is_data_url(completed.url) or is_http_url(completed.url)):
            return match.group(0)
        if not save_asset:
            return 'url("")'
        marker.record(completed.url)
        return f'url("{marker.next()}")'

    return _handler


def _import_replacement(rule: Rule, marker: Marker) -> MatchHandler:
    def _handler(match: re.Match[str]) -> str:
        path = rule.inner_path(match.group(0))
        completed = complete_url(path, rule.base_url)
        if not completed.is_valid:
            return f"/*error: {completed.message} path: {path}*/"
        if not (is_data_url(completed.url) or is_http_url(completed.url)):
            return match.group(0)
        media = (match.group(1) or "").strip()
        # One stylesheet per document: fragments do not name a different file.
        marker.record(cache_key(completed.url))
        token = marker.next()
        if rule.embed_css:
            if not media:
                return token
            return f"@media {media} {{\n{token}\n}}\n"
        if not media:
            return f'@import url("{token}");'
        return f'@import url("{token}") {media};'

    return _handler


def apply_rules(text: str, rules: list[Rule], marker: Marker, save_asset: bool) -> str:
    for rule in rules:
        text = rule.pattern.sub(replacement(rule, marker, save_asset), text)
    return text


def mark_assets(
    text: str,
    *,
    pattern: re.Pattern[str],
    rules: list[Rule],
    save_asset: bool,
) -> tuple[str, Marker]:
    """Rewrite every ``pattern`` match with ``rules``, collecting URLs in a fresh marker."""
    marker = Marker()
    rewritten = pattern.sub(
        lambda match: apply_rules(match.group(0), rules, marker, save_asset),
        text,
    )
    return rewritten, marker

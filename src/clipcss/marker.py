from __future__ import annotations

import re
from collections.abc import Callable
from uuid import uuid4

TOKEN_PREFIX = "clipcss-marker-"


class MarkerError(RuntimeError):
    pass


class Marker:
    """Ordered URL collection whose entries are referenced by placeholder tokens.

    ``record`` stores a URL, ``next`` emits the token for the most recently
    recorded URL, and ``replace_back`` substitutes every token in a second
    pass, handing the resolver the URL collected at allocation time.

    Tokens carry a per-instance nonce, so text that happens to contain
    another marker's token, or a literal look-alike, is left untouched.
    """

    def __init__(self) -> None:
        self._values: list[str] = []
        self._issued = 0
        self._prefix = f"{TOKEN_PREFIX}{uuid4().hex}-"
        self._token_re = re.compile(r"\[\[" + re.escape(self._prefix) + r"(\d+)\]\]")

    @property
    def values(self) -> list[str]:
        return list(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def token(self, index: int) -> str:
        return f"[[{self._prefix}{index}]]"

    def record(self, url: str) -> None:
        self._values.append(url)

    def next(self) -> str:
        index = len(self._values) - 1
        if index < 0 or index < self._issued:
            raise MarkerError("marker token requested without a recorded value")
        self._issued = index + 1
        return self.token(index)

    def replace_back(self, text: str, resolver: Callable[[str, int], str]) -> str:
        consumed: set[int] = set()

        def _substitute(match: re.Match[str]) -> str:
            index = int(match.group(1))
            if index >= len(self._values):
                raise MarkerError(f"unknown marker token {match.group(0)}")
            if index in consumed:
                raise MarkerError(f"marker token {match.group(0)} consumed twice")
            consumed.add(index)
            return resolver(self._values[index], index)

        out = self._token_re.sub(_substitute, text)
        if len(consumed) != len(self._values):
            missing = sorted(set(range(len(self._values))) - consumed)
            raise MarkerError(f"marker tokens never substituted: {missing}")
        return out

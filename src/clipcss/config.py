from __future__ import annotations

from dataclasses import dataclass

DEFAULT_WRAPPER_CLASS = "clip-main"


@dataclass(slots=True)
class CaptureConfig:
    save_web_font: bool = False
    save_css_image: bool = False
    embed_css: bool = False
    request_timeout: float = 40.0
    request_max_tries: int = 3
    wrapper_class: str = DEFAULT_WRAPPER_CLASS
    log_level: str = "info"

    def __post_init__(self) -> None:
        if self.request_max_tries < 1:
            self.request_max_tries = 1
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")

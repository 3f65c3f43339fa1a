"""Best-effort lookup of the vault's appearance settings."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Callable, List, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import quote_plus
from urllib.request import Request, urlopen

from .logging import get_logger
from .vault import VaultProvider

GOOGLE_FONTS_URL = "https://fonts.googleapis.com/css2?family={family}:wght@400;500;600;700&display=swap"

FontChecker = Callable[[str], bool]


@dataclass
class Appearance:
    """Accent colour, font and enabled styles read from the host config."""

    accent_color: Optional[str] = None
    font_family: Optional[str] = None
    font_import_url: Optional[str] = None
    css_theme: Optional[str] = None
    enabled_snippets: List[str] = field(default_factory=list)


def google_font_url(font_family: str) -> str:
    return GOOGLE_FONTS_URL.format(family=quote_plus(font_family))


class GoogleFontChecker:
    """Checks whether Google Fonts serves a family, using a HEAD request."""

    def __init__(self, timeout: float = 5.0) -> None:
        self.timeout = timeout
        self.logger = get_logger("appearance")

    def __call__(self, font_family: str) -> bool:
        request = Request(google_font_url(font_family), method="HEAD")
        try:
            with urlopen(request, timeout=self.timeout) as response:
                return 200 <= response.status < 300
        except HTTPError as exc:
            self.logger.warning("Font %r not available from Google Fonts (HTTP %s)", font_family, exc.code)
        except (URLError, OSError) as exc:
            self.logger.warning("Failed to check Google Fonts for %r: %s", font_family, exc)
        return False


class AppearanceLookup:
    """Reads ``<config_dir>/appearance.json`` and degrades to defaults on any failure."""

    def __init__(
        self,
        vault: VaultProvider,
        *,
        config_dir: str = ".obsidian",
        font_checker: FontChecker | None = None,
    ) -> None:
        self.vault = vault
        self.config_dir = config_dir.strip("/")
        self.font_checker = font_checker
        self.logger = get_logger("appearance")

    @property
    def config_path(self) -> str:
        return f"{self.config_dir}/appearance.json"

    def load(self) -> Appearance:
        appearance = Appearance()
        data = self._read_config()
        if data is None:
            return appearance

        appearance.accent_color = _as_text(data.get("accentColor"))
        appearance.css_theme = _as_text(data.get("cssTheme"))
        snippets = data.get("enabledCssSnippets")
        if isinstance(snippets, list):
            appearance.enabled_snippets = [str(item) for item in snippets if isinstance(item, str) and item]

        font = _as_text(data.get("textFontFamily")) or _as_text(data.get("interfaceFontFamily"))
        if font:
            appearance.font_family = font
            if self.font_checker is not None and self._font_available(self.font_checker, font):
                appearance.font_import_url = google_font_url(font)
        self.logger.debug(
            "Loaded appearance: accent=%s font=%s theme=%s",
            appearance.accent_color,
            appearance.font_family,
            appearance.css_theme,
        )
        return appearance

    def _read_config(self) -> Optional[dict]:
        path = self.config_path
        try:
            if not self.vault.exists(path):
                self.logger.warning("Appearance config not found at %s; using default styling", path)
                return None
            payload = json.loads(self.vault.read_text(path))
        except (OSError, ValueError) as exc:
            self.logger.warning("Failed to read appearance config %s: %s", path, exc)
            return None
        if not isinstance(payload, dict):
            self.logger.warning("Appearance config %s is not a JSON object; ignoring it", path)
            return None
        return payload

    def _font_available(self, checker: FontChecker, font: str) -> bool:
        try:
            return bool(checker(font))
        except Exception as exc:
            self.logger.warning("Font availability check failed for %r: %s", font, exc)
            return False


def _as_text(value: object) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


__all__ = [
    "Appearance",
    "AppearanceLookup",
    "FontChecker",
    "GoogleFontChecker",
    "google_font_url",
]

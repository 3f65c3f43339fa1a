"""Export of the shared stylesheet pair under ``<output>/assets``."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from jinja2 import Environment

from .appearance import Appearance, AppearanceLookup
from .logging import get_logger
from .models import OutputArtifact
from .templating import create_environment
from .vault import VaultProvider

ASSETS_DIR = "assets"
STYLE_CSS = f"{ASSETS_DIR}/style.css"
CUSTOM_CSS = f"{ASSETS_DIR}/custom.css"
BASE_STYLESHEET = Path(__file__).with_name("static") / "base.css"


class StyleExporter:
    """Writes ``style.css`` (collected sheets, verbatim) and ``custom.css`` (overrides)."""

    def __init__(
        self,
        vault: VaultProvider,
        appearance_lookup: AppearanceLookup,
        *,
        environment: Environment | None = None,
        extra_stylesheets: Sequence[str] = (),
    ) -> None:
        self.vault = vault
        self.appearance_lookup = appearance_lookup
        self.environment = environment or create_environment()
        self.extra_stylesheets = list(extra_stylesheets)
        self.logger = get_logger("styles")

    def export(self, output_root: Path) -> List[OutputArtifact]:
        assets_dir = output_root / ASSETS_DIR
        assets_dir.mkdir(parents=True, exist_ok=True)

        appearance = self.appearance_lookup.load()

        style_path = output_root / STYLE_CSS
        style_path.write_text(self.collect_stylesheets(appearance), encoding="utf-8")

        custom_path = output_root / CUSTOM_CSS
        custom_path.write_text(self.render_custom_css(appearance), encoding="utf-8")

        self.logger.debug("Exported stylesheets to %s", assets_dir)
        return [
            OutputArtifact(source_path="", output_path=STYLE_CSS, kind="asset"),
            OutputArtifact(source_path="", output_path=CUSTOM_CSS, kind="asset"),
        ]

    def collect_stylesheets(self, appearance: Appearance) -> str:
        """Concatenate every readable stylesheet in cascade order."""
        chunks: List[str] = [BASE_STYLESHEET.read_text(encoding="utf-8")]
        for label, candidates in self._stylesheet_sources(appearance):
            text = self._read_first(candidates)
            if text is None:
                self.logger.warning("Could not read stylesheet %s; skipping it", label)
                continue
            chunks.append(text)
        return "\n".join(chunk.rstrip("\n") for chunk in chunks) + "\n"

    def render_custom_css(self, appearance: Appearance) -> str:
        template = self.environment.get_template("custom.css.j2")
        return template.render(
            font_family=appearance.font_family,
            font_import_url=appearance.font_import_url,
            accent_color=appearance.accent_color,
        )

    def _stylesheet_sources(self, appearance: Appearance) -> List[Tuple[str, Tuple[str, ...]]]:
        config_dir = self.appearance_lookup.config_dir
        sources: List[Tuple[str, Tuple[str, ...]]] = []
        if appearance.css_theme:
            theme = appearance.css_theme
            sources.append(
                (
                    f"theme {theme!r}",
                    (f"{config_dir}/themes/{theme}/theme.css", f"{config_dir}/themes/{theme}.css"),
                )
            )
        for snippet in appearance.enabled_snippets:
            sources.append((f"snippet {snippet!r}", (f"{config_dir}/snippets/{snippet}.css",)))
        for extra in self.extra_stylesheets:
            sources.append((extra, (extra,)))
        return sources

    def _read_first(self, candidates: Sequence[str]) -> Optional[str]:
        for candidate in candidates:
            try:
                if self.vault.exists(candidate):
                    return self.vault.read_text(candidate)
            except (OSError, ValueError) as exc:
                self.logger.warning("Failed to read stylesheet %s: %s", candidate, exc)
        return None


__all__ = ["ASSETS_DIR", "CUSTOM_CSS", "STYLE_CSS", "StyleExporter"]

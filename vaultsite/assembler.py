"""Assembly of complete HTML pages for vault notes."""

from __future__ import annotations

from html import escape
from typing import Callable, List, Sequence, Tuple

from bs4 import BeautifulSoup
from jinja2 import Environment
from markupsafe import Markup

from .logging import get_logger
from .models import DocumentNode, NavigationEntry
from .paths import LinkResolver, href_for, output_path_for
from .render import INTERNAL_EMBED_CLASS, INTERNAL_LINK_CLASS, Renderer
from .styles import CUSTOM_CSS, STYLE_CSS
from .templating import create_environment
from .vault import VaultProvider

THEME_STORAGE_KEY = "theme"
PAGE_TEMPLATE = "page.html.j2"


def breadcrumbs_for(document: DocumentNode) -> Tuple[List[str], str]:
    """Folder segments leading to the note, and the note's own label."""
    parts = document.path.split("/")
    return parts[:-1], document.basename


class PageAssembler:
    """Builds one full HTML page per note from its rendered body and the shared navigation."""

    def __init__(
        self,
        vault: VaultProvider,
        renderer: Renderer,
        resolver: LinkResolver,
        *,
        site_name: str,
        environment: Environment | None = None,
    ) -> None:
        self.vault = vault
        self.renderer = renderer
        self.resolver = resolver
        self.site_name = site_name
        self.environment = environment or create_environment()
        self.logger = get_logger("assembler")

    def assemble(self, document: DocumentNode, navigation: Sequence[NavigationEntry]) -> str:
        """Render ``document`` into a standalone page; renderer errors propagate."""
        text = self.vault.read_text(document.path)
        body = self.renderer.render(text, document.path)
        content = self.rewrite_links(self._wrap_content(document, body), document.path)
        crumbs, active_crumb = breadcrumbs_for(document)

        template = self.environment.get_template(PAGE_TEMPLATE)
        return template.render(
            title=document.basename,
            site_name=self.site_name,
            style_href=href_for(document.path, STYLE_CSS),
            custom_href=href_for(document.path, CUSTOM_CSS),
            navigation=navigation,
            nav_href=self._nav_href(document),
            current_path=document.path,
            breadcrumbs=crumbs,
            active_crumb=active_crumb,
            content=Markup(content),
            theme_storage_key=THEME_STORAGE_KEY,
        )

    def rewrite_links(self, fragment: str, source_path: str) -> str:
        """Point internal links and embeds at their published locations.

        Tokens that do not resolve keep their original attribute values.
        """
        soup = BeautifulSoup(fragment, "html.parser")
        for anchor in soup.find_all("a", class_=INTERNAL_LINK_CLASS):
            token = anchor.get("data-href") or anchor.get("href")
            if not token:
                continue
            href = self.resolver.rewrite_href(token, source_path)
            if href is not None:
                anchor["href"] = href
        for image in soup.find_all("img", class_=INTERNAL_EMBED_CLASS):
            token = image.get("data-src")
            if not token:
                continue
            src = self.resolver.rewrite_href(token.split("#", 1)[0], source_path)
            if src is not None:
                image["src"] = src
        return str(soup)

    @staticmethod
    def _wrap_content(document: DocumentNode, body: str) -> str:
        return (
            '<div class="markdown-preview-view markdown-rendered">'
            f'<h1 class="note-title">{escape(document.basename)}</h1>\n'
            f"{body}\n"
            "</div>"
        )

    @staticmethod
    def _nav_href(document: DocumentNode) -> Callable[[NavigationEntry], str]:
        def nav_href(entry: NavigationEntry) -> str:
            return href_for(document.path, output_path_for(entry.source_path))

        return nav_href


__all__ = ["PageAssembler", "THEME_STORAGE_KEY", "breadcrumbs_for"]

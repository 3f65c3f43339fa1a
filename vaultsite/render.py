"""Markdown rendering for vault notes."""

from __future__ import annotations

import re
import xml.etree.ElementTree as etree
from typing import Iterable, List, Optional, Protocol, Sequence

import markdown
from markdown.extensions import Extension
from markdown.inlinepatterns import InlineProcessor
from markdown.treeprocessors import Treeprocessor

from .paths import is_external

INTERNAL_LINK_CLASS = "internal-link"
INTERNAL_EMBED_CLASS = "internal-embed"

DEFAULT_EXTENSIONS: Sequence[str] = ("extra", "sane_lists", "nl2br", "toc")

_WIKILINK_PATTERN = r"(!?)\[\[([^\[\]\n]+?)\]\]"
_FRONT_MATTER = re.compile(r"\A---[ \t]*\r?\n.*?\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
_EMBED_SIZE = re.compile(r"^(\d+)(?:x(\d+))?$")
_IMAGE_EXTENSIONS = {
    "avif",
    "bmp",
    "gif",
    "jpeg",
    "jpg",
    "png",
    "svg",
    "webp",
}


class Renderer(Protocol):
    """Turns the raw text of a note into an HTML fragment."""

    def render(self, markdown_text: str, source_path: str) -> str: ...


def strip_front_matter(text: str) -> str:
    return _FRONT_MATTER.sub("", text, count=1)


def _is_image(target: str) -> bool:
    path = target.split("#", 1)[0]
    return "." in path and path.rsplit(".", 1)[1].lower() in _IMAGE_EXTENSIONS


def _add_class(element: etree.Element, name: str) -> None:
    classes = (element.get("class") or "").split()
    if name not in classes:
        classes.append(name)
    element.set("class", " ".join(classes))


class WikiLinkInlineProcessor(InlineProcessor):
    """Handles ``[[target|alias]]`` links and ``![[target]]`` embeds."""

    def handleMatch(self, m: re.Match[str], data: str):  # type: ignore[override]
        embed = m.group(1) == "!"
        target, _, label = m.group(2).partition("|")
        target = target.strip()
        label = label.strip()
        if not target:
            return None, None, None

        if embed and _is_image(target):
            element = etree.Element("img")
            element.set("class", INTERNAL_EMBED_CLASS)
            element.set("data-src", target)
            element.set("src", target)
            size = _EMBED_SIZE.match(label)
            if size:
                element.set("width", size.group(1))
                if size.group(2):
                    element.set("height", size.group(2))
                element.set("alt", target.rsplit("/", 1)[-1])
            else:
                element.set("alt", label or target.rsplit("/", 1)[-1])
            return element, m.start(0), m.end(0)

        element = etree.Element("a")
        element.set("class", INTERNAL_LINK_CLASS)
        element.set("data-href", target)
        element.set("href", target)
        element.text = label or target.replace("#", " > ").strip(" >")
        return element, m.start(0), m.end(0)


class InternalLinkTreeprocessor(Treeprocessor):
    """Marks plain markdown links and images that point inside the vault."""

    def run(self, root: etree.Element) -> Optional[etree.Element]:
        for element in root.iter("a"):
            href = element.get("href") or ""
            if INTERNAL_LINK_CLASS in (element.get("class") or "").split():
                continue
            if not href or href.startswith("#") or is_external(href):
                continue
            _add_class(element, INTERNAL_LINK_CLASS)
            element.set("data-href", href)
        for element in root.iter("img"):
            src = element.get("src") or ""
            if element.get("data-src") or not src or is_external(src):
                continue
            _add_class(element, INTERNAL_EMBED_CLASS)
            element.set("data-src", src)
        return None


class VaultLinkExtension(Extension):
    """Python-Markdown extension for vault-internal links."""

    def extendMarkdown(self, md: markdown.Markdown) -> None:
        # After escapes and code spans, before reference and inline links.
        md.inlinePatterns.register(WikiLinkInlineProcessor(_WIKILINK_PATTERN, md), "vault_wikilink", 175)
        md.treeprocessors.register(InternalLinkTreeprocessor(md), "vault_internal_links", 5)


class MarkdownRenderer:
    """Default renderer built on Python-Markdown."""

    def __init__(self, extensions: Iterable[str] | None = None) -> None:
        self.extensions: List[str] = list(extensions if extensions is not None else DEFAULT_EXTENSIONS)

    def render(self, markdown_text: str, source_path: str) -> str:
        converter = markdown.Markdown(extensions=[*self.extensions, VaultLinkExtension()])
        return converter.convert(strip_front_matter(markdown_text))


__all__ = [
    "DEFAULT_EXTENSIONS",
    "INTERNAL_EMBED_CLASS",
    "INTERNAL_LINK_CLASS",
    "MarkdownRenderer",
    "Renderer",
    "VaultLinkExtension",
    "strip_front_matter",
]

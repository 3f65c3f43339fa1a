"""Output-path mapping, relative links and internal link resolution."""

from __future__ import annotations

import posixpath
import re
from typing import Dict, List, Optional, Tuple
from urllib.parse import quote, unquote

from markdown.extensions.toc import slugify

from .exclusion import is_publishable
from .logging import get_logger
from .models import DOCUMENT_EXTENSION, PAGE_EXTENSION, DocumentNode, ExclusionRuleSet, NodeKind
from .vault import VaultTree, node_kind_for_file, parent_path

_SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")
_LEADING_RELATIVE = re.compile(r"^(?:\.\.?/)+")
_DOCUMENT_SUFFIX = f".{DOCUMENT_EXTENSION}"


def output_path_for(source_path: str) -> str:
    """Map a vault path to its path under the output root."""
    name = source_path.rsplit("/", 1)[-1]
    if node_kind_for_file(name) is NodeKind.DOCUMENT:
        return f"{source_path[: -len(_DOCUMENT_SUFFIX)]}.{PAGE_EXTENSION}"
    return source_path


def relative_link(from_document_path: str, to_output_path: str) -> str:
    """Relative path from the folder holding ``from_document_path`` to ``to_output_path``.

    ``to_output_path`` must already be in output space. Separators are always
    forward slashes.
    """
    start = parent_path(from_document_path) or "."
    return posixpath.relpath(to_output_path, start=start)


def href_for(from_document_path: str, to_output_path: str) -> str:
    """Relative link suitable for an ``href`` or ``src`` attribute."""
    return quote(relative_link(from_document_path, to_output_path), safe="/")


def split_link_token(token: str) -> Tuple[str, str]:
    """Split ``Note#Heading`` into the link path and its ``#`` subpath."""
    if "#" not in token:
        return token, ""
    linkpath, subpath = token.split("#", 1)
    return linkpath, "#" + subpath


def is_external(token: str) -> bool:
    return bool(_SCHEME_PATTERN.match(token)) or token.startswith("//")


class LinkResolver:
    """Resolves raw link tokens against a vault snapshot.

    Precedence: exact vault path, path relative to the linking document, then a
    unique case-insensitive match on the file name or trailing path. Anything
    ambiguous or unknown stays unresolved. With ``rules``, only publishable
    files are link targets, so earlier output never shadows its sources.
    """

    def __init__(self, tree: VaultTree, rules: ExclusionRuleSet | None = None) -> None:
        self.tree = tree
        self.logger = get_logger("links")
        targets = [
            node for node in tree.files() if rules is None or is_publishable(node.path, rules)
        ]
        self._by_path: Dict[str, DocumentNode] = {node.path: node for node in targets}
        self._by_name: Dict[str, List[DocumentNode]] = {}
        for node in targets:
            keys = {node.name.lower()}
            if node.is_document:
                keys.add(node.basename.lower())
            for key in keys:
                self._by_name.setdefault(key, []).append(node)

    def resolve(self, token: str, source_path: str) -> Optional[DocumentNode]:
        linkpath, _ = split_link_token(token)
        linkpath = unquote(linkpath).strip().replace("\\", "/")
        if not linkpath or is_external(linkpath):
            return None

        source_dir = parent_path(source_path)
        relative_first = linkpath.startswith(("./", "../"))
        if relative_first:
            bases = [source_dir, ""]
        else:
            bases = ["", source_dir]
        for base in bases:
            match = self._lookup(posixpath.join(base, linkpath) if base else linkpath)
            if match is not None:
                return match

        return self._lookup_by_suffix(linkpath)

    def rewrite_href(self, token: str, source_path: str) -> Optional[str]:
        """Relative href for a resolvable token, ``None`` when it does not resolve."""
        target = self.resolve(token, source_path)
        if target is None:
            self.logger.debug("Unresolved link %r in %s", token, source_path)
            return None
        href = href_for(source_path, output_path_for(target.path))
        _, subpath = split_link_token(token)
        return href + _anchor_for(subpath)

    def _lookup(self, candidate: str) -> Optional[DocumentNode]:
        normalised = posixpath.normpath(candidate.lstrip("/"))
        if normalised.startswith(".."):
            return None
        for path in (normalised, normalised + _DOCUMENT_SUFFIX):
            node = self._by_path.get(path)
            if node is not None:
                return node
        return None

    def _lookup_by_suffix(self, linkpath: str) -> Optional[DocumentNode]:
        cleaned = _LEADING_RELATIVE.sub("", posixpath.normpath(linkpath)).lstrip("/").lower()
        if not cleaned:
            return None
        if "/" not in cleaned:
            candidates = self._by_name.get(cleaned, [])
        else:
            suffixes = ("/" + cleaned, "/" + cleaned + _DOCUMENT_SUFFIX)
            candidates = [
                node
                for node in self._by_path.values()
                if ("/" + node.path.lower()).endswith(suffixes)
            ]
        unique = {node.path: node for node in candidates}
        if len(unique) == 1:
            return next(iter(unique.values()))
        if len(unique) > 1:
            self.logger.debug("Ambiguous link %r matches %s", linkpath, sorted(unique))
        return None


def _anchor_for(subpath: str) -> str:
    if not subpath or subpath.startswith("#^"):
        return ""
    heading = subpath.strip("#").split("#")[-1].strip()
    if not heading:
        return ""
    return "#" + slugify(heading, "-")


__all__ = [
    "LinkResolver",
    "href_for",
    "is_external",
    "output_path_for",
    "relative_link",
    "split_link_token",
]

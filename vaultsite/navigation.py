"""Sidebar navigation tree construction."""

from __future__ import annotations

import unicodedata
from typing import List, Tuple

from .exclusion import is_excluded, is_hidden
from .logging import get_logger
from .models import DocumentNode, ExclusionRuleSet, NavigationEntry
from .vault import VaultTree


def collation_key(name: str) -> Tuple[str, str, str]:
    """Sort key comparing names the way readers expect rather than by code point.

    Accents and case are folded first; the case-folded and raw names break ties
    so ordering stays total and deterministic.
    """
    decomposed = unicodedata.normalize("NFKD", name)
    folded = "".join(char for char in decomposed if not unicodedata.combining(char))
    return folded.casefold(), name.casefold(), name


def sort_entries(entries: List[NavigationEntry]) -> Tuple[NavigationEntry, ...]:
    """Folders first, then by collation key."""
    return tuple(
        sorted(entries, key=lambda entry: (0 if entry.is_folder else 1, collation_key(entry.display_name)))
    )


class NavigationBuilder:
    """Mirrors the publishable part of the vault as an ordered navigation tree."""

    def __init__(self) -> None:
        self.logger = get_logger("navigation")

    def build(self, tree: VaultTree, rules: ExclusionRuleSet) -> Tuple[NavigationEntry, ...]:
        entries = self._build_folder(tree, tree.root, rules)
        self.logger.debug("Navigation built with %d top-level entries", len(entries))
        return entries

    def _build_folder(
        self, tree: VaultTree, folder: DocumentNode, rules: ExclusionRuleSet
    ) -> Tuple[NavigationEntry, ...]:
        items: List[NavigationEntry] = []
        for child in tree.children_of(folder.path):
            if is_hidden(child.name):
                continue
            if child.path == rules.output_dir:
                continue
            if is_excluded(child.path, rules):
                continue

            if child.is_folder:
                # Empty folders stay in the tree as empty branches.
                items.append(
                    NavigationEntry(
                        display_name=child.name,
                        source_path=child.path,
                        is_folder=True,
                        children=self._build_folder(tree, child, rules),
                    )
                )
            elif child.is_document:
                items.append(
                    NavigationEntry(
                        display_name=child.basename,
                        source_path=child.path,
                        is_folder=False,
                    )
                )
        return sort_entries(items)


__all__ = ["NavigationBuilder", "collation_key", "sort_entries"]

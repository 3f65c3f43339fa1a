"""Publication eligibility rules for vault paths."""

from __future__ import annotations

from typing import Iterable

from .models import ExclusionRuleSet

HIDDEN_PREFIX = "."


def is_hidden(name: str) -> bool:
    """Hidden names are never published, whatever the rule set says."""
    return name.startswith(HIDDEN_PREFIX)


def is_within(path: str, folder: str) -> bool:
    """True when ``path`` is ``folder`` itself or lexically nested under it."""
    if not folder:
        return False
    return path == folder or path.startswith(folder + "/")


def is_excluded(path: str, rules: ExclusionRuleSet) -> bool:
    """Decide whether a vault path must be kept out of the published site.

    The current and every historical output directory are always excluded so a
    run never republishes earlier output. Locked folders only count while
    private folders are enabled. Exclusion is inherited by every descendant.
    """
    if is_within(path, rules.output_dir):
        return True
    if _within_any(path, rules.previous_output_dirs):
        return True
    if not rules.allow_private_folders:
        return False
    return _within_any(path, rules.locked_folders)


def is_publishable(path: str, rules: ExclusionRuleSet) -> bool:
    """No hidden segment anywhere in the path, and not excluded."""
    if any(is_hidden(part) for part in path.split("/")):
        return False
    return not is_excluded(path, rules)


def _within_any(path: str, folders: Iterable[str]) -> bool:
    return any(is_within(path, folder) for folder in folders)


__all__ = ["HIDDEN_PREFIX", "is_excluded", "is_hidden", "is_publishable", "is_within"]

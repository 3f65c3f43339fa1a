"""Configuration loading for vaultsite (.vaultsite.yml)."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .models import ExclusionRuleSet

CONFIG_FILENAME = ".vaultsite.yml"
DEFAULT_OUTPUT_DIR = "dist"
DEFAULT_CONFIG_DIR = ".obsidian"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed or is invalid."""


@dataclass
class SiteConfig:
    """Persisted generation settings for one vault."""

    root: Path
    output_dir: str = DEFAULT_OUTPUT_DIR
    site_name: Optional[str] = None
    allow_private_folders: bool = False
    locked_folders: List[str] = field(default_factory=list)
    previous_output_dirs: List[str] = field(default_factory=list)
    config_dir: str = DEFAULT_CONFIG_DIR
    stylesheets: List[str] = field(default_factory=list)
    check_fonts: bool = True

    @property
    def config_path(self) -> Path:
        return self.root / CONFIG_FILENAME

    @property
    def output_root(self) -> Path:
        return self.root / self.output_dir

    @property
    def display_name(self) -> str:
        return self.site_name or self.root.name or "Vault"

    def exclusion_rules(self) -> ExclusionRuleSet:
        """Snapshot the exclusion-relevant settings as an immutable rule set."""
        return ExclusionRuleSet(
            output_dir=self.output_dir,
            previous_output_dirs=tuple(self.previous_output_dirs),
            allow_private_folders=self.allow_private_folders,
            locked_folders=tuple(self.locked_folders),
        )

    def remember_output_dir(self) -> bool:
        """Append the current output dir to the history; True when it was new."""
        if self.output_dir in self.previous_output_dirs:
            return False
        self.previous_output_dirs.append(self.output_dir)
        return True

    def lock_folder(self, folder: str) -> bool:
        normalised = normalise_vault_path(folder)
        if not normalised:
            raise ConfigError("Cannot lock the vault root")
        if normalised in self.locked_folders:
            return False
        self.locked_folders.append(normalised)
        return True

    def unlock_folder(self, folder: str) -> bool:
        normalised = normalise_vault_path(folder)
        if normalised not in self.locked_folders:
            return False
        self.locked_folders.remove(normalised)
        return True


def load_config(config_path: Path) -> SiteConfig:
    """Load configuration from a vault directory or a config file path."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return SiteConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    output_dir = _as_str(data.get("output_dir")) or DEFAULT_OUTPUT_DIR
    config = SiteConfig(
        root=root,
        output_dir=validate_output_dir(output_dir),
        site_name=_as_str(data.get("site_name")),
        allow_private_folders=_as_bool(data.get("allow_private_folders")) or False,
        locked_folders=_as_path_list(data.get("locked_folders")),
        previous_output_dirs=_as_path_list(data.get("previous_output_dirs")),
        config_dir=_as_str(data.get("config_dir")) or DEFAULT_CONFIG_DIR,
        stylesheets=_as_str_list(data.get("stylesheets")),
    )
    check_fonts = _as_bool(data.get("check_fonts"))
    if check_fonts is not None:
        config.check_fonts = check_fonts
    return config


def save_config(config: SiteConfig) -> Path:
    """Persist the configuration next to the vault content."""
    payload: Dict[str, Any] = {
        "output_dir": config.output_dir,
        "site_name": config.site_name,
        "allow_private_folders": config.allow_private_folders,
        "locked_folders": list(config.locked_folders),
        "previous_output_dirs": list(config.previous_output_dirs),
        "config_dir": config.config_dir,
        "stylesheets": list(config.stylesheets),
        "check_fonts": config.check_fonts,
    }
    path = config.config_path
    try:
        path.write_text(
            yaml.safe_dump(payload, sort_keys=False, allow_unicode=True),
            encoding="utf-8",
        )
    except OSError as exc:
        raise ConfigError(f"Unable to write {path}: {exc}") from exc
    return path


def normalise_vault_path(value: str) -> str:
    """Return a slash-separated vault path without leading or trailing separators."""
    cleaned = value.replace("\\", "/").strip()
    if not cleaned:
        return ""
    normalised = posixpath.normpath(cleaned).strip("/")
    return "" if normalised == "." else normalised


def validate_output_dir(value: str) -> str:
    """Normalise an output directory and reject values outside the vault."""
    raw = value.replace("\\", "/").strip()
    if raw.startswith("/") or (len(raw) > 1 and raw[1] == ":"):
        raise ConfigError(f"Output directory must be relative to the vault: {value!r}")
    normalised = normalise_vault_path(raw)
    if not normalised:
        raise ConfigError("Output directory cannot be the vault root")
    if normalised == ".." or normalised.startswith("../"):
        raise ConfigError(f"Output directory escapes the vault: {value!r}")
    return normalised


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1", "on"}:
            return True
        if lowered in {"false", "no", "0", "off"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


def _as_path_list(value: Any) -> List[str]:
    result: List[str] = []
    for item in _as_str_list(value):
        normalised = normalise_vault_path(item)
        if normalised and normalised not in result:
            result.append(normalised)
    return result


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "SiteConfig",
    "load_config",
    "normalise_vault_path",
    "save_config",
    "validate_output_dir",
]

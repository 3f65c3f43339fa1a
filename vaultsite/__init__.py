"""Publish a vault of linked markdown notes as a static HTML site."""

from .config import ConfigError, SiteConfig, load_config, save_config
from .models import ExclusionRuleSet, GenerationReport, NavigationEntry
from .orchestrator import GenerationError, Orchestrator

__version__ = "1.0.0"

__all__ = [
    "ConfigError",
    "ExclusionRuleSet",
    "GenerationError",
    "GenerationReport",
    "NavigationEntry",
    "Orchestrator",
    "SiteConfig",
    "load_config",
    "save_config",
]

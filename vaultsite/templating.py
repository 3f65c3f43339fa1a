"""Jinja2 environment shared by page and stylesheet rendering."""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

DEFAULT_TEMPLATES_DIR = Path(__file__).with_name("templates")


def create_environment(templates_dir: Path | None = None) -> Environment:
    """Build an environment where ``templates_dir`` overrides the bundled templates."""
    directories = []
    if templates_dir is not None and templates_dir != DEFAULT_TEMPLATES_DIR:
        directories.append(str(templates_dir))
    directories.append(str(DEFAULT_TEMPLATES_DIR))
    return Environment(
        loader=FileSystemLoader(directories),
        autoescape=select_autoescape(enabled_extensions=("html.j2",), default_for_string=False),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


__all__ = ["DEFAULT_TEMPLATES_DIR", "create_environment"]

"""Pipeline orchestration for full site generation runs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional, Protocol, Sequence, Tuple

from jinja2 import Environment

from .appearance import AppearanceLookup, FontChecker, GoogleFontChecker
from .assembler import PageAssembler
from .config import ConfigError, SiteConfig, load_config, save_config, validate_output_dir
from .exclusion import is_publishable
from .logging import get_logger
from .models import (
    DocumentFailure,
    DocumentNode,
    ExclusionRuleSet,
    GenerationReport,
    NavigationEntry,
    OutputArtifact,
)
from .navigation import NavigationBuilder
from .paths import LinkResolver, output_path_for
from .render import MarkdownRenderer, Renderer
from .styles import StyleExporter
from .templating import create_environment
from .vault import FileSystemVault, VaultProvider, VaultTree

PROGRESS_INTERVAL = 10


class GenerationError(RuntimeError):
    """Raised when a run cannot start or its output root cannot be prepared."""


class ProgressSink(Protocol):
    """Receives human-readable status messages during a run."""

    def notify(self, message: str) -> None: ...


class LoggingProgressSink:
    """Default sink that forwards progress to the vaultsite logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or get_logger("progress")

    def notify(self, message: str) -> None:
        self.logger.info(message)


def partition_files(
    tree: VaultTree, rules: ExclusionRuleSet
) -> Tuple[List[DocumentNode], List[DocumentNode]]:
    """Split eligible files into (documents, assets), keeping enumeration order."""
    documents: List[DocumentNode] = []
    assets: List[DocumentNode] = []
    for node in tree.files():
        if not is_publishable(node.path, rules):
            continue
        if node.is_document:
            documents.append(node)
        else:
            assets.append(node)
    return documents, assets


class Orchestrator:
    """Coordinates a full regeneration of the static site for one vault."""

    def __init__(
        self,
        *,
        vault_factory: Callable[..., VaultProvider] = FileSystemVault,
        renderer: Renderer | None = None,
        navigation_builder: NavigationBuilder | None = None,
        progress: ProgressSink | None = None,
        font_checker: FontChecker | None = None,
        config_saver: Callable[[SiteConfig], object] = save_config,
    ) -> None:
        self.vault_factory = vault_factory
        self.renderer = renderer or MarkdownRenderer()
        self.navigation_builder = navigation_builder or NavigationBuilder()
        self.progress = progress or LoggingProgressSink()
        self._font_checker = font_checker
        self.config_saver = config_saver
        self.logger = get_logger("orchestrator")

    def generate(
        self,
        path: str,
        *,
        output_dir: str | None = None,
        site_name: str | None = None,
        allow_private_folders: bool | None = None,
        check_fonts: bool | None = None,
    ) -> GenerationReport:
        """Load the vault's persisted config, apply overrides and run.

        Overrides apply to this run only, except ``output_dir``, which is remembered.
        """
        vault_path = Path(path).expanduser().resolve()
        if not vault_path.is_dir():
            raise GenerationError(f"Vault path is not a directory: {vault_path}")
        try:
            config = load_config(vault_path)
            if output_dir is not None:
                config.output_dir = validate_output_dir(output_dir)
        except ConfigError as exc:
            raise GenerationError(str(exc)) from exc
        if site_name is not None:
            config.site_name = site_name
        if allow_private_folders is not None:
            config.allow_private_folders = allow_private_folders
        if check_fonts is not None:
            config.check_fonts = check_fonts
        return self.run(config)

    def run(self, config: SiteConfig) -> GenerationReport:
        """Regenerate the whole site described by ``config``."""
        self.progress.notify("Starting static site generation...")
        try:
            vault = self.vault_factory(config.root, name=config.display_name)
        except (FileNotFoundError, NotADirectoryError) as exc:
            raise GenerationError(str(exc)) from exc

        self._persist_output_dir(config)

        output_root = config.output_root
        try:
            output_root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise GenerationError(f"Unable to create output directory {output_root}: {exc}") from exc

        rules = config.exclusion_rules()
        tree = vault.snapshot()
        self.logger.debug("Snapshot holds %d vault entries", len(tree))
        navigation = self.navigation_builder.build(tree, rules)

        report = GenerationReport(output_root=output_root)
        environment = create_environment()
        try:
            report.artifacts.extend(self._export_styles(vault, config, environment, output_root))
        except OSError as exc:
            raise GenerationError(f"Unable to write stylesheets to {output_root}: {exc}") from exc

        documents, assets = partition_files(tree, rules)
        self.logger.info(
            "Publishing %d documents and %d assets to %s", len(documents), len(assets), output_root
        )

        written: Dict[str, str] = {}
        self._copy_assets(vault, assets, output_root, report, written)

        assembler = PageAssembler(
            vault,
            self.renderer,
            LinkResolver(tree, rules),
            site_name=config.display_name,
            environment=environment,
        )
        self._write_pages(assembler, documents, navigation, output_root, report, written)

        if report.failures:
            self.progress.notify(
                f"Static site generation complete with {len(report.failures)} failure(s)."
            )
        else:
            self.progress.notify("Static site generation complete!")
        return report

    def _persist_output_dir(self, config: SiteConfig) -> None:
        """Store the output dir and its history; other persisted settings stay as they are."""
        config.remember_output_dir()
        try:
            stored = load_config(config.root)
        except ConfigError as exc:
            raise GenerationError(f"Unable to persist output directory history: {exc}") from exc

        changed = stored.output_dir != config.output_dir
        stored.output_dir = config.output_dir
        for folder in config.previous_output_dirs:
            if folder not in stored.previous_output_dirs:
                stored.previous_output_dirs.append(folder)
                changed = True
        if not changed:
            return

        self.logger.info("Recording output directory %s in history", config.output_dir)
        try:
            self.config_saver(stored)
        except ConfigError as exc:
            raise GenerationError(f"Unable to persist output directory history: {exc}") from exc

    def _export_styles(
        self, vault: VaultProvider, config: SiteConfig, environment: Environment, output_root: Path
    ) -> List[OutputArtifact]:
        font_checker = self._resolve_font_checker(config)
        lookup = AppearanceLookup(vault, config_dir=config.config_dir, font_checker=font_checker)
        exporter = StyleExporter(
            vault,
            lookup,
            environment=environment,
            extra_stylesheets=config.stylesheets,
        )
        return exporter.export(output_root)

    def _resolve_font_checker(self, config: SiteConfig) -> Optional[FontChecker]:
        if not config.check_fonts:
            return None
        return self._font_checker or GoogleFontChecker()

    def _copy_assets(
        self,
        vault: VaultProvider,
        assets: Sequence[DocumentNode],
        output_root: Path,
        report: GenerationReport,
        written: Dict[str, str],
    ) -> None:
        for node in assets:
            output_path = output_path_for(node.path)
            try:
                self._write_output(output_root, output_path, vault.read_bytes(node.path))
            except (OSError, ValueError) as exc:
                self._record_failure(report, node, exc)
                continue
            self._track(written, output_path, node.path)
            report.artifacts.append(
                OutputArtifact(source_path=node.path, output_path=output_path, kind="asset")
            )

    def _write_pages(
        self,
        assembler: PageAssembler,
        documents: Sequence[DocumentNode],
        navigation: Sequence[NavigationEntry],
        output_root: Path,
        report: GenerationReport,
        written: Dict[str, str],
    ) -> None:
        total = len(documents)
        processed = 0
        for node in documents:
            output_path = output_path_for(node.path)
            try:
                page = assembler.assemble(node, navigation)
                self._write_output(output_root, output_path, page.encode("utf-8"))
            except Exception as exc:  # isolate per-document failures
                self._record_failure(report, node, exc)
            else:
                self._track(written, output_path, node.path)
                report.artifacts.append(
                    OutputArtifact(source_path=node.path, output_path=output_path, kind="page")
                )
            processed += 1
            if processed % PROGRESS_INTERVAL == 0:
                self.progress.notify(f"Processed {processed}/{total} files...")

    @staticmethod
    def _write_output(output_root: Path, output_path: str, data: bytes) -> None:
        destination = output_root / output_path
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(data)

    def _track(self, written: Dict[str, str], output_path: str, source_path: str) -> None:
        previous = written.get(output_path)
        if previous is not None and previous != source_path:
            self.logger.warning("%s overwrites output of %s at %s", source_path, previous, output_path)
        written[output_path] = source_path

    def _record_failure(self, report: GenerationReport, node: DocumentNode, exc: Exception) -> None:
        self._log_exception(f"Failed to publish {node.path}", exc)
        report.failures.append(DocumentFailure(path=node.path, error=str(exc) or exc.__class__.__name__))
        self.progress.notify(f"Skipped {node.path}: {exc}")

    def _log_exception(self, message: str, exc: Exception) -> None:
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.exception("%s: %s", message, exc)
        else:
            self.logger.error("%s: %s", message, exc)


__all__ = [
    "GenerationError",
    "LoggingProgressSink",
    "Orchestrator",
    "PROGRESS_INTERVAL",
    "ProgressSink",
    "partition_files",
]

"""Core data models shared across vaultsite components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Tuple

DOCUMENT_EXTENSION = "md"
PAGE_EXTENSION = "html"


class NodeKind(str, Enum):
    """Kind of an entry in the vault tree."""

    FOLDER = "folder"
    DOCUMENT = "document"
    ASSET = "asset"


@dataclass(frozen=True)
class DocumentNode:
    """A folder, note or attachment in the vault, addressed by its vault path."""

    path: str
    kind: NodeKind
    name: str

    @property
    def is_folder(self) -> bool:
        return self.kind is NodeKind.FOLDER

    @property
    def is_document(self) -> bool:
        return self.kind is NodeKind.DOCUMENT

    @property
    def extension(self) -> str:
        if self.is_folder or "." not in self.name:
            return ""
        return self.name.rsplit(".", 1)[1]

    @property
    def basename(self) -> str:
        """Leaf name without its extension, as shown to readers."""
        if self.is_folder or "." not in self.name:
            return self.name
        stem = self.name.rsplit(".", 1)[0]
        return stem or self.name


@dataclass(frozen=True)
class NavigationEntry:
    """One item of the sidebar navigation, folders carrying their children."""

    display_name: str
    source_path: str
    is_folder: bool
    children: Tuple["NavigationEntry", ...] = ()


@dataclass(frozen=True)
class ExclusionRuleSet:
    """Explicit publication rules threaded through every pipeline component."""

    output_dir: str
    previous_output_dirs: Tuple[str, ...] = ()
    allow_private_folders: bool = False
    locked_folders: Tuple[str, ...] = ()


@dataclass(frozen=True)
class OutputArtifact:
    """A file emitted by a generation run."""

    source_path: str
    output_path: str
    kind: str  # "page" or "asset"


@dataclass(frozen=True)
class DocumentFailure:
    """A document or asset that could not be published during a run."""

    path: str
    error: str


@dataclass
class GenerationReport:
    """Summary of a completed generation run."""

    output_root: Path
    artifacts: List[OutputArtifact] = field(default_factory=list)
    failures: List[DocumentFailure] = field(default_factory=list)

    @property
    def pages(self) -> List[OutputArtifact]:
        return [artifact for artifact in self.artifacts if artifact.kind == "page"]

    @property
    def assets(self) -> List[OutputArtifact]:
        return [artifact for artifact in self.artifacts if artifact.kind == "asset"]

    @property
    def succeeded(self) -> bool:
        return not self.failures


__all__ = [
    "DOCUMENT_EXTENSION",
    "PAGE_EXTENSION",
    "DocumentFailure",
    "DocumentNode",
    "ExclusionRuleSet",
    "GenerationReport",
    "NavigationEntry",
    "NodeKind",
    "OutputArtifact",
]

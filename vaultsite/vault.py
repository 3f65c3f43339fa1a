"""Vault access: the document-tree provider and its immutable snapshot."""

from __future__ import annotations

import os
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Protocol, Sequence, Tuple

from .exclusion import is_hidden
from .models import DOCUMENT_EXTENSION, DocumentNode, NodeKind

_EXCLUDED_FILES = {
    "Thumbs.db",
    "desktop.ini",
}

ROOT_PATH = ""


def node_kind_for_file(name: str) -> NodeKind:
    """Classify a file name as a markdown document or a plain asset."""
    if "." in name and name.rsplit(".", 1)[1].lower() == DOCUMENT_EXTENSION:
        return NodeKind.DOCUMENT
    return NodeKind.ASSET


class VaultTree:
    """Frozen snapshot of the vault, nodes addressed by their vault path."""

    def __init__(
        self,
        nodes: Mapping[str, DocumentNode],
        children: Mapping[str, Sequence[str]],
    ) -> None:
        if ROOT_PATH not in nodes:
            raise ValueError("Vault snapshot requires a root node")
        self._nodes = MappingProxyType(dict(nodes))
        self._children = MappingProxyType(
            {path: tuple(kids) for path, kids in children.items()}
        )
        self._files = tuple(self._walk_files(ROOT_PATH))

    @classmethod
    def from_paths(cls, paths: Iterable[str], *, root_name: str = "vault") -> "VaultTree":
        """Build a snapshot from file paths; a trailing slash marks an empty folder."""
        nodes: Dict[str, DocumentNode] = {
            ROOT_PATH: DocumentNode(path=ROOT_PATH, kind=NodeKind.FOLDER, name=root_name)
        }
        children: Dict[str, List[str]] = {ROOT_PATH: []}

        def ensure_folder(folder: str) -> None:
            if folder in nodes:
                return
            parent = parent_path(folder)
            ensure_folder(parent)
            nodes[folder] = DocumentNode(
                path=folder, kind=NodeKind.FOLDER, name=folder.rsplit("/", 1)[-1]
            )
            children[folder] = []
            children[parent].append(folder)

        for raw in paths:
            if raw.endswith("/"):
                ensure_folder(raw.strip("/"))
                continue
            path = raw.strip("/")
            if path in nodes:
                continue
            parent = parent_path(path)
            ensure_folder(parent)
            name = path.rsplit("/", 1)[-1]
            nodes[path] = DocumentNode(path=path, kind=node_kind_for_file(name), name=name)
            children[parent].append(path)
        return cls(nodes, children)

    @property
    def root(self) -> DocumentNode:
        return self._nodes[ROOT_PATH]

    def get(self, path: str) -> Optional[DocumentNode]:
        return self._nodes.get(path)

    def children_of(self, path: str) -> Tuple[DocumentNode, ...]:
        return tuple(self._nodes[child] for child in self._children.get(path, ()))

    def files(self) -> Tuple[DocumentNode, ...]:
        """Every non-folder node in enumeration order."""
        return self._files

    def documents(self) -> Tuple[DocumentNode, ...]:
        return tuple(node for node in self._files if node.is_document)

    def __contains__(self, path: object) -> bool:
        return path in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def _walk_files(self, path: str) -> Iterator[DocumentNode]:
        for child in self.children_of(path):
            if child.is_folder:
                yield from self._walk_files(child.path)
            else:
                yield child


class VaultProvider(Protocol):
    """Host document-tree interface consumed by the generation pipeline."""

    root: Path
    name: str

    def snapshot(self) -> VaultTree: ...

    def read_bytes(self, path: str) -> bytes: ...

    def read_text(self, path: str) -> str: ...

    def exists(self, path: str) -> bool: ...


class FileSystemVault:
    """Vault backed by a directory on disk."""

    def __init__(self, root: Path | str, *, name: str | None = None) -> None:
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Vault path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Vault path is not a directory: {root}")
        self.root = root_path
        self.name = name or root_path.name

    def snapshot(self) -> VaultTree:
        """Walk the vault once and freeze the result."""
        nodes: Dict[str, DocumentNode] = {
            ROOT_PATH: DocumentNode(path=ROOT_PATH, kind=NodeKind.FOLDER, name=self.name)
        }
        children: Dict[str, List[str]] = {ROOT_PATH: []}

        for dirpath, dirnames, filenames in os.walk(self.root):
            current_dir = Path(dirpath)
            rel_dir = current_dir.relative_to(self.root).as_posix() if current_dir != self.root else ROOT_PATH

            # Dot-prefixed entries (config dir, VCS metadata) are never part of the vault.
            dirnames[:] = sorted(name for name in dirnames if not is_hidden(name))
            for name in dirnames:
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                nodes[rel_path] = DocumentNode(path=rel_path, kind=NodeKind.FOLDER, name=name)
                children[rel_path] = []
                children[rel_dir].append(rel_path)

            for filename in sorted(filenames):
                if is_hidden(filename) or filename in _EXCLUDED_FILES:
                    continue
                rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
                nodes[rel_path] = DocumentNode(
                    path=rel_path, kind=node_kind_for_file(filename), name=filename
                )
                children[rel_dir].append(rel_path)

        return VaultTree(nodes, children)

    def read_bytes(self, path: str) -> bytes:
        return self._absolute(path).read_bytes()

    def read_text(self, path: str) -> str:
        return self._absolute(path).read_text(encoding="utf-8")

    def exists(self, path: str) -> bool:
        try:
            return self._absolute(path).exists()
        except ValueError:
            return False

    def _absolute(self, path: str) -> Path:
        candidate = (self.root / path).resolve()
        if candidate != self.root and self.root not in candidate.parents:
            raise ValueError(f"Path escapes the vault: {path}")
        return candidate


def parent_path(path: str) -> str:
    """Vault path of the folder containing ``path`` (root is the empty string)."""
    return path.rsplit("/", 1)[0] if "/" in path else ROOT_PATH


__all__ = [
    "FileSystemVault",
    "ROOT_PATH",
    "VaultProvider",
    "VaultTree",
    "node_kind_for_file",
    "parent_path",
]

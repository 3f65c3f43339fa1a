"""Tests for vaultsite.paths."""

from __future__ import annotations

import pytest

from vaultsite.models import ExclusionRuleSet
from vaultsite.paths import LinkResolver, href_for, output_path_for, relative_link, split_link_token
from vaultsite.vault import VaultTree


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("a/b/Note.md", "a/b/Note.html"),
        ("index.md", "index.html"),
        ("Upper.MD", "Upper.html"),
        ("a/img.png", "a/img.png"),
        ("notes/archive.tar.gz", "notes/archive.tar.gz"),
        ("notes/README", "notes/README"),
    ],
)
def test_output_path_for(source: str, expected: str) -> None:
    assert output_path_for(source) == expected


@pytest.mark.parametrize(
    ("source", "target", "expected"),
    [
        ("a/b/Note.md", "a/c/Other.html", "../c/Other.html"),
        ("Note.md", "sub/Page.html", "sub/Page.html"),
        ("Note.md", "Note.html", "Note.html"),
        ("a/b/Note.md", "assets/style.css", "../../assets/style.css"),
        ("a/Note.md", "a/Sibling.html", "Sibling.html"),
        ("a/b/c/Deep.md", "index.html", "../../../index.html"),
    ],
)
def test_relative_link(source: str, target: str, expected: str) -> None:
    assert relative_link(source, target) == expected


def test_href_for_quotes_unsafe_characters() -> None:
    assert href_for("notes/My Note.md", "notes/Other Note.html") == "Other%20Note.html"


def test_split_link_token() -> None:
    assert split_link_token("Note#Heading") == ("Note", "#Heading")
    assert split_link_token("Note") == ("Note", "")
    assert split_link_token("#Only") == ("", "#Only")


@pytest.fixture
def resolver() -> LinkResolver:
    tree = VaultTree.from_paths(
        [
            "index.md",
            "notes/a.md",
            "notes/b.md",
            "notes/Shared.md",
            "projects/Shared.md",
            "projects/plan.md",
            "images/diagram.png",
            "My Note.md",
        ]
    )
    return LinkResolver(tree)


def test_resolves_exact_vault_path(resolver: LinkResolver) -> None:
    assert resolver.resolve("notes/a", "index.md").path == "notes/a.md"
    assert resolver.resolve("notes/a.md", "projects/plan.md").path == "notes/a.md"


def test_resolves_relative_to_source(resolver: LinkResolver) -> None:
    assert resolver.resolve("b", "notes/a.md").path == "notes/b.md"
    assert resolver.resolve("../projects/plan.md", "notes/a.md").path == "projects/plan.md"
    assert resolver.resolve("./b.md", "notes/a.md").path == "notes/b.md"


def test_resolves_unique_basename_case_insensitively(resolver: LinkResolver) -> None:
    assert resolver.resolve("PLAN", "index.md").path == "projects/plan.md"
    assert resolver.resolve("diagram.png", "notes/a.md").path == "images/diagram.png"


def test_ambiguous_basename_prefers_same_folder_then_fails(resolver: LinkResolver) -> None:
    assert resolver.resolve("Shared", "notes/a.md").path == "notes/Shared.md"
    assert resolver.resolve("Shared", "index.md") is None
    assert resolver.resolve("projects/Shared", "index.md").path == "projects/Shared.md"


def test_unresolvable_and_external_tokens(resolver: LinkResolver) -> None:
    assert resolver.resolve("Missing Note", "index.md") is None
    assert resolver.resolve("https://example.com/a.md", "index.md") is None
    assert resolver.resolve("#Heading", "index.md") is None
    assert resolver.resolve("../../outside", "notes/a.md") is None


def test_rewrite_href_handles_documents_assets_and_subpaths(resolver: LinkResolver) -> None:
    assert resolver.rewrite_href("notes/a", "index.md") == "notes/a.html"
    assert resolver.rewrite_href("index", "notes/a.md") == "../index.html"
    assert resolver.rewrite_href("diagram.png", "notes/a.md") == "../images/diagram.png"
    assert resolver.rewrite_href("plan#Next Steps", "notes/a.md") == "../projects/plan.html#next-steps"
    assert resolver.rewrite_href("plan#^block1", "notes/a.md") == "../projects/plan.html"
    assert resolver.rewrite_href("My%20Note.md", "notes/a.md") == "../My%20Note.html"
    assert resolver.rewrite_href("Missing", "notes/a.md") is None


def test_resolver_with_rules_only_targets_publishable_files() -> None:
    tree = VaultTree.from_paths(
        [
            "images/pic.png",
            "dist/images/pic.png",
            "old/pic.png",
            "private/plan.md",
            "notes/a.md",
        ]
    )
    rules = ExclusionRuleSet(
        output_dir="dist",
        previous_output_dirs=("old",),
        allow_private_folders=True,
        locked_folders=("private",),
    )

    restricted = LinkResolver(tree, rules)
    assert restricted.resolve("pic.png", "notes/a.md").path == "images/pic.png"
    assert restricted.resolve("dist/images/pic.png", "notes/a.md") is None
    assert restricted.resolve("plan", "notes/a.md") is None

    unrestricted = LinkResolver(tree)
    assert unrestricted.resolve("pic.png", "notes/a.md") is None
    assert unrestricted.resolve("plan", "notes/a.md").path == "private/plan.md"

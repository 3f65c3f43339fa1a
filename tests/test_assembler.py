"""Tests for vaultsite.assembler."""

from __future__ import annotations

from bs4 import BeautifulSoup

from vaultsite.assembler import PageAssembler, breadcrumbs_for
from vaultsite.models import DocumentNode, ExclusionRuleSet, NodeKind
from vaultsite.navigation import NavigationBuilder
from vaultsite.paths import LinkResolver
from vaultsite.render import MarkdownRenderer


def _assemble(vault_builder, path: str) -> BeautifulSoup:
    vault = vault_builder.vault()
    tree = vault.snapshot()
    navigation = NavigationBuilder().build(tree, ExclusionRuleSet(output_dir="dist"))
    assembler = PageAssembler(
        vault,
        MarkdownRenderer(),
        LinkResolver(tree),
        site_name="Garden",
    )
    html = assembler.assemble(tree.get(path), navigation)
    return BeautifulSoup(html, "html.parser")


def _write_sample(vault_builder) -> None:
    vault_builder.write(
        {
            "index.md": "# Home\n\nStart at [[a]].\n",
            "notes/a.md": """
                Links to [[b|Bee]], [[index]], [[Missing Note]] and [plain](b.md).

                ![[pic.png]]
            """,
            "notes/b.md": "B body\n",
            "images/pic.png": b"\x89PNG\r\n",
        }
    )


def test_breadcrumbs_for_nested_document() -> None:
    node = DocumentNode(path="notes/deep/Topic.md", kind=NodeKind.DOCUMENT, name="Topic.md")
    assert breadcrumbs_for(node) == (["notes", "deep"], "Topic")

    root_node = DocumentNode(path="index.md", kind=NodeKind.DOCUMENT, name="index.md")
    assert breadcrumbs_for(root_node) == ([], "index")


def test_page_structure(vault_builder) -> None:
    _write_sample(vault_builder)
    soup = _assemble(vault_builder, "notes/a.md")

    assert soup.title.get_text() == "a"
    stylesheets = [link["href"] for link in soup.find_all("link", rel="stylesheet")]
    assert stylesheets == ["../assets/style.css", "../assets/custom.css"]

    sidebar = soup.find("aside", class_="sidebar")
    assert sidebar.find("div", class_="nav-header").get_text() == "Garden"
    assert sidebar.find("button", class_="theme-toggle") is not None

    wrapper = soup.find("div", class_="content-wrapper")
    preview = wrapper.find("div", class_="markdown-preview-view")
    assert preview is not None
    assert preview.find("h1", class_="note-title").get_text() == "a"


def test_breadcrumbs_rendered(vault_builder) -> None:
    _write_sample(vault_builder)
    soup = _assemble(vault_builder, "notes/a.md")

    crumbs = soup.find("div", class_="breadcrumbs").find_all("span", class_="breadcrumb-item")
    assert [crumb.get_text() for crumb in crumbs] == ["notes", "a"]
    assert "active" in crumbs[-1]["class"]


def test_navigation_marks_current_page_and_opens_folders(vault_builder) -> None:
    _write_sample(vault_builder)
    soup = _assemble(vault_builder, "notes/a.md")
    sidebar = soup.find("aside", class_="sidebar")

    summaries = [summary.get_text() for summary in sidebar.find_all("summary")]
    assert summaries == ["images", "notes"]
    assert all(details.has_attr("open") for details in sidebar.find_all("details"))

    links = {link.get_text(): link for link in sidebar.find_all("a")}
    assert links["a"]["href"] == "a.html"
    assert links["a"]["class"] == ["active"]
    assert links["b"]["href"] == "b.html"
    assert not links["b"].has_attr("class")
    assert links["index"]["href"] == "../index.html"
    assert "pic.png" not in links


def test_internal_links_rewritten_and_unresolved_left_alone(vault_builder) -> None:
    _write_sample(vault_builder)
    soup = _assemble(vault_builder, "notes/a.md")
    content = soup.find("div", class_="content-wrapper")

    anchors = {anchor.get_text(): anchor for anchor in content.find_all("a", class_="internal-link")}
    assert anchors["Bee"]["href"] == "b.html"
    assert anchors["index"]["href"] == "../index.html"
    assert anchors["plain"]["href"] == "b.html"
    assert anchors["Missing Note"]["href"] == "Missing Note"

    image = content.find("img", class_="internal-embed")
    assert image["src"] == "../images/pic.png"


def test_root_page_links(vault_builder) -> None:
    _write_sample(vault_builder)
    soup = _assemble(vault_builder, "index.md")

    stylesheets = [link["href"] for link in soup.find_all("link", rel="stylesheet")]
    assert stylesheets == ["assets/style.css", "assets/custom.css"]
    content = soup.find("div", class_="content-wrapper")
    assert content.find("a", class_="internal-link")["href"] == "notes/a.html"
    crumbs = soup.find("div", class_="breadcrumbs").find_all("span", class_="breadcrumb-item")
    assert [crumb.get_text() for crumb in crumbs] == ["index"]


def test_site_name_is_escaped(vault_builder) -> None:
    vault_builder.write({"index.md": "hi\n"})
    vault = vault_builder.vault()
    tree = vault.snapshot()
    assembler = PageAssembler(vault, MarkdownRenderer(), LinkResolver(tree), site_name="<b>Garden</b>")
    html = assembler.assemble(tree.get("index.md"), ())

    assert "&lt;b&gt;Garden&lt;/b&gt;" in html

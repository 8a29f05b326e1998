from datetime import date
from pathlib import Path

import pytest

from folio.content import (
    Document,
    DocumentBuilder,
    DocumentSource,
    FileContentLoader,
    UrlDeriver,
    normalize_url,
    url_folder,
)
from folio.errors import MalformedDocument


def write_post(path: Path, header: str, body: str = "Body text.\n") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"---\n{header}---\n{body}", encoding="utf-8")
    return path


def create_site(tmp_path: Path) -> Path:
    site = tmp_path / "site"
    write_post(
        site / "_posts" / "2024-01-15-my-post.md",
        "layout: post\ntitle: My Post\ntags: [python, web]\n",
        "# Intro\n\nFirst paragraph.\n",
    )
    write_post(site / "_posts" / "2023-06-01-older.md", "title: Older\n")
    write_post(site / "_drafts" / "work-in-progress.md", "title: WIP\ndate: 2024-02-01\n")
    write_post(site / "_posts" / "_hidden-draft.md", "title: Hidden\ndate: 2024-02-02\n")
    write_post(
        site / "notes" / "2022-05-05-unpublished.md",
        "title: Unpublished\npublished: false\n",
    )
    write_post(site / "notes" / "2022-05-06-note.md", "title: Note\n")
    (site / "_layouts").mkdir()
    (site / "_layouts" / "post.html.jinja").write_text("{{ page_content }}", encoding="utf-8")
    write_post(site / "_partials" / "2024-01-01-partial.md", "title: Not content\n")
    (site / ".git").mkdir()
    (site / ".git" / "2024-01-01-config.md").write_text("nope", encoding="utf-8")
    (site / "CNAME").write_text("example.com", encoding="utf-8")
    (site / "notes" / "diagram.svg").write_text("<svg/>", encoding="utf-8")
    (site / "_posts" / "photo.png").write_bytes(b"png")
    return site


def test_loader_classifies_files(tmp_path):
    site = create_site(tmp_path)
    loader = FileContentLoader(site)
    rel = lambda paths: [p.relative_to(site).as_posix() for p in paths]  # noqa: E731

    assert rel(loader.iter_files()) == [
        "_posts/2023-06-01-older.md",
        "_posts/2024-01-15-my-post.md",
        "notes/2022-05-05-unpublished.md",
        "notes/2022-05-06-note.md",
    ]
    with_drafts = rel(loader.iter_files(include_drafts=True))
    assert "_drafts/work-in-progress.md" in with_drafts
    assert "_posts/_hidden-draft.md" in with_drafts
    assert "_partials/2024-01-01-partial.md" not in with_drafts

    assert rel(loader.iter_static_files()) == ["CNAME", "notes/diagram.svg"]


def test_document_source_is_lazy_and_restartable(tmp_path):
    site = create_site(tmp_path)
    source = DocumentSource(site)

    first = [d.title for d in source]
    second = [d.title for d in source]
    assert first == second == ["Older", "My Post", "Note"]

    iterator = iter(source)
    assert next(iterator).title == "Older"
    # Files added later are seen by the next walk.
    write_post(site / "_posts" / "2025-01-01-new.md", "title: New\n")
    assert "New" in [d.title for d in source]


def test_document_source_with_drafts(tmp_path):
    site = create_site(tmp_path)
    docs = {d.title: d for d in DocumentSource(site, include_drafts=True)}
    assert docs["WIP"].draft
    assert docs["WIP"].url == "/posts/work-in-progress/"
    assert docs["Hidden"].draft
    assert docs["Unpublished"].draft
    assert not docs["My Post"].draft


def test_document_fields(tmp_path):
    site = create_site(tmp_path)
    doc = next(d for d in DocumentSource(site) if d.title == "My Post")
    assert doc.date == date(2024, 1, 15)
    assert doc.tags == ("python", "web")
    assert doc.layout == "post"
    assert doc.slug == "my-post"
    assert doc.url == "/posts/my-post/"
    assert doc.folder == "posts"
    assert doc.group == "posts"
    assert doc.filename == "2024-01-15-my-post.md"
    assert doc.excerpt == "First paragraph."
    assert doc.body == "# Intro\n\nFirst paragraph.\n"
    assert dict(doc.metadata) == {"layout": "post", "title": "My Post", "tags": ["python", "web"]}


def test_document_is_immutable(tmp_path):
    site = create_site(tmp_path)
    doc = next(iter(DocumentSource(site)))
    with pytest.raises(AttributeError):
        doc.title = "changed"
    with pytest.raises(TypeError):
        doc.metadata["title"] = "changed"


def test_missing_front_matter_names_the_file(tmp_path):
    site = tmp_path / "site"
    bad = site / "_posts" / "2024-01-01-bad.md"
    bad.parent.mkdir(parents=True)
    bad.write_text("# No header here\n", encoding="utf-8")
    with pytest.raises(MalformedDocument) as excinfo:
        list(DocumentSource(site))
    assert excinfo.value.source_path == bad


def test_non_utf8_file_is_malformed(tmp_path):
    site = tmp_path / "site"
    bad = site / "_posts" / "2024-01-01-latin1.md"
    bad.parent.mkdir(parents=True)
    bad.write_bytes("---\ntitle: caf\xe9\n---\n".encode("latin-1"))
    with pytest.raises(MalformedDocument, match="UTF-8"):
        DocumentBuilder(site).build(bad)


def test_url_deriver_patterns():
    published = date(2024, 3, 9)
    assert UrlDeriver().derive("posts", "hello", published) == "/posts/hello/"
    assert UrlDeriver().derive("", "hello", published) == "/hello/"
    assert UrlDeriver().derive("docs", "index", published) == "/docs/"
    dated = UrlDeriver("/:year/:month/:day/:slug/")
    assert dated.derive("posts", "hello", published) == "/2024/03/09/hello/"
    html = UrlDeriver("/:folder/:slug.html")
    assert html.derive("posts", "hello", published) == "/posts/hello.html"
    assert UrlDeriver().derive("posts", "x", published, permalink="/custom") == "/custom/"


def test_normalize_url_and_folder():
    assert normalize_url("//a//b") == "/a/b/"
    assert normalize_url("/feed.xml") == "/feed.xml"
    assert normalize_url("") == "/"
    assert url_folder(Path("_posts/2020/x.md")) == "posts/2020"
    assert url_folder(Path("_drafts/x.md")) == "posts"
    assert url_folder(Path("x.md")) == ""


def test_permalink_escaping_output_is_rejected(tmp_path):
    site = tmp_path / "site"
    path = write_post(site / "_posts" / "2024-01-01-evil.md", "permalink: /../../etc/\n")
    with pytest.raises(MalformedDocument, match="escapes"):
        DocumentBuilder(site).build(path)


def test_builder_uses_custom_url_deriver(tmp_path):
    site = tmp_path / "site"
    path = write_post(site / "_posts" / "2024-01-02-dated.md", "title: Dated\n")
    builder = DocumentBuilder(site, url_deriver=UrlDeriver("/:year/:slug/"))
    doc = builder.build(path)
    assert isinstance(doc, Document)
    assert doc.url == "/2024/dated/"

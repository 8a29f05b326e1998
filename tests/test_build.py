import os
import stat
from pathlib import Path

import pytest
from PIL import Image

from folio.build import build_site
from folio.errors import ConfigError, IOFailure, MalformedDocument, MissingTemplate


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def post(site: Path, name: str, header: str, body: str = "Some text.\n") -> Path:
    return write(site / "_posts" / name, f"---\n{header}---\n{body}")


def create_project(tmp_path: Path) -> Path:
    project = tmp_path / "project"
    site = project / "site"
    write(project / "data" / "site.yaml", "title: Blog\ndescription: A blog\nurl: https://example.com\n")
    write(site / "_layouts" / "post.html.jinja", "<h1>{{ page.title }}</h1>{{ page_content }}")
    post(site, "2023-01-01-oldest.md", "title: Oldest\n")
    post(site, "2023-06-01-middle.md", "title: Middle\ntags: [python, web]\n")
    post(site, "2024-01-01-newest.md", "title: Newest\ntags: [python]\n", "# Hi\n\nNew *text*.\n")
    write(site / "_drafts" / "idea.md", "---\ntitle: Idea\ndate: 2024-02-01\n---\nLater.\n")
    write(site / "CNAME", "blog.example.com\n")
    write(project / "assets" / "js" / "app.js", "function  add ( a, b ) {\n  return a + b;\n}\n")
    write(project / "assets" / "js" / "vendor.min.js", "var a  =  1;\n")
    (project / "assets" / "img").mkdir(parents=True)
    Image.new("RGB", (4, 4), "red").save(project / "assets" / "img" / "dot.png")
    return project


def hidden_entries(project: Path) -> list[str]:
    return [p.name for p in project.iterdir() if p.name.startswith(".")]


def test_build_writes_pages_listings_feeds_and_assets(tmp_path):
    project = create_project(tmp_path)
    result = build_site(project)
    out = project / "output"

    assert result.output_dir == out.resolve()
    assert [d.title for d in result.documents] == ["Newest", "Middle", "Oldest"]
    newest = (out / "posts" / "newest" / "index.html").read_text(encoding="utf-8")
    assert newest.startswith("<h1>Newest</h1>")
    assert "<em>text</em>" in newest

    index = (out / "index.html").read_text(encoding="utf-8")
    assert index.index("Newest") < index.index("Middle") < index.index("Oldest")
    assert (out / "tags" / "index.html").exists()
    python_tag = (out / "tags" / "python" / "index.html").read_text(encoding="utf-8")
    assert "Tagged: python" in python_tag
    assert "Oldest" not in python_tag
    assert (out / "tags" / "web" / "index.html").exists()

    assert result.feeds == ["sitemap.xml", "feed.xml"]
    sitemap = (out / "sitemap.xml").read_text(encoding="utf-8")
    assert "<loc>https://example.com/posts/newest/</loc><lastmod>2024-01-01</lastmod>" in sitemap
    assert "<loc>https://example.com/</loc>" in sitemap

    assert (out / "CNAME").read_text(encoding="utf-8") == "blog.example.com\n"
    app_js = (out / "assets" / "js" / "app.js").read_text(encoding="utf-8")
    assert "return a+b" in app_js
    assert (out / "assets" / "js" / "vendor.min.js").read_text(encoding="utf-8") == "var a  =  1;\n"
    with Image.open(out / "assets" / "img" / "dot.png") as img:
        assert img.size == (4, 4)
    assert Path("assets/img/dot.png") in result.assets
    assert hidden_entries(project) == []


def test_drafts_are_opt_in(tmp_path):
    project = create_project(tmp_path)
    build_site(project)
    assert not (project / "output" / "posts" / "idea").exists()

    result = build_site(project, include_drafts=True)
    assert (project / "output" / "posts" / "idea" / "index.html").exists()
    assert result.documents[0].title == "Idea"


def test_malformed_document_leaves_previous_output_untouched(tmp_path):
    project = create_project(tmp_path)
    build_site(project)
    index = project / "output" / "index.html"
    before = index.read_text(encoding="utf-8")

    bad = write(project / "site" / "_posts" / "2024-05-05-broken.md", "no front matter\n")
    post(project / "site", "2024-06-06-later.md", "title: Later\n")
    with pytest.raises(MalformedDocument) as excinfo:
        build_site(project)
    assert excinfo.value.source_path == bad.resolve()
    assert index.read_text(encoding="utf-8") == before
    assert not (project / "output" / "posts" / "later").exists()
    assert hidden_entries(project) == []


def test_failed_first_build_publishes_nothing(tmp_path):
    project = create_project(tmp_path)
    post(project / "site", "2024-03-03-odd.md", "title: Odd\nlayout: nope\n")
    with pytest.raises(MissingTemplate) as excinfo:
        build_site(project)
    assert excinfo.value.layout == "nope"
    assert not (project / "output").exists()
    assert hidden_entries(project) == []


def test_rebuild_removes_stale_pages(tmp_path):
    project = create_project(tmp_path)
    build_site(project)
    (project / "output" / "leftover.txt").write_text("old", encoding="utf-8")
    assert (project / "output" / "posts" / "oldest" / "index.html").exists()

    (project / "site" / "_posts" / "2023-01-01-oldest.md").unlink()
    build_site(project)
    assert not (project / "output" / "posts" / "oldest").exists()
    assert not (project / "output" / "leftover.txt").exists()
    assert (project / "output" / "posts" / "newest" / "index.html").exists()


def test_duplicate_urls_are_rejected(tmp_path):
    project = create_project(tmp_path)
    post(project / "site", "2022-01-01-newest.md", "title: Clash\n")
    with pytest.raises(MalformedDocument, match="also produced by"):
        build_site(project)


def test_document_cannot_take_a_listing_url(tmp_path):
    project = create_project(tmp_path)
    post(project / "site", "2022-01-01-home.md", "title: Home\npermalink: /\n")
    with pytest.raises(MalformedDocument, match="generated listing page"):
        build_site(project)


def test_pagination(tmp_path):
    project = create_project(tmp_path)
    write(project / "folio.yaml", "paginate: 1\n")
    result = build_site(project)
    out = project / "output"
    first = (out / "index.html").read_text(encoding="utf-8")
    assert 'rel="next" href="/page/2/"' in first
    assert "Oldest" not in first
    last = (out / "page" / "3" / "index.html").read_text(encoding="utf-8")
    assert "Oldest" in last
    assert 'rel="prev" href="/page/2/"' in last
    assert "/page/3/" in [p.url for p in result.pages]


def test_feeds_are_deterministic(tmp_path):
    project = create_project(tmp_path)
    build_site(project)
    first = (project / "output" / "feed.xml").read_text(encoding="utf-8")
    build_site(project)
    assert (project / "output" / "feed.xml").read_text(encoding="utf-8") == first
    assert "<lastBuildDate>Mon, 01 Jan 2024 00:00:00 +0000</lastBuildDate>" in first
    assert first.index("<title>Newest</title>") < first.index("<title>Oldest</title>")
    assert "<category>python</category>" in first


def test_feed_limit_and_missing_url(tmp_path):
    project = create_project(tmp_path)
    write(project / "folio.yaml", "feed_limit: 1\n")
    build_site(project)
    feed = (project / "output" / "feed.xml").read_text(encoding="utf-8")
    assert feed.count("<item>") == 1

    write(project / "data" / "site.yaml", "title: Blog\n")
    result = build_site(project)
    assert result.feeds == []
    assert not (project / "output" / "feed.xml").exists()


def test_root_url_absolutizes_links(tmp_path):
    project = create_project(tmp_path)
    build_site(project, root_url="https://cdn.example.com/blog")
    index = (project / "output" / "index.html").read_text(encoding="utf-8")
    assert 'href="https://cdn.example.com/blog/posts/newest/"' in index
    assert 'href="/posts/' not in index


def test_directory_overrides_and_guards(tmp_path):
    project = create_project(tmp_path)
    result = build_site(project, output_dir=Path("public"))
    assert (project / "public" / "index.html").exists()
    assert result.output_dir == (project / "public").resolve()

    with pytest.raises(ConfigError):
        build_site(project, output_dir=Path("site"))
    with pytest.raises(ConfigError):
        build_site(project, output_dir=Path("site/out"))
    with pytest.raises(ConfigError):
        build_site(project, output_dir=Path("."))
    with pytest.raises(IOFailure, match="Content directory not found"):
        build_site(project, source_dir=Path("missing"))


def test_output_stage_discards_on_error(tmp_path):
    from folio.output import OutputStage, RenderedPage

    out = tmp_path / "out"
    write(out / "index.html", "old")
    with pytest.raises(RuntimeError):
        with OutputStage(out) as stage:
            stage.write_page(RenderedPage(url="/", html="new"))
            raise RuntimeError("boom")
    assert (out / "index.html").read_text(encoding="utf-8") == "old"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["out"]

    with OutputStage(out) as stage:
        stage.write_page(RenderedPage(url="/posts/a/", html="a"))
        stage.write_page(RenderedPage(url="/feed.xml", html="<rss/>"))
    assert (out / "posts" / "a" / "index.html").read_text(encoding="utf-8") == "a"
    assert (out / "feed.xml").exists()
    assert not (out / "index.html").exists()


@pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
def test_published_output_follows_umask(tmp_path):
    project = create_project(tmp_path)
    previous = os.umask(0o022)
    try:
        build_site(project)
    finally:
        os.umask(previous)
    assert stat.S_IMODE((project / "output").stat().st_mode) == 0o755


def test_pass_through_file_cannot_replace_generated_page(tmp_path):
    project = create_project(tmp_path)
    static = write(project / "site" / "index.html", "STATIC")
    with pytest.raises(IOFailure, match="the listing page /") as excinfo:
        build_site(project)
    assert excinfo.value.source_path == static.resolve()

    static.unlink()
    feed = write(project / "site" / "feed.xml", "<rss/>")
    with pytest.raises(IOFailure, match="the generated feed.xml"):
        build_site(project)

    feed.unlink()
    write(project / "site" / "assets" / "js" / "app.js", "var x;")
    with pytest.raises(IOFailure, match="the asset assets/js/app.js"):
        build_site(project)


@pytest.mark.parametrize(
    "permalink, message",
    [
        ("/feed.xml", "would overwrite the generated feed.xml"),
        ("/sitemap.xml", "would overwrite the generated sitemap.xml"),
        ("/assets/js/app.js", "would overwrite the asset assets/js/app.js"),
        ("/assets/notes/", "inside the assets directory"),
    ],
)
def test_document_cannot_replace_feed_or_asset(tmp_path, permalink, message):
    project = create_project(tmp_path)
    post(project / "site", "2022-01-01-clash.md", f"title: Clash\npermalink: {permalink}\n")
    with pytest.raises(MalformedDocument, match=message):
        build_site(project)


def test_unreadable_image_is_copied_as_is(tmp_path):
    project = create_project(tmp_path)
    source = project / "assets" / "img" / "big.png"
    Image.linear_gradient("L").resize((256, 256)).save(source)
    data = source.read_bytes()
    source.write_bytes(data[: len(data) // 2])

    result = build_site(project)
    assert (project / "output" / "assets" / "img" / "big.png").read_bytes() == data[: len(data) // 2]
    assert Path("assets/img/big.png") in result.assets

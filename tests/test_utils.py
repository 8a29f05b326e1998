from datetime import date
from pathlib import Path

from folio import utils
from folio.html_utils import absolutize_html_urls, escape_html, join_root_url


def test_slugify_and_titleize_strip_date():
    assert utils.slugify("2024-01-02-post-title") == "post-title"
    assert utils.slugify("Hello, World!") == "hello-world"
    assert utils.slugify("snake_case_name") == "snake-case-name"
    assert utils.slugify("!!!") == "index"
    assert utils.slugify("C++", default="tag") == "c"
    assert utils.titleize("2024-01-02-post-title.md") == "Post Title"
    assert utils.titleize("getting_started.md") == "Getting Started"
    assert utils.titleize("---.md") == "Untitled"


def test_extract_date_from_name():
    assert utils.extract_date_from_name("2024-01-15-cool") == date(2024, 1, 15)
    assert utils.extract_date_from_name("2024-01-15") == date(2024, 1, 15)
    assert utils.extract_date_from_name("invalid") is None
    assert utils.extract_date_from_name("2024-13-32-post") is None
    assert utils.strip_date_prefix("2024-01-15-cool-post") == "cool-post"
    assert utils.strip_date_prefix("plain-name") == "plain-name"


def test_first_paragraph_skips_headings_and_code():
    text = "# Title\n\n```python\nx = 1\n```\n\nFirst <em>real</em>\nparagraph.\n\nSecond."
    assert utils.first_paragraph(text) == "First real paragraph."
    assert utils.first_paragraph("") == ""
    assert utils.first_paragraph("# Only a heading") == ""


def test_truncate_on_word_boundary():
    assert utils.truncate("short", 10) == "short"
    assert utils.truncate("one two three four", 9) == "one two…"


def test_path_predicates():
    assert utils.is_markdown(Path("post.MD"))
    assert utils.is_markdown(Path("post.markdown"))
    assert not utils.is_markdown(Path("post.html"))


def test_html_helpers():
    assert escape_html('<a href="x">Tom & Jerry</a>') == (
        "&lt;a href=&quot;x&quot;&gt;Tom &amp; Jerry&lt;/a&gt;"
    )
    assert join_root_url("https://example.com/", "about/") == "https://example.com/about/"
    assert join_root_url("", "/about/") == "/about/"

    html = (
        '<a href="/about/">About</a><img src="//cdn.example.com/x.png">'
        '<a href="https://other.com/">Other</a><a href="#top">Top</a>'
    )
    result = absolutize_html_urls(html, "https://example.com/blog")
    assert 'href="https://example.com/blog/about/"' in result
    assert 'src="//cdn.example.com/x.png"' in result
    assert 'href="https://other.com/"' in result
    assert 'href="#top"' in result
    assert absolutize_html_urls(html, "") == html

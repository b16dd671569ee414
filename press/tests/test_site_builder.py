"""Tests for static site generation."""

import json

from conftest import article_text

from press.services.content_store import ContentStore
from press.services.site_builder import build_site


def _build(content_dir, out_dir):
    return build_site(ContentStore(content_dir), out_dir, "https://press.test", "Press Test")


def test_build_writes_expected_layout(content_dir, write_article, tmp_path):
    write_article("kotlin-basics", tags='["kotlin", "Kotlin Basics"]')
    write_article("js-promises", tags='["javascript"]', pub_date='"2024-01-01"')
    out = tmp_path / "dist"

    result = _build(content_dir, out)

    assert result.articles == 2
    assert (out / "index.html").exists()
    assert (out / "kotlin-basics" / "index.html").exists()
    assert (out / "js-promises" / "index.html").exists()
    assert (out / "tags" / "kotlin.html").exists()
    assert (out / "tags" / "kotlin-basics.html").exists()
    assert (out / "tags" / "javascript.html").exists()
    # index + 2 articles + 3 tags
    assert len(result.pages) == 6


def test_index_json_newest_first(content_dir, write_article, tmp_path):
    write_article("older", pub_date='"2024-01-01"')
    write_article("newer", pub_date='"2024-06-01"')
    out = tmp_path / "dist"

    _build(content_dir, out)

    data = json.loads((out / "articles.json").read_text(encoding="utf-8"))
    assert data["total"] == 2
    assert [a["slug"] for a in data["articles"]] == ["newer", "older"]
    assert "pubDate" in data["articles"][0]


def test_tag_page_lists_only_tagged_articles(content_dir, write_article, tmp_path):
    write_article("kt", tags='["kotlin"]', title="Kotlin Post")
    write_article("js", tags='["javascript"]', title="JS Post")
    out = tmp_path / "dist"

    _build(content_dir, out)

    page = (out / "tags" / "kotlin.html").read_text(encoding="utf-8")
    assert "Kotlin Post" in page
    assert "JS Post" not in page
    assert 'href="../kt/index.html"' in page


def test_build_is_deterministic(content_dir, write_article, tmp_path):
    write_article("a")
    write_article("b", tags='["typescript"]')

    _build(content_dir, tmp_path / "one")
    _build(content_dir, tmp_path / "two")

    for rel in ["index.html", "a/index.html", "b/index.html", "articles.json"]:
        assert (tmp_path / "one" / rel).read_bytes() == (tmp_path / "two" / rel).read_bytes()


def test_output_uses_lf_newlines(content_dir, write_article, tmp_path):
    write_article("a")
    out = tmp_path / "dist"

    _build(content_dir, out)

    raw = (out / "a" / "index.html").read_bytes()
    assert b"\r\n" not in raw
    assert raw.endswith(b"\n")


def test_invalid_articles_are_reported_not_published(content_dir, write_article, tmp_path):
    write_article("good")
    (content_dir / "bad.md").write_text(article_text(tags='"oops"'), encoding="utf-8")
    out = tmp_path / "dist"

    result = _build(content_dir, out)

    assert result.articles == 1
    assert list(result.skipped) == [str(content_dir / "bad.md")]
    assert not (out / "bad").exists()
    assert result.to_dict()["pages"] == len(result.pages)


def test_punctuation_tags_get_their_own_pages(content_dir, write_article, tmp_path):
    write_article("sharp", tags='["C#"]', title="Sharp Post")
    write_article("plus", tags='["C++"]', title="Plus Post")
    write_article("plain", tags='["C"]', title="Plain Post")
    out = tmp_path / "dist"

    _build(content_dir, out)

    pages = sorted(p.name for p in (out / "tags").iterdir())
    assert pages == ["c.html", "c_23_.html", "c_2b__2b_.html"]
    sharp = (out / "tags" / "c_23_.html").read_text(encoding="utf-8")
    assert "Tagged: C#" in sharp
    assert "Sharp Post" in sharp
    assert "Plus Post" not in sharp
    assert 'href="../tags/c_2b__2b_.html"' in (out / "plus" / "index.html").read_text(
        encoding="utf-8"
    )

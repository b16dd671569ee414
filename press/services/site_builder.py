"""Static site generation from the content store.

Output layout under ``out_dir``:

- ``index.html``            all articles, newest first
- ``<slug>/index.html``     one page per article
- ``tags/<tag>.html``       articles carrying a tag
- ``articles.json``         the article index as JSON

Output is deterministic: no timestamps, stable ordering, UTF-8 with LF
newlines.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from press.models.article import ArticleIndex
from press.services.content_store import ContentStore
from press.services.renderer import render_article_page, render_index_page, tag_slug

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    articles: int = 0
    pages: list[Path] = field(default_factory=list)
    skipped: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "articles": self.articles,
            "pages": len(self.pages),
            "skipped": self.skipped,
        }


def _write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if not content.endswith("\n"):
        content += "\n"
    with path.open("w", encoding="utf-8", newline="\n") as f:
        f.write(content)


def build_site(
    store: ContentStore, out_dir: str | Path, site_url: str, site_name: str
) -> BuildResult:
    """Render every valid article in ``store`` into ``out_dir``."""
    out_dir = Path(out_dir)
    result = BuildResult()

    articles = store.articles()
    summaries = [a.summary() for a in articles]
    result.articles = len(articles)
    result.skipped = store.errors()

    index_path = out_dir / "index.html"
    _write_text(index_path, render_index_page(summaries, site_name))
    result.pages.append(index_path)

    for article in articles:
        page_path = out_dir / article.slug / "index.html"
        _write_text(page_path, render_article_page(article, site_url, site_name))
        result.pages.append(page_path)

    tags: dict[str, str] = {}
    for article in articles:
        for tag in article.tags:
            tags.setdefault(tag_slug(tag), tag)
    for slug, tag in sorted(tags.items()):
        tagged = [s for s in summaries if slug in {tag_slug(t) for t in s.tags}]
        tag_path = out_dir / "tags" / f"{slug}.html"
        _write_text(
            tag_path,
            render_index_page(tagged, site_name, heading=f"Tagged: {tag}", rel_prefix="../"),
        )
        result.pages.append(tag_path)

    index = ArticleIndex(articles=summaries, total=len(summaries))
    _write_text(out_dir / "articles.json", index.model_dump_json(by_alias=True, indent=2))

    for source, error in result.skipped.items():
        logger.warning("Not published: %s (%s)", source, error)
    logger.info("Built %d articles into %s (%d pages)", result.articles, out_dir, len(result.pages))
    return result

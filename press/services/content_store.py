"""Filesystem article repository.

Scans the content directory for markdown articles, parses and renders each
one, and caches the result per file keyed by modification time so a file is
only re-read when it changes on disk. Articles that fail to parse are
skipped with a warning: broken content should not take the listing down.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from press.config import get_settings
from press.models.article import Article, ArticleIndex, ArticleSummary, TagCount
from press.services.article_parser import (
    ARTICLE_SUFFIXES,
    ArticleError,
    ArticleNotFoundError,
    load_article,
    validate_slug,
)
from press.services.renderer import reading_time_minutes, render_markdown

logger = logging.getLogger(__name__)


@dataclass
class _CacheEntry:
    mtime: float | None
    article: Article | None
    error: str | None = None


def build_article(path: Path, highlight: bool = False) -> Article:
    """Parse and render one article file."""
    parsed = load_article(path)
    rendered = render_markdown(parsed.body, highlight=highlight)
    return Article(
        slug=parsed.slug,
        title=parsed.meta.title,
        description=parsed.meta.description,
        tags=parsed.meta.tags,
        pubDate=parsed.meta.pub_date,
        reading_time_minutes=reading_time_minutes(parsed.body),
        body=parsed.body,
        html=rendered.html,
        toc=rendered.toc,
    )


class ContentStore:
    """Read-through cache over a directory of article files."""

    def __init__(self, content_dir: str | Path, highlight: bool = False) -> None:
        self.content_dir = Path(content_dir)
        self._highlight = highlight
        self._entries: dict[Path, _CacheEntry] = {}

    def is_available(self) -> bool:
        return self.content_dir.is_dir()

    def article_files(self) -> list[Path]:
        if not self.content_dir.is_dir():
            logger.warning("Content directory not found at %s", self.content_dir)
            return []
        return sorted(
            p
            for p in self.content_dir.iterdir()
            if p.is_file() and p.suffix in ARTICLE_SUFFIXES
        )

    def _load(self, path: Path) -> Article | None:
        try:
            mtime = path.stat().st_mtime
        except OSError:
            return None

        entry = self._entries.get(path)
        if entry is not None and entry.mtime == mtime:
            return entry.article

        try:
            article = build_article(path, highlight=self._highlight)
            error = None
        except (ArticleError, ValueError) as exc:
            logger.warning("Skipping article %s: %s", path, exc)
            article, error = None, str(exc)
            if isinstance(exc.__cause__, OSError):
                # Permission changes leave mtime alone, so retry on the next scan
                mtime = None
        self._entries[path] = _CacheEntry(mtime=mtime, article=article, error=error)
        return article

    def articles(self) -> list[Article]:
        """All valid articles, newest first (slug breaks ties)."""
        files = self.article_files()

        # Forget files that disappeared since the last scan
        for stale in set(self._entries) - set(files):
            del self._entries[stale]

        by_slug: dict[str, Article] = {}
        for path in files:
            article = self._load(path)
            if article is None:
                continue
            if article.slug in by_slug:
                logger.warning("Duplicate article slug %r at %s, ignoring", article.slug, path)
                continue
            by_slug[article.slug] = article

        ordered = sorted(by_slug.values(), key=lambda a: a.slug)
        ordered.sort(key=lambda a: a.pub_date, reverse=True)
        return ordered

    def errors(self) -> dict[str, str]:
        """Parse errors from the last scan, keyed by file path."""
        return {str(p): e.error for p, e in sorted(self._entries.items()) if e.error}

    def list_articles(
        self,
        tag: str | None = None,
        search: str | None = None,
        limit: int = 0,
        offset: int = 0,
    ) -> ArticleIndex:
        """List article summaries.

        Args:
            tag: Optional tag to filter by (case-insensitive).
            search: Optional text to match against title and description.
            limit: Maximum number of articles to return (0 = unlimited).
            offset: Number of articles to skip before returning results.
        """
        articles = self.articles()

        if tag:
            tag_lower = tag.lower()
            articles = [a for a in articles if tag_lower in [t.lower() for t in a.tags]]

        if search:
            search_lower = search.lower()
            articles = [
                a
                for a in articles
                if search_lower in a.title.lower() or search_lower in a.description.lower()
            ]

        total = len(articles)
        if offset > 0:
            articles = articles[offset:]
        if limit > 0:
            articles = articles[:limit]

        summaries: list[ArticleSummary] = [a.summary() for a in articles]
        return ArticleIndex(articles=summaries, total=total)

    def get_article(self, slug: str) -> Article:
        validate_slug(slug)
        for article in self.articles():
            if article.slug == slug:
                return article
        raise ArticleNotFoundError(f"no article with slug {slug!r}", slug)

    def source_path(self, slug: str) -> Path:
        """Path of the file backing ``slug``, whether or not it parses."""
        validate_slug(slug)
        for path in self.article_files():
            if path.stem == slug:
                return path
        raise ArticleNotFoundError(f"no article with slug {slug!r}", slug)

    def tag_counts(self) -> list[TagCount]:
        """Tag usage across all articles, most used first."""
        counts: dict[str, int] = {}
        display: dict[str, str] = {}
        for article in self.articles():
            for tag in {t.lower(): t for t in article.tags}.values():
                key = tag.lower()
                display.setdefault(key, tag)
                counts[key] = counts.get(key, 0) + 1
        ordered = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
        return [TagCount(tag=display[key], count=count) for key, count in ordered]


@lru_cache
def get_content_store() -> ContentStore:
    """Return the process-wide store for the configured content directory."""
    settings = get_settings()
    return ContentStore(settings.content_dir, highlight=settings.highlight_code)

"""Article endpoints."""

import logging

from fastapi import APIRouter, HTTPException, Path, Query
from fastapi.responses import HTMLResponse

from press.config import get_settings
from press.models.article import Article, ArticleIndex, TagCount
from press.models.lint import LintReport, LintRequest
from press.services.article_parser import ArticleNotFoundError
from press.services.content_store import get_content_store
from press.services.linter import lint_file, lint_text
from press.services.renderer import render_article_page

logger = logging.getLogger(__name__)

router = APIRouter(tags=["articles"])

SLUG_PATTERN = r"^[A-Za-z0-9][A-Za-z0-9._-]*$"


@router.get("/articles", response_model=ArticleIndex)
async def list_articles(
    tag: str | None = Query(
        default=None,
        description="Filter articles by tag (case-insensitive)",
    ),
    q: str | None = Query(
        default=None,
        description="Match against title and description",
    ),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
):
    """Get the article index, newest first."""
    return get_content_store().list_articles(tag=tag, search=q, limit=limit, offset=offset)


@router.get("/tags", response_model=list[TagCount])
async def list_tags():
    """Get tag usage counts, most used first."""
    return get_content_store().tag_counts()


@router.post("/lint", response_model=LintReport)
async def lint_submitted_text(request: LintRequest):
    """Run the content checks over submitted article text."""
    settings = get_settings()
    return lint_text(request.text, request.source, settings.allowed_code_languages)


def _get_article_or_404(slug: str) -> Article:
    try:
        return get_content_store().get_article(slug)
    except ArticleNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Article not found") from exc
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.get("/articles/{slug}", response_model=Article)
async def get_article(
    slug: str = Path(..., pattern=SLUG_PATTERN, max_length=200),
):
    """Get a single article with its rendered HTML."""
    return _get_article_or_404(slug)


@router.get("/articles/{slug}/page")
async def get_article_page(
    slug: str = Path(..., pattern=SLUG_PATTERN, max_length=200),
):
    """Serve the article as a standalone HTML page."""
    article = _get_article_or_404(slug)
    settings = get_settings()
    return HTMLResponse(
        content=render_article_page(
            article,
            settings.site_url,
            settings.site_name,
            # Served from the API, so link back to the published site
            rel_prefix=f"{settings.site_url.rstrip('/')}/",
        )
    )


@router.get("/articles/{slug}/lint", response_model=LintReport)
async def lint_article(
    slug: str = Path(..., pattern=SLUG_PATTERN, max_length=200),
):
    """Lint the file behind ``slug``, even when it currently fails to parse."""
    try:
        path = get_content_store().source_path(slug)
    except ArticleNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Article not found") from exc
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    report = lint_file(path, get_settings().allowed_code_languages)
    # Don't expose server paths
    report.source = path.name
    if not report.ok:
        logger.info("Article %s has %d lint errors", slug, report.error_count)
    return report

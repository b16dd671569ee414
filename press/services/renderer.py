"""Markdown rendering for article bodies and pages.

Bodies go through Python-Markdown with the ``extra`` bundle (tables,
fenced code, footnotes, attribute lists) and ``toc`` for heading anchors.
Page templates are plain f-strings: no timestamps, stable ordering, so a
rebuild of unchanged content produces byte-identical output.
"""

import html
import math
import re
from dataclasses import dataclass, field

import markdown

from press.models.article import Article, ArticleSummary, Heading

WORDS_PER_MINUTE = 200

_WORD_RE = re.compile(r"\w+")


@dataclass
class RenderedBody:
    html: str
    toc: list[Heading] = field(default_factory=list)


def _flatten_toc(tokens: list[dict]) -> list[Heading]:
    headings: list[Heading] = []
    for token in tokens:
        headings.append(
            Heading(
                level=token["level"],
                id=token["id"],
                text=html.unescape(token["name"]),
            )
        )
        headings.extend(_flatten_toc(token.get("children", [])))
    return headings


def _converter(highlight: bool) -> markdown.Markdown:
    extensions: list[str] = ["extra", "toc"]
    extension_configs: dict[str, dict] = {"toc": {"permalink": False}}
    if highlight:
        extensions.append("codehilite")
        extension_configs["codehilite"] = {"guess_lang": False, "css_class": "highlight"}
    return markdown.Markdown(extensions=extensions, extension_configs=extension_configs)


def render_markdown(body: str, highlight: bool = False) -> RenderedBody:
    """Convert a markdown body to an HTML fragment plus its table of contents."""
    # A fresh converter per call: Markdown instances carry per-document state
    md = _converter(highlight)
    fragment = md.convert(body)
    return RenderedBody(html=fragment, toc=_flatten_toc(getattr(md, "toc_tokens", [])))


def reading_time_minutes(body: str) -> int:
    words = len(_WORD_RE.findall(body))
    return max(1, math.ceil(words / WORDS_PER_MINUTE))


def _tag_list(tags: list[str], rel_prefix: str) -> str:
    items = [
        f'<li><a href="{html.escape(rel_prefix)}tags/{tag_slug(t)}.html">{html.escape(t)}</a></li>'
        for t in tags
    ]
    return '<ul class="tags">' + "".join(items) + "</ul>"


def tag_slug(tag: str) -> str:
    """Filesystem/URL-safe form of a tag (``Kotlin Basics`` -> ``kotlin-basics``).

    Case is folded and whitespace runs become ``-``. Any other character
    outside ``[a-z0-9-]`` is written as ``_<hex codepoint>_`` so that tags
    such as ``C``, ``C#`` and ``C++`` keep distinct pages.
    """
    parts = []
    for ch in "-".join(tag.lower().split()):
        if ch == "-" or (ch.isascii() and ch.isalnum()):
            parts.append(ch)
        else:
            parts.append(f"_{ord(ch):x}_")
    return "".join(parts)


def _page(title: str, head_extra: str, body: str) -> str:
    return "\n".join(
        [
            "<!doctype html>",
            '<html lang="en">',
            "<head>",
            '<meta charset="utf-8" />',
            '<meta name="viewport" content="width=device-width, initial-scale=1" />',
            f"<title>{html.escape(title)}</title>",
            head_extra,
            "</head>",
            "<body>",
            body,
            "</body>",
            "</html>",
            "",
        ]
    )


def render_article_page(
    article: Article, site_url: str, site_name: str, rel_prefix: str = "../"
) -> str:
    """Render a standalone HTML document for one article.

    Includes OpenGraph and Twitter card meta so link previews work without
    JavaScript, and a canonical link under ``site_url``. ``rel_prefix`` is
    prepended to the home and tag links: relative for the static site, the
    site root when the page is served from elsewhere.
    """
    canonical = f"{site_url.rstrip('/')}/{article.slug}/"
    title_esc = html.escape(article.title)
    desc_esc = html.escape(article.description)
    published = article.pub_date.isoformat()

    head = [
        f'<meta name="description" content="{desc_esc}" />',
        '<meta property="og:type" content="article" />',
        f'<meta property="og:title" content="{title_esc}" />',
        f'<meta property="og:description" content="{desc_esc}" />',
        f'<meta property="og:url" content="{html.escape(canonical)}" />',
        f'<meta property="og:site_name" content="{html.escape(site_name)}" />',
        f'<meta property="article:published_time" content="{published}" />',
    ]
    head.extend(
        f'<meta property="article:tag" content="{html.escape(t)}" />' for t in article.tags
    )
    head.extend(
        [
            '<meta name="twitter:card" content="summary" />',
            f'<meta name="twitter:title" content="{title_esc}" />',
            f'<meta name="twitter:description" content="{desc_esc}" />',
            f'<link rel="canonical" href="{html.escape(canonical)}" />',
        ]
    )

    body = "\n".join(
        [
            f'<nav><a href="{html.escape(rel_prefix)}index.html">{html.escape(site_name)}</a></nav>',
            "<article>",
            "<header>",
            f"<h1>{title_esc}</h1>",
            f'<p class="description">{desc_esc}</p>',
            f'<p class="meta"><time datetime="{published}">'
            f"{article.pub_date.strftime('%B %d, %Y')}</time>"
            f" · {article.reading_time_minutes} min read</p>",
            _tag_list(article.tags, rel_prefix),
            "</header>",
            article.html,
            "</article>",
        ]
    )
    return _page(f"{article.title} | {site_name}", "\n".join(head), body)


def render_index_page(
    articles: list[ArticleSummary],
    site_name: str,
    heading: str | None = None,
    rel_prefix: str = "",
) -> str:
    """Render a list page linking to each article, in the order given."""
    items = []
    for a in articles:
        items.append(
            "<li>"
            f'<a href="{rel_prefix}{html.escape(a.slug)}/index.html">{html.escape(a.title)}</a> '
            f'<time datetime="{a.pub_date.isoformat()}">{a.pub_date.date().isoformat()}</time>'
            f"<p>{html.escape(a.description)}</p>"
            "</li>"
        )
    heading = heading or site_name
    body = "\n".join(
        [
            f"<h1>{html.escape(heading)}</h1>",
            '<ul class="articles">',
            *items,
            "</ul>",
        ]
    )
    return _page(heading if heading == site_name else f"{heading} | {site_name}", "", body)

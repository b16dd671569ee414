"""Article file parser: splits frontmatter from the markdown body.

An article is a ``---`` delimited YAML block holding exactly ``title``,
``description``, ``tags`` and ``pubDate``, followed by a markdown body.
Problems with either part are authoring errors and are raised as
``ArticleError`` subclasses so callers can report them without crashing.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from frontmatter.default_handlers import YAMLHandler
from pydantic import ValidationError

from press.models.article import ArticleMeta

logger = logging.getLogger(__name__)

_HANDLER = YAMLHandler()

_SAFE_SLUG_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")

ARTICLE_SUFFIXES = (".md", ".markdown")


class ArticleError(Exception):
    """Base class for article authoring errors."""

    def __init__(self, message: str, source: str = "<string>") -> None:
        super().__init__(message)
        self.message = message
        self.source = source

    def __str__(self) -> str:
        return f"{self.source}: {self.message}"


class FrontmatterError(ArticleError):
    """The frontmatter block is missing, malformed, or fails validation.

    ``field_errors`` holds one ``{"field", "type", "message"}`` dict per
    offending field when the block parsed but its values were rejected.
    ``kind`` is one of "missing", "unclosed", "yaml", "not-mapping" or
    "fields".
    """

    def __init__(
        self,
        message: str,
        source: str = "<string>",
        field_errors: list[dict[str, str]] | None = None,
        line: int | None = None,
        kind: str = "fields",
    ) -> None:
        super().__init__(message, source)
        self.field_errors = field_errors or []
        self.line = line
        self.kind = kind


class ArticleNotFoundError(ArticleError):
    """No article exists for the requested slug."""


@dataclass(frozen=True)
class ParsedArticle:
    slug: str
    meta: ArticleMeta
    body: str
    body_line: int = 1
    raw_metadata: dict[str, Any] = field(default_factory=dict)


def validate_slug(slug: str) -> str:
    """Validate a user-supplied article slug.

    Rejects path traversal sequences, slashes and other characters that
    could escape the content directory. Returns the slug unchanged if valid;
    raises ValueError otherwise.
    """
    if not slug or ".." in slug or not _SAFE_SLUG_RE.match(slug):
        raise ValueError(f"Invalid article slug: {slug!r}")
    return slug


def split_article(text: str, source: str = "<string>") -> tuple[dict[str, Any], str, int]:
    """Split raw article text into (metadata, body, body_line).

    ``body_line`` is the 1-based line number of the body's first line in
    ``text`` so later checks can point at the original file.
    """
    text = text.lstrip("\ufeff")
    stripped = text.lstrip()
    leading_lines = text[: len(text) - len(stripped)].count("\n")

    if not _HANDLER.detect(stripped):
        raise FrontmatterError(
            "missing frontmatter block (expected leading '---')", source, line=1, kind="missing"
        )

    try:
        fm, content = _HANDLER.split(stripped)
    except ValueError as exc:
        raise FrontmatterError(
            "frontmatter block is not closed (expected a second '---')",
            source,
            line=leading_lines + 1,
            kind="unclosed",
        ) from exc

    try:
        metadata = _HANDLER.load(fm)
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        # mark.line is 0-based and line 0 is the rest of the opening marker line
        line = leading_lines + mark.line + 1 if mark is not None else leading_lines + 1
        raise FrontmatterError(
            f"invalid YAML in frontmatter: {exc}", source, line=line, kind="yaml"
        ) from exc

    if metadata is None:
        metadata = {}
    if not isinstance(metadata, dict):
        raise FrontmatterError(
            f"frontmatter must be a mapping, got {type(metadata).__name__}",
            source,
            line=leading_lines + 1,
            kind="not-mapping",
        )

    body_start = len(stripped) - len(content)
    body_start += len(content) - len(content.lstrip())
    body_line = leading_lines + stripped[:body_start].count("\n") + 1

    return metadata, content.strip(), body_line


def _field_errors(exc: ValidationError) -> list[dict[str, str]]:
    errors = []
    for err in exc.errors():
        loc = err.get("loc") or ("<root>",)
        errors.append(
            {
                "field": str(loc[0]),
                "type": err.get("type", "value_error"),
                "message": err.get("msg", "invalid value"),
            }
        )
    return errors


def parse_article(text: str, slug: str, source: str | None = None) -> ParsedArticle:
    """Parse article text into validated metadata and markdown body."""
    source = source or slug
    metadata, body, body_line = split_article(text, source)
    try:
        meta = ArticleMeta.model_validate(metadata)
    except ValidationError as exc:
        field_errors = _field_errors(exc)
        summary = "; ".join(f"{e['field']}: {e['message']}" for e in field_errors)
        raise FrontmatterError(
            f"invalid frontmatter ({summary})", source, field_errors=field_errors
        ) from exc
    return ParsedArticle(
        slug=slug, meta=meta, body=body, body_line=body_line, raw_metadata=metadata
    )


def load_article(path: Path) -> ParsedArticle:
    """Read and parse an article file; the slug is the file stem."""
    path = Path(path)
    slug = validate_slug(path.stem)
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ArticleError("file is not valid UTF-8", str(path)) from exc
    except OSError as exc:
        raise ArticleError(f"cannot read file ({exc.strerror or exc})", str(path)) from exc
    logger.debug("Parsing article %s", path)
    return parse_article(text, slug, source=str(path))

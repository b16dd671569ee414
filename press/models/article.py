"""Article data models."""

import re
from datetime import date, datetime, time, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Keys an article's frontmatter must carry, in their on-disk spelling
FRONTMATTER_FIELDS = ("title", "description", "tags", "pubDate")

_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class ArticleMeta(BaseModel):
    """Frontmatter metadata: exactly title, description, tags and pubDate."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    title: str
    description: str
    tags: list[str]
    pub_date: datetime = Field(..., alias="pubDate")

    @field_validator("title", "description")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("tags")
    @classmethod
    def _tags_not_blank(cls, value: list[str]) -> list[str]:
        tags = [t.strip() for t in value]
        if any(not t for t in tags):
            raise ValueError("tags must not be blank")
        return tags

    @field_validator("pub_date", mode="before")
    @classmethod
    def _date_to_datetime(cls, value):
        """YAML turns unquoted dates into ``date`` objects; treat them as midnight UTC."""
        if isinstance(value, str) and _DATE_ONLY_RE.match(value.strip()):
            value = date.fromisoformat(value.strip())
        if isinstance(value, date) and not isinstance(value, datetime):
            return datetime.combine(value, time(), tzinfo=timezone.utc)
        return value

    @field_validator("pub_date")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class ArticleSummary(ArticleMeta):
    """Article metadata for index display."""

    slug: str
    reading_time_minutes: int = 1


class Heading(BaseModel):
    """A table-of-contents entry."""

    level: int
    id: str
    text: str


class Article(ArticleSummary):
    """Full article: metadata, markdown source and rendered HTML."""

    body: str
    html: str
    toc: list[Heading] = []

    def summary(self) -> ArticleSummary:
        return ArticleSummary.model_validate(
            self.model_dump(include=set(ArticleSummary.model_fields))
        )


class ArticleIndex(BaseModel):
    """Article list index."""

    articles: list[ArticleSummary]
    total: int


class TagCount(BaseModel):
    tag: str
    count: int

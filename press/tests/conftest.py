"""Shared fixtures for article-press tests."""

import pytest


def article_text(
    title: str = "Kotlin for JavaScript Developers",
    description: str = "A side-by-side tour.",
    tags: str = '["kotlin", "javascript"]',
    pub_date: str = '"2024-03-18T09:00:00Z"',
    body: str = "## Intro\n\nHello **world**.\n",
) -> str:
    """Build article source text with the four frontmatter fields."""
    return (
        "---\n"
        f'title: "{title}"\n'
        f'description: "{description}"\n'
        f"tags: {tags}\n"
        f"pubDate: {pub_date}\n"
        "---\n\n"
        f"{body}"
    )


@pytest.fixture(autouse=True)
def _reset_global_state():
    """Reset all module-level singletons and caches between tests."""
    yield

    # 1. Settings LRU cache
    from press.config import get_settings

    get_settings.cache_clear()

    # 2. Content store singleton
    from press.services.content_store import get_content_store

    get_content_store.cache_clear()

    # 3. Health check cache
    import press.main as main_mod

    main_mod._health_cache = None


@pytest.fixture
def content_dir(tmp_path):
    path = tmp_path / "content"
    path.mkdir()
    return path


@pytest.fixture
def write_article(content_dir):
    """Return a helper that writes ``<slug>.md`` into the content dir."""

    def _write(slug: str, text: str | None = None, **fields) -> str:
        path = content_dir / f"{slug}.md"
        path.write_text(text if text is not None else article_text(**fields), encoding="utf-8")
        return str(path)

    return _write


@pytest.fixture
def mock_settings(monkeypatch, content_dir):
    """Provide a Settings object pointing at a temporary content directory."""
    from press.config import Settings, get_settings
    from press.services.content_store import get_content_store

    test_settings = Settings(
        content_dir=str(content_dir),
        site_url="https://press.test",
        site_name="Press Test",
        allowed_code_languages=["javascript", "typescript", "kotlin"],
        highlight_code=False,
    )

    get_settings.cache_clear()
    get_content_store.cache_clear()
    monkeypatch.setattr("press.config.get_settings", lambda: test_settings)

    # Patch get_settings in every module that imports it directly
    # (from press.config import get_settings creates a local binding that
    # the press.config monkeypatch above does not affect)
    for mod_path in [
        "press.services.content_store",
        "press.routers.articles",
    ]:
        monkeypatch.setattr(f"{mod_path}.get_settings", lambda: test_settings)

    return test_settings

"""Build the static article site.

Usage:
    python -m scripts.build_site --out dist
    python -m scripts.build_site --out dist --content content/ --site-url https://example.org
"""

import argparse
import logging
import sys

from press.config import get_settings
from press.services.content_store import ContentStore
from press.services.site_builder import build_site

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Render articles into a static HTML site")
    parser.add_argument("--out", required=True, help="Output directory")
    parser.add_argument("--content", default=settings.content_dir, help="Article directory")
    parser.add_argument("--site-url", default=settings.site_url)
    parser.add_argument("--site-name", default=settings.site_name)
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail when any article could not be published",
    )
    args = parser.parse_args(argv)

    store = ContentStore(args.content, highlight=settings.highlight_code)
    if not store.is_available():
        print(f"error: content directory not found: {args.content}", file=sys.stderr)
        return 2

    result = build_site(store, args.out, args.site_url, args.site_name)

    print("\nBuild complete:")
    print(f"  Articles: {result.articles}")
    print(f"  Pages:    {len(result.pages)}")
    print(f"  Skipped:  {len(result.skipped)}")

    if args.strict and result.skipped:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

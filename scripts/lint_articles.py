"""Lint article files from the command line.

Usage:
    python -m scripts.lint_articles                    # Lint the configured content dir
    python -m scripts.lint_articles content/ post.md   # Lint specific files/dirs
    python -m scripts.lint_articles --format json      # Machine-readable output

Exit codes: 0 no errors, 1 lint errors found, 2 a path does not exist.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from press.config import get_settings
from press.services.linter import lint_paths

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Check article frontmatter, code fences, tables and HTML")
    parser.add_argument("paths", nargs="*", help="Article files or directories (default: content dir)")
    parser.add_argument("--format", choices=("text", "json"), default="text")
    parser.add_argument(
        "--language",
        action="append",
        dest="languages",
        help="Allowed code fence language (repeatable; default from settings)",
    )
    parser.add_argument(
        "--strict", action="store_true", help="Treat warnings as errors (for CI)"
    )
    args = parser.parse_args(argv)

    paths = [Path(p) for p in args.paths] or [Path(settings.content_dir)]
    missing = [p for p in paths if not p.exists()]
    if missing:
        for p in missing:
            print(f"error: no such file or directory: {p}", file=sys.stderr)
        return 2

    languages = args.languages or settings.allowed_code_languages
    reports = lint_paths(paths, languages)

    errors = sum(r.error_count for r in reports)
    warnings = sum(r.warning_count for r in reports)

    if args.format == "json":
        print(json.dumps([r.model_dump(mode="json") for r in reports], indent=2))
    else:
        for report in reports:
            for issue in report.issues:
                print(issue.format(report.source))
        print(f"\n{len(reports)} files checked: {errors} errors, {warnings} warnings")

    if errors or (args.strict and warnings):
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

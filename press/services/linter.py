"""Content-integrity checks for article files.

Each check reports ``LintIssue`` entries instead of raising: a bad article
is an authoring mistake to point at, not a failure of the tool. Checks:

- frontmatter parses into exactly title/description/tags/pubDate
- every fenced code block carries a recognized language tag
- every markdown table row has the header's column count
- the rendered HTML closes every tag it opens
"""

import logging
import re
from collections.abc import Iterable
from html.parser import HTMLParser
from pathlib import Path

from pydantic import ValidationError

from press.models.article import FRONTMATTER_FIELDS, ArticleMeta
from press.models.lint import LintIssue, LintReport, Severity
from press.services.article_parser import (
    ARTICLE_SUFFIXES,
    FrontmatterError,
    split_article,
)
from press.services.renderer import render_markdown

logger = logging.getLogger(__name__)

# Python-Markdown's fenced_code: the fence starts in column 0 and is closed
# only by the identical fence string
_FENCE_OPEN_RE = re.compile(r"^(`{3,}|~{3,})(.*)$")
_FENCE_CLOSE_RE = re.compile(r"^(`{3,}|~{3,}) *$")
_ATTR_CLASS_RE = re.compile(r"(?:^|\s)\.([\w#.+-]+)")
_INDENTED_RE = re.compile(r"^(?: {4}|\t)")
_INDENTED_FENCE_RE = re.compile(r"^ {1,3}(?:`{3,}|~{3,})")
_DELIM_CELL_RE = re.compile(r"^\s*:?-+:?\s*$")

VOID_ELEMENTS = frozenset(
    {
        "area", "base", "br", "col", "embed", "hr", "img", "input",
        "link", "meta", "source", "track", "wbr",
    }
)


# --- frontmatter ---------------------------------------------------------


def _key_line(lines: list[str], key: str, stop: int) -> int | None:
    pattern = re.compile(rf"^{re.escape(key)}\s*:")
    for idx, line in enumerate(lines[: stop - 1]):
        if pattern.match(line):
            return idx + 1
    return None


def check_frontmatter(metadata: dict, lines: list[str], body_line: int) -> list[LintIssue]:
    """Validate the frontmatter mapping against the article metadata model."""
    issues: list[LintIssue] = []
    try:
        meta = ArticleMeta.model_validate(metadata)
    except ValidationError as exc:
        meta = None
        for err in exc.errors():
            loc = err.get("loc") or ("<root>",)
            name = str(loc[0])
            line = _key_line(lines, name, body_line)
            if err["type"] == "missing":
                issues.append(
                    LintIssue(
                        rule="frontmatter-field-missing",
                        message=f"required field '{name}' is missing",
                        line=line,
                    )
                )
            elif err["type"] == "extra_forbidden":
                allowed = ", ".join(FRONTMATTER_FIELDS)
                issues.append(
                    LintIssue(
                        rule="frontmatter-unknown-field",
                        message=f"unknown field '{name}' (allowed: {allowed})",
                        line=line,
                    )
                )
            else:
                where = ".".join(str(p) for p in loc)
                issues.append(
                    LintIssue(
                        rule="frontmatter-field-type",
                        message=f"field '{where}': {err['msg']}",
                        line=line,
                    )
                )

    if meta is not None:
        seen: set[str] = set()
        for tag in meta.tags:
            key = tag.lower()
            if key in seen:
                issues.append(
                    LintIssue(
                        rule="frontmatter-duplicate-tag",
                        message=f"tag '{tag}' appears more than once",
                        line=_key_line(lines, "tags", body_line),
                        severity=Severity.WARNING,
                    )
                )
            seen.add(key)
    return issues


# --- fenced code ---------------------------------------------------------


def iter_fences(body_lines: list[str]) -> Iterable[tuple[int, int | None, str]]:
    """Yield (open_index, close_index, info) for each fenced block.

    ``close_index`` is None for a fence that runs to the end of the body.
    """
    idx = 0
    while idx < len(body_lines):
        match = _FENCE_OPEN_RE.match(body_lines[idx])
        if not match:
            idx += 1
            continue
        fence, info = match.group(1), match.group(2).strip()
        # A backtick fence's info string may not contain backticks
        if fence[0] == "`" and "`" in info:
            idx += 1
            continue
        close = None
        for j in range(idx + 1, len(body_lines)):
            closing = _FENCE_CLOSE_RE.match(body_lines[j])
            if closing and closing.group(1) == fence:
                close = j
                break
        yield idx, close, info
        if close is None:
            return
        idx = close + 1


def fence_language(info: str) -> str:
    """Language of a fence info string: ``kotlin``, ``.kotlin`` or ``{ .kotlin }``."""
    info = info.strip()
    if not info:
        return ""
    if info.startswith("{"):
        # Attribute list: the first class names the language
        match = _ATTR_CLASS_RE.search(info.strip("{}"))
        return match.group(1).lower() if match else ""
    return info.split()[0].lstrip(".").lower()


def check_code_fences(
    body_lines: list[str], body_line: int, allowed_languages: Iterable[str]
) -> list[LintIssue]:
    allowed = {lang.lower() for lang in allowed_languages}
    issues: list[LintIssue] = []
    for open_idx, close_idx, info in iter_fences(body_lines):
        line = body_line + open_idx
        language = fence_language(info)
        if close_idx is None:
            issues.append(
                LintIssue(
                    rule="code-fence-unclosed",
                    message="code fence is never closed",
                    line=line,
                )
            )
        if not language:
            issues.append(
                LintIssue(
                    rule="code-fence-language-missing",
                    message="code fence has no language tag",
                    line=line,
                )
            )
        elif language not in allowed:
            issues.append(
                LintIssue(
                    rule="code-fence-language-unknown",
                    message=(
                        f"code fence language '{language}' is not recognized "
                        f"(allowed: {', '.join(sorted(allowed))})"
                    ),
                    line=line,
                )
            )

    code = _code_indexes(body_lines)
    for idx, text in enumerate(body_lines):
        if idx not in code and _INDENTED_FENCE_RE.match(text):
            issues.append(
                LintIssue(
                    rule="code-fence-indented",
                    message="indented code fence is not rendered as a code block",
                    line=body_line + idx,
                )
            )
    return issues


# --- tables --------------------------------------------------------------


def split_table_row(line: str) -> list[str]:
    """Split a table row into cells.

    Escaped pipes and pipes inside backtick code spans stay in their cell.
    """
    row = line.strip()
    if row.startswith("|"):
        row = row[1:]
    if row.endswith("|") and not row.endswith("\\|"):
        row = row[:-1]

    cells: list[str] = []
    buf: list[str] = []
    in_code = False
    idx = 0
    while idx < len(row):
        ch = row[idx]
        if ch == "\\" and idx + 1 < len(row):
            buf.append(row[idx : idx + 2])
            idx += 2
            continue
        if ch == "`":
            in_code = not in_code
        elif ch == "|" and not in_code:
            cells.append("".join(buf).strip())
            buf = []
            idx += 1
            continue
        buf.append(ch)
        idx += 1
    cells.append("".join(buf).strip())
    return cells


def _is_delimiter_row(line: str) -> bool:
    if "|" not in line or "-" not in line:
        return False
    return all(_DELIM_CELL_RE.match(cell) for cell in split_table_row(line))


def _code_indexes(body_lines: list[str]) -> set[int]:
    """Indexes of lines inside fenced or indented code blocks."""
    inside: set[int] = set()
    for open_idx, close_idx, _ in iter_fences(body_lines):
        end = close_idx if close_idx is not None else len(body_lines) - 1
        inside.update(range(open_idx, end + 1))

    # An indented block starts after a blank line and runs through
    # indented or blank lines
    idx = 0
    while idx < len(body_lines):
        starts_block = (
            idx not in inside
            and _INDENTED_RE.match(body_lines[idx])
            and body_lines[idx].strip()
            and (idx == 0 or not body_lines[idx - 1].strip())
        )
        if not starts_block:
            idx += 1
            continue
        while idx < len(body_lines) and idx not in inside and (
            _INDENTED_RE.match(body_lines[idx]) or not body_lines[idx].strip()
        ):
            inside.add(idx)
            idx += 1
    return inside


def check_tables(body_lines: list[str], body_line: int) -> list[LintIssue]:
    issues: list[LintIssue] = []
    fenced = _code_indexes(body_lines)
    idx = 0
    while idx < len(body_lines) - 1:
        header = body_lines[idx]
        if (
            idx in fenced
            or idx + 1 in fenced
            or "|" not in header
            or not _is_delimiter_row(body_lines[idx + 1])
        ):
            idx += 1
            continue

        columns = len(split_table_row(header))
        row_idx = idx + 1
        while (
            row_idx < len(body_lines)
            and row_idx not in fenced
            and body_lines[row_idx].strip()
            and "|" in body_lines[row_idx]
        ):
            count = len(split_table_row(body_lines[row_idx]))
            if count != columns:
                kind = "delimiter row" if row_idx == idx + 1 else "row"
                issues.append(
                    LintIssue(
                        rule="table-column-mismatch",
                        message=f"table {kind} has {count} columns, header has {columns}",
                        line=body_line + row_idx,
                    )
                )
            row_idx += 1
        idx = row_idx
    return issues


# --- rendered HTML -------------------------------------------------------


class TagBalanceChecker(HTMLParser):
    """Track open elements and record unclosed or stray end tags."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.stack: list[tuple[str, int]] = []
        self.unclosed: list[tuple[str, int]] = []
        self.unexpected: list[tuple[str, int]] = []

    def handle_starttag(self, tag, attrs):
        if tag not in VOID_ELEMENTS:
            self.stack.append((tag, self.getpos()[0]))

    def handle_endtag(self, tag):
        if tag in VOID_ELEMENTS:
            return
        line = self.getpos()[0]
        for pos in range(len(self.stack) - 1, -1, -1):
            if self.stack[pos][0] == tag:
                # Anything opened after the match was never closed
                self.unclosed.extend(self.stack[pos + 1 :])
                del self.stack[pos:]
                return
        self.unexpected.append((tag, line))

    def close(self):
        super().close()
        self.unclosed.extend(self.stack)
        self.stack = []


def check_html(rendered: str) -> list[LintIssue]:
    checker = TagBalanceChecker()
    checker.feed(rendered)
    checker.close()
    issues = [
        LintIssue(
            rule="html-unclosed-tag",
            message=f"<{tag}> opened on rendered HTML line {line} is never closed",
        )
        for tag, line in sorted(checker.unclosed, key=lambda t: t[1])
    ]
    issues.extend(
        LintIssue(
            rule="html-unexpected-end-tag",
            message=f"</{tag}> on rendered HTML line {line} has no matching open tag",
        )
        for tag, line in checker.unexpected
    )
    return issues


# --- entry points --------------------------------------------------------


def lint_text(text: str, source: str, allowed_languages: Iterable[str]) -> LintReport:
    """Run every content check over raw article text."""
    allowed_languages = list(allowed_languages)
    lines = text.splitlines()
    issues: list[LintIssue] = []

    try:
        metadata, body, body_line = split_article(text, source)
    except FrontmatterError as exc:
        rule = "frontmatter-missing" if exc.kind in ("missing", "unclosed") else "frontmatter-yaml"
        issues.append(LintIssue(rule=rule, message=exc.message, line=exc.line))
        body, body_line = text, 1
    else:
        issues.extend(check_frontmatter(metadata, lines, body_line))

    body_lines = body.splitlines()
    issues.extend(check_code_fences(body_lines, body_line, allowed_languages))
    issues.extend(check_tables(body_lines, body_line))
    issues.extend(check_html(render_markdown(body).html))

    report = LintReport(source=source, issues=issues)
    if issues:
        logger.debug(
            "Lint %s: %d errors, %d warnings", source, report.error_count, report.warning_count
        )
    return report


def lint_file(path: Path, allowed_languages: Iterable[str]) -> LintReport:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return LintReport(
            source=str(path),
            issues=[LintIssue(rule="file-encoding", message="file is not valid UTF-8")],
        )
    except OSError as exc:
        return LintReport(
            source=str(path),
            issues=[
                LintIssue(
                    rule="file-unreadable",
                    message=f"cannot read file: {exc.strerror or exc}",
                )
            ],
        )
    return lint_text(text, str(path), allowed_languages)


def expand_paths(paths: Iterable[Path]) -> list[Path]:
    """Expand directories into their article files (sorted, recursive)."""
    files: list[Path] = []
    for path in paths:
        path = Path(path)
        if path.is_dir():
            files.extend(
                sorted(p for p in path.rglob("*") if p.is_file() and p.suffix in ARTICLE_SUFFIXES)
            )
        else:
            files.append(path)
    return files


def lint_paths(paths: Iterable[Path], allowed_languages: Iterable[str]) -> list[LintReport]:
    allowed_languages = list(allowed_languages)
    return [lint_file(p, allowed_languages) for p in expand_paths(paths)]

"""Tests for the content linter: frontmatter, fences, tables, HTML."""

from pathlib import Path

from conftest import article_text

from press.models.lint import Severity
from press.services.linter import (
    expand_paths,
    lint_file,
    lint_paths,
    lint_text,
    split_table_row,
)

LANGUAGES = ["javascript", "typescript", "kotlin"]

# article_text() puts the first body line on line 8
BODY_LINE = 8

REPO_CONTENT = Path(__file__).resolve().parents[2] / "content"


def _rules(report):
    return [issue.rule for issue in report.issues]


def _lint_body(body: str):
    return lint_text(article_text(body=body), "post.md", LANGUAGES)


# --- clean content -------------------------------------------------------


def test_clean_article_has_no_issues():
    report = lint_text(article_text(), "post.md", LANGUAGES)

    assert report.issues == []
    assert report.ok
    assert report.error_count == 0


def test_repository_content_lints_clean():
    reports = lint_paths([REPO_CONTENT], LANGUAGES)

    assert reports
    for report in reports:
        assert report.issues == [], report.issues


# --- frontmatter ---------------------------------------------------------


def test_missing_frontmatter():
    report = lint_text("# Title\n\nBody text.\n", "post.md", LANGUAGES)

    assert _rules(report) == ["frontmatter-missing"]
    assert report.issues[0].line == 1
    assert not report.ok


def test_unclosed_frontmatter_is_reported_as_missing():
    report = lint_text('---\ntitle: "x"\n\nBody\n', "post.md", LANGUAGES)

    assert "frontmatter-missing" in _rules(report)


def test_invalid_yaml():
    report = lint_text("---\ntitle: [oops\n---\n\nBody\n", "post.md", LANGUAGES)

    assert _rules(report) == ["frontmatter-yaml"]


def test_missing_field_reported_by_name():
    text = '---\ntitle: "T"\ndescription: "D"\ntags: ["kotlin"]\n---\n\nBody\n'
    report = lint_text(text, "post.md", LANGUAGES)

    assert _rules(report) == ["frontmatter-field-missing"]
    assert "pubDate" in report.issues[0].message


def test_unknown_field_points_at_its_line():
    text = article_text().replace("---\n\n", "draft: true\n---\n\n", 1)
    report = lint_text(text, "post.md", LANGUAGES)

    assert _rules(report) == ["frontmatter-unknown-field"]
    assert report.issues[0].line == 6


def test_wrong_type_points_at_field_line():
    report = lint_text(article_text(tags='"kotlin"'), "post.md", LANGUAGES)

    assert _rules(report) == ["frontmatter-field-type"]
    assert report.issues[0].line == 4


def test_bad_date():
    report = lint_text(article_text(pub_date='"last tuesday"'), "post.md", LANGUAGES)

    assert _rules(report) == ["frontmatter-field-type"]
    assert "pubDate" in report.issues[0].message


def test_duplicate_tag_is_a_warning():
    report = lint_text(article_text(tags='["kotlin", "Kotlin"]'), "post.md", LANGUAGES)

    assert _rules(report) == ["frontmatter-duplicate-tag"]
    assert report.issues[0].severity == Severity.WARNING
    assert report.ok
    assert report.warning_count == 1


# --- code fences ---------------------------------------------------------


def test_fence_without_language():
    report = _lint_body("Intro\n\n```\nplain\n```\n")

    assert _rules(report) == ["code-fence-language-missing"]
    assert report.issues[0].line == BODY_LINE + 2


def test_fence_with_unknown_language():
    report = _lint_body("```python\nprint(1)\n```\n")

    assert _rules(report) == ["code-fence-language-unknown"]
    assert "python" in report.issues[0].message


def test_fence_language_is_case_insensitive():
    report = _lint_body("```Kotlin\nval x = 1\n```\n")

    assert report.issues == []


def test_tilde_fence_and_nested_backticks():
    body = "~~~kotlin\nval s = \"\"\"\n```\n\"\"\"\n~~~\n\n```typescript\nlet x = 1;\n```\n"
    report = _lint_body(body)

    assert report.issues == []


def test_unclosed_fence():
    report = _lint_body("```kotlin\nval x = 1\n")

    assert "code-fence-unclosed" in _rules(report)


def test_longer_closing_fence_does_not_close():
    report = _lint_body("````kotlin\nval x = 1\n`````\n")

    assert "code-fence-unclosed" in _rules(report)


def test_indented_fence_is_not_a_code_block():
    report = _lint_body("Intro\n\n  ```kotlin\nval x = 1\n  ```\n")

    assert _rules(report) == ["code-fence-indented", "code-fence-indented"]
    assert report.issues[0].line == BODY_LINE + 2


def test_attribute_list_fence_language():
    report = _lint_body("``` { .kotlin }\nval x = 1\n```\n\n```{.python}\nx = 1\n```\n")

    assert _rules(report) == ["code-fence-language-unknown"]
    assert "'python'" in report.issues[0].message


# --- tables --------------------------------------------------------------


def test_table_row_with_extra_column():
    body = "| a | b |\n|---|---|\n| 1 | 2 |\n| 1 | 2 | 3 |\n"
    report = _lint_body(body)

    assert _rules(report) == ["table-column-mismatch"]
    assert report.issues[0].line == BODY_LINE + 3
    assert "3 columns, header has 2" in report.issues[0].message


def test_table_delimiter_mismatch():
    body = "| a | b | c |\n|---|---|\n| 1 | 2 | 3 |\n"
    report = _lint_body(body)

    assert _rules(report) == ["table-column-mismatch"]
    assert "delimiter row" in report.issues[0].message


def test_table_without_outer_pipes():
    body = "a | b\n--- | ---\n1 | 2\n"
    report = _lint_body(body)

    assert report.issues == []


def test_pipes_in_code_and_escaped_pipes_stay_in_cell():
    body = "| op | kotlin |\n|:---|---:|\n| or | `a || b` |\n| pipe | a \\| b |\n"
    report = _lint_body(body)

    assert report.issues == []


def test_table_inside_fence_is_ignored():
    body = "```text\n| a | b |\n|---|---|\n| 1 |\n```\n"
    report = lint_text(article_text(body=body), "post.md", LANGUAGES + ["text"])

    assert report.issues == []


def test_table_inside_indented_code_is_ignored():
    report = _lint_body("Example:\n\n    | a | b |\n    |---|---|\n    | 1 |\n")

    assert report.issues == []


def test_split_table_row():
    assert split_table_row("| a | `x | y` | c \\| d |") == ["a", "`x | y`", "c \\| d"]


# --- rendered HTML -------------------------------------------------------


def test_unclosed_inline_html():
    report = _lint_body("Some <span>text\n")

    assert _rules(report) == ["html-unclosed-tag"]
    assert "<span>" in report.issues[0].message


def test_stray_end_tag():
    report = _lint_body("Some text </em> more\n")

    assert _rules(report) == ["html-unexpected-end-tag"]


def test_void_elements_need_no_end_tag():
    report = _lint_body("Line one<br>\nLine two <img src=\"a.png\" alt=\"a\">\n")

    assert report.issues == []


# --- files ---------------------------------------------------------------


def test_lint_file_reports_source_path(tmp_path):
    path = tmp_path / "post.md"
    path.write_text("no frontmatter\n", encoding="utf-8")

    report = lint_file(path, LANGUAGES)

    assert report.source == str(path)
    assert report.issues[0].format(report.source) == (
        f"{path}:1: error: missing frontmatter block (expected leading '---') "
        "[frontmatter-missing]"
    )


def test_lint_file_non_utf8(tmp_path):
    path = tmp_path / "latin.md"
    path.write_bytes(b"\xff\xfe\x00")

    report = lint_file(path, LANGUAGES)

    assert _rules(report) == ["file-encoding"]


def test_expand_paths_finds_articles_sorted(tmp_path):
    (tmp_path / "b.md").write_text("x", encoding="utf-8")
    (tmp_path / "a.markdown").write_text("x", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("x", encoding="utf-8")
    nested = tmp_path / "nested"
    nested.mkdir()
    (nested / "c.md").write_text("x", encoding="utf-8")

    files = expand_paths([tmp_path])

    assert [p.name for p in files] == ["a.markdown", "b.md", "c.md"]


def test_lint_paths_one_report_per_file(tmp_path):
    (tmp_path / "good.md").write_text(article_text(), encoding="utf-8")
    (tmp_path / "bad.md").write_text("nothing here\n", encoding="utf-8")

    reports = lint_paths([tmp_path], LANGUAGES)

    assert [Path(r.source).name for r in reports] == ["bad.md", "good.md"]
    assert [r.ok for r in reports] == [False, True]


def test_lint_file_unreadable(tmp_path, monkeypatch):
    path = tmp_path / "locked.md"
    path.write_text(article_text(), encoding="utf-8")

    def deny(self, *args, **kwargs):
        raise PermissionError(13, "Permission denied", str(self))

    monkeypatch.setattr(Path, "read_text", deny)
    report = lint_file(path, LANGUAGES)

    assert _rules(report) == ["file-unreadable"]
    assert "Permission denied" in report.issues[0].message

"""Content lint result models."""

from enum import Enum

from pydantic import BaseModel, computed_field


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class LintIssue(BaseModel):
    """A single content-integrity finding."""

    rule: str
    message: str
    line: int | None = None
    severity: Severity = Severity.ERROR

    def format(self, source: str) -> str:
        where = f"{source}:{self.line}" if self.line is not None else source
        return f"{where}: {self.severity.value}: {self.message} [{self.rule}]"


class LintReport(BaseModel):
    """All findings for one article source."""

    source: str
    issues: list[LintIssue] = []

    @computed_field
    @property
    def error_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == Severity.ERROR)

    @computed_field
    @property
    def warning_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == Severity.WARNING)

    @computed_field
    @property
    def ok(self) -> bool:
        return self.error_count == 0


class LintRequest(BaseModel):
    """Raw article text submitted for linting."""

    text: str
    source: str = "<request>"

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class FileStatus(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"


class LineNumbers(BaseModel):
    """New-file (added) and old-file (removed) line numbers touched by a diff."""
    added: List[int] = Field(default_factory=list)
    removed: List[int] = Field(default_factory=list)


class DiffStatEntry(BaseModel):
    path: str
    insertions: int = 0
    deletions: int = 0
    binary: bool = False


class DiffSummary(BaseModel):
    """Per-file stats plus the totals reported by git itself."""
    files: List[DiffStatEntry] = Field(default_factory=list)
    insertions: int = 0
    deletions: int = 0


class FileChange(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    status: FileStatus
    insertions: int = 0
    deletions: int = 0
    binary: bool = False
    diff: Optional[str] = None
    line_numbers: Optional[LineNumbers] = None

    @property
    def changes(self) -> int:
        return self.insertions + self.deletions


class ChangeSet(BaseModel):
    files: List[FileChange] = Field(default_factory=list)
    total_insertions: int = 0
    total_deletions: int = 0
    total_files: int = 0
    commits: List[str] = Field(default_factory=list)  # log order, never re-sorted


class Ticket(BaseModel):
    key: str
    summary: str
    description: Optional[str] = None
    issue_type: str = "Task"
    status: str = "Unknown"
    assignee: Optional[str] = None
    reporter: Optional[str] = None
    parent_key: Optional[str] = None
    parent_summary: Optional[str] = None


class PRTemplate(BaseModel):
    name: str
    content: str


class RepoInfo(BaseModel):
    owner: str
    repo: str
    current_branch: str


class PromptContext(BaseModel):
    ticket: Ticket
    changes: ChangeSet
    template: Optional[PRTemplate] = None
    diff_content: Optional[str] = None
    repo: Optional[RepoInfo] = None


class GeneratedContent(BaseModel):
    title: str = ""
    body: str = ""
    summary: Optional[str] = None
    provider: Optional[str] = None  # None when produced without AI

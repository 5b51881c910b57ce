from typing import List, Optional, Protocol

from .models import DiffSummary


class GitReader(Protocol):
    """Read-only access to the repository the pull request is drafted from."""

    def current_branch_name(self) -> str:
        ...

    def diff_summary(self, base_ref: str) -> DiffSummary:
        """Per-file insertion/deletion stats for ``base_ref...HEAD``."""
        ...

    def diff_text(self, base_ref: str, path: Optional[str] = None) -> str:
        """Raw unified diff for ``base_ref...HEAD``, optionally limited to one path."""
        ...

    def log(self, base_ref: str) -> List[str]:
        """Commit messages of ``base_ref..HEAD`` in the order git reports them."""
        ...

import asyncio
import re
from typing import Optional

from core.contracts.git import GitReader
from core.contracts.models import ChangeSet, DiffStatEntry, FileChange, FileStatus
from core.diff_parser import parse_diff_line_numbers
from utils.errors import AIPRException, ComparisonError, PartialDiffFetchError
from utils.logger import logger

RENAME_MARKER = " => "
BRACED_RENAME = re.compile(r"\{([^{}]*) => ([^{}]*)\}")
TRUNCATION_MARKER = "... (diff truncated for brevity)"


def determine_status(path: str, insertions: int, deletions: int) -> FileStatus:
    """
    Derives a file's status from its diff stats.

    A path containing ``" => "`` is a rename whatever its counts; otherwise a
    file with only insertions is added, one with only deletions is deleted,
    and everything else (including 0/0 binary files) is modified.
    """
    if RENAME_MARKER in path:
        return FileStatus.RENAMED
    if insertions > 0 and deletions == 0:
        return FileStatus.ADDED
    if insertions == 0 and deletions > 0:
        return FileStatus.DELETED
    return FileStatus.MODIFIED


def resolve_rename_path(path: str) -> str:
    """
    Returns the destination path of a rename as printed by ``git diff --numstat``.

    Handles both ``old => new`` and ``dir/{old => new}/file``.
    """
    if RENAME_MARKER not in path:
        return path
    if BRACED_RENAME.search(path):
        resolved = BRACED_RENAME.sub(lambda m: m.group(2), path)
        return resolved.replace("//", "/")
    return path.split(RENAME_MARKER, 1)[1]


class ChangeAggregator:
    """
    Builds the ChangeSet between a base branch and HEAD.
    """

    def __init__(self, reader: GitReader):
        self.reader = reader

    async def get_changes(self, base_branch: str, include_detailed_diff: bool = False) -> ChangeSet:
        """
        Collects per-file changes, totals and commit messages against ``base_branch``.

        Args:
            base_branch: The branch the pull request will target.
            include_detailed_diff: Also fetch each file's own diff and its line numbers.

        Returns:
            The aggregated ChangeSet. Totals are the ones git reports for the
            whole comparison, not a sum over the files.

        Raises:
            ComparisonError: If ``base_branch`` is the branch currently checked out.
        """
        current = await asyncio.to_thread(self.reader.current_branch_name)
        if current == base_branch:
            raise ComparisonError(
                f"Cannot compare branch with itself. Current branch is '{base_branch}'. "
                "Please checkout a feature branch."
            )

        summary = await asyncio.to_thread(self.reader.diff_summary, base_branch)
        commits = await asyncio.to_thread(self.reader.log, base_branch)
        logger.info(f"Found {len(summary.files)} changed files and {len(commits)} commits against '{base_branch}'.")

        if include_detailed_diff:
            files = list(await asyncio.gather(
                *(self._detailed_file_change(base_branch, entry) for entry in summary.files)
            ))
        else:
            files = [self._file_change(entry) for entry in summary.files]

        return ChangeSet(
            files=files,
            total_insertions=summary.insertions,
            total_deletions=summary.deletions,
            total_files=len(files),
            commits=commits,
        )

    async def get_diff_content(self, base_branch: str, max_lines: int = 1000) -> str:
        """
        Returns the overall diff against ``base_branch``, cut to ``max_lines`` lines.
        """
        diff = await asyncio.to_thread(self.reader.diff_text, base_branch)
        lines = diff.split("\n")
        if len(lines) > max_lines:
            return "\n".join(lines[:max_lines]) + f"\n\n{TRUNCATION_MARKER}"
        return diff

    def _file_change(
        self,
        entry: DiffStatEntry,
        diff: Optional[str] = None,
    ) -> FileChange:
        return FileChange(
            path=entry.path,
            status=determine_status(entry.path, entry.insertions, entry.deletions),
            insertions=entry.insertions,
            deletions=entry.deletions,
            binary=entry.binary,
            diff=diff,
            line_numbers=parse_diff_line_numbers(diff) if diff is not None else None,
        )

    async def _detailed_file_change(self, base_branch: str, entry: DiffStatEntry) -> FileChange:
        try:
            diff = await self._fetch_file_diff(base_branch, entry.path)
        except PartialDiffFetchError as e:
            logger.warning(f"Skipping detailed diff for '{entry.path}': {e}")
            return self._file_change(entry)
        return self._file_change(entry, diff)

    async def _fetch_file_diff(self, base_branch: str, path: str) -> str:
        target = resolve_rename_path(path)
        try:
            return await asyncio.to_thread(self.reader.diff_text, base_branch, target)
        except (AIPRException, OSError, ValueError) as e:
            raise PartialDiffFetchError(f"Could not read diff for '{target}': {e}") from e


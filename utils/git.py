import re
import subprocess
from typing import List, Optional, Tuple

from core.contracts.models import DiffStatEntry, DiffSummary
from utils.errors import AIPRException, GitError

GITHUB_URL = re.compile(r"github\.com[/:]([\w.-]+)/([\w.-]+?)(?:\.git)?/?$")
SHORTSTAT_INSERTIONS = re.compile(r"(\d+) insertions?\(\+\)")
SHORTSTAT_DELETIONS = re.compile(r"(\d+) deletions?\(-\)")


def _run_git(args: List[str]) -> str:
    """
    Runs a git command and returns its standard output.

    Raises:
        GitError: If git is missing or the command exits with an error.
    """
    try:
        result = subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            check=True,
            encoding="utf-8",
            errors="replace",
        )
        return result.stdout
    except FileNotFoundError:
        raise GitError("Git is not installed or not in PATH.")
    except subprocess.CalledProcessError as e:
        raise GitError(f"git {' '.join(args)} failed: {(e.stderr or '').strip()}") from e


def is_git_repository() -> bool:
    """Checks if the current directory is a Git repository."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--is-inside-work-tree"],
            capture_output=True,
            text=True,
            check=True,
        )
        return result.stdout.strip() == "true"
    except (subprocess.CalledProcessError, FileNotFoundError):
        return False


def get_current_branch_name() -> str:
    """
    Gets the current Git branch name.

    Returns:
        The current branch name.

    Raises:
        AIPRException: If the git command fails or not in a git repository.
    """
    if not is_git_repository():
        raise AIPRException("Not a Git repository.")
    return _run_git(["rev-parse", "--abbrev-ref", "HEAD"]).strip()


def branch_exists(branch_name: str) -> bool:
    """Checks local and remote-tracking branches for ``branch_name``."""
    try:
        output = _run_git(["branch", "-a", "--format=%(refname:short)"])
    except GitError:
        return False
    for branch in output.splitlines():
        branch = branch.strip()
        if branch == branch_name or branch.endswith(f"/{branch_name}"):
            return True
    return False


def get_remote_url(remote: str = "origin") -> Optional[str]:
    """Returns the URL of ``remote``, or None if it is not configured."""
    try:
        return _run_git(["remote", "get-url", remote]).strip() or None
    except GitError:
        return None


def parse_github_remote(url: str) -> Optional[Tuple[str, str]]:
    """
    Extracts ``(owner, repo)`` from an https or ssh GitHub remote URL.
    """
    match = GITHUB_URL.search(url.strip())
    if not match:
        return None
    return match.group(1), match.group(2)


def parse_numstat(output: str) -> List[DiffStatEntry]:
    """Parses ``git diff --numstat`` output. Binary files report ``-`` counts."""
    entries: List[DiffStatEntry] = []
    for line in output.splitlines():
        parts = line.split("\t", 2)
        if len(parts) != 3:
            continue
        insertions, deletions, path = parts
        binary = insertions == "-" and deletions == "-"
        entries.append(
            DiffStatEntry(
                path=path,
                insertions=0 if binary else int(insertions),
                deletions=0 if binary else int(deletions),
                binary=binary,
            )
        )
    return entries


def parse_shortstat(output: str) -> Tuple[int, int]:
    """Reads the insertion and deletion totals from ``git diff --shortstat``."""
    insertions = SHORTSTAT_INSERTIONS.search(output)
    deletions = SHORTSTAT_DELETIONS.search(output)
    return (
        int(insertions.group(1)) if insertions else 0,
        int(deletions.group(1)) if deletions else 0,
    )


class GitCommandReader:
    """
    Reads branch, diff and log information by shelling out to git.
    Never runs a command that changes repository state.
    """

    def current_branch_name(self) -> str:
        return get_current_branch_name()

    def diff_summary(self, base_ref: str) -> DiffSummary:
        revision = f"{base_ref}...HEAD"
        files = parse_numstat(_run_git(["diff", "--numstat", revision]))
        insertions, deletions = parse_shortstat(_run_git(["diff", "--shortstat", revision]))
        return DiffSummary(files=files, insertions=insertions, deletions=deletions)

    def diff_text(self, base_ref: str, path: Optional[str] = None) -> str:
        args = ["diff", f"{base_ref}...HEAD"]
        if path:
            args.extend(["--", path])
        return _run_git(args)

    def log(self, base_ref: str) -> List[str]:
        # Git log format %s%x00 separates commit subjects with a null byte.
        output = _run_git(["log", f"{base_ref}..HEAD", "--pretty=%s%x00"])
        commits = output.strip().strip("\x00").split("\x00")
        return [commit.strip() for commit in commits if commit.strip()]

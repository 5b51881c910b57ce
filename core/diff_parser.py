import re
from typing import List

from core.contracts.models import LineNumbers

HUNK_HEADER = re.compile(r"^@@ -(\d+)(?:,\d+)? \+(\d+)(?:,\d+)? @@")

STRUCTURAL_PREFIXES = ("diff --git", "index ", "+++", "---")

DECLARATION = re.compile(r"^[+-]\s*(function|def|class|interface|export|import|const|let|var)\b")
CONTROL_FLOW = re.compile(r"^[+-]\s*(if|else|for|while|switch|case|try|catch|except|return|throw|raise)\b")
DEPENDENCY = re.compile(r"^[+-]\s*(import|export|from)\b")
CONFIG_LITERAL = re.compile(r"^[+-]\s*.*[=:]\s*(true|false|null|None|True|False|undefined|\d+|['\"][^'\"]*['\"])")


def diff_lines(diff_text: str) -> List[str]:
    """Splits on newlines only. Form feeds and other separators stay inside their line."""
    return [line[:-1] if line.endswith("\r") else line for line in diff_text.split("\n")]


def parse_diff_line_numbers(diff_text: str) -> LineNumbers:
    """
    Collects the line numbers touched by a unified diff.

    Added lines are numbered in the new file, removed lines in the old file.
    Each ``@@ -a,b +c,d @@`` header resets both counters, so numbering never
    carries over from a previous hunk. Empty or malformed input yields two
    empty lists rather than an error.

    Args:
        diff_text: Raw ``git diff`` output, possibly empty.

    Returns:
        The added and removed line numbers, in the order they appear.
    """
    added: List[int] = []
    removed: List[int] = []
    if not diff_text:
        return LineNumbers(added=added, removed=removed)

    old_line = 0
    new_line = 0
    in_hunk = False

    for line in diff_lines(diff_text):
        header = HUNK_HEADER.match(line)
        if header:
            old_line = int(header.group(1)) - 1
            new_line = int(header.group(2)) - 1
            in_hunk = True
            continue

        if not in_hunk or line.startswith(STRUCTURAL_PREFIXES):
            continue

        if line.startswith("+"):
            new_line += 1
            added.append(new_line)
        elif line.startswith("-"):
            old_line += 1
            removed.append(old_line)
        elif line.startswith(" "):
            old_line += 1
            new_line += 1

    return LineNumbers(added=added, removed=removed)


def extract_key_changes(diff_text: str, limit: int = 8) -> List[str]:
    """
    Picks out the lines of a diff most useful as hints for a reader:
    declarations, control flow, dependency changes and literal settings.
    """
    summary: List[str] = []
    added_lines = 0
    removed_lines = 0

    for line in diff_lines(diff_text):
        if line.startswith(("+++", "---")):
            continue
        if not line.startswith(("+", "-")):
            continue

        verb = "Added" if line.startswith("+") else "Removed"
        code = line[1:].strip()
        if line.startswith("+"):
            added_lines += 1
        else:
            removed_lines += 1

        if DECLARATION.match(line):
            summary.append(f"{verb}: {code[:50]}")
        if CONTROL_FLOW.match(line):
            summary.append(f"{verb} logic: {code[:60]}")
        if DEPENDENCY.match(line):
            summary.append(f"{verb} dependency: {code[:50]}")
        if CONFIG_LITERAL.match(line):
            summary.append(f"{verb} config: {code[:50]}")

    if added_lines > 10 or removed_lines > 10:
        summary.insert(0, f"Major changes: +{added_lines} lines, -{removed_lines} lines")

    return summary[:limit]

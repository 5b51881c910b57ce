import pytest

from core.diff_parser import extract_key_changes, parse_diff_line_numbers


def test_empty_diff_yields_empty_sequences():
    result = parse_diff_line_numbers("")
    assert result.added == []
    assert result.removed == []


def test_single_hunk_with_context_lines():
    diff = "@@ -1,3 +1,4 @@\n line1\n+line2\n line3\n lineX"
    result = parse_diff_line_numbers(diff)
    assert result.added == [2]
    assert result.removed == []


def test_structural_lines_are_skipped():
    diff = (
        "diff --git a/app.py b/app.py\n"
        "index 1234567..89abcde 100644\n"
        "--- a/app.py\n"
        "+++ b/app.py\n"
        "@@ -10,3 +10,3 @@ def main():\n"
        " keep\n"
        "-old = 1\n"
        "+new = 2\n"
        " keep\n"
    )
    result = parse_diff_line_numbers(diff)
    assert result.added == [11]
    assert result.removed == [11]


def test_counters_reset_at_each_hunk_header():
    diff = (
        "@@ -1,2 +1,3 @@\n"
        " a\n"
        "+b\n"
        " c\n"
        "@@ -20,3 +21,2 @@\n"
        " x\n"
        "-y\n"
        " z\n"
    )
    result = parse_diff_line_numbers(diff)
    assert result.added == [2]
    assert result.removed == [21]


def test_hunk_header_without_counts():
    result = parse_diff_line_numbers("@@ -5 +5 @@\n-before\n+after")
    assert result.added == [5]
    assert result.removed == [5]


def test_diff_without_hunks_yields_empty_sequences():
    diff = "diff --git a/logo.png b/logo.png\nBinary files a/logo.png and b/logo.png differ\n"
    result = parse_diff_line_numbers(diff)
    assert result.added == []
    assert result.removed == []


def test_form_feed_stays_inside_its_line():
    result = parse_diff_line_numbers("@@ -1,2 +1,2 @@\n x\n+a\x0c-b\n")
    assert result.added == [2]
    assert result.removed == []


def test_crlf_line_endings():
    result = parse_diff_line_numbers("@@ -1,2 +1,2 @@\r\n x\r\n-y\r\n+z\r\n")
    assert result.added == [2]
    assert result.removed == [2]


def test_lines_before_first_hunk_are_ignored():
    result = parse_diff_line_numbers("+stray\n-stray\n@@ -1 +1 @@\n+real")
    assert result.added == [1]
    assert result.removed == []


@pytest.mark.parametrize(
    "diff",
    [
        "@@ -1,4 +1,6 @@\n a\n+b\n+c\n d\n-e\n+f\n g\n",
        "@@ -3,3 +3,1 @@\n-a\n-b\n c\n@@ -40,1 +38,3 @@\n x\n+y\n+z\n",
        "@@ -1,2 +1,2 @@\n x\n+a\x0c-b\n-c\x85d\n",
    ],
)
def test_counts_match_plus_minus_lines_and_never_decrease(diff):
    result = parse_diff_line_numbers(diff)
    body = [line for line in diff.split("\n") if not line.startswith("@@")]
    assert len(result.added) == sum(1 for line in body if line.startswith("+"))
    assert len(result.removed) == sum(1 for line in body if line.startswith("-"))
    assert result.added == sorted(result.added)
    assert result.removed == sorted(result.removed)


def test_extract_key_changes_finds_declarations_and_dependencies():
    diff = "+++ b/app.py\n+import os\n+def handler(event):\n+    if event:\n+        return 1\n"
    changes = extract_key_changes(diff)
    assert "Added: import os" in changes
    assert "Added dependency: import os" in changes
    assert "Added: def handler(event):" in changes
    assert "Added logic: if event:" in changes


def test_extract_key_changes_flags_major_changes_first():
    diff = "\n".join(f"+line {i}" for i in range(12))
    changes = extract_key_changes(diff)
    assert changes[0] == "Major changes: +12 lines, -0 lines"


def test_extract_key_changes_respects_limit():
    diff = "\n".join(f"+def f{i}():" for i in range(20))
    assert len(extract_key_changes(diff, limit=3)) == 3

import pytest

from config.models import PromptLimits
from core.contracts.models import (
    ChangeSet,
    FileChange,
    FileStatus,
    LineNumbers,
    PRTemplate,
    PromptContext,
    RepoInfo,
    Ticket,
)
from core.prompt_builder import PromptBuilder, line_links, line_url, truncate


@pytest.fixture
def ticket():
    return Ticket(key="PROJ-42", summary="Add login", description="Users need to log in. " * 40, issue_type="Story")


@pytest.fixture
def changes():
    return ChangeSet(
        files=[
            FileChange(
                path="src/auth.py",
                status=FileStatus.MODIFIED,
                insertions=12,
                deletions=3,
                diff="@@ -1,3 +1,4 @@\n+def login(user):\n" + "+x\n" * 2000,
                line_numbers=LineNumbers(added=list(range(1, 15)), removed=[4, 5]),
            ),
            FileChange(path="README.md", status=FileStatus.ADDED, insertions=5),
        ],
        total_insertions=17,
        total_deletions=3,
        total_files=2,
        commits=["Add login endpoint", "Fix typo"],
    )


@pytest.fixture
def repo():
    return RepoInfo(owner="acme", repo="widgets", current_branch="feature/PROJ-42")


def test_truncate():
    assert truncate("abcdef", 3) == "abc..."
    assert truncate("abc", 3) == "abc"
    assert truncate("abcdef", None) == "abcdef"


def test_line_links(repo):
    base = "https://github.com/acme/widgets/blob/feature/PROJ-42/src/a.py"
    assert line_url(repo, "src/a.py", 7) == f"{base}#L7"
    assert line_links(repo, "src/a.py", [7]) == f"[Line 7]({base}#L7)"
    assert line_links(repo, "src/a.py", [1, 2]) == f"[L1]({base}#L1), [L2]({base}#L2)"


def test_summary_prompt_contents(ticket, changes, repo):
    ctx = PromptContext(ticket=ticket, changes=changes, repo=repo, diff_content="+a\n" * 2000)
    prompt = PromptBuilder().build_summary_prompt(ctx)

    assert "- Key: PROJ-42" in prompt
    assert "- Type: Story" in prompt
    description_line = next(line for line in prompt.splitlines() if line.startswith("- Description: "))
    assert len(description_line) == len("- Description: ") + 500 + 3
    assert "- Lines added: 1, 2, 3, 4, 5, 6, 7, 8, 9, 10..." in prompt
    assert "- Lines removed: 4, 5" in prompt
    assert "... (diff truncated for brevity)" in prompt
    assert "... (overall diff truncated for brevity)" in prompt
    assert "https://github.com/acme/widgets/blob/feature/PROJ-42/src/auth.py" in prompt
    assert "[L1](https://github.com/acme/widgets/blob/feature/PROJ-42/src/auth.py#L1)" in prompt
    assert "#L4)" not in prompt.split("- Key changes at lines:")[1].splitlines()[0]
    assert "- No detailed diff available for this file" in prompt
    assert 'single "summary" field' in prompt
    assert "Do NOT wrap it in markdown code blocks" in prompt
    assert 'Do NOT include any checklists, checkboxes, or "- [ ]" items' in prompt


def test_summary_prompt_without_repo_has_no_links(ticket, changes):
    prompt = PromptBuilder().build_summary_prompt(PromptContext(ticket=ticket, changes=changes))
    assert "github.com" not in prompt
    assert "Overall diff content not available" in prompt


def test_summary_template_limit_is_configurable(ticket, changes):
    template = PRTemplate(name="t", content="T" * 1000)
    ctx = PromptContext(ticket=ticket, changes=changes, template=template)

    full = PromptBuilder().build_summary_prompt(ctx)
    capped = PromptBuilder(PromptLimits(summary_template_limit=800)).build_summary_prompt(ctx)

    assert "T" * 1000 in full
    assert "T" * 800 + "..." in capped
    assert "T" * 801 not in capped


def test_summary_prompt_with_template_ends_with_output_format(ticket, changes):
    template = PRTemplate(name="t", content="## What\n## Why")
    prompt = PromptBuilder().build_summary_prompt(PromptContext(ticket=ticket, changes=changes, template=template))

    assert "CRITICAL TEMPLATE ADHERENCE:" in prompt
    assert prompt.index("CRITICAL TEMPLATE ADHERENCE:") < prompt.index('single "summary" field')
    assert prompt.rstrip().endswith("Do NOT include any text before or after the JSON.")


def test_description_prompt_with_template(ticket, changes):
    template = PRTemplate(name="t", content="## What\n{{summary}}\n## Testing\n- [ ] tested")
    ctx = PromptContext(ticket=ticket, changes=changes, template=template)
    prompt = PromptBuilder().build_description_prompt(ctx, "The summary text")

    assert "--- TEMPLATE START ---\n## What" in prompt
    assert "Do NOT add sections not in the template" in prompt
    assert "preserve them EXACTLY as they appear" in prompt
    assert "DO NOT generate testing content" in prompt
    assert "## Generated Summary:\nThe summary text" in prompt
    assert ticket.description in prompt
    assert "- Add login endpoint" in prompt
    assert 'Title MUST start with "PROJ-42: "' in prompt
    assert prompt.rstrip().endswith("Do NOT include any text before or after the JSON.")


def test_description_prompt_without_template_forbids_checklists(ticket, changes):
    prompt = PromptBuilder().build_description_prompt(PromptContext(ticket=ticket, changes=changes))

    assert "TEMPLATE START" not in prompt
    assert 'Do NOT include any checklists, checkboxes, or "- [ ]" items in the description' in prompt
    assert "Include testing instructions" in prompt
    assert "## Generated Summary" not in prompt
    assert '"title": The PR title (string)' in prompt


def test_description_prompt_caps_file_diffs(ticket, changes):
    prompt = PromptBuilder(PromptLimits(description_diff_limit=50)).build_description_prompt(
        PromptContext(ticket=ticket, changes=changes)
    )
    diff = changes.files[0].diff
    assert diff[:50] + "\n... (diff truncated for brevity)" in prompt
    assert diff[:51] not in prompt


def test_prompts_are_deterministic(ticket, changes, repo):
    ctx = PromptContext(ticket=ticket, changes=changes, repo=repo)
    builder = PromptBuilder()
    assert builder.build_summary_prompt(ctx) == builder.build_summary_prompt(ctx)
    assert builder.build_description_prompt(ctx, "s") == builder.build_description_prompt(ctx, "s")

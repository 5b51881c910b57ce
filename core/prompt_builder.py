from typing import List, Optional, Sequence

from config.models import PromptLimits
from core.contracts.models import FileChange, PromptContext, RepoInfo
from core.diff_parser import extract_key_changes

DIFF_TRUNCATED = "... (diff truncated for brevity)"
OVERALL_DIFF_TRUNCATED = "... (overall diff truncated for brevity)"

NO_FENCE_RULE = (
    "CRITICAL: Return ONLY the raw JSON object. Do NOT wrap it in markdown code blocks (```json). "
    "Do NOT include any text before or after the JSON."
)


def truncate(text: str, limit: Optional[int], marker: str = "...") -> str:
    """Cuts ``text`` to ``limit`` characters and appends ``marker`` when it was cut."""
    if limit is None or len(text) <= limit:
        return text
    return text[:limit] + marker


def preview_numbers(numbers: Sequence[int], limit: int) -> str:
    shown = ", ".join(str(n) for n in numbers[:limit])
    return shown + ("..." if len(numbers) > limit else "")


def file_url(repo: RepoInfo, path: str) -> str:
    return f"https://github.com/{repo.owner}/{repo.repo}/blob/{repo.current_branch}/{path}"


def line_url(repo: RepoInfo, path: str, line: int) -> str:
    return f"{file_url(repo, path)}#L{line}"


def line_links(repo: RepoInfo, path: str, lines: Sequence[int]) -> str:
    """Markdown links to individual lines: ``[Line N](url)`` for one, ``[LN](url), ...`` for several."""
    if len(lines) == 1:
        return f"[Line {lines[0]}]({line_url(repo, path, lines[0])})"
    return ", ".join(f"[L{line}]({line_url(repo, path, line)})" for line in lines)


class PromptBuilder:
    """
    Renders a PromptContext into the two prompts of a generation run.

    The summary prompt asks for a detailed narrative of the change. The
    description prompt asks for the final title and body and receives that
    summary as an argument.
    """

    def __init__(self, limits: Optional[PromptLimits] = None):
        self.limits = limits or PromptLimits()

    def build_summary_prompt(self, ctx: PromptContext) -> str:
        """
        Builds the prompt for the narrative summary stage.

        Args:
            ctx: Ticket, changes and optional template, overall diff and repository.

        Returns:
            The prompt text. It asks for a single raw JSON object with a
            ``summary`` field.
        """
        ticket, changes, template, repo = ctx.ticket, ctx.changes, ctx.template, ctx.repo
        limits = self.limits
        parts: List[str] = [
            "Generate a detailed summary of this pull request with file links and explanations "
            "based on the following information:",
            "",
            "## Jira Ticket:",
            f"- Key: {ticket.key}",
            f"- Summary: {ticket.summary}",
            f"- Type: {ticket.issue_type}",
        ]
        if ticket.description:
            parts.append(f"- Description: {truncate(ticket.description, limits.description_preview)}")

        if template:
            parts += [
                "",
                "## PR Template Context:",
                "This PR should follow this template structure:",
                truncate(template.content, limits.summary_template_limit),
                "Please ensure the summary aligns with the template's intended structure and sections.",
            ]

        parts += [
            "",
            "## Detailed File Changes:",
            f"- Total files changed: {changes.total_files}",
            f"- Total insertions: +{changes.total_insertions}",
            f"- Total deletions: -{changes.total_deletions}",
            "",
            "### Specific File Changes:",
        ]
        for file in changes.files:
            parts += self._summary_file_section(file, repo)

        parts += ["", "## Overall Code Changes:"]
        if ctx.diff_content:
            parts.append(f"```diff\n{truncate(ctx.diff_content, limits.overall_diff_limit, chr(10) + OVERALL_DIFF_TRUNCATED)}\n```")
            patterns = extract_key_changes(ctx.diff_content)
            if patterns:
                parts += ["", "### High-level code change patterns:"]
                parts += [f"- {change}" for change in patterns]
        else:
            parts.append("Overall diff content not available. Analysis based on file-level changes above.")

        parts += self._summary_requirements(ctx)
        return "\n".join(parts) + "\n"

    def build_description_prompt(self, ctx: PromptContext, summary: Optional[str] = None) -> str:
        """
        Builds the prompt for the final title and body.

        Args:
            ctx: Ticket, changes and optional template, overall diff and repository.
            summary: Output of the summary stage, embedded as context when present.

        Returns:
            The prompt text. It asks for a single raw JSON object with exactly
            ``title`` and ``body`` fields.
        """
        ticket, changes, template = ctx.ticket, ctx.changes, ctx.template
        limits = self.limits
        parts: List[str] = [
            "Generate a comprehensive pull request description based on the following information:",
            "",
            "## Jira Ticket Information:",
            f"- Ticket: {ticket.key}",
            f"- Title: {ticket.summary}",
            f"- Type: {ticket.issue_type}",
            f"- Status: {ticket.status}",
        ]
        if ticket.parent_key:
            parts.append(f"- Parent Ticket: {ticket.parent_key} - {ticket.parent_summary or ''}".rstrip(" -"))
        if ticket.description:
            parts += [
                f"- Full Description: {ticket.description}",
                "- IMPORTANT: Analyze how the code changes relate to and fulfill the requirements "
                "described in this JIRA ticket description.",
            ]

        parts += [
            "",
            "## COMPREHENSIVE Changes Analysis:",
            f"- Total files changed: {changes.total_files}",
            f"- Total insertions: {changes.total_insertions}",
            f"- Total deletions: {changes.total_deletions}",
            "",
            "### DETAILED File-by-File Changes Analysis:",
            "For EACH file below, you MUST explain in detail HOW the specific changes fulfill the JIRA ticket requirements:",
        ]
        for file in changes.files:
            parts += ["", f"**{file.path}** ({file.status.value}):", f"- Insertions: +{file.insertions}, Deletions: -{file.deletions}"]
            parts += self._line_number_lines(file, "Added lines", "Removed lines")
            if file.diff:
                parts += [
                    f"- COMPLETE code changes for analysis:\n```diff\n{truncate(file.diff, limits.description_diff_limit, chr(10) + DIFF_TRUNCATED)}\n```",
                    "- MANDATORY: Analyze this diff and explain HOW each change addresses the JIRA ticket requirements",
                ]

        if changes.commits:
            parts += ["", "## Commit Messages:"]
            parts += [f"- {commit}" for commit in changes.commits]

        if template:
            parts += [
                "",
                "## CRITICAL: PR Template Structure - MUST FOLLOW EXACTLY:",
                "You MUST use this exact template structure and fill in ONLY the content areas. "
                "Do NOT add extra sections or modify the template format:",
                "",
                "--- TEMPLATE START ---",
                template.content,
                "--- TEMPLATE END ---",
                "",
                "TEMPLATE RULES:",
                "- Use the template structure EXACTLY as provided above (between the markers)",
                '- Do NOT include the "--- TEMPLATE START ---" or "--- TEMPLATE END ---" markers in your output',
                "- Fill in placeholder content ({{...}}) with appropriate values",
                "- Preserve ALL formatting, headers, and structure from the template",
                "- Do NOT add sections not in the template",
                "- Do NOT remove sections from the template",
                "- Do NOT modify checkbox states if present",
            ]

        if ctx.diff_content:
            parts += [
                "",
                "## Overall Code Changes Context:",
                f"```diff\n{truncate(ctx.diff_content, limits.overall_diff_limit, chr(10) + DIFF_TRUNCATED)}\n```",
            ]

        if summary:
            parts += ["", "## Generated Summary:", summary]

        parts += [""] + self._generation_requirements(ctx, summary)
        parts += [
            "",
            "CRITICAL TITLE REQUIREMENTS:",
            f'- Title MUST start with "{ticket.key}: "',
            "- Keep the description part SHORT and focused (max 50 characters after the ticket ID)",
            f"- Use action words that match the type of change ({ticket.issue_type})",
            "- The body should start with the summary as context",
            "",
            "IMPORTANT: Format the response as valid JSON with exactly these fields:",
            '- "title": The PR title (string)',
            '- "body": The PR description (string)',
            "",
            f'Example format: {{"title": "{ticket.key}: Add user authentication", "body": "## Summary\\n[description here]"}}',
            NO_FENCE_RULE,
        ]
        return "\n".join(parts)

    def _line_number_lines(self, file: FileChange, added_label: str, removed_label: str) -> List[str]:
        lines: List[str] = []
        if not file.line_numbers:
            return lines
        limit = self.limits.line_number_preview
        if file.line_numbers.added:
            lines.append(f"- {added_label}: {preview_numbers(file.line_numbers.added, limit)}")
        if file.line_numbers.removed:
            lines.append(f"- {removed_label}: {preview_numbers(file.line_numbers.removed, limit)}")
        return lines

    def _summary_file_section(self, file: FileChange, repo: Optional[RepoInfo]) -> List[str]:
        section = [
            "",
            f"**{file.path}** ({file.status.value}):",
            f"- Changes: +{file.insertions} insertions, -{file.deletions} deletions",
        ]
        if repo:
            section.append(f"- GitHub URL: {file_url(repo, file.path)}")
            if file.line_numbers and file.line_numbers.added:
                key_lines = file.line_numbers.added[: self.limits.key_line_links]
                section.append(f"- Key changes at lines: {line_links(repo, file.path, key_lines)}")

        section += self._line_number_lines(file, "Lines added", "Lines removed")

        if file.diff:
            diff = truncate(file.diff, self.limits.summary_diff_limit, "\n" + DIFF_TRUNCATED)
            section.append(f"- Full code diff:\n```diff\n{diff}\n```")
            key_changes = extract_key_changes(file.diff)
            if key_changes:
                section.append("- Key code changes:\n" + "\n".join(f"  * {change}" for change in key_changes))
        else:
            section.append("- No detailed diff available for this file")
        return section

    def _summary_requirements(self, ctx: PromptContext) -> List[str]:
        ticket, repo, template = ctx.ticket, ctx.repo, ctx.template
        parts = [
            "",
            "## Summary Requirements:",
            "IMPORTANT: Analyze the provided diff content carefully to understand the actual code changes made.",
            "Use the diff content to provide specific, accurate descriptions of what was modified, added, or removed.",
            "",
            "Please provide a HIGHLY DETAILED and comprehensive summary that:",
            "1. ALWAYS starts with relevant ticket URLs at the very top if available:",
            f"   - Jira ticket URL in format: [{ticket.key}](JIRA_BASE_URL/browse/{ticket.key})",
            "   - Any Sentry error URLs mentioned in the ticket description",
            "2. Provides a detailed overview (6-8 sentences) explaining:",
            "   - What specific feature/change is being implemented",
            "   - How it directly addresses EACH requirement in the JIRA ticket description",
            "   - The technical approach and architecture decisions made",
            "   - The impact on the system, users, and related components",
            "3. For EACH modified file, provides detail including:",
            "   - File header as clickable link: [src/filename.ext](GitHub_URL)",
            "   - What changed and how it maps to the JIRA ticket requirements",
            "   - The functions/methods/classes that were modified, added, or removed",
            "   - What the code was doing before vs. what it does now (for modifications)",
        ]
        if repo:
            base = f"https://github.com/{repo.owner}/{repo.repo}/blob/{repo.current_branch}"
            parts += [
                "   - MUST include all GitHub file URLs provided above for navigation",
                f"   - Format file links as: [src/file.ts]({base}/src/file.ts)",
                f"   - Format line links as: [Line 123]({base}/src/file.ts#L123)",
                "   - Include 4-6 specific line links per modified file covering the major changes",
            ]
        parts += [
            "4. Technical implementation details: new and modified functions, integration points, "
            "error handling and edge cases",
            "5. Business value: how the implementation fulfills EACH JIRA ticket requirement",
            "6. Review focus areas with specific line references",
            "",
            "Format the response as a structured summary with these sections:",
            "- Ticket URLs (Jira, Sentry, etc.) at the very top",
            "- Detailed Overview",
            "- File Changes",
            "- Technical Implementation Details",
            "- Business Value and Impact",
            "- Review Focus Areas",
            "",
            'IMPORTANT: Do NOT include any checklists, checkboxes, or "- [ ]" items in the summary. '
            "Use bullet points and descriptive text only.",
        ]
        if template:
            parts.append(
                "TEMPLATE CHECKBOX RULE: If the PR template contains checkboxes, preserve them EXACTLY as they appear. "
                "Do not modify, fill, or check any existing checkboxes."
            )
            parts += [
                "",
                "CRITICAL TEMPLATE ADHERENCE:",
                "- You MUST strictly follow the provided PR template structure and format",
                "- Do NOT add sections not present in the template",
                "- Fill in only the content areas that the template expects",
                "- Preserve all headers, formatting, and structural elements from the template",
                "",
            ]
        parts += [
            'IMPORTANT: Return the response as JSON with a single "summary" field containing the structured '
            "summary content. Use markdown formatting within the summary text.",
            'Example format: {"summary": "## Overview\\n[content here]\\n\\n## File Changes\\n[content here]"}',
            NO_FENCE_RULE,
        ]
        return parts

    def _generation_requirements(self, ctx: PromptContext, summary: Optional[str]) -> List[str]:
        ticket, template = ctx.ticket, ctx.template
        parts = ["## Generation Requirements:"]
        if template:
            parts += [
                "CRITICAL: Since a PR template is provided, you MUST:",
                "1. Follow the template structure EXACTLY - do not deviate from it",
                "2. Fill in content areas within the template with detailed information",
                "3. Create a SHORT, concise title (max 60 characters):",
                f'   - MUST include the JIRA ticket ID "{ticket.key}" at the beginning',
                f'   - Format: "{ticket.key}: Brief description of change"',
            ]
            if summary:
                parts.append("   - Based on the generated summary above")
            parts += [
                "4. Use the provided template structure for the body",
                "5. Include line links for code changes in the format [Line X](file_url#LX)",
            ]
        else:
            parts += [
                "Please generate a pull request description that:",
                "1. Creates a SHORT, concise title (max 60 characters) that:",
                f'   - MUST include the JIRA ticket ID "{ticket.key}" at the beginning',
                "   - Captures the main change in a few words",
                f'   - Format: "{ticket.key}: Brief description of change"',
            ]
            if summary:
                parts.append("   - Based on the generated summary above")
            parts += [
                f'   - Examples: "{ticket.key}: Add user authentication", "{ticket.key}: Fix login bug"',
                "2. Provides a detailed description that:",
                "   - Starts with the summary as an overview",
                "   - Explains HOW each code change fulfills specific JIRA ticket requirements",
                "   - References specific files and line numbers for significant changes",
                "3. Includes the Jira ticket reference with proper linking",
                "4. Summarizes the technical approach and key implementation details",
                "5. Uses this default structure: ## Summary, ## Changes, ## Technical Details, ## Testing",
            ]

        parts.append("Testing instructions:")
        if template and "testing" in template.content.lower():
            parts += [
                "   - DO NOT generate testing content as the template already includes a Testing section",
                "   - Leave testing sections empty or with placeholder text for manual completion",
            ]
        else:
            parts.append("   - Include testing instructions that relate to the JIRA requirements")

        parts += ["", "IMPORTANT FORMATTING RULES:"]
        if template:
            parts += [
                "TEMPLATE MODE - STRICT ADHERENCE REQUIRED:",
                "- Follow the provided template structure EXACTLY",
                "- Preserve ALL formatting, headers, sections, and layout from the template",
                "- If the template contains checkboxes (- [ ]), preserve them EXACTLY as they appear",
                "- Do NOT modify, fill, or check any existing checkboxes",
                "- Do NOT add extra sections not in the template",
                "- Do NOT remove sections from the template",
                "- Only fill in content areas and placeholders within the existing template structure",
            ]
        else:
            parts += [
                '- Do NOT include any checklists, checkboxes, or "- [ ]" items in the description',
                "- Use bullet points (- item) and descriptive text only",
                "- Ensure Jira and any Sentry URLs are prominently placed at the top of the body",
            ]
        parts += [
            "- Include direct GitHub file URLs for all changed files",
            "- Include line links [Line X](file_url#LX) for significant code changes",
            "- Map every code change to its corresponding JIRA ticket requirement",
        ]
        return parts

import re
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, TemplateError

from core.contracts.formatter import Formatter
from core.contracts.models import FileChange, GeneratedContent, PromptContext, Ticket
from utils.errors import FormatterError

SIGNIFICANT_CHANGE_THRESHOLD = 10

# Substring hints checked in order against the lower-cased path.
RELEVANCE_HINTS = [
    (("test", "spec"), "testing the implemented functionality"),
    (("config", "setting"), "configuration changes related to the feature"),
    (("component", "view"), "UI/component implementation"),
    (("service", "api"), "business logic and API integration"),
    (("util", "helper"), "utility functions supporting the main feature"),
    (("model", "schema"), "data structure definitions"),
]


def file_relevance(file: FileChange, ticket: Ticket) -> str:
    path = file.path.lower()
    for needles, description in RELEVANCE_HINTS:
        if any(needle in path for needle in needles):
            return f"Key implementation file for {description}"
    return f"Key implementation file for implementing the {ticket.issue_type.lower()} functionality"


def fill_template(content: str, ticket: Ticket) -> str:
    """Replaces ``{{ticket}}``, ``{{summary}}`` and ``{{description}}`` placeholders, ignoring case."""
    replacements = {
        "ticket": ticket.key,
        "summary": ticket.summary,
        "description": ticket.description or "No description provided",
    }
    for name, value in replacements.items():
        content = re.sub(r"\{\{" + name + r"\}\}", lambda _: value, content, flags=re.IGNORECASE)
    return content


class Jinja2Formatter(Formatter):
    """
    Builds PR content without an AI provider, from the ticket and change set alone.
    """

    def __init__(
        self,
        template_dir: Optional[str] = None,
        template_name: str = "fallback.md.j2",
        line_limit: int = 10,
    ):
        if template_dir is None:
            template_dir = str(Path(__file__).parent / "templates")

        self.template_dir = template_dir
        self.template_name = template_name
        self.line_limit = line_limit
        self.env = Environment(
            loader=FileSystemLoader(self.template_dir),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    def format(self, ctx: PromptContext, jira_base_url: Optional[str] = None) -> GeneratedContent:
        """
        Raises:
            FormatterError: If the fallback template cannot be rendered.
        """
        ticket = ctx.ticket
        title = f"{ticket.key}: {ticket.summary}"
        if ctx.template:
            return GeneratedContent(title=title, body=fill_template(ctx.template.content, ticket))

        if jira_base_url:
            ticket_link = f"[{ticket.key}]({jira_base_url.rstrip('/')}/browse/{ticket.key})"
        else:
            ticket_link = ticket.key
        significant = [f for f in ctx.changes.files if f.changes > SIGNIFICANT_CHANGE_THRESHOLD]

        try:
            template = self.env.get_template(self.template_name)
            body = template.render(
                ticket=ticket,
                ticket_link=ticket_link,
                changes=ctx.changes,
                significant_files=significant,
                line_limit=self.line_limit,
                relevance=lambda file: file_relevance(file, ticket),
            )
        except TemplateError as e:
            raise FormatterError(f"Failed to render template {self.template_name}: {e}") from e
        return GeneratedContent(title=title, body=body)

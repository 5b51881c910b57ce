from typing import Optional, Protocol

from .models import GeneratedContent, PromptContext


class Formatter(Protocol):
    def format(self, ctx: PromptContext, jira_base_url: Optional[str] = None) -> GeneratedContent:
        ...

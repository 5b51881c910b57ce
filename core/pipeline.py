import asyncio
from typing import Optional

from config.models import Config
from core.changes import ChangeAggregator
from core.collectors.template_collector import TemplateCollector
from core.collectors.ticket_collector import TicketCollector
from core.contracts.collector import TemplateSource, TicketSource
from core.contracts.formatter import Formatter
from core.contracts.models import GeneratedContent, PromptContext, RepoInfo
from core.formatter.jinja_formatter import Jinja2Formatter
from core.llm.gateway import Chooser, ProviderGateway
from core.prompt_builder import PromptBuilder
from core.response_parser import parse_pr_content, parse_summary
from utils.errors import GitError, ProviderError
from utils.git import GitCommandReader, get_current_branch_name, get_remote_url, parse_github_remote
from utils.logger import logger


def read_repo_info() -> Optional[RepoInfo]:
    """Owner, repository and branch of the ``origin`` remote, or None if it is not on GitHub."""
    url = get_remote_url()
    parsed = parse_github_remote(url) if url else None
    if not parsed:
        logger.debug("origin is not a GitHub remote, prompts will not carry file links.")
        return None
    owner, repo = parsed
    return RepoInfo(owner=owner, repo=repo, current_branch=get_current_branch_name())


class PRDescriptionGenerator:
    """
    The main pipeline for generating pull-request content.
    It collects the context, runs the two AI stages and applies the fallbacks.
    """

    def __init__(
        self,
        config: Config,
        gateway: Optional[ProviderGateway] = None,
        aggregator: Optional[ChangeAggregator] = None,
        ticket_collector: Optional[TicketSource] = None,
        template_collector: Optional[TemplateSource] = None,
        formatter: Optional[Formatter] = None,
        chooser: Optional[Chooser] = None,
        preferred_provider: Optional[str] = None,
    ):
        self.config = config
        self.gateway = gateway or ProviderGateway(config, chooser=chooser)
        self.aggregator = aggregator or ChangeAggregator(GitCommandReader())
        self._ticket_collector = ticket_collector
        self.template_collector = template_collector or TemplateCollector()
        self.formatter = formatter or Jinja2Formatter(line_limit=config.prompt.line_number_preview)
        self.prompt_builder = PromptBuilder(config.prompt)
        self.preferred_provider = preferred_provider

    @property
    def ticket_collector(self) -> TicketSource:
        if self._ticket_collector is None:
            jira = self.config.jira
            self._ticket_collector = TicketCollector(jira.base_url, jira.email, jira.api_token)
        return self._ticket_collector

    async def collect_context(self, ticket_key: str, base_branch: str) -> PromptContext:
        """
        Gathers everything the prompts need.

        The ticket, the template, the repository identity and the change set
        are fetched concurrently. The overall diff is read only after the
        change set, so a branch compared with itself fails before any diff.

        Raises:
            CollectorError: If the ticket cannot be fetched.
            GitError: If git fails, the branch is the base branch, or nothing changed.
        """
        git = self.config.git
        logger.info(f"Collecting context for {ticket_key} against '{base_branch}'...")
        owns_collector = self._ticket_collector is None
        try:
            ticket, template, repo, changes = await asyncio.gather(
                asyncio.to_thread(self.ticket_collector.collect, ticket_key),
                asyncio.to_thread(self.template_collector.collect),
                asyncio.to_thread(read_repo_info),
                self.aggregator.get_changes(base_branch, include_detailed_diff=git.include_detailed_diff),
            )
        finally:
            if owns_collector and self._ticket_collector is not None:
                self._ticket_collector.close()
                self._ticket_collector = None
        if not changes.files:
            raise GitError(f"No changes detected between '{base_branch}' and the current branch.")

        diff_content = await self.aggregator.get_diff_content(base_branch, max_lines=git.max_diff_lines)
        return PromptContext(
            ticket=ticket,
            changes=changes,
            template=template,
            diff_content=diff_content or None,
            repo=repo,
        )

    async def generate(self, ctx: PromptContext) -> GeneratedContent:
        """
        Runs the summary stage, then the description stage with that summary.

        Returns:
            The generated content. With ``generation.fallback_on_error`` set, a
            provider failure yields template-based content with ``provider=None``.

        Raises:
            ProviderError: If the AI stages fail and fallback is disabled.
            FormatterError: If fallback content cannot be rendered.
        """
        try:
            provider = self.gateway.select_provider(self.preferred_provider)

            summary_prompt = self.prompt_builder.build_summary_prompt(ctx)
            logger.debug(f"Summary prompt:\n{summary_prompt}")
            summary = parse_summary(await self.gateway.generate(summary_prompt))

            description_prompt = self.prompt_builder.build_description_prompt(ctx, summary or None)
            logger.debug(f"Description prompt:\n{description_prompt}")
            content = parse_pr_content(await self.gateway.generate(description_prompt))
        except ProviderError as e:
            if not self.config.generation.fallback_on_error:
                raise
            logger.warning(f"AI generation failed, using template-based content instead: {e}")
            return self.formatter.format(ctx, self.config.jira.base_url)
        finally:
            await self.gateway.aclose()

        title, body = content.title, content.body
        if not title:
            title = f"{ctx.ticket.key}: {ctx.ticket.summary}"
        if not body.strip():
            body = self.formatter.format(ctx, self.config.jira.base_url).body
        logger.success(f"Generated PR content with {provider}.")
        return GeneratedContent(title=title, body=body, summary=summary or None, provider=provider)

    async def run(self, ticket_key: str, base_branch: str) -> GeneratedContent:
        ctx = await self.collect_context(ticket_key, base_branch)
        return await self.generate(ctx)

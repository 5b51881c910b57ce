import asyncio
import os
from typing import List, Optional, Tuple

import click
from rich.console import Console
from rich.panel import Panel

from config.logic import load_and_merge_configs
from core.collectors.ticket_collector import extract_ticket_key, is_valid_ticket_key
from core.contracts.models import GeneratedContent
from core.pipeline import PRDescriptionGenerator, read_repo_info
from utils.errors import AIPRException, GitError, GitHubError, NoProviderConfiguredError
from utils.git import branch_exists, get_current_branch_name, is_git_repository
from utils.github import GitHubClient
from utils.logger import setup_logger, logger


def prompt_for_provider(available: List[str], default: str) -> str:
    """Asks the user to pick a provider when the preference order cannot decide."""
    return click.prompt(
        "Multiple AI providers available. Please select one",
        type=click.Choice(available),
        default=default,
    )


def resolve_ticket_key(ticket: Optional[str], branch: str) -> str:
    key = (ticket or extract_ticket_key(branch) or "").upper()
    if not key:
        raise AIPRException(f"No ticket key found in branch '{branch}'. Pass one with --ticket.")
    if not is_valid_ticket_key(key):
        raise AIPRException(f"Invalid ticket key '{key}'. Expected a key like PROJ-123.")
    return key


def split_edited(text: str) -> Tuple[str, str]:
    """The first line of the edited text is the title, the rest is the body."""
    title, _, body = text.strip().partition("\n")
    return title.strip(), body.strip()


async def run_generation(generator: PRDescriptionGenerator, ticket_key: str, base: str, no_ai: bool) -> GeneratedContent:
    """
    Collects the context and generates the PR content.
    """
    ctx = await generator.collect_context(ticket_key, base)
    if no_ai:
        return generator.formatter.format(ctx, generator.config.jira.base_url)
    return await generator.generate(ctx)


def open_pull_request(token: Optional[str], content: GeneratedContent, head: str, base: str, draft: bool) -> str:
    repo = read_repo_info()
    if repo is None:
        raise GitHubError("Unable to parse a GitHub repository from the 'origin' remote.")
    client = GitHubClient(token)
    try:
        existing = client.find_open_pull_request(repo, head)
        if existing:
            pull = client.update_pull_request(repo, existing["number"], content.title, content.body)
        else:
            pull = client.create_pull_request(repo, content.title, content.body, head=head, base=base, draft=draft)
    finally:
        client.close()
    return pull.get("html_url", "")


@click.group(invoke_without_command=True)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Enable verbose logging for debugging",
)
@click.pass_context
def cli(ctx, verbose: bool):
    """
    AI-assisted pull request description generator.

    Runs 'generate' when no subcommand is given.
    """
    setup_logger(log_level="DEBUG" if verbose else "INFO")
    ctx.obj = {'verbose': verbose}

    if ctx.invoked_subcommand is None:
        ctx.invoke(generate)


@cli.command("generate")
@click.option("-t", "--ticket", type=str, help="Ticket key (defaults to the key in the branch name)")
@click.option("-b", "--base", type=str, help="Base branch (defaults to git.base_branch)")
@click.option(
    "-c", "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to a custom configuration file",
)
@click.option("--provider", type=click.Choice(["claude", "chatgpt", "gemini", "copilot"]), help="Force an AI provider")
@click.option("--no-ai", is_flag=True, default=False, help="Build the description from the template only")
@click.option("--draft", is_flag=True, default=False, help="Open the pull request as a draft")
@click.option("--dry-run", is_flag=True, default=False, help="Show the generated content without opening a PR")
@click.pass_context
def generate(ctx, ticket: Optional[str], base: Optional[str], config_path: Optional[str], provider: Optional[str],
             no_ai: bool, draft: bool, dry_run: bool):
    """
    Generate a pull request title and description.
    """
    console = Console()
    verbose = (ctx.obj or {}).get('verbose', False)

    try:
        config = load_and_merge_configs(custom_config_path=config_path)

        if not is_git_repository():
            raise AIPRException("Not a Git repository. Run this command inside a Git repository.")
        branch = get_current_branch_name()
        base = base or config.git.base_branch
        if not branch_exists(base):
            raise GitError(f"Base branch '{base}' does not exist.")
        ticket_key = resolve_ticket_key(ticket, branch)

        generator = PRDescriptionGenerator(config, chooser=prompt_for_provider, preferred_provider=provider)
        if not no_ai:
            # Pick the provider before the spinner starts, the chooser may prompt.
            try:
                generator.gateway.select_provider(provider)
            except NoProviderConfiguredError as e:
                if not config.generation.fallback_on_error:
                    raise
                console.print(f"[yellow]{e} Falling back to template-based content.[/yellow]")

        with console.status(f"[bold green]Generating PR content for {ticket_key}...[/bold green]"):
            content = asyncio.run(run_generation(generator, ticket_key, base, no_ai))

        console.print(Panel(
            f"[bold]{content.title}[/bold]\n\n{content.body}",
            title=f"[bold cyan]Generated PR ({content.provider or 'template'})[/bold cyan]",
            border_style="cyan",
            expand=False,
        ))

        if dry_run:
            console.print("\n[yellow]Dry run. Remove '--dry-run' to open the pull request.[/yellow]")
            return

        action = click.prompt(
            "What would you like to do?",
            type=click.Choice(["create", "edit", "cancel"]),
            default="create",
        )
        if action == "cancel":
            console.print("[yellow]Cancelled.[/yellow]")
            return
        if action == "edit":
            edited = click.edit(f"{content.title}\n\n{content.body}")
            if edited:
                title, body = split_edited(edited)
                content = GeneratedContent(title=title or content.title, body=body, provider=content.provider)

        token = config.github.token or os.getenv("GITHUB_TOKEN")
        with console.status("[bold green]Opening pull request...[/bold green]"):
            url = open_pull_request(token, content, head=branch, base=base, draft=draft)
        console.print(f"\n[bold green]Pull request ready:[/bold green] {url}")

    except AIPRException as e:
        logger.opt(exception=verbose).error(f"Known error: {e}")
        console.print(f"[bold red]Error:[/bold red] {e}")
        ctx.exit(1)
    except Exception as e:
        logger.opt(exception=True).error(f"Unexpected error: {e}")
        console.print(f"[bold red]Unexpected error:[/bold red] {e}")
        ctx.exit(1)


if __name__ == "__main__":
    cli()

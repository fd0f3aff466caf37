"""onepager command-line interface."""

import asyncio
import json
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from onepager import __version__
from onepager.analysis.engine import ContentAnalysisEngine, build_snapshot
from onepager.config import ConfigManager
from onepager.editor.actions import actions_for_label
from onepager.editor.session import EditorSession
from onepager.editor.suggestions import SuggestionView
from onepager.models.block import Document, DocumentRecord
from onepager.models.config import AIServiceConfig
from onepager.models.finding import Finding
from onepager.models.richtext import ContentNode, render_text
from onepager.services.ai_client import AIServiceClient, AITransport
from onepager.services.document_store import JsonFileStore
from onepager.services.exceptions import OnePagerError
from onepager.services.llm_backend import LLMBackend
from onepager.utils.logging import configure_logging, get_logger


logger = get_logger(__name__)
console = Console()

SEVERITY_STYLES = {"high": "bold red", "medium": "yellow", "low": "cyan"}


def make_transport(ai_config: AIServiceConfig) -> AITransport:
    """Pick the AI transport for the configured mode."""
    if ai_config.mode == "llm":
        return LLMBackend(ai_config)
    return AIServiceClient(ai_config)


def load_config(path: Optional[Path]) -> ConfigManager:
    """
    Load configuration for a command.

    Raises:
        click.ClickException: If config has invalid permissions or fails validation
    """
    try:
        if path is None:
            return ConfigManager.load_default()
        return ConfigManager.load_from_path(path)
    except (FileNotFoundError, PermissionError, ValueError) as e:
        raise click.ClickException(str(e))


async def open_session(ctx: click.Context, need_ai: bool = False) -> EditorSession:
    config: ConfigManager = ctx.obj["config"]
    transport = None
    if need_ai:
        try:
            transport = make_transport(config.ai)
        except ValueError as e:
            raise click.ClickException(str(e))

    store = JsonFileStore(Path(config.store.path))
    try:
        return await EditorSession.open(
            store,
            ctx.obj.get("user") or config.store.user_id,
            transport=transport,
            config=config.editor,
        )
    except OnePagerError as e:
        raise click.ClickException(str(e))


def resolve_block_id(session: EditorSession, prefix: str) -> str:
    """Expand a unique id prefix to a full block id."""
    matches = [block.id for block in session.document.blocks if block.id.startswith(prefix)]
    if prefix in matches:
        return prefix
    if len(matches) == 1:
        return matches[0]
    if not matches:
        raise click.ClickException(f"No block with id {prefix}")
    raise click.ClickException(f"Block id {prefix} is ambiguous ({len(matches)} matches)")


def show_document(document: Document) -> None:
    console.print(f"[bold]{document.title or '(untitled)'}[/bold]")
    for block in document.content_blocks:
        marker = " [magenta](suggestion pending)[/magenta]" if block.suggestion else ""
        console.print(f"\n[bold blue]{block.title or '(no title)'}[/bold blue] [dim]{block.id}[/dim]{marker}")
        text = render_text(block.content)
        console.print(text if text.strip() else "[dim](empty)[/dim]")


def show_findings(findings: list[Finding]) -> None:
    if not findings:
        console.print("[green]No suggestions - looks good.[/green]")
        return

    table = Table(title="Suggestions")
    table.add_column("Severity")
    table.add_column("Id")
    table.add_column("Message")
    table.add_column("Block", style="dim")
    for finding in findings:
        style = SEVERITY_STYLES[finding.severity]
        table.add_row(
            f"[{style}]{finding.severity}[/{style}]",
            finding.id,
            finding.message,
            finding.field_id or "",
        )
    console.print(table)


def _format_value(value) -> str:
    if isinstance(value, ContentNode):
        return render_text(value)
    return value


def show_suggestion(view: SuggestionView) -> None:
    console.print(f"\n[bold]{view.action}[/bold] ({view.field})")
    console.print("[dim]Current:[/dim]")
    console.print(_format_value(view.current) or "[dim](empty)[/dim]")
    console.print("[dim]Suggested:[/dim]")
    console.print(f"[green]{_format_value(view.proposed)}[/green]")


@click.group()
@click.version_option(version=__version__, prog_name="onepager")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file (default: ~/.config/onepager/config.yaml)",
)
@click.option("--user", help="Override the user whose document is opened")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], user: Optional[str]):
    """onepager: compose one-pagers from titled blocks with AI-assisted refinement."""
    configure_logging()
    ctx.ensure_object(dict)
    ctx.obj["config"] = load_config(config_path)
    ctx.obj["user"] = user


@cli.command()
@click.pass_context
def show(ctx: click.Context):
    """Print the document with block ids."""
    async def run():
        session = await open_session(ctx)
        show_document(session.document)
        await session.close()

    asyncio.run(run())


@cli.command()
@click.option(
    "--file",
    "file_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Analyze a stored-document JSON file instead of your document",
)
@click.pass_context
def analyze(ctx: click.Context, file_path: Optional[Path]):
    """Run the content checks and list suggestions."""
    if file_path is not None:
        try:
            raw = json.loads(file_path.read_text(encoding="utf-8"))
            raw.setdefault("id", file_path.stem)
            document = Document.from_record(DocumentRecord.model_validate(raw))
        except (ValueError, AttributeError) as e:
            raise click.ClickException(f"Cannot read {file_path}: {e}")
        show_findings(ContentAnalysisEngine().analyze(build_snapshot(document)))
        return

    async def run():
        session = await open_session(ctx)
        show_findings(session.findings)
        await session.close()

    asyncio.run(run())


@cli.command()
@click.argument("block_id")
@click.pass_context
def actions(ctx: click.Context, block_id: str):
    """List the AI actions available for a block."""
    async def run():
        session = await open_session(ctx)
        block = session.model.get(resolve_block_id(session, block_id))
        for action in actions_for_label(block.title):
            click.echo(action)
        await session.close()

    asyncio.run(run())


@cli.command()
@click.argument("title", required=False)
@click.option("--yes", is_flag=True, help="Replace existing sections without asking")
@click.pass_context
def generate(ctx: click.Context, title: Optional[str], yes: bool):
    """Generate every section from the title (replaces existing sections)."""
    async def run():
        session = await open_session(ctx, need_ai=True)
        if title:
            session.model.update_field(session.document.title_block.id, "title", title)
        if not session.document.title.strip():
            await session.close()
            raise click.ClickException("Set a title before generating")
        if not yes and not click.confirm("Replace all sections with generated ones?", default=True):
            await session.close()
            return

        console.print(f"Generating one-pager for [bold]{session.document.title}[/bold]...")
        try:
            await session.coordinator.generate()
        except OnePagerError as e:
            await session.close()
            raise click.ClickException(str(e))

        show_document(session.document)
        show_findings(session.findings)
        await session.close()

    asyncio.run(run())


async def _review(session: EditorSession, block_id: str, auto_accept: bool) -> bool:
    view = session.review.view(block_id)
    if view is None:
        return False
    show_suggestion(view)
    if auto_accept or click.confirm("Accept this suggestion?", default=True):
        session.review.accept(block_id)
        console.print("[green]Accepted.[/green]")
        return True
    session.review.reject(block_id)
    console.print("Rejected.")
    return False


@cli.command()
@click.argument("block_id")
@click.argument("action")
@click.option(
    "--field",
    type=click.Choice(["title", "content"]),
    default="content",
    show_default=True,
    help="Field to refine",
)
@click.option("--yes", is_flag=True, help="Accept the suggestion without asking")
@click.pass_context
def refine(ctx: click.Context, block_id: str, action: str, field: str, yes: bool):
    """Ask the AI to refine a block and review the suggestion.

    ACTION is free text; `onepager actions BLOCK_ID` lists the usual ones.
    """
    async def run():
        session = await open_session(ctx, need_ai=True)
        full_id = resolve_block_id(session, block_id)

        console.print("AI is thinking...")
        suggestion = await session.coordinator.refine(full_id, action, field)
        if suggestion is None:
            task = session.review.last_task(full_id)
            reason = task.error_message if task and task.error_message else "the block was removed"
            await session.close()
            raise click.ClickException(f"No suggestion: {reason}")

        accepted = await _review(session, full_id, yes)

        offer = session.review.follow_up(full_id)
        if accepted and offer is not None:
            if click.confirm(f"This section is long. {offer.action}?", default=False):
                console.print("AI is thinking...")
                if await session.coordinator.run_follow_up(full_id) is not None:
                    await _review(session, full_id, yes)
            else:
                session.review.dismiss_follow_up(full_id)

        await session.close()

    asyncio.run(run())


@cli.command("add-after")
@click.argument("block_id")
@click.option("--title", default="", help="Title for the new block")
@click.pass_context
def add_after(ctx: click.Context, block_id: str, title: str):
    """Insert an empty block after BLOCK_ID."""
    async def run():
        session = await open_session(ctx)
        block = session.model.insert_after(resolve_block_id(session, block_id), title=title)
        await session.close()
        click.echo(block.id)

    asyncio.run(run())


@cli.command()
@click.argument("block_id")
@click.pass_context
def delete(ctx: click.Context, block_id: str):
    """Delete a block (the title and the last section cannot be deleted)."""
    async def run():
        session = await open_session(ctx)
        deleted = session.model.delete(resolve_block_id(session, block_id))
        await session.close()
        if not deleted:
            raise click.ClickException("Block cannot be deleted")

    asyncio.run(run())


@cli.command()
@click.argument("active_id")
@click.argument("over_id")
@click.pass_context
def move(ctx: click.Context, active_id: str, over_id: str):
    """Move ACTIVE_ID to the position of OVER_ID."""
    async def run():
        session = await open_session(ctx)
        before = [block.id for block in session.document.blocks]
        session.model.reorder(
            resolve_block_id(session, active_id),
            resolve_block_id(session, over_id),
        )
        moved = [block.id for block in session.document.blocks] != before
        await session.close()
        if not moved:
            raise click.ClickException("Block cannot be moved there")

    asyncio.run(run())


@cli.command("set")
@click.argument("block_id")
@click.argument("field", type=click.Choice(["title", "content"]))
@click.argument("value")
@click.pass_context
def set_field(ctx: click.Context, block_id: str, field: str, value: str):
    """Overwrite a block's title or content (discards any pending suggestion)."""
    async def run():
        session = await open_session(ctx)
        session.model.update_field(resolve_block_id(session, block_id), field, value)
        show_findings(session.findings)
        await session.close()

    asyncio.run(run())


def main():
    """Main entry point for setuptools console script."""
    cli()


if __name__ == "__main__":
    main()

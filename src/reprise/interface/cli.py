"""reprise CLI: review, preview, status and maintenance commands."""

import json
import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

from reprise.application.config import resolve_config
from reprise.domain.errors import RepriseError
from reprise.interface._common import _apply_verbosity, _resolve_with_overrides

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="reprise: spaced-repetition review for Markdown flashcards.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

config_app = typer.Typer(help="Manage reprise configuration.")
app.add_typer(config_app, name="config")

matrix_app = typer.Typer(help="Inspect the difficulty matrix.", no_args_is_help=True)
app.add_typer(matrix_app, name="matrix")


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Show debug logging."
        ),
    ] = 0,
):
    """Global settings for reprise."""
    ctx.ensure_object(dict)
    ctx.obj["verbose_bonus"] = verbose
    _apply_verbosity(verbose)


PathArg = Annotated[
    Path | None,
    typer.Argument(help="Vault directory or Markdown file. Defaults to 'vault_root' in config, or CWD."),
]
DeckOpt = Annotated[str | None, typer.Option(help="Only cards from this deck.")]


# ---------------------------------------------------------------------------
# Review commands
# ---------------------------------------------------------------------------


@app.command()
def review(
    ctx: typer.Context,
    path: PathArg = None,
    deck: DeckOpt = None,
):
    """[bold green]Review[/bold green] the cards that are due."""
    from reprise.application.factory import get_review_service
    from reprise.application.summary import format_summary
    from reprise.interface.review_loop import run_interactive

    config = _resolve_with_overrides(
        vault_root=path, deck=deck, verbose=ctx.obj.get("verbose_bonus", 0)
    )
    service = get_review_service(config)

    try:
        session = service.start_review(
            config.deck, on_summary=lambda s: typer.echo("\n" + format_summary(s))
        )
        if session is None:
            typer.secho("No cards due.", fg="yellow")
            return
        run_interactive(session, input_fn=input, output_fn=typer.echo)
    except RepriseError as e:
        typer.secho(str(e), fg="red")
        raise typer.Exit(1) from e


@app.command()
def preview(
    ctx: typer.Context,
    path: PathArg = None,
    deck: DeckOpt = None,
):
    """Browse every card read-only. Nothing is scored or written."""
    from reprise.application.factory import get_review_service
    from reprise.interface.review_loop import run_interactive

    config = _resolve_with_overrides(
        vault_root=path, deck=deck, verbose=ctx.obj.get("verbose_bonus", 0)
    )
    service = get_review_service(config)

    try:
        session = service.start_preview(
            config.deck, on_complete=lambda _: typer.echo("\nPreview finished.")
        )
        if session is None:
            typer.secho("No cards found.", fg="yellow")
            return
        run_interactive(session, input_fn=input, output_fn=typer.echo)
    except RepriseError as e:
        typer.secho(str(e), fg="red")
        raise typer.Exit(1) from e


@app.command()
def status(
    path: PathArg = None,
    deck: DeckOpt = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show overdue / new / total card counts."""
    from reprise.application.factory import get_review_service

    config = _resolve_with_overrides(vault_root=path, deck=deck)
    counts = get_review_service(config).status(config.deck)

    if json_output:
        typer.echo(json.dumps({"overdue": counts.overdue, "new": counts.new, "total": counts.total}))
    else:
        typer.echo(f"overdue / new / total: {counts}")


@app.command("ids")
def assign_ids(
    path: PathArg = None,
    dry_run: Annotated[
        bool, typer.Option("--dry-run", help="Report without writing files.")
    ] = False,
):
    """Give every card in the vault a stable id."""
    from reprise.application.id_service import assign_card_ids

    config = _resolve_with_overrides(vault_root=path)
    count = assign_card_ids(config.vault_root, dry_run=dry_run)
    verb = "Would assign" if dry_run else "Assigned"
    typer.secho(f"{verb} {count} id(s).", fg="green" if count else None)


@app.command()
def serve(
    port: Annotated[int, typer.Option(help="Port to bind the server to.")] = 8778,
    host: Annotated[str, typer.Option(help="Host to bind the server to.")] = "127.0.0.1",
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the HTTP review server."""
    import uvicorn

    uvicorn.run("reprise.server:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Matrix subgroup
# ---------------------------------------------------------------------------


@matrix_app.command("show")
def matrix_show(path: PathArg = None):
    """Print the stored difficulty matrix as JSON."""
    from reprise.application.factory import get_matrix_state

    config = _resolve_with_overrides(vault_root=path)
    state = get_matrix_state(config.effective_matrix_path())
    typer.echo(json.dumps(state.current.to_nested(), indent=2, sort_keys=True))


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))

"""Command-line interface for trying out the task parser."""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import get_config, load_config
from .exceptions import ConfigError
from .parser import TaskParser, TaskBuilder, ParsedTask


console = Console()


def format_parsed_task(parsed: ParsedTask) -> Table:
    """Render a parsed task as a two-column table."""
    priority_colors = {0: "dim", 1: "white", 2: "yellow", 3: "red"}

    table = Table(show_header=False, box=None)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")

    table.add_row("Title", escape(parsed.title))
    table.add_row("Due date", parsed.due_date.isoformat() if parsed.due_date else "[dim]-[/dim]")
    table.add_row("Due time", parsed.due_time or "[dim]-[/dim]")
    table.add_row("Recurrence", parsed.recurrence_rule or "[dim]-[/dim]")

    color = priority_colors.get(parsed.priority, "red")
    table.add_row("Priority", f"[{color}]{parsed.priority}[/{color}]")
    table.add_row("Tags", escape(" ".join(f"#{tag}" for tag in parsed.tags)) or "[dim]-[/dim]")
    return table


@click.group()
@click.option("--config", type=click.Path(), help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Log each extraction pass")
@click.pass_context
def main(ctx, config, verbose):
    """todo-nlp - parse natural language task lines."""
    ctx.ensure_object(dict)

    try:
        settings = load_config(Path(config)) if config else get_config()
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    ctx.obj['config'] = settings


@main.command()
@click.argument("text", required=True)
@click.option("--json", "as_json", is_flag=True, help="Print the create-task payload as JSON")
@click.option("--list-id", help="List identifier to include in the payload")
@click.option("--now", "now_str", help="Reference instant (ISO format) for relative dates")
@click.pass_context
def parse(ctx, text, as_json, list_id, now_str):
    """Parse TEXT and show the extracted fields."""
    now = None
    if now_str:
        try:
            now = datetime.fromisoformat(now_str)
        except ValueError:
            console.print("[red]Error: Invalid --now value. Use YYYY-MM-DDTHH:MM[/red]")
            sys.exit(1)

    parsed = TaskParser(ctx.obj['config']).parse(text, now=now)

    if as_json:
        payload = TaskBuilder().build(parsed, list_id)
        click.echo(json.dumps(payload, ensure_ascii=False))
        return

    console.print(format_parsed_task(parsed))


@main.command("show-config")
@click.pass_context
def show_config(ctx):
    """Show the active parser configuration."""
    console.print(ctx.obj['config'].to_yaml())


if __name__ == "__main__":
    main()

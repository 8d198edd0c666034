"""Command-line interface for todosh."""

import logging
import sys
from pathlib import Path
from typing import List, NoReturn

import click
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

from . import __version__
from .config import get_config, load_config
from .exceptions import ConfigError, InvalidIdError, TodoshError
from .storage import Storage
from .todo import Todo, parse_todo_id


TABLE_BOXES = {
    "modern": box.SQUARE,
    "rounded": box.ROUNDED,
    "simple": box.SIMPLE,
    "ascii": box.ASCII,
    "markdown": box.MARKDOWN,
}


def get_console() -> Console:
    """Get a console that reflects current configuration."""
    return Console(no_color=get_config().no_color)


def get_error_console() -> Console:
    return Console(stderr=True)


def get_storage() -> Storage:
    """Get initialized storage instance."""
    return Storage(get_config())


def configure_logging(verbose: bool = False) -> None:
    """Send todosh logs to stderr through rich. Debug level when verbose."""
    logger = logging.getLogger("todosh")
    logger.handlers.clear()
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    handler = RichHandler(console=get_error_console(), show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


def build_todo_table(todos: List[Todo], style: str = "modern") -> Table:
    """Build a rich table of todos in store order."""
    table = Table(box=TABLE_BOXES.get(style, box.SQUARE))
    table.add_column("ID", justify="right", style="dim")
    table.add_column("TASK")
    table.add_column("COMPLETED", justify="center")

    for todo in todos:
        completed = Text("true", style="green") if todo.completed else Text("false", style="yellow")
        table.add_row(str(todo.id), Text(todo.text), completed)

    return table


def show_todos(todos: List[Todo]) -> None:
    console = get_console()
    if not todos:
        console.print("[yellow]No todos found.[/yellow]")
        return
    console.print(build_todo_table(todos, get_config().table_style))


def fail(message: str) -> NoReturn:
    """Report an error and exit with status 1."""
    get_error_console().print(Text(f"❌ {message}", style="red"))
    sys.exit(1)


def validate_todo_id(ctx, param, value):
    """Click callback turning the ID argument into a positive int."""
    try:
        return parse_todo_id(value)
    except InvalidIdError as e:
        raise click.BadParameter(str(e), ctx=ctx, param=param)


@click.group(invoke_without_command=True)
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.version_option(__version__, prog_name="todosh")
@click.pass_context
def main(ctx, config_path, verbose):
    """todosh - A terminal todo list backed by a CSV file."""
    if ctx.invoked_subcommand is None:
        raise click.UsageError("<command> is required", ctx=ctx)

    configure_logging(verbose)

    try:
        load_config(config_path)
    except ConfigError as e:
        fail(f"Configuration error: {e}")


@main.command(name="list")
def list_todos():
    """List todo items."""
    try:
        todos = get_storage().list_todos()
    except TodoshError as e:
        fail(str(e))
    show_todos(todos)


@main.command()
@click.argument("text", required=False)
def create(text):
    """Create a new todo. Prompts for TEXT when it is not given."""
    if text is None:
        text = click.prompt("Task", default="", show_default=False)

    try:
        storage = get_storage()
        todo = storage.append(text)
        todos = storage.list_todos()
    except TodoshError as e:
        fail(str(e))

    get_console().print(Text(f"✅ Added todo {todo.id}: {todo.text}", style="green"))
    show_todos(todos)


@main.command()
@click.argument("todo_id", metavar="ID", callback=validate_todo_id)
def complete(todo_id):
    """Mark todo ID as completed."""
    try:
        storage = get_storage()
        todo = storage.complete(todo_id)
        todos = storage.list_todos()
    except TodoshError as e:
        fail(str(e))

    console = get_console()
    if todo is None:
        console.print(f"[yellow]Todo {todo_id} not found or already completed[/yellow]")
        return

    console.print(Text(f"✅ Completed todo {todo.id}: {todo.text}", style="green"))
    show_todos(todos)


@main.command()
@click.argument("todo_id", metavar="ID", callback=validate_todo_id)
@click.argument("text", required=False)
def update(todo_id, text):
    """Replace the text of todo ID. Prompts for TEXT when it is not given."""
    try:
        storage = get_storage()
        todos = storage.load()
    except TodoshError as e:
        fail(str(e))

    current = storage.find_todo(todos, todo_id)
    if current is None or not 1 <= todo_id <= len(todos):
        fail(f"No todo with ID {todo_id}")

    if text is None:
        get_console().print(Text(f"Current: {current.text}", style="dim"))
        text = click.prompt("New task", default="", show_default=False)

    try:
        todo = storage.update(todo_id, text)
        todos = storage.list_todos()
    except TodoshError as e:
        fail(str(e))

    console = get_console()
    if todo is None:
        console.print(f"[yellow]Nothing to update for todo {todo_id}[/yellow]")
        return

    console.print(Text(f"✏️  Updated todo {todo.id}: {todo.text}", style="green"))
    show_todos(todos)


@main.command()
@click.argument("todo_id", metavar="ID", callback=validate_todo_id)
def delete(todo_id):
    """Delete todo ID and renumber the todos after it."""
    try:
        storage = get_storage()
        deleted = storage.delete(todo_id)
        todos = storage.list_todos()
    except TodoshError as e:
        fail(str(e))

    get_console().print(Text(f"🗑️  Deleted todo {deleted.id}: {deleted.text}", style="green"))
    show_todos(todos)


if __name__ == "__main__":
    main()

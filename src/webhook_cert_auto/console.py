"""Rich console utilities for styled terminal output.

This module provides the operator-facing output of the provisioning
workflow using the Rich library.
"""

from collections.abc import Generator
from contextlib import contextmanager

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.theme import Theme

# Custom theme with consistent colors
_THEME = Theme(
    {
        "info": "cyan",
        "success": "green",
        "warning": "yellow",
        "error": "red bold",
        "highlight": "cyan bold",
        "muted": "dim",
    }
)

# Shared console instance
console = Console(theme=_THEME)

WEBHOOK_DOCUMENTS = ("validating-webhook.yaml", "mutating-webhook.yaml")


def info(message: str) -> None:
    """Print an informational message.

    Args:
        message: The message to display.

    """
    console.print(f"[info]ℹ[/info] {message}")


def success(message: str) -> None:
    """Print a success message.

    Args:
        message: The message to display.

    """
    console.print(f"[success]✓[/success] {message}")


def warning(message: str) -> None:
    """Print a warning message.

    Args:
        message: The message to display.

    """
    console.print(f"[warning]⚠[/warning] {message}")


def error(message: str) -> None:
    """Print an error message.

    Args:
        message: The message to display.

    """
    console.print(f"[error]✗[/error] {message}")


def action(message: str) -> None:
    """Print an action/progress message."""
    console.print(f"[info]→[/info] {message}")


def step(message: str) -> None:
    """Print a sub-step message."""
    console.print(f"[muted]•[/muted] {message}")


def highlight(text: str) -> str:
    """Return text wrapped in highlight markup.

    Args:
        text: The text to highlight.

    Returns:
        Text wrapped in Rich markup for highlighting.

    """
    return f"[highlight]{text}[/highlight]"


@contextmanager
def spinner(message: str) -> Generator[None, None, None]:
    """Display a spinner while performing an operation.

    Args:
        message: The status message to display.

    Yields:
        None

    """
    with console.status(f"[info]{message}[/info]", spinner="dots"):
        yield


def summary_panel(title: str, items: dict[str, str]) -> None:
    """Print a summary panel with key-value pairs.

    Args:
        title: Title for the panel.
        items: Dictionary of label -> value pairs to display.

    """
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold")
    table.add_column(style="cyan")

    for label, value in items.items():
        table.add_row(f"{label}:", value)

    console.print(Panel(table, title=f"[bold]{title}[/bold]", border_style="green"))


def ca_bundle_instructions(command: str, ca_bundle: str | None = None) -> None:
    """Tell the operator where the CA bundle of the cluster has to go.

    The webhook configuration documents are not generated here, so the
    CA data has to be pasted into them by hand.

    Args:
        command: Shell command printing the CA data of the current context.
        ca_bundle: The CA data itself, when it could be read from the kubeconfig.

    """
    documents = " and ".join(WEBHOOK_DOCUMENTS)
    console.print()
    info(f"Copy the CA data and replace the CA_BUNDLE value in {documents}")
    step("You can display this data with the following command:")
    console.print(Syntax(command, "bash", word_wrap=True, background_color="default"))

    if ca_bundle:
        console.print(Panel(ca_bundle, title="[bold]CA_BUNDLE[/bold]", border_style="cyan"))


def newline() -> None:
    """Print an empty line."""
    console.print()

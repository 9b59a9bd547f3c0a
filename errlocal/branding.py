"""
Terminal output helpers for errlocal.

All user-facing output goes through the shared rich console so colors and
emoji stay consistent across commands.
"""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.text import Text

console = Console()
err_console = Console(stderr=True)

STATUS_STYLES = {
    "info": ("ℹ️ ", "blue"),
    "success": ("✅", "green"),
    "warning": ("⚠️ ", "yellow"),
    "error": ("❌", "red"),
    "dim": ("", "dim"),
}


def el_print(message: str, status: str = "info") -> None:
    """Print a one-line status message with the matching emoji and color.

    ``message`` is printed literally, never parsed as rich markup.
    """
    emoji, style = STATUS_STYLES.get(status, STATUS_STYLES["info"])
    prefix = f"{emoji} " if emoji else ""
    target = err_console if status == "error" else console
    target.print(f"[{style}]{prefix}{escape(message)}[/{style}]")


def show_hint(index: int, text: str) -> None:
    # Hint text comes from the model and may contain brackets such as data[key]
    console.print(
        Panel(
            Text(text),
            title=f"[bold cyan]🔍 Hint {index + 1}[/bold cyan]",
            border_style="cyan",
        )
    )


def show_final(text: str) -> None:
    console.print(
        Panel(
            Text(text),
            title="[bold green]✅ Full Explanation[/bold green]",
            border_style="green",
        )
    )


def show_snippet(file_path: str, snippet: str) -> None:
    """Render a gutter-formatted code window extracted from the failing file."""
    console.print(
        Panel(
            Syntax(snippet, "text", word_wrap=True),
            title=f"[bold]📄 {escape(file_path)}[/bold]",
            border_style="dim",
        )
    )

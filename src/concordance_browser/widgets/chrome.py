"""Widget chrome: footer hints for the active pane."""

from __future__ import annotations

from rich.markup import escape as escape_markup
from textual.widgets import Static


class ContextFooter(Static):
    """Context-sensitive footer showing relevant keybindings."""

    DEFAULT_CSS = """
    ContextFooter {
        dock: bottom;
        height: 1;
        background: $background;
        color: $text-muted;
        padding: 0 1;
        border-top: solid $panel;
    }
    """

    def render_bindings(self, bindings: list[tuple[str, str]]) -> None:
        """Update the footer with a list of (key, label) binding hints."""
        parts = []
        for key, label in bindings:
            safe_key = escape_markup(key)
            if key and label:
                parts.append(f"[bold cyan]{safe_key}[/] [dim]{label}[/]")
            elif label:
                # Label-only entry (e.g., progress indicator)
                parts.append(f"[italic dim]{label}[/]")
            else:
                parts.append(f"[italic dim]{safe_key}[/]")
        self.update("  ".join(parts))

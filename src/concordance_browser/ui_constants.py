"""Internal UI constants for the ConcordanceBrowser app."""

from __future__ import annotations

from textual.binding import Binding, BindingType

APP_CSS = """
#main-container {
    height: 1fr;
}

#left-pane {
    width: 2fr;
    min-width: 40;
    height: 100%;
    border: tall $panel;
}

#left-pane:focus-within {
    border: tall $accent;
}

#right-pane {
    width: 3fr;
    height: 100%;
    border: tall $panel;
}

#right-pane:focus-within {
    border: tall $accent;
}

#list-header, #results-header {
    padding: 0 1;
    color: $accent;
    text-style: bold;
}

#filter-input, #year-input {
    display: none;
    margin: 0 1;
}

#filter-input.visible, #year-input.visible {
    display: block;
}

#query-input {
    margin: 0 1;
}

#document-list, #hit-list {
    height: 1fr;
    border: none;
}

#status-bar {
    padding: 0 1;
    color: $text-muted;
}
"""

APP_BINDINGS: list[BindingType] = [
    Binding("q", "quit", "Quit", show=False),
    Binding("slash", "focus_query", "Query", show=False),
    Binding("f", "toggle_filter", "Filter", show=False),
    Binding("y", "toggle_year_range", "Years", show=False),
    Binding("escape", "cancel_input", "Cancel", show=False),
    Binding("space", "toggle_document", "Toggle", show=False),
    Binding("a", "select_all", "Select All", show=False),
    Binding("u", "clear_selection", "Clear", show=False),
    Binding("E", "export_hits", "Export", show=False),
    Binding("r", "reload_corpus", "Reload", show=False),
]

FOOTER_BINDINGS: list[tuple[str, str]] = [
    ("/", "query"),
    ("enter", "search"),
    ("space", "toggle"),
    ("a", "all"),
    ("u", "none"),
    ("f", "filter"),
    ("y", "years"),
    ("E", "export"),
    ("r", "reload"),
    ("q", "quit"),
]

__all__ = [
    "APP_BINDINGS",
    "APP_CSS",
    "FOOTER_BINDINGS",
]

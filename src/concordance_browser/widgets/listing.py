"""List rendering helpers for corpus documents and concordance hits."""

from __future__ import annotations

from html.parser import HTMLParser

from rich.markup import escape as escape_markup

from concordance_browser.models import UNKNOWN_YEAR, ConcordanceHit, CorpusDocument

SELECTED_ICON = "[green]●[/]"
EXCLUDED_ICON = "[dim]○[/]"
THUMBNAIL_ICON = "▣"

# Markup tags the concordance service uses for emphasis
_EMPHASIS_STYLES = {
    "b": "bold",
    "strong": "bold",
    "em": "italic",
    "i": "italic",
}
_BREAK_TAGS = frozenset({"br", "p", "div", "li"})


class _RichMarkupBuilder(HTMLParser):
    """Translate concordance HTML into Rich console markup."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self._pieces: list[str] = []
        self._open: list[str] = []

    def handle_starttag(self, tag: str, _attrs: list[tuple[str, str | None]]) -> None:
        style = _EMPHASIS_STYLES.get(tag)
        if style is not None:
            self._open.append(tag)
            self._pieces.append(f"[{style}]")
        elif tag in _BREAK_TAGS:
            self._pieces.append(" ")

    def handle_endtag(self, tag: str) -> None:
        if tag in _EMPHASIS_STYLES and tag in self._open:
            # Close everything opened after the matching tag as well
            while self._open:
                closed = self._open.pop()
                self._pieces.append("[/]")
                if closed == tag:
                    break
        elif tag in _BREAK_TAGS:
            self._pieces.append(" ")

    def handle_data(self, data: str) -> None:
        self._pieces.append(escape_markup(data))

    def get_markup(self) -> str:
        return "".join(self._pieces) + "[/]" * len(self._open)


def concordance_to_rich(markup: str) -> str:
    """Convert concordance HTML to Rich markup, keeping bold/italic emphasis."""
    if not markup:
        return ""
    builder = _RichMarkupBuilder()
    builder.feed(markup)
    builder.close()
    return builder.get_markup()


def render_document_option(
    doc: CorpusDocument,
    *,
    selected: bool = True,
    has_thumbnail: bool = False,
) -> str:
    """Render a corpus document as Rich markup for OptionList display."""
    marker = SELECTED_ICON if selected else EXCLUDED_ICON
    year = str(doc.year) if doc.year is not None else UNKNOWN_YEAR
    title = escape_markup(doc.display_title)
    if not selected:
        title = f"[dim]{title}[/]"
    thumb = f" [cyan]{THUMBNAIL_ICON}[/]" if has_thumbnail else ""
    return f"{marker} {title}{thumb}\n  [dim]{escape_markup(year)} · {escape_markup(doc.id)}[/]"


def render_hit_option(hit: ConcordanceHit) -> str:
    """Render a concordance hit: title line, then the highlighted context."""
    header = f"[bold]{escape_markup(hit.title)}[/] [dim]({escape_markup(hit.year_label)})[/]"
    return f"{header}\n  {concordance_to_rich(hit.concordance_markup)}"


__all__ = [
    "concordance_to_rich",
    "render_document_option",
    "render_hit_option",
]

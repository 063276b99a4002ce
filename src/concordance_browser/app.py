#!/usr/bin/env python3
"""Concordance Browser TUI - search a literary corpus for keywords in context.

Usage:
    concordance-browser                         # Use ./app.manifest.json
    concordance-browser -m corpus/app.manifest.json
    concordance-browser --no-restore            # Start fresh session
    concordance-browser --query "hav" --export  # Headless search and export

Key bindings:
    /       - Focus the query input (Enter runs the search)
    space   - Toggle the highlighted document
    a       - Select all visible documents
    u       - Clear all visible documents
    f       - Filter documents by title (fuzzy matching)
    y       - Restrict documents to a year range
    E       - Export hits to CSV
    r       - Reload the corpus
    q       - Quit
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any

import httpx
from textual import on
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.timer import Timer
from textual.widgets import Header, Input, Label, OptionList
from textual.widgets.option_list import Option, OptionDoesNotExist

from concordance_browser.action_messages import (
    build_actionable_error,
    build_actionable_success,
    describe_error,
    describe_manifest_warning,
)
from concordance_browser.cli import _configure_logging, _validate_interactive_tty
from concordance_browser.cli import main as _cli_main
from concordance_browser.config import load_config, save_config
from concordance_browser.export import get_export_dir, write_export_file
from concordance_browser.models import CorpusDocument, SessionState, UserConfig, YearRange
from concordance_browser.query import format_year_range, parse_year_range_text
from concordance_browser.services.interfaces import AppServices
from concordance_browser.session import CorpusSession
from concordance_browser.ui_constants import APP_BINDINGS, APP_CSS, FOOTER_BINDINGS
from concordance_browser.widgets import (
    ContextFooter,
    render_document_option,
    render_hit_option,
)

logger = logging.getLogger(__name__)

FILTER_DEBOUNCE_DELAY = 0.2  # Seconds to wait before applying the title filter


def build_document_list_empty_message(*, loading: bool, filtered: bool) -> str:
    """Return the placeholder shown when the document list is empty."""
    if loading:
        return "[dim italic]Loading corpus...[/]"
    if filtered:
        return (
            "[dim italic]No documents match the filter.[/]\n"
            "[dim]Try: press [bold]f[/bold] or [bold]y[/bold] to widen it.[/]"
        )
    return (
        "[dim italic]No documents available.[/]\n"
        "[dim]Next: check the manifest and press [bold]r[/bold] to reload.[/]"
    )


class ConcordanceBrowser(App):
    """A TUI application to search a corpus and export concordances."""

    TITLE = "Concordance Browser"

    CSS = APP_CSS

    BINDINGS = APP_BINDINGS

    def __init__(
        self,
        manifest_location: str,
        table_location: str | None = None,
        config: UserConfig | None = None,
        restore_session: bool = True,
        year_range: YearRange | None = None,
        services: AppServices | None = None,
    ) -> None:
        super().__init__()
        self._manifest_location = manifest_location
        self._table_location = table_location
        self._config = config or UserConfig()
        self._restore_session = restore_session
        self._session = CorpusSession(services)
        self._year_range = year_range
        self._filter_text = ""
        self._visible: list[CorpusDocument] = []
        self._pending_exclusions: list[str] | None = None
        self._load_attempted = False
        self._filter_timer: Timer | None = None
        self._background_tasks: set[asyncio.Task[None]] = set()
        self._http_client: httpx.AsyncClient | None = None

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main-container"):
            with Vertical(id="left-pane"):
                yield Label(" Documents", id="list-header")
                yield Input(placeholder=" Filter titles (fuzzy)", id="filter-input")
                yield Input(placeholder=" Years: 1990-2020, 1990-, -2020", id="year-input")
                yield OptionList(id="document-list")
                yield Label("", id="status-bar")
            with Vertical(id="right-pane"):
                yield Input(placeholder=" Search expression, Enter to search", id="query-input")
                yield Label(" Hits", id="results-header")
                yield OptionList(id="hit-list")
        yield ContextFooter()

    def on_mount(self) -> None:
        """Restore session state and start loading the corpus."""
        # Create shared HTTP client for connection pooling
        self._http_client = httpx.AsyncClient()

        if self._restore_session:
            session = self._config.session
            if session.last_query:
                self.query_one("#query-input", Input).value = session.last_query
            if self._year_range is None and (
                session.year_from is not None or session.year_to is not None
            ):
                self._year_range = YearRange(start=session.year_from, end=session.year_to)
            self._pending_exclusions = list(session.excluded_ids)

        self.query_one(ContextFooter).render_bindings(FOOTER_BINDINGS)
        self._refresh_document_list()
        self._refresh_hit_list()
        self._track_task(self._load_corpus())

        try:
            self.query_one("#document-list", OptionList).focus()
        except NoMatches:
            pass

    async def on_unmount(self) -> None:
        """Save session state, cancel background work and close the HTTP client."""
        self._save_session_state()
        self._session.close()

        timer = self._filter_timer
        self._filter_timer = None
        if timer is not None:
            timer.stop()

        # Cancel tracked background tasks to avoid leaks during teardown.
        pending = [task for task in self._background_tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            _, still_pending = await asyncio.wait(pending, timeout=0.5)
            for task in still_pending:
                logger.debug("Background task did not cancel before shutdown: %r", task)
        self._background_tasks.clear()

        client = self._http_client
        self._http_client = None
        if client is not None:
            try:
                await client.aclose()
            except Exception as e:
                logger.debug(
                    "Failed to close shared HTTP client during shutdown: %s", e, exc_info=True
                )

    def _track_task(self, coro: Any) -> asyncio.Task[None]:
        """Create an asyncio task and track it to prevent garbage collection."""
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        task.add_done_callback(self._on_task_done)
        return task

    @staticmethod
    def _on_task_done(task: asyncio.Task[None]) -> None:
        """Log unhandled exceptions from background tasks."""
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Unhandled exception in background task: %s", exc, exc_info=exc)

    # ------------------------------------------------------------------
    # Corpus loading and thumbnails
    # ------------------------------------------------------------------

    async def _load_corpus(self) -> None:
        """Load (or reload) the corpus, then resolve thumbnails."""
        self._update_status_bar("Loading corpus...")
        loaded = await self._session.load(
            self._manifest_location,
            client=self._http_client,
            table_location=self._table_location,
        )
        self._load_attempted = True
        if not loaded:
            # A superseded load leaves the newer one in charge of the UI
            if not self._session.loading and self._session.last_error:
                self.notify(
                    build_actionable_error(
                        "load the corpus",
                        why=self._session.last_error,
                        next_step="check the manifest and press r to reload",
                    ),
                    severity="error",
                    timeout=8,
                )
                self._refresh_document_list()
            return

        self.title = self._session.manifest.app_name
        for warning in self._session.load_warnings:
            self.notify(describe_manifest_warning(warning), severity="warning", timeout=8)
        if self._pending_exclusions:
            applied = self._session.selection.restore_excluded(
                self._pending_exclusions, self._session.registry.ids()
            )
            logger.debug("Restored %d persisted exclusion(s)", applied)
        self._pending_exclusions = None
        self.sub_title = f"{len(self._session.registry)} documents"
        self._refresh_document_list()

        if self._http_client is not None:
            await self._session.resolve_thumbnails(
                self._http_client, on_resolved=self._on_thumbnail_resolved
            )

    def _on_thumbnail_resolved(self, doc_id: str, _url: str) -> None:
        doc = self._session.registry.get(doc_id)
        if doc is not None:
            self._refresh_document_option(doc)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _render_document(self, doc: CorpusDocument) -> str:
        return render_document_option(
            doc,
            selected=self._session.selection.is_selected(doc.id),
            has_thumbnail=self._session.thumbnails.get(doc.id) is not None,
        )

    def _refresh_document_list(self) -> None:
        """Rebuild the document list from the registry, filter and year range."""
        self._visible = self._session.visible_documents(self._filter_text, self._year_range)
        try:
            option_list = self.query_one("#document-list", OptionList)
        except NoMatches:
            return
        highlighted = option_list.highlighted
        option_list.clear_options()
        if self._visible:
            option_list.add_options(
                [Option(self._render_document(doc), id=doc.id) for doc in self._visible]
            )
            option_list.highlighted = min(highlighted or 0, len(self._visible) - 1)
        else:
            filtered = bool(self._filter_text.strip()) or self._year_range is not None
            option_list.add_option(
                Option(
                    build_document_list_empty_message(
                        loading=self._session.loading or not self._load_attempted,
                        filtered=filtered,
                    ),
                    disabled=True,
                )
            )
        self._update_list_header()
        self._update_status_bar()

    def _refresh_document_option(self, doc: CorpusDocument) -> None:
        try:
            option_list = self.query_one("#document-list", OptionList)
            option_list.replace_option_prompt(doc.id, self._render_document(doc))
        except (NoMatches, OptionDoesNotExist):
            return

    def _refresh_hit_list(self) -> None:
        try:
            hit_list = self.query_one("#hit-list", OptionList)
            header = self.query_one("#results-header", Label)
        except NoMatches:
            return
        hits = self._session.hits
        hit_list.clear_options()
        if hits:
            hit_list.add_options([Option(render_hit_option(hit)) for hit in hits])
        elif self._session.last_query:
            hit_list.add_option(Option("[dim italic]No hits.[/]", disabled=True))
        if self._session.last_query:
            header.update(f" Hits ({len(hits)}) for “{self._session.last_query}”")
        else:
            header.update(" Hits")

    def _update_list_header(self) -> None:
        try:
            header = self.query_one("#list-header", Label)
        except NoMatches:
            return
        total = len(self._session.registry)
        included = len(self._session.included_ids(self._year_range))
        header.update(f" Documents ({included}/{total} included)")

    def _update_status_bar(self, message: str | None = None) -> None:
        try:
            status = self.query_one("#status-bar", Label)
        except NoMatches:
            return
        if message is None:
            parts = [f"{len(self._visible)} shown"]
            if self._filter_text.strip():
                parts.append(f"filter “{self._filter_text.strip()}”")
            if self._year_range is not None:
                parts.append(f"years {format_year_range(self._year_range)}")
            message = " · ".join(parts)
        status.update(message)

    def _highlighted_document(self) -> CorpusDocument | None:
        option_list = self.query_one("#document-list", OptionList)
        idx = option_list.highlighted
        if idx is None or not 0 <= idx < len(self._visible):
            return None
        return self._visible[idx]

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    @on(Input.Submitted, "#query-input")
    def on_query_submitted(self, event: Input.Submitted) -> None:
        """Run a search for the submitted expression."""
        self._track_task(self._run_search(event.value))

    async def _run_search(self, query: str) -> None:
        self.query_one("#results-header", Label).update(" Searching...")
        found = await self._session.search(
            query, client=self._http_client, year_range=self._year_range
        )
        if not found and not self._session.searching and self._session.last_error:
            self.notify(
                build_actionable_error(
                    "run the search",
                    why=self._session.last_error,
                    next_step="adjust the query or selection and press Enter",
                ),
                severity="warning",
            )
        self._refresh_hit_list()

    # ------------------------------------------------------------------
    # Filter and year range inputs
    # ------------------------------------------------------------------

    @on(Input.Changed, "#filter-input")
    def on_filter_changed(self, event: Input.Changed) -> None:
        """Debounce title filter changes.

        Uses atomic swap pattern to avoid race conditions with timer callbacks.
        """
        pending = event.value
        old_timer = self._filter_timer
        self._filter_timer = None
        if old_timer is not None:
            old_timer.stop()
        self._filter_timer = self.set_timer(
            FILTER_DEBOUNCE_DELAY,
            lambda: self._apply_filter(pending),
        )

    def _apply_filter(self, text: str) -> None:
        self._filter_timer = None
        self._filter_text = text
        self._refresh_document_list()

    @on(Input.Submitted, "#filter-input")
    def on_filter_submitted(self, event: Input.Submitted) -> None:
        self._apply_filter(event.value)
        self.query_one("#document-list", OptionList).focus()

    @on(Input.Submitted, "#year-input")
    def on_year_range_submitted(self, event: Input.Submitted) -> None:
        try:
            year_range = parse_year_range_text(event.value)
        except ValueError as e:
            self.notify(
                build_actionable_error(
                    "set the year range", why=str(e), next_step="enter years like 1990-2020"
                ),
                severity="warning",
            )
            return
        self._year_range = year_range
        event.input.remove_class("visible")
        self._refresh_document_list()
        self.query_one("#document-list", OptionList).focus()

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def action_focus_query(self) -> None:
        self.query_one("#query-input", Input).focus()

    def action_toggle_filter(self) -> None:
        filter_input = self.query_one("#filter-input", Input)
        filter_input.add_class("visible")
        filter_input.focus()

    def action_toggle_year_range(self) -> None:
        year_input = self.query_one("#year-input", Input)
        year_range = self._year_range
        if year_range is None:
            bounds = self._session.registry.year_bounds()
            if bounds is not None:
                # Start from the corpus span
                year_range = YearRange(start=bounds[0], end=bounds[1])
        year_input.value = format_year_range(year_range)
        year_input.add_class("visible")
        year_input.focus()

    def action_cancel_input(self) -> None:
        """Hide the year input (and an empty filter) and return focus to the list."""
        filter_input = self.query_one("#filter-input", Input)
        if not filter_input.value.strip():
            filter_input.remove_class("visible")
        self.query_one("#year-input", Input).remove_class("visible")
        self.query_one("#document-list", OptionList).focus()

    def action_toggle_document(self) -> None:
        doc = self._highlighted_document()
        if doc is None:
            return
        self._session.selection.toggle(doc.id)
        self._refresh_document_option(doc)
        self._update_list_header()

    def action_select_all(self) -> None:
        """Include every visible document."""
        self._session.selection.select_all(doc.id for doc in self._visible)
        self._refresh_document_list()

    def action_clear_selection(self) -> None:
        """Exclude every visible document."""
        self._session.selection.clear_all(doc.id for doc in self._visible)
        self._refresh_document_list()

    def action_reload_corpus(self) -> None:
        self._track_task(self._load_corpus())

    def action_export_hits(self) -> None:
        """Write the current hits to a dated CSV file."""
        hits = self._session.hits
        if not hits:
            self.notify("No hits to export.", severity="warning")
            return
        try:
            path = write_export_file(hits, get_export_dir(self._config.export_dir))
        except OSError as e:
            logger.warning("Export failed: %s", e, exc_info=True)
            self.notify(describe_error("export the hits", e), severity="error", timeout=8)
            return
        if path is not None:
            self.notify(
                build_actionable_success(
                    f"Exported {len(hits)} hit(s)",
                    detail=f"Saved to {path}",
                ),
                title="Export",
            )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _save_session_state(self) -> None:
        """Save the query, exclusions and year range to config."""
        try:
            query = self.query_one("#query-input", Input).value.strip()
        except NoMatches:
            query = self._session.last_query
        excluded = self._session.selection.excluded_ids()
        if self._pending_exclusions:
            # Corpus never loaded; keep what the previous session saved
            excluded = list(dict.fromkeys([*self._pending_exclusions, *excluded]))
        year_range = self._year_range
        self._config.session = SessionState(
            last_query=query,
            excluded_ids=excluded,
            year_from=year_range.start if year_range else None,
            year_to=year_range.end if year_range else None,
        )
        if not save_config(self._config):
            logger.warning("Failed to save session state to config file")


def main() -> int:
    """Main entry point wrapper for CLI/bootstrap logic."""
    return _cli_main(
        load_config_fn=load_config,
        configure_logging_fn=_configure_logging,
        validate_interactive_tty_fn=_validate_interactive_tty,
        app_factory=ConcordanceBrowser,
    )


if __name__ == "__main__":
    sys.exit(main())

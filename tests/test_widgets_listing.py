"""Focused tests for list rendering helpers."""

from __future__ import annotations

from rich.text import Text

from concordance_browser.widgets.listing import (
    EXCLUDED_ICON,
    SELECTED_ICON,
    THUMBNAIL_ICON,
    concordance_to_rich,
    render_document_option,
    render_hit_option,
)


class TestConcordanceToRich:
    def test_bold_and_italic(self):
        assert concordance_to_rich("a <b>hav</b> <em>og</em>") == "a [bold]hav[/] [italic]og[/]"

    def test_brackets_in_text_are_escaped(self):
        markup = concordance_to_rich("[red]not a tag[/red] <b>x</b>")
        assert Text.from_markup(markup).plain == "[red]not a tag[/red] x"

    def test_entities_decoded(self):
        assert Text.from_markup(concordance_to_rich("a &amp; <b>b</b>")).plain == "a & b"

    def test_unclosed_tag_is_closed(self):
        markup = concordance_to_rich("<b>open")
        assert Text.from_markup(markup).plain == "open"

    def test_stray_close_tag_ignored(self):
        assert concordance_to_rich("x</b>y") == "xy"

    def test_unknown_tags_dropped(self):
        assert Text.from_markup(concordance_to_rich('<span class="k">ord</span>')).plain == "ord"

    def test_empty(self):
        assert concordance_to_rich("") == ""


class TestRenderDocumentOption:
    def test_selected_document(self, make_document):
        text = render_document_option(make_document(), selected=True)
        assert SELECTED_ICON in text
        assert "Hav og himmel" in text
        assert "1998" in text

    def test_excluded_document_is_dimmed(self, make_document):
        text = render_document_option(make_document(), selected=False)
        assert EXCLUDED_ICON in text
        assert "[dim]Hav og himmel[/]" in text

    def test_placeholders_and_thumbnail(self, make_document):
        text = render_document_option(
            make_document(title="", year=None), has_thumbnail=True
        )
        assert "Unknown title" in text
        assert "unknown year" in text
        assert THUMBNAIL_ICON in text

    def test_title_markup_is_escaped(self, make_document):
        text = render_document_option(make_document(title="[bold]x"))
        assert "[bold]x" in Text.from_markup(text).plain


def test_render_hit_option(make_hit):
    text = render_hit_option(make_hit(year=None))
    plain = Text.from_markup(text).plain
    assert "Hav og himmel (unknown year)" in plain
    assert "det store hav ligger" in plain
    assert "[bold]hav[/]" in text

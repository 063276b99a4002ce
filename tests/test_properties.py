"""Property-based tests using Hypothesis.

Verifies invariants across year parsing, response normalization, export
escaping, and selection flags. Each test runs 50 examples in CI, 200 in dev.

Run:
    pytest tests/test_properties.py -v
    pytest tests/test_properties.py -v --hypothesis-seed=0  # reproducible
"""

from __future__ import annotations

import csv
import io

import hypothesis.strategies as st
from hypothesis import given, settings

from concordance_browser.concordance import normalize_response
from concordance_browser.config import _config_to_dict, _dict_to_config
from concordance_browser.export import format_hits_as_csv
from concordance_browser.models import ConcordanceHit, SessionState, UserConfig
from concordance_browser.parsing import flatten_markup, parse_year
from concordance_browser.selection import SelectionManager

# ── Hypothesis profiles ─────────────────────────────────────────────
settings.register_profile("ci", max_examples=50, deadline=None)
settings.register_profile("dev", max_examples=200, deadline=None)
settings.load_profile("ci")

# Text without characters csv normalizes away or HTML parsing would interpret
safe_text = st.text(
    alphabet=st.characters(blacklist_categories=("Cs", "Cc"), blacklist_characters="<>&"),
    max_size=40,
)
ids = st.text(alphabet="0123456789abc", min_size=1, max_size=6)


# ── Year parsing ───────────────────────────────────────────────────


@given(st.integers(min_value=-10_000, max_value=10_000))
def test_parse_year_int_and_string_agree(year):
    assert parse_year(year) == year
    assert parse_year(str(year)) == year
    assert parse_year(f"  {year}  ") == year


@given(st.one_of(st.integers(), st.text(max_size=12)))
def test_parse_year_is_idempotent(value):
    once = parse_year(value)
    if once is not None:
        assert parse_year(once) == once
        assert parse_year(str(once)) == once


# ── Response normalization ─────────────────────────────────────────

row_values = st.one_of(st.none(), st.integers(0, 10_000), safe_text)
records = st.lists(
    st.fixed_dictionaries(
        {"docid": row_values, "dhlabid": row_values, "urn": row_values, "conc": row_values}
    ),
    max_size=12,
)


@given(records)
def test_column_form_equals_row_form(rows):
    columns = {
        name: {str(i): row[name] for i, row in enumerate(rows)}
        for name in ("docid", "dhlabid", "urn", "conc")
    }
    assert normalize_response(columns) == normalize_response(rows)


@given(records)
def test_row_count_preserved(rows):
    assert len(normalize_response(rows)) == len(rows)


# ── Export escaping ────────────────────────────────────────────────


@given(st.lists(st.tuples(safe_text, safe_text, ids), max_size=8))
def test_export_round_trips_through_csv_reader(items):
    hits = [
        ConcordanceHit(
            book_id=book_id,
            urn="URN:X",
            concordance_markup=conc,
            title=title,
            year=None,
            document_url="https://www.nb.no/items/URN%3AX",
        )
        for title, conc, book_id in items
    ]
    rows = list(csv.reader(io.StringIO(format_hits_as_csv(hits), newline=""), delimiter=";"))
    assert len(rows) == len(hits) + 1
    for row, hit in zip(rows[1:], hits, strict=True):
        assert row[0] == hit.title
        assert row[3] == hit.book_id
        assert row[4] == flatten_markup(hit.concordance_markup)


# ── Selection ──────────────────────────────────────────────────────


@given(st.lists(ids, unique=True, min_size=1, max_size=20), st.data())
def test_toggle_changes_exactly_one_flag(all_ids, data):
    selection = SelectionManager()
    selection.initialize(all_ids)
    target = data.draw(st.sampled_from(all_ids))
    before = {i: selection.is_selected(i) for i in all_ids}
    selection.toggle(target)
    after = {i: selection.is_selected(i) for i in all_ids}
    assert [i for i in all_ids if before[i] != after[i]] == [target]


@given(st.lists(ids, unique=True, max_size=20), st.data())
def test_bulk_actions_touch_only_visible(all_ids, data):
    visible = data.draw(st.lists(st.sampled_from(all_ids), unique=True) if all_ids else st.just([]))
    selection = SelectionManager()
    selection.initialize(all_ids)
    selection.clear_all(visible)
    hidden = [i for i in all_ids if i not in visible]
    assert selection.included(all_ids) == hidden
    selection.select_all(visible)
    assert selection.included(all_ids) == all_ids


# ── Config round trip ──────────────────────────────────────────────


@given(
    st.text(max_size=20),
    st.lists(ids, max_size=10),
    st.one_of(st.none(), st.integers(0, 3000)),
    st.one_of(st.none(), st.integers(0, 3000)),
)
def test_config_round_trip(query, excluded, year_from, year_to):
    config = UserConfig(
        export_dir="/tmp/x",
        session=SessionState(
            last_query=query, excluded_ids=excluded, year_from=year_from, year_to=year_to
        ),
    )
    assert _dict_to_config(_config_to_dict(config)) == config

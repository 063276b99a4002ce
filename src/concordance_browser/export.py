"""Export formatting: concordance hits as a spreadsheet-ready CSV file."""

from __future__ import annotations

import csv
import io
import os
import tempfile
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from concordance_browser.models import ConcordanceHit
from concordance_browser.parsing import flatten_markup

# Default subdirectory in the home folder
DEFAULT_EXPORT_DIR = "concordance-exports"

EXPORT_HEADER = ("Title", "Link", "URN", "DocumentID", "Concordance")
EXPORT_DELIMITER = ";"
EXPORT_DATE_FORMAT = "%Y-%m-%d"


def format_hits_as_csv(hits: Sequence[ConcordanceHit]) -> str:
    """Format hits as semicolon-delimited CSV with every field quoted.

    Internal double quotes are doubled; rows end with a single newline.
    Concordance markup is flattened to plain text.
    """
    output = io.StringIO()
    writer = csv.writer(
        output,
        delimiter=EXPORT_DELIMITER,
        quoting=csv.QUOTE_ALL,
        lineterminator="\n",
    )
    writer.writerow(EXPORT_HEADER)
    for hit in hits:
        writer.writerow(
            [
                hit.title,
                hit.document_url,
                hit.urn,
                hit.book_id,
                flatten_markup(hit.concordance_markup),
            ]
        )
    return output.getvalue()


def build_export_payload(hits: Sequence[ConcordanceHit]) -> bytes | None:
    """Encode hits as UTF-8 CSV with a byte-order mark, or None when empty."""
    if not hits:
        return None
    return format_hits_as_csv(hits).encode("utf-8-sig")


def build_export_filename(now: datetime | None = None) -> str:
    """Return ``concordance-YYYY-MM-DD.csv`` for the given (or current) date."""
    return f"concordance-{(now or datetime.now()).strftime(EXPORT_DATE_FORMAT)}.csv"


def _unique_export_path(export_dir: Path, filename: str) -> Path:
    """Append -2, -3, ... to the stem when the dated file already exists."""
    filepath = export_dir / filename
    stem, suffix = filepath.stem, filepath.suffix
    counter = 2
    while filepath.exists():
        filepath = export_dir / f"{stem}-{counter}{suffix}"
        counter += 1
    return filepath


def write_export_file(
    hits: Sequence[ConcordanceHit],
    export_dir: Path,
    now: datetime | None = None,
) -> Path | None:
    """Write hits to a dated CSV file using atomic temp-file replacement.

    Returns the written path, or None (and writes nothing) when there are no hits.
    """
    payload = build_export_payload(hits)
    if payload is None:
        return None
    export_dir.mkdir(parents=True, exist_ok=True)
    filepath = _unique_export_path(export_dir, build_export_filename(now))

    fd, tmp_path = tempfile.mkstemp(dir=export_dir, suffix=".tmp", prefix=".csv-")
    closed = False
    try:
        os.write(fd, payload)
        os.close(fd)
        closed = True
        os.replace(tmp_path, filepath)
    except BaseException:
        if not closed:
            os.close(fd)
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
    return filepath


def get_export_dir(configured: str = "") -> Path:
    """Return the configured export directory, or ~/concordance-exports."""
    return Path(configured or Path.home() / DEFAULT_EXPORT_DIR).expanduser()


__all__ = [
    "DEFAULT_EXPORT_DIR",
    "EXPORT_HEADER",
    "build_export_filename",
    "build_export_payload",
    "format_hits_as_csv",
    "get_export_dir",
    "write_export_file",
]

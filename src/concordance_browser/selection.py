"""Per-document inclusion flags for concordance searches."""

from __future__ import annotations

from collections.abc import Iterable


class SelectionManager:
    """Track which corpus documents take part in a search.

    Documents are selected unless explicitly excluded: an id with no
    recorded flag reads as selected. Flags are independent of search
    results and survive corpus reloads that return the same id.
    """

    def __init__(self) -> None:
        self._flags: dict[str, bool] = {}

    def __len__(self) -> int:
        return len(self._flags)

    def initialize(self, ids: Iterable[str]) -> None:
        """Start tracking new ids as selected; leave tracked ids untouched."""
        for doc_id in ids:
            self._flags.setdefault(doc_id, True)

    def is_tracked(self, doc_id: str) -> bool:
        return doc_id in self._flags

    def is_selected(self, doc_id: str) -> bool:
        return self._flags.get(doc_id, True)

    def toggle(self, doc_id: str) -> bool:
        """Flip the flag for one id and return the new value."""
        new_value = not self.is_selected(doc_id)
        self._flags[doc_id] = new_value
        return new_value

    def select_all(self, ids: Iterable[str]) -> None:
        """Select every given id (typically the visible documents)."""
        for doc_id in ids:
            self._flags[doc_id] = True

    def clear_all(self, ids: Iterable[str]) -> None:
        """Exclude every given id (typically the visible documents)."""
        for doc_id in ids:
            self._flags[doc_id] = False

    def included(self, ids: Iterable[str]) -> list[str]:
        """Return the selected subset of ids, preserving order."""
        return [doc_id for doc_id in ids if self.is_selected(doc_id)]

    def excluded_ids(self) -> list[str]:
        """Return explicitly excluded ids (for session persistence)."""
        return [doc_id for doc_id, flag in self._flags.items() if not flag]

    def restore_excluded(self, excluded: Iterable[str], known_ids: Iterable[str]) -> int:
        """Apply persisted exclusions to ids present in ``known_ids``.

        Returns the number of exclusions applied.
        """
        known = set(known_ids)
        applied = 0
        for doc_id in excluded:
            if doc_id in known:
                self._flags[doc_id] = False
                applied += 1
        return applied


__all__ = ["SelectionManager"]

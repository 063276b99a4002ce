"""UI-facing copy builders for notifications and CLI errors."""

from __future__ import annotations

from concordance_browser.errors import (
    ConfigError,
    CorpusError,
    EmptyCorpusError,
    EmptyQueryError,
    EmptySelectionError,
    NoValidIdsError,
    SearchServiceError,
)


def _ensure_sentence(text: str) -> str:
    """Return text with terminal sentence punctuation."""
    cleaned = text.strip()
    if not cleaned:
        return ""
    if cleaned.endswith((".", "!", "?")):
        return cleaned
    return f"{cleaned}."


def build_next_step_hint(next_step: str) -> str:
    """Build a canonical next-step guidance line."""
    return f"Next step: {_ensure_sentence(next_step)}"


def build_actionable_error(
    action: str,
    *,
    next_step: str,
    why: str | None = None,
) -> str:
    """Build a 2-3 line actionable error message."""
    lines = [f"Could not {action.strip()}."]
    if why:
        lines.append(f"Why: {_ensure_sentence(why)}")
    lines.append(build_next_step_hint(next_step))
    return "\n".join(lines)


def build_actionable_success(
    message: str,
    *,
    detail: str | None = None,
    next_step: str | None = None,
) -> str:
    """Build a concise success message with optional detail and next step."""
    lines = [_ensure_sentence(message)]
    if detail:
        lines.append(_ensure_sentence(detail))
    if next_step:
        lines.append(build_next_step_hint(next_step))
    return "\n".join(lines)


_NEXT_STEPS: tuple[tuple[type[Exception], str], ...] = (
    (EmptyQueryError, "type a search expression and press Enter"),
    (EmptyCorpusError, "wait for the corpus to load or reload it with r"),
    (EmptySelectionError, "include documents with space or a, or widen the year range"),
    (NoValidIdsError, "check that the corpus id column holds numeric ids"),
    (SearchServiceError, "check connectivity and retry the search"),
    (CorpusError, "fix the corpus file and reload with r"),
    (ConfigError, "fix app.manifest.json or remove it to use the defaults"),
)


def describe_error(action: str, error: Exception) -> str:
    """Build the user-facing message for an application error."""
    next_step = "retry"
    for error_type, hint in _NEXT_STEPS:
        if isinstance(error, error_type):
            next_step = hint
            break
    return build_actionable_error(action, why=str(error), next_step=next_step)


def describe_manifest_warning(why: str) -> str:
    """Build the message for a manifest that was replaced by defaults."""
    return build_actionable_error(
        "read the manifest",
        why=f"{why.strip().rstrip('.')}; using default settings",
        next_step=dict(_NEXT_STEPS)[ConfigError],
    )


__all__ = [
    "build_actionable_error",
    "build_actionable_success",
    "build_next_step_hint",
    "describe_error",
    "describe_manifest_warning",
]

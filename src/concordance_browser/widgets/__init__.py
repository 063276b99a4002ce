"""Widget classes and render helpers used by the app."""

from concordance_browser.widgets.chrome import ContextFooter
from concordance_browser.widgets.listing import (
    concordance_to_rich,
    render_document_option,
    render_hit_option,
)

__all__ = [
    "ContextFooter",
    "concordance_to_rich",
    "render_document_option",
    "render_hit_option",
]

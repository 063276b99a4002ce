"""Concordance Browser: keyword-in-context search over a fixed literary corpus."""

__version__ = "0.1.0"

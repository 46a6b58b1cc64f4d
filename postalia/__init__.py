"""Postalia: postal-code lookup aggregator with provider fallback."""

__version__ = "0.1.0"

"""Sorted, deduplicated inventories of a GitHub account's repositories."""

__version__ = "0.1.0"

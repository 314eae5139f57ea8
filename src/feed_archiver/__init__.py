"""
Feed Archiver - Syndication feed aggregation and archiving tool.

This package fetches many RSS/Atom feeds concurrently, merges their entries
into a capped master feed, and keeps one durable archive file per source.
"""

__version__ = "0.1.0"

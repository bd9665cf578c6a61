"""
Query normalization and content-addressed cache keys.
"""

import hashlib

DEFAULT_NAMESPACE = "query"


def normalize_query(query: str) -> str:
    """Lower-case and trim a query so trivially different spellings share a key."""
    return query.strip().lower()


def hash_query(query: str) -> str:
    """SHA-256 hex digest of the normalized query."""
    return hashlib.sha256(normalize_query(query).encode("utf-8")).hexdigest()

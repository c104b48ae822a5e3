"""
Data models for the Query Layer.

Includes:
- Enums (ErrorClassification, OperationKind, EntryStatus, LookupOutcome)
- Request keys (RequestKey, make_key)
- Read-only cache views (CacheSnapshot)
"""

from query_layer.models.cache_models import CacheSnapshot
from query_layer.models.enums import (
    EntryStatus,
    ErrorClassification,
    LookupOutcome,
    OperationKind,
)
from query_layer.models.keys import KeyLike, RequestKey, key_has_prefix, make_key

__all__ = [
    # Enums
    "EntryStatus",
    "ErrorClassification",
    "LookupOutcome",
    "OperationKind",
    # Keys
    "KeyLike",
    "RequestKey",
    "key_has_prefix",
    "make_key",
    # Views
    "CacheSnapshot",
]

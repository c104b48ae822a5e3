"""
Read-only views of cache state.

These models are returned to callers that want to inspect the cache
without touching the live entries owned by RequestCache.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from query_layer.models.enums import EntryStatus, ErrorClassification


class CacheSnapshot(BaseModel):
    """
    Point-in-time view of one cache entry.

    `status` is the effective status at the moment the snapshot was taken,
    so a FRESH entry past its staleness window is reported as STALE.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    key: tuple = Field(..., description="Request key")
    status: EntryStatus = Field(..., description="Effective status at snapshot time")
    has_value: bool = Field(..., description="True once at least one fetch succeeded")
    value: Any = Field(default=None, description="Last successfully fetched value")
    fetched_at_ms: Optional[float] = Field(
        default=None, description="Monotonic timestamp of the last successful fetch (ms)"
    )
    stale_after_ms: int = Field(..., ge=0, description="Staleness window for this entry (ms)")
    in_flight: bool = Field(default=False, description="A fetch is currently pending")
    last_error: Optional[ErrorClassification] = Field(
        default=None, description="Classification of the last failure, if any"
    )

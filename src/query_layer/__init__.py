"""
Query Layer: request orchestration for asynchronous data fetches.

Caches fetch results by request key, collapses concurrent fetches for the
same key into one, retries transient failures under a per-kind budget and
triggers a single logout + redirect sequence when the session expires.

Architecture: RequestCache -> RetryEngine (ErrorClassifier + RetryPolicy)
-> AuthFailureMonitor, wired together by SessionContext.
"""

__version__ = "0.1.0"

"""Session-expiry handling: the auth failure monitor and its collaborators."""

from query_layer.auth.collaborators import HttpSessionManager, Navigator, SessionManager
from query_layer.auth.monitor import AuthFailureMonitor

__all__ = [
    "AuthFailureMonitor",
    "HttpSessionManager",
    "Navigator",
    "SessionManager",
]

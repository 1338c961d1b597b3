"""FastAPI dependencies for injection."""
from core.auth import get_current_identity, get_token_verifier
from core.config import get_settings
from db.session import get_scoped_session, get_session_factory

__all__ = [
    "get_current_identity",
    "get_scoped_session",
    "get_session_factory",
    "get_settings",
    "get_token_verifier",
]

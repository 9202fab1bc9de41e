"""Application bootstrap helpers for the vocabulary review engine."""

from .runtime import build_review_session, run_dashboard
from .settings import AppSettings

__all__ = ["run_dashboard", "build_review_session", "AppSettings"]

"""Core utilities for the user directory service."""

from __future__ import annotations

from typing import Any

from .models import User, WorkExperience
from .store import DuplicateEmailError, UserStore


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the HTTP API application."""

    from .service import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "DuplicateEmailError",
    "User",
    "UserStore",
    "WorkExperience",
    "create_app",
]

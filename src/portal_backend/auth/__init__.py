"""Caller identity and role checks."""

from .models import Caller, Role
from .dependencies import get_caller, require_reviewer, require_admin

__all__ = [
    "Caller",
    "Role",
    "get_caller",
    "require_reviewer",
    "require_admin",
]

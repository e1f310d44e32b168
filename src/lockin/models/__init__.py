"""SQLAlchemy models for the tracker."""

from .account import UserAccount
from .document import Document

__all__ = ["Document", "UserAccount"]

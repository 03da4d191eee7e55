"""Storage module for uploaded document content."""

from .local_storage import LocalFileStorage

__all__ = ["LocalFileStorage"]

"""Services built on top of the caches."""

from .content import AudioLocation, ContentService

__all__ = ["AudioLocation", "ContentService"]

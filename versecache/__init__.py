"""Two-policy caching for scripture text and narrated-audio locations."""

__version__ = "1.0.0"

"""Todo tracker: authoritative task store and optimistic client sync layer."""

__version__ = "0.1.0"

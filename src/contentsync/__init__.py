"""contentsync — tiered content resolution and one-time legacy cache migration."""

__version__ = "0.3.0"

"""Tag-gated build and draft-release pipeline."""

__version__ = "0.1.0"

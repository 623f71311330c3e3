"""GitHub portfolio analyzer: collect a public profile, score it, store it."""

__version__ = "1.0.0"

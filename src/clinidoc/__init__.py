"""clinidoc - template-driven Hebrew clinical document engine."""

__version__ = "0.1.0"

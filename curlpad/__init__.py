"""curlpad: run curl request files and capture readable responses."""

__version__ = "1.0.0"

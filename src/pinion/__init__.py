"""Local catalog and version resolution for a Node tool-version manager."""

__version__ = "0.1.0"

"""Create or update GitHub releases and upload their assets from CI."""

__version__ = "0.3.0"

"""reelrelay: short-video link resolver and download relay."""

__version__ = "0.1.0"

"""Rate-limited relay between a browser client and a disposable-email API."""

__version__ = "0.1.0"

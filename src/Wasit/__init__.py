"""Wasit - free-text dispatch to remote compute processes."""

__version__ = "0.3.0"

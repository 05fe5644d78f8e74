"""Restart a command whenever its sources change or F5 is pressed."""

__version__ = "0.1.0"

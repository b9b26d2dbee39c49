"""Engress - live topic coverage tracking for spoken presentations."""

__version__ = "0.1.0"

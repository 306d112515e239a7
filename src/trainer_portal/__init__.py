"""Trainer Portal: backend for a personal trainer's client area."""

__version__ = "1.0.0"

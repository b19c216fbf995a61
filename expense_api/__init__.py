"""HTTP surface for the expense manager."""

from .app import create_app

__all__ = ["create_app"]

"""Database module for Magic Movers."""

from .pool import Database, get_database

__all__ = ["Database", "get_database"]

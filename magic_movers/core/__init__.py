"""Core configuration for Magic Movers."""

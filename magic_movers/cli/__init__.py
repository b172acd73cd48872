"""Command line interface for Magic Movers."""

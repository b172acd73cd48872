"""HTTP API for Magic Movers."""

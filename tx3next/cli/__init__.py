"""Command line interface for tx3next."""

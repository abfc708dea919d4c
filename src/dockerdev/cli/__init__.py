"""Command line interface for dockerdev."""

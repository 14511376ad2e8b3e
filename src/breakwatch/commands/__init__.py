"""Command-line commands for breakwatch."""

"""Command-line interface sub-command groups."""

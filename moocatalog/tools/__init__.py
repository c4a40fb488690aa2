"""Command-line tools for the catalog."""

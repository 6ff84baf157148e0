"""Command-line interface for the adaptive practice scheduler."""

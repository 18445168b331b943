"""Command-line interface for the dice engine."""

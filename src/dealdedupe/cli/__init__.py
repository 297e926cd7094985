"""Command-line interface for dealdedupe."""

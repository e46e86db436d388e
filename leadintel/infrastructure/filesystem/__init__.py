"""File system access for the CLI."""

"""Main entry point when executing leadintel as a package.

This allows running the package using python -m leadintel.
"""

from leadintel.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()

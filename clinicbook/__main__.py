"""
Convenience entry point for running clinicbook directly.

Usage: python -m clinicbook [command] [options]
"""

from clinicbook.cli.app import app

if __name__ == "__main__":
    app()

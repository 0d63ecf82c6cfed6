"""
Convenience entry point for running workingdays directly.

Usage: python -m workingdays [command] [options]
"""

from .cli.app import app

if __name__ == "__main__":
    app()

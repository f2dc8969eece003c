"""
Entry point for ``python -m timesync``.
"""

from .cli.app import app

if __name__ == "__main__":
    app()

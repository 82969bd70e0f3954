"""Entry point for python -m safefs."""

from safefs.cli.commands import app

if __name__ == "__main__":
    app()

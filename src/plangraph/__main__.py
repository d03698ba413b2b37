"""Entry-point for ``python -m plangraph``."""

from plangraph.cli import app

if __name__ == "__main__":
    app()

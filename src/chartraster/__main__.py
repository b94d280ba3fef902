"""Entry point for running ChartRaster as a module.

This allows the CLI to be invoked with ``python -m chartraster``.
"""

from .cli import cli

if __name__ == "__main__":  # pragma: no cover
    cli()

"""Command line interface: ``python -m beneficiary_import.cli``."""

from .app import main

__all__ = ["main"]

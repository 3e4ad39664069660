"""
CLI: comandos status, diff, apply y version.
"""

from puesto.cli.app import app, main

__all__ = ["app", "main"]

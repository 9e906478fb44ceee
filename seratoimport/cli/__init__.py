"""
Serato Import CLI Package

Command-line interface for the Serato Import application.
"""

from .import_cli import main as cli_main

__all__ = ['cli_main']

"""
Command-line interface for the sysdash package.
"""

from .main import main_cli

__all__ = [
    "main_cli",
]

"""
CLI module for arbitrace commands.

This module provides the command-line interface for arbitrace.
"""

from .main import main

__all__ = [
    'main',
    'report_command',
]


# Lazy import to avoid circular dependencies
def report_command(args):
    """Execute the report command."""
    from .report import report_command as _report_command
    return _report_command(args)

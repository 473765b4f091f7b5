"""
Common utilities for CLI commands.
"""

import sys
from typing import Any

from arbitrace.config import TracerConfig
from arbitrace.utils.exceptions import format_error


def build_config(args: Any) -> TracerConfig:
    """
    Resolve the runtime configuration for a command.

    Command line values win over ARBITRACE_* environment variables, which win
    over the defaults.
    """
    return TracerConfig.from_env().with_overrides(
        rpc_url=getattr(args, 'rpc', None),
        explorer_api_url=getattr(args, 'explorer_api_url', None),
        explorer_api_key=getattr(args, 'explorer_api_key', None),
        cache_dir=getattr(args, 'cache_dir', None),
        concurrent_traces=getattr(args, 'concurrent_traces', None),
    )


def handle_command_error(
    e: Exception,
    json_mode: bool = False,
    exit_code: int = 1
) -> int:
    """
    Handle command errors uniformly.

    Args:
        e: The exception that occurred
        json_mode: If True, output as JSON
        exit_code: Exit code to return

    Returns:
        Exit code
    """
    error_output = format_error(e, json_mode)
    if json_mode:
        print(error_output)
    else:
        print(error_output, file=sys.stderr)
    return exit_code

"""
Utilities module for arbitrace.

Provides exception handling, logging and colors.
"""

from .exceptions import (
    ArbitraceError,
    InvalidTransactionHashError,
    TransactionError,
    TraceUnavailableError,
    LookupServiceError,
    CacheStoreError,
    format_error,
    format_error_json,
    format_exception_message,
)
from .logging import setup_logging, get_logger, log_trace, TRACE
from .colors import (
    Colors,
    SUPPORTS_COLOR,
    bold, dim,
    error, success, info,
    address, function_name, gas_value,
)

__all__ = [
    # Exceptions
    'ArbitraceError',
    'InvalidTransactionHashError',
    'TransactionError',
    'TraceUnavailableError',
    'LookupServiceError',
    'CacheStoreError',
    # Formatting
    'format_error',
    'format_error_json',
    'format_exception_message',
    # Logging
    'setup_logging',
    'get_logger',
    'log_trace',
    'TRACE',
    # Colors
    'Colors',
    'SUPPORTS_COLOR',
    'bold', 'dim',
    'error', 'success', 'info',
    'address', 'function_name', 'gas_value',
]

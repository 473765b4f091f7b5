"""
Custom exceptions for arbitrace.

This module provides a hierarchy of exceptions for the failure cases of the
trace report pipeline, along with utilities for formatting errors consistently.
"""

import json
from typing import Any, Dict, Optional


class ArbitraceError(Exception):
    """
    Base exception for all arbitrace errors.

    Attributes:
        message: Human-readable error message
        details: Additional context as key-value pairs
        error_code: Optional error code for programmatic handling
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        self.message = message
        self.details = details or {}
        self.error_code = error_code or self.__class__.__name__
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON serialization."""
        return {
            "error": True,
            "type": self.error_code,
            "message": self.message,
            **self.details
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert exception to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


# ============================================================================
# Transaction Errors
# ============================================================================

class InvalidTransactionHashError(ArbitraceError):
    """Raised when a transaction identifier is malformed."""

    def __init__(self, tx_hash: Any, **kwargs):
        details = {"tx_hash": str(tx_hash)}
        details.update(kwargs)
        super().__init__(
            f"Invalid transaction hash: {tx_hash}",
            details,
            "InvalidTransactionHash"
        )


class TransactionError(ArbitraceError):
    """Raised when transaction operations fail."""

    def __init__(
        self,
        message: str,
        tx_hash: Optional[str] = None,
        **kwargs
    ):
        details = {}
        if tx_hash:
            details["tx_hash"] = tx_hash
        details.update(kwargs)
        super().__init__(message, details, "TransactionError")


class TraceUnavailableError(TransactionError):
    """Raised when the node cannot produce one of the raw traces."""

    def __init__(
        self,
        tx_hash: str,
        tracer: str,
        reason: Optional[str] = None,
        **kwargs
    ):
        message = f"Could not retrieve {tracer} trace for {tx_hash}"
        if reason:
            message += f": {reason}"
        super().__init__(message, tx_hash=tx_hash, tracer=tracer, **kwargs)
        self.tracer = tracer
        self.error_code = "TraceUnavailable"


# ============================================================================
# Enrichment Errors
# ============================================================================

class LookupServiceError(ArbitraceError):
    """Raised for a single failed request to an external lookup service."""

    def __init__(self, message: str, service: Optional[str] = None, **kwargs):
        details = {"service": service} if service else {}
        details.update(kwargs)
        super().__init__(message, details, "LookupServiceError")


class CacheStoreError(ArbitraceError):
    """Raised when the persisted cache cannot be read or written."""

    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        details = {"path": path} if path else {}
        details.update(kwargs)
        super().__init__(message, details, "CacheStoreError")


# ============================================================================
# Error Formatting Utilities
# ============================================================================

def format_error(e: Exception, json_mode: bool = False) -> str:
    """
    Format an exception for display.

    Args:
        e: The exception to format
        json_mode: If True, output as JSON; otherwise use colored text

    Returns:
        Formatted error string
    """
    from arbitrace.utils.colors import error

    if isinstance(e, ArbitraceError):
        if json_mode:
            return e.to_json()
        return error(e.message)
    if json_mode:
        return json.dumps(format_error_json(format_exception_message(e), type(e).__name__), indent=2)
    return error(format_exception_message(e))


def format_error_json(
    message: str,
    error_type: str = "Error",
    **kwargs
) -> Dict[str, Any]:
    """
    Create a standardized error JSON structure.

    Args:
        message: Error message
        error_type: Error type/code
        **kwargs: Additional fields to include

    Returns:
        Dictionary suitable for JSON output
    """
    return {
        "error": True,
        "type": error_type,
        "message": message,
        **kwargs
    }


def format_exception_message(e: Exception) -> str:
    """
    Extract a clean, user-friendly error message from any exception.

    Args:
        e: Exception instance

    Returns:
        Clean error message string
    """
    # Web3RPCError and similar have args[0] as dict
    if hasattr(e, 'args') and e.args:
        first_arg = e.args[0]

        if isinstance(first_arg, dict):
            # RPC error format: {'code': -32003, 'message': '...'}
            return first_arg.get('message', str(e))
        elif isinstance(first_arg, str):
            return first_arg
        else:
            return str(first_arg)

    return str(e)

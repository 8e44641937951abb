"""
Network error detection and classification.

Release fetching and binary downloads both wrap these failures into
sidecar errors instead of letting transport exceptions escape.
"""

import asyncio
import socket

import aiohttp

NETWORK_ERROR_TYPES = (
    aiohttp.ClientError,
    asyncio.TimeoutError,
    socket.gaierror,
    OSError,
)


def is_network_unreachable_error(exception: BaseException) -> bool:
    """
    Determine if an exception represents a network connectivity failure.

    Args:
        exception: Exception to check

    Returns:
        True if this is a network-level error that indicates connectivity issues
    """
    if isinstance(exception, (aiohttp.ClientConnectorError, aiohttp.ServerTimeoutError, asyncio.TimeoutError, socket.gaierror)):
        return True

    os_error = getattr(exception, "os_error", None)
    return isinstance(os_error, OSError)


def describe_network_error(exception: BaseException) -> str:
    """Render a transport error for log lines and wrapped error messages."""
    if isinstance(exception, asyncio.TimeoutError):
        return "request timed out"
    text = str(exception)
    return text if text else exception.__class__.__name__


__all__ = ["NETWORK_ERROR_TYPES", "describe_network_error", "is_network_unreachable_error"]

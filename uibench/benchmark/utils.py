"""
Utility functions for benchmark module.
Separated to avoid circular imports.
"""

import socket
import platform
from typing import Dict, Optional


# Sentinel written wherever a statistic is absent
NOT_AVAILABLE = "N/A"


def get_machine_info() -> Dict[str, str]:
    """
    Get machine information for report context.

    Returns:
        Dictionary with machine details including:
        - hostname: Machine hostname
        - platform: OS platform info
        - python: Interpreter version
        - processor: CPU description, if known
    """
    return {
        "hostname": socket.gethostname(),
        "platform": f"{platform.system()} {platform.release()}",
        "python": platform.python_version(),
        "processor": platform.processor() or platform.machine() or "unknown",
    }


def format_value(value: Optional[float]) -> str:
    """
    Format a statistic for CSV output.

    Integral values are written without a fractional part; absent values
    become the N/A sentinel.
    """
    if value is None:
        return NOT_AVAILABLE
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def format_ms(value: Optional[float]) -> str:
    """Format a statistic for Markdown tables (two decimal places)."""
    if value is None:
        return NOT_AVAILABLE
    return f"{value:.2f}"

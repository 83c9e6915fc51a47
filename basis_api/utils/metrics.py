"""
Utilities for measuring compression performance and formatting sizes.
"""
import time
import logging
import psutil
from typing import Dict

# Set up logging
logger = logging.getLogger(__name__)

SIZE_UNITS = ['Bytes', 'KB', 'MB', 'GB']


def get_cpu_mem() -> Dict[str, float]:
    """
    Get current CPU and memory usage.

    Returns:
        Dictionary with CPU and memory usage percentages
    """
    return {
        "cpu_usage": psutil.cpu_percent(interval=None),
        "memory_usage": psutil.virtual_memory().percent
    }


def format_file_size(size: int) -> str:
    """
    Format a byte count for display, e.g. 1536 -> "1.5 KB".

    Values are rounded to two decimals and trailing zeros are dropped.
    """
    if size <= 0:
        return "0 Bytes"
    value = float(size)
    i = 0
    while value >= 1024 and i < len(SIZE_UNITS) - 1:
        value /= 1024
        i += 1
    text = f"{value:.2f}".rstrip('0').rstrip('.')
    return f"{text} {SIZE_UNITS[i]}"


def compression_percentage(original_size: int, compressed_size: int) -> float:
    """Size reduction in percent, rounded to 2 decimals (negative when the output grew)."""
    if original_size <= 0:
        return 0.0
    return round((original_size - compressed_size) / original_size * 100, 2)


class PerformanceTimer:
    """
    Context manager for measuring execution time.

    Example:
        with PerformanceTimer() as timer:
            # Code to measure
        execution_time = timer.execution_time
    """

    def __init__(self):
        self.start_time = None
        self.execution_time = 0

    def __enter__(self):
        self.start_time = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.execution_time = time.time() - self.start_time
        return False  # Don't suppress exceptions

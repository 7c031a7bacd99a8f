"""
Utility modules.
"""

from .logging import setup_logging, get_logger, timed

__all__ = ['setup_logging', 'get_logger', 'timed']

"""
Common utilities shared by the solvers: logging with verbosity control.

Example:
    >>> from symgeigs.common import get_global_logger
    >>> logger = get_global_logger()
"""

from .flog import Logger, Colors, get_global_logger

__all__ = ['Logger', 'Colors', 'get_global_logger']

'''
Console and file logging with verbosity control for the eigensolver package.

The Logger wraps a standard ``logging.Logger`` and adds indentation levels,
optional ANSI colouring and an optional log file. Solvers receive a Logger
instance (or fall back to the process-wide one from ``get_global_logger``).

@note File logging is enabled by setting the environment variable SYMGEIGS_LOGFILE to a non-zero value.
@note Colored output is disabled by setting SYMGEIGS_LOGCOLORS to '0'.
@note The default level can be set through SYMGEIGS_LOGLEVEL ('debug', 'info', 'warning', 'error').

-------------------------------------------------------
file        :   symgeigs/common/flog.py
description :   Logger class for console and file logging with verbosity control.
-------------------------------------------------------
'''

__all__         = [
    "Logger",
    "Colors",
    "get_global_logger"
]

import os
import re
import sys
import logging
import threading
from datetime import datetime
from typing import Optional, Union

######################################################
#! ENVIRONMENT
######################################################

ENV_LOGGER_FILE     = 'SYMGEIGS_LOGFILE'
ENV_LOGGER_COLORS   = 'SYMGEIGS_LOGCOLORS'
ENV_LOGGER_LEVEL    = 'SYMGEIGS_LOGLEVEL'

_CONFIGURED_LOGGERS = set()

######################################################
#! PRINT THE OUTPUT WITH A GIVEN COLOR
######################################################

class Colors:
    """
    ANSI colours for console output.
    """

    black   = "\033[30m"
    red     = "\033[31m"
    green   = "\033[32m"
    yellow  = "\033[33m"
    blue    = "\033[34m"
    white   = "\033[0m"  # reset

    def __init__(self, color : str):
        self.color = color

    def __str__(self) -> str:
        mapping = {
            "black" : Colors.black,
            "red"   : Colors.red,
            "green" : Colors.green,
            "yellow": Colors.yellow,
            "blue"  : Colors.blue,
        }
        return mapping.get(self.color, Colors.white)

    def __call__(self, text: str) -> str:
        return f"{self}{text}{Colors.white}"

# CSI sequences: ESC [ ... m
_ansi_escape = re.compile(r'\x1b\[[0-9;]*m')

class StripAnsiFormatter(logging.Formatter):
    ''' Removes colour codes before writing to a file. '''

    def format(self, record):
        msg = super().format(record)
        return _ansi_escape.sub('', msg)

######################################################
#! LOGGER
######################################################

class Logger:
    """
    Logger class for handling console and file logging with verbosity control.
    """

    LEVELS = {
        logging.DEBUG   : 'debug',
        logging.INFO    : 'info',
        logging.WARNING : 'warning',
        logging.ERROR   : 'error'
    }

    LEVELS_R = {v: k for k, v in LEVELS.items()}

    def __init__(self,
                name            : str                   = "symgeigs",
                logfile         : Optional[str]         = None,
                lvl             : Union[int, str]       = logging.INFO,
                use_ts_in_cmd   : bool                  = False):
        """
        Initialize the logger instance.

        Args:
            name (str):
                Name of the underlying ``logging`` logger.
            logfile (str):
                Name of the log file (written to ./log only when SYMGEIGS_LOGFILE is set).
            lvl (int or str):
                Logging level, either a ``logging`` constant or its lowercase name.
            use_ts_in_cmd (bool):
                Whether to prefix console messages with a timestamp.
        """
        self.now_str            = datetime.now().strftime("%d_%m_%Y_%H-%M_%S")
        self.lvl                = Logger.LEVELS_R.get(lvl.lower(), logging.INFO) if isinstance(lvl, str) else lvl
        self.has_colors         = sys.stdout.isatty() and os.environ.get(ENV_LOGGER_COLORS, '1') != '0'
        self.logfile            = None

        self.logger             = logging.getLogger(name)
        self.logger.setLevel(self.lvl)
        self.logger.propagate   = False

        console_fmt             = '%(asctime)s [%(levelname)s] %(message)s' if use_ts_in_cmd else '[%(levelname)s] %(message)s'

        # one console handler per logger name
        if name not in _CONFIGURED_LOGGERS:
            ch = logging.StreamHandler(sys.stdout)
            ch.setFormatter(logging.Formatter(console_fmt, datefmt="%d_%m_%Y_%H-%M_%S"))
            self.logger.addHandler(ch)
            _CONFIGURED_LOGGERS.add(name)

        if logfile is not None and os.environ.get(ENV_LOGGER_FILE, '0') != '0':
            self.configure("./log", logfile or self.now_str)

    # --------------------------------------------------------------

    @staticmethod
    def colorize(txt: str, color: Optional[str]) -> str:
        if not color or color.lower() == 'white':
            return str(txt)
        return Colors(color)(str(txt))

    # --------------------------------------------------------------

    def configure(self, directory: str, basename: str):
        """
        Attach a file handler writing to ``directory/basename.log``.
        """
        basename        = basename[:-4] if basename.endswith('.log') else basename
        self.logfile    = os.path.join(directory, f'{basename}.log')
        os.makedirs(directory, exist_ok=True)

        fh = logging.FileHandler(self.logfile, encoding='utf-8')
        fh.setFormatter(StripAnsiFormatter('%(asctime)s [%(levelname)s] %(message)s', datefmt="%d_%m_%Y_%H-%M-%S"))
        self.logger.addHandler(fh)
        self.info(f"Log file created: {self.logfile}")

    # --------------------------------------------------------------

    @staticmethod
    def print_tab(lvl=0):
        return '\t' * lvl + ('->' if lvl > 0 else '')

    def _format(self, msg: str, lvl: int, color: Optional[str]) -> str:
        if color is not None and self.has_colors:
            msg = self.colorize(msg, color)
        return f"{Logger.print_tab(lvl)}{msg}"

    # --------------------------------------------------------------

    def info(self, msg: str, lvl=0, verbose=True, color=None):
        if verbose:
            self.logger.info(self._format(msg, lvl, color))

    def debug(self, msg: str, lvl=0, verbose=True, color=None):
        if verbose:
            self.logger.debug(self._format(msg, lvl, color))

    def warning(self, msg: str, lvl=0, verbose=True, color='yellow'):
        if verbose:
            self.logger.warning(self._format(msg, lvl, color))

    def error(self, msg: str, lvl=0, verbose=True, color='red'):
        if verbose:
            self.logger.error(self._format(msg, lvl, color))

######################################################

_G_LOGGER     = None
_G_LOGGER_PID = None
_G_LOCK       = threading.Lock()

def get_global_logger(**kwargs) -> Logger:
    """
    One Logger per process (PID), safe across threads and forks.

    Keyword arguments are forwarded to the Logger constructor on first use:
    ``name``, ``lvl`` (defaults to SYMGEIGS_LOGLEVEL or 'info'), ``logfile``
    and ``use_ts_in_cmd``.

    Example
    -------
        >>> logger = get_global_logger()
        >>> logger.debug("restart 3: 2/4 converged", lvl=1)
    """
    global  _G_LOGGER, _G_LOGGER_PID
    pid     = os.getpid()

    if _G_LOGGER is not None and _G_LOGGER_PID == pid:
        return _G_LOGGER

    with _G_LOCK:
        if _G_LOGGER is not None and _G_LOGGER_PID == pid:
            return _G_LOGGER

        _G_LOGGER       = Logger(
            name            = kwargs.get("name",            "symgeigs"),
            lvl             = kwargs.get("lvl",             os.environ.get(ENV_LOGGER_LEVEL, 'info')),
            logfile         = kwargs.get("logfile",         None),
            use_ts_in_cmd   = kwargs.get("use_ts_in_cmd",   True),
        )
        _G_LOGGER_PID   = pid
        return _G_LOGGER

######################################################
#! EOF
######################################################

"""
Logging utilities for the nicescales library.

Library Logging Conventions
---------------------------
1. **Library code should NEVER call configure_logging()** - only use get_logger(__name__).
2. **Applications/notebooks CAN call configure_logging()** - to configure log output.
3. When imported by a plotting application that has configured logging,
   all nicescales logs automatically use that application's handlers.

nicescales does NOT write any log files; it is a headless compute library.

Message levels used across the package:
    - warning: a value was coerced (e.g. numbers passed to a date scale),
      rows with missing values were removed.
    - info: a statistic could not be computed for a group (a NaN placeholder
      row is returned instead), or a default parameter was applied.
    - debug: one-time state changes such as timezone adoption.

Example Usage
-------------
In library code:
    ```python
    from nicescales.utils.logging import get_logger
    logger = get_logger(__name__)
    logger.info("Too few points to calculate an ellipse")
    ```

In scripts:
    ```python
    from nicescales.utils.logging import configure_logging
    configure_logging(level="DEBUG")
    ```
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional, Union

# Default format for nicescales logs
DEFAULT_FMT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d:%(funcName)s: %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"

ROOT_LOGGER_NAME = "nicescales"


def configure_logging(
    level: Optional[Union[str, int]] = None,
    *,
    fmt: Optional[str] = None,
    datefmt: Optional[str] = None,
    force: bool = False,
) -> None:
    """
    Configure logging for the nicescales logger only (never root).

    Parameters
    ----------
    level:
        Logging level (e.g. "DEBUG", "INFO"). Defaults to NICESCALES_LOG_LEVEL
        env var, or "INFO" if unset.
    fmt:
        Log message format. Defaults to a standard format.
    datefmt:
        Date format. Defaults to "%Y-%m-%d %H:%M:%S".
    force:
        If True, remove existing handlers before adding new ones (allows
        reconfiguration). If False, skip if handler already present.
    """
    if level is None:
        level = os.environ.get("NICESCALES_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)

    if fmt is None:
        fmt = DEFAULT_FMT
    if datefmt is None:
        datefmt = DEFAULT_DATEFMT

    formatter = logging.Formatter(fmt=fmt, datefmt=datefmt)

    if force:
        for h in logger.handlers[:]:
            h.close()
            logger.removeHandler(h)
    else:
        # Skip if we already have a stderr StreamHandler (e.g. from a previous call)
        for h in logger.handlers:
            if isinstance(h, logging.StreamHandler) and h.stream is sys.stderr:
                return

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(formatter)
    logger.addHandler(console)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger by name.

    If name is None, returns the 'nicescales' logger.
    Otherwise, returns logging.getLogger(name).
    """
    if name is None:
        name = ROOT_LOGGER_NAME
    return logging.getLogger(name)

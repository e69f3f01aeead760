"""
nicescales: date/time scales and statistical summaries for a declarative plotting layer.

This package provides:
- Date, datetime and time-of-day transforms, break generators and scales
- Confidence ellipses (stat_ellipse) and dot-plot binning (stat_bindot)
- Logging utilities for library and application use

For logging configuration in scripts:
    ```python
    from nicescales.utils.logging import configure_logging
    configure_logging(level="DEBUG")
    ```

When used as a library, logging is handled by the parent application's
configuration.
"""

import logging

from nicescales.utils.logging import configure_logging, get_logger

from nicescales.scales import datetime_scale, default_registry, dup_axis, sec_axis
from nicescales.stats import stat_bindot, stat_ellipse

# NullHandler so records do not reach the root logger until an application
# calls configure_logging().
_logger = logging.getLogger("nicescales")
if not _logger.handlers:
    _logger.addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "configure_logging",
    "datetime_scale",
    "default_registry",
    "dup_axis",
    "get_logger",
    "sec_axis",
    "stat_bindot",
    "stat_ellipse",
]

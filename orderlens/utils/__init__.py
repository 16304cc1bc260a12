"""Utility modules for logging, timezone and numeric helpers."""

from orderlens.utils.dates import to_local_naive
from orderlens.utils.logging import bind_selection, configure_logging, get_logger
from orderlens.utils.numbers import percent, round_half_up

__all__ = [
    "bind_selection",
    "configure_logging",
    "get_logger",
    "percent",
    "round_half_up",
    "to_local_naive",
]

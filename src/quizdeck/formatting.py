"""
Small formatting helpers shared by the model, the analyzer and the backends.

Percentages are rounded half-up so that 62.5% becomes 63%, matching the
values stored and displayed by earlier versions of the data files.
"""

import logging
import math
from datetime import datetime
from typing import Optional, Union

logger = logging.getLogger(__name__)

DATE_PLACEHOLDER = "----/--/-- --:--"
NO_DATA = "No data"


def percent(part: int, whole: int) -> int:
    """Rounded percentage of ``part`` in ``whole``; -1 when ``whole`` is 0."""
    if whole <= 0:
        return -1
    return int(math.floor(part * 100 / whole + 0.5))


def format_accuracy(correct: int, total: int) -> str:
    """Format as ``"75% (3/4)"``, or ``"No data"`` when nothing was answered."""
    accuracy = percent(correct, total)
    if accuracy < 0:
        return NO_DATA
    return f"{accuracy}% ({correct}/{total})"


def format_date(timestamp: Optional[Union[int, float]]) -> str:
    """
    Convert an epoch timestamp in milliseconds to ``YYYY/MM/DD HH:mm``.

    Local time is used. Missing, zero, negative or non-numeric values give
    the placeholder ``----/--/-- --:--``.
    """
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
        return DATE_PLACEHOLDER
    if not timestamp or timestamp <= 0:
        return DATE_PLACEHOLDER
    try:
        dt = datetime.fromtimestamp(timestamp / 1000)
    except (OverflowError, OSError, ValueError) as e:
        logger.warning("Cannot format timestamp %r: %s", timestamp, e)
        return DATE_PLACEHOLDER
    return dt.strftime("%Y/%m/%d %H:%M")

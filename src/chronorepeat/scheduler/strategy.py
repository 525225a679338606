"""Occurrence strategies: when does a repeat definition fire next."""

from croniter import croniter
from datetime import datetime, timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo
import logging

from chronorepeat.models import RepeatOptions

logger = logging.getLogger(__name__)

# (now millis, repeat options, job name) -> next millis, or None when there is no next occurrence
RepeatStrategy = Callable[[int, RepeatOptions, Optional[str]], Optional[int]]


class RepeatConfigError(ValueError):
    """Repeat options that can never be scheduled as given."""


def validate_cron(expression: str) -> bool:
    """Validate a cron expression.

    Args:
        expression: Cron expression string (e.g., "0 */2 * * *"); six-field
            expressions carry seconds first

    Returns:
        True if valid, False otherwise
    """
    try:
        croniter(expression, second_at_beginning=True)
        return True
    except (ValueError, TypeError) as e:
        logger.debug(f"Invalid cron expression '{expression}': {e}")
        return False


def get_next_millis(millis: int, opts: RepeatOptions, name: Optional[str] = None) -> Optional[int]:
    """Default strategy for cron patterns and fixed intervals.

    ``every`` snaps to a grid aligned to epoch 0: the result is the next grid
    point after ``millis``, or the current one when ``immediately`` is set.
    Cron patterns are evaluated in ``opts.tz`` (UTC when absent), starting
    from ``start_date`` when that lies ahead of ``millis``.

    Returns None when the pattern yields no further occurrence. A malformed
    pattern is reported the same way as an exhausted schedule.

    Raises:
        RepeatConfigError: if both a pattern and ``every`` are set
    """
    pattern = opts.effective_pattern
    if pattern and opts.every:
        raise RepeatConfigError(
            "Both .cron (or .pattern) and .every options are defined for this repeatable job"
        )

    if opts.every:
        return (millis // opts.every) * opts.every + (0 if opts.immediately else opts.every)

    if not pattern:
        return None

    current = millis
    if opts.start_date is not None and opts.start_date > millis:
        current = opts.start_date

    try:
        tz = ZoneInfo(opts.tz) if opts.tz else timezone.utc
        base = datetime.fromtimestamp(current / 1000, tz)
        next_time = croniter(pattern, base, second_at_beginning=True).get_next(datetime)
    except (ValueError, KeyError) as e:
        reason = "exhausted" if validate_cron(pattern) else "invalid"
        logger.warning(f"No next occurrence for '{name}' with pattern '{pattern}' ({reason}): {e}")
        return None

    # croniter may hand back naive datetimes; they are in the base time zone
    if next_time.tzinfo is None:
        next_time = next_time.replace(tzinfo=tz)
    next_millis = int(round(next_time.timestamp() * 1000))

    if opts.end_date is not None and next_millis > opts.end_date:
        return None

    return next_millis

"""Time conversions and a stopwatch for timing engine searches."""

from datetime import timedelta
from time import perf_counter
from typing import Optional


def msec(time_in_msec: float) -> timedelta:
    """A duration of `time_in_msec` milliseconds."""
    return timedelta(milliseconds=time_in_msec)


def to_msec(duration: timedelta) -> float:
    """The length of a duration in milliseconds."""
    return duration / msec(1)


def msec_str(duration: timedelta) -> str:
    """The length of a duration in whole milliseconds, as it appears in an `info` line."""
    return str(round(to_msec(duration)))


def seconds(time_in_sec: float) -> timedelta:
    """A duration of `time_in_sec` seconds."""
    return timedelta(seconds=time_in_sec)


def to_seconds(duration: timedelta) -> float:
    """The length of a duration in seconds."""
    return duration.total_seconds()


def optional_seconds(time_in_msec: Optional[int]) -> Optional[float]:
    """Convert a millisecond count from a `go` command to seconds, keeping `None` as `None`."""
    return None if time_in_msec is None else to_seconds(msec(time_in_msec))


class Timer:
    """
    A stopwatch for measuring how long a command takes.

    The search report needs the elapsed time and the node rate, so the loop
    starts a timer right before handing the board to the engine.
    """

    def __init__(self) -> None:
        """Start counting now."""
        self.reset()

    def reset(self) -> None:
        """Start counting again from zero."""
        self.starting_time = perf_counter()

    def time_since_reset(self) -> timedelta:
        """The time since the timer was started or last reset."""
        return seconds(perf_counter() - self.starting_time)

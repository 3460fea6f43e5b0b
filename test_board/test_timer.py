"""Test functions dedicated to time measurement and conversion."""

from datetime import timedelta

from blind_chessboard import timer


def test_time_conversion() -> None:
    """Test conversion of time units."""
    assert timer.msec(1000) == timedelta(milliseconds=1000)
    assert timer.to_msec(timedelta(milliseconds=1000)) == 1000
    assert timer.msec_str(timedelta(milliseconds=1000)) == "1000"
    assert timer.msec_str(timedelta(microseconds=1600)) == "2"

    assert timer.seconds(1) == timedelta(seconds=1)
    assert timer.to_seconds(timedelta(seconds=1)) == 1
    assert timer.to_msec(timer.seconds(1)) == 1000


def test_optional_seconds() -> None:
    """Test converting the milliseconds of a `go` command."""
    assert timer.optional_seconds(None) is None
    assert timer.optional_seconds(1500) == 1.5
    assert timer.optional_seconds(0) == 0


def test_time_since_reset() -> None:
    """Test that the stopwatch counts up from its last reset."""
    t = timer.Timer()
    first = t.time_since_reset()
    assert first >= timedelta(0)
    assert t.time_since_reset() >= first

    t.starting_time -= 10
    assert t.time_since_reset() >= timedelta(seconds=10)
    t.reset()
    assert t.time_since_reset() < timedelta(seconds=10)

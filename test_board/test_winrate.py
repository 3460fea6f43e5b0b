"""Tests for the win, draw, and loss estimates."""
import pytest
from blind_chessboard.winrate import win_rate_model, wdl


def test_equal_position() -> None:
    """Test the estimate for a balanced position at the start of the game."""
    assert wdl(0, 0) == (106, 788, 106)


@pytest.mark.parametrize("ply", [0, 30, 120, 240, 400])
def test_wdl_adds_up(ply: int) -> None:
    """Test that the three probabilities add up to 1000 and mirror each other."""
    for centipawns in [-3000, -250, -40, 0, 40, 250, 3000]:
        win, draw, loss = wdl(centipawns, ply)
        assert win + draw + loss == 1000
        assert min(win, draw, loss) >= 0
        assert wdl(-centipawns, ply) == (loss, draw, win)


def test_win_rate_is_monotonic() -> None:
    """Test that a better evaluation never has a lower chance of winning."""
    rates = [win_rate_model(centipawns, 60) for centipawns in range(-1200, 1201, 50)]
    assert rates == sorted(rates)


def test_evaluation_is_clamped() -> None:
    """Test that evaluations beyond ten pawns count as ten pawns."""
    assert win_rate_model(10000, 30) == 1000
    assert win_rate_model(-10000, 30) == 0
    assert win_rate_model(32000, 30) == win_rate_model(1000, 30)


def test_late_plies_share_one_model() -> None:
    """Test that the model stops changing after 240 plies."""
    assert win_rate_model(100, 240) == win_rate_model(100, 500)

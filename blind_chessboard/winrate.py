"""
Estimate the chance of winning from an evaluation.

The model is a logistic function of the evaluation in centipawns. Its midpoint and slope are third order
polynomials of the game ply, fitted to engine self-play results. It only looks at the first 240 plies.
"""
import math

MAX_MODEL_PLY = 240
EVAL_LIMIT = 1000
MIDPOINT_COEFFICIENTS = (-8.24404295, 64.23892342, -95.73056462, 153.86478679)
SLOPE_COEFFICIENTS = (-3.37154371, 28.44489198, -56.67657741, 72.05858751)


def _polynomial(coefficients: tuple[float, float, float, float], m: float) -> float:
    return ((coefficients[0] * m + coefficients[1]) * m + coefficients[2]) * m + coefficients[3]


def win_rate_model(centipawns: int, ply: int) -> int:
    """
    Get the probability of winning.

    :param centipawns: The evaluation from the point of view of the side to move.
    :param ply: How many half-moves have been played.
    :return: The win probability in per mille, rounded to the nearest whole number.
    """
    m = min(MAX_MODEL_PLY, ply) / 64.0
    a = _polynomial(MIDPOINT_COEFFICIENTS, m)
    b = _polynomial(SLOPE_COEFFICIENTS, m)
    x = min(max(float(centipawns), -EVAL_LIMIT), EVAL_LIMIT)
    return int(0.5 + 1000 / (1 + math.exp((a - x) / b)))


def wdl(centipawns: int, ply: int) -> tuple[int, int, int]:
    """Get the win, draw, and loss probabilities in per mille. They add up to 1000."""
    win = win_rate_model(centipawns, ply)
    loss = win_rate_model(-centipawns, ply)
    return win, 1000 - win - loss, loss

"""Homemade engines that play predictable moves during tests."""
import chess
import chess.engine
from typing import Optional
from homemade import ExampleEngine

# ruff: noqa: ARG002


class FirstLegalMove(ExampleEngine):
    """Plays the first move in uci order and reports a fixed search."""

    def search(self, board: chess.Board, time_limit: chess.engine.Limit, ponder: bool,
               root_moves: Optional[list[chess.Move]]) -> chess.engine.PlayResult:
        """Pick the move and fill in the info that a UCI engine would send."""
        moves = sorted(self.candidate_moves(board, root_moves), key=lambda move: move.uci())
        info: chess.engine.InfoDict = {"depth": time_limit.depth or 1,
                                       "score": chess.engine.PovScore(chess.engine.Cp(25), board.turn),
                                       "nodes": 20,
                                       "pv": [moves[0]]}
        return chess.engine.PlayResult(moves[0], None, info)


class StopRecorder(ExampleEngine):
    """Remembers the methods called on its filler engine."""

    def __init__(self, *args: object, **kwargs: object) -> None:
        """Start with no calls recorded."""
        super().__init__(*args, **kwargs)  # type: ignore[arg-type]
        self.calls: list[str] = []
        self.stopped_at_search: list[bool] = []

    def notify(self, method_name: str, *args: object, **kwargs: object) -> None:
        """Record the call."""
        self.calls.append(method_name)

    def search(self, board: chess.Board, time_limit: chess.engine.Limit, ponder: bool,
               root_moves: Optional[list[chess.Move]]) -> chess.engine.PlayResult:
        """Play the first legal move after noting whether the stop flag was set."""
        self.stopped_at_search.append(self.stop_event.is_set())
        return chess.engine.PlayResult(next(iter(board.legal_moves)), None)

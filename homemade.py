"""
Engines written in Python for boards without a UCI engine.

Set `engine: protocol: "homemade"` and `engine: name:` to one of the class names below to use one.
"""

from __future__ import annotations
import chess
from chess.engine import PlayResult, Limit
import random
from blind_chessboard.engine_wrapper import MinimalEngine
from typing import Optional


class ExampleEngine(MinimalEngine):
    """The base of the engines in this file."""

    def candidate_moves(self, board: chess.Board, root_moves: Optional[list[chess.Move]]) -> list[chess.Move]:
        """The moves the engine may choose from: `root_moves` if given, else every legal move."""
        return list(root_moves) if root_moves else list(board.legal_moves)


class RandomMove(ExampleEngine):
    """Plays any move."""

    def search(self, board: chess.Board, time_limit: Limit, ponder: bool,  # noqa: ARG002
               root_moves: Optional[list[chess.Move]]) -> PlayResult:
        """Pick a candidate at random."""
        return PlayResult(random.choice(self.candidate_moves(board, root_moves)), None)


class Alphabetical(ExampleEngine):
    """Plays the move whose SAN comes first in alphabetical order."""

    def search(self, board: chess.Board, time_limit: Limit, ponder: bool,  # noqa: ARG002
               root_moves: Optional[list[chess.Move]]) -> PlayResult:
        """Sort the candidates by SAN and take the first."""
        return PlayResult(min(self.candidate_moves(board, root_moves), key=board.san), None)


class FirstMove(ExampleEngine):
    """Plays the move whose coordinate text comes first in alphabetical order."""

    def search(self, board: chess.Board, time_limit: Limit, ponder: bool,  # noqa: ARG002
               root_moves: Optional[list[chess.Move]]) -> PlayResult:
        """Sort the candidates by their uci text and take the first."""
        return PlayResult(min(self.candidate_moves(board, root_moves), key=chess.Move.uci), None)

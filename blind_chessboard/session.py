"""The board session: the moves played on the hardware board and the position they lead to."""
from __future__ import annotations
import logging
from collections.abc import Iterable
from typing import Optional
import chess
from blind_chessboard.config import Configuration
from blind_chessboard.hardware import derive_piece_raise, destination_square, render_board
from blind_chessboard.notation import move_to_text, text_to_move

logger = logging.getLogger(__name__)

MOVE_TEXT_LENGTH = 4
INVALID_MOVE_FORMAT = "Invalid move format\n"
NOT_A_LEGAL_MOVE = "Not a legal move\n"


def setup_board(fen: Optional[str], move_texts: Iterable[str], chess960: bool = False) -> tuple[chess.Board, list[str]]:
    """
    Set up a position from a FEN and a list of moves.

    The moves are played in order until one of them is not a legal move. That move and all the ones after it
    are ignored.

    :param fen: The starting position. `None` is the standard starting position.
    :param move_texts: The moves to play in coordinate notation.
    :param chess960: Whether castling is written the Chess960 way.
    :return: The position and the moves that were played.
    """
    board = chess.Board(chess.STARTING_FEN if fen is None else fen, chess960=chess960)
    played = []
    for text in move_texts:
        move = text_to_move(board, text)
        if not move:
            logger.debug(f"Stopped setting up the position at {text!r}.")
            break
        board.push(move)
        played.append(text)
    return board, played


class BoardSession:
    """
    Keep the history of the moves made on the board.

    The history is kept three ways: the move texts as they were entered (the move log), the setup of the game
    followed by those moves (the replay buffer, which rebuilds the position), and the moves in standard algebraic
    notation (for display). Alongside them is the square the actuator raises for each move, which is the king's
    landing square for castling even when the move text names the rook. A move is added to all of them or to none.
    """

    def __init__(self, fen: Optional[str] = None, chess960: bool = False) -> None:
        """
        Start a session.

        :param fen: The position the game starts from. `None` is the standard starting position.
        :param chess960: Whether castling is written the Chess960 way.
        """
        self.chess960 = chess960
        self.setup_fen = fen
        self.setup_moves: list[str] = []
        self._move_log: list[str] = []
        self._replay_moves: list[str] = []
        self._history: list[str] = []
        self._raise_squares: list[str] = []
        self.board = self.replay_board()

    @classmethod
    def from_config(cls, board_cfg: Configuration) -> BoardSession:
        """Start a session from the `board` section of the config."""
        start_fen = board_cfg.start_fen
        return cls(None if start_fen == "startpos" else start_fen, bool(board_cfg.chess960))

    @property
    def move_log(self) -> list[str]:
        """The accepted move texts, oldest first."""
        return list(self._move_log)

    @property
    def history(self) -> list[str]:
        """The accepted moves in standard algebraic notation, oldest first."""
        return list(self._history)

    @property
    def move_log_text(self) -> str:
        """The move log as sent to the board, each move followed by a space."""
        return "".join(f"{text} " for text in self._move_log)

    @property
    def replay_buffer(self) -> str:
        """The setup and moves of the game, written like the arguments of a `position` command."""
        setup = "startpos" if self.setup_fen is None else f"fen {self.setup_fen}"
        moves = "".join(f"{text} " for text in self.setup_moves + self._replay_moves)
        return f"{setup} moves {moves}"

    def replay_board(self) -> chess.Board:
        """Rebuild the current position by playing the replay buffer from the setup position."""
        board, _ = setup_board(self.setup_fen, self.setup_moves + self._replay_moves, self.chess960)
        return board

    def set_position(self, fen: Optional[str], move_texts: Iterable[str]) -> None:
        """
        Start over from a new position. The move history is cleared.

        Raises `ValueError` if python-chess rejects the FEN. The session is unchanged in that case.
        """
        board, played = setup_board(fen, move_texts, self.chess960)
        self.setup_fen = fen
        self.setup_moves = played
        self._move_log.clear()
        self._replay_moves.clear()
        self._history.clear()
        self._raise_squares.clear()
        self.board = board
        logger.info(f"New position: {board.fen()}")

    def record_move(self, text: str) -> str:
        """
        Add a move to the history if it is legal.

        :param text: The move in coordinate notation, e.g. `e2e4`.
        :return: The new position, the history, and the square to raise. If the move is rejected, the reason.
        """
        if len(text) != MOVE_TEXT_LENGTH:
            logger.info(f"Rejected move with invalid format: {text!r}")
            return INVALID_MOVE_FORMAT

        previous_board = self.board
        recorded = len(self._move_log)
        self._move_log.append(text)
        self._replay_moves.append(text)
        try:
            move = text_to_move(previous_board, text)
            if not move:
                self._truncate(recorded)
                logger.info(f"Rejected illegal move: {text}")
                return NOT_A_LEGAL_MOVE

            self._history.append(previous_board.san(move))
            self._raise_squares.append(destination_square(move_to_text(previous_board, move, chess960=False)))
            self.board = self.replay_board()
        except Exception:
            self._truncate(recorded)
            self.board = previous_board
            raise

        logger.info(f"Recorded move {text} ({self._history[-1]})")
        return render_board(self.board) + "\n" + self.history_listing() + self.piece_raise()

    def _truncate(self, length: int) -> None:
        """Cut the histories down to `length` moves."""
        del self._move_log[length:]
        del self._replay_moves[length:]
        del self._history[length:]
        del self._raise_squares[length:]

    def remove_last_move(self) -> str:
        """Take back the last move. Nothing happens if there are no moves."""
        if not self._move_log:
            logger.debug("No move to remove.")
            return ""

        self._truncate(len(self._move_log) - 1)
        self.board = self.replay_board()
        logger.info(f"Removed the last move. {len(self._move_log)} moves remain.")
        return ""

    def print_position(self) -> str:
        """Draw the current position."""
        self.board = self.replay_board()
        return render_board(self.board) + "\n"

    def history_listing(self) -> str:
        """List the moves, numbered from 1, e.g. `PGN vector: 1. e4 2. e5`."""
        moves = " ".join(f"{number}. {san}" for number, san in enumerate(self._history, 1))
        return f"PGN vector: {moves}\n\n"

    def piece_raise(self) -> str:
        """Describe the square the actuator raises for the last move."""
        return derive_piece_raise(self._raise_squares, self._history)

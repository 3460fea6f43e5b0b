"""Convert between coordinate-notation move text (e.g. `e2e4`, `a7a8q`) and python-chess moves."""
import logging
from typing import Optional
import chess

logger = logging.getLogger(__name__)

NO_MOVE_TEXT = "(none)"
NULL_MOVE_TEXT = "0000"
PROMOTION_LETTERS = "nbrqk"


def move_to_text(board: chess.Board, move: Optional[chess.Move], chess960: bool) -> str:
    """
    Write a move in coordinate notation.

    In standard chess, a castling move given as the king capturing its own rook is written with the king's
    destination square instead (e.g. `e1h1` becomes `e1g1`).

    :param board: The position the move is played from. Needed to recognize castling moves.
    :param move: The move. `None` stands for no move at all.
    :param chess960: Whether castling should be written the Chess960 way (king takes rook).
    :return: The move text, `(none)` for no move, or `0000` for the null move.
    """
    if move is None:
        return NO_MOVE_TEXT
    if not move:
        return NULL_MOVE_TEXT

    to_square = move.to_square
    if not chess960 and board.is_castling(move):
        king_file = chess.FILE_NAMES.index("g") if board.is_kingside_castling(move) else chess.FILE_NAMES.index("c")
        to_square = chess.square(king_file, chess.square_rank(move.from_square))

    text = chess.square_name(move.from_square) + chess.square_name(to_square)
    if move.promotion:
        text += chess.piece_symbol(move.promotion)
    return text


def normalize_move_text(text: str) -> str:
    """Lowercase the promotion letter of a five character move text, e.g. `a7a8Q` becomes `a7a8q`."""
    if len(text) == 5 and text[4].lower() in PROMOTION_LETTERS:
        return text[:4] + text[4].lower()
    return text


def text_to_move(board: chess.Board, text: str) -> Optional[chess.Move]:
    """
    Find the legal move that is written as `text`.

    python-chess decides what is legal. This only compares the text of each legal move with the input.

    :param board: The current position.
    :param text: The move in coordinate notation.
    :return: The matching legal move or `None` if there is no such move.
    """
    text = normalize_move_text(text)
    for move in board.legal_moves:
        if move_to_text(board, move, board.chess960) == text:
            return move

    logger.debug(f"{text!r} does not match any legal move in {board.fen()}")
    return None

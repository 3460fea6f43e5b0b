"""
Square addressing and text rendering for the hardware chessboard.

The actuator under the board addresses squares by index, from a1 = 0 at the bottom left,
left to right and then bottom to top, up to h8 = 63. The controller reads the index in binary.
"""
from collections.abc import Callable, Sequence
import chess
import chess.polyglot

BORDER = "+---+---+---+---+---+---+---+---+"
FILE_LABELS = "  a   b   c   d   e   f   g   h"
RAISED_MARK = "#"
NO_PIECES_RAISED = "No pieces raised"


def square_to_index(square: str) -> int:
    """
    Get the actuator index of a square.

    :param square: An algebraic square like `e4`. The file letter may be upper case.
    :return: `file + 8 * (rank - 1)`, a number from 0 (a1) to 63 (h8).
    """
    if len(square) != 2:
        raise ValueError(f"{square!r} is not a square.")
    file_letter, rank_digit = square[0].lower(), square[1]
    if file_letter not in chess.FILE_NAMES or rank_digit not in chess.RANK_NAMES:
        raise ValueError(f"{square!r} is not a square.")
    return chess.FILE_NAMES.index(file_letter) + 8 * (int(rank_digit) - 1)


def index_to_binary(index: int) -> str:
    """Write an index in binary, most significant bit first and without padding. Zero is written as "0"."""
    if index < 0:
        raise ValueError(f"Square indices are not negative: {index}")
    return format(index, "b")


def render_grid(cell: Callable[[chess.Square], str]) -> str:
    """
    Draw an 8x8 board, rank 8 at the top and the a-file on the left.

    :param cell: Gives the single character to show on each square.
    """
    lines = []
    for rank in reversed(range(8)):
        lines.append(BORDER)
        cells = "".join(f"| {cell(chess.square(file, rank))} " for file in range(8))
        lines.append(f"{cells}|  {rank + 1}")
    lines.append(BORDER)
    lines.append(FILE_LABELS)
    return "\n".join(lines) + "\n"


def render_raised_square(square: str) -> str:
    """Draw the board with only the raised square marked."""
    raised = chess.parse_square(square.lower())
    return render_grid(lambda sq: RAISED_MARK if sq == raised else " ")


def render_board(board: chess.Board) -> str:
    """Draw the pieces of a position in the same frame as the raised square, followed by the FEN, key and checkers."""
    def piece_symbol(square: chess.Square) -> str:
        piece = board.piece_at(square)
        return piece.symbol() if piece else " "

    checkers = " ".join(chess.square_name(square) for square in board.checkers())
    return (f"\n{render_grid(piece_symbol)}\n"
            f"Fen: {board.fen()}\n"
            f"Key: {chess.polyglot.zobrist_hash(board):016X}\n"
            f"Checkers: {checkers}\n")


def destination_square(move_text: str) -> str:
    """Get the square a piece moved to from move text like `e2e4`."""
    return move_text[2:4]


def derive_piece_raise(raise_squares: Sequence[str], history: Sequence[str]) -> str:
    """
    Describe which square the actuator raises after the last move.

    :param raise_squares: The square raised for each move of the session, e.g. `["e4", "e5"]`. For castling this is
        the king's landing square.
    :param history: The same moves in the rules engine's notation, e.g. `["e4", "e5"]`.
    :return: The last move, the raised square, its index in decimal and binary, and a drawing of the board.
    """
    if not raise_squares:
        return NO_PIECES_RAISED + "\n"

    square = raise_squares[-1]
    index = square_to_index(square)
    last_move = history[-1] if history else square
    return (f"\nLast Move:\t\t{last_move}\n"
            f"Piece to raise:\t\t{square}\n"
            f"Decimal Equivalent\t{index}\n"
            f"Binary Output:\t\t{index_to_binary(index)}\n"
            f"{render_raised_square(square)}")

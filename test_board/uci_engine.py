"""A stand-in UCI engine for the tests. It answers every `go` with the first legal move in uci order."""

import chess

assert input() == "uci"


def reply(line: str) -> None:
    """Write one line to blind-chessboard right away."""
    print(line, flush=True)  # noqa: T201 (print() found)


reply("id name UCI_Test_Engine")
reply("id author blind-chessboard")
reply("uciok")

board = chess.Board()
while True:
    command, *arguments = input().split()
    if command == "quit":
        break
    if command == "isready":
        reply("readyok")
    elif command == "position":
        kind, *rest = arguments
        moves_at = rest.index("moves") if "moves" in rest else len(rest)
        board = chess.Board() if kind == "startpos" else chess.Board(" ".join(rest[:moves_at]))
        for move in rest[moves_at + 1:]:
            board.push_uci(move)
    elif command == "go":
        best = min(move.uci() for move in board.legal_moves)
        reply(f"info depth 1 score cp 17 nodes 42 nps 4200 time 10 pv {best}")
        reply(f"bestmove {best}")

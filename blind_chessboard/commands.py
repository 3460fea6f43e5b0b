"""Parse a command line from the controller into a structured request."""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Optional, Union
from blind_chessboard.chessboard_types import RequestType, QueryType

logger = logging.getLogger(__name__)

QUIT_TOKENS = {"quit", "stop"}
QUERY_TOKENS = {query.value: query for query in QueryType}
GO_NUMBER_TOKENS = ["wtime", "btime", "winc", "binc", "movestogo", "depth", "nodes", "movetime", "mate", "perft"]
GO_FLAG_TOKENS = ["infinite", "ponder"]


@dataclass
class SearchLimits:
    """The search parameters of a `go` command. Time values are in milliseconds."""

    wtime: Optional[int] = None
    btime: Optional[int] = None
    winc: Optional[int] = None
    binc: Optional[int] = None
    movestogo: Optional[int] = None
    depth: Optional[int] = None
    nodes: Optional[int] = None
    movetime: Optional[int] = None
    mate: Optional[int] = None
    perft: Optional[int] = None
    infinite: bool = False
    ponder: bool = False
    searchmoves: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SetPosition:
    """
    Set up a new position.

    `fen` is `None` for the standard starting position. `valid` is false when the position kind
    was neither `startpos` nor `fen`.
    """

    fen: Optional[str] = None
    moves: tuple[str, ...] = ()
    valid: bool = True
    type: RequestType = RequestType.SET_POSITION


@dataclass(frozen=True)
class StartSearch:
    """Search the current position."""

    limits: SearchLimits = field(default_factory=SearchLimits)
    type: RequestType = RequestType.START_SEARCH


@dataclass(frozen=True)
class RecordMove:
    """Append a move to the session history."""

    text: str
    type: RequestType = RequestType.RECORD_MOVE


@dataclass(frozen=True)
class UndoMove:
    """Remove the last move of the session history."""

    type: RequestType = RequestType.UNDO_MOVE


@dataclass(frozen=True)
class QueryHistory:
    """Ask for a view of the session that does not change it."""

    query: QueryType
    type: RequestType = RequestType.QUERY_HISTORY


@dataclass(frozen=True)
class Quit:
    """Stop the engine and leave the command loop."""

    token: str = "quit"
    type: RequestType = RequestType.QUIT


@dataclass(frozen=True)
class Unknown:
    """A line that is not a command. It is echoed back to the controller."""

    line: str
    type: RequestType = RequestType.UNKNOWN


Request = Union[SetPosition, StartSearch, RecordMove, UndoMove, QueryHistory, Quit, Unknown]


def parse_position(tokens: list[str]) -> SetPosition:
    """
    Parse the arguments of a `position` command.

    position startpos [moves e2e4 e7e5 ...]
    position fen <FEN> [moves e2e4 e7e5 ...]

    :param tokens: The command tokens with "position" already stripped.
    """
    if not tokens or tokens[0] not in ["startpos", "fen"]:
        logger.debug(f"Unknown position type: {tokens[:1]}")
        return SetPosition(valid=False)

    moves_index = tokens.index("moves") if "moves" in tokens else len(tokens)
    moves = tuple(tokens[moves_index + 1:])
    if tokens[0] == "startpos":
        return SetPosition(None, moves)

    fen = " ".join(tokens[1:moves_index])
    return SetPosition(fen, moves)


def parse_go(tokens: list[str]) -> StartSearch:
    """
    Parse the arguments of a `go` command.

    `searchmoves` must be the last option. Every token after it is taken as a move.
    Unknown tokens and values that are not whole numbers are ignored.

    :param tokens: The command tokens with "go" already stripped.
    """
    limits = SearchLimits()
    remaining = iter(tokens)
    for token in remaining:
        if token == "searchmoves":
            limits.searchmoves.extend(remaining)
        elif token in GO_NUMBER_TOKENS:
            value = next(remaining, None)
            try:
                setattr(limits, token, int(value) if value is not None else None)
            except ValueError:
                logger.debug(f"Ignoring non-numeric value {value!r} for `go {token}`")
        elif token in GO_FLAG_TOKENS:
            setattr(limits, token, True)
        else:
            logger.debug(f"Ignoring unknown `go` token: {token!r}")
    return StartSearch(limits)


def parse_command(line: str) -> Request:
    """
    Decode one line from the controller.

    :param line: The raw command line.
    :return: The request the line asks for. Blank and unrecognized lines become `Unknown`.
    """
    tokens = line.split()
    command = tokens[0] if tokens else ""
    args = tokens[1:]

    if command in QUIT_TOKENS:
        return Quit(command)
    if command == "position":
        return parse_position(args)
    if command == "go":
        return parse_go(args)
    if command == "move":
        return RecordMove(args[0] if args else "")
    if command == "removelastmove":
        return UndoMove()
    if command in QUERY_TOKENS:
        return QueryHistory(QUERY_TOKENS[command])
    return Unknown(line)

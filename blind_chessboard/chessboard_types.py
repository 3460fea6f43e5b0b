"""Some type hints and enums that can be accessed by all other python files."""
from typing import Any, Union
from enum import Enum
from chess.engine import PlayResult
from chess import Move

COMMANDS_TYPE = list[str]
OPTIONS_TYPE = dict[str, Union[str, int, bool, None]]
ENGINE_INPUT_ARGS_TYPE = Union[None, OPTIONS_TYPE, type[BaseException], BaseException, bool, PlayResult, list[Move]]
ENGINE_INPUT_KWARGS_TYPE = Union[None, int, bool, list[Move]]

# Types that still use `Any`.
CONFIG_DICT_TYPE = dict[str, Any]


class RequestType(str, Enum):
    """The kind of request decoded from a command line."""

    SET_POSITION = "position"
    START_SEARCH = "go"
    RECORD_MOVE = "move"
    UNDO_MOVE = "removelastmove"
    QUERY_HISTORY = "query"
    QUIT = "quit"
    UNKNOWN = "unknown"


class QueryType(str, Enum):
    """The read-only views of the session that a controller can ask for."""

    PRINT_POSITION = "printposition"
    PIECE_RAISE = "getpieceraise"
    HISTORY = "getPGN"
    BEST_MOVE = "bestmove"

"""The main module that reads commands for the blind chessboard and answers them."""
import argparse
import contextlib
import importlib.metadata
import logging
import sys
from collections.abc import Callable, Iterable
from typing import Optional, cast
import chess.engine
from rich.console import Console
from rich.logging import RichHandler
from blind_chessboard import engine_wrapper
from blind_chessboard.chessboard_types import RequestType, QueryType
from blind_chessboard.commands import (Request, SetPosition, StartSearch, RecordMove, QueryHistory, Unknown,
                                       SearchLimits, parse_command)
from blind_chessboard.config import Configuration, load_config
from blind_chessboard.engine_wrapper import EngineWrapper, perft_report, run_search
from blind_chessboard.session import BoardSession

logger = logging.getLogger(__name__)

__version__ = "1.0.0"

TRAILER = "\n*****************************************\n\n"
NO_ENGINE = "No engine is available to search.\n"
COLLABORATOR_ERRORS = (ValueError, chess.engine.EngineError, chess.engine.EngineTerminatedError)


def send(text: str) -> None:
    """Write text to stdout and flush, so the controller reading the pipe sees it right away."""
    print(text, end="", flush=True)  # noqa: T201 (print() found)


class BoardLoop:
    """
    Dispatch the controller's commands to the board session and the engine.

    One command is answered completely before the next one is read. The loop owns the engine handle and is the only
    place that tells it to stop.
    """

    def __init__(self, session: BoardSession, engine: Optional[EngineWrapper], bestmove_depth: int = 22,
                 output: Callable[[str], None] = send) -> None:
        """
        :param session: The moves and position of the game on the board.
        :param engine: The engine used by `go` and `bestmove`. `None` if no engine could be started.
        :param bestmove_depth: How deep `bestmove` searches.
        :param output: Where the answers are written.
        """
        self.session = session
        self.engine = engine
        self.bestmove_depth = bestmove_depth
        self.output = output
        self.running = True
        self.handlers: dict[RequestType, Callable[[Request], str]] = {
            RequestType.SET_POSITION: self.handle_position,
            RequestType.START_SEARCH: self.handle_go,
            RequestType.RECORD_MOVE: self.handle_move,
            RequestType.UNDO_MOVE: self.handle_remove_last_move,
            RequestType.QUERY_HISTORY: self.handle_query,
            RequestType.QUIT: self.handle_quit,
            RequestType.UNKNOWN: self.handle_unknown}
        missing = set(RequestType) - set(self.handlers)
        if missing:
            raise RuntimeError(f"No handler for requests: {missing}")

    def handle(self, request: Request) -> str:
        """Answer one request."""
        return self.handlers[request.type](request)

    def handle_position(self, request: Request) -> str:
        """Set up the position of a `position` command."""
        position = cast(SetPosition, request)
        if position.valid:
            self.session.set_position(position.fen, position.moves)
        return ""

    def handle_go(self, request: Request) -> str:
        """Search the current position, or count its positions for `go perft`."""
        limits = cast(StartSearch, request).limits
        if limits.perft:
            return perft_report(self.session.board, limits.perft)
        return self.search(limits)

    def handle_move(self, request: Request) -> str:
        """Record a move made on the board."""
        move_text = cast(RecordMove, request).text
        return self.session.record_move(move_text)

    def handle_remove_last_move(self, request: Request) -> str:  # noqa: ARG002
        """Take back the last move."""
        return self.session.remove_last_move()

    def handle_query(self, request: Request) -> str:
        """Show a view of the session."""
        query = cast(QueryHistory, request).query
        queries: dict[QueryType, Callable[[], str]] = {
            QueryType.PRINT_POSITION: self.session.print_position,
            QueryType.PIECE_RAISE: self.session.piece_raise,
            QueryType.HISTORY: self.session.history_listing,
            QueryType.BEST_MOVE: lambda: self.search(SearchLimits(depth=self.bestmove_depth))}
        return queries[query]()

    def handle_quit(self, request: Request) -> str:  # noqa: ARG002
        """Stop the engine and leave the loop."""
        if self.engine is not None:
            self.engine.stop()
        self.running = False
        return ""

    def handle_unknown(self, request: Request) -> str:
        """Echo a line that is not a command."""
        line = cast(Unknown, request).line
        return f"Unknown command: {line}\n\n"

    def search(self, limits: SearchLimits) -> str:
        """Ask the engine for the best move in the current position. The session is not changed."""
        if self.engine is None:
            return NO_ENGINE
        return run_search(self.engine, self.session.board, limits, self.bestmove_depth)

    def run_command(self, line: str) -> bool:
        """
        Parse, answer, and print one command followed by the trailer line.

        A failure of python-chess or the engine is logged and the loop carries on with the next command.

        :param line: The command line.
        :return: Whether the loop should keep reading commands.
        """
        request = parse_command(line)
        logger.debug(f"Command: {line!r} -> {request}")
        try:
            self.output(self.handle(request))
        except COLLABORATOR_ERRORS:
            logger.exception(f"Could not run the command: {line!r}")
        self.output(TRAILER)
        return self.running

    def run(self, lines: Iterable[str]) -> None:
        """Answer commands until `quit` or `stop`. The end of the input counts as `quit`."""
        for line in lines:
            if not self.run_command(line.rstrip("\r\n")):
                return
        self.run_command("quit")


LOG_FILE_FORMAT = "%(asctime)s %(name)s (%(filename)s:%(lineno)d) %(levelname)s %(message)s"


def logging_configurer(level: int, filename: Optional[str]) -> None:
    """
    Send the logs to stderr, and to a file if one is given. Stdout only carries answers to the controller.

    :param level: `logging.INFO`, or `logging.DEBUG` with `-v`.
    :param filename: The log file from `--logfile`, or `None`.
    """
    handlers: list[logging.Handler] = [RichHandler(console=Console(stderr=True))]
    handlers[0].setFormatter(logging.Formatter("%(message)s"))
    if filename:
        handlers.append(logging.FileHandler(filename, delay=True, encoding="utf-8"))
        handlers[-1].setFormatter(logging.Formatter(LOG_FILE_FORMAT))

    for handler in handlers:
        handler.setLevel(level)
    logging.basicConfig(level=logging.DEBUG, handlers=handlers, force=True)


def log_python_and_libraries() -> None:
    """Write the python version and the installed packages to the debug log."""
    logger.debug(f"Python version: {'.'.join(map(str, sys.version_info))}")
    packages = sorted(f"{dist.metadata['Name']}=={dist.version}" for dist in importlib.metadata.distributions())
    logger.debug("Installed libraries:\n" + "\n".join(packages))


def open_engine(config: Configuration, stack: contextlib.ExitStack) -> Optional[EngineWrapper]:
    """
    Start the engine and close it when `stack` closes.

    :return: The engine, or `None` if it could not be started. The board still works without it.
    """
    logger.info("Starting the engine ...")
    try:
        engine = stack.enter_context(engine_wrapper.create_engine(config))
    except (OSError, chess.engine.EngineError, chess.engine.EngineTerminatedError):
        logger.exception("Could not start the engine. `go` and `bestmove` are unavailable.")
        return None
    logger.info(f"Engine {engine.name()} is ready.")
    return engine


def start_chessboard(argv: Optional[list[str]] = None) -> None:
    """Parse the arguments and run the command loop."""
    parser = argparse.ArgumentParser(description="Record and check the moves made on a blind chessboard")
    parser.add_argument("-v", action="store_true", help="Make output more verbose.")
    parser.add_argument("--config",
                        help="The config file. Defaults to ./config.yml, or the packaged defaults if it is missing.")
    parser.add_argument("-l", "--logfile", help="Record all log output to a log file.", default=None)
    parser.add_argument("command", nargs=argparse.REMAINDER,
                        help="Run a single command and exit, e.g. `move e2e4`. Commands are read from stdin otherwise.")
    args = parser.parse_args(argv)

    logging_level = logging.DEBUG if args.v else logging.INFO
    logging_configurer(logging_level, args.logfile)
    logger.info(f"blind-chessboard {__version__}")
    log_python_and_libraries()

    CONFIG = load_config(args.config or "./config.yml")
    session = BoardSession.from_config(CONFIG.board)

    with contextlib.ExitStack() as stack:
        engine = open_engine(CONFIG, stack)
        loop = BoardLoop(session, engine, CONFIG.engine.bestmove_depth)
        if args.command:
            loop.run_command(" ".join(args.command))
        else:
            loop.run(sys.stdin)
    logging.shutdown()


def start_program() -> None:
    """Start the blind chessboard."""
    try:
        start_chessboard()
    except KeyboardInterrupt:
        logger.debug("Received SIGINT. Quitting.")
    except Exception:
        logger.exception("Quitting blind-chessboard due to an error:")
        sys.exit(1)

"""Start the search engine, ask it for moves, and write its answers the way a UCI engine would."""
from __future__ import annotations
import os
import chess.engine
import chess
import subprocess
import logging
import threading
from blind_chessboard.commands import SearchLimits
from blind_chessboard.config import Configuration
from blind_chessboard.notation import move_to_text, text_to_move
from blind_chessboard.timer import Timer, msec_str, optional_seconds, to_msec
from blind_chessboard.winrate import wdl
from blind_chessboard.chessboard_types import (OPTIONS_TYPE, COMMANDS_TYPE, ENGINE_INPUT_ARGS_TYPE,
                                               ENGINE_INPUT_KWARGS_TYPE)
from typing import Any, Optional, Union
from types import TracebackType


logger = logging.getLogger(__name__)

MATE_SCORE = 32000


def engine_command(cfg: Configuration) -> COMMANDS_TYPE:
    """
    Build the command line that starts the engine.

    :param cfg: The `engine` section of the config.
    :return: The interpreter and its options if there is one, then the engine path and the `engine_options` as
        `--key=value` arguments.
    """
    commands = [cfg.interpreter, *cfg.interpreter_options] if cfg.interpreter else []
    commands.append(os.path.abspath(os.path.join(cfg.dir, cfg.name)))
    for key, value in (cfg.engine_options or Configuration({})).items():
        commands.append(f"--{key}" if value is None else f"--{key}={value}")
    return commands


def create_engine(config: Configuration) -> EngineWrapper:
    """
    Start the engine named in the config.

    Use the result in a with-block so the engine is shut down with the chessboard.

    :param config: The whole chessboard config.
    :return: A UCI engine running in its own process, or a homemade engine running in this one.
    """
    cfg = config.engine
    protocol = cfg.protocol
    Engine: type[Union[UCIEngine, MinimalEngine]]
    if protocol == "uci":
        Engine = UCIEngine
    elif protocol == "homemade":
        Engine = get_homemade_engine(cfg.name)
    else:
        raise ValueError(f"Unknown engine protocol: {protocol}. Expected uci or homemade.")

    commands = engine_command(cfg)
    stderr = subprocess.DEVNULL if cfg.silence_stderr else None
    options = remove_managed_options(cfg.lookup(f"{protocol}_options") or Configuration({}))
    logger.debug(f"Starting engine: {commands}")
    return Engine(commands, options, stderr, cwd=cfg.working_dir)


def remove_managed_options(config: Configuration) -> OPTIONS_TYPE:
    """Drop the options python-chess sets by itself, like `UCI_Chess960` and `MultiPV`."""
    def managed_by_python_chess(name: str) -> bool:
        return chess.engine.Option(name, "", None, None, None, None).is_managed()

    return {name: value for name, value in config.items() if not managed_by_python_chess(name)}


class EngineWrapper:
    """The interface the command loop uses for every kind of engine."""

    def __init__(self, options: OPTIONS_TYPE) -> None:
        """:param options: The engine options from the config."""
        self.engine: Union[chess.engine.SimpleEngine, FillerEngine]
        self.options = options
        self.stop_event = threading.Event()

    def configure(self, options: OPTIONS_TYPE) -> None:
        """
        Set engine options.

        The engine is closed if python-chess rejects an option, e.g. one the engine doesn't have.
        """
        try:
            self.engine.configure(options)
        except Exception:
            self.engine.close()
            raise

    def __enter__(self) -> EngineWrapper:
        """Start using the engine."""
        self.engine.__enter__()
        return self

    def __exit__(self, exc_type: Optional[type[BaseException]],
                 exc_value: Optional[BaseException],
                 traceback: Optional[TracebackType]) -> None:
        """Ask the engine to quit after a normal exit, then close it."""
        if exc_type is None:
            self.ping()
            self.quit()
        self.engine.__exit__(exc_type, exc_value, traceback)

    def search(self, board: chess.Board, time_limit: chess.engine.Limit, ponder: bool,
               root_moves: Optional[list[chess.Move]]) -> chess.engine.PlayResult:
        """
        Find the best move. Returns when the engine answers with `bestmove`.

        :param board: The position to search.
        :param time_limit: When the search ends, e.g. at depth 22.
        :param ponder: Whether the engine should also suggest the opponent's reply.
        :param root_moves: The only moves the engine may choose from. `None` allows every legal move.
        :return: The move and everything the engine said about the search.
        """
        return self.engine.play(board,
                                time_limit,
                                info=chess.engine.INFO_ALL,
                                ponder=ponder,
                                root_moves=root_moves)

    def stop(self) -> None:
        """Tell a running search to finish."""
        logger.debug(f"Signalling {self.name()} to stop.")
        self.stop_event.set()

    def name(self) -> str:
        """The name the engine reports for itself."""
        return self.engine.id["name"]

    def ping(self) -> None:
        """Wait until the engine is ready."""
        self.engine.ping()

    def quit(self) -> None:
        """Shut the engine down."""
        self.engine.quit()


class UCIEngine(EngineWrapper):
    """An engine program that speaks UCI."""

    def __init__(self, commands: COMMANDS_TYPE, options: OPTIONS_TYPE, stderr: Optional[int],
                 **popen_args: str) -> None:
        """
        Start the engine process and send it the configured options.

        :param commands: The command line of the engine, e.g. ["engines/stockfish", "--option1=value1"].
        :param options: The UCI options to set.
        :param stderr: Where the engine's stderr goes. `None` shows it.
        :param popen_args: Extra arguments for the process, e.g. `cwd`.
        """
        super().__init__(options)
        self.engine = chess.engine.SimpleEngine.popen_uci(commands, timeout=10., debug=False, setpgrp=True,
                                                          stderr=stderr, **popen_args)
        self.configure(options)


class MinimalEngine(EngineWrapper):
    """
    The base class of engines written in Python (see `homemade.py`).

    Subclasses implement `search`. They may override `notify` to hear about the calls the command loop makes on
    the engine. `self.stop_event` is cleared before every search and set when the controller sends `quit` or
    `stop`. A search that takes a while should check it and return its best move so far once it is set.
    """

    def __init__(self, commands: COMMANDS_TYPE, options: OPTIONS_TYPE, stderr: Optional[int],  # noqa: ARG002
                 name: Optional[str] = None, **popen_args: str) -> None:  # noqa: ARG002
        """
        Set up the engine. The arguments match `UCIEngine` so both are created the same way.

        :param options: The `homemade_options` from the config.
        :param name: The engine name. The class name is used if it is `None`.
        """
        super().__init__(options)
        self.engine_name = self.__class__.__name__ if name is None else name
        self.engine = FillerEngine(self, name=self.engine_name)

    def search(self, board: chess.Board, time_limit: chess.engine.Limit, ponder: bool,
               root_moves: Optional[list[chess.Move]]) -> chess.engine.PlayResult:
        """Choose a move. Homemade engines must override this and return a `chess.engine.PlayResult`."""
        raise NotImplementedError("The search method is not implemented")

    def notify(self, method_name: str, *args: ENGINE_INPUT_ARGS_TYPE, **kwargs: ENGINE_INPUT_KWARGS_TYPE) -> Any:
        """
        Receive a call that `EngineWrapper` made on `self.engine`, such as `ping` or `quit`.

        It is ignored unless a subclass overrides this.
        """


class FillerEngine:
    """
    Stands in for a python-chess engine inside a `MinimalEngine`.

    Every method called on it is passed to the homemade engine's `notify`.
    """

    def __init__(self, main_engine: MinimalEngine, name: str = "") -> None:
        """:param name: The name of the homemade engine."""
        self.id = {"name": name}
        self.name = name
        self.main_engine = main_engine

    def __getattr__(self, method_name: str) -> Any:
        """Turn a method call into a call to `notify`."""
        def forward(*args: ENGINE_INPUT_ARGS_TYPE, **kwargs: ENGINE_INPUT_KWARGS_TYPE) -> Any:
            return self.main_engine.notify(method_name, *args, **kwargs)

        return forward


test_suffix = "-for-blind-chessboard-testing-only"


def get_homemade_engine(name: str) -> type[MinimalEngine]:
    """
    Find a homemade engine class by name, e.g. `RandomMove` is `homemade.RandomMove`.

    Names ending in `test_suffix` are looked up in `test_board/homemade.py` instead.
    """
    if name.endswith(test_suffix):
        from test_board import homemade as test_homemade
        return getattr(test_homemade, name.removesuffix(test_suffix))

    import homemade
    engine: type[MinimalEngine] = getattr(homemade, name)
    return engine


def search_limit(limits: SearchLimits, default_depth: int) -> chess.engine.Limit:
    """
    Convert the options of a `go` command to a python-chess search limit.

    A `go` without any limit, or with `infinite`, searches to `default_depth`, since no `stop` can arrive while the
    search runs.
    """
    limit = chess.engine.Limit(time=optional_seconds(limits.movetime),
                               depth=limits.depth,
                               nodes=limits.nodes,
                               mate=limits.mate,
                               white_clock=optional_seconds(limits.wtime),
                               black_clock=optional_seconds(limits.btime),
                               white_inc=optional_seconds(limits.winc),
                               black_inc=optional_seconds(limits.binc),
                               remaining_moves=limits.movestogo)
    has_limit = any(value is not None for value in [limit.time, limit.depth, limit.nodes, limit.mate,
                                                    limit.white_clock, limit.black_clock])
    if limits.infinite or not has_limit:
        limit.depth = default_depth
    return limit


def root_moves(board: chess.Board, searchmoves: list[str]) -> Optional[list[chess.Move]]:
    """Decode the moves of `go searchmoves`. Moves that are not legal are dropped. `None` means search all moves."""
    moves = []
    for text in searchmoves:
        move = text_to_move(board, text)
        if move:
            moves.append(move)
        else:
            logger.warning(f"Ignoring searchmove {text!r}: not a legal move.")
    return moves or None


def uci_value(score: chess.engine.Score) -> str:
    """
    Write a score the way UCI does.

    cp <x>    The score from the engine's point of view in centipawns.
    mate <y>  Mate in y moves, not plies. Negative if the engine is getting mated.
    """
    mate = score.mate()
    if mate is not None:
        return f"mate {mate}"
    return f"cp {score.score()}"


def format_info(info: chess.engine.InfoDict, board: chess.Board, timer: Timer) -> str:
    """
    Write the engine's info about a search as a UCI `info` line.

    The win/draw/loss estimate comes from the win-rate model. Time and speed are measured here when the engine does
    not report them.
    """
    elapsed = timer.time_since_reset()
    parts = ["info"]
    for key in ["depth", "seldepth", "multipv"]:
        if key in info:
            parts.append(f"{key} {info[key]}")
    if "score" in info:
        score = info["score"].relative
        parts.append(f"score {uci_value(score)}")
        parts.append("wdl {} {} {}".format(*wdl(score.score(mate_score=MATE_SCORE), board.ply())))
    nodes = info.get("nodes")
    if nodes is not None:
        parts.append(f"nodes {nodes}")
        speed = info.get("nps", round(nodes * 1000 / max(1.0, to_msec(elapsed))))
        parts.append(f"nps {speed}")
    time_used = info.get("time")
    parts.append(f"time {round(time_used * 1000) if time_used is not None else msec_str(elapsed)}")
    if info.get("pv"):
        pv_board = board.copy()
        pv_texts = []
        for move in info["pv"]:
            pv_texts.append(move_to_text(pv_board, move, board.chess960))
            pv_board.push(move)
        parts.append("pv " + " ".join(pv_texts))
    return " ".join(parts)


def format_bestmove(result: chess.engine.PlayResult, board: chess.Board) -> str:
    """Write the result of a search as a UCI `bestmove` line."""
    line = f"bestmove {move_to_text(board, result.move, board.chess960)}"
    if result.move and result.ponder:
        after_move = board.copy()
        after_move.push(result.move)
        line += f" ponder {move_to_text(after_move, result.ponder, board.chess960)}"
    return line


def run_search(engine: EngineWrapper, board: chess.Board, limits: SearchLimits, default_depth: int) -> str:
    """
    Search a position and report the result.

    :param engine: The engine that searches.
    :param board: The position to search. It is not changed.
    :param limits: The options of the `go` command.
    :param default_depth: How deep to search when the `go` command has no limit.
    :return: The `info` and `bestmove` lines.
    """
    board = board.copy()
    if not any(board.legal_moves):
        score = "mate 0" if board.is_check() else "cp 0"
        return f"info depth 0 score {score}\nbestmove {move_to_text(board, None, board.chess960)}\n"

    limit = search_limit(limits, default_depth)
    logger.info(f"Searching {board.fen()} with {limit}")
    timer = Timer()
    engine.stop_event.clear()
    result = engine.search(board, limit, limits.ponder, root_moves(board, limits.searchmoves))
    return f"{format_info(result.info, board, timer)}\n{format_bestmove(result, board)}\n"


def perft(board: chess.Board, depth: int) -> int:
    """Count the positions reached after `depth` plies."""
    if depth <= 0:
        return 1
    if depth == 1:
        return board.legal_moves.count()

    nodes = 0
    for move in board.legal_moves:
        board.push(move)
        nodes += perft(board, depth - 1)
        board.pop()
    return nodes


def perft_report(board: chess.Board, depth: int) -> str:
    """Count the positions after each legal move, then the total, for `go perft <depth>`."""
    board = board.copy()
    lines = []
    total = 0
    for move in board.legal_moves:
        text = move_to_text(board, move, board.chess960)
        board.push(move)
        nodes = perft(board, depth - 1)
        board.pop()
        total += nodes
        lines.append(f"{text}: {nodes}")
    lines.append("")
    lines.append(f"Nodes searched: {total}")
    return "\n".join(lines) + "\n"

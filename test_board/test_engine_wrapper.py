"""Tests for searching with engines and writing their results."""
import logging
import os
import sys
import chess
import chess.engine
import pytest
from blind_chessboard import engine_wrapper
from blind_chessboard.commands import SearchLimits
from blind_chessboard.config import Configuration, insert_default_values
from blind_chessboard.chessboard_types import CONFIG_DICT_TYPE
from blind_chessboard.engine_wrapper import (search_limit, root_moves, uci_value, format_info, format_bestmove,
                                             run_search, perft, perft_report, test_suffix)
from blind_chessboard.timer import Timer
from test_board.conftest import TEST_DIRECTORY, homemade_config
from test_board.homemade import FirstLegalMove, StopRecorder

ITALIAN_BEFORE_CASTLING = "r1bqkb1r/pppp1ppp/2n2n2/4p3/2B1P3/5N2/PPPP1PPP/RNBQK2R w KQkq - 4 4"


def played(moves: list[str], fen: str = chess.STARTING_FEN) -> chess.Board:
    """Get the position after some moves."""
    board = chess.Board(fen)
    for move in moves:
        board.push_uci(move)
    return board


def test_search_limit_without_limits() -> None:
    """Test that a bare `go` searches to the default depth."""
    limit = search_limit(SearchLimits(), 22)
    assert limit.depth == 22
    assert limit.time is None
    assert limit.nodes is None


def test_search_limit_clock() -> None:
    """Test that clock times are converted from milliseconds to seconds."""
    limit = search_limit(SearchLimits(wtime=60000, btime=50000, winc=1000, binc=2000, movestogo=20), 22)
    assert limit.white_clock == 60
    assert limit.black_clock == 50
    assert limit.white_inc == 1
    assert limit.black_inc == 2
    assert limit.remaining_moves == 20
    assert limit.depth is None


def test_search_limit_fixed() -> None:
    """Test limits by time, depth, nodes, and mate."""
    assert search_limit(SearchLimits(movetime=1500), 22).time == 1.5
    assert search_limit(SearchLimits(movetime=1500), 22).depth is None
    assert search_limit(SearchLimits(depth=7), 22).depth == 7
    assert search_limit(SearchLimits(nodes=1000), 22).nodes == 1000
    assert search_limit(SearchLimits(nodes=1000), 22).depth is None
    assert search_limit(SearchLimits(mate=2), 22).mate == 2


def test_search_limit_infinite() -> None:
    """Test that an infinite search is cut off at the default depth."""
    assert search_limit(SearchLimits(infinite=True), 15).depth == 15


def test_root_moves(caplog: pytest.LogCaptureFixture) -> None:
    """Test that illegal searchmoves are dropped with a warning."""
    board = chess.Board()
    with caplog.at_level(logging.WARNING):
        assert root_moves(board, ["e2e4", "e2e5", "g1f3"]) == [chess.Move(chess.E2, chess.E4),
                                                               chess.Move(chess.G1, chess.F3)]
    assert "Ignoring searchmove 'e2e5'" in caplog.text
    assert root_moves(board, []) is None
    assert root_moves(board, ["e2e5"]) is None


def test_uci_value() -> None:
    """Test writing centipawn and mate scores."""
    assert uci_value(chess.engine.Cp(35)) == "cp 35"
    assert uci_value(chess.engine.Cp(-120)) == "cp -120"
    assert uci_value(chess.engine.Mate(3)) == "mate 3"
    assert uci_value(chess.engine.Mate(-2)) == "mate -2"


def test_format_info() -> None:
    """Test the info line of a search that found a mate."""
    board = chess.Board(ITALIAN_BEFORE_CASTLING)
    info: chess.engine.InfoDict = {"depth": 5,
                                   "seldepth": 9,
                                   "score": chess.engine.PovScore(chess.engine.Mate(2), chess.WHITE),
                                   "nodes": 1000,
                                   "nps": 5000,
                                   "time": 0.2,
                                   "pv": [chess.Move(chess.E1, chess.G1), chess.Move(chess.F8, chess.C5)]}
    line = format_info(info, board, Timer())
    assert line == "info depth 5 seldepth 9 score mate 2 wdl 1000 0 0 nodes 1000 nps 5000 time 200 pv e1g1 f8c5"


def test_format_info_measures_time() -> None:
    """Test that the node rate and time are filled in when the engine leaves them out."""
    info: chess.engine.InfoDict = {"depth": 1, "nodes": 20}
    line = format_info(info, chess.Board(), Timer())
    assert line.startswith("info depth 1 nodes 20 nps ")
    assert " time " in line


def test_format_bestmove() -> None:
    """Test the bestmove line with and without a ponder move."""
    board = chess.Board()
    e4, e5 = chess.Move(chess.E2, chess.E4), chess.Move(chess.E7, chess.E5)
    assert format_bestmove(chess.engine.PlayResult(e4, e5), board) == "bestmove e2e4 ponder e7e5"
    assert format_bestmove(chess.engine.PlayResult(e4, None), board) == "bestmove e2e4"
    assert format_bestmove(chess.engine.PlayResult(None, None), board) == "bestmove (none)"


def test_format_bestmove_castling() -> None:
    """Test that castling is written for the variant being played."""
    castle = chess.Move(chess.E1, chess.G1)
    assert format_bestmove(chess.engine.PlayResult(castle, None),
                           chess.Board(ITALIAN_BEFORE_CASTLING)) == "bestmove e1g1"
    board_960 = chess.Board(ITALIAN_BEFORE_CASTLING, chess960=True)
    castle_960 = chess.Move(chess.E1, chess.H1)
    assert format_bestmove(chess.engine.PlayResult(castle_960, None), board_960) == "bestmove e1h1"


def test_run_search_homemade() -> None:
    """Test a search with a homemade engine."""
    engine = FirstLegalMove([], {}, None)
    board = played(["e2e4"])
    reply = run_search(engine, board, SearchLimits(depth=3), 22)
    info, bestmove = reply.splitlines()
    assert info.startswith("info depth 3 score cp 25 wdl ")
    assert info.endswith("pv a7a5")
    assert bestmove == "bestmove a7a5"
    assert board == played(["e2e4"])


def test_run_search_checkmate() -> None:
    """Test that a position without legal moves is not sent to the engine."""
    engine = FirstLegalMove([], {}, None)
    mated = played(["f2f3", "e7e5", "g2g4", "d8h4"])
    assert run_search(engine, mated, SearchLimits(), 22) == "info depth 0 score mate 0\nbestmove (none)\n"
    stalemated = chess.Board("7k/5Q2/6K1/8/8/8/8/8 b - - 0 1")
    assert run_search(engine, stalemated, SearchLimits(), 22) == "info depth 0 score cp 0\nbestmove (none)\n"


def test_perft() -> None:
    """Test the well known node counts from the starting position."""
    board = chess.Board()
    assert perft(board, 0) == 1
    assert perft(board, 1) == 20
    assert perft(board, 2) == 400
    assert perft(board, 3) == 8902
    assert board == chess.Board()


def test_perft_report() -> None:
    """Test the per-move breakdown of `go perft`."""
    report = perft_report(chess.Board(), 2)
    lines = report.splitlines()
    assert "e2e4: 20" in lines
    assert "g1f3: 20" in lines
    assert len(lines) == 22
    assert lines[-2] == ""
    assert report.endswith("Nodes searched: 400\n")


def test_homemade_engine_notifications() -> None:
    """Test that a homemade engine is told when it starts and stops."""
    with engine_wrapper.create_engine(homemade_config("StopRecorder")) as engine:
        assert isinstance(engine, StopRecorder)
        assert engine.name() == "StopRecorder"
        engine.stop()
        assert engine.stop_event.is_set()
    assert engine.calls == ["__enter__", "ping", "quit", "__exit__"]


def test_get_homemade_engine() -> None:
    """Test finding homemade engines by name."""
    import homemade
    assert engine_wrapper.get_homemade_engine("RandomMove") is homemade.RandomMove
    assert engine_wrapper.get_homemade_engine("FirstLegalMove" + test_suffix) is FirstLegalMove


def test_invalid_protocol() -> None:
    """Test that only UCI and homemade engines can be created."""
    config = homemade_config("FirstLegalMove")
    config.engine.config["protocol"] = "xboard"
    with pytest.raises(ValueError):
        engine_wrapper.create_engine(config)


def test_uci_engine() -> None:
    """Test talking to a UCI engine in another process."""
    CONFIG: CONFIG_DICT_TYPE = {"engine": {"dir": TEST_DIRECTORY,
                                           "name": "uci_engine.py",
                                           "interpreter": sys.executable,
                                           "uci_options": {},
                                           "working_dir": TEST_DIRECTORY}}
    insert_default_values(CONFIG)
    with engine_wrapper.create_engine(Configuration(CONFIG)) as engine:
        assert engine.name() == "UCI_Test_Engine"
        reply = run_search(engine, chess.Board(), SearchLimits(depth=1), 22)
        assert reply.startswith("info depth 1 score cp 17 wdl ")
        assert "nodes 42 nps 4200 time 10 pv a2a3\n" in reply
        assert reply.endswith("bestmove a2a3\n")

        reply = run_search(engine, played(["e2e4"]), SearchLimits(depth=1), 22)
        assert reply.endswith("bestmove a7a5\n")


def test_engine_command() -> None:
    """Test the command line built from the engine section of the config."""
    CONFIG: CONFIG_DICT_TYPE = {"engine": {"dir": "/opt/engines",
                                           "name": "lc0",
                                           "interpreter": "nice",
                                           "interpreter_options": "-n5",
                                           "engine_options": {"weights": "net.pb", "verbose": None}}}
    insert_default_values(CONFIG)
    commands = engine_wrapper.engine_command(Configuration(CONFIG).engine)
    assert commands == ["nice", "-n5", os.path.abspath("/opt/engines/lc0"), "--weights=net.pb", "--verbose"]


def test_stop_flag_is_cleared_before_search() -> None:
    """Test that a stop from an earlier command doesn't cut the next search short."""
    engine = StopRecorder([], {}, None)
    engine.stop()
    assert engine.stop_event.is_set()
    assert run_search(engine, chess.Board(), SearchLimits(depth=1), 22).endswith("\n")
    assert engine.stopped_at_search == [False]
    assert not engine.stop_event.is_set()

"""Reading, completing, and checking the blind-chessboard config."""
from __future__ import annotations
import yaml
import os
import logging
from typing import Any, ItemsView
import chess
from blind_chessboard.chessboard_types import CONFIG_DICT_TYPE

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "config.yml.default")
PROTOCOLS = ["uci", "homemade"]


class Configuration:
    """A read-only view of a config section. Keys are read as attributes, e.g. `config.engine.name`."""

    def __init__(self, parameters: CONFIG_DICT_TYPE) -> None:
        """:param parameters: The `dict` loaded from the YAML file, or one of its sections."""
        self.config = parameters

    def __getattr__(self, name: str) -> Any:
        """Look up `name` so sections can be chained like `config.board.start_fen`."""
        return self.lookup(name)

    def lookup(self, name: str) -> Any:
        """
        Get the value stored under a key.

        :param name: The key.
        :return: A `Configuration` for a nested section, the plain value otherwise, and `None` for a missing key.
        """
        value = self.config.get(name)
        return Configuration(value) if isinstance(value, dict) else value

    def items(self) -> ItemsView[str, Any]:
        """:return: The key-value pairs of this section."""
        return self.config.items()

    def __bool__(self) -> bool:
        """Whether the section has any keys."""
        return bool(self.config)


def config_assert(assertion: bool, error_message: str) -> None:
    """Stop with `error_message` if the assertion fails."""
    if not assertion:
        raise Exception(error_message)


def config_warn(assertion: bool, warning_message: str) -> None:
    """Log `warning_message` if the assertion fails."""
    if not assertion:
        logger.warning(warning_message)


def check_config_section(config: CONFIG_DICT_TYPE, key: str, expected_type: type, section: str = "") -> None:
    """
    Check that a key exists and holds the right kind of value.

    :param config: The whole config.
    :param key: The key to check.
    :param expected_type: `dict` for a section, `str` for a text value.
    :param section: The section holding `key`. Empty for a top level section.
    """
    holder = config[section] if section else config
    where = f"`{section}:{key}`" if section else f"the `{key}` section"
    config_assert(key in holder, f"Your config.yml is missing {where}.")
    kind = "a section of indented keys" if expected_type is dict else "a string wrapped in quotes"
    config_assert(isinstance(holder[key], expected_type), f"In your config.yml, {where} must be {kind}.")


def set_config_default(config: CONFIG_DICT_TYPE, *sections: str, key: str, default: Any,
                       force_empty_values: bool = False) -> CONFIG_DICT_TYPE:
    """
    Give a key its default value if it has none.

    :param config: The whole config.
    :param sections: The path of sections leading to the key. Missing sections are created.
    :param key: The key to fill.
    :param default: The value to use.
    :param force_empty_values: Also replace a key that is present but left blank.
    :return: The section holding the key.
    """
    section_config = config
    for section in sections:
        section_config = section_config.setdefault(section, {})
        if not isinstance(section_config, dict):
            raise Exception(f"`{section}` in the config must hold indented keys, not a single value.")
    if force_empty_values and section_config.get(key) in [None, ""]:
        section_config[key] = default
    else:
        section_config.setdefault(key, default)
    return section_config


def change_value_to_list(config: CONFIG_DICT_TYPE, *sections: str, key: str) -> None:
    """Wrap a single value in a list, e.g. `-O` becomes `["-O"]`. A blank value becomes an empty list."""
    section_config = set_config_default(config, *sections, key=key, default=[])
    value = section_config[key]
    if value is None:
        section_config[key] = []
    elif not isinstance(value, list):
        section_config[key] = [value]


def insert_default_values(CONFIG: CONFIG_DICT_TYPE) -> None:
    """
    Fill in every key the chessboard reads, so the rest of the code never sees a missing key.

    :param CONFIG: The config as loaded from YAML. It is changed in place.
    """
    engine_defaults: CONFIG_DICT_TYPE = {"dir": "./engines/",
                                         "name": "stockfish",
                                         "protocol": "uci",
                                         "interpreter_options": [],
                                         "working_dir": os.getcwd(),
                                         "engine_options": {},
                                         "uci_options": {},
                                         "homemade_options": {},
                                         "bestmove_depth": 22}
    for key, default in engine_defaults.items():
        set_config_default(CONFIG, "engine", key=key, default=default, force_empty_values=True)
    set_config_default(CONFIG, "engine", key="interpreter", default=None)
    set_config_default(CONFIG, "engine", key="silence_stderr", default=False)
    change_value_to_list(CONFIG, "engine", key="interpreter_options")

    set_config_default(CONFIG, "board", key="start_fen", default="startpos", force_empty_values=True)
    set_config_default(CONFIG, "board", key="chess960", default=False)


def log_config(CONFIG: CONFIG_DICT_TYPE) -> None:
    """Write the complete config to the debug log."""
    logger.debug(f"Config:\n{yaml.dump(CONFIG, sort_keys=False)}")
    logger.debug("====================")


def is_valid_fen(fen: str, chess960: bool) -> bool:
    """Check whether python-chess accepts a FEN as a starting position."""
    try:
        chess.Board(fen, chess960=chess960)
    except ValueError:
        return False
    return True


def validate_config(CONFIG: CONFIG_DICT_TYPE) -> None:
    """Check the config. Problems the chessboard can't work around raise an exception, others are logged."""
    check_config_section(CONFIG, "engine", dict)
    check_config_section(CONFIG, "board", dict)
    check_config_section(CONFIG, "dir", str, "engine")
    check_config_section(CONFIG, "name", str, "engine")
    check_config_section(CONFIG, "start_fen", str, "board")

    engine_config = CONFIG["engine"]
    protocol = engine_config["protocol"]
    config_assert(protocol in PROTOCOLS,
                  f"`{protocol}` is not a valid `engine:protocol` value. Please choose from {PROTOCOLS}.")

    if protocol == "uci":
        engine = os.path.join(engine_config["dir"], engine_config["name"])
        config_warn(os.path.isfile(engine),
                    f"The engine {engine} file does not exist. The `bestmove` and `go` commands will fail.")
        config_warn(not os.path.isfile(engine) or os.access(engine, os.X_OK) or bool(engine_config["interpreter"]),
                    f"The engine {engine} can't be run. Try: chmod +x {engine}")

    working_dir = engine_config["working_dir"]
    config_assert(os.path.isdir(working_dir), f"The engine's working directory `{working_dir}` does not exist.")

    depth = engine_config["bestmove_depth"]
    config_assert(isinstance(depth, int) and not isinstance(depth, bool) and depth > 0,
                  f"`engine:bestmove_depth` must be a positive whole number, not `{depth}`.")

    board_config = CONFIG["board"]
    start_fen = board_config["start_fen"]
    config_assert(start_fen == "startpos" or is_valid_fen(start_fen, board_config["chess960"]),
                  f"`board:start_fen` must be `startpos` or a valid FEN, not `{start_fen}`.")
    config_warn(not board_config["chess960"] or start_fen != "startpos",
                "`board:chess960` is enabled but the game starts from the standard position.")


def load_config(config_file: str) -> Configuration:
    """
    Read, complete, and check the config.

    :param config_file: The path of the YAML config, usually `./config.yml`. The packaged defaults in
        `config.yml.default` are read when the file does not exist.
    :return: The config with every default filled in.
    """
    if not os.path.isfile(config_file):
        logger.info(f"No config found at {config_file}. Using {DEFAULT_CONFIG_FILE}.")
        config_file = DEFAULT_CONFIG_FILE

    with open(config_file) as stream:
        try:
            CONFIG = yaml.safe_load(stream) or {}
        except yaml.YAMLError:
            logger.exception(f"{config_file} is not valid YAML.")
            raise

    insert_default_values(CONFIG)
    log_config(CONFIG)
    validate_config(CONFIG)
    return Configuration(CONFIG)

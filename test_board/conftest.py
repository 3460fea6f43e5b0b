"""Shared fixtures for the blind-chessboard tests."""
import os
import pytest
import yaml
from blind_chessboard.chessboard_types import CONFIG_DICT_TYPE
from blind_chessboard.config import DEFAULT_CONFIG_FILE, Configuration, insert_default_values
from blind_chessboard.engine_wrapper import test_suffix

TEST_DIRECTORY = os.path.dirname(os.path.abspath(__file__))


def homemade_config(name: str) -> Configuration:
    """Get a config that runs one of the engines in `test_board/homemade.py`."""
    CONFIG: CONFIG_DICT_TYPE = {"engine": {"protocol": "homemade", "name": name + test_suffix}}
    insert_default_values(CONFIG)
    return Configuration(CONFIG)


@pytest.fixture
def default_config() -> CONFIG_DICT_TYPE:
    """The packaged config with all defaults filled in."""
    with open(DEFAULT_CONFIG_FILE) as file:
        CONFIG = yaml.safe_load(file)
    insert_default_values(CONFIG)
    return CONFIG

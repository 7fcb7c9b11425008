import os

import numpy as np
import pytest

from rlelife.utils import logging as rle_logging

PATTERNS_DIR = os.path.join(os.path.dirname(__file__), "patterns")

GLIDER_RLE = "bob$2bo$3o!"


@pytest.fixture
def patterns_dir():
    return PATTERNS_DIR


@pytest.fixture
def glider_path():
    return os.path.join(PATTERNS_DIR, "glider.rle")


@pytest.fixture
def glider_grid():
    return np.array([[0, 1, 0],
                     [0, 0, 1],
                     [1, 1, 1]], dtype=bool)


@pytest.fixture(autouse=True)
def fresh_logger():
    """Each test builds its own cached logger so handlers never leak between tests."""
    rle_logging.reset_logger()
    yield
    rle_logging.reset_logger()

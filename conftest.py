import shutil
from pathlib import Path

import pytest

from backend import config, sessions

TEST_DATA_DIR = Path("data-tests")


@pytest.fixture(autouse=True)
def clean_test_data():
    """Wipe config and every game session before each test."""
    if TEST_DATA_DIR.exists():
        shutil.rmtree(TEST_DATA_DIR)
    config.init_config(TEST_DATA_DIR)
    sessions.reset()
    yield
    # leave data-tests around after tests for inspection; CI can ignore it

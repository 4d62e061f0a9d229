"""
Pytest configuration and fixtures.
"""

import pytest

from logger import setup_logger


@pytest.fixture(scope="session", autouse=True)
def isolated_logs(tmp_path_factory):
    """Keep log files out of the home directory while tests run."""
    logger = setup_logger("gridnav", tmp_path_factory.mktemp("logs"))
    yield logger
    logger.close()

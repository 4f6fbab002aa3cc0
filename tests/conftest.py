"""Pytest configuration for tests."""

import logging

import pytest

import tests._path_setup  # noqa: F401

from push_to_file.runtime.checksums import prev_file_checksums


@pytest.fixture(autouse=True)
def _fresh_checksums():
    """Each test starts as a fresh process would: nothing written yet."""
    prev_file_checksums.clear()
    logging.getLogger("push_to_file").propagate = True
    yield
    prev_file_checksums.clear()


@pytest.fixture
def clean_package_logger():
    pkg = logging.getLogger("push_to_file")
    handlers = list(pkg.handlers)
    pkg.handlers.clear()
    yield pkg
    for h in pkg.handlers:
        h.close()
    pkg.handlers[:] = handlers
    pkg.propagate = True
    pkg.setLevel(logging.NOTSET)

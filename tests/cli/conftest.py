# tests/cli/conftest.py
"""CLI test fixtures."""

import logging
from collections.abc import Iterator

import pytest


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Iterator[None]:
    """Undo configure_logging() calls made by the CLI callback.

    The callback installs a handler bound to the runner's captured stdout,
    which is closed once the invocation returns.
    """
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers = handlers
    root.setLevel(level)

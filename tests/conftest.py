# tests/conftest.py
"""Shared test fixtures.

Every database fixture is function-scoped and in-memory: each test gets a
fresh store.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest
from hypothesis import Phase, Verbosity, settings

from hubsweep.core.clock import MockClock
from hubsweep.core.store import SqlKeyValueStore, StoreDB

# 2024-01-01T00:30:00Z
WALL_START = 1_704_069_000.0


# =============================================================================
# Hypothesis Profiles
# =============================================================================

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
def clock() -> MockClock:
    return MockClock(start=0.0, wall_start=WALL_START)


@pytest.fixture
def db() -> Iterator[StoreDB]:
    """Function-scoped in-memory StoreDB."""
    store_db = StoreDB.in_memory()
    yield store_db
    store_db.close()


@pytest.fixture
def kv(db: StoreDB, clock: MockClock) -> SqlKeyValueStore:
    """Key-value store driven by the mock clock, small chunks to exercise paging."""
    return SqlKeyValueStore(db, clock=clock, chunk_size=3)


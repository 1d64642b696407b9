# tests/property/conftest.py
"""Shared Hypothesis strategies for property-based tests.

Usage:
    from tests.property.conftest import fid_sets, store_keys

    @given(fids=fid_sets)
    def test_resume(fids: list[int]) -> None:
        ...
"""

from __future__ import annotations

from hypothesis import strategies as st

from hubsweep.core.keys import MAX_FARCASTER_TIME, MESSAGE_KEY_LENGTH

# =============================================================================
# Key Strategies
# =============================================================================

# Arbitrary keys, biased towards the message key length so both branches of
# the length check are exercised
store_keys = st.one_of(
    st.binary(min_size=0, max_size=40),
    st.binary(min_size=MESSAGE_KEY_LENGTH, max_size=MESSAGE_KEY_LENGTH),
)

postfixes = st.integers(min_value=0, max_value=255)

farcaster_times = st.integers(min_value=0, max_value=MAX_FARCASTER_TIME)

# =============================================================================
# Entity Strategies
# =============================================================================

# Strictly ascending fid lists, as the hub returns them
fid_sets = st.lists(st.integers(min_value=1, max_value=500), min_size=0, max_size=25, unique=True).map(sorted)

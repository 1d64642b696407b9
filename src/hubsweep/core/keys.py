"""Hub store key layout and Farcaster time conversion.

User message keys have a fixed layout::

    [RootPrefix.USER (1)] [fid (FID_BYTES, big-endian)] [UserPostfix (1)] [tsHash (TSHASH_LENGTH)]

Any other key length under a fid prefix belongs to an index or set, never
to a stored message.
"""

import math
from collections.abc import Collection

from hubsweep.contracts.enums import RootPrefix, SkipReason, UserPostfix

FID_BYTES = 4
HASH_LENGTH = 20
TIMESTAMP_LENGTH = 4
TSHASH_LENGTH = TIMESTAMP_LENGTH + HASH_LENGTH

POSTFIX_OFFSET = 1 + FID_BYTES
MESSAGE_KEY_LENGTH = 1 + FID_BYTES + 1 + TSHASH_LENGTH

# 2021-01-01T00:00:00Z in Unix milliseconds
FARCASTER_EPOCH_MS = 1_609_459_200_000
MAX_FARCASTER_TIME = 2**32 - 1

USERNAME_POSTFIXES: frozenset[int] = frozenset(
    {UserPostfix.USERNAME_PROOF_MESSAGE, UserPostfix.USER_DATA_MESSAGE}
)


def fid_fits_key(fid: int) -> bool:
    """Whether fid can be encoded in the FID_BYTES field of a user key."""
    return 0 <= fid < 1 << (8 * FID_BYTES)


def make_user_key(fid: int) -> bytes:
    """Build the key prefix under which all of a fid's records are stored.

    Raises:
        ValueError: If fid does not fit in FID_BYTES
    """
    if not fid_fits_key(fid):
        raise ValueError(f"fid out of range for {FID_BYTES}-byte key: {fid}")
    return bytes([RootPrefix.USER]) + fid.to_bytes(FID_BYTES, "big")


def make_message_key(fid: int, postfix: int, ts_hash: bytes) -> bytes:
    """Build a full message key. Used by stores that write messages."""
    if len(ts_hash) != TSHASH_LENGTH:
        raise ValueError(f"ts_hash must be {TSHASH_LENGTH} bytes, got {len(ts_hash)}")
    if not 0 <= postfix <= 0xFF:
        raise ValueError(f"postfix must fit in one byte, got {postfix}")
    return make_user_key(fid) + bytes([postfix]) + ts_hash


def is_message_postfix(postfix: int) -> bool:
    """Whether a record-type tag identifies a stored message (not an index or set)."""
    return 1 <= postfix <= UserPostfix.USER_MESSAGE_POSTFIX_MAX


def classify_key(key: bytes, accepted: Collection[int] | None = None) -> SkipReason | None:
    """Decide whether a key under a fid prefix is a candidate message key.

    Args:
        key: Full store key
        accepted: Restrict to these postfixes. None accepts every message postfix.

    Returns:
        None if the key should be decoded, otherwise why it is skipped.
    """
    if len(key) != MESSAGE_KEY_LENGTH:
        return SkipReason.KEY_LENGTH
    postfix = key[POSTFIX_OFFSET]
    if accepted is None:
        if not is_message_postfix(postfix):
            return SkipReason.RECORD_TYPE
    elif postfix not in accepted:
        return SkipReason.RECORD_TYPE
    return None


def to_farcaster_time(unix_ms: float) -> int:
    """Convert Unix milliseconds to Farcaster time (seconds since the Farcaster epoch).

    Raises:
        ValueError: If the time is before the epoch or does not fit in 32 bits
    """
    if unix_ms < FARCASTER_EPOCH_MS:
        raise ValueError(f"time must be after the Farcaster epoch, got {unix_ms}ms")
    # Half-seconds round up, never to even
    seconds = math.floor((unix_ms - FARCASTER_EPOCH_MS) / 1000 + 0.5)
    if seconds > MAX_FARCASTER_TIME:
        raise ValueError(f"time too far in the future: {seconds}s since Farcaster epoch")
    return seconds


def to_farcaster_time_or_zero(unix_ms: float) -> int:
    """Like to_farcaster_time, but 0 for unrepresentable times.

    Zero is the neutral watermark: it never causes a fid to be skipped.
    """
    try:
        return to_farcaster_time(unix_ms)
    except ValueError:
        return 0


def from_farcaster_time(farcaster_time: int) -> int:
    """Convert Farcaster time back to Unix milliseconds."""
    return farcaster_time * 1000 + FARCASTER_EPOCH_MS

"""All status codes, modes, and kinds used across subsystem boundaries."""

from enum import IntEnum, StrEnum


class RunStatus(StrEnum):
    """Final status of a job run as reported to the caller."""

    COMPLETED = "completed"
    SKIPPED = "skipped"  # Another run held the guard; nothing was done


class JobState(StrEnum):
    """Lifecycle state of the job runner.

    Transitions: IDLE -> RUNNING -> (IDLE | ABORTED). ABORTED behaves like
    IDLE for the purpose of accepting the next trigger.
    """

    IDLE = "idle"
    RUNNING = "running"
    ABORTED = "aborted"


class SchedulerStatus(StrEnum):
    """Whether a recurring trigger is registered."""

    STARTED = "started"
    STOPPED = "stopped"


class ValidationOutcome(StrEnum):
    """Result of re-validating one decoded message."""

    UNCHANGED = "unchanged"
    REVOKED = "revoked"
    ERROR = "error"


class SkipReason(StrEnum):
    """Why a key under a fid prefix never reached validation.

    None of these are job errors: the user keyspace is shared with index
    and set entries that are not messages.
    """

    KEY_LENGTH = "key_length"
    RECORD_TYPE = "record_type"
    DECODE = "decode"


class SweepKind(StrEnum):
    """Which per-fid sweep produced a result."""

    SIGNER_CHANGE = "signer_change"
    USERNAME = "username"


class RootPrefix(IntEnum):
    """First byte of every hub store key."""

    USER = 1


class UserPostfix(IntEnum):
    """Record-type tag stored after the fid in user keys.

    Values up to USER_MESSAGE_POSTFIX_MAX identify stored messages; larger
    values are secondary indexes and add/remove sets.
    """

    CAST_MESSAGE = 1
    LINK_MESSAGE = 2
    REACTION_MESSAGE = 3
    VERIFICATION_MESSAGE = 4
    USER_DATA_MESSAGE = 5
    USERNAME_PROOF_MESSAGE = 6
    LINK_COMPACT_STATE_MESSAGE = 7
    USER_MESSAGE_POSTFIX_MAX = 86

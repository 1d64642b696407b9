"""Checkpoint contract for crash recovery of the sweep job."""

from dataclasses import dataclass
from typing import Any, ClassVar, Self


@dataclass(frozen=True, slots=True)
class Checkpoint:
    """Durable progress marker for the sweep job.

    Attributes:
        last_job_timestamp: Staleness watermark in Farcaster time (seconds since
            the Farcaster epoch). Fids whose newest signer event is older than
            this skip the signer-change sweep.
        last_fid: Last fid reached by an in-progress run. 0 means there is no
            resume point and the next run starts from the first fid.
    """

    CURRENT_FORMAT_VERSION: ClassVar[int] = 1

    last_job_timestamp: int = 0
    last_fid: int = 0

    def __post_init__(self) -> None:
        if self.last_job_timestamp < 0:
            raise ValueError(f"last_job_timestamp must be >= 0, got {self.last_job_timestamp}")
        if self.last_fid < 0:
            raise ValueError(f"last_fid must be >= 0, got {self.last_fid}")

    @property
    def has_resume_point(self) -> bool:
        """Whether a previous run stopped part-way through the fid space."""
        return self.last_fid > 0

    def to_dict(self) -> dict[str, int]:
        return {"last_job_timestamp": self.last_job_timestamp, "last_fid": self.last_fid}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Build from a stored dict.

        Raises:
            KeyError: If a field is missing
            TypeError: If a field is not an int
            ValueError: If a field is negative
        """
        last_job_timestamp = data["last_job_timestamp"]
        last_fid = data["last_fid"]
        for name, value in (("last_job_timestamp", last_job_timestamp), ("last_fid", last_fid)):
            # bool is an int subclass; a stored true/false is corruption, not a number
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"{name} must be int, got {type(value).__name__}: {value!r}")
        return cls(last_job_timestamp=last_job_timestamp, last_fid=last_fid)


ZERO_CHECKPOINT = Checkpoint()

"""CheckpointStore for reading and writing the sweep's progress marker."""

import asyncio
import json
from datetime import UTC, datetime

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from hubsweep.contracts import ZERO_CHECKPOINT, Checkpoint, CheckpointReadError
from hubsweep.core.store.database import StoreDB
from hubsweep.core.store.schema import job_checkpoints_table

logger = structlog.get_logger(__name__)


class CheckpointStore:
    """Persists the single checkpoint row for one job.

    Reading never fails the job because of the row's contents: a missing,
    unparsable or foreign-version row reads as the zero checkpoint, which
    simply means "scan everything". Only an unreachable database raises.

    There is no transaction spanning a get/put pair. The job runner is the
    only writer, which is what keeps read-then-write safe.
    """

    def __init__(self, db: StoreDB, job_name: str) -> None:
        """Initialize with store database.

        Args:
            db: StoreDB instance for storage
            job_name: Key of the checkpoint row (one row per job)
        """
        self._db = db
        self._job_name = job_name

    @property
    def job_name(self) -> str:
        return self._job_name

    def get(self) -> Checkpoint:
        """Read the current checkpoint.

        Returns:
            Stored Checkpoint, or ZERO_CHECKPOINT if absent or unreadable

        Raises:
            CheckpointReadError: If the database itself cannot be queried
        """
        try:
            with self._db.engine.connect() as conn:
                row = conn.execute(
                    select(job_checkpoints_table).where(job_checkpoints_table.c.job_name == self._job_name)
                ).fetchone()
        except SQLAlchemyError as e:
            logger.error("error reading checkpoint", job_name=self._job_name, error=str(e))
            raise CheckpointReadError(f"Cannot read checkpoint for job '{self._job_name}': {e}") from e

        if row is None:
            return ZERO_CHECKPOINT

        if row.format_version != Checkpoint.CURRENT_FORMAT_VERSION:
            logger.warning(
                "ignoring checkpoint with incompatible format version",
                job_name=self._job_name,
                format_version=row.format_version,
                current_version=Checkpoint.CURRENT_FORMAT_VERSION,
            )
            return ZERO_CHECKPOINT

        try:
            data = json.loads(row.state_json)
            if not isinstance(data, dict):
                raise TypeError(f"checkpoint state must be an object, got {type(data).__name__}")
            return Checkpoint.from_dict(data)
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("ignoring corrupt checkpoint", job_name=self._job_name, error=str(e))
            return ZERO_CHECKPOINT

    def put(self, checkpoint: Checkpoint) -> None:
        """Persist a checkpoint, replacing the previous one.

        Returns only after the transaction has committed.
        """
        state_json = json.dumps(checkpoint.to_dict(), allow_nan=False)
        with self._db.connection() as conn:
            conn.execute(delete(job_checkpoints_table).where(job_checkpoints_table.c.job_name == self._job_name))
            conn.execute(
                job_checkpoints_table.insert().values(
                    job_name=self._job_name,
                    state_json=state_json,
                    format_version=Checkpoint.CURRENT_FORMAT_VERSION,
                    updated_at=datetime.now(UTC),
                )
            )
            # begin() auto-commits on clean exit, auto-rollbacks on exception

    def reset(self) -> bool:
        """Delete the stored checkpoint.

        Returns:
            True if a checkpoint existed
        """
        with self._db.connection() as conn:
            result = conn.execute(delete(job_checkpoints_table).where(job_checkpoints_table.c.job_name == self._job_name))
            return result.rowcount > 0

    async def aget(self) -> Checkpoint:
        """get() in a worker thread."""
        return await asyncio.to_thread(self.get)

    async def aput(self, checkpoint: Checkpoint) -> None:
        """put() in a worker thread."""
        await asyncio.to_thread(self.put, checkpoint)

"""Error contracts for the sweep.

Errors fall into the classes the runner distinguishes:

- Skip: ``MessageDecodeError`` (and malformed keys, which never raise).
  The record is ignored, nothing is logged as a job error.
- Recorded/continue: any exception raised by ``validate_or_revoke_message``,
  normally a ``HubError``. Logged with the message hash, counted as checked
  and as an error.
- Abort: ``ScanAbortedError`` and its subclasses. The whole run stops and the
  checkpoint stays at its last persisted value.

Per-entity timeouts are not errors at all; they surface as
``EntityScanResult.timed_out``.
"""


class HubError(Exception):
    """Error raised by a hub collaborator (engine, decoder, store).

    Attributes:
        err_code: Machine-readable error code, e.g. "unavailable.network_failure"
    """

    def __init__(self, err_code: str, message: str) -> None:
        self.err_code = err_code
        self.message = message
        super().__init__(f"{err_code}: {message}")


class MessageDecodeError(HubError):
    """Raised by a message decoder when the stored bytes are not a message."""

    def __init__(self, message: str) -> None:
        super().__init__("bad_request.parse_failure", message)


class ScanAbortedError(Exception):
    """Base class for failures that abort the entire run.

    Attributes:
        fid: Entity being processed when the failure occurred, if any
        err_code: Error code of the underlying HubError, if any
    """

    def __init__(self, message: str, *, fid: int | None = None, err_code: str | None = None) -> None:
        self.fid = fid
        self.err_code = err_code
        super().__init__(message)


class CheckpointReadError(ScanAbortedError):
    """The checkpoint store could not be read at all (not merely empty or corrupt)."""


class EntityPageError(ScanAbortedError):
    """A page of fids could not be fetched."""


class SignerEventsError(ScanAbortedError):
    """A page of on-chain signer events for a fid could not be fetched."""


class EntityOrderError(ScanAbortedError):
    """The entity source returned fids out of ascending order.

    Resuming by fid comparison is only correct when fids arrive in ascending
    order, so this is treated as fatal rather than silently mis-resuming.
    """


class CheckpointWriteError(ScanAbortedError):
    """A progress or terminal checkpoint could not be persisted."""

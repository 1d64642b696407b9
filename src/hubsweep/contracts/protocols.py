"""Protocols for the collaborators the sweep consumes.

The sweep owns none of these: the hub engine decides validity, the store
owns key layout on disk, the decoder owns the wire format. Implementations
are supplied through ``HubServices``.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from hubsweep.contracts.results import FidsPage, IterationResult, OnChainEventsPage


@runtime_checkable
class HubMessage(Protocol):
    """A decoded message. Only its hash is needed for logging."""

    hash: bytes


MessageDecoder = Callable[[bytes], HubMessage]
"""Decode stored bytes into a message.

Must raise MessageDecodeError, ValueError or one of ``HubServices.decode_errors``
for bytes that are not a message. Records that fail this way are skipped
silently.
"""

KeyCallback = Callable[[bytes, bytes], Awaitable[None]]


class HubEngine(Protocol):
    """The hub engine operations used by the sweep.

    Error handling:
        - get_fids / get_onchain_signers_by_fid raise HubError when the page
          cannot be fetched. The sweep aborts the run.
        - validate_or_revoke_message raises HubError on failure. The sweep
          records any exception it raises as a validation error and
          continues with the next message.
    """

    async def get_fids(self, page_token: bytes | None, page_size: int) -> FidsPage:
        """Return one page of fids in ascending order."""
        ...

    async def get_onchain_signers_by_fid(self, fid: int, page_token: bytes | None) -> OnChainEventsPage:
        """Return one page of on-chain signer events for a fid."""
        ...

    async def validate_or_revoke_message(self, message: HubMessage) -> bool:
        """Re-validate a stored message, revoking it if no longer valid.

        Returns:
            True if the message was revoked, False if it is still valid.
        """
        ...


class KeyValueStore(Protocol):
    """Ordered key-value store with time-boxed prefix iteration."""

    async def for_each_by_prefix(
        self,
        prefix: bytes,
        callback: KeyCallback,
        *,
        timeout_seconds: float,
    ) -> IterationResult:
        """Call callback for every key starting with prefix, in key order.

        Iteration stops early (timed_out=True) once timeout_seconds have
        elapsed. An exception raised by the callback for one key must not
        stop the iteration.
        """
        ...


class MetricsSink(Protocol):
    """Fire-and-forget metrics emission."""

    def timing(self, name: str, value_ms: float) -> None: ...

    def gauge(self, name: str, value: float) -> None: ...


@dataclass(frozen=True)
class HubServices:
    """Collaborators returned by the configured hub factory.

    store is optional; when None the sweep iterates the SQL store configured
    under ``database.url``.

    decode_errors lists the decoder's own "not a message" exception types
    when it does not wrap them in MessageDecodeError, for example
    ``(google.protobuf.message.DecodeError,)``.
    """

    engine: HubEngine
    decoder: MessageDecoder
    store: KeyValueStore | None = None
    decode_errors: tuple[type[Exception], ...] = ()

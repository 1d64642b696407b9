# src/hubsweep/engine/scanner.py
"""EntityScanner: re-validate the messages stored under one fid.

Two sweeps share one record loop:

- scan_changed: only when the fid's newest on-chain signer event is not
  older than the staleness watermark. Covers every message type.
- scan_usernames: every run, unconditionally. Covers username proofs and
  user data only, because an ENS name or fname can be invalidated by
  events the signer check never sees.

Per-record outcomes (see contracts.errors):
- wrong key length / non-message postfix / undecodable value: skipped
- validation raised: logged with the hash, counted as checked and as an error
- otherwise: checked, and revoked when the engine says so

A fid too large for the key layout cannot own any records; its sweeps log a
warning and return an empty result.
"""

from __future__ import annotations

from collections.abc import Collection

import structlog

from hubsweep.contracts import (
    EntityScanResult,
    HubEngine,
    HubError,
    HubMessage,
    KeyValueStore,
    MessageDecodeError,
    MessageDecoder,
    OnChainEvent,
    SignerEventsError,
    SkipReason,
    SweepKind,
    ValidationOutcome,
)
from hubsweep.core.keys import (
    USERNAME_POSTFIXES,
    classify_key,
    fid_fits_key,
    make_user_key,
    to_farcaster_time_or_zero,
)
from hubsweep.engine.spans import SpanFactory

logger = structlog.get_logger(__name__)

DEFAULT_ENTITY_TIMEOUT_SECONDS = 15 * 60


class _SweepTally:
    """Mutable counters for one sweep."""

    __slots__ = ("checked", "revoked", "errors")

    def __init__(self) -> None:
        self.checked = 0
        self.revoked = 0
        self.errors = 0


class EntityScanner:
    """Runs the per-fid sweeps against the hub store and engine."""

    def __init__(
        self,
        store: KeyValueStore,
        hub: HubEngine,
        decoder: MessageDecoder,
        *,
        timeout_seconds: float = DEFAULT_ENTITY_TIMEOUT_SECONDS,
        decode_errors: tuple[type[Exception], ...] = (),
        span_factory: SpanFactory | None = None,
    ) -> None:
        """Initialize scanner.

        Args:
            store: Store holding the fid's messages
            hub: Engine used for signer events and validation
            decoder: Turns stored bytes into messages
            timeout_seconds: Time box for iterating one fid's keys
            decode_errors: Extra exception types the decoder raises for bytes
                that are not a message, e.g. a protobuf DecodeError
            span_factory: Optional tracing
        """
        if timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {timeout_seconds}")
        self._store = store
        self._hub = hub
        self._decode = decoder
        self._decode_errors: tuple[type[Exception], ...] = (MessageDecodeError, ValueError, *decode_errors)
        self._timeout_seconds = timeout_seconds
        self._spans = span_factory or SpanFactory()

    async def latest_signer_event_time(self, fid: int) -> int:
        """Farcaster time of the fid's newest on-chain signer event, 0 if none.

        Follows every page of events.

        Raises:
            SignerEventsError: If any page cannot be fetched
        """
        events: list[OnChainEvent] = []
        page_token: bytes | None = None
        while True:
            try:
                page = await self._hub.get_onchain_signers_by_fid(fid, page_token)
            except HubError as e:
                logger.error("error getting on-chain signers", fid=fid, err_code=e.err_code, error=e.message)
                raise SignerEventsError(
                    f"Cannot fetch on-chain signers for fid {fid}: {e.message}",
                    fid=fid,
                    err_code=e.err_code,
                ) from e
            events.extend(page.events)
            if not page.next_page_token:
                break
            page_token = page.next_page_token

        latest_block_timestamp = max((event.block_timestamp for event in events), default=0)
        if latest_block_timestamp == 0:
            return 0
        return to_farcaster_time_or_zero(latest_block_timestamp * 1000)

    async def scan_changed(self, fid: int, last_job_timestamp: int) -> EntityScanResult:
        """Sweep all messages of a fid whose signers changed since the last run.

        Args:
            fid: Fid to scan
            last_job_timestamp: Staleness watermark (Farcaster time)

        Returns:
            Result with skipped_stale=True and zero counts when the fid's
            newest signer event predates the watermark

        Raises:
            SignerEventsError: If signer events cannot be fetched
        """
        latest_signer_event_ts = await self.latest_signer_event_time(fid)
        if latest_signer_event_ts < last_job_timestamp:
            return EntityScanResult.stale(fid)

        logger.info(
            "checking fid",
            fid=fid,
            last_job_timestamp=last_job_timestamp,
            latest_signer_event_ts=latest_signer_event_ts,
        )
        return await self._sweep(fid, SweepKind.SIGNER_CHANGE, accepted=None)

    async def scan_usernames(self, fid: int) -> EntityScanResult:
        """Sweep username proof and user data messages of a fid, every run."""
        return await self._sweep(fid, SweepKind.USERNAME, accepted=USERNAME_POSTFIXES)

    async def check_record(
        self,
        fid: int,
        key: bytes,
        value: bytes,
        accepted: Collection[int] | None = None,
    ) -> ValidationOutcome | SkipReason:
        """Filter, decode and validate a single stored record."""
        skip = classify_key(key, accepted)
        if skip is not None:
            return skip

        try:
            message = self._decode(value)
        except self._decode_errors:
            return SkipReason.DECODE

        return await self._validate(fid, message)

    async def _validate(self, fid: int, message: HubMessage) -> ValidationOutcome:
        try:
            revoked = await self._hub.validate_or_revoke_message(message)
        except HubError as e:
            logger.error(
                "error validating and revoking message",
                fid=fid,
                hash=message.hash,
                err_code=e.err_code,
                error=e.message,
            )
            return ValidationOutcome.ERROR
        except Exception as e:
            logger.error(
                "error validating and revoking message",
                fid=fid,
                hash=message.hash,
                error=str(e),
                error_type=type(e).__name__,
            )
            return ValidationOutcome.ERROR

        if revoked:
            logger.info("revoked message", fid=fid, hash=message.hash)
            return ValidationOutcome.REVOKED
        return ValidationOutcome.UNCHANGED

    async def _sweep(self, fid: int, kind: SweepKind, accepted: Collection[int] | None) -> EntityScanResult:
        if not fid_fits_key(fid):
            logger.warning("fid does not fit the user key layout, nothing to sweep", fid=fid, kind=str(kind))
            return EntityScanResult(fid=fid, kind=kind)

        tally = _SweepTally()

        async def on_key(key: bytes, value: bytes) -> None:
            outcome = await self.check_record(fid, key, value, accepted)
            if isinstance(outcome, SkipReason):
                return
            tally.checked += 1
            if outcome is ValidationOutcome.REVOKED:
                tally.revoked += 1
            elif outcome is ValidationOutcome.ERROR:
                tally.errors += 1

        with self._spans.sweep_span(kind) as span:
            iteration = await self._store.for_each_by_prefix(
                make_user_key(fid),
                on_key,
                timeout_seconds=self._timeout_seconds,
            )
            span.set_attribute("sweep.checked", tally.checked)
            span.set_attribute("sweep.timed_out", iteration.timed_out)

        if iteration.timed_out:
            logger.warning(
                "fid sweep timed out, keeping partial progress",
                fid=fid,
                kind=str(kind),
                checked=tally.checked,
                timeout_seconds=self._timeout_seconds,
            )

        return EntityScanResult(
            fid=fid,
            kind=kind,
            checked=tally.checked,
            revoked=tally.revoked,
            errors=tally.errors,
            timed_out=iteration.timed_out,
        )

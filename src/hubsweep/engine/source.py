# src/hubsweep/engine/source.py
"""EntitySource: ordered, paginated enumeration of every fid in the hub."""

from collections.abc import AsyncIterator

import structlog

from hubsweep.contracts import EntityOrderError, EntityPageError, FidsPage, HubEngine, HubError

logger = structlog.get_logger(__name__)


class EntitySource:
    """Pages through all fids from the start of the keyspace.

    Every run starts from the first page. Continuation tokens are only
    valid within one pass: fids added between a crash and a restart can
    shift page boundaries, so runs resume by comparing fids instead.
    """

    def __init__(self, hub: HubEngine, *, page_size: int = 100) -> None:
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")
        self._hub = hub
        self._page_size = page_size

    @property
    def page_size(self) -> int:
        return self._page_size

    async def fids_page(self, page_token: bytes | None = None) -> FidsPage:
        """Fetch one page of fids.

        Raises:
            EntityPageError: If the hub cannot return the page
        """
        try:
            page = await self._hub.get_fids(page_token, self._page_size)
        except HubError as e:
            logger.error("error getting fids page", err_code=e.err_code, error=e.message)
            raise EntityPageError(f"Cannot fetch fids page: {e.message}", err_code=e.err_code) from e
        # An empty token means the same as no token
        if not page.next_page_token:
            return FidsPage(fids=page.fids, next_page_token=None)
        return page

    async def iter_fids(self) -> AsyncIterator[int]:
        """Yield every fid in ascending order.

        Raises:
            EntityPageError: If any page cannot be fetched
            EntityOrderError: If fids are not strictly ascending
        """
        previous: int | None = None
        page_token: bytes | None = None
        while True:
            page = await self.fids_page(page_token)
            for fid in page.fids:
                if previous is not None and fid <= previous:
                    raise EntityOrderError(
                        f"Fids out of order: {fid} after {previous}",
                        fid=fid,
                    )
                previous = fid
                yield fid
            if page.next_page_token is None:
                return
            page_token = page.next_page_token

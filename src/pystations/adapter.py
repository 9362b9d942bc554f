"""Typed CRUD and live-subscription façade over the document store.

:class:`StationAdapter` is the only component that talks to the store.
It converts :class:`Station` to and from store documents, maps transport
failures onto the library's error taxonomy, and turns change notices into
full-snapshot subscriptions.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

from pystations._constants import (
    FIELD_ADDRESS,
    FIELD_CITY,
    FIELD_IS_ACTIVE,
    FIELD_NAME,
    FIELD_SERVICES,
    PREFIX_SENTINEL,
)
from pystations._mqtt import ChangeFeed, ChangeNotice
from pystations._transport import DocumentTransport
from pystations.config import StationsConfig
from pystations.exceptions import (
    NotFoundError,
    ReadError,
    StoreTimeoutError,
    StoreTransportError,
    WriteError,
)
from pystations.ingestion.stations import (
    decode_snapshot,
    decode_station,
    encode_create,
    encode_soft_delete,
    encode_update,
)
from pystations.models.query import QueryDescriptor
from pystations.models.station import DeletionPolicy, Station, StationDraft, StationPatch

_logger = logging.getLogger(__name__)

T = TypeVar("T")

SnapshotCallback = Callable[[list[Station]], None]
ErrorCallback = Callable[[Exception], None]


def default_descriptor(policy: DeletionPolicy) -> QueryDescriptor:
    """All stations, newest first, minus soft-deleted ones under the soft policy."""
    descriptor = QueryDescriptor()
    if policy is DeletionPolicy.SOFT:
        descriptor = descriptor.where(FIELD_IS_ACTIVE, "==", True)
    return descriptor


class Subscription:
    """A standing full-snapshot feed for one query descriptor.

    Calling the instance detaches the feed.  The call is idempotent and no
    callback fires after it returns.
    """

    def __init__(
        self,
        adapter: StationAdapter,
        descriptor: QueryDescriptor,
        feed: ChangeFeed | None,
        on_change: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> None:
        self._adapter = adapter
        self._descriptor = descriptor
        self._feed = feed
        self._on_change = on_change
        self._on_error = on_error
        self._loop = asyncio.get_running_loop()
        self._active = False
        self._task: asyncio.Task[None] | None = None
        self._dirty = False

    @property
    def active(self) -> bool:
        return self._active

    def _open(self) -> None:
        self._active = True
        if self._feed is not None:
            self._feed.start(self._on_notice, self._fail, self._on_subscribed)
        self._schedule_refresh()

    def _on_notice(self, notice: ChangeNotice) -> None:
        _logger.debug("Change notice op=%s id=%s", notice.op, notice.document_id)
        self._schedule_refresh()

    def _on_subscribed(self) -> None:
        # Notices published before the (re)subscription took effect are gone.
        _logger.debug("Change feed (re)subscribed, re-reading result set")
        self._schedule_refresh()

    def _schedule_refresh(self) -> None:
        if not self._active:
            return
        # Refreshes are serialized; a notice during a refresh queues one more.
        if self._task is not None and not self._task.done():
            self._dirty = True
            return
        self._task = self._loop.create_task(self._refresh())

    async def _refresh(self) -> None:
        while self._active:
            self._dirty = False
            try:
                snapshot = await self._adapter.query(self._descriptor)
            except ReadError as exc:
                self._fail(exc)
                return
            except Exception as exc:
                error = ReadError(f"Station query failed: {exc!r}")
                error.__cause__ = exc
                self._fail(error)
                return
            if not self._active:
                return
            self._on_change(snapshot)
            if not self._dirty:
                return

    def _fail(self, error: Exception) -> None:
        if not self._active:
            return
        _logger.warning("Station subscription terminated: %s", error)
        self._detach()
        self._on_error(error)

    def _detach(self) -> None:
        self._active = False
        feed, self._feed = self._feed, None
        if feed is not None:
            feed.stop()
        task, self._task = self._task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    def __call__(self) -> None:
        if self._active:
            _logger.debug("Station subscription closed")
        self._detach()


class StationAdapter:
    """Remote document adapter for the ``stations`` collection."""

    def __init__(
        self,
        config: StationsConfig,
        transport: DocumentTransport,
        *,
        feed_factory: Callable[[], ChangeFeed] | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._feed_factory = feed_factory

    @property
    def deletion_policy(self) -> DeletionPolicy:
        return self._config.deletion_policy

    @property
    def _collection(self) -> str:
        return self._config.collection

    async def _timed(self, operation: str, call: Awaitable[T]) -> T:
        timeout = self._config.request_timeout
        try:
            async with asyncio.timeout(timeout):
                return await call
        except TimeoutError as exc:
            raise StoreTimeoutError(operation, timeout) from exc

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    async def create(self, draft: StationDraft, *, created_by: str | None = None) -> str:
        """Write a new station; the store assigns the id and both timestamps."""
        document = encode_create(draft, created_by=created_by)
        try:
            stored = await self._timed("create", self._transport.create_document(self._collection, document))
        except StoreTransportError as exc:
            raise WriteError(
                f"Failed to create station: {exc}",
                status_code=exc.status_code,
                endpoint=exc.endpoint,
            ) from exc
        station_id = str(stored["id"])
        _logger.debug("Created station id=%s", station_id)
        return station_id

    async def get_by_id(self, station_id: str) -> Station:
        try:
            document = await self._timed("get", self._transport.get_document(self._collection, station_id))
        except StoreTransportError as exc:
            raise ReadError(
                f"Failed to read station {station_id!r}: {exc}",
                status_code=exc.status_code,
                endpoint=exc.endpoint,
            ) from exc
        if document is None:
            raise NotFoundError(station_id)
        if self.deletion_policy is DeletionPolicy.SOFT and document.get(FIELD_IS_ACTIVE) is False:
            raise NotFoundError(station_id)
        return decode_station(document)

    async def update(self, station_id: str, patch: StationPatch) -> None:
        """Merge *patch* into the station and refresh ``updatedAt``."""
        await self._write("update", station_id, encode_update(patch))

    async def delete(self, station_id: str) -> None:
        """Remove the station according to the configured deletion policy."""
        if self.deletion_policy is DeletionPolicy.SOFT:
            await self._write("delete", station_id, encode_soft_delete())
            return
        try:
            await self._timed("delete", self._transport.delete_document(self._collection, station_id))
        except StoreTransportError as exc:
            raise WriteError(
                f"Failed to delete station {station_id!r}: {exc}",
                status_code=exc.status_code,
                endpoint=exc.endpoint,
            ) from exc

    async def _patch_existing(self, station_id: str, document: dict[str, Any]) -> None:
        # Under the soft policy an inactive record does not exist for writers either.
        if self.deletion_policy is DeletionPolicy.SOFT:
            current = await self._transport.get_document(self._collection, station_id)
            if current is None or current.get(FIELD_IS_ACTIVE) is False:
                raise StoreTransportError(
                    f"Station {station_id!r} does not exist",
                    status_code=404,
                    endpoint=f"{self._collection}/{station_id}",
                )
        await self._transport.patch_document(self._collection, station_id, document)

    async def _write(self, operation: str, station_id: str, document: dict[str, Any]) -> None:
        try:
            await self._timed(operation, self._patch_existing(station_id, document))
        except StoreTransportError as exc:
            if exc.status_code == 404:
                message = f"Failed to {operation} station {station_id!r}: not found"
            else:
                message = f"Failed to {operation} station {station_id!r}: {exc}"
            raise WriteError(message, status_code=exc.status_code, endpoint=exc.endpoint) from exc

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def query(self, descriptor: QueryDescriptor) -> list[Station]:
        """Run *descriptor* once and decode the result set."""
        try:
            documents = await self._transport.run_query(self._collection, descriptor)
        except StoreTransportError as exc:
            raise ReadError(
                f"Station query failed: {exc}",
                status_code=exc.status_code,
                endpoint=exc.endpoint,
            ) from exc
        return decode_snapshot(documents)

    def _active_descriptor(self, **updates: object) -> QueryDescriptor:
        return default_descriptor(self.deletion_policy).model_copy(update=updates)

    async def search_prefix(self, term: str, limit: int | None = None) -> list[Station]:
        """Stations whose name or address starts with *term* (store-side range query).

        Comparison is whatever the store's ordering is, usually case-sensitive.
        """
        if limit is None:
            limit = self._config.search_limit
        term = term.strip()
        if not term or limit < 1:
            return []

        results: list[Station] = []
        seen: set[str] = set()
        for field in (FIELD_NAME, FIELD_ADDRESS):
            descriptor = (
                self._active_descriptor(order_by=field, descending=False, limit=limit)
                .where(field, ">=", term)
                .where(field, "<=", term + PREFIX_SENTINEL)
            )
            for station in await self.query(descriptor):
                if station.id not in seen:
                    seen.add(station.id)
                    results.append(station)
        return results[:limit]

    async def list_by_city(self, city: str) -> list[Station]:
        descriptor = self._active_descriptor(order_by=FIELD_NAME, descending=False).where(FIELD_CITY, "==", city)
        return await self.query(descriptor)

    async def list_page(
        self,
        page_size: int | None = None,
        *,
        start_after: str | None = None,
        city: str | None = None,
        services: Iterable[str] | None = None,
        is_active: bool | None = None,
    ) -> tuple[list[Station], str | None]:
        """One page of stations, newest first, continuing after a cursor.

        Parameters
        ----------
        page_size : int or None
            Stations per page; ``config.page_size`` when omitted.
        start_after : str or None
            Id of the last station of the previous page.
        city : str or None
            Exact city match.
        services : iterable of str or None
            Keep stations offering at least one of these services.  An
            empty iterable does not filter.
        is_active : bool or None
            Explicit ``isActive`` filter.  Replaces the deletion policy's
            default filter, so ``False`` lists soft-deleted stations.

        Returns
        -------
        tuple
            The page and the cursor for the next one (``None`` when the
            page came back short).
        """
        if page_size is None:
            page_size = self._config.page_size
        if page_size < 1:
            raise ValueError(f"page_size must be at least 1, got {page_size}")
        if is_active is None:
            descriptor = self._active_descriptor(limit=page_size, start_after=start_after)
        else:
            descriptor = QueryDescriptor(limit=page_size, start_after=start_after).where(
                FIELD_IS_ACTIVE, "==", is_active
            )
        if city is not None:
            descriptor = descriptor.where(FIELD_CITY, "==", city)
        wanted = tuple(services or ())
        if wanted:
            descriptor = descriptor.where(FIELD_SERVICES, "array-contains-any", wanted)
        stations = await self.query(descriptor)
        next_cursor = stations[-1].id if len(stations) == page_size else None
        return stations, next_cursor

    # ------------------------------------------------------------------
    # Live subscription
    # ------------------------------------------------------------------

    def subscribe(
        self,
        descriptor: QueryDescriptor,
        on_change: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> Subscription:
        """Open a live full-snapshot feed for *descriptor*.

        ``on_change`` receives the whole current result set after the initial
        read and after every change notice; ``on_error`` fires once on an
        unrecoverable failure, after which the feed is closed.  Call the
        returned handle to detach; it must be called to release the feed.
        Must be called from a running event loop.
        """
        feed = self._feed_factory() if self._feed_factory is not None else None
        subscription = Subscription(self, descriptor, feed, on_change, on_error)
        subscription._open()  # noqa: SLF001
        return subscription

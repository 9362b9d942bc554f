"""High-level async client for the station directory."""

from __future__ import annotations

import asyncio
import logging
import secrets
from collections.abc import Callable, Mapping
from typing import Any

import aiohttp

from pystations._mqtt import ChangeFeed, MqttChangeFeed
from pystations._transport import DocumentTransport, HttpDocumentTransport
from pystations.adapter import StationAdapter
from pystations.config import StationsConfig
from pystations.exceptions import StationsError
from pystations.models.station import StationDraft, StationPatch
from pystations.mutations import StationMutations
from pystations.notifications import Notifier
from pystations.selection import SelectionCoordinator
from pystations.session import IdentityProvider, OperatorSession
from pystations.state.cache import StationCache
from pystations.state.events import CacheChange, CacheState
from pystations.surfaces import MapSurface, TableSurface
from pystations.views import StationQueryEngine

_logger = logging.getLogger(__name__)


class StationDirectory:
    """Live station directory: cache, views, writes, selection and surfaces.

    Usage::

        async with StationDirectory(StationsConfig.from_env()) as directory:
            await directory.wait_synced()
            page = directory.views.page()

    Parameters
    ----------
    config : StationsConfig
        Client configuration.
    operator : OperatorSession or None
        Signed-in operator.  Its ID token authenticates store requests and
        its user id is stamped on created stations.
    transport : DocumentTransport or None
        Store transport.  Defaults to :class:`HttpDocumentTransport` over
        an aiohttp session.
    feed_factory : callable or None
        Builds one change feed per subscription.  Defaults to an MQTT feed
        when ``config.mqtt_enabled``.
    session : aiohttp.ClientSession or None
        Externally owned HTTP session; it is not closed on exit.
    """

    def __init__(
        self,
        config: StationsConfig,
        *,
        operator: OperatorSession | None = None,
        transport: DocumentTransport | None = None,
        feed_factory: Callable[[], ChangeFeed] | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._operator = operator
        self._transport = transport
        self._feed_factory = feed_factory
        self._external_session = session is not None
        self._http_session = session
        self._loop: asyncio.AbstractEventLoop | None = None
        self.notifier = Notifier()

        self._adapter: StationAdapter | None = None
        self._cache: StationCache | None = None
        self._views: StationQueryEngine | None = None
        self._mutations: StationMutations | None = None
        self._selection: SelectionCoordinator | None = None
        self._table: TableSurface | None = None
        self._map: MapSurface | None = None
        self._remove_cache_listener: Callable[[], None] | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> StationDirectory:
        self._loop = asyncio.get_running_loop()
        transport = self._transport
        if transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            transport = HttpDocumentTransport(self._config, self._http_session, id_token=self._id_token)
        feed_factory = self._feed_factory
        if feed_factory is None and self._config.mqtt_enabled:
            feed_factory = self._mqtt_feed

        self._adapter = StationAdapter(self._config, transport, feed_factory=feed_factory)
        self._mutations = StationMutations(self._adapter, operator=self._operator)
        self._open_cache()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._map is not None:
            self._map.close()
        if self._selection is not None:
            self._selection.close()
        self._close_cache()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._cache = self._views = self._selection = None
        self._table = self._map = self._mutations = None
        self._adapter = None
        self._loop = None

    def _mqtt_feed(self) -> ChangeFeed:
        assert self._loop is not None  # noqa: S101
        return MqttChangeFeed(self._config, loop=self._loop, client_id=f"pystations-{secrets.token_hex(4)}")

    def _id_token(self) -> str | None:
        return self._operator.id_token if self._operator is not None else None

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def _open_cache(self) -> None:
        cache = StationCache(self._require_adapter())
        self._cache = cache
        self._remove_cache_listener = cache.add_listener(self._on_cache_change)
        if self._views is None or self._selection is None:
            self._views = StationQueryEngine(cache, search_limit=self._config.search_limit)
            self._selection = SelectionCoordinator(cache)
            self._table = TableSurface(self._views, self._selection, page_size=self._config.page_size)
            self._map = MapSurface(
                self._views, self._selection, self._config, notifier=self.notifier, table=self._table
            )
        else:
            self._views.rebind(cache)
            self._selection.rebind(cache)

    def _close_cache(self) -> None:
        if self._remove_cache_listener is not None:
            self._remove_cache_listener()
            self._remove_cache_listener = None
        if self._cache is not None:
            self._cache.close()

    def _on_cache_change(self, change: CacheChange) -> None:
        if change.state is CacheState.ERRORED:
            self.notifier.error("Live updates stopped", str(change.error))

    def reconnect(self) -> StationCache:
        """Replace the cache with a fresh one, keeping the selected id.

        A cache that reached ``ERRORED`` never retries on its own; this is
        the retry.
        """
        self._close_cache()
        self._open_cache()
        _logger.info("Station directory reconnected")
        return self.cache

    async def wait_synced(self, timeout: float | None = None) -> None:
        await self.cache.wait_synced(timeout)

    # ------------------------------------------------------------------
    # Component access
    # ------------------------------------------------------------------

    def _require_adapter(self) -> StationAdapter:
        if self._adapter is None:
            raise StationsError("Directory not opened. Use 'async with StationDirectory(...) as directory:'")
        return self._adapter

    @property
    def config(self) -> StationsConfig:
        return self._config

    @property
    def adapter(self) -> StationAdapter:
        return self._require_adapter()

    @property
    def cache(self) -> StationCache:
        self._require_adapter()
        assert self._cache is not None  # noqa: S101
        return self._cache

    @property
    def views(self) -> StationQueryEngine:
        self._require_adapter()
        assert self._views is not None  # noqa: S101
        return self._views

    @property
    def mutations(self) -> StationMutations:
        self._require_adapter()
        assert self._mutations is not None  # noqa: S101
        return self._mutations

    @property
    def selection(self) -> SelectionCoordinator:
        self._require_adapter()
        assert self._selection is not None  # noqa: S101
        return self._selection

    @property
    def table(self) -> TableSurface:
        self._require_adapter()
        assert self._table is not None  # noqa: S101
        return self._table

    @property
    def map(self) -> MapSurface:
        self._require_adapter()
        assert self._map is not None  # noqa: S101
        return self._map

    # ------------------------------------------------------------------
    # Operator session
    # ------------------------------------------------------------------

    @property
    def operator(self) -> OperatorSession | None:
        return self._operator

    @operator.setter
    def operator(self, operator: OperatorSession | None) -> None:
        self._operator = operator
        if self._mutations is not None:
            self._mutations.operator = operator

    async def sign_in(self, provider: IdentityProvider, email: str, password: str) -> OperatorSession:
        """Authenticate through *provider* and attach the resulting session.

        Raises
        ------
        AuthError
            The provider rejected the credentials.
        """
        operator = await provider.sign_in(email, password)
        self.operator = operator
        _logger.info("Operator signed in user_id=%s", operator.user_id)
        return operator

    async def sign_out(self, provider: IdentityProvider) -> None:
        operator, self.operator = self._operator, None
        if operator is not None:
            await provider.sign_out(operator)

    # ------------------------------------------------------------------
    # Writes with notices
    # ------------------------------------------------------------------

    async def create_station(self, data: StationDraft | Mapping[str, Any]) -> str:
        try:
            station_id = await self.mutations.create(data)
        except StationsError as exc:
            self.notifier.error("Could not create station", str(exc))
            raise
        self.notifier.success("Station created")
        return station_id

    async def update_station(self, station_id: str, data: StationPatch | Mapping[str, Any]) -> None:
        try:
            await self.mutations.update(station_id, data)
        except StationsError as exc:
            self.notifier.error("Could not update station", str(exc))
            raise
        self.notifier.success("Station updated")

    async def delete_station(self, station_id: str) -> None:
        try:
            await self.mutations.delete(station_id)
        except StationsError as exc:
            self.notifier.error("Could not delete station", str(exc))
            raise
        self.notifier.success("Station deleted")

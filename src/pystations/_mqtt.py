"""Change-notification feed over MQTT.

The document store publishes one small JSON message per committed write
on ``<prefix>/<collection>``::

    {"collection": "stations", "documentId": "abc", "op": "update"}

Notices carry no document bodies.  Subscribers re-read their full result
set when a notice arrives.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from typing import Any, Protocol, cast

import paho.mqtt.client as mqtt
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from pystations.config import StationsConfig
from pystations.exceptions import ReadError, StationsError

# MQTT v5 reason codes that mean the broker will never accept us as-is.
_FATAL_CONNECT_REASONS = frozenset({"Bad user name or password", "Not authorized", "Banned"})


class ChangeNotice(BaseModel):
    """A decoded change notification."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    collection: str
    document_id: str | None = Field(default=None, validation_alias=AliasChoices("documentId", "document_id", "id"))
    op: str = "update"


def parse_change_notice(payload: bytes) -> ChangeNotice:
    """Decode an MQTT payload into a :class:`ChangeNotice`."""
    try:
        parsed = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise StationsError(f"Change notice is not JSON: {payload[:64]!r}") from exc
    if not isinstance(parsed, dict):
        raise StationsError("Change notice is not a JSON object")
    return ChangeNotice.model_validate(parsed)


class ChangeFeed(Protocol):
    """A standing source of change notices for one collection.

    Implementations deliver callbacks on the event loop, never on a
    foreign thread.  ``stop`` is idempotent.  ``on_subscribed`` fires after
    every successful (re)subscription; notices published while the feed
    was not subscribed are lost, so listeners re-read on it.
    """

    def start(
        self,
        on_notice: Callable[[ChangeNotice], None],
        on_error: Callable[[Exception], None],
        on_subscribed: Callable[[], None] | None = None,
    ) -> None: ...

    def stop(self) -> None: ...


class MqttChangeFeed:
    """Threaded paho-mqtt runtime that posts notices onto an asyncio loop."""

    def __init__(
        self,
        config: StationsConfig,
        *,
        loop: asyncio.AbstractEventLoop,
        client_id: str = "",
        credentials: tuple[str, str] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._loop = loop
        self._client_id = client_id
        self._credentials = credentials
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def start(
        self,
        on_notice: Callable[[ChangeNotice], None],
        on_error: Callable[[Exception], None],
        on_subscribed: Callable[[], None] | None = None,
    ) -> None:
        """Connect and subscribe to the collection's change topic.

        paho reconnects on its own after a network drop; every reconnect
        resubscribes and fires ``on_subscribed`` once the broker acks.
        """
        self.stop()
        topic = self._config.mqtt_topic
        collection = self._config.collection
        self._logger.debug(
            "Change feed start host=%s port=%s topic=%s",
            self._config.mqtt_host,
            self._config.mqtt_port,
            topic,
        )

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=self._client_id,
            protocol=mqtt.MQTTv5,
        )
        client.enable_logger(self._logger)
        if self._credentials is not None:
            client.username_pw_set(*self._credentials)
        if self._config.mqtt_tls:
            client.tls_set()

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.is_failure:
                self._logger.warning("Change feed connect failed: %s", reason_code)
                if str(reason_code) in _FATAL_CONNECT_REASONS:
                    error = ReadError(f"Change feed rejected connection: {reason_code}", endpoint=topic)
                    self._loop.call_soon_threadsafe(self._fail, on_error, error)
                return
            self._logger.debug("Change feed connected, subscribing topic=%s", topic)
            c.subscribe(topic, qos=1)

        def on_subscribe(
            _c: mqtt.Client,
            _userdata: Any,
            _mid: int,
            reason_codes: list[Any],
            _properties: Any,
        ) -> None:
            failed = [code for code in reason_codes if code.is_failure]
            if failed:
                error = ReadError(f"Change feed subscription refused: {failed[0]}", endpoint=topic)
                self._loop.call_soon_threadsafe(self._fail, on_error, error)
                return
            self._logger.debug("Change feed subscribed topic=%s", topic)
            if on_subscribed is not None:
                self._loop.call_soon_threadsafe(self._resubscribed, on_subscribed)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            try:
                notice = parse_change_notice(msg.payload)
            except Exception:
                self._logger.debug("Change notice parse failure topic=%s", msg.topic, exc_info=True)
                return
            if notice.collection != collection:
                return
            self._loop.call_soon_threadsafe(self._deliver, on_notice, notice)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            # paho reconnects on its own; only log.
            if self._running:
                self._logger.debug("Change feed disconnected: %s", reason_code)

        client.on_connect = on_connect
        client.on_subscribe = on_subscribe
        client.on_message = on_message
        client.on_disconnect = on_disconnect

        client.connect_async(self._config.mqtt_host, self._config.mqtt_port, keepalive=self._config.mqtt_keepalive)
        client.loop_start()

        self._client = client
        self._running = True

    def _deliver(self, on_notice: Callable[[ChangeNotice], None], notice: ChangeNotice) -> None:
        if self._running:
            on_notice(notice)

    def _resubscribed(self, on_subscribed: Callable[[], None]) -> None:
        if self._running:
            on_subscribed()

    def _fail(self, on_error: Callable[[Exception], None], error: Exception) -> None:
        if not self._running:
            return
        self.stop()
        on_error(error)

    def stop(self) -> None:
        """Stop and disconnect the MQTT client if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False

        if client is None:
            return
        try:
            if was_running:
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("Change feed stopped")

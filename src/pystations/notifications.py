"""User-facing notices for mutation outcomes and feed failures."""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict

_logger = logging.getLogger(__name__)


class NoticeLevel(enum.StrEnum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


_LOG_LEVELS = {
    NoticeLevel.SUCCESS: logging.INFO,
    NoticeLevel.INFO: logging.INFO,
    NoticeLevel.WARNING: logging.WARNING,
    NoticeLevel.ERROR: logging.ERROR,
}


class Notice(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: NoticeLevel
    title: str
    message: str = ""


NoticeListener = Callable[[Notice], None]


class Notifier:
    """Fan-out of :class:`Notice` objects to registered listeners.

    Every notice is also logged, so a headless client still reports
    write failures.
    """

    def __init__(self) -> None:
        self._listeners: list[NoticeListener] = []

    def add_listener(self, listener: NoticeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def emit(self, level: NoticeLevel, title: str, message: str = "") -> Notice:
        notice = Notice(level=level, title=title, message=message)
        _logger.log(_LOG_LEVELS[level], "%s: %s", title, message)
        for listener in list(self._listeners):
            try:
                listener(notice)
            except Exception:
                _logger.exception("Notice listener failed")
        return notice

    def success(self, title: str, message: str = "") -> Notice:
        return self.emit(NoticeLevel.SUCCESS, title, message)

    def info(self, title: str, message: str = "") -> Notice:
        return self.emit(NoticeLevel.INFO, title, message)

    def warning(self, title: str, message: str = "") -> Notice:
        return self.emit(NoticeLevel.WARNING, title, message)

    def error(self, title: str, message: str = "") -> Notice:
        return self.emit(NoticeLevel.ERROR, title, message)

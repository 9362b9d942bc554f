"""Deterministic snapshot normalization.

This module contains *no* document parsing.  The ingestion boundary
produces decoded stations; this module only decides which of them the
cache keeps and in which order.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from pystations.models.station import DeletionPolicy, Station


def normalize_snapshot(stations: Iterable[Station], policy: DeletionPolicy) -> tuple[Station, ...]:
    """One station per id, newest ``created_at`` first.

    A later occurrence of an id replaces an earlier one.  Under the soft
    policy inactive records are dropped even if the store returned them.
    """
    by_id: dict[str, Station] = {}
    for station in stations:
        if policy is DeletionPolicy.SOFT and not station.is_active:
            by_id.pop(station.id, None)
            continue
        by_id[station.id] = station
    # Stable: equal timestamps keep store order.
    return tuple(sorted(by_id.values(), key=lambda s: s.created_at, reverse=True))


def snapshot_changed(current: Sequence[Station], incoming: Sequence[Station]) -> bool:
    """Structural comparison used to skip redundant listener notifications."""
    return tuple(current) != tuple(incoming)

"""Validated create/update/delete entry points.

Writes never touch the live cache.  The cache learns about every
committed write through its own subscription, so there is exactly one
path by which station state changes.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from pystations.adapter import StationAdapter
from pystations.exceptions import ValidationError
from pystations.models.station import StationDraft, StationPatch
from pystations.session import OperatorSession

_logger = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT", bound=BaseModel)


def _validation_error(kind: str, exc: PydanticValidationError) -> ValidationError:
    fields: list[str] = []
    for error in exc.errors():
        loc = error["loc"]
        name = str(loc[0]) if loc else "<payload>"
        if name not in fields:
            fields.append(name)
    return ValidationError(f"Invalid {kind}: {', '.join(fields)}", fields=fields)


def _validate(model: type[PayloadT], data: PayloadT | Mapping[str, Any], kind: str) -> PayloadT:
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise _validation_error(kind, exc) from exc


class StationMutations:
    """Write façade: local validation, then one adapter call.

    Parameters
    ----------
    adapter : StationAdapter
        Remote document adapter performing the writes.
    operator : OperatorSession or None
        Signed-in operator; its ``user_id`` is recorded as ``createdBy``.
    """

    def __init__(self, adapter: StationAdapter, *, operator: OperatorSession | None = None) -> None:
        self._adapter = adapter
        self.operator = operator

    async def create(self, data: StationDraft | Mapping[str, Any]) -> str:
        """Validate and create a station; returns the store-assigned id.

        Raises
        ------
        ValidationError
            A required field is missing or a value is out of range.
            Nothing is sent to the store.
        WriteError
            The store rejected the write or could not be reached.
        """
        draft = _validate(StationDraft, data, "station")
        created_by = self.operator.user_id if self.operator is not None else None
        station_id = await self._adapter.create(draft, created_by=created_by)
        _logger.info("Station created id=%s", station_id)
        return station_id

    async def update(self, station_id: str, data: StationPatch | Mapping[str, Any]) -> None:
        """Validate the supplied fields and merge them into the station."""
        if not station_id:
            raise ValidationError("Station id is required", fields=["id"])
        patch = _validate(StationPatch, data, "station update")
        await self._adapter.update(station_id, patch)
        _logger.info("Station updated id=%s", station_id)

    async def delete(self, station_id: str) -> None:
        if not station_id:
            raise ValidationError("Station id is required", fields=["id"])
        await self._adapter.delete(station_id)
        _logger.info("Station deleted id=%s policy=%s", station_id, self._adapter.deletion_policy)

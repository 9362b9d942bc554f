"""Station document codec.

Converts between raw store documents and :class:`Station`.  Undecoded
documents never leave this module: a record that cannot be decoded
raises :class:`DecodeError` here and is dropped by
:func:`decode_snapshot`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from pystations._constants import (
    FIELD_CREATED_AT,
    FIELD_CREATED_BY,
    FIELD_IS_ACTIVE,
    FIELD_UPDATED_AT,
    SERVER_TIMESTAMP,
)
from pystations._redact import redact_for_log
from pystations.exceptions import DecodeError
from pystations.ingestion.normalize import safe_bool, safe_float, safe_str, safe_tags
from pystations.models.station import Station, StationDraft, StationPatch

_logger = logging.getLogger(__name__)


def _error_fields(exc: PydanticValidationError) -> list[str]:
    fields: list[str] = []
    for error in exc.errors():
        name = ".".join(str(part) for part in error["loc"]) or "<document>"
        if name not in fields:
            fields.append(name)
    return fields


def decode_station(document: Mapping[str, Any], *, now: datetime | None = None) -> Station:
    """Decode one store document.

    Missing optional attributes get their defaults and missing
    ``createdAt`` / ``updatedAt`` default to *now*.

    Raises
    ------
    DecodeError
        The document lacks an id or a required field is missing or invalid.
    """
    if not isinstance(document, Mapping):
        raise DecodeError(f"document is not an object: {type(document).__name__}")

    doc_id = safe_str(document.get("id"))
    if doc_id is None:
        raise DecodeError("document has no id")

    if now is None:
        now = datetime.now(UTC)

    working = dict(document)
    working["raw"] = dict(document)
    working["id"] = doc_id
    if "price" in working:
        working["price"] = safe_float(working["price"])
    working[FIELD_IS_ACTIVE] = safe_bool(working.get(FIELD_IS_ACTIVE), True)
    working["services"] = safe_tags(working.get("services"))
    for key in (FIELD_CREATED_AT, FIELD_UPDATED_AT):
        if working.get(key) in (None, ""):
            working[key] = now

    try:
        return Station.model_validate(working)
    except (PydanticValidationError, ValueError, OverflowError) as exc:
        if isinstance(exc, PydanticValidationError):
            detail = ", ".join(_error_fields(exc))
        else:
            detail = str(exc)
        raise DecodeError(f"document {doc_id!r} is invalid: {detail}", document_id=doc_id) from exc


def decode_snapshot(documents: Iterable[Mapping[str, Any]]) -> list[Station]:
    """Decode a full result set, dropping records that fail to decode."""
    now = datetime.now(UTC)
    stations: list[Station] = []
    for document in documents:
        try:
            stations.append(decode_station(document, now=now))
        except DecodeError as exc:
            _logger.warning("Dropping station document: %s", exc)
            _logger.debug("Dropped document body: %s", redact_for_log(document))
    return stations


def encode_create(draft: StationDraft, *, created_by: str | None = None) -> dict[str, Any]:
    """Document for a new station; the store fills in both timestamps."""
    document = draft.to_document()
    document[FIELD_IS_ACTIVE] = True
    document[FIELD_CREATED_AT] = SERVER_TIMESTAMP
    document[FIELD_UPDATED_AT] = SERVER_TIMESTAMP
    if created_by:
        document[FIELD_CREATED_BY] = created_by
    return document


def encode_update(patch: StationPatch) -> dict[str, Any]:
    document = patch.to_document()
    document[FIELD_UPDATED_AT] = SERVER_TIMESTAMP
    return document


def encode_soft_delete() -> dict[str, Any]:
    return {FIELD_IS_ACTIVE: False, FIELD_UPDATED_AT: SERVER_TIMESTAMP}

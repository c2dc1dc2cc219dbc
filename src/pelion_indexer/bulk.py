"""
Bulk record builder.

Turns decoded callback batches into Elasticsearch bulk-API payloads. The
payload is newline-delimited JSON: one ``index`` action line followed by one
document line per record, each terminated by ``\\n``.

    notifications          -> notifications {time, endpoint, path, value}
    registrations          -> devices       {time, endpoint, original-ep, ept, resources}
                              registrations {time, endpoint, value: 1}
    registrations-expired  -> registrations {time, endpoint, value: 0}

The builder never touches the network.
"""

import base64
import binascii
import json
import re
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from pelion_indexer import constants as CONSTANTS
from pelion_indexer.events import (
    CallbackBatch,
    Expiration,
    ExpirationBatch,
    Notification,
    NotificationBatch,
    Registration,
    RegistrationBatch,
)

_NON_BASE64 = re.compile(r"[^A-Za-z0-9+/]")


def now_millis() -> int:
    """Wall clock in epoch milliseconds."""
    return int(time.time() * 1000)


def to_json_line(value: Any) -> str:
    """Compact single-line JSON, non-ASCII kept as-is."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def decode_payload(payload: Optional[str]) -> Optional[str]:
    """
    Decode a base64 resource value to text.

    Lenient like the device service's own clients: URL-safe characters are
    accepted, other characters outside the alphabet are ignored and missing
    padding is restored. Bytes that are not valid in PAYLOAD_ENCODING are
    replaced with U+FFFD.

    Args:
        payload: Base64 text, or None when the notification had no payload

    Returns:
        Decoded text, or None when there was no payload
    """
    if payload is None:
        return None

    cleaned = _NON_BASE64.sub("", str(payload).replace("-", "+").replace("_", "/"))
    # A single trailing sextet cannot form a byte
    if len(cleaned) % 4 == 1:
        cleaned = cleaned[:-1]
    cleaned += "=" * (-len(cleaned) % 4)

    try:
        raw = base64.b64decode(cleaned)
    except binascii.Error:
        raw = b""
    return raw.decode(CONSTANTS.PAYLOAD_ENCODING, errors="replace")


# ==========================================
# Bulk Payload Types
# ==========================================

@dataclass(frozen=True)
class BulkIndexRecord:
    """A single document to index, with its target index."""
    index: str
    document: dict

    def action(self) -> dict:
        return {"index": {"_index": self.index, "_type": CONSTANTS.DOCUMENT_TYPE}}


@dataclass
class BulkRequest:
    """Ordered records of one bulk call."""
    records: list = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.records)

    @property
    def line_count(self) -> int:
        return 2 * len(self.records)

    def extend(self, records: Iterable[BulkIndexRecord]) -> None:
        self.records.extend(records)

    def to_ndjson(self) -> str:
        lines = []
        for record in self.records:
            lines.append(to_json_line(record.action()) + "\n")
            lines.append(to_json_line(record.document) + "\n")
        return "".join(lines)


# ==========================================
# Builder
# ==========================================

class BulkRecordBuilder:
    """
    Pure transformation from callback batches to bulk records.

    Args:
        clock: Returns the current time in epoch milliseconds. Each record's
            ``time`` is taken when that record is built.
    """

    def __init__(self, clock: Callable[[], int] = now_millis):
        self._clock = clock

    def notification_records(self, items: Iterable[Notification]) -> list:
        records = []
        for item in items:
            records.append(BulkIndexRecord(CONSTANTS.INDEX_NOTIFICATIONS, {
                "time": self._clock(),
                "endpoint": item.endpoint,
                "path": item.resource_path,
                "value": decode_payload(item.payload_base64),
            }))
        return records

    def registration_records(self, items: Iterable[Registration]) -> list:
        records = []
        for item in items:
            # Devices index keeps resources as a JSON string to stay flat
            resources = None if item.resources is None else to_json_line(item.resources)
            records.append(BulkIndexRecord(CONSTANTS.INDEX_DEVICES, {
                "time": self._clock(),
                "endpoint": item.endpoint,
                "original-ep": item.original_endpoint,
                "ept": item.endpoint_type,
                "resources": resources,
            }))
            records.append(BulkIndexRecord(CONSTANTS.INDEX_REGISTRATIONS, {
                "time": self._clock(),
                "endpoint": item.endpoint,
                "value": CONSTANTS.REGISTERED,
            }))
        return records

    def expiration_records(self, items: Iterable[Expiration]) -> list:
        return [
            BulkIndexRecord(CONSTANTS.INDEX_REGISTRATIONS, {
                "time": self._clock(),
                "endpoint": item.endpoint,
                "value": CONSTANTS.EXPIRED,
            })
            for item in items
        ]

    def build(self, batch: CallbackBatch) -> BulkRequest:
        """Bulk request for one batch; unknown callbacks yield an empty request."""
        request = BulkRequest()
        if isinstance(batch, NotificationBatch):
            request.extend(self.notification_records(batch.items))
        elif isinstance(batch, RegistrationBatch):
            request.extend(self.registration_records(batch.items))
        elif isinstance(batch, ExpirationBatch):
            request.extend(self.expiration_records(batch.items))
        return request

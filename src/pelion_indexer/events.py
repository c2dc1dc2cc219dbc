"""
Typed view of Pelion webhook callback bodies.

A callback body carries exactly one kind of batch. decode_callback() tries
the known shapes in priority order and returns the first match, or an
UnknownCallback when no recognized key is present:

    1. notifications          -> NotificationBatch
    2. registrations          -> RegistrationBatch(source_key="registrations")
    3. reg-updates            -> RegistrationBatch(source_key="reg-updates")
    4. registrations-expired  -> ExpirationBatch
    5. anything else          -> UnknownCallback

Items are decoded leniently: absent fields become None so that one bad
item never prevents the rest of the batch from being indexed.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional, Union

from pelion_indexer import constants as CONSTANTS


# ==========================================
# Callback Items
# ==========================================

@dataclass(frozen=True)
class Notification:
    """Resource value change reported for a device."""
    endpoint: Optional[str]
    resource_path: Optional[str]
    payload_base64: Optional[str]

    @classmethod
    def from_item(cls, item: Any) -> "Notification":
        item = item if isinstance(item, dict) else {}
        return cls(
            endpoint=item.get("ep"),
            resource_path=item.get("path"),
            payload_base64=item.get("payload"),
        )


@dataclass(frozen=True)
class Registration:
    """Snapshot of a newly registered or updated device."""
    endpoint: Optional[str]
    original_endpoint: Optional[str]
    endpoint_type: Optional[str]
    resources: Any = None

    @classmethod
    def from_item(cls, item: Any) -> "Registration":
        item = item if isinstance(item, dict) else {}
        return cls(
            endpoint=item.get("ep"),
            original_endpoint=item.get("original-ep"),
            endpoint_type=item.get("ept"),
            resources=item.get("resources"),
        )


@dataclass(frozen=True)
class Expiration:
    """Device whose registration expired; the callback only sends its name."""
    endpoint: Any

    @classmethod
    def from_item(cls, item: Any) -> "Expiration":
        return cls(endpoint=item)


# ==========================================
# Callback Batches
# ==========================================

@dataclass(frozen=True)
class NotificationBatch:
    items: list = field(default_factory=list)
    kind: ClassVar[str] = CONSTANTS.KEY_NOTIFICATIONS


@dataclass(frozen=True)
class RegistrationBatch:
    items: list = field(default_factory=list)
    source_key: str = CONSTANTS.KEY_REGISTRATIONS

    @property
    def kind(self) -> str:
        return self.source_key


@dataclass(frozen=True)
class ExpirationBatch:
    items: list = field(default_factory=list)
    kind: ClassVar[str] = CONSTANTS.KEY_EXPIRATIONS


@dataclass(frozen=True)
class UnknownCallback:
    keys: list = field(default_factory=list)
    kind: ClassVar[str] = "unknown"


CallbackBatch = Union[NotificationBatch, RegistrationBatch, ExpirationBatch, UnknownCallback]


def _as_list(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    # A single object where a list was expected is treated as a one-item batch
    return [value]


def decode_callback(body: Any) -> CallbackBatch:
    """
    Decode a parsed callback body into exactly one batch variant.

    Pure function of key presence: the same body always yields the same
    variant. When both ``registrations`` and ``reg-updates`` are present,
    only ``registrations`` is used.

    Args:
        body: JSON-decoded webhook body

    Returns:
        The batch matching the highest-priority key, or UnknownCallback
    """
    if not isinstance(body, dict):
        return UnknownCallback()

    if CONSTANTS.KEY_NOTIFICATIONS in body:
        items = _as_list(body[CONSTANTS.KEY_NOTIFICATIONS])
        return NotificationBatch(items=[Notification.from_item(i) for i in items])

    for key in (CONSTANTS.KEY_REGISTRATIONS, CONSTANTS.KEY_REG_UPDATES):
        if key in body:
            items = _as_list(body[key])
            return RegistrationBatch(
                items=[Registration.from_item(i) for i in items],
                source_key=key,
            )

    if CONSTANTS.KEY_EXPIRATIONS in body:
        items = _as_list(body[CONSTANTS.KEY_EXPIRATIONS])
        return ExpirationBatch(items=[Expiration.from_item(i) for i in items])

    return UnknownCallback(keys=sorted(str(k) for k in body.keys()))

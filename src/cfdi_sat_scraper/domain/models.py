"""
Domain models — immutable value objects for queries and search results.

  Query         what to search on the portal (direction, period, filters)
  Metadata      one result row, keyed by the lower-cased document UUID
  MetadataList  ordered collection of Metadata, unique by UUID

These objects carry no I/O; they are built by the query resolver and
consumed by callers.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum, unique
from types import MappingProxyType
from typing import Any

from cfdi_sat_scraper.domain.errors import InputError


@unique
class DownloadType(Enum):
    """Direction of the search: documents issued by or received by the identity."""

    ISSUED = "emitidos"
    RECEIVED = "recibidos"

    @property
    def is_issued(self) -> bool:
        return self is DownloadType.ISSUED


@unique
class StateVoucher(Enum):
    """Portal values of the "Estado del Comprobante" select."""

    ALL = "-1"
    ACTIVE = "1"
    CANCELLED = "0"


@unique
class SessionState(Enum):
    """Login state of a session manager."""

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


COMPLEMENT_ALL = "-1"


@dataclass(frozen=True, slots=True)
class Query:
    """
    Search parameters for one run of the portal search protocol.

    When `uuid` is set the portal searches by folio fiscal and the period,
    state and complement filters are not sent.
    """

    start: datetime
    end: datetime
    download_type: DownloadType = DownloadType.ISSUED
    state_voucher: StateVoucher = StateVoucher.ALL
    complement: str = COMPLEMENT_ALL
    rfc: str = ""
    uuid: str = ""

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise InputError(
                f"The start date {self.start.isoformat()} is greater than "
                f"the end date {self.end.isoformat()}"
            )

    @classmethod
    def by_uuid(cls, uuid: str, download_type: DownloadType = DownloadType.ISSUED) -> Query:
        if not uuid:
            raise InputError.empty_input("UUID")
        now = datetime.now()
        return cls(start=now, end=now, download_type=download_type, uuid=uuid.lower())

    @property
    def has_uuid(self) -> bool:
        return self.uuid != ""

    def with_period(self, start: datetime, end: datetime) -> Query:
        return replace(self, start=start, end=end)

    def with_download_type(self, download_type: DownloadType) -> Query:
        return replace(self, download_type=download_type)

    def with_state_voucher(self, state_voucher: StateVoucher) -> Query:
        return replace(self, state_voucher=state_voucher)

    def with_uuid(self, uuid: str) -> Query:
        return replace(self, uuid=uuid.lower())


class Metadata:
    """
    One search result row.

    The UUID is lower-cased and stored under the "uuid" key; a "uuid" entry
    inside `data` is ignored. Lookups never raise: absent keys read as "".
    """

    __slots__ = ("_data",)

    def __init__(self, uuid: str, data: Mapping[str, str] | None = None) -> None:
        if not uuid:
            raise InputError.empty_input("UUID")
        values = {"uuid": uuid.lower()}
        for key, value in (data or {}).items():
            if key != "uuid":
                values[key] = str(value)
        self._data = MappingProxyType(values)

    @property
    def uuid(self) -> str:
        return self._data["uuid"]

    def get(self, key: str) -> str:
        return self._data.get(key, "")

    def has(self, key: str) -> bool:
        return key in self._data

    def to_dict(self) -> dict[str, str]:
        return dict(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Metadata):
            return NotImplemented
        return self._data == other._data

    def __hash__(self) -> int:
        return hash(tuple(self._data.items()))

    def __setattr__(self, name: str, value: Any) -> None:
        if hasattr(self, "_data"):
            raise AttributeError(f"{type(self).__name__} is immutable")
        object.__setattr__(self, name, value)

    def __repr__(self) -> str:
        return f"Metadata(uuid={self.uuid!r}, keys={len(self._data) - 1})"


class MetadataList:
    """
    Insertion-ordered Metadata collection unique by UUID.

    A repeated UUID replaces the earlier entry in place (last write wins),
    which is what happens when the portal returns overlapping pages.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[Metadata] = ()) -> None:
        self._items: dict[str, Metadata] = {}
        for item in items:
            self._items[item.uuid] = item

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Metadata]:
        return iter(self._items.values())

    def __contains__(self, uuid: object) -> bool:
        return isinstance(uuid, str) and uuid.lower() in self._items

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MetadataList):
            return NotImplemented
        return list(self._items.items()) == list(other._items.items())

    def __repr__(self) -> str:
        return f"MetadataList(count={len(self._items)})"

    def has(self, uuid: str) -> bool:
        return uuid in self

    def find(self, uuid: str) -> Metadata | None:
        return self._items.get(uuid.lower())

    def get(self, uuid: str) -> Metadata:
        found = self.find(uuid)
        if found is None:
            raise LookupError(f"UUID {uuid} not found")
        return found

    def merge(self, other: MetadataList) -> MetadataList:
        return MetadataList([*self, *other])

    def filter_without_uuids(self, uuids: Iterable[str]) -> MetadataList:
        excluded = {uuid.lower() for uuid in uuids}
        return MetadataList(item for item in self if item.uuid not in excluded)

    def to_list(self) -> list[dict[str, str]]:
        return [item.to_dict() for item in self]

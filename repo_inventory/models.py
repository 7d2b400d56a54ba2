"""Data models for the repository inventory fetcher."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from dataclasses_json import dataclass_json


@dataclass(frozen=True)
class RepositoryRecord:
    """One repository as returned by the listing collaborator.

    ``attributes`` holds the whole payload object, keyed by the field names
    the collaborator used, so it can be written back out unchanged.
    """
    name: str
    url: str
    attributes: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "RepositoryRecord":
        """Build a record from a payload object.

        Raises:
            ValueError: if ``url`` is missing or empty
        """
        url = payload.get("url")
        if not isinstance(url, str) or not url:
            raise ValueError(f"record has no url: {payload.get('name', '<unnamed>')}")
        name = payload.get("name")
        return cls(name=name if isinstance(name, str) else "", url=url, attributes=dict(payload))

    def to_payload(self) -> Dict[str, Any]:
        payload = dict(self.attributes)
        payload.setdefault("name", self.name)
        payload.setdefault("url", self.url)
        return payload


@dataclass(frozen=True)
class PageRequest:
    """Parameters for fetching a single page."""
    account: str
    page_size: int
    cursor: int  # page number, starting at 1
    fields: Tuple[str, ...]
    visibility: Optional[str] = None
    source_only: bool = False


@dataclass(frozen=True)
class Page:
    """Raw payload objects of one successful page fetch."""
    items: Tuple[Dict[str, Any], ...]
    has_more: bool


@dataclass_json
@dataclass(frozen=True)
class FetchError:
    """A page that could not be fetched."""
    page_identifier: int
    message: str


@dataclass(frozen=True)
class InventorySnapshot:
    """Deduplicated records sorted by url."""
    records: Tuple[RepositoryRecord, ...] = ()

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self):
        return iter(self.records)

    @property
    def urls(self) -> List[str]:
        return [record.url for record in self.records]

    def to_list(self) -> List[Dict[str, Any]]:
        return [record.to_payload() for record in self.records]


class RunState(Enum):
    """States of a single inventory run."""
    IDLE = "idle"
    FETCHING = "fetching"
    FINALIZING = "finalizing"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


@dataclass
class RunResult:
    """Outcome of an inventory run."""
    state: RunState
    snapshot: InventorySnapshot = field(default_factory=InventorySnapshot)
    errors: List[FetchError] = field(default_factory=list)
    pages_fetched: int = 0
    records_seen: int = 0
    write_error: Optional[Exception] = None

    @property
    def success(self) -> bool:
        return self.state is RunState.DONE

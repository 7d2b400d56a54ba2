"""Collecting and finalizing repository records."""

from typing import Iterable, List

from loguru import logger

from .models import InventorySnapshot, RepositoryRecord


class Accumulator:
    """Collects every record seen during a run, duplicates included."""

    def __init__(self):
        self._records: List[RepositoryRecord] = []

    def add_page(self, records: Iterable[RepositoryRecord]) -> None:
        self._records.extend(records)

    @property
    def records(self) -> List[RepositoryRecord]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)


def finalize(records: Iterable[RepositoryRecord]) -> InventorySnapshot:
    """Deduplicate by url (first occurrence wins) and sort by url.

    Sorting uses plain string comparison, i.e. case-sensitive code point
    order. Urls are unique after deduplication, so the order is total.
    """
    seen = {}
    duplicates = 0
    for record in records:
        if record.url in seen:
            duplicates += 1
            continue
        seen[record.url] = record

    if duplicates:
        logger.info(f"Dropped {duplicates} duplicate repositories")

    return InventorySnapshot(records=tuple(sorted(seen.values(), key=lambda r: r.url)))

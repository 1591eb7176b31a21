"""Concurrent fan-out reads across many channels.

Every (subject, category, location) triple becomes one task. Tasks share a
semaphore so at most `concurrency` remote reads are in flight, and a task
whose location fails resolves to an empty list instead of failing the pass.
"""

import asyncio
from dataclasses import dataclass
from typing import Dict, List, Tuple

from common.identifiers import normalize
from common.logging_config import get_logger
from server import config
from server.blobstore.base import BlobItem, BlobStore
from server.types import AggregatedFileSummary, AggregateResult
from server.utils import epoch_seconds_to_iso

logger = get_logger(__name__)

Catalog = Dict[str, Dict[str, int]]


@dataclass(frozen=True)
class CollectedItem:
    subject: str
    category: str
    item: BlobItem

    @property
    def file_id(self) -> str:
        return f"{self.subject}-{self.category}-{self.item.native_id}"


def to_summary(collected: CollectedItem) -> AggregatedFileSummary:
    item = collected.item
    return AggregatedFileSummary(
        id=collected.file_id,
        name=item.display_name,
        uploaded_at=epoch_seconds_to_iso(item.timestamp),
        subject=collected.subject,
        uploaded_at_ms=item.timestamp * 1000,
        size=item.size,
    )


def _location_triples(catalog: Catalog) -> List[Tuple[str, str, int]]:
    return [
        (subject, category, normalize(location))
        for subject, categories in catalog.items()
        for category, location in categories.items()
    ]


async def _fetch_location(
    blob_store: BlobStore,
    semaphore: asyncio.Semaphore,
    subject: str,
    category: str,
    location: int,
    limit: int,
) -> List[CollectedItem]:
    try:
        async with semaphore:
            items = await blob_store.get_recent_items(location, limit)
    except Exception as e:
        logger.error(f"Error fetching from channel {location} ({subject}/{category}): {e}")
        return []

    return [CollectedItem(subject, category, item) for item in items if item.has_payload]


async def _gather(
    blob_store: BlobStore,
    catalog: Catalog,
    per_location_limit: int,
    concurrency: int,
) -> List[List[CollectedItem]]:
    if concurrency < 1:
        raise ValueError("concurrency must be at least 1")

    semaphore = asyncio.Semaphore(concurrency)
    tasks = [
        _fetch_location(blob_store, semaphore, subject, category, location, per_location_limit)
        for subject, category, location in _location_triples(catalog)
    ]
    return await asyncio.gather(*tasks)


async def collect_items(
    blob_store: BlobStore,
    catalog: Catalog,
    per_location_limit: int,
    concurrency: int = None,
) -> List[CollectedItem]:
    """
    Fan out over every location of the catalog and return all payload items,
    location by location in catalog order.
    """
    results = await _gather(
        blob_store,
        catalog,
        per_location_limit,
        concurrency if concurrency is not None else config.FANOUT_CONCURRENCY,
    )
    return [collected for per_location in results for collected in per_location]


async def aggregate(
    blob_store: BlobStore,
    catalog: Catalog,
    per_location_limit: int,
    top_n: int = 5,
    concurrency: int = None,
) -> AggregateResult:
    """
    Count payload items per subject and pick the most recent ones.

    Args:
        blob_store: Connected blob store
        catalog: subject -> category -> location id
        per_location_limit: Most recent messages read from each location
        top_n: Number of recent items kept
        concurrency: Maximum simultaneous remote reads

    Returns:
        AggregateResult whose counts cover every item seen, not just the top N
    """
    results = await _gather(
        blob_store,
        catalog,
        per_location_limit,
        concurrency if concurrency is not None else config.FANOUT_CONCURRENCY,
    )

    subject_counts: Dict[str, int] = {subject: 0 for subject in catalog}
    total_count = 0
    unique: Dict[str, AggregatedFileSummary] = {}

    for per_location in results:
        for collected in per_location:
            total_count += 1
            subject_counts[collected.subject] += 1
            summary = to_summary(collected)
            unique[summary.id] = summary

    recent = sorted(unique.values(), key=lambda s: s.uploaded_at_ms, reverse=True)[:top_n]

    logger.debug(
        f"Aggregated {total_count} files across {len(catalog)} subjects, "
        f"kept {len(recent)} recent"
    )
    return AggregateResult(total_count=total_count, subject_counts=subject_counts, recent_items=recent)

"""File statistics service.

Computes storage totals and a bounded MIME type histogram for a user's
synced files. The histogram keeps the most common types and folds the long
tail into a single "Other" entry.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cortex.core.config import settings
from cortex.core.logging import get_logger
from cortex.db.models import DriveFile
from cortex.schemas.stats import FileStatsResponse, TypeDistributionEntry

logger = get_logger(__name__)

OTHER_LABEL = "Other"


def percentage_of(count: int, total: int) -> int:
    """Share of ``count`` in ``total`` as a whole percent, halves rounded up."""
    if total <= 0:
        return 0
    return (200 * count + total) // (2 * total)


def build_type_distribution(
    type_counts: Iterable[tuple[str, int]],
    file_count: int,
    top_n: int = 5,
) -> list[TypeDistributionEntry]:
    """Build the type histogram from per-MIME-type counts.

    Args:
        type_counts: (mime_type, count) pairs in any order.
        file_count: Total number of files the counts were taken from.
        top_n: Number of types listed individually.

    Returns:
        Entries ordered by count descending (ties by MIME type), with every
        type beyond ``top_n`` merged into a trailing "Other" entry. Empty
        when ``file_count`` is 0.
    """
    if file_count <= 0:
        return []

    ordered = sorted(type_counts, key=lambda item: (-item[1], item[0]))
    top, rest = ordered[:top_n], ordered[top_n:]

    buckets = list(top)
    if rest:
        buckets.append((OTHER_LABEL, sum(count for _, count in rest)))

    return [
        TypeDistributionEntry(
            mime_type=mime_type,
            count=count,
            percentage=percentage_of(count, file_count),
        )
        for mime_type, count in buckets
    ]


class FileStatsService:
    """Service for computing per-user file statistics."""

    def __init__(self, db: AsyncSession, top_types: int | None = None):
        """Initialize the stats service.

        Args:
            db: Async database session.
            top_types: Number of MIME types listed before the Other bucket.
        """
        self.db = db
        self.top_types = top_types or settings.stats_top_types

    async def compute_stats(self, user_id: str) -> FileStatsResponse:
        """Compute storage total, file count and type distribution for a user."""
        result = await self.db.execute(
            select(
                func.coalesce(func.sum(DriveFile.size), 0),
                func.count(),
            ).where(DriveFile.user_id == user_id)
        )
        total_storage, file_count = result.one()

        result = await self.db.execute(
            select(DriveFile.mime_type, func.count())
            .where(DriveFile.user_id == user_id)
            .group_by(DriveFile.mime_type)
        )
        type_counts = [(mime_type, count) for mime_type, count in result.all()]

        distribution = build_type_distribution(type_counts, file_count, self.top_types)

        logger.debug(
            "file_stats_computed",
            user_id=user_id,
            file_count=file_count,
            distinct_types=len(type_counts),
        )

        return FileStatsResponse(
            total_storage=int(total_storage),
            file_count=file_count,
            type_distribution=distribution,
        )

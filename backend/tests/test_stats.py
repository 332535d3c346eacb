"""Tests for file statistics: totals and the MIME type histogram."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from cortex.services.google_drive import RemoteFile
from cortex.services.stats import (
    OTHER_LABEL,
    FileStatsService,
    build_type_distribution,
    percentage_of,
)
from cortex.services.sync import DriveSyncService


class TestPercentageOf:
    """Tests for percentage rounding."""

    @pytest.mark.parametrize(
        ("count", "total", "expected"),
        [
            (2, 2, 100),
            (1, 3, 33),
            (2, 3, 67),
            (1, 8, 13),  # 12.5 rounds up
            (1, 200, 1),  # 0.5 rounds up
            (1, 201, 0),
            (0, 5, 0),
        ],
    )
    def test_rounding(self, count, total, expected):
        assert percentage_of(count, total) == expected

    def test_zero_total(self):
        assert percentage_of(0, 0) == 0


class TestBuildTypeDistribution:
    """Tests for build_type_distribution."""

    def test_empty(self):
        assert build_type_distribution([], 0) == []

    def test_five_types_have_no_other_bucket(self):
        counts = [(f"type/{i}", 1) for i in range(5)]

        distribution = build_type_distribution(counts, 5)

        assert len(distribution) == 5
        assert OTHER_LABEL not in [e.mime_type for e in distribution]

    def test_long_tail_collapses_into_other(self):
        counts = [
            ("application/pdf", 10),
            ("image/png", 8),
            ("image/jpeg", 6),
            ("text/plain", 5),
            ("video/mp4", 4),
            ("audio/mpeg", 2),
            ("application/zip", 1),
        ]

        distribution = build_type_distribution(counts, 36)

        assert len(distribution) == 6
        assert [e.mime_type for e in distribution[:5]] == [
            "application/pdf",
            "image/png",
            "image/jpeg",
            "text/plain",
            "video/mp4",
        ]
        other = distribution[-1]
        assert other.mime_type == OTHER_LABEL
        assert other.count == 3
        assert other.percentage == 8

    def test_orders_by_count_then_type(self):
        counts = [("text/plain", 2), ("image/png", 5), ("application/pdf", 2)]

        distribution = build_type_distribution(counts, 9)

        assert [e.mime_type for e in distribution] == [
            "image/png",
            "application/pdf",
            "text/plain",
        ]

    def test_counts_sum_to_file_count(self):
        counts = [(f"type/{i}", i + 1) for i in range(9)]
        total = sum(c for _, c in counts)

        distribution = build_type_distribution(counts, total)

        assert sum(e.count for e in distribution) == total

    def test_custom_top_n(self):
        counts = [("a/a", 3), ("b/b", 2), ("c/c", 1)]

        distribution = build_type_distribution(counts, 6, top_n=1)

        assert [(e.mime_type, e.count) for e in distribution] == [("a/a", 3), (OTHER_LABEL, 3)]


class TestFileStatsService:
    """Tests for FileStatsService.compute_stats."""

    @pytest.mark.asyncio
    async def test_no_files(self, db_session, make_user):
        user = make_user()
        db_session.add(user)
        await db_session.flush()

        stats = await FileStatsService(db_session).compute_stats(user.id)

        assert stats.total_storage == 0
        assert stats.file_count == 0
        assert stats.type_distribution == []

    @pytest.mark.asyncio
    async def test_scoped_to_user(self, db_session, make_user, make_file):
        alice = make_user()
        bob = make_user(email="bob@example.com")
        db_session.add_all([alice, bob])
        db_session.add_all(
            [
                make_file(alice, "a1", size=10),
                make_file(alice, "a2", size=20, mime_type="image/png"),
                make_file(bob, "b1", size=1000),
            ]
        )
        await db_session.flush()

        stats = await FileStatsService(db_session).compute_stats(alice.id)

        assert stats.total_storage == 30
        assert stats.file_count == 2
        assert {e.mime_type: e.percentage for e in stats.type_distribution} == {
            "image/png": 50,
            "text/plain": 50,
        }

    @pytest.mark.asyncio
    async def test_total_beyond_32_bits(self, db_session, make_user, make_file):
        user = make_user()
        db_session.add(user)
        db_session.add_all(
            [
                make_file(user, "v1", size=4_000_000_000, mime_type="video/mp4"),
                make_file(user, "v2", size=4_000_000_000, mime_type="video/mp4"),
            ]
        )
        await db_session.flush()

        stats = await FileStatsService(db_session).compute_stats(user.id)

        assert stats.total_storage == 8_000_000_000
        assert stats.model_dump(mode="json", by_alias=True)["totalStorage"] == "8000000000"

    @pytest.mark.asyncio
    async def test_after_sync(self, db_session, make_user):
        """Two synced PDFs of 1024 and 2048 bytes report 3072 bytes, all PDF."""
        user = make_user()
        db_session.add(user)
        await db_session.commit()

        drive = MagicMock()
        drive.list_all_files = AsyncMock(
            return_value=[
                RemoteFile.from_api({"id": "f1", "name": "a.pdf", "mimeType": "application/pdf", "size": "1024"}),
                RemoteFile.from_api({"id": "f2", "name": "b.pdf", "mimeType": "application/pdf", "size": "2048"}),
            ]
        )
        credentials = MagicMock()
        credentials.get_access_token = AsyncMock(return_value="access-token")
        await DriveSyncService(db_session, drive=drive, credentials=credentials).synchronize(user.id)

        stats = await FileStatsService(db_session).compute_stats(user.id)
        body = stats.model_dump(mode="json", by_alias=True)

        assert body == {
            "totalStorage": "3072",
            "fileCount": 2,
            "typeDistribution": [
                {"mimeType": "application/pdf", "count": 2, "percentage": 100}
            ],
        }

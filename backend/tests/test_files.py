"""Tests for FileQueryService and FileService."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from cortex.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    RemoteMutationError,
    ValidationError,
)
from cortex.db.models import DriveFile
from cortex.services.files import FileQuery, FileQueryService, FileService

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
async def user(db_session, make_user):
    user = make_user()
    db_session.add(user)
    await db_session.flush()
    return user


@pytest.fixture
async def populated(db_session, user, make_file):
    """Five files with distinct names, sizes and modification times."""
    names = ["Budget.xlsx", "notes.txt", "Photo 100%.png", "report_final.pdf", "Roadmap.pdf"]
    for i, name in enumerate(names):
        db_session.add(
            make_file(
                user,
                f"f{i}",
                name=name,
                size=(i + 1) * 100,
                modified_time=BASE_TIME + timedelta(days=i),
            )
        )
    await db_session.flush()
    return user


@pytest.fixture
def query_service(db_session) -> FileQueryService:
    return FileQueryService(db_session, default_limit=20, max_limit=2000)


@pytest.fixture
def drive() -> MagicMock:
    source = MagicMock()
    source.delete_file = AsyncMock()
    source.rename_file = AsyncMock()
    return source


@pytest.fixture
def credentials() -> MagicMock:
    provider = MagicMock()
    provider.get_access_token = AsyncMock(return_value="access-token")
    return provider


@pytest.fixture
def file_service(db_session, drive, credentials) -> FileService:
    return FileService(db_session, drive=drive, credentials=credentials)


# =============================================================================
# Parameter normalization
# =============================================================================


class TestNormalize:
    """Tests for FileQueryService.normalize."""

    def test_defaults(self, query_service):
        assert query_service.normalize(FileQuery()) == (1, 20, None, "modifiedTime", "desc")

    def test_limit_clamped_to_maximum(self, query_service):
        _, limit, *_ = query_service.normalize(FileQuery(limit="99999"))
        assert limit == 2000

    def test_limit_clamped_to_minimum(self, query_service):
        _, limit, *_ = query_service.normalize(FileQuery(limit="0"))
        assert limit == 1

    def test_page_clamped_to_one(self, query_service):
        page, *_ = query_service.normalize(FileQuery(page="-5"))
        assert page == 1

    def test_non_numeric_values_use_defaults(self, query_service):
        page, limit, *_ = query_service.normalize(FileQuery(page="abc", limit="ten"))
        assert (page, limit) == (1, 20)

    def test_unknown_sort_field_falls_back(self, query_service):
        *_, sort_by, _ = query_service.normalize(FileQuery(sort_by="ownerPassword"))
        assert sort_by == "modifiedTime"

    def test_order_other_than_asc_is_desc(self, query_service):
        *_, order = query_service.normalize(FileQuery(order="sideways"))
        assert order == "desc"

    def test_blank_search_is_ignored(self, query_service):
        _, _, search, *_ = query_service.normalize(FileQuery(search="   "))
        assert search is None


# =============================================================================
# Listing
# =============================================================================


class TestListFiles:
    """Tests for FileQueryService.list_files."""

    @pytest.mark.asyncio
    async def test_default_order_is_newest_first(self, query_service, populated):
        page = await query_service.list_files(populated.id, FileQuery())

        assert [f.id for f in page.files] == ["f4", "f3", "f2", "f1", "f0"]
        assert (page.total, page.page, page.total_pages, page.limit) == (5, 1, 1, 20)

    @pytest.mark.asyncio
    async def test_pagination(self, query_service, populated):
        page = await query_service.list_files(
            populated.id, FileQuery(page="2", limit="2", sort_by="size", order="asc")
        )

        assert [f.id for f in page.files] == ["f2", "f3"]
        assert page.total == 5
        assert page.total_pages == 3

    @pytest.mark.asyncio
    async def test_page_past_end_is_empty(self, query_service, populated):
        page = await query_service.list_files(populated.id, FileQuery(page="10"))

        assert page.files == []
        assert page.total == 5

    @pytest.mark.asyncio
    async def test_search_is_case_insensitive(self, query_service, populated):
        page = await query_service.list_files(populated.id, FileQuery(search="PDF"))

        assert sorted(f.name for f in page.files) == ["Roadmap.pdf", "report_final.pdf"]
        assert page.total == 2

    @pytest.mark.asyncio
    async def test_search_wildcards_match_literally(self, query_service, populated):
        percent = await query_service.list_files(populated.id, FileQuery(search="%"))
        underscore = await query_service.list_files(populated.id, FileQuery(search="_"))

        assert [f.name for f in percent.files] == ["Photo 100%.png"]
        assert [f.name for f in underscore.files] == ["report_final.pdf"]

    @pytest.mark.asyncio
    async def test_sort_by_name(self, query_service, populated):
        page = await query_service.list_files(
            populated.id, FileQuery(sort_by="name", order="asc")
        )
        assert page.files[0].name == "Budget.xlsx"

    @pytest.mark.asyncio
    async def test_no_files(self, query_service, user):
        page = await query_service.list_files(user.id, FileQuery())

        assert page.files == []
        assert page.total == 0
        assert page.total_pages == 0

    @pytest.mark.asyncio
    async def test_other_users_files_are_invisible(
        self, db_session, query_service, populated, make_user, make_file
    ):
        bob = make_user(email="bob@example.com")
        db_session.add(bob)
        db_session.add(make_file(bob, "b1", name="Budget.xlsx"))
        await db_session.flush()

        page = await query_service.list_files(bob.id, FileQuery(search="budget"))

        assert [(f.id, f.user_id) for f in page.files] == [("b1", bob.id)]


# =============================================================================
# Mutations
# =============================================================================


class TestDeleteFile:
    """Tests for FileService.delete_file."""

    @pytest.mark.asyncio
    async def test_deletes_remote_then_local(self, db_session, file_service, drive, populated):
        await file_service.delete_file(populated, "f1")

        drive.delete_file.assert_awaited_once_with("access-token", "f1")
        assert await db_session.get(DriveFile, ("f1", populated.id)) is None

    @pytest.mark.asyncio
    async def test_unknown_file(self, file_service, drive, populated):
        with pytest.raises(NotFoundError) as exc_info:
            await file_service.delete_file(populated, "missing")

        assert exc_info.value.status_code == 404
        drive.delete_file.assert_not_called()

    @pytest.mark.asyncio
    async def test_other_users_file_is_not_found(
        self, db_session, file_service, populated, make_user
    ):
        bob = make_user(email="bob@example.com")
        db_session.add(bob)
        await db_session.flush()

        with pytest.raises(NotFoundError):
            await file_service.delete_file(bob, "f1")

        assert await db_session.get(DriveFile, ("f1", populated.id)) is not None

    @pytest.mark.asyncio
    async def test_disconnected_user_checked_before_file(
        self, db_session, file_service, drive, make_user
    ):
        user = make_user(connected=False)
        db_session.add(user)
        await db_session.flush()

        with pytest.raises(AuthorizationError):
            await file_service.delete_file(user, "missing")

        drive.delete_file.assert_not_called()

    @pytest.mark.asyncio
    async def test_remote_failure_keeps_local_record(
        self, db_session, file_service, drive, populated
    ):
        drive.delete_file.side_effect = RemoteMutationError("delete")

        with pytest.raises(RemoteMutationError) as exc_info:
            await file_service.delete_file(populated, "f1")

        assert exc_info.value.status_code == 500
        assert await db_session.get(DriveFile, ("f1", populated.id)) is not None

    @pytest.mark.asyncio
    async def test_same_remote_file_under_two_users(
        self, db_session, file_service, populated, make_user, make_file
    ):
        """Deleting one user's copy leaves the other user's record in place."""
        bob = make_user(email="bob@example.com")
        db_session.add(bob)
        db_session.add(make_file(bob, "f1"))
        await db_session.flush()

        await file_service.delete_file(populated, "f1")

        assert await db_session.get(DriveFile, ("f1", populated.id)) is None
        assert await db_session.get(DriveFile, ("f1", bob.id)) is not None


class TestRenameFile:
    """Tests for FileService.rename_file."""

    @pytest.mark.asyncio
    async def test_renames_remote_then_local(self, file_service, drive, populated):
        file = await file_service.rename_file(populated, "f1", "  Budget 2025.xlsx ")

        drive.rename_file.assert_awaited_once_with("access-token", "f1", "Budget 2025.xlsx")
        assert file.name == "Budget 2025.xlsx"

    @pytest.mark.parametrize("name", [None, "", "   "])
    @pytest.mark.asyncio
    async def test_blank_name(self, file_service, drive, populated, name):
        with pytest.raises(ValidationError) as exc_info:
            await file_service.rename_file(populated, "f1", name)

        assert exc_info.value.status_code == 400
        drive.rename_file.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_file(self, file_service, populated):
        with pytest.raises(NotFoundError):
            await file_service.rename_file(populated, "missing", "x.txt")

    @pytest.mark.asyncio
    async def test_remote_failure_keeps_old_name(
        self, db_session, file_service, drive, populated
    ):
        drive.rename_file.side_effect = RemoteMutationError("rename")

        with pytest.raises(RemoteMutationError):
            await file_service.rename_file(populated, "f1", "new.txt")

        stored = await db_session.get(DriveFile, ("f1", populated.id))
        assert stored.name == "notes.txt"

    @pytest.mark.asyncio
    async def test_expired_credential(self, file_service, credentials, drive, populated):
        credentials.get_access_token.side_effect = AuthorizationError(
            "Google Drive access expired. Please authenticate again."
        )

        with pytest.raises(AuthorizationError):
            await file_service.rename_file(populated, "f1", "new.txt")

        drive.rename_file.assert_not_called()

"""
File: tests/unit/test_profile_service.py
Description: 资料领域服务测试 (SQLite + 内存图片存储)

覆盖：
1. 创建 (一人一份 / 上传失败回滚 / profile_completed 标记)
2. 照片删除与存储清理
3. 公开浏览 (可见性 / 筛选 / 排序 / 分页)
4. 公开详情浏览计数

Author: jinmozhe
Created: 2026-10-13
"""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rishta.core.error_code import SystemErrorCode
from rishta.core.exceptions import AppException
from rishta.core.storage import ImageUpload
from rishta.db.models.profile import Profile, ProfileStatus
from rishta.domains.profiles.constants import ProfileErrorCode
from rishta.domains.profiles.repository import ProfileRepository
from rishta.domains.profiles.schemas import (
    AdminProfileFilter,
    ProfileContent,
    PublicProfileFilter,
    ReviewRequest,
)
from rishta.domains.profiles.service import ProfileService

# ------------------------------------------------------------------------------
# Fixtures
# ------------------------------------------------------------------------------


@pytest.fixture
def profile_service(db_session: AsyncSession, image_store) -> ProfileService:
    return ProfileService(repo=ProfileRepository(model=Profile, session=db_session), store=image_store)


@pytest.fixture
def uploads(image_bytes):
    def _uploads(count: int) -> list[ImageUpload]:
        return [ImageUpload(filename=f"photo{i}.png", data=image_bytes()) for i in range(count)]

    return _uploads


@pytest.fixture
def publish_profile(profile_service, make_user, profile_data):
    """创建一份资料并审核通过 (公开可见)"""

    async def _publish(admin, **overrides) -> Profile:
        owner = await make_user(is_paid=True)
        content = ProfileContent.model_validate(profile_data(**overrides))
        profile = await profile_service.create_profile(owner, content, [])
        return await profile_service.review_profile(profile.id, admin, ReviewRequest(action="approve"))

    return _publish


async def _profile_count(db_session: AsyncSession) -> int:
    result = await db_session.execute(select(func.count()).select_from(Profile))
    return result.scalar_one()


# ------------------------------------------------------------------------------
# 创建
# ------------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_create_profile_submits_for_review(profile_service, make_user, profile_data, uploads) -> None:
    user = await make_user(is_paid=True)
    content = ProfileContent.model_validate(profile_data())

    profile = await profile_service.create_profile(user, content, uploads(2))

    assert profile.status == ProfileStatus.SUBMITTED
    assert profile.published is False
    assert profile.is_public is False
    assert user.profile_completed is True
    assert len(profile.photos) == 2
    assert profile.photos[0]["is_primary"] is True
    assert profile.photos[1]["is_primary"] is False
    assert all(photo["key"].startswith(f"profiles/{user.id}/") for photo in profile.photos)
    assert profile.education["level"] == "master"


@pytest.mark.asyncio
async def test_second_profile_is_a_conflict(profile_service, make_user, profile_data, uploads, image_store) -> None:
    user = await make_user(is_paid=True)
    content = ProfileContent.model_validate(profile_data())
    await profile_service.create_profile(user, content, [])

    with pytest.raises(AppException) as exc_info:
        await profile_service.create_profile(user, content, uploads(1))

    assert exc_info.value.error == ProfileErrorCode.PROFILE_EXISTS
    assert exc_info.value.kind.value == "conflict"
    assert image_store.upload_calls == 0


@pytest.mark.asyncio
async def test_concurrent_create_hits_unique_constraint(
    profile_service, db_session, make_user, profile_data, uploads, image_store, monkeypatch
) -> None:
    user = await make_user(is_paid=True)
    content = ProfileContent.model_validate(profile_data())
    await profile_service.create_profile(user, content, [])

    # 另一请求在存在性检查之后才写入
    async def _not_found_yet(user_id):
        return None

    monkeypatch.setattr(profile_service.repo, "get_by_user_id", _not_found_yet)

    with pytest.raises(AppException) as exc_info:
        await profile_service.create_profile(user, content, uploads(1))

    assert exc_info.value.error == ProfileErrorCode.PROFILE_EXISTS
    assert image_store.files == {}
    assert len(image_store.deleted) == 1
    assert await _profile_count(db_session) == 1


@pytest.mark.asyncio
async def test_constraint_failure_on_edit_is_not_a_conflict(
    profile_service, db_session, make_user, profile_data, uploads, image_store, monkeypatch
) -> None:
    user = await make_user(is_paid=True)
    content = ProfileContent.model_validate(profile_data())
    await profile_service.create_profile(user, content, [])

    async def _failing_commit():
        raise IntegrityError("UPDATE profiles", {}, Exception("CHECK constraint failed"))

    monkeypatch.setattr(db_session, "commit", _failing_commit)

    with pytest.raises(AppException) as exc_info:
        await profile_service.edit_profile(user, content, uploads(1))

    assert exc_info.value.error == SystemErrorCode.DB_UNAVAILABLE
    assert exc_info.value.kind.value == "upstream_unavailable"
    assert image_store.files == {}
    assert len(image_store.deleted) == 1


@pytest.mark.asyncio
async def test_upload_failure_rolls_back_uploaded_photos(
    profile_service, db_session, make_user, profile_data, uploads, image_store
) -> None:
    user = await make_user(is_paid=True)
    image_store.fail_after = 1
    content = ProfileContent.model_validate(profile_data())

    with pytest.raises(AppException) as exc_info:
        await profile_service.create_profile(user, content, uploads(3))

    assert exc_info.value.error == SystemErrorCode.IMAGE_STORE_UNAVAILABLE
    assert exc_info.value.kind.value == "upstream_unavailable"
    assert image_store.files == {}
    assert len(image_store.deleted) == 1
    assert await _profile_count(db_session) == 0


@pytest.mark.asyncio
async def test_invalid_image_is_a_validation_error(profile_service, make_user, profile_data, image_store) -> None:
    user = await make_user(is_paid=True)
    content = ProfileContent.model_validate(profile_data())
    bogus = [ImageUpload(filename="notes.txt", data=b"plain text, not an image")]

    with pytest.raises(AppException) as exc_info:
        await profile_service.create_profile(user, content, bogus)

    assert exc_info.value.kind.value == "validation_error"
    assert image_store.upload_calls == 0


@pytest.mark.asyncio
async def test_get_my_profile_without_profile(profile_service, make_user) -> None:
    user = await make_user(is_paid=True)

    with pytest.raises(AppException) as exc_info:
        await profile_service.get_my_profile(user)

    assert exc_info.value.error == ProfileErrorCode.PROFILE_NOT_FOUND


# ------------------------------------------------------------------------------
# 照片
# ------------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_remove_photo_deletes_stored_file(profile_service, make_user, profile_data, uploads, image_store) -> None:
    user = await make_user(is_paid=True)
    profile = await profile_service.create_profile(
        user, ProfileContent.model_validate(profile_data()), uploads(2)
    )
    key = profile.photos[1]["key"]

    profile = await profile_service.remove_photo(user, key)

    assert len(profile.photos) == 1
    assert profile.photos[0]["key"] != key
    assert profile.photos[0]["is_primary"] is True
    assert key in image_store.deleted
    assert key not in image_store.files


@pytest.mark.asyncio
async def test_remove_photo_survives_store_delete_failure(
    profile_service, make_user, profile_data, uploads, image_store
) -> None:
    user = await make_user(is_paid=True)
    profile = await profile_service.create_profile(
        user, ProfileContent.model_validate(profile_data()), uploads(1)
    )
    key = profile.photos[0]["key"]
    image_store.fail_deletes = True

    profile = await profile_service.remove_photo(user, key)

    assert profile.photos == []


@pytest.mark.asyncio
async def test_add_photos_requires_at_least_one(profile_service, make_user, profile_data) -> None:
    user = await make_user(is_paid=True)
    await profile_service.create_profile(user, ProfileContent.model_validate(profile_data()), [])

    with pytest.raises(AppException) as exc_info:
        await profile_service.add_photos(user, [])

    assert exc_info.value.error == SystemErrorCode.INVALID_PARAMS


# ------------------------------------------------------------------------------
# 公开浏览
# ------------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_public_listing_only_shows_approved_and_published(
    profile_service, make_user, profile_data, publish_profile
) -> None:
    admin = await make_user(role="admin")
    visible = await publish_profile(admin, name="Visible One")
    hidden = await publish_profile(admin, name="Hidden One")
    await profile_service.toggle_publish(hidden.id, admin)

    pending_owner = await make_user(is_paid=True)
    await profile_service.create_profile(
        pending_owner, ProfileContent.model_validate(profile_data(name="Pending One")), []
    )

    page = await profile_service.list_public_profiles(PublicProfileFilter(), None)

    assert page.total == 1
    assert [item.id for item in page.items] == [visible.id]

    admin_page = await profile_service.list_admin_profiles(AdminProfileFilter(), None)
    assert admin_page.total == 3

    submitted = await profile_service.list_admin_profiles(
        AdminProfileFilter(status=ProfileStatus.SUBMITTED), None
    )
    assert [item.name for item in submitted.items] == ["Pending One"]

    unpublished = await profile_service.list_admin_profiles(
        AdminProfileFilter(status=ProfileStatus.APPROVED, published=False), None
    )
    assert [item.id for item in unpublished.items] == [hidden.id]


@pytest.mark.asyncio
async def test_public_listing_filters(make_user, profile_service, publish_profile) -> None:
    admin = await make_user(role="admin")
    lahore_f = await publish_profile(admin, gender="female", city="Lahore", age=24)
    await publish_profile(admin, gender="male", city="Lahore", age=30)
    await publish_profile(admin, gender="female", city="Karachi", age=35)

    by_gender_city = await profile_service.list_public_profiles(
        PublicProfileFilter(gender="female", city="laho"), None
    )
    assert [item.id for item in by_gender_city.items] == [lahore_f.id]

    by_age = await profile_service.list_public_profiles(PublicProfileFilter(min_age=25, max_age=35), None)
    assert by_age.total == 2
    assert all(25 <= item.age <= 35 for item in by_age.items)


@pytest.mark.asyncio
async def test_public_listing_is_newest_first_and_paginated(
    make_user, profile_service, publish_profile
) -> None:
    admin = await make_user(role="admin")
    created = [await publish_profile(admin, name=f"Person {chr(65 + i)}") for i in range(13)]

    first = await profile_service.list_public_profiles(PublicProfileFilter(), 0)
    second = await profile_service.list_public_profiles(PublicProfileFilter(), 2)

    assert first.page == 1
    assert first.page_size == 12
    assert first.total == 13
    assert first.total_pages == 2
    assert first.has_next is True
    assert [item.id for item in first.items] == [p.id for p in reversed(created)][:12]
    assert [item.id for item in second.items] == [created[0].id]
    assert second.has_next is False


@pytest.mark.asyncio
async def test_owner_edit_removes_profile_from_public_listing(
    make_user, profile_service, profile_data
) -> None:
    admin = await make_user(role="admin")
    owner = await make_user(is_paid=True)
    profile = await profile_service.create_profile(owner, ProfileContent.model_validate(profile_data()), [])
    await profile_service.review_profile(profile.id, admin, ReviewRequest(action="approve"))
    assert (await profile_service.list_public_profiles(PublicProfileFilter(), 1)).total == 1

    await profile_service.edit_profile(owner, ProfileContent.model_validate(profile_data(city="Multan")), [])

    assert (await profile_service.list_public_profiles(PublicProfileFilter(), 1)).total == 0


@pytest.mark.asyncio
async def test_public_detail_counts_views(make_user, profile_service, publish_profile) -> None:
    admin = await make_user(role="admin")
    profile = await publish_profile(admin)

    await profile_service.get_public_profile(profile.id)
    viewed = await profile_service.get_public_profile(profile.id)

    assert viewed.views == 2
    assert viewed.last_viewed_at is not None


@pytest.mark.asyncio
async def test_public_detail_of_hidden_profile_is_not_found(
    make_user, profile_service, profile_data
) -> None:
    owner = await make_user(is_paid=True)
    profile = await profile_service.create_profile(owner, ProfileContent.model_validate(profile_data()), [])

    with pytest.raises(AppException) as exc_info:
        await profile_service.get_public_profile(profile.id)

    assert exc_info.value.error == ProfileErrorCode.PROFILE_NOT_FOUND

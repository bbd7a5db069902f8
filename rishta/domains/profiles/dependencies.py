"""
File: rishta/domains/profiles/dependencies.py
Description: 资料领域依赖注入 (DI)

依赖链：
DBSession → ProfileRepository ┐
ImageStore ───────────────────┴→ ProfileService → ProfileServiceDep

另提供 multipart 表单解析：资料内容以 JSON 字符串放在 payload 字段，照片放在 photos 字段。

Author: jinmozhe
Created: 2026-10-10
"""

from typing import Annotated

from fastapi import Depends, File, Form, UploadFile
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from rishta.api.deps import DBSession
from rishta.core.storage import ImageStore, ImageUpload, get_image_store, read_uploads
from rishta.db.models.profile import Profile
from rishta.domains.profiles.repository import ProfileRepository
from rishta.domains.profiles.schemas import ProfileContent
from rishta.domains.profiles.service import ProfileService


async def get_profile_repository(session: DBSession) -> ProfileRepository:
    return ProfileRepository(model=Profile, session=session)


ProfileRepoDep = Annotated[ProfileRepository, Depends(get_profile_repository)]

ImageStoreDep = Annotated[ImageStore, Depends(get_image_store)]


async def get_profile_service(repo: ProfileRepoDep, store: ImageStoreDep) -> ProfileService:
    return ProfileService(repo=repo, store=store)


ProfileServiceDep = Annotated[ProfileService, Depends(get_profile_service)]


# ------------------------------------------------------------------------------
# Multipart 表单解析
# ------------------------------------------------------------------------------


async def parse_profile_payload(
    payload: Annotated[str, Form(description="资料内容 (JSON 字符串)")],
) -> ProfileContent:
    """
    解析 payload 字段。
    校验失败转换为 RequestValidationError，由全局处理器渲染为 validation_error。
    """
    try:
        return ProfileContent.model_validate_json(payload)
    except ValidationError as exc:
        errors = [
            {**err, "loc": ("payload", *err.get("loc", ()))}
            for err in exc.errors(include_url=False)
        ]
        raise RequestValidationError(errors) from None


ProfileContentForm = Annotated[ProfileContent, Depends(parse_profile_payload)]


async def get_photo_uploads(
    photos: Annotated[list[UploadFile] | None, File(description="照片 (最多 5 张)")] = None,
) -> list[ImageUpload]:
    return await read_uploads(photos)


PhotoUploads = Annotated[list[ImageUpload], Depends(get_photo_uploads)]

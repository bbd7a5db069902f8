"""
File: rishta/core/storage.py
Description: 图片存储 (Image Store) 抽象与实现

本模块负责：
1. 图片预处理 (Pillow): 校验格式/大小，按长边上限等比缩放，修正 EXIF 方向
2. ImageStore 抽象: upload(data) -> StoredImage(url, key) / delete(key)
3. 两种后端:
   - LocalImageStore: 落盘到 MEDIA_DIR，经 MEDIA_URL 静态访问 (本地/测试)
   - SupabaseImageStore: Supabase Storage 存储桶 (生产)
4. 批量上传编排: 任一张失败时回滚已上传的图片
5. 尽力删除 (delete_quietly): 删除失败只记录 ERROR 日志，不阻塞业务写入

Author: jinmozhe
Created: 2026-10-08
Updated: 2026-10-19 (pixel cap, bounded upload reads)
"""

import io
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from fastapi import UploadFile
from PIL import Image, ImageOps, UnidentifiedImageError
from starlette.concurrency import run_in_threadpool
from supabase import Client, create_client
from uuid6 import uuid7

from rishta.core.config import settings
from rishta.core.error_code import SystemErrorCode
from rishta.core.exceptions import AppException
from rishta.core.logging import logger

# Pillow 格式名 -> (扩展名, MIME)
FORMAT_META: dict[str, tuple[str, str]] = {
    "JPEG": ("jpg", "image/jpeg"),
    "PNG": ("png", "image/png"),
    "GIF": ("gif", "image/gif"),
    "WEBP": ("webp", "image/webp"),
}


class ImageStoreError(Exception):
    """存储后端故障 (网络 / 权限 / 磁盘)"""


class InvalidImageError(ValueError):
    """上传内容不是允许的图片"""


@dataclass(frozen=True)
class ImageUpload:
    """待上传的原始文件"""

    filename: str
    data: bytes


@dataclass(frozen=True)
class PreparedImage:
    """经过校验与缩放后的图片"""

    data: bytes
    extension: str
    content_type: str


@dataclass(frozen=True)
class StoredImage:
    """存储后端返回的稳定引用"""

    url: str
    key: str


# ==============================================================================
# 1. 图片预处理 (Pillow)
# ==============================================================================


def prepare_image(upload: ImageUpload) -> PreparedImage:
    """
    校验并规范化图片。

    Raises:
        InvalidImageError: 超过大小或像素上限 / 无法识别 / 格式不在白名单
    """
    if len(upload.data) > settings.IMAGE_MAX_BYTES:
        max_mb = settings.IMAGE_MAX_BYTES // (1024 * 1024)
        raise InvalidImageError(f"{upload.filename}: file size too large, maximum is {max_mb}MB")

    too_many_pixels = f"{upload.filename}: image dimensions too large"
    try:
        # Image.open 只解析文件头，像素上限在解码前检查
        with Image.open(io.BytesIO(upload.data)) as header:
            if header.width * header.height > settings.IMAGE_MAX_PIXELS:
                raise InvalidImageError(too_many_pixels)
            header.verify()
        img = Image.open(io.BytesIO(upload.data))
    except Image.DecompressionBombError as exc:
        raise InvalidImageError(too_many_pixels) from exc
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise InvalidImageError(f"{upload.filename}: only image files are allowed") from exc

    image_format = (img.format or "").upper()
    if image_format not in settings.IMAGE_ALLOWED_FORMATS or image_format not in FORMAT_META:
        raise InvalidImageError(f"{upload.filename}: image format {image_format or 'unknown'} is not allowed")

    img = ImageOps.exif_transpose(img)
    limit = settings.IMAGE_MAX_DIMENSION
    if img.width > limit or img.height > limit:
        img.thumbnail((limit, limit), Image.Resampling.LANCZOS)

    if image_format == "JPEG" and img.mode not in ("RGB", "L"):
        img = img.convert("RGB")

    output = io.BytesIO()
    save_options = {"optimize": True}
    if image_format == "JPEG":
        save_options["quality"] = 85
    img.save(output, format=image_format, **save_options)

    extension, content_type = FORMAT_META[image_format]
    return PreparedImage(data=output.getvalue(), extension=extension, content_type=content_type)


# ==============================================================================
# 2. 存储后端
# ==============================================================================


class ImageStore(ABC):
    """图片存储抽象"""

    @abstractmethod
    async def upload(self, image: PreparedImage, folder: str) -> StoredImage:
        """上传图片，返回 (url, key)。失败抛 ImageStoreError"""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """按 key 删除图片。失败抛 ImageStoreError"""

    async def delete_quietly(self, key: str) -> bool:
        """
        尽力删除：失败只上报运维日志，不向调用方抛出。
        """
        try:
            await self.delete(key)
        except ImageStoreError as exc:
            logger.opt(exception=exc).bind(image_key=key).error(
                "Image store delete failed, orphaned image needs manual cleanup"
            )
            return False
        return True

    async def delete_many_quietly(self, keys: list[str]) -> None:
        for key in keys:
            await self.delete_quietly(key)

    @staticmethod
    def new_key(folder: str, extension: str) -> str:
        return f"{folder}/{uuid7().hex}.{extension}"


class LocalImageStore(ImageStore):
    """
    本地磁盘存储。
    由 main.py 把 MEDIA_DIR 挂载到 MEDIA_URL 提供静态访问。
    """

    def __init__(self, root: str | Path, base_url: str):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    async def upload(self, image: PreparedImage, folder: str) -> StoredImage:
        key = self.new_key(folder, image.extension)
        path = self.root / key
        try:
            await run_in_threadpool(path.parent.mkdir, parents=True, exist_ok=True)
            await run_in_threadpool(path.write_bytes, image.data)
        except OSError as exc:
            raise ImageStoreError(f"Failed to write {key}") from exc
        return StoredImage(url=f"{self.base_url}/{key}", key=key)

    async def delete(self, key: str) -> None:
        path = self.root / key
        try:
            await run_in_threadpool(path.unlink, missing_ok=True)
        except OSError as exc:
            raise ImageStoreError(f"Failed to delete {key}") from exc


class SupabaseImageStore(ImageStore):
    """
    Supabase Storage 存储桶。
    supabase-py 为同步客户端，统一放到线程池执行。
    """

    def __init__(self, client: Client, bucket: str):
        self.client = client
        self.bucket = bucket

    async def upload(self, image: PreparedImage, folder: str) -> StoredImage:
        key = self.new_key(folder, image.extension)
        bucket = self.client.storage.from_(self.bucket)
        try:
            await run_in_threadpool(
                bucket.upload,
                path=key,
                file=image.data,
                file_options={"content-type": image.content_type, "cache-control": "3600"},
            )
            url = await run_in_threadpool(bucket.get_public_url, key)
        except Exception as exc:  # supabase 的异常类型随版本变化，统一收敛
            raise ImageStoreError(f"Supabase upload failed for {key}") from exc
        return StoredImage(url=url, key=key)

    async def delete(self, key: str) -> None:
        bucket = self.client.storage.from_(self.bucket)
        try:
            await run_in_threadpool(bucket.remove, [key])
        except Exception as exc:
            raise ImageStoreError(f"Supabase delete failed for {key}") from exc


@lru_cache
def get_image_store() -> ImageStore:
    """
    获取图片存储依赖 (进程级单例)。
    测试中通过 dependency_overrides 替换为内存实现。
    """
    if settings.IMAGE_STORE_BACKEND == "supabase":
        client = create_client(
            settings.SUPABASE_URL,  # type: ignore[arg-type]
            settings.SUPABASE_SERVICE_KEY,  # type: ignore[arg-type]
        )
        return SupabaseImageStore(client, settings.SUPABASE_STORAGE_BUCKET)
    return LocalImageStore(settings.MEDIA_DIR, settings.MEDIA_URL)


# ==============================================================================
# 3. 上传编排
# ==============================================================================


async def read_uploads(files: list[UploadFile] | None) -> list[ImageUpload]:
    """
    读取 multipart 文件，过滤空文件字段并校验数量上限。
    每个文件最多读取 IMAGE_MAX_BYTES + 1 字节，超出即拒绝，不整体载入内存。
    """
    uploads: list[ImageUpload] = []
    for file in files or []:
        data = await file.read(settings.IMAGE_MAX_BYTES + 1)
        if not data:
            continue
        if len(data) > settings.IMAGE_MAX_BYTES:
            max_mb = settings.IMAGE_MAX_BYTES // (1024 * 1024)
            raise AppException(
                SystemErrorCode.INVALID_PARAMS,
                message=f"{file.filename or 'upload'}: file size too large, maximum is {max_mb}MB",
            )
        uploads.append(ImageUpload(filename=file.filename or "upload", data=data))

    if len(uploads) > settings.IMAGE_MAX_FILES:
        raise AppException(
            SystemErrorCode.INVALID_PARAMS,
            message=f"Too many files. Maximum {settings.IMAGE_MAX_FILES} files allowed.",
        )
    return uploads


async def upload_images(
    store: ImageStore, uploads: list[ImageUpload], folder: str
) -> list[StoredImage]:
    """
    校验全部图片后再逐张上传；任一张上传失败时回滚已上传部分。

    Raises:
        AppException: validation_error (图片不合法) / upstream_unavailable (存储故障)
    """
    try:
        prepared = [await run_in_threadpool(prepare_image, upload) for upload in uploads]
    except InvalidImageError as exc:
        raise AppException(SystemErrorCode.INVALID_PARAMS, message=str(exc)) from None

    stored: list[StoredImage] = []
    for image in prepared:
        try:
            stored.append(await store.upload(image, folder))
        except ImageStoreError as exc:
            logger.opt(exception=exc).bind(folder=folder, uploaded=len(stored)).error(
                "Image upload failed, rolling back uploaded images"
            )
            await store.delete_many_quietly([item.key for item in stored])
            raise AppException(SystemErrorCode.IMAGE_STORE_UNAVAILABLE) from None

    return stored

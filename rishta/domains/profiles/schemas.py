"""
File: rishta/domains/profiles/schemas.py
Description: 婚恋资料领域 Pydantic 模型 (Schema)

本模块定义了资料相关的输入/输出数据结构：
1. ProfileContent: 创建/编辑资料的内容 (个人信息平铺 + 各分区嵌套)
2. PublicProfileFilter / AdminProfileFilter: 列表筛选条件 (Query 参数)
3. ReviewRequest: 管理员审核 (approve / reject)
4. ProfileRead: 主人与管理员可见的完整资料
5. ProfilePublicRead: 公开浏览可见的资料 (不含联系人与审核信息)

个人信息字段与数据库列一一对应，分区 (education / occupation ...) 以 JSON 文档存储。

Author: jinmozhe
Created: 2026-10-10
"""

from datetime import date, datetime
from enum import StrEnum
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

from rishta.db.models.profile import Gender, ProfileStatus
from rishta.domains.users.schemas import validate_phone

MIN_AGE = 18
MAX_AGE = 80

# ------------------------------------------------------------------------------
# 枚举 (表单下拉选项)
# ------------------------------------------------------------------------------


class MaritalStatus(StrEnum):
    NEVER_MARRIED = "never-married"
    DIVORCED = "divorced"
    WIDOWED = "widowed"


class EducationLevel(StrEnum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    BACHELOR = "bachelor"
    MASTER = "master"
    PHD = "phd"
    OTHER = "other"


class IncomeBracket(StrEnum):
    BELOW_50K = "below-50k"
    FROM_50K_TO_100K = "50k-100k"
    FROM_100K_TO_200K = "100k-200k"
    FROM_200K_TO_500K = "200k-500k"
    ABOVE_500K = "above-500k"
    PREFER_NOT_TO_SAY = "prefer-not-to-say"


class FamilyType(StrEnum):
    JOINT = "joint"
    NUCLEAR = "nuclear"
    EXTENDED = "extended"


class FamilyStatus(StrEnum):
    MIDDLE_CLASS = "middle-class"
    UPPER_MIDDLE = "upper-middle"
    UPPER_CLASS = "upper-class"
    PREFER_NOT_TO_SAY = "prefer-not-to-say"


class Sect(StrEnum):
    SUNNI = "sunni"
    SHIA = "shia"
    OTHER = "other"


class Religiousness(StrEnum):
    VERY = "very-religious"
    MODERATELY = "moderately-religious"
    SOMEWHAT = "somewhat-religious"
    NOT_VERY = "not-very-religious"


class Observance(StrEnum):
    YES = "yes"
    NO = "no"
    SOMETIMES = "sometimes"


# ------------------------------------------------------------------------------
# 资料分区
# ------------------------------------------------------------------------------


class Education(BaseModel):
    level: EducationLevel
    field: str | None = Field(default=None, max_length=100)
    institution: str | None = Field(default=None, max_length=150)


class Occupation(BaseModel):
    profession: str = Field(..., min_length=1, max_length=100)
    company: str | None = Field(default=None, max_length=150)
    income: IncomeBracket | None = None

    @field_validator("profession")
    @classmethod
    def strip_profession(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Profession is required")
        return v


class FamilyInfo(BaseModel):
    family_type: FamilyType | None = None
    family_status: FamilyStatus | None = None
    siblings: int | None = Field(default=None, ge=0)
    father_name: str | None = Field(default=None, max_length=50)
    mother_name: str | None = Field(default=None, max_length=50)


class ReligiousInfo(BaseModel):
    sect: Sect | None = None
    religiousness: Religiousness | None = None
    hijab: Observance | None = None
    beard: Observance | None = None


class AgeRange(BaseModel):
    min: int | None = Field(default=None, ge=MIN_AGE, le=MAX_AGE)
    max: int | None = Field(default=None, ge=MIN_AGE, le=MAX_AGE)

    @model_validator(mode="after")
    def check_bounds(self) -> "AgeRange":
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError("Minimum age cannot be greater than maximum age")
        return self


class Preferences(BaseModel):
    age_range: AgeRange = Field(default_factory=AgeRange)
    locations: list[str] = Field(default_factory=list, max_length=20)
    education: list[EducationLevel | Literal["any"]] = Field(default_factory=list)
    marital_status: list[MaritalStatus | Literal["any"]] = Field(default_factory=list)
    religiousness: list[Religiousness | Literal["any"]] = Field(default_factory=list)

    @field_validator("locations")
    @classmethod
    def clean_locations(cls, v: list[str]) -> list[str]:
        return [item.strip() for item in v if item.strip()]


class ContactInfo(BaseModel):
    guardian_name: str | None = Field(default=None, max_length=50)
    guardian_phone: str | None = None
    guardian_relation: str | None = Field(default=None, max_length=30)

    @field_validator("guardian_phone")
    @classmethod
    def validate_guardian_phone(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return validate_phone(v)


# ------------------------------------------------------------------------------
# Input Schemas (输入模型)
# ------------------------------------------------------------------------------


class ProfileContent(BaseModel):
    """
    创建 / 编辑资料的完整内容 (编辑为整体覆盖语义)。
    """

    # 个人信息
    name: str = Field(..., min_length=2, max_length=50, description="姓名")
    age: int = Field(..., ge=MIN_AGE, le=MAX_AGE, description="年龄")
    gender: Gender = Field(..., description="性别")
    date_of_birth: date = Field(..., description="出生日期")
    height_cm: int | None = Field(default=None, ge=120, le=220, description="身高 (cm)")
    marital_status: MaritalStatus = Field(..., description="婚姻状况")
    city: str = Field(..., min_length=1, max_length=100, description="城市")
    country: str = Field(default="Pakistan", max_length=100, description="国家")
    nationality: str = Field(default="Pakistani", max_length=100, description="国籍")

    # 分区
    education: Education
    occupation: Occupation
    family_info: FamilyInfo = Field(default_factory=FamilyInfo)
    religious_info: ReligiousInfo = Field(default_factory=ReligiousInfo)
    preferences: Preferences = Field(default_factory=Preferences)
    contact_info: ContactInfo = Field(default_factory=ContactInfo)

    about: str | None = Field(default=None, max_length=1000, description="自我介绍")
    expectations: str | None = Field(default=None, max_length=500, description="择偶期望")

    @field_validator("name", "city")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field is required")
        return v

    @field_validator("about", "expectations")
    @classmethod
    def strip_optional(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None

    def to_columns(self) -> dict[str, Any]:
        """转换为 Profile 模型的列字典 (JSON 分区按 JSON 模式导出)"""
        return self.model_dump(mode="json") | {"date_of_birth": self.date_of_birth}


class PublicProfileFilter(BaseModel):
    """
    公开浏览筛选条件。
    """

    gender: Gender | None = Field(default=None, description="性别")
    city: str | None = Field(default=None, max_length=100, description="城市 (忽略大小写的子串匹配)")
    min_age: int | None = Field(default=None, ge=MIN_AGE, le=MAX_AGE, description="最小年龄 (含)")
    max_age: int | None = Field(default=None, ge=MIN_AGE, le=MAX_AGE, description="最大年龄 (含)")

    @model_validator(mode="after")
    def check_age_bounds(self) -> "PublicProfileFilter":
        if self.min_age is not None and self.max_age is not None and self.min_age > self.max_age:
            raise ValueError("min_age cannot be greater than max_age")
        return self


class AdminProfileFilter(PublicProfileFilter):
    """
    管理端筛选条件：可按审核状态与上架标记筛选。
    """

    status: ProfileStatus | None = Field(default=None, description="审核状态")
    published: bool | None = Field(default=None, description="上架标记")


class ReviewRequest(BaseModel):
    """
    管理员审核请求。
    """

    action: Literal["approve", "reject"] = Field(..., description="审核动作")
    rejection_reason: str | None = Field(default=None, max_length=500, description="驳回原因")

    @field_validator("rejection_reason")
    @classmethod
    def strip_reason(cls, v: str | None) -> str | None:
        if v is None:
            return None
        return v.strip() or None


# ------------------------------------------------------------------------------
# Output Schemas (输出/响应模型)
# ------------------------------------------------------------------------------


class PhotoRead(BaseModel):
    url: str
    key: str
    is_primary: bool = False


class ProfilePublicRead(BaseModel):
    """
    公开资料 (浏览 / 首页推荐 / 详情)。
    """

    id: UUID
    name: str
    age: int
    gender: str
    height_cm: int | None = None
    marital_status: str
    city: str
    country: str
    nationality: str

    education: dict[str, Any] = Field(default_factory=dict)
    occupation: dict[str, Any] = Field(default_factory=dict)
    family_info: dict[str, Any] = Field(default_factory=dict)
    religious_info: dict[str, Any] = Field(default_factory=dict)
    preferences: dict[str, Any] = Field(default_factory=dict)

    about: str | None = None
    expectations: str | None = None
    photos: list[PhotoRead] = Field(default_factory=list)
    views: int = 0
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def primary_photo(self) -> PhotoRead | None:
        return next((photo for photo in self.photos if photo.is_primary), None)


class ProfileRead(ProfilePublicRead):
    """
    完整资料 (资料主人 / 管理员)。
    """

    user_id: UUID
    date_of_birth: date
    contact_info: dict[str, Any] = Field(default_factory=dict)

    status: str
    published: bool
    is_public: bool
    reviewed_by: UUID | None = None
    reviewed_at: datetime | None = None
    rejection_reason: str | None = None
    last_viewed_at: datetime | None = None
    updated_at: datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def calculated_age(self) -> int:
        """按出生日期计算的实际年龄"""
        today = date.today()
        dob = self.date_of_birth
        return today.year - dob.year - ((today.month, today.day) < (dob.month, dob.day))

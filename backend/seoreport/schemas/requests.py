"""
Request schemas for the SEO report dashboard API
"""
from typing import Optional

from pydantic import EmailStr, Field, field_validator, model_validator

from seoreport.models.enums import KeywordDifficulty, Role
from seoreport.schemas.base import APIModel


class LoginRequest(APIModel):
    """Request for user login"""
    email: str
    password: str


# ==================== Users ====================

class CreateUserRequest(APIModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=1)
    role: Role
    company_name: Optional[str] = None
    domain: Optional[str] = None
    seo_dev_id: Optional[str] = None

    @model_validator(mode="after")
    def customer_needs_company(self):
        if self.role == Role.CUSTOMER and (not self.company_name or not self.domain):
            raise ValueError("Company Name and Domain are required for CUSTOMER role")
        return self


class UpdateUserRequest(APIModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    role: Optional[Role] = None
    company_name: Optional[str] = None
    domain: Optional[str] = None
    seo_dev_id: Optional[str] = None


class ChangePasswordRequest(APIModel):
    current_password: Optional[str] = None
    new_password: str = Field(..., min_length=1)
    confirm_password: str


# ==================== Metrics ====================

class MetricsInput(APIModel):
    """Overall domain metrics. Strings holding integers are accepted."""
    domain_rating: int = Field(..., ge=0, le=100)
    health_score: int = Field(..., ge=0, le=100)
    age_in_years: int = Field(0, ge=0)
    age_in_months: int = Field(0, ge=0, le=11)
    spam_score: int = Field(..., ge=0, le=100)
    organic_traffic: int = Field(..., ge=0)
    organic_keywords: int = Field(..., ge=0)
    backlinks: int = Field(..., ge=0)
    ref_domains: int = Field(..., ge=0)


# ==================== Keywords ====================

class KeywordCreate(APIModel):
    keyword: str
    position: Optional[int] = Field(None, ge=1)
    traffic: int = Field(0, ge=0)
    kd: KeywordDifficulty
    is_top_report: bool = False

    @field_validator("keyword")
    @classmethod
    def keyword_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Keyword is required")
        return value

    @field_validator("position", mode="before")
    @classmethod
    def empty_position_is_none(cls, value):
        # Forms send "" or 0 for an unranked keyword
        if value in ("", 0, "0"):
            return None
        return value


class KeywordUpdate(KeywordCreate):
    """Partial update; omitted fields keep their current value"""
    keyword: Optional[str] = None
    traffic: Optional[int] = Field(None, ge=0)
    kd: Optional[KeywordDifficulty] = None
    is_top_report: Optional[bool] = None

    @field_validator("keyword")
    @classmethod
    def keyword_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Keyword is required")
        return value


class RecommendCreate(APIModel):
    keyword: str
    kd: Optional[KeywordDifficulty] = None
    is_top_report: bool = False
    note: Optional[str] = None

    @field_validator("keyword")
    @classmethod
    def keyword_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Keyword is required")
        return value


class RecommendUpdate(APIModel):
    keyword: Optional[str] = None
    kd: Optional[KeywordDifficulty] = None
    is_top_report: Optional[bool] = None
    note: Optional[str] = None

    @field_validator("keyword")
    @classmethod
    def keyword_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Keyword is required")
        return value

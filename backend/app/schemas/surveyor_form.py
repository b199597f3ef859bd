from __future__ import annotations

import json
import re
from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

NAME_RE = re.compile(r"^[A-Za-z\s]+$")
STRICT_PHONE_RE = re.compile(r"^\+?\d{7,15}$")

MULTI_SELECT_FIELDS: tuple[str, ...] = (
    "qualifications",
    "vessel_types",
    "shoreside_experience",
    "surveying_experience",
    "vessel_type_surveying_experience",
    "accreditations",
    "courses_completed",
)

SCALAR_OTHER_FIELDS: tuple[str, ...] = ("discipline", "rank")

REQUIRED_TEXT_FIELDS: tuple[str, ...] = (
    "first_name",
    "last_name",
    "phone_number",
    "nationality",
    "employment_status",
    "dob_dd",
    "dob_mm",
    "dob_yyyy",
    "heard_about",
    "street1",
    "city",
    "postal_code",
    "country",
    "state_region",
    "discipline",
    "rank",
    "inspection_cost",
)

OPTIONAL_TEXT_FIELDS: tuple[str, ...] = (
    "mobile_number",
    "company_name",
    "year_started",
    "street2",
    "photo_s3_key",
    "cv_s3_key",
) + tuple(f"{name}_other" for name in SCALAR_OTHER_FIELDS + MULTI_SELECT_FIELDS)


def other_field_name(field: str) -> str:
    return f"{field}_other"


def normalize_phone(value: str | None) -> str | None:
    """Keep digits plus a single leading ``+``."""
    if value is None:
        return None
    stripped = value.strip()
    digits = re.sub(r"\D", "", stripped)
    if not digits:
        return None
    return f"+{digits}" if stripped.startswith("+") else digits


def parse_json_field(value: Any, fallback: Any) -> Any:
    """Lenient decode for fields that multipart clients send as JSON text."""
    if value is None or value == "":
        return fallback
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except ValueError:
        return fallback


def _coerce_string_list(value: Any) -> list[str]:
    parsed = parse_json_field(value, [])
    if not isinstance(parsed, list):
        return []
    return [item for item in parsed if isinstance(item, str)]


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value if isinstance(value, str) else ""


def _coerce_experience(value: Any) -> dict[str, dict[str, str]]:
    parsed = parse_json_field(value, {})
    if not isinstance(parsed, dict):
        return {}
    result: dict[str, dict[str, str]] = {}
    for name, entry in parsed.items():
        if not isinstance(entry, dict):
            continue
        result[str(name)] = {
            "years": _as_text(entry.get("years")),
            "months": _as_text(entry.get("months")),
            "days": _as_text(entry.get("days")),
        }
    return result


def _coerce_references(value: Any) -> list[dict[str, str]]:
    parsed = parse_json_field(value, [])
    if not isinstance(parsed, list):
        return []
    return [
        {"name": _as_text(item.get("name")), "contact": _as_text(item.get("contact"))}
        for item in parsed
        if isinstance(item, dict)
    ]


def coerce_consent(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return False


class ExperienceEntry(BaseModel):
    years: str = ""
    months: str = ""
    days: str = ""


class ReferenceEntry(BaseModel):
    name: str = ""
    contact: str = ""


class SurveyorFormIn(BaseModel):
    """Validated submission payload; wire names are camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    phone_number: str = Field(min_length=1, max_length=32)
    mobile_number: Optional[str] = Field(default=None, max_length=32)
    nationality: str = Field(min_length=1, max_length=100)
    employment_status: str = Field(min_length=1, max_length=100)
    company_name: Optional[str] = Field(default=None, max_length=200)

    email: EmailStr
    dob_dd: str = Field(alias="dobDD", min_length=1, max_length=4)
    dob_mm: str = Field(alias="dobMM", min_length=1, max_length=4)
    dob_yyyy: str = Field(alias="dobYYYY", min_length=1, max_length=4)
    year_started: Optional[str] = Field(default=None, max_length=10)
    heard_about: str = Field(min_length=1, max_length=255)

    street1: str = Field(min_length=1, max_length=255)
    street2: Optional[str] = Field(default=None, max_length=255)
    city: str = Field(min_length=1, max_length=100)
    postal_code: str = Field(min_length=1, max_length=32)
    country: str = Field(min_length=1, max_length=100)
    state_region: str = Field(min_length=1, max_length=100)

    discipline: str = Field(min_length=1, max_length=100)
    rank: str = Field(min_length=1, max_length=100)
    discipline_other: Optional[str] = None
    rank_other: Optional[str] = None

    qualifications: list[str] = Field(default_factory=list)
    experience_by_qualification: dict[str, ExperienceEntry] = Field(default_factory=dict)
    vessel_types: list[str] = Field(default_factory=list)
    shoreside_experience: list[str] = Field(default_factory=list)
    surveying_experience: list[str] = Field(default_factory=list)
    vessel_type_surveying_experience: list[str] = Field(default_factory=list)
    accreditations: list[str] = Field(default_factory=list)
    courses_completed: list[str] = Field(default_factory=list)

    qualifications_other: Optional[str] = None
    vessel_types_other: Optional[str] = None
    shoreside_experience_other: Optional[str] = None
    surveying_experience_other: Optional[str] = None
    vessel_type_surveying_experience_other: Optional[str] = None
    accreditations_other: Optional[str] = None
    courses_completed_other: Optional[str] = None

    references: list[ReferenceEntry] = Field(default_factory=list)

    inspection_cost: str = Field(min_length=1, max_length=100)
    marketing_consent: bool = False

    photo_s3_key: Optional[str] = Field(default=None, max_length=500)
    cv_s3_key: Optional[str] = Field(default=None, max_length=500)

    @field_validator(*REQUIRED_TEXT_FIELDS, *OPTIONAL_TEXT_FIELDS, mode="before")
    @classmethod
    def _numbers_as_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator(*OPTIONAL_TEXT_FIELDS)
    @classmethod
    def _blank_as_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value or None

    @field_validator("email", mode="before")
    @classmethod
    def _strip_email(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("first_name", "last_name")
    @classmethod
    def _letters_only(cls, value: str, info: ValidationInfo) -> str:
        if not NAME_RE.match(value):
            label = "First name" if info.field_name == "first_name" else "Last name"
            raise ValueError(f"{label} must contain letters only")
        return value

    @field_validator("phone_number", "mobile_number")
    @classmethod
    def _phone_format(cls, value: Optional[str], info: ValidationInfo) -> Optional[str]:
        if value is None:
            return None
        normalized = normalize_phone(value)
        if normalized is None and info.field_name == "phone_number":
            raise ValueError("Phone number must contain digits")
        strict = bool((info.context or {}).get("strict_phone"))
        if strict and normalized is not None and not STRICT_PHONE_RE.match(normalized):
            raise ValueError("Phone number must contain 7 to 15 digits, optionally starting with +")
        return value

    @field_validator("marketing_consent", mode="before")
    @classmethod
    def _consent(cls, value: Any) -> bool:
        return coerce_consent(value)

    @field_validator(*MULTI_SELECT_FIELDS, mode="before")
    @classmethod
    def _multi_select(cls, value: Any) -> list[str]:
        return _coerce_string_list(value)

    @field_validator("experience_by_qualification", mode="before")
    @classmethod
    def _experience(cls, value: Any) -> dict[str, dict[str, str]]:
        return _coerce_experience(value)

    @field_validator("references", mode="before")
    @classmethod
    def _references(cls, value: Any) -> list[dict[str, str]]:
        return _coerce_references(value)


class SurveyorFormOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    phone_number: str
    mobile_number: Optional[str] = None
    nationality: str
    employment_status: str
    company_name: Optional[str] = None

    email: str
    dob_dd: str
    dob_mm: str
    dob_yyyy: str
    year_started: Optional[str] = None
    heard_about: str

    street1: str
    street2: Optional[str] = None
    city: str
    postal_code: str
    country: str
    state_region: str

    discipline: str
    rank: str
    discipline_other: Optional[str] = None
    rank_other: Optional[str] = None

    qualifications: list[str] = Field(default_factory=list)
    experience_by_qualification: dict[str, ExperienceEntry] = Field(default_factory=dict)
    vessel_types: list[str] = Field(default_factory=list)
    shoreside_experience: list[str] = Field(default_factory=list)
    surveying_experience: list[str] = Field(default_factory=list)
    vessel_type_surveying_experience: list[str] = Field(default_factory=list)
    accreditations: list[str] = Field(default_factory=list)
    courses_completed: list[str] = Field(default_factory=list)

    qualifications_other: Optional[str] = None
    vessel_types_other: Optional[str] = None
    shoreside_experience_other: Optional[str] = None
    surveying_experience_other: Optional[str] = None
    vessel_type_surveying_experience_other: Optional[str] = None
    accreditations_other: Optional[str] = None
    courses_completed_other: Optional[str] = None

    refs: list[ReferenceEntry] = Field(default_factory=list, validation_alias=AliasChoices("references", "refs"))

    inspection_cost: str
    marketing_consent: bool

    photo_path: Optional[str] = None
    cv_path: Optional[str] = None
    photo_s3_key: Optional[str] = None
    cv_s3_key: Optional[str] = None

    reviewed: bool
    reviewed_at: Optional[datetime] = None
    approved: bool
    approved_at: Optional[datetime] = None
    status: str
    created_at: datetime


class FormCreatedData(BaseModel):
    id: int


class FormCreatedOut(BaseModel):
    success: bool = True
    message: str = "Form submitted"
    data: FormCreatedData


class FormListOut(BaseModel):
    success: bool = True
    data: list[SurveyorFormOut]


class FormStats(BaseModel):
    total: int
    pending: int
    approved: int
    new_today: int


class FormStatsOut(BaseModel):
    success: bool = True
    data: FormStats


class ReviewResult(BaseModel):
    id: int
    reviewed: bool
    reviewed_at: Optional[datetime] = None


class ReviewOut(BaseModel):
    success: bool = True
    data: ReviewResult


class ApprovalResult(BaseModel):
    id: int
    approved: bool
    approved_at: Optional[datetime] = None


class ApprovalOut(BaseModel):
    success: bool = True
    data: ApprovalResult


class FormDeletedOut(BaseModel):
    success: bool = True
    message: str = "Form deleted"
    id: int

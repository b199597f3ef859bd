from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text, false
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.core.datetime_utils import utc_now_naive
from app.core.review_machine import review_state
from app.db.base import Base

JsonColumn = JSON().with_variant(JSONB(), "postgresql")


class SurveyorForm(Base):
    __tablename__ = "surveyor_forms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone_number: Mapped[str] = mapped_column(String(32), nullable=False)
    mobile_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    nationality: Mapped[str] = mapped_column(String(100), nullable=False)
    employment_status: Mapped[str] = mapped_column(String(100), nullable=False)
    company_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    dob_dd: Mapped[str] = mapped_column(String(4), nullable=False)
    dob_mm: Mapped[str] = mapped_column(String(4), nullable=False)
    dob_yyyy: Mapped[str] = mapped_column(String(4), nullable=False)
    year_started: Mapped[str | None] = mapped_column(String(10), nullable=True)
    heard_about: Mapped[str] = mapped_column(String(255), nullable=False)

    street1: Mapped[str] = mapped_column(String(255), nullable=False)
    street2: Mapped[str | None] = mapped_column(String(255), nullable=True)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    postal_code: Mapped[str] = mapped_column(String(32), nullable=False)
    country: Mapped[str] = mapped_column(String(100), nullable=False)
    state_region: Mapped[str] = mapped_column(String(100), nullable=False)

    discipline: Mapped[str] = mapped_column(String(100), nullable=False)
    rank: Mapped[str] = mapped_column(String(100), nullable=False)
    discipline_other: Mapped[str | None] = mapped_column(Text, nullable=True)
    rank_other: Mapped[str | None] = mapped_column(Text, nullable=True)

    qualifications: Mapped[list] = mapped_column(JsonColumn, nullable=False, default=list)
    experience_by_qualification: Mapped[dict] = mapped_column(JsonColumn, nullable=False, default=dict)
    vessel_types: Mapped[list] = mapped_column(JsonColumn, nullable=False, default=list)
    shoreside_experience: Mapped[list] = mapped_column(JsonColumn, nullable=False, default=list)
    surveying_experience: Mapped[list] = mapped_column(JsonColumn, nullable=False, default=list)
    vessel_type_surveying_experience: Mapped[list] = mapped_column(JsonColumn, nullable=False, default=list)
    accreditations: Mapped[list] = mapped_column(JsonColumn, nullable=False, default=list)
    courses_completed: Mapped[list] = mapped_column(JsonColumn, nullable=False, default=list)

    qualifications_other: Mapped[str | None] = mapped_column(Text, nullable=True)
    vessel_types_other: Mapped[str | None] = mapped_column(Text, nullable=True)
    shoreside_experience_other: Mapped[str | None] = mapped_column(Text, nullable=True)
    surveying_experience_other: Mapped[str | None] = mapped_column(Text, nullable=True)
    vessel_type_surveying_experience_other: Mapped[str | None] = mapped_column(Text, nullable=True)
    accreditations_other: Mapped[str | None] = mapped_column(Text, nullable=True)
    courses_completed_other: Mapped[str | None] = mapped_column(Text, nullable=True)

    references: Mapped[list] = mapped_column("refs", JsonColumn, nullable=False, default=list)

    inspection_cost: Mapped[str] = mapped_column(String(100), nullable=False)
    marketing_consent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())

    photo_path: Mapped[str | None] = mapped_column(String(500), nullable=True)
    cv_path: Mapped[str | None] = mapped_column(String(500), nullable=True)
    photo_s3_key: Mapped[str | None] = mapped_column(String(500), nullable=True)
    cv_s3_key: Mapped[str | None] = mapped_column(String(500), nullable=True)

    reviewed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    approved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now_naive, index=True)

    @property
    def status(self) -> str:
        return review_state(bool(self.reviewed), bool(self.approved))

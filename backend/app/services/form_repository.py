from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.engine import Row
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.datetime_utils import last_24_hours_cutoff, utc_now_naive
from app.core.errors import StorageError
from app.core.review_machine import approvable_clause
from app.models.surveyor_form import SurveyorForm
from app.schemas.surveyor_form import SurveyorFormIn, normalize_phone
from app.services.file_refs import FileRefs

logger = logging.getLogger("svr.forms")


@dataclass(frozen=True)
class FormFileKeys:
    photo_path: Optional[str]
    cv_path: Optional[str]
    photo_s3_key: Optional[str]
    cv_s3_key: Optional[str]


def _row_values(form: SurveyorFormIn, refs: FileRefs) -> dict[str, Any]:
    values = form.model_dump(mode="json", exclude={"photo_s3_key", "cv_s3_key"})
    values["phone_number"] = normalize_phone(form.phone_number)
    values["mobile_number"] = normalize_phone(form.mobile_number)
    values["photo_path"] = refs.photo_path
    values["cv_path"] = refs.cv_path
    values["photo_s3_key"] = refs.photo_s3_key
    values["cv_s3_key"] = refs.cv_s3_key
    return values


async def create_form(session: AsyncSession, form: SurveyorFormIn, refs: FileRefs) -> int:
    row = SurveyorForm(**_row_values(form, refs))
    session.add(row)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        logger.warning("form_insert_rejected", extra={"error": str(exc.orig)})
        raise StorageError("Could not save form")
    logger.info("form_submitted", extra={"form_id": row.id})
    return row.id


async def list_forms(session: AsyncSession, *, limit: int = 25, offset: int = 0) -> Sequence[SurveyorForm]:
    stmt = (
        select(SurveyorForm)
        .order_by(SurveyorForm.created_at.desc(), SurveyorForm.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return (await session.execute(stmt)).scalars().all()


async def get_stats(session: AsyncSession) -> dict[str, int]:
    cutoff = last_24_hours_cutoff()
    stmt = select(
        func.count(SurveyorForm.id),
        func.coalesce(func.sum(case((SurveyorForm.reviewed.is_not(True), 1), else_=0)), 0),
        func.coalesce(func.sum(case((SurveyorForm.approved.is_(True), 1), else_=0)), 0),
        func.coalesce(func.sum(case((SurveyorForm.created_at >= cutoff, 1), else_=0)), 0),
    )
    total, pending, approved, new_today = (await session.execute(stmt)).one()
    return {
        "total": int(total or 0),
        "pending": int(pending or 0),
        "approved": int(approved or 0),
        "new_today": int(new_today or 0),
    }


async def mark_reviewed(session: AsyncSession, form_id: int) -> Row | None:
    """Set reviewed; repeating it refreshes ``reviewed_at``."""
    stmt = (
        update(SurveyorForm)
        .where(SurveyorForm.id == form_id)
        .values(reviewed=True, reviewed_at=utc_now_naive())
        .returning(SurveyorForm.id, SurveyorForm.reviewed, SurveyorForm.reviewed_at)
        .execution_options(synchronize_session=False)
    )
    row = (await session.execute(stmt)).one_or_none()
    await session.commit()
    if row is not None:
        logger.info("form_reviewed", extra={"form_id": form_id})
    return row


async def approve_form(session: AsyncSession, form_id: int) -> Row | None:
    """Approve a reviewed, not yet approved form in one guarded UPDATE.

    Returns None when the id is unknown or the form is not approvable; the two
    cases are deliberately indistinguishable to the caller.
    """
    stmt = (
        update(SurveyorForm)
        .where(SurveyorForm.id == form_id, approvable_clause(SurveyorForm))
        .values(approved=True, approved_at=utc_now_naive())
        .returning(SurveyorForm.id, SurveyorForm.approved, SurveyorForm.approved_at)
        .execution_options(synchronize_session=False)
    )
    row = (await session.execute(stmt)).one_or_none()
    await session.commit()
    if row is not None:
        logger.info("form_approved", extra={"form_id": form_id})
    return row


async def get_form_keys_by_id(session: AsyncSession, form_id: int) -> FormFileKeys | None:
    stmt = select(
        SurveyorForm.photo_path,
        SurveyorForm.cv_path,
        SurveyorForm.photo_s3_key,
        SurveyorForm.cv_s3_key,
    ).where(SurveyorForm.id == form_id)
    row = (await session.execute(stmt)).one_or_none()
    if row is None:
        return None
    return FormFileKeys(
        photo_path=row.photo_path,
        cv_path=row.cv_path,
        photo_s3_key=row.photo_s3_key,
        cv_s3_key=row.cv_s3_key,
    )


async def delete_form_row_by_id(session: AsyncSession, form_id: int) -> int | None:
    stmt = (
        delete(SurveyorForm)
        .where(SurveyorForm.id == form_id)
        .returning(SurveyorForm.id)
        .execution_options(synchronize_session=False)
    )
    deleted = (await session.execute(stmt)).scalar_one_or_none()
    await session.commit()
    return deleted

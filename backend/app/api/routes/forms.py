from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.core.auth import require_admin
from app.core.config import settings
from app.core.errors import NotFoundError, ValidationError
from app.schemas.admin import AdminContext
from app.schemas.surveyor_form import (
    ApprovalOut,
    ApprovalResult,
    FormCreatedData,
    FormCreatedOut,
    FormDeletedOut,
    FormListOut,
    FormStats,
    FormStatsOut,
    ReviewOut,
    ReviewResult,
    SurveyorFormOut,
)
from app.services.file_refs import resolve_file_refs
from app.services.form_deletion import delete_form
from app.services.form_repository import approve_form, create_form, get_stats, list_forms, mark_reviewed
from app.services.form_validation import ParsedSubmission, parse_json_submission, parse_multipart_submission
from app.services.object_storage import ObjectStorage
from app.services.other_fields import normalize_other_fields

logger = logging.getLogger("svr.forms")

router = APIRouter(prefix="/api/form", tags=["forms"])

NOT_APPROVABLE_MESSAGE = "Cannot approve: form must be reviewed first (or already approved)."


def _is_json(request: Request) -> bool:
    content_type = (request.headers.get("content-type") or "").split(";", 1)[0].strip().lower()
    return content_type == "application/json" or content_type.endswith("+json")


async def _store_submission(session: AsyncSession, parsed: ParsedSubmission) -> int:
    form = normalize_other_fields(parsed.form)
    refs = await resolve_file_refs(
        photo_key=form.photo_s3_key,
        cv_key=form.cv_s3_key,
        photo_file=parsed.photo_file,
        cv_file=parsed.cv_file,
    )
    return await create_form(session, form, refs)


@router.post("/submit", response_model=FormCreatedOut, status_code=status.HTTP_201_CREATED)
async def submit_form(request: Request, session: AsyncSession = Depends(deps.get_db_session)):
    if _is_json(request):
        try:
            body = await request.json()
        except ValueError:
            raise ValidationError({"body": ["Request body must be valid JSON"]})
        form_id = await _store_submission(session, parse_json_submission(body))
    else:
        async with request.form() as form_data:
            form_id = await _store_submission(session, parse_multipart_submission(form_data))
    return FormCreatedOut(data=FormCreatedData(id=form_id))


@router.get("/records", response_model=FormListOut)
async def list_records(
    limit: int = Query(default=25, ge=1, le=settings.list_max_limit),
    offset: int = Query(default=0, ge=0),
    session: AsyncSession = Depends(deps.get_db_session),
    admin: AdminContext = Depends(require_admin()),
):
    rows = await list_forms(session, limit=limit, offset=offset)
    return FormListOut(data=[SurveyorFormOut.model_validate(row) for row in rows])


@router.get("/stats", response_model=FormStatsOut)
async def form_stats(
    session: AsyncSession = Depends(deps.get_db_session),
    admin: AdminContext = Depends(require_admin()),
):
    return FormStatsOut(data=FormStats(**await get_stats(session)))


@router.patch("/{form_id}/review", response_model=ReviewOut)
@router.patch("/review/{form_id}", response_model=ReviewOut, include_in_schema=False)
async def review_form(
    form_id: int,
    session: AsyncSession = Depends(deps.get_db_session),
    admin: AdminContext = Depends(require_admin()),
):
    row = await mark_reviewed(session, form_id)
    if row is None:
        raise NotFoundError("Form not found")
    return ReviewOut(data=ReviewResult(id=row.id, reviewed=row.reviewed, reviewed_at=row.reviewed_at))


@router.patch("/{form_id}/approve", response_model=ApprovalOut)
@router.patch("/approve/{form_id}", response_model=ApprovalOut, include_in_schema=False)
async def approve(
    form_id: int,
    session: AsyncSession = Depends(deps.get_db_session),
    admin: AdminContext = Depends(require_admin()),
):
    row = await approve_form(session, form_id)
    if row is None:
        raise NotFoundError(NOT_APPROVABLE_MESSAGE, status_code=status.HTTP_400_BAD_REQUEST)
    return ApprovalOut(data=ApprovalResult(id=row.id, approved=row.approved, approved_at=row.approved_at))


@router.delete("/{form_id}", response_model=FormDeletedOut)
async def remove_form(
    form_id: int,
    session: AsyncSession = Depends(deps.get_db_session),
    storage: Optional[ObjectStorage] = Depends(deps.get_optional_storage),
    admin: AdminContext = Depends(require_admin()),
):
    deleted = await delete_form(session, storage, form_id)
    if deleted is None:
        raise NotFoundError("Form not found")
    logger.info("form_deleted_by_admin", extra={"form_id": deleted, "admin": admin.username})
    return FormDeletedOut(id=deleted)
